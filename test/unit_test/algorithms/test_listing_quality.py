from mundo_tango.algorithms.listing_quality import (
    ListingDraft,
    PublishedListing,
    check_brands,
    check_category,
    check_description,
    review_listing,
)

DESCRIPTION = (
    "Six lessons on vals for couples:\n"
    "- Turning figures in three-four time\n"
    "- Practice drills for each figure\n"
    "- Downloadable notes"
)


def good_listing(**fields) -> ListingDraft:
    data = {
        "id": 1,
        "title": "Vals Technique Video Course",
        "description": DESCRIPTION,
        "category": "course",
        "media_urls": ["a.jpg", "b.jpg", "c.jpg"],
        "tags": ["vals", "technique", "course"],
    }
    data.update(fields)
    return ListingDraft(**data)


class TestReviewListing:
    def test_complete_listing_is_auto_approved(self):
        report = review_listing(good_listing())
        assert report.overall_score == 100
        assert report.approved is True
        assert report.auto_approved is True
        assert report.requires_manual_review is False
        assert report.violations == []
        assert report.recommendations == []

    def test_prohibited_content_blocks_approval(self):
        report = review_listing(good_listing(title="Pirated milonga course"))
        assert report.approved is False
        assert report.requires_manual_review is True
        assert report.checks["content_policy"].score == 0
        assert "pirated" in report.violations[0]

    def test_adult_content(self):
        report = review_listing(good_listing(description=DESCRIPTION + "\nExplicit scenes"))
        assert report.checks["content_policy"].score == 20
        assert report.approved is False

    def test_incomplete_listing_needs_review(self):
        report = review_listing(ListingDraft(title="Milonga shoes", description="Short", category=None))
        assert report.violations == []
        assert report.overall_score == 55
        assert report.approved is False
        assert report.recommendations == [
            "Add more high-quality product images",
            "Expand product description with more details",
            "Add more relevant tags to improve discoverability",
        ]

    def test_duplicate_of_own_published_listing(self):
        published = [PublishedListing(id=9, title="Vals Technique Video Course!")]
        report = review_listing(good_listing(), published)
        assert report.approved is False
        assert report.violations == ['Potential duplicate listing detected: "Vals Technique Video Course!"']

    def test_listing_is_not_its_own_duplicate(self):
        published = [PublishedListing(id=1, title="Vals Technique Video Course")]
        assert review_listing(good_listing(), published).approved is True


class TestIndividualChecks:
    def test_category_mismatch(self):
        check = check_category(good_listing(category="music"))
        assert (check.passed, check.score) == (True, 70)
        assert check_category(good_listing(category="shoes")).score == 30

    def test_unstructured_description(self):
        check = check_description(good_listing(description="A plain description of a vals class with no bullets."))
        assert check.score == 85

    def test_spammy_description(self):
        text = "Click here to buy now!!! This is the best milonga course, no other course comes close to it."
        check = check_description(good_listing(description=text))
        assert check.score == 55
        assert check.passed is False

    def test_brand_reference_is_a_warning(self):
        check = check_brands(good_listing(title="Official Vals Course"))
        assert (check.passed, check.score) == (True, 60)
        report = review_listing(good_listing(title="Official Vals Course"))
        assert any("official" in w for w in report.warnings)
