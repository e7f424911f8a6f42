import pytest

from mundo_tango.algorithms.moderation import check_content, contains_profanity, has_excessive_caps, spam_score


class TestCheckContent:
    def test_clean_text(self):
        result = check_content("Great milonga tonight, see you there")
        assert result.clean is True
        assert result.violations == []

    @pytest.mark.parametrize(
        "text,violation",
        [
            ("This floor is shit", "profanity"),
            ("Click here for cheap shoes", "spam"),
            ("WHAT A WONDERFUL MILONGA TONIGHT EVERYONE", "excessive_caps"),
        ],
    )
    def test_violations(self, text, violation):
        result = check_content(text)
        assert result.clean is False
        assert result.violations == [violation]

    def test_profanity_matches_whole_words(self):
        assert contains_profanity("Shitake empanadas at the break") is False

    def test_short_shouting_is_fine(self):
        assert has_excessive_caps("VIVA EL TANGO") is False


class TestSpamScore:
    def test_phrase_hits_are_capped(self):
        assessment = spam_score("Click here! Buy now! Limited time $$$")
        assert assessment.score == 50
        assert assessment.is_spam is True
        assert assessment.signals == ["4 spam phrase(s)"]

    def test_link_heavy_and_repeated_characters(self):
        assessment = spam_score("Sooooooo good http://a.example http://b.example")
        assert assessment.score == 35
        assert assessment.signals == ["link heavy", "repeated characters"]
        assert assessment.is_spam is False

    def test_repeated_by_same_author(self):
        text = "Join our practica on Friday"
        assessment = spam_score(text, [text, text, text, "Something else entirely"])
        assert assessment.score == 40
        assert assessment.signals == ["repeated 3 time(s) recently"]

    def test_ordinary_post(self):
        assert spam_score("Thanks for the lovely tanda yesterday").score == 0
