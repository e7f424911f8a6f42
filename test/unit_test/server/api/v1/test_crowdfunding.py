from datetime import timedelta

import pytest
from httpx import AsyncClient

from mundo_tango.core.database.entities.users import UserRole
from mundo_tango.core.timeutils import utc_now

pytestmark = pytest.mark.asyncio

STORY = (
    "Our community studio lost its floor in a flood. We teach free classes for young dancers every week "
    "and need to rebuild before the festival season. Every donation goes to materials and labour."
)


async def launch(client: AsyncClient, headers, **fields) -> dict:
    payload = {"title": "Rebuild the Rosario tango studio", "story": STORY, "goal_amount": 500.0, **fields}
    response = await client.post("/api/v1/crowdfunding", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def donate(client: AsyncClient, campaign_id: int, headers, amount: float, **fields):
    return await client.post(
        f"/api/v1/crowdfunding/{campaign_id}/donate", json={"amount": amount, **fields}, headers=headers
    )


class TestCampaigns:
    """Launching and managing campaigns."""

    async def test_launch(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        campaign = await launch(client, auth(owner), category="community")
        assert campaign["status"] == "active"
        assert campaign["current_amount"] == 0.0
        assert campaign["user_id"] == owner.id

        listed = (await client.get("/api/v1/crowdfunding", params={"status": "active"})).json()
        assert [c["id"] for c in listed] == [campaign["id"]]
        assert (await client.get("/api/v1/crowdfunding", params={"category": "music"})).json() == []

    async def test_end_date_must_be_in_future(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        response = await client.post(
            "/api/v1/crowdfunding",
            json={"title": "Too late", "goal_amount": 100.0, "end_date": (utc_now() - timedelta(days=1)).isoformat()},
            headers=auth(owner),
        )
        assert response.status_code == 400

    async def test_end_date_with_utc_offset(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        campaign = await launch(client, auth(owner), end_date="2030-01-01T00:00:00Z")
        assert campaign["end_date"] == "2030-01-01T00:00:00"

        response = await client.patch(
            f"/api/v1/crowdfunding/{campaign['id']}", json={"end_date": "2030-06-01T12:00:00-03:00"}, headers=auth(owner)
        )
        assert response.status_code == 200
        assert response.json()["end_date"] == "2030-06-01T15:00:00"

    async def test_only_owner_edits(self, client: AsyncClient, make_user, auth):
        owner, other = await make_user("owner"), await make_user("other")
        campaign = await launch(client, auth(owner))
        assert (
            await client.patch(f"/api/v1/crowdfunding/{campaign['id']}", json={"title": "Mine"}, headers=auth(other))
        ).status_code == 403
        response = await client.patch(
            f"/api/v1/crowdfunding/{campaign['id']}", json={"goal_amount": 800.0}, headers=auth(owner)
        )
        assert response.json()["goal_amount"] == 800.0

    async def test_rewards_and_updates(self, client: AsyncClient, make_user, auth):
        owner, other = await make_user("owner"), await make_user("other")
        campaign = await launch(client, auth(owner))
        for price in (100.0, 25.0):
            response = await client.post(
                f"/api/v1/crowdfunding/{campaign['id']}/rewards",
                json={"title": f"Tier {price}", "price": price},
                headers=auth(owner),
            )
            assert response.status_code == 201
        rewards = (await client.get(f"/api/v1/crowdfunding/{campaign['id']}/rewards")).json()
        assert [r["price"] for r in rewards] == [25.0, 100.0]

        response = await client.post(
            f"/api/v1/crowdfunding/{campaign['id']}/updates",
            json={"title": "Week one", "content": "The old floor is out."},
            headers=auth(other),
        )
        assert response.status_code == 403
        await client.post(
            f"/api/v1/crowdfunding/{campaign['id']}/updates",
            json={"title": "Week one", "content": "The old floor is out."},
            headers=auth(owner),
        )
        updates = (await client.get(f"/api/v1/crowdfunding/{campaign['id']}/updates")).json()
        assert [u["title"] for u in updates] == ["Week one"]


class TestDonations:
    """Donation flow, fees and completion."""

    async def test_fee_and_progress(self, client: AsyncClient, make_user, auth):
        owner, donor = await make_user("owner"), await make_user("donor", city="Rosario")
        campaign = await launch(client, auth(owner))

        response = await donate(client, campaign["id"], auth(donor), 100.0, message="Suerte!")
        assert response.status_code == 201
        donation = response.json()
        assert donation["platform_fee"] == 5.0
        assert donation["net_amount"] == 95.0
        assert donation["donor_user_id"] == donor.id

        assert (await client.get(f"/api/v1/crowdfunding/{campaign['id']}")).json()["current_amount"] == 95.0
        points = (await client.get("/api/v1/gamification/points", headers=auth(donor))).json()
        assert points["contribution_points"] == 20

    async def test_reaching_goal_completes_campaign(self, client: AsyncClient, make_user, auth):
        owner, donor = await make_user("owner"), await make_user("donor")
        campaign = await launch(client, auth(owner), goal_amount=190.0)

        await donate(client, campaign["id"], auth(donor), 100.0)
        await donate(client, campaign["id"], auth(donor), 100.0)
        assert (await client.get(f"/api/v1/crowdfunding/{campaign['id']}")).json()["status"] == "completed"

        response = await donate(client, campaign["id"], auth(donor), 10.0)
        assert response.status_code == 400

        response = await client.patch(
            f"/api/v1/crowdfunding/{campaign['id']}", json={"status": "active"}, headers=auth(owner)
        )
        assert response.status_code == 400

    async def test_lowering_goal_below_raised_completes_campaign(self, client: AsyncClient, make_user, auth):
        owner, donor = await make_user("owner"), await make_user("donor")
        campaign = await launch(client, auth(owner), goal_amount=500.0)
        await donate(client, campaign["id"], auth(donor), 200.0)

        response = await client.patch(
            f"/api/v1/crowdfunding/{campaign['id']}", json={"goal_amount": 150.0}, headers=auth(owner)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert (await donate(client, campaign["id"], auth(donor), 10.0)).status_code == 400

    async def test_anonymous_donors_are_hidden(self, client: AsyncClient, make_user, auth):
        owner, shy, proud = await make_user("owner"), await make_user("shy"), await make_user("proud")
        campaign = await launch(client, auth(owner))
        await donate(client, campaign["id"], auth(shy), 20.0, is_anonymous=True)
        await donate(client, campaign["id"], auth(proud), 30.0)

        donations = (await client.get(f"/api/v1/crowdfunding/{campaign['id']}/donations")).json()
        by_amount = {d["amount"]: d for d in donations}
        assert by_amount[20.0]["donor_user_id"] is None
        assert by_amount[30.0]["donor_user_id"] == proud.id

    async def test_stats(self, client: AsyncClient, make_user, auth):
        owner, a, b = await make_user("owner"), await make_user("a"), await make_user("b")
        campaign = await launch(client, auth(owner), goal_amount=200.0)
        await donate(client, campaign["id"], auth(a), 60.0)
        await donate(client, campaign["id"], auth(b), 40.0)

        stats = (await client.get(f"/api/v1/crowdfunding/{campaign['id']}/stats")).json()
        assert stats["current_amount"] == 95.0
        assert stats["percent_funded"] == 47.5
        assert stats["donation_count"] == 2
        assert stats["unique_donors"] == 2
        assert stats["average_donation"] == 50.0
        assert stats["milestones_reached"] == [25]
        assert stats["days_remaining"] is None


class TestCampaignAnalysis:
    """Owner and admin reports."""

    async def test_reports_are_owner_or_admin_only(self, client: AsyncClient, make_user, auth):
        owner, other = await make_user("owner"), await make_user("other")
        admin = await make_user("admin", role=UserRole.ADMIN)
        campaign = await launch(client, auth(owner))

        for report in ("fraud-analysis", "optimization", "donor-segments"):
            url = f"/api/v1/crowdfunding/{campaign['id']}/{report}"
            assert (await client.get(url, headers=auth(other))).status_code == 403
            assert (await client.get(url, headers=auth(owner))).status_code == 200
            assert (await client.get(url, headers=auth(admin))).status_code == 200

    async def test_fraud_analysis_stores_score(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        campaign = await launch(client, auth(owner))
        analysis = (await client.get(f"/api/v1/crowdfunding/{campaign['id']}/fraud-analysis", headers=auth(owner))).json()
        assert analysis["campaign_id"] == campaign["id"]
        assert 0 <= analysis["risk_score"] <= 100
        assert set(analysis["checks"]) >= {"creator_verification", "story_authenticity", "donation_patterns"}

        stored = (await client.get(f"/api/v1/crowdfunding/{campaign['id']}")).json()
        assert stored["fraud_risk_score"] == analysis["risk_score"]

    async def test_optimization_counts_rewards(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        campaign = await launch(client, auth(owner))
        await client.post(
            f"/api/v1/crowdfunding/{campaign['id']}/rewards", json={"title": "Thanks", "price": 10.0}, headers=auth(owner)
        )
        report = (await client.get(f"/api/v1/crowdfunding/{campaign['id']}/optimization", headers=auth(owner))).json()
        assert report["rewards"]["current_tiers"] == 1
        assert 0 <= report["overall_score"] <= 100

    async def test_donor_segments(self, client: AsyncClient, make_user, auth):
        owner, whale, regular = await make_user("owner"), await make_user("whale"), await make_user("regular")
        campaign = await launch(client, auth(owner), goal_amount=1000.0)
        await donate(client, campaign["id"], auth(whale), 300.0)
        await donate(client, campaign["id"], auth(regular), 20.0)
        await donate(client, campaign["id"], auth(regular), 20.0)

        report = (await client.get(f"/api/v1/crowdfunding/{campaign['id']}/donor-segments", headers=auth(owner))).json()
        assert report["segments"]["whales"]["donor_count"] == 1
        assert report["segments"]["recurring"]["donor_count"] == 1
        assert report["retention_rate"] == 0.5
