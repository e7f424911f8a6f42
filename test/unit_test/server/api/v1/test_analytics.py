import pytest
from httpx import AsyncClient

from mundo_tango.core.database.entities.users import UserRole

pytestmark = pytest.mark.asyncio


class TestEngagementReport:
    async def test_own_report(self, client: AsyncClient, make_user, auth):
        ana, ben = await make_user("ana"), await make_user("ben")
        first = (await client.post("/api/v1/posts", json={"content": "Vals night #vals"}, headers=auth(ana))).json()
        await client.post("/api/v1/posts", json={"content": "Milonga night #milonga"}, headers=auth(ana))
        await client.post(f"/api/v1/posts/{first['id']}/like", headers=auth(ben))

        response = await client.get(f"/api/v1/analytics/users/{ana.id}/engagement", headers=auth(ana))
        assert response.status_code == 200
        report = response.json()
        assert report["period_days"] == 30
        assert report["metrics"]["post_count"] == 2
        assert report["metrics"]["total_likes"] == 1
        assert report["previous_metrics"]["post_count"] == 0
        assert report["top_hashtags"][0]["hashtag"] == "vals"

    async def test_only_owner_or_admin(self, client: AsyncClient, make_user, auth):
        ana, ben = await make_user("ana"), await make_user("ben")
        admin = await make_user("admin", role=UserRole.ADMIN)
        url = f"/api/v1/analytics/users/{ana.id}/engagement"
        assert (await client.get(url, headers=auth(ben))).status_code == 403
        assert (await client.get(url, headers=auth(admin))).status_code == 200
        assert (await client.get("/api/v1/analytics/users/9999/engagement", headers=auth(admin))).status_code == 404


class TestViralPrediction:
    async def test_quiet_post(self, client: AsyncClient, make_user, auth):
        ana = await make_user("ana")
        post = (await client.post("/api/v1/posts", json={"content": "Quiet practica"}, headers=auth(ana))).json()

        prediction = (
            await client.get(f"/api/v1/analytics/posts/{post['id']}/viral-prediction", headers=auth(ana))
        ).json()
        assert prediction["post_id"] == post["id"]
        assert prediction["viral_probability"] == 0.0
        assert prediction["label"] == "low"
        assert set(prediction["factors"]) == {"velocity", "share_ratio", "reach"}

    async def test_private_post_is_hidden(self, client: AsyncClient, make_user, auth):
        ana, ben = await make_user("ana"), await make_user("ben")
        post = (
            await client.post("/api/v1/posts", json={"content": "Diary", "visibility": "private"}, headers=auth(ana))
        ).json()
        url = f"/api/v1/analytics/posts/{post['id']}/viral-prediction"
        assert (await client.get(url, headers=auth(ben))).status_code == 403
        assert (await client.get("/api/v1/analytics/posts/9999/viral-prediction", headers=auth(ana))).status_code == 404
