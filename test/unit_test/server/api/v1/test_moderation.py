import pytest
from httpx import AsyncClient

from mundo_tango.core.database.entities.users import UserRole

pytestmark = pytest.mark.asyncio


async def reported_post(client: AsyncClient, make_user, auth) -> int:
    author, reporter = await make_user("author"), await make_user("reporter")
    post = (await client.post("/api/v1/posts", json={"content": "Cheap shoes for sale"}, headers=auth(author))).json()
    response = await client.post(
        f"/api/v1/posts/{post['id']}/report", json={"report_type": "spam"}, headers=auth(reporter)
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestContentCheck:
    async def test_clean_text(self, client: AsyncClient):
        response = await client.post("/api/v1/moderation/check", json={"text": "Lovely milonga last night"})
        assert response.status_code == 200
        assert response.json() == {"clean": True, "violations": [], "spam_score": 0, "is_spam": False, "signals": []}

    async def test_spam_text(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/moderation/check", json={"text": "Click here, buy now! Limited time offer $$$"}
        )
        data = response.json()
        assert data["clean"] is False
        assert data["violations"] == ["spam"]
        assert data["spam_score"] == 50
        assert data["is_spam"] is True

    async def test_repeated_text_from_author(self, client: AsyncClient, make_user, auth):
        ana = await make_user("ana")
        await client.post("/api/v1/posts", json={"content": "Private lessons available this week"}, headers=auth(ana))
        response = await client.post(
            "/api/v1/moderation/check", json={"text": "Private lessons available this week", "author_id": ana.id}
        )
        assert response.json()["spam_score"] == 20

    async def test_unknown_author(self, client: AsyncClient):
        response = await client.post("/api/v1/moderation/check", json={"text": "hola", "author_id": 9999})
        assert response.status_code == 404


class TestReportQueue:
    async def test_admin_only(self, client: AsyncClient, make_user, auth):
        report_id = await reported_post(client, make_user, auth)
        user = await make_user("user")
        assert (await client.get("/api/v1/moderation/reports", headers=auth(user))).status_code == 403
        response = await client.post(
            f"/api/v1/moderation/reports/{report_id}/resolve", json={"status": "dismissed"}, headers=auth(user)
        )
        assert response.status_code == 403

    async def test_resolve_once(self, client: AsyncClient, make_user, auth):
        report_id = await reported_post(client, make_user, auth)
        admin = await make_user("admin", role=UserRole.SUPER_ADMIN)

        queue = (await client.get("/api/v1/moderation/reports", headers=auth(admin))).json()
        assert [r["id"] for r in queue] == [report_id]

        response = await client.post(
            f"/api/v1/moderation/reports/{report_id}/resolve",
            json={"status": "reviewed", "resolution": "Post removed"},
            headers=auth(admin),
        )
        assert response.status_code == 200
        assert response.json()["reviewed_by"] == admin.id

        again = await client.post(
            f"/api/v1/moderation/reports/{report_id}/resolve", json={"status": "dismissed"}, headers=auth(admin)
        )
        assert again.status_code == 400

        assert (await client.get("/api/v1/moderation/reports", headers=auth(admin))).json() == []
        reviewed = await client.get("/api/v1/moderation/reports", params={"status": "reviewed"}, headers=auth(admin))
        assert [r["id"] for r in reviewed.json()] == [report_id]

    async def test_cannot_resolve_as_pending(self, client: AsyncClient, make_user, auth):
        report_id = await reported_post(client, make_user, auth)
        admin = await make_user("admin", role=UserRole.ADMIN)
        response = await client.post(
            f"/api/v1/moderation/reports/{report_id}/resolve", json={"status": "pending"}, headers=auth(admin)
        )
        assert response.status_code == 400
