import pytest
from httpx import AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

pytestmark = pytest.mark.asyncio


async def create_group(client: AsyncClient, headers, **fields):
    response = await client.post("/api/v1/groups", json={"name": "Tango Berlin", **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestGroupLifecycle:
    """Creating, editing and deleting groups."""

    async def test_creator_is_first_admin(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        group = await create_group(client, auth(owner), city="Berlin", group_type="city")
        assert group["slug"] == "tango-berlin"
        assert group["member_count"] == 1

        members = (await client.get(f"/api/v1/groups/{group['id']}/members")).json()
        assert [(m["user_id"], m["role"]) for m in members] == [(owner.id, "admin")]

    async def test_slugs_are_unique(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        await create_group(client, auth(owner))
        second = await create_group(client, auth(owner))
        assert second["slug"] == "tango-berlin-2"

    async def test_list_filters(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        await create_group(client, auth(owner), name="Tango Paris", city="Paris")
        await create_group(client, auth(owner), name="Vals Lovers", description="All about vals")
        assert [g["name"] for g in (await client.get("/api/v1/groups", params={"city": "Paris"})).json()] == ["Tango Paris"]
        assert [g["name"] for g in (await client.get("/api/v1/groups", params={"search": "vals"})).json()] == ["Vals Lovers"]

    async def test_only_admins_edit_and_delete(self, client: AsyncClient, make_user, auth):
        owner, member = await make_user("owner"), await make_user("member")
        group = await create_group(client, auth(owner))
        await client.post(f"/api/v1/groups/{group['id']}/join", headers=auth(member))

        response = await client.patch(f"/api/v1/groups/{group['id']}", json={"description": "x"}, headers=auth(member))
        assert response.status_code == 403
        response = await client.patch(
            f"/api/v1/groups/{group['id']}", json={"description": "Weekly practicas"}, headers=auth(owner)
        )
        assert response.json()["description"] == "Weekly practicas"

        assert (await client.delete(f"/api/v1/groups/{group['id']}", headers=auth(member))).status_code == 403
        assert (await client.delete(f"/api/v1/groups/{group['id']}", headers=auth(owner))).status_code == 204
        assert (await client.get(f"/api/v1/groups/{group['id']}")).status_code == 404

    async def test_delete_detaches_posts_and_events(self, client: AsyncClient, session: AsyncSession, make_user, auth):
        await session.execute(text("PRAGMA foreign_keys=ON"))
        await session.commit()
        assert (await session.execute(text("PRAGMA foreign_keys"))).scalar() == 1

        owner = await make_user("owner")
        group = await create_group(client, auth(owner))
        post = (
            await client.post("/api/v1/posts", json={"content": "Practica moved", "group_id": group["id"]}, headers=auth(owner))
        ).json()
        event = (
            await client.post(
                "/api/v1/events",
                json={"title": "Group practica", "start_date": "2030-01-01T19:00:00Z", "group_id": group["id"]},
                headers=auth(owner),
            )
        ).json()
        assert event["group_id"] == group["id"]

        assert (await client.delete(f"/api/v1/groups/{group['id']}", headers=auth(owner))).status_code == 204
        assert (await client.get(f"/api/v1/events/{event['id']}")).json()["group_id"] is None
        assert (await client.get(f"/api/v1/posts/{post['id']}", headers=auth(owner))).json()["group_id"] is None


class TestMembership:
    """Joining, approval and leaving."""

    async def test_join_public_group(self, client: AsyncClient, make_user, auth):
        owner, member = await make_user("owner"), await make_user("member")
        group = await create_group(client, auth(owner))

        response = await client.post(f"/api/v1/groups/{group['id']}/join", headers=auth(member))
        assert response.status_code == 200
        assert response.json()["status"] == "active"
        assert (await client.get(f"/api/v1/groups/{group['id']}")).json()["member_count"] == 2

        response = await client.post(f"/api/v1/groups/{group['id']}/join", headers=auth(member))
        assert response.status_code == 409

    async def test_private_group_needs_approval(self, client: AsyncClient, make_user, auth):
        owner, member = await make_user("owner"), await make_user("member")
        group = await create_group(client, auth(owner), is_private=True)

        response = await client.post(f"/api/v1/groups/{group['id']}/join", headers=auth(member))
        assert response.json()["status"] == "pending"
        assert (await client.get(f"/api/v1/groups/{group['id']}")).json()["member_count"] == 1

        members = (await client.get(f"/api/v1/groups/{group['id']}/members", params={"include_pending": True})).json()
        assert len(members) == 2

        response = await client.post(f"/api/v1/groups/{group['id']}/members/{member.id}/approve", headers=auth(member))
        assert response.status_code == 403
        response = await client.post(f"/api/v1/groups/{group['id']}/members/{member.id}/approve", headers=auth(owner))
        assert response.json()["status"] == "active"
        assert (await client.get(f"/api/v1/groups/{group['id']}")).json()["member_count"] == 2

    async def test_leave_and_rejoin(self, client: AsyncClient, make_user, auth):
        owner, member = await make_user("owner"), await make_user("member")
        group = await create_group(client, auth(owner))
        await client.post(f"/api/v1/groups/{group['id']}/join", headers=auth(member))

        assert (await client.post(f"/api/v1/groups/{group['id']}/leave", headers=auth(member))).status_code == 204
        assert (await client.get(f"/api/v1/groups/{group['id']}")).json()["member_count"] == 1
        assert (await client.post(f"/api/v1/groups/{group['id']}/leave", headers=auth(member))).status_code == 404

        response = await client.post(f"/api/v1/groups/{group['id']}/join", headers=auth(member))
        assert response.json()["status"] == "active"

    async def test_creator_cannot_leave(self, client: AsyncClient, make_user, auth):
        owner = await make_user("owner")
        group = await create_group(client, auth(owner))
        assert (await client.post(f"/api/v1/groups/{group['id']}/leave", headers=auth(owner))).status_code == 400

    async def test_group_posts_for_members_only(self, client: AsyncClient, make_user, auth):
        owner, outsider = await make_user("owner"), await make_user("outsider")
        group = await create_group(client, auth(owner))
        await client.post("/api/v1/posts", json={"content": "Members news", "group_id": group["id"]}, headers=auth(owner))

        response = await client.get(f"/api/v1/groups/{group['id']}/posts", headers=auth(owner))
        assert [p["content"] for p in response.json()] == ["Members news"]
        response = await client.get(f"/api/v1/groups/{group['id']}/posts", headers=auth(outsider))
        assert response.status_code == 403
