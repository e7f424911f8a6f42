import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def post_as(client: AsyncClient, headers, content: str, **fields) -> int:
    response = await client.post("/api/v1/posts", json={"content": content, **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def befriend(client: AsyncClient, auth, a, b) -> None:
    await client.post(f"/api/v1/users/{b.id}/friend-request", headers=auth(a))
    await client.post(f"/api/v1/users/{a.id}/friend-request/accept", headers=auth(b))


class TestPersonalizedFeed:
    """Ranking of the home feed."""

    async def test_friends_rank_above_strangers(self, client: AsyncClient, make_user, auth):
        viewer, friend, stranger = await make_user("viewer"), await make_user("friend"), await make_user("stranger")
        await befriend(client, auth, viewer, friend)
        stranger_post = await post_as(client, auth(stranger), "Practica on Sunday afternoon")
        friend_post = await post_as(client, auth(friend), "New shoes for the milonga")
        await post_as(client, auth(viewer), "My own post stays out of my feed")

        response = await client.get("/api/v1/feed", headers=auth(viewer))
        assert response.status_code == 200
        ids = [p["id"] for p in response.json()["posts"]]
        assert ids == [friend_post, stranger_post]
        assert response.json()["posts"][0]["score"] > response.json()["posts"][1]["score"]

    async def test_hidden_posts_are_not_candidates(self, client: AsyncClient, make_user, auth):
        viewer, other = await make_user("viewer"), await make_user("other")
        await post_as(client, auth(other), "Friends only", visibility="friends")
        await post_as(client, auth(other), "Just for me", visibility="private")
        response = await client.get("/api/v1/feed", headers=auth(viewer))
        assert response.json()["posts"] == []

    async def test_pagination(self, client: AsyncClient, make_user, auth):
        viewer, other = await make_user("viewer"), await make_user("other")
        for i in range(3):
            await post_as(client, auth(other), f"Tanda number {i} was wonderful")
        page = (await client.get("/api/v1/feed", params={"limit": 2}, headers=auth(viewer))).json()
        assert len(page["posts"]) == 2
        assert page["has_more"] is True
        assert page["next_offset"] == 2

        page = (await client.get("/api/v1/feed", params={"limit": 2, "offset": 2}, headers=auth(viewer))).json()
        assert len(page["posts"]) == 1
        assert page["has_more"] is False


class TestOtherFeeds:
    """Following, discover, trending, recommended and active users."""

    async def test_following_feed(self, client: AsyncClient, make_user, auth):
        viewer, idol, stranger = await make_user("viewer"), await make_user("idol"), await make_user("stranger")
        await client.post(f"/api/v1/users/{idol.id}/follow", headers=auth(viewer))
        idol_post = await post_as(client, auth(idol), "Workshop this weekend")
        await post_as(client, auth(stranger), "Unrelated news")

        response = await client.get("/api/v1/feed/following", headers=auth(viewer))
        assert [p["id"] for p in response.json()["posts"]] == [idol_post]

    async def test_following_feed_empty_network(self, client: AsyncClient, make_user, auth):
        viewer = await make_user("viewer")
        response = await client.get("/api/v1/feed/following", headers=auth(viewer))
        assert response.json() == {"posts": [], "next_offset": None, "has_more": False}

    async def test_discover_excludes_network(self, client: AsyncClient, make_user, auth):
        viewer, idol, stranger = await make_user("viewer"), await make_user("idol"), await make_user("stranger")
        await client.post(f"/api/v1/users/{idol.id}/follow", headers=auth(viewer))
        await post_as(client, auth(idol), "From someone I follow")
        stranger_post = await post_as(client, auth(stranger), "From someone new")

        response = await client.get("/api/v1/feed/discover", headers=auth(viewer))
        assert [p["id"] for p in response.json()["posts"]] == [stranger_post]

    async def test_trending_orders_by_engagement(self, client: AsyncClient, make_user, auth):
        a, b, fan = await make_user("a"), await make_user("b"), await make_user("fan")
        quiet = await post_as(client, auth(a), "Quiet post")
        loud = await post_as(client, auth(b), "Popular post")
        await client.post(f"/api/v1/posts/{loud}/like", headers=auth(fan))
        await client.post(f"/api/v1/posts/{loud}/comments", json={"content": "Love it"}, headers=auth(fan))

        response = await client.get("/api/v1/feed/trending")
        assert [p["id"] for p in response.json()["posts"]] == [loud, quiet]

    async def test_recommended_skips_own_posts(self, client: AsyncClient, make_user, auth):
        viewer, other = await make_user("viewer"), await make_user("other")
        await post_as(client, auth(viewer), "Mine")
        theirs = await post_as(client, auth(other), "Theirs")
        response = await client.get("/api/v1/feed/recommended", headers=auth(viewer))
        assert [p["id"] for p in response.json()["posts"]] == [theirs]

    async def test_active_users(self, client: AsyncClient, make_user, auth):
        a, b = await make_user("a"), await make_user("b")
        await post_as(client, auth(a), "Hello")
        await post_as(client, auth(b), "Hi there")
        response = await client.get("/api/v1/feed/active-users")
        users = response.json()
        assert {u["username"] for u in users} == {"a", "b"}
