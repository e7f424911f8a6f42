from datetime import timedelta

import pytest
from httpx import AsyncClient

from mundo_tango.core.timeutils import utc_now

pytestmark = pytest.mark.asyncio


def in_days(days: float) -> str:
    return (utc_now() + timedelta(days=days)).isoformat()


async def create_event(client: AsyncClient, headers, **fields):
    payload = {"title": "Milonga del Sur", "start_date": in_days(7), "city": "Rosario", **fields}
    response = await client.post("/api/v1/events", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestEventLifecycle:
    """Creating, listing, editing and cancelling events."""

    async def test_create_and_list(self, client: AsyncClient, make_user, auth):
        host = await make_user("host")
        event = await create_event(client, auth(host), event_type="festival")
        assert event["user_id"] == host.id
        assert event["status"] == "published"
        assert event["current_attendees"] == 0

        await create_event(client, auth(host), title="Last week's milonga", start_date=in_days(-7))
        listed = (await client.get("/api/v1/events")).json()
        assert [e["id"] for e in listed] == [event["id"]]
        assert len((await client.get("/api/v1/events", params={"upcoming": False})).json()) == 2
        assert (await client.get("/api/v1/events", params={"event_type": "practica"})).json() == []

    async def test_end_before_start_is_rejected(self, client: AsyncClient, make_user, auth):
        host = await make_user("host")
        response = await client.post(
            "/api/v1/events",
            json={"title": "Backwards", "start_date": in_days(7), "end_date": in_days(6)},
            headers=auth(host),
        )
        assert response.status_code == 400

    async def test_hosting_awards_event_points(self, client: AsyncClient, make_user, auth):
        host = await make_user("host")
        await create_event(client, auth(host))
        points = (await client.get("/api/v1/gamification/points", headers=auth(host))).json()
        assert points["event_points"] == 50

    async def test_only_organizer_updates(self, client: AsyncClient, make_user, auth):
        host, other = await make_user("host"), await make_user("other")
        event = await create_event(client, auth(host))
        response = await client.patch(f"/api/v1/events/{event['id']}", json={"title": "Mine now"}, headers=auth(other))
        assert response.status_code == 403
        response = await client.patch(f"/api/v1/events/{event['id']}", json={"price": 15}, headers=auth(host))
        assert response.json()["price"] == 15

    async def test_dates_with_utc_offset(self, client: AsyncClient, make_user, auth):
        host = await make_user("host")
        event = await create_event(client, auth(host), start_date="2030-01-01T21:00:00+02:00")
        assert event["start_date"] == "2030-01-01T19:00:00"

        response = await client.patch(
            f"/api/v1/events/{event['id']}",
            json={"start_date": "2030-01-02T19:00:00Z", "end_date": "2030-01-03T02:00:00Z"},
            headers=auth(host),
        )
        assert response.status_code == 200
        updated = response.json()
        assert (updated["start_date"], updated["end_date"]) == ("2030-01-02T19:00:00", "2030-01-03T02:00:00")

        response = await client.patch(
            f"/api/v1/events/{event['id']}", json={"end_date": "2030-01-02T20:00:00+03:00"}, headers=auth(host)
        )
        assert response.status_code == 400

    async def test_cancel(self, client: AsyncClient, make_user, auth):
        host, dancer = await make_user("host"), await make_user("dancer")
        event = await create_event(client, auth(host))
        response = await client.post(f"/api/v1/events/{event['id']}/cancel", headers=auth(host))
        assert response.json()["status"] == "cancelled"

        assert (await client.post(f"/api/v1/events/{event['id']}/cancel", headers=auth(host))).status_code == 400
        response = await client.post(f"/api/v1/events/{event['id']}/rsvp", json={"status": "going"}, headers=auth(dancer))
        assert response.status_code == 400


class TestRsvp:
    """Capacity and attendee counting."""

    async def test_guests_count_towards_attendees(self, client: AsyncClient, make_user, auth):
        host, dancer = await make_user("host"), await make_user("dancer")
        event = await create_event(client, auth(host))

        response = await client.post(
            f"/api/v1/events/{event['id']}/rsvp", json={"status": "going", "guest_count": 2}, headers=auth(dancer)
        )
        assert response.status_code == 200
        assert (await client.get(f"/api/v1/events/{event['id']}")).json()["current_attendees"] == 3

        await client.post(f"/api/v1/events/{event['id']}/rsvp", json={"status": "not_going"}, headers=auth(dancer))
        assert (await client.get(f"/api/v1/events/{event['id']}")).json()["current_attendees"] == 0
        assert (await client.get(f"/api/v1/events/{event['id']}/attendees")).json() == []

    async def test_full_event_rejects_rsvp(self, client: AsyncClient, make_user, auth):
        host, first, second = await make_user("host"), await make_user("first"), await make_user("second")
        event = await create_event(client, auth(host), max_attendees=2)

        response = await client.post(
            f"/api/v1/events/{event['id']}/rsvp", json={"status": "going", "guest_count": 1}, headers=auth(first)
        )
        assert response.status_code == 200
        response = await client.post(f"/api/v1/events/{event['id']}/rsvp", json={"status": "going"}, headers=auth(second))
        assert response.status_code == 400
        assert "full" in response.json()["detail"]

        # Interested does not take a seat
        response = await client.post(
            f"/api/v1/events/{event['id']}/rsvp", json={"status": "interested"}, headers=auth(second)
        )
        assert response.status_code == 200

    async def test_shrinking_party_is_allowed_when_full(self, client: AsyncClient, make_user, auth):
        host, dancer = await make_user("host"), await make_user("dancer")
        event = await create_event(client, auth(host), max_attendees=3)
        await client.post(
            f"/api/v1/events/{event['id']}/rsvp", json={"status": "going", "guest_count": 2}, headers=auth(dancer)
        )
        response = await client.post(
            f"/api/v1/events/{event['id']}/rsvp", json={"status": "going", "guest_count": 1}, headers=auth(dancer)
        )
        assert response.status_code == 200
        assert (await client.get(f"/api/v1/events/{event['id']}")).json()["current_attendees"] == 2

    async def test_capacity_cannot_drop_below_attendance(self, client: AsyncClient, make_user, auth):
        host, dancer = await make_user("host"), await make_user("dancer")
        event = await create_event(client, auth(host))
        await client.post(
            f"/api/v1/events/{event['id']}/rsvp", json={"status": "going", "guest_count": 2}, headers=auth(dancer)
        )
        response = await client.patch(f"/api/v1/events/{event['id']}", json={"max_attendees": 2}, headers=auth(host))
        assert response.status_code == 400

    async def test_event_comments(self, client: AsyncClient, make_user, auth):
        host, dancer = await make_user("host"), await make_user("dancer")
        event = await create_event(client, auth(host))
        response = await client.post(
            f"/api/v1/events/{event['id']}/comments", json={"content": "Is there parking?"}, headers=auth(dancer)
        )
        assert response.status_code == 201
        comments = (await client.get(f"/api/v1/events/{event['id']}/comments")).json()
        assert [c["content"] for c in comments] == ["Is there parking?"]
