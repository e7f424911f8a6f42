from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from mundo_tango.core.database.entities.marketplace import ProductPurchase
from mundo_tango.core.database.entities.users import UserRole
from mundo_tango.core.timeutils import utc_now

pytestmark = pytest.mark.asyncio

GOOD_LISTING = {
    "title": "Vals Technique Video Course",
    "description": (
        "A complete course on vals technique:\n"
        "- rhythm and musicality exercises\n"
        "- giros and ochos in close embrace\n"
        "- six hours of lessons"
    ),
    "category": "course",
    "price": 40.0,
    "media_urls": ["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg", "https://cdn.example.com/3.jpg"],
    "tags": ["vals", "technique", "musicality"],
}


async def published_product(client: AsyncClient, headers) -> dict:
    product = (await client.post("/api/v1/marketplace/products", json=GOOD_LISTING, headers=headers)).json()
    report = await client.post(f"/api/v1/marketplace/products/{product['id']}/review", headers=headers)
    assert report.json()["auto_approved"] is True
    return product


async def buy(client: AsyncClient, product_id: int, headers) -> dict:
    response = await client.post(f"/api/v1/marketplace/products/{product_id}/purchase", headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestListings:
    """Listing review and visibility."""

    async def test_new_listing_is_draft_and_private(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        response = await client.post("/api/v1/marketplace/products", json=GOOD_LISTING, headers=auth(seller))
        assert response.status_code == 201
        product = response.json()
        assert product["status"] == "draft"

        assert (await client.get(f"/api/v1/marketplace/products/{product['id']}", headers=auth(buyer))).status_code == 403
        assert (await client.get("/api/v1/marketplace/products", headers=auth(buyer))).json() == []
        mine = (await client.get("/api/v1/marketplace/products", headers=auth(seller))).json()
        assert [p["id"] for p in mine] == [product["id"]]

    async def test_good_listing_is_published(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        response = await client.get(f"/api/v1/marketplace/products/{product['id']}", headers=auth(buyer))
        assert response.json()["status"] == "published"
        assert response.json()["quality_score"] == 100

    async def test_prohibited_listing_is_rejected(self, client: AsyncClient, make_user, auth):
        seller = await make_user("seller")
        product = (
            await client.post(
                "/api/v1/marketplace/products",
                json={**GOOD_LISTING, "title": "Pirated milonga course"},
                headers=auth(seller),
            )
        ).json()
        report = (await client.post(f"/api/v1/marketplace/products/{product['id']}/review", headers=auth(seller))).json()
        assert report["approved"] is False
        assert report["violations"]
        status = (await client.get(f"/api/v1/marketplace/products/{product['id']}", headers=auth(seller))).json()["status"]
        assert status == "rejected"

    async def test_editing_sends_listing_back_to_draft(self, client: AsyncClient, make_user, auth):
        seller = await make_user("seller")
        product = await published_product(client, auth(seller))
        response = await client.patch(
            f"/api/v1/marketplace/products/{product['id']}", json={"price": 55.0}, headers=auth(seller)
        )
        assert response.json()["status"] == "draft"
        assert response.json()["price"] == 55.0

    async def test_only_creator_manages(self, client: AsyncClient, make_user, auth):
        seller, other = await make_user("seller"), await make_user("other")
        product = await published_product(client, auth(seller))
        response = await client.patch(f"/api/v1/marketplace/products/{product['id']}", json={"price": 1.0}, headers=auth(other))
        assert response.status_code == 403

    async def test_products_with_sales_cannot_be_deleted(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        await buy(client, product["id"], auth(buyer))
        assert (await client.delete(f"/api/v1/marketplace/products/{product['id']}", headers=auth(seller))).status_code == 400

        draft = (await client.post("/api/v1/marketplace/products", json=GOOD_LISTING, headers=auth(seller))).json()
        assert (await client.delete(f"/api/v1/marketplace/products/{draft['id']}", headers=auth(seller))).status_code == 204


class TestPurchases:
    """Buying, delivery, refunds and disputes."""

    async def test_purchase_splits_fee(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        purchase = await buy(client, product["id"], auth(buyer))
        assert purchase["amount"] == 40.0
        assert purchase["platform_fee"] == 2.0
        assert purchase["creator_payout"] == 38.0
        assert purchase["refund_status"] == "none"

        mine = (await client.get("/api/v1/marketplace/purchases", headers=auth(buyer))).json()
        assert [p["id"] for p in mine] == [purchase["id"]]
        points = (await client.get("/api/v1/gamification/points", headers=auth(seller))).json()
        assert points["contribution_points"] == 25

    async def test_purchase_rules(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        await buy(client, product["id"], auth(buyer))

        response = await client.post(f"/api/v1/marketplace/products/{product['id']}/purchase", headers=auth(buyer))
        assert response.status_code == 409
        response = await client.post(f"/api/v1/marketplace/products/{product['id']}/purchase", headers=auth(seller))
        assert response.status_code == 400

        draft = (await client.post("/api/v1/marketplace/products", json=GOOD_LISTING, headers=auth(seller))).json()
        response = await client.post(f"/api/v1/marketplace/products/{draft['id']}/purchase", headers=auth(buyer))
        assert response.status_code == 400

    async def test_order_status_follows_delivery(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        purchase = await buy(client, product["id"], auth(buyer))

        status = (await client.get(f"/api/v1/marketplace/purchases/{purchase['id']}/status", headers=auth(buyer))).json()
        assert status["status"] == "pending"
        assert status["can_refund"] is True

        response = await client.post(f"/api/v1/marketplace/purchases/{purchase['id']}/deliver", headers=auth(seller))
        assert response.status_code == 403
        response = await client.post(f"/api/v1/marketplace/purchases/{purchase['id']}/deliver", headers=auth(buyer))
        assert response.json()["download_count"] == 1
        assert response.json()["delivered_at"] is not None

        status = (await client.get(f"/api/v1/marketplace/purchases/{purchase['id']}/status", headers=auth(seller))).json()
        assert status["status"] == "completed"
        assert [t["status"] for t in status["timeline"]] == ["pending", "processing", "completed"]

    async def test_refund_within_window(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        purchase = await buy(client, product["id"], auth(buyer))

        response = await client.post(
            f"/api/v1/marketplace/purchases/{purchase['id']}/refund", json={"reason": "Wrong level"}, headers=auth(buyer)
        )
        result = response.json()
        assert result["success"] is True
        assert result["purchase"]["refund_status"] == "refunded"

        again = (await client.post(f"/api/v1/marketplace/purchases/{purchase['id']}/refund", json={}, headers=auth(buyer))).json()
        assert again["success"] is False
        assert again["purchase"]["refund_status"] == "refunded"

        response = await client.post(f"/api/v1/marketplace/purchases/{purchase['id']}/deliver", headers=auth(buyer))
        assert response.status_code == 400

        # A refunded purchase no longer blocks buying again
        await buy(client, product["id"], auth(buyer))

    async def test_manual_approval_needs_admin(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        purchase = await buy(client, product["id"], auth(buyer))
        response = await client.post(
            f"/api/v1/marketplace/purchases/{purchase['id']}/refund", json={"approve": True}, headers=auth(buyer)
        )
        assert response.status_code == 403

    async def test_admin_approves_late_refund(self, client: AsyncClient, session: AsyncSession, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        admin = await make_user("admin", role=UserRole.ADMIN)
        product = await published_product(client, auth(seller))
        purchase = await buy(client, product["id"], auth(buyer))

        row = await session.get(ProductPurchase, purchase["id"])
        row.purchased_at = utc_now() - timedelta(days=45)
        session.add(row)
        await session.commit()

        url = f"/api/v1/marketplace/purchases/{purchase['id']}/refund"
        late = (await client.post(url, json={"reason": "Never watched it"}, headers=auth(buyer))).json()
        assert late["success"] is False
        assert late["purchase"]["refund_status"] == "requested"

        response = await client.post(url, json={"approve": True}, headers=auth(admin))
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["purchase"]["refund_status"] == "refunded"

    async def test_dispute(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        purchase = await buy(client, product["id"], auth(buyer))

        response = await client.post(
            f"/api/v1/marketplace/purchases/{purchase['id']}/dispute", json={"reason": "Video will not play"}, headers=auth(buyer)
        )
        assert response.status_code == 201
        assert response.json()["dispute_id"].startswith(f"dispute_{purchase['id']}_")
        assert response.json()["status"] == "under_review"

        response = await client.post(
            f"/api/v1/marketplace/purchases/{purchase['id']}/dispute", json={"reason": "Still broken"}, headers=auth(buyer)
        )
        assert response.status_code == 409

    async def test_strangers_cannot_see_purchase(self, client: AsyncClient, make_user, auth):
        seller, buyer, stranger = await make_user("seller"), await make_user("buyer"), await make_user("stranger")
        product = await published_product(client, auth(seller))
        purchase = await buy(client, product["id"], auth(buyer))
        response = await client.get(f"/api/v1/marketplace/purchases/{purchase['id']}/status", headers=auth(stranger))
        assert response.status_code == 403

    async def test_chargeback_risk_for_fresh_purchase(self, client: AsyncClient, make_user, auth):
        seller, buyer = await make_user("seller"), await make_user("buyer")
        product = await published_product(client, auth(seller))
        purchase = await buy(client, product["id"], auth(buyer))
        risk = (await client.get(f"/api/v1/marketplace/purchases/{purchase['id']}/chargeback-risk", headers=auth(buyer))).json()
        assert risk["risk_score"] == 25
        assert risk["risk_level"] == "low"
        assert risk["factors"] == ["Very recent purchase"]


class TestSellerViews:
    """Settlement and health for sellers."""

    async def test_settlement_and_health(self, client: AsyncClient, make_user, auth):
        seller, first, second = await make_user("seller"), await make_user("first"), await make_user("second")
        product = await published_product(client, auth(seller))
        await buy(client, product["id"], auth(first))
        refunded = await buy(client, product["id"], auth(second))
        await client.post(f"/api/v1/marketplace/purchases/{refunded['id']}/refund", json={}, headers=auth(second))

        settlement = (await client.get("/api/v1/marketplace/seller/settlement", headers=auth(seller))).json()
        assert settlement["seller_id"] == seller.id
        assert settlement["pending_amount"] == 38.0
        assert settlement["available_amount"] == 0.0
        assert settlement["next_payout_date"] is not None
        assert len(settlement["transactions"]) == 1

        health = (await client.get("/api/v1/marketplace/seller/health", headers=auth(seller))).json()
        assert health["total_transactions"] == 2
        assert health["refunded_transactions"] == 1
        assert health["refund_rate"] == 0.5
        assert health["health_score"] == 0

        assert (await client.get("/api/v1/marketplace/seller/late-deliveries", headers=auth(seller))).json() == []
