"""
Marketplace service.

Products go through the listing quality review before they are sold. A
purchase stores the platform fee split at the time of sale. Order status,
refunds, disputes and seller settlement are answered by the transaction
monitoring functions over ``PurchaseSnapshot`` copies of the rows.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import or_, select

from mundo_tango.algorithms.gamification import PointAction
from mundo_tango.algorithms.listing_quality import ListingDraft, PublishedListing, QAReport, review_listing
from mundo_tango.algorithms.transactions import (
    ChargebackRisk,
    DisputeTicket,
    LateDelivery,
    OrderStatus,
    PurchaseSnapshot,
    SettlementStatus,
    TransactionHealth,
    chargeback_risk,
    late_deliveries,
    open_dispute,
    order_status,
    refund_decision,
    settlement_status,
    transaction_health,
)
from mundo_tango.core.database.entities.marketplace import (
    DisputeStatus,
    MarketplaceProduct,
    ProductPurchase,
    ProductStatus,
    RefundStatus,
)
from mundo_tango.core.database.entities.users import User, UserRole
from mundo_tango.core.database.repositories import AsyncRepository
from mundo_tango.core.errors import BusinessRuleError, ConflictError, PermissionDeniedError
from mundo_tango.core.monitoring import log_business_event
from mundo_tango.core.timeutils import days_between, utc_now
from mundo_tango.server.core.config import settings
from mundo_tango.server.schemas.marketplace import (
    DisputeCreate,
    ProductCreate,
    ProductUpdate,
    PurchaseRead,
    RefundRequest,
    RefundResult,
)

from .gamification import GamificationService

logger = logging.getLogger(__name__)


def to_snapshot(purchase: ProductPurchase) -> PurchaseSnapshot:
    return PurchaseSnapshot(
        id=purchase.id,
        product_id=purchase.product_id,
        amount=purchase.amount,
        platform_fee=purchase.platform_fee,
        creator_payout=purchase.creator_payout,
        download_count=purchase.download_count,
        delivered_at=purchase.delivered_at,
        refunded=purchase.refund_status == RefundStatus.REFUNDED,
        purchased_at=purchase.purchased_at,
    )


class MarketplaceService:
    """Products, purchases and seller operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.products = AsyncRepository(session, MarketplaceProduct)
        self.purchases = AsyncRepository(session, ProductPurchase)
        self.gamification = GamificationService(session)

    # Products

    async def list_products(
        self,
        viewer: User,
        category: Optional[str] = None,
        creator_id: Optional[int] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[MarketplaceProduct]:
        """Published products, plus the viewer's own listings in any status."""
        stmt = select(MarketplaceProduct).where(
            or_(
                MarketplaceProduct.status == ProductStatus.PUBLISHED,
                MarketplaceProduct.creator_user_id == viewer.id,
            )
        )
        if category is not None:
            stmt = stmt.where(MarketplaceProduct.category == category)
        if creator_id is not None:
            stmt = stmt.where(MarketplaceProduct.creator_user_id == creator_id)
        stmt = stmt.order_by(MarketplaceProduct.created_at.desc(), MarketplaceProduct.id.desc())  # type: ignore
        result = await self.session.execute(stmt.offset(offset).limit(limit))
        return list(result.scalars().all())

    async def create_product(self, creator: User, data: ProductCreate) -> MarketplaceProduct:
        product = await self.products.create(
            MarketplaceProduct.model_validate(data, update={"creator_user_id": creator.id})
        )
        logger.info(f"User {creator.id} listed product {product.id}")
        return product

    async def get_product(self, viewer: User, product_id: int) -> MarketplaceProduct:
        product = await self.products.get_or_404(product_id, "Product")
        if product.status != ProductStatus.PUBLISHED and product.creator_user_id != viewer.id:
            raise PermissionDeniedError(f"Product {product_id} is not published")
        return product

    async def _owned(self, user: User, product_id: int) -> MarketplaceProduct:
        product = await self.products.get_or_404(product_id, "Product")
        if product.creator_user_id != user.id:
            raise PermissionDeniedError("Only the creator can manage this product")
        return product

    async def update_product(self, user: User, product_id: int, changes: ProductUpdate) -> MarketplaceProduct:
        product = await self._owned(user, product_id)
        values = changes.model_dump(exclude_unset=True)
        if values and product.status in (ProductStatus.PUBLISHED, ProductStatus.REJECTED):
            # Edited listings need another review before they are sold again.
            values["status"] = ProductStatus.DRAFT
        return await self.products.update(product, values)

    async def delete_product(self, user: User, product_id: int) -> None:
        product = await self._owned(user, product_id)
        if product.sales_count > 0:
            raise BusinessRuleError("Products with sales cannot be deleted")
        await self.products.delete(product.id)
        logger.info(f"Product {product_id} deleted by user {user.id}")

    async def review_product(self, user: User, product_id: int) -> QAReport:
        product = await self._owned(user, product_id)
        stmt = select(MarketplaceProduct).where(
            MarketplaceProduct.creator_user_id == user.id,
            MarketplaceProduct.status == ProductStatus.PUBLISHED,
            MarketplaceProduct.id != product.id,
        )
        published = [PublishedListing(id=p.id, title=p.title) for p in (await self.session.execute(stmt)).scalars()]
        report = review_listing(
            ListingDraft(
                id=product.id,
                title=product.title,
                description=product.description,
                category=product.category,
                media_urls=product.media_urls,
                tags=product.tags,
            ),
            published,
        )

        if report.auto_approved:
            status = ProductStatus.PUBLISHED
        elif report.violations:
            status = ProductStatus.REJECTED
        else:
            status = ProductStatus.PENDING_REVIEW
        await self.products.update(product, {"status": status, "quality_score": report.overall_score})
        logger.info(f"Product {product_id} reviewed: score={report.overall_score} status={status.value}")
        return report

    # Purchases

    async def purchase(self, buyer: User, product_id: int) -> ProductPurchase:
        product = await self.products.get_or_404(product_id, "Product")
        if product.status != ProductStatus.PUBLISHED:
            raise BusinessRuleError(f"Product {product_id} is not available for purchase")
        if product.creator_user_id == buyer.id:
            raise BusinessRuleError("Creators cannot buy their own products")
        if await self.purchases.first(product_id=product_id, buyer_user_id=buyer.id, refund_status=RefundStatus.NONE):
            raise ConflictError(f"Product {product_id} already purchased")

        fee = round(product.price * settings.business.platform_fee_rate, 2)
        purchase = ProductPurchase(
            product_id=product.id,
            buyer_user_id=buyer.id,
            amount=product.price,
            platform_fee=fee,
            creator_payout=round(product.price - fee, 2),
        )
        product.sales_count += 1
        self.session.add_all([purchase, product])
        await self.session.commit()
        await self.session.refresh(purchase)

        log_business_event(
            "product.purchased", product_id=product_id, buyer_id=buyer.id, amount=product.price, currency=product.currency
        )
        await self.gamification.award(product.creator_user_id, PointAction.PRODUCT_SOLD, purchase.id)
        return purchase

    async def _purchase_for(self, user: User, purchase_id: int, seller_allowed: bool = True) -> ProductPurchase:
        purchase = await self.purchases.get_or_404(purchase_id, "Purchase")
        if purchase.buyer_user_id == user.id:
            return purchase
        if seller_allowed:
            # Staff review refunds and orders of any user
            if user.role != UserRole.USER:
                return purchase
            product = await self.products.get_or_404(purchase.product_id, "Product")
            if product.creator_user_id == user.id:
                return purchase
        raise PermissionDeniedError(f"Purchase {purchase_id} does not belong to user {user.id}")

    async def my_purchases(self, buyer: User) -> List[ProductPurchase]:
        return await self.purchases.list(
            filters={"buyer_user_id": buyer.id},
            order_by=[ProductPurchase.purchased_at.desc(), ProductPurchase.id.desc()],  # type: ignore
        )

    async def order_status(self, user: User, purchase_id: int) -> OrderStatus:
        purchase = await self._purchase_for(user, purchase_id)
        return order_status(to_snapshot(purchase), utc_now())

    async def deliver(self, buyer: User, purchase_id: int) -> ProductPurchase:
        """Record a download of the purchased material."""
        purchase = await self._purchase_for(buyer, purchase_id, seller_allowed=False)
        if purchase.refund_status == RefundStatus.REFUNDED:
            raise BusinessRuleError(f"Purchase {purchase_id} was refunded")
        changes = {"download_count": purchase.download_count + 1}
        if purchase.delivered_at is None:
            changes["delivered_at"] = utc_now()
        return await self.purchases.update(purchase, changes)

    async def refund(self, user: User, purchase_id: int, request: RefundRequest) -> RefundResult:
        purchase = await self._purchase_for(user, purchase_id)
        if request.approve and user.role == UserRole.USER:
            raise PermissionDeniedError("Only administrators can approve refunds outside the window")

        decision = refund_decision(
            to_snapshot(purchase),
            utc_now(),
            manually_approved=request.approve,
            window_days=settings.business.auto_refund_window_days,
        )
        if decision.allowed:
            purchase = await self.purchases.update(
                purchase,
                {
                    "refund_status": RefundStatus.REFUNDED,
                    "refund_reason": request.reason,
                    "refunded_at": utc_now(),
                },
            )
            logger.info(f"Purchase {purchase_id} refunded ({purchase.amount})")
        elif purchase.refund_status == RefundStatus.NONE:
            purchase = await self.purchases.update(
                purchase, {"refund_status": RefundStatus.REQUESTED, "refund_reason": request.reason}
            )
        return RefundResult(
            success=decision.allowed, message=decision.message, purchase=PurchaseRead.model_validate(purchase)
        )

    async def dispute(self, buyer: User, purchase_id: int, data: DisputeCreate) -> DisputeTicket:
        purchase = await self._purchase_for(buyer, purchase_id, seller_allowed=False)
        now = utc_now()
        if days_between(purchase.purchased_at, now) > settings.business.dispute_window_days:
            raise BusinessRuleError("Purchase is outside the dispute window")
        if purchase.dispute_status == DisputeStatus.UNDER_REVIEW:
            raise ConflictError(f"Purchase {purchase_id} already has an open dispute")

        await self.purchases.update(
            purchase,
            {"dispute_status": DisputeStatus.UNDER_REVIEW, "dispute_reason": data.reason, "disputed_at": now},
        )
        log_business_event("purchase.disputed", purchase_id=purchase_id, buyer_id=buyer.id)
        return open_dispute(purchase.id, now)

    async def chargeback_risk(self, user: User, purchase_id: int) -> ChargebackRisk:
        purchase = await self._purchase_for(user, purchase_id)
        return chargeback_risk(to_snapshot(purchase), utc_now())

    # Seller views

    async def _seller_sales(self, seller: User) -> List[ProductPurchase]:
        stmt = (
            select(ProductPurchase)
            .join(MarketplaceProduct, MarketplaceProduct.id == ProductPurchase.product_id)
            .where(MarketplaceProduct.creator_user_id == seller.id)
            .order_by(ProductPurchase.purchased_at, ProductPurchase.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def settlement(self, seller: User) -> SettlementStatus:
        sales = await self._seller_sales(seller)
        return settlement_status(
            seller.id,
            (to_snapshot(p) for p in sales),
            utc_now(),
            delay_days=settings.business.settlement_delay_days,
        )

    async def late_deliveries(self, seller: User) -> List[LateDelivery]:
        sales = await self._seller_sales(seller)
        return late_deliveries((to_snapshot(p) for p in sales), utc_now())

    async def transaction_health(self, seller: User) -> TransactionHealth:
        sales = await self._seller_sales(seller)
        return transaction_health(to_snapshot(p) for p in sales)
