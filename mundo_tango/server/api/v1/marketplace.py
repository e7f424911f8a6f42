"""
API endpoints for the teaching-material marketplace.

Creators list products and submit them for the automated quality review;
buyers purchase, download, and may ask for refunds or open disputes. Sellers
can follow their settlement and undelivered orders.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from mundo_tango.algorithms.listing_quality import QAReport
from mundo_tango.algorithms.transactions import (
    ChargebackRisk,
    DisputeTicket,
    LateDelivery,
    OrderStatus,
    SettlementStatus,
    TransactionHealth,
)
from mundo_tango.server.schemas.marketplace import (
    DisputeCreate,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    PurchaseRead,
    RefundRequest,
    RefundResult,
)
from mundo_tango.server.services.deps import CurrentUser, MarketplaceServiceDep

router = APIRouter(tags=["marketplace"])


@router.get(
    "/products",
    response_model=List[ProductRead],
    summary="List Products",
    description="Published products, plus the acting member's own listings in any status.",
)
async def list_products(
    user: CurrentUser,
    service: MarketplaceServiceDep,
    category: Optional[str] = None,
    creator_id: Optional[int] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> List[ProductRead]:
    products = await service.list_products(user, category=category, creator_id=creator_id, limit=limit, offset=offset)
    return [ProductRead.model_validate(p) for p in products]


@router.post(
    "/products",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Product",
    description="Create a draft listing. Submit it for review to publish it.",
)
async def create_product(data: ProductCreate, user: CurrentUser, service: MarketplaceServiceDep) -> ProductRead:
    """
    Create a product listing.

    - **title** / **description**: Shown to buyers and checked by the review.
    - **category**: One of `course`, `music`, `choreography`, `video`, `ebook`, `template`, `tutorial`.
    - **price**: Price in `currency`.
    - **media_urls**: Preview images; three or more score best.
    """
    return ProductRead.model_validate(await service.create_product(user, data))


@router.get(
    "/products/{product_id}",
    response_model=ProductRead,
    summary="Get Product",
    responses={403: {"description": "Unpublished product of another creator"}, 404: {"description": "Not found"}},
)
async def get_product(product_id: int, user: CurrentUser, service: MarketplaceServiceDep) -> ProductRead:
    return ProductRead.model_validate(await service.get_product(user, product_id))


@router.patch(
    "/products/{product_id}",
    response_model=ProductRead,
    summary="Update Product",
    description="Edit a listing. Published or rejected listings return to draft and need another review.",
    responses={403: {"description": "Not the creator"}},
)
async def update_product(
    product_id: int, changes: ProductUpdate, user: CurrentUser, service: MarketplaceServiceDep
) -> ProductRead:
    return ProductRead.model_validate(await service.update_product(user, product_id, changes))


@router.delete(
    "/products/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Product",
    responses={400: {"description": "Product already has sales"}, 403: {"description": "Not the creator"}},
)
async def delete_product(product_id: int, user: CurrentUser, service: MarketplaceServiceDep) -> Response:
    await service.delete_product(user, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/products/{product_id}/review",
    response_model=QAReport,
    summary="Review Listing",
    description=(
        "Run the listing quality checks. Listings scoring 85 or more without violations are published "
        "automatically, listings with violations are rejected, and the rest wait for manual review."
    ),
    response_description="The quality report with per-check scores.",
)
async def review_product(product_id: int, user: CurrentUser, service: MarketplaceServiceDep) -> QAReport:
    return await service.review_product(user, product_id)


@router.post(
    "/products/{product_id}/purchase",
    response_model=PurchaseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Purchase Product",
    description="Buy a published product. The platform fee is deducted from the creator payout.",
    responses={
        400: {"description": "Product not published, or own product"},
        409: {"description": "Already purchased"},
    },
)
async def purchase_product(product_id: int, user: CurrentUser, service: MarketplaceServiceDep) -> PurchaseRead:
    return PurchaseRead.model_validate(await service.purchase(user, product_id))


@router.get("/purchases", response_model=List[PurchaseRead], summary="My Purchases")
async def my_purchases(user: CurrentUser, service: MarketplaceServiceDep) -> List[PurchaseRead]:
    return [PurchaseRead.model_validate(p) for p in await service.my_purchases(user)]


@router.get(
    "/purchases/{purchase_id}/status",
    response_model=OrderStatus,
    summary="Order Status",
    description="Timeline of a purchase and whether it can still be refunded or disputed.",
)
async def order_status(purchase_id: int, user: CurrentUser, service: MarketplaceServiceDep) -> OrderStatus:
    return await service.order_status(user, purchase_id)


@router.post(
    "/purchases/{purchase_id}/deliver",
    response_model=PurchaseRead,
    summary="Download Purchase",
    description="Record a download by the buyer. The first download marks the order delivered.",
)
async def deliver(purchase_id: int, user: CurrentUser, service: MarketplaceServiceDep) -> PurchaseRead:
    return PurchaseRead.model_validate(await service.deliver(user, purchase_id))


@router.post(
    "/purchases/{purchase_id}/refund",
    response_model=RefundResult,
    summary="Request Refund",
    description=(
        "Refund a purchase inside the automatic refund window. Outside it, the request is recorded and "
        "only an administrator approval (`approve=true`) refunds it."
    ),
)
async def refund(
    purchase_id: int, request: RefundRequest, user: CurrentUser, service: MarketplaceServiceDep
) -> RefundResult:
    return await service.refund(user, purchase_id, request)


@router.post(
    "/purchases/{purchase_id}/dispute",
    response_model=DisputeTicket,
    status_code=status.HTTP_201_CREATED,
    summary="Open Dispute",
    responses={
        400: {"description": "Outside the dispute window"},
        409: {"description": "Dispute already open"},
    },
)
async def dispute(
    purchase_id: int, data: DisputeCreate, user: CurrentUser, service: MarketplaceServiceDep
) -> DisputeTicket:
    return await service.dispute(user, purchase_id, data)


@router.get("/purchases/{purchase_id}/chargeback-risk", response_model=ChargebackRisk, summary="Chargeback Risk")
async def chargeback_risk(purchase_id: int, user: CurrentUser, service: MarketplaceServiceDep) -> ChargebackRisk:
    return await service.chargeback_risk(user, purchase_id)


@router.get(
    "/seller/settlement",
    response_model=SettlementStatus,
    summary="Seller Settlement",
    description="Payouts of the acting seller, split into available and pending amounts.",
)
async def seller_settlement(user: CurrentUser, service: MarketplaceServiceDep) -> SettlementStatus:
    return await service.settlement(user)


@router.get(
    "/seller/late-deliveries",
    response_model=List[LateDelivery],
    summary="Late Deliveries",
    description="Sales not downloaded more than seven days after purchase, oldest first.",
)
async def late_deliveries(user: CurrentUser, service: MarketplaceServiceDep) -> List[LateDelivery]:
    return await service.late_deliveries(user)


@router.get("/seller/health", response_model=TransactionHealth, summary="Seller Transaction Health")
async def seller_health(user: CurrentUser, service: MarketplaceServiceDep) -> TransactionHealth:
    return await service.transaction_health(user)
