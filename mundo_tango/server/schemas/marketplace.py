"""Schemas for marketplace products and purchases."""

from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel

from mundo_tango.core.database.entities.marketplace import (
    DisputeStatus,
    ProductBase,
    ProductStatus,
    RefundStatus,
)


class ProductCreate(ProductBase):
    media_urls: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class ProductRead(ProductBase):
    id: int
    creator_user_id: int
    media_urls: List[str]
    tags: List[str]
    status: ProductStatus
    quality_score: Optional[int] = None
    sales_count: int
    created_at: datetime


class ProductUpdate(SQLModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    media_urls: Optional[List[str]] = None
    tags: Optional[List[str]] = None


class PurchaseRead(SQLModel):
    id: int
    product_id: int
    buyer_user_id: int
    amount: float
    platform_fee: float
    creator_payout: float
    download_count: int
    delivered_at: Optional[datetime] = None
    refund_status: RefundStatus
    dispute_status: DisputeStatus
    purchased_at: datetime


class RefundRequest(SQLModel):
    reason: Optional[str] = None
    approve: bool = Field(default=False, description="Administrator approval for refunds outside the window")


class RefundResult(SQLModel):
    success: bool
    message: str
    purchase: PurchaseRead


class DisputeCreate(SQLModel):
    reason: str = Field(min_length=1)
