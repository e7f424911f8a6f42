"""
Marketplace entity models.

Products are digital teaching material (courses, music, choreography...).
A purchase records the platform fee split at the time of sale so later fee
changes never alter past payouts.
"""

from enum import Enum
from typing import List, Optional

from sqlmodel import Field

from ..base import (
    Base,
    NaiveDatetime,
    created_at_field,
    json_list_field,
    timestamp_field,
    updated_at_field,
)


class ProductStatus(str, Enum):
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    PUBLISHED = "published"
    REJECTED = "rejected"


class RefundStatus(str, Enum):
    NONE = "none"
    REQUESTED = "requested"
    REFUNDED = "refunded"


class DisputeStatus(str, Enum):
    NONE = "none"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"


class ProductBase(Base):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="")
    category: Optional[str] = Field(default=None, max_length=50, index=True)
    price: float = Field(ge=0)
    currency: str = Field(default="USD", max_length=3)


class MarketplaceProduct(ProductBase, table=True):
    """Table: marketplace_products"""

    __tablename__ = "marketplace_products"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    creator_user_id: int = Field(foreign_key="users.id", index=True)
    media_urls: List[str] = json_list_field("Preview images")
    tags: List[str] = json_list_field()
    status: ProductStatus = Field(default=ProductStatus.DRAFT, index=True)
    quality_score: Optional[int] = Field(default=None, ge=0, le=100)
    sales_count: int = Field(default=0, ge=0)

    created_at: NaiveDatetime = created_at_field()
    updated_at: NaiveDatetime = updated_at_field()

    def __repr__(self) -> str:
        return f"MarketplaceProduct(id={self.id}, title={self.title}, status={self.status})"


class ProductPurchase(Base, table=True):
    """Table: product_purchases"""

    __tablename__ = "product_purchases"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="marketplace_products.id", index=True)
    buyer_user_id: int = Field(foreign_key="users.id", index=True)

    amount: float = Field(ge=0)
    platform_fee: float = Field(ge=0)
    creator_payout: float = Field(ge=0)
    download_count: int = Field(default=0, ge=0)

    delivered_at: Optional[NaiveDatetime] = timestamp_field()
    refund_status: RefundStatus = Field(default=RefundStatus.NONE)
    refund_reason: Optional[str] = Field(default=None)
    refunded_at: Optional[NaiveDatetime] = timestamp_field()
    dispute_status: DisputeStatus = Field(default=DisputeStatus.NONE)
    dispute_reason: Optional[str] = Field(default=None)
    disputed_at: Optional[NaiveDatetime] = timestamp_field()

    purchased_at: NaiveDatetime = created_at_field()
