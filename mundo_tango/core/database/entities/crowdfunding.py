"""
Crowdfunding entity models.

``current_amount`` on a campaign accumulates the net amount of each donation,
after the platform fee.
"""

from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import (
    Base,
    NaiveDatetime,
    UtcNaiveDatetime,
    created_at_field,
    timestamp_field,
    updated_at_field,
)


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CampaignBase(Base):
    title: str = Field(min_length=1, max_length=200)
    story: str = Field(default="")
    image_url: Optional[str] = Field(default=None)
    goal_amount: float = Field(gt=0)
    category: Optional[str] = Field(default=None, max_length=50)
    end_date: Optional[UtcNaiveDatetime] = timestamp_field()


class FundingCampaign(CampaignBase, table=True):
    """Table: funding_campaigns"""

    __tablename__ = "funding_campaigns"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    current_amount: float = Field(default=0.0, ge=0)
    status: CampaignStatus = Field(default=CampaignStatus.ACTIVE, index=True)
    fraud_risk_score: Optional[int] = Field(default=None, ge=0, le=100)

    created_at: NaiveDatetime = created_at_field()
    updated_at: NaiveDatetime = updated_at_field()

    def __repr__(self) -> str:
        return f"FundingCampaign(id={self.id}, title={self.title}, status={self.status})"


class CampaignReward(Base, table=True):
    """Table: campaign_rewards"""

    __tablename__ = "campaign_rewards"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    campaign_id: int = Field(foreign_key="funding_campaigns.id", index=True)
    title: str = Field(max_length=200)
    description: str = Field(default="")
    price: float = Field(gt=0)
    created_at: NaiveDatetime = created_at_field()


class CampaignUpdate(Base, table=True):
    """Table: campaign_updates"""

    __tablename__ = "campaign_updates"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    campaign_id: int = Field(foreign_key="funding_campaigns.id", index=True)
    title: str = Field(max_length=200)
    content: str
    created_at: NaiveDatetime = created_at_field()


class CampaignDonation(Base, table=True):
    """Table: campaign_donations"""

    __tablename__ = "campaign_donations"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    campaign_id: int = Field(foreign_key="funding_campaigns.id", index=True)
    donor_user_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    amount: float = Field(gt=0)
    platform_fee: float = Field(ge=0)
    net_amount: float = Field(ge=0)
    message: Optional[str] = Field(default=None)
    is_anonymous: bool = Field(default=False)
    donor_city: Optional[str] = Field(default=None)
    donated_at: NaiveDatetime = created_at_field()
