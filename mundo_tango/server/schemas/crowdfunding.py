"""Schemas for crowdfunding campaigns, rewards, updates and donations."""

from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel

from mundo_tango.core.database.base import UtcNaiveDatetime
from mundo_tango.core.database.entities.crowdfunding import CampaignBase, CampaignStatus


class CampaignCreate(CampaignBase):
    """Schema for launching a campaign."""


class CampaignRead(CampaignBase):
    id: int
    user_id: int
    current_amount: float
    status: CampaignStatus
    fraud_risk_score: Optional[int] = None
    created_at: datetime


class CampaignEdit(SQLModel):
    """Owner changes to a campaign page."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    story: Optional[str] = None
    image_url: Optional[str] = None
    goal_amount: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = None
    end_date: Optional[UtcNaiveDatetime] = None
    status: Optional[CampaignStatus] = None


class RewardCreate(SQLModel):
    title: str = Field(max_length=200)
    description: str = ""
    price: float = Field(gt=0)


class RewardRead(RewardCreate):
    id: int
    campaign_id: int
    created_at: datetime


class CampaignUpdateCreate(SQLModel):
    title: str = Field(max_length=200)
    content: str = Field(min_length=1)


class CampaignUpdateRead(CampaignUpdateCreate):
    id: int
    campaign_id: int
    created_at: datetime


class DonationCreate(SQLModel):
    amount: float = Field(gt=0)
    message: Optional[str] = None
    is_anonymous: bool = False


class DonationRead(SQLModel):
    id: int
    campaign_id: int
    donor_user_id: Optional[int] = None
    amount: float
    platform_fee: float
    net_amount: float
    message: Optional[str] = None
    is_anonymous: bool
    donated_at: datetime


class CampaignStats(SQLModel):
    campaign_id: int
    goal_amount: float
    current_amount: float
    percent_funded: float
    donation_count: int
    unique_donors: int
    average_donation: float
    days_remaining: Optional[int] = None
    milestones_reached: List[int] = Field(default_factory=list)
