"""
Crowdfunding service.

Donations are only accepted by active campaigns. The platform fee is taken
from every donation and the net amount is added to ``current_amount``; a
campaign completes once it reaches its goal.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mundo_tango.algorithms.campaign_optimizer import OptimizationReport, RewardTier, optimize_campaign
from mundo_tango.algorithms.donor_engagement import (
    DonationRecord,
    DonorEngagementReport,
    analyze_donors,
    milestones_reached,
)
from mundo_tango.algorithms.fraud import (
    CampaignText,
    CreatorSignals,
    DonationSignals,
    FraudAnalysis,
    analyze_campaign,
)
from mundo_tango.algorithms.gamification import PointAction
from mundo_tango.core.database.entities.crowdfunding import (
    CampaignDonation,
    CampaignReward,
    CampaignStatus,
    CampaignUpdate,
    FundingCampaign,
)
from mundo_tango.core.database.entities.users import User, UserRole
from mundo_tango.core.database.repositories import AsyncRepository
from mundo_tango.core.errors import BusinessRuleError, PermissionDeniedError
from mundo_tango.core.monitoring import log_business_event
from mundo_tango.core.timeutils import utc_now
from mundo_tango.server.core.config import settings
from mundo_tango.server.schemas.crowdfunding import (
    CampaignCreate,
    CampaignEdit,
    CampaignStats,
    CampaignUpdateCreate,
    DonationCreate,
    DonationRead,
    RewardCreate,
)

from .gamification import GamificationService

logger = logging.getLogger(__name__)


class CrowdfundingService:
    """Campaigns, rewards, updates, donations and campaign analysis."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.campaigns = AsyncRepository(session, FundingCampaign)
        self.rewards = AsyncRepository(session, CampaignReward)
        self.updates = AsyncRepository(session, CampaignUpdate)
        self.donations = AsyncRepository(session, CampaignDonation)
        self.gamification = GamificationService(session)

    async def list_campaigns(
        self,
        status: Optional[CampaignStatus] = None,
        category: Optional[str] = None,
        user_id: Optional[int] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[FundingCampaign]:
        return await self.campaigns.list(
            limit=limit,
            offset=offset,
            filters={"status": status, "category": category, "user_id": user_id},
            order_by=[FundingCampaign.created_at.desc(), FundingCampaign.id.desc()],  # type: ignore
        )

    async def create_campaign(self, owner: User, data: CampaignCreate) -> FundingCampaign:
        if data.end_date is not None and data.end_date <= utc_now():
            raise BusinessRuleError("Campaign end date must be in the future")
        campaign = await self.campaigns.create(FundingCampaign.model_validate(data, update={"user_id": owner.id}))
        logger.info(f"User {owner.id} launched campaign {campaign.id} (goal {campaign.goal_amount})")
        return campaign

    async def get_campaign(self, campaign_id: int) -> FundingCampaign:
        return await self.campaigns.get_or_404(campaign_id, "Campaign")

    async def _owned(self, user: User, campaign_id: int, allow_admin: bool = False) -> FundingCampaign:
        campaign = await self.get_campaign(campaign_id)
        if campaign.user_id != user.id and not (allow_admin and user.role != UserRole.USER):
            raise PermissionDeniedError("Only the campaign owner can do this")
        return campaign

    async def update_campaign(self, user: User, campaign_id: int, changes: CampaignEdit) -> FundingCampaign:
        campaign = await self._owned(user, campaign_id)
        values = changes.model_dump(exclude_unset=True)
        if campaign.status == CampaignStatus.COMPLETED and values.get("status") not in (None, CampaignStatus.COMPLETED):
            raise BusinessRuleError("A completed campaign cannot be reopened")
        campaign = await self.campaigns.update(campaign, values)
        # A lowered goal may already be met
        if campaign.status == CampaignStatus.ACTIVE and campaign.current_amount >= campaign.goal_amount:
            campaign = await self.campaigns.update(campaign, {"status": CampaignStatus.COMPLETED})
            logger.info(f"Campaign {campaign.id} completed after its goal was lowered")
        return campaign

    async def add_reward(self, user: User, campaign_id: int, data: RewardCreate) -> CampaignReward:
        await self._owned(user, campaign_id)
        return await self.rewards.create(CampaignReward(campaign_id=campaign_id, **data.model_dump()))

    async def list_rewards(self, campaign_id: int) -> List[CampaignReward]:
        await self.get_campaign(campaign_id)
        return await self.rewards.list(filters={"campaign_id": campaign_id}, order_by=[CampaignReward.price])

    async def post_update(self, user: User, campaign_id: int, data: CampaignUpdateCreate) -> CampaignUpdate:
        await self._owned(user, campaign_id)
        return await self.updates.create(CampaignUpdate(campaign_id=campaign_id, **data.model_dump()))

    async def list_updates(self, campaign_id: int) -> List[CampaignUpdate]:
        await self.get_campaign(campaign_id)
        return await self.updates.list(
            filters={"campaign_id": campaign_id},
            order_by=[CampaignUpdate.created_at.desc(), CampaignUpdate.id.desc()],  # type: ignore
        )

    async def donate(self, donor: User, campaign_id: int, data: DonationCreate) -> CampaignDonation:
        campaign = await self.get_campaign(campaign_id)
        if campaign.status != CampaignStatus.ACTIVE:
            raise BusinessRuleError(f"Campaign {campaign_id} is not accepting donations")
        if campaign.end_date is not None and campaign.end_date < utc_now():
            raise BusinessRuleError(f"Campaign {campaign_id} has ended")

        fee = round(data.amount * settings.business.platform_fee_rate, 2)
        donation = CampaignDonation(
            campaign_id=campaign_id,
            donor_user_id=donor.id,
            amount=data.amount,
            platform_fee=fee,
            net_amount=round(data.amount - fee, 2),
            message=data.message,
            is_anonymous=data.is_anonymous,
            donor_city=donor.city,
        )
        campaign.current_amount = round(campaign.current_amount + donation.net_amount, 2)
        if campaign.current_amount >= campaign.goal_amount:
            campaign.status = CampaignStatus.COMPLETED
            logger.info(f"Campaign {campaign_id} reached its goal of {campaign.goal_amount}")
        self.session.add_all([donation, campaign])
        await self.session.commit()
        await self.session.refresh(donation)

        log_business_event("donation.received", campaign_id=campaign_id, donor_id=donor.id, amount=data.amount)
        await self.gamification.award(donor.id, PointAction.DONATION_MADE, donation.id)
        return donation

    async def list_donations(self, campaign_id: int) -> List[DonationRead]:
        """Donations newest first; anonymous donors are not disclosed."""
        await self.get_campaign(campaign_id)
        donations = await self.donations.list(
            filters={"campaign_id": campaign_id},
            order_by=[CampaignDonation.donated_at.desc(), CampaignDonation.id.desc()],  # type: ignore
        )
        return [
            DonationRead.model_validate(d, update={"donor_user_id": None} if d.is_anonymous else None)
            for d in donations
        ]

    async def _all_donations(self, campaign_id: int) -> List[CampaignDonation]:
        result = await self.session.execute(
            select(CampaignDonation).where(CampaignDonation.campaign_id == campaign_id).order_by(CampaignDonation.donated_at)
        )
        return list(result.scalars().all())

    async def fraud_analysis(self, user: User, campaign_id: int) -> FraudAnalysis:
        campaign = await self._owned(user, campaign_id, allow_admin=True)
        creator = await AsyncRepository(self.session, User).get_or_404(campaign.user_id, "User")
        donations = await self._all_donations(campaign_id)
        stmt = select(FundingCampaign).where(
            FundingCampaign.user_id == campaign.user_id,
            FundingCampaign.id != campaign.id,
            FundingCampaign.status != CampaignStatus.COMPLETED,
        )
        others = (await self.session.execute(stmt)).scalars().all()

        analysis = analyze_campaign(
            CampaignText(id=campaign.id, title=campaign.title, story=campaign.story),
            campaign.image_url,
            CreatorSignals.model_validate(creator, from_attributes=True),
            [DonationSignals.model_validate(d, from_attributes=True) for d in donations],
            [CampaignText(id=c.id, title=c.title, story=c.story) for c in others],
            utc_now(),
        )
        await self.campaigns.update(campaign, {"fraud_risk_score": analysis.risk_score})
        if analysis.risk_score >= 70:
            logger.warning(
                f"Campaign {campaign_id} fraud risk {analysis.risk_score} ({analysis.recommendation.value})"
            )
        return analysis

    async def optimization(self, user: User, campaign_id: int) -> OptimizationReport:
        campaign = await self._owned(user, campaign_id, allow_admin=True)
        rewards = await self.list_rewards(campaign_id)
        update_count = await self.updates.count(campaign_id=campaign_id)
        return optimize_campaign(
            campaign.id,
            campaign.title,
            campaign.story,
            campaign.image_url,
            [RewardTier(price=r.price, description=r.description) for r in rewards],
            update_count,
            campaign.created_at,
            utc_now(),
        )

    async def donor_segments(self, user: User, campaign_id: int) -> DonorEngagementReport:
        campaign = await self._owned(user, campaign_id, allow_admin=True)
        donations = await self._all_donations(campaign_id)
        return analyze_donors(
            campaign.id,
            (DonationRecord(donor_user_id=d.donor_user_id, amount=d.amount, donated_at=d.donated_at) for d in donations),
            campaign.current_amount,
            campaign.goal_amount,
            utc_now(),
        )

    async def stats(self, campaign_id: int) -> CampaignStats:
        campaign = await self.get_campaign(campaign_id)
        donations = await self._all_donations(campaign_id)
        count = len(donations)
        days_remaining = None
        if campaign.end_date is not None:
            days_remaining = max((campaign.end_date - utc_now()).days, 0)
        return CampaignStats(
            campaign_id=campaign.id,
            goal_amount=campaign.goal_amount,
            current_amount=campaign.current_amount,
            percent_funded=round(campaign.current_amount / campaign.goal_amount * 100, 2),
            donation_count=count,
            unique_donors=len({d.donor_user_id for d in donations if d.donor_user_id is not None}),
            average_donation=round(sum(d.amount for d in donations) / count, 2) if count else 0.0,
            days_remaining=days_remaining,
            milestones_reached=milestones_reached(campaign.current_amount, campaign.goal_amount),
        )
