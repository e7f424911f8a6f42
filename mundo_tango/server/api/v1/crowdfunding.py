"""
API endpoints for community crowdfunding campaigns.

Donations go to active campaigns only. A 5% platform fee is kept from each
donation and the campaign completes once the net total reaches its goal.
Owners (and administrators) can run the fraud review, the page optimizer and
the donor segmentation on a campaign.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, status

from mundo_tango.algorithms.campaign_optimizer import OptimizationReport
from mundo_tango.algorithms.donor_engagement import DonorEngagementReport
from mundo_tango.algorithms.fraud import FraudAnalysis
from mundo_tango.core.database.entities.crowdfunding import CampaignStatus
from mundo_tango.server.schemas.crowdfunding import (
    CampaignCreate,
    CampaignEdit,
    CampaignRead,
    CampaignStats,
    CampaignUpdateCreate,
    CampaignUpdateRead,
    DonationCreate,
    DonationRead,
    RewardCreate,
    RewardRead,
)
from mundo_tango.server.services.deps import CrowdfundingServiceDep, CurrentUser

router = APIRouter(tags=["crowdfunding"])


@router.get("", response_model=List[CampaignRead], summary="List Campaigns")
async def list_campaigns(
    service: CrowdfundingServiceDep,
    status_filter: Optional[CampaignStatus] = Query(default=None, alias="status"),
    category: Optional[str] = None,
    user_id: Optional[int] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> List[CampaignRead]:
    campaigns = await service.list_campaigns(
        status=status_filter, category=category, user_id=user_id, limit=limit, offset=offset
    )
    return [CampaignRead.model_validate(c) for c in campaigns]


@router.post(
    "",
    response_model=CampaignRead,
    status_code=status.HTTP_201_CREATED,
    summary="Launch Campaign",
    responses={400: {"description": "End date in the past"}},
)
async def create_campaign(data: CampaignCreate, user: CurrentUser, service: CrowdfundingServiceDep) -> CampaignRead:
    """
    Launch a campaign owned by the acting member.

    - **title** / **story**: The campaign page; the story is also read by the fraud review.
    - **goal_amount**: Funding goal.
    - **end_date**: Optional deadline, in the future.
    """
    return CampaignRead.model_validate(await service.create_campaign(user, data))


@router.get("/{campaign_id}", response_model=CampaignRead, summary="Get Campaign", responses={404: {"description": "Not found"}})
async def get_campaign(campaign_id: int, service: CrowdfundingServiceDep) -> CampaignRead:
    return CampaignRead.model_validate(await service.get_campaign(campaign_id))


@router.patch(
    "/{campaign_id}",
    response_model=CampaignRead,
    summary="Update Campaign",
    responses={400: {"description": "Reopening a completed campaign"}, 403: {"description": "Not the owner"}},
)
async def update_campaign(
    campaign_id: int, changes: CampaignEdit, user: CurrentUser, service: CrowdfundingServiceDep
) -> CampaignRead:
    return CampaignRead.model_validate(await service.update_campaign(user, campaign_id, changes))


@router.post(
    "/{campaign_id}/rewards",
    response_model=RewardRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Reward Tier",
    responses={403: {"description": "Not the owner"}},
)
async def add_reward(
    campaign_id: int, data: RewardCreate, user: CurrentUser, service: CrowdfundingServiceDep
) -> RewardRead:
    return RewardRead.model_validate(await service.add_reward(user, campaign_id, data))


@router.get("/{campaign_id}/rewards", response_model=List[RewardRead], summary="List Reward Tiers")
async def list_rewards(campaign_id: int, service: CrowdfundingServiceDep) -> List[RewardRead]:
    return [RewardRead.model_validate(r) for r in await service.list_rewards(campaign_id)]


@router.post(
    "/{campaign_id}/updates",
    response_model=CampaignUpdateRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post Campaign Update",
    responses={403: {"description": "Not the owner"}},
)
async def post_update(
    campaign_id: int, data: CampaignUpdateCreate, user: CurrentUser, service: CrowdfundingServiceDep
) -> CampaignUpdateRead:
    return CampaignUpdateRead.model_validate(await service.post_update(user, campaign_id, data))


@router.get("/{campaign_id}/updates", response_model=List[CampaignUpdateRead], summary="List Campaign Updates")
async def list_updates(campaign_id: int, service: CrowdfundingServiceDep) -> List[CampaignUpdateRead]:
    return [CampaignUpdateRead.model_validate(u) for u in await service.list_updates(campaign_id)]


@router.post(
    "/{campaign_id}/donate",
    response_model=DonationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Donate",
    description="Donate to an active campaign. The net amount after the platform fee is added to the campaign.",
    responses={400: {"description": "Campaign not active or ended"}},
)
async def donate(
    campaign_id: int, data: DonationCreate, user: CurrentUser, service: CrowdfundingServiceDep
) -> DonationRead:
    """
    Donate to a campaign.

    - **amount**: Gross amount; the platform fee is deducted from it.
    - **message**: Optional note to the owner.
    - **is_anonymous**: Hide the donor in the public donation list.
    """
    return DonationRead.model_validate(await service.donate(user, campaign_id, data))


@router.get(
    "/{campaign_id}/donations",
    response_model=List[DonationRead],
    summary="List Donations",
    description="Donations newest first. Anonymous donations do not disclose the donor.",
)
async def list_donations(campaign_id: int, service: CrowdfundingServiceDep) -> List[DonationRead]:
    return await service.list_donations(campaign_id)


@router.get(
    "/{campaign_id}/fraud-analysis",
    response_model=FraudAnalysis,
    summary="Fraud Analysis",
    description="Score the campaign for fraud risk and store the result on the campaign.",
    responses={403: {"description": "Not the owner or an administrator"}},
)
async def fraud_analysis(campaign_id: int, user: CurrentUser, service: CrowdfundingServiceDep) -> FraudAnalysis:
    return await service.fraud_analysis(user, campaign_id)


@router.get(
    "/{campaign_id}/optimization",
    response_model=OptimizationReport,
    summary="Campaign Optimization",
    description="Score the campaign page section by section with suggestions.",
)
async def optimization(campaign_id: int, user: CurrentUser, service: CrowdfundingServiceDep) -> OptimizationReport:
    return await service.optimization(user, campaign_id)


@router.get(
    "/{campaign_id}/donor-segments",
    response_model=DonorEngagementReport,
    summary="Donor Segments",
    description="Donors grouped into whales, recurring, one-time and lapsed, with retention strategies.",
)
async def donor_segments(
    campaign_id: int, user: CurrentUser, service: CrowdfundingServiceDep
) -> DonorEngagementReport:
    return await service.donor_segments(user, campaign_id)


@router.get("/{campaign_id}/stats", response_model=CampaignStats, summary="Campaign Statistics")
async def campaign_stats(campaign_id: int, service: CrowdfundingServiceDep) -> CampaignStats:
    return await service.stats(campaign_id)
