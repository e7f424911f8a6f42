"""
Donor segmentation and retention scoring for a campaign.

Donations are first aggregated per registered donor (anonymous guest
donations carry no donor id and are skipped). Donors are then placed in
segments:

* whales: total donated >= 250
* recurring: two or more donations, total below 250
* one-time: a single donation within the last 30 days
* lapsed: last donation more than 30 days ago

Segments may overlap (a whale can also be lapsed), matching how the
engagement team targets messages.

Retention uses a recency/frequency/monetary score per donor.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from mundo_tango.core.timeutils import days_between

WHALE_THRESHOLD = 250.0
LAPSED_AFTER_DAYS = 30
MILESTONES = (25, 50, 75, 100)


class DonationTier(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    MAJOR = "major"
    MEGA = "mega"


class RetentionStatus(str, Enum):
    CHAMPION = "champion"
    ACTIVE = "active"
    AT_RISK = "at_risk"
    LOST = "lost"


class DonationRecord(BaseModel):
    donor_user_id: Optional[int] = None
    amount: float
    donated_at: datetime


class DonorSummary(BaseModel):
    user_id: int
    total_donated: float
    donation_count: int
    last_donation: datetime
    retention_score: int = 0
    retention_status: RetentionStatus = RetentionStatus.LOST


class DonorSegment(BaseModel):
    segment_name: str
    donor_count: int
    total_amount: float
    avg_donation: float
    donors: List[DonorSummary] = Field(default_factory=list)


class DonorEngagementReport(BaseModel):
    campaign_id: int
    segments: Dict[str, DonorSegment]
    retention_rate: float
    milestones_reached: List[int]
    retention_strategies: List[str]


def donation_tier(amount: float) -> DonationTier:
    if amount >= 500:
        return DonationTier.MEGA
    if amount >= 250:
        return DonationTier.MAJOR
    if amount >= 100:
        return DonationTier.LARGE
    if amount >= 25:
        return DonationTier.MEDIUM
    return DonationTier.SMALL


def retention_score(donor: DonorSummary, now: datetime) -> int:
    """Recency (max 40), frequency (max 30) and monetary value (max 30)."""
    days_since = max(days_between(donor.last_donation, now), 0.0)
    recency = max(0.0, 40 - days_since * 40 / 90)
    frequency = min(donor.donation_count * 10, 30)
    monetary = min(donor.total_donated / WHALE_THRESHOLD * 30, 30)
    return round(recency + frequency + monetary)


def retention_status(score: int) -> RetentionStatus:
    if score >= 70:
        return RetentionStatus.CHAMPION
    if score >= 40:
        return RetentionStatus.ACTIVE
    if score >= 20:
        return RetentionStatus.AT_RISK
    return RetentionStatus.LOST


def aggregate_donors(donations: Iterable[DonationRecord], now: datetime) -> List[DonorSummary]:
    donors: Dict[int, DonorSummary] = {}
    for donation in donations:
        if donation.donor_user_id is None:
            continue
        existing = donors.get(donation.donor_user_id)
        if existing is None:
            donors[donation.donor_user_id] = DonorSummary(
                user_id=donation.donor_user_id,
                total_donated=donation.amount,
                donation_count=1,
                last_donation=donation.donated_at,
            )
            continue
        existing.total_donated += donation.amount
        existing.donation_count += 1
        if donation.donated_at > existing.last_donation:
            existing.last_donation = donation.donated_at

    for donor in donors.values():
        donor.retention_score = retention_score(donor, now)
        donor.retention_status = retention_status(donor.retention_score)
    return sorted(donors.values(), key=lambda d: d.total_donated, reverse=True)


def build_segment(name: str, donors: List[DonorSummary]) -> DonorSegment:
    total = sum(d.total_donated for d in donors)
    return DonorSegment(
        segment_name=name,
        donor_count=len(donors),
        total_amount=round(total, 2),
        avg_donation=round(total / len(donors), 2) if donors else 0.0,
        donors=donors,
    )


def segment_donors(donors: List[DonorSummary], now: datetime) -> Dict[str, DonorSegment]:
    def lapsed(d: DonorSummary) -> bool:
        return days_between(d.last_donation, now) > LAPSED_AFTER_DAYS

    return {
        "whales": build_segment("High-Value Donors", [d for d in donors if d.total_donated >= WHALE_THRESHOLD]),
        "recurring": build_segment(
            "Recurring Donors",
            [d for d in donors if d.donation_count >= 2 and d.total_donated < WHALE_THRESHOLD],
        ),
        "one_time": build_segment("One-Time Donors", [d for d in donors if d.donation_count == 1 and not lapsed(d)]),
        "lapsed": build_segment("Lapsed Donors", [d for d in donors if lapsed(d)]),
    }


def milestones_reached(current_amount: float, goal_amount: float) -> List[int]:
    if goal_amount <= 0:
        return []
    percent = current_amount / goal_amount * 100
    return [m for m in MILESTONES if percent >= m]


def retention_strategies(segments: Dict[str, DonorSegment]) -> List[str]:
    strategies = ["Send a personal thank-you within 24 hours of each donation"]
    if segments["whales"].donor_count:
        strategies.append("Invite high-value donors to a private practica or thank-you milonga")
    if segments["recurring"].donor_count:
        strategies.append("Share behind-the-scenes updates with recurring donors first")
    if segments["one_time"].donor_count:
        strategies.append("Follow up with one-time donors with a progress report and a reason to give again")
    if segments["lapsed"].donor_count:
        strategies.append("Run a re-engagement message for lapsed donors highlighting what their gift achieved")
    return strategies


def analyze_donors(
    campaign_id: int,
    donations: Iterable[DonationRecord],
    current_amount: float,
    goal_amount: float,
    now: datetime,
) -> DonorEngagementReport:
    donors = aggregate_donors(donations, now)
    segments = segment_donors(donors, now)
    returning = sum(1 for d in donors if d.donation_count > 1)
    return DonorEngagementReport(
        campaign_id=campaign_id,
        segments=segments,
        retention_rate=round(returning / len(donors), 4) if donors else 0.0,
        milestones_reached=milestones_reached(current_amount, goal_amount),
        retention_strategies=retention_strategies(segments),
    )
