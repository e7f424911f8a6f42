"""
Marketplace transaction monitoring.

Works on plain purchase snapshots so that the marketplace service can load
rows once and ask several questions about them (order status, refund and
dispute eligibility, late deliveries, seller settlement, chargeback risk).
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from mundo_tango.core.timeutils import days_between

AUTO_REFUND_WINDOW_DAYS = 30
DISPUTE_WINDOW_DAYS = 90
SETTLEMENT_DELAY_DAYS = 7
LATE_AFTER_DAYS = 7
DISPUTE_NEXT_STEPS = [
    "Seller has been notified",
    "Review period: 7 days",
    "Evidence can be submitted via dashboard",
]


class OrderState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PurchaseSnapshot(BaseModel):
    id: int
    product_id: int
    amount: float
    platform_fee: float = 0.0
    creator_payout: float = 0.0
    download_count: int = 0
    delivered_at: Optional[datetime] = None
    refunded: bool = False
    purchased_at: datetime

    @property
    def is_delivered(self) -> bool:
        return self.delivered_at is not None or self.download_count > 0


class TimelineEntry(BaseModel):
    status: OrderState
    timestamp: datetime
    note: Optional[str] = None


class OrderStatus(BaseModel):
    order_id: int
    status: OrderState
    timeline: List[TimelineEntry]
    estimated_delivery: Optional[datetime] = None
    can_refund: bool
    can_dispute: bool


class LateDelivery(BaseModel):
    purchase_id: int
    product_id: int
    days_since_purchase: int
    urgency: Urgency


class RefundDecision(BaseModel):
    allowed: bool
    message: str


class SettledTransaction(BaseModel):
    purchase_id: int
    amount: float
    platform_fee: float
    seller_payout: float
    settled_at: Optional[datetime] = None


class SettlementStatus(BaseModel):
    seller_id: int
    pending_amount: float
    available_amount: float
    next_payout_date: Optional[datetime] = None
    transactions: List[SettledTransaction] = Field(default_factory=list)


class DisputeTicket(BaseModel):
    dispute_id: str
    status: str = "under_review"
    next_steps: List[str] = Field(default_factory=lambda: list(DISPUTE_NEXT_STEPS))


class ChargebackRisk(BaseModel):
    risk_level: Urgency
    risk_score: int
    factors: List[str]


class TransactionHealth(BaseModel):
    total_transactions: int
    successful_transactions: int
    refunded_transactions: int
    refund_rate: float
    health_score: int


def _whole_days(purchase: PurchaseSnapshot, now: datetime) -> int:
    return int(days_between(purchase.purchased_at, now))


def order_status(purchase: PurchaseSnapshot, now: datetime) -> OrderStatus:
    timeline = [TimelineEntry(status=OrderState.PENDING, timestamp=purchase.purchased_at)]
    state = OrderState.PENDING

    if purchase.refunded:
        state = OrderState.REFUNDED
        timeline.append(TimelineEntry(status=OrderState.REFUNDED, timestamp=now, note="Full refund processed"))
    elif purchase.is_delivered:
        state = OrderState.COMPLETED
        delivered_at = purchase.delivered_at or purchase.purchased_at + timedelta(minutes=2)
        timeline.append(
            TimelineEntry(status=OrderState.PROCESSING, timestamp=purchase.purchased_at + timedelta(minutes=1))
        )
        timeline.append(TimelineEntry(status=OrderState.COMPLETED, timestamp=delivered_at, note="Product delivered"))

    days = _whole_days(purchase, now)
    return OrderStatus(
        order_id=purchase.id,
        status=state,
        timeline=timeline,
        estimated_delivery=purchase.purchased_at + timedelta(minutes=5) if state == OrderState.PENDING else None,
        can_refund=days <= AUTO_REFUND_WINDOW_DAYS and not purchase.refunded,
        can_dispute=days <= DISPUTE_WINDOW_DAYS and not purchase.refunded,
    )


def delivery_urgency(days_since_purchase: int) -> Urgency:
    if days_since_purchase > 14:
        return Urgency.HIGH
    if days_since_purchase > 10:
        return Urgency.MEDIUM
    return Urgency.LOW


def late_deliveries(purchases: Iterable[PurchaseSnapshot], now: datetime) -> List[LateDelivery]:
    late: List[LateDelivery] = []
    for purchase in purchases:
        if purchase.is_delivered or purchase.refunded:
            continue
        if days_between(purchase.purchased_at, now) <= LATE_AFTER_DAYS:
            continue
        days = _whole_days(purchase, now)
        late.append(
            LateDelivery(
                purchase_id=purchase.id,
                product_id=purchase.product_id,
                days_since_purchase=days,
                urgency=delivery_urgency(days),
            )
        )
    return sorted(late, key=lambda item: item.days_since_purchase, reverse=True)


def refund_decision(
    purchase: PurchaseSnapshot,
    now: datetime,
    manually_approved: bool = False,
    window_days: int = AUTO_REFUND_WINDOW_DAYS,
) -> RefundDecision:
    if purchase.refunded:
        return RefundDecision(allowed=False, message="Purchase already refunded")
    if _whole_days(purchase, now) > window_days and not manually_approved:
        return RefundDecision(
            allowed=False,
            message="Refund requires manual approval - outside automatic refund window",
        )
    return RefundDecision(allowed=True, message="Refund processed successfully")


def settlement_status(
    seller_id: int,
    purchases: Iterable[PurchaseSnapshot],
    now: datetime,
    delay_days: int = SETTLEMENT_DELAY_DAYS,
) -> SettlementStatus:
    settlement_date = now - timedelta(days=delay_days)
    pending = 0.0
    available = 0.0
    transactions: List[SettledTransaction] = []

    for purchase in purchases:
        if purchase.refunded:
            continue
        settled = purchase.purchased_at <= settlement_date
        if settled:
            available += purchase.creator_payout
        else:
            pending += purchase.creator_payout
        transactions.append(
            SettledTransaction(
                purchase_id=purchase.id,
                amount=purchase.amount,
                platform_fee=purchase.platform_fee,
                seller_payout=purchase.creator_payout,
                settled_at=settlement_date if settled else None,
            )
        )

    return SettlementStatus(
        seller_id=seller_id,
        pending_amount=round(pending, 2),
        available_amount=round(available, 2),
        next_payout_date=now + timedelta(days=delay_days) if pending > 0 else None,
        transactions=transactions,
    )


def open_dispute(purchase_id: int, now: datetime) -> DisputeTicket:
    return DisputeTicket(dispute_id=f"dispute_{purchase_id}_{int(now.timestamp() * 1000)}")


def chargeback_risk(purchase: PurchaseSnapshot, now: datetime) -> ChargebackRisk:
    score = 10
    factors: List[str] = []
    if purchase.amount > 500:
        score += 20
        factors.append("High transaction amount")

    days = _whole_days(purchase, now)
    if days < 1:
        score += 15
        factors.append("Very recent purchase")
    if not purchase.is_delivered and days > LATE_AFTER_DAYS:
        score += 25
        factors.append("Product not accessed - potential dissatisfaction")

    if score >= 50:
        level = Urgency.HIGH
    elif score >= 30:
        level = Urgency.MEDIUM
    else:
        level = Urgency.LOW
    return ChargebackRisk(risk_level=level, risk_score=min(score, 100), factors=factors)


def transaction_health(purchases: Iterable[PurchaseSnapshot]) -> TransactionHealth:
    items = list(purchases)
    total = len(items)
    refunded = sum(1 for p in items if p.refunded)
    successful = sum(1 for p in items if p.is_delivered and not p.refunded)
    refund_rate = refunded / total if total else 0.0
    health = max(0.0, min(100.0, 100 - refund_rate * 200))
    return TransactionHealth(
        total_transactions=total,
        successful_transactions=successful,
        refunded_transactions=refunded,
        refund_rate=round(refund_rate, 4),
        health_score=round(health),
    )
