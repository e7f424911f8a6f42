from datetime import datetime, timedelta

from mundo_tango.algorithms.transactions import (
    OrderState,
    PurchaseSnapshot,
    Urgency,
    chargeback_risk,
    late_deliveries,
    open_dispute,
    order_status,
    refund_decision,
    settlement_status,
    transaction_health,
)

NOW = datetime(2024, 9, 15, 12, 0)


def purchase(purchase_id: int = 1, days_old: float = 0, **fields) -> PurchaseSnapshot:
    data = {"amount": 40.0, "platform_fee": 2.0, "creator_payout": 38.0}
    data.update(fields)
    return PurchaseSnapshot(
        id=purchase_id, product_id=10, purchased_at=NOW - timedelta(days=days_old), **data
    )


class TestOrderStatus:
    def test_pending(self):
        status = order_status(purchase(), NOW)
        assert status.status == OrderState.PENDING
        assert [t.status for t in status.timeline] == [OrderState.PENDING]
        assert status.estimated_delivery == NOW + timedelta(minutes=5)
        assert status.can_refund and status.can_dispute

    def test_downloaded_counts_as_delivered(self):
        status = order_status(purchase(download_count=1), NOW)
        assert status.status == OrderState.COMPLETED
        assert [t.status for t in status.timeline] == [OrderState.PENDING, OrderState.PROCESSING, OrderState.COMPLETED]
        assert status.timeline[-1].timestamp == NOW + timedelta(minutes=2)
        assert status.estimated_delivery is None

    def test_refunded(self):
        status = order_status(purchase(refunded=True), NOW)
        assert status.status == OrderState.REFUNDED
        assert not status.can_refund and not status.can_dispute

    def test_windows(self):
        status = order_status(purchase(days_old=45), NOW)
        assert status.can_refund is False
        assert status.can_dispute is True
        assert order_status(purchase(days_old=91), NOW).can_dispute is False


def test_late_deliveries_sorted_by_age():
    purchases = [
        purchase(1, days_old=8),
        purchase(2, days_old=12),
        purchase(3, days_old=20),
        purchase(4, days_old=3),
        purchase(5, days_old=20, delivered_at=NOW - timedelta(days=19)),
        purchase(6, days_old=30, refunded=True),
    ]
    late = late_deliveries(purchases, NOW)
    assert [(item.purchase_id, item.urgency) for item in late] == [
        (3, Urgency.HIGH),
        (2, Urgency.MEDIUM),
        (1, Urgency.LOW),
    ]


class TestRefundDecision:
    def test_inside_window(self):
        assert refund_decision(purchase(days_old=10), NOW).allowed is True

    def test_outside_window_needs_approval(self):
        decision = refund_decision(purchase(days_old=40), NOW)
        assert decision.allowed is False
        assert "manual approval" in decision.message
        assert refund_decision(purchase(days_old=40), NOW, manually_approved=True).allowed is True

    def test_already_refunded(self):
        decision = refund_decision(purchase(refunded=True), NOW, manually_approved=True)
        assert decision.allowed is False
        assert decision.message == "Purchase already refunded"


def test_settlement_status():
    purchases = [
        purchase(1, days_old=10),
        purchase(2, days_old=1, amount=20.0, platform_fee=1.0, creator_payout=19.0),
        purchase(3, days_old=20, refunded=True),
    ]
    settlement = settlement_status(7, purchases, NOW)
    assert settlement.available_amount == 38.0
    assert settlement.pending_amount == 19.0
    assert settlement.next_payout_date == NOW + timedelta(days=7)
    assert [t.purchase_id for t in settlement.transactions] == [1, 2]
    assert settlement.transactions[0].settled_at == NOW - timedelta(days=7)
    assert settlement.transactions[1].settled_at is None


def test_open_dispute():
    ticket = open_dispute(5, NOW)
    assert ticket.dispute_id.startswith("dispute_5_")
    assert ticket.status == "under_review"
    assert len(ticket.next_steps) == 3


class TestChargebackRisk:
    def test_fresh_small_purchase(self):
        risk = chargeback_risk(purchase(), NOW)
        assert (risk.risk_score, risk.risk_level, risk.factors) == (25, Urgency.LOW, ["Very recent purchase"])

    def test_expensive_unopened_purchase(self):
        risk = chargeback_risk(purchase(days_old=10, amount=600.0), NOW)
        assert risk.risk_score == 55
        assert risk.risk_level == Urgency.HIGH
        assert risk.factors == ["High transaction amount", "Product not accessed - potential dissatisfaction"]


def test_transaction_health():
    purchases = [
        purchase(1, download_count=2),
        purchase(2, delivered_at=NOW),
        purchase(3),
        purchase(4, refunded=True),
    ]
    health = transaction_health(purchases)
    assert health.total_transactions == 4
    assert health.successful_transactions == 2
    assert health.refunded_transactions == 1
    assert health.refund_rate == 0.25
    assert health.health_score == 50
    assert transaction_health([]).health_score == 100
