from datetime import date, timedelta

import pytest

from fincast.services.customer_behavior import (
    ContactEvent,
    CustomerHistory,
    CustomerInvoice,
    churn_probability,
    customer_metrics,
    score,
)


AS_OF = date(2026, 6, 1)


def test_customer_without_purchases_is_at_risk() -> None:
    result = score(CustomerHistory(customer_id=7), as_of=AS_OF)

    assert result.metrics.days_since_last_purchase == 999
    assert result.metrics.days_since_first_purchase == 0
    assert result.metrics.is_active is False
    # recency 0.4 + fewer than three purchases 0.1 + low order value 0.2 + no contact 0.1
    assert result.churn_probability == pytest.approx(0.8)
    assert result.value_segment == "At Risk"
    assert result.next_purchase.date == AS_OF + timedelta(days=60)
    assert result.next_purchase.amount == 5000.0
    assert result.next_purchase.confidence == 0.5
    assert result.recommended_actions == [
        "High churn risk - initiate retention campaign",
        "Schedule personal consultation call",
        "Offer loyalty discount or special promotion",
        "Re-engagement campaign",
    ]


def test_single_recent_small_purchase() -> None:
    customer = CustomerHistory(
        customer_id=3,
        invoices=(CustomerInvoice(issue_date=AS_OF - timedelta(days=100), total_amount=500),),
    )

    result = score(customer, as_of=AS_OF)

    # recency over 90 days 0.2 + exactly one purchase 0.3 + low value 0.2 + no contact 0.1
    assert result.churn_probability == pytest.approx(0.8)
    assert "Win-back campaign with special offer" not in result.recommended_actions
    assert len(result.recommended_actions) == 4


def test_champion_has_no_churn_signal_and_predictable_cadence() -> None:
    last = AS_OF - timedelta(days=10)
    invoices = tuple(
        CustomerInvoice(issue_date=last - timedelta(days=30 * offset), total_amount=5000) for offset in range(12)
    )
    contacts = (ContactEvent(date=AS_OF - timedelta(days=2), channel="email"),)

    result = score(CustomerHistory(customer_id=1, invoices=invoices, contact_history=contacts), as_of=AS_OF)

    assert result.churn_probability == 0.0
    assert result.value_segment == "Champion"
    assert result.metrics.total_revenue == 60_000
    assert result.metrics.is_active is True
    assert result.next_purchase.date == last + timedelta(days=30)
    assert result.next_purchase.amount == pytest.approx(5000.0)
    assert result.next_purchase.confidence == 0.9
    assert result.recommended_actions == ["VIP treatment and exclusive offers", "Request referrals and testimonials"]
    assert [factor["feature"] for factor in result.factors][0] == "Purchase Recency"


def test_segments_follow_first_matching_rule() -> None:
    def _segment(count: int, amount: float) -> str:
        invoices = tuple(
            CustomerInvoice(issue_date=AS_OF - timedelta(days=offset + 1), total_amount=amount) for offset in range(count)
        )
        return score(CustomerHistory(customer_id=1, invoices=invoices), as_of=AS_OF).value_segment

    assert _segment(6, 5000) == "Loyal Customer"
    assert _segment(2, 6000) == "Potential Loyalist"
    assert _segment(4, 100) == "New Customer"
    assert _segment(2, 100) == "At Risk"


def test_churn_probability_is_capped_at_one() -> None:
    customer = CustomerHistory(
        customer_id=9,
        invoices=(CustomerInvoice(issue_date=AS_OF - timedelta(days=400), total_amount=10),),
    )

    probability = churn_probability(customer_metrics(customer, as_of=AS_OF))

    assert 0.0 <= probability <= 1.0
    assert probability == pytest.approx(1.0)


@pytest.mark.parametrize("days_since_last", [0, 45, 91, 181, 800])
@pytest.mark.parametrize("purchases", [0, 1, 2, 3, 12])
@pytest.mark.parametrize("amount", [0, 999, 1000, 25_000])
@pytest.mark.parametrize("contacts", [0, 3])
def test_churn_probability_stays_within_unit_interval(
    days_since_last: int, purchases: int, amount: float, contacts: int
) -> None:
    last = AS_OF - timedelta(days=days_since_last)
    customer = CustomerHistory(
        customer_id=11,
        invoices=tuple(
            CustomerInvoice(issue_date=last - timedelta(days=30 * offset), total_amount=amount)
            for offset in range(purchases)
        ),
        contact_history=tuple(
            ContactEvent(date=AS_OF - timedelta(days=offset + 1), channel="phone") for offset in range(contacts)
        ),
    )

    probability = score(customer, as_of=AS_OF).churn_probability

    assert 0.0 <= probability <= 1.0
