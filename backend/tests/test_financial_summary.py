from datetime import date
from decimal import Decimal

from fincast.models.enums import ExpenseStatus, InvoiceStatus, TransactionKind
from fincast.services.aggregation import TransactionRecord
from fincast.services.data_reader import BudgetRecord, ExpenseRecord, InvoiceRecord
from fincast.services.financial_summary import (
    budget_performance,
    budget_status,
    cash_flow_outlook,
    current_cash_position,
    expense_summary,
    financial_summary,
    projected_outflows,
)


def _budget(amount: str, start: date, end: date, *, budget_id: int | None = 1, spent: str = "0") -> BudgetRecord:
    return BudgetRecord(
        name=f"Budget {budget_id}",
        budget_amount=Decimal(amount),
        spent_amount=Decimal(spent),
        start_date=start,
        end_date=end,
        id=budget_id,
    )


def test_financial_summary_combines_ledger_and_expense_claims() -> None:
    transactions = [
        TransactionRecord(date=date(2026, 1, 5), amount=Decimal("1000")),
        TransactionRecord(date=date(2026, 2, 5), amount=Decimal("500")),
        TransactionRecord(date=date(2026, 2, 9), amount=Decimal("-200"), kind=TransactionKind.expense),
    ]
    expenses = [
        ExpenseRecord(date=date(2026, 2, 1), amount=Decimal("100"), status=ExpenseStatus.approved),
        ExpenseRecord(date=date(2026, 2, 2), amount=Decimal("50"), status=ExpenseStatus.pending),
    ]
    invoices = [
        InvoiceRecord(
            issue_date=date(2026, 2, 1),
            due_date=date(2026, 3, 1),
            total_amount=Decimal("300"),
            status=InvoiceStatus.sent,
            customer_id=1,
        )
    ]
    budgets = [_budget("1000", date(2026, 1, 1), date(2026, 12, 31), spent="250")]

    summary = financial_summary(transactions, expenses, invoices, budgets)

    assert summary.total_revenue == Decimal("1500.00")
    assert summary.total_expenses == Decimal("300.00")
    assert summary.net_profit == Decimal("1200.00")
    assert summary.profit_margin == Decimal("80.00")
    assert summary.cash_flow == summary.net_profit
    assert summary.outstanding_invoices == Decimal("300.00")
    assert summary.budget_utilization == Decimal("25.00")


def test_financial_summary_without_revenue_has_zero_margin() -> None:
    summary = financial_summary([], [], [], [])

    assert summary.profit_margin == Decimal("0.00")
    assert summary.budget_utilization == Decimal("0.00")


def test_expense_summary_groups_settled_claims() -> None:
    expenses = [
        ExpenseRecord(date=date(2026, 1, 3), amount=Decimal("100"), status=ExpenseStatus.approved, category="travel"),
        ExpenseRecord(date=date(2026, 1, 9), amount=Decimal("50"), status=ExpenseStatus.paid, category="travel"),
        ExpenseRecord(date=date(2026, 2, 1), amount=Decimal("30"), status=ExpenseStatus.paid, category="office"),
        ExpenseRecord(date=date(2026, 2, 2), amount=Decimal("999"), status=ExpenseStatus.rejected, category="office"),
    ]

    summary = expense_summary(expenses)

    assert summary.total_amount == Decimal("180.00")
    assert summary.total_count == 3
    assert summary.average_amount == Decimal("60.00")
    assert summary.by_category == [
        {"category": "office", "amount": Decimal("30.00"), "count": 1},
        {"category": "travel", "amount": Decimal("150.00"), "count": 2},
    ]
    assert {row["status"]: row["count"] for row in summary.by_status} == {"approved": 1, "paid": 2, "rejected": 1}
    assert [row["month"] for row in summary.monthly_trend] == ["2026-01", "2026-02"]


def test_budget_status_thresholds() -> None:
    assert budget_status(80) == "ON_TRACK"
    assert budget_status(Decimal("80.01")) == "NEAR_LIMIT"
    assert budget_status(100) == "NEAR_LIMIT"
    assert budget_status(Decimal("100.01")) == "OVER_BUDGET"


def test_budget_performance_uses_linked_settled_expenses() -> None:
    budgets = [
        _budget("1000", date(2026, 1, 1), date(2026, 12, 31), budget_id=1),
        _budget("1000", date(2026, 1, 1), date(2026, 12, 31), budget_id=2),
        _budget("1000", date(2026, 1, 1), date(2026, 12, 31), budget_id=3),
    ]
    expenses = [
        ExpenseRecord(date=date(2026, 2, 1), amount=Decimal("850"), status=ExpenseStatus.approved, budget_id=1),
        ExpenseRecord(date=date(2026, 2, 1), amount=Decimal("1200"), status=ExpenseStatus.paid, budget_id=2),
        ExpenseRecord(date=date(2026, 2, 1), amount=Decimal("100"), status=ExpenseStatus.paid, budget_id=3),
        ExpenseRecord(date=date(2026, 2, 1), amount=Decimal("900"), status=ExpenseStatus.pending, budget_id=3),
    ]

    items = budget_performance(budgets, expenses)

    assert [item.status for item in items] == ["NEAR_LIMIT", "OVER_BUDGET", "ON_TRACK"]
    assert items[0].utilization_percentage == Decimal("85.00")
    assert items[1].remaining_amount == Decimal("-200.00")
    assert items[2].spent_amount == Decimal("100.00")


def test_current_cash_position_is_income_minus_expenses() -> None:
    transactions = [
        TransactionRecord(date=date(2026, 1, 1), amount=Decimal("900")),
        TransactionRecord(date=date(2026, 1, 2), amount=Decimal("400"), kind=TransactionKind.expense),
    ]

    assert current_cash_position(transactions) == Decimal("500.00")


def test_projected_outflows_adds_pending_claims_and_prorated_budgets() -> None:
    as_of = date(2026, 1, 1)
    expenses = [
        ExpenseRecord(date=date(2026, 2, 1), amount=Decimal("100"), status=ExpenseStatus.pending),
        ExpenseRecord(date=date(2026, 6, 1), amount=Decimal("700"), status=ExpenseStatus.pending),
        ExpenseRecord(date=date(2026, 2, 1), amount=Decimal("500"), status=ExpenseStatus.approved),
    ]
    budgets = [
        # 30 remaining days, fully inside the horizon.
        _budget("3000", date(2025, 12, 1), date(2026, 1, 31), budget_id=1),
        _budget("9999", date(2025, 1, 1), date(2025, 12, 31), budget_id=2),
        _budget("9999", date(2026, 5, 1), date(2026, 12, 31), budget_id=3),
    ]

    assert projected_outflows(expenses, budgets, as_of=as_of, days=90) == Decimal("3100.00")


def test_cash_flow_outlook_projects_average_flows_with_growth() -> None:
    transactions = [
        TransactionRecord(date=date(2026, 1, 10), amount=Decimal("1000")),
        TransactionRecord(date=date(2026, 1, 20), amount=Decimal("400"), kind=TransactionKind.expense),
        TransactionRecord(date=date(2026, 2, 10), amount=Decimal("1200")),
        TransactionRecord(date=date(2026, 2, 20), amount=Decimal("400"), kind=TransactionKind.expense),
    ]

    outlook = cash_flow_outlook(transactions, 8, as_of=date(2026, 3, 10))

    assert [point.month for point in outlook[:3]] == ["2026-04", "2026-05", "2026-06"]
    assert outlook[0].predicted_inflow == Decimal("1130.56")
    assert outlook[0].predicted_outflow == Decimal("405.56")
    assert outlook[0].net_cash_flow == Decimal("725.00")
    assert [point.confidence for point in outlook] == [0.8, 0.7, 0.6, 0.5, 0.4, 0.3, 0.3, 0.3]


def test_cash_flow_outlook_without_history_is_flat_zero() -> None:
    outlook = cash_flow_outlook([], 2, as_of=date(2026, 3, 10))

    assert [point.net_cash_flow for point in outlook] == [Decimal("0.00"), Decimal("0.00")]
