from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fincast.core.errors import DataFetchError, InvalidSimulationParamsError
from fincast.models.customer import ContactHistory, Customer, Invoice
from fincast.models.enums import ExpenseStatus, InvoiceStatus, TransactionKind
from fincast.models.ledger import Budget, Expense, Transaction
from fincast.services.aggregation import TransactionRecord, add_months
from fincast.services.customer_behavior import ContactEvent, CustomerHistory, CustomerInvoice
from fincast.services.risk import PaymentRecord


logger = logging.getLogger("fincast.data_reader")


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidSimulationParamsError(
                f"Date range start {self.start.isoformat()} is after end {self.end.isoformat()}."
            )

    @classmethod
    def trailing_months(cls, end: date, months: int) -> DateRange:
        return cls(start=add_months(end, -months), end=end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class InvoiceRecord:
    issue_date: date
    due_date: date
    total_amount: Decimal | float
    status: InvoiceStatus
    customer_id: int | None
    id: int | None = None


@dataclass(frozen=True)
class ExpenseRecord:
    date: date
    amount: Decimal | float
    status: ExpenseStatus
    category: str = "Uncategorized"
    budget_id: int | None = None


@dataclass(frozen=True)
class BudgetRecord:
    name: str
    budget_amount: Decimal | float
    spent_amount: Decimal | float
    start_date: date
    end_date: date
    id: int | None = None


class FinancialDataReader(Protocol):
    def get_transactions(
        self,
        tenant_id: int,
        date_range: DateRange | None,
        kind: TransactionKind | None = None,
    ) -> list[TransactionRecord]: ...

    def get_invoices(
        self,
        tenant_id: int,
        statuses: Iterable[InvoiceStatus] | None = None,
        due_after: date | None = None,
    ) -> list[InvoiceRecord]: ...

    def get_payments(self, tenant_id: int) -> list[PaymentRecord]: ...

    def get_expenses(
        self,
        tenant_id: int,
        date_range: DateRange | None,
        statuses: Iterable[ExpenseStatus] | None = None,
    ) -> list[ExpenseRecord]: ...

    def get_budgets(self, tenant_id: int, date_range: DateRange | None) -> list[BudgetRecord]: ...

    def get_customer_history(self, tenant_id: int, customer_id: int) -> CustomerHistory | None: ...


class SqlAlchemyDataReader:
    """Reads source records for one database session.

    Query failures surface as ``DataFetchError`` and are not retried.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_transactions(
        self,
        tenant_id: int,
        date_range: DateRange | None,
        kind: TransactionKind | None = None,
    ) -> list[TransactionRecord]:
        stmt = select(Transaction).where(Transaction.tenant_id == tenant_id)
        if date_range is not None:
            stmt = stmt.where(Transaction.tx_date >= date_range.start, Transaction.tx_date <= date_range.end)
        if kind is not None:
            stmt = stmt.where(Transaction.kind == kind)
        rows = self._fetch(stmt.order_by(Transaction.tx_date.asc(), Transaction.id.asc()), "transactions")
        return [
            TransactionRecord(date=row.tx_date, amount=row.amount, kind=row.kind, category=row.category)
            for row in rows
        ]

    def get_invoices(
        self,
        tenant_id: int,
        statuses: Iterable[InvoiceStatus] | None = None,
        due_after: date | None = None,
    ) -> list[InvoiceRecord]:
        stmt = select(Invoice).where(Invoice.tenant_id == tenant_id)
        if statuses is not None:
            stmt = stmt.where(Invoice.status.in_(list(statuses)))
        if due_after is not None:
            stmt = stmt.where(Invoice.due_date >= due_after)
        rows = self._fetch(stmt.order_by(Invoice.due_date.asc(), Invoice.id.asc()), "invoices")
        return [
            InvoiceRecord(
                issue_date=row.issue_date,
                due_date=row.due_date,
                total_amount=row.total_amount,
                status=row.status,
                customer_id=row.customer_id,
                id=row.id,
            )
            for row in rows
        ]

    def get_payments(self, tenant_id: int) -> list[PaymentRecord]:
        # Income transactions settled against an invoice.
        stmt = (
            select(Transaction.tx_date, Transaction.amount, Invoice.issue_date)
            .join(Invoice, Invoice.id == Transaction.invoice_id)
            .where(
                Transaction.tenant_id == tenant_id,
                Transaction.kind == TransactionKind.income,
            )
            .order_by(Transaction.tx_date.asc())
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to load payments for tenant %s: %s", tenant_id, exc)
            raise DataFetchError(f"Failed to load payments: {exc}") from exc
        return [
            PaymentRecord(paid_date=paid_date, amount=amount, invoice_issue_date=issue_date)
            for paid_date, amount, issue_date in rows
        ]

    def get_expenses(
        self,
        tenant_id: int,
        date_range: DateRange | None,
        statuses: Iterable[ExpenseStatus] | None = None,
    ) -> list[ExpenseRecord]:
        stmt = select(Expense).where(Expense.tenant_id == tenant_id)
        if date_range is not None:
            stmt = stmt.where(Expense.expense_date >= date_range.start, Expense.expense_date <= date_range.end)
        if statuses is not None:
            stmt = stmt.where(Expense.status.in_(list(statuses)))
        rows = self._fetch(stmt.order_by(Expense.expense_date.asc(), Expense.id.asc()), "expenses")
        return [
            ExpenseRecord(
                date=row.expense_date,
                amount=row.amount,
                status=row.status,
                category=row.category,
                budget_id=row.budget_id,
            )
            for row in rows
        ]

    def get_budgets(self, tenant_id: int, date_range: DateRange | None) -> list[BudgetRecord]:
        stmt = select(Budget).where(Budget.tenant_id == tenant_id)
        if date_range is not None:
            # Overlap, not containment.
            stmt = stmt.where(Budget.start_date <= date_range.end, Budget.end_date >= date_range.start)
        rows = self._fetch(stmt.order_by(Budget.start_date.asc(), Budget.id.asc()), "budgets")
        return [
            BudgetRecord(
                name=row.name,
                budget_amount=row.budget_amount,
                spent_amount=row.spent_amount,
                start_date=row.start_date,
                end_date=row.end_date,
                id=row.id,
            )
            for row in rows
        ]

    def get_customer_history(self, tenant_id: int, customer_id: int) -> CustomerHistory | None:
        try:
            customer = self.db.scalar(
                select(Customer).where(Customer.id == customer_id, Customer.tenant_id == tenant_id)
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to load customer %s for tenant %s: %s", customer_id, tenant_id, exc)
            raise DataFetchError(f"Failed to load customer: {exc}") from exc
        if customer is None:
            return None

        invoices = self._fetch(
            select(Invoice)
            .where(Invoice.tenant_id == tenant_id, Invoice.customer_id == customer_id)
            .order_by(Invoice.issue_date.asc(), Invoice.id.asc()),
            "customer invoices",
        )
        contacts = self._fetch(
            select(ContactHistory)
            .where(ContactHistory.tenant_id == tenant_id, ContactHistory.customer_id == customer_id)
            .order_by(ContactHistory.created_at.asc()),
            "contact history",
        )
        return CustomerHistory(
            customer_id=customer.id,
            invoices=tuple(
                CustomerInvoice(issue_date=row.issue_date, total_amount=row.total_amount) for row in invoices
            ),
            contact_history=tuple(
                ContactEvent(date=row.created_at.date(), channel=row.channel) for row in contacts
            ),
        )

    def _fetch(self, stmt, label: str) -> list:
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            logger.error("Failed to load %s: %s", label, exc)
            raise DataFetchError(f"Failed to load {label}: {exc}") from exc
