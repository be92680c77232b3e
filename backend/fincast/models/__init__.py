from fincast.models.customer import ContactHistory, Customer, Invoice
from fincast.models.enums import (
    CashEventSource,
    ExpenseStatus,
    ForecastType,
    InvoiceStatus,
    QueryIntent,
    RiskType,
    Severity,
    TransactionKind,
)
from fincast.models.ledger import Budget, Expense, Transaction
from fincast.models.results import ForecastRecord, QueryLogRecord, RiskAssessmentRecord

__all__ = [
    "ContactHistory",
    "Customer",
    "Invoice",
    "CashEventSource",
    "ExpenseStatus",
    "ForecastType",
    "InvoiceStatus",
    "QueryIntent",
    "RiskType",
    "Severity",
    "TransactionKind",
    "Budget",
    "Expense",
    "Transaction",
    "ForecastRecord",
    "QueryLogRecord",
    "RiskAssessmentRecord",
]
