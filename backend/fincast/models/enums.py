import enum


class TransactionKind(str, enum.Enum):
    income = "income"
    expense = "expense"


class InvoiceStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    overdue = "overdue"
    paid = "paid"
    cancelled = "cancelled"


class ExpenseStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    paid = "paid"
    rejected = "rejected"


class CashEventSource(str, enum.Enum):
    invoice = "invoice"
    confirmed = "confirmed"


class RiskType(str, enum.Enum):
    credit = "CREDIT_RISK"
    liquidity = "LIQUIDITY_RISK"


class Severity(str, enum.Enum):
    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"
    critical = "CRITICAL"


class ForecastType(str, enum.Enum):
    revenue = "REVENUE"
    expense = "EXPENSE"
    cash_flow = "CASH_FLOW"


class QueryIntent(str, enum.Enum):
    revenue_analysis = "revenue_analysis"
    expense_breakdown = "expense_breakdown"
    cash_flow_status = "cash_flow_status"
    budget_performance = "budget_performance"
    financial_forecast = "financial_forecast"
    risk_assessment = "risk_assessment"
    general = "general"
