from __future__ import annotations

from datetime import date
from typing import Any

from fincast.models.enums import RiskType, Severity
from fincast.schemas.common import ORMModel


class RiskAssessmentOut(ORMModel):
    type: RiskType
    severity: Severity
    probability: float
    impact: float
    risk_score: int
    description: str
    indicators: dict[str, Any]
    mitigation: str
    review_date: date
    triggered_rules: list[str]


class RiskAnalysisResponse(ORMModel):
    items: list[RiskAssessmentOut]
