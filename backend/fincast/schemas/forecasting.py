from __future__ import annotations

from datetime import date
from typing import Any, Literal

from fincast.schemas.common import ORMModel


class ScenarioOut(ORMModel):
    name: Literal["Optimistic", "Most Likely", "Pessimistic"]
    description: str
    probability: float
    predicted_value: float
    impact: Literal["POSITIVE", "NEGATIVE", "NEUTRAL"]
    assumptions: dict[str, float]


class ForecastOut(ORMModel):
    target_date: date | None
    predicted_value: float
    confidence: float
    features: dict[str, Any]
    scenarios: list[ScenarioOut]


class ForecastListResponse(ORMModel):
    forecast_type: str
    period: str
    currency: str
    items: list[ForecastOut]
