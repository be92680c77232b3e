from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal


MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95

ScenarioName = Literal["Optimistic", "Most Likely", "Pessimistic"]
ScenarioImpact = Literal["POSITIVE", "NEGATIVE", "NEUTRAL"]


@dataclass(frozen=True)
class Scenario:
    name: ScenarioName
    description: str
    probability: float
    predicted_value: float
    impact: ScenarioImpact
    assumptions: dict[str, float]


@dataclass(frozen=True)
class Forecast:
    target_date: date | None
    predicted_value: float
    confidence: float
    features: dict[str, Any]
    scenarios: tuple[Scenario, ...] = field(default=())


def clamp_confidence(value: float) -> float:
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, value))
