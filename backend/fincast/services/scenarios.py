from __future__ import annotations

from dataclasses import dataclass

from fincast.services.forecast import Forecast, Scenario, ScenarioImpact, ScenarioName


@dataclass(frozen=True)
class ScenarioTier:
    name: ScenarioName
    description: str
    multiplier: float
    probability: float
    impact: ScenarioImpact
    growth_rate: float
    retention_rate: float
    acquisition_rate: float


# Assumptions are fixed per tier, not fitted from data.
SCENARIO_TIERS: tuple[ScenarioTier, ScenarioTier, ScenarioTier] = (
    ScenarioTier(
        name="Optimistic",
        description="Best case scenario with favorable market conditions",
        multiplier=1.15,
        probability=0.2,
        impact="POSITIVE",
        growth_rate=0.15,
        retention_rate=0.95,
        acquisition_rate=0.2,
    ),
    ScenarioTier(
        name="Most Likely",
        description="Expected scenario based on current trends",
        multiplier=1.0,
        probability=0.6,
        impact="NEUTRAL",
        growth_rate=0.05,
        retention_rate=0.85,
        acquisition_rate=0.1,
    ),
    ScenarioTier(
        name="Pessimistic",
        description="Conservative scenario with challenging conditions",
        multiplier=0.8,
        probability=0.2,
        impact="NEGATIVE",
        growth_rate=-0.05,
        retention_rate=0.75,
        acquisition_rate=0.05,
    ),
)


def expand(forecast: Forecast) -> tuple[Scenario, Scenario, Scenario]:
    optimistic, likely, pessimistic = (
        Scenario(
            name=tier.name,
            description=tier.description,
            probability=tier.probability,
            predicted_value=forecast.predicted_value * tier.multiplier,
            impact=tier.impact,
            assumptions={
                "growth_rate": tier.growth_rate,
                "retention_rate": tier.retention_rate,
                "acquisition_rate": tier.acquisition_rate,
            },
        )
        for tier in SCENARIO_TIERS
    )
    return optimistic, likely, pessimistic
