from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict
import logging
from typing import TYPE_CHECKING, Protocol

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from fincast.models.enums import ForecastType
from fincast.models.results import ForecastRecord, QueryLogRecord, RiskAssessmentRecord

if TYPE_CHECKING:
    from fincast.services.forecast import Forecast
    from fincast.services.query_router import QueryResult
    from fincast.services.risk import RiskAssessment


logger = logging.getLogger("fincast.result_sink")

MODEL_VERSION = "2.5.0"


class ResultSink(Protocol):
    def persist_forecast(
        self,
        tenant_id: int,
        forecast_type: ForecastType,
        forecast: Forecast,
        *,
        period: str = "MONTHLY",
    ) -> None: ...

    def persist_risk_assessment(self, tenant_id: int, assessment: RiskAssessment) -> None: ...

    def persist_query_log(self, result: QueryResult) -> None: ...


class NullResultSink:
    def persist_forecast(
        self,
        tenant_id: int,
        forecast_type: ForecastType,
        forecast: Forecast,
        *,
        period: str = "MONTHLY",
    ) -> None:
        return None

    def persist_risk_assessment(self, tenant_id: int, assessment: RiskAssessment) -> None:
        return None

    def persist_query_log(self, result: QueryResult) -> None:
        return None


class SqlAlchemyResultSink:
    """Writes results to the forecast, risk and query-log tables.

    Every write commits on its own. A record that fails to build or write is
    rolled back and logged, and never propagates to the computation that
    produced the result.
    """

    def __init__(self, session: Session, tenant_id: int) -> None:
        self._session = session
        self._tenant_id = tenant_id

    def persist_forecast(
        self,
        tenant_id: int,
        forecast_type: ForecastType,
        forecast: Forecast,
        *,
        period: str = "MONTHLY",
    ) -> None:
        self._write(
            "forecast",
            lambda: ForecastRecord(
                tenant_id=tenant_id,
                forecast_type=ForecastType(forecast_type).value,
                period=period,
                target_date=forecast.target_date,
                predicted_value=forecast.predicted_value,
                confidence=forecast.confidence,
                model_version=MODEL_VERSION,
                features=dict(forecast.features),
                scenarios=[asdict(scenario) for scenario in forecast.scenarios],
            ),
        )

    def persist_risk_assessment(self, tenant_id: int, assessment: RiskAssessment) -> None:
        self._write(
            "risk assessment",
            lambda: RiskAssessmentRecord(
                tenant_id=tenant_id,
                risk_type=assessment.type.value,
                severity=assessment.severity.value,
                probability=assessment.probability,
                impact=assessment.impact,
                risk_score=assessment.risk_score,
                description=assessment.description,
                indicators=dict(assessment.indicators),
                mitigation=assessment.mitigation,
                review_date=assessment.review_date,
            ),
        )

    def persist_query_log(self, result: QueryResult) -> None:
        self._write(
            "query log",
            lambda: QueryLogRecord(
                tenant_id=self._tenant_id,
                query=result.query,
                intent=result.intent,
                response=jsonable_encoder(result.response),
                processing_time_ms=result.processing_time_ms,
                is_successful=result.is_successful,
            ),
        )

    def _write(self, label: str, build: Callable[[], object]) -> None:
        try:
            self._session.add(build())
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.exception("Failed to persist %s for tenant %s.", label, self._tenant_id)
