from collections.abc import Generator, Iterator
from contextlib import contextmanager
import logging

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from fincast.core.config import get_settings
from fincast.core.errors import (
    CustomerNotFoundError,
    DataFetchError,
    ForecastEngineError,
    InsufficientHistoryError,
    InvalidSimulationParamsError,
)
from fincast.db.session import SessionLocal
from fincast.services.analytics import FinancialAnalyticsService
from fincast.services.data_reader import SqlAlchemyDataReader
from fincast.services.result_sink import SqlAlchemyResultSink
from fincast.services.text_generation import GeminiTextClient


logger = logging.getLogger("fincast.api")


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_tenant_id(x_tenant_id: int = Header(default=1, ge=1)) -> int:
    return x_tenant_id


def get_analytics_service(
    db: Session = Depends(get_db),
    tenant_id: int = Depends(get_tenant_id),
) -> FinancialAnalyticsService:
    settings = get_settings()
    return FinancialAnalyticsService(
        tenant_id,
        reader=SqlAlchemyDataReader(db),
        text_generator=GeminiTextClient(settings),
        sink=SqlAlchemyResultSink(db, tenant_id),
        settings=settings,
    )


@contextmanager
def engine_errors() -> Iterator[None]:
    try:
        yield
    except CustomerNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidSimulationParamsError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Forecast unavailable: {exc}",
        ) from exc
    except InsufficientHistoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Forecast unavailable: {exc}",
        ) from exc
    except DataFetchError as exc:
        logger.error("Data store failure: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Forecast unavailable: {exc}",
        ) from exc
    except ForecastEngineError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Forecast unavailable: {exc}",
        ) from exc
