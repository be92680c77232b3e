from fastapi import APIRouter, Depends

from fincast.api.deps import get_analytics_service
from fincast.schemas.query import QueryRequest, QueryResponse
from fincast.services.analytics import FinancialAnalyticsService


router = APIRouter(tags=["query"])


@router.post("/query", response_model=QueryResponse)
def natural_language_query(
    payload: QueryRequest,
    service: FinancialAnalyticsService = Depends(get_analytics_service),
) -> QueryResponse:
    # Failures come back inside the result with is_successful=False.
    result = service.process_query(payload.query)
    return QueryResponse.model_validate(result)
