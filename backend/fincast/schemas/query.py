from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from fincast.schemas.common import ORMModel


class QueryRequest(BaseModel):
    query: str = Field(min_length=2, max_length=4000)


class QueryResponse(ORMModel):
    query: str
    intent: str
    response: dict[str, Any]
    processing_time_ms: float
    is_successful: bool
