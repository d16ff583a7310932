"""Pydantic request/response schemas."""

from .client import (
    CallbackResponse,
    CallbackUpdateResponse,
    RegistryResponse,
    SignInResponse,
    SignUpResponse,
)
from .metrics import AggregationResponse, MetricRecordResponse, PeriodAggregationResponse

__all__ = [
    "AggregationResponse",
    "CallbackResponse",
    "CallbackUpdateResponse",
    "MetricRecordResponse",
    "PeriodAggregationResponse",
    "RegistryResponse",
    "SignInResponse",
    "SignUpResponse",
]
