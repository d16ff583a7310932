"""Pydantic schemas for aggregated metric responses."""

from pydantic import BaseModel


class MetricRecordResponse(BaseModel):
    """One platform's normalized value."""

    platform: str
    value: int | float


class AggregationResponse(BaseModel):
    """Response schema for the daily metric route."""

    id: int
    result: list[MetricRecordResponse]


class PeriodAggregationResponse(AggregationResponse):
    """Response schema for the over-period metric route."""

    period: str
