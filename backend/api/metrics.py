"""Metric aggregation API endpoints."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.helpers import (
    parse_iso_date,
    parse_metric_kind,
    parse_period,
    parse_user_id,
    require_client,
)
from database import get_db
from integrations.provider_protocol import MetricKind, Period
from schemas import AggregationResponse, PeriodAggregationResponse
from services.aggregation_service import (
    AggregationResult,
    AggregationService,
    AggregationUnavailableError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["metrics"])


def get_aggregation_service() -> AggregationService:
    """Get AggregationService instance (dependency for injection in tests)."""
    return AggregationService()


def _aggregate(
    service: AggregationService,
    db: Session,
    user_id: int,
    kind: MetricKind,
    day: date,
    largest_only: bool,
    period: Optional[Period] = None,
) -> AggregationResult:
    """Run the aggregation, mapping a total outage to 502."""
    try:
        return service.aggregate(
            db, user_id, kind, day, largest_only=largest_only, period=period
        )
    except AggregationUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{user_id}/{metric_kind}/daily", response_model=AggregationResponse)
def get_daily_metric(
    user_id: str,
    metric_kind: str,
    date_param: Optional[str] = Query(default=None, alias="date"),
    largest_only: bool = Query(default=False, alias="largestOnly"),
    client_id: int = Depends(require_client),
    db: Session = Depends(get_db),
    service: AggregationService = Depends(get_aggregation_service),
):
    """Get a user's value for one metric on one date from every linked platform.

    Records are ordered fitbit, google, strava. With ``largestOnly=true``
    only the record with the largest value is returned.
    """
    uid = parse_user_id(user_id)
    kind = parse_metric_kind(metric_kind)
    day = parse_iso_date(date_param)
    logger.debug("Client %d requested %s for user %d on %s", client_id, kind.value, uid, day)

    result = _aggregate(service, db, uid, kind, day, largest_only)
    return AggregationResponse(id=uid, result=[r.to_dict() for r in result.records])


@router.get("/{user_id}/{metric_kind}/over-period", response_model=PeriodAggregationResponse)
def get_metric_over_period(
    user_id: str,
    metric_kind: str,
    date_param: Optional[str] = Query(default=None, alias="date"),
    period_param: Optional[str] = Query(default=None, alias="period"),
    largest_only: bool = Query(default=False, alias="largestOnly"),
    client_id: int = Depends(require_client),
    db: Session = Depends(get_db),
    service: AggregationService = Depends(get_aggregation_service),
):
    """Get a user's total for one metric over a period starting at ``date``."""
    uid = parse_user_id(user_id)
    kind = parse_metric_kind(metric_kind)
    day = parse_iso_date(date_param)
    period = parse_period(period_param)
    logger.debug(
        "Client %d requested %s for user %d over %s from %s",
        client_id, kind.value, uid, period.value, day,
    )

    result = _aggregate(service, db, uid, kind, day, largest_only, period=period)
    return PeriodAggregationResponse(
        id=uid,
        period=period.value,
        result=[r.to_dict() for r in result.records],
    )


@router.get("/{user_id}/{metric_kind}")
def get_metric_legacy(
    user_id: str,
    metric_kind: str,
    date_param: Optional[str] = Query(default=None, alias="date"),
    largest_only: bool = Query(default=False, alias="largestOnly"),
    client_id: int = Depends(require_client),
    db: Session = Depends(get_db),
    service: AggregationService = Depends(get_aggregation_service),
) -> dict:
    """Earlier route shape: records are keyed by the metric name instead of ``result``."""
    uid = parse_user_id(user_id)
    kind = parse_metric_kind(metric_kind)
    day = parse_iso_date(date_param)

    result = _aggregate(service, db, uid, kind, day, largest_only)
    return {"id": uid, kind.value: [r.to_dict() for r in result.records]}
