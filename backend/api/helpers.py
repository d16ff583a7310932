"""Shared API helpers for route handlers.

Path/query parsing that reports failures as 400s with a field-naming
message, and the dependencies that guard routes (bearer token, origin).
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from integrations.provider_protocol import MetricKind, Period
from services.client_registry import ClientRegistry
from services.token_service import InvalidTokenError, TokenService, get_token_service

ISO_DATE_FORMAT = "%Y-%m-%d"
INVALID_TOKEN_MESSAGE = "Access token is missing or invalid"

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_client_registry() -> ClientRegistry:
    """Get the application's client registry (one per process)."""
    return ClientRegistry()


def parse_user_id(raw: str) -> int:
    """Parse a positive integer user id from the request path.

    Raises:
        HTTPException: 400 if the id is not a positive integer.
    """
    try:
        user_id = int(raw)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="userID must be an integer")
    if user_id <= 0:
        raise HTTPException(status_code=400, detail="userID must be a positive integer")
    return user_id


def parse_metric_kind(raw: str) -> MetricKind:
    """Parse a metric kind (``steps``, ``calories``, ``distance``).

    Raises:
        HTTPException: 400 for an unknown metric.
    """
    try:
        return MetricKind(raw)
    except ValueError:
        expected = ", ".join(k.value for k in MetricKind)
        raise HTTPException(
            status_code=400,
            detail=f"Unknown metric '{raw}', expected one of: {expected}",
        )


def parse_iso_date(raw: Optional[str]) -> date:
    """Parse a required ``YYYY-MM-DD`` date query parameter.

    Raises:
        HTTPException: 400 if the date is missing or malformed.
    """
    if not raw:
        raise HTTPException(status_code=400, detail="Expected parameter 'date' in request")
    try:
        return datetime.strptime(raw, ISO_DATE_FORMAT).date()
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail="Parameter 'date' must be a date in the format YYYY-MM-DD",
        )


def parse_period(raw: Optional[str]) -> Period:
    """Parse a required period query parameter (e.g. ``1w``).

    Raises:
        HTTPException: 400 if the period is missing or unknown.
    """
    if not raw:
        raise HTTPException(status_code=400, detail="Expected parameter 'period' in request")
    try:
        return Period(raw)
    except ValueError:
        expected = ", ".join(p.value for p in Period)
        raise HTTPException(
            status_code=400,
            detail=f"Unknown period '{raw}', expected one of: {expected}",
        )


def require_client(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    registry: ClientRegistry = Depends(get_client_registry),
) -> int:
    """Authorize a request by its bearer token.

    Returns:
        The id of the client the token was issued to.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired, or
            belongs to a client that no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail=INVALID_TOKEN_MESSAGE)
    try:
        client_id = tokens.verify(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(status_code=401, detail=INVALID_TOKEN_MESSAGE)
    if registry.get(db, client_id) is None:
        raise HTTPException(status_code=401, detail=INVALID_TOKEN_MESSAGE)
    return client_id


def require_website_origin(origin: Optional[str] = Header(default=None)) -> None:
    """Only accept registry requests sent from the configured website.

    The check is disabled when ``WEBSITE_ORIGIN`` is empty.

    Raises:
        HTTPException: 403 if the Origin header does not match.
    """
    expected = settings.WEBSITE_ORIGIN
    if not expected:
        return
    if (origin or "").rstrip("/") != expected:
        raise HTTPException(
            status_code=403,
            detail="Requests to this endpoint must come from the registration website",
        )
