"""Strava API client wrapper.

This module implements the ProviderClient protocol for Strava.  Strava
has no step data; distance and calories come from the athlete's
activities within the requested window.
"""

import logging
from datetime import date, timedelta

import httpx

from config import settings
from integrations.exceptions import ProviderDataError
from integrations.http_utils import auth_headers, request_json
from integrations.parsing_utils import epoch_seconds, parse_number
from integrations.provider_protocol import (
    MetricKind,
    MetricRecord,
    Period,
    Platform,
    ProviderCredential,
)

logger = logging.getLogger(__name__)

ACTIVITIES_ENDPOINT = "/athlete/activities"

# Strava's maximum page size
_PAGE_SIZE = 200

_METERS_PER_KILOMETER = 1000.0
_KILOJOULES_PER_KILOCALORIE = 4.184


def kilojoules_to_kilocalories(kilojoules: float) -> float:
    """Convert kilojoules to kilocalories (1 kJ is about 0.239 kcal)."""
    return kilojoules / _KILOJOULES_PER_KILOCALORIE


class StravaClient:
    """Wrapper around the Strava API v3.

    Implements the ProviderClient protocol for multi-platform support.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``https://www.strava.com/api/v3`` (defaults to settings)
            timeout: Per-request timeout in seconds (defaults to settings)
            transport: Optional httpx transport, used by tests
        """
        self._base_url = base_url or settings.STRAVA_API_URL
        self._timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def platform(self) -> Platform:
        """Return the platform this client talks to."""
        return Platform.STRAVA

    def is_configured(self) -> bool:
        """Check if a Strava API URL is configured."""
        return bool(self._base_url)

    def _get_activities(
        self, credential: ProviderCredential, start: date, span: timedelta
    ) -> list[dict]:
        """List the athlete's activities that started inside the window."""
        after = epoch_seconds(start)
        params = {
            "after": after,
            "before": after + int(span.total_seconds()),
            "per_page": _PAGE_SIZE,
        }
        with httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            payload = request_json(
                client,
                "GET",
                ACTIVITIES_ENDPOINT,
                "Strava",
                headers=auth_headers(credential),
                params=params,
            )

        if not isinstance(payload, list):
            raise ProviderDataError(
                "Strava activities response was not a JSON list", provider_name="Strava"
            )
        logger.debug("Strava: %d activities between %s and %s", len(payload), params["after"], params["before"])
        return [a for a in payload if isinstance(a, dict)]

    def _activity_value(self, activity: dict, kind: MetricKind) -> float | None:
        """Return one activity's value in canonical units, or None if it has none."""
        field = "distance" if kind is MetricKind.DISTANCE else "kilojoules"
        raw = activity.get(field)
        if raw is None:
            return None
        value = parse_number(raw)
        if value is None:
            raise ProviderDataError(
                f"Strava returned a non-numeric {field}: {raw!r}", provider_name="Strava"
            )
        if kind is MetricKind.DISTANCE:
            return value / _METERS_PER_KILOMETER
        return kilojoules_to_kilocalories(value)

    def fetch(
        self, credential: ProviderCredential, kind: MetricKind, day: date
    ) -> MetricRecord | None:
        """Fetch a day's value from the first activity of the day.

        Returns:
            The record, or None for steps (no Strava signal), for a day
            without activities, or when the activity lacks the field.
        """
        if kind is MetricKind.STEPS:
            return None

        activities = self._get_activities(credential, day, timedelta(days=1))
        if not activities:
            return None

        value = self._activity_value(activities[0], kind)
        if value is None:
            return None
        return MetricRecord(platform=self.platform, value=kind.coerce(value))

    def fetch_over_period(
        self,
        credential: ProviderCredential,
        kind: MetricKind,
        start: date,
        period: Period,
    ) -> MetricRecord | None:
        """Sum a metric over every activity in ``period``.

        Returns:
            The record, or None for steps or when no activity carries the field.
        """
        if kind is MetricKind.STEPS:
            return None

        activities = self._get_activities(credential, start, period.span)
        values = [
            v for v in (self._activity_value(a, kind) for a in activities) if v is not None
        ]
        if not values:
            return None
        return MetricRecord(platform=self.platform, value=kind.coerce(sum(values)))
