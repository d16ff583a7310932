"""Fitbit Web API client wrapper.

This module implements the ProviderClient protocol for Fitbit.  Daily
values come from the per-date activity summary; over-period totals come
from the activity time series resources.
"""

import logging
from datetime import date

import httpx

from config import settings
from integrations.exceptions import ProviderAPIError, ProviderDataError
from integrations.http_utils import auth_headers, request_json
from integrations.parsing_utils import parse_number
from integrations.provider_protocol import (
    MetricKind,
    MetricRecord,
    Period,
    Platform,
    ProviderCredential,
)

logger = logging.getLogger(__name__)

# Fields of the daily activity summary, by metric
_SUMMARY_FIELDS: dict[MetricKind, str] = {
    MetricKind.STEPS: "steps",
    MetricKind.CALORIES: "caloriesOut",
}

# The distances list holds one entry per activity plus an aggregate
_TOTAL_DISTANCE_ACTIVITY = "total"


class FitbitClient:
    """Wrapper around the Fitbit Web API.

    Implements the ProviderClient protocol for multi-platform support.
    Distances are requested with the default (metric) locale, so Fitbit
    already reports them in kilometers.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``https://api.fitbit.com/1`` (defaults to settings)
            timeout: Per-request timeout in seconds (defaults to settings)
            transport: Optional httpx transport, used by tests
        """
        self._base_url = base_url or settings.FITBIT_API_URL
        self._timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def platform(self) -> Platform:
        """Return the platform this client talks to."""
        return Platform.FITBIT

    def is_configured(self) -> bool:
        """Check if a Fitbit API URL is configured."""
        return bool(self._base_url)

    def _get(self, credential: ProviderCredential, path: str) -> dict:
        """GET a Fitbit resource and return its JSON object."""
        with httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            payload = request_json(
                client, "GET", path, "Fitbit", headers=auth_headers(credential)
            )

        if not isinstance(payload, dict):
            raise ProviderDataError(
                "Fitbit response was not a JSON object", provider_name="Fitbit"
            )

        errors = payload.get("errors") or []
        if errors:
            for i, error in enumerate(errors, start=1):
                logger.error(
                    "Fitbit: request failed (reason %d): %s - %s",
                    i,
                    error.get("errorType") if isinstance(error, dict) else error,
                    error.get("message") if isinstance(error, dict) else "",
                )
            raise ProviderAPIError(
                f"Fitbit request failed with {len(errors)} error(s)",
                provider_name="Fitbit",
            )
        return payload

    @staticmethod
    def _user_segment(credential: ProviderCredential) -> str:
        # "-" means "the user the access token belongs to"
        return credential.external_user_id or "-"

    def fetch(
        self, credential: ProviderCredential, kind: MetricKind, day: date
    ) -> MetricRecord | None:
        """Fetch a day's value from the daily activity summary.

        Args:
            credential: The user's Fitbit credential.
            kind: The metric to fetch.
            day: Calendar date.

        Returns:
            The record, or None if the summary holds no value for ``kind``.
        """
        path = (
            f"/user/{self._user_segment(credential)}"
            f"/activities/date/{day.isoformat()}.json"
        )
        payload = self._get(credential, path)

        summary = payload.get("summary")
        if not isinstance(summary, dict):
            logger.debug("Fitbit: no summary for %s", day)
            return None

        if kind is MetricKind.DISTANCE:
            raw = self._total_distance(summary)
        else:
            raw = summary.get(_SUMMARY_FIELDS[kind])
        if raw is None:
            return None

        value = parse_number(raw)
        if value is None:
            raise ProviderDataError(
                f"Fitbit returned a non-numeric {kind.value} value: {raw!r}",
                provider_name="Fitbit",
            )
        return MetricRecord(platform=self.platform, value=kind.coerce(value))

    @staticmethod
    def _total_distance(summary: dict):
        """Return the distance of the ``total`` entry, or None if absent."""
        for entry in summary.get("distances") or []:
            if isinstance(entry, dict) and entry.get("activity") == _TOTAL_DISTANCE_ACTIVITY:
                return entry.get("distance")
        return None

    def fetch_over_period(
        self,
        credential: ProviderCredential,
        kind: MetricKind,
        start: date,
        period: Period,
    ) -> MetricRecord | None:
        """Sum a metric's activity time series over ``period``.

        Fitbit reports each day's value as a string; values that do not
        parse are logged and skipped.

        Returns:
            The record, or None if the series is empty.
        """
        path = (
            f"/user/{self._user_segment(credential)}/activities/{kind.value}"
            f"/date/{start.isoformat()}/{period.value}.json"
        )
        payload = self._get(credential, path)

        series = payload.get(f"activities-{kind.value}") or []
        total = 0.0
        counted = 0
        for entry in series:
            raw = entry.get("value") if isinstance(entry, dict) else None
            value = parse_number(raw)
            if value is None:
                logger.error("Fitbit: bad %s value in time series: %r", kind.value, raw)
                continue
            total += value
            counted += 1

        if counted == 0:
            return None
        return MetricRecord(platform=self.platform, value=kind.coerce(total))
