"""Google Fit REST API client wrapper.

This module implements the ProviderClient protocol for Google Fit using
the ``dataset:aggregate`` endpoint.  Each metric is selected by a
``dataSourceId``, and each data source reports its points in a typed
value field (``intVal`` or ``fpVal``).
"""

import logging
from datetime import date, timedelta

import httpx

from config import settings
from integrations.exceptions import (
    ProviderAPIError,
    ProviderContractError,
    ProviderDataError,
)
from integrations.http_utils import auth_headers, request_json
from integrations.parsing_utils import epoch_millis, parse_number
from integrations.provider_protocol import (
    MetricKind,
    MetricRecord,
    Period,
    Platform,
    ProviderCredential,
)

logger = logging.getLogger(__name__)

AGGREGATE_ENDPOINT = "/users/me/dataset:aggregate"

STEPS_DATA_SOURCE = "derived:com.google.step_count.delta:com.google.android.gms:estimated_steps"
CALORIES_DATA_SOURCE = (
    "derived:com.google.calories.expended:com.google.android.gms:merge_calories_expended"
)
DISTANCE_DATA_SOURCE = (
    "derived:com.google.distance.delta:com.google.android.gms:merge_distance_delta"
)

_DATA_SOURCES: dict[MetricKind, str] = {
    MetricKind.STEPS: STEPS_DATA_SOURCE,
    MetricKind.CALORIES: CALORIES_DATA_SOURCE,
    MetricKind.DISTANCE: DISTANCE_DATA_SOURCE,
}

# Typed value field each data source reports its points in
_VALUE_FIELDS: dict[str, str] = {
    STEPS_DATA_SOURCE: "intVal",
    CALORIES_DATA_SOURCE: "fpVal",
    DISTANCE_DATA_SOURCE: "fpVal",
}

_METERS_PER_KILOMETER = 1000.0


def value_field_for(data_source_id: str) -> str:
    """Return the value field for a data source.

    Raises:
        ProviderContractError: If the data source is not one this client requests.
    """
    try:
        return _VALUE_FIELDS[data_source_id]
    except KeyError:
        raise ProviderContractError(
            f"Unrecognized Google Fit dataSourceId: {data_source_id!r}",
            provider_name="Google Fit",
        ) from None


class GoogleFitClient:
    """Wrapper around the Google Fit REST API.

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
            base_url: API root, e.g. ``https://www.googleapis.com/fitness/v1``
                (defaults to settings)
            timeout: Per-request timeout in seconds (defaults to settings)
            transport: Optional httpx transport, used by tests
        """
        self._base_url = base_url or settings.GOOGLE_FIT_API_URL
        self._timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def platform(self) -> Platform:
        """Return the platform this client talks to."""
        return Platform.GOOGLE

    def is_configured(self) -> bool:
        """Check if a Google Fit API URL is configured."""
        return bool(self._base_url)

    @staticmethod
    def build_request_body(data_source_id: str, start: date, span: timedelta) -> dict:
        """Build a ``dataset:aggregate`` body covering one bucket of ``span``.

        Args:
            data_source_id: The data source to aggregate.
            start: First day of the window (midnight UTC).
            span: Window length.

        Returns:
            The JSON body for the aggregate request.
        """
        start_millis = epoch_millis(start)
        duration_millis = int(span.total_seconds() * 1000)
        return {
            "aggregateBy": [{"dataSourceId": data_source_id}],
            "bucketByTime": {"durationMillis": duration_millis},
            "startTimeMillis": start_millis,
            "endTimeMillis": start_millis + duration_millis,
        }

    def _aggregate(
        self, credential: ProviderCredential, kind: MetricKind, start: date, span: timedelta
    ) -> list[float]:
        """Run an aggregate query and return the point values in order.

        Raises:
            ProviderAPIError: If the response carries an error object.
            ProviderContractError: If a dataset names an unknown data source.
            ProviderDataError: If the response shape is malformed.
        """
        body = self.build_request_body(_DATA_SOURCES[kind], start, span)
        with httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            payload = request_json(
                client,
                "POST",
                AGGREGATE_ENDPOINT,
                "Google Fit",
                headers=auth_headers(credential),
                json=body,
            )

        if not isinstance(payload, dict):
            raise ProviderDataError(
                "Google Fit response was not a JSON object", provider_name="Google Fit"
            )

        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            logger.error(
                "Google Fit: bad response (code %s): %s",
                error.get("code"),
                error.get("message"),
            )
            raise ProviderAPIError(
                f"Google Fit error: {error.get('message')}",
                provider_name="Google Fit",
                status_code=error.get("code") if isinstance(error.get("code"), int) else None,
            )

        values: list[float] = []
        for bucket in payload.get("bucket") or []:
            for dataset in bucket.get("dataset") or []:
                points = dataset.get("point") or []
                if not points:
                    continue
                field = value_field_for(dataset.get("dataSourceId", ""))
                for point in points:
                    values.append(self._point_value(point, field))
        return values

    @staticmethod
    def _point_value(point: dict, field: str) -> float:
        """Extract the typed value of a point's first value entry."""
        try:
            raw = point["value"][0][field]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderDataError(
                f"Google Fit point is missing its {field} value",
                provider_name="Google Fit",
            ) from exc
        value = parse_number(raw)
        if value is None:
            raise ProviderDataError(
                f"Google Fit returned a non-numeric {field}: {raw!r}",
                provider_name="Google Fit",
            )
        return value

    def _to_record(self, kind: MetricKind, value: float) -> MetricRecord:
        if kind is MetricKind.DISTANCE:
            value = value / _METERS_PER_KILOMETER
        return MetricRecord(platform=self.platform, value=kind.coerce(value))

    def fetch(
        self, credential: ProviderCredential, kind: MetricKind, day: date
    ) -> MetricRecord | None:
        """Fetch a day's value from the first returned point.

        Returns:
            The record, or None if Google Fit returned no points.
        """
        values = self._aggregate(credential, kind, day, timedelta(days=1))
        if not values:
            return None
        return self._to_record(kind, values[0])

    def fetch_over_period(
        self,
        credential: ProviderCredential,
        kind: MetricKind,
        start: date,
        period: Period,
    ) -> MetricRecord | None:
        """Sum every returned point over ``period``.

        Returns:
            The record, or None if Google Fit returned no points.
        """
        values = self._aggregate(credential, kind, start, period.span)
        if not values:
            return None
        return self._to_record(kind, sum(values))
