"""Provider protocol definitions for multi-platform support.

This module defines the canonical types every fitness platform adapter
(Fitbit, Google Fit, Strava) maps its responses to, and the common
interface the aggregation service calls.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Protocol


class Platform(str, Enum):
    """Upstream fitness platform.

    Declaration order is the fixed order results are reported in.
    """

    FITBIT = "fitbit"
    GOOGLE = "google"
    STRAVA = "strava"


PLATFORM_ORDER: tuple[Platform, ...] = tuple(Platform)


class MetricKind(str, Enum):
    """Metric being aggregated.

    Canonical units: steps are a count, calories are kilocalories and
    distance is kilometers.
    """

    STEPS = "steps"
    CALORIES = "calories"
    DISTANCE = "distance"

    def coerce(self, value: float) -> int | float:
        """Cast a canonical-unit value to this kind's number type.

        Steps and calories are whole numbers (truncated, as the platforms
        report fractional calories); distance stays a float.
        """
        if self is MetricKind.DISTANCE:
            return float(value)
        return int(value)


class Period(str, Enum):
    """Length of an over-period query, starting at the requested date."""

    ONE_DAY = "1d"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"

    @property
    def span(self) -> timedelta:
        """Return the period length."""
        return timedelta(days=_PERIOD_DAYS[self])


_PERIOD_DAYS: dict[Period, int] = {
    Period.ONE_DAY: 1,
    Period.SEVEN_DAYS: 7,
    Period.THIRTY_DAYS: 30,
    Period.ONE_WEEK: 7,
    Period.ONE_MONTH: 30,
    Period.THREE_MONTHS: 90,
    Period.SIX_MONTHS: 180,
}


@dataclass(frozen=True)
class ProviderCredential:
    """A user's credential for one platform, detached from the database."""

    platform: Platform
    access_token: str
    external_user_id: str | None = None  # Platform's id for the user (if known)

    def __repr__(self) -> str:
        return (
            f"ProviderCredential(platform={self.platform.value!r}, "
            f"external_user_id={self.external_user_id!r}, access_token='***')"
        )


@dataclass(frozen=True)
class MetricRecord:
    """Normalized metric value from one platform.

    All provider clients must map their responses to this format.
    """

    platform: Platform
    value: int | float  # int for steps/calories, float kilometers for distance

    def to_dict(self) -> dict:
        """Return the JSON-ready ``{"platform", "value"}`` form."""
        return {"platform": self.platform.value, "value": self.value}


class ProviderClient(Protocol):
    """Protocol that all platform adapters must implement.

    Adapters return ``None`` when the platform has no data for the
    request, and raise a :class:`~integrations.exceptions.ProviderError`
    subclass when the platform call fails.
    """

    @property
    def platform(self) -> Platform:
        """Return the platform this adapter talks to."""
        ...

    def is_configured(self) -> bool:
        """Check if this adapter has an upstream base URL configured."""
        ...

    def fetch(
        self, credential: ProviderCredential, kind: MetricKind, day: date
    ) -> MetricRecord | None:
        """Fetch a single day's value for a metric.

        Args:
            credential: The user's credential for this platform.
            kind: The metric to fetch.
            day: Calendar date (no time component).

        Returns:
            The normalized record, or None if there is no data.

        Raises:
            ProviderError: If the platform call fails.
        """
        ...

    def fetch_over_period(
        self,
        credential: ProviderCredential,
        kind: MetricKind,
        start: date,
        period: Period,
    ) -> MetricRecord | None:
        """Fetch the total of a metric over a period starting at ``start``.

        Returns:
            The normalized record, or None if there is no data.

        Raises:
            ProviderError: If the platform call fails.
        """
        ...
