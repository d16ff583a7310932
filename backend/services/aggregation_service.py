"""Aggregation service - fans a metric query out to a user's linked platforms."""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from integrations.exceptions import ProviderContractError, ProviderError
from integrations.provider_protocol import (
    PLATFORM_ORDER,
    MetricKind,
    MetricRecord,
    Period,
    Platform,
    ProviderClient,
    ProviderCredential,
)
from integrations.provider_registry import ProviderRegistry, get_provider_registry
from services.user_service import UserService

logger = logging.getLogger(__name__)

ALL_PROVIDERS_FAILED_MESSAGE = "could not connect to any platforms, try again later"


class AggregationUnavailableError(Exception):
    """Raised when every provider attempted for a request failed or timed out."""

    def __init__(self, message: str = ALL_PROVIDERS_FAILED_MESSAGE):
        super().__init__(message)


@dataclass
class AggregationResult:
    """Merged records for one request, in fixed platform order.

    ``failed`` and ``timed_out`` list the platforms whose calls did not
    produce an answer; they are for logging and never serialized.
    """

    records: list[MetricRecord] = field(default_factory=list)
    failed: list[Platform] = field(default_factory=list)
    timed_out: list[Platform] = field(default_factory=list)


def select_largest(records: list[MetricRecord]) -> list[MetricRecord]:
    """Reduce records to the one with the largest value.

    Ties go to the earliest record, so with records in platform order an
    earlier-listed platform wins.
    """
    best: MetricRecord | None = None
    for record in records:
        if best is None or record.value > best.value:
            best = record
    return [best] if best is not None else []


class AggregationService:
    """Service for querying a user's linked platforms and merging the answers."""

    # Time allowed on top of the per-call HTTP timeout before a call is abandoned
    JOIN_GRACE_SECONDS = 2.0

    def __init__(
        self,
        provider_registry: Optional[ProviderRegistry] = None,
        join_timeout: Optional[float] = None,
    ):
        """Initialize with optional provider registry for dependency injection.

        Args:
            provider_registry: Registry of configured platform clients. If None,
                              a default registry will be created on first use.
            join_timeout: Seconds to wait for all platform calls. Defaults to
                          the provider timeout plus a small grace period.
        """
        self._registry = provider_registry
        if join_timeout is None:
            join_timeout = settings.PROVIDER_TIMEOUT_SECONDS + self.JOIN_GRACE_SECONDS
        self._join_timeout = join_timeout

    @property
    def registry(self) -> ProviderRegistry:
        """Get the provider registry, creating default if not provided."""
        if self._registry is None:
            self._registry = get_provider_registry()
        return self._registry

    def aggregate(
        self,
        db: Session,
        user_id: int,
        kind: MetricKind,
        day: date,
        largest_only: bool = False,
        period: Optional[Period] = None,
    ) -> AggregationResult:
        """Query every linked platform concurrently and merge the records.

        Args:
            db: Database session (read-only, used on the calling thread only)
            user_id: User whose data is aggregated
            kind: Metric to fetch
            day: Requested date, or the first day of ``period``
            largest_only: Reduce the result to the single largest record
            period: If set, fetch totals over this period instead of one day

        Returns:
            The merged result. A user without links gets an empty result.

        Raises:
            AggregationUnavailableError: If every attempted platform failed.
        """
        credentials = UserService.get_credentials(db, user_id)
        if not credentials:
            logger.info("User %d has no linked providers", user_id)
            return AggregationResult()

        tasks: dict[Platform, tuple[ProviderClient, ProviderCredential]] = {}
        for platform in PLATFORM_ORDER:
            credential = credentials.get(platform)
            if credential is None:
                continue
            if not self.registry.is_configured(platform):
                logger.warning(
                    "User %d is linked to %s but the provider is not configured",
                    user_id,
                    platform.value,
                )
                continue
            tasks[platform] = (self.registry.get_provider(platform), credential)

        if not tasks:
            return AggregationResult()

        result = self._fan_out(tasks, user_id, kind, day, period)

        attempted = len(tasks)
        if len(result.failed) + len(result.timed_out) == attempted:
            logger.error(
                "All %d provider(s) failed for user %d (%s on %s)",
                attempted,
                user_id,
                kind.value,
                day.isoformat(),
            )
            raise AggregationUnavailableError()

        if largest_only:
            result.records = select_largest(result.records)

        logger.info(
            "Aggregated %s for user %d on %s: %d record(s), %d failed, %d timed out",
            kind.value,
            user_id,
            day.isoformat(),
            len(result.records),
            len(result.failed),
            len(result.timed_out),
        )
        return result

    def _fan_out(
        self,
        tasks: dict[Platform, tuple[ProviderClient, ProviderCredential]],
        user_id: int,
        kind: MetricKind,
        day: date,
        period: Optional[Period],
    ) -> AggregationResult:
        """Run every platform call on its own thread and join them all.

        Calls still running at the join deadline are abandoned: the
        executor is shut down without waiting, and each client's own HTTP
        timeout releases its connection.
        """
        executor = ThreadPoolExecutor(
            max_workers=len(tasks), thread_name_prefix="provider-fetch"
        )
        try:
            futures = {
                executor.submit(self._call_provider, client, credential, kind, day, period): platform
                for platform, (client, credential) in tasks.items()
            }
            _, not_done = wait(futures, timeout=self._join_timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        result = AggregationResult()
        present: dict[Platform, MetricRecord] = {}
        for future, platform in futures.items():
            if future in not_done:
                future.cancel()
                result.timed_out.append(platform)
                logger.warning(
                    "%s timed out after %.1fs for user %d",
                    platform.value,
                    self._join_timeout,
                    user_id,
                )
                continue

            try:
                record = future.result()
            except ProviderContractError as e:
                result.failed.append(platform)
                logger.error("%s contract violation for user %d: %s", platform.value, user_id, e)
            except ProviderError as e:
                result.failed.append(platform)
                logger.warning("%s failed for user %d: %s", platform.value, user_id, e)
            except Exception:
                result.failed.append(platform)
                logger.error(
                    "Unexpected error from %s for user %d",
                    platform.value,
                    user_id,
                    exc_info=True,
                )
            else:
                if record is None:
                    logger.debug("%s has no %s data for user %d", platform.value, kind.value, user_id)
                else:
                    present[platform] = record

        result.records = [present[p] for p in PLATFORM_ORDER if p in present]
        return result

    @staticmethod
    def _call_provider(
        client: ProviderClient,
        credential: ProviderCredential,
        kind: MetricKind,
        day: date,
        period: Optional[Period],
    ) -> MetricRecord | None:
        if period is None:
            return client.fetch(credential, kind, day)
        return client.fetch_over_period(credential, kind, day, period)
