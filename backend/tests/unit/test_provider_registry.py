"""Unit tests for the provider registry and protocol."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from integrations.provider_protocol import (
    PLATFORM_ORDER,
    MetricKind,
    Period,
    Platform,
    ProviderCredential,
)
from integrations.provider_registry import (
    PROVIDER_DEFINITIONS,
    ProviderRegistry,
)
from tests.fixtures.mocks import MockProviderClient


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_empty_registry(self):
        """A new registry has no providers."""
        registry = ProviderRegistry()
        assert registry.list_providers() == []

    def test_register_provider(self):
        """Can register a provider."""
        registry = ProviderRegistry()
        registry.register_provider(MockProviderClient(Platform.GOOGLE))

        assert registry.list_providers() == [Platform.GOOGLE]
        assert registry.is_configured(Platform.GOOGLE)

    def test_list_providers_in_platform_order(self):
        """Providers are listed fitbit, google, strava regardless of registration order."""
        registry = ProviderRegistry()
        registry.register_provider(MockProviderClient(Platform.STRAVA))
        registry.register_provider(MockProviderClient(Platform.FITBIT))
        registry.register_provider(MockProviderClient(Platform.GOOGLE))

        assert registry.list_providers() == [Platform.FITBIT, Platform.GOOGLE, Platform.STRAVA]

    def test_get_provider(self):
        """Can retrieve a registered provider."""
        registry = ProviderRegistry()
        provider = MockProviderClient(Platform.FITBIT)
        registry.register_provider(provider)

        assert registry.get_provider(Platform.FITBIT) is provider

    def test_get_unknown_provider_raises(self):
        """Getting an unregistered provider raises ValueError."""
        registry = ProviderRegistry()
        with pytest.raises(ValueError, match="not configured"):
            registry.get_provider(Platform.STRAVA)

    def test_register_replaces_same_platform(self):
        """Registering twice for one platform keeps the latest client."""
        registry = ProviderRegistry()
        first = MockProviderClient(Platform.FITBIT, value=1)
        second = MockProviderClient(Platform.FITBIT, value=2)
        registry.register_provider(first)
        registry.register_provider(second)

        assert registry.get_provider(Platform.FITBIT) is second
        assert registry.list_providers() == [Platform.FITBIT]


class TestInitializeDefaultProviders:
    """Tests for initialize_default_providers()."""

    def test_definitions_cover_every_platform(self):
        assert [platform for platform, _, _ in PROVIDER_DEFINITIONS] == list(PLATFORM_ORDER)

    def test_registers_configured_clients(self):
        """All three real clients register when their URLs are set."""
        registry = ProviderRegistry()
        registry.initialize_default_providers()
        assert registry.list_providers() == [Platform.FITBIT, Platform.GOOGLE, Platform.STRAVA]

    def test_skips_unconfigured_client(self):
        """A client reporting is_configured() False is not registered."""
        registry = ProviderRegistry()
        unconfigured = MagicMock()
        unconfigured.return_value.is_configured.return_value = False

        registry._try_init_provider(Platform.STRAVA, unconfigured)

        assert not registry.is_configured(Platform.STRAVA)

    def test_constructor_failure_is_isolated(self):
        """A client whose constructor raises is skipped, not propagated."""
        registry = ProviderRegistry()
        broken = MagicMock(side_effect=RuntimeError("boom"))

        registry._try_init_provider(Platform.FITBIT, broken)

        assert registry.list_providers() == []

    def test_import_failure_is_isolated(self):
        """An import error for one platform doesn't block the others."""
        definitions = [
            (Platform.FITBIT, "integrations.does_not_exist", "Nope"),
            (Platform.STRAVA, "integrations.strava_client", "StravaClient"),
        ]
        registry = ProviderRegistry()
        with patch("integrations.provider_registry.PROVIDER_DEFINITIONS", definitions):
            registry.initialize_default_providers()

        assert registry.list_providers() == [Platform.STRAVA]


class TestProtocolTypes:
    """Tests for the canonical protocol types."""

    def test_platform_order(self):
        assert [p.value for p in PLATFORM_ORDER] == ["fitbit", "google", "strava"]

    def test_coerce_steps_and_calories_to_int(self):
        assert MetricKind.STEPS.coerce(2020.9) == 2020
        assert isinstance(MetricKind.CALORIES.coerce(10.0), int)

    def test_coerce_distance_to_float(self):
        value = MetricKind.DISTANCE.coerce(3)
        assert value == 3.0
        assert isinstance(value, float)

    @pytest.mark.parametrize(
        "period,days",
        [
            (Period.ONE_DAY, 1),
            (Period.SEVEN_DAYS, 7),
            (Period.ONE_WEEK, 7),
            (Period.ONE_MONTH, 30),
            (Period.SIX_MONTHS, 180),
        ],
    )
    def test_period_span(self, period, days):
        assert period.span == timedelta(days=days)

    def test_credential_repr_masks_token(self):
        credential = ProviderCredential(platform=Platform.FITBIT, access_token="secret-token")
        assert "secret-token" not in repr(credential)
