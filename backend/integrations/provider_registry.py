"""Provider registry for managing the fitness platform adapters.

The registry is responsible for:
- Initializing and tracking available platform clients
- Providing access to a specific client by platform
- Listing configured platforms in the fixed reporting order
"""

import importlib
import logging

from integrations.provider_protocol import PLATFORM_ORDER, Platform, ProviderClient

logger = logging.getLogger(__name__)

# Each tuple is (platform, module_path, class_name).
# Adding a new platform only requires appending one entry here.
PROVIDER_DEFINITIONS: list[tuple[Platform, str, str]] = [
    (Platform.FITBIT, "integrations.fitbit_client", "FitbitClient"),
    (Platform.GOOGLE, "integrations.google_fit_client", "GoogleFitClient"),
    (Platform.STRAVA, "integrations.strava_client", "StravaClient"),
]


class ProviderRegistry:
    """Registry for managing the platform clients.

    This class manages the lifecycle of platform clients and provides
    a unified interface for accessing them.

    Example:
        registry = ProviderRegistry()
        registry.initialize_default_providers()
        if registry.is_configured(Platform.FITBIT):
            client = registry.get_provider(Platform.FITBIT)
            record = client.fetch(credential, MetricKind.STEPS, day)
    """

    def __init__(self):
        """Initialize the registry with no providers.

        Call register_provider() to add providers, or use
        initialize_default_providers() to auto-detect configured providers.
        """
        self._providers: dict[Platform, ProviderClient] = {}

    def register_provider(self, provider: ProviderClient) -> None:
        """Register a platform client, replacing any client for the same platform.

        Args:
            provider: A client implementing the ProviderClient protocol.
        """
        self._providers[provider.platform] = provider

    def get_provider(self, platform: Platform) -> ProviderClient:
        """Get the client for a platform.

        Args:
            platform: The platform to look up.

        Returns:
            The platform client.

        Raises:
            ValueError: If the platform is not registered/configured.
        """
        if platform not in self._providers:
            raise ValueError(f"Provider '{platform.value}' is not configured")
        return self._providers[platform]

    def list_providers(self) -> list[Platform]:
        """List registered platforms in the fixed reporting order.

        Returns:
            Registered platforms, ordered fitbit, google, strava.
        """
        return [p for p in PLATFORM_ORDER if p in self._providers]

    def is_configured(self, platform: Platform) -> bool:
        """Check if a platform has a registered client.

        Args:
            platform: The platform to check.

        Returns:
            True if the platform is registered, False otherwise.
        """
        return platform in self._providers

    def initialize_default_providers(self) -> None:
        """Auto-detect and initialize all configured platform clients.

        Each import is wrapped in try/except so a broken module for one
        platform never prevents the rest from initializing.
        """
        for platform, module_path, class_name in PROVIDER_DEFINITIONS:
            try:
                module = importlib.import_module(module_path)
                cls = getattr(module, class_name)
                self._try_init_provider(platform, cls)
            except ImportError:
                logger.warning("Provider skipped (import failed): %s", platform.value, exc_info=True)

        names = [p.value for p in self.list_providers()]
        if names:
            logger.info("Active providers: %s", ", ".join(names))
        else:
            logger.warning("No providers configured")

    def _try_init_provider(self, platform: Platform, cls: type) -> None:
        """Attempt to instantiate and register a single platform client.

        Args:
            platform: Platform, for logging.
            cls: Client class to instantiate.
        """
        try:
            instance = cls()
            if instance.is_configured():
                self.register_provider(instance)
                logger.debug("Provider registered: %s", platform.value)
            else:
                logger.info("Provider skipped (no API URL configured): %s", platform.value)
        except Exception:
            logger.warning(
                "Provider failed to initialize: %s", platform.value, exc_info=True
            )


def get_provider_registry() -> ProviderRegistry:
    """Create and return a provider registry with default providers.

    Returns:
        A ProviderRegistry with all configured platform clients registered.
    """
    registry = ProviderRegistry()
    registry.initialize_default_providers()
    return registry
