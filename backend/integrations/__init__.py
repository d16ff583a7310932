"""External fitness platform integrations.

This package contains:
- Provider protocol: canonical metric types and the adapter interface
- Provider registry: tracks the configured adapters in reporting order
- Fitbit, Google Fit and Strava clients
"""

from integrations.provider_protocol import (
    MetricKind,
    MetricRecord,
    Period,
    Platform,
    ProviderClient,
    ProviderCredential,
)
from integrations.provider_registry import ProviderRegistry, get_provider_registry

__all__ = [
    "MetricKind",
    "MetricRecord",
    "Period",
    "Platform",
    "ProviderClient",
    "ProviderCredential",
    "ProviderRegistry",
    "get_provider_registry",
]
