"""Keyring-backed storage for service secrets.

Provides a thin wrapper around the ``keyring`` library to store and
retrieve secrets in the OS keychain (or any other backend supported by
keyring).  The ``keyring`` import is lazy so the rest of the app works
even if no keyring backend is installed.
"""

import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "fitness-aggregator"

CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {
        "TOKEN_SECRET",
    }
)


def get_credential(key: str) -> str | None:
    """Retrieve a credential from the keychain.

    Args:
        key: The credential name (e.g. ``"TOKEN_SECRET"``).

    Returns:
        The credential value, or ``None`` if not found or keyring
        is unavailable.
    """
    try:
        import keyring
    except ImportError:
        return None

    try:
        return keyring.get_password(SERVICE_NAME, key)
    except Exception:
        logger.debug("keyring lookup failed for %s", key, exc_info=True)
        return None


def set_credential(key: str, value: str) -> bool:
    """Store a credential in the keychain.

    Only keys listed in :data:`CREDENTIAL_KEYS` are accepted.

    Args:
        key: The credential name (must be in ``CREDENTIAL_KEYS``).
        value: The credential value (must be non-empty).

    Returns:
        ``True`` if stored successfully, ``False`` otherwise.
    """
    if key not in CREDENTIAL_KEYS:
        logger.warning("Attempted to store non-credential key: %s", key)
        return False
    if not value or not value.strip():
        logger.warning("Attempted to store empty value for %s", key)
        return False

    try:
        import keyring
    except ImportError:
        logger.warning("keyring is not installed; cannot store credentials")
        return False

    try:
        keyring.set_password(SERVICE_NAME, key, value)
        logger.info("Stored %s in keychain", key)
        return True
    except Exception:
        logger.warning("Failed to store %s in keychain", key, exc_info=True)
        return False
