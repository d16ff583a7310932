"""Session token service - signed, time-bounded bearer tokens for clients.

Tokens are HS256 JSON Web Tokens naming the client (``sub``), the issuer,
and issue/expiry times.
"""

import logging
import secrets
import time
from datetime import timedelta
from functools import lru_cache

import jwt

from config import settings

logger = logging.getLogger(__name__)

TOKEN_ISSUER = "fitness-aggregator"
TOKEN_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["sub", "iss", "iat", "exp"]


class InvalidTokenError(Exception):
    """Token is malformed, tampered with, expired, or from another issuer."""

    pass


class TokenService:
    """Issues and verifies client session tokens."""

    def __init__(self, secret: str, ttl: timedelta = timedelta(hours=1)):
        """Initialize with a signing secret.

        Args:
            secret: HMAC key. Anyone holding it can mint tokens.
            ttl: How long an issued token stays valid.
        """
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._key = secret
        self._ttl = ttl

    def issue(self, client_id: int, now: float | None = None) -> str:
        """Issue a token for a client.

        Args:
            client_id: The authenticated client.
            now: Issue time in Unix seconds (defaults to the current time).

        Returns:
            The encoded token.
        """
        issued_at = int(now if now is not None else time.time())
        payload = {
            "sub": str(client_id),
            "iss": TOKEN_ISSUER,
            "iat": issued_at,
            "exp": issued_at + int(self._ttl.total_seconds()),
        }
        return jwt.encode(payload, self._key, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> int:
        """Verify a token and return the client id it was issued to.

        Raises:
            InvalidTokenError: If the token does not verify.
        """
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[TOKEN_ALGORITHM],
                issuer=TOKEN_ISSUER,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token expired") from None
        except jwt.InvalidSignatureError:
            raise InvalidTokenError("Bad token signature") from None
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from None

        try:
            return int(payload["sub"])
        except (TypeError, ValueError):
            raise InvalidTokenError("Token subject is not a client id") from None


def _resolve_token_secret() -> str:
    """Determine the signing secret.

    A configured ``TOKEN_SECRET`` (keychain or environment) wins.  Without
    one, a new random secret is generated and stored in the keychain so
    tokens survive restarts; if the keychain is unavailable the secret
    lives only as long as the process.
    """
    if settings.TOKEN_SECRET:
        return settings.TOKEN_SECRET

    secret = secrets.token_hex(32)
    from services.credential_manager import set_credential

    if set_credential("TOKEN_SECRET", secret):
        logger.info("Generated new token secret and stored it in keychain")
    else:
        logger.warning(
            "Could not store token secret in keychain; issued tokens will "
            "stop verifying when the process restarts"
        )
    return secret


@lru_cache
def get_token_service() -> TokenService:
    """Get the application's token service (cached)."""
    return TokenService(
        _resolve_token_secret(),
        ttl=timedelta(minutes=settings.TOKEN_TTL_MINUTES),
    )
