"""Client registry - signup, signin and callback management for API clients."""

import hashlib
import hmac
import logging
import secrets
import threading

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Client

logger = logging.getLogger(__name__)

PBKDF2_ALGORITHM = "pbkdf2_sha256"
PBKDF2_ITERATIONS = 600_000
_SALT_BYTES = 16


class RegistryError(Exception):
    """Base class for registry failures.

    ``str(error)`` is the message returned to the API client.
    """

    message = "Registry error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class MissingFieldError(RegistryError):
    """A required form field was absent or empty."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Expected parameter '{field}' in request")


class ClientNameTakenError(RegistryError):
    message = "Client name already taken"


class IncorrectPasswordError(RegistryError):
    """Wrong password, or no client with that name.

    The two cases share one message so signin cannot be used to discover
    which client names exist.
    """

    message = "Incorrect password"


class InvalidClientIdError(RegistryError):
    message = "clientID must be an integer"


class ClientNotFoundError(RegistryError):
    message = "clientID does not match any registered client"


def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Hash a password with a fresh random salt.

    Returns:
        ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``
    """
    salt = secrets.token_bytes(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{PBKDF2_ALGORITHM}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a value produced by :func:`hash_password`."""
    try:
        algorithm, iterations, salt_hex, hash_hex = encoded.split("$")
        if algorithm != PBKDF2_ALGORITHM:
            return False
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
        rounds = int(iterations)
    except ValueError:
        logger.error("Stored password hash has an unknown format")
        return False

    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(digest, expected)


def parse_client_id(raw) -> int:
    """Parse a client id taken from a URL path.

    Raises:
        InvalidClientIdError: If ``raw`` is not an integer.
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidClientIdError() from None


def _require(value: str | None, field: str) -> str:
    if value is None or value == "":
        raise MissingFieldError(field)
    return value


class ClientRegistry:
    """Registered API clients.

    One instance lives for the application's lifetime.  Its lock
    serializes every mutation, so a name check and the insert that
    follows it cannot interleave with another signup; the unique
    constraint on ``clients.name`` backs this up across instances.
    Password hashing happens outside the lock.
    """

    def __init__(self, password_iterations: int = PBKDF2_ITERATIONS):
        """Initialize the registry.

        Args:
            password_iterations: PBKDF2 rounds for newly stored passwords.
        """
        self._lock = threading.Lock()
        self._iterations = password_iterations
        # Hash checked for unknown names so they cost as much as known ones
        self._decoy_hash = hash_password(secrets.token_hex(8), iterations=password_iterations)

    def signup(self, db: Session, name: str | None, password: str | None) -> Client:
        """Register a new client.

        Args:
            db: Database session
            name: Unique client name (case-sensitive)
            password: Plain-text password, stored salted and hashed

        Returns:
            The committed Client with its new id.

        Raises:
            MissingFieldError: If name or password is missing (name checked first).
            ClientNameTakenError: If the name is already registered.
        """
        name = _require(name, "name")
        password = _require(password, "password")
        password_hash = hash_password(password, iterations=self._iterations)

        with self._lock:
            if db.query(Client.id).filter(Client.name == name).first() is not None:
                logger.info("Signup rejected, name taken: %s", name)
                raise ClientNameTakenError()

            client = Client(name=name, password_hash=password_hash)
            db.add(client)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info("Signup rejected, name taken (concurrent insert): %s", name)
                raise ClientNameTakenError() from None
            db.refresh(client)

        logger.info("Registered client %d (%s)", client.id, client.name)
        return client

    def signin(self, db: Session, name: str | None, password: str | None) -> Client:
        """Verify a client's password.

        Raises:
            MissingFieldError: If name or password is missing.
            IncorrectPasswordError: If the name is unknown or the password is wrong.
        """
        name = _require(name, "name")
        password = _require(password, "password")

        client = db.query(Client).filter(Client.name == name).first()
        if client is None:
            verify_password(password, self._decoy_hash)
            logger.info("Signin failed for unknown client name")
            raise IncorrectPasswordError()

        if not verify_password(password, client.password_hash):
            logger.info("Signin failed for client %d: incorrect password", client.id)
            raise IncorrectPasswordError()

        logger.info("Client %d signed in", client.id)
        return client

    def update_callback(self, db: Session, client_id, callback: str | None) -> Client:
        """Replace a client's callback URL.

        Args:
            db: Database session
            client_id: Raw client id from the request path
            callback: New callback URL

        Returns:
            The updated Client.

        Raises:
            InvalidClientIdError: If client_id is not an integer (checked first).
            MissingFieldError: If callback is missing.
            ClientNotFoundError: If no client has that id.
        """
        cid = parse_client_id(client_id)
        callback = _require(callback, "callback")

        with self._lock:
            client = db.get(Client, cid)
            if client is None:
                raise ClientNotFoundError()
            client.callback = callback
            db.commit()
            db.refresh(client)

        logger.info("Updated callback for client %d", cid)
        return client

    def get_callback(self, db: Session, client_id) -> str | None:
        """Return a client's callback URL (None if never set).

        Raises:
            InvalidClientIdError: If client_id is not an integer.
            ClientNotFoundError: If no client has that id.
        """
        client = db.get(Client, parse_client_id(client_id))
        if client is None:
            raise ClientNotFoundError()
        return client.callback

    def get(self, db: Session, client_id: int) -> Client | None:
        """Look up a client by id."""
        return db.get(Client, client_id)
