"""Credential store: username/password validation against Argon2id hashes.

Security properties:
- Unknown usernames still pay for one full hash verification against
  DUMMY_HASH, so "no such user" and "wrong password" take the same time.
- Hash parameters are fixed module constants, never chosen per call.
- Verification is CPU-bound (tens of milliseconds), so it runs in a worker
  thread via asyncio.to_thread instead of blocking the event loop.
- Callers see InvalidCredentialsError or AuthUnexpectedError; the HTTP
  boundary collapses both into one "Authentication failed" response.
"""

import asyncio
import secrets
import uuid
from dataclasses import dataclass

import structlog
from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from pydantic import SecretStr
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.domain.errors import AuthUnexpectedError, InvalidCredentialsError
from newsletter.repositories.user_repository import UserRepository

logger = structlog.get_logger()

# Argon2id cost parameters (memory in KiB)
ARGON2_MEMORY_COST = 15000
ARGON2_TIME_COST = 2
ARGON2_PARALLELISM = 1

_PASSWORD_HASHER = PasswordHasher(
    time_cost=ARGON2_TIME_COST,
    memory_cost=ARGON2_MEMORY_COST,
    parallelism=ARGON2_PARALLELISM,
    type=Type.ID,
)

# Decoy hash verified when the username does not exist. Built with the same
# hasher so a decoy verification costs exactly what a real one does.
DUMMY_HASH = _PASSWORD_HASHER.hash(secrets.token_urlsafe(32))


@dataclass(frozen=True)
class Credentials:
    """Username/password pair for a single validation call. Never persisted."""

    username: str
    password: SecretStr


def compute_password_hash(password: SecretStr) -> str:
    """Hash a password with the fixed Argon2id parameters.

    Args:
        password: Plaintext password.

    Returns:
        PHC-formatted hash string (``$argon2id$v=19$m=15000,t=2,p=1$...``).
    """
    return _PASSWORD_HASHER.hash(password.get_secret_value())


def verify_password_hash(expected_password_hash: str, password: SecretStr) -> None:
    """Verify ``password`` against a stored PHC hash.

    Blocking; call through asyncio.to_thread from async code.

    Raises:
        InvalidCredentialsError: If the password does not match.
        AuthUnexpectedError: If the stored hash cannot be parsed or verified.
    """
    try:
        _PASSWORD_HASHER.verify(expected_password_hash, password.get_secret_value())
    except VerifyMismatchError as exc:
        raise InvalidCredentialsError("Invalid password.") from exc
    except (InvalidHashError, VerificationError) as exc:
        raise AuthUnexpectedError("Failed to verify the stored password hash.") from exc


async def validate_credentials(db: AsyncSession, credentials: Credentials) -> uuid.UUID:
    """Check a username/password pair.

    Args:
        db: Async database session (read-only use).
        credentials: Submitted username and password.

    Returns:
        The matching user's id.

    Raises:
        InvalidCredentialsError: Unknown username or wrong password.
        AuthUnexpectedError: Database failure or malformed stored hash.
    """
    try:
        stored = await UserRepository.get_stored_credential(db, credentials.username)
    except SQLAlchemyError as exc:
        raise AuthUnexpectedError("Failed to retrieve stored credentials.") from exc

    user_id: uuid.UUID | None = None
    expected_password_hash = DUMMY_HASH
    if stored is not None:
        user_id = stored.user_id
        expected_password_hash = stored.password_hash

    # Always verify, even for unknown users (timing equalization)
    await asyncio.to_thread(
        verify_password_hash, expected_password_hash, credentials.password
    )

    if user_id is None:
        raise InvalidCredentialsError("Unknown username.")

    logger.info("credentials_validated", user_id=str(user_id))
    return user_id
