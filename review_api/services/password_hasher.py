"""bcrypt password hashing, run off the event loop."""

import asyncio

import bcrypt
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of input
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Adaptive one-way password hashing with a per-call random salt."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash_sync(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string embedding salt and work factor
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def verify_sync(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches; False on mismatch or a malformed hash
        """
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("password_hash_malformed")
            return False

    async def hash(self, password: str) -> str:
        """Hash on a worker thread so slow rounds never block other requests."""
        return await asyncio.to_thread(self.hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        """Verify on a worker thread."""
        return await asyncio.to_thread(self.verify_sync, password, password_hash)
