"""Password hashing utilities."""

import hashlib
import hmac
import secrets
from typing import Optional

from ..config import get_config

HASH_ALGORITHM = "pbkdf2_sha256"
SALT_BYTES = 32


def _pbkdf2(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(
    password: str, salt: Optional[bytes] = None, iterations: Optional[int] = None
) -> str:
    """
    Hash a password using PBKDF2-HMAC-SHA256.

    Args:
        password: The plain text password to hash
        salt: Optional salt bytes. If None, generates a secure random salt.
        iterations: Optional iteration count. Defaults to the configured value.

    Returns:
        str: ``pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>`` for storage

    Raises:
        ValueError: If the password is empty
    """
    if not password:
        raise ValueError("Password cannot be empty")

    if salt is None:
        salt = secrets.token_bytes(SALT_BYTES)
    if iterations is None:
        iterations = get_config().app.password_hash_iterations

    password_hash = _pbkdf2(password, salt, iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt.hex()}${password_hash.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """
    Verify a password against a value produced by :func:`hash_password`.

    Args:
        password: The plain text password to verify
        stored_hash: The encoded hash from storage

    Returns:
        bool: True if password is valid, False otherwise
    """
    if not password or not stored_hash:
        return False

    try:
        algorithm, iterations_str, salt_hex, hash_hex = stored_hash.split("$")
        if algorithm != HASH_ALGORITHM:
            return False
        iterations = int(iterations_str)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except (ValueError, TypeError):
        # Wrong field count, invalid hex encoding or non-numeric iterations
        return False

    computed_hash = _pbkdf2(password, salt, iterations)

    # Use constant-time comparison to prevent timing attacks
    return hmac.compare_digest(computed_hash, expected)


def dummy_verify(password: str) -> None:
    """Spend the same work as a real verification.

    Used when a login names an unknown email so the response time does not
    reveal whether the account exists.
    """
    iterations = get_config().app.password_hash_iterations
    hmac.compare_digest(
        _pbkdf2(password or "", b"\x00" * SALT_BYTES, iterations),
        b"\x00" * 32,
    )
