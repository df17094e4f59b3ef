"""Password Hashing — salted PBKDF2-SHA256, stored as "pbkdf2_sha256$iterations$salt$hash".

Invariants:
    - Every hash carries its own random salt and iteration count
    - verify_password never raises; malformed or foreign hashes simply fail

Design Decisions:
    - Key derivation via cryptography's PBKDF2HMAC; its verify() compares in constant time
    - CPU-bound: async callers run these through asyncio.to_thread
"""

import secrets

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

_ALGORITHM = "pbkdf2_sha256"
_ITERATIONS = 240_000
_KEY_LENGTH = 32


def _kdf(salt: str, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=_KEY_LENGTH,
        salt=salt.encode(),
        iterations=iterations,
    )


def hash_password(password: str, iterations: int = _ITERATIONS) -> str:
    salt = secrets.token_hex(16)
    digest = _kdf(salt, iterations).derive(password.encode()).hex()
    return f"{_ALGORITHM}${iterations}${salt}${digest}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt, expected = stored.split("$")
        rounds = int(iterations)
        expected_key = bytes.fromhex(expected)
    except ValueError:
        return False
    if algorithm != _ALGORITHM or rounds < 1:
        return False
    try:
        _kdf(salt, rounds).verify(password.encode(), expected_key)
    except InvalidKey:
        return False
    return True
