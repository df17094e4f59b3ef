"""Bearer Tokens — HMAC-signed session credentials, checked without IO.

Invariants:
    - Token shape: base64url(user_id) "." expiry_epoch "." nonce "." base64url(hmac_sha256)
    - decode_token raises UnauthenticatedError for malformed, tampered or expired tokens
    - Comparison of signatures is constant-time (hmac.compare_digest)
    - A valid signature is necessary, not sufficient: a live session row must also exist

Design Decisions:
    - Stdlib hmac/hashlib over a JWT dependency: one claim (user id) plus expiry needs no JOSE
    - Random nonce per token: two logins in the same second still get distinct, unique tokens
"""

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from crowdchain.core.errors import UnauthenticatedError


@dataclass(frozen=True)
class TokenClaims:
    user_id: UUID
    expires_at: datetime


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _unb64(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _sign(payload: str, secret: str) -> str:
    digest = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).digest()
    return _b64(digest)


def issue_token(user_id: UUID, expires_at: datetime, secret: str) -> str:
    """Create a signed token for user_id valid until expires_at."""
    payload = ".".join((
        _b64(user_id.bytes),
        str(int(expires_at.timestamp())),
        secrets.token_hex(8),
    ))
    return f"{payload}.{_sign(payload, secret)}"


def decode_token(token: str, secret: str, now: datetime | None = None) -> TokenClaims:
    """Verify signature and expiry; return claims."""
    parts = token.split(".")
    if len(parts) != 4:
        raise UnauthenticatedError("Malformed token")
    payload, signature = ".".join(parts[:3]), parts[3]
    if not hmac.compare_digest(signature.encode(), _sign(payload, secret).encode()):
        raise UnauthenticatedError("Invalid token")
    try:
        user_id = UUID(bytes=_unb64(parts[0]))
        expires_at = datetime.fromtimestamp(int(parts[1]), tz=timezone.utc)
    except ValueError:
        raise UnauthenticatedError("Malformed token")
    if expires_at <= (now or datetime.now(timezone.utc)):
        raise UnauthenticatedError("Token expired")
    return TokenClaims(user_id=user_id, expires_at=expires_at)


def extract_bearer(header: str | None) -> str:
    """Pull the credential out of an Authorization header value."""
    if not header:
        raise UnauthenticatedError("No token provided")
    scheme, _, credential = header.partition(" ")
    if scheme.lower() != "bearer" or not credential.strip():
        raise UnauthenticatedError("Malformed authorization header")
    return credential.strip()
