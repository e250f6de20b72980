"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access token (JWT, HS256) creation/verification via PyJWT

Access tokens are stateless: validity is signature + algorithm + expiry, checked
against the injected clock. Every rejection raises AuthenticationFailed with the
same message; the specific reason is only kept on the exception for logging.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING, Callable, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from utils.errors import AuthenticationFailed, InternalInvariantViolation

if TYPE_CHECKING:
    from api.config import AuthSettings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
INVALID_TOKEN = "Invalid token"

# argon2-cffi defaults; not configurable on purpose
ph = PasswordHasher()

Clock = Callable[[], datetime]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a stored Argon2 digest.

    Returns False on mismatch. A digest that cannot be parsed is not an auth
    failure: it means the stored record is corrupted, so it is logged and
    raised as InternalInvariantViolation.
    """
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as exc:
        logger.error("Stored password digest is corrupted: %s", exc.__class__.__name__)
        raise InternalInvariantViolation() from exc


def password_needs_rehash(password_hash: str) -> bool:
    try:
        return ph.check_needs_rehash(password_hash)
    except InvalidHashError as exc:
        logger.error("Stored password digest is corrupted: %s", exc.__class__.__name__)
        raise InternalInvariantViolation() from exc


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return ph.hash("chirpy-timing-equalizer")


def burn_password_check(password: str) -> None:
    """Spend the same time as a real verify when there is no user to check."""
    verify_password(password, _dummy_hash())


def make_jwt(
    user_id,
    secret: str,
    expires_in: timedelta,
    *,
    issuer: str = "chirpy",
    now: Optional[datetime] = None,
) -> str:
    issued_at = now or _now()
    payload = {
        "iss": issuer,
        "sub": str(user_id),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_in).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def validate_jwt(
    token: str,
    secret: str,
    *,
    issuer: str = "chirpy",
    now: Optional[datetime] = None,
    leeway: timedelta = timedelta(0),
) -> str:
    """
    Decode and validate an access token, returning the user id it was issued for.
    Raises AuthenticationFailed on bad signature, foreign algorithm, wrong
    issuer, missing claims, expiry or a subject that is not a UUID.
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            issuer=issuer,
            options={
                "require": ["iss", "sub", "iat", "exp"],
                # expiry is checked below against the caller's clock
                "verify_exp": False,
                "verify_iat": False,
            },
        )
    except jwt.InvalidAlgorithmError as exc:
        raise AuthenticationFailed("algorithm_mismatch", INVALID_TOKEN) from exc
    except jwt.InvalidSignatureError as exc:
        raise AuthenticationFailed("bad_signature", INVALID_TOKEN) from exc
    except jwt.InvalidIssuerError as exc:
        raise AuthenticationFailed("bad_issuer", INVALID_TOKEN) from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationFailed("malformed", INVALID_TOKEN) from exc

    exp = claims["exp"]
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise AuthenticationFailed("malformed", INVALID_TOKEN)
    current = (now or _now()).timestamp()
    if current >= exp + leeway.total_seconds():
        raise AuthenticationFailed("expired", INVALID_TOKEN)

    try:
        return str(uuid.UUID(str(claims["sub"])))
    except ValueError as exc:
        raise AuthenticationFailed("bad_subject", INVALID_TOKEN) from exc


class AccessTokenService:
    """Issues and validates short-lived access tokens. Holds no mutable state."""

    def __init__(self, settings: "AuthSettings", clock: Clock = _now):
        self._settings = settings
        self._clock = clock

    def issue(self, user_id, ttl: Optional[timedelta] = None) -> str:
        return make_jwt(
            user_id,
            self._settings.jwt_secret,
            ttl if ttl is not None else self._settings.access_token_ttl,
            issuer=self._settings.issuer,
            now=self._clock(),
        )

    def validate(self, token: str) -> str:
        return validate_jwt(
            token,
            self._settings.jwt_secret,
            issuer=self._settings.issuer,
            now=self._clock(),
            leeway=self._settings.clock_skew,
        )
