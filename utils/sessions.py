"""
Refresh tokens (server-side sessions).

A refresh token is 256 random bits, hex encoded, stored in the refresh_tokens
table. It is usable while it is unrevoked and unexpired. Revocation is a
single conditional UPDATE so it is idempotent and never un-done.
"""
from __future__ import annotations

import logging
import secrets
from contextlib import contextmanager, suppress
from datetime import datetime
from typing import TYPE_CHECKING, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.base_model import as_utc, utcnow
from models.refresh_token import RefreshToken
from utils.errors import AuthenticationFailed, InternalInvariantViolation, StoreUnavailable
from utils.security import Clock

if TYPE_CHECKING:
    from api.config import AuthSettings
    from models.db_storage import DBStorage

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 32
INVALID_SESSION = "Invalid session"


def make_refresh_token() -> str:
    """Return 64 hex chars drawn from the OS CSPRNG."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


@contextmanager
def store_call(storage: "DBStorage", operation: str):
    """
    Run a block of store I/O. Constraint violations become
    InternalInvariantViolation, any other SQLAlchemy failure StoreUnavailable;
    the session is rolled back either way.
    """
    try:
        yield
    except IntegrityError as exc:
        _rollback(storage)
        logger.error("Store constraint violated during %s", operation)
        raise InternalInvariantViolation() from exc
    except SQLAlchemyError as exc:
        _rollback(storage)
        logger.exception("Store failed during %s", operation)
        raise StoreUnavailable() from exc


def _rollback(storage: "DBStorage"):
    # the failure that triggered the rollback is what gets reported
    with suppress(SQLAlchemyError):
        storage.rollback()


class RefreshTokenService:
    def __init__(self, storage: "DBStorage", settings: "AuthSettings", clock: Clock = utcnow):
        self._storage = storage
        self._settings = settings
        self._clock = clock

    def _store_call(self, operation: str):
        return store_call(self._storage, f"refresh token {operation}")

    def issue(self, user_id: str) -> Tuple[str, datetime]:
        now = self._clock()
        token = make_refresh_token()
        expires_at = now + self._settings.refresh_token_ttl
        row = RefreshToken(
            token=token,
            user_id=str(user_id),
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
            revoked_at=None,
        )
        with self._store_call("issue"):
            self._storage.new(row)
            self._storage.save()
        logger.debug("Issued refresh token for user %s", user_id)
        return token, expires_at

    def resolve(self, token: str) -> str:
        """Return the owning user id, or raise AuthenticationFailed."""
        if not token:
            raise AuthenticationFailed("not_found", INVALID_SESSION)

        with self._store_call("resolve"):
            row = self._storage.get_refresh_token(token)

        if row is None:
            raise AuthenticationFailed("not_found", INVALID_SESSION)
        if self._clock() >= as_utc(row.expires_at):
            raise AuthenticationFailed("expired", INVALID_SESSION)
        if row.revoked_at is not None:
            raise AuthenticationFailed("revoked", INVALID_SESSION)
        return row.user_id

    def revoke(self, token: str) -> None:
        """Mark the token revoked. Unknown or already revoked tokens are a no-op."""
        if not token:
            return
        with self._store_call("revoke"):
            changed = self._storage.revoke_refresh_token(token, self._clock())
        if changed:
            logger.info("Refresh token revoked")
