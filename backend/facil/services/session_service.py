# Overview: Bearer-token sessions tied to login/logout.

"""
Session Token Management

The current user is never kept in module state. Login creates a session
row and hands the plaintext token to the client; every request resolves the
token back to a Session; logout revokes the row.

- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- 24-hour absolute timeout, 2-hour idle timeout
- The user is re-read from the persistence provider on each validation, so
  deleted accounts lose their sessions immediately
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..extensions import db
from ..models import SessionToken
from ..records import UserRecord
from ..time_utils import utcnow

SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


@dataclass(frozen=True)
class Session:
    """Authenticated request context: the user (without secret) and its token row."""
    user: UserRecord
    session_id: int
    expires_at: datetime

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.user.role == "admin"


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user: UserRecord,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[Session, str]:
    """
    Open a session for an already authenticated user.

    Returns (session, plaintext_token). Only the hash is stored.
    """
    plaintext_token = generate_token()
    now = utcnow()

    row = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(row)
    db.session.commit()

    return Session(user=user.without_secret(), session_id=row.id, expires_at=row.expires_at), plaintext_token


def validate_session(token: str, provider) -> Session | None:
    """
    Resolve a bearer token. Returns None if the token is unknown, revoked,
    expired (absolute or idle) or its user no longer exists.
    """
    if not token:
        return None

    row = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if row is None or row.is_revoked:
        return None

    now = utcnow()
    if now >= _naive_utc(row.expires_at) or now - _naive_utc(row.last_used_at) >= SESSION_IDLE_TIMEOUT:
        _revoke_row(row, now)
        db.session.commit()
        return None

    user = provider.users.get(row.user_id)
    if user is None:
        _revoke_row(row, now)
        db.session.commit()
        return None

    row.last_used_at = now
    db.session.commit()
    return Session(user=user.without_secret(), session_id=row.id, expires_at=row.expires_at)


def _naive_utc(dt: datetime) -> datetime:
    # PostgreSQL hands back aware datetimes, SQLite naive ones
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _revoke_row(row: SessionToken, now: datetime) -> None:
    row.is_revoked = True
    row.revoked_at = now


def revoke_session(token: str) -> bool:
    row = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if row is None or row.is_revoked:
        return False
    _revoke_row(row, utcnow())
    db.session.commit()
    return True


def revoke_user_sessions(user_id: str, keep_token: str | None = None) -> int:
    """
    Revoke every open session of a user (account deleted or password
    changed). keep_token spares the caller's own session.
    """
    now = utcnow()
    query = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False)
    if keep_token:
        query = query.filter(SessionToken.token_hash != hash_token(keep_token))
    rows = query.all()
    for row in rows:
        _revoke_row(row, now)
    db.session.commit()
    return len(rows)
