from __future__ import annotations

from ..extensions import db
from ..records import UserRecord
from ..time_utils import to_utc_z
from .base import RecordMixin


class User(RecordMixin, db.Model):
    """
    Login accounts for both tools.

    password holds a bcrypt hash, or a legacy plaintext value that is
    migrated to a hash on the next successful login. It may be NULL for
    accounts created before passwords were required.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.UniqueConstraint("email", name="uq_users_email"),
    )
    __record__ = UserRecord

    id = db.Column(db.String(64), primary_key=True)
    username = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(32), nullable=False, default="staff")
    apartment_number = db.Column(db.Integer, nullable=True)
    password = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class SessionToken(db.Model):
    """
    Bearer sessions. Only the SHA-256 of the token is stored.

    user_id is not a foreign key: with the hosted backend the users live
    remotely while sessions stay in the local database.
    """
    __tablename__ = "session_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
        }
