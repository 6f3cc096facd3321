# Overview: Credential store: login, legacy password migration, user maintenance.

"""
Credential Store

Login accepts a username or an email. Stored secrets come in three shapes:

- bcrypt hash: verified with bcrypt.checkpw()
- legacy plaintext: compared directly; on success the password is re-hashed
  and written back by PasswordMigrator without holding up the login. A
  failed migration is logged and otherwise ignored.
- empty: only the bootstrap identifier/secret pair is accepted, and only
  when ALLOW_BOOTSTRAP_LOGIN is on. Development convenience, off by default.

Every path that writes a password hashes it first, except values that
already have the bcrypt shape (seed data exported from another instance).
"""

from __future__ import annotations

import secrets
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace

from flask import current_app

from ..errors import (
    DuplicateIdentifier,
    InvalidCredentials,
    NotFound,
    OwnAccountDeletion,
    ValidationError,
)
from ..providers.base import PersistenceProvider
from ..records import UserRecord, new_id
from . import session_service
from .password_service import hash_password, is_hashed, verify_password

ROLES = ("admin", "staff", "resident")

# bcrypt only looks at the first 72 bytes; longer inputs are rejected
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class CredentialPolicy:
    rounds: int = 10
    min_length: int = 6
    allow_bootstrap: bool = False
    bootstrap_identifier: str | None = None
    bootstrap_secret: str | None = None

    @classmethod
    def from_config(cls, config) -> "CredentialPolicy":
        return cls(
            rounds=config.get("BCRYPT_ROUNDS", 10),
            min_length=config.get("PASSWORD_MIN_LENGTH", 6),
            allow_bootstrap=bool(config.get("ALLOW_BOOTSTRAP_LOGIN", False)),
            bootstrap_identifier=config.get("BOOTSTRAP_IDENTIFIER"),
            bootstrap_secret=config.get("BOOTSTRAP_SECRET"),
        )


class PasswordMigrator:
    """
    Runs plaintext-to-hash migrations off the request path.

    With run_async=False the job runs inline (tests, CLI); failures are
    swallowed either way. Async jobs get their own application context so the
    local provider can open a database session.
    """

    def __init__(self, app=None, *, run_async: bool = True, max_workers: int = 2):
        self.app = app
        self.run_async = run_async
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pw-migrate") if run_async else None

    def submit(self, store: "CredentialStore", user_id: str, plain_password: str) -> Future | None:
        if self._executor is None:
            store.migrate_password(user_id, plain_password)
            return None
        app = self.app or current_app._get_current_object()
        return self._executor.submit(self._run_in_context, app, store, user_id, plain_password)

    @staticmethod
    def _run_in_context(app, store, user_id, plain_password):
        with app.app_context():
            return store.migrate_password(user_id, plain_password)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


class CredentialStore:
    def __init__(
        self,
        provider: PersistenceProvider,
        policy: CredentialPolicy | None = None,
        migrator: PasswordMigrator | None = None,
    ):
        self.provider = provider
        self.policy = policy or CredentialPolicy()
        self.migrator = migrator or PasswordMigrator(run_async=False)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, identifier: str, password: str) -> UserRecord:
        """
        Verify credentials and return the user without its secret.

        Raises InvalidCredentials for unknown identifiers and wrong
        passwords alike.
        """
        identifier = (identifier or "").strip()
        if not identifier or not password:
            raise InvalidCredentials()

        user = self.provider.find_user(identifier)
        if user is None:
            raise InvalidCredentials()

        stored = user.password
        if stored:
            if is_hashed(stored):
                if not verify_password(password, stored):
                    raise InvalidCredentials()
            else:
                if not secrets.compare_digest(stored.encode("utf-8"), password.encode("utf-8")):
                    raise InvalidCredentials()
                self._start_migration(user, password)
        elif not self._bootstrap_matches(identifier, password):
            raise InvalidCredentials()
        else:
            current_app.logger.warning(
                "Bootstrap login used for account %s; set a password for it", user.display_identifier
            )

        return user.without_secret()

    def _start_migration(self, user: UserRecord, password: str) -> None:
        current_app.logger.info("Scheduling password hash migration for user %s", user.id)
        try:
            self.migrator.submit(self, user.id, password)
        except Exception:
            current_app.logger.exception("Could not schedule password migration for user %s", user.id)

    def _bootstrap_matches(self, identifier: str, password: str) -> bool:
        policy = self.policy
        if not policy.allow_bootstrap:
            return False
        if not policy.bootstrap_identifier or not policy.bootstrap_secret:
            return False
        return identifier == policy.bootstrap_identifier and password == policy.bootstrap_secret

    def migrate_password(self, user_id: str, plain_password: str) -> bool:
        """
        Replace a legacy plaintext password with its hash.

        Re-reads the user first: if the stored value is no longer that exact
        plaintext (already migrated, or changed meanwhile) nothing is written.
        Never raises; returns True only when a hash was stored.
        """
        try:
            user = self.provider.users.get(user_id)
            if user is None or user.password != plain_password or is_hashed(user.password):
                return False
            hashed = hash_password(plain_password, self.policy.rounds)
            self.provider.users.update(replace(user, password=hashed))
            current_app.logger.info("Migrated password of user %s to bcrypt", user_id)
            return True
        except Exception:
            current_app.logger.exception("Password migration failed for user %s", user_id)
            return False

    def migrate_all_plaintext(self, *, dry_run: bool = False) -> list[str]:
        """Hash every legacy plaintext password. Returns the affected user ids."""
        migrated = []
        for user in self.provider.users.list():
            if not user.password or is_hashed(user.password):
                continue
            if not dry_run:
                hashed = hash_password(user.password, self.policy.rounds)
                self.provider.users.update(replace(user, password=hashed))
            migrated.append(user.id)
        return migrated

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def validate_new_password(self, password: str) -> None:
        if not password or len(password) < self.policy.min_length:
            raise ValidationError(
                f"Password must be at least {self.policy.min_length} characters long"
            )
        if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")

    def _secret_for_storage(self, password: str) -> str:
        if is_hashed(password):
            return password
        self.validate_new_password(password)
        return hash_password(password, self.policy.rounds)

    def change_password(self, user_id: str, new_password: str) -> UserRecord:
        user = self.provider.users.get(user_id)
        if user is None:
            raise NotFound("user", user_id)
        self.validate_new_password(new_password)
        hashed = hash_password(new_password, self.policy.rounds)
        return self.provider.users.update(replace(user, password=hashed)).without_secret()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def _ensure_unique(self, username: str | None, email: str | None, *, exclude_id: str | None = None) -> None:
        for field, value in (("username", username), ("email", email)):
            if not value:
                continue
            existing = self.provider.find_user(value)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateIdentifier(field, value)

    def create_user(
        self,
        *,
        password: str,
        username: str | None = None,
        email: str | None = None,
        name: str | None = None,
        role: str = "staff",
        apartment_number: int | None = None,
        user_id: str | None = None,
    ) -> UserRecord:
        if not username and not email:
            raise ValidationError("username or email is required")
        if role not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
        self._ensure_unique(username, email)

        user = UserRecord(
            id=user_id or new_id(),
            username=username,
            email=email,
            name=name,
            role=role,
            apartment_number=apartment_number,
            password=self._secret_for_storage(password),
        )
        return self.provider.users.insert(user).without_secret()

    def register(self, identifier: str, password: str, *, name: str | None = None) -> UserRecord:
        """Self-service sign-up: identifiers containing '@' are taken as email."""
        identifier = (identifier or "").strip()
        if not identifier:
            raise ValidationError("username is required")
        if "@" in identifier:
            return self.create_user(email=identifier, username=None, password=password, name=name)
        return self.create_user(username=identifier, password=password, name=name)

    def update_user(self, user_id: str, changes: dict) -> UserRecord:
        """
        Apply profile changes. An empty or missing password keeps the stored one.
        """
        user = self.provider.users.get(user_id)
        if user is None:
            raise NotFound("user", user_id)

        changes = dict(changes)
        password = changes.pop("password", None)
        if "role" in changes and changes["role"] not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
        self._ensure_unique(changes.get("username"), changes.get("email"), exclude_id=user_id)

        updated = replace(user, **changes)
        if password:
            updated = replace(updated, password=self._secret_for_storage(password))
        if not updated.username and not updated.email:
            raise ValidationError("username or email is required")
        return self.provider.users.update(updated).without_secret()

    def delete_user(self, acting_user_id: str, user_id: str) -> None:
        if acting_user_id == user_id:
            raise OwnAccountDeletion()
        if not self.provider.users.delete(user_id):
            raise NotFound("user", user_id)
        session_service.revoke_user_sessions(user_id)

    def list_users(self) -> list[UserRecord]:
        return [u.without_secret() for u in self.provider.users.list()]
