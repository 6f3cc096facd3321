"""
Flask CLI command tests.
"""

from facil.records import UserRecord
from facil.services.password_service import is_hashed


class TestUsersCommands:
    def test_create_and_list(self, app, provider):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["users", "create", "--email", "bob@condo.com", "--password", "secret1", "--role", "staff"])
        assert "PASS Created user: bob@condo.com" in result.output

        result = runner.invoke(args=["users", "list"])
        assert "bob@condo.com" in result.output
        assert "bcrypt" in result.output

    def test_migrate_passwords(self, app, provider):
        provider.users.insert(UserRecord(id="legacy", username="legacy", email=None, password="admin"))
        runner = app.test_cli_runner()

        result = runner.invoke(args=["users", "migrate-passwords", "--dry-run"])
        assert "Would migrate 1 password(s)" in result.output
        assert provider.users.get("legacy").password == "admin"

        result = runner.invoke(args=["users", "migrate-passwords"])
        assert "Migrated 1 password(s)" in result.output
        assert is_hashed(provider.users.get("legacy").password)


class TestSystemCommands:
    def test_seed_demo_is_idempotent(self, app, provider):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "seed-demo"])
        assert "PASS residents: 2 created" in first.output
        second = runner.invoke(args=["system", "seed-demo"])
        assert "PASS residents: 0 created" in second.output

        assert len(provider.payments.list()) == 3
        assert {u.email for u in provider.users.list()} == {"admin@condo.com", "alice@email.com"}
