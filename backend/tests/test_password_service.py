"""
Tests for the bcrypt hashing primitive and hash-shape detection.
"""

import pytest

from facil.services.password_service import hash_password, is_hashed, verify_password


class TestIsHashed:
    @pytest.mark.parametrize("value", [
        "$2a$10$" + "a" * 53,
        "$2b$12$" + "Z" * 53,
        "$2y$04$" + "." * 53,
    ])
    def test_bcrypt_shapes(self, value):
        assert len(value) == 60
        assert is_hashed(value)

    @pytest.mark.parametrize("value", [
        None,
        "",
        "admin",
        "$2x$10$" + "a" * 53,        # unknown variant
        "$2a$10$" + "a" * 52,        # 59 characters
        "$2a$10$" + "a" * 54,        # 61 characters
        "2a$10$" + "a" * 54,         # missing leading $
        "$2a$10$" + "a" * 53 + "\n",  # trailing newline
        " $2a$10$" + "a" * 53,       # leading space
    ])
    def test_non_hash_values(self, value):
        assert not is_hashed(value)

    def test_real_hash_is_detected(self):
        assert is_hashed(hash_password("secret1", rounds=4))


class TestHashAndVerify:
    def test_round_trip(self):
        hashed = hash_password("secret1", rounds=4)
        assert hashed != "secret1"
        assert verify_password("secret1", hashed)
        assert not verify_password("secret2", hashed)

    def test_salted(self):
        assert hash_password("secret1", rounds=4) != hash_password("secret1", rounds=4)

    def test_cost_factor_is_encoded(self):
        assert hash_password("secret1", rounds=5).startswith("$2b$05$")

    def test_malformed_hash_does_not_raise(self):
        assert verify_password("secret1", "not-a-hash") is False
