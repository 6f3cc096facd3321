# Overview: bcrypt hashing primitive and hash-format detection.

"""
Password hashing.

bcrypt with a configurable cost factor (BCRYPT_ROUNDS, default 10). Stored
secrets are either a bcrypt hash or a legacy plaintext value; is_hashed()
tells them apart from the shape of the string alone so a hash is never
hashed a second time.
"""

import re

import bcrypt

DEFAULT_ROUNDS = 10

# $2a$ / $2b$ / $2y$ prefix followed by 56 chars: cost, salt and digest (60 total)
_BCRYPT_SHAPE = re.compile(r"\$2[aby]\$.{56}")


def is_hashed(value: str | None) -> bool:
    if not value:
        return False
    return _BCRYPT_SHAPE.fullmatch(value) is not None


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Timing-safe comparison via bcrypt.checkpw().

    Malformed hashes verify as False instead of raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False
