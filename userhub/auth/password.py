"""
Password hashing and verification.

Uses bcrypt with automatic salting; the work factor comes from
``config.BCRYPT_ROUNDS``.
"""

import bcrypt

from userhub.core import config


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)).decode()


def verify_password(password: str, password_hash: str | None) -> bool:
    """Constant-time comparison against a bcrypt hash."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except (ValueError, TypeError):
        return False
