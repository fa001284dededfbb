"""
Password hashing with bcrypt via pwdlib
"""
from functools import lru_cache

from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher

from mathlearn.config import settings


@lru_cache(maxsize=None)
def get_password_hash(rounds: int = None) -> PasswordHash:
    """PasswordHash configured for the given bcrypt cost (settings default)"""
    return PasswordHash((BcryptHasher(rounds=rounds or settings.PASSWORD_SALT_ROUNDS),))


def hash_password(plain_password: str, rounds: int = None) -> str:
    """Hash a plain password for storage"""
    return get_password_hash(rounds).hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored bcrypt hash"""
    if not hashed_password:
        return False
    return get_password_hash().verify(plain_password, hashed_password)
