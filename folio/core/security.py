"""Credential hashing backed by Argon2."""

from __future__ import annotations

from typing import Protocol

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()


def hash_password(password: str) -> str:
    return _ph.hash(password)


def verify_password(password: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    try:
        return _ph.verify(stored_hash, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def password_needs_rehash(stored_hash: str) -> bool:
    """True when the hash was produced with weaker parameters than the current ones."""
    try:
        return _ph.check_needs_rehash(stored_hash)
    except argon_exc.InvalidHashError:
        return True


class CredentialHasher(Protocol):
    """Hashing capability consumed by the account services."""

    def hash(self, plain: str) -> str: ...

    def verify(self, plain: str, hashed: str | None) -> bool: ...

    def needs_rehash(self, hashed: str) -> bool: ...


class Argon2Hasher:
    """Default CredentialHasher."""

    def hash(self, plain: str) -> str:
        return hash_password(plain)

    def verify(self, plain: str, hashed: str | None) -> bool:
        return verify_password(plain, hashed)

    def needs_rehash(self, hashed: str) -> bool:
        return password_needs_rehash(hashed)
