"""Password hashing for user customizations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from passlib.hash import sha512_crypt

from oscompose.errors import CredentialHashingError

# Modular crypt prefixes for md5, blowfish, sha256, sha512 and yescrypt hashes.
_CRYPTED_PATTERN = re.compile(r"^\$(1|2[abxy]?|5|6|y)\$")

DEFAULT_ROUNDS = 5000


@runtime_checkable
class PasswordHasher(Protocol):
    def hash(self, password: str) -> str:
        """Return a crypt(3) compatible hash of ``password``."""


@dataclass(frozen=True, slots=True)
class Sha512CryptHasher:
    """SHA-512 crypt, the scheme every supported distro accepts in /etc/shadow."""

    rounds: int = DEFAULT_ROUNDS

    def hash(self, password: str) -> str:
        try:
            return sha512_crypt.using(rounds=self.rounds).hash(password)
        except (TypeError, ValueError) as exc:
            raise CredentialHashingError(
                "Password could not be hashed.",
                hint=str(exc),
                context={"scheme": "sha512_crypt"},
            ) from exc


def password_is_crypted(password: str) -> bool:
    return bool(_CRYPTED_PATTERN.match(password))


def crypt_password(password: str, hasher: PasswordHasher) -> str:
    """Hash a plain-text password, leaving already crypted values untouched."""
    if password_is_crypted(password):
        return password
    hashed = hasher.hash(password)
    if not password_is_crypted(hashed):
        raise CredentialHashingError(
            "Password hasher returned a value that is not a crypt(3) hash.",
            hint="Use a hasher that produces modular crypt format output.",
        )
    return hashed


__all__ = [
    "DEFAULT_ROUNDS",
    "PasswordHasher",
    "Sha512CryptHasher",
    "crypt_password",
    "password_is_crypted",
]
