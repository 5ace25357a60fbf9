"""bcrypt password hashing.

Learn: bcrypt salts every hash and encodes its own cost in the hash
string ("$2b$12$..."), so raising settings.bcrypt_rounds doesn't break
existing passwords. needs_rehash() spots hashes made with a different
cost so login can upgrade them transparently.

bcrypt only looks at the first 72 bytes of a password; longer input is
cut there on both hash and verify.
"""

import bcrypt

from videotube.config import settings

_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """True if the password matches; a malformed hash never matches."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def needs_rehash(password_hash: str) -> bool:
    """True if the hash was made with a cost other than the configured one."""
    parts = password_hash.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return True
    return int(parts[2]) != settings.bcrypt_rounds
