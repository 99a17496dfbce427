import base64
import hashlib
import hmac
import secrets
import string
from typing import Tuple

# Stored format: base64(sha256(password + salt)), salt kept alongside the hash.
SALT_LENGTH = 16
TOKEN_LENGTH = 64

_ALPHABET = string.ascii_letters + string.digits


def _random_token(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_salt() -> str:
    return _random_token(SALT_LENGTH)


def issue_token() -> str:
    """Return a fresh opaque session token.

    Tokens are assigned once at account creation and never expire.
    """
    return _random_token(TOKEN_LENGTH)


def hash_password(password: str, salt: str) -> str:
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    digest = hashlib.sha256((password + salt).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def register(password: str) -> Tuple[str, str]:
    """Return ``(salt, hash)`` for a new password."""
    salt = generate_salt()
    return salt, hash_password(password, salt)


def verify(password: str, salt: str, hashed: str) -> bool:
    if not isinstance(password, str) or not salt or not hashed:
        return False
    # Constant-time comparison
    return hmac.compare_digest(hash_password(password, salt).encode("ascii"), hashed.encode("utf-8"))
