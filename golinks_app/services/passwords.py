import hashlib
import hmac
import re

import bcrypt

# Hex SHA-256 digests written by older deployments
_LEGACY_HASH = re.compile(r"^[0-9a-f]{64}$")


def _secret(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Salted bcrypt hash of a link password."""
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a password against a stored hash.

    Accepts bcrypt hashes and the unsalted SHA-256 hex digests of
    databases created before bcrypt was introduced.
    """
    if _LEGACY_HASH.match(password_hash):
        digest = hashlib.sha256(password.encode("utf-8")).hexdigest()
        return hmac.compare_digest(digest, password_hash)
    try:
        return bcrypt.checkpw(_secret(password), password_hash.encode("ascii"))
    except ValueError:
        return False
