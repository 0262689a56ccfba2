"""
Password hashing and API token helpers.

Passwords are stored as PBKDF2-SHA256 hashes in the form
"pbkdf2_sha256$<iterations>$<salt>$<hash>". API tokens are random URL-safe
strings; only their SHA-256 digest is stored.
"""

import base64
import hashlib
import hmac
import secrets
from typing import Optional, Tuple

from config import settings

ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, *, iterations: Optional[int] = None, salt: Optional[str] = None) -> str:
    """Hash a password with a random salt."""
    iterations = iterations or settings.password_iterations
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    encoded = base64.b64encode(digest).decode("ascii")
    return f"{ALGORITHM}${iterations}${salt}${encoded}"


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored hash. Unknown formats never match."""
    if not password_hash:
        return False
    try:
        algorithm, iterations, salt, _ = password_hash.split("$", 3)
        iterations = int(iterations)
    except ValueError:
        return False
    if algorithm != ALGORITHM or iterations < 1:
        return False
    candidate = hash_password(password, iterations=iterations, salt=salt)
    return hmac.compare_digest(candidate, password_hash)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_token() -> Tuple[str, str]:
    """
    Generate a new API token.

    Returns:
        Tuple of (plain token for the client, hash to store on the user)
    """
    token = secrets.token_urlsafe(settings.token_bytes)
    return token, hash_token(token)
