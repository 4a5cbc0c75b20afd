import base64
import hashlib
import hmac
import secrets
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from prpal.config import settings
from prpal.utils.logger import logger

PBKDF2_ITERATIONS = 390000


@lru_cache(maxsize=None)
def _fernet() -> Fernet:
    # Fernet needs 32 url-safe base64 bytes; derive them from the configured secret.
    digest = hashlib.sha256(settings.PRPAL_SECRET_KEY.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return _fernet().encrypt(value.encode()).decode()


def decrypt(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return _fernet().decrypt(value.encode()).decode()
    except InvalidToken:
        logger.error("Failed to decrypt a stored credential; the secret key may have changed.")
        return None


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS
    ).hex()
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest}"


def verify_password(password: str, password_digest: str) -> bool:
    try:
        algorithm, iterations, salt, expected = password_digest.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt.encode(), int(iterations)
    ).hex()
    return hmac.compare_digest(digest, expected)
