"""Security utilities for password hashing and token generation."""
import secrets
import time
from typing import Optional

from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from passlib.context import CryptContext

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer tokens shorter than this are rejected before any other check
MIN_SESSION_TOKEN_LENGTH = 32

_ADMIN_TOKEN_SALT = "admin-session"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def generate_session_token() -> str:
    """Generate a client session token (32 random bytes, hex encoded)."""
    return secrets.token_hex(32)


def _to_base36(number: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    if number == 0:
        return "0"
    encoded = ""
    while number:
        number, remainder = divmod(number, 36)
        encoded = digits[remainder] + encoded
    return encoded


def generate_license_key(prefix: str = "ALGO", now_ms: Optional[int] = None) -> str:
    """
    Generate a license key of the form PREFIX-<16 hex>-<base36 timestamp>.

    The random part makes collisions unlikely, the millisecond timestamp
    keeps keys roughly sortable by creation time.

    Args:
        prefix: Fixed key prefix
        now_ms: Timestamp in milliseconds (defaults to the current time)

    Returns:
        License key string, e.g. "ALGO-9F2C4A1B7E3D5A60-LZ3K1Q2M"
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    random_part = secrets.token_hex(8).upper()
    return f"{prefix}-{random_part}-{_to_base36(now_ms)}"


def _admin_serializer(secret_key: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt=_ADMIN_TOKEN_SALT)


def create_admin_session_token(secret_key: str) -> str:
    """Create a signed, self-contained admin session token."""
    return _admin_serializer(secret_key).dumps({"role": "admin", "nonce": secrets.token_hex(16)})


def verify_admin_session_token(token: Optional[str], secret_key: str, max_age_seconds: int) -> bool:
    """
    Check an admin session token.

    The token must be long enough, carry a valid signature for secret_key and
    be younger than max_age_seconds. No server-side state is consulted.
    """
    if not token or len(token) < MIN_SESSION_TOKEN_LENGTH:
        return False
    try:
        payload = _admin_serializer(secret_key).loads(token, max_age=max_age_seconds)
    except SignatureExpired:
        return False
    except BadSignature:
        return False
    return isinstance(payload, dict) and payload.get("role") == "admin"


# Used when SECRET_KEY is not configured; admin tokens die with the process
_EPHEMERAL_SECRET_KEY = secrets.token_urlsafe(32)


def resolve_secret_key(configured_key: str) -> str:
    """Return the configured signing key, or the per-process fallback."""
    return configured_key or _EPHEMERAL_SECRET_KEY
