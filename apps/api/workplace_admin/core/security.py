"""Password hashing, session login helpers and state nonces."""

import hashlib
import hmac
import secrets

import bcrypt
from starlette.requests import Request

from workplace_admin.core.config import settings

BCRYPT_ROUNDS = 10
STATE_NBYTES = 12

# Session keys
SESSION_USER_ID = "user_id"
SESSION_SIGNED_REQUEST = "signed_request"
SESSION_LOGIN_REFERRER = "login_referrer"


# =============================================================================
# Passwords
# =============================================================================

def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# =============================================================================
# Session
# =============================================================================

def login_user(request: Request, user_id: int) -> None:
    request.session[SESSION_USER_ID] = user_id


def logout_user(request: Request) -> None:
    request.session.clear()


def pop_login_referrer(request: Request) -> str:
    """Consume the stored referrer, falling back to the landing page."""
    return request.session.pop(SESSION_LOGIN_REFERRER, None) or settings.DEFAULT_LANDING_PATH


# =============================================================================
# Nonces and HMAC
# =============================================================================

def generate_state() -> str:
    """State nonce echoed through install dialogs (12 random bytes, hex)."""
    return secrets.token_hex(STATE_NBYTES)


def hmac_sha256_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_hub_signature(payload: bytes, signature: str) -> bool:
    """
    Verify X-Hub-Signature-256 HMAC signature.

    Args:
        payload: Raw request body bytes
        signature: Value of X-Hub-Signature-256 header

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature or not signature.startswith("sha256="):
        return False

    if not settings.APP_SECRET:
        return False

    expected = hmac_sha256_hex(settings.APP_SECRET, payload)
    return hmac.compare_digest(f"sha256={expected}", signature)
