"""Authentication for the Shelf admin API.

Admin access is a single shared password. A successful login returns a
stateless signed token:

    token = base64url(json({"timestamp": ms})) + "." + base64url(hmac_sha256(payload))

Tokens carry no expiry and are not stored anywhere; verification only checks
the signature, so logout is a no-op and rotating SESSION_SECRET is the only
way to invalidate issued tokens.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Optional

from . import config


# =============================================================================
# Token Signing
# =============================================================================

def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _sign(payload: str, secret: str) -> str:
    digest = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).digest()
    return _b64encode(digest)


def _secret(secret: Optional[str]) -> str:
    return secret if secret is not None else config.SECRET_KEY


def issue_token(secret: Optional[str] = None) -> str:
    """Issue a signed token stamped with the current time."""
    payload = _b64encode(json.dumps({"timestamp": int(time.time() * 1000)}).encode())
    return f"{payload}.{_sign(payload, _secret(secret))}"


def verify_token(token: Optional[str], secret: Optional[str] = None) -> bool:
    """Check a token's signature.

    Returns False for missing, malformed or tampered tokens.
    """
    if not token:
        return False

    parts = token.split(".")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return False
    payload, signature = parts

    expected = _sign(payload, _secret(secret)).encode()
    try:
        given = signature.encode("ascii")
    except UnicodeEncodeError:
        return False

    if len(given) != len(expected):
        return False
    return hmac.compare_digest(given, expected)


# =============================================================================
# Password Check
# =============================================================================

def check_password(password: str) -> bool:
    """Compare a submitted password against ADMIN_PASSWORD in constant time."""
    # surrogatepass keeps lone surrogates from a JSON body comparable
    return hmac.compare_digest(
        password.encode("utf-8", "surrogatepass"),
        config.ADMIN_PASSWORD.encode("utf-8", "surrogatepass"),
    )


# =============================================================================
# Request Guard
# =============================================================================

def get_bearer_token(request) -> Optional[str]:
    """Extract the bearer credential from the Authorization header."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:].strip() or None


def authorize(request) -> bool:
    """Return True if the request carries a valid admin token."""
    return verify_token(get_bearer_token(request))
