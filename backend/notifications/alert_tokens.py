"""
Token generation and validation for alert verification and management links.

Two single-purpose credentials per alert:
- the verification token is signed and timestamped (expires after 7 days) and
  is only ever sent in the opt-in email;
- the management token is opaque, never expires, and is the only credential
  accepted by the manage and unsubscribe endpoints.
"""

import hashlib
import os
import secrets
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config.alert_settings import VERIFICATION_TOKEN_MAX_AGE_DAYS

VERIFICATION_SALT = "alert-verification"


def _get_serializer() -> URLSafeTimedSerializer:
    """
    Get configured serializer for verification tokens.

    Raises:
        ValueError: If ALERT_TOKEN_SECRET_KEY environment variable not set
    """
    secret_key = os.getenv("ALERT_TOKEN_SECRET_KEY")
    if not secret_key:
        raise ValueError("ALERT_TOKEN_SECRET_KEY environment variable must be set.")

    return URLSafeTimedSerializer(
        secret_key,
        salt=VERIFICATION_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def generate_management_token() -> str:
    """Opaque URL-safe token for self-service management and unsubscribe."""
    return secrets.token_urlsafe(32)


def generate_verification_token(email: str) -> str:
    """
    Generate a signed verification token for a new alert.

    A random nonce is included so two alerts for the same email never share a
    token.

    Raises:
        ValueError: If ALERT_TOKEN_SECRET_KEY not configured
    """
    serializer = _get_serializer()
    return serializer.dumps({"email": email, "nonce": secrets.token_hex(8)})


def validate_verification_token(
    token: str, max_age_days: int = VERIFICATION_TOKEN_MAX_AGE_DAYS
) -> Optional[str]:
    """
    Validate a verification token and extract the email it was issued for.

    Never raises exceptions - returns None for any invalid or expired token.
    """
    try:
        serializer = _get_serializer()
        payload = serializer.loads(token, max_age=max_age_days * 24 * 60 * 60)
    except (BadSignature, SignatureExpired, ValueError, TypeError):
        return None

    if not isinstance(payload, dict):
        return None
    return payload.get("email")
