"""HMAC token derivation for encrypted tokens."""
import hashlib
import hmac
import secrets
import time
from typing import Optional, Union

from .models import KMSConfigError, PlaintextEncodingError

NONCE_MIN = 100000
NONCE_MAX = 999999


def generate_nonce() -> int:
    """Cryptographically secure integer in [NONCE_MIN, NONCE_MAX]."""
    return NONCE_MIN + secrets.randbelow(NONCE_MAX - NONCE_MIN + 1)


def derive_hmac_token(
    data: Union[str, int],
    app_secret: Optional[str],
    timestamp: Optional[int] = None,
    nonce: Optional[int] = None,
) -> str:
    """
    Derive the HMAC-SHA256 token that gets encrypted for a piece of data.

    The message is "data|timestamp|nonce". A fresh timestamp and nonce are
    drawn when not given, so identical data yields different tokens.

    Args:
        data: User id or other string/integer metadata
        app_secret: HMAC key
        timestamp: Seconds since epoch (defaults to now)
        nonce: Six digit random value (defaults to a fresh one)

    Returns:
        Hex digest of the HMAC

    Raises:
        PlaintextEncodingError: If data is not a string or integer
        KMSConfigError: If the app secret is missing
    """
    # bool is an int subclass but "True|..." is never a meaningful token
    if isinstance(data, bool) or not isinstance(data, (str, int)):
        raise PlaintextEncodingError(
            f"Token data must be a string or integer, got {type(data).__name__}"
        )
    if not app_secret:
        raise KMSConfigError("App secret 'kms_app_secret' not found")

    if timestamp is None:
        timestamp = int(time.time())
    if nonce is None:
        nonce = generate_nonce()

    message = f"{data}|{timestamp}|{nonce}"
    return hmac.new(
        app_secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()
