"""TOTP (Time-based One-Time Password) engine.

Uses pyotp for RFC 6238 code derivation: HMAC-SHA1 over the 30-second
time-step counter, dynamic truncation, 6 digits. Verification compares
codes with pyotp's constant-time string comparison.
"""

from __future__ import annotations

import base64
import secrets
from datetime import datetime

import pyotp

DIGITS = 6
INTERVAL = 30


def generate_secret(byte_length: int) -> str:
    """Generate a new TOTP secret of ``byte_length`` random bytes, base32-encoded.

    Padding is stripped; 20 bytes gives the usual 32-character secret.
    """
    if byte_length <= 0:
        raise ValueError(f"byte_length must be positive, got {byte_length}")
    raw = secrets.token_bytes(byte_length)
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def _totp(secret: str) -> pyotp.TOTP:
    return pyotp.TOTP(secret, digits=DIGITS, interval=INTERVAL)


def get_code(secret: str, for_time: datetime | int | float | None = None) -> str:
    """Get the code for the time step containing ``for_time`` (default: now)."""
    totp = _totp(secret)
    if for_time is None:
        return totp.now()
    return totp.at(for_time)


def verify_code(
    secret: str,
    code: str,
    tolerance_windows: int = 0,
    for_time: datetime | int | float | None = None,
) -> bool:
    """Verify a submitted code against a secret.

    Accepts the code for the current step or any step within
    +-``tolerance_windows``. A wrong or malformed code returns False.
    """
    if tolerance_windows < 0:
        raise ValueError(f"tolerance_windows must be >= 0, got {tolerance_windows}")
    code = code.strip()
    if len(code) != DIGITS or not code.isascii() or not code.isdigit():
        return False
    return _totp(secret).verify(code, for_time=for_time, valid_window=tolerance_windows)


def provisioning_uri(secret: str, account_name: str, issuer: str) -> str:
    """Get the otpauth:// URI for QR code enrollment."""
    return _totp(secret).provisioning_uri(name=account_name, issuer_name=issuer)
