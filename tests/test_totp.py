"""Tests for the TOTP engine."""

from __future__ import annotations

import base64
import time

import pyotp
import pytest

from gauth.auth import totp

# RFC 6238 appendix B SHA1 seed ("12345678901234567890")
RFC_SECRET = base64.b32encode(b"12345678901234567890").decode()


def test_generate_secret_length():
    secret = totp.generate_secret(20)
    assert len(secret) == 32
    assert base64.b32decode(secret) is not None


def test_generate_secret_strips_padding():
    secret = totp.generate_secret(10)
    assert len(secret) == 16
    assert "=" not in totp.generate_secret(7)


def test_generate_secret_is_random():
    assert totp.generate_secret(20) != totp.generate_secret(20)


@pytest.mark.parametrize("length", [0, -1])
def test_generate_secret_rejects_non_positive(length):
    with pytest.raises(ValueError):
        totp.generate_secret(length)


@pytest.mark.parametrize(
    "timestamp, expected",
    [
        (59, "287082"),
        (1111111109, "081804"),
        (1234567890, "005924"),
        (2000000000, "279037"),
    ],
)
def test_rfc6238_vectors(timestamp, expected):
    assert totp.get_code(RFC_SECRET, timestamp) == expected
    assert totp.verify_code(RFC_SECRET, expected, 0, for_time=timestamp)


def test_verify_current_code():
    secret = totp.generate_secret(20)
    assert totp.verify_code(secret, totp.get_code(secret))


def test_verify_old_code_rejected_without_tolerance():
    secret = totp.generate_secret(20)
    now = int(time.time())
    old = totp.get_code(secret, now - 3600)
    assert not totp.verify_code(secret, old, 0, for_time=now)


def test_tolerance_window():
    secret = RFC_SECRET
    now = 1_700_000_025
    previous = totp.get_code(secret, now - 30)
    two_back = totp.get_code(secret, now - 60)
    following = totp.get_code(secret, now + 30)

    assert not totp.verify_code(secret, previous, 0, for_time=now)
    assert totp.verify_code(secret, previous, 1, for_time=now)
    assert totp.verify_code(secret, following, 1, for_time=now)
    assert not totp.verify_code(secret, two_back, 1, for_time=now)
    assert totp.verify_code(secret, two_back, 2, for_time=now)


@pytest.mark.parametrize("code", ["", "12345", "1234567", "abcdef", "12 456", "１２３４５６"])
def test_malformed_codes_return_false(code):
    assert totp.verify_code(RFC_SECRET, code, 1, for_time=59) is False


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        totp.verify_code(RFC_SECRET, "287082", -1, for_time=59)


def test_matches_pyotp():
    secret = pyotp.random_base32()
    assert totp.get_code(secret, 1_600_000_000) == pyotp.TOTP(secret).at(1_600_000_000)


def test_provisioning_uri():
    uri = totp.provisioning_uri("JBSWY3DPEHPK3PXP", "alice", "Acme")
    assert uri.startswith("otpauth://totp/")
    assert "secret=JBSWY3DPEHPK3PXP" in uri
    assert "issuer=Acme" in uri
    assert "Acme:alice" in uri
