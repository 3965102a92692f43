"""Out-of-band API key issuance for the operator CLI."""

from __future__ import annotations

import logging
import secrets
import string

from gauth.db import CredentialStore

logger = logging.getLogger(__name__)

API_KEY_LENGTH = 32
_ALPHABET = string.ascii_letters + string.digits


def generate_api_key(length: int = API_KEY_LENGTH) -> str:
    """Random alphanumeric key."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def create_api_key(store: CredentialStore, host: str) -> str:
    """Generate, store and return a new API key bound to ``host``.

    A key collision surfaces as DuplicateEntryError from the store.
    """
    if not host:
        raise ValueError("host must not be empty")
    key = generate_api_key()
    store.add_api_key(host, key)
    logger.info("Created a new API key for host %s", host)
    return key
