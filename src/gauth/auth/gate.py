"""API key gate in front of every lifecycle and verification request."""

from __future__ import annotations

import logging

from gauth.db import CredentialStore
from gauth.errors import InvalidApiKeyError, MissingApiKeyError, StoreError, StoreUnavailableError
from gauth.models import CallerIdentity

logger = logging.getLogger(__name__)


def _redact(api_key: str) -> str:
    return f"{api_key[:4]}..." if len(api_key) > 8 else "***"


class ApiKeyGate:
    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    def authorize(self, api_key: str | None) -> CallerIdentity:
        """Resolve an API key to the host it is bound to.

        Raises MissingApiKeyError when no key was supplied and
        InvalidApiKeyError when no binding matches. Both carry the same
        caller-visible message.
        """
        if not api_key:
            logger.warning("Request without an api_key")
            raise MissingApiKeyError(detail="api_key missing from request")

        try:
            host = self._store.get_host_for_api_key(api_key)
        except StoreError as e:
            logger.error("API key lookup failed", exc_info=True)
            raise StoreUnavailableError(detail=str(e)) from e

        if host is None:
            logger.warning("Invalid api_key passed in: %s", _redact(api_key))
            raise InvalidApiKeyError(detail="api_key matches no binding")

        logger.info("Validated the API key for %s", host)
        return CallerIdentity(host=host)
