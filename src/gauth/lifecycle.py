"""Secret lifecycle: create, delete and look up TOTP secrets by ident.

Secrets are never updated in place; rotation is delete followed by create.
"""

from __future__ import annotations

import logging

from gauth.auth import totp
from gauth.db import IDENT_CONSTRAINT, CredentialStore
from gauth.errors import (
    DuplicateEntryError,
    DuplicateIdentError,
    IdentNotFoundError,
    StoreError,
    StoreUnavailableError,
)
from gauth.models import SecretRecord

logger = logging.getLogger(__name__)


class SecretLifecycle:
    def __init__(self, store: CredentialStore, secret_len: int) -> None:
        if secret_len <= 0:
            raise ValueError(f"secret_len must be positive, got {secret_len}")
        self._store = store
        self._secret_len = secret_len

    def create(self, ident: str) -> SecretRecord:
        """Generate and store a new secret for ``ident``.

        This is the only operation that hands the secret back to a client.
        """
        secret = totp.generate_secret(self._secret_len)
        try:
            record_id = self._store.create_secret(ident, secret)
        except DuplicateEntryError as e:
            if e.constraint != IDENT_CONSTRAINT:
                logger.error("Secret for ident %s rejected by %s", ident, e.constraint)
                raise StoreUnavailableError(detail=str(e)) from e
            logger.info("Refusing duplicate secret for ident %s", ident)
            raise DuplicateIdentError(detail=str(e)) from e
        except StoreError as e:
            logger.error("Failed to store secret for ident %s", ident, exc_info=True)
            raise StoreUnavailableError(detail=str(e)) from e

        logger.info("Secret added to db for %s", ident)
        return SecretRecord(id=record_id, ident=ident, secret=secret)

    def delete(self, ident: str) -> None:
        """Delete the secret for ``ident``; an unknown ident is not an error."""
        try:
            count = self._store.delete_secret(ident)
        except StoreError as e:
            logger.error("Failed to delete secret for ident %s", ident, exc_info=True)
            raise StoreUnavailableError(detail=str(e)) from e

        if count:
            logger.info("Secret deleted for ident: %s", ident)
        else:
            logger.debug("No secret to delete for ident: %s", ident)

    def lookup(self, ident: str) -> SecretRecord:
        try:
            record = self._store.get_secret(ident)
        except StoreError as e:
            logger.error("Error getting secret for ident %s", ident, exc_info=True)
            raise StoreUnavailableError(detail=str(e)) from e

        if record is None:
            logger.info("No secret stored for ident %s", ident)
            raise IdentNotFoundError(detail=f"no secret for ident {ident!r}")
        return record
