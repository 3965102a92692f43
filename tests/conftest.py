"""Shared fixtures: an in-memory CredentialStore and a wired-up app."""

from __future__ import annotations

import threading

import pytest
from fastapi.testclient import TestClient

from gauth.config import Settings
from gauth.db import API_KEY_CONSTRAINT, IDENT_CONSTRAINT, SECRET_CONSTRAINT
from gauth.errors import DuplicateEntryError, StoreError
from gauth.models import SecretRecord
from gauth.service import Orchestrator
from gauth.web.app import create_app

API_KEY = "k" * 32
HOST = "client.example.com"
# base32 of the RFC 6238 SHA1 seed "12345678901234567890"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


class MemoryStore:
    """CredentialStore fake with the same unique constraints as schema.sql."""

    def __init__(self) -> None:
        self.api_keys: dict[str, str] = {}
        self.secrets: dict[str, SecretRecord] = {}
        self.fail = False
        self._next_id = 1
        self._lock = threading.Lock()

    def _check(self) -> None:
        if self.fail:
            raise StoreError("connection refused")

    def add_api_key(self, host: str, api_key: str) -> None:
        self._check()
        with self._lock:
            if api_key in self.api_keys:
                raise DuplicateEntryError("duplicate api key", API_KEY_CONSTRAINT)
            self.api_keys[api_key] = host

    def get_host_for_api_key(self, api_key: str) -> str | None:
        self._check()
        return self.api_keys.get(api_key)

    def create_secret(self, ident: str, secret: str) -> int:
        self._check()
        with self._lock:
            if ident in self.secrets:
                raise DuplicateEntryError("duplicate ident", IDENT_CONSTRAINT)
            if any(r.secret == secret for r in self.secrets.values()):
                raise DuplicateEntryError("duplicate secret", SECRET_CONSTRAINT)
            record_id = self._next_id
            self._next_id += 1
            self.secrets[ident] = SecretRecord(id=record_id, ident=ident, secret=secret)
            return record_id

    def delete_secret(self, ident: str) -> int:
        self._check()
        with self._lock:
            return 1 if self.secrets.pop(ident, None) is not None else 0

    def get_secret(self, ident: str) -> SecretRecord | None:
        self._check()
        return self.secrets.get(ident)

    def close(self) -> None:
        pass


@pytest.fixture
def store() -> MemoryStore:
    s = MemoryStore()
    s.add_api_key(HOST, API_KEY)
    return s


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def orchestrator(store, settings) -> Orchestrator:
    return Orchestrator(store, settings.auth)


@pytest.fixture
def client(store, settings):
    app = create_app(settings, store=store)
    with TestClient(app) as c:
        yield c
