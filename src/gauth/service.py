"""Request orchestration: validate the body, authorize, then run one operation.

Every HTTP route funnels through Orchestrator.handle(), so no operation can
run before the API key gate has accepted the request.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from gauth import qr
from gauth.auth import totp
from gauth.auth.gate import ApiKeyGate
from gauth.config import AuthSettings
from gauth.db import CredentialStore
from gauth.errors import MalformedRequestError
from gauth.lifecycle import SecretLifecycle
from gauth.models import (
    REQUEST_MODELS,
    AuthenticatedRequest,
    CreateRequest,
    CreateResponse,
    DeleteRequest,
    Operation,
    QrRequest,
    QrResponse,
    QrUrlResponse,
    StatusResponse,
    VerifyRequest,
    VerifyResponse,
)

logger = logging.getLogger(__name__)


def parse_request(op: Operation, payload: Any) -> AuthenticatedRequest:
    """Validate a decoded JSON body into the request model for ``op``."""
    if not isinstance(payload, dict):
        raise MalformedRequestError("Invalid JSON request body", detail="body is not a JSON object")
    try:
        return REQUEST_MODELS[op].model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        logger.info("Rejected %s request, bad fields: %s", op, fields)
        raise MalformedRequestError(detail=f"invalid fields: {fields}") from e


class Orchestrator:
    def __init__(self, store: CredentialStore, auth: AuthSettings) -> None:
        self.gate = ApiKeyGate(store)
        self.lifecycle = SecretLifecycle(store, auth.secret_len)
        self.auth = auth

    def handle(self, op: Operation, payload: Any) -> StatusResponse:
        request = parse_request(op, payload)
        caller = self.gate.authorize(request.api_key)
        logger.debug("%s request from %s", op, caller.host)

        if op is Operation.CREATE:
            return self.create(request)
        elif op is Operation.DELETE:
            return self.delete(request)
        elif op is Operation.VERIFY:
            return self.verify(request)
        elif op is Operation.RENDER_QR:
            return self.render_qr(request)
        elif op is Operation.RENDER_QR_URL:
            return self.render_qr_url(request)
        raise ValueError(f"Unknown operation: {op}")

    # --- operations (the gate has already run) ---

    def create(self, request: CreateRequest) -> CreateResponse:
        record = self.lifecycle.create(request.ident)
        return CreateResponse(ident=record.ident, secret=record.secret)

    def delete(self, request: DeleteRequest) -> StatusResponse:
        self.lifecycle.delete(request.ident)
        return StatusResponse()

    def verify(self, request: VerifyRequest) -> VerifyResponse:
        record = self.lifecycle.lookup(request.ident)
        verified = totp.verify_code(record.secret, request.code, self.auth.tolerance_windows)
        logger.info("Code verification for %s: %s", request.ident, "ok" if verified else "failed")
        return VerifyResponse(verified=verified)

    def render_qr(self, request: QrRequest) -> QrResponse:
        uri = self._provisioning_uri(request)
        svg = qr.qr_svg(
            uri,
            self.auth.default_width,
            self.auth.default_height,
            self.auth.qr_error_correction,
        )
        return QrResponse(qr_code=svg)

    def render_qr_url(self, request: QrRequest) -> QrUrlResponse:
        uri = self._provisioning_uri(request)
        url = qr.qr_url(
            uri,
            self.auth.default_width,
            self.auth.default_height,
            self.auth.qr_error_correction,
            self.auth.qr_url_base,
        )
        return QrUrlResponse(qr_code_url=url)

    def _provisioning_uri(self, request: QrRequest) -> str:
        record = self.lifecycle.lookup(request.ident)
        return totp.provisioning_uri(record.secret, request.name, request.title)
