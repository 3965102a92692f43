"""Pydantic models for records and request/response payloads."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Operation(StrEnum):
    CREATE = "create"
    DELETE = "delete"
    VERIFY = "verify"
    RENDER_QR = "qr"
    RENDER_QR_URL = "qr_url"


# Column widths in schema.sql
MAX_API_KEY_LEN = 256
MAX_IDENT_LEN = 4096


def _reject_nul(v: str | None) -> str | None:
    # Postgres text cannot hold NUL
    if v is not None and "\x00" in v:
        raise ValueError("must not contain NUL characters")
    return v


# === Records ===


class CallerIdentity(BaseModel):
    """The host an API key is bound to."""

    host: str


class SecretRecord(BaseModel):
    id: int | None = None
    ident: str
    secret: str


# === Requests ===


class AuthenticatedRequest(BaseModel):
    """Base for every request body that must pass the API key gate.

    ``api_key`` is optional here so that a missing key is reported by the
    gate as an auth failure instead of as a malformed body.
    """

    model_config = ConfigDict(extra="ignore")

    api_key: str | None = Field(default=None, max_length=MAX_API_KEY_LEN)

    @field_validator("api_key")
    @classmethod
    def _api_key_no_nul(cls, v: str | None) -> str | None:
        return _reject_nul(v)


class IdentRequest(AuthenticatedRequest):
    ident: str = Field(min_length=1, max_length=MAX_IDENT_LEN)

    @field_validator("ident")
    @classmethod
    def _ident_no_nul(cls, v: str) -> str:
        return _reject_nul(v)


class CreateRequest(IdentRequest):
    pass


class DeleteRequest(IdentRequest):
    pass


class VerifyRequest(IdentRequest):
    code: str

    @field_validator("code", mode="before")
    @classmethod
    def _code_as_string(cls, v: object) -> object:
        # Clients may post the code as a JSON number; keep leading zeros.
        if isinstance(v, int) and not isinstance(v, bool):
            return f"{v:06d}"
        return v


class QrRequest(IdentRequest):
    name: str
    title: str


REQUEST_MODELS: dict[Operation, type[AuthenticatedRequest]] = {
    Operation.CREATE: CreateRequest,
    Operation.DELETE: DeleteRequest,
    Operation.VERIFY: VerifyRequest,
    Operation.RENDER_QR: QrRequest,
    Operation.RENDER_QR_URL: QrRequest,
}


# === Responses ===


class StatusResponse(BaseModel):
    status: bool = True


class CreateResponse(StatusResponse):
    ident: str
    secret: str


class VerifyResponse(StatusResponse):
    verified: bool


class QrResponse(StatusResponse):
    qr_code: str


class QrUrlResponse(StatusResponse):
    qr_code_url: str


class ErrorResponse(BaseModel):
    status: bool = False
    message: str
