"""HTTP routes: the landing page and the authenticated JSON API."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from gauth.models import Operation
from gauth.service import Orchestrator

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter()


def _dispatch(request: Request, op: Operation, payload: Any) -> dict[str, Any]:
    orchestrator: Orchestrator = request.app.state.orchestrator
    return orchestrator.handle(op, payload).model_dump()


# --- HTML ---

@router.get("/", response_class=HTMLResponse)
def index_page(request: Request):
    return templates.TemplateResponse(request, "index.html")


# --- API ---
# Sync path operations: FastAPI runs them on its worker thread pool.

@router.post("/create")
def create(request: Request, payload: Any = Body(None)):
    """Create a secret for an ident: {api_key, ident} -> {status, ident, secret}."""
    return _dispatch(request, Operation.CREATE, payload)


@router.post("/delete")
def delete(request: Request, payload: Any = Body(None)):
    """Delete the secret for an ident: {api_key, ident} -> {status}."""
    return _dispatch(request, Operation.DELETE, payload)


@router.post("/verify")
def verify(request: Request, payload: Any = Body(None)):
    """Check a code: {api_key, ident, code} -> {status, verified}."""
    return _dispatch(request, Operation.VERIFY, payload)


@router.post("/qr")
def qr(request: Request, payload: Any = Body(None)):
    """SVG QR code: {api_key, ident, name, title} -> {status, qr_code}."""
    return _dispatch(request, Operation.RENDER_QR, payload)


@router.post("/qr_url")
def qr_url(request: Request, payload: Any = Body(None)):
    """QR image URL: {api_key, ident, name, title} -> {status, qr_code_url}."""
    return _dispatch(request, Operation.RENDER_QR_URL, payload)
