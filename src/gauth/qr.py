"""QR rendering of otpauth:// provisioning URIs (SVG documents and chart URLs)."""

from __future__ import annotations

import io
import logging
import xml.etree.ElementTree as ET
from urllib.parse import quote, urlencode

import qrcode
import qrcode.constants
import qrcode.exceptions
import qrcode.image.svg

from gauth.config import ErrorCorrection
from gauth.errors import RenderError

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

_QR_LEVELS = {
    ErrorCorrection.LOW: qrcode.constants.ERROR_CORRECT_L,
    ErrorCorrection.MEDIUM: qrcode.constants.ERROR_CORRECT_M,
    ErrorCorrection.QUARTILE: qrcode.constants.ERROR_CORRECT_Q,
    ErrorCorrection.HIGH: qrcode.constants.ERROR_CORRECT_H,
}


def _resize(svg: bytes, width: int, height: int) -> str:
    root = ET.fromstring(svg)
    if "viewBox" not in root.attrib:
        # Sizes come back in mm; reuse the numbers so the drawing still scales.
        w = root.get("width", str(width)).removesuffix("mm")
        h = root.get("height", str(height)).removesuffix("mm")
        root.set("viewBox", f"0 0 {w} {h}")
    root.set("width", str(width))
    root.set("height", str(height))
    # qrcode registers an "svg:" prefix on every render; write plain tags instead.
    prefix = f"{{{SVG_NS}}}"
    for el in root.iter():
        if isinstance(el.tag, str) and el.tag.startswith(prefix):
            el.tag = el.tag[len(prefix):]
    root.set("xmlns", SVG_NS)
    return ET.tostring(root, encoding="unicode")


def qr_svg(
    uri: str,
    width: int,
    height: int,
    error_correction: ErrorCorrection = ErrorCorrection.MEDIUM,
) -> str:
    """Render ``uri`` as an SVG document sized ``width`` x ``height`` pixels."""
    try:
        qr = qrcode.QRCode(
            error_correction=_QR_LEVELS[error_correction],
            border=1,
            image_factory=qrcode.image.svg.SvgPathImage,
        )
        qr.add_data(uri)
        qr.make(fit=True)
        buf = io.BytesIO()
        qr.make_image().save(buf)
        return _resize(buf.getvalue(), width, height)
    except (qrcode.exceptions.DataOverflowError, ValueError, ET.ParseError) as e:
        logger.error("Error creating qr code: %s", e)
        raise RenderError(detail=str(e)) from e


def qr_url(
    uri: str,
    width: int,
    height: int,
    error_correction: ErrorCorrection = ErrorCorrection.MEDIUM,
    base_url: str = "https://chart.googleapis.com/chart",
) -> str:
    """Build a chart-API URL that renders ``uri`` as a QR image."""
    if not base_url:
        logger.error("Error creating qr url: no base url configured")
        raise RenderError("Failed to create qr url", detail="qr_url_base is empty")
    params = {
        "chs": f"{width}x{height}",
        "chld": f"{error_correction.value}|0",
        "cht": "qr",
        "chl": uri,
    }
    return f"{base_url}?{urlencode(params, quote_via=quote)}"
