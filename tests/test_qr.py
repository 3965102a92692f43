"""Tests for QR rendering."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from urllib.parse import parse_qs, urlparse

import pytest

from gauth.config import ErrorCorrection
from gauth.errors import RenderError
from gauth.qr import SVG_NS, qr_svg, qr_url

URI = "otpauth://totp/Acme:alice?secret=JBSWY3DPEHPK3PXP&issuer=Acme"


def test_qr_svg_document():
    svg = qr_svg(URI, 250, 150)
    root = ET.fromstring(svg)
    assert root.tag == f"{{{SVG_NS}}}svg"
    assert root.get("width") == "250"
    assert root.get("height") == "150"
    assert root.get("viewBox")
    assert svg.startswith("<svg ")
    assert "svg:" not in svg
    assert root.find(f"{{{SVG_NS}}}path") is not None


def test_qr_svg_error_correction_changes_output():
    low = qr_svg(URI, 200, 200, ErrorCorrection.LOW)
    high = qr_svg(URI, 200, 200, ErrorCorrection.HIGH)
    assert low != high


def test_qr_svg_overflow():
    with pytest.raises(RenderError) as exc:
        qr_svg("x" * 10_000, 200, 200)
    assert exc.value.message == "Failed to create qr code"


def test_qr_url():
    url = qr_url(URI, 200, 100, ErrorCorrection.MEDIUM, "https://chart.example.com/chart")
    parsed = urlparse(url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://chart.example.com/chart"
    params = parse_qs(parsed.query)
    assert params["chs"] == ["200x100"]
    assert params["chld"] == ["M|0"]
    assert params["cht"] == ["qr"]
    assert params["chl"] == [URI]


def test_qr_url_default_base():
    assert qr_url(URI, 200, 200).startswith("https://chart.googleapis.com/chart?")


def test_qr_url_without_base():
    with pytest.raises(RenderError) as exc:
        qr_url(URI, 200, 200, base_url="")
    assert exc.value.message == "Failed to create qr url"


def test_qr_svg_repeated_renders_stay_unprefixed():
    first = qr_svg(URI, 200, 200)
    second = qr_svg(URI + "&digits=6", 200, 200)
    for svg in (first, second):
        assert svg.startswith("<svg ")
        assert 'xmlns="http://www.w3.org/2000/svg"' in svg
