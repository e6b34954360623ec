from __future__ import annotations

import os
import socket
from typing import Any, Callable, List, Optional

import pytest
import requests

os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("SOURCEWRITER_GENERATION_BACKEND", "huggingface")

from sourcewriter.config import Settings, get_settings  # noqa: E402


class NetworkBlockedError(RuntimeError):
    pass


def _blocked(*_args: Any, **_kwargs: Any) -> Any:
    raise NetworkBlockedError(
        "Network access is disabled during tests. Mark the test with @pytest.mark.network."
    )


@pytest.fixture(autouse=True)
def _disable_network(monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest) -> None:
    """Prevent accidental outbound network calls in unit tests."""

    if request.node.get_closest_marker("network"):
        return

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket, "getaddrinfo", _blocked)


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    """Build real `requests.Response` objects for stubbed HTTP calls."""

    def _make(
        status_code: int = 200,
        text: str = "",
        url: str = "https://example.com",
    ) -> requests.Response:
        resp = requests.Response()
        resp.status_code = status_code
        resp._content = text.encode("utf-8")
        resp.encoding = "utf-8"
        resp.url = url
        resp.reason = "OK" if status_code < 400 else "Error"
        return resp

    return _make


def _pdf_bytes(pages: List[str]) -> bytes:
    """Assemble a minimal uncompressed PDF with one line of Helvetica text per page."""
    font_id = 3
    first_page_id = 4
    objects: List[bytes] = []

    kids = " ".join(f"{first_page_id + 2 * i} 0 R" for i in range(len(pages)))
    objects.append(b"<< /Type /Catalog /Pages 2 0 R >>")
    objects.append(f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode())
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")

    for i, text in enumerate(pages):
        content_id = first_page_id + 2 * i + 1
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1")
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 {font_id} 0 R >> >> /Contents {content_id} 0 R >>"
            ).encode()
        )
        objects.append(
            b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream"
        )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode()
    return bytes(out)


@pytest.fixture
def make_pdf() -> Callable[[List[str]], bytes]:
    return _pdf_bytes


@pytest.fixture
def settings() -> Settings:
    return Settings(
        hf_api_key="test-secret-key",
        hf_model="test-org/test-model",
        hf_api_base="https://inference.test/models",
    )


@pytest.fixture
def client(settings: Settings):
    from fastapi.testclient import TestClient

    from sourcewriter.main import app

    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def stub_endpoint(monkeypatch: pytest.MonkeyPatch, make_response):
    """Replace the inference endpoint with a canned response and record calls."""

    calls: List[dict] = []

    def _install(text: str, status_code: int = 200, error: Optional[Exception] = None) -> List[dict]:
        def _post(url, headers=None, json=None, **kwargs):
            calls.append({"url": url, "headers": headers, "json": json})
            if error is not None:
                raise error
            return make_response(status_code=status_code, text=text, url=url)

        monkeypatch.setattr("sourcewriter.generator.requests.post", _post)
        return calls

    return _install
