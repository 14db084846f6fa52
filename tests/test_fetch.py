from dataclasses import replace
import gzip
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
import threading
import zlib

import pytest
import requests

from featuresync.config import DEFAULT_CONFIG, settings_from_config
from featuresync.errors import (
    BlockedByProtectionError,
    FetchNetworkError,
    SourceNotFoundError,
    SourceTimeoutError,
)
from featuresync.fetch import acquire_source, fetch_remote_source, read_local_source


class FakeResponse:
    def __init__(self, status_code=200, chunks=(b"<html></html>",), headers=None, error=None):
        self.status_code = status_code
        self.headers = headers or {"Content-Type": "text/html; charset=utf-8"}
        self._chunks = list(chunks)
        self._error = error
        self.closed = False

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture()
def settings(monkeypatch):
    for name in ("FEATURESYNC_URL", "FEATURESYNC_TIMEOUT", "FEATURESYNC_OUTPUT"):
        monkeypatch.delenv(name, raising=False)
    return settings_from_config(DEFAULT_CONFIG)


def test_read_local_source(tmp_path) -> None:
    page = tmp_path / "page.html"
    page.write_text("<html>café</html>", encoding="utf-8")

    assert read_local_source(page) == "<html>café</html>"


def test_read_local_source_missing_file(tmp_path) -> None:
    with pytest.raises(SourceNotFoundError):
        read_local_source(tmp_path / "missing.html")
    with pytest.raises(SourceNotFoundError):
        read_local_source(tmp_path)


def test_fetch_remote_source_sends_browser_headers(settings) -> None:
    response = FakeResponse(chunks=(b"<html>", b"<body>ok</body></html>"))
    session = FakeSession(response)

    markup = fetch_remote_source(settings, session=session)

    assert markup == "<html><body>ok</body></html>"
    url, kwargs = session.calls[0]
    assert url == "https://www.enhauto.com/pages/buttons-functions"
    assert kwargs["headers"]["Accept-Encoding"] == "gzip, deflate"
    assert "Mozilla/5.0" in kwargs["headers"]["User-Agent"]
    assert kwargs["timeout"] == 15.0
    assert kwargs["stream"] is True
    assert response.closed is True


def test_fetch_remote_source_uses_declared_charset(settings) -> None:
    response = FakeResponse(
        chunks=("café".encode("latin-1"),),
        headers={"Content-Type": "text/html; charset=ISO-8859-1"},
    )

    assert fetch_remote_source(settings, session=FakeSession(response)) == "café"


@pytest.mark.parametrize("status", [403, 503])
def test_fetch_remote_source_blocked_status(settings, status) -> None:
    response = FakeResponse(status_code=status)

    with pytest.raises(BlockedByProtectionError):
        fetch_remote_source(settings, session=FakeSession(response))
    assert response.closed is True


def test_fetch_remote_source_detects_challenge_page(settings) -> None:
    body = b"<html><title>Attention Required! | Cloudflare</title></html>"

    with pytest.raises(BlockedByProtectionError):
        fetch_remote_source(settings, session=FakeSession(FakeResponse(chunks=(body,))))


def test_fetch_remote_source_other_http_error(settings) -> None:
    with pytest.raises(FetchNetworkError):
        fetch_remote_source(settings, session=FakeSession(FakeResponse(status_code=404)))


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (requests.exceptions.ConnectTimeout("slow"), SourceTimeoutError),
        (requests.exceptions.ConnectionError("refused"), FetchNetworkError),
    ],
)
def test_fetch_remote_source_transport_errors(settings, error, expected) -> None:
    with pytest.raises(expected):
        fetch_remote_source(settings, session=FakeSession(error=error))


def test_fetch_remote_source_read_timeout_while_streaming(settings) -> None:
    response = FakeResponse(error=requests.exceptions.ReadTimeout("stalled"))

    with pytest.raises(SourceTimeoutError):
        fetch_remote_source(settings, session=FakeSession(response))
    assert response.closed is True


def test_fetch_remote_source_enforces_total_deadline(settings) -> None:
    expired = replace(settings, timeout_seconds=-1.0)
    response = FakeResponse(chunks=(b"<html>", b"</html>"))

    with pytest.raises(SourceTimeoutError):
        fetch_remote_source(expired, session=FakeSession(response))
    assert response.closed is True


def test_acquire_source_prefers_local_path(tmp_path, settings) -> None:
    page = tmp_path / "page.html"
    page.write_text("local", encoding="utf-8")
    session = FakeSession(FakeResponse())

    assert acquire_source(str(page), settings, session=session) == "local"
    assert session.calls == []
    assert acquire_source(None, settings, session=session) == "<html></html>"


class RecordingSession(requests.Session):
    def __init__(self, response):
        super().__init__()
        self.response = response
        self.closed = False

    def get(self, url, **kwargs):
        return self.response

    def close(self):
        self.closed = True
        super().close()


def test_fetch_remote_source_closes_session_it_creates(settings, monkeypatch) -> None:
    created = []

    def make_session():
        session = RecordingSession(FakeResponse())
        created.append(session)
        return session

    monkeypatch.setattr(requests, "Session", make_session)

    assert fetch_remote_source(settings) == "<html></html>"
    assert len(created) == 1
    assert created[0].closed is True


def test_fetch_remote_source_leaves_caller_session_open(settings) -> None:
    session = RecordingSession(FakeResponse())

    fetch_remote_source(settings, session=session)

    assert session.closed is False
    session.close()


PAGE = "<html><body>café quiz-element</body></html>".encode("utf-8")


class _EncodedPageHandler(BaseHTTPRequestHandler):
    encoders = {"gzip": gzip.compress, "deflate": zlib.compress}

    def do_GET(self):
        encoding = self.path.strip("/")
        body = self.encoders[encoding](PAGE)
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Encoding", encoding)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture()
def page_server(monkeypatch):
    for name in ("HTTP_PROXY", "http_proxy", "ALL_PROXY", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    server = ThreadingHTTPServer(("127.0.0.1", 0), _EncodedPageHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.mark.parametrize("encoding", ["gzip", "deflate"])
def test_fetch_remote_source_decodes_compressed_body(settings, page_server, encoding) -> None:
    local = replace(settings, url=f"{page_server}/{encoding}", timeout_seconds=5.0)

    assert fetch_remote_source(local) == PAGE.decode("utf-8")
