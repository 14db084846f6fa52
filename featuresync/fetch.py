"""Acquire the raw vendor page markup from disk or over HTTPS."""

from __future__ import annotations

import codecs
from pathlib import Path
import re
import time
from typing import Any

import requests

from featuresync.config import Settings
from featuresync.errors import (
    BlockedByProtectionError,
    FetchNetworkError,
    SourceNotFoundError,
    SourceTimeoutError,
)
from featuresync.logging_config import get_logger

LOGGER = get_logger(__name__)

BLOCKED_STATUSES = frozenset({403, 503})
CHUNK_SIZE = 64 * 1024

_CHARSET_PATTERN = re.compile(r"charset=[\"']?([\w.:-]+)", re.IGNORECASE)


def read_local_source(path: str | Path) -> str:
    """Return the markup stored at *path*."""

    file_path = Path(path)
    LOGGER.info("Reading HTML from local file: %s", file_path)
    if not file_path.is_file():
        raise SourceNotFoundError(f"Local file not found: {file_path}", source=str(file_path))
    try:
        return file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise SourceNotFoundError(
            f"Local file could not be read: {exc}", source=str(file_path)
        ) from exc


def _response_encoding(response: Any) -> str:
    match = _CHARSET_PATTERN.search(response.headers.get("Content-Type", "") or "")
    if not match:
        return "utf-8"
    try:
        return codecs.lookup(match.group(1)).name
    except LookupError:
        return "utf-8"


def looks_like_challenge(markup: str, markers: tuple[str, ...]) -> bool:
    """Return True when *markup* carries a bot-verification interstitial marker."""

    return any(marker in markup for marker in markers)


def _download(http: Any, settings: Settings) -> str:
    url = settings.url
    deadline = time.monotonic() + settings.timeout_seconds
    LOGGER.info("Fetching data from %s", url)

    try:
        response = http.get(
            url,
            headers=settings.headers,
            timeout=settings.timeout_seconds,
            stream=True,
        )
    except requests.exceptions.Timeout as exc:
        raise SourceTimeoutError(source=url, stage="fetch") from exc
    except requests.exceptions.RequestException as exc:
        raise FetchNetworkError(str(exc), source=url, stage="fetch") from exc

    try:
        status = response.status_code
        if status in BLOCKED_STATUSES:
            raise BlockedByProtectionError(source=url, stage="fetch")
        if status >= 400:
            raise FetchNetworkError(f"Unexpected HTTP status {status}", source=url, stage="fetch")

        body = bytearray()
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise SourceTimeoutError(source=url, stage="fetch")
            body.extend(chunk)
    except requests.exceptions.Timeout as exc:
        raise SourceTimeoutError(source=url, stage="fetch") from exc
    except requests.exceptions.RequestException as exc:
        raise FetchNetworkError(str(exc), source=url, stage="fetch") from exc
    finally:
        response.close()

    markup = bytes(body).decode(_response_encoding(response), errors="replace")
    if looks_like_challenge(markup, settings.challenge_markers):
        raise BlockedByProtectionError(source=url, stage="fetch")

    LOGGER.debug("Received %s characters from %s", len(markup), url)
    return markup


def fetch_remote_source(settings: Settings, session: Any | None = None) -> str:
    """Download ``settings.url`` within ``settings.timeout_seconds``.

    The deadline covers the whole exchange, body included: once it passes,
    the response is closed and :class:`SourceTimeoutError` is raised. gzip
    and deflate bodies are decoded by ``requests`` while streaming.
    A *session* passed in is left open; one created here is closed.
    """

    if session is not None:
        return _download(session, settings)
    with requests.Session() as http:
        return _download(http, settings)


def acquire_source(
    local_path: str | Path | None,
    settings: Settings,
    session: Any | None = None,
) -> str:
    """Return raw markup from *local_path*, or from the remote page when it is None."""

    if local_path:
        return read_local_source(local_path)
    return fetch_remote_source(settings, session=session)


__all__ = [
    "acquire_source",
    "fetch_remote_source",
    "looks_like_challenge",
    "read_local_source",
]
