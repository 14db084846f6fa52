"""Persist the published feature snapshot."""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from tempfile import NamedTemporaryFile

from featuresync.errors import OutputWriteError
from featuresync.logging_config import get_logger
from featuresync.models import OutputDocument

LOGGER = get_logger(__name__)

JSON_INDENT = 2

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def render_document(document: OutputDocument) -> str:
    """Serialize *document* with fixed key order and indentation."""

    text = json.dumps(document.to_payload(), indent=JSON_INDENT, ensure_ascii=False)
    # unpaired surrogates cannot be encoded as UTF-8; JSON.stringify escapes them
    return _LONE_SURROGATE.sub(lambda match: f"\\u{ord(match.group()):04x}", text)


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_document(document: OutputDocument, output_path: str | Path) -> Path:
    """Write *document* to *output_path*, replacing any previous snapshot.

    The payload is rendered in full before the file is touched and lands via
    a temporary sibling file, so the target is never left truncated.
    """

    path = Path(output_path)
    payload = render_document(document)
    tmp_name: str | None = None

    try:
        os.makedirs(path.parent, exist_ok=True)
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, _default_file_mode())
        os.replace(tmp_name, path)
    except (OSError, UnicodeError) as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputWriteError(f"Could not write {path}: {exc}", source=str(path)) from exc

    LOGGER.info("Wrote %s (%s bytes)", path, len(payload.encode("utf-8")))
    return path


__all__ = ["render_document", "write_document"]
