"""File ingestion: bytes <-> self-contained content references.

A content reference is a base64 ``data:`` URL, so a stored document can be
rendered or downloaded without resolving any file path.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import re

DEFAULT_MIME_TYPE = "application/octet-stream"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*?);base64,(?P<payload>.*)$", re.DOTALL)


def guess_mime_type(filename: str) -> str:
    mime, _ = mimetypes.guess_type(filename or "")
    return mime or DEFAULT_MIME_TYPE


def to_content_ref(data: bytes, filename: str = "", mime_type: str | None = None) -> str:
    """Encode file bytes as ``data:<mime>;base64,<payload>``."""
    mime = mime_type or guess_mime_type(filename)
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{payload}"


def from_content_ref(ref: str) -> tuple[str, bytes]:
    """Decode a content reference into ``(mime_type, bytes)``.

    Raises ValueError if *ref* is not a base64 data URL.
    """
    match = _DATA_URL_RE.match(ref or "")
    if not match:
        raise ValueError("Not a base64 data URL")
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc
    return match.group("mime") or DEFAULT_MIME_TYPE, data


def download_filename(name: str, mime_type: str) -> str:
    """File name for a download; adds an extension from *mime_type* if *name* has none."""
    name = name.strip() or "download"
    if "." in name.rsplit("/", 1)[-1]:
        return name
    return name + (mimetypes.guess_extension(mime_type) or "")
