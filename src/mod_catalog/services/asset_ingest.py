"""Decode ``data:`` URI uploads and persist them under the public directory."""

import base64
import binascii
import logging
import os
import tempfile
from pathlib import Path

from mod_catalog.config import settings
from mod_catalog.errors import (
    MalformedPayloadError,
    StorageWriteError,
    UnsupportedFileTypeError,
    ValidationError,
)
from mod_catalog.services.asset_paths import asset_path, is_safe_slug
from mod_catalog.services.content_sniffer import FileKind, classify

logger = logging.getLogger(__name__)


def decode_payload(payload: str) -> bytes:
    """Return the binary body of a ``{metadata},{base64}`` payload."""
    _meta, sep, body = payload.partition(",")
    if not sep:
        raise MalformedPayloadError("Payload has no ',' separating metadata from data.")
    body = body.strip()
    if not body:
        raise MalformedPayloadError("Payload body is empty.")
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedPayloadError(f"Unable to decode base64 body: {exc}") from exc


def _write_atomic(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile("wb", delete=False, dir=target.parent)
    tmp_path = tmp.name
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, target)
    except OSError:
        Path(tmp_path).unlink(missing_ok=True)
        raise


def ingest(payload: str, slug: str, role: str | None = None, *, folder: str = "mod") -> str:
    """Store an uploaded asset and return the path to record on the owning row.

    Nothing is written unless the payload decodes and sniffs as a supported
    image; the write itself is the final step.
    """
    if not is_safe_slug(slug):
        raise ValidationError("url", "URL", f"'{slug}' cannot be used as an asset name.")

    data = decode_payload(payload)
    kind = classify(data)
    if kind is FileKind.UNKNOWN:
        raise UnsupportedFileTypeError("Unknown or unsupported file type for upload.")

    path = asset_path(slug, kind, role, folder=folder)
    target = settings.public_dir / path.lstrip("/")
    try:
        _write_atomic(target, data)
    except OSError as exc:
        logger.error("Failed to write asset %s: %s", target, exc)
        raise StorageWriteError(path, exc) from exc

    logger.info("Stored %s asset for '%s' at %s (%d bytes)", kind.name, slug, path, len(data))
    return path


def resolve_asset(
    current: str | None,
    payload: str | None,
    remove: bool,
    slug: str,
    role: str | None = None,
    *,
    folder: str = "mod",
) -> str | None:
    """Work out the asset path to record after an edit.

    An explicit removal wins and clears the path. A missing or empty payload
    keeps whatever was stored before.
    """
    if remove:
        return None
    if not payload:
        return current
    return ingest(payload, slug, role, folder=folder)
