import re

from mod_catalog.services.content_sniffer import FileKind

ASSET_ROOT = "/images"

_SLUG_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def is_safe_slug(slug: str) -> bool:
    """True when *slug* can be used as a single path component under the asset root."""
    return bool(_SLUG_RE.fullmatch(slug))


def asset_path(slug: str, kind: FileKind, role: str | None = None, *, folder: str = "mod") -> str:
    """Build the public path an asset for *slug* is stored at.

    ``/images/{folder}/{slug}[_{role}].{ext}``. Re-uploading for the same slug
    and role lands on the same path and replaces the previous file.
    """
    if kind is FileKind.UNKNOWN:
        raise ValueError("Cannot name an asset of unknown type")
    stem = f"{slug}_{role}" if role else slug
    return f"{ASSET_ROOT}/{folder}/{stem}.{kind.extension}"
