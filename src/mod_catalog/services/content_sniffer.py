"""Classify uploaded binaries by their leading bytes.

The label a client attaches to an upload (``data:image/png;...``) is never
trusted; only the signature at the start of the decoded payload decides what
gets stored.
"""

from enum import Enum

# Longest signature we inspect (RIFF????WEBP).
SNIFF_PREFIX_LEN = 12


class FileKind(Enum):
    PNG = "png"
    JPEG = "jpg"
    GIF = "gif"
    WEBP = "webp"
    UNKNOWN = "unknown"

    @property
    def extension(self) -> str:
        return self.value


_SIGNATURES: list[tuple[FileKind, bytes]] = [
    (FileKind.PNG, b"\x89PNG\r\n\x1a\n"),
    (FileKind.JPEG, b"\xff\xd8\xff"),
    (FileKind.GIF, b"GIF87a"),
    (FileKind.GIF, b"GIF89a"),
]


def classify(data: bytes) -> FileKind:
    """Return the kind matching the payload's signature, or ``FileKind.UNKNOWN``."""
    head = data[:SNIFF_PREFIX_LEN]
    for kind, signature in _SIGNATURES:
        if head.startswith(signature):
            return kind
    if len(head) == SNIFF_PREFIX_LEN and head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return FileKind.WEBP
    return FileKind.UNKNOWN
