from mod_catalog.models.category import Category
from mod_catalog.models.mod import (
    Mod,
    ModDownload,
    ModDownloadEvent,
    ModInstaller,
    ModScreenshot,
    ModSource,
    ModViewEvent,
)
from mod_catalog.models.source import Source

__all__ = [
    "Category",
    "Mod",
    "ModDownload",
    "ModDownloadEvent",
    "ModInstaller",
    "ModScreenshot",
    "ModSource",
    "ModViewEvent",
    "Source",
]
