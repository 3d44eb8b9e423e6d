"""Shared FastAPI dependencies used across routers."""

from fastapi import HTTPException
from sqlmodel import Session

from mod_catalog.models.mod import Mod
from mod_catalog.services.catalog_query import FULL_PROJECTION
from mod_catalog.services.mod_service import get_mod_by_url


def get_mod_or_404(url: str, session: Session, visible: bool | None = None) -> Mod:
    """Look up a mod by URL slug, raising 404 if not found."""
    mod = get_mod_by_url(session, url, visible=visible, projection=FULL_PROJECTION)
    if not mod:
        raise HTTPException(404, f"Mod '{url}' not found")
    return mod
