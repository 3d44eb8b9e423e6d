"""Endpoints for the external source sites mods link to."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from mod_catalog.database import get_session
from mod_catalog.schemas.source import SourceEdit, SourceOut
from mod_catalog.services.source_service import (
    get_source,
    list_sources,
    save_source,
    source_to_out,
)

router = APIRouter(prefix="/sources", tags=["sources"])


@router.get("/", response_model=list[SourceOut])
def list_all_sources(session: Session = Depends(get_session)) -> list[SourceOut]:
    return [source_to_out(s) for s in list_sources(session)]


@router.get("/{url}", response_model=SourceOut)
def get_source_by_url(url: str, session: Session = Depends(get_session)) -> SourceOut:
    source = get_source(session, url)
    if not source:
        raise HTTPException(404, f"Source '{url}' not found")
    return source_to_out(source)


@router.put("/", response_model=SourceOut)
def upsert_source(data: SourceEdit, session: Session = Depends(get_session)) -> SourceOut:
    """Create or update a source, storing any uploaded icon or banner."""
    return source_to_out(save_source(session, data))
