"""Endpoints for browsing, viewing, and editing catalog mods."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from mod_catalog.config import settings
from mod_catalog.database import get_session
from mod_catalog.routers.deps import get_mod_or_404
from mod_catalog.schemas.mod import (
    BrowseResultOut,
    EditResultOut,
    ModEdit,
    ModOut,
    RelationFailureOut,
)
from mod_catalog.services.catalog_query import (
    BROWSE_PROJECTION,
    BrowseQuery,
    ModProjection,
    ModSort,
    Timeframe,
    browse,
)
from mod_catalog.services.category_service import descendant_ids, get_category
from mod_catalog.services.mod_service import (
    edit_mod,
    flag_needs_recounting,
    list_mods,
    mod_to_out,
    record_download,
    record_view,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mods", tags=["mods"])


@router.get("/", response_model=BrowseResultOut)
def browse_mods(
    search: str | None = None,
    categories: list[int] | None = Query(default=None),
    category: str | None = Query(default=None, description="Category URL, includes subcategories"),
    visible: bool | None = None,
    sort: ModSort | None = None,
    timeframe: Timeframe = Timeframe.ALL_TIME,
    cursor: int | None = None,
    count: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    session: Session = Depends(get_session),
) -> BrowseResultOut:
    """Return one ranked page of mods and the cursor for the next one."""
    category_ids: set[int] = set(categories or [])
    if category:
        cat = get_category(session, category)
        if not cat:
            raise HTTPException(404, f"Category '{category}' not found")
        category_ids |= descendant_ids(session, cat.id)  # type: ignore[arg-type]

    page = browse(
        session,
        BrowseQuery(
            search=search,
            categories=category_ids or None,
            visible=visible,
            sort=sort,
            timeframe=timeframe,
            cursor=cursor,
            page_size=count,
        ),
    )
    return BrowseResultOut(
        items=[mod_to_out(m, BROWSE_PROJECTION) for m in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/all", response_model=list[ModOut])
def all_mods(session: Session = Depends(get_session)) -> list[ModOut]:
    return [mod_to_out(m, ModProjection()) for m in list_mods(session)]


@router.get("/{url}", response_model=ModOut)
def get_mod(
    url: str,
    visible: bool | None = None,
    session: Session = Depends(get_session),
) -> ModOut:
    """Get a mod with its category and every dependent collection."""
    return mod_to_out(get_mod_or_404(url, session, visible))


@router.put("/", response_model=EditResultOut)
def save_mod(data: ModEdit, session: Session = Depends(get_session)) -> EditResultOut:
    """Create or update a mod from its full desired state."""
    result = edit_mod(session, data)
    return EditResultOut(
        mod=mod_to_out(result.mod),
        relation_errors=[
            RelationFailureOut(kind=f.kind, key=f.key, error=f.error)
            for f in result.relation_errors
        ],
    )


@router.post("/{url}/views", status_code=204)
def add_view(url: str, session: Session = Depends(get_session)) -> None:
    record_view(session, url)


@router.post("/{url}/downloads", status_code=204)
def add_download(url: str, session: Session = Depends(get_session)) -> None:
    record_download(session, url)


@router.post("/{mod_id}/recount", status_code=204)
def request_recount(mod_id: int, session: Session = Depends(get_session)) -> None:
    """Queue a mod for the external popularity recount."""
    flag_needs_recounting(session, mod_id)
