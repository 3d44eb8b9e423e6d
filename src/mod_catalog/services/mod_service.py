"""Mod lookups, the edit flow, and popularity event recording.

An edit carries the complete desired state of a mod. It runs as:
validate → store banner → upsert and commit the mod row → sync the four
dependent collections. The mod row is committed before the collections are
touched, so a sync failure never loses the mod itself; it is reported back
in ``EditResult.relation_errors`` instead.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from mod_catalog.errors import NotFoundError, PersistenceConflictError, ValidationError
from mod_catalog.models.mod import Mod, ModDownloadEvent, ModViewEvent
from mod_catalog.schemas.category import CategoryOut
from mod_catalog.schemas.mod import (
    ModDownloadOut,
    ModEdit,
    ModInstallerOut,
    ModOut,
    ModScreenshotOut,
    ModSourceOut,
)
from mod_catalog.services.asset_ingest import resolve_asset
from mod_catalog.services.asset_paths import is_safe_slug
from mod_catalog.services.catalog_query import FULL_PROJECTION, ModProjection
from mod_catalog.services.relation_sync import RelationFailure, reconcile_all

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = {"url": "URL", "name": "Name", "description": "Description"}

_locks_guard = threading.Lock()
# key -> (lock, number of edits holding or waiting on it)
_edit_locks: dict[str, tuple[threading.Lock, int]] = {}


@contextmanager
def _edit_lock(key: str) -> Iterator[None]:
    """Serialize edits of the same mod within this process.

    An entry lives only while some edit holds or waits on its lock.
    """
    with _locks_guard:
        entry = _edit_locks.get(key)
        lock, users = entry if entry else (threading.Lock(), 0)
        _edit_locks[key] = (lock, users + 1)
    try:
        with lock:
            yield
    finally:
        with _locks_guard:
            users = _edit_locks[key][1]
            if users == 1:
                del _edit_locks[key]
            else:
                _edit_locks[key] = (lock, users - 1)


@dataclass
class EditResult:
    mod: Mod
    relation_errors: list[RelationFailure] = field(default_factory=list)


def source_link(source_url: str, query: str) -> str:
    return f"https://{source_url}/{query}"


def mod_to_out(mod: Mod, projection: ModProjection = FULL_PROJECTION) -> ModOut:
    """Convert a Mod row to ModOut, touching only the projected relations."""
    category = None
    if projection.category and mod.category is not None:
        c = mod.category
        category = CategoryOut(
            id=c.id,  # type: ignore[arg-type]
            url=c.url,
            name=c.name,
            name_short=c.name_short,
            has_bg=c.has_bg,
            parent_id=c.parent_id,
        )

    return ModOut(
        id=mod.id,  # type: ignore[arg-type]
        url=mod.url,
        name=mod.name,
        owner_name=mod.owner_name,
        description=mod.description,
        description_short=mod.description_short,
        install=mod.install,
        banner=mod.banner,
        category_id=mod.category_id,
        visible=mod.visible,
        needs_recounting=mod.needs_recounting,
        created_at=mod.created_at,
        updated_at=mod.updated_at,
        total_downloads=mod.total_downloads,
        total_views=mod.total_views,
        total_rating=mod.total_rating,
        rating_hour=mod.rating_hour,
        rating_day=mod.rating_day,
        rating_week=mod.rating_week,
        rating_month=mod.rating_month,
        rating_year=mod.rating_year,
        category=category,
        downloads=[ModDownloadOut(name=d.name, url=d.url) for d in mod.downloads]
        if projection.downloads
        else [],
        screenshots=[ModScreenshotOut(url=s.url) for s in mod.screenshots]
        if projection.screenshots
        else [],
        sources=[
            ModSourceOut(
                source_url=s.source_url,
                query=s.query,
                link=source_link(s.source_url, s.query),
            )
            for s in mod.sources
        ]
        if projection.sources
        else [],
        installers=[ModInstallerOut(source_url=i.source_url, url=i.url) for i in mod.installers]
        if projection.installers
        else [],
    )


def get_mod_by_url(
    session: Session,
    url: str,
    visible: bool | None = None,
    projection: ModProjection = FULL_PROJECTION,
) -> Mod | None:
    """Look up a mod by slug, optionally requiring a visibility state."""
    stmt = select(Mod).where(Mod.url == url).options(*projection.options())
    if visible is not None:
        stmt = stmt.where(Mod.visible == visible)
    return session.exec(stmt).first()


def list_mods(session: Session) -> list[Mod]:
    return list(session.exec(select(Mod).order_by(Mod.id)).all())  # type: ignore[arg-type]


def _validate(data: ModEdit) -> None:
    for name, label in _REQUIRED_FIELDS.items():
        if not getattr(data, name).strip():
            raise ValidationError(name, label)
    if not is_safe_slug(data.url):
        raise ValidationError(
            "url", "URL", "URL may only contain letters, digits, '.', '_' and '-'."
        )


def _upsert(session: Session, data: ModEdit, banner: str | None, existing: Mod | None) -> Mod:
    now = datetime.now(UTC)
    mod = existing or Mod(url=data.url, name=data.name, description=data.description)
    mod.url = data.url
    mod.name = data.name
    mod.owner_name = data.owner_name
    mod.category_id = data.category_id
    mod.description = data.description
    mod.description_short = data.description_short
    mod.install = data.install
    mod.visible = data.visible
    mod.banner = banner
    mod.updated_at = now

    session.add(mod)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.error("Error creating or updating mod '%s': %s", data.url, exc.orig)
        raise PersistenceConflictError(f"Unable to save mod '{data.url}': {exc.orig}") from exc
    session.refresh(mod)
    return mod


def edit_mod(session: Session, data: ModEdit) -> EditResult:
    """Create or update a mod and replace all of its dependent collections."""
    _validate(data)

    with _edit_lock(str(data.id) if data.id else data.url):
        existing = session.get(Mod, data.id) if data.id else None
        banner = resolve_asset(
            existing.banner if existing else None,
            data.banner,
            data.remove_banner,
            data.url,
        )
        mod = _upsert(session, data, banner, existing)
        mod_id: int = mod.id  # type: ignore[assignment]

        results = reconcile_all(
            session,
            mod_id,
            downloads=data.downloads,
            screenshots=data.screenshots,
            sources=data.sources,
            installers=data.installers,
        )

    failures = [f for r in results for f in r.failures]
    if failures:
        logger.warning("Mod %d saved with %d relation failure(s)", mod_id, len(failures))
    logger.info("%s mod %d ('%s')", "Updated" if existing else "Created", mod_id, mod.url)

    session.refresh(mod)
    return EditResult(mod=mod, relation_errors=failures)


def flag_needs_recounting(session: Session, mod_id: int) -> Mod:
    """Mark a mod for the external popularity recount. Nothing else changes."""
    mod = session.get(Mod, mod_id)
    if mod is None:
        raise NotFoundError(f"Mod {mod_id} not found")
    mod.needs_recounting = True
    session.add(mod)
    session.commit()
    session.refresh(mod)
    return mod


def _require_by_url(session: Session, url: str) -> Mod:
    mod = get_mod_by_url(session, url, projection=ModProjection())
    if mod is None:
        raise NotFoundError(f"Mod '{url}' not found")
    return mod


def record_view(session: Session, url: str) -> None:
    """Log a view event and queue the mod for recounting."""
    mod = _require_by_url(session, url)
    session.add(ModViewEvent(mod_id=mod.id))  # type: ignore[arg-type]
    flag_needs_recounting(session, mod.id)  # type: ignore[arg-type]


def record_download(session: Session, url: str) -> None:
    """Log a download click and queue the mod for recounting."""
    mod = _require_by_url(session, url)
    session.add(ModDownloadEvent(mod_id=mod.id))  # type: ignore[arg-type]
    flag_needs_recounting(session, mod.id)  # type: ignore[arg-type]
