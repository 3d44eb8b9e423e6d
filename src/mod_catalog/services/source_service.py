"""Source sites: lookup, listing, and saving with icon/banner uploads."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from mod_catalog.errors import PersistenceConflictError, ValidationError
from mod_catalog.models.source import Source
from mod_catalog.schemas.source import SourceEdit, SourceOut
from mod_catalog.services.asset_ingest import resolve_asset
from mod_catalog.services.asset_paths import is_safe_slug

logger = logging.getLogger(__name__)

_ASSET_FOLDER = "source"


def source_to_out(source: Source) -> SourceOut:
    return SourceOut(
        id=source.id,  # type: ignore[arg-type]
        url=source.url,
        name=source.name,
        classes=source.classes,
        icon=source.icon,
        banner=source.banner,
    )


def get_source(session: Session, url: str) -> Source | None:
    return session.exec(select(Source).where(Source.url == url)).first()


def list_sources(session: Session) -> list[Source]:
    return list(session.exec(select(Source).order_by(Source.name)).all())  # type: ignore[arg-type]


def save_source(session: Session, data: SourceEdit) -> Source:
    """Create or update the source keyed by ``data.url``."""
    url = data.url.strip()
    if len(url) < 2:
        raise ValidationError("url", "URL")
    if not is_safe_slug(url):
        raise ValidationError(
            "url", "URL", "URL may only contain letters, digits, '.', '_' and '-'."
        )
    if not data.name.strip():
        raise ValidationError("name", "Name")

    source = get_source(session, url)
    icon = resolve_asset(
        source.icon if source else None, data.icon, data.remove_icon, url, folder=_ASSET_FOLDER
    )
    banner = resolve_asset(
        source.banner if source else None,
        data.banner,
        data.remove_banner,
        url,
        "banner",
        folder=_ASSET_FOLDER,
    )

    if source is None:
        source = Source(url=url, name=data.name)
    source.name = data.name
    source.classes = data.classes or None
    source.icon = icon
    source.banner = banner

    session.add(source)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.error("Error creating or updating source '%s': %s", url, exc.orig)
        raise PersistenceConflictError(f"Unable to save source '{url}': {exc.orig}") from exc
    session.refresh(source)
    logger.info("Saved source '%s'", url)
    return source
