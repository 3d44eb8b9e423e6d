"""Replace a mod's dependent collections with the state submitted by an edit.

Each collection is synced delete-all-then-insert-all: every stored row for the
mod is removed, then the submitted entries are inserted fresh. Row ids of
dependent rows are therefore not stable across edits. Blank entries are
dropped and duplicates collapse onto their natural key, the last one winning.

Inserts run in their own SAVEPOINT so one bad entry cannot take the rest of
the collection, or the other collections, down with it. Failures come back as
``RelationFailure`` diagnostics instead of exceptions.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from mod_catalog.models.mod import ModDownload, ModInstaller, ModScreenshot, ModSource

logger = logging.getLogger(__name__)


class RelationKind(StrEnum):
    DOWNLOADS = "downloads"
    SCREENSHOTS = "screenshots"
    SOURCES = "sources"
    INSTALLERS = "installers"


@dataclass(frozen=True)
class _RelationSpec:
    model: type[SQLModel]
    fields: tuple[str, ...]
    key: tuple[str, ...]
    required: tuple[str, ...]


_SPECS: dict[RelationKind, _RelationSpec] = {
    RelationKind.DOWNLOADS: _RelationSpec(ModDownload, ("name", "url"), ("url",), ("url",)),
    RelationKind.SCREENSHOTS: _RelationSpec(ModScreenshot, ("url",), ("url",), ("url",)),
    RelationKind.SOURCES: _RelationSpec(
        ModSource, ("source_url", "query"), ("source_url",), ("source_url", "query")
    ),
    RelationKind.INSTALLERS: _RelationSpec(
        ModInstaller, ("source_url", "url"), ("source_url",), ("source_url", "url")
    ),
}


@dataclass
class RelationFailure:
    kind: RelationKind
    key: str
    error: str


@dataclass
class ReconcileResult:
    kind: RelationKind
    inserted: int = 0
    skipped: int = 0
    cleared: bool = True
    failures: list[RelationFailure] = field(default_factory=list)


def _value(entry: Any, name: str) -> str:
    raw = entry.get(name) if isinstance(entry, Mapping) else getattr(entry, name, None)
    return str(raw).strip() if raw is not None else ""


def desired_rows(kind: RelationKind, entries: Iterable[Any]) -> tuple[dict[tuple, dict], int]:
    """Normalize *entries* into ``{natural_key: values}``; also return the blank count."""
    spec = _SPECS[kind]
    rows: dict[tuple, dict] = {}
    skipped = 0
    for entry in entries:
        values = {name: _value(entry, name) for name in spec.fields}
        if any(not values[name] for name in spec.required):
            skipped += 1
            continue
        key = tuple(values[name] for name in spec.key)
        rows.pop(key, None)
        rows[key] = values
    return rows, skipped


def reconcile(
    session: Session, mod_id: int, kind: RelationKind, entries: Iterable[Any]
) -> ReconcileResult:
    """Make the stored *kind* rows of *mod_id* match *entries* exactly.

    Does not commit; the caller owns the transaction.
    """
    spec = _SPECS[kind]
    rows, skipped = desired_rows(kind, entries)
    result = ReconcileResult(kind=kind, skipped=skipped)

    try:
        with session.begin_nested():
            session.execute(
                delete(spec.model)
                .where(spec.model.mod_id == mod_id)  # type: ignore[attr-defined]
                .execution_options(synchronize_session="fetch")
            )
    except SQLAlchemyError:
        # Best effort; leftover rows surface as insert failures below.
        logger.warning("Failed to clear %s for mod %d", kind, mod_id, exc_info=True)
        result.cleared = False

    for key, values in rows.items():
        try:
            with session.begin_nested():
                session.add(spec.model(mod_id=mod_id, **values))
        except SQLAlchemyError as exc:
            key_label = "|".join(key)
            logger.warning("Failed to insert %s '%s' for mod %d: %s", kind, key_label, mod_id, exc)
            result.failures.append(RelationFailure(kind=kind, key=key_label, error=str(exc)))
        else:
            result.inserted += 1

    logger.debug(
        "Synced %s for mod %d: %d inserted, %d skipped, %d failed",
        kind,
        mod_id,
        result.inserted,
        result.skipped,
        len(result.failures),
    )
    return result


def reconcile_all(
    session: Session,
    mod_id: int,
    *,
    downloads: Iterable[Any] = (),
    screenshots: Iterable[Any] = (),
    sources: Iterable[Any] = (),
    installers: Iterable[Any] = (),
) -> list[ReconcileResult]:
    """Sync all four collections in a fixed order and commit once at the end."""
    results = [
        reconcile(session, mod_id, RelationKind.DOWNLOADS, downloads),
        reconcile(session, mod_id, RelationKind.SCREENSHOTS, screenshots),
        reconcile(session, mod_id, RelationKind.SOURCES, sources),
        reconcile(session, mod_id, RelationKind.INSTALLERS, installers),
    ]
    session.commit()
    return results
