"""Ranked, filtered, cursor-paginated browsing of the mod catalog.

Every query orders by exactly one ranking column, descending, with ``id``
descending as tie-breaker. Pages are fetched by keyset: the cursor is the id of
the first mod of the next page, and the page starting there is located with a
compound ``(rank, id)`` inequality rather than an OFFSET so inserts ahead of
the cursor do not shift later pages.
"""

import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, select

from mod_catalog.config import settings
from mod_catalog.models.category import Category
from mod_catalog.models.mod import Mod

logger = logging.getLogger(__name__)


class ModSort(StrEnum):
    VIEWS = "views"
    DOWNLOADS = "downloads"
    UPDATED = "updated"
    CREATED = "created"


class Timeframe(IntEnum):
    HOUR = 0
    DAY = 1
    WEEK = 2
    MONTH = 3
    YEAR = 4
    ALL_TIME = 5


_SORT_COLUMNS = {
    ModSort.VIEWS: Mod.total_views,
    ModSort.DOWNLOADS: Mod.total_downloads,
    ModSort.UPDATED: Mod.updated_at,
    ModSort.CREATED: Mod.created_at,
}

_TIMEFRAME_COLUMNS = {
    Timeframe.HOUR: Mod.rating_hour,
    Timeframe.DAY: Mod.rating_day,
    Timeframe.WEEK: Mod.rating_week,
    Timeframe.MONTH: Mod.rating_month,
    Timeframe.YEAR: Mod.rating_year,
    Timeframe.ALL_TIME: Mod.total_rating,
}


@dataclass(frozen=True)
class ModProjection:
    """Which relations of a mod to load alongside it."""

    category: bool = False
    downloads: bool = False
    screenshots: bool = False
    sources: bool = False
    installers: bool = False

    def options(self) -> list[Any]:
        opts: list[Any] = []
        if self.category:
            opts.append(selectinload(Mod.category))  # type: ignore[arg-type]
        if self.downloads:
            opts.append(selectinload(Mod.downloads))  # type: ignore[arg-type]
        if self.screenshots:
            opts.append(selectinload(Mod.screenshots))  # type: ignore[arg-type]
        if self.sources:
            opts.append(selectinload(Mod.sources))  # type: ignore[arg-type]
        if self.installers:
            opts.append(selectinload(Mod.installers))  # type: ignore[arg-type]
        return opts


FULL_PROJECTION = ModProjection(
    category=True, downloads=True, screenshots=True, sources=True, installers=True
)
BROWSE_PROJECTION = ModProjection(category=True, sources=True)


@dataclass
class BrowseQuery:
    search: str | None = None
    categories: Collection[int] | None = None
    visible: bool | None = None
    sort: ModSort | None = None
    timeframe: Timeframe = Timeframe.ALL_TIME
    cursor: int | None = None
    page_size: int | None = None
    projection: ModProjection = BROWSE_PROJECTION


@dataclass
class BrowsePage:
    items: list[Mod] = field(default_factory=list)
    next_cursor: int | None = None


def ranking_column(sort: ModSort | None, timeframe: Timeframe) -> Any:
    """An explicit *sort* wins; otherwise rank by the timeframe's rating."""
    if sort is not None:
        return _SORT_COLUMNS[ModSort(sort)]
    return _TIMEFRAME_COLUMNS[Timeframe(timeframe)]


def _page_size(requested: int | None) -> int:
    size = requested if requested is not None else settings.default_page_size
    return max(1, min(size, settings.max_page_size))


def _search_clause(term: str) -> Any:
    # lower() on both sides so the store folds the column and the term alike
    return or_(
        col(Mod.name).icontains(term, autoescape=True),
        col(Mod.description_short).icontains(term, autoescape=True),
        col(Mod.owner_name).icontains(term, autoescape=True),
        col(Category.name).icontains(term, autoescape=True),
        col(Category.name_short).icontains(term, autoescape=True),
    )


def browse(session: Session, query: BrowseQuery) -> BrowsePage:
    """Return one page of mods plus the cursor of the next page, if any."""
    page_size = _page_size(query.page_size)
    rank = ranking_column(query.sort, query.timeframe)

    stmt = select(Mod)
    search = (query.search or "").strip()
    if search:
        stmt = stmt.outerjoin(Category, Mod.category_id == Category.id).where(
            _search_clause(search)
        )
    if query.categories:
        stmt = stmt.where(Mod.category_id.in_(list(query.categories)))  # type: ignore[union-attr]
    if query.visible is not None:
        stmt = stmt.where(Mod.visible == query.visible)

    if query.cursor is not None:
        anchor = session.get(Mod, query.cursor)
        if anchor is None:
            logger.info("Browse cursor %d no longer exists", query.cursor)
            return BrowsePage()
        anchor_rank = getattr(anchor, rank.key)
        stmt = stmt.where(
            or_(rank < anchor_rank, and_(rank == anchor_rank, Mod.id <= query.cursor))
        )

    stmt = (
        stmt.order_by(rank.desc(), Mod.id.desc())  # type: ignore[union-attr]
        .limit(page_size + 1)
        .options(*query.projection.options())
    )
    rows = list(session.exec(stmt).all())

    next_cursor = None
    if len(rows) > page_size:
        next_cursor = rows.pop().id
    return BrowsePage(items=rows, next_cursor=next_cursor)
