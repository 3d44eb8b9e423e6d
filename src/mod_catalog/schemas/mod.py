from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from mod_catalog.schemas.category import CategoryOut


class ModDownloadIn(BaseModel):
    name: str = ""
    url: str = ""


class ModScreenshotIn(BaseModel):
    url: str = ""


class ModSourceIn(BaseModel):
    # Browser forms post the source host as ``url``.
    source_url: str = Field(default="", validation_alias=AliasChoices("source_url", "url"))
    query: str = ""


class ModInstallerIn(BaseModel):
    source_url: str = ""
    url: str = ""


class ModEdit(BaseModel):
    """Full desired state of a mod and its dependent collections.

    ``banner`` is a ``data:`` URI. Leaving it out keeps the stored banner;
    ``remove_banner`` clears it.
    """

    id: int | None = None
    name: str
    url: str
    category_id: int | None = None
    owner_name: str | None = None
    description: str
    description_short: str = ""
    install: str | None = None
    visible: bool = True
    banner: str | None = None
    remove_banner: bool = False
    downloads: list[ModDownloadIn] = []
    screenshots: list[ModScreenshotIn] = []
    sources: list[ModSourceIn] = []
    installers: list[ModInstallerIn] = []


class ModDownloadOut(BaseModel):
    name: str
    url: str


class ModScreenshotOut(BaseModel):
    url: str


class ModSourceOut(BaseModel):
    source_url: str
    query: str
    link: str


class ModInstallerOut(BaseModel):
    source_url: str
    url: str


class ModOut(BaseModel):
    id: int
    url: str
    name: str
    owner_name: str | None = None
    description: str
    description_short: str
    install: str | None = None
    banner: str | None = None
    category_id: int | None = None
    visible: bool
    needs_recounting: bool
    created_at: datetime
    updated_at: datetime
    total_downloads: int
    total_views: int
    total_rating: float
    rating_hour: float
    rating_day: float
    rating_week: float
    rating_month: float
    rating_year: float
    category: CategoryOut | None = None
    downloads: list[ModDownloadOut] = []
    screenshots: list[ModScreenshotOut] = []
    sources: list[ModSourceOut] = []
    installers: list[ModInstallerOut] = []


class RelationFailureOut(BaseModel):
    kind: str
    key: str
    error: str


class EditResultOut(BaseModel):
    mod: ModOut
    relation_errors: list[RelationFailureOut] = []


class BrowseResultOut(BaseModel):
    items: list[ModOut]
    next_cursor: int | None = None
