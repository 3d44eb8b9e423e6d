from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from mod_catalog.models.category import Category


class Mod(SQLModel, table=True):
    __tablename__ = "mods"

    id: int | None = Field(default=None, primary_key=True)
    url: str = Field(index=True, unique=True)
    name: str
    owner_name: str | None = None
    description: str
    description_short: str = ""
    install: str | None = None
    banner: str | None = None
    category_id: int | None = Field(default=None, foreign_key="categories.id", index=True)
    visible: bool = True
    needs_recounting: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Owned by the external recount job; never written by the edit path.
    total_downloads: int = 0
    total_views: int = 0
    total_rating: float = 0.0
    rating_hour: float = 0.0
    rating_day: float = 0.0
    rating_week: float = 0.0
    rating_month: float = 0.0
    rating_year: float = 0.0

    category: Category | None = Relationship()
    downloads: list["ModDownload"] = Relationship(back_populates="mod", cascade_delete=True)
    sources: list["ModSource"] = Relationship(back_populates="mod", cascade_delete=True)
    screenshots: list["ModScreenshot"] = Relationship(back_populates="mod", cascade_delete=True)
    installers: list["ModInstaller"] = Relationship(back_populates="mod", cascade_delete=True)


class ModDownload(SQLModel, table=True):
    __tablename__ = "mod_downloads"
    __table_args__ = (UniqueConstraint("mod_id", "url"),)

    id: int | None = Field(default=None, primary_key=True)
    mod_id: int = Field(foreign_key="mods.id", ondelete="CASCADE", index=True)
    name: str = ""
    url: str

    mod: Mod | None = Relationship(back_populates="downloads")


class ModSource(SQLModel, table=True):
    __tablename__ = "mod_sources"
    __table_args__ = (UniqueConstraint("mod_id", "source_url"),)

    id: int | None = Field(default=None, primary_key=True)
    mod_id: int = Field(foreign_key="mods.id", ondelete="CASCADE", index=True)
    source_url: str
    query: str

    mod: Mod | None = Relationship(back_populates="sources")


class ModScreenshot(SQLModel, table=True):
    __tablename__ = "mod_screenshots"
    __table_args__ = (UniqueConstraint("mod_id", "url"),)

    id: int | None = Field(default=None, primary_key=True)
    mod_id: int = Field(foreign_key="mods.id", ondelete="CASCADE", index=True)
    url: str

    mod: Mod | None = Relationship(back_populates="screenshots")


class ModInstaller(SQLModel, table=True):
    __tablename__ = "mod_installers"
    __table_args__ = (UniqueConstraint("mod_id", "source_url"),)

    id: int | None = Field(default=None, primary_key=True)
    mod_id: int = Field(foreign_key="mods.id", ondelete="CASCADE", index=True)
    source_url: str
    url: str

    mod: Mod | None = Relationship(back_populates="installers")


class ModViewEvent(SQLModel, table=True):
    __tablename__ = "mod_view_events"

    id: int | None = Field(default=None, primary_key=True)
    mod_id: int = Field(foreign_key="mods.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ModDownloadEvent(SQLModel, table=True):
    __tablename__ = "mod_download_events"

    id: int | None = Field(default=None, primary_key=True)
    mod_id: int = Field(foreign_key="mods.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
