from sqlmodel import Field, SQLModel


class Source(SQLModel, table=True):
    """An external site hosting mods; ``ModSource.source_url`` refers to ``url``."""

    __tablename__ = "sources"

    id: int | None = Field(default=None, primary_key=True)
    url: str = Field(index=True, unique=True)
    name: str
    classes: str | None = None
    icon: str | None = None
    banner: str | None = None
