from pydantic import BaseModel


class SourceOut(BaseModel):
    id: int
    url: str
    name: str
    classes: str | None = None
    icon: str | None = None
    banner: str | None = None


class SourceEdit(BaseModel):
    """Full desired state of a source. Icon and banner are ``data:`` URIs."""

    url: str
    name: str
    classes: str | None = None
    icon: str | None = None
    banner: str | None = None
    remove_icon: bool = False
    remove_banner: bool = False
