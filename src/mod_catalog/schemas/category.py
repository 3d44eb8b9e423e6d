from pydantic import BaseModel


class CategoryOut(BaseModel):
    id: int
    url: str
    name: str
    name_short: str
    has_bg: bool
    parent_id: int | None = None


class CategoryTreeOut(CategoryOut):
    children: list[CategoryOut] = []
