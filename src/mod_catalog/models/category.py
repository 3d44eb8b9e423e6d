from sqlmodel import Field, SQLModel


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)
    url: str = Field(index=True, unique=True)
    name: str
    name_short: str = ""
    has_bg: bool = False
    # Plain reference, not containment; deleting a parent leaves children orphaned.
    parent_id: int | None = Field(default=None, foreign_key="categories.id", index=True)
