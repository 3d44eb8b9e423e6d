"""Read access to the category taxonomy."""

from sqlmodel import Session, select

from mod_catalog.models.category import Category
from mod_catalog.schemas.category import CategoryOut, CategoryTreeOut


def category_to_out(category: Category) -> CategoryOut:
    return CategoryOut(
        id=category.id,  # type: ignore[arg-type]
        url=category.url,
        name=category.name,
        name_short=category.name_short,
        has_bg=category.has_bg,
        parent_id=category.parent_id,
    )


def get_category(session: Session, url: str) -> Category | None:
    return session.exec(select(Category).where(Category.url == url)).first()


def list_categories(session: Session) -> list[CategoryTreeOut]:
    """Return top-level categories with their direct children nested.

    Children whose parent no longer exists are listed at the top level.
    """
    categories = session.exec(select(Category).order_by(Category.name)).all()  # type: ignore[arg-type]
    ids = {c.id for c in categories}

    children: dict[int, list[CategoryOut]] = {}
    roots: list[Category] = []
    for c in categories:
        if c.parent_id is not None and c.parent_id in ids:
            children.setdefault(c.parent_id, []).append(category_to_out(c))
        else:
            roots.append(c)

    return [
        CategoryTreeOut(
            **category_to_out(c).model_dump(),
            children=children.get(c.id, []),  # type: ignore[arg-type]
        )
        for c in roots
    ]


def descendant_ids(session: Session, category_id: int) -> set[int]:
    """Return *category_id* plus the ids of every category below it."""
    rows = session.exec(select(Category.id, Category.parent_id)).all()
    by_parent: dict[int, list[int]] = {}
    for cid, parent_id in rows:
        if parent_id is not None:
            by_parent.setdefault(parent_id, []).append(cid)  # type: ignore[arg-type]

    found = {category_id}
    stack = [category_id]
    while stack:
        for child in by_parent.get(stack.pop(), []):
            if child not in found:
                found.add(child)
                stack.append(child)
    return found
