from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from mod_catalog.database import get_session
from mod_catalog.schemas.category import CategoryOut, CategoryTreeOut
from mod_catalog.services.category_service import category_to_out, get_category, list_categories

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=list[CategoryTreeOut])
def list_all_categories(session: Session = Depends(get_session)) -> list[CategoryTreeOut]:
    return list_categories(session)


@router.get("/{url}", response_model=CategoryOut)
def get_category_by_url(url: str, session: Session = Depends(get_session)) -> CategoryOut:
    category = get_category(session, url)
    if not category:
        raise HTTPException(404, f"Category '{url}' not found")
    return category_to_out(category)
