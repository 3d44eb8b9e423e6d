from fastapi import APIRouter

from mod_catalog.routers.categories import router as categories_router
from mod_catalog.routers.mods import router as mods_router
from mod_catalog.routers.sources import router as sources_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(mods_router)
api_router.include_router(categories_router)
api_router.include_router(sources_router)
