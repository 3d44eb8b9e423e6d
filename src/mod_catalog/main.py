import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import mod_catalog.models  # noqa: F401 - register all models with SQLModel
from mod_catalog.database import create_db_and_tables
from mod_catalog.errors import CatalogError
from mod_catalog.routers import api_router


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    for name in ("sqlalchemy.engine", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)


_configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    create_db_and_tables()
    logger.info("Application started")
    yield
    logger.info("Shutting down...")
    try:
        from mod_catalog.database import engine

        engine.dispose()
        logger.info("Database engine disposed")
    except Exception:
        logger.exception("Failed to dispose database engine")
    logger.info("Shutdown complete")


app = FastAPI(
    title="Mod Catalog",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(_request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.kind, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.kind},
    )


app.include_router(api_router)


@app.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
