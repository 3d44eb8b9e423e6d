from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

import mod_catalog.models  # noqa: F401 - register all tables
from mod_catalog.database import configure_sqlite, get_session
from mod_catalog.main import app
from mod_catalog.models.category import Category
from mod_catalog.models.mod import Mod


@pytest.fixture
def engine():
    eng = configure_sqlite(
        create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )
    SQLModel.metadata.create_all(eng)
    return eng


@pytest.fixture
def public_dir(tmp_path, monkeypatch):
    root = tmp_path / "public"
    monkeypatch.setattr("mod_catalog.config.settings.public_dir", root)
    return root


@pytest.fixture
def session(engine, monkeypatch):
    with Session(engine) as sess:
        monkeypatch.setattr("mod_catalog.database.engine", engine)
        yield sess


@pytest.fixture
def client(engine, monkeypatch, public_dir):
    monkeypatch.setattr("mod_catalog.database.engine", engine)

    def _override_session() -> Generator[Session, None, None]:
        with Session(engine) as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_session
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc
    app.dependency_overrides.clear()


@pytest.fixture
def make_category(session):
    def _make(
        url: str = "weapons",
        name: str = "Weapons",
        name_short: str = "Wpn",
        parent_id: int | None = None,
    ) -> Category:
        category = Category(url=url, name=name, name_short=name_short, parent_id=parent_id)
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    return _make


@pytest.fixture
def make_mod(session):
    """Insert a mod directly, bypassing the edit flow, so popularity fields can be set."""

    def _make(url: str = "test-mod", **fields) -> Mod:
        fields.setdefault("name", url.replace("-", " ").title())
        fields.setdefault("description", "A test mod.")
        mod = Mod(url=url, **fields)
        session.add(mod)
        session.commit()
        session.refresh(mod)
        return mod

    return _make


@pytest.fixture
def seed(engine):
    """Commit rows through a short-lived session; for tests driving the API client."""

    def _seed(*rows: SQLModel) -> list[int]:
        with Session(engine) as s:
            for row in rows:
                s.add(row)
            s.commit()
            return [row.id for row in rows]  # type: ignore[attr-defined]

    return _seed
