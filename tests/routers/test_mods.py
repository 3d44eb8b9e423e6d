import base64

from mod_catalog.models.category import Category
from mod_catalog.models.mod import Mod, ModDownload

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


def _payload(**overrides) -> dict:
    data = {
        "name": "Better Lights",
        "url": "better-lights",
        "description": "Brighter nights.",
        "description_short": "Brighter nights",
    }
    data.update(overrides)
    return data


class TestBrowseMods:
    def test_empty(self, client):
        r = client.get("/api/v1/mods/")
        assert r.status_code == 200
        assert r.json() == {"items": [], "next_cursor": None}

    def test_day_ranking_with_cursor(self, client, seed):
        low, high, mid = seed(
            Mod(url="low", name="Low", description="d", rating_day=1.0),
            Mod(url="high", name="High", description="d", rating_day=9.0),
            Mod(url="mid", name="Mid", description="d", rating_day=5.0),
        )

        r = client.get("/api/v1/mods/", params={"timeframe": 1, "count": 2})
        assert r.status_code == 200
        data = r.json()
        assert [m["id"] for m in data["items"]] == [high, mid]
        assert data["next_cursor"] == low

        r = client.get(
            "/api/v1/mods/", params={"timeframe": 1, "count": 2, "cursor": data["next_cursor"]}
        )
        data = r.json()
        assert [m["id"] for m in data["items"]] == [low]
        assert data["next_cursor"] is None

    def test_sort_param(self, client, seed):
        a, b = seed(
            Mod(url="a", name="A", description="d", total_downloads=1, total_rating=9.0),
            Mod(url="b", name="B", description="d", total_downloads=5, total_rating=0.0),
        )
        r = client.get("/api/v1/mods/", params={"sort": "downloads"})
        assert [m["id"] for m in r.json()["items"]] == [b, a]

    def test_invalid_sort_rejected(self, client):
        r = client.get("/api/v1/mods/", params={"sort": "random"})
        assert r.status_code == 422

    def test_invalid_timeframe_rejected(self, client):
        r = client.get("/api/v1/mods/", params={"timeframe": 9})
        assert r.status_code == 422

    def test_count_bounds(self, client):
        assert client.get("/api/v1/mods/", params={"count": 0}).status_code == 422

    def test_search_and_categories(self, client, seed):
        (cat_id,) = seed(Category(url="weapons", name="Weapons", name_short="Wpn"))
        (other_id,) = seed(Category(url="audio", name="Audio", name_short="Snd"))
        forge, _quiet = seed(
            Mod(
                url="hats", name="Hats", description="d", owner_name="ForgeTeam", category_id=cat_id
            ),
            Mod(url="quiet", name="Quiet", description="d", category_id=other_id),
        )

        r = client.get("/api/v1/mods/", params={"search": "forge"})
        assert [m["id"] for m in r.json()["items"]] == [forge]

        r = client.get("/api/v1/mods/", params={"categories": [cat_id]})
        items = r.json()["items"]
        assert [m["id"] for m in items] == [forge]
        assert items[0]["category"]["url"] == "weapons"

    def test_category_url_includes_children(self, client, seed):
        (parent_id,) = seed(Category(url="weapons", name="Weapons"))
        (child_id,) = seed(Category(url="rifles", name="Rifles", parent_id=parent_id))
        in_parent, in_child = seed(
            Mod(url="p", name="P", description="d", category_id=parent_id),
            Mod(url="c", name="C", description="d", category_id=child_id),
        )

        r = client.get("/api/v1/mods/", params={"category": "weapons"})
        assert {m["id"] for m in r.json()["items"]} == {in_parent, in_child}

        r = client.get("/api/v1/mods/", params={"category": "rifles"})
        assert [m["id"] for m in r.json()["items"]] == [in_child]

    def test_unknown_category_url(self, client):
        r = client.get("/api/v1/mods/", params={"category": "nope"})
        assert r.status_code == 404

    def test_visibility(self, client, seed):
        shown, _hidden = seed(
            Mod(url="shown", name="Shown", description="d"),
            Mod(url="hidden", name="Hidden", description="d", visible=False),
        )
        r = client.get("/api/v1/mods/", params={"visible": True})
        assert [m["id"] for m in r.json()["items"]] == [shown]


class TestGetMod:
    def test_not_found(self, client):
        r = client.get("/api/v1/mods/missing")
        assert r.status_code == 404

    def test_full_mod(self, client):
        client.put(
            "/api/v1/mods/",
            json=_payload(
                downloads=[{"name": "Main", "url": "http://a"}],
                sources=[{"url": "nexusmods.com", "query": "mods/1"}],
            ),
        )
        r = client.get("/api/v1/mods/better-lights")
        assert r.status_code == 200
        data = r.json()
        assert data["downloads"] == [{"name": "Main", "url": "http://a"}]
        assert data["sources"][0]["link"] == "https://nexusmods.com/mods/1"

    def test_visibility_param(self, client, seed):
        seed(Mod(url="hidden", name="Hidden", description="d", visible=False))
        assert client.get("/api/v1/mods/hidden").status_code == 200
        assert client.get("/api/v1/mods/hidden", params={"visible": True}).status_code == 404

    def test_all_mods(self, client, seed):
        ids = seed(
            Mod(url="a", name="A", description="d"),
            Mod(url="b", name="B", description="d"),
        )
        r = client.get("/api/v1/mods/all")
        assert [m["id"] for m in r.json()] == ids


class TestSaveMod:
    def test_create(self, client):
        r = client.put("/api/v1/mods/", json=_payload())
        assert r.status_code == 200
        data = r.json()
        assert data["mod"]["url"] == "better-lights"
        assert data["relation_errors"] == []

    def test_replaces_downloads(self, client, seed, engine):
        from sqlmodel import Session, select

        (mod_id,) = seed(Mod(id=7, url="seven", name="Seven", description="d"))
        seed(ModDownload(mod_id=mod_id, name="Old", url="http://old"))

        r = client.put(
            "/api/v1/mods/",
            json=_payload(
                id=7,
                url="seven",
                downloads=[{"name": "Main", "url": "http://a"}, {"name": "", "url": ""}],
            ),
        )
        assert r.status_code == 200
        assert r.json()["mod"]["downloads"] == [{"name": "Main", "url": "http://a"}]

        with Session(engine) as s:
            rows = s.exec(select(ModDownload).where(ModDownload.mod_id == 7)).all()
            assert [(d.name, d.url) for d in rows] == [("Main", "http://a")]

    def test_empty_name_rejected(self, client):
        r = client.put("/api/v1/mods/", json=_payload(name=""))
        assert r.status_code == 422
        assert r.json() == {"detail": "Name is empty.", "error": "validation_error"}

    def test_unsafe_url_rejected(self, client, public_dir):
        banner = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
        r = client.put("/api/v1/mods/", json=_payload(url="../../../escaped", banner=banner))
        assert r.status_code == 422
        assert r.json()["error"] == "validation_error"
        assert client.get("/api/v1/mods/all").json() == []
        assert not (public_dir.parent / "escaped.png").exists()

    def test_banner_upload(self, client, public_dir):
        banner = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
        r = client.put("/api/v1/mods/", json=_payload(banner=banner))
        assert r.status_code == 200
        assert r.json()["mod"]["banner"] == "/images/mod/better-lights.png"
        assert (public_dir / "images" / "mod" / "better-lights.png").exists()

    def test_malformed_banner(self, client):
        r = client.put("/api/v1/mods/", json=_payload(banner="garbage"))
        assert r.status_code == 400
        assert r.json()["error"] == "malformed_payload"

    def test_unsupported_banner(self, client):
        banner = "data:image/png;base64," + base64.b64encode(b"not an image").decode()
        r = client.put("/api/v1/mods/", json=_payload(banner=banner))
        assert r.status_code == 415

    def test_url_conflict(self, client, seed):
        seed(Mod(url="better-lights", name="Other", description="d"))
        r = client.put("/api/v1/mods/", json=_payload())
        assert r.status_code == 409
        assert r.json()["error"] == "persistence_conflict"


class TestCounters:
    def test_view_flags_recount(self, client, seed):
        seed(Mod(url="viewed", name="Viewed", description="d"))
        r = client.post("/api/v1/mods/viewed/views")
        assert r.status_code == 204
        assert client.get("/api/v1/mods/viewed").json()["needs_recounting"] is True

    def test_download_flags_recount(self, client, seed):
        seed(Mod(url="dl", name="DL", description="d"))
        assert client.post("/api/v1/mods/dl/downloads").status_code == 204
        assert client.get("/api/v1/mods/dl").json()["needs_recounting"] is True

    def test_counter_unknown_mod(self, client):
        assert client.post("/api/v1/mods/nope/views").status_code == 404

    def test_recount(self, client, seed):
        (mod_id,) = seed(Mod(url="r", name="R", description="d"))
        assert client.post(f"/api/v1/mods/{mod_id}/recount").status_code == 204
        assert client.get("/api/v1/mods/r").json()["needs_recounting"] is True

    def test_recount_unknown(self, client):
        assert client.post("/api/v1/mods/999/recount").status_code == 404
