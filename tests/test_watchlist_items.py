import os, sys, pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from app import create_app
from models import db, Movie, User, Watchlist, WatchlistItem, WatchlistStatus
from watchlist_core.settings import TmdbSettings
from watchlist_core.watchlist_items import WatchlistItemService


@pytest.fixture()
def app(tmp_path):
    os.environ.pop("API_TOKEN", None)
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path/'items.db'}",
        "API_TOKEN": None,
        "SEED_SAMPLE_DATA": False,
        "TMDB": TmdbSettings(access_token="test-token"),
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def watchlist_id(app):
    u = User(username="user1", email="user1@example.com", password="x")
    w = Watchlist(name="Favorites", description=None, user=u)
    db.session.add_all([
        u, w,
        Movie(id=550, title="Fight Club"),
        Movie(id=680, title="Pulp Fiction"),
        Movie(id=155, title="The Dark Knight"),
    ])
    db.session.commit()
    return w.id


def test_add_item_sets_status_and_title(watchlist_id):
    item = WatchlistItemService().add_item(watchlist_id, 680, WatchlistStatus.IN_PROGRESS)
    assert item == {
        "id": item["id"],
        "movie_id": 680,
        "movie_title": "Pulp Fiction",
        "status": "IN_PROGRESS",
        "rating": None,
        "notes": None,
    }

def test_add_item_defaults_to_not_watched(watchlist_id):
    assert WatchlistItemService().add_item(watchlist_id, 550)["status"] == "NOT_WATCHED"

def test_add_item_rejects_unknown_watchlist_or_movie(watchlist_id):
    svc = WatchlistItemService()
    assert svc.add_item(9999, 550) is None
    assert svc.add_item(watchlist_id, 424242) is None
    assert WatchlistItem.query.count() == 0

def test_add_item_twice_fails_even_with_other_status(watchlist_id):
    svc = WatchlistItemService()
    assert svc.add_item(watchlist_id, 550, WatchlistStatus.NOT_WATCHED) is not None
    assert svc.add_item(watchlist_id, 550, WatchlistStatus.WATCHED) is None
    assert svc.add_item(watchlist_id, 550, WatchlistStatus.NOT_WATCHED) is None
    assert WatchlistItem.query.count() == 1

def test_update_item_only_touches_supplied_fields(watchlist_id):
    svc = WatchlistItemService()
    item = svc.add_item(watchlist_id, 550)
    svc.update_item(item["id"], rating=3, notes="rewatch")

    updated = svc.update_item(item["id"], status=WatchlistStatus.WATCHED)
    assert updated["status"] == "WATCHED"
    assert updated["rating"] == 3
    assert updated["notes"] == "rewatch"

    # any status can move to any other
    assert svc.update_item(item["id"], status=WatchlistStatus.NOT_WATCHED)["status"] == "NOT_WATCHED"
    assert svc.update_item(item["id"], status=WatchlistStatus.IN_PROGRESS)["status"] == "IN_PROGRESS"

def test_update_unknown_item_changes_nothing(watchlist_id):
    svc = WatchlistItemService()
    item = svc.add_item(watchlist_id, 550)
    assert svc.update_item(item["id"] + 100, status=WatchlistStatus.WATCHED, rating=5) is None
    stored = db.session.get(WatchlistItem, item["id"])
    assert stored.status is WatchlistStatus.NOT_WATCHED
    assert stored.rating is None

def test_remove_then_get_is_not_found(watchlist_id):
    svc = WatchlistItemService()
    item = svc.add_item(watchlist_id, 550)
    assert svc.remove_item(item["id"]) is True
    assert svc.get_by_id(item["id"]) is None
    assert svc.remove_item(item["id"]) is False
    assert db.session.get(Movie, 550) is not None

def test_dangling_movie_renders_unknown(watchlist_id):
    svc = WatchlistItemService()
    item = svc.add_item(watchlist_id, 155)
    db.session.delete(db.session.get(Movie, 155)); db.session.commit()

    assert svc.get_by_id(item["id"])["movie_title"] == "Unknown"
    assert svc.list_items(watchlist_id)[0]["movie_title"] == "Unknown"
    assert svc.update_item(item["id"], notes="gone?")["movie_title"] == "Unknown"

def test_list_items_and_filter_by_status(watchlist_id):
    svc = WatchlistItemService()
    a = svc.add_item(watchlist_id, 550, WatchlistStatus.WATCHED)
    b = svc.add_item(watchlist_id, 680, WatchlistStatus.NOT_WATCHED)
    c = svc.add_item(watchlist_id, 155, WatchlistStatus.WATCHED)

    assert [i["id"] for i in svc.list_items(watchlist_id)] == [a["id"], b["id"], c["id"]]
    watched = svc.list_items_by_status(watchlist_id, WatchlistStatus.WATCHED)
    assert [i["movie_title"] for i in watched] == ["Fight Club", "The Dark Knight"]
    assert svc.list_items_by_status(watchlist_id, WatchlistStatus.IN_PROGRESS) == []
    assert svc.list_items(9999) == []


@pytest.mark.parametrize("raw, expected", [
    ("NOT_WATCHED", WatchlistStatus.NOT_WATCHED),
    ("watched", WatchlistStatus.WATCHED),
    ("À_VOIR", WatchlistStatus.NOT_WATCHED),
    ("VU", WatchlistStatus.WATCHED),
    ("EN_COURS", WatchlistStatus.IN_PROGRESS),
])
def test_status_parse_accepts_names_and_labels(raw, expected):
    assert WatchlistStatus.parse(raw) is expected

def test_status_parse_rejects_unknown():
    with pytest.raises(ValueError):
        WatchlistStatus.parse("SEEN")


# -- HTTP --

def test_http_item_routes(client, watchlist_id):
    r = client.post(f"/api/watchlist-items/watchlist/{watchlist_id}?movieId=550&status=EN_COURS")
    assert r.status_code == 201
    item_id = r.json["id"]
    assert r.json["status"] == "IN_PROGRESS"

    r = client.get(f"/api/watchlist-items/{item_id}")
    assert r.status_code == 200
    assert r.json["movie_title"] == "Fight Club"

    r = client.put(f"/api/watchlist-items/{item_id}", json={"rating": 5, "notes": "great"})
    assert r.status_code == 200
    assert (r.json["status"], r.json["rating"], r.json["notes"]) == ("IN_PROGRESS", 5, "great")

    r = client.get(f"/api/watchlist-items/watchlist/{watchlist_id}/status/IN_PROGRESS")
    assert [i["id"] for i in r.json] == [item_id]

    assert client.delete(f"/api/watchlist-items/{item_id}").status_code == 204
    assert client.get(f"/api/watchlist-items/{item_id}").status_code == 404
    assert client.get(f"/api/watchlist-items/watchlist/{watchlist_id}").json == []

def test_http_item_validation(client, watchlist_id):
    r = client.post(f"/api/watchlist-items/watchlist/{watchlist_id}", json={})
    assert r.status_code == 400
    assert "movie_id" in r.json["error"]["message"]

    r = client.post(f"/api/watchlist-items/watchlist/{watchlist_id}", json={"movie_id": 550, "status": "SEEN"})
    assert r.status_code == 400
    assert r.json["error"]["message"] == "Invalid status: SEEN"

    r = client.put("/api/watchlist-items/9999", json={"status": "VU"})
    assert r.status_code == 404

    item_id = client.post(f"/api/watchlist-items/watchlist/{watchlist_id}", json={"movie_id": 550}).json["id"]
    r = client.put(f"/api/watchlist-items/{item_id}", json={"rating": 42})
    assert r.status_code == 400

    r = client.put(f"/api/watchlist-items/{item_id}", json={"rating": 7.9})
    assert r.status_code == 400
    assert client.get(f"/api/watchlist-items/{item_id}").json["rating"] is None
