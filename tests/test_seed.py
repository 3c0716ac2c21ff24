import os, sys, pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from werkzeug.security import check_password_hash

from app import create_app
from models import db, Movie, User, Watchlist, WatchlistItem, WatchlistStatus
from seed import seed_sample_data
from watchlist_core.settings import TmdbSettings


@pytest.fixture()
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path/'seed.db'}",
        "API_TOKEN": None,
        "SEED_SAMPLE_DATA": True,
        "TMDB": TmdbSettings(access_token="test-token"),
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.engine.dispose()


def test_startup_seeds_sample_rows(app):
    assert User.query.count() == 3
    assert Movie.query.count() == 3
    assert Watchlist.query.count() == 3
    assert WatchlistItem.query.count() == 4

    admin = User.query.filter_by(username="admin").one()
    assert admin.role == "ADMIN"
    assert check_password_hash(admin.password, "adminpass")

def test_seed_is_idempotent(app):
    assert seed_sample_data() is False
    assert User.query.count() == 3
    assert WatchlistItem.query.count() == 4

def test_seeded_watchlists(app):
    user1 = User.query.filter_by(username="user1").one()
    assert [w.name for w in user1.watchlists] == ["Favorites", "To Watch"]

    favorites = Watchlist.query.filter_by(name="Favorites").one()
    (fight_club,) = favorites.items
    assert fight_club.movie_id == 550
    assert fight_club.status is WatchlistStatus.WATCHED
    assert fight_club.rating == 5

    classics = Watchlist.query.filter_by(name="Classics").one()
    assert [(i.movie_id, i.status) for i in classics.items] == [
        (550, WatchlistStatus.WATCHED),
        (155, WatchlistStatus.IN_PROGRESS),
    ]

def test_seeded_data_through_http(app):
    client = app.test_client()
    uid = client.get("/api/users/username/user1").json["id"]
    lists = client.get(f"/api/watchlists/user/{uid}").json
    assert lists[0]["items"][0]["movie_title"] == "Fight Club"
    assert lists[1]["items"][0]["status"] == "NOT_WATCHED"
    # the seeded catalog is not empty, so no TMDB sync happens
    assert [m["id"] for m in client.get("/api/movies").json] == [155, 550, 680]
