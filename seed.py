# loads sample users, movies and watchlists into an empty database
import logging
from datetime import date

from werkzeug.security import generate_password_hash

from models import db, Movie, User, Watchlist, WatchlistItem, WatchlistStatus

logger = logging.getLogger(__name__)


def _sample_movies():
    return [
        Movie(
            id=550,  # Fight Club (TMDB id)
            title="Fight Club",
            overview="A ticking-time-bomb insomniac and a slippery soap salesman channel primal "
                     "male aggression into a shocking new form of therapy.",
            poster_path="/pB8BM7pdSp6B6Ih7QZ4DrQ3PmJK.jpg",
            release_date=date(1999, 10, 15),
            genres=["Drama", "Thriller"],
        ),
        Movie(
            id=680,  # Pulp Fiction
            title="Pulp Fiction",
            overview="A burger-loving hit man, his philosophical partner, a drug-addled gangster's "
                     "moll and a washed-up boxer converge in this sprawling, comedic crime caper.",
            poster_path="/d5iIlFn5s0ImszYzBPb8JPIfbXD.jpg",
            release_date=date(1994, 10, 14),
            genres=["Thriller", "Crime"],
        ),
        Movie(
            id=155,  # The Dark Knight
            title="The Dark Knight",
            overview="Batman raises the stakes in his war on crime. With the help of Lt. Jim Gordon "
                     "and District Attorney Harvey Dent, Batman sets out to dismantle the remaining "
                     "criminal organizations that plague the streets.",
            poster_path="/qJ2tW6WMUDux911r6m7haRef0WH.jpg",
            release_date=date(2008, 7, 18),
            genres=["Action", "Crime", "Drama", "Thriller"],
        ),
    ]


def _sample_users():
    return [
        User(username="user1", email="user1@example.com",
             password=generate_password_hash("password1"), role="USER"),
        User(username="user2", email="user2@example.com",
             password=generate_password_hash("password2"), role="USER"),
        User(username="admin", email="admin@example.com",
             password=generate_password_hash("adminpass"), role="ADMIN"),
    ]


def seed_sample_data() -> bool:
    """Inserts the sample rows unless users already exist. Returns True when it seeded."""
    if User.query.count() > 0:
        logger.info("Data already initialized, skipping sample data")
        return False

    logger.info("Initializing sample data")
    for m in _sample_movies():
        if db.session.get(Movie, m.id) is None:  # catalog may already be synced
            db.session.add(m)

    user1, user2, _admin = users = _sample_users()
    db.session.add_all(users)

    favorites = Watchlist(name="Favorites", description="My favorite movies of all time", user=user1)
    to_watch = Watchlist(name="To Watch", description="Movies I want to watch", user=user1)
    classics = Watchlist(name="Classics", description="Classic movies everyone should watch", user=user2)
    db.session.add_all([favorites, to_watch, classics])

    db.session.add_all([
        WatchlistItem(watchlist=favorites, movie_id=550, status=WatchlistStatus.WATCHED,
                      rating=5, notes="Absolutely brilliant!"),
        WatchlistItem(watchlist=to_watch, movie_id=680, status=WatchlistStatus.NOT_WATCHED),
        WatchlistItem(watchlist=classics, movie_id=550, status=WatchlistStatus.WATCHED,
                      rating=4, notes="A modern classic"),
        WatchlistItem(watchlist=classics, movie_id=155, status=WatchlistStatus.IN_PROGRESS),
    ])
    db.session.commit()
    logger.info("Sample data initialization completed")
    return True


if __name__ == "__main__":
    from app import create_app

    app = create_app()
    with app.app_context():
        seed_sample_data()
        print("Seeded users:", User.query.count(), "movies:", Movie.query.count())
