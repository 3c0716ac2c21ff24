import enum
from datetime import datetime
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class WatchlistStatus(enum.Enum):
    # values are the stored labels
    NOT_WATCHED = "À_VOIR"
    WATCHED = "VU"
    IN_PROGRESS = "EN_COURS"

    @classmethod
    def parse(cls, raw):
        """Accepts the canonical name (any case) or the accented label."""
        if isinstance(raw, cls):
            return raw
        s = (raw or "").strip()
        for status in cls:
            if s.upper() == status.name or s == status.value:
                return status
        raise ValueError(f"Invalid status: {raw}")


class User(db.Model):
    __tablename__ = "app_user"
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)  # salted hash, never plain text
    role = db.Column(db.String(16), nullable=False, default="USER")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    watchlists = db.relationship(
        "Watchlist", back_populates="user",
        cascade="all, delete-orphan", order_by="Watchlist.id",
    )

    def __repr__(self):
        return f"<User {self.id} {self.username!r}>"


class Movie(db.Model):  # catalog entry, id comes from TMDB
    __tablename__ = "movie"
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    title = db.Column(db.String(255), nullable=False, index=True)
    overview = db.Column(db.Text, nullable=True)
    poster_path = db.Column(db.String(255), nullable=True)
    release_date = db.Column(db.Date, nullable=True)
    genres = db.Column(db.JSON, nullable=False, default=list)  # ordered genre names
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Movie {self.id} {self.title!r}>"


class Watchlist(db.Model):
    __tablename__ = "watchlist"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_watchlist_user_name"),
    )
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("app_user.id"), nullable=False, index=True)

    user = db.relationship("User", back_populates="watchlists")
    items = db.relationship(
        "WatchlistItem", back_populates="watchlist",
        cascade="all, delete-orphan", order_by="WatchlistItem.id",
    )

    def __repr__(self):
        return f"<Watchlist {self.id} {self.name!r}>"


class WatchlistItem(db.Model):
    __tablename__ = "watchlist_item"
    __table_args__ = (
        db.UniqueConstraint("watchlist_id", "movie_id", name="uq_watchlist_item_movie"),
    )
    id = db.Column(db.Integer, primary_key=True)
    watchlist_id = db.Column(db.Integer, db.ForeignKey("watchlist.id"), nullable=False, index=True)
    # plain column: items may outlive the movie they point at
    movie_id = db.Column(db.Integer, nullable=False)
    status = db.Column(db.Enum(WatchlistStatus), nullable=False, default=WatchlistStatus.NOT_WATCHED)
    rating = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    watchlist = db.relationship("Watchlist", back_populates="items")

    def __repr__(self):
        return f"<WatchlistItem {self.id} movie={self.movie_id} {self.status.name}>"
