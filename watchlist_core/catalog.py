"""
Local movie catalog, and the sync that backfills it from TMDB.

The catalog is read through :class:`CatalogService`. When it is asked for
every movie while the table is empty, it asks :class:`CatalogSync` for a
bounded number of TMDB "popular" pages, stores what came back and returns
that batch. Upstream trouble never fails the read: a broken page is
skipped, a dead connection stops the fetch, and whatever was collected so
far is kept.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from models import db, Movie
from .dto import movie_to_dict
from .errors import (
    ConflictError, NotFoundError, UpstreamError, MalformedPayloadError, ValidationError,
)
from .metrics import CATALOG_SYNC_MOVIES

logger = logging.getLogger(__name__)


def parse_release_date(raw: Any) -> Optional[date]:
    if isinstance(raw, date):
        return raw
    if not raw or not isinstance(raw, str):
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        logger.info("Ignoring unparseable release date %r", raw)
        return None


def _genre_list(raw: Any) -> List[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(g, str) for g in raw):
        raise ValidationError("genres must be a list of strings")
    return [g.strip() for g in raw if g.strip()]


def movie_from_tmdb(raw: Dict[str, Any], genre_lookup: Optional[Dict[int, str]] = None) -> Optional[Movie]:
    """Builds an unsaved Movie from a TMDB result; None when id or title is missing."""
    if not isinstance(raw, dict):
        return None
    tmdb_id = raw.get("id")
    title = (raw.get("title") or raw.get("name") or "").strip()
    if isinstance(tmdb_id, bool) or not isinstance(tmdb_id, int) or not title:
        logger.debug("Skipping TMDB record without id/title: %r", raw.get("id"))
        return None

    if isinstance(raw.get("genres"), list):  # detail payloads carry names already
        genres = [g["name"] for g in raw["genres"] if isinstance(g, dict) and g.get("name")]
    else:
        lookup = genre_lookup or {}
        genres = [lookup[gid] for gid in (raw.get("genre_ids") or []) if gid in lookup]

    return Movie(
        id=tmdb_id,
        title=title,
        overview=raw.get("overview"),
        poster_path=raw.get("poster_path"),
        release_date=parse_release_date(raw.get("release_date")),
        genres=genres,
    )


class CatalogSync:
    """Pulls TMDB popular pages, at most ``max_pages`` of them."""

    def __init__(self, client, max_pages: int = 5):
        self.client = client
        self.max_pages = max_pages

    def _genre_lookup(self) -> Dict[int, str]:
        try:
            return self.client.genre_names()
        except UpstreamError as e:
            logger.warning("Genre list unavailable, syncing without genres: %s", e)
            return {}

    def fetch_popular(self) -> List[Movie]:
        fetched: Dict[int, Movie] = {}
        genre_lookup = self._genre_lookup()

        last_page = self.max_pages
        page = 1
        while page <= last_page:
            try:
                payload = self.client.popular_movies(page)
            except MalformedPayloadError as e:
                logger.warning("Skipping TMDB page %s: %s", page, e)
                page += 1
                continue
            except UpstreamError as e:
                logger.error("TMDB sync stopped at page %s, keeping %s movies: %s", page, len(fetched), e)
                break

            results = payload.get("results") if isinstance(payload, dict) else None
            if not isinstance(results, list):
                logger.warning("Skipping TMDB page %s: no results list", page)
                page += 1
                continue

            total_pages = payload.get("total_pages")
            if isinstance(total_pages, int) and not isinstance(total_pages, bool) and total_pages > 0:
                last_page = min(self.max_pages, total_pages)

            for raw in results:
                movie = movie_from_tmdb(raw, genre_lookup)
                if movie is not None and movie.id not in fetched:
                    fetched[movie.id] = movie
            logger.info("Fetched TMDB page %s (%s results)", page, len(results))
            page += 1

        logger.info("TMDB sync fetched %s movies", len(fetched))
        return list(fetched.values())


class CatalogService:
    def __init__(self, sync: Optional[CatalogSync] = None, image_base_url: Optional[str] = None):
        self.sync = sync
        self.image_base_url = image_base_url

    def _dto(self, m: Movie) -> Dict[str, Any]:
        return movie_to_dict(m, self.image_base_url)

    def find_all(self) -> List[Dict[str, Any]]:
        movies = Movie.query.order_by(Movie.id.asc()).all()
        if not movies and self.sync is not None:
            logger.info("Catalog is empty, fetching popular movies from TMDB")
            batch = self.sync.fetch_popular()
            if batch:
                try:
                    db.session.add_all(batch)
                    db.session.commit()
                    movies = batch
                    CATALOG_SYNC_MOVIES.inc(len(batch))
                except IntegrityError:
                    # another request filled the catalog first
                    db.session.rollback()
                    movies = Movie.query.order_by(Movie.id.asc()).all()
        return [self._dto(m) for m in movies]

    def page(self, qry, page: int, page_size: int) -> Dict[str, Any]:
        total = qry.count()
        items = qry.offset((page - 1) * page_size).limit(page_size).all()
        return {
            "page": page,
            "page_size": page_size,
            "total": total,
            "items": [self._dto(m) for m in items],
        }

    def search(self, query: Optional[str]) -> List[Dict[str, Any]]:
        q = (query or "").strip()
        if not q:
            return []
        rows = Movie.query.filter(Movie.title.ilike(f"%{q}%")).order_by(Movie.title.asc()).all()
        return [self._dto(m) for m in rows]

    def recent(self, limit: int = 10) -> List[Dict[str, Any]]:
        rows = (
            Movie.query.order_by(Movie.release_date.desc().nulls_last(), Movie.id.asc())
                       .limit(limit)
                       .all()
        )
        return [self._dto(m) for m in rows]

    def get_by_id(self, movie_id: int) -> Optional[Dict[str, Any]]:
        m = db.session.get(Movie, movie_id)
        return self._dto(m) if m else None

    def title_of(self, movie_id: int) -> Optional[str]:
        return db.session.query(Movie.title).filter(Movie.id == movie_id).scalar()

    def titles_for(self, movie_ids) -> Dict[int, str]:
        ids = set(movie_ids)
        if not ids:
            return {}
        rows = db.session.query(Movie.id, Movie.title).filter(Movie.id.in_(ids)).all()
        return {mid: title for mid, title in rows}

    def exists(self, movie_id: int) -> bool:
        return db.session.query(Movie.id).filter(Movie.id == movie_id).first() is not None

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        movie_id = data.get("id")
        title = (data.get("title") or "").strip() if isinstance(data.get("title"), str) else ""
        if isinstance(movie_id, bool) or not isinstance(movie_id, int):
            raise ValidationError("id is required and must be an integer")
        if not title:
            raise ValidationError("title is required")
        if self.exists(movie_id):
            raise ConflictError(f"Movie {movie_id} already exists")

        m = Movie(
            id=movie_id,
            title=title,
            overview=data.get("overview"),
            poster_path=data.get("poster_path"),
            release_date=parse_release_date(data.get("release_date")),
            genres=_genre_list(data.get("genres")),
        )
        try:
            db.session.add(m); db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(f"Movie {movie_id} already exists")
        return self._dto(m)

    def update(self, movie_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        m = db.session.get(Movie, movie_id)
        if m is None:
            raise NotFoundError(f"Movie {movie_id} not found")

        changes: Dict[str, Any] = {}
        if "title" in data:
            title = data.get("title")
            if not isinstance(title, str) or not title.strip():
                raise ValidationError("title is required")
            changes["title"] = title.strip()
        if "overview" in data:
            changes["overview"] = data.get("overview")
        if "poster_path" in data:
            changes["poster_path"] = data.get("poster_path") or None
        if "release_date" in data:
            changes["release_date"] = parse_release_date(data.get("release_date"))
        if "genres" in data:
            changes["genres"] = _genre_list(data.get("genres"))

        # validated in full, now apply
        for field, value in changes.items():
            setattr(m, field, value)
        db.session.commit()
        return self._dto(m)

    def delete(self, movie_id: int) -> bool:
        m = db.session.get(Movie, movie_id)
        if m is None:
            return False
        # watchlist items keep their movie_id and render as "Unknown"
        db.session.delete(m); db.session.commit()
        return True

    def import_from_tmdb(self, client, tmdb_id: int) -> Tuple[Dict[str, Any], bool]:
        """Returns ``(movie, created)`` for a TMDB id, fetching and storing the movie when missing."""
        existing = db.session.get(Movie, tmdb_id)
        if existing is not None:
            return self._dto(existing), False

        info = client.get_movie(tmdb_id)
        m = movie_from_tmdb(info)
        if m is None:
            raise MalformedPayloadError(f"TMDB movie {tmdb_id} has no usable id/title")
        m.id = tmdb_id
        try:
            db.session.add(m); db.session.commit()
        except IntegrityError:
            db.session.rollback()
            existing = db.session.get(Movie, tmdb_id)
            if existing is not None:
                return self._dto(existing), False
            raise
        return self._dto(m), True
