from typing import Any, Dict, List, Optional

import movie_api as mapi
from models import Movie, User, Watchlist, WatchlistItem
from .settings import TmdbSettings

UNKNOWN_TITLE = "Unknown"


def movie_to_dict(m: Movie, image_base_url: Optional[str] = None) -> Dict[str, Any]:
    base = image_base_url or TmdbSettings.image_base_url
    return {
        "id": m.id,
        "title": m.title,
        "overview": m.overview,
        "poster_url": mapi.tmdb_poster_url(m.poster_path, base),
        "release_date": m.release_date.isoformat() if m.release_date else None,
        "genres": list(m.genres or []),
    }


def user_to_dict(u: User) -> Dict[str, Any]:
    return {"id": u.id, "username": u.username, "email": u.email, "role": u.role}


def item_to_dict(item: WatchlistItem, movie_title: Optional[str]) -> Dict[str, Any]:
    return {
        "id": item.id,
        "movie_id": item.movie_id,
        "movie_title": movie_title if movie_title is not None else UNKNOWN_TITLE,
        "status": item.status.name,
        "rating": item.rating,
        "notes": item.notes,
    }


def watchlist_to_dict(w: Watchlist, items: List[Dict[str, Any]]) -> Dict[str, Any]:
    # owner is not exposed
    return {
        "id": w.id,
        "name": w.name,
        "description": w.description,
        "items": items,
    }
