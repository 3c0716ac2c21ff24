"""
Watchlist aggregate: a user's named list plus its items.

Names are unique per owner and compared exactly (case matters). The check
is a read of the owner's lists before the write; the ``(user_id, name)``
unique constraint on the table catches the rare request that slips in
between, and is reported as the same conflict.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from models import db, User, Watchlist, WatchlistStatus
from .dto import watchlist_to_dict
from .errors import ConflictError, NotFoundError, ValidationError
from .watchlist_items import WatchlistItemService

logger = logging.getLogger(__name__)


def _name_taken(watchlists: List[Watchlist], name: str, exclude_id: Optional[int] = None) -> bool:
    return any(w.name == name for w in watchlists if w.id != exclude_id)


class WatchlistService:
    def __init__(self, items: Optional[WatchlistItemService] = None):
        self.items = items or WatchlistItemService()

    def _aggregate(self, w: Watchlist) -> Dict[str, Any]:
        return watchlist_to_dict(w, self.items.list_items(w.id))

    def _owned_by(self, user_id: int) -> List[Watchlist]:
        return Watchlist.query.filter_by(user_id=user_id).order_by(Watchlist.id.asc()).all()

    def list_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        return [self._aggregate(w) for w in self._owned_by(user_id)]

    def get_by_id(self, watchlist_id: int) -> Optional[Dict[str, Any]]:
        w = db.session.get(Watchlist, watchlist_id)
        return self._aggregate(w) if w else None

    def exists(self, watchlist_id: int) -> bool:
        return db.session.get(Watchlist, watchlist_id) is not None

    def create(self, name: Optional[str], description: Optional[str], user_id: Optional[int]) -> Dict[str, Any]:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name is required")
        if user_id is None:
            raise ValidationError("user_id is required")
        if db.session.get(User, user_id) is None:
            raise NotFoundError(f"User {user_id} not found")
        if _name_taken(self._owned_by(user_id), name):
            raise ConflictError(f"A watchlist named {name!r} already exists for this user")

        w = Watchlist(name=name, description=description, user_id=user_id)
        try:
            db.session.add(w); db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(f"A watchlist named {name!r} already exists for this user")
        logger.info("Created watchlist %s for user %s", w.id, user_id)
        return self._aggregate(w)

    def update(self, watchlist_id: int, name: Optional[str], description: Optional[str]) -> Dict[str, Any]:
        w = db.session.get(Watchlist, watchlist_id)
        if w is None:
            raise NotFoundError(f"Watchlist {watchlist_id} not found")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name is required")

        if name != w.name and _name_taken(self._owned_by(w.user_id), name, exclude_id=w.id):
            raise ConflictError(f"A watchlist named {name!r} already exists for this user")

        w.name = name
        w.description = description
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(f"A watchlist named {name!r} already exists for this user")
        return self._aggregate(w)

    def delete(self, watchlist_id: int) -> None:
        w = db.session.get(Watchlist, watchlist_id)
        if w is None:
            raise NotFoundError(f"Watchlist {watchlist_id} not found")
        db.session.delete(w)  # items go with it (cascade)
        db.session.commit()
        logger.info("Deleted watchlist %s", watchlist_id)

    # -- item operations, delegated --

    def add_item(self, watchlist_id: int, movie_id: int,
                 status: WatchlistStatus = WatchlistStatus.NOT_WATCHED) -> Optional[Dict[str, Any]]:
        if not self.exists(watchlist_id):
            return None
        return self.items.add_item(watchlist_id, movie_id, status)

    def update_item(self, item_id: int, status: Optional[WatchlistStatus] = None,
                    rating: Optional[int] = None, notes: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return self.items.update_item(item_id, status, rating, notes)

    def remove_item(self, item_id: int) -> bool:
        return self.items.remove_item(item_id)

    def list_items(self, watchlist_id: int) -> List[Dict[str, Any]]:
        return self.items.list_items(watchlist_id)

    def list_items_by_status(self, watchlist_id: int, status: WatchlistStatus) -> List[Dict[str, Any]]:
        return self.items.list_items_by_status(watchlist_id, status)
