import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from models import db, Watchlist, WatchlistItem, WatchlistStatus
from .catalog import CatalogService
from .dto import item_to_dict

logger = logging.getLogger(__name__)


class WatchlistItemService:
    """
    Movie entries inside a watchlist.

    Every method signals failure by returning ``None`` (or ``False`` for
    removal) instead of raising; the HTTP layer turns that into 400/404.
    Titles are looked up in the catalog on every read, and a movie that has
    since left the catalog is shown as "Unknown".
    """

    def __init__(self, catalog: Optional[CatalogService] = None):
        self.catalog = catalog or CatalogService()

    def _with_title(self, item: WatchlistItem) -> Dict[str, Any]:
        return item_to_dict(item, self.catalog.title_of(item.movie_id))

    def _with_titles(self, items: List[WatchlistItem]) -> List[Dict[str, Any]]:
        titles = self.catalog.titles_for(i.movie_id for i in items)
        return [item_to_dict(i, titles.get(i.movie_id)) for i in items]

    def add_item(self, watchlist_id: int, movie_id: int,
                 status: WatchlistStatus = WatchlistStatus.NOT_WATCHED) -> Optional[Dict[str, Any]]:
        if db.session.get(Watchlist, watchlist_id) is None:
            return None
        title = self.catalog.title_of(movie_id)
        if title is None:
            return None
        if self.exists(watchlist_id, movie_id):
            return None

        item = WatchlistItem(watchlist_id=watchlist_id, movie_id=movie_id, status=status)
        try:
            db.session.add(item); db.session.commit()
        except IntegrityError:
            # the pair was inserted between the check and the commit
            db.session.rollback()
            logger.info("Duplicate add of movie %s to watchlist %s", movie_id, watchlist_id)
            return None
        return item_to_dict(item, title)

    def exists(self, watchlist_id: int, movie_id: int) -> bool:
        return db.session.query(WatchlistItem.id).filter_by(
            watchlist_id=watchlist_id, movie_id=movie_id
        ).first() is not None

    def update_item(self, item_id: int, status: Optional[WatchlistStatus] = None,
                    rating: Optional[int] = None, notes: Optional[str] = None) -> Optional[Dict[str, Any]]:
        item = db.session.get(WatchlistItem, item_id)
        if item is None:
            return None

        if status is not None:
            item.status = status
        if rating is not None:
            item.rating = rating
        if notes is not None:
            item.notes = notes

        db.session.commit()
        return self._with_title(item)

    def remove_item(self, item_id: int) -> bool:
        item = db.session.get(WatchlistItem, item_id)
        if item is None:
            return False
        db.session.delete(item); db.session.commit()
        return True

    def list_items(self, watchlist_id: int) -> List[Dict[str, Any]]:
        items = (
            WatchlistItem.query.filter_by(watchlist_id=watchlist_id)
                               .order_by(WatchlistItem.id.asc())
                               .all()
        )
        return self._with_titles(items)

    def list_items_by_status(self, watchlist_id: int, status: WatchlistStatus) -> List[Dict[str, Any]]:
        items = (
            WatchlistItem.query.filter_by(watchlist_id=watchlist_id, status=status)
                               .order_by(WatchlistItem.id.asc())
                               .all()
        )
        return self._with_titles(items)

    def get_by_id(self, item_id: int) -> Optional[Dict[str, Any]]:
        item = db.session.get(WatchlistItem, item_id)
        return self._with_title(item) if item else None
