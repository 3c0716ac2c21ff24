from flask import Blueprint, request, abort
from werkzeug.exceptions import BadRequest
from models import WatchlistStatus
from .errors import (
    expect_json, read_json, optional_text, parse_int, parse_rating, parse_status, require_auth,
)
from .watchlists import WatchlistService
from .watchlist_items import WatchlistItemService

watchlist_bp = Blueprint("watchlists", __name__, url_prefix="/api")


def _body():
    data = request.get_json(silent=True) if request.is_json else None
    return data if isinstance(data, dict) else {}

def _status_arg(default=None):
    """Status from the JSON body or the query string (``?status=VU``)."""
    raw = _body().get("status", request.args.get("status"))
    if raw in (None, ""):
        return default
    return parse_status(raw)

def _movie_id_arg() -> int:
    raw = _body().get("movie_id", request.args.get("movieId", request.args.get("movie_id")))
    if raw in (None, ""):
        raise BadRequest("movie_id is required")
    return parse_int(raw, "movie_id")

def _item_update_args():
    data = _body()
    rating = parse_rating(data.get("rating", request.args.get("rating")))
    notes = optional_text(data.get("notes", request.args.get("notes")), "notes")
    return _status_arg(), rating, notes

def _add_item(service, watchlist_id):
    item = service.add_item(watchlist_id, _movie_id_arg(), _status_arg(WatchlistStatus.NOT_WATCHED))
    if item is None:
        raise BadRequest("Could not add movie: unknown watchlist or movie, or movie already in watchlist")
    return item, 201

def _update_item(service, item_id):
    status, rating, notes = _item_update_args()
    item = service.update_item(item_id, status, rating, notes)
    if item is None:
        abort(404, f"Watchlist item {item_id} not found")
    return item

def _remove_item(service, item_id):
    if not service.remove_item(item_id):
        abort(404, f"Watchlist item {item_id} not found")
    return "", 204

# -----------------------------
# Watchlists
# -----------------------------

@watchlist_bp.get("/watchlists/user/<int:user_id>")
def list_user_watchlists(user_id):
    return WatchlistService().list_for_user(user_id)

@watchlist_bp.post("/watchlists/user/<int:user_id>")
@require_auth
def create_watchlist(user_id):
    expect_json()
    data = read_json()
    w = WatchlistService().create(
        optional_text(data.get("name"), "name"),
        optional_text(data.get("description"), "description"),
        user_id,
    )
    return w, 201

@watchlist_bp.get("/watchlists/<int:watchlist_id>")
def get_watchlist(watchlist_id):
    w = WatchlistService().get_by_id(watchlist_id)
    if w is None:
        abort(404, f"Watchlist {watchlist_id} not found")
    return w

@watchlist_bp.put("/watchlists/<int:watchlist_id>")
@require_auth
def update_watchlist(watchlist_id):
    expect_json()
    data = read_json()
    return WatchlistService().update(
        watchlist_id,
        optional_text(data.get("name"), "name"),
        optional_text(data.get("description"), "description"),
    )

@watchlist_bp.delete("/watchlists/<int:watchlist_id>")
@require_auth
def delete_watchlist(watchlist_id):
    WatchlistService().delete(watchlist_id)
    return "", 204

@watchlist_bp.get("/watchlists/<int:watchlist_id>/items")
def list_watchlist_items(watchlist_id):
    return WatchlistService().list_items(watchlist_id)

@watchlist_bp.get("/watchlists/<int:watchlist_id>/items/status/<status>")
def list_watchlist_items_by_status(watchlist_id, status):
    return WatchlistService().list_items_by_status(watchlist_id, parse_status(status))

@watchlist_bp.post("/watchlists/<int:watchlist_id>/items")
@require_auth
def add_watchlist_item(watchlist_id):
    return _add_item(WatchlistService(), watchlist_id)

@watchlist_bp.put("/watchlists/items/<int:item_id>")
@require_auth
def update_watchlist_item(item_id):
    return _update_item(WatchlistService(), item_id)

@watchlist_bp.delete("/watchlists/items/<int:item_id>")
@require_auth
def remove_watchlist_item(item_id):
    return _remove_item(WatchlistService(), item_id)

# -----------------------------
# Watchlist items
# -----------------------------

@watchlist_bp.get("/watchlist-items/<int:item_id>")
def get_item(item_id):
    item = WatchlistItemService().get_by_id(item_id)
    if item is None:
        abort(404, f"Watchlist item {item_id} not found")
    return item

@watchlist_bp.get("/watchlist-items/watchlist/<int:watchlist_id>")
def list_items(watchlist_id):
    return WatchlistItemService().list_items(watchlist_id)

@watchlist_bp.get("/watchlist-items/watchlist/<int:watchlist_id>/status/<status>")
def list_items_by_status(watchlist_id, status):
    return WatchlistItemService().list_items_by_status(watchlist_id, parse_status(status))

@watchlist_bp.post("/watchlist-items/watchlist/<int:watchlist_id>")
@require_auth
def add_item(watchlist_id):
    return _add_item(WatchlistItemService(), watchlist_id)

@watchlist_bp.put("/watchlist-items/<int:item_id>")
@require_auth
def update_item(item_id):
    return _update_item(WatchlistItemService(), item_id)

@watchlist_bp.delete("/watchlist-items/<int:item_id>")
@require_auth
def remove_item(item_id):
    return _remove_item(WatchlistItemService(), item_id)
