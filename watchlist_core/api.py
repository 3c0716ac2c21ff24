from flask import Blueprint, request, abort, current_app
from werkzeug.exceptions import BadRequest, Unauthorized
import movie_api as mapi
from .catalog import CatalogService, CatalogSync
from .errors import (
    expect_json, read_json, require_text, optional_text, parse_int,
    validate_pagination, require_auth,
)
from .query_utils import build_movie_query
from .users import UserService

api_bp = Blueprint("api", __name__, url_prefix="/api")  # blueprint for API routes


def tmdb_client():
    return mapi.TmdbClient(current_app.config["TMDB"])

def catalog_service() -> CatalogService:
    settings = current_app.config["TMDB"]
    return CatalogService(
        sync=CatalogSync(tmdb_client(), max_pages=settings.max_pages),
        image_base_url=settings.image_base_url,
    )


@api_bp.get("/health")
def health():
    return {"ok": True}

# -----------------------------
# Movies
# -----------------------------

@api_bp.get("/movies")
def list_movies():
    return catalog_service().find_all()

@api_bp.get("/movies/page")
def list_movies_page():
    page, page_size = validate_pagination()
    qry = build_movie_query(request.args)
    return catalog_service().page(qry, page, page_size)

@api_bp.get("/movies/search")
def search_movies():
    return catalog_service().search(request.args.get("query") or request.args.get("q"))

@api_bp.get("/movies/recent")
def recent_movies():
    return catalog_service().recent()

@api_bp.get("/movies/<int:movie_id>")
def get_movie(movie_id):
    m = catalog_service().get_by_id(movie_id)
    if m is None:
        abort(404, f"Movie {movie_id} not found")
    return m

@api_bp.post("/movies")
@require_auth
def create_movie():
    expect_json()
    data = read_json()
    return catalog_service().create(data), 201

@api_bp.post("/movies/from-tmdb")
@require_auth
def add_movie_from_tmdb():
    expect_json()
    data = read_json()
    if not data.get("tmdb_id"):
        abort(400, "tmdb_id is required")
    tmdb_id = parse_int(data.get("tmdb_id"), "tmdb_id")

    movie, created = catalog_service().import_from_tmdb(tmdb_client(), tmdb_id)
    return movie, (201 if created else 200)

@api_bp.put("/movies/<int:movie_id>")
@api_bp.patch("/movies/<int:movie_id>")
@require_auth
def update_movie(movie_id):
    expect_json()
    data = read_json()
    return catalog_service().update(movie_id, data)

@api_bp.delete("/movies/<int:movie_id>")
@require_auth
def delete_movie(movie_id):
    if not catalog_service().delete(movie_id):
        abort(404, f"Movie {movie_id} not found")
    return "", 204

# -----------------------------
# Users
# -----------------------------

@api_bp.get("/users")
def list_users():
    return UserService().list_all()

@api_bp.get("/users/<int:user_id>")
def get_user(user_id):
    u = UserService().get_by_id(user_id)
    if u is None:
        abort(404, f"User {user_id} not found")
    return u

@api_bp.get("/users/username/<username>")
def get_user_by_username(username):
    u = UserService().get_by_username(username)
    if u is None:
        abort(404, f"User {username!r} not found")
    return u

@api_bp.get("/users/email/<email>")
def get_user_by_email(email):
    u = UserService().get_by_email(email)
    if u is None:
        abort(404, f"User with email {email!r} not found")
    return u

@api_bp.post("/users")
@require_auth
def create_user():
    expect_json()
    data = read_json()
    user = UserService().create(
        username=require_text(data.get("username"), "username", 64),
        email=require_text(data.get("email"), "email"),
        password=require_text(data.get("password"), "password"),
        role=optional_text(data.get("role"), "role") or "USER",
    )
    return user, 201

@api_bp.put("/users/<int:user_id>")
@require_auth
def update_user(user_id):
    expect_json()
    data = read_json()
    return UserService().update(
        user_id,
        username=optional_text(data.get("username"), "username"),
        email=optional_text(data.get("email"), "email"),
        password=optional_text(data.get("password"), "password"),
    )

@api_bp.delete("/users/<int:user_id>")
@require_auth
def delete_user(user_id):
    if not UserService().delete(user_id):
        abort(404, f"User {user_id} not found")
    return "", 204

@api_bp.post("/users/login")
def login():
    expect_json()
    data = read_json()
    username, password = data.get("username"), data.get("password")
    if not username or not password:
        raise BadRequest("username and password are required")
    user = UserService().authenticate(username, password)
    if user is None:
        raise Unauthorized("Invalid username or password")
    return user
