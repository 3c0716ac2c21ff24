import logging
import requests

from watchlist_core.errors import UpstreamError, MalformedPayloadError
from watchlist_core.settings import TmdbSettings

logger = logging.getLogger(__name__)


class TmdbClient:
    """Thin wrapper around the TMDB v3 endpoints the catalog needs."""

    def __init__(self, settings: TmdbSettings):
        self.settings = settings

    def _headers(self):
        headers = {"accept": "application/json"}
        if self.settings.access_token:
            headers["Authorization"] = f"Bearer {self.settings.access_token}"
        return headers

    def _get(self, path, **params):  # internal function to make get requests to tmdb
        if not self.settings.access_token:
            if not self.settings.api_key:
                raise UpstreamError("TMDB_TOKEN or TMDB_API_KEY must be set")
            params = {"api_key": self.settings.api_key, **params}
        url = f"{self.settings.base_url}{path}"
        logger.debug("TMDB GET %s", path)
        try:
            r = requests.get(url, headers=self._headers(), params=params, timeout=self.settings.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamError(f"TMDB request to {path} failed: {e}") from e
        try:
            return r.json()
        except ValueError as e:
            raise MalformedPayloadError(f"TMDB returned invalid JSON for {path}") from e

    def popular_movies(self, page=1):
        """Raw page of /movie/popular: {"results": [...], "total_pages": n, ...}."""
        data = self._get("/movie/popular", page=page, language=self.settings.language)
        if not isinstance(data, dict):
            raise MalformedPayloadError(f"TMDB page {page} is not a JSON object")
        return data

    def genre_names(self):
        """Maps TMDB genre ids to display names."""
        data = self._get("/genre/movie/list", language=self.settings.language)
        genres = data.get("genres") if isinstance(data, dict) else None
        if not isinstance(genres, list):
            raise MalformedPayloadError("TMDB genre list is malformed")
        return {g["id"]: g["name"] for g in genres if isinstance(g, dict) and "id" in g and g.get("name")}

    def get_movie(self, movie_id: int):  # getting movie details by tmdb id
        data = self._get(f"/movie/{movie_id}", language=self.settings.language)
        if not isinstance(data, dict):
            raise MalformedPayloadError(f"TMDB movie {movie_id} is malformed")
        return data


def tmdb_poster_url(path: str | None, base: str = TmdbSettings.image_base_url) -> str | None:
    if not path:
        return None
    return f"{base.rstrip('/')}/{path.lstrip('/')}"
