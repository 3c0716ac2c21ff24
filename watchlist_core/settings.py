import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc


def env_bool(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TmdbSettings:
    """
    Connection settings for the TMDB metadata API.

    Built once when the app starts and handed to the client; nothing
    mutates it afterwards.
    """
    base_url: str = "https://api.themoviedb.org/3"
    access_token: Optional[str] = None
    api_key: Optional[str] = None
    image_base_url: str = "https://image.tmdb.org/t/p/w500"
    language: str = "en-US"
    max_pages: int = 5
    timeout: float = 15.0

    @classmethod
    def from_env(cls) -> "TmdbSettings":
        return cls(
            base_url=os.getenv("TMDB_BASE_URL", cls.base_url).rstrip("/"),
            access_token=os.getenv("TMDB_TOKEN") or None,
            api_key=os.getenv("TMDB_API_KEY") or None,
            image_base_url=os.getenv("TMDB_IMAGE_BASE_URL", cls.image_base_url),
            max_pages=max(_env_int("TMDB_MAX_PAGES", cls.max_pages), 1),
            timeout=_env_float("TMDB_TIMEOUT", cls.timeout),
        )
