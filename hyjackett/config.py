import json
import os

import structlog
from pydantic import BaseModel, TypeAdapter, field_validator

log = structlog.get_logger()

APP_ID = os.getenv("APP_ID", "org.hyjackett.addon.stremio")
APP_NAME = os.getenv("APP_NAME", "HYJackett")
HOST: str = os.getenv("LISTEN_HOST", "0.0.0.0")
PORT: int = int(os.getenv("LISTEN_PORT", "8000"))
VERSION = os.getenv("BUILD_VERSION") or "3.0.0"
WORKERS = int(os.getenv("WORKERS") or 2 * (os.cpu_count() or 1))

JACKETT_TIMEOUT = int(os.getenv("JACKETT_TIMEOUT") or 10)
JACKETT_CATEGORIES: list[int] = [
    int(c) for c in (os.getenv("JACKETT_CATEGORIES") or "2000,5000,8000").split(",")
]

REDIRECT_TIMEOUT = int(os.getenv("REDIRECT_TIMEOUT") or 5)
REDIRECT_MAX_HOPS = int(os.getenv("REDIRECT_MAX_HOPS") or 10)
TORRENT_FETCH_TIMEOUT = int(os.getenv("TORRENT_FETCH_TIMEOUT") or 10)

# "auto" uses the engine whenever the engine extra is installed
ENABLE_TORRENT_ENGINE = (os.getenv("ENABLE_TORRENT_ENGINE") or "auto").lower()
ENGINE_TIMEOUT = int(os.getenv("ENGINE_TIMEOUT") or 5)
ENGINE_CONNECTIONS = int(os.getenv("ENGINE_CONNECTIONS") or 3)

RESOLVE_CONCURRENCY = int(os.getenv("RESOLVE_CONCURRENCY") or 10)
RESOLVE_RETRIES = int(os.getenv("RESOLVE_RETRIES") or 3)
DEFAULT_SEASON = int(os.getenv("DEFAULT_SEASON") or 1)

DEFAULT_HEADERS: dict[str, str] = {
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "X-Requested-With": "XMLHttpRequest",
}


class IndexerConfig(BaseModel):
    """
    A Jackett instance to search. The tracker narrows the search to a single
    indexer configured on that instance; leave it empty to search them all.
    """

    id: str
    url: str
    api_key: str
    tracker: str = ""
    headers: dict[str, str] = {}

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def request_headers(self) -> dict[str, str]:
        return {**DEFAULT_HEADERS, **self.headers}


_INDEXER_LIST = TypeAdapter(list[IndexerConfig])


def parse_indexers(raw: str) -> list[IndexerConfig]:
    if not raw:
        return []
    return _INDEXER_LIST.validate_python(json.loads(raw))


def indexers() -> list[IndexerConfig]:
    """
    Indexers configured through the INDEXERS environment variable, a JSON
    list of objects with id, url, api_key and optionally tracker and headers.
    """
    configured = parse_indexers(os.getenv("INDEXERS", ""))
    if not configured:
        log.warning("no indexers configured")
    return configured
