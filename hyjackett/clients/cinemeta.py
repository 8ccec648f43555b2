import asyncio
import re
from datetime import datetime
from typing import Any, Optional

import aiohttp
import structlog
from pydantic import BaseModel, ValidationError

from hyjackett.instrumentation import HTTP_CLIENT_REQUEST_DURATION
from hyjackett.logging import timestamped

log = structlog.get_logger(__name__)

IMDB_SUGGESTION_URL = "https://v2.sg.media-imdb.com/suggestion/t/{id}.json"
CINEMETA_URL = "https://v3-cinemeta.strem.io/meta/{type}/{id}.json"
LOOKUP_TIMEOUT = 5


class MediaInfo(BaseModel):
    name: str
    year: Optional[int] = None


class CinemetaMeta(BaseModel):
    id: str
    type: str
    name: str
    # A.k.a. year, e.g. "2000" for movies and "2000-2014" or "2000-" for TV shows
    releaseInfo: Optional[str] = ""
    year: Optional[str] = None

    @property
    def release_year(self) -> int | None:
        release = self.releaseInfo or self.year
        if not release:
            return None
        # cinemeta uses an en-dash instead of a hyphen. Splitting on \D works for both
        if match := re.split(r"\D", release):
            try:
                return int(match[0])
            except ValueError:
                return None
        return None


async def _get_json(client: str, url: str, route: str) -> dict[str, Any] | None:
    status = ""
    error = False
    start_time = datetime.now()
    try:
        async with aiohttp.ClientSession() as session, session.get(
            url, timeout=aiohttp.ClientTimeout(total=LOOKUP_TIMEOUT)
        ) as response:
            status = f"{response.status // 100}xx"
            if response.status not in range(200, 300):
                log.error(
                    "error retrieving media info",
                    client=client,
                    status=response.status,
                    reason=response.reason,
                    body=await response.text(),
                )
                error = True
                return None
            return await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as err:
        log.error("media info request failed", client=client, url=url, exc_info=err)
        error = True
        return None
    finally:
        HTTP_CLIENT_REQUEST_DURATION.labels(
            client=client,
            method="GET",
            url=route,
            status_code=status,
            error=error,
        ).observe(amount=(datetime.now() - start_time).total_seconds())


async def _from_imdb(id: str) -> MediaInfo | None:
    body = await _get_json(
        client="imdb",
        url=IMDB_SUGGESTION_URL.format(id=id),
        route="/suggestion/t/{id}.json",
    )
    suggestions = (body or {}).get("d") or []
    if not suggestions or not suggestions[0].get("l"):
        log.info("no imdb suggestion found", id=id)
        return None
    first = suggestions[0]
    return MediaInfo(name=first["l"], year=first.get("y"))


async def _from_cinemeta(id: str, type: str) -> MediaInfo | None:
    body = await _get_json(
        client="cinemeta",
        url=CINEMETA_URL.format(type=type, id=id),
        route="/meta/{type}/{id}.json",
    )
    meta = (body or {}).get("meta")
    if not meta:
        log.info("meta field is missing from cinemeta response. Probably no results", id=id)
        return None
    try:
        parsed = CinemetaMeta.model_validate(meta)
    except ValidationError as err:
        log.error("unexpected cinemeta response", id=id, exc_info=err)
        return None
    return MediaInfo(name=parsed.name, year=parsed.release_year)


@timestamped(["id", "type"])
async def get_media_info(id: str, type: str) -> MediaInfo | None:
    """
    Look up the name and year of an IMDB id. The IMDB suggestion API is
    tried first and Cinemeta is the fallback.
    """
    if info := await _from_imdb(id=id):
        return info
    log.info("falling back to cinemeta", id=id, type=type)
    return await _from_cinemeta(id=id, type=type)
