import asyncio
from datetime import datetime

import structlog
from structlog.contextvars import bound_contextvars

from hyjackett import config
from hyjackett.api.core.streams import build_stream
from hyjackett.api.filters import unique_candidates
from hyjackett.clients import cinemeta, jackett
from hyjackett.clients.cinemeta import MediaInfo
from hyjackett.config import IndexerConfig
from hyjackett.instrumentation import RESOLUTION_DURATION, SEARCH_DURATION
from hyjackett.redirect import follow_redirects
from hyjackett.resolver import FileLister, default_file_lister, resolve_torrent
from hyjackett.stremio import Stream, StreamResponse
from hyjackett.torrent import Candidate, Category

log = structlog.get_logger(__name__)


async def _resolve(
    candidate: Candidate,
    type: Category,
    season: int | None,
    episode: int | None,
    list_files: FileLister | None,
) -> Stream | None:
    real_url = await follow_redirects(candidate.uri)
    if not real_url:
        log.info("no real url found", uri=candidate.uri)
        return None

    parsed = await resolve_torrent(real_url, list_files=list_files)
    if not parsed:
        return None

    return build_stream(parsed, candidate, type, season=season, episode=episode)


async def resolve_candidate(
    candidate: Candidate,
    type: Category,
    season: int | None = None,
    episode: int | None = None,
    list_files: FileLister | None = None,
    retries: int = config.RESOLVE_RETRIES,
) -> Stream | None:
    """
    Follow a search result to its torrent and build a stream from it.

    None from any step means the result has no stream and is final. Only
    unexpected errors are retried, the whole sequence at most `retries`
    times.
    """
    start_time = datetime.now()
    outcome = "failed"
    try:
        with bound_contextvars(tracker=candidate.tracker, title=candidate.title):
            for attempt in range(1, retries + 1):
                try:
                    stream = await _resolve(candidate, type, season, episode, list_files)
                    outcome = "stream" if stream else "none"
                    return stream
                except Exception as err:
                    log.error("error resolving stream", attempt=attempt, exc_info=err)
            log.error("exceeded retry attempts, giving up", retries=retries)
            return None
    finally:
        RESOLUTION_DURATION.labels(outcome=outcome).observe(
            amount=(datetime.now() - start_time).total_seconds()
        )


def build_query(type: Category, info: MediaInfo, season: int | None = None) -> str:
    if type == Category.Movie:
        return f"{info.name} {info.year}" if info.year else info.name
    return f"{info.name} S{season or config.DEFAULT_SEASON:02}"


async def resolve_candidates(
    candidates: list[Candidate],
    type: Category,
    season: int | None = None,
    episode: int | None = None,
    list_files: FileLister | None = None,
    concurrency: int = config.RESOLVE_CONCURRENCY,
) -> list[Stream]:
    """
    Resolve every candidate at once with at most `concurrency` in flight.
    Streams come back in candidate order.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def bounded(candidate: Candidate) -> Stream | None:
        async with semaphore:
            return await resolve_candidate(
                candidate,
                type,
                season=season,
                episode=episode,
                list_files=list_files,
            )

    results = await asyncio.gather(*[bounded(c) for c in candidates])
    return [stream for stream in results if stream]


async def _search(
    type: Category,
    imdb_id: str,
    season: int | None,
    episode: int | None,
    indexers: list[IndexerConfig],
    list_files: FileLister | None,
) -> StreamResponse:
    info = await cinemeta.get_media_info(id=imdb_id, type=type.value)
    if not info:
        log.warning("unknown title, nothing to search for")
        return StreamResponse(streams=[])

    query = build_query(type, info, season)
    candidates = await jackett.search_indexers(query=query, indexers=indexers)
    unique = unique_candidates(candidates)
    log.info("resolving search results", query=query, found=len(candidates), unique=len(unique))

    streams = await resolve_candidates(
        unique,
        type,
        season=season,
        episode=episode,
        list_files=list_files,
    )
    log.info("got streams", count=len(streams))
    return StreamResponse(streams=streams)


async def search(
    type: Category,
    imdb_id: str,
    season_episode: None | list[int] = None,
    indexers: list[IndexerConfig] | None = None,
    list_files: FileLister | None = None,
) -> StreamResponse:
    if season_episode is None:
        season_episode = []
    if indexers is None:
        indexers = config.indexers()
    if list_files is None:
        list_files = default_file_lister()

    season = season_episode[0] if len(season_episode) == 2 else None
    episode = season_episode[1] if len(season_episode) == 2 else None

    with SEARCH_DURATION.labels(type=type.value).time(), bound_contextvars(
        imdb=imdb_id, season=season, episode=episode
    ):
        try:
            return await _search(
                type=type,
                imdb_id=imdb_id,
                season=season,
                episode=episode,
                indexers=indexers,
                list_files=list_files,
            )
        except Exception as e:
            log.error("error searching", type=type, id=imdb_id, exc_info=e)
            return StreamResponse(streams=[])
