import asyncio
from datetime import datetime
from itertools import chain
from typing import Any

import aiohttp
import structlog
from pydantic import ValidationError
from structlog.contextvars import bound_contextvars

from hyjackett import config
from hyjackett.clients.jackett_models import SearchResponse
from hyjackett.config import IndexerConfig
from hyjackett.instrumentation import JACKETT_REQUEST_DURATION
from hyjackett.torrent import Candidate

log = structlog.get_logger(__name__)


class JackettSearchError(Exception):
    def __init__(self, message: str, status: int | None, body: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body


def search_params(
    indexer: IndexerConfig,
    query: str,
    categories: list[int],
) -> list[tuple[str, str]]:
    # Jackett expects repeated Category[] keys, a dict can't carry those
    params: list[tuple[str, str]] = [
        ("apikey", indexer.api_key),
        ("Query", query),
    ]
    params.extend(("Category[]", str(c)) for c in categories)
    if indexer.tracker:
        params.append(("Tracker[]", indexer.tracker))
    return params


async def make_request(
    indexer: IndexerConfig,
    params: list[tuple[str, str]],
    timeout: int,
) -> SearchResponse:
    url = f"{indexer.url}/api/v2.0/indexers/all/results"
    status: int | None = None
    try:
        async with aiohttp.ClientSession() as session, session.get(
            url=url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=timeout),
            headers=indexer.request_headers(),
        ) as response:
            status = response.status
            if response.status != 200:
                body = await response.text()
                log.error(
                    "jackett request failed with bad status code",
                    status=response.status,
                    reason=response.reason,
                    body=body,
                )
                raise JackettSearchError(
                    f"Jackett request failed: {response.reason}",
                    status=response.status,
                    body=body,
                )
            raw: dict[str, Any] = await response.json(content_type=None)
            return SearchResponse.model_validate(raw)
    except asyncio.TimeoutError as e:
        raise JackettSearchError("jackett search timeout", status=status) from e
    except (aiohttp.ClientError, ValueError, ValidationError) as e:
        # ValueError covers malformed JSON bodies
        raise JackettSearchError(f"jackett search error: {e}", status=status) from e


async def search_indexer(
    indexer: IndexerConfig,
    query: str,
    categories: list[int] | None = None,
    timeout: int = config.JACKETT_TIMEOUT,
) -> list[Candidate]:
    """
    Search a single Jackett instance. A failing instance yields no results
    instead of failing the whole search.
    """
    if categories is None:
        categories = config.JACKETT_CATEGORIES
    start_time = datetime.now()
    status = "error"
    with bound_contextvars(indexer=indexer.id, query=query):
        try:
            response = await make_request(
                indexer=indexer,
                params=search_params(indexer, query, categories),
                timeout=timeout,
            )
            status = "2xx"
        except JackettSearchError as e:
            log.error("jackett search failed", status=e.status, error=e.message)
            if e.status:
                status = f"{e.status // 100}xx"
            return []
        finally:
            JACKETT_REQUEST_DURATION.labels(
                method="indexer_search",
                indexer=indexer.id,
                status=status,
            ).observe(amount=(datetime.now() - start_time).total_seconds())

        candidates = response.candidates(source_id=indexer.id)
        log.info("jackett search finished", results=len(response.Results), kept=len(candidates))
        return candidates


async def search_indexers(
    query: str,
    indexers: list[IndexerConfig],
    categories: list[int] | None = None,
    timeout: int = config.JACKETT_TIMEOUT,
) -> list[Candidate]:
    """
    Search all indexers at once. Results keep the order of the indexers
    list no matter which one answers first.
    """
    log.info("searching indexers", indexers=[i.id for i in indexers], query=query)
    results: list[list[Candidate]] = await asyncio.gather(
        *[
            search_indexer(
                indexer=indexer,
                query=query,
                categories=categories,
                timeout=timeout,
            )
            for indexer in indexers
        ]
    )
    return list(chain.from_iterable(results))
