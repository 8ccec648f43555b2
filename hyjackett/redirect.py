import asyncio
from urllib.parse import urljoin

import aiohttp
import structlog

from hyjackett import config
from hyjackett.magnet import is_http, is_magnet

log = structlog.get_logger(__name__)


async def follow_redirects(
    uri: str,
    timeout: int = config.REDIRECT_TIMEOUT,
    max_hops: int = config.REDIRECT_MAX_HOPS,
) -> str | None:
    """
    Jackett often hands out a local download URL that redirects to a magnet
    link instead of the magnet itself. Follow the redirects ourselves, one
    HEAD request per hop, and stop as soon as the location is not HTTP.

    Returns the final URI, or None when the chain errors, times out, ends in
    a non success status or exceeds max_hops.
    """
    if is_magnet(uri):
        return uri

    current = uri
    async with aiohttp.ClientSession() as session:
        for hop in range(max_hops + 1):
            try:
                async with session.head(
                    current,
                    allow_redirects=False,
                    timeout=aiohttp.ClientTimeout(total=timeout),
                ) as response:
                    status = response.status
                    location = response.headers.get("Location", "")
            except asyncio.TimeoutError:
                log.warning("redirect timeout", uri=current, hop=hop, timeout=timeout)
                return None
            except aiohttp.ClientError as err:
                log.error("error while following redirect", uri=current, exc_info=err)
                return None

            if 300 <= status < 400 and location:
                location = urljoin(current, location)
                if not is_http(location):
                    log.debug("redirect resolved", uri=uri, location=location, hops=hop + 1)
                    return location
                current = location
                continue
            if 200 <= status < 300:
                return current

            log.info("redirect ended with bad status", uri=current, status=status)
            return None

    log.warning("too many redirects", uri=uri, max_hops=max_hops)
    return None
