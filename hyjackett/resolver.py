import asyncio
import importlib.util
from typing import Awaitable, Callable

import aiohttp
import structlog

from hyjackett import config, magnet
from hyjackett.torrent import ParsedTorrent, TorrentFile

log = structlog.get_logger(__name__)

FileLister = Callable[[str], Awaitable[list[TorrentFile]]]


def engine_available() -> bool:
    """
    The libtorrent engine is an optional extra. "auto" turns it on when the
    extra is installed, "true" and "false" force it either way.
    """
    setting = config.ENABLE_TORRENT_ENGINE
    if setting == "auto":
        return importlib.util.find_spec("libtorrent") is not None
    return setting == "true"


def default_file_lister() -> FileLister | None:
    if not engine_available():
        log.debug("torrent engine disabled, magnet file lists stay empty")
        return None
    from hyjackett import engine

    return engine.list_files


async def resolve_magnet(uri: str, list_files: FileLister | None = None) -> ParsedTorrent | None:
    try:
        parsed = magnet.parse_magnet_link(uri)
    except magnet.TorrentParseError as err:
        log.error("error parsing magnet link", magnet=uri, error=err.message)
        return None

    if parsed.files or list_files is None:
        return parsed

    try:
        files = await list_files(uri)
    except Exception as err:
        log.error("error fetching torrent files", magnet=uri, exc_info=err)
        return parsed

    if files:
        parsed.files = files
        parsed.length = parsed.length or sum(f.length for f in files)
    return parsed


async def resolve_remote(url: str) -> ParsedTorrent | None:
    try:
        return await magnet.fetch_torrent(url)
    except magnet.TorrentParseError as err:
        log.error("error parsing torrent file", url=url, error=err.message)
    except asyncio.TimeoutError:
        log.warning("timeout downloading torrent file", url=url)
    except aiohttp.ClientError as err:
        log.error("error downloading torrent file", url=url, exc_info=err)
    return None


async def resolve_torrent(
    uri: str,
    list_files: FileLister | None = None,
) -> ParsedTorrent | None:
    """
    Turn a magnet link or a .torrent URL into torrent metadata
    """
    if magnet.is_magnet(uri):
        return await resolve_magnet(uri, list_files)
    if magnet.is_http(uri):
        return await resolve_remote(uri)
    log.error("no http nor magnet uri found", uri=uri)
    return None
