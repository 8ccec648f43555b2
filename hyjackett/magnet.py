import base64
import binascii
import hashlib
import re
from typing import Any
from urllib.parse import parse_qs, urlsplit

import aiohttp
import bencodepy
import structlog

from hyjackett import config
from hyjackett.torrent import ParsedTorrent, TorrentFile

log = structlog.get_logger(__name__)

BTIH_PATTERN = re.compile(r"^urn:btih:([a-zA-Z0-9]+)$")


class TorrentParseError(Exception):
    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.message = message
        self.source = source


def is_magnet(uri: str) -> bool:
    return uri.startswith("magnet:?")


def is_http(uri: str) -> bool:
    return uri.startswith(("http://", "https://"))


def make_magnet_link(info_hash: str) -> str:
    return f"magnet:?xt=urn:btih:{info_hash}"


def _decode_btih(value: str) -> str | None:
    match = BTIH_PATTERN.match(value)
    if not match:
        return None
    raw = match.group(1)
    if len(raw) == 40:
        return raw.lower()
    if len(raw) == 32:
        # base32 encoded hash
        try:
            return base64.b32decode(raw.upper()).hex()
        except binascii.Error:
            return None
    return None


def parse_magnet_link(uri: str) -> ParsedTorrent:
    """
    Parse a magnet URI into a torrent without a file list
    """
    if not is_magnet(uri):
        raise TorrentParseError("not a magnet link", source=uri)
    params = parse_qs(urlsplit(uri).query)
    info_hash = next(
        (h for h in (_decode_btih(xt) for xt in params.get("xt", [])) if h),
        None,
    )
    if not info_hash:
        raise TorrentParseError("magnet link has no btih info hash", source=uri)

    length = params.get("xl", ["0"])[0]
    return ParsedTorrent(
        info_hash=info_hash,
        name=params.get("dn", [""])[0],
        length=int(length) if length.isdigit() else 0,
        announce=list(dict.fromkeys(params.get("tr", []))),
    )


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _announce(torrent: dict[bytes, Any]) -> list[str]:
    urls: list[str] = []
    if announce := torrent.get(b"announce"):
        urls.append(_text(announce))
    for tier in torrent.get(b"announce-list", []):
        urls.extend(_text(url) for url in tier)
    return list(dict.fromkeys(urls))


def _files(info: dict[bytes, Any], name: str) -> list[TorrentFile]:
    if b"files" not in info:
        return [TorrentFile(name=name, length=info.get(b"length", 0))]
    files: list[TorrentFile] = []
    for f in info[b"files"]:
        if not isinstance(f, dict):
            raise TorrentParseError(f"file entry is not a dictionary: {f!r}")
        path = [_text(p) for p in f.get(b"path", [])]
        files.append(TorrentFile(name=path[-1] if path else "", length=f.get(b"length", 0)))
    return files


def parse_torrent_file(data: bytes) -> ParsedTorrent:
    """
    Parse the contents of a .torrent file. Files in a multi file torrent are
    named after their last path component, like torrent clients show them.
    """
    try:
        torrent: dict[bytes, Any] = bencodepy.decode(data)
        if not isinstance(torrent, dict):
            raise TorrentParseError("torrent is not a dictionary")
        info: dict[bytes, Any] = torrent[b"info"]
        if not isinstance(info, dict):
            raise TorrentParseError("torrent info is not a dictionary")
        info_hash = hashlib.sha1(bencodepy.encode(info)).hexdigest()
        name = _text(info.get(b"name", b""))
        files = _files(info, name)
        announce = _announce(torrent)
    except TorrentParseError:
        raise
    # ValueError covers pydantic rejecting non integer lengths
    except (bencodepy.BencodeDecodeError, KeyError, TypeError, AttributeError, ValueError) as err:
        raise TorrentParseError(f"invalid torrent file: {err}") from err

    return ParsedTorrent(
        info_hash=info_hash,
        name=name,
        length=sum(f.length for f in files),
        files=files,
        announce=announce,
    )


async def fetch_torrent(url: str, timeout: int = config.TORRENT_FETCH_TIMEOUT) -> ParsedTorrent:
    """
    Download and parse a .torrent file
    """
    async with aiohttp.ClientSession() as session, session.get(
        url,
        timeout=aiohttp.ClientTimeout(total=timeout),
        headers={"User-Agent": "Mozilla/5.0"},
    ) as response:
        if response.status != 200:
            raise TorrentParseError(
                f"torrent download failed with status {response.status}", source=url
            )
        data = await response.read()
    log.debug("downloaded torrent file", url=url, size=len(data))
    return parse_torrent_file(data)
