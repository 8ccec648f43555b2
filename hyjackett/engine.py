import asyncio
import os
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncIterator

import libtorrent as lt
import structlog

from hyjackett import config
from hyjackett.torrent import TorrentFile

log = structlog.get_logger(__name__)

POLL_INTERVAL = 0.25


class TorrentEngine:
    """
    A throwaway libtorrent session used only to fetch the metadata of a
    magnet link. The torrent is added in upload mode so nothing is ever
    downloaded to disk.
    """

    def __init__(self, magnet_uri: str, connections: int):
        self.magnet_uri = magnet_uri
        self.session = lt.session(  # type: ignore
            {
                "listen_interfaces": "0.0.0.0:0",
                "connections_limit": connections,
                "enable_dht": True,
            }
        )
        params = lt.parse_magnet_uri(magnet_uri)  # type: ignore
        params.save_path = tempfile.gettempdir()
        params.flags |= lt.torrent_flags.upload_mode  # type: ignore
        self.handle = self.session.add_torrent(params)

    def has_metadata(self) -> bool:
        return bool(self.handle.status().has_metadata)

    def files(self) -> list[TorrentFile]:
        storage = self.handle.torrent_file().files()
        return [
            TorrentFile(
                name=os.path.basename(storage.file_path(i)),
                length=storage.file_size(i),
            )
            for i in range(storage.num_files())
        ]

    async def wait_for_files(self, timeout: float) -> list[TorrentFile]:
        async def poll() -> list[TorrentFile]:
            while not self.has_metadata():
                await asyncio.sleep(POLL_INTERVAL)
            return self.files()

        try:
            return await asyncio.wait_for(poll(), timeout=timeout)
        except asyncio.TimeoutError:
            log.info("torrent engine timed out waiting for metadata", timeout=timeout)
            return []

    def destroy(self):
        try:
            if self.handle.is_valid():
                self.session.remove_torrent(self.handle)
            self.session.pause()
        except Exception as err:
            log.error("error destroying torrent engine", magnet=self.magnet_uri, exc_info=err)


@asynccontextmanager
async def open_engine(
    magnet_uri: str,
    connections: int = config.ENGINE_CONNECTIONS,
) -> AsyncIterator[TorrentEngine]:
    engine = TorrentEngine(magnet_uri, connections)
    try:
        yield engine
    finally:
        engine.destroy()


async def list_files(
    magnet_uri: str,
    timeout: float = config.ENGINE_TIMEOUT,
    connections: int = config.ENGINE_CONNECTIONS,
) -> list[TorrentFile]:
    """
    List the files of a magnet link by asking the swarm for its metadata.
    Returns an empty list when the metadata does not arrive within timeout.
    """
    async with open_engine(magnet_uri, connections) as engine:
        return await engine.wait_for_files(timeout)
