from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator


class Category(str, Enum):
    Movie = "movie"
    Series = "series"

    def __str__(self):
        return self.value


class Candidate(BaseModel):
    """
    A search result that has not been resolved to a torrent yet
    """

    tracker: str = ""
    category: str = ""
    title: str = ""
    seeders: int = 0
    peers: int = 0
    link: str = ""
    magnet_uri: str = ""
    source_id: str = ""

    @field_validator("tracker", "category", "title", "link", "magnet_uri", mode="before")
    @classmethod
    def none_is_empty(cls: Any, v: Any):
        if v is None:
            return ""
        return v

    @field_validator("seeders", "peers", mode="before")
    @classmethod
    def non_negative(cls: Any, v: Any):
        if v is None:
            return 0
        return max(0, int(v))

    @property
    def uri(self) -> str:
        return self.magnet_uri or self.link

    @property
    def key(self) -> tuple[str, str]:
        return (self.tracker, self.title)


class TorrentFile(BaseModel):
    name: str
    length: int = 0


class ParsedTorrent(BaseModel):
    info_hash: str
    name: str = ""
    length: int = 0
    files: list[TorrentFile] = []
    announce: list[str] = []

    @field_validator("info_hash", mode="before")
    @classmethod
    def consistent_info_hash(cls: Any, v: Any):
        if isinstance(v, str):
            # info_hash is lower case everywhere it leaves this service
            return v.lower()
        return v
