from pydantic import BaseModel

from hyjackett.torrent import Category


class BehaviorHints(BaseModel):
    bingeGroup: str
    notWebReady: bool = True


class Stream(BaseModel):
    name: str = "HYJackett"
    type: Category
    infoHash: str
    fileIdx: int = 0
    sources: list[str] = []
    title: str
    behaviorHints: BehaviorHints


class StreamResponse(BaseModel):
    streams: list[Stream]
