from typing import Any, Optional

import structlog
from pydantic import BaseModel, ValidationError

from hyjackett.torrent import Candidate

log = structlog.get_logger(__name__)


class SearchResult(BaseModel):
    Tracker: Optional[str] = None
    CategoryDesc: Optional[str] = None
    Title: Optional[str] = None
    Link: Optional[str] = None
    Seeders: Optional[int] = 0
    Peers: Optional[int] = 0
    MagnetUri: Optional[str] = None

    def to_candidate(self, source_id: str) -> Candidate:
        return Candidate(
            tracker=self.Tracker,
            category=self.CategoryDesc,
            title=self.Title,
            seeders=self.Seeders,
            peers=self.Peers,
            link=self.Link,
            magnet_uri=self.MagnetUri,
            source_id=source_id,
        )


class SearchResponse(BaseModel):
    # rows are validated one by one so a single odd row can't sink the rest
    Results: list[dict[str, Any]] = []

    def candidates(self, source_id: str) -> list[Candidate]:
        candidates: list[Candidate] = []
        for i, row in enumerate(self.Results):
            try:
                candidates.append(SearchResult.model_validate(row).to_candidate(source_id))
            except ValidationError as err:
                log.warning("skipping invalid jackett result", index=i, error=str(err))
        return candidates
