from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Path

from hyjackett import config
from hyjackett.api.core import pipeline
from hyjackett.stremio import StreamResponse
from hyjackett.torrent import Category

router = APIRouter()

log = structlog.get_logger(__name__)


@router.get("/manifest.json")
async def get_manifest() -> dict[str, Any]:
    return {
        "id": config.APP_ID,
        "version": config.VERSION.removeprefix("v"),
        "name": config.APP_NAME,
        "description": "Movie & TV Streams from Jackett",
        "resources": ["stream"],
        "types": [c.value for c in Category],
        "idPrefixes": ["tt"],
        "catalogs": [],
    }


@router.get(
    "/stream/{type:str}/{id:str}.json",
    response_model=StreamResponse,
    response_model_exclude_none=True,
)
async def list_streams(
    type: Category,
    id: Annotated[
        str,
        Path(
            title="imdb ID",
            examples=["tt8927938", "tt0108778:5:8"],
            pattern=r"^tt\d+(:\d+:\d+)?$",
        ),
    ],
) -> StreamResponse:
    imdb_id: str = id.split(":")[0]
    season_episode: list[int] = [int(i) for i in id.split(":")[1:]]
    return await pipeline.search(
        type=type,
        imdb_id=imdb_id,
        season_episode=season_episode,
    )
