import structlog

from hyjackett import config, human
from hyjackett.stremio import BehaviorHints, Stream
from hyjackett.torrent import Candidate, Category, ParsedTorrent

log = structlog.get_logger(__name__)


def stream_title(name: str, size: int, candidate: Candidate) -> str:
    """
    name
    quality | size | seeders/peers
    """
    title = f"{name}\n{human.grep_quality(name)}"
    stats = f"S:{candidate.seeders} /P:{candidate.peers}"
    return f"{title} | {human.bytes(size)} | {stats} "


def stream_sources(parsed: ParsedTorrent) -> list[str]:
    return [f"tracker:{url}" for url in parsed.announce] + [f"dht:{parsed.info_hash}"]


def build_stream(
    parsed: ParsedTorrent,
    candidate: Candidate,
    type: Category,
    season: int | None = None,
    episode: int | None = None,
) -> Stream | None:
    """
    Map a resolved torrent to a Stremio stream. Series need a file in the
    torrent matching the episode, otherwise there is no stream.
    """
    name = parsed.name or candidate.title
    file_idx = 0
    size = parsed.length

    if type == Category.Series:
        if season is None or episode is None:
            log.debug("series stream without season or episode", info_hash=parsed.info_hash)
            return None
        index = human.find_episode_file(parsed.files, season=season, episode=episode)
        if index is None:
            log.debug(
                "no matching episode in torrent",
                info_hash=parsed.info_hash,
                season=season,
                episode=episode,
            )
            return None
        file_idx = index
        name = f"{name}\n{parsed.files[index].name}"
        size = parsed.files[index].length

    return Stream(
        name=candidate.tracker or config.APP_NAME,
        type=type,
        infoHash=parsed.info_hash,
        fileIdx=file_idx,
        sources=stream_sources(parsed),
        title=stream_title(name, size, candidate),
        behaviorHints=BehaviorHints(
            bingeGroup=f"{config.APP_NAME}|{parsed.info_hash}",
            notWebReady=True,
        ),
    )
