import structlog

from hyjackett.torrent import Candidate

log = structlog.get_logger(__name__)

MIN_PEERS = 2


def has_link(candidate: Candidate) -> bool:
    return bool(candidate.link or candidate.magnet_uri)


def has_peers(candidate: Candidate) -> bool:
    return candidate.peers >= MIN_PEERS


def unique_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """
    Drop repeated (tracker, title) pairs keeping the first one seen, along
    with results that have no link or not enough peers to be worth trying.
    """
    seen: set[tuple[str, str]] = set()
    unique: list[Candidate] = []
    for candidate in candidates:
        if candidate.key in seen or not has_link(candidate) or not has_peers(candidate):
            continue
        seen.add(candidate.key)
        unique.append(candidate)
    log.debug("filtered search results", total=len(candidates), unique=len(unique))
    return unique
