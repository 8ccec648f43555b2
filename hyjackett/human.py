from typing import Sequence

import structlog

from hyjackett.torrent import TorrentFile

log = structlog.get_logger(__name__)

SIZE_UNITS = ["B", "KB", "MB", "GB"]
# checked in order, the first tier with a matching keyword wins
QUALITIES: dict[str, list[str]] = {
    "4K": ["2160", "4k", "uhd", "2160p", "2160i"],
    "FHD": ["1080", "fhd", "full hd", "1080p", "1080i"],
    "HD": ["720", "hd", "720p", "720i"],
    "SD": ["480p", "sd", "480i", "360p"],
    "CUSTOMQUALITY": ["custom1", "custom2", "custom3"],
}
VIDEO_EXTENSIONS = [".mkv", ".mp4", ".avi", ".flv"]


def grep_quality(s: str) -> str:
    """
    Get the quality tag of a torrent or file name
    Example: "Movie 2019 1080p 720p" -> 🌟FHD
    """
    if not s:
        return ""
    name = s.lower()
    for quality, keywords in QUALITIES.items():
        if any(keyword in name for keyword in keywords):
            return f"🌟{quality}"
    return ""


def bytes(num: float) -> str:
    """
    Get human readable bytes string for bytes
    Example: 1023 -> 💾 1023 B | 1024 -> 💾 1 KB | (1024*1024*1536) -> 💾 1.5 GB
    """
    unit = 0
    while num >= 1024 and unit < len(SIZE_UNITS) - 1:
        num /= 1024
        unit += 1
    formatted = f"{round(num, 2):.2f}".rstrip("0").rstrip(".")
    return f"💾 {formatted} {SIZE_UNITS[unit]}"


def is_video(file: str) -> bool:
    return file.lower().endswith(tuple(VIDEO_EXTENSIONS))


def match_season_episode(season: int, episode: int, file: str) -> bool:
    name = file.lower()
    matches_season = f"s{season:02}" in name
    matches_episode = f"e{episode:02}" in name
    return matches_season and matches_episode and is_video(name)


def find_episode_file(files: Sequence[TorrentFile], season: int, episode: int) -> int | None:
    """
    Index of the first video file for the season and episode, or None
    """
    for index, file in enumerate(files):
        if match_season_episode(season, episode, file.name):
            return index
    log.debug("no file matches episode", season=season, episode=episode, files=len(files))
    return None
