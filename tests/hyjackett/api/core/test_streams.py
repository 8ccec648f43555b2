import unittest

from hyjackett.api.core.streams import build_stream
from hyjackett.torrent import Candidate, Category, ParsedTorrent, TorrentFile

INFO_HASH = "c9e15763f722f23e98a29decdfae341b98d53056"


def candidate() -> Candidate:
    return Candidate(
        tracker="EZTV",
        title="Show S01 1080p",
        seeders=12,
        peers=34,
        magnet_uri="magnet:?xt=urn:btih:" + INFO_HASH,
        source_id="host1",
    )


def season_pack() -> ParsedTorrent:
    return ParsedTorrent(
        info_hash=INFO_HASH.upper(),
        name="Show.S01.1080p",
        length=3 * 1024**3,
        files=[
            TorrentFile(name="Show.S01E02.mkv", length=1536 * 1024**2),
            TorrentFile(name="Show.S01E03.mkv", length=1024**3),
        ],
        announce=["udp://tracker.one:1337", "udp://tracker.two:80"],
    )


class TestBuildStream(unittest.TestCase):
    def test_series_selects_episode_file(self):
        stream = build_stream(season_pack(), candidate(), Category.Series, season=1, episode=2)
        assert stream is not None
        self.assertEqual(stream.fileIdx, 0)
        self.assertEqual(stream.infoHash, INFO_HASH)
        self.assertEqual(stream.name, "EZTV")
        self.assertEqual(stream.type, Category.Series)
        self.assertEqual(
            stream.title,
            "Show.S01.1080p\nShow.S01E02.mkv\n🌟FHD | 💾 1.5 GB | S:12 /P:34 ",
        )

    def test_series_second_file(self):
        stream = build_stream(season_pack(), candidate(), Category.Series, season=1, episode=3)
        assert stream is not None
        self.assertEqual(stream.fileIdx, 1)
        self.assertIn("💾 1 GB", stream.title)

    def test_series_missing_episode(self):
        stream = build_stream(season_pack(), candidate(), Category.Series, season=1, episode=9)
        self.assertIsNone(stream)

    def test_series_without_files(self):
        parsed = season_pack()
        parsed.files = []
        self.assertIsNone(build_stream(parsed, candidate(), Category.Series, season=1, episode=2))

    def test_movie_uses_whole_torrent(self):
        parsed = ParsedTorrent(info_hash=INFO_HASH, name="Movie.2019.2160p", length=2 * 1024**3)
        stream = build_stream(parsed, candidate(), Category.Movie)
        assert stream is not None
        self.assertEqual(stream.fileIdx, 0)
        self.assertEqual(stream.title, "Movie.2019.2160p\n🌟4K | 💾 2 GB | S:12 /P:34 ")

    def test_movie_unknown_size_and_name(self):
        parsed = ParsedTorrent(info_hash=INFO_HASH)
        stream = build_stream(parsed, candidate(), Category.Movie)
        assert stream is not None
        self.assertTrue(stream.title.startswith("Show S01 1080p\n🌟FHD | 💾 0 B"))

    def test_sources_end_with_dht(self):
        stream = build_stream(season_pack(), candidate(), Category.Series, season=1, episode=2)
        assert stream is not None
        self.assertEqual(
            stream.sources,
            [
                "tracker:udp://tracker.one:1337",
                "tracker:udp://tracker.two:80",
                f"dht:{INFO_HASH}",
            ],
        )

    def test_behavior_hints(self):
        stream = build_stream(season_pack(), candidate(), Category.Series, season=1, episode=2)
        assert stream is not None
        self.assertEqual(stream.behaviorHints.bingeGroup, f"HYJackett|{INFO_HASH}")
        self.assertTrue(stream.behaviorHints.notWebReady)
