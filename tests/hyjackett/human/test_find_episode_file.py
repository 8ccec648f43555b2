import unittest

from hyjackett.human import find_episode_file, match_season_episode
from hyjackett.torrent import TorrentFile


def files(*names: str) -> list[TorrentFile]:
    return [TorrentFile(name=name, length=1000) for name in names]


class TestFindEpisodeFile(unittest.TestCase):
    def test_selects_first_matching_file(self):
        result = find_episode_file(files("Show.S01E02.mkv", "Show.S01E03.mkv"), 1, 2)
        self.assertEqual(result, 0)

    def test_selects_later_file(self):
        result = find_episode_file(files("Show.S01E02.mkv", "Show.S01E03.mkv"), 1, 3)
        self.assertEqual(result, 1)

    def test_missing_episode(self):
        result = find_episode_file(files("Show.S01E02.mkv", "Show.S01E03.mkv"), 1, 9)
        self.assertIsNone(result)

    def test_skips_non_video_files(self):
        result = find_episode_file(
            files("Show.S01E02.srt", "Show.S01E02.nfo", "Show.S01E02.mp4"), 1, 2
        )
        self.assertEqual(result, 2)

    def test_empty_file_list(self):
        self.assertIsNone(find_episode_file([], 1, 1))


class TestMatchSeasonEpisode(unittest.TestCase):
    def test_lower_and_upper_case(self):
        self.assertTrue(match_season_episode(1, 2, "show.s01e02.avi"))
        self.assertTrue(match_season_episode(1, 2, "SHOW.S01E02.FLV"))

    def test_double_digit_season_and_episode(self):
        self.assertTrue(match_season_episode(12, 10, "Show.S12E10.1080p.mkv"))

    def test_wrong_season(self):
        self.assertFalse(match_season_episode(2, 2, "Show.S01E02.mkv"))
