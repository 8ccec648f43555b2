import unittest

from hyjackett.human import grep_quality


class TestGrepQuality(unittest.TestCase):
    def test_4k_wins_over_hd(self):
        self.assertEqual(grep_quality("Movie 2019 2160p 720p"), "🌟4K")

    def test_fhd_wins_over_sd(self):
        self.assertEqual(grep_quality("Movie 1080 480p"), "🌟FHD")

    def test_case_insensitive(self):
        self.assertEqual(grep_quality("Movie UHD BluRay"), "🌟4K")

    def test_hd(self):
        self.assertEqual(grep_quality("Show.S01E01.720p.WEB"), "🌟HD")

    def test_sd(self):
        self.assertEqual(grep_quality("Show.S01E01.360p.WEB"), "🌟SD")

    def test_custom_tier(self):
        self.assertEqual(grep_quality("Movie custom2 rip"), "🌟CUSTOMQUALITY")

    def test_no_match(self):
        self.assertEqual(grep_quality("Movie BluRay x264"), "")

    def test_empty(self):
        self.assertEqual(grep_quality(""), "")
