import unittest

from narrasync.utils import seconds_to_hms, seconds_to_mmss


class TestUtils(unittest.TestCase):

    def test_seconds_to_hms(self):
        self.assertEqual(seconds_to_hms(3725), "01:02:05")
        self.assertEqual(seconds_to_hms(0), "00:00:00")

    def test_seconds_to_mmss(self):
        self.assertEqual(seconds_to_mmss(20), "0:20")
        self.assertEqual(seconds_to_mmss(125.999), "2:05")
        self.assertEqual(seconds_to_mmss(3600), "60:00")
        self.assertEqual(seconds_to_mmss(0), "0:00")


if __name__ == "__main__":
    unittest.main()
