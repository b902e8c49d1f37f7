import dataclasses
import unittest
from datetime import timezone

from narrasync.models import END_OF_BOOK, AudioHandle, Chapter, Highlight, Interval


class TestInterval(unittest.TestCase):
    def test_interval_fields(self):
        interval = Interval(element_id="p1", audio_ref="audio/c1.mp3", start=1.5, end=4.0)
        self.assertEqual(interval.element_id, "p1")
        self.assertEqual(interval.duration, 2.5)

    def test_interval_is_immutable(self):
        interval = Interval("p1", "a.mp3", 0, 1)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            interval.start = 3


class TestChapter(unittest.TestCase):
    def test_text_only_defaults(self):
        chap = Chapter(id="chap2", title="Chapter 2", content="<p>Hi</p>")
        self.assertEqual(chap.timeline, ())
        self.assertIsNone(chap.audio)
        self.assertFalse(chap.has_audio)

    def test_chapter_repr(self):
        chap = Chapter(
            id="chap5",
            title="Chapter 5",
            content="",
            timeline=(Interval("p1", "a.mp3", 0, 1),),
            audio=AudioHandle(path="OEBPS/a.mp3", data=b"abc"),
        )
        self.assertIn("Chapter 5", repr(chap))
        self.assertIn("Intervals=1", repr(chap))
        self.assertIn("Audio=True", repr(chap))


class TestAudioHandle(unittest.TestCase):
    def test_release(self):
        handle = AudioHandle(path="OEBPS/audio/c1.mp3", media_type="audio/mpeg", data=b"12345")
        self.assertEqual(handle.size, 5)
        self.assertFalse(handle.released)
        handle.release()
        self.assertTrue(handle.released)
        self.assertEqual(handle.size, 0)
        self.assertIn("released", repr(handle))


class TestHighlight(unittest.TestCase):
    def test_created_at_is_utc(self):
        clip = Highlight("Chapter 1", 5, 0, 20, ("a",), "# Clip")
        self.assertEqual(clip.created_at.tzinfo, timezone.utc)


class TestEndOfBook(unittest.TestCase):
    def test_singleton_and_falsy(self):
        self.assertIs(type(END_OF_BOOK)(), END_OF_BOOK)
        self.assertFalse(END_OF_BOOK)
        self.assertEqual(repr(END_OF_BOOK), "END_OF_BOOK")


if __name__ == "__main__":
    unittest.main()
