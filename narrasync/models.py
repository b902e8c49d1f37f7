from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple


@dataclass(frozen=True)
class Interval:
    """
    One <par> of a media overlay: a text element bound to a slice of audio.
    """
    element_id: str                     # id of the element in the content document
    audio_ref: str                      # audio src as written in the overlay
    start: float                        # clipBegin (seconds)
    end: float                          # clipEnd (seconds), end >= start

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class AudioHandle:
    """
    Opaque, caller-owned reference to a chapter's audio, loaded fully into memory.
    Nothing in the sync core ever releases it; whoever replaces the chapter does.
    """
    path: str                           # archive entry the bytes came from
    media_type: str = ""
    data: Optional[bytes] = field(default=None, repr=False)

    @property
    def released(self) -> bool:
        return self.data is None

    @property
    def size(self) -> int:
        return len(self.data) if self.data is not None else 0

    def release(self):
        self.data = None

    def __repr__(self):
        state = "released" if self.released else f"{self.size} bytes"
        return f"<AudioHandle {self.path} ({state})>"


@dataclass(frozen=True)
class Chapter:
    """
    A chapter as produced by ingestion: renderable body markup plus its sync timeline.
    Text-only chapters have an empty timeline and no audio.
    """
    id: str                             # manifest id of the content document
    title: str                          # positional ("Chapter 3")
    content: str                        # body-only markup
    timeline: Tuple[Interval, ...] = ()
    audio: Optional[AudioHandle] = None

    @property
    def has_audio(self) -> bool:
        return self.audio is not None

    def __repr__(self):
        return (f"<Chapter {self.id}: '{self.title}' "
                f"Intervals={len(self.timeline)} Audio={self.has_audio}>")


@dataclass(frozen=True)
class Highlight:
    """A clip of text cut around a playback timestamp."""
    chapter_title: str
    timestamp: float
    range_start: float
    range_end: float
    text_segments: Tuple[str, ...]
    rendered_text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class _EndOfBook:
    """Returned by ingestion when the requested spine index is past the last chapter."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "END_OF_BOOK"


END_OF_BOOK = _EndOfBook()
