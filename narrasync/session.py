from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import SyncConfig
from .epub_parser import Ingestor
from .errors import NarrasyncError, NotLoadedError
from .models import END_OF_BOOK, Chapter, Highlight
from .text_lookup import ContentTextLookup, TextLookup
from .timeline import TimelineIndex
from .utils import get_logger

logger = get_logger(__name__)


class NavigationStatus(str, Enum):
    READY = "ready"                 # fetched, not applied yet
    LOADED = "loaded"
    END_OF_BOOK = "end_of_book"
    FAILED = "failed"
    STALE = "stale"                 # superseded by a newer request


@dataclass(frozen=True)
class NavigationRequest:
    sequence: int
    spine_index: int


@dataclass(frozen=True)
class NavigationResult:
    status: NavigationStatus
    sequence: int
    spine_index: int
    chapter: Optional[Chapter] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status in (NavigationStatus.READY, NavigationStatus.LOADED)


class ReaderSession:
    """
    Chapter navigation for one open book.

    Every navigation is numbered. Only the newest request may become the
    current chapter, so a slow fetch that finishes after a later one is
    dropped instead of overwriting it. Failures come back as
    NavigationResult values and never disturb the chapter already loaded.

    The session owns the audio handles it loads: the previous chapter's
    handle is released once a new chapter replaces it.
    """

    def __init__(self, archive, ingestor: Optional[Ingestor] = None,
                 config: Optional[SyncConfig] = None):
        self.archive = archive
        self.ingestor = ingestor or Ingestor()
        self.index = TimelineIndex(config)
        self.current_index: Optional[int] = None
        self._latest_sequence = 0

    @property
    def chapter(self) -> Optional[Chapter]:
        return self.index.chapter

    def request(self, spine_index: int) -> NavigationRequest:
        self._latest_sequence += 1
        return NavigationRequest(sequence=self._latest_sequence, spine_index=spine_index)

    def fetch(self, request: NavigationRequest) -> NavigationResult:
        """Runs ingestion for a request. Safe to call off the main thread; touches no session state."""
        try:
            produced = self.ingestor.produce(self.archive, request.spine_index)
        except (NarrasyncError, ValueError) as e:
            logger.error(f"Failed to load chapter {request.spine_index + 1}: {e}")
            return NavigationResult(NavigationStatus.FAILED, request.sequence,
                                    request.spine_index, error=e)

        if produced is END_OF_BOOK:
            return NavigationResult(NavigationStatus.END_OF_BOOK, request.sequence,
                                    request.spine_index)
        return NavigationResult(NavigationStatus.READY, request.sequence,
                                request.spine_index, chapter=produced)

    def apply(self, result: NavigationResult) -> NavigationResult:
        """Makes a fetched chapter current, unless a newer request has been issued since."""
        if result.sequence != self._latest_sequence:
            logger.info(f"Dropping stale navigation #{result.sequence} "
                        f"(latest is #{self._latest_sequence})")
            if result.chapter is not None and result.chapter.audio is not None:
                result.chapter.audio.release()
            return NavigationResult(NavigationStatus.STALE, result.sequence,
                                    result.spine_index, chapter=result.chapter)

        if result.status != NavigationStatus.READY:
            return result

        previous = self.index.chapter
        try:
            self.index.load(result.chapter)
        except NarrasyncError as e:
            logger.error(f"Rejected chapter {result.spine_index + 1}: {e}")
            if result.chapter.audio is not None \
                    and (previous is None or previous.audio is not result.chapter.audio):
                result.chapter.audio.release()
            return NavigationResult(NavigationStatus.FAILED, result.sequence,
                                    result.spine_index, chapter=result.chapter, error=e)

        if previous is not None and previous.audio is not None \
                and previous.audio is not result.chapter.audio:
            previous.audio.release()

        self.current_index = result.spine_index
        return NavigationResult(NavigationStatus.LOADED, result.sequence,
                                result.spine_index, chapter=self.index.chapter)

    def open(self, spine_index: int) -> NavigationResult:
        return self.apply(self.fetch(self.request(spine_index)))

    def next(self) -> NavigationResult:
        target = 0 if self.current_index is None else self.current_index + 1
        return self.open(target)

    def previous(self) -> NavigationResult:
        if self.current_index is None or self.current_index == 0:
            return self.open(0)
        return self.open(self.current_index - 1)

    def active_element_id(self, time: float) -> Optional[str]:
        return self.index.active_element_id(time)

    def clip(self, time: float, text_lookup: Optional[TextLookup] = None) -> Highlight:
        """Clip around `time`, resolving text from the chapter's own markup by default."""
        chapter = self.index.chapter
        if chapter is None:
            raise NotLoadedError()
        return self.index.extract_window(time, text_lookup or ContentTextLookup(chapter.content))
