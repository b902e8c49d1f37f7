import math
from dataclasses import replace
from typing import List, Optional, Tuple

from .config import SyncConfig
from .errors import InvalidTimelineError, NotLoadedError
from .models import Chapter, Highlight, Interval
from .output_manager import context_label, render_clip_markdown
from .text_lookup import TextLookup
from .utils import get_logger

logger = get_logger(__name__)


class _LoadedState:
    """Everything a query needs, built once per load and never mutated after."""
    __slots__ = ("chapter", "timeline", "max_end")

    def __init__(self, chapter: Chapter, timeline: Tuple[Interval, ...], max_end: Tuple[float, ...]):
        self.chapter = chapter
        self.timeline = timeline
        # max_end[i] = max(end of timeline[0..i]); non-decreasing even when intervals overlap
        self.max_end = max_end


class TimelineIndex:
    """
    Sync index for one chapter.

    Point queries are called once per rendered frame during playback, so they
    only binary-search the stored tuple. load() replaces the whole chapter in
    a single assignment; every reader takes one snapshot of that reference,
    so a call observes either the old chapter or the new one.
    """

    def __init__(self, config: Optional[SyncConfig] = None):
        self.config = config or SyncConfig()
        self._state: Optional[_LoadedState] = None

    @property
    def is_loaded(self) -> bool:
        return self._state is not None

    @property
    def chapter(self) -> Optional[Chapter]:
        """The loaded chapter with its timeline sorted by start."""
        state = self._state
        return state.chapter if state else None

    def __len__(self):
        state = self._state
        return len(state.timeline) if state else 0

    def load(self, chapter: Chapter):
        """
        Stores a sorted copy of the chapter's timeline.
        The caller's chapter is not modified. Invalid intervals raise
        InvalidTimelineError and leave the previously loaded chapter in place.
        """
        for position, interval in enumerate(chapter.timeline):
            self._validate(chapter, position, interval)

        # sorted() is stable, so intervals sharing a start keep document order
        timeline = tuple(sorted(chapter.timeline, key=lambda interval: interval.start))
        overlaps = self._report_overlaps(chapter, timeline)

        max_end: List[float] = []
        running = -math.inf
        for interval in timeline:
            running = max(running, interval.end)
            max_end.append(running)

        state = _LoadedState(replace(chapter, timeline=timeline), timeline, tuple(max_end))
        self._state = state

        logger.info(f"Loaded '{chapter.title}': {len(timeline)} intervals, {overlaps} overlaps")

    def query(self, time: float) -> Optional[Interval]:
        """
        Returns the interval with start <= time <= end, or None.

        With overlapping intervals more than one may contain `time`; the one
        returned is the first the search lands on (containment is checked at
        each midpoint before moving left when time < start, right otherwise).
        """
        state = self._state
        if state is None:
            return None

        timeline = state.timeline
        left = 0
        right = len(timeline) - 1
        while left <= right:
            mid = (left + right) // 2
            interval = timeline[mid]
            if interval.start <= time <= interval.end:
                return interval
            if time < interval.start:
                right = mid - 1
            else:
                left = mid + 1
        return None

    def active_element_id(self, time: float) -> Optional[str]:
        interval = self.query(time)
        return interval.element_id if interval else None

    def extract_window(self, time: float, text_lookup: TextLookup) -> Highlight:
        """
        Cuts a clip of +/- half_width seconds around `time`.

        Every interval with start <= window_end and end >= window_start is
        matched, in ascending start order; their text comes from `text_lookup`
        and empty results are dropped.
        """
        state = self._state
        if state is None:
            raise NotLoadedError()

        half_width = self.config.half_width
        window_start = max(0.0, time - half_width)
        window_end = time + half_width

        matched = []
        timeline = state.timeline
        index = self._first_index_ending_at_or_after(state, window_start)
        if index != -1:
            for position in range(index, len(timeline)):
                interval = timeline[position]
                # Sorted by start: nothing past here can fall inside the window
                if interval.start > window_end:
                    break
                if interval.end >= window_start:
                    matched.append(interval)

        segments = []
        for interval in matched:
            text = text_lookup.lookup(interval.element_id)
            if text is None or not text.strip():
                logger.warning(f"No text for element '{interval.element_id}'; skipped in clip.")
                continue
            segments.append(text)

        title = state.chapter.title
        label = context_label(time, window_start, window_end, half_width)
        return Highlight(
            chapter_title=title,
            timestamp=time,
            range_start=window_start,
            range_end=window_end,
            text_segments=tuple(segments),
            rendered_text=render_clip_markdown(title, time, label, segments),
        )

    @staticmethod
    def _first_index_ending_at_or_after(state: _LoadedState, target: float) -> int:
        """Leftmost binary search: smallest i with an interval ending >= target by i, else -1."""
        max_end = state.max_end
        left = 0
        right = len(max_end) - 1
        result = -1
        while left <= right:
            mid = (left + right) // 2
            if max_end[mid] >= target:
                result = mid
                right = mid - 1
            else:
                left = mid + 1
        return result

    @staticmethod
    def _validate(chapter: Chapter, position: int, interval: Interval):
        if not interval.element_id:
            raise InvalidTimelineError(
                f"Interval #{position} has an empty element id", item_id=chapter.id)
        if math.isnan(interval.start) or math.isnan(interval.end):
            raise InvalidTimelineError(
                f"Interval #{position} has a NaN bound", item_id=interval.element_id)
        if interval.end < interval.start:
            raise InvalidTimelineError(
                f"Interval #{position} ends ({interval.end}s) before it starts ({interval.start}s)",
                item_id=interval.element_id)

    @staticmethod
    def _report_overlaps(chapter: Chapter, timeline: Tuple[Interval, ...]) -> int:
        count = 0
        for current, following in zip(timeline, timeline[1:]):
            if current.end > following.start:
                count += 1
                logger.warning(
                    f"[{chapter.id}] Overlap: '{current.element_id}' ends at {current.end}s "
                    f"but '{following.element_id}' starts at {following.start}s"
                )
        return count
