import math
import mimetypes
import posixpath
from dataclasses import dataclass
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from .models import AudioHandle, Interval
from .timecode import parse_clock_value
from .utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Overlay:
    timeline: Tuple[Interval, ...]
    audio: Optional[AudioHandle] = None


def parse_overlay(archive, overlay_path: str) -> Overlay:
    """
    Parses a SMIL media overlay from the archive.

    `archive` is the ingestor's EpubArchive. Each <par> holding both a <text>
    and an <audio> child becomes an Interval, in document order. The first
    audio source in the document is loaded fully as the chapter's audio.
    """
    soup = BeautifulSoup(archive.read(overlay_path), 'xml')
    base_dir = posixpath.dirname(overlay_path)

    audio = _load_audio(archive, soup, base_dir)

    timeline: List[Interval] = []
    skipped = 0
    for par in soup.find_all('par'):
        text_el = par.find('text')
        audio_el = par.find('audio')
        if text_el is None or audio_el is None:
            continue

        interval = _build_interval(text_el.get('src', ''), audio_el)
        if interval is None:
            skipped += 1
            continue
        timeline.append(interval)

    if skipped:
        logger.debug(f"{overlay_path}: discarded {skipped} invalid <par> entries")
    logger.debug(f"{overlay_path}: {len(timeline)} sync intervals")
    return Overlay(timeline=tuple(timeline), audio=audio)


def _build_interval(text_src: str, audio_el) -> Optional[Interval]:
    if "#" in text_src:
        element_id = text_src.split("#")[-1]
    else:
        # A bare reference points at a whole document, not an element
        logger.debug(f"Text reference without fragment: '{text_src}'")
        element_id = text_src

    start = parse_clock_value(audio_el.get('clipBegin'))
    end = parse_clock_value(audio_el.get('clipEnd'))

    if not element_id or math.isnan(start) or math.isnan(end):
        return None
    if end < start:
        logger.debug(f"Dropping '{element_id}': clipEnd {end} < clipBegin {start}")
        return None

    return Interval(
        element_id=element_id,
        audio_ref=audio_el.get('src', ''),
        start=start,
        end=end,
    )


def _load_audio(archive, soup: BeautifulSoup, base_dir: str) -> Optional[AudioHandle]:
    audio_el = soup.find('audio', src=True)
    if audio_el is None:
        return None

    src = audio_el['src']
    path = archive.resolve(src, base_dir)
    if path is None:
        logger.warning(f"Audio source '{src}' is declared but not in the archive")
        return None

    media_type, _ = mimetypes.guess_type(path)
    data = archive.read(path)
    logger.info(f"Loaded audio {path} ({len(data)} bytes)")
    return AudioHandle(path=path, media_type=media_type or "", data=data)
