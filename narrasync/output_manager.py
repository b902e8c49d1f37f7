from typing import Dict, Iterable, List, Sequence

from .models import Interval
from .utils import seconds_to_mmss


def context_label(timestamp: float, range_start: float, range_end: float, half_width: float) -> str:
    """Human label for the clip window. Near the top of the chapter the start is implicit."""
    if timestamp < half_width:
        return f"Chapter start – {seconds_to_mmss(range_end)}"
    return f"{seconds_to_mmss(range_start)} – {seconds_to_mmss(range_end)}"


def render_clip_markdown(chapter_title: str, timestamp: float, label: str,
                         segments: Sequence[str]) -> str:
    """
    Renders the clip export block.

    # Clip from {title}
    **Timestamp:** {m:ss}
    **Context:** {label}
    ---
    > {segment}
    (blank line after every segment)
    ---
    """
    lines = [
        f"# Clip from {chapter_title}",
        f"**Timestamp:** {seconds_to_mmss(timestamp)}",
        f"**Context:** {label}",
        "---",
    ]
    lines.extend(f"> {segment}\n" for segment in segments)
    lines.append("---")
    return "\n".join(lines)


def timeline_to_records(timeline: Iterable[Interval]) -> List[Dict]:
    """Flattens a timeline into JSON-ready dicts."""
    return [
        {
            "id": interval.element_id,
            "audio": interval.audio_ref,
            "start": round(interval.start, 3),
            "end": round(interval.end, 3),
        }
        for interval in timeline
    ]
