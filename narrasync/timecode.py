import math
import re

# SMIL timecount metrics, longest first so "ms" wins over "s"
_UNIT_SCALE = (
    ("min", 60.0),
    ("ms", 0.001),
    ("h", 3600.0),
    ("s", 1.0),
)

_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def _to_float(text: str) -> float:
    text = text.strip()
    if not _NUMBER.match(text):
        return math.nan
    return float(text)


def parse_clock_value(value) -> float:
    """
    Converts an overlay clock value to seconds.

    "3.5s" -> 3.5, "02:05.25" -> 125.25, "00:02:05.250" -> 125.25.
    Empty or missing values are 0. Anything unparsable yields NaN; callers
    must discard the pair instead of substituting a default.
    """
    if not value:
        return 0.0
    text = value.strip()
    if not text:
        return 0.0

    if ":" not in text:
        for suffix, scale in _UNIT_SCALE:
            if text.endswith(suffix):
                return _to_float(text[:-len(suffix)]) * scale
        return _to_float(text)

    parts = text.split(":")
    if len(parts) > 3:
        return math.nan

    # Right-most is seconds, then minutes, then hours
    total = 0.0
    for scale, part in zip((1.0, 60.0, 3600.0), reversed(parts)):
        number = _to_float(part)
        if math.isnan(number):
            return math.nan
        total += number * scale
    return total
