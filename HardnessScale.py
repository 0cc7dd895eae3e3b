"""Country hardness scales and conversion through the canonical (German) scale.

Every country publishes sponge hardness on its own scale. Each scale is
described by three anchors (soft, medium, hard) that correspond positionally to
the three anchors of the canonical scale:

==========  =====  ======  =====
Country     soft   medium  hard
==========  =====  ======  =====
Germany     40     47.5    55
Japan       33     36      44
China       35     39      41
==========  =====  ======  =====

Conversion is piecewise-linear between anchors. Values beyond the outer anchors
extrapolate along the nearest segment's slope; ``t`` is deliberately left
unclamped so range filters stay monotonic at the tails.

Examples
--------
>>> to_canonical(36, "Japan")
47.5
>>> from_canonical(47.5, "China")
39.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

CANONICAL_COUNTRY = "Germany"

COUNTRY_FLAGS: Dict[str, str] = {
    "Germany": "\U0001F1E9\U0001F1EA",
    "Japan": "\U0001F1EF\U0001F1F5",
    "China": "\U0001F1E8\U0001F1F3",
}


@dataclass(frozen=True)
class HardnessScale:
    """Three monotonically increasing anchors on one country's native scale.

    Parameters
    ----------
    country : str
        Country tag used on catalog records.
    anchors : tuple[float, float, float]
        Soft/medium/hard reference hardness on the native scale.
    """

    country: str
    anchors: Tuple[float, float, float]

    def __post_init__(self) -> None:
        anchors = tuple(float(a) for a in self.anchors)
        if len(anchors) != 3:
            raise ValueError(f"{self.country}: expected 3 hardness anchors, got {len(anchors)}")
        if not all(math.isfinite(a) for a in anchors):
            raise ValueError(f"{self.country}: hardness anchors must be finite")
        if not (anchors[0] < anchors[1] < anchors[2]):
            raise ValueError(f"{self.country}: hardness anchors must be strictly increasing")
        object.__setattr__(self, "anchors", anchors)


HARDNESS_SCALES: Dict[str, HardnessScale] = {
    "Germany": HardnessScale("Germany", (40.0, 47.5, 55.0)),
    "Japan": HardnessScale("Japan", (33.0, 36.0, 44.0)),
    "China": HardnessScale("China", (35.0, 39.0, 41.0)),
}


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def interpolate_scale(value: float, source: Sequence[float], target: Sequence[float]) -> float:
    """Map ``value`` from ``source`` anchors onto ``target`` anchors.

    The first segment whose upper anchor is at or above ``value`` is used; the
    last segment absorbs everything above it.
    """
    last = len(source) - 2
    for i in range(len(source) - 1):
        if value <= source[i + 1] or i == last:
            t = (value - source[i]) / (source[i + 1] - source[i])
            return target[i] + t * (target[i + 1] - target[i])
    return value


def convert(value: Any, source_country: str, target_country: str) -> Optional[float]:
    """Convert hardness between two country scales.

    Returns ``None`` for a missing or non-finite value and the value unchanged
    when either country has no known scale.
    """
    number = _finite(value)
    if number is None:
        return None
    if source_country == target_country:
        return number
    source = HARDNESS_SCALES.get(source_country)
    target = HARDNESS_SCALES.get(target_country)
    if source is None or target is None:
        return number
    return interpolate_scale(number, source.anchors, target.anchors)


def to_canonical(value: Any, country: str) -> Optional[float]:
    """Convert a native-scale hardness to the canonical scale."""
    return convert(value, country, CANONICAL_COUNTRY)


def from_canonical(value: Any, country: str) -> Optional[float]:
    """Convert a canonical-scale hardness to ``country``'s scale."""
    return convert(value, CANONICAL_COUNTRY, country)


def scale_equivalents(value: Any) -> Dict[str, Optional[float]]:
    """Return the canonical ``value`` expressed in every known country scale."""
    return {country: from_canonical(value, country) for country in HARDNESS_SCALES}


def hardness_category(canonical_value: Any) -> Optional[str]:
    """Bucket a canonical hardness into ``Soft``/``Medium``/``Hard``.

    Boundaries sit roughly midway between the canonical anchors.
    """
    number = _finite(canonical_value)
    if number is None:
        return None
    if number < 46:
        return "Soft"
    if number < 51:
        return "Medium"
    return "Hard"


def format_hardness(value: Any) -> str:
    """Format a hardness number the way labels show it (integers without decimals)."""
    number = _finite(value)
    if number is None:
        return ""
    return str(int(number)) if number.is_integer() else f"{number:.1f}"
