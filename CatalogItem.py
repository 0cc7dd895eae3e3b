"""Closed record type for one catalog entry (one table-tennis rubber).

Rank- and measurement-dependent attributes are explicit ``Optional`` fields so
"missing rank" and "missing measurement" are representable states rather than
absent keys. Items are immutable; projection produces an updated copy via
``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .HardnessScale import COUNTRY_FLAGS, format_hardness

DEFAULT_PRIORITY = 999
SHEET_TYPES: Tuple[str, ...] = ("Classic", "Chinese", "Hybrid")


@dataclass(frozen=True)
class Item:
    """One catalog entry and its projected chart attributes.

    Parameters
    ----------
    brand : str
        Manufacturer, used for rank matching and colour.
    name : str
        Product name as published by the manufacturer.
    abbr : str
        Short label drawn next to the marker; also accepted by rank matching.
    full_name : str
        Brand-qualified display name, unique within a catalog.
    sheet : str
        One of ``SHEET_TYPES``.
    weight : float or None
        Weight in grams, ``None`` when unknown.
    hardness : float or None
        Manufacturer hardness on the item's native ``country`` scale.
    country : str
        Hardness scale tag (``"Germany"``, ``"Japan"``, ``"China"``, ...).
    normalized_hardness : float or None
        ``hardness`` converted to the canonical scale.
    spin_rank, speed_rank, control_rank : int or None
        1-based positions in the rank tables, ``None`` when not ranked.
    control_total : int or None
        Size of the control rank table.
    x, y : float or None
        Chart coordinates; ``None`` until projected.
    priority : int
        Render/label order, smaller first.
    bestseller : bool
        Membership in the bestseller table.
    """

    brand: str
    name: str
    abbr: str = ""
    full_name: str = ""
    sheet: str = "Classic"
    weight: Optional[float] = None
    hardness: Optional[float] = None
    country: str = ""
    normalized_hardness: Optional[float] = None
    release_year: Optional[int] = None
    thickness_label: str = "N/A"
    player_label: str = "N/A"
    spin_rank: Optional[int] = None
    speed_rank: Optional[int] = None
    control_rank: Optional[int] = None
    control_total: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    priority: int = DEFAULT_PRIORITY
    bestseller: bool = False

    def __post_init__(self) -> None:
        if not self.abbr:
            object.__setattr__(self, "abbr", self.name)
        if not self.full_name:
            object.__setattr__(self, "full_name", f"{self.brand} {self.name}".strip())

    @property
    def key(self) -> Tuple[str, str]:
        """Return the stable ``(brand, full_name)`` identity."""
        return (self.brand, self.full_name)

    @property
    def has_position(self) -> bool:
        """Return ``True`` when both chart coordinates are resolved."""
        return self.x is not None and self.y is not None

    @property
    def weight_label(self) -> str:
        if self.weight is None:
            return "N/A"
        w = self.weight
        return f"{int(w)}g" if float(w).is_integer() else f"{w:.1f}g"

    @property
    def hardness_label(self) -> str:
        if self.hardness is None:
            return "N/A"
        flag = COUNTRY_FLAGS.get(self.country, "")
        text = f"{format_hardness(self.hardness)}\u00b0"
        return f"{text} {flag}" if flag else text

    @property
    def release_year_label(self) -> str:
        return "N/A" if self.release_year is None else str(self.release_year)
