"""Ordered ranking tables loaded once per session.

A ``RankTable`` is an immutable sequence of ``(brand, name)`` entries; an item's
rank is its 0-based index in the table, reported 1-based for display.
``RankTables`` bundles the three metric tables (spin, speed, control) with the
priority ordering and the bestseller membership table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from collections.abc import Iterable, Mapping
from typing import Any, Dict, List, Optional, Tuple

Entry = Tuple[str, str]


def _brand_key(brand: Any) -> str:
    return str(brand or "").strip().lower()


@dataclass(frozen=True)
class RankTable:
    """Immutable ordered ``(brand, name)`` ranking.

    Lookups are indexed by folded brand; an entry matches an item when the brand
    matches after trimming and case folding and the entry name equals either
    the item's name or its abbreviation. The first match wins.
    """

    entries: Tuple[Entry, ...] = ()
    _index: Dict[str, Tuple[Tuple[int, str], ...]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        entries = tuple((str(b or ""), str(n or "")) for b, n in self.entries)
        object.__setattr__(self, "entries", entries)
        index: Dict[str, List[Tuple[int, str]]] = {}
        for i, (brand, name) in enumerate(entries):
            index.setdefault(_brand_key(brand), []).append((i, name))
        object.__setattr__(self, "_index", {k: tuple(v) for k, v in index.items()})

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "RankTable":
        """Build a table from ``{"brand": ..., "name": ...}`` mappings or pairs."""
        entries = []
        for record in records:
            if isinstance(record, Mapping):
                entries.append((record.get("brand", ""), record.get("name", "")))
            else:
                brand, name = record
                entries.append((brand, name))
        return cls(tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)

    def index_of(self, brand: str, name: str, abbr: Optional[str] = None) -> Optional[int]:
        """Return the 0-based index of the item, or ``None`` when unranked."""
        for i, entry_name in self._index.get(_brand_key(brand), ()):
            if entry_name == name or (abbr is not None and entry_name == abbr):
                return i
        return None

    def rank_of(self, brand: str, name: str, abbr: Optional[str] = None) -> Optional[int]:
        """Return the 1-based rank of the item, or ``None`` when unranked."""
        index = self.index_of(brand, name, abbr)
        return None if index is None else index + 1


@dataclass(frozen=True)
class RankTables:
    """All rank tables consumed by the projector."""

    spin: RankTable
    speed: RankTable
    control: RankTable = RankTable()
    priority: RankTable = RankTable()
    bestseller: RankTable = RankTable()

    @classmethod
    def from_records(
        cls,
        *,
        spin: Iterable[Any],
        speed: Iterable[Any],
        control: Iterable[Any] = (),
        priority: Iterable[Any] = (),
        bestseller: Iterable[Any] = (),
    ) -> "RankTables":
        """Build every table from raw entry sequences."""
        return cls(
            spin=RankTable.from_records(spin),
            speed=RankTable.from_records(speed),
            control=RankTable.from_records(control),
            priority=RankTable.from_records(priority),
            bestseller=RankTable.from_records(bestseller),
        )
