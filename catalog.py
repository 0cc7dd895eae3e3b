"""Normalization of raw catalog records into :class:`~rubber_chart.CatalogItem.Item`.

Records arrive as already-parsed JSON mappings (fetching them is the caller's
job). Each record looks roughly like::

    {
        "name": "Tenergy 05",
        "abbr": "T05",
        "manufacturer": "Butterfly",
        "manufacturer_details": {
            "sheet": "classic", "hardness": "36", "country": "Japan",
            "weight": "48g", "thickness": ["1.9", "2.1"], "release_year": 2008,
        },
        "player": ["..."],
    }

Measurements are parsed leniently and degrade to ``None``; an item with a
missing measurement still gets a chart position and is only excluded from the
filters keyed on that measurement.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from typing import Any, Dict, List, Optional

from .CatalogItem import SHEET_TYPES, Item
from .HardnessScale import to_canonical
from .RankTable import RankTables
from .rank_projection import project_catalog

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"[\d.]+")


def parse_measurement(value: Any) -> Optional[float]:
    """Return the numeric content of ``value`` or ``None``.

    Numbers pass through; strings yield their first decimal number
    (``"47.5°"`` → ``47.5``); everything else, and non-finite results, yield
    ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if match is None:
            return None
        try:
            number = float(match.group(0))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def normalize_sheet(value: Any) -> str:
    if isinstance(value, str):
        lowered = value.strip().lower()
        for sheet in SHEET_TYPES:
            if lowered == sheet.lower():
                return sheet
    return "Classic"


def build_full_name(brand: Any, name: Any) -> str:
    b = str(brand or "").strip()
    n = str(name or "").strip()
    if not b:
        return n
    if n.lower().startswith(b.lower()):
        return n
    return f"{b} {n}".strip()


def _collect_players(value: Any, into: Dict[str, None]) -> None:
    if not value:
        return
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed:
            into.setdefault(trimmed, None)
    elif isinstance(value, Mapping):
        for nested in value.values():
            _collect_players(nested, into)
    elif isinstance(value, Iterable):
        for nested in value:
            _collect_players(nested, into)


def format_player_label(record: Mapping[str, Any]) -> str:
    """Return up to two unique player names, then ``+N`` for the rest."""
    players: Dict[str, None] = {}
    _collect_players(record.get("player"), players)
    _collect_players(record.get("players"), players)
    names = list(players)
    if not names:
        return "N/A"
    if len(names) <= 2:
        return ", ".join(names)
    return f"{', '.join(names[:2])} +{len(names) - 2}"


def format_thickness_label(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        entries = [str(v).strip() for v in value if v is not None and str(v).strip()]
        return ", ".join(entries) if entries else "N/A"
    if value is None:
        return "N/A"
    text = str(value).strip()
    return text or "N/A"


def item_from_record(record: Mapping[str, Any]) -> Optional[Item]:
    """Normalize one raw record, or return ``None`` when it is disabled or nameless."""
    if "disabled" in record:
        return None
    name = str(record.get("name") or "").strip()
    if not name:
        return None
    brand = str(record.get("manufacturer") or record.get("brand") or "").strip()
    details = record.get("manufacturer_details")
    if not isinstance(details, Mapping):
        details = {}
    country = str(details.get("country") or "")
    hardness = parse_measurement(details.get("hardness"))
    release_year = parse_measurement(details.get("release_year"))
    return Item(
        brand=brand,
        name=name,
        abbr=str(record.get("abbr") or name),
        full_name=build_full_name(brand, name),
        sheet=normalize_sheet(details.get("sheet")),
        weight=parse_measurement(details.get("weight")),
        hardness=hardness,
        country=country,
        normalized_hardness=to_canonical(hardness, country),
        release_year=None if release_year is None else int(round(release_year)),
        thickness_label=format_thickness_label(details.get("thickness")),
        player_label=format_player_label(record),
    )


def build_catalog(records: Iterable[Any], tables: RankTables) -> List[Item]:
    """Normalize ``records`` and project them; unranked items are excluded.

    Per-brand array files are accepted too, so ``records`` may mix single
    mappings with lists of mappings.
    """
    items: List[Item] = []
    skipped = 0
    for record in records:
        batch = record if isinstance(record, (list, tuple)) else [record]
        for raw in batch:
            if not isinstance(raw, Mapping):
                skipped += 1
                continue
            item = item_from_record(raw)
            if item is None:
                skipped += 1
                continue
            items.append(item)
    if skipped:
        logger.debug("skipped %d disabled or malformed catalog records", skipped)
    return project_catalog(items, tables)
