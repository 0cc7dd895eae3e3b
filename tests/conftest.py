from __future__ import annotations

from typing import Any, Callable, List

import pytest

from rubber_chart.CatalogItem import Item
from rubber_chart.RankTable import RankTables
from rubber_chart.catalog import build_catalog


class FakeTimer:
    """Stand-in for ``threading.Timer`` that only fires when told to."""

    def __init__(self, clock: "FakeClock", delay: float, callback: Callable[[], Any]) -> None:
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False
        self._clock = clock

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return self.started and not self.cancelled and not self.fired

    def fire(self) -> None:
        if not self.pending:
            return
        self.fired = True
        self.callback()


class FakeClock:
    """Collects every timer created while patched in."""

    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def timer(self, delay: float, callback: Callable[[], Any]) -> FakeTimer:
        timer = FakeTimer(self, delay, callback)
        self.timers.append(timer)
        return timer

    def pending(self) -> List[FakeTimer]:
        return [t for t in self.timers if t.pending]

    def fire_pending(self) -> None:
        """Fire the timers pending right now (not ones they schedule)."""
        for timer in self.pending():
            timer.fire()

    def fire_all(self, limit: int = 100) -> None:
        """Fire timers until none are pending."""
        for _ in range(limit):
            pending = self.pending()
            if not pending:
                return
            pending[0].fire()
        raise AssertionError("timers kept rescheduling")


@pytest.fixture
def fake_clock(monkeypatch) -> FakeClock:
    clock = FakeClock()
    monkeypatch.setattr("rubber_chart.debouncing.threading.Timer", clock.timer)
    return clock


def positioned(
    x: float,
    y: float,
    *,
    priority: int = 999,
    name: str | None = None,
    brand: str = "Butterfly",
    **fields: Any,
) -> Item:
    """Return a projected item at ``(x, y)`` for geometry tests."""
    label = name if name is not None else f"P{x:g}-{y:g}"
    return Item(brand=brand, name=label, x=float(x), y=float(y), priority=priority, **fields)


SAMPLE_RECORDS = [
    {
        "name": "Tenergy 05",
        "abbr": "T05",
        "manufacturer": "Butterfly",
        "manufacturer_details": {
            "sheet": "classic",
            "hardness": "36",
            "country": "Japan",
            "weight": "48g",
            "thickness": ["1.9", "2.1"],
            "release_year": 2008,
        },
        "player": ["Ma Long", "Fan Zhendong", "Ma Long", "Hugo Calderano"],
    },
    {
        "name": "Hurricane 3",
        "abbr": "H3",
        "manufacturer": "DHS",
        "manufacturer_details": {"sheet": "Chinese", "hardness": "39", "country": "China", "weight": 52},
    },
    {
        "name": "Dignics 09C",
        "abbr": "D09C",
        "manufacturer": "Butterfly",
        "manufacturer_details": {"sheet": "hybrid", "hardness": "44", "country": "Japan", "weight": "50"},
    },
    {
        "name": "Rasanter R47",
        "abbr": "R47",
        "manufacturer": "Andro",
        "manufacturer_details": {"sheet": "classic", "hardness": "47.5°", "country": "Germany", "weight": "47g"},
    },
    {"name": "Retired", "manufacturer": "Yasaka", "disabled": True},
    {"name": "Unranked", "manufacturer": "Xiom", "manufacturer_details": {}},
]


@pytest.fixture
def sample_tables() -> RankTables:
    return RankTables.from_records(
        spin=[("Butterfly", "Dignics 09C"), ("DHS", "Hurricane 3"), ("Butterfly", "Tenergy 05"), ("Andro", "Rasanter R47")],
        speed=[("Butterfly", "T05"), ("Andro", "Rasanter R47"), ("Butterfly", "Dignics 09C"), ("DHS", "Hurricane 3")],
        control=[("Andro", "Rasanter R47"), ("Butterfly", "Tenergy 05"), ("DHS", "Hurricane 3"), ("Butterfly", "Dignics 09C")],
        priority=[("Butterfly", "Tenergy 05"), ("Butterfly", "Dignics 09C")],
        bestseller=[("DHS", "Hurricane 3")],
    )


@pytest.fixture
def sample_catalog(sample_tables) -> List[Item]:
    return build_catalog(SAMPLE_RECORDS, sample_tables)


@pytest.fixture
def sample_records() -> List[dict]:
    return [dict(record) for record in SAMPLE_RECORDS]
