from __future__ import annotations

import logging

import pytest

from rubber_chart.catalog import (
    build_catalog,
    build_full_name,
    format_player_label,
    format_thickness_label,
    item_from_record,
    normalize_sheet,
    parse_measurement,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("48g", 48.0),
        ("47.5°", 47.5),
        (52, 52.0),
        (36.5, 36.5),
        ("ca 40 shore", 40.0),
        ("n/a", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        (["48"], None),
    ],
)
def test_parse_measurement(raw, expected) -> None:
    assert parse_measurement(raw) == expected


def test_normalize_sheet_is_case_insensitive_with_classic_fallback() -> None:
    assert normalize_sheet(" HYBRID ") == "Hybrid"
    assert normalize_sheet("chinese") == "Chinese"
    assert normalize_sheet("tacky") == "Classic"
    assert normalize_sheet(None) == "Classic"


def test_full_name_does_not_repeat_the_brand() -> None:
    assert build_full_name("Butterfly", "Tenergy 05") == "Butterfly Tenergy 05"
    assert build_full_name("DHS", "dhs Hurricane 3") == "dhs Hurricane 3"
    assert build_full_name("", "Orphan") == "Orphan"


def test_player_label_dedupes_and_counts_the_rest() -> None:
    record = {"player": ["Ma Long", "Fan Zhendong", "Ma Long", "Hugo Calderano"]}
    assert format_player_label(record) == "Ma Long, Fan Zhendong +1"


def test_player_label_walks_nested_structures() -> None:
    record = {"player": {"forehand": ["A"], "backhand": "B"}, "players": [["C"], "A"]}
    assert format_player_label(record) == "A, B +1"
    assert format_player_label({}) == "N/A"


def test_thickness_label() -> None:
    assert format_thickness_label(["1.9", None, "2.1"]) == "1.9, 2.1"
    assert format_thickness_label("max") == "max"
    assert format_thickness_label([]) == "N/A"
    assert format_thickness_label(None) == "N/A"


def test_item_from_record_normalizes_measurements(sample_records) -> None:
    item = item_from_record(sample_records[0])
    assert item is not None
    assert item.full_name == "Butterfly Tenergy 05"
    assert item.abbr == "T05"
    assert item.sheet == "Classic"
    assert item.weight == 48.0
    assert item.hardness == 36.0
    assert item.normalized_hardness == 47.5
    assert item.release_year == 2008
    assert item.thickness_label == "1.9, 2.1"
    assert item.has_position is False


def test_item_from_record_rejects_disabled_and_nameless() -> None:
    assert item_from_record({"name": "X", "manufacturer": "Y", "disabled": False}) is None
    assert item_from_record({"manufacturer": "Y"}) is None


def test_missing_measurement_keeps_the_item_on_the_chart(sample_records, sample_tables) -> None:
    record = dict(sample_records[3], manufacturer_details={"sheet": "classic"})
    [item] = build_catalog([record], sample_tables)
    assert item.hardness is None
    assert item.normalized_hardness is None
    assert item.weight is None
    assert item.has_position


def test_malformed_details_degrade_to_missing_measurements() -> None:
    item = item_from_record({"name": "X", "manufacturer": "Y", "manufacturer_details": ["bad"]})
    assert item is not None
    assert item.hardness is None
    assert item.weight is None
    assert item.country == ""


def test_build_catalog_accepts_nested_brand_files(sample_records, sample_tables, caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="rubber_chart.catalog"):
        items = build_catalog([sample_records[:2], sample_records[2:], "garbage"], sample_tables)
    assert [item.abbr for item in items] == ["T05", "H3", "D09C", "R47"]
    assert "skipped 2 disabled or malformed" in caplog.text


def test_sample_catalog_is_fully_projected(sample_catalog) -> None:
    assert len(sample_catalog) == 4
    assert all(item.has_position for item in sample_catalog)
    assert len({item.full_name for item in sample_catalog}) == 4
