"""Tests for data/loader.py - station line loading and validation."""

import json

import pytest

from core.constants import Line
from data.loader import (
    LineLoader,
    LineLoadError,
    load_lines,
    parse_line,
    get_station_line,
    get_stations,
    get_destination_options,
    is_major_boarding_station,
)


def _line_data(**overrides):
    data = {
        "lines": {
            "short": {"display_name": "S", "stations": ["A", "B", "C"]},
            "full": {"display_name": "F", "stations": ["A", "B", "C", "D"]},
        },
        "major_boarding_stations": ["C"],
    }
    data.update(overrides)
    return data


class TestBundledLines:
    """Tests for the lines shipped with the package."""

    def test_both_lines_load(self):
        lines = load_lines()
        assert set(lines) == set(Line)

    def test_short_line(self):
        stations = get_stations(Line.SHORT)
        assert len(stations) == 6
        assert stations[0] == "Churchgate"
        assert stations[-1] == "Dadar"

    def test_full_line(self):
        line = get_station_line("full")
        assert len(line.stations) == 15
        assert line.last_station_index == 14
        assert line.stations[-1] == "Borivali"

    def test_default_line_is_short(self):
        assert get_station_line(None).line == Line.SHORT

    def test_major_boarding_stations(self):
        assert is_major_boarding_station(5, Line.SHORT)  # Dadar
        assert is_major_boarding_station(8, Line.FULL)  # Bandra
        assert not is_major_boarding_station(0, Line.FULL)
        assert not is_major_boarding_station(99, Line.FULL)

    def test_station_name_placeholder(self):
        assert get_station_line().station_name(42) == "Station 42"


class TestParseLine:
    """Tests for parse_line."""

    def test_known_tags(self):
        assert parse_line("short") == Line.SHORT
        assert parse_line("FULL") == Line.FULL
        assert parse_line(Line.FULL) == Line.FULL

    def test_unknown_tag_raises(self):
        with pytest.raises(KeyError):
            parse_line("express")

    def test_unknown_line_lookup_raises(self):
        with pytest.raises(KeyError):
            get_station_line("express")


class TestDestinationOptions:
    """Tests for get_destination_options."""

    def test_options_follow_boarding_station(self):
        options = get_destination_options(2, Line.SHORT)
        assert [i for i, _ in options] == [3, 4, 5]
        assert options[-1] == (5, "Dadar")

    def test_no_options_from_last_station(self):
        assert get_destination_options(5, Line.SHORT) == []


class TestLineLoader:
    """Tests for LineLoader validation."""

    def test_load_from_dict(self):
        lines = LineLoader().load_from_dict(_line_data())
        assert lines[Line.FULL].stations == ("A", "B", "C", "D")
        assert lines[Line.SHORT].is_major_boarding_station(2)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "lines.json"
        path.write_text(json.dumps(_line_data()), encoding="utf-8")
        lines = load_lines(path)
        assert lines[Line.SHORT].display_name == "S"

    def test_missing_file(self, tmp_path):
        with pytest.raises(LineLoadError, match="not found"):
            LineLoader().load_from_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(LineLoadError, match="Invalid JSON"):
            LineLoader().load_from_file(path)

    def test_missing_lines_key(self):
        with pytest.raises(LineLoadError, match="'lines'"):
            LineLoader().load_from_dict({"stations": []})

    def test_unknown_line_tag(self):
        data = _line_data()
        data["lines"]["express"] = {"stations": ["A", "B"]}
        with pytest.raises(LineLoadError, match="Unknown line"):
            LineLoader().load_from_dict(data)

    def test_missing_line(self):
        data = _line_data()
        del data["lines"]["full"]
        with pytest.raises(LineLoadError, match="missing lines"):
            LineLoader().load_from_dict(data)

    def test_too_few_stations(self):
        data = _line_data()
        data["lines"]["short"]["stations"] = ["A"]
        with pytest.raises(LineLoadError, match="at least"):
            LineLoader().load_from_dict(data)

    def test_duplicate_stations(self):
        data = _line_data()
        data["lines"]["short"]["stations"] = ["A", "B", "A"]
        with pytest.raises(LineLoadError, match="duplicate"):
            LineLoader().load_from_dict(data)
