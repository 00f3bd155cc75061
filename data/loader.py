"""Station line loader for the seat-rush game engine.

Loads and validates the station lists from JSON files, converting them
into StationLine instances keyed by Line.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from core.constants import Line, DEFAULT_LINE

logger = logging.getLogger(__name__)


def resource_path(relative_path: str) -> Path:
    """
    Get absolute path to a resource, works for dev and PyInstaller exe.
    """
    if hasattr(sys, "_MEIPASS"):
        return Path(sys._MEIPASS) / "data" / relative_path

    return Path(__file__).parent / relative_path


class LineLoadError(Exception):
    """Raised when line loading or validation fails."""
    pass


@dataclass(frozen=True)
class StationLine:
    """An ordered list of stations a ride can cover.

    Attributes:
        line: Which line this is.
        display_name: Human-readable name.
        stations: Station names in travel order.
        major_boarding_stations: Names of stations where crowds board.
    """

    line: Line
    display_name: str
    stations: tuple[str, ...]
    major_boarding_stations: frozenset[str]

    @property
    def last_station_index(self) -> int:
        return len(self.stations) - 1

    def station_name(self, index: int) -> str:
        """Name of the station at an index, or a placeholder when out of range."""
        if 0 <= index < len(self.stations):
            return self.stations[index]
        return f"Station {index}"

    def is_major_boarding_station(self, index: int) -> bool:
        """Check if many passengers board at the station at this index."""
        return 0 <= index < len(self.stations) and (
            self.stations[index] in self.major_boarding_stations
        )


class LineLoader:
    """Loads and validates station lines from JSON files."""

    MIN_STATIONS = 2

    def load_from_file(self, file_path: Union[str, Path]) -> dict[Line, StationLine]:
        """Load all lines from a JSON file.

        Args:
            file_path: Path to the JSON line file.

        Returns:
            Mapping of Line to StationLine.

        Raises:
            LineLoadError: If the file cannot be read, parsed or validated.
        """
        path = Path(file_path)

        if not path.exists():
            raise LineLoadError(f"Line file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise LineLoadError(f"Invalid JSON in line file: {e}")
        except IOError as e:
            raise LineLoadError(f"Error reading line file: {e}")

        lines = self.load_from_dict(data)
        logger.debug("Loaded %d lines from %s", len(lines), path)
        return lines

    def load_from_dict(self, data: dict[str, Any]) -> dict[Line, StationLine]:
        """Load all lines from a dictionary.

        Args:
            data: Dictionary with 'lines' and 'major_boarding_stations' keys.

        Returns:
            Mapping of Line to StationLine.

        Raises:
            LineLoadError: If validation fails.
        """
        self._validate_structure(data)

        major = data.get("major_boarding_stations", [])
        if not isinstance(major, list) or not all(isinstance(s, str) for s in major):
            raise LineLoadError("'major_boarding_stations' must be a list of names")
        major_set = frozenset(major)

        lines: dict[Line, StationLine] = {}
        for tag, line_data in data["lines"].items():
            try:
                line = Line(tag)
            except ValueError:
                raise LineLoadError(
                    f"Unknown line '{tag}'. Valid lines: {[l.value for l in Line]}"
                )
            lines[line] = self._create_line(line, line_data, major_set)

        missing = [l.value for l in Line if l not in lines]
        if missing:
            raise LineLoadError(f"Line data missing lines: {missing}")

        return lines

    def _validate_structure(self, data: dict[str, Any]) -> None:
        """Validate the basic structure of the line data."""
        if not isinstance(data, dict):
            raise LineLoadError("Line data must be a dictionary")

        if "lines" not in data:
            raise LineLoadError("Line data missing 'lines' key")

        if not isinstance(data["lines"], dict):
            raise LineLoadError("'lines' must be a mapping of line tag to line")

    def _create_line(
        self, line: Line, line_data: dict[str, Any], major: frozenset[str]
    ) -> StationLine:
        """Create a StationLine from line data dictionary."""
        if not isinstance(line_data, dict) or "stations" not in line_data:
            raise LineLoadError(f"Line '{line.value}' missing 'stations'")

        stations = line_data["stations"]
        if not isinstance(stations, list) or not all(isinstance(s, str) for s in stations):
            raise LineLoadError(f"Stations of line '{line.value}' must be a list of names")

        if len(stations) < self.MIN_STATIONS:
            raise LineLoadError(
                f"Line '{line.value}' needs at least {self.MIN_STATIONS} stations, "
                f"found {len(stations)}"
            )

        if len(set(stations)) != len(stations):
            raise LineLoadError(f"Line '{line.value}' has duplicate stations")

        return StationLine(
            line=line,
            display_name=line_data.get("display_name", line.value),
            stations=tuple(stations),
            major_boarding_stations=major,
        )


_default_lines: Optional[dict[Line, StationLine]] = None


def load_lines(file_path: Union[str, Path, None] = None) -> dict[Line, StationLine]:
    """Load station lines.

    Args:
        file_path: Path to a JSON line file. The bundled lines are loaded
            (once, then cached) when omitted.

    Returns:
        Mapping of Line to StationLine.

    Raises:
        LineLoadError: If the file is missing or invalid.
    """
    global _default_lines

    if file_path is not None:
        return LineLoader().load_from_file(file_path)

    if _default_lines is None:
        _default_lines = LineLoader().load_from_file(resource_path("lines.json"))
    return _default_lines


def parse_line(line: Union[Line, str, None]) -> Line:
    """Convert a line tag to a Line.

    Raises:
        KeyError: If the tag does not name a known line.
    """
    if isinstance(line, Line):
        return line
    if line is None:
        return DEFAULT_LINE
    try:
        return Line(str(line).strip().lower())
    except ValueError:
        raise KeyError(f"Unknown line: {line!r}")


def get_station_line(line: Union[Line, str, None] = None) -> StationLine:
    """Get the bundled StationLine for a line tag."""
    return load_lines()[parse_line(line)]


def get_stations(line: Union[Line, str, None] = None) -> tuple[str, ...]:
    """Get the station names of a line, in travel order."""
    return get_station_line(line).stations


def get_destination_options(
    boarding_index: int, line: Union[Line, str, None] = None
) -> list[tuple[int, str]]:
    """Get the stations a passenger boarding at an index can travel to.

    Returns:
        (index, name) pairs for every station after the boarding station.
    """
    stations = get_stations(line)
    return [(i, stations[i]) for i in range(max(0, boarding_index + 1), len(stations))]


def is_major_boarding_station(index: int, line: Union[Line, str, None] = None) -> bool:
    """Check if the station at an index is a major boarding station."""
    return get_station_line(line).is_major_boarding_station(index)
