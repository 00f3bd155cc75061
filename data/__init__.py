"""Station line data for the seat-rush game engine."""

from .loader import (
    LineLoader,
    LineLoadError,
    StationLine,
    load_lines,
    parse_line,
    get_station_line,
    get_stations,
    get_destination_options,
    is_major_boarding_station,
)

__all__ = [
    "LineLoader",
    "LineLoadError",
    "StationLine",
    "load_lines",
    "parse_line",
    "get_station_line",
    "get_stations",
    "get_destination_options",
    "is_major_boarding_station",
]
