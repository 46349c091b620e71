"""
Public output precision and JSON encoding.

Values keep full precision everywhere else in the package; this module is
the single place where they are rounded for presentation.
"""

from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional

import orjson

from ..utils.time import format_instant

# Decimal places per output quantity; 0 means whole numbers
OUTPUT_PRECISION: Mapping[str, int] = MappingProxyType({
    "latitude": 6,
    "longitude": 6,
    "altitude": 0,
    "radius_km": 1,
    "probability": 3,
    "confidence_level": 3,
    "hours": 2,
    "meters": 0,
    "seconds": 0,
    "distance_km": 2,
    "wind_speed": 1,
    "wind_direction": 0,
    "temperature": 1,
    "pressure": 2,
    "factor": 3,
    "speed": 1,
    "easting": 0,
    "northing": 0,
})


def round_to(value: Optional[float], quantity: str) -> Optional[float]:
    """
    Round a value to the public precision of ``quantity``.

    Whole-number quantities are returned as ``int``. ``None`` passes through
    so optional trajectory samples stay optional.
    """
    if value is None:
        return None
    places = OUTPUT_PRECISION[quantity]
    if places == 0:
        return int(round(value))
    return round(float(value), places)


def format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    return format_instant(ts) if ts is not None else None


def to_json(response: dict[str, Any], pretty: bool = False) -> bytes:
    """Encode an assembled response with orjson."""
    option = orjson.OPT_NON_STR_KEYS
    if pretty:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(response, option=option)


def from_json(raw: bytes) -> dict[str, Any]:
    return orjson.loads(raw)
