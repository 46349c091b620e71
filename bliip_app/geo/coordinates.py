"""
Presentation-only grid views of WGS84 coordinates.

UTM and MGRS values are derived on demand from latitude/longitude and are
never stored as a source of truth. Projection follows the USGS
transverse Mercator series (Snyder, Map Projections - A Working Manual,
1987) on the WGS84 ellipsoid; MGRS uses the current "AA" lettering.
"""

import math
from dataclasses import dataclass

from ..errors import UnsupportedCoordinateError

# WGS84 ellipsoid
WGS84_A = 6378137.0
WGS84_F = 1 / 298.257223563
UTM_K0 = 0.9996
FALSE_EASTING = 500000.0
FALSE_NORTHING_SOUTH = 10000000.0

MIN_UTM_LATITUDE = -80.0
MAX_UTM_LATITUDE = 84.0

_LATITUDE_BANDS = "CDEFGHJKLMNPQRSTUVWXX"
_COLUMN_SETS = ("ABCDEFGH", "JKLMNPQR", "STUVWXYZ")
_ROW_LETTERS = "ABCDEFGHJKLMNPQRSTUV"


@dataclass(frozen=True)
class UTMCoordinates:
    zone: str           # e.g. "18N"
    easting: float      # Meters
    northing: float     # Meters


@dataclass(frozen=True)
class MGRSCoordinates:
    grid: str           # e.g. "18TWL8395907350"


@dataclass(frozen=True)
class CoordinateConversion:
    latitude: float
    longitude: float
    utm: UTMCoordinates
    mgrs: MGRSCoordinates


def utm_zone_number(lat: float, lon: float) -> int:
    """UTM zone including the Norway and Svalbard exceptions."""
    if lon >= 180.0:
        lon -= 360.0
    zone = int((lon + 180.0) // 6) + 1

    if 56.0 <= lat < 64.0 and 3.0 <= lon < 12.0:
        return 32

    if 72.0 <= lat < 84.0:
        if 0.0 <= lon < 9.0:
            return 31
        if 9.0 <= lon < 21.0:
            return 33
        if 21.0 <= lon < 33.0:
            return 35
        if 33.0 <= lon < 42.0:
            return 37

    return min(zone, 60)


def latitude_band(lat: float) -> str:
    index = int((lat - MIN_UTM_LATITUDE) // 8)
    return _LATITUDE_BANDS[max(0, min(index, len(_LATITUDE_BANDS) - 1))]


def _check_range(lat: float, lon: float, system: str) -> None:
    if not MIN_UTM_LATITUDE <= lat <= MAX_UTM_LATITUDE or not -180.0 <= lon <= 180.0:
        raise UnsupportedCoordinateError(
            f"{system} is defined for latitudes {MIN_UTM_LATITUDE} to {MAX_UTM_LATITUDE}",
            latitude=lat,
            longitude=lon,
            system=system,
        )


def _project(lat: float, lon: float, zone: int) -> tuple[float, float]:
    e2 = WGS84_F * (2 - WGS84_F)
    e4 = e2 * e2
    e6 = e4 * e2
    ep2 = e2 / (1 - e2)

    central_meridian = math.radians((zone - 1) * 6 - 180 + 3)
    phi = math.radians(lat)
    sin_phi, cos_phi, tan_phi = math.sin(phi), math.cos(phi), math.tan(phi)

    n = WGS84_A / math.sqrt(1 - e2 * sin_phi ** 2)
    t = tan_phi ** 2
    c = ep2 * cos_phi ** 2
    a = cos_phi * (math.radians(lon) - central_meridian)

    m = WGS84_A * (
        (1 - e2 / 4 - 3 * e4 / 64 - 5 * e6 / 256) * phi
        - (3 * e2 / 8 + 3 * e4 / 32 + 45 * e6 / 1024) * math.sin(2 * phi)
        + (15 * e4 / 256 + 45 * e6 / 1024) * math.sin(4 * phi)
        - (35 * e6 / 3072) * math.sin(6 * phi)
    )

    easting = UTM_K0 * n * (
        a
        + (1 - t + c) * a ** 3 / 6
        + (5 - 18 * t + t ** 2 + 72 * c - 58 * ep2) * a ** 5 / 120
    ) + FALSE_EASTING

    northing = UTM_K0 * (
        m + n * tan_phi * (
            a ** 2 / 2
            + (5 - t + 9 * c + 4 * c ** 2) * a ** 4 / 24
            + (61 - 58 * t + t ** 2 + 600 * c - 330 * ep2) * a ** 6 / 720
        )
    )
    if lat < 0:
        northing += FALSE_NORTHING_SOUTH

    return easting, northing


def to_utm(lat: float, lon: float) -> UTMCoordinates:
    """
    Project a WGS84 position to UTM.

    Raises:
        UnsupportedCoordinateError: Outside the UTM latitude limits
    """
    _check_range(lat, lon, "UTM")
    zone = utm_zone_number(lat, lon)
    easting, northing = _project(lat, lon, zone)
    return UTMCoordinates(
        zone=f"{zone}{'N' if lat >= 0 else 'S'}",
        easting=easting,
        northing=northing,
    )


def to_mgrs(lat: float, lon: float) -> MGRSCoordinates:
    """
    Convert a WGS84 position to a 1 m MGRS grid reference.

    Raises:
        UnsupportedCoordinateError: Outside the UTM latitude limits
    """
    _check_range(lat, lon, "MGRS")
    zone = utm_zone_number(lat, lon)
    easting, northing = _project(lat, lon, zone)

    column_letters = _COLUMN_SETS[(zone - 1) % 3]
    column = column_letters[int(easting // 100000) - 1]
    row_offset = 5 if zone % 2 == 0 else 0
    row = _ROW_LETTERS[(int(northing // 100000) + row_offset) % len(_ROW_LETTERS)]

    east_digits = int(easting % 100000)
    north_digits = int(northing % 100000)
    return MGRSCoordinates(
        grid=f"{zone}{latitude_band(lat)}{column}{row}{east_digits:05d}{north_digits:05d}"
    )


def convert_coordinates(lat: float, lon: float) -> CoordinateConversion:
    """WGS84 position together with its UTM and MGRS views."""
    return CoordinateConversion(
        latitude=lat,
        longitude=lon,
        utm=to_utm(lat, lon),
        mgrs=to_mgrs(lat, lon),
    )
