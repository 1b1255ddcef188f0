import re
from typing import Any, Final, Literal, Optional, Tuple

# Plausible bounds for the UAE service region.
MIN_LATITUDE: Final[float] = 24.0
MAX_LATITUDE: Final[float] = 26.0
MIN_LONGITUDE: Final[float] = 54.0
MAX_LONGITUDE: Final[float] = 57.0

_COORDINATE_PAIR: Final = re.compile(r"^(-?\d+\.?\d*),\s*(-?\d+\.?\d*)$")

Axis = Literal["lat", "lng"]


def is_within_service_region(latitude: float, longitude: float) -> bool:
    return (
        MIN_LATITUDE <= latitude <= MAX_LATITUDE
        and MIN_LONGITUDE <= longitude <= MAX_LONGITUDE
    )


def parse_coordinates(address: Any) -> Optional[Tuple[float, float]]:
    """Parse a bare ``"lat,lng"`` address into a pair inside the service region."""
    if not address or not isinstance(address, str):
        return None

    match = _COORDINATE_PAIR.match(address.strip())
    if not match:
        return None

    try:
        latitude = float(match.group(1))
        longitude = float(match.group(2))
    except ValueError:
        return None

    if not is_within_service_region(latitude, longitude):
        return None
    return latitude, longitude


def parse_coordinate_from_address(address: Any, axis: Axis) -> Optional[float]:
    coordinates = parse_coordinates(address)
    if coordinates is None:
        return None
    return coordinates[0] if axis == "lat" else coordinates[1]
