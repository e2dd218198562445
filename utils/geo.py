from decimal import Decimal, ROUND_HALF_UP

CACHE_KEY_PLACES = Decimal("0.01")


def round_coordinate(value: float) -> float:
    """
    Cache key granularity: two decimal places (about 1.1 km of latitude).

    Rounds the exact binary value half away from zero, so 0.125 -> 0.13 and
    -0.125 -> -0.13, while 1.005 (stored as 1.00499...) -> 1.0.
    """
    return float(Decimal(float(value)).quantize(CACHE_KEY_PLACES, rounding=ROUND_HALF_UP))


def round_coordinates(lat: float, lon: float) -> tuple[float, float]:
    return round_coordinate(lat), round_coordinate(lon)


def validate_coordinates(lat: float, lon: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0
