"""City label weighting and city dot sizing."""

import math

from .models import Marker

CITY_LABEL_MIN_FONT_SIZE = 18
CITY_LABEL_MAX_FONT_SIZE = 68

CITY_WEIGHT_CAPITAL = 4
CITY_WEIGHT_CAPITAL_HISTORY = 2
CITY_WEIGHT_REGULAR = 1

CITY_DOT_RADIUS = 4
CITY_DOT_HIGHLIGHT_RADIUS = 6

CITY_SUBTYPES = frozenset({"c", "cp"})


def is_city_marker(marker: Marker) -> bool:
    return marker.subtype in CITY_SUBTYPES


def is_non_capital_city(marker: Marker) -> bool:
    return marker.subtype == "c"


def city_label_weight(marker: Marker, selected_year: int) -> int:
    """
    Label weight for a city marker.

    Capitals weigh 4, cities that were a capital in ``selected_year``
    weigh 2, every other city weighs 1.
    """
    if marker.subtype == "cp":
        return CITY_WEIGHT_CAPITAL
    if marker.capital_interval_at(selected_year) is not None:
        return CITY_WEIGHT_CAPITAL_HISTORY
    return CITY_WEIGHT_REGULAR


def city_label_font_size(weight: float) -> int:
    """Interpolate a weight in [1, 4] linearly onto [18, 68] pixels."""
    normalized = (weight - CITY_WEIGHT_REGULAR) / (
        CITY_WEIGHT_CAPITAL - CITY_WEIGHT_REGULAR
    )
    size = CITY_LABEL_MIN_FONT_SIZE + normalized * (
        CITY_LABEL_MAX_FONT_SIZE - CITY_LABEL_MIN_FONT_SIZE
    )
    # Half rounds up, matching the label renderer
    return math.floor(size + 0.5)


def city_dot_radius(marker: Marker) -> int:
    return CITY_DOT_HIGHLIGHT_RADIUS if marker.is_active else CITY_DOT_RADIUS
