"""
Province fill color and opacity for the active color dimension.

Province data records are positional:
    [ruler_id, culture_id, religion_id, capital_id, population]

Missing data never raises. Absent area data, unknown provinces and unknown
entities all fall back to a neutral gray fill; population opacity falls
back to its minimum.
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import structlog

from .colors import RGBA, parse_color
from .models import AreaData, Dimension, Metadata

logger = structlog.get_logger()

PROVINCE_DATA_INDEX: Mapping[str, int] = MappingProxyType(
    {
        "ruler": 0,
        "culture": 1,
        "religion": 2,
        "capital": 3,
        "population": 4,
    }
)

# religionGeneral reads the religion slot and resolves its parent
DIMENSION_INDEX: Mapping[Dimension, int] = MappingProxyType(
    {
        Dimension.RULER: 0,
        Dimension.CULTURE: 1,
        Dimension.RELIGION: 2,
        Dimension.RELIGION_GENERAL: 2,
        Dimension.POPULATION: 4,
    }
)

_DATA_TYPE_NAMES = ("ruler", "culture", "religion", "capital", "population")

DEFAULT_AREA_FILL_COLOR: RGBA = (128, 128, 128, 180)
POPULATION_FILL_COLOR: RGBA = (100, 149, 237, 255)  # Cornflower blue

POPULATION_OPACITY_MIN = 0.3
POPULATION_OPACITY_MAX = 0.8
MAX_POPULATION_FOR_OPACITY = 10_000_000


@dataclass(frozen=True)
class ProvinceFill:
    """Fill attributes for one province polygon."""

    province_id: str
    color: RGBA
    opacity: float


def safe_area_data_access(
    area_data: Optional[AreaData],
    province_id: Any,
    index: int,
    log_warnings: bool = True,
) -> Union[str, float, int, None]:
    """
    Read one positional value from a province record.

    Args:
        area_data: Province records keyed by province ID (may be None)
        province_id: Province to look up
        index: Positional index (0=ruler, 1=culture, 2=religion, 3=capital, 4=population)
        log_warnings: Whether to log why a value is unavailable

    Returns:
        The stored value, or None when it is missing or malformed
    """
    data_type = (
        _DATA_TYPE_NAMES[index]
        if isinstance(index, int) and 0 <= index < len(_DATA_TYPE_NAMES)
        else f"index_{index}"
    )

    def _warn(event: str, **kw: Any) -> None:
        if log_warnings:
            logger.warning(event, data_type=data_type, **kw)

    if not area_data:
        _warn("No area data available")
        return None

    if not province_id or not isinstance(province_id, str):
        _warn("Invalid province id", province_id=province_id)
        return None

    record = area_data.get(province_id)
    if not record:
        _warn("Province not found in area data", province_id=province_id)
        return None

    if isinstance(record, (str, bytes)) or not isinstance(record, (list, tuple)):
        _warn("Province record is not a sequence", province_id=province_id)
        return None

    if not isinstance(index, int) or isinstance(index, bool) or index < 0:
        _warn("Invalid data index", province_id=province_id, index=index)
        return None

    if len(record) <= index:
        _warn(
            "Incomplete province record",
            province_id=province_id,
            length=len(record),
        )
        return None

    return record[index]


def _string_value(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def province_ruler(area_data: Optional[AreaData], province_id: str, log_warnings: bool = True) -> Optional[str]:
    return _string_value(safe_area_data_access(area_data, province_id, 0, log_warnings))


def province_culture(area_data: Optional[AreaData], province_id: str, log_warnings: bool = True) -> Optional[str]:
    return _string_value(safe_area_data_access(area_data, province_id, 1, log_warnings))


def province_religion(area_data: Optional[AreaData], province_id: str, log_warnings: bool = True) -> Optional[str]:
    return _string_value(safe_area_data_access(area_data, province_id, 2, log_warnings))


def province_capital(area_data: Optional[AreaData], province_id: str, log_warnings: bool = True) -> Optional[str]:
    return _string_value(safe_area_data_access(area_data, province_id, 3, log_warnings))


def province_population(
    area_data: Optional[AreaData], province_id: str, log_warnings: bool = True
) -> Optional[float]:
    value = safe_area_data_access(area_data, province_id, 4, log_warnings)
    if isinstance(value, Real) and not isinstance(value, bool):
        return float(value)
    return None


def is_valid_province_data(record: Any) -> bool:
    """Check for ``[str, str, str, str | None, number]``."""
    if not isinstance(record, (list, tuple)) or len(record) < 5:
        return False
    if not all(isinstance(record[i], str) for i in range(3)):
        return False
    if record[3] is not None and not isinstance(record[3], str):
        return False
    return isinstance(record[4], Real) and not isinstance(record[4], bool)


def resolve_religion_general(religion_id: Optional[str], metadata: Metadata) -> Optional[str]:
    """Map a religion to its parent religion group, or itself if it has none."""
    if not religion_id:
        return None
    entry = metadata.religion.get(religion_id)
    if entry is not None and entry.parent:
        return entry.parent
    return religion_id


def province_color(
    province_id: str,
    area_data: Optional[AreaData],
    dimension: Union[Dimension, str],
    metadata: Metadata,
) -> RGBA:
    """
    Fill color of a province for ``dimension``.

    Population always uses a fixed color; opacity carries the value.
    """
    dimension = Dimension(dimension)
    if not area_data or not province_id:
        return DEFAULT_AREA_FILL_COLOR

    record = area_data.get(province_id)
    if not record or not isinstance(record, (list, tuple)):
        return DEFAULT_AREA_FILL_COLOR

    if dimension is Dimension.POPULATION:
        return POPULATION_FILL_COLOR

    index = DIMENSION_INDEX[dimension]
    entity_id = _string_value(record[index]) if len(record) > index else None
    if dimension is Dimension.RELIGION_GENERAL:
        entity_id = resolve_religion_general(entity_id, metadata)
    if entity_id is None:
        return DEFAULT_AREA_FILL_COLOR

    entry = metadata.table(dimension).get(entity_id)
    if entry is None or not isinstance(entry.color, str):
        return DEFAULT_AREA_FILL_COLOR

    return parse_color(entry.color)


def province_opacity(
    province_id: str,
    area_data: Optional[AreaData],
    dimension: Union[Dimension, str],
    max_population: float = MAX_POPULATION_FOR_OPACITY,
    opacity_range: Tuple[float, float] = (POPULATION_OPACITY_MIN, POPULATION_OPACITY_MAX),
) -> float:
    """
    Fill opacity of a province.

    Non-population dimensions are fully opaque. Population maps
    [0, max_population] linearly onto ``opacity_range`` ([0.3, 0.8] by
    default), clamped at the top. Missing or non-positive values get the
    minimum.
    """
    min_opacity, max_opacity = opacity_range
    if Dimension(dimension) is not Dimension.POPULATION:
        return 1.0

    population = province_population(area_data, province_id, log_warnings=False)
    if population is None or not population > 0:
        return min_opacity

    return float(
        np.interp(
            population,
            [0.0, max_population],
            [min_opacity, max_opacity],
        )
    )


def province_fills(
    province_ids: Iterable[str],
    area_data: Optional[AreaData],
    dimension: Union[Dimension, str],
    metadata: Metadata,
    max_population: float = MAX_POPULATION_FOR_OPACITY,
    opacity_range: Tuple[float, float] = (POPULATION_OPACITY_MIN, POPULATION_OPACITY_MAX),
) -> List[ProvinceFill]:
    """Compute fill color and opacity for every province polygon."""
    dimension = Dimension(dimension)
    fills = [
        ProvinceFill(
            province_id=province_id,
            color=province_color(province_id, area_data, dimension, metadata),
            opacity=province_opacity(
                province_id, area_data, dimension, max_population, opacity_range
            ),
        )
        for province_id in province_ids
    ]

    if not area_data:
        logger.warning("No area data, provinces use fallback fill", provinces=len(fills))
    logger.debug("Province fills computed", dimension=dimension.value, provinces=len(fills))
    return fills
