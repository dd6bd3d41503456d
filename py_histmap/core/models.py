"""
Data model for the historical map engine.

Markers, capital-history intervals, metadata and viewport state are
supplied by an external loader for the selected year. They are validated
once at the boundary and treated as immutable afterwards; transient screen
positions live in ``ProjectedMarker`` records instead of on the markers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = structlog.get_logger()

# Highest zoom level the map allows
MAX_ZOOM = 22


class Dimension(str, Enum):
    """Thematic dimension used to color provinces."""

    RULER = "ruler"
    CULTURE = "culture"
    RELIGION = "religion"
    RELIGION_GENERAL = "religionGeneral"
    POPULATION = "population"


def is_valid_dimension(value: Any) -> bool:
    """Check whether an untrusted value names a known dimension."""
    if isinstance(value, Dimension):
        return True
    return value in {d.value for d in Dimension}


# Province data record: [ruler, culture, religion, capital, population]
ProvinceData = Sequence[Union[str, float, int, None]]
AreaData = Mapping[str, ProvinceData]


class CapitalInterval(BaseModel):
    """A period during which a ruler held a capital."""

    model_config = ConfigDict(frozen=True)

    start_year: int = Field(description="First year of the interval")
    end_year: int = Field(description="Last year of the interval (inclusive)")
    ruler_id: str = Field(description="Ruler entity ID")

    def contains(self, year: int) -> bool:
        return self.start_year <= year <= self.end_year

    @classmethod
    def from_record(cls, record: Sequence[Any]) -> "CapitalInterval":
        """Build from the loader's ``[startYear, endYear, rulerId]`` triple."""
        start, end, ruler = record[0], record[1], record[2]
        return cls(start_year=start, end_year=end, ruler_id=str(ruler))


class Marker(BaseModel):
    """A point marker (battle, city, capital, person, event...)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique marker identifier")
    name: str = Field(default="", description="Display name")
    subtype: str = Field(description="Marker type code (b, si, c, cp, ...)")
    coordinates: Optional[Tuple[Any, ...]] = Field(
        default=None, description="Raw [longitude, latitude] pair"
    )
    wiki: Optional[str] = Field(default=None, description="Wikipedia reference")
    year: Optional[int] = Field(default=None, description="Year of the marker")
    capital: Tuple[CapitalInterval, ...] = Field(
        default=(), description="Capital history intervals"
    )
    is_active: bool = Field(default=False, description="Currently selected")

    @field_validator("capital", mode="before")
    @classmethod
    def _coerce_capital(cls, value: Any) -> Any:
        if value is None:
            return ()
        return tuple(
            CapitalInterval.from_record(entry)
            if isinstance(entry, (list, tuple))
            else entry
            for entry in value
        )

    @field_validator("coordinates", mode="before")
    @classmethod
    def _coerce_coordinates(cls, value: Any) -> Any:
        # Malformed coordinates are kept as-is and rejected before projection
        if value is None or isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return (value,)

    @property
    def longitude(self) -> Any:
        return self.coordinates[0] if self.coordinates else None

    @property
    def latitude(self) -> Any:
        return self.coordinates[1] if self.coordinates and len(self.coordinates) > 1 else None

    def capital_interval_at(self, year: int) -> Optional[CapitalInterval]:
        """Return the capital interval covering ``year``, if any."""
        for interval in self.capital:
            if interval.contains(year):
                return interval
        return None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Marker":
        """Build a marker from the loader's raw record shape."""
        return cls(
            id=str(record.get("_id", record.get("id", ""))),
            name=record.get("name") or "",
            subtype=record.get("subtype", "o"),
            coordinates=record.get("coo", record.get("coordinates")),
            wiki=record.get("wiki"),
            year=record.get("year"),
            capital=record.get("capital"),
            is_active=bool(record.get("isActive", record.get("is_active", False))),
        )


class MetadataEntry(BaseModel):
    """Display name and color for one entity of a dimension."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", description="Display name")
    color: Optional[str] = Field(default=None, description="rgb()/rgba() color string")
    parent: Optional[str] = Field(
        default=None, description="Parent religion ID (religion entries only)"
    )

    @classmethod
    def from_record(cls, record: Any) -> "MetadataEntry":
        """Accept either ``{name, color, parent}`` or ``[name, color, parent?]``.

        Non-string fields are dropped rather than rejected.

        Raises:
            TypeError: If ``record`` is neither a mapping nor a sequence
        """
        if isinstance(record, MetadataEntry):
            return record
        if isinstance(record, Mapping):
            name, color, parent = record.get("name"), record.get("color"), record.get("parent")
        elif isinstance(record, (list, tuple)):
            values = list(record) + [None] * 3
            name, color, parent = values[0], values[1], values[2]
        else:
            raise TypeError(f"Unsupported metadata entry: {type(record).__name__}")

        return cls(
            name=name if isinstance(name, str) else "",
            color=color if isinstance(color, str) else None,
            parent=parent if isinstance(parent, str) else None,
        )


class Metadata(BaseModel):
    """Per-dimension entity metadata tables."""

    model_config = ConfigDict(populate_by_name=True)

    ruler: Dict[str, MetadataEntry] = Field(default_factory=dict)
    culture: Dict[str, MetadataEntry] = Field(default_factory=dict)
    religion: Dict[str, MetadataEntry] = Field(default_factory=dict)
    religion_general: Dict[str, MetadataEntry] = Field(
        default_factory=dict, alias="religionGeneral"
    )

    def table(self, dimension: Dimension) -> Mapping[str, MetadataEntry]:
        """Return the metadata table backing a color dimension."""
        dimension = Dimension(dimension)
        if dimension is Dimension.POPULATION:
            return {}
        if dimension is Dimension.RELIGION_GENERAL:
            return self.religion_general
        return getattr(self, dimension.value)

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "Metadata":
        """Build metadata tables, skipping entries that cannot be read."""
        record = record or {}
        skipped = 0

        def _table(key: str) -> Dict[str, MetadataEntry]:
            nonlocal skipped
            raw = record.get(key) or {}
            if not isinstance(raw, Mapping):
                logger.warning("Metadata table is not a mapping", table=key)
                return {}

            table: Dict[str, MetadataEntry] = {}
            for entity_id, entry in raw.items():
                try:
                    table[str(entity_id)] = MetadataEntry.from_record(entry)
                except TypeError:
                    skipped += 1
            return table

        metadata = cls(
            ruler=_table("ruler"),
            culture=_table("culture"),
            religion=_table("religion"),
            religion_general=_table("religionGeneral"),
        )
        if skipped:
            logger.warning("Skipped malformed metadata entries", skipped=skipped)
        return metadata


class ViewportState(BaseModel):
    """Current map viewport, owned by an external store."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(default=37.0, description="Center latitude")
    longitude: float = Field(default=37.0, description="Center longitude")
    zoom: float = Field(
        default=2.5, ge=0, le=MAX_ZOOM, allow_inf_nan=False, description="Zoom level"
    )
    min_zoom: float = Field(
        default=0.0, ge=0, le=MAX_ZOOM, allow_inf_nan=False, description="Minimum zoom level"
    )
    bearing: float = Field(default=0.0, description="Rotation in degrees")
    pitch: float = Field(default=0.0, description="Tilt in degrees")
    width: float = Field(default=1024.0, description="Viewport width in pixels")
    height: float = Field(default=768.0, description="Viewport height in pixels")


@dataclass(frozen=True)
class ProjectedMarker:
    """A marker together with its screen position for one recomputation."""

    index: int
    marker: Marker
    x: float
    y: float

    @property
    def position(self) -> Tuple[float, float]:
        """Geographic position ``(lng, lat)`` handed to the renderer."""
        return (float(self.marker.longitude), float(self.marker.latitude))


def load_markers(records: Sequence[Mapping[str, Any]]) -> Tuple[List[Marker], int]:
    """Validate raw marker records, skipping the ones that cannot be parsed.

    Returns:
        Tuple of (markers, skipped_count)
    """
    markers: List[Marker] = []
    skipped = 0
    for record in records:
        try:
            markers.append(Marker.from_record(record))
        except (ValidationError, AttributeError, TypeError, IndexError):
            skipped += 1

    if skipped:
        logger.warning("Skipped malformed marker records", skipped=skipped)
    return markers, skipped
