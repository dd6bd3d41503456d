"""
Visual attributes for markers and cluster centers.

Maps zoom level, cluster size, marker type, active flag and capital history
to the icon key, pixel size and color consumed by the icon layer of the
rendering host. All lookup tables are read-only mappings.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, NamedTuple, Optional

from .colors import FALLBACK_COLOR, RGBA, parse_color
from .models import Marker, MetadataEntry

if TYPE_CHECKING:
    from .clustering import ClusterSlot

# Default marker size in pixels
DEFAULT_MARKER_SIZE = 20

# Base pixel size of markers that are not cluster centers
DEFAULT_ICON_SIZE = 4
ACTIVE_SIZE_BOOST = 10

ICON_SIZE: Mapping[str, int] = MappingProxyType(
    {
        "cp": 7,  # Capital
        "ca": 4,  # Castle
        "b": 5,  # Battle
        "si": 5,  # Siege
        "c0": 7,  # Capital outline
        "c": 4,  # City
        "l": 4,  # Landmark
        "m": 4,  # Military
        "p": 4,  # Politician
        "e": 4,  # Explorer
        "s": 4,  # Scientist
        "a": 4,  # Artist
        "r": 4,  # Religious
        "at": 4,  # Athlete
        "op": 4,  # Unclassified
        "o": 4,  # Unknown
        "ar": 4,  # Artifact
    }
)

CAPITAL_TYPE = "cp"
MAX_CLUSTER_ICON_COUNT = 100


class IconEntry(NamedTuple):
    """Position and size of an icon inside a sprite atlas."""

    x: int
    y: int
    width: int
    height: int
    anchor_y: int
    mask: bool = False


_THEMED_W = 135
_THEMED_H = 127


def _themed(col: int, row: int, mask: bool = False) -> IconEntry:
    return IconEntry(col * _THEMED_W, row * _THEMED_H, _THEMED_W, _THEMED_H, _THEMED_H, mask)


THEMED_ICON_MAPPING: Mapping[str, IconEntry] = MappingProxyType(
    {
        "r": _themed(1, 0),
        "p": _themed(2, 0),
        "e": _themed(3, 0),
        "a": _themed(0, 1),
        "s": _themed(2, 1),
        "op": _themed(3, 1),
        "at": _themed(1, 2),
        "m": _themed(2, 2),
        "ar": _themed(0, 3),
        "b": _themed(1, 3),
        "si": _themed(2, 3),
        "cp": _themed(3, 3, mask=True),
        "ca": _themed(0, 4),
        "c0": _themed(1, 4),
        "l": _themed(2, 4),
        "h": _themed(2, 4),
        "o": _themed(3, 4),
        "c": _themed(0, 5),
    }
)

_CLUSTER_ICON_KEYS = ["1", "2", "3", "4", "5", "6", "7", "8", "9"] + [
    str(n) for n in range(10, 101, 10)
]
_CLUSTER_CELL = 64

CLUSTER_ICON_MAPPING: Mapping[str, IconEntry] = MappingProxyType(
    {
        "": IconEntry(0, 0, 1, 1, 1),
        **{
            key: IconEntry(
                (i % 4) * _CLUSTER_CELL,
                (i // 4) * _CLUSTER_CELL,
                _CLUSTER_CELL,
                _CLUSTER_CELL,
                _CLUSTER_CELL,
            )
            for i, key in enumerate(_CLUSTER_ICON_KEYS)
        },
    }
)


def icon_atlas(marker_theme: str, show_cluster: bool) -> str:
    """Sprite atlas path for the current marker theme."""
    if show_cluster:
        return "/images/themed-cluster-atlas.png"
    return f"/images/{marker_theme}-atlas.png"


def icon_mapping(show_cluster: bool) -> Mapping[str, IconEntry]:
    return CLUSTER_ICON_MAPPING if show_cluster else THEMED_ICON_MAPPING


def marker_size_scale(zoom: float) -> float:
    """Shrink markers smoothly below zoom 10; never exceed full size."""
    return 1.55 ** min(zoom - 10, 0.0)


def cluster_size_scale(
    zoom: float,
    device_pixel_ratio: float = 1.0,
    base_size: float = DEFAULT_MARKER_SIZE,
) -> float:
    """Pixel size scale fed to the clustering radius."""
    return base_size * marker_size_scale(zoom) * device_pixel_ratio


def cluster_icon_name(size: int) -> str:
    """
    Bucket a cluster member count into the cluster icon vocabulary.

    0 -> "", 1-9 -> the count, 10-99 -> the count floored to tens,
    100 and above -> "100".
    """
    if size <= 0:
        return ""
    if size < 10:
        return str(size)
    if size < MAX_CLUSTER_ICON_COUNT:
        return str(size // 10 * 10)
    return str(MAX_CLUSTER_ICON_COUNT)


def cluster_icon_size(size: int) -> float:
    """Icon size multiplier in [0.5, 1.0], non-decreasing in ``size``."""
    clamped = max(0, min(MAX_CLUSTER_ICON_COUNT, size))
    return clamped / MAX_CLUSTER_ICON_COUNT * 0.5 + 0.5


def marker_icon(marker: Marker, slot: Optional["ClusterSlot"] = None) -> str:
    if slot is not None and slot.summary is not None and slot.summary.icon:
        return slot.summary.icon
    return marker.subtype


def marker_pixel_size(
    marker: Marker,
    slot: Optional["ClusterSlot"] = None,
    base_size: float = DEFAULT_MARKER_SIZE,
) -> float:
    """Pixel size; cluster centers scale ``base_size`` by their icon size."""
    if slot is not None and slot.summary is not None:
        return (slot.summary.size or 1) * base_size

    size = ICON_SIZE.get(marker.subtype, DEFAULT_ICON_SIZE)
    if marker.is_active:
        size += ACTIVE_SIZE_BOOST
    return size


def marker_color(
    marker: Marker,
    selected_year: int,
    ruler_metadata: Mapping[str, MetadataEntry],
) -> RGBA:
    """
    Color a capital marker by the ruler holding it in ``selected_year``.

    Every other case, including a missing interval or metadata entry,
    yields opaque black.
    """
    if marker.subtype != CAPITAL_TYPE or not marker.capital:
        return FALLBACK_COLOR

    interval = marker.capital_interval_at(selected_year)
    if interval is None:
        return FALLBACK_COLOR

    entry = ruler_metadata.get(interval.ruler_id)
    if entry is None or entry.color is None:
        return FALLBACK_COLOR
    return parse_color(entry.color)
