"""
Single-pass marker clustering for one zoom level.

Process:
1. Load every projected marker into a grid spatial index
2. Derive the clustering radius from the integer zoom level
3. Walk the clusterable markers in list order; each marker still unvisited
   claims every unvisited neighbor inside its radius box and becomes the
   cluster center, the neighbors become absorbed

Cluster state lives in an auxiliary slot list indexed by the projected
marker's position, so markers themselves are never mutated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

import structlog

from .marker_styles import cluster_icon_name, cluster_icon_size
from .models import ProjectedMarker
from .spatial_index import DEFAULT_CELL_SIZE, MarkerSpatialIndex

logger = structlog.get_logger()

# Cities are always drawn individually
CITY_TYPE = "c"


class SlotKind(str, Enum):
    """Cluster state of a marker at one zoom level."""

    UNVISITED = "unvisited"
    CENTER = "center"
    ABSORBED = "absorbed"


@dataclass(frozen=True)
class ClusterSummary:
    """Visual summary of a cluster held by its center marker."""

    icon: str
    size: float
    members: List[ProjectedMarker]

    @property
    def count(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class ClusterSlot:
    kind: SlotKind = SlotKind.UNVISITED
    summary: Optional[ClusterSummary] = None


UNVISITED_SLOT = ClusterSlot()
ABSORBED_SLOT = ClusterSlot(kind=SlotKind.ABSORBED)


def is_clusterable(point: ProjectedMarker) -> bool:
    return point.marker.subtype != CITY_TYPE


def cluster_radius(zoom: float, size_scale: float) -> float:
    """Radius in pixels; halves with each integer zoom step.

    Raises:
        ValueError: If ``zoom`` is not finite
    """
    if not math.isfinite(zoom):
        raise ValueError(f"zoom must be finite, got {zoom}")
    z = math.floor(zoom)
    # Underflows to 0.0 at very high zoom
    return math.ldexp(size_scale * 20 / math.sqrt(2), -z)


@dataclass
class ClusteringResult:
    """Outcome of a clustering pass at ``zoom_level``."""

    zoom_level: int
    radius: float
    points: List[ProjectedMarker]
    slots: List[ClusterSlot] = field(default_factory=list)

    def slot(self, index: int) -> ClusterSlot:
        return self.slots[index]

    def centers(self) -> List[ProjectedMarker]:
        return [p for p in self.points if self.slots[p.index].kind is SlotKind.CENTER]

    def is_visible(self, point: ProjectedMarker) -> bool:
        """Cities always show; other markers only as cluster centers.

        Unvisited slots count as absorbed.
        """
        if not is_clusterable(point):
            return True
        return self.slots[point.index].kind is SlotKind.CENTER

    def member_ids(self) -> Dict[str, List[str]]:
        """Map each center marker ID to the IDs of its members."""
        return {
            p.marker.id: [m.marker.id for m in self.slots[p.index].summary.members]
            for p in self.centers()
        }


def calculate_clusters(
    points: Sequence[ProjectedMarker],
    zoom: float,
    size_scale: float,
    cell_size: float = DEFAULT_CELL_SIZE,
) -> ClusteringResult:
    """
    Partition projected markers into cluster centers and absorbed markers.

    Args:
        points: Projected markers; ``point.index`` must equal its position
        zoom: Current zoom level (only its floor is used)
        size_scale: Pixel size scale, see ``cluster_size_scale``
        cell_size: Spatial index cell size in pixels

    Returns:
        ClusteringResult with one slot per point

    Raises:
        ValueError: If a point's index does not match its position,
            or ``zoom`` is not finite
    """
    for position, point in enumerate(points):
        if point.index != position:
            raise ValueError(
                f"Projected marker {point.marker.id!r} has index {point.index}, "
                f"expected {position}; re-project filtered markers before clustering"
            )

    radius = cluster_radius(zoom, size_scale)
    z = math.floor(zoom)

    index = MarkerSpatialIndex(cell_size)
    index.load(points)

    slots: List[ClusterSlot] = [UNVISITED_SLOT] * len(points)

    def unvisited_candidate(p: ProjectedMarker) -> bool:
        return is_clusterable(p) and slots[p.index].kind is SlotKind.UNVISITED

    for point in points:
        if not is_clusterable(point):
            continue
        if slots[point.index].kind is not SlotKind.UNVISITED:
            continue

        neighbors = [
            n
            for n in index.search(
                point.x - radius, point.y - radius, point.x + radius, point.y + radius
            )
            if unvisited_candidate(n)
        ]
        if not any(n.index == point.index for n in neighbors):
            # Point fell outside its own query (non-finite position)
            continue

        summary = ClusterSummary(
            icon=cluster_icon_name(len(neighbors)),
            size=cluster_icon_size(len(neighbors)),
            members=neighbors,
        )
        for neighbor in neighbors:
            if neighbor.index == point.index:
                slots[neighbor.index] = ClusterSlot(kind=SlotKind.CENTER, summary=summary)
            else:
                slots[neighbor.index] = ABSORBED_SLOT

    result = ClusteringResult(zoom_level=z, radius=radius, points=list(points), slots=slots)
    logger.debug(
        "Clustering complete",
        zoom_level=z,
        radius=round(radius, 3),
        markers=len(points),
        clusters=len(result.centers()),
    )
    return result
