"""
One full recomputation of the marker layers for a viewport snapshot.

Each call validates and projects the markers, optionally clusters them,
and derives every per-marker and per-city attribute handed to the
rendering host. Nothing is cached between calls.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import structlog

from ..config import settings
from .city_labels import (
    city_dot_radius,
    city_label_font_size,
    city_label_weight,
    is_city_marker,
    is_non_capital_city,
)
from .clustering import ClusteringResult, calculate_clusters
from .colors import RGBA
from .marker_styles import (
    cluster_size_scale,
    marker_color,
    marker_icon,
    marker_pixel_size,
)
from .models import AreaData, Dimension, Marker, Metadata, ProjectedMarker, ViewportState
from .projection import ScreenProjector, project_markers
from .provinces import ProvinceFill, province_fills

logger = structlog.get_logger()


@dataclass(frozen=True)
class MarkerVisual:
    """Attributes of one drawn marker or cluster center."""

    marker_id: str
    position: Tuple[float, float]
    icon: str
    size: float
    color: RGBA
    members: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CityLabel:
    marker_id: str
    text: str
    position: Tuple[float, float]
    weight: int
    font_size: int


@dataclass(frozen=True)
class CityDot:
    marker_id: str
    position: Tuple[float, float]
    radius: int


@dataclass
class MarkerFrame:
    """Everything the marker, label and dot layers need for one frame."""

    zoom_level: int
    size_scale: float
    markers: List[MarkerVisual] = field(default_factory=list)
    city_labels: List[CityLabel] = field(default_factory=list)
    city_dots: List[CityDot] = field(default_factory=list)
    skipped: int = 0
    clustering: Optional[ClusteringResult] = None

    def cluster_members(self) -> Dict[str, List[str]]:
        if self.clustering is None:
            return {}
        return self.clustering.member_ids()


def _visual(
    point: ProjectedMarker,
    clustering: Optional[ClusteringResult],
    selected_year: int,
    metadata: Metadata,
    base_size: float,
) -> MarkerVisual:
    slot = clustering.slot(point.index) if clustering is not None else None
    members: Tuple[str, ...] = ()
    if slot is not None and slot.summary is not None:
        members = tuple(m.marker.id for m in slot.summary.members)

    return MarkerVisual(
        marker_id=point.marker.id,
        position=point.position,
        icon=marker_icon(point.marker, slot),
        size=marker_pixel_size(point.marker, slot, base_size),
        color=marker_color(point.marker, selected_year, metadata.ruler),
        members=members,
    )


def build_marker_frame(
    markers: Sequence[Marker],
    viewport: ViewportState,
    *,
    show_cluster: bool,
    selected_year: int,
    metadata: Optional[Metadata] = None,
    device_pixel_ratio: Optional[float] = None,
    projector: Optional[ScreenProjector] = None,
    cell_size: Optional[float] = None,
) -> MarkerFrame:
    """
    Recompute marker, cluster and city attributes for a snapshot.

    Args:
        markers: Markers for the selected year
        viewport: Current viewport
        show_cluster: Whether clustering is active; when False every
            marker is drawn individually
        selected_year: Year used for capital-history lookups
        metadata: Entity metadata (ruler colors are used for capitals)
        device_pixel_ratio: Screen pixel ratio, defaults to settings
        projector: Screen projector, equirectangular by default
        cell_size: Spatial index cell size, defaults to settings

    Returns:
        MarkerFrame for the rendering host
    """
    metadata = metadata or Metadata()
    dpr = settings.device_pixel_ratio if device_pixel_ratio is None else device_pixel_ratio
    cell = settings.spatial_index_cell_size if cell_size is None else cell_size

    projected = project_markers(markers, viewport, projector)
    size_scale = cluster_size_scale(viewport.zoom, dpr, settings.default_marker_size)

    clustering: Optional[ClusteringResult] = None
    if show_cluster:
        clustering = calculate_clusters(projected.points, viewport.zoom, size_scale, cell)
        displayed = [p for p in projected.points if clustering.is_visible(p)]
    else:
        displayed = list(projected.points)

    frame = MarkerFrame(
        zoom_level=math.floor(viewport.zoom),
        size_scale=size_scale,
        markers=[
            _visual(p, clustering, selected_year, metadata, settings.default_marker_size)
            for p in displayed
        ],
        skipped=projected.skipped,
        clustering=clustering,
    )

    for point in projected.points:
        marker = point.marker
        if is_city_marker(marker):
            weight = city_label_weight(marker, selected_year)
            frame.city_labels.append(
                CityLabel(
                    marker_id=marker.id,
                    text=marker.name,
                    position=point.position,
                    weight=weight,
                    font_size=city_label_font_size(weight),
                )
            )
        if is_non_capital_city(marker):
            frame.city_dots.append(
                CityDot(
                    marker_id=marker.id,
                    position=point.position,
                    radius=city_dot_radius(marker),
                )
            )

    logger.info(
        "Marker frame built",
        zoom=viewport.zoom,
        clustered=show_cluster,
        markers=len(markers),
        displayed=len(frame.markers),
        skipped=frame.skipped,
    )
    return frame


def build_province_fills(
    province_ids: Iterable[str],
    area_data: Optional[AreaData],
    dimension: Union[Dimension, str],
    metadata: Optional[Metadata] = None,
) -> List[ProvinceFill]:
    """Province fills for the active dimension using the configured opacity range."""
    return province_fills(
        province_ids,
        area_data,
        dimension,
        metadata or Metadata(),
        max_population=settings.max_population_for_opacity,
        opacity_range=(settings.population_opacity_min, settings.population_opacity_max),
    )
