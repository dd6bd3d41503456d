"""
Core clustering and styling functionality.
"""

from .models import (
    CapitalInterval,
    Dimension,
    Marker,
    Metadata,
    MetadataEntry,
    ProjectedMarker,
    ViewportState,
    is_valid_dimension,
    load_markers,
)
from .colors import parse_color
from .projection import EquirectangularProjector, ScreenProjector, is_valid_coordinate, project_markers
from .spatial_index import MarkerSpatialIndex
from .clustering import ClusterSlot, ClusterSummary, ClusteringResult, SlotKind, calculate_clusters, cluster_radius
from .marker_styles import (
    cluster_icon_name,
    cluster_icon_size,
    cluster_size_scale,
    marker_color,
    marker_icon,
    marker_pixel_size,
    marker_size_scale,
)
from .city_labels import city_label_font_size, city_label_weight, is_city_marker, is_non_capital_city
from .provinces import ProvinceFill, province_color, province_fills, province_opacity
from .frame import MarkerFrame, build_marker_frame, build_province_fills

__all__ = ['CapitalInterval', 'Dimension', 'Marker', 'Metadata', 'MetadataEntry',
           'ProjectedMarker', 'ViewportState', 'is_valid_dimension', 'load_markers',
           'parse_color', 'EquirectangularProjector', 'ScreenProjector',
           'is_valid_coordinate', 'project_markers', 'MarkerSpatialIndex',
           'ClusterSlot', 'ClusterSummary', 'ClusteringResult', 'SlotKind',
           'calculate_clusters', 'cluster_radius', 'cluster_icon_name',
           'cluster_icon_size', 'cluster_size_scale', 'marker_color', 'marker_icon',
           'marker_pixel_size', 'marker_size_scale', 'city_label_font_size',
           'city_label_weight', 'is_city_marker', 'is_non_capital_city',
           'ProvinceFill', 'province_color', 'province_fills', 'province_opacity',
           'MarkerFrame', 'build_marker_frame', 'build_province_fills']
