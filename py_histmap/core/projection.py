"""
Screen projection of geographic marker coordinates.

The clustering engine only needs a consistent 2D metric space, so the
default projector is a simple equirectangular mapping of the whole globe
onto the viewport. It is an approximation of what the final renderer
draws, not a Web-Mercator implementation. Projectors are swappable through
the ``ScreenProjector`` protocol.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, List, Optional, Protocol, Sequence, Tuple

import numpy as np
import structlog

from .models import Marker, ProjectedMarker, ViewportState

logger = structlog.get_logger()


class ScreenProjector(Protocol):
    """Maps geographic coordinates to screen pixels."""

    def project(
        self, lng: float, lat: float, width: float, height: float
    ) -> Tuple[float, float]: ...

    def project_many(
        self, lngs: np.ndarray, lats: np.ndarray, width: float, height: float
    ) -> Tuple[np.ndarray, np.ndarray]: ...


class EquirectangularProjector:
    """Equirectangular approximation: longitude and latitude scale linearly."""

    def project(
        self, lng: float, lat: float, width: float, height: float
    ) -> Tuple[float, float]:
        x = (lng + 180.0) / 360.0 * width
        y = (90.0 - lat) / 180.0 * height
        return x, y

    def project_many(
        self, lngs: np.ndarray, lats: np.ndarray, width: float, height: float
    ) -> Tuple[np.ndarray, np.ndarray]:
        lngs = np.asarray(lngs, dtype=np.float64)
        lats = np.asarray(lats, dtype=np.float64)
        xs = (lngs + 180.0) / 360.0 * width
        ys = (90.0 - lats) / 180.0 * height
        return xs, ys


DEFAULT_PROJECTOR = EquirectangularProjector()


def _is_real(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def is_valid_coordinate(coordinates: Optional[Sequence[Any]]) -> bool:
    """Check that a ``(lng, lat)`` pair is numeric, finite and in range."""
    if coordinates is None or isinstance(coordinates, (str, bytes)):
        return False
    try:
        if len(coordinates) < 2:
            return False
    except TypeError:
        return False

    lng, lat = coordinates[0], coordinates[1]
    if not (_is_real(lng) and _is_real(lat)):
        return False
    if not (math.isfinite(lng) and math.isfinite(lat)):
        return False
    return -180.0 <= lng <= 180.0 and -90.0 <= lat <= 90.0


@dataclass
class ProjectionResult:
    """Projected markers plus the number of markers rejected upstream."""

    points: List[ProjectedMarker] = field(default_factory=list)
    skipped: int = 0


def project_markers(
    markers: Sequence[Marker],
    viewport: ViewportState,
    projector: Optional[ScreenProjector] = None,
) -> ProjectionResult:
    """
    Project every marker with a valid coordinate onto the viewport.

    Markers with malformed coordinates are excluded and only counted;
    no per-marker error is raised.

    Args:
        markers: Markers for the selected year
        viewport: Current viewport (only width and height are used)
        projector: Projector to use, equirectangular by default

    Returns:
        ProjectionResult with points indexed by their position in the result
    """
    if viewport.width <= 0 or viewport.height <= 0:
        raise ValueError(
            f"Viewport size must be positive, got {viewport.width}x{viewport.height}"
        )

    projector = projector or DEFAULT_PROJECTOR
    valid = [m for m in markers if is_valid_coordinate(m.coordinates)]
    skipped = len(markers) - len(valid)
    if skipped:
        logger.warning(
            "Skipped markers with invalid coordinates",
            skipped=skipped,
            total=len(markers),
        )

    if not valid:
        return ProjectionResult(points=[], skipped=skipped)

    lngs = np.array([m.longitude for m in valid], dtype=np.float64)
    lats = np.array([m.latitude for m in valid], dtype=np.float64)
    xs, ys = projector.project_many(lngs, lats, viewport.width, viewport.height)

    points = [
        ProjectedMarker(index=i, marker=marker, x=float(xs[i]), y=float(ys[i]))
        for i, marker in enumerate(valid)
    ]
    return ProjectionResult(points=points, skipped=skipped)
