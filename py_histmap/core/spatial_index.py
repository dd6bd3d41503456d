"""
Grid-based spatial index over screen-projected markers.

Points are bucketed into square cells of ``cell_size`` pixels. A range
query visits every cell intersecting the box and filters the bucket
contents against the exact bounds.
"""

import math
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

import structlog

from .models import ProjectedMarker

logger = structlog.get_logger()

DEFAULT_CELL_SIZE = 50.0


class MarkerSpatialIndex:
    """Bucket grid supporting bulk rebuild and axis-aligned range queries."""

    def __init__(self, cell_size: float = DEFAULT_CELL_SIZE):
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = float(cell_size)
        self._grid: Dict[Tuple[int, int], List[ProjectedMarker]] = defaultdict(list)
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def clear(self) -> None:
        self._grid.clear()
        self._count = 0

    def _cell(self, x: float, y: float) -> Tuple[int, int]:
        return (
            math.floor(x / self.cell_size),
            math.floor(y / self.cell_size),
        )

    def load(self, points: Iterable[ProjectedMarker]) -> None:
        """Replace the index contents with ``points``."""
        self.clear()
        for point in points:
            if point.x is None or point.y is None:
                continue
            if not (math.isfinite(point.x) and math.isfinite(point.y)):
                continue
            self._grid[self._cell(point.x, point.y)].append(point)
            self._count += 1

        logger.debug(
            "Spatial index loaded", points=self._count, cells=len(self._grid)
        )

    def search(
        self, min_x: float, min_y: float, max_x: float, max_y: float
    ) -> List[ProjectedMarker]:
        """
        Return every indexed point inside the box, bounds inclusive.

        Each point lives in exactly one bucket, so results carry no duplicates.
        Result order is unspecified.
        """
        if min_x > max_x or min_y > max_y:
            return []

        results: List[ProjectedMarker] = []
        for bucket in self._buckets_in_range(min_x, min_y, max_x, max_y):
            for point in bucket:
                if min_x <= point.x <= max_x and min_y <= point.y <= max_y:
                    results.append(point)
        return results

    def _buckets_in_range(
        self, min_x: float, min_y: float, max_x: float, max_y: float
    ) -> Iterable[List[ProjectedMarker]]:
        bounds = (min_x, min_y, max_x, max_y)
        if not all(math.isfinite(b) for b in bounds):
            # Unbounded box: every bucket intersects it
            return list(self._grid.values())

        min_cx, min_cy = self._cell(min_x, min_y)
        max_cx, max_cy = self._cell(max_x, max_y)
        span = (max_cx - min_cx + 1) * (max_cy - min_cy + 1)

        if span > len(self._grid):
            # More cells in range than occupied: walk the occupied ones
            return [
                bucket
                for (cx, cy), bucket in self._grid.items()
                if min_cx <= cx <= max_cx and min_cy <= cy <= max_cy
            ]

        buckets = []
        for cx in range(min_cx, max_cx + 1):
            for cy in range(min_cy, max_cy + 1):
                bucket = self._grid.get((cx, cy))
                if bucket:
                    buckets.append(bucket)
        return buckets
