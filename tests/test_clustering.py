"""
Tests for the clustering engine.

Tests cover:
- Radius derivation from zoom
- Cluster center and absorbed assignment
- City exclusion
- Exclusive membership across overlapping groups
"""

import math

import numpy as np
import pytest

from py_histmap.core.clustering import (
    SlotKind,
    calculate_clusters,
    cluster_radius,
)
from py_histmap.core.models import Marker, ProjectedMarker


def make_points(entries):
    """Build projected markers from ``(x, y)`` or ``(x, y, subtype)`` tuples."""
    points = []
    for i, entry in enumerate(entries):
        x, y = entry[0], entry[1]
        subtype = entry[2] if len(entry) > 2 else "b"
        points.append(
            ProjectedMarker(index=i, marker=Marker(id=f"m{i}", subtype=subtype), x=x, y=y)
        )
    return points


class TestClusterRadius:
    """Test radius derivation."""

    def test_radius_formula(self):
        assert cluster_radius(5, 20) == pytest.approx(20 * 20 / math.sqrt(2) / 32)
        assert cluster_radius(5, 100) == pytest.approx(44.19, abs=0.01)

    def test_very_high_zoom_degrades_to_zero(self):
        assert cluster_radius(2000, 20) == 0.0

    def test_non_finite_zoom_raises(self):
        with pytest.raises(ValueError):
            cluster_radius(float("inf"), 20)

    def test_only_integer_zoom_matters(self):
        assert cluster_radius(5.0, 20) == cluster_radius(5.99, 20)

    def test_radius_halves_per_zoom_level(self):
        for z in range(0, 10):
            assert cluster_radius(z + 1, 20) == pytest.approx(cluster_radius(z, 20) / 2)


class TestCalculateClusters:
    """Test cluster assignment."""

    def test_twelve_markers_form_one_cluster(self):
        """Test twelve close markers at zoom 5 with a 44.2px radius."""
        offsets = [(0, 0)] + [(dx, dy) for dx in (-20, 0, 20) for dy in (-20, 20)] + [
            (-10, 5),
            (10, -5),
            (5, 10),
            (-5, -10),
            (15, 15),
        ]
        assert len(offsets) == 12
        points = make_points([(500 + dx, 500 + dy) for dx, dy in offsets])

        result = calculate_clusters(points, zoom=5, size_scale=100)

        centers = result.centers()
        assert len(centers) == 1
        assert centers[0].marker.id == "m0"

        summary = result.slot(0).summary
        assert summary.count == 12
        assert summary.icon == "10"
        assert summary.size == pytest.approx(0.56)
        assert all(result.slot(i).kind is SlotKind.ABSORBED for i in range(1, 12))

    def test_separate_groups(self):
        points = make_points([(0, 0), (1, 1), (100, 100), (101, 100), (300, 0)])

        result = calculate_clusters(points, zoom=0, size_scale=1)  # radius ~14.1

        assert sorted(p.marker.id for p in result.centers()) == ["m0", "m2", "m4"]
        members = {center: sorted(ids) for center, ids in result.member_ids().items()}
        assert members == {"m0": ["m0", "m1"], "m2": ["m2", "m3"], "m4": ["m4"]}
        assert result.slot(4).summary.icon == "1"

    def test_first_marker_in_list_order_becomes_center(self):
        points = make_points([(10, 10), (5, 5)])

        result = calculate_clusters(points, zoom=0, size_scale=1)

        assert result.slot(0).kind is SlotKind.CENTER
        assert result.slot(1).kind is SlotKind.ABSORBED

    def test_square_box_merges_diagonal_neighbors(self):
        """Test that the radius is applied as a box, not a circle."""
        radius = cluster_radius(0, 1)
        offset = radius * 0.95
        points = make_points([(0, 0), (offset, offset)])

        result = calculate_clusters(points, zoom=0, size_scale=1)

        assert math.hypot(offset, offset) > radius
        assert result.slot(0).summary.count == 2

    def test_cities_are_never_clustered(self):
        """Test that cities stay visible and never join a cluster."""
        points = make_points([(0, 0, "b"), (0, 0, "c"), (1, 1, "c"), (2, 2, "si")])

        result = calculate_clusters(points, zoom=0, size_scale=1)

        assert result.slot(1).kind is SlotKind.UNVISITED
        assert result.slot(2).kind is SlotKind.UNVISITED
        assert result.is_visible(points[1])
        assert result.is_visible(points[2])

        members = result.slot(0).summary.members
        assert [m.marker.id for m in members if m.marker.subtype == "c"] == []
        assert sorted(m.marker.id for m in members) == ["m0", "m3"]

    def test_capitals_do_cluster(self):
        points = make_points([(0, 0, "cp"), (1, 0, "b")])

        result = calculate_clusters(points, zoom=0, size_scale=1)

        assert result.slot(0).kind is SlotKind.CENTER
        assert result.slot(0).summary.count == 2

    def test_absorbed_markers_are_hidden(self):
        points = make_points([(0, 0), (1, 1)])
        result = calculate_clusters(points, zoom=0, size_scale=1)

        assert result.is_visible(points[0])
        assert not result.is_visible(points[1])

    def test_empty_input(self):
        result = calculate_clusters([], zoom=3, size_scale=20)
        assert result.slots == []
        assert result.centers() == []
        assert result.zoom_level == 3

    def test_very_high_zoom_only_merges_coincident_points(self):
        points = make_points([(0, 0), (0, 0), (5, 5)])

        result = calculate_clusters(points, zoom=2000, size_scale=20)

        assert result.radius == 0.0
        assert result.slot(0).summary.count == 2
        assert result.slot(2).summary.count == 1

    def test_filtered_points_raise(self):
        """Test that points whose index is not their list position are rejected."""
        points = make_points([(0, 0), (1, 1), (2, 2)])

        with pytest.raises(ValueError, match="index"):
            calculate_clusters(points[1:], zoom=0, size_scale=1)

    def test_points_are_not_mutated(self):
        points = make_points([(0, 0), (1, 1)])
        calculate_clusters(points, zoom=0, size_scale=1)
        assert (points[0].x, points[0].y) == (0, 0)


class TestClusterMembershipInvariants:
    """Test exclusive membership on dense random layouts."""

    @pytest.mark.parametrize("zoom,size_scale", [(0, 5), (2, 20), (4, 20), (6, 100)])
    def test_every_marker_assigned_once(self, zoom, size_scale):
        rng = np.random.default_rng(zoom)
        positions = rng.uniform(0, 200, size=(300, 2))
        subtypes = rng.choice(["b", "si", "cp", "c", "p"], size=300)
        points = make_points(
            [(float(x), float(y), str(s)) for (x, y), s in zip(positions, subtypes)]
        )

        result = calculate_clusters(points, zoom=zoom, size_scale=size_scale)

        seen = {}
        for center in result.centers():
            for member in result.slot(center.index).summary.members:
                assert member.index not in seen, "marker counted in two clusters"
                seen[member.index] = center.index

        for point in points:
            kind = result.slot(point.index).kind
            if point.marker.subtype == "c":
                assert kind is SlotKind.UNVISITED
                assert point.index not in seen
            else:
                assert kind in (SlotKind.CENTER, SlotKind.ABSORBED)
                assert point.index in seen

    def test_center_count_is_deterministic(self):
        """Test that repeated passes over the same snapshot agree."""
        rng = np.random.default_rng(7)
        points = make_points(rng.uniform(0, 100, size=(150, 2)).tolist())

        first = calculate_clusters(points, zoom=1, size_scale=10)
        second = calculate_clusters(points, zoom=1, size_scale=10)

        assert first.member_ids() == second.member_ids()
