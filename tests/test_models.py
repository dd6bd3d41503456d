"""Tests for the data model and record loading."""

import pytest
from pydantic import ValidationError

from py_histmap.core.models import (
    MAX_ZOOM,
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


class TestMarker:
    """Test marker construction from raw records."""

    def test_from_record(self):
        marker = Marker.from_record(
            {
                "_id": 42,
                "name": "Cannae",
                "subtype": "b",
                "coo": [16.13, 41.3],
                "wiki": "Battle_of_Cannae",
                "year": -216,
                "isActive": True,
            }
        )

        assert marker.id == "42"
        assert marker.coordinates == (16.13, 41.3)
        assert marker.longitude == 16.13
        assert marker.latitude == 41.3
        assert marker.year == -216
        assert marker.is_active is True
        assert marker.capital == ()

    def test_capital_history(self):
        marker = Marker.from_record(
            {"_id": "rome", "subtype": "cp", "coo": [12.5, 41.9], "capital": [[-27, 395, "ROM"], [396, 476, "WRE"]]}
        )

        assert marker.capital[0] == CapitalInterval(start_year=-27, end_year=395, ruler_id="ROM")
        assert marker.capital_interval_at(0).ruler_id == "ROM"
        assert marker.capital_interval_at(476).ruler_id == "WRE"
        assert marker.capital_interval_at(477) is None

    def test_markers_are_frozen(self):
        marker = Marker(id="a", subtype="b")
        with pytest.raises(ValidationError):
            marker.subtype = "c"

    def test_malformed_coordinates_are_kept_for_validation(self):
        assert Marker(id="a", subtype="b", coordinates=None).longitude is None
        assert Marker(id="a", subtype="b", coordinates="oops").coordinates == ("oops",)


class TestLoadMarkers:
    """Test bulk loading with skipping."""

    def test_skips_malformed_records(self):
        records = [
            {"_id": "ok", "subtype": "b", "coo": [0, 0]},
            {"_id": "bad-year", "subtype": "b", "year": "not a year"},
            {"_id": "bad-capital", "subtype": "cp", "capital": [[1]]},
            "garbage",
        ]

        markers, skipped = load_markers(records)

        assert [m.id for m in markers] == ["ok"]
        assert skipped == 3

    def test_empty(self):
        assert load_markers([]) == ([], 0)


class TestMetadata:
    """Test metadata tables."""

    def test_from_record_accepts_dicts_and_lists(self):
        metadata = Metadata.from_record(
            {
                "ruler": {"ROM": ["Roman Empire", "rgb(1,2,3)"]},
                "religion": {"cath": {"name": "Catholic", "color": "rgb(4,5,6)", "parent": "chr"}},
                "religionGeneral": {"chr": ["Christianity", "rgb(7,8,9)"]},
            }
        )

        assert metadata.ruler["ROM"] == MetadataEntry(name="Roman Empire", color="rgb(1,2,3)")
        assert metadata.religion["cath"].parent == "chr"
        assert metadata.table(Dimension.RELIGION_GENERAL)["chr"].name == "Christianity"
        assert metadata.table("ruler") is metadata.ruler
        assert metadata.table(Dimension.POPULATION) == {}
        assert metadata.culture == {}

    def test_list_entry_without_color(self):
        entry = MetadataEntry.from_record(["Nameless", 5])
        assert entry.name == "Nameless"
        assert entry.color is None

    def test_malformed_entries_degrade(self):
        """Test that bad entries are coerced or skipped instead of failing the build."""
        metadata = Metadata.from_record(
            {
                "ruler": {
                    "R": {"name": "Rome", "color": 123},
                    "S": None,
                    "T": "rgb(1, 1, 1)",
                    "U": {"name": None, "color": "rgb(1, 2, 3)", "parent": 7},
                },
                "culture": ["not", "a", "table"],
                "religion": {"cath": ("Catholic",)},
            }
        )

        assert metadata.ruler["R"] == MetadataEntry(name="Rome")
        assert "S" not in metadata.ruler
        assert "T" not in metadata.ruler
        assert metadata.ruler["U"] == MetadataEntry(name="", color="rgb(1, 2, 3)")
        assert metadata.culture == {}
        assert metadata.religion["cath"] == MetadataEntry(name="Catholic")

    def test_entry_rejects_scalars(self):
        with pytest.raises(TypeError):
            MetadataEntry.from_record(None)
        with pytest.raises(TypeError):
            MetadataEntry.from_record(42)
        assert MetadataEntry.from_record([]) == MetadataEntry()

    def test_from_none(self):
        assert Metadata.from_record(None).ruler == {}

    def test_alias(self):
        metadata = Metadata(religionGeneral={"chr": MetadataEntry(name="Christianity")})
        assert "chr" in metadata.religion_general


class TestDimension:
    @pytest.mark.parametrize(
        "value,valid",
        [
            ("ruler", True),
            ("religionGeneral", True),
            (Dimension.POPULATION, True),
            ("religion_general", False),
            ("language", False),
            (None, False),
            (5, False),
        ],
    )
    def test_is_valid_dimension(self, value, valid):
        assert is_valid_dimension(value) is valid


class TestViewportState:
    """Test viewport defaults and validation."""

    def test_defaults(self):
        viewport = ViewportState()
        assert viewport.zoom == 2.5
        assert (viewport.width, viewport.height) == (1024.0, 768.0)

    def test_negative_zoom_rejected(self):
        with pytest.raises(ValidationError):
            ViewportState(zoom=-1)

    @pytest.mark.parametrize("zoom", [22.5, 2000, float("inf"), float("nan")])
    def test_out_of_range_zoom_rejected(self, zoom):
        with pytest.raises(ValidationError):
            ViewportState(zoom=zoom)

    def test_max_zoom_accepted(self):
        assert ViewportState(zoom=MAX_ZOOM).zoom == 22

    def test_projected_marker_position(self):
        marker = Marker(id="a", subtype="b", coordinates=(10, -20))
        point = ProjectedMarker(index=0, marker=marker, x=1.0, y=2.0)
        assert point.position == (10.0, -20.0)
