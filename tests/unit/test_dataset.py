"""Tests for file-level shapefile reading and writing.

Covers:
- decode_shapefile on in-memory streams
- read_shapefile with and without a ``.dbf``
- write_shapefile triplets, P/L/A suffixes and attribute row lookup
- Structured read / write reports
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from geomap_io.core.config import CodecConfig
from geomap_io.core.constants import ShapeType
from geomap_io.core.exceptions import CodecIOError, FormatError
from geomap_io.dataset import (
    ShapefileDataset,
    attributes_for,
    decode_shapefile,
    read_shapefile,
    write_shapefile,
)
from geomap_io.formats.shapefile import decode_index
from geomap_io.models.collection import FeatureCollection
from geomap_io.models.feature import FeatureType, Point, Polygon, Polyline
from geomap_io.models.table import AttributeTable


@pytest.fixture()
def mixed_dataset() -> ShapefileDataset:
    features = FeatureCollection()
    features.add(Point(1.0, 1.0))
    features.add(Polyline.from_parts([[(0, 0), (5, 5)]]))
    features.add(Point(2.0, 2.0))
    features.add(Polygon.from_parts([[(0, 0), (0, 4), (4, 4), (4, 0), (0, 0)]]))
    attributes = AttributeTable(
        ["id", "KIND", "NAME"],
        [
            ["1", "well", "North"],
            ["2", "road", "E6"],
            ["3", "well", "South"],
            ["4", "field", "Home"],
        ],
    )
    return ShapefileDataset(features=features, attributes=attributes)


class TestDecodeShapefile:
    """In-memory decoding."""

    def test_with_attributes(self, point_shp: bytes, cities_dbf: bytes) -> None:
        dataset = decode_shapefile(point_shp, cities_dbf, source="cities")
        assert dataset.shape_type is ShapeType.POINT
        assert len(dataset.features) == 3
        assert dataset.attribute(2, 1) == "Bergen"
        assert dataset.report is not None
        assert dataset.report.has_attributes is True
        assert dataset.report.feature_count == 3
        assert dataset.report.row_count == 3
        assert dataset.report.bounding_box == [-5.5, 0.25, 3.0, 4.0]

    def test_without_attributes(self, polyline_shp: bytes) -> None:
        dataset = decode_shapefile(polyline_shp)
        assert dataset.attributes.headings == ("id",)
        assert list(dataset.attributes.rows()) == [("1",), ("2",)]
        assert dataset.report.has_attributes is False
        assert dataset.report.line_count == 2

    def test_warnings_collected(self, build_shp, shp_parts) -> None:
        points = [(float(i), 0.0) for i in range(10)]
        data = build_shp(3, [shp_parts.record(1, shp_parts.multipart([0, 1000], points))])
        dataset = decode_shapefile(data)
        assert len(dataset.warnings) == 1
        assert dataset.report.warnings == dataset.warnings


class TestReadShapefile:
    """Reading from disk."""

    def test_reads_triplet(self, tmp_path: Path, point_shp: bytes, cities_dbf: bytes) -> None:
        (tmp_path / "cities.shp").write_bytes(point_shp)
        (tmp_path / "cities.dbf").write_bytes(cities_dbf)
        dataset = read_shapefile(tmp_path / "cities.shp")
        assert dataset.source == str(tmp_path / "cities")
        assert dataset.attribute(3, 1) == "Tromsø"
        assert dataset.report.has_attributes is True

    def test_base_path_without_extension(self, tmp_path: Path, point_shp: bytes) -> None:
        (tmp_path / "cities.shp").write_bytes(point_shp)
        assert len(read_shapefile(tmp_path / "cities").features) == 3

    def test_missing_dbf_warns(
        self, tmp_path: Path, point_shp: bytes, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "cities.shp").write_bytes(point_shp)
        with caplog.at_level(logging.WARNING, logger="geomap_io.dataset"):
            dataset = read_shapefile(tmp_path / "cities")
        assert dataset.attributes.headings == ("id",)
        assert dataset.attributes.row_count == 3
        assert dataset.report.has_attributes is False
        assert any("not found" in w for w in dataset.report.warnings)
        assert "Attribute file missing" in caplog.text

    def test_missing_shp_raises(self, tmp_path: Path) -> None:
        with pytest.raises(CodecIOError) as exc_info:
            read_shapefile(tmp_path / "absent")
        assert exc_info.value.path == str(tmp_path / "absent.shp")
        assert exc_info.value.stage == "read"

    def test_format_error_names_file(self, tmp_path: Path) -> None:
        (tmp_path / "junk.shp").write_bytes(b"\x00" * 120)
        with pytest.raises(FormatError) as exc_info:
            read_shapefile(tmp_path / "junk")
        assert exc_info.value.source == str(tmp_path / "junk.shp")


class TestWriteShapefile:
    """Writing triplets."""

    def test_single_type_has_no_suffix(self, tmp_path: Path, point_shp: bytes) -> None:
        dataset = decode_shapefile(point_shp)
        report = write_shapefile(dataset, tmp_path / "out.shp")
        assert [Path(p).name for p in report.files] == ["out.shp", "out.shx", "out.dbf"]
        assert all(Path(p).exists() for p in report.files)
        assert report.triplets[0].record_count == 3
        assert report.triplets[0].shape_type == 1

    def test_mixed_types_get_suffixes(
        self, tmp_path: Path, mixed_dataset: ShapefileDataset
    ) -> None:
        report = write_shapefile(mixed_dataset, tmp_path / "map")
        names = sorted(p.name for p in tmp_path.iterdir())
        assert names == [
            "mapA.dbf",
            "mapA.shp",
            "mapA.shx",
            "mapL.dbf",
            "mapL.shp",
            "mapL.shx",
            "mapP.dbf",
            "mapP.shp",
            "mapP.shx",
        ]
        assert [t.feature_type for t in report.triplets] == ["point", "line", "polygon"]

    def test_triplet_attributes_follow_features(
        self, tmp_path: Path, mixed_dataset: ShapefileDataset
    ) -> None:
        write_shapefile(mixed_dataset, tmp_path / "map")
        points = read_shapefile(tmp_path / "mapP")
        assert points.attributes.row_count == 2
        assert points.attribute(1, 2) == "North"
        assert points.attribute(2, 2) == "South"
        polygons = read_shapefile(tmp_path / "mapA")
        assert polygons.attribute(1, 1) == "field"

    def test_index_matches_geometry(
        self, tmp_path: Path, mixed_dataset: ShapefileDataset
    ) -> None:
        report = write_shapefile(mixed_dataset, tmp_path / "map")
        line = report.triplets[1]
        entries = decode_index(Path(line.index_path).read_bytes())
        assert len(entries) == 1
        assert line.geometry_bytes == Path(line.geometry_path).stat().st_size

    def test_round_trip(self, tmp_path: Path, polygon_shp: bytes) -> None:
        original = decode_shapefile(polygon_shp)
        write_shapefile(original, tmp_path / "parcels")
        again = read_shapefile(tmp_path / "parcels")
        assert again.features[1] == original.features[1]
        assert again.bounds == original.bounds

    def test_truncation_reported(self, tmp_path: Path, point_shp: bytes) -> None:
        dataset = decode_shapefile(point_shp)
        dataset.attributes.set_headings(["id", "NOTE"])
        dataset.attributes.set_string(0, 1, "y" * 20)
        report = write_shapefile(
            dataset, tmp_path / "notes", config=CodecConfig(max_field_width=5)
        )
        assert len(report.warnings) == 1

    def test_empty_dataset(self, tmp_path: Path) -> None:
        report = write_shapefile(ShapefileDataset(), tmp_path / "none")
        assert report.triplets == []
        assert report.warnings
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_destination(self, tmp_path: Path, point_shp: bytes) -> None:
        dataset = decode_shapefile(point_shp)
        with pytest.raises(CodecIOError) as exc_info:
            write_shapefile(dataset, tmp_path / "missing_dir" / "out")
        assert exc_info.value.stage == "write"


class TestAttributesFor:
    """Per-type attribute subsets."""

    def test_missing_rows_get_empty_cells(self, mixed_dataset: ShapefileDataset) -> None:
        mixed_dataset.features.add(Point(9.0, 9.0), 40)
        subset = attributes_for(
            mixed_dataset.attributes, mixed_dataset.features, FeatureType.POINT
        )
        assert subset.headings == ("id", "KIND", "NAME")
        assert list(subset.rows()) == [
            ("1", "well", "North"),
            ("3", "well", "South"),
            ("40", "", ""),
        ]


class TestFeaturesAt:
    """Location queries with configured tolerances."""

    def test_point_tolerance(self, mixed_dataset: ShapefileDataset) -> None:
        assert 1 not in mixed_dataset.features_at(1.0, 1.5)
        hits = mixed_dataset.features_at(1.0, 1.5, config=CodecConfig(point_tolerance=1.0))
        assert 1 in hits

    def test_polygon_and_line(self, mixed_dataset: ShapefileDataset) -> None:
        hits = mixed_dataset.features_at(3.0, 3.0)
        assert 2 in hits
        assert 4 in hits
