"""Tests for the Point / Polyline / Polygon feature variants.

Covers construction and validation, part iteration, bounding boxes and
shapely-backed containment with tolerances.
"""

from __future__ import annotations

import numpy as np
import pytest

from geomap_io.core.exceptions import ModelValidationError
from geomap_io.models.feature import FeatureType, Point, Polygon, Polyline

SQUARE = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0), (0.0, 0.0)]
HOLE = [(4.0, 4.0), (6.0, 4.0), (6.0, 6.0), (4.0, 6.0), (4.0, 4.0)]


class TestPoint:
    """Point feature."""

    def test_type_tag(self) -> None:
        assert Point(1.0, 2.0).feature_type is FeatureType.POINT

    def test_counts_and_bbox(self) -> None:
        p = Point(1.5, -2.0)
        assert p.num_vertices == 1
        assert p.num_parts == 1
        assert p.part_starts == (0,)
        assert p.bbox() == (1.5, -2.0, 1.5, -2.0)

    def test_coords_array(self) -> None:
        np.testing.assert_array_equal(Point(3.0, 4.0).coords, [[3.0, 4.0]])

    def test_z_optional(self) -> None:
        assert Point(0.0, 0.0).z is None
        assert Point(0.0, 0.0, 12.5).z == 12.5

    def test_contains_exact(self) -> None:
        assert Point(1.0, 1.0).contains(1.0, 1.0)
        assert not Point(1.0, 1.0).contains(1.0, 1.1)

    def test_contains_with_tolerance(self) -> None:
        assert Point(0.0, 0.0).contains(3.0, 4.0, tolerance=5.0)
        assert not Point(0.0, 0.0).contains(3.0, 4.0, tolerance=4.9)


class TestPolyline:
    """Polyline feature."""

    def test_from_parts(self) -> None:
        line = Polyline.from_parts([[(0, 0), (1, 1)], [(2, 2), (3, 3), (4, 4)]])
        assert line.feature_type is FeatureType.LINE
        assert line.num_parts == 2
        assert line.num_vertices == 5
        assert line.part_starts == (0, 2)
        assert line.part_spans() == [(0, 2), (2, 3)]

    def test_parts_are_views(self) -> None:
        line = Polyline.from_parts([[(0, 0), (1, 1)], [(2, 2), (3, 3)]])
        parts = list(line.parts())
        assert len(parts) == 2
        np.testing.assert_array_equal(parts[1], [[2.0, 2.0], [3.0, 3.0]])

    def test_coords_read_only(self) -> None:
        line = Polyline.from_parts([[(0, 0), (1, 1)]])
        with pytest.raises(ValueError):
            line.coords[0, 0] = 5.0

    def test_bbox(self) -> None:
        line = Polyline.from_parts([[(-1, 5), (3, -2)], [(0, 0), (7, 1)]])
        assert line.bbox() == (-1.0, -2.0, 7.0, 5.0)

    def test_part_too_short(self) -> None:
        with pytest.raises(ModelValidationError) as exc_info:
            Polyline.from_parts([[(0, 0), (1, 1)], [(5, 5)]])
        assert exc_info.value.field_name == "part_starts"

    def test_first_part_must_start_at_zero(self) -> None:
        with pytest.raises(ModelValidationError):
            Polyline(np.zeros((4, 2)), (1,))

    def test_bad_coordinate_shape(self) -> None:
        with pytest.raises(ModelValidationError):
            Polyline(np.zeros((4, 3)), (0,))

    def test_non_numeric_coordinates(self) -> None:
        with pytest.raises(ModelValidationError):
            Polyline([["a", "b"], ["c", "d"]], (0,))

    def test_equality(self) -> None:
        a = Polyline.from_parts([[(0, 0), (1, 1)]])
        b = Polyline.from_parts([[(0.0, 0.0), (1.0, 1.0)]])
        assert a == b
        assert a != Polyline.from_parts([[(0, 0), (1, 2)]])

    def test_contains_on_segment(self) -> None:
        line = Polyline.from_parts([[(0, 0), (10, 0)]])
        assert line.contains(5.0, 0.0)
        assert not line.contains(5.0, 1.0)
        assert line.contains(5.0, 1.0, tolerance=1.0)


class TestPolygon:
    """Polygon feature with even-odd rings."""

    def test_type_tag(self) -> None:
        assert Polygon.from_parts([SQUARE]).feature_type is FeatureType.POLYGON

    def test_single_vertex_part_allowed(self) -> None:
        polygon = Polygon.from_parts([SQUARE, [(20, 20)]])
        assert polygon.num_parts == 2

    def test_contains_inside(self) -> None:
        assert Polygon.from_parts([SQUARE]).contains(2.0, 2.0)

    def test_hole_excluded(self) -> None:
        polygon = Polygon.from_parts([SQUARE, HOLE])
        assert polygon.contains(2.0, 2.0)
        assert not polygon.contains(5.0, 5.0)

    def test_outside(self) -> None:
        assert not Polygon.from_parts([SQUARE]).contains(11.0, 5.0)

    def test_boundary_tolerance(self) -> None:
        polygon = Polygon.from_parts([SQUARE])
        assert not polygon.contains(10.5, 5.0)
        assert polygon.contains(10.5, 5.0, tolerance=0.5)

    def test_empty_polygon(self) -> None:
        polygon = Polygon(np.empty((0, 2)), ())
        assert polygon.num_vertices == 0
        assert polygon.bbox() == (0.0, 0.0, 0.0, 0.0)
        assert not polygon.contains(0.0, 0.0)
