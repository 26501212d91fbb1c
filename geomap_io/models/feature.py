"""Data model for decoded shapefile features.

A feature is one of three variants, tagged by ``FeatureType``:

- ``Point``: a single 2-D or 3-D coordinate.
- ``Polyline``: one or more parts, each an ordered run of >= 2 vertices.
- ``Polygon``: one or more rings. Holes and islands are stored as
  separate parts and are not told apart from outer rings.

Multi-part variants keep every vertex in one flattened ``(n, 2)``
float64 array plus a list of part-start indices into it, which is
exactly how the shapefile record lays them out.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import ClassVar

import numpy as np

from geomap_io.core.exceptions import ModelValidationError


class FeatureType(enum.Enum):
    """Geometry kind of a feature, used for dispatch by the codecs."""

    POINT = "point"
    LINE = "line"
    POLYGON = "polygon"


def _as_coords(model: str, coords: object) -> np.ndarray:
    """Coerce ``coords`` to a C-contiguous ``(n, 2)`` float64 array."""
    try:
        array = np.ascontiguousarray(coords, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ModelValidationError(model, "coords", coords, "not numeric") from exc
    if array.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if array.ndim != 2 or array.shape[1] != 2:
        raise ModelValidationError(
            model, "coords", array.shape, "expected an (n, 2) array of x, y pairs"
        )
    return array


def _check_part_starts(
    model: str, part_starts: Sequence[int], num_vertices: int, min_part: int
) -> tuple[int, ...]:
    starts = tuple(int(s) for s in part_starts)
    if num_vertices == 0:
        if starts:
            raise ModelValidationError(model, "part_starts", starts, "parts given without vertices")
        return starts
    if not starts or starts[0] != 0:
        raise ModelValidationError(model, "part_starts", starts, "first part must start at 0")
    bounds = (*starts, num_vertices)
    for i in range(len(starts)):
        if bounds[i + 1] - bounds[i] < min_part:
            raise ModelValidationError(
                model,
                "part_starts",
                starts,
                f"part {i} has {bounds[i + 1] - bounds[i]} vertices, need at least {min_part}",
            )
    return starts


@dataclass(frozen=True, slots=True)
class Point:
    """A single point feature.

    Attributes:
        x: Easting / longitude in geographic units.
        y: Northing / latitude in geographic units.
        z: Elevation, or ``None`` for 2-D points.
    """

    x: float
    y: float
    z: float | None = None

    feature_type: ClassVar[FeatureType] = FeatureType.POINT

    @property
    def num_vertices(self) -> int:
        """Always 1."""
        return 1

    @property
    def num_parts(self) -> int:
        return 1

    @property
    def coords(self) -> np.ndarray:
        """The point as a ``(1, 2)`` coordinate array."""
        return np.array([[self.x, self.y]], dtype=np.float64)

    @property
    def part_starts(self) -> tuple[int, ...]:
        return (0,)

    def bbox(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.x, self.y)

    def contains(self, x: float, y: float, *, tolerance: float = 0.0) -> bool:
        """Whether ``(x, y)`` lies within ``tolerance`` of this point."""
        from shapely.geometry import Point as ShapelyPoint

        return ShapelyPoint(self.x, self.y).distance(ShapelyPoint(x, y)) <= tolerance


@dataclass(frozen=True, slots=True, eq=False)
class _MultiPart:
    """Shared storage for the multi-part variants."""

    coords: np.ndarray
    part_starts: tuple[int, ...] = field(default=(0,))

    min_part_vertices: ClassVar[int] = 1

    def __post_init__(self) -> None:
        model = type(self).__name__
        coords = _as_coords(model, self.coords)
        coords.setflags(write=False)
        object.__setattr__(self, "coords", coords)
        object.__setattr__(
            self,
            "part_starts",
            _check_part_starts(model, self.part_starts, len(coords), self.min_part_vertices),
        )

    @classmethod
    def from_parts(cls, parts: Sequence[Sequence[Sequence[float]]]):  # noqa: ANN206
        """Build a feature from a list of parts, each a list of ``(x, y)`` pairs."""
        arrays = [_as_coords(cls.__name__, part) for part in parts]
        starts: list[int] = []
        offset = 0
        for array in arrays:
            starts.append(offset)
            offset += len(array)
        coords = np.concatenate(arrays) if arrays else np.empty((0, 2), dtype=np.float64)
        return cls(coords, tuple(starts))

    @property
    def num_vertices(self) -> int:
        return len(self.coords)

    @property
    def num_parts(self) -> int:
        return len(self.part_starts)

    def _part_bounds(self) -> list[tuple[int, int]]:
        if not self.part_starts:
            return []
        ends = (*self.part_starts[1:], len(self.coords))
        return list(zip(self.part_starts, ends, strict=True))

    def parts(self) -> Iterator[np.ndarray]:
        """Yield each part's vertices as a read-only view of ``coords``."""
        for start, end in self._part_bounds():
            yield self.coords[start:end]

    def part_spans(self) -> list[tuple[int, int]]:
        """Return ``(start, vertex_count)`` for every part."""
        return [(s, e - s) for s, e in self._part_bounds()]

    def bbox(self) -> tuple[float, float, float, float]:
        """Tight ``(min_x, min_y, max_x, max_y)`` of all vertices."""
        if not len(self.coords):
            return (0.0, 0.0, 0.0, 0.0)
        lo = self.coords.min(axis=0)
        hi = self.coords.max(axis=0)
        return (float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.part_starts == other.part_starts and np.array_equal(self.coords, other.coords)

    __hash__ = None  # type: ignore[assignment]


class Polyline(_MultiPart):
    """A line feature made of one or more parts of at least two vertices."""

    feature_type: ClassVar[FeatureType] = FeatureType.LINE
    min_part_vertices: ClassVar[int] = 2

    def contains(self, x: float, y: float, *, tolerance: float = 0.0) -> bool:
        """Whether ``(x, y)`` lies within ``tolerance`` of any segment."""
        from shapely.geometry import LineString
        from shapely.geometry import Point as ShapelyPoint

        location = ShapelyPoint(x, y)
        return any(LineString(part).distance(location) <= tolerance for part in self.parts())


class Polygon(_MultiPart):
    """An area feature made of one or more rings.

    Ring orientation is not interpreted. Containment uses the even-odd
    rule across all rings, so a ring inside another acts as a hole.
    """

    feature_type: ClassVar[FeatureType] = FeatureType.POLYGON

    def contains(self, x: float, y: float, *, tolerance: float = 0.0) -> bool:
        """Whether ``(x, y)`` is inside the polygon or within ``tolerance`` of its boundary."""
        from shapely.geometry import LinearRing
        from shapely.geometry import Point as ShapelyPoint
        from shapely.geometry import Polygon as ShapelyPolygon

        location = ShapelyPoint(x, y)
        inside = False
        for part in self.parts():
            if len(part) < 3:
                continue
            if ShapelyPolygon(part).contains(location):
                inside = not inside
        if inside:
            return True
        if tolerance > 0:
            return any(
                LinearRing(part).distance(location) <= tolerance
                for part in self.parts()
                if len(part) >= 3
            )
        return False


Feature = Point | Polyline | Polygon
"""Any decoded feature variant."""
