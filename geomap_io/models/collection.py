"""Feature collection: id-indexed features plus sizing counters.

The counters are maintained incrementally by ``add`` so the geometry
writer can compute exact file lengths without re-scanning coordinates.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from geomap_io.models.feature import Feature, FeatureType

logger = logging.getLogger("geomap_io.models.collection")


@dataclass(frozen=True, slots=True)
class Bounds:
    """Axis-aligned bounding rectangle in geographic units."""

    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0

    @classmethod
    def from_tuple(cls, box: tuple[float, float, float, float]) -> Bounds:
        return cls(*(float(v) for v in box))

    @classmethod
    def enclosing(cls, boxes: Iterable[tuple[float, float, float, float]]) -> Bounds:
        """Smallest rectangle containing every box; all zero when ``boxes`` is empty."""
        result: Bounds | None = None
        for box in boxes:
            current = cls.from_tuple(box)
            result = current if result is None else result.union(current)
        return result or cls()

    def union(self, other: Bounds) -> Bounds:
        return Bounds(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


class FeatureCollection:
    """Insertion-ordered mapping from positive feature id to feature.

    Attributes:
        warnings: Recoverable diagnostics raised while building the
            collection (id collisions, repaired records).
    """

    def __init__(self) -> None:
        self._features: dict[int, Feature] = {}
        self._max_id = 0
        self.num_points = 0
        self.num_lines = 0
        self.num_polygons = 0
        self.num_line_vertices = 0
        self.num_line_parts = 0
        self.num_polygon_vertices = 0
        self.num_polygon_parts = 0
        self.warnings: list[str] = []

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, feature: Feature, feature_id: int | None = None) -> int:
        """Insert ``feature`` and return the id it was stored under.

        A missing id, or one already in use, is replaced by
        ``max_id + 1``. Collisions are recorded as warnings.

        Raises:
            ValueError: If ``feature_id`` is not positive.
        """
        if feature_id is not None and feature_id <= 0:
            msg = f"Feature id must be positive, got {feature_id}"
            raise ValueError(msg)
        if feature_id is None:
            feature_id = self._max_id + 1
        elif feature_id in self._features:
            fresh = self._max_id + 1
            logger.warning("Feature id collision | id=%d | stored_as=%d", feature_id, fresh)
            self.warnings.append(f"Feature id {feature_id} already in use; stored as {fresh}")
            feature_id = fresh

        self._features[feature_id] = feature
        self._max_id = max(self._max_id, feature_id)
        self._count(feature)
        return feature_id

    def _count(self, feature: Feature) -> None:
        if feature.feature_type is FeatureType.POINT:
            self.num_points += 1
        elif feature.feature_type is FeatureType.LINE:
            self.num_lines += 1
            self.num_line_vertices += feature.num_vertices
            self.num_line_parts += feature.num_parts
        else:
            self.num_polygons += 1
            self.num_polygon_vertices += feature.num_vertices
            self.num_polygon_parts += feature.num_parts

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._features)

    def __iter__(self) -> Iterator[int]:
        return iter(self._features)

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self._features

    def __getitem__(self, feature_id: int) -> Feature:
        return self._features[feature_id]

    def get(self, feature_id: int) -> Feature | None:
        return self._features.get(feature_id)

    def items(self) -> Iterator[tuple[int, Feature]]:
        return iter(self._features.items())

    @property
    def max_id(self) -> int:
        """Largest id stored so far (0 when empty)."""
        return self._max_id

    def count(self, feature_type: FeatureType) -> int:
        """Number of features of ``feature_type``."""
        return {
            FeatureType.POINT: self.num_points,
            FeatureType.LINE: self.num_lines,
            FeatureType.POLYGON: self.num_polygons,
        }[feature_type]

    def of_type(self, feature_type: FeatureType) -> Iterator[tuple[int, Feature]]:
        """Yield ``(id, feature)`` pairs of one type in insertion order."""
        for feature_id, feature in self._features.items():
            if feature.feature_type is feature_type:
                yield feature_id, feature

    def feature_types_present(self) -> list[FeatureType]:
        """Types with at least one feature, in point, line, polygon order."""
        return [ft for ft in FeatureType if self.count(ft)]

    def bounds(self, feature_type: FeatureType | None = None) -> Bounds:
        """Recompute the bounding rectangle from geometry."""
        features = (
            self._features.values()
            if feature_type is None
            else (f for _, f in self.of_type(feature_type))
        )
        return Bounds.enclosing(f.bbox() for f in features if f.num_vertices)

    def __repr__(self) -> str:
        return (
            f"FeatureCollection(points={self.num_points}, lines={self.num_lines}, "
            f"polygons={self.num_polygons})"
        )
