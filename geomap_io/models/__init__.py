"""Data models.

Defines the in-memory structures produced and consumed by the codecs:
- Feature: Point / Polyline / Polygon variants tagged by FeatureType
- FeatureCollection: id-indexed features with sizing counters
- AttributeTable: row-per-feature grid of text cells
- ReadReport / WriteReport: pydantic outcome summaries
"""

from geomap_io.models.collection import Bounds, FeatureCollection
from geomap_io.models.feature import Feature, FeatureType, Point, Polygon, Polyline
from geomap_io.models.report import ReadReport, WriteReport, WrittenTriplet
from geomap_io.models.table import AttributeTable

__all__ = [
    "AttributeTable",
    "Bounds",
    "Feature",
    "FeatureCollection",
    "FeatureType",
    "Point",
    "Polygon",
    "Polyline",
    "ReadReport",
    "WriteReport",
    "WrittenTriplet",
]
