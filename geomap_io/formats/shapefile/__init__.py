"""Geometry codec for ``.shp`` / ``.shx`` files.

The codec is split into focused stages:
- **_binary**: endian-aware byte cursor and sink
- **_header**: the 100-byte header shared by both files
- **_reader**: record decoding into a FeatureCollection
- **_writer**: per-type encoding with exact, counter-derived file sizes
- **_index**: ``.shx`` entry decoding

Supported shape types: null, point, multipoint, polyline and polygon
with their Z and M variants. Multipatch is rejected.
"""

from __future__ import annotations

from geomap_io.formats.shapefile._header import ShapefileHeader, resolve_shape_type
from geomap_io.formats.shapefile._index import IndexEntry, decode_index
from geomap_io.formats.shapefile._reader import (
    checked_part_starts,
    decode_geometry,
    normalize_measures,
    read_header,
)
from geomap_io.formats.shapefile._writer import (
    SHAPE_TYPE_FOR,
    encode_geometry,
    geometry_file_words,
    index_file_words,
    record_content_words,
)

__all__ = [
    "SHAPE_TYPE_FOR",
    "IndexEntry",
    "ShapefileHeader",
    "checked_part_starts",
    "decode_geometry",
    "decode_index",
    "encode_geometry",
    "geometry_file_words",
    "index_file_words",
    "normalize_measures",
    "read_header",
    "record_content_words",
    "resolve_shape_type",
]
