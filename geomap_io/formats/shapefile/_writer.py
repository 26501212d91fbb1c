"""Geometry encoding: one feature type to ``.shp`` and ``.shx`` bytes.

File lengths are computed up front from the collection's counters, so
the header can be written before any record:

- point file: ``50 + 14 * n`` words;
- line / polygon file: ``50 + 26 * n + 2 * parts + 8 * vertices`` words;
- index file: ``50 + 4 * n`` words.

Records are numbered 1..n in collection order. Every record carries
its own bounding box. Z and measures are never written.
"""

from __future__ import annotations

import logging

from geomap_io.core.constants import (
    BYTES_PER_WORD,
    HEADER_WORDS,
    INDEX_RECORD_WORDS,
    MULTIPART_FIXED_CONTENT_WORDS,
    POINT_RECORD_CONTENT_WORDS,
    RECORD_HEADER_WORDS,
    WORDS_PER_PART,
    WORDS_PER_VERTEX,
    ShapeType,
)
from geomap_io.core.exceptions import FormatError
from geomap_io.formats.shapefile._binary import ByteSink
from geomap_io.formats.shapefile._header import ShapefileHeader
from geomap_io.models.collection import Bounds, FeatureCollection
from geomap_io.models.feature import Feature, FeatureType, Point

logger = logging.getLogger("geomap_io.formats.shapefile")

SHAPE_TYPE_FOR: dict[FeatureType, ShapeType] = {
    FeatureType.POINT: ShapeType.POINT,
    FeatureType.LINE: ShapeType.POLYLINE,
    FeatureType.POLYGON: ShapeType.POLYGON,
}


def record_content_words(feature: Feature) -> int:
    """Content length of ``feature``'s record in 16-bit words."""
    if isinstance(feature, Point):
        return POINT_RECORD_CONTENT_WORDS
    return (
        MULTIPART_FIXED_CONTENT_WORDS
        + WORDS_PER_PART * feature.num_parts
        + WORDS_PER_VERTEX * feature.num_vertices
    )


def geometry_file_words(collection: FeatureCollection, feature_type: FeatureType) -> int:
    """Exact ``.shp`` length in words for one feature type, from the counters."""
    per_record = RECORD_HEADER_WORDS
    if feature_type is FeatureType.POINT:
        return HEADER_WORDS + collection.num_points * (per_record + POINT_RECORD_CONTENT_WORDS)
    if feature_type is FeatureType.LINE:
        count, parts, vertices = (
            collection.num_lines,
            collection.num_line_parts,
            collection.num_line_vertices,
        )
    else:
        count, parts, vertices = (
            collection.num_polygons,
            collection.num_polygon_parts,
            collection.num_polygon_vertices,
        )
    return (
        HEADER_WORDS
        + count * (per_record + MULTIPART_FIXED_CONTENT_WORDS)
        + parts * WORDS_PER_PART
        + vertices * WORDS_PER_VERTEX
    )


def index_file_words(record_count: int) -> int:
    return HEADER_WORDS + record_count * INDEX_RECORD_WORDS


def _write_record(sink: ByteSink, shape_type: ShapeType, feature: Feature) -> None:
    sink.write_int_le(int(shape_type))
    if isinstance(feature, Point):
        sink.write_double_le(feature.x)
        sink.write_double_le(feature.y)
        return
    sink.write_doubles_le(feature.bbox())
    sink.write_int_le(feature.num_parts)
    sink.write_int_le(feature.num_vertices)
    sink.write_ints_le(feature.part_starts)
    sink.write_doubles_le(feature.coords)


def encode_geometry(
    collection: FeatureCollection,
    bounds: Bounds | None,
    feature_type: FeatureType,
) -> tuple[bytes, bytes]:
    """Encode every feature of ``feature_type`` as a plain 2-D shapefile.

    Args:
        collection: Source features; other types are ignored.
        bounds: Header bounding box; recomputed from the selected
            features when ``None``.
        feature_type: The geometry kind to write.

    Returns:
        ``(shp_bytes, shx_bytes)``.
    """
    shape_type = SHAPE_TYPE_FOR[feature_type]
    if bounds is None:
        bounds = collection.bounds(feature_type)
    record_count = collection.count(feature_type)

    shp = ByteSink()
    shx = ByteSink()
    ShapefileHeader(shape_type, geometry_file_words(collection, feature_type), bounds).write(shp)
    ShapefileHeader(shape_type, index_file_words(record_count), bounds).write(shx)

    offset = HEADER_WORDS
    for record_number, (_, feature) in enumerate(collection.of_type(feature_type), start=1):
        content = record_content_words(feature)
        shp.write_int_be(record_number)
        shp.write_int_be(content)
        _write_record(shp, shape_type, feature)
        shx.write_int_be(offset)
        shx.write_int_be(content)
        offset += RECORD_HEADER_WORDS + content

    if len(shp) != offset * BYTES_PER_WORD or offset != geometry_file_words(
        collection, feature_type
    ):
        msg = (
            f"Encoded {len(shp)} bytes but header declares "
            f"{geometry_file_words(collection, feature_type) * BYTES_PER_WORD}"
        )
        raise FormatError(msg, stage="write_shp")

    logger.debug(
        "Geometry encoded | type=%s | records=%d | shp_bytes=%d | shx_bytes=%d",
        feature_type.value,
        record_count,
        len(shp),
        len(shx),
    )
    return shp.getvalue(), shx.getvalue()
