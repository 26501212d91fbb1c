"""Geometry decoding: ``.shp`` bytes to a ``FeatureCollection``.

Each record is decoded through a cursor bounded to its declared content
length, so a record that claims fewer bytes than its payload needs is a
``FormatError`` and unread trailing bytes are skipped with a warning
(or rejected when ``CodecConfig.strict_record_length`` is set).

Recoverable problems are logged and appended to
``FeatureCollection.warnings``:
- part-start indices that are out of range or out of order (the part
  list is truncated at the first bad entry);
- polyline parts with fewer than two vertices (dropped);
- records left with no usable parts (skipped; the id stays unused);
- unread bytes at the end of a record.

Z and measure blocks are consumed to keep the cursor aligned. Point Z
values are kept; Z values of other shapes and all measures are not.

Every record keeps its record number as its id. Multipoint members
beyond the first are stored after the last record, above the largest
record number.
"""

from __future__ import annotations

import logging

import numpy as np

from geomap_io.core.config import CodecConfig
from geomap_io.core.constants import (
    BYTES_PER_WORD,
    HEADER_BYTES,
    M_SHAPE_TYPES,
    MEASURE_NODATA_THRESHOLD,
    NO_DATA,
    Z_SHAPE_TYPES,
    ShapeType,
)
from geomap_io.core.exceptions import FormatError, PartIndexCorruption
from geomap_io.formats.shapefile._binary import ByteCursor
from geomap_io.formats.shapefile._header import ShapefileHeader, resolve_shape_type
from geomap_io.models.collection import Bounds, FeatureCollection
from geomap_io.models.feature import Feature, Point, Polygon, Polyline

logger = logging.getLogger("geomap_io.formats.shapefile")

_POINT_TYPES = frozenset({ShapeType.POINT, ShapeType.POINTZ, ShapeType.POINTM})
_MULTIPOINT_TYPES = frozenset(
    {ShapeType.MULTIPOINT, ShapeType.MULTIPOINTZ, ShapeType.MULTIPOINTM}
)
_LINE_TYPES = frozenset({ShapeType.POLYLINE, ShapeType.POLYLINEZ, ShapeType.POLYLINEM})
_POLYGON_TYPES = frozenset({ShapeType.POLYGON, ShapeType.POLYGONZ, ShapeType.POLYGONM})


def normalize_measures(values: np.ndarray) -> np.ndarray:
    """Replace measures below the no-data threshold with ``NO_DATA``."""
    return np.where(values < MEASURE_NODATA_THRESHOLD, NO_DATA, values)


def checked_part_starts(
    starts: np.ndarray, num_vertices: int, *, record: int = 0
) -> list[int]:
    """Validate part-start indices, truncating at the first bad entry.

    Raises:
        PartIndexCorruption: Carrying the kept prefix length in ``part``
            when an index is negative, not below ``num_vertices``, out of
            order, or the first index is not 0.
    """
    previous = -1
    for part, raw in enumerate(starts.tolist()):
        index = int(raw)
        if index >= num_vertices or index < 0:
            raise PartIndexCorruption(part, index, num_vertices, source=f"record {record}")
        if (part == 0 and index != 0) or index <= previous:
            raise PartIndexCorruption(
                part,
                index,
                num_vertices,
                f"Part index {index} out of order at part {part}; "
                f"ignoring part {part} onwards",
                source=f"record {record}",
            )
        previous = index
    return [int(s) for s in starts.tolist()]


class _RecordDecoder:
    """Decodes records into one collection."""

    def __init__(self, collection: FeatureCollection, config: CodecConfig, source: str) -> None:
        self.collection = collection
        self.config = config
        self.source = source
        # Features without a record number of their own, added after the last record.
        self.deferred: list[Feature] = []

    def warn(self, fmt: str, *args: object) -> None:
        logger.warning(fmt, *args)
        self.collection.warnings.append(fmt % args)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def read_record(self, cursor: ByteCursor) -> None:
        record_number = cursor.read_int_be("record number")
        content_words = cursor.read_int_be("content length")
        if content_words < 2:
            msg = f"Record {record_number} declares content length {content_words} words"
            raise FormatError(msg, source=self.source)
        record = cursor.sub(content_words * BYTES_PER_WORD, f"record {record_number}")
        shape_type = resolve_shape_type(
            record.read_int_le("shape type"),
            source=self.source,
            where=f"record {record_number}",
        )

        features = self._read_payload(record, shape_type, record_number)
        if record.remaining:
            if self.config.strict_record_length:
                msg = f"Record {record_number} has {record.remaining} unread bytes"
                raise FormatError(msg, source=self.source)
            self.warn(
                "Record %d: skipping %d unread bytes", record_number, record.remaining
            )

        if features and record_number > 0:
            self.collection.add(features[0], record_number)
            self.deferred.extend(features[1:])
        elif features:
            self.warn("Record number %d is not positive; assigning a fresh id", record_number)
            self.deferred.extend(features)
        logger.debug(
            "Record decoded | record=%d | shape_type=%s | features=%d",
            record_number,
            shape_type.name,
            len(features),
        )

    def finish(self) -> None:
        """Store deferred features above the largest record number."""
        for feature in self.deferred:
            self.collection.add(feature)
        self.deferred.clear()

    def _read_payload(
        self, record: ByteCursor, shape_type: ShapeType, record_number: int
    ) -> list[Feature]:
        if shape_type is ShapeType.NULL:
            return []
        if shape_type in _POINT_TYPES:
            return [self._read_point(record, shape_type, record_number)]
        if shape_type in _MULTIPOINT_TYPES:
            return self._read_multipoint(record, shape_type, record_number)
        feature = self._read_multipart(record, shape_type, record_number)
        return [feature] if feature is not None else []

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------

    def _read_point(
        self, record: ByteCursor, shape_type: ShapeType, record_number: int
    ) -> Point:
        x = record.read_double_le("x")
        y = record.read_double_le("y")
        z = None
        if shape_type is ShapeType.POINTZ:
            z = record.read_double_le("z")
        if shape_type in (ShapeType.POINTZ, ShapeType.POINTM) and record.remaining:
            self._check_measures(record.read_doubles_le(1, "measure"), record_number)
        return Point(x, y, z)

    def _read_multipoint(
        self, record: ByteCursor, shape_type: ShapeType, record_number: int
    ) -> list[Feature]:
        record.skip(32, "bounding box")
        num_points = record.read_int_le("point count")
        coords = record.read_points_le(num_points, "points")
        z_values = None
        if shape_type in Z_SHAPE_TYPES:
            record.skip(16, "z range")
            z_values = record.read_doubles_le(num_points, "z values")
        if (shape_type in Z_SHAPE_TYPES or shape_type in M_SHAPE_TYPES) and record.remaining:
            self._read_measures(record, num_points, record_number)
        return [
            Point(
                float(coords[i, 0]),
                float(coords[i, 1]),
                None if z_values is None else float(z_values[i]),
            )
            for i in range(num_points)
        ]

    def _read_multipart(
        self, record: ByteCursor, shape_type: ShapeType, record_number: int
    ) -> Feature | None:
        record.skip(32, "bounding box")
        num_parts = record.read_int_le("part count")
        num_points = record.read_int_le("vertex count")
        starts = record.read_ints_le(num_parts, "part indices")
        coords = record.read_points_le(num_points, "vertices")
        if shape_type in Z_SHAPE_TYPES:
            record.skip(16, "z range")
            record.skip(8 * num_points, "z values")
        if (shape_type in Z_SHAPE_TYPES or shape_type in M_SHAPE_TYPES) and record.remaining:
            self._read_measures(record, num_points, record_number)

        try:
            kept = checked_part_starts(starts, num_points, record=record_number)
        except PartIndexCorruption as exc:
            self.warn("Record %d: %s", record_number, exc.message)
            kept = [int(s) for s in starts[: exc.part].tolist()]

        ends = [*kept[1:], num_points] if kept else []
        parts = [coords[s:e] for s, e in zip(kept, ends, strict=True)]
        is_line = shape_type in _LINE_TYPES
        if is_line:
            short = [i for i, p in enumerate(parts) if len(p) < 2]
            if short:
                self.warn(
                    "Record %d: dropping %d polyline part(s) with fewer than 2 vertices",
                    record_number,
                    len(short),
                )
                parts = [p for p in parts if len(p) >= 2]
        if not parts:
            self.warn("Record %d: no usable parts; record skipped", record_number)
            return None
        return Polyline.from_parts(parts) if is_line else Polygon.from_parts(parts)

    def _read_measures(self, record: ByteCursor, count: int, record_number: int) -> None:
        record.skip(16, "measure range")
        self._check_measures(record.read_doubles_le(count, "measures"), record_number)

    def _check_measures(self, values: np.ndarray, record_number: int) -> None:
        """Count no-data measures for the debug log; the values are not kept."""
        missing = int(np.count_nonzero(normalize_measures(values) == NO_DATA))
        if missing:
            logger.debug(
                "Measures without data | record=%d | count=%d", record_number, missing
            )


def read_header(data: bytes, *, source: str = "") -> ShapefileHeader:
    """Decode only the 100-byte header of a ``.shp`` or ``.shx`` stream."""
    return ShapefileHeader.read(ByteCursor(data, source=source))


def decode_geometry(
    data: bytes, *, source: str = "", config: CodecConfig | None = None
) -> tuple[FeatureCollection, Bounds]:
    """Decode a ``.shp`` stream.

    Args:
        data: The whole geometry file.
        source: Name used in errors and log lines.
        config: Codec settings; defaults apply when omitted.

    Returns:
        The decoded features and the header bounding box.

    Raises:
        FormatError: Bad file code, unknown shape type, truncated stream
            or a record overrunning its declared length.
        UnsupportedShapeType: A multipatch header or record.
    """
    config = config or CodecConfig()
    header = ShapefileHeader.read(ByteCursor(data, source=source))
    end = header.file_length_bytes
    if end > len(data):
        msg = f"Header declares {end} bytes but stream holds {len(data)}"
        raise FormatError(msg, source=source)

    # Records may not reach past the declared file length.
    cursor = ByteCursor(memoryview(data)[:end], source=source)
    cursor.skip(HEADER_BYTES, "header")

    collection = FeatureCollection()
    decoder = _RecordDecoder(collection, config, source)
    while cursor.position < end:
        decoder.read_record(cursor)
    decoder.finish()

    logger.info(
        "Geometry decoded | source=%s | shape_type=%s | points=%d | lines=%d | "
        "polygons=%d | warnings=%d",
        source or "<bytes>",
        header.shape_type.name,
        collection.num_points,
        collection.num_lines,
        collection.num_polygons,
        len(collection.warnings),
    )
    return collection, header.bounds
