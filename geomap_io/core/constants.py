"""Shared format constants: single source of truth.

Centralises the shapefile header layout, shape-type codes and dBase
limits that the geometry, index and attribute codecs all rely on.

References:
    ESRI Shapefile Technical Description (July 1998)
    dBase III+ file structure
"""

from __future__ import annotations

import enum
import sys

# ---------------------------------------------------------------------------
# Shapefile header
# ---------------------------------------------------------------------------

FILE_CODE: int = 9994
"""Big-endian magic number at offset 0 of every ``.shp`` / ``.shx`` file."""

FILE_VERSION: int = 1000
"""Little-endian version number stored at offset 28."""

HEADER_BYTES: int = 100
HEADER_WORDS: int = HEADER_BYTES // 2

RECORD_HEADER_BYTES: int = 8
RECORD_HEADER_WORDS: int = RECORD_HEADER_BYTES // 2

INDEX_RECORD_WORDS: int = 4
"""Each ``.shx`` entry is an (offset, length) pair of big-endian ints."""

BYTES_PER_WORD: int = 2


class ShapeType(enum.IntEnum):
    """Shape-type codes stored in file and record headers."""

    NULL = 0
    POINT = 1
    POLYLINE = 3
    POLYGON = 5
    MULTIPOINT = 8
    POINTZ = 11
    POLYLINEZ = 13
    POLYGONZ = 15
    MULTIPOINTZ = 18
    POINTM = 21
    POLYLINEM = 23
    POLYGONM = 25
    MULTIPOINTM = 28
    MULTIPATCH = 31


Z_SHAPE_TYPES = frozenset(
    {ShapeType.POINTZ, ShapeType.POLYLINEZ, ShapeType.POLYGONZ, ShapeType.MULTIPOINTZ}
)
M_SHAPE_TYPES = frozenset(
    {ShapeType.POINTM, ShapeType.POLYLINEM, ShapeType.POLYGONM, ShapeType.MULTIPOINTM}
)

# ---------------------------------------------------------------------------
# Record sizes in 16-bit words, used to size output files without
# re-scanning geometry.
# ---------------------------------------------------------------------------

POINT_RECORD_CONTENT_WORDS: int = 10
"""Shape type (2) + x (4) + y (4)."""

MULTIPART_FIXED_CONTENT_WORDS: int = 22
"""Shape type (2) + bounding box (16) + part count (2) + vertex count (2)."""

WORDS_PER_PART: int = 2
WORDS_PER_VERTEX: int = 8

# ---------------------------------------------------------------------------
# Measures
# ---------------------------------------------------------------------------

MEASURE_NODATA_THRESHOLD: float = -1.0e38
"""Any measure below this value is treated as "no data"."""

NO_DATA: float = float.fromhex("0x1.fffffep+127")
"""Value substituted for missing measures (largest single-precision float)."""

# ---------------------------------------------------------------------------
# dBase III
# ---------------------------------------------------------------------------

DBF_VERSION: int = 0x03
DBF_HEADER_PREFIX_BYTES: int = 32
DBF_FIELD_DESCRIPTOR_BYTES: int = 32
DBF_HEADER_TERMINATOR: int = 0x0D
DBF_EOF_MARKER: int = 0x1A
DBF_DELETED_FLAG: int = ord("*")
DBF_ACTIVE_FLAG: int = ord(" ")
DBF_MAX_FIELD_NAME: int = 10
DBF_MAX_FIELD_WIDTH: int = 254

ID_COLUMN: str = "id"
"""Heading of the synthesized feature-id column (column 0)."""

# ---------------------------------------------------------------------------
# File extensions and per-type suffixes
# ---------------------------------------------------------------------------

GEOMETRY_EXTENSION: str = ".shp"
INDEX_EXTENSION: str = ".shx"
ATTRIBUTE_EXTENSION: str = ".dbf"

MAX_DOUBLE: float = sys.float_info.max
MIN_DOUBLE: float = 5e-324
