"""Shared pytest fixtures for the geomap_io test suite.

Binary samples are assembled in memory with ``struct`` so every test
states the exact bytes it decodes.
"""

from __future__ import annotations

import struct
from collections.abc import Callable, Sequence
from types import SimpleNamespace

import pytest

# ---------------------------------------------------------------------------
# Geometry (.shp) builders
# ---------------------------------------------------------------------------


def shp_header(
    shape_type: int,
    file_length_words: int,
    bbox: Sequence[float] = (0.0, 0.0, 0.0, 0.0),
    file_code: int = 9994,
) -> bytes:
    """100-byte main-file header."""
    return (
        struct.pack(">i", file_code)
        + struct.pack(">5i", 0, 0, 0, 0, 0)
        + struct.pack(">i", file_length_words)
        + struct.pack("<ii", 1000, shape_type)
        + struct.pack("<8d", *bbox, 0.0, 0.0, 0.0, 0.0)
    )


def record(number: int, content: bytes, content_words: int | None = None) -> bytes:
    """Record header plus content; the length defaults to the content size."""
    words = len(content) // 2 if content_words is None else content_words
    return struct.pack(">ii", number, words) + content


def point_content(x: float, y: float, shape_type: int = 1, *extra: float) -> bytes:
    return struct.pack("<i2d", shape_type, x, y) + struct.pack(f"<{len(extra)}d", *extra)


def multipart_content(
    parts: Sequence[int],
    points: Sequence[tuple[float, float]],
    shape_type: int = 3,
    bbox: Sequence[float] | None = None,
) -> bytes:
    """Polyline / polygon content with an explicit part-start list."""
    if bbox is None:
        xs = [p[0] for p in points] or [0.0]
        ys = [p[1] for p in points] or [0.0]
        bbox = (min(xs), min(ys), max(xs), max(ys))
    flat = [c for p in points for c in p]
    return (
        struct.pack("<i4d", shape_type, *bbox)
        + struct.pack("<ii", len(parts), len(points))
        + struct.pack(f"<{len(parts)}i", *parts)
        + struct.pack(f"<{len(flat)}d", *flat)
    )


def shp_file(
    shape_type: int,
    records: Sequence[bytes],
    bbox: Sequence[float] = (0.0, 0.0, 0.0, 0.0),
) -> bytes:
    """Complete ``.shp`` stream with a consistent file length."""
    body = b"".join(records)
    return shp_header(shape_type, (100 + len(body)) // 2, bbox) + body


# ---------------------------------------------------------------------------
# Attribute (.dbf) builders
# ---------------------------------------------------------------------------


def dbf_file(
    fields: Sequence[tuple[str, str, int, int]],
    rows: Sequence[Sequence[str]],
    deleted: Sequence[int] = (),
    eof: bool = True,
    num_records: int | None = None,
) -> bytes:
    """dBase III stream.

    Args:
        fields: ``(name, type, length, decimals)`` per column.
        rows: Cell text per row; padded or cut to the field length.
        deleted: Row indices flagged with ``*``.
        eof: Whether to append the ``0x1A`` marker.
        num_records: Header record count; defaults to ``len(rows)``.
    """
    header_length = 32 + 32 * len(fields) + 1
    record_length = 1 + sum(f[2] for f in fields)
    count = len(rows) if num_records is None else num_records
    out = bytearray(
        struct.pack("<B3BIHH20x", 3, 124, 1, 1, count, header_length, record_length)
    )
    for name, type_code, length, decimals in fields:
        out += struct.pack(
            "<11sc4xBB14x", name.encode("latin-1"), type_code.encode("ascii"), length, decimals
        )
    out.append(0x0D)
    for index, row in enumerate(rows):
        out.append(0x2A if index in deleted else 0x20)
        for (_, _, length, _), cell in zip(fields, row, strict=True):
            out += cell.encode("latin-1")[:length].ljust(length, b" ")
    if eof:
        out.append(0x1A)
    return bytes(out)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def build_shp() -> Callable[..., bytes]:
    """Builder for complete ``.shp`` streams."""
    return shp_file


@pytest.fixture()
def build_dbf() -> Callable[..., bytes]:
    """Builder for ``.dbf`` streams."""
    return dbf_file


@pytest.fixture()
def shp_parts() -> SimpleNamespace:
    """Record-level builders: ``header``, ``record``, ``point``, ``multipart``."""
    return SimpleNamespace(
        header=shp_header,
        record=record,
        point=point_content,
        multipart=multipart_content,
    )


@pytest.fixture()
def point_shp() -> bytes:
    """Three points numbered 1..3."""
    return shp_file(
        1,
        [
            record(1, point_content(1.0, 2.0)),
            record(2, point_content(3.0, 4.0)),
            record(3, point_content(-5.5, 0.25)),
        ],
        bbox=(-5.5, 0.25, 3.0, 4.0),
    )


@pytest.fixture()
def polyline_shp() -> bytes:
    """One two-part polyline (record 1) and one single-part polyline (record 2)."""
    return shp_file(
        3,
        [
            record(
                1,
                multipart_content([0, 2], [(0.0, 0.0), (1.0, 1.0), (2.0, 0.0), (3.0, 1.0)]),
            ),
            record(2, multipart_content([0], [(10.0, 10.0), (12.0, 14.0)])),
        ],
        bbox=(0.0, 0.0, 12.0, 14.0),
    )


@pytest.fixture()
def polygon_shp() -> bytes:
    """A square with a square hole, stored as two rings."""
    outer = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0), (0.0, 0.0)]
    inner = [(4.0, 4.0), (6.0, 4.0), (6.0, 6.0), (4.0, 6.0), (4.0, 4.0)]
    return shp_file(
        5,
        [record(1, multipart_content([0, 5], [*outer, *inner], shape_type=5))],
        bbox=(0.0, 0.0, 10.0, 10.0),
    )


@pytest.fixture()
def cities_dbf() -> bytes:
    """Three city rows matching ``point_shp``."""
    return dbf_file(
        [("NAME", "C", 12, 0), ("POP", "N", 8, 0), ("CAPITAL", "L", 1, 0)],
        [["Oslo", "709037", "T"], ["Bergen", "285911", "F"], ["Tromsø", "77544", "?"]],
    )
