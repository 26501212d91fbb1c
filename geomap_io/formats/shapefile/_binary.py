"""Endian-aware byte cursor and sink for the shapefile layouts.

The geometry and index formats mix big-endian file/record headers with
little-endian payloads, so every accessor names its byte order.
Coordinate runs are decoded in bulk with ``numpy.frombuffer``.
"""

from __future__ import annotations

import struct

import numpy as np

from geomap_io.core.exceptions import FormatError

_INT_BE = struct.Struct(">i")
_INT_LE = struct.Struct("<i")
_DOUBLE_LE = struct.Struct("<d")


class ByteCursor:
    """Sequential reader over an immutable buffer.

    Every read is bounds-checked; running off the end raises
    ``FormatError`` naming the source and offset.
    """

    __slots__ = ("_base", "_data", "_label", "_pos", "source")

    def __init__(
        self, data: bytes | memoryview, *, source: str = "", base: int = 0, label: str = ""
    ) -> None:
        self._data = memoryview(data).toreadonly()
        self._pos = 0
        self._base = base
        self._label = label
        self.source = source

    def sub(self, count: int, label: str) -> ByteCursor:
        """Consume ``count`` bytes and return a cursor bounded to them.

        Reads past the end of the returned cursor raise ``FormatError``
        mentioning ``label`` (e.g. ``"record 7"``).
        """
        start = self._pos
        view = self._take(count, label)
        return ByteCursor(view, source=self.source, base=self._base + start, label=label)

    @property
    def position(self) -> int:
        return self._pos

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def _take(self, count: int, what: str) -> memoryview:
        if count < 0 or self._pos + count > len(self._data):
            where = f" in {self._label}" if self._label else ""
            msg = (
                f"Truncated stream reading {what}{where} at byte {self._base + self._pos}: "
                f"need {count}, have {self.remaining}"
            )
            raise FormatError(msg, source=self.source)
        view = self._data[self._pos : self._pos + count]
        self._pos += count
        return view

    def seek(self, position: int) -> None:
        if not 0 <= position <= len(self._data):
            msg = f"Seek to byte {position} outside stream of {len(self._data)} bytes"
            raise FormatError(msg, source=self.source)
        self._pos = position

    def skip(self, count: int, what: str = "padding") -> None:
        self._take(count, what)

    def read_int_be(self, what: str = "int") -> int:
        return _INT_BE.unpack(self._take(4, what))[0]

    def read_int_le(self, what: str = "int") -> int:
        return _INT_LE.unpack(self._take(4, what))[0]

    def read_double_le(self, what: str = "double") -> float:
        return _DOUBLE_LE.unpack(self._take(8, what))[0]

    def read_ints_le(self, count: int, what: str = "ints") -> np.ndarray:
        return np.frombuffer(self._take(4 * count, what), dtype="<i4").astype(np.int64)

    def read_doubles_le(self, count: int, what: str = "doubles") -> np.ndarray:
        return np.frombuffer(self._take(8 * count, what), dtype="<f8").astype(np.float64)

    def read_points_le(self, count: int, what: str = "points") -> np.ndarray:
        """Read ``count`` x, y pairs as an ``(count, 2)`` float64 array."""
        return self.read_doubles_le(2 * count, what).reshape(count, 2)


class ByteSink:
    """Append-only writer producing the final byte string."""

    __slots__ = ("_buf",)

    def __init__(self) -> None:
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    def write_int_be(self, value: int) -> None:
        self._buf += _INT_BE.pack(value)

    def write_int_le(self, value: int) -> None:
        self._buf += _INT_LE.pack(value)

    def write_double_le(self, value: float) -> None:
        self._buf += _DOUBLE_LE.pack(value)

    def write_ints_le(self, values: object) -> None:
        self._buf += np.asarray(values, dtype="<i4").tobytes()

    def write_doubles_le(self, values: object) -> None:
        self._buf += np.asarray(values, dtype="<f8").tobytes()

    def getvalue(self) -> bytes:
        return bytes(self._buf)
