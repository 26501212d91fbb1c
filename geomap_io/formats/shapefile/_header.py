"""The 100-byte header shared by ``.shp`` and ``.shx`` files."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from geomap_io.core.constants import (
    BYTES_PER_WORD,
    FILE_CODE,
    FILE_VERSION,
    HEADER_BYTES,
    ShapeType,
)
from geomap_io.core.exceptions import FormatError, UnsupportedShapeType
from geomap_io.formats.shapefile._binary import ByteCursor, ByteSink
from geomap_io.models.collection import Bounds

logger = logging.getLogger("geomap_io.formats.shapefile")


def resolve_shape_type(code: int, *, source: str = "", where: str = "") -> ShapeType:
    """Map a stored shape-type code to ``ShapeType``.

    Raises:
        UnsupportedShapeType: For multipatch (31).
        FormatError: For any code outside the format's table.
    """
    suffix = f" in {where}" if where else ""
    try:
        shape_type = ShapeType(code)
    except ValueError as exc:
        msg = f"Unknown shape type {code}{suffix}"
        raise FormatError(msg, source=source) from exc
    if shape_type is ShapeType.MULTIPATCH:
        raise UnsupportedShapeType(
            code, f"Multipatch shapes are not supported{suffix}", source=source
        )
    return shape_type


@dataclass(frozen=True, slots=True)
class ShapefileHeader:
    """Decoded main-file header.

    Attributes:
        shape_type: File-level shape type.
        file_length_words: Total file length in 16-bit words, header included.
        bounds: 2-D bounding box of all shapes.
        z_range: ``(z_min, z_max)``; read and carried but unused.
        m_range: ``(m_min, m_max)``; read and carried but unused.
        version: Format version (1000).
    """

    shape_type: ShapeType
    file_length_words: int
    bounds: Bounds
    z_range: tuple[float, float] = (0.0, 0.0)
    m_range: tuple[float, float] = (0.0, 0.0)
    version: int = FILE_VERSION

    @property
    def file_length_bytes(self) -> int:
        return self.file_length_words * BYTES_PER_WORD

    @classmethod
    def read(cls, cursor: ByteCursor) -> ShapefileHeader:
        """Read and validate a header from the start of ``cursor``.

        Raises:
            FormatError: Bad file code, unknown shape type, or fewer than
                100 bytes.
            UnsupportedShapeType: Multipatch file.
        """
        if cursor.size < HEADER_BYTES:
            msg = f"Stream of {cursor.size} bytes is shorter than the {HEADER_BYTES}-byte header"
            raise FormatError(msg, source=cursor.source)
        file_code = cursor.read_int_be("file code")
        if file_code != FILE_CODE:
            msg = f"Not a shapefile: file code {file_code}, expected {FILE_CODE}"
            raise FormatError(msg, source=cursor.source)
        cursor.skip(20, "unused header words")
        file_length_words = cursor.read_int_be("file length")
        version = cursor.read_int_le("version")
        if version != FILE_VERSION:
            logger.debug(
                "Unexpected shapefile version | source=%s | version=%d", cursor.source, version
            )
        shape_type = resolve_shape_type(
            cursor.read_int_le("shape type"), source=cursor.source, where="file header"
        )
        box = tuple(cursor.read_double_le("bounding box") for _ in range(4))
        ranges = [cursor.read_double_le("z/m range") for _ in range(4)]
        return cls(
            shape_type=shape_type,
            file_length_words=file_length_words,
            bounds=Bounds.from_tuple(box),  # type: ignore[arg-type]
            z_range=(ranges[0], ranges[1]),
            m_range=(ranges[2], ranges[3]),
            version=version,
        )

    def write(self, sink: ByteSink) -> None:
        sink.write_int_be(FILE_CODE)
        for _ in range(5):
            sink.write_int_be(0)
        sink.write_int_be(self.file_length_words)
        sink.write_int_le(self.version)
        sink.write_int_le(int(self.shape_type))
        sink.write_doubles_le(
            [*self.bounds.as_tuple(), *self.z_range, *self.m_range]
        )
