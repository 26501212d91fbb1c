"""Index (``.shx``) decoding.

The index repeats the main-file header and then lists one big-endian
``(offset, content_length)`` pair per record, both in 16-bit words.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from geomap_io.core.constants import BYTES_PER_WORD, INDEX_RECORD_WORDS
from geomap_io.core.exceptions import FormatError
from geomap_io.formats.shapefile._binary import ByteCursor
from geomap_io.formats.shapefile._header import ShapefileHeader

logger = logging.getLogger("geomap_io.formats.shapefile")


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """Location of one record in the main file.

    Attributes:
        offset_words: Offset of the record header from the start of the
            ``.shp`` file, in words.
        content_words: Record content length in words (header excluded).
    """

    offset_words: int
    content_words: int

    @property
    def offset_bytes(self) -> int:
        return self.offset_words * BYTES_PER_WORD

    @property
    def content_bytes(self) -> int:
        return self.content_words * BYTES_PER_WORD


def decode_index(data: bytes, *, source: str = "") -> list[IndexEntry]:
    """Decode a ``.shx`` stream into its entries.

    Raises:
        FormatError: Bad file code, truncation, or a declared length
            that does not fit whole entries.
        UnsupportedShapeType: A multipatch header.
    """
    cursor = ByteCursor(data, source=source)
    header = ShapefileHeader.read(cursor)
    body_bytes = header.file_length_bytes - cursor.position
    entry_bytes = INDEX_RECORD_WORDS * BYTES_PER_WORD
    if body_bytes < 0 or body_bytes % entry_bytes:
        msg = f"Index length {header.file_length_bytes} bytes is not a whole number of entries"
        raise FormatError(msg, source=source)

    entries = []
    for _ in range(body_bytes // entry_bytes):
        offset = cursor.read_int_be("index offset")
        length = cursor.read_int_be("index content length")
        entries.append(IndexEntry(offset, length))
    logger.debug("Index decoded | source=%s | entries=%d", source or "<bytes>", len(entries))
    return entries
