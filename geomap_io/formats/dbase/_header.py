"""dBase III file header and field descriptors.

Layout (all integers little-endian):

==========  =====  =====================================================
Offset      Size   Content
==========  =====  =====================================================
0           1      Version (``0x03``)
1           3      Last update as YY, MM, DD (YY counted from 1900)
4           4      Number of records
8           2      Header length in bytes, descriptors and terminator included
10          2      Record length in bytes, deletion flag included
12          20     Reserved
32          32*n   Field descriptors
32+32n      1      Terminator ``0x0D``
==========  =====  =====================================================

Each 32-byte descriptor holds an 11-byte NUL-padded name, a type code,
4 reserved bytes, the field length, the decimal count and 14 reserved
bytes.
"""

from __future__ import annotations

import datetime
import logging
import struct
from dataclasses import dataclass

from geomap_io.core.constants import (
    DBF_FIELD_DESCRIPTOR_BYTES,
    DBF_HEADER_PREFIX_BYTES,
    DBF_HEADER_TERMINATOR,
    DBF_VERSION,
)
from geomap_io.core.exceptions import FormatError

logger = logging.getLogger("geomap_io.formats.dbase")

_PREFIX = struct.Struct("<B3BIHH20x")
_DESCRIPTOR = struct.Struct("<11sc4xBB14x")


def dbf_format_error(message: str, source: str = "") -> FormatError:
    return FormatError(message, stage="read_dbf", code="DBF_FORMAT_INVALID", source=source)


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One column of a dBase file.

    Attributes:
        name: Field name (at most 10 characters on disk).
        type_code: One-letter type: ``C``, ``N``, ``F``, ``L``, ``D``...
        length: Width of the field in bytes.
        decimal_count: Digits after the decimal point for numeric fields.
    """

    name: str
    type_code: str
    length: int
    decimal_count: int = 0

    def to_bytes(self, encoding: str) -> bytes:
        raw_name = self.name.encode(encoding, errors="replace")[:10]
        return _DESCRIPTOR.pack(
            raw_name, self.type_code.encode("ascii"), self.length, self.decimal_count
        )


@dataclass(frozen=True, slots=True)
class DbaseHeader:
    """Decoded dBase III header."""

    num_records: int
    header_length: int
    record_length: int
    fields: tuple[FieldDescriptor, ...]
    last_update: datetime.date | None = None
    version: int = DBF_VERSION

    @classmethod
    def build(
        cls,
        fields: list[FieldDescriptor],
        num_records: int,
        last_update: datetime.date | None = None,
    ) -> DbaseHeader:
        """Create a header whose lengths are derived from ``fields``."""
        return cls(
            num_records=num_records,
            header_length=DBF_HEADER_PREFIX_BYTES + DBF_FIELD_DESCRIPTOR_BYTES * len(fields) + 1,
            record_length=1 + sum(f.length for f in fields),
            fields=tuple(fields),
            last_update=last_update,
        )

    @classmethod
    def parse(cls, data: bytes, *, source: str = "", encoding: str = "latin-1") -> DbaseHeader:
        """Parse the header at the start of ``data``.

        Raises:
            FormatError: Truncated header, inconsistent lengths, or field
                widths exceeding the record length.
        """
        if len(data) < DBF_HEADER_PREFIX_BYTES:
            msg = f"dBase stream of {len(data)} bytes is shorter than its 32-byte header"
            raise dbf_format_error(msg, source)
        version, yy, mm, dd, num_records, header_length, record_length = _PREFIX.unpack_from(
            data, 0
        )
        if header_length < DBF_HEADER_PREFIX_BYTES + 1 or header_length > len(data):
            msg = f"dBase header length {header_length} is invalid for a {len(data)}-byte stream"
            raise dbf_format_error(msg, source)

        fields: list[FieldDescriptor] = []
        offset = DBF_HEADER_PREFIX_BYTES
        while (
            offset + DBF_FIELD_DESCRIPTOR_BYTES <= header_length
            and data[offset] != DBF_HEADER_TERMINATOR
        ):
            raw_name, raw_type, length, decimals = _DESCRIPTOR.unpack_from(data, offset)
            name = raw_name.split(b"\x00", 1)[0].decode(encoding, errors="replace").strip()
            fields.append(FieldDescriptor(name, raw_type.decode("latin-1"), length, decimals))
            offset += DBF_FIELD_DESCRIPTOR_BYTES

        used = 1 + sum(f.length for f in fields)
        if used > record_length:
            msg = f"dBase fields need {used} bytes per record but record length is {record_length}"
            raise dbf_format_error(msg, source)
        if used < record_length:
            logger.debug(
                "dBase record padding | source=%s | used=%d | record_length=%d",
                source,
                used,
                record_length,
            )

        return cls(
            num_records=num_records,
            header_length=header_length,
            record_length=record_length,
            fields=tuple(fields),
            last_update=_decode_date(yy, mm, dd),
            version=version,
        )

    def to_bytes(self, encoding: str = "latin-1") -> bytes:
        stamp = self.last_update or datetime.date.today()
        prefix = _PREFIX.pack(
            self.version,
            max(0, min(stamp.year - 1900, 255)),
            stamp.month,
            stamp.day,
            self.num_records,
            self.header_length,
            self.record_length,
        )
        descriptors = b"".join(f.to_bytes(encoding) for f in self.fields)
        return prefix + descriptors + bytes([DBF_HEADER_TERMINATOR])


def _decode_date(yy: int, mm: int, dd: int) -> datetime.date | None:
    try:
        return datetime.date(1900 + yy, mm, dd)
    except ValueError:
        return None
