"""Attribute decoding: ``.dbf`` bytes to an ``AttributeTable``.

Column 0 of the result is the synthesized feature id (the 1-based
number of each surviving row). Field values are rendered as text:

- ``C`` character: trimmed of whitespace and NUL padding.
- ``L`` logical: ``T``/``t``/``Y``/``y`` -> ``"true"``,
  ``F``/``f``/``N``/``n`` -> ``"false"``, ``?`` or blank -> ``""``.
- ``D`` date: ``YYYYMMDD`` -> ISO ``YYYY-MM-DD``; invalid -> ``""``.
- ``N`` with no decimals: int, then long, then double; ``"0.0"`` if
  none parse. ``N`` with decimals and ``F``: double, else ``"0.0"``.
- Any other type code is read as character data.

Rows flagged deleted (``*``) are skipped and never become rows.
"""

from __future__ import annotations

import datetime
import logging
import string

from geomap_io.core.config import CodecConfig
from geomap_io.core.constants import DBF_DELETED_FLAG, DBF_EOF_MARKER, ID_COLUMN
from geomap_io.core.exceptions import NumberFormatError
from geomap_io.formats.dbase._header import DbaseHeader, FieldDescriptor, dbf_format_error
from geomap_io.formats.number_parser import parse_double, parse_int, parse_long
from geomap_io.models.table import AttributeTable

logger = logging.getLogger("geomap_io.formats.dbase")

_PADDING = string.whitespace + "\x00"
_TRUE_CODES = frozenset("TtYy")
_FALSE_CODES = frozenset("FfNn")
_UNSET_CODES = frozenset("? \x00")
_KNOWN_TYPES = frozenset("CNFLD")


def decode_logical(text: str) -> str | None:
    """Render a logical cell; ``None`` flags an unrecognised code."""
    code = text[:1]
    if code in _TRUE_CODES:
        return "true"
    if code in _FALSE_CODES:
        return "false"
    if code == "" or code in _UNSET_CODES:
        return ""
    return None


def decode_date(text: str) -> str:
    """Render ``YYYYMMDD`` as ``YYYY-MM-DD``; blank or invalid dates give ``""``."""
    raw = text.strip(_PADDING)
    if len(raw) != 8 or not raw.isdigit():
        return ""
    try:
        return datetime.date(int(raw[:4]), int(raw[4:6]), int(raw[6:])).isoformat()
    except ValueError:
        return ""


def decode_number(text: str, *, integral: bool) -> str:
    """Render a numeric cell, never raising.

    Integral fields try 32-bit then 64-bit integers before falling back
    to a double; anything unparsable becomes ``"0.0"``.
    """
    if integral:
        for parse in (parse_int, parse_long):
            try:
                return str(parse(text))
            except NumberFormatError:
                continue
    try:
        return str(parse_double(text))
    except NumberFormatError:
        return "0.0"


class _RowDecoder:
    def __init__(self, header: DbaseHeader, table: AttributeTable, encoding: str) -> None:
        self.header = header
        self.table = table
        self.encoding = encoding
        self._unknown_types_reported: set[int] = set()

    def warn(self, fmt: str, *args: object) -> None:
        logger.warning(fmt, *args)
        self.table.warnings.append(fmt % args)

    def decode_row(self, record: bytes, row_number: int) -> list[str]:
        values = []
        offset = 1
        for col, field in enumerate(self.header.fields):
            raw = record[offset : offset + field.length]
            offset += field.length
            text = raw.decode(self.encoding, errors="replace")
            values.append(self._decode_field(text, col, field, row_number))
        return values

    def _decode_field(self, text: str, col: int, field: FieldDescriptor, row_number: int) -> str:
        if field.length == 0:
            return ""
        code = field.type_code.upper()
        if code == "L":
            value = decode_logical(text)
            if value is None:
                self.warn(
                    "Row %d field %s: unknown logical value %r", row_number, field.name, text[:1]
                )
                return ""
            return value
        if code == "D":
            return decode_date(text)
        if code == "N":
            return decode_number(text, integral=field.decimal_count == 0)
        if code == "F":
            return decode_number(text, integral=False)
        if code not in _KNOWN_TYPES and col not in self._unknown_types_reported:
            self._unknown_types_reported.add(col)
            self.warn(
                "Field %s: unknown type %r read as character data", field.name, field.type_code
            )
        return text.strip(_PADDING)


def decode_table(
    data: bytes, *, source: str = "", config: CodecConfig | None = None
) -> AttributeTable:
    """Decode a ``.dbf`` stream.

    Args:
        data: The whole attribute file.
        source: Name used in errors and log lines.
        config: Codec settings; ``dbf_encoding`` selects the text encoding.

    Returns:
        Table with an ``id`` column followed by one column per field.

    Raises:
        FormatError: Malformed header or records truncated before the
            declared record count.
    """
    config = config or CodecConfig()
    header = DbaseHeader.parse(data, source=source, encoding=config.dbf_encoding)
    table = AttributeTable([ID_COLUMN, *(f.name for f in header.fields)])
    decoder = _RowDecoder(header, table, config.dbf_encoding)

    offset = header.header_length
    deleted = 0
    for record_index in range(header.num_records):
        if offset < len(data) and data[offset] == DBF_EOF_MARKER:
            decoder.warn(
                "End-of-file marker after %d of %d declared records",
                record_index,
                header.num_records,
            )
            break
        record = data[offset : offset + header.record_length]
        if len(record) < header.record_length:
            msg = (
                f"dBase record {record_index + 1} truncated: "
                f"{len(record)} of {header.record_length} bytes"
            )
            raise dbf_format_error(msg, source)
        offset += header.record_length
        if record[0] == DBF_DELETED_FLAG:
            deleted += 1
            continue
        table.add_row(decoder.decode_row(record, record_index + 1))

    if deleted:
        decoder.warn("Skipped %d deleted record(s)", deleted)
    logger.info(
        "Attributes decoded | source=%s | fields=%d | rows=%d | deleted=%d",
        source or "<bytes>",
        len(header.fields),
        table.row_count,
        deleted,
    )
    return table
