"""Attribute encoding: ``AttributeTable`` to ``.dbf`` bytes.

Every column is written as a character (``C``) field sized to its
widest encoded cell, capped at ``CodecConfig.max_field_width``. Wider
cells are truncated with a warning. Headings that collide once cut to
ten characters get a ``_N`` suffix, also with a warning. Column 0 (the
feature id) is not written because decoding synthesizes it from the
row number.
"""

from __future__ import annotations

import datetime
import logging

from geomap_io.core.config import CodecConfig
from geomap_io.core.constants import DBF_ACTIVE_FLAG, DBF_EOF_MARKER, DBF_MAX_FIELD_NAME
from geomap_io.formats.dbase._header import DbaseHeader, FieldDescriptor
from geomap_io.models.table import AttributeTable

logger = logging.getLogger("geomap_io.formats.dbase")


def field_name(heading: str, col: int) -> str:
    """On-disk name for column ``col``: the heading cut to 10 characters."""
    name = heading.strip() or f"FIELD{col}"
    return name[:DBF_MAX_FIELD_NAME]


def unique_field_name(name: str, taken: set[str]) -> str:
    """Return ``name``, or a ``_N``-suffixed variant not in ``taken``.

    Names compare case-insensitively, as dBase readers do.

    >>> unique_field_name("POPULATION", {"POPULATION"})
    'POPULATI_1'
    """
    candidate = name
    n = 0
    while candidate.upper() in taken:
        n += 1
        suffix = f"_{n}"
        candidate = name[: DBF_MAX_FIELD_NAME - len(suffix)] + suffix
    return candidate


def encode_table(
    table: AttributeTable,
    *,
    config: CodecConfig | None = None,
    last_update: datetime.date | None = None,
    warnings: list[str] | None = None,
) -> bytes:
    """Encode ``table`` as a dBase III file.

    Args:
        table: Rows to write; column 0 is skipped.
        config: Codec settings (text encoding, maximum field width).
        last_update: Header date stamp; today when omitted.
        warnings: If given, truncation and rename diagnostics are appended to it.

    Returns:
        The complete ``.dbf`` content, end-of-file marker included.
    """
    config = config or CodecConfig()
    encoding = config.dbf_encoding
    headings = table.headings
    columns = range(1, table.column_count)

    cells = [
        [table.get_string(row, col).encode(encoding, errors="replace") for col in columns]
        for row in range(table.row_count)
    ]

    fields: list[FieldDescriptor] = []
    taken: set[str] = set()
    for i, col in enumerate(columns):
        heading = headings[col] if col < len(headings) else ""
        shortened = field_name(heading, col)
        name = unique_field_name(shortened, taken)
        taken.add(name.upper())
        if name != shortened:
            logger.warning("Duplicate field name | heading=%s | name=%s", heading, name)
            if warnings is not None:
                warnings.append(f"Field {heading!r} renamed to {name} to keep names unique")
        elif len(heading.strip()) > DBF_MAX_FIELD_NAME:
            logger.debug("Field name shortened | heading=%s | name=%s", heading, name)
        widest = max((len(row[i]) for row in cells), default=0)
        width = max(1, min(widest, config.max_field_width))
        if widest > width:
            truncated = sum(1 for row in cells if len(row[i]) > width)
            message = (
                f"Field {name}: {truncated} value(s) wider than {width} characters truncated"
            )
            logger.warning(
                "Attribute values truncated | field=%s | width=%d | count=%d",
                name,
                width,
                truncated,
            )
            if warnings is not None:
                warnings.append(message)
        fields.append(FieldDescriptor(name, "C", width, 0))

    header = DbaseHeader.build(fields, table.row_count, last_update)
    out = bytearray(header.to_bytes(encoding))
    for row in cells:
        out.append(DBF_ACTIVE_FLAG)
        for value, field in zip(row, fields, strict=True):
            out += value[: field.length].ljust(field.length, b" ")
    out.append(DBF_EOF_MARKER)

    logger.debug(
        "Attributes encoded | fields=%d | rows=%d | bytes=%d",
        len(fields),
        table.row_count,
        len(out),
    )
    return bytes(out)
