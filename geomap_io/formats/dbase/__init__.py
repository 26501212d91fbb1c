"""Attribute codec for dBase III (``.dbf``) files.

- **_header**: file header and field descriptors
- **_reader**: record decoding into an AttributeTable
- **_writer**: character-field encoding sized from the data
"""

from __future__ import annotations

from geomap_io.formats.dbase._header import DbaseHeader, FieldDescriptor
from geomap_io.formats.dbase._reader import (
    decode_date,
    decode_logical,
    decode_number,
    decode_table,
)
from geomap_io.formats.dbase._writer import encode_table, field_name, unique_field_name

__all__ = [
    "DbaseHeader",
    "FieldDescriptor",
    "decode_date",
    "decode_logical",
    "decode_number",
    "decode_table",
    "encode_table",
    "field_name",
    "unique_field_name",
]
