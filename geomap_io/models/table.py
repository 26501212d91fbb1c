"""Attribute table: a rectangular grid of text cells.

Row ``i`` holds the attributes of feature id ``i + 1``. Column 0 is
always the feature id as text (heading ``"id"``); the remaining columns
come from the attribute file. Every cell is stored as a string; the
numeric getters are views computed on demand with the number parser
and fall back to zero on unparsable text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence

from geomap_io.core.constants import ID_COLUMN
from geomap_io.core.exceptions import NumberFormatError
from geomap_io.formats.number_parser import parse_double, parse_int

logger = logging.getLogger("geomap_io.models.table")


class AttributeTable:
    """Row-per-feature table of string cells.

    Attributes:
        warnings: Recoverable diagnostics recorded while the table was
            decoded (deleted rows, unknown field types, bad values).
    """

    def __init__(
        self,
        headings: Sequence[str] | None = None,
        rows: Iterable[Sequence[str]] = (),
    ) -> None:
        self._headings = list(headings) if headings else [ID_COLUMN]
        self._rows: list[list[str]] = [[str(cell) for cell in row] for row in rows]
        self.warnings: list[str] = []

    @classmethod
    def id_only(cls, feature_ids: Iterable[int]) -> AttributeTable:
        """Build a single-column table holding just the given feature ids."""
        return cls([ID_COLUMN], ([str(fid)] for fid in feature_ids))

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def headings(self) -> tuple[str, ...]:
        return tuple(self._headings)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        """Widest of the heading row and every data row."""
        return max([len(self._headings), *(len(row) for row in self._rows)])

    def rows(self) -> Iterator[tuple[str, ...]]:
        for row in self._rows:
            yield tuple(row)

    def row(self, index: int) -> tuple[str, ...]:
        return tuple(self._rows[index])

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def get_string(self, row: int, col: int) -> str:
        """Cell text, or ``""`` when ``row`` or ``col`` is out of range."""
        if not 0 <= row < len(self._rows):
            logger.debug("Unknown row | row=%d | rows=%d", row, len(self._rows))
            return ""
        cells = self._rows[row]
        if not 0 <= col < len(cells):
            logger.debug("Unknown column | row=%d | col=%d", row, col)
            return ""
        return cells[col]

    def get_int(self, row: int, col: int) -> int:
        """Cell as a 32-bit int; 0 when empty or not an integer."""
        try:
            return parse_int(self.get_string(row, col))
        except NumberFormatError:
            return 0

    def get_float(self, row: int, col: int) -> float:
        """Cell as a double; 0.0 when empty or not numeric."""
        try:
            return parse_double(self.get_string(row, col))
        except NumberFormatError:
            return 0.0

    def get_row_index(self, name: str) -> int:
        """Index of the first row whose column 0 equals ``name``, or -1."""
        for index, cells in enumerate(self._rows):
            if cells and cells[0] == name:
                return index
        return -1

    def get_row_name(self, row: int) -> str:
        return self.get_string(row, 0)

    def for_feature(self, feature_id: int, col: int) -> str:
        """Cell text of ``col`` for ``feature_id``, or ``""`` if absent.

        Rows are normally aligned so that row ``feature_id - 1`` belongs to
        the feature; otherwise the id column is searched.
        """
        key = str(feature_id)
        row = feature_id - 1
        if self.get_row_name(row) != key:
            row = self.get_row_index(key)
        return self.get_string(row, col) if row >= 0 else ""

    def match(self, value: str, col: int) -> set[int]:
        """Feature ids of every row whose ``col`` cell equals ``value``."""
        matches: set[int] = set()
        for index in range(len(self._rows)):
            if self.get_string(index, col) == value:
                try:
                    matches.add(parse_int(self.get_row_name(index)))
                except NumberFormatError:
                    logger.debug("Row without numeric id | row=%d", index)
        return matches

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_headings(self, headings: Sequence[str]) -> None:
        self._headings = list(headings)

    def set_string(self, row: int, col: int, value: str) -> None:
        """Replace one cell, padding the row with empty cells if needed.

        Raises:
            IndexError: If ``row`` does not exist or ``col`` is negative.
        """
        if not 0 <= row < len(self._rows):
            msg = f"Row {row} out of range (0..{len(self._rows) - 1})"
            raise IndexError(msg)
        if col < 0:
            msg = f"Column {col} must not be negative"
            raise IndexError(msg)
        cells = self._rows[row]
        if col >= len(cells):
            cells.extend([""] * (col + 1 - len(cells)))
        cells[col] = value

    def add_row(self, values: Sequence[str], feature_id: int | None = None) -> int:
        """Append a row; column 0 is filled with the feature id.

        Args:
            values: Cells for columns 1 onwards.
            feature_id: Id to store in column 0; defaults to the next
                1-based row number.

        Returns:
            Index of the new row.
        """
        fid = len(self._rows) + 1 if feature_id is None else feature_id
        self._rows.append([str(fid), *(str(v) for v in values)])
        return len(self._rows) - 1

    def calc_max_widths(self) -> list[int]:
        """Maximum character width of each column, headings included."""
        widths = [0] * self.column_count
        for col, heading in enumerate(self._headings):
            widths[col] = max(widths[col], len(heading))
        for cells in self._rows:
            for col, cell in enumerate(cells):
                widths[col] = max(widths[col], len(cell))
        return widths

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"AttributeTable(columns={list(self._headings)!r}, rows={len(self._rows)})"
