"""Unified codec exception taxonomy.

Provides a shared base exception hierarchy for the geometry, index and
attribute codecs. Every domain exception inherits from ``GeoMapError``
and carries structured context fields so callers can decide whether a
problem aborted a read or was repaired in place.

Taxonomy categories
-------------------
- ``DataFormatError``: the byte layout is not what the format requires
  (bad magic, unknown shape type, truncation). Fatal.
- ``RecoverableDataError``: a single part or field is damaged; the
  codec repairs it and keeps going.
- ``StorageError``: the underlying file could not be opened, read or
  written. Fatal for that file.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and reports.
"""

from __future__ import annotations


class GeoMapError(Exception):
    """Base exception for all codec-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Codec stage where the error occurred
            (e.g. ``"read_shp"``, ``"write_dbf"``).
        code: Machine-readable error code (e.g. ``"SHP_FORMAT_INVALID"``).
        recoverable: Whether the codec can repair the problem and continue.
        source: Name of the stream or file being processed, if known.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        recoverable: bool = False,
        source: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.recoverable = recoverable
        self.source = source
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, DataFormatError):
            return "format"
        if isinstance(self, RecoverableDataError):
            return "recoverable"
        if isinstance(self, StorageError):
            return "storage"
        return "recoverable" if self.recoverable else "fatal"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "recoverable": self.recoverable,
            "source": self.source,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class DataFormatError(GeoMapError):
    """Input layout violation. Aborts the whole decode."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class RecoverableDataError(GeoMapError):
    """Damage confined to one part or field. The codec repairs and continues."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class StorageError(GeoMapError):
    """Failure of the underlying file or stream."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Concrete errors
# ---------------------------------------------------------------------------


class FormatError(DataFormatError):
    """Bad magic number, unknown shape type or truncated stream."""

    default_stage = "read_shp"
    default_code = "SHP_FORMAT_INVALID"


class UnsupportedShapeType(DataFormatError):
    """Shape type is recognised but not supported (multipatch).

    Attributes:
        shape_type: The numeric shape-type code that was rejected.
    """

    default_stage = "read_shp"
    default_code = "SHP_SHAPE_UNSUPPORTED"

    def __init__(self, shape_type: int, message: str = "", **kwargs: object) -> None:
        self.shape_type = shape_type
        super().__init__(message or f"Unsupported shape type {shape_type}", **kwargs)


class PartIndexCorruption(RecoverableDataError):
    """A part-start index is not below the record's vertex count.

    Attributes:
        part: Zero-based position of the offending entry in the part list.
        index: The out-of-range part-start index.
        num_vertices: Vertex count declared by the record.
    """

    default_stage = "read_shp"
    default_code = "SHP_PART_INDEX_CORRUPT"

    def __init__(
        self, part: int, index: int, num_vertices: int, message: str = "", **kwargs: object
    ) -> None:
        self.part = part
        self.index = index
        self.num_vertices = num_vertices
        super().__init__(
            message
            or (
                f"Part index {index} not below vertex count {num_vertices}; "
                f"ignoring part {part} onwards"
            ),
            **kwargs,
        )


class NumberFormatError(RecoverableDataError, ValueError):
    """Text cannot be parsed as the requested number type."""

    default_stage = "parse_number"
    default_code = "NUMBER_FORMAT_INVALID"


class CodecIOError(StorageError):
    """An input or output file could not be opened, read or written.

    Attributes:
        path: The offending file.
    """

    default_code = "FILE_IO_FAILED"

    def __init__(self, path: object, message: str, **kwargs: object) -> None:
        self.path = str(path)
        kwargs.setdefault("source", self.path)
        super().__init__(f"{message}: {self.path}", **kwargs)


class ModelValidationError(GeoMapError, ValueError):
    """Raised when a feature or table is constructed with invalid values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        GeoMapError.__init__(self, formatted)
