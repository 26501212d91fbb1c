"""Codec configuration loaded from environment variables.

All configuration values have defaults that reproduce the classic
shapefile behaviour (ISO-8859-1 attribute text, 254-character fields,
zero proximity tolerance).

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range, so bad settings surface before any file is read.
"""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass

from geomap_io.core.constants import DBF_MAX_FIELD_WIDTH
from geomap_io.core.exceptions import GeoMapError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class ConfigValidationError(GeoMapError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        self.message = message
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class CodecConfig:
    """Immutable codec configuration.

    Built once by the caller and threaded through the dataset layer.

    Attributes:
        dbf_encoding: Text encoding of dBase character fields.
        max_field_width: Widest character field written to a ``.dbf`` (1-254).
        point_tolerance: Distance within which a location "contains" a point.
        line_tolerance: Distance within which a location lies on a line.
        strict_record_length: Treat unread bytes inside a geometry record
            as a format error instead of skipping them with a warning.
    """

    dbf_encoding: str = "latin-1"
    max_field_width: int = DBF_MAX_FIELD_WIDTH
    point_tolerance: float = 0.0
    line_tolerance: float = 0.0
    strict_record_length: bool = False

    @classmethod
    def from_env(cls) -> CodecConfig:
        """Load and validate configuration from ``GEOMAP_*`` environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or the
                encoding is unknown.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``GEOMAP_MAX_FIELD_WIDTH=wide``).
        """
        config = cls(
            dbf_encoding=os.getenv("GEOMAP_DBF_ENCODING", "latin-1"),
            max_field_width=int(os.getenv("GEOMAP_MAX_FIELD_WIDTH", str(DBF_MAX_FIELD_WIDTH))),
            point_tolerance=float(os.getenv("GEOMAP_POINT_TOLERANCE", "0")),
            line_tolerance=float(os.getenv("GEOMAP_LINE_TOLERANCE", "0")),
            strict_record_length=(
                os.getenv("GEOMAP_STRICT_RECORD_LENGTH", "false").strip().lower() in _TRUE_VALUES
            ),
        )
        _validate(config)
        return config


def _validate(config: CodecConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    try:
        codecs.lookup(config.dbf_encoding)
    except LookupError as exc:
        raise ConfigValidationError(
            "GEOMAP_DBF_ENCODING",
            config.dbf_encoding,
            "must name a known text encoding",
        ) from exc

    if not 1 <= config.max_field_width <= DBF_MAX_FIELD_WIDTH:
        raise ConfigValidationError(
            "GEOMAP_MAX_FIELD_WIDTH",
            config.max_field_width,
            f"must be between 1 and {DBF_MAX_FIELD_WIDTH} (characters)",
        )

    if config.point_tolerance < 0:
        raise ConfigValidationError(
            "GEOMAP_POINT_TOLERANCE",
            config.point_tolerance,
            "must be >= 0 (map units)",
        )

    if config.line_tolerance < 0:
        raise ConfigValidationError(
            "GEOMAP_LINE_TOLERANCE",
            config.line_tolerance,
            "must be >= 0 (map units)",
        )
