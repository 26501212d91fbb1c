"""Tests for the unified exception taxonomy.

Validates:
- GeoMapError hierarchy and structured attributes
- Category classification (format, recoverable, storage, fatal)
- ``to_error_dict()`` produces stable payload keys
- Every codec exception is a GeoMapError subclass
"""

from __future__ import annotations

from pathlib import Path

import pytest

from geomap_io.core.config import ConfigValidationError
from geomap_io.core.exceptions import (
    CodecIOError,
    DataFormatError,
    FormatError,
    GeoMapError,
    ModelValidationError,
    NumberFormatError,
    PartIndexCorruption,
    RecoverableDataError,
    StorageError,
    UnsupportedShapeType,
)


class TestGeoMapErrorBase:
    """GeoMapError base class behavior."""

    def test_default_attributes(self) -> None:
        err = GeoMapError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.recoverable is False
        assert err.source == ""

    def test_custom_attributes(self) -> None:
        err = GeoMapError(
            "fail", stage="read_dbf", code="X", recoverable=True, source="roads.dbf"
        )
        assert err.stage == "read_dbf"
        assert err.code == "X"
        assert err.recoverable is True
        assert err.source == "roads.dbf"

    def test_str_is_message(self) -> None:
        assert str(GeoMapError("human-readable error")) == "human-readable error"

    def test_to_error_dict_keys(self) -> None:
        d = GeoMapError("x", stage="s", code="C").to_error_dict()
        assert set(d.keys()) == {"category", "code", "stage", "message", "recoverable", "source"}

    def test_base_category_follows_recoverable_flag(self) -> None:
        assert GeoMapError("x").category == "fatal"
        assert GeoMapError("x", recoverable=True).category == "recoverable"


class TestCategories:
    """Category bases set recoverability and category names."""

    def test_format_category(self) -> None:
        err = DataFormatError("bad")
        assert err.category == "format"
        assert err.recoverable is False

    def test_recoverable_category(self) -> None:
        err = RecoverableDataError("repaired")
        assert err.category == "recoverable"
        assert err.recoverable is True

    def test_storage_category(self) -> None:
        err = StorageError("disk")
        assert err.category == "storage"
        assert err.recoverable is False


class TestConcreteErrors:
    """Concrete codec exceptions carry their context."""

    def test_format_error_defaults(self) -> None:
        err = FormatError("truncated", source="a.shp")
        assert isinstance(err, DataFormatError)
        assert err.stage == "read_shp"
        assert err.code == "SHP_FORMAT_INVALID"
        assert err.to_error_dict()["source"] == "a.shp"

    def test_format_error_stage_override(self) -> None:
        err = FormatError("bad dbf", stage="read_dbf", code="DBF_FORMAT_INVALID")
        assert err.stage == "read_dbf"
        assert err.code == "DBF_FORMAT_INVALID"

    def test_unsupported_shape_type(self) -> None:
        err = UnsupportedShapeType(31)
        assert err.shape_type == 31
        assert "31" in err.message
        assert err.category == "format"

    def test_part_index_corruption(self) -> None:
        err = PartIndexCorruption(1, 1000, 10)
        assert (err.part, err.index, err.num_vertices) == (1, 1000, 10)
        assert err.recoverable is True
        assert "1000" in err.message

    def test_number_format_error_is_value_error(self) -> None:
        err = NumberFormatError("nope")
        assert isinstance(err, ValueError)
        assert err.category == "recoverable"
        assert err.code == "NUMBER_FORMAT_INVALID"

    def test_codec_io_error_names_path(self) -> None:
        err = CodecIOError(Path("data/roads.shp"), "Cannot read file", stage="read")
        assert err.path == str(Path("data/roads.shp"))
        assert err.source == err.path
        assert err.message.endswith(err.path)
        assert err.code == "FILE_IO_FAILED"
        assert err.category == "storage"

    def test_model_validation_error(self) -> None:
        err = ModelValidationError("Polyline", "part_starts", (0, 1), "too short")
        assert isinstance(err, ValueError)
        assert err.model == "Polyline"
        assert err.field_name == "part_starts"
        assert "Polyline.part_starts" in err.message


class TestHierarchy:
    """Every codec exception is catchable as GeoMapError."""

    @pytest.mark.parametrize(
        "exc",
        [
            FormatError("x"),
            UnsupportedShapeType(31),
            PartIndexCorruption(0, 5, 3),
            NumberFormatError("x"),
            CodecIOError("f", "x"),
            ModelValidationError("M", "f", 1, "x"),
            ConfigValidationError("K", 1, "x"),
        ],
    )
    def test_is_geomap_error(self, exc: GeoMapError) -> None:
        assert isinstance(exc, GeoMapError)
        assert exc.to_error_dict()["message"]
