"""Pydantic outcome models for file-level reads and writes.

These are the structured summaries returned by the dataset layer: what
was read or written, where, and which recoverable problems were
repaired on the way.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ReadReport(BaseModel):
    """Summary of one ``read_shapefile`` / ``decode_shapefile`` call.

    Attributes:
        source: Base path of the shapefile, or ``""`` for in-memory bytes.
        shape_type: Shape-type code from the geometry file header.
        feature_count: Number of features decoded.
        point_count: Decoded point features.
        line_count: Decoded polyline features.
        polygon_count: Decoded polygon features.
        row_count: Effective attribute rows (deleted rows excluded).
        bounding_box: ``[min_x, min_y, max_x, max_y]`` from the header.
        has_attributes: Whether an attribute file was decoded.
        warnings: Recoverable diagnostics from every codec involved.
    """

    source: str = ""
    shape_type: int = 0
    feature_count: int = 0
    point_count: int = 0
    line_count: int = 0
    polygon_count: int = 0
    row_count: int = 0
    bounding_box: list[float] = Field(default_factory=list)
    has_attributes: bool = False
    warnings: list[str] = Field(default_factory=list)


class WrittenTriplet(BaseModel):
    """One ``.shp`` / ``.shx`` / ``.dbf`` family produced by a write.

    Attributes:
        feature_type: ``"point"``, ``"line"`` or ``"polygon"``.
        shape_type: Shape-type code written to the headers.
        geometry_path: Path of the ``.shp`` file.
        index_path: Path of the ``.shx`` file.
        attribute_path: Path of the ``.dbf`` file.
        record_count: Records written to each of the three files.
        geometry_bytes: Size of the ``.shp`` file.
    """

    feature_type: str
    shape_type: int
    geometry_path: str
    index_path: str
    attribute_path: str
    record_count: int = 0
    geometry_bytes: int = 0


class WriteReport(BaseModel):
    """Summary of one ``write_shapefile`` call.

    Attributes:
        destination: Base path requested by the caller.
        triplets: One entry per geometry kind written.
        warnings: Recoverable diagnostics (e.g. truncated attribute text).
    """

    destination: str = ""
    triplets: list[WrittenTriplet] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def files(self) -> list[str]:
        """Every path written, in write order."""
        return [
            path
            for t in self.triplets
            for path in (t.geometry_path, t.index_path, t.attribute_path)
        ]
