"""File-level reading and writing of shapefile triplets.

Binds the geometry codec and the attribute codec together:

- ``decode_shapefile``: in-memory ``.shp`` (+ optional ``.dbf``) bytes
  to a ``ShapefileDataset``.
- ``read_shapefile``: the same from ``<base>.shp`` / ``<base>.dbf`` on
  disk. A missing ``.dbf`` gives an id-only table and a warning.
- ``write_shapefile``: one ``.shp`` / ``.shx`` / ``.dbf`` triplet per
  geometry kind present. With more than one kind the base names get a
  ``P`` (points), ``L`` (lines) or ``A`` (areas) suffix.

Feature rows and attribute rows are not forced into sync here: row
``i`` of the table describes feature id ``i + 1`` by convention, and
``ShapefileDataset.attribute`` falls back to an id lookup when they
disagree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from geomap_io.core.config import CodecConfig
from geomap_io.core.constants import ShapeType
from geomap_io.core.exceptions import GeoMapError
from geomap_io.formats.dbase import decode_table, encode_table
from geomap_io.formats.shapefile import (
    SHAPE_TYPE_FOR,
    decode_geometry,
    encode_geometry,
    read_header,
)
from geomap_io.models.collection import Bounds, FeatureCollection
from geomap_io.models.feature import FeatureType
from geomap_io.models.report import ReadReport, WriteReport, WrittenTriplet
from geomap_io.models.table import AttributeTable
from geomap_io.utils.helpers import (
    TYPE_SUFFIXES,
    base_path,
    read_bytes,
    triplet_paths,
    write_bytes,
)

logger = logging.getLogger("geomap_io.dataset")


@dataclass
class ShapefileDataset:
    """Decoded geometry and attributes of one shapefile.

    Attributes:
        features: Features keyed by id.
        attributes: Attribute rows; column 0 holds the feature id.
        bounds: Bounding box from the geometry header.
        shape_type: File-level shape type from the geometry header.
        source: Base path the dataset was read from, if any.
        report: Summary of the read, when produced by a decode call.
    """

    features: FeatureCollection = field(default_factory=FeatureCollection)
    attributes: AttributeTable = field(default_factory=AttributeTable)
    bounds: Bounds = field(default_factory=Bounds)
    shape_type: ShapeType = ShapeType.NULL
    source: str = ""
    report: ReadReport | None = None

    def attribute(self, feature_id: int, col: int) -> str:
        """Attribute text of ``feature_id`` in column ``col`` (``""`` if absent)."""
        return self.attributes.for_feature(feature_id, col)

    def features_at(self, x: float, y: float, *, config: CodecConfig | None = None) -> list[int]:
        """Ids of the features containing ``(x, y)``.

        Points use ``config.point_tolerance``; lines and polygon
        boundaries use ``config.line_tolerance``.
        """
        config = config or CodecConfig()
        hits = []
        for feature_id, feature in self.features.items():
            tolerance = (
                config.point_tolerance
                if feature.feature_type is FeatureType.POINT
                else config.line_tolerance
            )
            if feature.contains(x, y, tolerance=tolerance):
                hits.append(feature_id)
        return hits

    @property
    def warnings(self) -> list[str]:
        return [*self.features.warnings, *self.attributes.warnings]


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def _build_report(dataset: ShapefileDataset, has_attributes: bool) -> ReadReport:
    features = dataset.features
    return ReadReport(
        source=dataset.source,
        shape_type=int(dataset.shape_type),
        feature_count=len(features),
        point_count=features.num_points,
        line_count=features.num_lines,
        polygon_count=features.num_polygons,
        row_count=dataset.attributes.row_count,
        bounding_box=list(dataset.bounds.as_tuple()),
        has_attributes=has_attributes,
        warnings=dataset.warnings,
    )


def decode_shapefile(
    geometry_bytes: bytes,
    attribute_bytes: bytes | None = None,
    *,
    source: str = "",
    config: CodecConfig | None = None,
) -> ShapefileDataset:
    """Decode an in-memory geometry stream and optional attribute stream.

    Without attribute bytes the table holds only the feature ids.

    Raises:
        FormatError: Malformed geometry or attribute stream.
        UnsupportedShapeType: Multipatch geometry.
    """
    config = config or CodecConfig()
    header = read_header(geometry_bytes, source=source)
    features, bounds = decode_geometry(geometry_bytes, source=source, config=config)
    if attribute_bytes is None:
        table = AttributeTable.id_only(features)
    else:
        table = decode_table(attribute_bytes, source=source, config=config)

    dataset = ShapefileDataset(
        features=features,
        attributes=table,
        bounds=bounds,
        shape_type=header.shape_type,
        source=source,
    )
    dataset.report = _build_report(dataset, attribute_bytes is not None)
    return dataset


def read_shapefile(path: str | Path, *, config: CodecConfig | None = None) -> ShapefileDataset:
    """Read ``<base>.shp`` and, if present, ``<base>.dbf``.

    Args:
        path: Base path, with or without a ``.shp`` / ``.dbf`` extension.
        config: Codec settings; defaults apply when omitted.

    Raises:
        CodecIOError: The geometry file (or an existing attribute file)
            cannot be read.
        FormatError: Malformed content; ``source`` names the file.
        UnsupportedShapeType: Multipatch geometry.
    """
    config = config or CodecConfig()
    paths = triplet_paths(path)
    source = str(base_path(path))
    logger.info("Shapefile read started | path=%s", source)

    geometry = read_bytes(paths.geometry)
    features, bounds = decode_geometry(geometry, source=str(paths.geometry), config=config)
    header = read_header(geometry, source=str(paths.geometry))

    has_attributes = paths.attributes.exists()
    if has_attributes:
        table = decode_table(
            read_bytes(paths.attributes), source=str(paths.attributes), config=config
        )
    else:
        table = AttributeTable.id_only(features)
        logger.warning("Attribute file missing | path=%s | using ids only", paths.attributes)
        table.warnings.append(f"Attribute file {paths.attributes} not found; using ids only")

    dataset = ShapefileDataset(
        features=features,
        attributes=table,
        bounds=bounds,
        shape_type=header.shape_type,
        source=source,
    )
    dataset.report = _build_report(dataset, has_attributes)
    logger.info(
        "Shapefile read completed | path=%s | features=%d | rows=%d | warnings=%d",
        source,
        len(features),
        table.row_count,
        len(dataset.report.warnings),
    )
    return dataset


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def attributes_for(
    attributes: AttributeTable, features: FeatureCollection, feature_type: FeatureType
) -> AttributeTable:
    """Attribute rows of one feature kind, in record order.

    Ids without a row get empty cells.
    """
    columns = range(1, attributes.column_count)
    subset = AttributeTable(attributes.headings)
    for feature_id, _ in features.of_type(feature_type):
        subset.add_row(
            [attributes.for_feature(feature_id, col) for col in columns], feature_id=feature_id
        )
    return subset


def write_shapefile(
    dataset: ShapefileDataset,
    path: str | Path,
    *,
    config: CodecConfig | None = None,
) -> WriteReport:
    """Write ``dataset`` as one triplet per geometry kind present.

    Triplets are written in point, line, polygon order. A failure stops
    the write; triplets already written are left intact.

    Raises:
        CodecIOError: An output file cannot be written.
    """
    config = config or CodecConfig()
    base = base_path(path)
    report = WriteReport(destination=str(base))
    features = dataset.features
    kinds = features.feature_types_present()
    if not kinds:
        logger.warning("Nothing to write | path=%s", base)
        report.warnings.append("Dataset has no features; nothing written")
        return report

    logger.info(
        "Shapefile write started | path=%s | kinds=%s",
        base,
        ",".join(k.value for k in kinds),
    )
    for kind in kinds:
        paths = triplet_paths(base, TYPE_SUFFIXES[kind] if len(kinds) > 1 else "")
        shp, shx = encode_geometry(features, features.bounds(kind), kind)
        try:
            dbf = encode_table(
                attributes_for(dataset.attributes, features, kind),
                config=config,
                warnings=report.warnings,
            )
        except GeoMapError:
            logger.error("Attribute encoding failed | path=%s", paths.attributes)
            raise
        for target, data in (
            (paths.geometry, shp),
            (paths.index, shx),
            (paths.attributes, dbf),
        ):
            write_bytes(target, data)
        report.triplets.append(
            WrittenTriplet(
                feature_type=kind.value,
                shape_type=int(SHAPE_TYPE_FOR[kind]),
                geometry_path=str(paths.geometry),
                index_path=str(paths.index),
                attribute_path=str(paths.attributes),
                record_count=features.count(kind),
                geometry_bytes=len(shp),
            )
        )

    logger.info(
        "Shapefile write completed | path=%s | triplets=%d | warnings=%d",
        base,
        len(report.triplets),
        len(report.warnings),
    )
    return report
