"""Path and file helpers shared by the dataset layer.

Centralises how a shapefile base name maps to its ``.shp`` / ``.shx`` /
``.dbf`` companions and how file I/O failures become ``CodecIOError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NamedTuple

from geomap_io.core.constants import ATTRIBUTE_EXTENSION, GEOMETRY_EXTENSION, INDEX_EXTENSION
from geomap_io.core.exceptions import CodecIOError
from geomap_io.models.feature import FeatureType

logger = logging.getLogger("geomap_io.utils.helpers")

_KNOWN_EXTENSIONS = frozenset({GEOMETRY_EXTENSION, INDEX_EXTENSION, ATTRIBUTE_EXTENSION})

TYPE_SUFFIXES: dict[FeatureType, str] = {
    FeatureType.POINT: "P",
    FeatureType.LINE: "L",
    FeatureType.POLYGON: "A",
}
"""Base-name suffix per geometry kind when several kinds are written."""


class TripletPaths(NamedTuple):
    geometry: Path
    index: Path
    attributes: Path


def base_path(path: str | Path) -> Path:
    """Strip a ``.shp`` / ``.shx`` / ``.dbf`` extension if present.

    >>> base_path("data/rivers.shp").as_posix()
    'data/rivers'
    """
    p = Path(path)
    return p.with_suffix("") if p.suffix.lower() in _KNOWN_EXTENSIONS else p


def triplet_paths(base: str | Path, suffix: str = "") -> TripletPaths:
    """Companion file paths for ``base`` with an optional name suffix."""
    stem = base_path(base)
    named = stem.with_name(stem.name + suffix)
    return TripletPaths(
        named.with_name(named.name + GEOMETRY_EXTENSION),
        named.with_name(named.name + INDEX_EXTENSION),
        named.with_name(named.name + ATTRIBUTE_EXTENSION),
    )


def read_bytes(path: Path) -> bytes:
    """Read a whole file.

    Raises:
        CodecIOError: If the file cannot be opened or read.
    """
    try:
        return path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read file ({exc.strerror or exc})"
        raise CodecIOError(path, msg, stage="read") from exc


def write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path``, replacing any existing file.

    Raises:
        CodecIOError: If the file cannot be created or written.
    """
    try:
        path.write_bytes(data)
    except OSError as exc:
        msg = f"Cannot write file ({exc.strerror or exc})"
        raise CodecIOError(path, msg, stage="write") from exc
    logger.debug("File written | path=%s | bytes=%d", path, len(data))
