"""geoMap shapefile I/O.

Reads and writes ESRI shapefile triplets: the geometry file (``.shp``),
its offset index (``.shx``) and the dBase III attribute table
(``.dbf``). Geometry decodes into an id-indexed feature collection,
attributes into a text grid row-aligned with the feature ids, and both
encode back out in the same binary layout.
"""

__version__ = "0.1.0"
