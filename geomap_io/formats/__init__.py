"""Binary codecs and text-number parsing.

- ``shapefile``: geometry (``.shp``) and index (``.shx``) codec
- ``dbase``: dBase III attribute (``.dbf``) codec
- ``number_parser``: correctly-rounded decimal to double conversion
"""
