"""Trade import: spreadsheet reading and row normalization."""

from aijournal.importer.normalizer import (
    LocalNormalizer,
    Normalizer,
    map_columns,
    match_field,
    normalize_rows,
    parse_date,
    parse_number,
)
from aijournal.importer.spreadsheet import frame_to_rows, read_rows

__all__ = [
    "LocalNormalizer",
    "Normalizer",
    "normalize_rows",
    "map_columns",
    "match_field",
    "parse_number",
    "parse_date",
    "read_rows",
    "frame_to_rows",
]
