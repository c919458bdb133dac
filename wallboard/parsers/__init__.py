"""
wallboard/parsers — document → RecordSet.
"""

from wallboard.parsers.header_mapper import COLUMN_SYNONYMS, HeaderMap, map_headers
from wallboard.parsers.row_normalizer import extract_record_set, is_within_window, normalize_table
from wallboard.parsers.table_locator import collect_documents, locate_table, survey_tables
from wallboard.parsers.time_parser import parse_time

__all__ = [
    "COLUMN_SYNONYMS",
    "HeaderMap",
    "collect_documents",
    "extract_record_set",
    "is_within_window",
    "locate_table",
    "map_headers",
    "normalize_table",
    "parse_time",
    "survey_tables",
]
