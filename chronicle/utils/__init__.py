"""
Utility package exports
"""

from chronicle.utils.helpers import (
    flatten_list,
    coerce_highlights,
    extract_json_object,
    normalize_category,
    infer_category,
    clean_issue_title,
    map_priority,
    adf_to_text,
)

__all__ = [
    "flatten_list",
    "coerce_highlights",
    "extract_json_object",
    "normalize_category",
    "infer_category",
    "clean_issue_title",
    "map_priority",
    "adf_to_text",
]
