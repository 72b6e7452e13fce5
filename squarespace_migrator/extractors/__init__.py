"""
Extractors for Squarespace export files.

This subpackage parses the XML export into ordered items and normalized
:class:`~squarespace_migrator.models.PostRecord` objects used by the rest
of the pipeline.
"""

from .squarespace_extractor import (
    ExportItem,
    discover_links,
    extract_post,
    iter_items,
    load_export,
    parse_export_string,
)

__all__ = [
    "ExportItem",
    "discover_links",
    "extract_post",
    "iter_items",
    "load_export",
    "parse_export_string",
]
