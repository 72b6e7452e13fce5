"""
Parsers and converters used by the migration pipeline.

This subpackage exposes ``convert_html_to_blocks`` from
:mod:`squarespace_migrator.parsers.block_parser` and the
:class:`ContentRewriter` that prepares post bodies for it.
"""

from .block_parser import STAGES, convert_html_to_blocks
from .content_rewriter import ContentRewriter, rewrite_links

__all__ = ["STAGES", "convert_html_to_blocks", "ContentRewriter", "rewrite_links"]
