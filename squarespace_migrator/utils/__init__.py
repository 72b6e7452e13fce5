"""
Utility helpers used by the migration tool.

This subpackage exposes convenience functions for structured logging,
the error taxonomy and the end-of-run report files.
"""

from .errors import ERRORS, log_message, report_error, report_ok
from .reports import write_reports

__all__ = ["ERRORS", "log_message", "report_error", "report_ok", "write_reports"]
