# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Failure accounting for writes copied into the spreadsheet mirror."""
from contextlib import contextmanager

from member_directory.core.errors import UpstreamError
from member_directory.core.logging import get_logger
from member_directory.metrics import SHEET_MIRROR_FAILURES

logger = get_logger(__name__)


@contextmanager
def mirror_failures(operation: str, subject: str):
    """Count and log any mirror failure, surfacing it as an ``UpstreamError``.

    The primary store has already been written when this runs; the caller's
    request still fails so the divergence is visible.
    """
    try:
        yield
    except Exception as exc:
        SHEET_MIRROR_FAILURES.inc()
        logger.error("Sheet mirror %s failed for %s: %s", operation, subject, exc)
        if isinstance(exc, UpstreamError):
            raise
        raise UpstreamError(f"Spreadsheet mirror error during {operation}") from exc
