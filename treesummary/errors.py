# treesummary/errors.py

"""
Exceptions raised by treesummary.

Only run-level failures are exceptions. Problems with a single file or
directory are recorded on the corresponding tree entry and rendered inline
in the report instead.
"""

from __future__ import annotations

from pathlib import Path


class SummaryError(Exception):
    """Base class for errors that abort a summary run."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message}: {path}")


class FatalInputError(SummaryError):
    """The input directory is missing, not a directory, or unreadable."""


class FatalOutputError(SummaryError):
    """The report could not be written to its destination."""
