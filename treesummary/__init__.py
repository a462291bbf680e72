"""
treesummary — single-file text snapshots of a directory tree.

This package walks a directory and produces one human-readable report made
of:
- the directory structure drawn as a tree,
- the contents of every text file with line numbers,
- file, directory and line-count statistics broken down by extension.

Binary files are detected from a short byte sample and replaced by a
placeholder. Symbolic links are listed but never followed.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .content import Verdict, classify, is_binary_file
from .errors import FatalInputError, FatalOutputError, SummaryError
from .matcher import PathMatcher, parse_patterns
from .stats import Statistics
from .summary import RenderedReport, SummaryConfig, run, summarize, write_report
from .tree import Entry, EntryKind, build_tree, draw_tree

__all__ = [
    "Entry",
    "EntryKind",
    "FatalInputError",
    "FatalOutputError",
    "PathMatcher",
    "RenderedReport",
    "Statistics",
    "SummaryConfig",
    "SummaryError",
    "Verdict",
    "build_tree",
    "classify",
    "draw_tree",
    "is_binary_file",
    "parse_patterns",
    "run",
    "summarize",
    "write_report",
]
