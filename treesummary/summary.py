# treesummary/summary.py

"""
Report assembly.

:func:`run` is the single entry point of the library: it walks a directory,
renders the tree, contents and statistics sections, and returns them as an
immutable :class:`RenderedReport`. Nothing is written to disk here; see
:func:`write_report` for the atomic writer used by the command line.
"""


from __future__ import annotations

import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from treesummary.content import (
    BINARY_PLACEHOLDER,
    DEFAULT_SAMPLE_SIZE,
    error_placeholder,
    file_block,
)
from treesummary.errors import FatalOutputError
from treesummary.matcher import PathMatcher
from treesummary.stats import Statistics
from treesummary.tree import Entry, build_tree, draw_tree, iter_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryConfig:
    """Settings for one run, as assembled by the command line."""

    root: Path
    output: Path | None = None
    exclude: tuple[str, ...] = ()
    sample_size: int = DEFAULT_SAMPLE_SIZE
    include_hidden: bool = False
    respect_ignore_files: bool = True


@dataclass(frozen=True)
class RenderedReport:
    """The three sections of a finished report, each a tuple of lines."""

    tree: tuple[str, ...]
    contents: tuple[str, ...]
    statistics: tuple[str, ...]
    stats: Statistics = field(compare=False, hash=False, repr=False)

    def lines(self) -> Iterator[str]:
        yield from self.tree
        yield ""
        yield from self.contents
        yield from self.statistics

    def text(self) -> str:
        return "\n".join(self.lines()) + "\n"


def render_contents(root: Entry) -> list[str]:
    """Render one block per file entry, in tree order."""
    out: list[str] = []
    for entry in iter_files(root):
        if entry.error is not None:
            out += file_block(entry.rel_path, placeholder=error_placeholder(entry.error))
        elif entry.lines is None:
            out += file_block(entry.rel_path, placeholder=BINARY_PLACEHOLDER)
        else:
            out += file_block(entry.rel_path, lines=entry.lines)
    return out


def run(
    root: Path,
    exclude: Iterable[str] | PathMatcher = (),
    *,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    include_hidden: bool = False,
    respect_ignore_files: bool = True,
) -> RenderedReport:
    """
    Summarize a directory into a report.

    Parameters
    ----------
    root : pathlib.Path
        Directory to summarize.
    exclude : Iterable[str] | PathMatcher, optional
        Exclusion globs, or an already built matcher.
    sample_size : int, default=8192
        Bytes read from each file to decide whether it is binary.
    include_hidden : bool, default=False
        Whether dot-entries are included.
    respect_ignore_files : bool, default=True
        Whether ``.gitignore`` and ``.ignore`` files prune the walk.

    Returns
    -------
    RenderedReport
        The fully assembled report.

    Raises
    ------
    FatalInputError
        If ``root`` is missing, not a directory, or unreadable.
    """

    matcher = exclude if isinstance(exclude, PathMatcher) else PathMatcher(exclude)
    stats = Statistics()
    tree = build_tree(
        root,
        matcher=matcher,
        stats=stats,
        sample_size=sample_size,
        include_hidden=include_hidden,
        respect_ignore_files=respect_ignore_files,
    )
    logger.debug(
        "Visited %d files in %d directories under %s",
        stats.total_files,
        stats.total_directories,
        root,
    )
    return RenderedReport(
        tree=tuple(draw_tree(tree)),
        contents=tuple(render_contents(tree)),
        statistics=tuple(stats.render()),
        stats=stats,
    )


def summarize(config: SummaryConfig) -> RenderedReport:
    """Run with the settings in ``config`` and write the report if it names an output."""
    report = run(
        config.root,
        config.exclude,
        sample_size=config.sample_size,
        include_hidden=config.include_hidden,
        respect_ignore_files=config.respect_ignore_files,
    )
    if config.output is not None:
        write_report(report, config.output)
    return report


def _target_mode(destination: Path) -> int:
    """Mode for a new report: the existing file's, else 0o666 minus the umask."""
    try:
        return stat.S_IMODE(destination.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_report(report: RenderedReport, destination: Path) -> None:
    """
    Write ``report`` to ``destination`` atomically.

    The text goes to a temporary file in the destination's directory which
    then replaces the destination, so readers never see a partial report.
    An existing destination keeps its permission bits.

    Raises
    ------
    FatalOutputError
        If the destination cannot be written.
    """

    destination = Path(destination)
    parent = destination.parent
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=parent
        )
        with os.fdopen(fd, "w", encoding="utf-8", errors="replace", newline="\n") as f:
            f.write(report.text())
        os.chmod(tmp_name, _target_mode(destination))
        os.replace(tmp_name, destination)
    except OSError as exc:
        raise FatalOutputError(
            destination, f"Cannot write output file ({exc.strerror or exc})"
        ) from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
