# treesummary/tree.py

"""
Filesystem traversal and tree rendering.

This module walks a directory depth-first and builds an ``anytree`` tree of
:class:`Entry` nodes, classifying every regular file as text or binary and
updating a :class:`~treesummary.stats.Statistics` accumulator as it goes.
The same tree then drives both the tree section and the contents section of
the report, so the two always agree on which entries exist and in which
order.

Traversal is deterministic (siblings sorted alphabetically by name,
directories and files interleaved), never follows symbolic links, and relies
on strict pruning: an excluded directory's subtree is never visited.
Rules from ``.gitignore`` and ``.ignore`` files apply to the directory that
holds them and everything below it.
"""


from __future__ import annotations

import enum
import logging
import os
from pathlib import Path
from typing import Iterator

from anytree import NodeMixin, PreOrderIter, RenderTree
from anytree.render import ContStyle
from pathspec import PathSpec

from treesummary.content import (
    DEFAULT_SAMPLE_SIZE,
    Verdict,
    classify,
    decode,
    split_lines,
)
from treesummary.errors import FatalInputError
from treesummary.matcher import PathMatcher, load_ignore_rules
from treesummary.stats import Statistics

logger = logging.getLogger(__name__)


class EntryKind(enum.Enum):
    DIRECTORY = "directory"
    FILE = "file"
    SYMLINK = "symlink"


class Entry(NodeMixin):
    """
    One filesystem node discovered during a traversal.

    Attributes
    ----------
    name : str
        Base name of the entry.
    rel_path : str
        POSIX path relative to the traversal root; ``""`` for the root.
    kind : EntryKind
        Directory, regular file or symbolic link.
    fs_path : pathlib.Path | None
        Location on disk.
    size_bytes : int | None
        Size in bytes, for files.
    verdict : Verdict | None
        Text/binary classification, for files.
    lines : list[str] | None
        Content lines of a text file.
    error : str | None
        Reason a file or directory could not be read.
    link_target : str | None
        Target of a symlink as stored in the link, never resolved.
    """

    def __init__(
        self,
        name: str,
        rel_path: str,
        kind: EntryKind,
        *,
        fs_path: Path | None = None,
        link_target: str | None = None,
        parent: Entry | None = None,
    ) -> None:
        self.name = name
        self.rel_path = rel_path
        self.kind = kind
        self.fs_path = fs_path
        self.link_target = link_target
        self.size_bytes: int | None = None
        self.verdict: Verdict | None = None
        self.lines: list[str] | None = None
        self.error: str | None = None
        self.parent = parent

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.kind is EntryKind.SYMLINK

    @property
    def label(self) -> str:
        """Text shown for this entry in the tree section."""
        if self.kind is EntryKind.SYMLINK:
            return f"{self.name} -> {self.link_target}"
        if self.kind is EntryKind.DIRECTORY:
            label = f"{self.name.rstrip('/')}/"
            if self.error is not None:
                label += f" [unreadable: {self.error}]"
            return label
        return self.name

    def __repr__(self) -> str:
        return f"Entry({self.rel_path or self.name!r}, {self.kind.value})"


def _reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _list_dir(path: Path) -> list[os.DirEntry]:
    """
    Return the entries of a directory in report order.

    Siblings are sorted by name, case-insensitively with a case-sensitive
    tie-break, so the order does not depend on the filesystem.
    """

    with os.scandir(path) as it:
        entries = list(it)
    entries.sort(key=lambda e: (e.name.casefold(), e.name))
    return entries


def _kind_of(de: os.DirEntry) -> EntryKind | None:
    # Symlinks are checked first and never followed.
    if de.is_symlink():
        return EntryKind.SYMLINK
    if de.is_dir(follow_symlinks=False):
        return EntryKind.DIRECTORY
    if de.is_file(follow_symlinks=False):
        return EntryKind.FILE
    return None


# (directory rel_path, rules) pairs from the root down to the current directory
IgnoreStack = tuple[tuple[str, PathSpec], ...]


def _is_ignored(rel: str, is_dir: bool, ignores: IgnoreStack) -> bool:
    for base, spec in ignores:
        sub = rel[len(base) + 1 :] if base else rel
        if is_dir:
            sub += "/"
        if spec.match_file(sub):
            return True
    return False


class _Walker:
    def __init__(
        self,
        matcher: PathMatcher,
        stats: Statistics,
        sample_size: int,
        include_hidden: bool,
        respect_ignore_files: bool,
    ) -> None:
        self.matcher = matcher
        self.stats = stats
        self.sample_size = sample_size
        self.include_hidden = include_hidden
        self.respect_ignore_files = respect_ignore_files

    def push_ignores(self, node: Entry, ignores: IgnoreStack) -> IgnoreStack:
        if not self.respect_ignore_files:
            return ignores
        spec = load_ignore_rules(node.fs_path)
        if spec is None:
            return ignores
        return ignores + ((node.rel_path, spec),)

    def visit_children(
        self, node: Entry, children: list[os.DirEntry], ignores: IgnoreStack = ()
    ) -> None:
        ignores = self.push_ignores(node, ignores)
        for de in children:
            rel = f"{node.rel_path}/{de.name}" if node.rel_path else de.name

            if not self.include_hidden and de.name.startswith("."):
                logger.debug("Skipping hidden entry %s", rel)
                continue
            if self.matcher.matches(rel):
                logger.debug("Excluding %s", rel)
                continue

            try:
                kind = _kind_of(de)
            except OSError as exc:
                logger.warning("Could not stat %s: %s", de.path, _reason(exc))
                continue

            if ignores and _is_ignored(rel, kind is EntryKind.DIRECTORY, ignores):
                logger.debug("Ignoring %s", rel)
                continue

            if kind is EntryKind.SYMLINK:
                self.visit_symlink(node, de, rel)
            elif kind is EntryKind.DIRECTORY:
                self.visit_directory(node, de, rel, ignores)
            elif kind is EntryKind.FILE:
                self.visit_file(node, de, rel)
            else:
                logger.debug("Skipping special file %s", rel)

    def visit_symlink(self, parent: Entry, de: os.DirEntry, rel: str) -> Entry:
        try:
            target = os.readlink(de.path)
        except OSError:
            target = "[unreadable link]"
        return Entry(
            de.name,
            rel,
            EntryKind.SYMLINK,
            fs_path=Path(de.path),
            link_target=os.fsdecode(target),
            parent=parent,
        )

    def visit_directory(
        self, parent: Entry, de: os.DirEntry, rel: str, ignores: IgnoreStack = ()
    ) -> Entry:
        node = Entry(de.name, rel, EntryKind.DIRECTORY, fs_path=Path(de.path), parent=parent)
        self.stats.add_directory()
        try:
            children = _list_dir(node.fs_path)
        except OSError as exc:
            node.error = _reason(exc)
            logger.warning("Could not read directory %s: %s", de.path, node.error)
            return node
        self.visit_children(node, children, ignores)
        return node

    def visit_file(self, parent: Entry, de: os.DirEntry, rel: str) -> Entry:
        node = Entry(de.name, rel, EntryKind.FILE, fs_path=Path(de.path), parent=parent)
        data = b""
        try:
            node.size_bytes = de.stat(follow_symlinks=False).st_size
            with open(de.path, "rb") as f:
                data = f.read(self.sample_size)
                node.verdict = classify(data, self.sample_size)
                if node.verdict is Verdict.TEXT:
                    data += f.read()
        except OSError as exc:
            # Unreadable files are reported like binary ones, with the reason.
            node.verdict = Verdict.BINARY
            node.error = _reason(exc)
            logger.warning("Could not read file %s: %s", de.path, node.error)

        if node.verdict is Verdict.TEXT:
            node.lines = split_lines(decode(data))
            self.stats.add_file(de.name, len(node.lines))
        else:
            self.stats.add_file(de.name)
        return node


def build_tree(
    root: Path,
    *,
    matcher: PathMatcher | None = None,
    stats: Statistics | None = None,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    include_hidden: bool = False,
    respect_ignore_files: bool = True,
) -> Entry:
    """
    Walk ``root`` and return the tree of non-excluded entries.

    The root directory itself is always the returned node and counts as one
    directory in ``stats``.

    Parameters
    ----------
    root : pathlib.Path
        Directory to traverse.
    matcher : PathMatcher | None, optional
        Exclusion rules applied to every path relative to ``root``.
    stats : Statistics | None, optional
        Accumulator updated in place. A throwaway one is used if omitted.
    sample_size : int, default=8192
        Bytes read from each file to classify it.
    include_hidden : bool, default=False
        Whether entries whose name starts with ``.`` are visited.
    respect_ignore_files : bool, default=True
        Whether ``.gitignore`` and ``.ignore`` files found along the way prune
        the entries they match.

    Returns
    -------
    Entry
        The root node.

    Raises
    ------
    FatalInputError
        If ``root`` does not exist, is not a directory, or cannot be listed.
    ValueError
        If ``sample_size`` is not positive.
    """

    if sample_size <= 0:
        raise ValueError(f"sample_size must be positive, got {sample_size}")
    matcher = matcher if matcher is not None else PathMatcher()
    stats = stats if stats is not None else Statistics()

    root = Path(root)
    try:
        resolved = root.resolve(strict=True)
    except OSError as exc:
        raise FatalInputError(root, f"Input directory does not exist ({_reason(exc)})") from exc
    if not resolved.is_dir():
        raise FatalInputError(root, "Input path is not a directory")
    try:
        children = _list_dir(resolved)
    except OSError as exc:
        raise FatalInputError(root, f"Cannot read input directory ({_reason(exc)})") from exc

    node = Entry(resolved.name or str(resolved), "", EntryKind.DIRECTORY, fs_path=resolved)
    stats.add_directory()
    walker = _Walker(matcher, stats, sample_size, include_hidden, respect_ignore_files)
    walker.visit_children(node, children)
    return node


def draw_tree(node: Entry) -> list[str]:
    """Render the tree section, one line per entry, using box-drawing connectors."""
    return [f"{pre}{n.label}" for pre, _, n in RenderTree(node, style=ContStyle())]


def iter_files(node: Entry) -> Iterator[Entry]:
    """Yield the file entries under ``node`` in tree order."""
    return PreOrderIter(node, filter_=lambda n: n.kind is EntryKind.FILE)
