# treesummary/matcher.py

"""
Exclusion pattern matching.

Patterns use git wildmatch syntax through ``pathspec`` and are evaluated
against paths relative to the traversal root, in POSIX form:

- ``*`` matches any run of characters except ``/``,
- ``**`` matches across directories,
- ``?`` matches exactly one character other than ``/``,
- ``[abc]`` / ``[!abc]`` match one character from (or outside) a set.

Matching is case-sensitive. A path is excluded when any pattern matches the
path itself, one of its ancestor directories, or any single segment of it,
so excluding ``node_modules`` removes every ``node_modules`` directory and
everything below it.

The same machinery reads ``.gitignore`` / ``.ignore`` files for the walker.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator

from pathspec import PathSpec

logger = logging.getLogger(__name__)

IGNORE_FILES = (".gitignore", ".ignore")


def compile_pattern(pattern: str) -> PathSpec:
    """
    Compile one git wildmatch pattern.

    Raises
    ------
    ValueError
        If ``pathspec`` rejects the pattern or its regular expression does
        not compile.
    """

    try:
        return PathSpec.from_lines("gitwildmatch", [pattern])
    except re.error as exc:
        raise ValueError(f"{pattern!r}: {exc}") from exc


def _normalize_pattern(pattern: str) -> str:
    pattern = pattern.strip()
    while pattern.startswith("./"):
        pattern = pattern[2:]
    pattern = pattern.lstrip("/")
    if len(pattern) > 1:
        pattern = pattern.rstrip("/")
    return pattern


def _escape_leading(pattern: str) -> str:
    # "#" and "!" would turn a command-line pattern into a comment or a negation.
    if pattern[:1] in ("#", "!"):
        return "\\" + pattern
    return pattern


def candidates(rel_path: str) -> Iterator[str]:
    """
    Yield every string a relative path is matched against.

    For ``a/b/c.txt`` this is ``a``, ``a/b``, ``a/b/c.txt`` (the path and its
    ancestors) followed by the individual segments ``b`` and ``c.txt``.
    """

    segments = [s for s in rel_path.split("/") if s and s != "."]
    for k in range(1, len(segments) + 1):
        yield "/".join(segments[:k])
    yield from segments[1:]


class PathMatcher:
    """
    Immutable set of exclusion globs.

    Malformed patterns never raise: they are logged and compared literally.
    """

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        kept: list[str] = []
        specs: list[PathSpec] = []
        literals: set[str] = set()

        for raw in patterns:
            pattern = _normalize_pattern(raw)
            if not pattern:
                continue
            kept.append(pattern)
            try:
                specs.append(compile_pattern(_escape_leading(pattern)))
            except ValueError as exc:
                logger.warning("Malformed exclusion pattern, matching literally: %s", exc)
                literals.add(pattern)

        self._patterns = tuple(kept)
        self._specs = tuple(specs)
        self._literals = frozenset(literals)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def __repr__(self) -> str:
        return f"PathMatcher({list(self._patterns)!r})"

    def matches(self, rel_path: str) -> bool:
        """Return ``True`` if ``rel_path`` (or an ancestor, or a segment) is excluded."""
        if not self._patterns:
            return False
        for candidate in candidates(rel_path):
            if candidate in self._literals:
                return True
            if any(spec.match_file(candidate) for spec in self._specs):
                return True
        return False


def load_ignore_rules(directory: Path) -> PathSpec | None:
    """
    Read the ``.gitignore`` and ``.ignore`` files of one directory.

    Unreadable files and malformed lines are logged and skipped. Returns
    ``None`` when the directory has no rules.
    """

    patterns = []
    for name in IGNORE_FILES:
        path = directory / name
        try:
            with path.open("r", encoding="utf-8", errors="replace") as f:
                lines = f.read().splitlines()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc.strerror or exc)
            continue

        for line in lines:
            try:
                patterns.extend(compile_pattern(line).patterns)
            except ValueError as exc:
                logger.warning("Skipping malformed rule in %s: %s", path, exc)

    if not any(p.include is not None for p in patterns):
        return None
    return PathSpec(patterns)


def parse_patterns(text: str | None) -> tuple[str, ...]:
    """Split the comma-separated command-line form into individual patterns."""
    if not text:
        return ()
    return tuple(p.strip() for p in text.split(",") if p.strip())
