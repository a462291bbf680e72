# treesummary/content.py

"""
File content classification and formatting.

This module decides whether a file is text or binary from a bounded prefix
of its bytes, and renders text files as line-numbered blocks for the
contents section of the report.

Features include:
- NUL-byte and non-printable-ratio binary detection,
- bounded sampling (the whole file is never read just to classify it),
- verbatim, 1-based line numbering with aligned numbers,
- fixed placeholders for binary and unreadable files.
"""


from __future__ import annotations

import enum
from pathlib import Path
from typing import Sequence

DEFAULT_SAMPLE_SIZE = 8192
BINARY_THRESHOLD = 0.30

SEPARATOR = "-" * 80
BINARY_PLACEHOLDER = "[binary file, contents omitted]"

# printable ASCII plus tab, newline and carriage return
TEXT_BYTES = frozenset({9, 10, 13} | set(range(32, 127)))


class Verdict(enum.Enum):
    TEXT = "text"
    BINARY = "binary"


def _check_sample_size(sample_size: int) -> None:
    if sample_size <= 0:
        raise ValueError(f"sample_size must be positive, got {sample_size}")


def classify(data: bytes, sample_size: int = DEFAULT_SAMPLE_SIZE) -> Verdict:
    """
    Heuristically classify raw bytes as text or binary.

    Only the first ``sample_size`` bytes are inspected. The data is binary if
    the sample contains a NUL byte, or if the proportion of bytes outside
    printable ASCII (plus tab, newline and carriage return) is strictly
    greater than ``BINARY_THRESHOLD``. Empty data is text.

    Parameters
    ----------
    data : bytes
        File contents, or any prefix of them at least ``sample_size`` long.
    sample_size : int, default=8192
        Number of leading bytes used for the decision.

    Returns
    -------
    Verdict
        ``Verdict.BINARY`` or ``Verdict.TEXT``.

    Raises
    ------
    ValueError
        If ``sample_size`` is not positive.
    """

    _check_sample_size(sample_size)
    sample = data[:sample_size]
    if not sample:
        return Verdict.TEXT

    if b"\x00" in sample:
        return Verdict.BINARY

    non_text = sum(b not in TEXT_BYTES for b in sample)
    if non_text / len(sample) > BINARY_THRESHOLD:
        return Verdict.BINARY
    return Verdict.TEXT


def read_sample(path: Path, sample_size: int = DEFAULT_SAMPLE_SIZE) -> bytes:
    """Read at most ``sample_size`` bytes from the start of ``path``."""
    _check_sample_size(sample_size)
    with path.open("rb") as f:
        return f.read(sample_size)


def is_binary_file(path: Path, *, sample_size: int = DEFAULT_SAMPLE_SIZE) -> bool:
    """
    Return ``True`` if ``path`` looks binary.

    Raises
    ------
    ValueError
        If ``path`` does not refer to a regular file.
    OSError
        If the file cannot be read.
    """

    if not path.is_file():
        raise ValueError(f"Not a file: {path}")
    return classify(read_sample(path, sample_size), sample_size) is Verdict.BINARY


def split_lines(text: str) -> list[str]:
    """
    Split text into physical lines.

    Lines are split on ``\\n`` only. A line ending in ``\\r\\n`` loses its
    ``\\r``; a trailing line without a newline is kept, and a final newline
    does not produce an extra empty line.
    """

    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def decode(data: bytes, encoding: str = "utf-8") -> str:
    return data.decode(encoding, errors="replace")


def number_lines(lines: Sequence[str]) -> list[str]:
    """Prefix each line with its 1-based number, right-aligned to a common width."""
    width = len(str(len(lines)))
    return [f"{i:>{width}} | {line}" for i, line in enumerate(lines, start=1)]


def error_placeholder(reason: str) -> str:
    return f"[error reading file: {reason}]"


def file_block(
    header_path: str,
    *,
    lines: Sequence[str] | None = None,
    placeholder: str | None = None,
) -> list[str]:
    """
    Format one block of the contents section.

    The block is the path header, a separator, either the numbered ``lines``
    or a single ``placeholder`` line, a closing separator and a blank line.

    Parameters
    ----------
    header_path : str
        Path shown in the header, relative to the traversal root.
    lines : Sequence[str] | None
        Text lines of the file, unnumbered.
    placeholder : str | None
        Replacement body for binary or unreadable files. Takes precedence
        over ``lines``.

    Returns
    -------
    list[str]
        The lines of the block.
    """

    body = [placeholder] if placeholder is not None else number_lines(lines or [])
    return [f"{header_path}:", SEPARATOR, *body, SEPARATOR, ""]
