# treesummary/stats.py

"""
Statistics accumulated during a traversal and their rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath

NO_EXTENSION = "[no extension]"


def extension_of(name: str) -> str:
    """Lower-cased suffix of ``name`` including the dot; ``""`` if there is none."""
    return PurePosixPath(name).suffix.lower()


@dataclass
class ExtensionStats:
    files: int = 0
    lines: int = 0


@dataclass
class Statistics:
    """
    Mutable counters for one run.

    Every counted file lands in exactly one extension bucket, so the bucket
    file and line counts always sum to ``total_files`` and ``total_lines``.
    """

    total_files: int = 0
    total_directories: int = 0
    total_lines: int = 0
    extensions: dict[str, ExtensionStats] = field(default_factory=dict)

    def add_directory(self) -> None:
        self.total_directories += 1

    def add_file(self, name: str, lines: int = 0) -> None:
        bucket = self.extensions.setdefault(extension_of(name), ExtensionStats())
        bucket.files += 1
        bucket.lines += lines
        self.total_files += 1
        self.total_lines += lines

    def sorted_extensions(self) -> list[tuple[str, ExtensionStats]]:
        """Buckets in ascending extension order, the extensionless bucket last."""
        return sorted(self.extensions.items(), key=lambda kv: (kv[0] == "", kv[0]))

    def render(self) -> list[str]:
        out = [
            "Project Statistics",
            "==================",
            f"Total files: {self.total_files}",
            f"Total directories: {self.total_directories}",
            f"Total lines of code: {self.total_lines}",
        ]
        rows = self.sorted_extensions()
        if not rows:
            return out

        labels = [ext or NO_EXTENSION for ext, _ in rows]
        label_w = max(len(label) for label in labels)
        files_w = max(len(str(s.files)) for _, s in rows)
        lines_w = max(len(str(s.lines)) for _, s in rows)

        out += ["", "File types:"]
        for label, (_, s) in zip(labels, rows):
            files = f"{s.files:>{files_w}} {'file' if s.files == 1 else 'files'}"
            lines = f"{s.lines:>{lines_w}} {'line' if s.lines == 1 else 'lines'}"
            out.append(f"  {label:<{label_w}}  {files:<{files_w + 6}}  {lines}".rstrip())
        return out
