# tests/test_summary.py
import os
import stat
import sys
from pathlib import Path

import pytest

from treesummary import (
    FatalInputError,
    FatalOutputError,
    SummaryConfig,
    run,
    summarize,
    write_report,
)
from treesummary.content import BINARY_PLACEHOLDER, SEPARATOR


def _make_file(p: Path, content: bytes = b"x"):
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(content)


def _extract_blocks(contents):
    """
    Extract (header, body) blocks from the contents section.

    A block starts with a ``<path>:`` line followed by a separator, and its
    body runs until the closing separator.
    """
    blocks = []
    lines = list(contents)
    i = 0
    while i < len(lines):
        if i + 1 < len(lines) and lines[i].endswith(":") and lines[i + 1] == SEPARATOR:
            header = lines[i][:-1]
            end = lines.index(SEPARATOR, i + 2)
            blocks.append((header, lines[i + 2 : end]))
            i = end + 1
        else:
            i += 1
    return blocks


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "proj"
    _make_file(root / "README", b"readme\n")
    _make_file(root / "src/main.py", b"import sys\n\nprint(sys.argv)\n")
    _make_file(root / "src/util.py", b"x = 1")
    _make_file(root / "assets/logo.png", b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    _make_file(root / "docs/guide.md", b"# Guide\n")
    _make_file(root / "docs/empty.md", b"")
    _make_file(root / "node_modules/dep/index.js", b"module.exports = 1;\n")
    return root


def test_scenario_excluded_subdirectory(tmp_path: Path):
    root = tmp_path / "proj"
    _make_file(root / "a.txt", b"hello\nworld\n")
    _make_file(root / "sub/b.bin", b"\x00\x01\x02")

    report = run(root, ["sub"])

    assert report.tree == ("proj/", "└── a.txt")
    assert report.contents == ("a.txt:", SEPARATOR, "1 | hello", "2 | world", SEPARATOR, "")
    assert report.statistics == (
        "Project Statistics",
        "==================",
        "Total files: 1",
        "Total directories: 1",
        "Total lines of code: 2",
        "",
        "File types:",
        "  .txt  1 file   2 lines",
    )
    assert report.text() == "\n".join(
        [*report.tree, "", *report.contents, *report.statistics]
    ) + "\n"


def test_runs_are_deterministic(project: Path):
    assert run(project).text() == run(project).text()


def test_exclusion_is_transitive(project: Path):
    report = run(project, ["node_modules"])
    text = report.text()

    assert "node_modules" not in text
    assert "index.js" not in text
    assert ".js" not in report.stats.extensions


def test_statistics_are_consistent_with_contents(project: Path):
    report = run(project, ["node_modules"])
    blocks = _extract_blocks(report.contents)
    stats = report.stats

    assert len(blocks) == stats.total_files == 6
    assert stats.total_lines == sum(b.lines for b in stats.extensions.values())
    assert stats.total_lines == 1 + 3 + 1 + 1
    # root, assets, docs, src
    assert stats.total_directories == 4
    assert f"Total files: {stats.total_files}" in report.statistics


def test_contents_follow_tree_order(project: Path):
    report = run(project, ["node_modules"])
    headers = [h for h, _ in _extract_blocks(report.contents)]

    assert headers == [
        "assets/logo.png",
        "docs/empty.md",
        "docs/guide.md",
        "README",
        "src/main.py",
        "src/util.py",
    ]
    order_in_tree = [line.split("── ")[-1] for line in report.tree[1:]]
    file_names = [h.rsplit("/", 1)[-1] for h in headers]
    assert [n for n in order_in_tree if n in file_names] == file_names


def test_binary_and_empty_blocks(project: Path):
    blocks = dict(_extract_blocks(run(project).contents))

    assert blocks["assets/logo.png"] == [BINARY_PLACEHOLDER]
    assert blocks["docs/empty.md"] == []
    assert blocks["src/main.py"] == ["1 | import sys", "2 | ", "3 | print(sys.argv)"]
    assert blocks["src/util.py"] == ["1 | x = 1"]


def test_line_numbering_round_trip(tmp_path: Path):
    original = [f"    row {i} \t with  spaces" for i in range(1, 13)]
    _make_file(tmp_path / "data.txt", ("\n".join(original)).encode())

    (header, body), = _extract_blocks(run(tmp_path).contents)

    assert header == "data.txt"
    assert len(body) == 12
    for i, (line, orig) in enumerate(zip(body, original), start=1):
        number, _, text = line.partition(" | ")
        assert int(number) == i
        assert text == orig


def test_extension_table_lists_extensionless_last(project: Path):
    stats_lines = run(project, ["node_modules"]).statistics
    table = stats_lines[stats_lines.index("File types:") + 1 :]
    labels = [row.split()[0] for row in table]

    assert labels == [".md", ".png", ".py", "[no"]


@pytest.mark.skipif(sys.platform.startswith("win"), reason="Symlink creation needs privileges on Windows")
def test_symlinked_directory_contents_never_appear(tmp_path: Path):
    outside = tmp_path / "outside"
    _make_file(outside / "secret.txt", b"top secret\n")
    root = tmp_path / "proj"
    _make_file(root / "a.txt", b"a\n")
    (root / "shortcut").symlink_to(outside, target_is_directory=True)
    (root / "alias.txt").symlink_to(outside / "secret.txt")

    report = run(root)
    text = report.text()

    assert "top secret" not in text
    assert "secret.txt:" not in text
    assert report.tree[-1] == f"└── shortcut -> {outside}"
    assert [h for h, _ in _extract_blocks(report.contents)] == ["a.txt"]
    assert report.stats.total_files == 1


def test_missing_root_is_fatal(tmp_path: Path):
    with pytest.raises(FatalInputError):
        run(tmp_path / "nope")


def test_write_report_is_atomic(tmp_path: Path):
    root = tmp_path / "proj"
    _make_file(root / "a.txt", b"hello\n")
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    out = out_dir / "summary.txt"
    out.write_text("previous")

    report = run(root)
    write_report(report, out)

    assert out.read_text(encoding="utf-8") == report.text()
    assert os.listdir(out_dir) == ["summary.txt"]


@pytest.mark.skipif(os.name != "posix", reason="Permission bits test is POSIX-only")
def test_new_report_follows_umask(tmp_path: Path):
    root = tmp_path / "proj"
    _make_file(root / "a.txt", b"hello\n")
    out = tmp_path / "summary.txt"

    old_umask = os.umask(0o022)
    try:
        write_report(run(root), out)
    finally:
        os.umask(old_umask)

    assert stat.S_IMODE(out.stat().st_mode) == 0o644


@pytest.mark.skipif(os.name != "posix", reason="Permission bits test is POSIX-only")
def test_overwritten_report_keeps_its_mode(tmp_path: Path):
    root = tmp_path / "proj"
    _make_file(root / "a.txt", b"hello\n")
    out = tmp_path / "summary.txt"
    out.write_text("previous")
    out.chmod(0o640)

    write_report(run(root), out)

    assert stat.S_IMODE(out.stat().st_mode) == 0o640
    assert "a.txt" in out.read_text(encoding="utf-8")


def test_failed_write_leaves_destination_untouched(tmp_path: Path, monkeypatch):
    root = tmp_path / "proj"
    _make_file(root / "a.txt", b"hello\n")
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    out = out_dir / "summary.txt"
    out.write_text("previous")

    def broken_replace(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(os, "replace", broken_replace)
    report = run(root)
    with pytest.raises(FatalOutputError, match="No space left on device"):
        write_report(report, out)

    assert out.read_text() == "previous"
    assert os.listdir(out_dir) == ["summary.txt"]


def test_output_into_missing_directory_is_fatal(tmp_path: Path):
    root = tmp_path / "proj"
    _make_file(root / "a.txt")
    config = SummaryConfig(root=root, output=tmp_path / "missing" / "out.txt")

    with pytest.raises(FatalOutputError) as exc_info:
        summarize(config)
    assert exc_info.value.path == tmp_path / "missing" / "out.txt"


def test_summarize_with_config(tmp_path: Path):
    root = tmp_path / "proj"
    _make_file(root / "keep.py", b"pass\n")
    _make_file(root / "drop.log", b"noise\n")
    _make_file(root / ".env", b"SECRET=1\n")
    out = tmp_path / "summary.txt"

    report = summarize(
        SummaryConfig(root=root, output=out, exclude=("*.log",), include_hidden=True)
    )

    written = out.read_text(encoding="utf-8")
    assert written == report.text()
    assert "keep.py" in written
    assert ".env" in written
    assert "drop.log" not in written


def test_gitignored_file_is_absent_everywhere(tmp_path: Path):
    root = tmp_path / "proj"
    _make_file(root / ".gitignore", b"*.log\n")
    _make_file(root / "app.py", b"run()\n")
    _make_file(root / "debug.log", b"line one\nline two\n")

    report = run(root)

    assert "debug.log" not in "\n".join(report.tree)
    assert [h for h, _ in _extract_blocks(report.contents)] == ["app.py"]
    assert ".log" not in report.stats.extensions
    assert "Total lines of code: 1" in report.statistics

    unfiltered = run(root, respect_ignore_files=False)
    assert "debug.log" in [h for h, _ in _extract_blocks(unfiltered.contents)]


def test_report_is_hashable(tmp_path: Path):
    _make_file(tmp_path / "a.txt", b"a\n")
    report = run(tmp_path)

    assert hash(report) == hash(run(tmp_path))
    assert report == run(tmp_path)
