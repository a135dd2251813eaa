"""Repository-level integrity checks."""

from __future__ import annotations

import re
from pathlib import Path

CONFLICT_PATTERN = re.compile(r"^(<<<<<<<|=======|>>>>>>>)", re.MULTILINE)
BREAKPOINT_PATTERN = re.compile(r"^\s*(breakpoint\(\)|import pdb)", re.MULTILINE)
IGNORED_PARTS = {".git", "__pycache__", ".mypy_cache", ".pytest_cache", ".venv"}
REPO_ROOT = Path(__file__).resolve().parents[1]


def _source_files(pattern: str = "*"):
    for path in REPO_ROOT.rglob(pattern):
        if not path.is_file():
            continue
        if any(part in IGNORED_PARTS for part in path.parts):
            continue
        yield path


def test_repository_has_no_merge_conflict_markers() -> None:
    """Ensure no files in the repo still contain git conflict markers."""

    offending_files: list[Path] = []
    for path in _source_files():
        contents = path.read_text(encoding="utf-8", errors="ignore")
        if CONFLICT_PATTERN.search(contents):
            offending_files.append(path.relative_to(REPO_ROOT))

    assert not offending_files, (
        "The following files still contain git conflict markers: "
        + ", ".join(str(path) for path in offending_files)
    )


def test_application_code_has_no_debugger_hooks() -> None:
    offending_files = [
        path.relative_to(REPO_ROOT)
        for path in _source_files("*.py")
        if "tests" not in path.parts
        and BREAKPOINT_PATTERN.search(path.read_text(encoding="utf-8"))
    ]

    assert not offending_files, f"Debugger hooks left in: {offending_files}"
