"""Shared test fixtures for todoscan tests."""

from __future__ import annotations

import os
import shutil
import subprocess
from typing import Any, Dict, Iterable, Tuple

import pytest

from todoscan_cli.extractors import ExtractionError, ScannerUnavailable
from todoscan_cli.models import FileReport, ScanReport, TaggedItem


class FakeExtractor:
    """Stands in for the todo-tree binary: raw payloads keyed by target."""

    name = "fake"

    def __init__(self, payloads: Dict[str, Any] | None = None, unavailable: bool = False):
        self.payloads = payloads or {}
        self.unavailable = unavailable
        self.calls: list[str] = []

    def extract(self, target: str) -> Dict[str, Any]:
        self.calls.append(target)
        if self.unavailable:
            raise ScannerUnavailable("fake scanner missing")
        value = self.payloads.get(target)
        if value is None:
            raise ExtractionError(f"no payload for {target}")
        if isinstance(value, Exception):
            raise value
        return value


def raw_file(path: str, *items: Tuple[str, int, str]) -> Dict[str, Any]:
    """One todo-tree style file entry from (tag, line, text) triples."""
    return {
        "path": path,
        "todos": [
            {"tag": tag, "text": text, "line": line, "column": 3, "line_content": f"// {tag}: {text}", "priority": None}
            for tag, line, text in items
        ],
    }


def raw_payload(*files: Dict[str, Any]) -> Dict[str, Any]:
    return {"files": list(files), "summary": {"total": sum(len(f["todos"]) for f in files)}}


def make_report(entries: Iterable[Tuple[str, str, int]], text: str = "msg") -> ScanReport:
    """Build a report from (path, tag, line) triples, grouped by path in order."""
    grouped: Dict[str, list] = {}
    for path, tag, line in entries:
        grouped.setdefault(path, []).append(TaggedItem(tag=tag, text=text, line=line))
    return ScanReport.build([FileReport(path=p, todos=tuple(items)) for p, items in grouped.items()])


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


def _git(cwd: str, *args: str) -> str:
    res = subprocess.run(
        ["git", "-c", "user.email=test@example.com", "-c", "user.name=Test", *args],
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        check=True,
    )
    return res.stdout


@pytest.fixture
def git_repo(tmp_path):
    """A repo whose `origin/main` points at the first commit.

    The working tree sits one commit ahead on branch `feature`.
    """
    if shutil.which("git") is None:
        pytest.skip("git not available")
    root = str(tmp_path / "repo")
    os.makedirs(root)
    _git(root, "init", "-q")
    _git(root, "symbolic-ref", "HEAD", "refs/heads/main")
    with open(os.path.join(root, "a.py"), "w") as f:
        f.write("x = 1\n# TODO: old one\n")
    _git(root, "add", "-A")
    _git(root, "commit", "-q", "-m", "base")
    # fake remote-tracking ref without a real remote
    _git(root, "update-ref", "refs/remotes/origin/main", "HEAD")
    _git(root, "checkout", "-q", "-b", "feature")
    with open(os.path.join(root, "a.py"), "w") as f:
        f.write("x = 1\n# TODO: old one\n# FIXME: new one\n")
    with open(os.path.join(root, "b.md"), "w") as f:
        f.write("notes\n")
    _git(root, "add", "-A")
    _git(root, "commit", "-q", "-m", "feature")
    return root
