from __future__ import annotations
import os, re, json, shutil
from typing import Any, Dict, List, Optional, Sequence, Tuple
from .globs import matches, parse_patterns
from .utils import load_gitignore, iter_files, is_text_file, run, warn

DEFAULT_TAGS = ("TODO", "FIXME", "HACK", "XXX", "BUG", "OPTIMIZE")

INLINE_PRIORITY = re.compile(r"\[(P\d)\]", re.I)
MAX_TEXT = 240


class ExtractionError(Exception):
    """A single scanner invocation failed or produced unusable output."""


class ScannerUnavailable(ExtractionError):
    """The scanning capability cannot be used at all."""


class TodoTreeExtractor:
    """Runs the external `todo-tree` binary and returns its JSON output."""

    name = "todo-tree"

    def __init__(
        self,
        binary: str = "todo-tree",
        tags: Sequence[str] = (),
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        cwd: Optional[str] = None,
    ):
        self.binary = binary
        self.tags = list(tags)
        self.include = list(include)
        self.exclude = list(exclude)
        self.cwd = cwd

    def resolve_binary(self) -> str:
        found = shutil.which(self.binary)
        if found:
            return found
        local = os.path.join(self.cwd or ".", self.binary)
        if os.path.isfile(local) and os.access(local, os.X_OK):
            return os.path.abspath(local)
        raise ScannerUnavailable(f"{self.binary} not found on PATH")

    def command(self, target: str) -> List[str]:
        cmd = [self.resolve_binary(), "scan", "--json"]
        if self.tags:
            cmd += ["--tags", ",".join(self.tags)]
        if self.include:
            cmd += ["--include", ",".join(self.include)]
        if self.exclude:
            cmd += ["--exclude", ",".join(self.exclude)]
        cmd.append(target)
        return cmd

    def extract(self, target: str) -> Dict[str, Any]:
        code, out = run(self.command(target), cwd=self.cwd, timeout=None)
        if code == 127:
            raise ScannerUnavailable(f"{self.binary} could not be executed")
        if code != 0:
            raise ExtractionError(f"{self.binary} exited with status {code} for {target}")
        try:
            data = json.loads(out)
        except ValueError as e:
            raise ExtractionError(f"unparseable output for {target}: {e}")
        if not isinstance(data, dict):
            raise ExtractionError(f"unexpected output for {target}")
        return data


class BuiltinExtractor:
    """In-process tag scanner producing the same JSON shape as todo-tree."""

    name = "builtin"

    def __init__(
        self,
        tags: Sequence[str] = (),
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        root: str = ".",
    ):
        self.tags = list(tags) or list(DEFAULT_TAGS)
        self.include = list(include)
        self.exclude = list(exclude)
        self.root = root
        alts = "|".join(re.escape(t) for t in self.tags)
        # TAG, TAG:, TAG(owner): followed by the message
        self.pattern = re.compile(rf"(?<![A-Za-z0-9_])({alts})(?![A-Za-z0-9_])(?:\([^)]*\))?:?\s*(.*)")

    def scan_text(self, txt: str) -> List[Dict[str, Any]]:
        todos = []
        for line_no, ln in enumerate(txt.splitlines(), start=1):
            m = self.pattern.search(ln)
            if not m:
                continue
            text = m.group(2).strip()[:MAX_TEXT]
            mp = INLINE_PRIORITY.search(text)
            todos.append(
                {
                    "tag": m.group(1),
                    "text": text,
                    "line": line_no,
                    "column": m.start(1) + 1,
                    "line_content": ln.strip()[:MAX_TEXT],
                    "priority": mp.group(1).upper() if mp else None,
                }
            )
        return todos

    def _targets(self, target: str) -> Tuple[List[str], bool]:
        abs_target = os.path.join(self.root, target)
        if os.path.isfile(abs_target):
            return [abs_target], False
        if not os.path.isdir(abs_target):
            raise ExtractionError(f"no such file or directory: {target}")
        ignore = load_gitignore(self.root)
        return list(iter_files(abs_target, ignore, self.exclude, base=self.root)), True

    def extract(self, target: str) -> Dict[str, Any]:
        files = []
        paths, walking = self._targets(target)
        for abspath in paths:
            rel = os.path.relpath(abspath, self.root).replace(os.sep, "/")
            if not matches(rel, self.include):
                continue
            if not is_text_file(abspath):
                continue
            try:
                with open(abspath, "r", encoding="utf-8", errors="ignore") as f:
                    txt = f.read()
            except OSError as e:
                # one bad file in a tree walk must not void the others
                if walking:
                    warn(f"Skipping unreadable {rel}: {e}")
                    continue
                raise ExtractionError(f"cannot read {rel}: {e}")
            todos = self.scan_text(txt)
            if todos:
                files.append({"path": rel, "todos": todos})
        return {"files": files, "summary": {"total": sum(len(f["todos"]) for f in files)}}


def get_extractor(cfg, root: str = "."):
    data = cfg.data if hasattr(cfg, "data") else cfg
    tags = parse_patterns(data.get("tags"))
    include = parse_patterns(data.get("include"))
    exclude = parse_patterns(data.get("exclude"))
    kind = str(data.get("scanner") or "todo-tree").lower()
    if kind == "builtin":
        return BuiltinExtractor(tags=tags, include=include, exclude=exclude, root=root)
    if kind == "todo-tree":
        binary = data.get("scanner_binary") or "todo-tree"
        return TodoTreeExtractor(binary=binary, tags=tags, include=include, exclude=exclude, cwd=root)
    raise ValueError(f"unknown scanner: {kind}")
