from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class TaggedItem:
    tag: str
    text: str
    line: int
    column: int = 1
    line_content: str = ""
    priority: Optional[str] = None

    def key(self, path: str) -> str:
        # column and text are deliberately not part of the matching key
        return f"{path}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "text": self.text,
            "line": self.line,
            "column": self.column,
            "line_content": self.line_content,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class FileReport:
    path: str
    todos: Tuple[TaggedItem, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "todos": [t.to_dict() for t in self.todos]}


@dataclass(frozen=True)
class Summary:
    total: int = 0
    by_tag: Optional[Dict[str, int]] = None
    files_with_todos: Optional[int] = None
    new_only: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"total": self.total}
        if self.by_tag is not None:
            out["by_tag"] = dict(self.by_tag)
        if self.files_with_todos is not None:
            out["files_with_todos"] = self.files_with_todos
        if self.new_only is not None:
            out["new_only"] = self.new_only
        return out


@dataclass(frozen=True)
class ScanReport:
    files: Tuple[FileReport, ...] = ()
    summary: Summary = field(default_factory=Summary)

    @classmethod
    def empty(cls) -> "ScanReport":
        return cls()

    @classmethod
    def build(
        cls,
        files: Iterable[FileReport],
        with_counts: bool = False,
        new_only: Optional[bool] = None,
    ) -> "ScanReport":
        """Assemble a report, dropping empty files and recomputing the summary.

        Totals are always derived from the items; a count reported by the
        scanner is never carried over.
        """
        kept = tuple(f for f in files if f.todos)
        total = sum(len(f.todos) for f in kept)
        by_tag = None
        files_with_todos = None
        if with_counts:
            by_tag = _count_tags(kept)
            files_with_todos = len(kept)
        return cls(
            files=kept,
            summary=Summary(total=total, by_tag=by_tag, files_with_todos=files_with_todos, new_only=new_only),
        )

    def items(self) -> Iterator[Tuple[str, TaggedItem]]:
        for f in self.files:
            for t in f.todos:
                yield f.path, t

    def tag_counts(self) -> Dict[str, int]:
        return _count_tags(self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {"files": [f.to_dict() for f in self.files], "summary": self.summary.to_dict()}

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def _count_tags(files: Iterable[FileReport]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for f in files:
        for t in f.todos:
            counts[t.tag] = counts.get(t.tag, 0) + 1
    return counts


# Field aliases seen in scanner output, mapped to our names. Keep this the
# only place that knows about the scanner's schema.
ITEM_ALIASES = {
    "tag": ("tag", "type", "kind"),
    "text": ("text", "message", "msg"),
    "line": ("line", "line_number", "lineno"),
    "column": ("column", "col"),
    "line_content": ("line_content", "content", "source"),
    "priority": ("priority", "severity"),
}
FILE_PATH_KEYS = ("path", "file", "filename")
FILE_ITEMS_KEYS = ("todos", "items", "tags")


def _pick(d: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return None


def _as_int(v: Any, default: int) -> int:
    try:
        n = int(v)
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def item_from_raw(raw: Any) -> Optional[TaggedItem]:
    if not isinstance(raw, dict):
        return None
    tag = _pick(raw, ITEM_ALIASES["tag"])
    line = _as_int(_pick(raw, ITEM_ALIASES["line"]), 0)
    if not tag or not line:
        return None
    prio = _pick(raw, ITEM_ALIASES["priority"])
    return TaggedItem(
        tag=str(tag),
        text=str(_pick(raw, ITEM_ALIASES["text"]) or "").strip(),
        line=line,
        column=_as_int(_pick(raw, ITEM_ALIASES["column"]), 1),
        line_content=str(_pick(raw, ITEM_ALIASES["line_content"]) or ""),
        priority=str(prio) if prio is not None else None,
    )


def file_from_raw(raw: Any) -> Optional[FileReport]:
    if not isinstance(raw, dict):
        return None
    path = _pick(raw, FILE_PATH_KEYS)
    if not path:
        return None
    entries = _pick(raw, FILE_ITEMS_KEYS)
    if not isinstance(entries, list):
        entries = []
    todos = []
    for e in entries:
        item = item_from_raw(e)
        if item is not None:
            todos.append(item)
    return FileReport(path=str(path), todos=tuple(todos))


def from_raw(raw: Any) -> ScanReport:
    """Translate a scanner's raw JSON object into a ScanReport.

    Unknown or malformed pieces are skipped; a payload that is not an object
    at all yields an empty report.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return ScanReport.empty()
    if not isinstance(raw, dict):
        return ScanReport.empty()
    files_raw = raw.get("files")
    if not isinstance(files_raw, list):
        return ScanReport.empty()
    files: List[FileReport] = []
    for fr in files_raw:
        f = file_from_raw(fr)
        if f is not None:
            files.append(f)
    summary = raw.get("summary") if isinstance(raw.get("summary"), dict) else {}
    new_only = True if summary.get("new_only") is True else None
    return ScanReport.build(files, with_counts=True, new_only=new_only)


def load_report(path: str) -> ScanReport:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return from_raw(json.load(f))
    except (OSError, ValueError):
        return ScanReport.empty()


def dump_report(report: ScanReport, path: str):
    with open(path, "w", encoding="utf-8") as f:
        f.write(report.to_json())
        f.write("\n")
