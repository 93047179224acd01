from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional
from .models import ScanReport

DEFAULT_MAX_ANNOTATIONS = 50
DEFAULT_FAIL_TAGS = frozenset({"FIXME", "BUG"})


@dataclass(frozen=True)
class FailRules:
    fail_on_any_tag: bool = False
    fail_on_tags: FrozenSet[str] = field(default_factory=frozenset)
    max_allowed: Optional[int] = None


@dataclass(frozen=True)
class Verdict:
    passed: bool
    reason: Optional[str] = None


def _one_line(s: str) -> str:
    return " ".join(str(s).split())


def escape_data(s: str) -> str:
    return _one_line(s).replace("%", "%25")


def escape_property(s: str) -> str:
    # workflow-command property values also reserve ":" and ","
    return escape_data(s).replace(":", "%3A").replace(",", "%2C")


def render_annotations(
    report: ScanReport, max_count: Optional[int] = DEFAULT_MAX_ANNOTATIONS, severity: str = "warning"
) -> List[str]:
    """Workflow-command lines for the first `max_count` items of the report."""
    if max_count is None:
        max_count = DEFAULT_MAX_ANNOTATIONS
    out: List[str] = []
    if max_count <= 0:
        return out
    for path, item in report.items():
        out.append(
            f"::{severity} file={escape_property(path)},line={item.line}::{escape_data(item.tag)}: {escape_data(item.text)}"
        )
        if len(out) >= max_count:
            break
    return out


def evaluate(report: ScanReport, rules: FailRules) -> Verdict:
    total = report.summary.total

    if rules.fail_on_any_tag and total > 0:
        return Verdict(False, f"Found {total} tag(s). Failing as requested.")

    if rules.fail_on_tags:
        hits = sum(1 for _, item in report.items() if item.tag in rules.fail_on_tags)
        if hits > 0:
            names = "/".join(sorted(rules.fail_on_tags))
            return Verdict(False, f"Found {hits} {names} comment(s). Failing as requested.")

    if rules.max_allowed is not None and total > rules.max_allowed:
        return Verdict(False, f"Found {total} tag(s), exceeding maximum of {rules.max_allowed}. Failing.")

    return Verdict(True)


def outputs(report: ScanReport) -> Dict[str, str]:
    total = report.summary.total
    return {
        "total": str(total),
        "files_count": str(len(report.files)),
        "has_todos": "true" if total > 0 else "false",
        "json": report.to_json(),
    }
