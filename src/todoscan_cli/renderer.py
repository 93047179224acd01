from __future__ import annotations
import os
from typing import Optional
from jinja2 import Environment, FileSystemLoader, select_autoescape
from .models import ScanReport
from .policy import Verdict

MAX_LISTED = 200


def render_markdown(report: ScanReport, verdict: Optional[Verdict] = None, max_listed: int = MAX_LISTED) -> str:
    tmpl_dir = os.path.join(os.path.dirname(__file__), "templates")
    env = Environment(loader=FileSystemLoader(tmpl_dir), autoescape=select_autoescape(), trim_blocks=True)
    tmpl = env.get_template("todos.md.j2")
    listed = list(report.items())[:max_listed]
    return tmpl.render(
        summary=report.summary,
        files_count=len(report.files),
        by_tag=sorted(report.tag_counts().items()),
        items=listed,
        truncated=report.summary.total - len(listed),
        verdict=verdict,
    )


def write_markdown(report: ScanReport, path: str, verdict: Optional[Verdict] = None) -> str:
    md = render_markdown(report, verdict)
    with open(path, "w", encoding="utf-8") as f:
        f.write(md)
    return md
