import argparse
import os
import sys
from .config import Config, load_config
from .diff import new_only
from .extractors import get_extractor
from .git import changed_files, checkout_base
from .merger import scan
from .models import ScanReport, dump_report
from .policy import Verdict, evaluate, outputs, render_annotations
from .renderer import render_markdown, write_markdown
from .utils import append_step_summary, error, find_repo_root, info, success, write_outputs


def collect(cfg: Config, repo_root: str, extractor=None) -> ScanReport:
    """Scan, then narrow to new tags when asked."""
    extractor = extractor or get_extractor(cfg, root=repo_root)
    scan_path = cfg.get("path") or "."
    workers = cfg.get("workers") or 1

    paths = None
    if cfg.get("changed_only") and cfg.get("base_ref"):
        info("Scanning only changed files...")
        paths = changed_files(cfg.get("base_ref"), cfg.get("head_ref"), cfg.get("include"), cwd=repo_root)
        if not paths:
            info("No changed files to scan")
            return ScanReport.empty()
        info(f"Changed files: {' '.join(paths)}")

    report = scan(extractor, root=scan_path, paths=paths, workers=workers)
    success("Scan complete")

    if cfg.get("new_only"):

        def scan_base() -> ScanReport:
            with checkout_base(cfg.get("base_ref"), cwd=repo_root):
                base_paths = None
                if paths is not None:
                    base_paths = [p for p in paths if os.path.isfile(os.path.join(repo_root, p))]
                return scan(extractor, root=scan_path, paths=base_paths, workers=workers)

        report = new_only(report, scan_base)
    return report


def publish(cfg: Config, report: ScanReport, verdict: Verdict, repo_root: str):
    if cfg.get("show_annotations"):
        info("Generating annotations...")
        for line in render_annotations(report, cfg.get("max_annotations"), cfg.get("annotation_severity")):
            print(line)

    json_path = cfg.get("json")
    if json_path:
        dump_report(report, os.path.join(repo_root, json_path))

    write_outputs(outputs(report))

    md = None
    md_path = cfg.get("markdown")
    if md_path:
        md = write_markdown(report, os.path.join(repo_root, md_path), verdict)
        info(f"Wrote {md_path}")
    if os.environ.get("GITHUB_STEP_SUMMARY"):
        append_step_summary(md or render_markdown(report, verdict))

    info(f"Found {report.summary.total} tag(s) in {len(report.files)} file(s)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todoscan", description="Scan for TODO/FIXME tags and gate CI on them")
    sub = parser.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("scan", help="Scan a repository")
    s.add_argument("path", nargs="?", default=None, help="Path to scan (default: .)")
    s.add_argument("--tags", default=None, help="Comma-separated tags to look for")
    s.add_argument("--include", default=None, help="Comma-separated include globs")
    s.add_argument("--exclude", default=None, help="Comma-separated exclude globs")
    s.add_argument("--changed-only", action="store_true", default=None, help="Only scan files changed vs. the base ref")
    s.add_argument("--base-ref", default=None, help="Base branch (default: $GITHUB_BASE_REF or main)")
    s.add_argument("--head-ref", default=None, help="Head ref (default: $GITHUB_HEAD_REF or HEAD)")
    s.add_argument("--new-only", action="store_true", default=None, help="Only report tags absent from the base ref")
    s.add_argument("--fail-on-todos", action="store_true", default=None, help="Fail if any tag is found")
    s.add_argument("--fail-on-fixme", action="store_true", default=None, help="Fail if any FIXME or BUG is found")
    s.add_argument("--fail-on-tags", default=None, help="Comma-separated tags that fail the build")
    s.add_argument("--max-todos", type=int, default=None, help="Fail if more tags than this are found")
    s.add_argument("--annotations", dest="show_annotations", action="store_true", default=None)
    s.add_argument("--no-annotations", dest="show_annotations", action="store_false")
    s.add_argument("--max-annotations", type=int, default=None, help="Cap on emitted annotations (default 50)")
    s.add_argument("--severity", dest="annotation_severity", choices=["notice", "warning", "error"], default=None)
    s.add_argument("--json", default=None, help="Report path (default: todos.json)")
    s.add_argument("--markdown", default=None, help="Also write a Markdown report to this path")
    s.add_argument("--scanner", choices=["todo-tree", "builtin"], default=None)
    s.add_argument("--scanner-binary", default=None, help="todo-tree executable (default: todo-tree)")
    s.add_argument("--workers", type=int, default=None, help="Parallel scanner invocations in changed-only mode")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if k != "cmd"}

    repo_root = find_repo_root(args.path or os.environ.get("INPUT_PATH") or ".")
    cfg = load_config(repo_root, overrides=overrides)
    if args.path:
        cfg.data["path"] = os.path.relpath(os.path.abspath(args.path), repo_root)
    # never report on our own artifacts
    for key in ("json", "markdown"):
        out = cfg.get(key)
        if out and not os.path.isabs(out) and not out.startswith(".."):
            cfg.data["exclude"] = list(cfg.get("exclude") or []) + [os.path.normpath(out).replace(os.sep, "/")]

    info("Starting tag scan...")
    report = collect(cfg, repo_root)
    verdict = evaluate(report, cfg.fail_rules())
    publish(cfg, report, verdict, repo_root)

    if not verdict.passed:
        error(verdict.reason)
        return 1
    success("Tag scan completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
