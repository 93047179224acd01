from __future__ import annotations
from typing import Callable, Set
from .git import CheckoutError
from .models import FileReport, ScanReport
from .utils import info, success, warn


def base_keys(base: ScanReport) -> Set[str]:
    return {item.key(path) for path, item in base.items()}


def diff_new(current: ScanReport, base: ScanReport) -> ScanReport:
    """Items of `current` with no item at the same file:line in `base`.

    A tag whose line moved because of edits above it counts as new; only
    the location is compared, never the tag or the message.
    """
    seen = base_keys(base)
    files = []
    for f in current.files:
        kept = tuple(t for t in f.todos if t.key(f.path) not in seen)
        files.append(FileReport(path=f.path, todos=kept))
    return ScanReport.build(files, with_counts=current.summary.by_tag is not None, new_only=True)


def new_only(current: ScanReport, scan_base: Callable[[], ScanReport]) -> ScanReport:
    """Filter `current` down to new items, or return it as is when the base
    revision cannot be scanned."""
    info("Comparing with the base revision to find new tags...")
    try:
        base = scan_base()
    except CheckoutError as e:
        warn(f"{e}; showing all tags")
        return current
    result = diff_new(current, base)
    success(f"Filtered to new tags only ({result.summary.total} of {current.summary.total})")
    return result
