from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence
from .extractors import ExtractionError, ScannerUnavailable
from .models import FileReport, ScanReport, from_raw
from .utils import info, warn


def merge_reports(reports: Iterable[ScanReport]) -> ScanReport:
    """Concatenate per-file reports; the summary is recomputed from items."""
    files: List[FileReport] = []
    for r in reports:
        files.extend(r.files)
    return ScanReport.build(files, with_counts=True)


def scan_tree(extractor, root: str = ".") -> ScanReport:
    info(f"Scanning path: {root}")
    try:
        raw = extractor.extract(root)
    except ScannerUnavailable as e:
        warn(f"Scanner unavailable, reporting nothing: {e}")
        return ScanReport.empty()
    except ExtractionError as e:
        warn(f"Scan failed: {e}")
        return ScanReport.empty()
    return from_raw(raw)


def _scan_one(extractor, path: str) -> ScanReport:
    # ScannerUnavailable propagates: a missing scanner voids the whole scan
    try:
        raw = extractor.extract(path)
    except ScannerUnavailable:
        raise
    except ExtractionError as e:
        warn(f"Skipping {path}: {e}")
        return ScanReport.empty()
    return from_raw(raw)


def scan_files(extractor, paths: Sequence[str], workers: int = 1) -> ScanReport:
    if not paths:
        info("No files to scan")
        return ScanReport.empty()
    workers = max(1, min(workers, len(paths)))
    try:
        if workers == 1:
            results = []
            for p in paths:
                info(f"Scanning: {p}")
                results.append(_scan_one(extractor, p))
        else:
            info(f"Scanning {len(paths)} file(s) with {workers} workers")
            with ThreadPoolExecutor(max_workers=workers) as pool:
                # map() yields in submission order, keeping discovery order
                results = list(pool.map(lambda p: _scan_one(extractor, p), paths))
    except ScannerUnavailable as e:
        warn(f"Scanner unavailable, reporting nothing: {e}")
        return ScanReport.empty()
    return merge_reports(results)


def scan(extractor, root: str = ".", paths: Optional[Sequence[str]] = None, workers: int = 1) -> ScanReport:
    if paths is None:
        return scan_tree(extractor, root)
    return scan_files(extractor, paths, workers=workers)
