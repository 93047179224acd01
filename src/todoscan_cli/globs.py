from __future__ import annotations
from fnmatch import fnmatchcase
from typing import Any, Iterable, List, Sequence


def parse_patterns(text: Any) -> List[str]:
    """Split a comma-separated pattern string, trimming and dropping blanks.

    Lists (e.g. from the YAML config) are accepted too and normalized the
    same way; any other value counts as no patterns.
    """
    if not text:
        return []
    if isinstance(text, str):
        parts = text.split(",")
    elif isinstance(text, (list, tuple, set, frozenset)):
        parts = [str(p) for p in text if p is not None]
    else:
        return []
    return [p.strip() for p in parts if p.strip()]


def matches(path: str, patterns: Sequence[str]) -> bool:
    # Shell semantics: `*` also crosses "/", as in [[ $file == $pattern ]]
    pats = parse_patterns(patterns)
    if not pats:
        return True
    return any(fnmatchcase(path, p) for p in pats)


def filter_paths(paths: Iterable[str], patterns: Sequence[str]) -> List[str]:
    return [p for p in paths if matches(p, patterns)]
