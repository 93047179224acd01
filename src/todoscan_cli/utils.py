from __future__ import annotations
import os, sys, subprocess
from typing import Dict, List, Optional, Iterable, Tuple
from pathspec import PathSpec

TEXT_EXT = {
    ".py", ".ts", ".tsx", ".js", ".jsx", ".json", ".yml", ".yaml", ".md", ".txt", ".toml", ".ini", ".env",
    ".java", ".go", ".rs", ".cpp", ".c", ".h", ".hpp", ".cs", ".rb", ".php", ".sh", ".bat", ".ps1", ".dockerfile",
}

# Always skipped while walking, regardless of .gitignore
ALWAYS_EXCLUDE = [".git/"]


def info(msg: str):
    print(f"[info] {msg}", file=sys.stderr)


def success(msg: str):
    print(f"[ok] {msg}", file=sys.stderr)


def warn(msg: str):
    print(f"[warn] {msg}", file=sys.stderr)


def error(msg: str):
    print(f"[error] {msg}", file=sys.stderr)


def find_repo_root(start: str) -> str:
    start = os.path.abspath(start)
    p = start
    while p and p != os.path.dirname(p):
        if os.path.exists(os.path.join(p, ".git")):
            return p
        p = os.path.dirname(p)
    return start


def load_gitignore(repo_root: str) -> PathSpec:
    path = os.path.join(repo_root, ".gitignore")
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return PathSpec.from_lines("gitwildmatch", f)
    return PathSpec.from_lines("gitwildmatch", [])


def is_text_file(path: str) -> bool:
    _, ext = os.path.splitext(path.lower())
    if ext in TEXT_EXT:
        return True
    try:
        with open(path, "rb") as f:
            chunk = f.read(2048)
        if b"\0" in chunk:
            return False
        return True
    except OSError:
        return False


def iter_files(root: str, ignore: PathSpec, excludes: List[str], base: Optional[str] = None) -> Iterable[str]:
    """Walk `root`, matching ignore and exclude specs against paths relative to `base`.

    `base` defaults to `root`; pass the repo root when walking a sub-directory.
    """
    base = base or root
    exclude_spec = PathSpec.from_lines("gitwildmatch", ALWAYS_EXCLUDE + list(excludes or []))
    for dirpath, dirs, files in os.walk(root):
        dirs.sort()
        for name in sorted(files):
            path = os.path.join(dirpath, name)
            rel = os.path.relpath(path, base).replace(os.sep, "/")
            if ignore.match_file(rel) or exclude_spec.match_file(rel):
                continue
            yield path


def run(cmd: List[str], cwd: Optional[str] = None, timeout: Optional[int] = 30) -> Tuple[int, str]:
    """Run a command, returning (exit code, stdout).

    A missing executable or a timeout reports exit code 127 / 124 with empty
    output instead of raising.
    """
    try:
        res = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
            check=False,
            text=True,
        )
        return res.returncode, res.stdout
    except FileNotFoundError:
        return 127, ""
    except subprocess.TimeoutExpired:
        return 124, ""


def write_outputs(values: Dict[str, str], path: Optional[str] = None) -> bool:
    """Append key/value results to the GitHub Actions output file.

    Multi-line values use the heredoc form. Returns False when no output
    file is configured.
    """
    path = path or os.environ.get("GITHUB_OUTPUT", "")
    if not path:
        return False
    with open(path, "a", encoding="utf-8") as f:
        for key, value in values.items():
            if "\n" in value:
                f.write(f"{key}<<EOF\n{value}\nEOF\n")
            else:
                f.write(f"{key}={value}\n")
    return True


def append_step_summary(markdown: str, path: Optional[str] = None) -> bool:
    path = path or os.environ.get("GITHUB_STEP_SUMMARY", "")
    if not path:
        return False
    with open(path, "a", encoding="utf-8") as f:
        f.write(markdown)
        if not markdown.endswith("\n"):
            f.write("\n")
    return True
