from __future__ import annotations
import os
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence
from .globs import filter_paths
from .utils import info, run, warn

STASH_MESSAGE = "todoscan"


class CheckoutError(Exception):
    """The base revision could not be materialized in the working tree."""


def git(args: List[str], cwd: Optional[str] = None, timeout: Optional[int] = 120):
    return run(["git"] + args, cwd=cwd, timeout=timeout)


def changed_files(base_ref: str, head_ref: str = "HEAD", patterns: Sequence[str] = (), cwd: str = ".") -> List[str]:
    """Files added/modified between origin/<base_ref> and <head_ref>."""
    info(f"Fetching changed files between {base_ref} and {head_ref}...")
    git(["fetch", "origin", base_ref, "--depth=1"], cwd=cwd)

    out = ""
    for rng in (f"origin/{base_ref}...{head_ref}", f"origin/{base_ref}"):
        code, out = git(["diff", "--name-only", "--diff-filter=ACMRT", rng], cwd=cwd)
        if code == 0:
            break
        out = ""
    if not out:
        warn(f"Could not diff against origin/{base_ref}")

    paths = [ln.strip() for ln in out.splitlines() if ln.strip()]
    paths = filter_paths(paths, patterns)
    return [p for p in paths if os.path.isfile(os.path.join(cwd, p))]


def _stash_head(cwd: str) -> str:
    code, out = git(["rev-parse", "-q", "--verify", "refs/stash"], cwd=cwd)
    return out.strip() if code == 0 else ""


@contextmanager
def checkout_base(base_ref: str, cwd: str = ".") -> Iterator[str]:
    """Temporarily switch the working tree to origin/<base_ref>.

    Uncommitted changes are stashed first; the original checkout and the
    stash are restored on every exit path, including a failed checkout.
    """
    target = f"origin/{base_ref}"
    before = _stash_head(cwd)
    git(["stash", "push", "-m", STASH_MESSAGE], cwd=cwd)
    # "stash push" succeeds without creating an entry on a clean tree
    stashed = _stash_head(cwd) not in ("", before)
    switched = False
    try:
        code, _ = git(["checkout", "--quiet", target], cwd=cwd)
        if code != 0:
            raise CheckoutError(f"could not check out {target}")
        switched = True
        yield target
    finally:
        if switched:
            code, _ = git(["checkout", "--quiet", "-"], cwd=cwd)
            if code != 0:
                warn("Could not return to the original checkout")
        if stashed:
            code, _ = git(["stash", "pop", "--quiet"], cwd=cwd)
            if code != 0:
                warn(f"Could not restore stashed changes; see `git stash list` ({STASH_MESSAGE})")
