from __future__ import annotations
import os, copy, yaml
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from .globs import parse_patterns
from .policy import DEFAULT_FAIL_TAGS, DEFAULT_MAX_ANNOTATIONS, FailRules
from .utils import warn

CONFIG_FILE = ".todoscan.yml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "path": ".",
    "tags": [],
    "include": [],
    "exclude": [],
    "changed_only": False,
    "new_only": False,
    "base_ref": "main",
    "head_ref": "HEAD",
    "fail_on_todos": False,
    "fail_on_fixme": False,
    "fail_on_tags": [],
    "max_todos": None,
    "show_annotations": True,
    "max_annotations": DEFAULT_MAX_ANNOTATIONS,
    "annotation_severity": "warning",
    "scanner": "todo-tree",
    "scanner_binary": "todo-tree",
    "workers": 1,
    "json": "todos.json",
    "markdown": None,
}

# GitHub Actions inputs, as exported by the runner
ENV_INPUTS = {
    "INPUT_PATH": "path",
    "INPUT_TAGS": "tags",
    "INPUT_INCLUDE_PATTERNS": "include",
    "INPUT_EXCLUDE_PATTERNS": "exclude",
    "INPUT_CHANGED_ONLY": "changed_only",
    "INPUT_NEW_ONLY": "new_only",
    "INPUT_FAIL_ON_TODOS": "fail_on_todos",
    "INPUT_FAIL_ON_FIXME": "fail_on_fixme",
    "INPUT_MAX_TODOS": "max_todos",
    "INPUT_SHOW_ANNOTATIONS": "show_annotations",
    "INPUT_MAX_ANNOTATIONS": "max_annotations",
    "GITHUB_BASE_REF": "base_ref",
    "GITHUB_HEAD_REF": "head_ref",
}

BOOL_KEYS = {"changed_only", "new_only", "fail_on_todos", "fail_on_fixme", "show_annotations"}
INT_KEYS = {"max_todos", "max_annotations", "workers"}
LIST_KEYS = {"tags", "include", "exclude", "fail_on_tags"}
STR_KEYS = {"path", "base_ref", "head_ref", "annotation_severity", "scanner_binary", "json", "markdown"}
SCANNERS = ("todo-tree", "builtin")
SEVERITIES = ("notice", "warning", "error")


def as_bool(v: Any, default: bool = False) -> bool:
    if isinstance(v, bool):
        return v
    if v is None:
        return default
    s = str(v).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    return default


def as_int(v: Any, default: Optional[int]) -> Optional[int]:
    if v is None or v == "":
        return default
    try:
        return int(str(v).strip())
    except ValueError:
        return default


@dataclass
class Config:
    data: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG))

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def fail_rules(self) -> FailRules:
        tags = set(self.data.get("fail_on_tags") or [])
        if self.data.get("fail_on_fixme"):
            tags |= DEFAULT_FAIL_TAGS
        return FailRules(
            fail_on_any_tag=bool(self.data.get("fail_on_todos")),
            fail_on_tags=frozenset(tags),
            max_allowed=self.data.get("max_todos"),
        )


def normalize(key: str, value: Any) -> Any:
    default = DEFAULT_CONFIG.get(key)
    if key in BOOL_KEYS:
        return as_bool(value, default)
    if key in INT_KEYS:
        return as_int(value, default)
    if key in LIST_KEYS:
        return parse_patterns(value)
    if key == "scanner":
        name = str(value or "").strip().lower()
        if name not in SCANNERS:
            warn(f"Unknown scanner {value!r}, using {default}")
            return default
        return name
    if key in STR_KEYS:
        if value is None or isinstance(value, (list, dict)):
            return default
        value = str(value).strip()
        if key == "annotation_severity" and value not in SEVERITIES:
            return default
        return value or default
    return value


def from_env(env: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for var, key in ENV_INPUTS.items():
        value = env.get(var)
        # unset and empty action inputs both mean "use the default"
        if value is None or value == "":
            continue
        out[key] = normalize(key, value)
    return out


def load_config(
    repo_root: str,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Config:
    """Defaults, then .todoscan.yml, then Actions inputs, then CLI flags."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    path = os.path.join(repo_root, CONFIG_FILE)
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            try:
                user = yaml.safe_load(f) or {}
            except yaml.YAMLError:
                user = {}
        if isinstance(user, dict):
            for k, v in user.items():
                key = str(k).replace("-", "_")
                if key in DEFAULT_CONFIG:
                    merged[key] = normalize(key, v)
    merged.update(from_env(os.environ if env is None else env))
    for k, v in (overrides or {}).items():
        if v is not None:
            merged[k] = normalize(k, v)
    return Config(merged)
