from __future__ import annotations
import copy, os, yaml
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConfigError
from .generated import DEFAULT_GENERATED_DIR_MARKER
from .utils import load_gitignore, match_files

CONFIG_FILE = ".techdebt.yml"
ROOT_MODULE = ":"

DEFAULT_CONFIG: Dict[str, Any] = {
    "output": "build/reports/techdebt/consolidated-report.html",
    "collect_comments": False,
    "collect_suppress": False,
    "enable_git_metadata": False,
    "base_ticket_url": None,
    # project directory (relative to the root) -> module identifier
    "projects": {".": ROOT_MODULE},
    "shards": ["**/build/generated/ksp/**/resources/techdebt/report.json"],
    "sources": ["**/src/**/*.kt", "**/src/**/*.kts", "**/src/**/*.java"],
    "exclude": [".git/", ".gradle/", ".idea/", "build/", "node_modules/"],
    "generated_dir_marker": DEFAULT_GENERATED_DIR_MARKER,
    "git_timeout": 30,
    "search_max_depth": None,
}


@dataclass
class ReportConfig:
    root_dir: str
    output_file: str
    collect_comments: bool = False
    collect_suppress: bool = False
    enable_git_metadata: bool = False
    base_ticket_url: Optional[str] = None
    project_dirs: Dict[str, str] = field(default_factory=dict)
    shard_files: Optional[List[str]] = None
    source_files: Optional[List[str]] = None
    shard_patterns: List[str] = field(default_factory=list)
    source_patterns: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    generated_dir_marker: str = DEFAULT_GENERATED_DIR_MARKER
    git_timeout: Optional[float] = 30
    search_max_depth: Optional[int] = None

    @property
    def module_dirs(self) -> Dict[str, str]:
        return {module: directory for directory, module in self.project_dirs.items()}

    def discover_shards(self) -> List[str]:
        if self.shard_files is not None:
            return list(self.shard_files)
        # shards live in build output, so neither .gitignore nor `exclude` applies
        return match_files(self.root_dir, self.shard_patterns, excludes=[".git/"])

    def discover_sources(self) -> List[str]:
        if self.source_files is not None:
            return list(self.source_files)
        ignore = load_gitignore(self.root_dir)
        return match_files(self.root_dir, self.source_patterns, ignore=ignore, excludes=self.exclude)


def merge_config(base: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for k, v in user.items():
        if k == "projects" and isinstance(v, dict):
            merged[k] = dict(v)
        elif isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k].update(v)
        else:
            merged[k] = v
    return merged


def read_config_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Could not read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def load_config(
    root_dir: str,
    path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ReportConfig:
    """Build the run configuration: defaults, then the config file, then overrides.

    ``path`` defaults to ``.techdebt.yml`` in ``root_dir`` and may be absent.
    Relative paths in the result are resolved against ``root_dir``.
    """
    root_dir = os.path.abspath(root_dir)
    merged = copy.deepcopy(DEFAULT_CONFIG)
    if path is None:
        default_path = os.path.join(root_dir, CONFIG_FILE)
        if os.path.exists(default_path):
            merged = merge_config(merged, read_config_file(default_path))
    else:
        merged = merge_config(merged, read_config_file(path))
    if overrides:
        merged = merge_config(merged, overrides)
    return _build(root_dir, merged)


def _build(root_dir: str, data: Dict[str, Any]) -> ReportConfig:
    def under_root(p: str) -> str:
        return os.path.normpath(os.path.join(root_dir, os.path.expanduser(str(p))))

    projects = data.get("projects") or {}
    if not isinstance(projects, dict):
        raise ConfigError("'projects' must map project directories to module identifiers")

    def path_list(key: str) -> Optional[List[str]]:
        value = data.get(key)
        if value is None:
            return None
        if not isinstance(value, list):
            raise ConfigError(f"'{key}' must be a list of paths")
        return [under_root(p) for p in value]

    def pattern_list(key: str) -> List[str]:
        value = data.get(key) or []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            raise ConfigError(f"'{key}' must be a list of patterns")
        return [str(p) for p in value]

    try:
        git_timeout = None if data.get("git_timeout") is None else float(data["git_timeout"])
        max_depth = None if data.get("search_max_depth") is None else int(data["search_max_depth"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid number in configuration: {e}") from e

    return ReportConfig(
        root_dir=root_dir,
        output_file=under_root(data.get("output") or DEFAULT_CONFIG["output"]),
        collect_comments=bool(data.get("collect_comments")),
        collect_suppress=bool(data.get("collect_suppress")),
        enable_git_metadata=bool(data.get("enable_git_metadata")),
        base_ticket_url=data.get("base_ticket_url") or None,
        project_dirs={under_root(d): str(m) for d, m in projects.items()},
        shard_files=path_list("shard_files"),
        source_files=path_list("source_files"),
        shard_patterns=pattern_list("shards"),
        source_patterns=pattern_list("sources"),
        exclude=pattern_list("exclude"),
        generated_dir_marker=str(data.get("generated_dir_marker") or DEFAULT_GENERATED_DIR_MARKER),
        git_timeout=git_timeout,
        search_max_depth=max_depth,
    )
