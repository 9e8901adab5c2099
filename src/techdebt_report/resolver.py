from __future__ import annotations
import logging, os, re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .items import UNKNOWN_SOURCE_SET
from .utils import iter_files, load_gitignore

log = logging.getLogger(__name__)

_LINE_SUFFIX = re.compile(r"^(.*):(\d+)$")


def split_location(location: str) -> Tuple[str, Optional[int]]:
    """Split ``path:line`` into its parts; the line is None when absent."""
    m = _LINE_SUFFIX.match(location)
    if m:
        return m.group(1), int(m.group(2))
    return location, None


def module_path(module_name: str) -> str:
    """``:app:feature`` -> ``app/feature``; the root module ``:`` maps to ``""``."""
    return "/".join(part for part in module_name.split(":") if part)


class SourceLocationResolver:
    """Maps a ``path[:line]`` hint and a module identifier to a file on disk.

    Strategies, first hit wins: absolute path, path relative to the root,
    path inside the module directory, then a walk of the whole root for a
    file ending with the hint. The walk returns the first match in walk
    order, so duplicate file names resolve to whichever is found first.
    """

    def __init__(
        self,
        root_dir: str,
        module_dirs: Optional[Dict[str, str]] = None,
        excludes: Optional[List[str]] = None,
        max_depth: Optional[int] = None,
    ):
        self.root_dir = Path(root_dir).resolve()
        self.module_dirs = dict(module_dirs or {})
        self.excludes = list(excludes or [])
        self.max_depth = max_depth
        self.ignore = load_gitignore(str(self.root_dir))

    def resolve(self, location: Optional[str], module_name: str) -> Optional[Path]:
        if not location or location == UNKNOWN_SOURCE_SET:
            return None
        path, _ = split_location(location)
        if not path:
            return None

        candidate = Path(path)
        if candidate.is_absolute():
            return candidate.resolve() if candidate.is_file() else None
        in_root = self.root_dir / candidate
        if in_root.is_file():
            return in_root.resolve()

        found = self._resolve_in_module(module_name, path)
        if found is None:
            found = self._search(path)
        if found is None:
            log.debug("Could not resolve %s for module %s", location, module_name)
        return found

    def _resolve_in_module(self, module_name: str, path: str) -> Optional[Path]:
        dirs = []
        if module_name in self.module_dirs:
            dirs.append(Path(self.module_dirs[module_name]))
        nested = module_path(module_name)
        if nested:
            dirs.append(self.root_dir / nested)
        for module_dir in dirs:
            if module_dir.is_dir():
                candidate = module_dir / path
                if candidate.is_file():
                    return candidate.resolve()
        return None

    def _search(self, path: str) -> Optional[Path]:
        suffix = path.replace(os.sep, "/").strip("/")
        if not suffix:
            return None
        for found in iter_files(str(self.root_dir), self.ignore, self.excludes, self.max_depth):
            posix = found.replace(os.sep, "/")
            if posix == suffix or posix.endswith("/" + suffix):
                return Path(found).resolve()
        return None
