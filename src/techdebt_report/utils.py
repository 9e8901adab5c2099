from __future__ import annotations
import logging, os, tempfile
from typing import Iterable, List, Optional
from pathspec import PathSpec

log = logging.getLogger(__name__)

TEXT_EXT = {
    ".kt", ".kts", ".java", ".groovy", ".gradle", ".scala", ".swift", ".m", ".mm",
    ".py", ".ts", ".tsx", ".js", ".jsx", ".go", ".rs", ".cpp", ".c", ".h", ".hpp", ".cs",
    ".json", ".yml", ".yaml", ".xml", ".toml", ".properties", ".md", ".txt", ".sh",
}


def find_repo_root(start: str) -> Optional[str]:
    """Walk upward from ``start`` to the nearest directory holding ``.git``."""
    p = os.path.abspath(start)
    while True:
        if os.path.exists(os.path.join(p, ".git")):
            return p
        parent = os.path.dirname(p)
        if parent == p:
            return None
        p = parent


def load_gitignore(repo_root: str) -> PathSpec:
    path = os.path.join(repo_root, ".gitignore")
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8", errors="ignore") as f:
                return PathSpec.from_lines("gitwildmatch", f)
        except OSError as e:
            log.warning("Could not read %s: %s", path, e)
    return PathSpec.from_lines("gitwildmatch", [])


def is_text_file(path: str) -> bool:
    _, ext = os.path.splitext(path.lower())
    if ext in TEXT_EXT:
        return True
    try:
        with open(path, "rb") as f:
            chunk = f.read(2048)
    except OSError:
        return False
    return b"\0" not in chunk


def iter_files(
    root: str,
    ignore: Optional[PathSpec] = None,
    excludes: Optional[List[str]] = None,
    max_depth: Optional[int] = None,
) -> Iterable[str]:
    """Yield absolute paths of files under ``root`` in walk order.

    Directories matched by ``ignore`` or ``excludes`` are pruned before
    descending; ``max_depth`` counts directory levels below ``root``.
    """
    exclude_spec = PathSpec.from_lines("gitwildmatch", excludes or [])
    ignore = ignore or PathSpec.from_lines("gitwildmatch", [])
    for current, dirs, files in os.walk(root):
        rel_dir = os.path.relpath(current, root)
        depth = 0 if rel_dir == "." else rel_dir.count(os.sep) + 1
        if max_depth is not None and depth >= max_depth:
            dirs[:] = []
        kept = []
        for name in sorted(dirs):
            rel = _posix(os.path.relpath(os.path.join(current, name), root)) + "/"
            if ignore.match_file(rel) or exclude_spec.match_file(rel):
                continue
            kept.append(name)
        dirs[:] = kept
        for name in sorted(files):
            rel = _posix(os.path.relpath(os.path.join(current, name), root))
            if ignore.match_file(rel) or exclude_spec.match_file(rel):
                continue
            yield os.path.join(current, name)


def match_files(
    root: str,
    patterns: List[str],
    ignore: Optional[PathSpec] = None,
    excludes: Optional[List[str]] = None,
) -> List[str]:
    """Files under ``root`` whose root-relative path matches any gitwildmatch pattern."""
    spec = PathSpec.from_lines("gitwildmatch", patterns or [])
    return [
        path
        for path in iter_files(root, ignore, excludes)
        if spec.match_file(_posix(os.path.relpath(path, root)))
    ]


def write_text_atomic(path: str, text: str) -> None:
    """Write ``text`` as UTF-8 to a sibling temp file, then rename it over ``path``."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".techdebt-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def _posix(path: str) -> str:
    return path.replace(os.sep, "/")
