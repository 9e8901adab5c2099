from __future__ import annotations
import logging, os, re, subprocess
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional

from .errors import GitCommandError
from .items import GitInfo, TechDebtItem
from .resolver import SourceLocationResolver, split_location
from .utils import find_repo_root

log = logging.getLogger(__name__)

UNCOMMITTED_SHA = "0" * 40
# SHA-1 or SHA-256 object names
_OBJECT_NAME = re.compile(r"^[0-9a-f]{40,}$")
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class BlameLine:
    sha: str
    author: Optional[str] = None
    author_time: Optional[int] = None

    @property
    def committed(self) -> bool:
        return self.sha.strip("0") != ""


def run(cmd: List[str], cwd: Optional[str] = None, timeout: Optional[float] = 30) -> str:
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
    except (OSError, subprocess.TimeoutExpired) as e:
        raise GitCommandError(f"{' '.join(cmd)}: {e}") from e
    if res.returncode != 0:
        raise GitCommandError(f"{' '.join(cmd)} exited with {res.returncode}: {res.stderr.strip()}")
    return res.stdout


def git_blame(repo_root: str, rel_path: str, timeout: Optional[float] = 30) -> Dict[int, BlameLine]:
    # blame follows file renames on its own
    out = run(["git", "blame", "--line-porcelain", "--", rel_path], cwd=repo_root, timeout=timeout)
    return parse_blame(out)


def parse_blame(output: str) -> Dict[int, BlameLine]:
    """Parse ``git blame --line-porcelain`` into BlameLines keyed by 1-based final line."""
    lines: Dict[int, BlameLine] = {}
    current: Optional[BlameLine] = None
    for raw in output.splitlines():
        if raw.startswith("\t"):
            current = None
            continue
        parts = raw.split(" ")
        if current is None:
            # header: <sha> <orig-line> <final-line> [<group-size>]
            if len(parts) >= 3 and _OBJECT_NAME.match(parts[0]) and parts[2].isdigit():
                current = BlameLine(sha=parts[0])
                lines[int(parts[2])] = current
            continue
        if parts[0] == "author":
            current.author = raw[len("author "):]
        elif parts[0] == "author-time" and len(parts) > 1 and parts[1].isdigit():
            current.author_time = int(parts[1])
    return lines


def format_timestamp(epoch: int) -> str:
    return datetime.fromtimestamp(epoch).strftime(DATE_FORMAT)


class GitEnricher:
    """Attaches last author and modification time to items via ``git blame``.

    Blame output is cached per repository-relative path for the lifetime of
    the enricher. Any failure for one item leaves its provenance unset.
    """

    def __init__(
        self,
        root_dir: str,
        resolver: SourceLocationResolver,
        enabled: bool = True,
        timeout: Optional[float] = 30,
    ):
        self.root_dir = root_dir
        self.resolver = resolver
        self.enabled = enabled
        self.timeout = timeout
        self.blame_cache: Dict[str, Optional[Dict[int, BlameLine]]] = {}

    def enrich(self, items: List[TechDebtItem]) -> List[TechDebtItem]:
        if not self.enabled:
            return items
        repo_root = find_repo_root(self.root_dir)
        if repo_root is None:
            log.info("No git repository found above %s, skipping git metadata", self.root_dir)
            return items
        repo_root = os.path.realpath(repo_root)
        enriched = []
        for item in items:
            try:
                info = self.git_info(repo_root, item)
            except OSError as e:
                log.warning("Failed to get git info for %s: %s", item.location, e)
                info = None
            if info is None:
                enriched.append(item)
            else:
                enriched.append(replace(item, author=info.author, last_modified=info.last_modified))
        return enriched

    def git_info(self, repo_root: str, item: TechDebtItem) -> Optional[GitInfo]:
        if not item.location:
            return None
        _, line = split_location(item.location)
        if line is None or line < 1:
            return None
        source = self.resolver.resolve(item.location, item.module_name)
        if source is None or not source.is_file():
            return None
        rel = os.path.relpath(os.path.realpath(source), repo_root)
        if rel.startswith(os.pardir):
            log.debug("%s is outside the repository %s", source, repo_root)
            return None
        rel = rel.replace(os.sep, "/")

        blame = self.blame(repo_root, rel)
        if blame is None:
            return None
        entry = blame.get(line)
        if entry is None or not entry.committed:
            return None
        last_modified = format_timestamp(entry.author_time) if entry.author_time is not None else None
        return GitInfo(author=entry.author, last_modified=last_modified)

    def blame(self, repo_root: str, rel_path: str) -> Optional[Dict[int, BlameLine]]:
        if rel_path not in self.blame_cache:
            try:
                self.blame_cache[rel_path] = git_blame(repo_root, rel_path, timeout=self.timeout)
            except GitCommandError as e:
                log.warning("Failed to get git blame for %s: %s", rel_path, e)
                self.blame_cache[rel_path] = None
        return self.blame_cache[rel_path]
