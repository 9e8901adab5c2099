from __future__ import annotations
import logging, os, re
from typing import Dict, Iterable, List, Optional, Tuple

from .items import ItemType, Priority, TechDebtItem
from .utils import is_text_file

log = logging.getLogger(__name__)

# `// TODO: x`, `/* FIXME x */`, ` * TODO x`, `# TODO x`
TODO_COMMENT = re.compile(
    r"^\s*(?://|/\*\*?|\*|#)\s*(TODO|FIXME)\b[:\s]?(.*?)(?:\s*\*+/)?\s*$"
)


def comment_description(line: str) -> Optional[str]:
    """Return the description for a TODO/FIXME comment line, or None."""
    m = TODO_COMMENT.match(line)
    if not m:
        return None
    keyword, content = m.group(1), m.group(2).strip()
    return f"{keyword}: {content}" if content else keyword


class CommentScanner:
    """Collects TODO/FIXME comments, attributing each file to its most specific module.

    ``project_dirs`` maps absolute project directories to module identifiers
    such as ``:app:feature``.
    """

    def __init__(self, project_dirs: Dict[str, str]):
        self.projects: List[Tuple[str, str]] = sorted(
            ((os.path.realpath(d), module) for d, module in project_dirs.items()),
            key=lambda p: len(p[0]),
            reverse=True,
        )

    def owner_of(self, path: str) -> Optional[Tuple[str, str]]:
        real = os.path.realpath(path)
        for directory, module in self.projects:
            if _is_within(real, directory):
                return directory, module
        return None

    def scan(self, source_files: Iterable[str]) -> List[TechDebtItem]:
        items: List[TechDebtItem] = []
        for path in source_files:
            path = str(path)
            owner = self.owner_of(path)
            if owner is None:
                log.debug("No module owns %s, skipping", path)
                continue
            items.extend(self.scan_file(path, *owner))
        return items

    def scan_file(self, path: str, project_dir: str, module: str) -> List[TechDebtItem]:
        if not is_text_file(path):
            log.debug("Skipping binary file %s", path)
            return []
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                lines = f.read().splitlines()
        except OSError as e:
            log.warning("Could not read %s: %s", path, e)
            return []

        rel = os.path.relpath(os.path.realpath(path), project_dir).replace(os.sep, "/")
        items = []
        for index, line in enumerate(lines):
            description = comment_description(line)
            if description is None:
                continue
            where = f"{rel}:{index + 1}"
            items.append(
                TechDebtItem(
                    module_name=module,
                    name="",
                    description=description,
                    ticket="",
                    priority=Priority.UNSPECIFIED,
                    type=ItemType.COMMENT,
                    source_set=where,
                    location=where,
                )
            )
        return items


def _is_within(path: str, directory: str) -> bool:
    try:
        return os.path.commonpath([path, directory]) == directory
    except ValueError:
        # different drives
        return False
