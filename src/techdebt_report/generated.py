from __future__ import annotations
import json, logging, os
from typing import Iterable, List, Optional, Set

from .errors import ShardFormatError
from .items import UNKNOWN_SOURCE_SET, TechDebtItem

log = logging.getLogger(__name__)

DEFAULT_GENERATED_DIR_MARKER = "ksp"
DEFAULT_AMBIGUOUS_SOURCE_SETS = frozenset({UNKNOWN_SOURCE_SET, "main"})


class GeneratedItemCollector:
    """Reads the per-module JSON shards written by the annotation processor.

    A malformed shard is skipped and recorded in ``diagnostics``; the
    remaining shards are still collected.
    """

    def __init__(
        self,
        generated_dir_marker: str = DEFAULT_GENERATED_DIR_MARKER,
        ambiguous_source_sets: Optional[Iterable[str]] = None,
    ):
        self.generated_dir_marker = generated_dir_marker
        self.ambiguous_source_sets: Set[str] = set(
            DEFAULT_AMBIGUOUS_SOURCE_SETS if ambiguous_source_sets is None else ambiguous_source_sets
        )
        self.diagnostics: List[str] = []

    def collect(self, shard_paths: Iterable[str]) -> List[TechDebtItem]:
        items: List[TechDebtItem] = []
        for path in shard_paths:
            path = str(path)
            if not os.path.isfile(path):
                log.debug("Shard %s does not exist, skipping", path)
                continue
            try:
                shard_items = self.parse_shard(path)
            except (ShardFormatError, OSError) as e:
                message = f"Skipped shard {path}: {e}"
                self.diagnostics.append(message)
                log.warning(message)
                continue
            items.extend(shard_items)
        return items

    def parse_shard(self, path: str) -> List[TechDebtItem]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ShardFormatError(f"malformed JSON ({e})") from e
        if not isinstance(data, list):
            raise ShardFormatError(f"expected a JSON array, got {type(data).__name__}")

        items = [TechDebtItem.from_dict(entry) for entry in data]
        if any(it.source_set in self.ambiguous_source_sets for it in items):
            resolved = self.resolve_source_set(path)
            for it in items:
                if it.source_set not in self.ambiguous_source_sets:
                    continue
                if resolved is not None:
                    it.source_set = resolved
                elif it.source_set == UNKNOWN_SOURCE_SET:
                    log.debug("Could not infer source set for %s from its path", path)
        return items

    def resolve_source_set(self, path: str) -> Optional[str]:
        """Return the path segment right after the generated-output marker, if any.

        ``app/build/generated/ksp/iosArm64/resources/techdebt/report.json`` -> ``iosArm64``
        """
        parts = os.path.abspath(path).replace(os.sep, "/").split("/")
        try:
            index = parts.index(self.generated_dir_marker)
        except ValueError:
            return None
        if index + 1 >= len(parts) - 1:
            # the segment after the marker must be a directory, not the shard itself
            return None
        return parts[index + 1] or None
