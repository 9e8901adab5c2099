from __future__ import annotations
import logging
from typing import List

from .aggregator import merge_items
from .config import ReportConfig
from .generated import GeneratedItemCollector
from .gitinfo import GitEnricher
from .items import ItemType, TechDebtItem
from .renderer import ReportRenderer
from .resolver import SourceLocationResolver
from .scanner import CommentScanner

log = logging.getLogger(__name__)


def collect_items(cfg: ReportConfig) -> List[TechDebtItem]:
    """Raw, unmerged items from the shards and, when enabled, from source comments."""
    collector = GeneratedItemCollector(generated_dir_marker=cfg.generated_dir_marker)
    items = collector.collect(cfg.discover_shards())
    if not cfg.collect_suppress:
        items = [it for it in items if it.type is not ItemType.SUPPRESS]
    log.info("Collected %d items from shards (%d skipped)", len(items), len(collector.diagnostics))

    if cfg.collect_comments:
        comments = CommentScanner(cfg.project_dirs).scan(cfg.discover_sources())
        log.info("Collected %d TODO/FIXME comments", len(comments))
        items.extend(comments)
    return items


def build_items(cfg: ReportConfig) -> List[TechDebtItem]:
    items = merge_items(collect_items(cfg))
    if not cfg.enable_git_metadata:
        return items
    resolver = SourceLocationResolver(
        cfg.root_dir,
        module_dirs=cfg.module_dirs,
        excludes=cfg.exclude,
        max_depth=cfg.search_max_depth,
    )
    return GitEnricher(cfg.root_dir, resolver, timeout=cfg.git_timeout).enrich(items)


def generate_report(cfg: ReportConfig) -> str:
    """Run the whole pipeline and write the HTML report.

    Only a failure to write the report is raised (``ReportWriteError``);
    unreadable shards, sources or git history degrade the report instead.
    """
    items = build_items(cfg)
    return ReportRenderer(base_ticket_url=cfg.base_ticket_url).write(items, cfg.output_file)
