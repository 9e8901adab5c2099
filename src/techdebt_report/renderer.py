from __future__ import annotations
import os
from typing import Any, Dict, List, Optional, Sequence
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .errors import ReportWriteError
from .items import ItemType, Priority, TechDebtItem
from .utils import write_text_atomic

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")

SECTION_TITLES = [
    (ItemType.TECH_DEBT, "Annotated Tech Debt"),
    (ItemType.COMMENT, "Comments"),
    (ItemType.SUPPRESS, "Suppressed Rules"),
]


def ticket_url(ticket: str, base_ticket_url: Optional[str]) -> Optional[str]:
    if not base_ticket_url:
        return None
    if base_ticket_url.endswith("/"):
        return f"{base_ticket_url}{ticket}"
    return f"{base_ticket_url}/{ticket}"


def summarize(items: Sequence[TechDebtItem]) -> Dict[str, int]:
    """Tile counters. Priority buckets only count TECH_DEBT items."""
    debt = [it for it in items if it.type is ItemType.TECH_DEBT]
    return {
        "total": len(debt),
        "high": sum(1 for it in debt if it.priority is Priority.HIGH),
        "medium": sum(1 for it in debt if it.priority is Priority.MEDIUM),
        "low": sum(1 for it in debt if it.priority is Priority.LOW),
        "none": sum(1 for it in debt if it.priority in (Priority.NONE, Priority.UNSPECIFIED)),
        "comments": sum(1 for it in items if it.type is ItemType.COMMENT),
        "suppressed": sum(1 for it in items if it.type is ItemType.SUPPRESS),
    }


class ReportRenderer:
    def __init__(self, base_ticket_url: Optional[str] = None):
        self.base_ticket_url = base_ticket_url or None
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(enabled_extensions=("html", "html.j2")),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.globals["ItemType"] = ItemType
        self.env.globals["ticket_url"] = lambda ticket: ticket_url(ticket, self.base_ticket_url)

    def context(self, items: Sequence[TechDebtItem]) -> Dict[str, Any]:
        sections: List[Dict[str, Any]] = []
        for item_type, title in SECTION_TITLES:
            members = [it for it in items if it.type is item_type]
            if members:
                sections.append({"title": title, "items": members})
        return {
            "summary": summarize(items),
            "sections": sections,
        }

    def render(self, items: Sequence[TechDebtItem]) -> str:
        tmpl = self.env.get_template("report.html.j2")
        return tmpl.render(**self.context(items))

    def write(self, items: Sequence[TechDebtItem], path: str) -> str:
        html = self.render(items)
        try:
            write_text_atomic(path, html)
        except OSError as e:
            raise ReportWriteError(f"Could not write report to {path}: {e}") from e
        path = os.path.abspath(path)
        print(f"Wrote {path}")
        return path
