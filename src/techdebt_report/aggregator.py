from __future__ import annotations
from dataclasses import replace
from typing import Dict, Iterable, List

from .items import IdentityKey, TechDebtItem


def aggregate(items: Iterable[TechDebtItem]) -> List[TechDebtItem]:
    """Merge items sharing an identity key into one, unioning their source sets.

    The first item of each group is kept as the representative; groups come
    out in the order their first member was seen.
    """
    groups: Dict[IdentityKey, List[TechDebtItem]] = {}
    for item in items:
        groups.setdefault(item.identity_key, []).append(item)

    merged = []
    for group in groups.values():
        source_sets = sorted({it.source_set for it in group})
        merged.append(replace(group[0], source_set=", ".join(source_sets)))
    return merged


def sort_items(items: Iterable[TechDebtItem]) -> List[TechDebtItem]:
    # sorted() is stable, so ties keep their input order
    return sorted(items, key=lambda it: (it.module_name, it.priority_rank))


def merge_items(items: Iterable[TechDebtItem]) -> List[TechDebtItem]:
    return sort_items(aggregate(items))
