from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from .errors import ShardFormatError


class ItemType(Enum):
    TECH_DEBT = "TECH_DEBT"  # @TechDebt annotation
    SUPPRESS = "SUPPRESS"  # @Suppress annotation
    COMMENT = "COMMENT"  # TODO/FIXME comment

    @classmethod
    def parse(cls, raw: Any) -> "ItemType":
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip())
        except ValueError:
            return cls.TECH_DEBT


class Priority(Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = "NONE"
    UNSPECIFIED = ""

    @classmethod
    def parse(cls, raw: Any) -> "Priority":
        if isinstance(raw, cls):
            return raw
        if raw is None:
            return cls.UNSPECIFIED
        try:
            return cls(str(raw).strip())
        except ValueError:
            return cls.UNSPECIFIED

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK.get(self, NO_PRIORITY_RANK)


NO_PRIORITY_RANK = 3
UNKNOWN_SOURCE_SET = "unknown"
_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def priority_rank(priority: Union[Priority, str, None]) -> int:
    """HIGH=0, MEDIUM=1, LOW=2; NONE, empty and unrecognized values all rank 3."""
    return Priority.parse(priority).rank


IdentityKey = Tuple[str, str, str, str, Priority, ItemType]


@dataclass
class TechDebtItem:
    module_name: str
    name: str
    description: str
    ticket: str = ""
    priority: Priority = Priority.UNSPECIFIED
    type: ItemType = ItemType.TECH_DEBT
    source_set: str = ""
    location: Optional[str] = None
    date: Optional[str] = None  # legacy wire field
    last_modified: Optional[str] = None
    author: Optional[str] = None

    @property
    def identity_key(self) -> IdentityKey:
        return (self.module_name, self.name, self.description, self.ticket, self.priority, self.type)

    @property
    def priority_rank(self) -> int:
        return self.priority.rank

    @classmethod
    def from_dict(cls, data: Any) -> "TechDebtItem":
        if not isinstance(data, dict):
            raise ShardFormatError(f"expected a JSON object, got {type(data).__name__}")
        return cls(
            module_name=_text(data.get("moduleName")),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            ticket=_text(data.get("ticket")),
            priority=Priority.parse(data.get("priority")),
            type=ItemType.parse(data.get("type", ItemType.TECH_DEBT.value)),
            source_set=_text(data.get("sourceSet")),
            location=_optional_text(data.get("location")),
            date=_optional_text(data.get("date")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "moduleName": self.module_name,
            "name": self.name,
            "description": self.description,
            "ticket": self.ticket,
            "priority": self.priority.value,
            "sourceSet": self.source_set,
            "type": self.type.value,
            "location": self.location,
            "date": self.date,
            "lastModified": self.last_modified,
            "author": self.author,
        }


@dataclass
class GitInfo:
    author: Optional[str]
    last_modified: Optional[str]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _text(value)
