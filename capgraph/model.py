# capgraph/model.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .schema import CPD


@dataclass
class Node:
    id: str
    type: str
    name: str
    cpd: Optional[Dict[str, Any]] = None
    ccd: Optional[Dict[str, Any]] = None
    # Legacy/alternate location for status; wins over the nested one.
    status: Optional[Dict[str, Any]] = None

    @property
    def payload(self) -> Optional[Dict[str, Any]]:
        return self.cpd if self.type == CPD else self.ccd

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "type": self.type, "name": self.name}
        if self.cpd is not None:
            out["cpd"] = copy.deepcopy(self.cpd)
        if self.ccd is not None:
            out["ccd"] = copy.deepcopy(self.ccd)
        if self.status is not None:
            out["status"] = copy.deepcopy(self.status)
        return out


@dataclass(frozen=True)
class Link:
    source: str
    target: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "type": self.type}

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


@dataclass
class Graph:
    nodes: List[Node] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    def by_id(self) -> Dict[str, Node]:
        # Later duplicates shadow earlier ones.
        return {n.id: n for n in self.nodes}

    def get(self, node_id: str) -> Optional[Node]:
        return self.by_id().get(node_id)


def get_status(node: Node) -> Optional[Dict[str, Any]]:
    """Status mapping for a node.

    Precedence: top-level `status`, then `cpd.status` for CPD nodes or
    `ccd.status` for every other type. Returns None when neither is a mapping.
    """
    if isinstance(node.status, dict):
        return node.status
    nested = node.payload
    if isinstance(nested, dict) and isinstance(nested.get("status"), dict):
        return nested["status"]
    return None


@dataclass(frozen=True)
class Task:
    id: str
    node_id: str
    node_name: str
    node_type: str
    field_key: str
    label: str

    @property
    def text(self) -> str:
        return f"{self.node_name}: {self.label}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nodeId": self.node_id,
            "nodeName": self.node_name,
            "nodeType": self.node_type,
            "fieldKey": self.field_key,
            "label": self.label,
            "text": self.text,
        }


@dataclass(frozen=True)
class DueTask:
    task: Task
    age: float  # whole days; inf when never completed


@dataclass(frozen=True)
class ValidationResult:
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, List[str]]:
        return {"errors": list(self.errors), "warnings": list(self.warnings)}


@dataclass(frozen=True)
class Pick:
    node: Node
    score: int
    reasons: Tuple[str, ...]


@dataclass(frozen=True)
class Streaks:
    daily: int
    weekly: int


__all__ = [
    "DueTask",
    "Graph",
    "Link",
    "Node",
    "Pick",
    "Streaks",
    "Task",
    "ValidationResult",
    "get_status",
]
