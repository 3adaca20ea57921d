"""Graph Store: `data.json` <-> Graph, plus add/remove.

Links are normalised once here: an endpoint given as an object with an
`id` (what a layout engine leaves behind) is reduced to the plain id, so
nothing downstream has to care which shape it was.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .model import Graph, Link, Node
from .util.console import obs

JsonPath = Union[str, Path]


class GraphLoadError(ValueError):
    """Raised when a document is not a `{nodes: [...], links: [...]}` object."""


def endpoint_id(v: Any) -> str:
    if isinstance(v, dict):
        v = v.get("id")
    if v is None:
        return ""
    return str(v)


def _opt_dict(v: Any) -> Optional[Dict[str, Any]]:
    return copy.deepcopy(v) if isinstance(v, dict) else None


def node_from_dict(raw: Dict[str, Any]) -> Node:
    return Node(
        id=str(raw.get("id") or ""),
        type=str(raw.get("type") or ""),
        name=str(raw.get("name") if raw.get("name") is not None else ""),
        cpd=_opt_dict(raw.get("cpd")),
        ccd=_opt_dict(raw.get("ccd")),
        status=_opt_dict(raw.get("status")),
    )


def link_from_dict(raw: Dict[str, Any]) -> Link:
    t = raw.get("type")
    return Link(
        source=endpoint_id(raw.get("source")),
        target=endpoint_id(raw.get("target")),
        type="" if t is None else str(t),
    )


def graph_from_dict(doc: Any) -> Graph:
    if not isinstance(doc, dict):
        raise GraphLoadError("graph document must be a JSON object")
    nodes_raw = doc.get("nodes") or []
    links_raw = doc.get("links") or []
    if not isinstance(nodes_raw, list):
        raise GraphLoadError("graph document: nodes must be a list")
    if not isinstance(links_raw, list):
        raise GraphLoadError("graph document: links must be a list")

    nodes = [node_from_dict(n) for n in nodes_raw if isinstance(n, dict)]
    links = [link_from_dict(l) for l in links_raw if isinstance(l, dict)]
    return Graph(nodes=nodes, links=links)


def graph_to_dict(graph: Graph) -> Dict[str, Any]:
    """Export shape: only id/type/name/cpd/ccd/status per node and plain id links."""
    return {
        "nodes": [n.to_dict() for n in graph.nodes],
        "links": [l.to_dict() for l in graph.links],
    }


def load_graph(path: JsonPath) -> Graph:
    p = Path(path)
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as ex:
        raise GraphLoadError(f"graph document not found: {p}") from ex
    except json.JSONDecodeError as ex:
        raise GraphLoadError(f"graph document is not valid JSON: {p} ({ex})") from ex
    g = graph_from_dict(doc)
    obs("store", "load.ok", path=p, nodes=len(g.nodes), links=len(g.links))
    return g


def dumps_graph(graph: Graph) -> str:
    return json.dumps(graph_to_dict(graph), ensure_ascii=False, indent=2)


def save_graph(graph: Graph, path: JsonPath) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(dumps_graph(graph) + "\n", encoding="utf-8")
    return p


def snapshot(graph: Graph) -> Graph:
    return copy.deepcopy(graph)


def add_node(graph: Graph, node: Node) -> Graph:
    """Insert `node`, replacing an existing node with the same id in place."""
    for i, n in enumerate(graph.nodes):
        if n.id == node.id:
            graph.nodes[i] = node
            return graph
    graph.nodes.append(node)
    return graph


def remove_node(graph: Graph, node_id: str) -> Graph:
    """Drop the node and every link that touches it."""
    graph.nodes = [n for n in graph.nodes if n.id != node_id]
    graph.links = [l for l in graph.links if not l.touches(node_id)]
    return graph


def with_node(graph: Graph, node: Node) -> Graph:
    """Copy of `graph` with `node` added (the graph itself is left alone)."""
    return add_node(snapshot(graph), node)


def node_ids(graph: Graph) -> List[str]:
    return [n.id for n in graph.nodes]


__all__ = [
    "GraphLoadError",
    "add_node",
    "endpoint_id",
    "dumps_graph",
    "graph_from_dict",
    "graph_to_dict",
    "link_from_dict",
    "load_graph",
    "node_from_dict",
    "node_ids",
    "remove_node",
    "save_graph",
    "snapshot",
    "with_node",
]
