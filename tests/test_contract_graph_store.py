from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from capgraph.model import Node
from capgraph.store import (
    GraphLoadError,
    add_node,
    graph_from_dict,
    load_graph,
    node_ids,
    remove_node,
    save_graph,
    with_node,
)

REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURE = REPO_ROOT / "tests" / "fixtures" / "data.json"


class TestGraphStoreContract(unittest.TestCase):
    def test_load_normalises_link_endpoints(self) -> None:
        g = load_graph(FIXTURE)
        self.assertEqual(node_ids(g), ["cpd-alpha", "cpd-beta", "ccd-gamma"])
        self.assertEqual(g.links[1].source, "ccd-gamma")
        self.assertEqual(g.links[1].to_dict(), {"source": "ccd-gamma", "target": "cpd-alpha", "type": "inspired-by"})

    def test_save_then_load_keeps_document(self) -> None:
        g = load_graph(FIXTURE)
        with tempfile.TemporaryDirectory() as td:
            out = save_graph(g, Path(td) / "nested" / "data.json")
            doc = json.loads(out.read_text(encoding="utf-8"))
        self.assertEqual(doc["links"][1]["source"], "ccd-gamma")
        self.assertEqual(doc["nodes"][0]["cpd"]["status"]["reliabilitySLO"], "99.9%")

    def test_bad_documents_raise(self) -> None:
        with self.assertRaises(GraphLoadError):
            graph_from_dict([])
        with self.assertRaises(GraphLoadError):
            graph_from_dict({"nodes": {}})
        with self.assertRaises(GraphLoadError):
            load_graph(REPO_ROOT / "tests" / "fixtures" / "missing.json")
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "bad.json"
            p.write_text("{nope", encoding="utf-8")
            with self.assertRaises(GraphLoadError):
                load_graph(p)

    def test_remove_node_drops_touching_links(self) -> None:
        g = load_graph(FIXTURE)
        remove_node(g, "cpd-alpha")
        self.assertEqual(node_ids(g), ["cpd-beta", "ccd-gamma"])
        self.assertEqual(g.links, [])

    def test_add_node_replaces_same_id_in_place(self) -> None:
        g = load_graph(FIXTURE)
        add_node(g, Node(id="cpd-beta", type="CPD", name="Beta v2"))
        self.assertEqual(node_ids(g), ["cpd-alpha", "cpd-beta", "ccd-gamma"])
        self.assertEqual(g.get("cpd-beta").name, "Beta v2")
        add_node(g, Node(id="cpd-new", type="CPD", name="New"))
        self.assertEqual(node_ids(g)[-1], "cpd-new")

    def test_with_node_leaves_original_alone(self) -> None:
        g = load_graph(FIXTURE)
        g2 = with_node(g, Node(id="ccd-new", type="CCD", name="New"))
        self.assertEqual(len(g.nodes), 3)
        self.assertEqual(len(g2.nodes), 4)

    def test_duplicate_ids_later_wins(self) -> None:
        g = graph_from_dict({"nodes": [{"id": "a", "type": "CPD", "name": "one"}, {"id": "a", "type": "CPD", "name": "two"}]})
        self.assertEqual(g.get("a").name, "two")


if __name__ == "__main__":
    unittest.main(verbosity=2)
