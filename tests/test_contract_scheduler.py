from __future__ import annotations

import datetime as dt
import math
import unittest
from pathlib import Path

from capgraph.model import Graph, Node, Task
from capgraph.scheduler import (
    daily_threshold,
    derive_tasks,
    pick_cpd_for_me,
    select_due,
    task_age,
    task_id,
)
from capgraph.store import load_graph

REPO_ROOT = Path(__file__).resolve().parents[1]
TODAY = dt.date(2026, 10, 19)


def _task(node_id: str, name: str, key: str) -> Task:
    return Task(id=task_id(node_id, key), node_id=node_id, node_name=name, node_type="CPD", field_key=key, label=key)


class TestSchedulerContract(unittest.TestCase):
    def setUp(self) -> None:
        self.graph = load_graph(REPO_ROOT / "tests" / "fixtures" / "data.json")

    def test_one_task_per_node_field(self) -> None:
        tasks = derive_tasks(self.graph)
        self.assertEqual(len(tasks), 18)
        self.assertEqual(tasks[0].id, "review_cpd-alpha_customerResearchData")
        self.assertEqual(tasks[0].text, "Alpha Platform: Customer Research Data")
        self.assertEqual(tasks[-1].id, "review_ccd-gamma_standardizationRisk")
        self.assertEqual(len({t.id for t in tasks}), 18)

    def test_nodes_of_other_types_have_no_tasks(self) -> None:
        g = Graph(nodes=[Node(id="x", type="OTHER", name="X")])
        self.assertEqual(derive_tasks(g), [])

    def test_older_completion_is_due_first(self) -> None:
        x = _task("n1", "N1", "x")
        y = _task("n1", "N1", "y")
        history = {x.id: (TODAY - dt.timedelta(days=10)).isoformat(), y.id: TODAY.isoformat()}
        due = select_due([y, x], history, 1, TODAY)
        self.assertEqual([d.task.id for d in due], ["review_n1_x"])
        self.assertEqual(due[0].age, 10.0)

    def test_never_completed_is_infinitely_old(self) -> None:
        self.assertTrue(math.isinf(task_age("review_a_b", {}, TODAY)))
        self.assertTrue(math.isinf(task_age("review_a_b", {"review_a_b": "garbage"}, TODAY)))

    def test_ties_break_by_node_name(self) -> None:
        tasks = [_task("z", "Zeta", "k"), _task("a", "Alpha", "k"), _task("m", "Mid", "k")]
        due = select_due(tasks, {}, 12, TODAY)
        self.assertEqual([d.task.node_name for d in due], ["Alpha", "Mid", "Zeta"])

    def test_name_tie_break_ignores_case(self) -> None:
        tasks = [_task("z", "Zeta", "k"), _task("a", "alpha", "k")]
        due = select_due(tasks, {}, 2, TODAY)
        self.assertEqual([d.task.node_name for d in due], ["alpha", "Zeta"])

    def test_pick_id_tie_break_ignores_case(self) -> None:
        g = Graph(
            nodes=[
                Node(id="Cpd-z", type="CPD", name="Z", cpd={"status": {"k": "TBD"}}),
                Node(id="cpd-a", type="CPD", name="A", cpd={"status": {"k": "TBD"}}),
            ]
        )
        self.assertEqual(pick_cpd_for_me(g).node.id, "cpd-a")

    def test_limit_bounds_result(self) -> None:
        tasks = derive_tasks(self.graph)
        self.assertEqual(len(select_due(tasks, {}, 12, TODAY)), 12)
        self.assertEqual(len(select_due(tasks, {}, 50, TODAY)), 18)
        self.assertEqual(select_due(tasks, {}, 0, TODAY), [])

    def test_select_due_is_deterministic(self) -> None:
        tasks = derive_tasks(self.graph)
        a = [d.task.id for d in select_due(tasks, {}, 12, TODAY)]
        b = [d.task.id for d in select_due(list(tasks), {}, 12, TODAY)]
        self.assertEqual(a, b)

    def test_pick_prefers_most_unknowns(self) -> None:
        p = pick_cpd_for_me(self.graph)
        self.assertIsNotNone(p)
        self.assertEqual(p.node.id, "cpd-beta")
        self.assertEqual(p.score, 13)
        self.assertEqual(
            p.reasons,
            ("customerResearchData=NONE", "valuePropositionClarity=TBD", "reliabilitySLO=NONE"),
        )

    def test_pick_lifecycle_bonus_and_id_tie_break(self) -> None:
        g = Graph(
            nodes=[
                Node(id="cpd-b", type="CPD", name="A", cpd={"status": {"k": "tbd"}}),
                Node(id="cpd-a", type="CPD", name="B", cpd={"status": {"k": "TBD"}}),
                Node(id="cpd-c", type="CPD", name="C", cpd={"lifecycle": "Incubation / Enablement", "status": {}}),
            ]
        )
        p = pick_cpd_for_me(g)
        self.assertEqual(p.node.id, "cpd-a")
        self.assertEqual(p.score, 3)

    def test_pick_without_cpds(self) -> None:
        self.assertIsNone(pick_cpd_for_me(Graph()))

    def test_daily_threshold(self) -> None:
        self.assertEqual(daily_threshold(0), 3)
        self.assertEqual(daily_threshold(18), 3)
        self.assertEqual(daily_threshold(30), 6)


if __name__ == "__main__":
    unittest.main(verbosity=2)
