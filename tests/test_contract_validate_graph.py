from __future__ import annotations

import unittest
from pathlib import Path

from capgraph.model import Graph, Link, Node
from capgraph.store import graph_from_dict, load_graph
from capgraph.validate import GraphValidationError, assert_valid_graph, validate

REPO_ROOT = Path(__file__).resolve().parents[1]

CPD_FULL = {
    "customerResearchData": "Interviews",
    "valuePropositionClarity": "Clear",
    "pricingEconomicModel": "NONE",
    "reliabilitySLO": "NONE",
    "securityRiskPosture": "Reviewed",
    "operationalOwnership": "Team Ops",
}
CCD_FULL = {
    "userAudienceEvidence": "NONE",
    "problemDefinitionClarity": "TBD",
    "adoptionEvidence": "NONE",
    "productizationEligibility": "NOT ELIGIBLE",
    "ownershipStatus": "NONE",
    "standardizationRisk": "HIGH",
}


def _cpd(node_id: str, name: str, **status: object) -> Node:
    st = dict(CPD_FULL)
    st.update(status)
    return Node(id=node_id, type="CPD", name=name, cpd={"status": st})


def _ccd(node_id: str, name: str, **status: object) -> Node:
    st = dict(CCD_FULL)
    st.update(status)
    return Node(id=node_id, type="CCD", name=name, ccd={"status": st})


class TestValidateGraphContract(unittest.TestCase):
    def test_fixture_has_no_errors_and_two_warnings(self) -> None:
        g = load_graph(REPO_ROOT / "tests" / "fixtures" / "data.json")
        res = validate(g)
        self.assertEqual(res.errors, ())
        self.assertEqual(
            list(res.warnings),
            [
                'Define "Security Risk Posture" for CPD "Beta Billing" before setting pricing model',
                'Assign "Ownership Status" to CCD "Gamma Idea" since it\'s marked as productization-eligible',
            ],
        )
        self.assertTrue(res.ok)

    def test_complete_cpd_without_links_is_clean(self) -> None:
        res = validate(Graph(nodes=[_cpd("cpd-x", "X")]))
        self.assertEqual(res.to_dict(), {"errors": [], "warnings": []})

    def test_depends_on_link_gives_two_errors(self) -> None:
        g = Graph(nodes=[_ccd("a", "A"), _ccd("b", "B")], links=[Link("a", "b", "depends-on")])
        res = validate(g)
        self.assertEqual(
            list(res.errors),
            [
                'Change link type from "depends-on" to "uses" or "inspired-by" for A → B',
                'Remove "depends-on" link between A and B. Use "uses" for optional relationships instead.',
            ],
        )

    def test_cpd_to_cpd_inspired_by_is_reported_twice(self) -> None:
        g = Graph(nodes=[_cpd("p1", "P1"), _cpd("p2", "P2")], links=[Link("p1", "p2", "inspired-by")])
        errs = validate(g).errors
        self.assertEqual(len(errs), 2)
        self.assertIn('CPDs can only have "uses" relationships with other CPDs.', errs[0])
        self.assertIn("CPDs cannot be inspired by other CPDs.", errs[1])

    def test_unknown_endpoint_stops_further_link_checks(self) -> None:
        g = Graph(nodes=[_cpd("p1", "P1")], links=[Link("p1", "ghost", "depends-on")])
        errs = validate(g).errors
        self.assertEqual(errs, ('Fix link: references unknown node {"source":"p1","target":"ghost","type":"depends-on"}',))

    def test_object_endpoints_are_normalised_before_checks(self) -> None:
        doc = {
            "nodes": [_cpd("p1", "P1").to_dict(), _cpd("p2", "P2").to_dict()],
            "links": [{"source": {"id": "p1", "x": 1}, "target": {"id": "p2"}, "type": "uses"}],
        }
        self.assertEqual(validate(graph_from_dict(doc)).errors, ())

    def test_missing_required_key(self) -> None:
        n = _cpd("p1", "P1")
        del n.cpd["status"]["operationalOwnership"]
        res = validate(Graph(nodes=[n]))
        self.assertEqual(list(res.errors), ['Set Operational Ownership for CPD "P1"'])

    def test_empty_values_and_extra_keys(self) -> None:
        n = _cpd("p1", "P1", reliabilitySLO="", securityRiskPosture=None, fooBarBaz="x")
        res = validate(Graph(nodes=[n]))
        self.assertEqual(
            list(res.errors),
            ['Fill in Reliability SLO, Security Risk Posture for CPD "P1" (currently empty)'],
        )
        self.assertEqual(
            list(res.warnings),
            ['Remove Foo Bar Baz from CPD "P1" (not part of CPD schema)'],
        )

    def test_node_without_status(self) -> None:
        res = validate(Graph(nodes=[Node(id="p1", type="CPD", name="P1", cpd={})]))
        self.assertEqual(list(res.errors), ['Add status fields to CPD "P1"'])

    def test_top_level_status_wins_over_nested(self) -> None:
        n = _cpd("p1", "P1")
        n.status = {"customerResearchData": "x"}
        errs = validate(Graph(nodes=[n])).errors
        self.assertEqual(len(errs), 1)
        self.assertTrue(errs[0].startswith("Set Value Proposition Clarity, "))

    def test_product_only_field_on_ccd(self) -> None:
        res = validate(Graph(nodes=[_ccd("c1", "C1", pricingEconomicModel="Paid")]))
        self.assertIn('Remove "Pricing / Economic Model" from CCD "C1" (product-only field)', res.errors)
        self.assertEqual(
            [e for e in res.errors if "product-only" in e],
            ['Remove "Pricing / Economic Model" from CCD "C1" (product-only field)'],
        )

    def test_concept_only_field_on_cpd_is_a_warning(self) -> None:
        res = validate(Graph(nodes=[_cpd("p1", "P1", standardizationRisk="LOW")]))
        self.assertEqual(res.errors, ())
        self.assertIn('Remove "Standardization Risk" from CPD "P1" (concept-only field)', res.warnings)

    def test_reliability_promise_needs_ownership(self) -> None:
        res = validate(Graph(nodes=[_cpd("p1", "P1", reliabilitySLO="99.9%", operationalOwnership="TBD")]))
        self.assertEqual(res.errors, ())
        self.assertEqual(
            list(res.warnings),
            ['Define "Operational Ownership" for CPD "P1" before setting reliability promises'],
        )

    def test_pricing_na_does_not_need_security(self) -> None:
        res = validate(Graph(nodes=[_cpd("p1", "P1", pricingEconomicModel="n/a", securityRiskPosture="TBD")]))
        self.assertEqual(res.warnings, ())

    def test_groups_are_ordered_links_first(self) -> None:
        bad = _cpd("p1", "P1")
        del bad.cpd["status"]["pricingEconomicModel"]
        g = Graph(nodes=[bad, _cpd("p2", "P2")], links=[Link("p1", "p2", "weird")])
        errs = validate(g).errors
        self.assertTrue(errs[0].startswith('Change link type from "weird"'))
        self.assertTrue(errs[-1].startswith("Set Pricing / Economic Model"))

    def test_validate_is_idempotent_and_leaves_graph_alone(self) -> None:
        g = load_graph(REPO_ROOT / "tests" / "fixtures" / "data.json")
        before = g.nodes[0].to_dict()
        self.assertEqual(validate(g), validate(g))
        self.assertEqual(g.nodes[0].to_dict(), before)

    def test_assert_valid_graph_raises_first_error(self) -> None:
        g = Graph(nodes=[Node(id="p1", type="CPD", name="P1")])
        with self.assertRaises(GraphValidationError) as ctx:
            assert_valid_graph(g)
        self.assertIn("Add status fields", str(ctx.exception))


if __name__ == "__main__":
    unittest.main(verbosity=2)
