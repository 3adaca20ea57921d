"""Graph validation (library-facing).

`validate(graph)` is pure: it never raises on bad data, it reports it.
Findings come out grouped A (links), B (status completeness),
C (category misuse), D (risky combinations); inside a group they follow
the order of `graph.links` / `graph.nodes`. Nothing is deduplicated.
"""

from __future__ import annotations

import json
from typing import Dict, List

from .model import Graph, Link, Node, ValidationResult, get_status
from .schema import (
    ALLOWED_LINK_TYPES,
    CCD,
    CONCEPT_ONLY_KEYS,
    CPD,
    LINK_DEPENDS_ON,
    LINK_INSPIRED_BY,
    LINK_USES,
    PRODUCT_ONLY_KEYS,
    humanize,
    humanize_list,
    norm_upper,
    required_keys,
)


class GraphValidationError(ValueError):
    """Raised by assert_valid_graph when a graph has validation errors."""


def _link_json(link: Link) -> str:
    return json.dumps(link.to_dict(), ensure_ascii=False, separators=(",", ":"))


def _check_links(graph: Graph, by_id: Dict[str, Node], errs: List[str]) -> None:
    for l in graph.links:
        s = by_id.get(l.source)
        t = by_id.get(l.target)
        if s is None or t is None:
            errs.append(f"Fix link: references unknown node {_link_json(l)}")
            continue

        if l.type not in ALLOWED_LINK_TYPES:
            errs.append(f'Change link type from "{l.type}" to "uses" or "inspired-by" for {s.name} → {t.name}')

        # Never in the allowed set, so this always comes on top of the one above.
        if l.type == LINK_DEPENDS_ON:
            errs.append(
                f'Remove "depends-on" link between {s.name} and {t.name}. '
                'Use "uses" for optional relationships instead.'
            )

        both_cpd = s.type == CPD and t.type == CPD
        if both_cpd and l.type != LINK_USES:
            errs.append(
                f'Change link type to "uses" for {s.name} → {t.name}. '
                'CPDs can only have "uses" relationships with other CPDs.'
            )

        if l.type == LINK_INSPIRED_BY and both_cpd:
            errs.append(
                f'Change link type from "inspired-by" to "uses" for {s.name} → {t.name}. '
                "CPDs cannot be inspired by other CPDs."
            )


def _check_status_schema(graph: Graph, errs: List[str], warns: List[str]) -> None:
    for node in graph.nodes:
        status = get_status(node)
        if status is None:
            errs.append(f'Add status fields to {node.type} "{node.name}"')
            continue

        req = required_keys(node.type)
        missing = [k for k in req if k not in status]
        empty = [k for k in req if k in status and (status[k] is None or status[k] == "")]
        if missing:
            errs.append(f'Set {humanize_list(missing)} for {node.type} "{node.name}"')
        if empty:
            errs.append(f'Fill in {humanize_list(empty)} for {node.type} "{node.name}" (currently empty)')

        extra = [k for k in status if k not in req]
        if extra:
            warns.append(
                f'Remove {humanize_list(extra)} from {node.type} "{node.name}" (not part of {node.type} schema)'
            )


def _check_category_misuse(graph: Graph, errs: List[str], warns: List[str]) -> None:
    for node in graph.nodes:
        status = get_status(node) or {}
        if node.type == CCD:
            for k in PRODUCT_ONLY_KEYS:
                if k in status:
                    errs.append(f'Remove "{humanize(k)}" from CCD "{node.name}" (product-only field)')
        if node.type == CPD:
            for k in CONCEPT_ONLY_KEYS:
                if k in status:
                    warns.append(f'Remove "{humanize(k)}" from CPD "{node.name}" (concept-only field)')


def _check_risky_combinations(graph: Graph, warns: List[str]) -> None:
    for node in graph.nodes:
        if node.type != CPD:
            continue
        status = get_status(node) or {}

        slo = norm_upper(status.get("reliabilitySLO"))
        ownership = norm_upper(status.get("operationalOwnership"))
        if slo not in ("", "NONE") and ownership in ("NONE", "TBD"):
            warns.append(
                f'Define "Operational Ownership" for CPD "{node.name}" before setting reliability promises'
            )

        pricing = norm_upper(status.get("pricingEconomicModel"))
        security = norm_upper(status.get("securityRiskPosture"))
        if pricing not in ("", "NONE", "N/A") and security in ("NONE", "TBD"):
            warns.append(f'Define "Security Risk Posture" for CPD "{node.name}" before setting pricing model')

    for node in graph.nodes:
        if node.type != CCD:
            continue
        status = get_status(node) or {}
        eligibility = norm_upper(status.get("productizationEligibility"))
        owner = norm_upper(status.get("ownershipStatus"))
        if eligibility == "ELIGIBLE" and owner == "NONE":
            warns.append(
                f'Assign "Ownership Status" to CCD "{node.name}" since it\'s marked as productization-eligible'
            )


def validate(graph: Graph) -> ValidationResult:
    errs: List[str] = []
    warns: List[str] = []
    by_id = graph.by_id()

    _check_links(graph, by_id, errs)
    _check_status_schema(graph, errs, warns)
    _check_category_misuse(graph, errs, warns)
    _check_risky_combinations(graph, warns)

    return ValidationResult(errors=tuple(errs), warnings=tuple(warns))


def assert_valid_graph(graph: Graph) -> None:
    res = validate(graph)
    if res.errors:
        raise GraphValidationError(res.errors[0])


__all__ = [
    "GraphValidationError",
    "assert_valid_graph",
    "validate",
]
