"""Status field tables for CPD/CCD nodes and sentinel handling."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

CPD = "CPD"
CCD = "CCD"
NODE_TYPES = (CPD, CCD)

LINK_USES = "uses"
LINK_INSPIRED_BY = "inspired-by"
LINK_DEPENDS_ON = "depends-on"
ALLOWED_LINK_TYPES = frozenset({LINK_USES, LINK_INSPIRED_BY})

# (key, label) in display/iteration order.
CPD_STATUS_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("customerResearchData", "Customer Research Data"),
    ("valuePropositionClarity", "Value Proposition Clarity"),
    ("pricingEconomicModel", "Pricing / Economic Model"),
    ("reliabilitySLO", "Reliability SLO"),
    ("securityRiskPosture", "Security Risk Posture"),
    ("operationalOwnership", "Operational Ownership"),
)

CCD_STATUS_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("userAudienceEvidence", "User Audience Evidence"),
    ("problemDefinitionClarity", "Problem Definition Clarity"),
    ("adoptionEvidence", "Adoption Evidence"),
    ("productizationEligibility", "Productization Eligibility"),
    ("ownershipStatus", "Ownership Status"),
    ("standardizationRisk", "Standardization Risk"),
)

CPD_STATUS_KEYS: Tuple[str, ...] = tuple(k for k, _ in CPD_STATUS_FIELDS)
CCD_STATUS_KEYS: Tuple[str, ...] = tuple(k for k, _ in CCD_STATUS_FIELDS)

# Fields that belong to one node type only.
PRODUCT_ONLY_KEYS: Tuple[str, ...] = ("pricingEconomicModel", "reliabilitySLO", "operationalOwnership")
CONCEPT_ONLY_KEYS: Tuple[str, ...] = ("productizationEligibility", "standardizationRisk")

_LABELS: Dict[str, str] = dict(CPD_STATUS_FIELDS + CCD_STATUS_FIELDS)

# Sentinel kinds
SENTINEL_NONE = "NONE"
SENTINEL_TBD = "TBD"
SENTINEL_NA = "NA"
EXPLICIT = "EXPLICIT"

_CAMEL_RE = re.compile(r"([A-Z])")


def required_keys(node_type: str) -> Tuple[str, ...]:
    # Anything that is not a CPD is held to the concept schema.
    return CPD_STATUS_KEYS if node_type == CPD else CCD_STATUS_KEYS


def status_fields(node_type: str) -> Tuple[Tuple[str, str], ...]:
    if node_type == CPD:
        return CPD_STATUS_FIELDS
    if node_type == CCD:
        return CCD_STATUS_FIELDS
    return ()


def humanize(key: str) -> str:
    """Display label for a status key.

    Known keys use the label table; anything else is split on camelCase
    boundaries ("fooBarBaz" -> "Foo Bar Baz").
    """
    if key in _LABELS:
        return _LABELS[key]
    s = _CAMEL_RE.sub(r" \1", str(key))
    if s:
        s = s[0].upper() + s[1:]
    return s.strip()


def humanize_list(keys: List[str]) -> str:
    return ", ".join(humanize(k) for k in keys)


def classify_status(value: Any) -> str:
    """Classify a status value as NONE / TBD / NA (N/A-prefixed) / EXPLICIT.

    Sentinels compare case-insensitively; everything else is free text.
    """
    s = str(value).upper() if value is not None else ""
    if s == "NONE":
        return SENTINEL_NONE
    if s == "TBD":
        return SENTINEL_TBD
    if s.startswith("N/A"):
        return SENTINEL_NA
    return EXPLICIT


def norm_upper(value: Any) -> str:
    """Upper-cased string form where falsy values read as ""."""
    return str(value or "").upper()


def default_status(node_type: str) -> Dict[str, str]:
    if node_type == CPD:
        return {
            "customerResearchData": "NONE",
            "valuePropositionClarity": "TBD",
            "pricingEconomicModel": "TBD",
            "reliabilitySLO": "NONE",
            "securityRiskPosture": "TBD",
            "operationalOwnership": "TBD",
        }
    return {
        "userAudienceEvidence": "NONE",
        "problemDefinitionClarity": "TBD",
        "adoptionEvidence": "NONE",
        "productizationEligibility": "NOT ELIGIBLE",
        "ownershipStatus": "NONE",
        "standardizationRisk": "HIGH",
    }


__all__ = [
    "ALLOWED_LINK_TYPES",
    "CCD",
    "CCD_STATUS_FIELDS",
    "CCD_STATUS_KEYS",
    "CONCEPT_ONLY_KEYS",
    "CPD",
    "CPD_STATUS_FIELDS",
    "CPD_STATUS_KEYS",
    "EXPLICIT",
    "LINK_DEPENDS_ON",
    "LINK_INSPIRED_BY",
    "LINK_USES",
    "NODE_TYPES",
    "PRODUCT_ONLY_KEYS",
    "SENTINEL_NA",
    "SENTINEL_NONE",
    "SENTINEL_TBD",
    "classify_status",
    "default_status",
    "humanize",
    "humanize_list",
    "norm_upper",
    "required_keys",
    "status_fields",
]
