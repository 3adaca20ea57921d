"""Node templates: best-effort markdown parsing with an explicit fallback.

    fields = parse_template(text, "CPD").unwrap_or(default_template_data("CPD"))

A missing or unrecognisable template is normal; it just means the built-in
field set is used.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .model import Node
from .schema import CCD, CPD, default_status, required_keys
from .util.console import obs

TEMPLATE_DIRS = (
    "docs/templates",
    "docs/tempates",  # misspelt directory seen in existing repos
    ".",
    "../docs/templates",
    "../docs/tempates",
)

CPD_LIFECYCLES = (
    "Research / Pre-Product",
    "Incubation / Enablement",
    "Growth / Early Scale",
    "Infrastructure / Maintenance",
)
CCD_MATURITIES = (
    "Concept / Folklore",
    "Concept (Validated)",
    "Proto-Standard (Draft)",
)

CCD_RELATIONSHIP_RULES = (
    "Products may use ideas from this concept.",
    "Products must not be defined by this concept.",
    "This concept may be influenced by product reality.",
    "This concept must not replace product decisions.",
)

_NAME_RE = re.compile(r"\*\*Name:\*\*\s*`<([^>]+)>`")
_WHAT_IS_RE = re.compile(r"## 2\. What is this (product|concept)\?\s*`<([^>]+)>`", re.S)
_WHAT_IS_NOT_RE = re.compile(r"## 3\. What is this (product|concept) explicitly not\?\s*((?:- `<[^>]+>`\s*)+)", re.S)
_WHAT_IS_NOT_ITEM_RE = re.compile(r"- `<([^>]+)>`")
_NEVER_IMPLICIT_RE = re.compile(r"## 4\. Decision that must never be implicit\s*> `<([^>]+)>`", re.S)
_OWNER_RES = {
    "productOwner": re.compile(r"- \*\*Product Owner:\*\* `<([^>]+)>`"),
    "deliveryOwner": re.compile(r"- \*\*Delivery Owner:\*\* `<([^>]+)>`"),
    "technicalAuthority": re.compile(r"- \*\*Technical Authority:\*\* `<([^>]+)>`"),
}
_STEWARD_RE = re.compile(r"- \*\*Concept Steward:\*\* `<([^>]+)>`")
_LIFECYCLE_RE = re.compile(r"## 7\. Lifecycle\s*`<([^>]+)>`")
_MATURITY_RE = re.compile(r"## 7\. Maturity\s*`<([^>]+)>`")
_SLUG_RE = re.compile(r"[^a-z0-9]+")

_PLACEHOLDER_NOTS = {"NOT 1", "NOT 2"}


class TemplateParseError(ValueError):
    pass


class NodeFormError(ValueError):
    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__("Missing required field(s): " + ", ".join(self.missing))


@dataclass(frozen=True)
class ParseResult:
    fields: Optional[Dict[str, Any]] = None
    error: Optional[TemplateParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.fields is not None

    def unwrap(self) -> Dict[str, Any]:
        if not self.ok:
            raise self.error or TemplateParseError("no fields")
        return copy.deepcopy(self.fields)  # type: ignore[arg-type]

    def unwrap_or(self, default: Dict[str, Any]) -> Dict[str, Any]:
        return self.unwrap() if self.ok else default


def _check_type(node_type: str) -> str:
    t = str(node_type or "").upper()
    if t not in (CPD, CCD):
        raise ValueError(f"node type must be CPD or CCD, got {node_type!r}")
    return t


def default_template_data(node_type: str) -> Dict[str, Any]:
    t = _check_type(node_type)
    return {
        "type": t,
        "fields": {
            "name": "",
            "whatIs": "",
            "whatIsNot": [],
            "neverImplicit": "",
            "status": default_status(t),
        },
    }


def parse_template(text: Any, node_type: str) -> ParseResult:
    t = _check_type(node_type)
    if not isinstance(text, str) or not text.strip():
        return ParseResult(error=TemplateParseError("template is empty"))

    fields: Dict[str, Any] = {}
    matched = 0

    if _NAME_RE.search(text):
        fields["name"] = ""
        matched += 1
    if _WHAT_IS_RE.search(text):
        fields["whatIs"] = ""
        matched += 1
    m = _WHAT_IS_NOT_RE.search(text)
    if m:
        items = _WHAT_IS_NOT_ITEM_RE.findall(m.group(2))
        fields["whatIsNot"] = [x for x in items if x not in _PLACEHOLDER_NOTS]
        matched += 1
    if _NEVER_IMPLICIT_RE.search(text):
        fields["neverImplicit"] = ""
        matched += 1

    if t == CPD:
        for key, rx in _OWNER_RES.items():
            if rx.search(text):
                fields[key] = ""
                matched += 1
        fields["implementation"] = "TEAM"
        fields["scopePriority"] = "OWNER"
        fields["lifecycleGoNoGo"] = "EXPLICIT_ONLY"
        if _LIFECYCLE_RE.search(text):
            fields["lifecycle"] = ""
            matched += 1
    else:
        if _STEWARD_RE.search(text):
            fields["conceptSteward"] = ""
            matched += 1
        fields["productResponsibility"] = "NONE"
        fields["economicResponsibility"] = "NONE"
        if _MATURITY_RE.search(text):
            fields["maturity"] = ""
            matched += 1

    if not matched:
        return ParseResult(error=TemplateParseError(f"no {t} template headings recognised"))

    fields["status"] = default_status(t)
    return ParseResult(fields={"type": t, "fields": fields})


def find_template(node_type: str, base_dir: Union[str, Path] = ".") -> Optional[Path]:
    t = _check_type(node_type)
    base = Path(base_dir)
    for d in TEMPLATE_DIRS:
        p = base / d / f"{t}_TEMPLATE.md"
        if p.is_file():
            return p
    return None


def load_template(node_type: str, base_dir: Union[str, Path] = ".") -> Dict[str, Any]:
    path = find_template(node_type, base_dir)
    default = default_template_data(node_type)
    if path is None:
        obs("templates", "fallback", type=node_type, reason="not-found")
        return default
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as ex:
        obs("templates", "fallback", type=node_type, reason=f"read-error:{ex}")
        return default
    res = parse_template(text, node_type)
    if not res.ok:
        obs("templates", "fallback", type=node_type, reason=res.error)
    return res.unwrap_or(default)


def slugify(name: str) -> str:
    s = _SLUG_RE.sub("-", str(name or "").lower())
    return re.sub(r"-+", "-", s).strip("-")


def node_id_for(node_type: str, name: str) -> str:
    t = _check_type(node_type)
    return f"{t.lower()}-{slugify(name)}".strip("-")


def _s(form: Dict[str, Any], key: str) -> str:
    v = form.get(key)
    return "" if v is None else str(v).strip()


def _required_form_fields(t: str) -> List[str]:
    base = ["name", "whatIs", "neverImplicit"]
    if t == CPD:
        return base + ["productOwner", "deliveryOwner", "technicalAuthority", "lifecycle"]
    return base + ["maturity"]


def build_node(node_type: str, form: Dict[str, Any]) -> Node:
    """Build a new node from creation-form values.

    Raises NodeFormError naming every required field left blank. Blank
    status values become NONE.
    """
    t = _check_type(node_type)
    missing = [k for k in _required_form_fields(t) if not _s(form, k)]
    if missing:
        raise NodeFormError(missing)

    name = _s(form, "name")
    what_is_not = [str(x).strip() for x in (form.get("whatIsNot") or []) if str(x).strip()]
    raw_status = form.get("status") if isinstance(form.get("status"), dict) else {}
    status = {k: (str(raw_status.get(k) or "").strip() or "NONE") for k in required_keys(t)}

    if t == CPD:
        cpd = {
            "productName": name,
            "whatIs": _s(form, "whatIs"),
            "whatIsNot": what_is_not,
            "neverImplicit": _s(form, "neverImplicit"),
            "ownership": {
                "productOwner": _s(form, "productOwner"),
                "deliveryOwner": _s(form, "deliveryOwner"),
                "technicalAuthority": _s(form, "technicalAuthority"),
            },
            "decisionLevel": {
                "implementation": _s(form, "implementation") or "TEAM",
                "scopePriority": _s(form, "scopePriority") or "OWNER",
                "lifecycleGoNoGo": _s(form, "lifecycleGoNoGo") or "EXPLICIT_ONLY",
            },
            "lifecycle": _s(form, "lifecycle"),
            "status": status,
        }
        return Node(id=node_id_for(t, name), type=t, name=name, cpd=cpd)

    ccd = {
        "conceptName": name,
        "whatIs": _s(form, "whatIs"),
        "whatIsNot": what_is_not,
        "neverImplicit": _s(form, "neverImplicit"),
        "ownership": {
            "conceptSteward": _s(form, "conceptSteward") or "TBD",
            "productResponsibility": "NONE",
            "economicResponsibility": "NONE",
        },
        "relationshipRules": list(CCD_RELATIONSHIP_RULES),
        "maturity": _s(form, "maturity"),
        "status": status,
    }
    return Node(id=node_id_for(t, name), type=t, name=name, ccd=ccd)


__all__ = [
    "CCD_MATURITIES",
    "CPD_LIFECYCLES",
    "NodeFormError",
    "ParseResult",
    "TemplateParseError",
    "build_node",
    "default_template_data",
    "find_template",
    "load_template",
    "node_id_for",
    "parse_template",
    "slugify",
]
