#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from capgraph.cli import load_graph_or_exit
from capgraph.kvstore import JsonFileStore, default_state_path
from capgraph.github import RemoteSyncError
from capgraph.session import AppState, client_for, commit_generated_node, export_with_generated, generate_node
from capgraph.templates import CCD_MATURITIES, CPD_LIFECYCLES, NodeFormError, load_template

_FORM_FLAGS = {
    "name": "name",
    "what_is": "whatIs",
    "never_implicit": "neverImplicit",
    "product_owner": "productOwner",
    "delivery_owner": "deliveryOwner",
    "technical_authority": "technicalAuthority",
    "concept_steward": "conceptSteward",
}


def _die(msg: str, rc: int = 2) -> int:
    print(f"[capgraph-new-node] ERROR: {msg}", file=sys.stderr)
    return rc


def _parse_pairs(items: List[str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for it in items:
        if "=" not in it:
            raise ValueError(f"expected key=value, got {it!r}")
        k, v = it.split("=", 1)
        out[k.strip()] = v.strip()
    return out


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="capgraph-new-node", description="Create a CPD/CCD node from its template.")
    ap.add_argument("--type", required=True, choices=["CPD", "CCD"], help="Node type")
    ap.add_argument("--templates-dir", default=".", help="Where to look for docs/templates/<TYPE>_TEMPLATE.md")
    for flag in _FORM_FLAGS:
        ap.add_argument("--" + flag.replace("_", "-"), dest=flag, default=None)
    ap.add_argument("--lifecycle", choices=CPD_LIFECYCLES, default=None, help="CPD lifecycle stage")
    ap.add_argument("--maturity", choices=CCD_MATURITIES, default=None, help="CCD maturity")
    ap.add_argument("--not", dest="what_is_not", action="append", default=[], help="'What it is not' item (repeatable)")
    ap.add_argument("--status", action="append", default=[], help="Status value key=value (repeatable)")
    ap.add_argument("--out", default=None, help="Write the node JSON here (default: stdout)")
    ap.add_argument("--data", default=None, help="Existing data.json; with --full-out writes it with the node added")
    ap.add_argument("--full-out", default=None, help="Write the full document with the new node")
    ap.add_argument("--commit", action="store_true", help="Commit the node to the configured GitHub repository")
    ap.add_argument("--state", default=None, help="State file holding GitHub credentials")
    ns = ap.parse_args(argv)

    template = load_template(ns.type, ns.templates_dir)
    form: Dict[str, Any] = dict(template.get("fields") or {})
    for flag, key in _FORM_FLAGS.items():
        v = getattr(ns, flag)
        if v is not None:
            form[key] = v
    for key in ("lifecycle", "maturity"):
        if getattr(ns, key) is not None:
            form[key] = getattr(ns, key)
    if ns.what_is_not:
        form["whatIsNot"] = list(ns.what_is_not)
    try:
        status = dict(form.get("status") or {})
        status.update(_parse_pairs(ns.status))
    except ValueError as e:
        return _die(str(e))
    form["status"] = status

    state = AppState(graph=load_graph_or_exit(ns.data)) if ns.data else AppState()
    try:
        node = generate_node(state, ns.type, form)
    except NodeFormError as e:
        return _die(str(e))

    node_json = json.dumps(node.to_dict(), ensure_ascii=False, indent=2)
    if ns.out:
        Path(ns.out).write_text(node_json + "\n", encoding="utf-8")
        print(ns.out)
    else:
        print(node_json)

    if ns.full_out:
        full = export_with_generated(state)
        Path(ns.full_out).write_text(json.dumps(full, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
        print(ns.full_out)

    if ns.commit:
        store = JsonFileStore(Path(ns.state).expanduser() if ns.state else default_state_path())
        try:
            client = client_for(store)
            commit_generated_node(state, client)
        except RemoteSyncError as e:
            return _die(f"Commit failed: {e}", rc=1)
        print(f"[capgraph-new-node] committed {node.type} {node.id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
