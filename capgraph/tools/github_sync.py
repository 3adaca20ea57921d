#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from capgraph.github import (
    GitHubContentsClient,
    RemoteSyncError,
    delete_node_mutation,
    document_url,
    load_credentials,
    save_credentials,
)
from capgraph.kvstore import JsonFileStore, default_state_path
from capgraph.session import AppState, client_for, commit_generated_node, delete_node
from capgraph.store import GraphLoadError, graph_from_dict, load_graph, node_from_dict, save_graph


def _die(msg: str, rc: int = 2) -> int:
    print(f"[capgraph-github] ERROR: {msg}", file=sys.stderr)
    return rc


def _cmd_setup(ns: argparse.Namespace, store: JsonFileStore) -> int:
    client = GitHubContentsClient(ns.owner, ns.repo, ns.token)
    try:
        client.verify_credentials()
    except RemoteSyncError as e:
        return _die(f"Setup failed: {e}", rc=1)
    save_credentials(store, ns.owner, ns.repo, ns.token)
    print(f"[capgraph-github] configured {ns.owner}/{ns.repo}")
    return 0


def _cmd_add(ns: argparse.Namespace, store: JsonFileStore) -> int:
    try:
        raw = json.loads(Path(ns.node).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        return _die(f"Failed to load node JSON: {e}")
    if not isinstance(raw, dict) or not raw.get("id"):
        return _die("node JSON must be an object with an id")

    state = AppState(generated=node_from_dict(raw))
    try:
        commit_generated_node(state, client_for(store))
    except RemoteSyncError as e:
        return _die(str(e), rc=1)
    print(f"[capgraph-github] added {raw.get('type')} {raw.get('id')}")
    return 0


def _cmd_delete(ns: argparse.Namespace, store: JsonFileStore) -> int:
    try:
        graph = load_graph(ns.data) if ns.data else graph_from_dict({"nodes": [], "links": []})
    except GraphLoadError as e:
        return _die(str(e))
    state = AppState(graph=graph)
    try:
        client = client_for(store)
        if graph.get(ns.id) is None:
            # Not in the local copy; remove it remotely only.
            client.commit_with_retry(delete_node_mutation(ns.id), f"Delete node: {ns.id}")
        else:
            delete_node(state, client, ns.id)
    except RemoteSyncError as e:
        return _die(f"Delete failed, local data left unchanged: {e}", rc=1)
    if ns.data:
        save_graph(state.graph, ns.data)
    print(f"[capgraph-github] deleted {ns.id}")
    return 0


def _cmd_url(ns: argparse.Namespace, store: JsonFileStore) -> int:
    creds = load_credentials(store)
    if creds is None:
        return _die("GitHub integration not configured. Run setup first.")
    try:
        graph = load_graph(ns.data)
    except GraphLoadError as e:
        return _die(str(e))
    node = graph.get(ns.id)
    if node is None:
        return _die(f"unknown node id: {ns.id}")
    print(document_url(node, creds.owner, creds.repo))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="capgraph-github", description="Sync data.json with a GitHub repository.")
    ap.add_argument("--state", default=None, help="State file holding credentials (default: ~/.capgraph/state.json)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("setup", help="Verify and store owner/repo/token")
    p.add_argument("--owner", required=True)
    p.add_argument("--repo", required=True)
    p.add_argument("--token", required=True)
    p.set_defaults(func=_cmd_setup)

    p = sub.add_parser("add", help="Add (or replace) a node in the remote data.json")
    p.add_argument("--node", required=True, help="Node JSON file")
    p.set_defaults(func=_cmd_add)

    p = sub.add_parser("delete", help="Delete a node and its links remotely (and locally with --data)")
    p.add_argument("--id", required=True)
    p.add_argument("--data", default=None, help="Local data.json to update on success")
    p.set_defaults(func=_cmd_delete)

    p = sub.add_parser("url", help="Print the GitHub document URL for a node")
    p.add_argument("--id", required=True)
    p.add_argument("--data", default="data.json")
    p.set_defaults(func=_cmd_url)

    ns = ap.parse_args(argv)
    store = JsonFileStore(Path(ns.state).expanduser() if ns.state else default_state_path())
    return ns.func(ns, store)


if __name__ == "__main__":
    raise SystemExit(main())
