"""Application state and the user-level operations that act on it.

`AppState` carries what a running view holds (graph, selection, node
being created). Operations take it explicitly; the pure parts (validate,
scheduler) only ever see `state.graph`.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .github import (
    GitHubContentsClient,
    RemoteSyncError,
    add_commit_message,
    add_node_mutation,
    delete_commit_message,
    delete_node_mutation,
    document_url,
    load_credentials,
)
from .kvstore import KeyValueStore
from .model import DueTask, Graph, Node, Pick, ValidationResult
from .routine import VALIDATION_WEEKLY_TASK, RoutineTracker
from .scheduler import DEFAULT_DAILY_LIMIT, derive_tasks, pick_cpd_for_me, select_due
from .store import add_node, graph_to_dict, remove_node, snapshot, with_node
from .templates import build_node
from .util.console import obs
from .validate import validate


@dataclass
class AppState:
    graph: Graph = field(default_factory=Graph)
    selected_id: Optional[str] = None
    generated: Optional[Node] = None

    @property
    def selected(self) -> Optional[Node]:
        if self.selected_id is None:
            return None
        return self.graph.get(self.selected_id)


def select_node(state: AppState, node_id: Optional[str]) -> AppState:
    if node_id is not None and state.graph.get(node_id) is None:
        raise KeyError(f"unknown node id: {node_id}")
    state.selected_id = node_id
    return state


def run_validation(state: AppState, tracker: RoutineTracker, today: Optional[dt.date] = None) -> ValidationResult:
    """Validate the current graph and tick the weekly "run validate" item."""
    res = validate(state.graph)
    tracker.mark_weekly(VALIDATION_WEEKLY_TASK, today)
    obs("session", "validate", errors=len(res.errors), warnings=len(res.warnings))
    return res


def due_tasks(
    state: AppState,
    tracker: RoutineTracker,
    limit: int = DEFAULT_DAILY_LIMIT,
    today: Optional[dt.date] = None,
) -> List[DueTask]:
    d = today if today is not None else tracker.today()
    return select_due(derive_tasks(state.graph), tracker.completion_history(), limit, d)


def pick_for_review(state: AppState) -> Optional[Pick]:
    p = pick_cpd_for_me(state.graph)
    if p is not None:
        state.selected_id = p.node.id
    return p


def open_node_document(
    state: AppState,
    tracker: RoutineTracker,
    store: KeyValueStore,
    node_id: str,
    field_key: str,
    today: Optional[dt.date] = None,
) -> str:
    """Record the field review as done today and return the node's document URL.

    Raises RemoteSyncError when no repository is configured (the review is
    still recorded).
    """
    node = state.graph.get(node_id)
    if node is None:
        raise KeyError(f"unknown node id: {node_id}")
    tracker.mark_field_task_complete(node_id, field_key, today)
    creds = load_credentials(store)
    if creds is None:
        raise RemoteSyncError("GitHub repository info not configured.")
    return document_url(node, creds.owner, creds.repo)


def generate_node(state: AppState, node_type: str, form: Dict[str, Any]) -> Node:
    node = build_node(node_type, form)
    state.generated = node
    return node


def export_with_generated(state: AppState) -> Dict[str, Any]:
    """Full document with the generated node included (graph itself unchanged)."""
    if state.generated is None:
        return graph_to_dict(state.graph)
    return graph_to_dict(with_node(state.graph, state.generated))


def client_for(store: KeyValueStore, **kwargs: Any) -> GitHubContentsClient:
    creds = load_credentials(store)
    if creds is None:
        raise RemoteSyncError("GitHub integration not configured. Run setup first.")
    return GitHubContentsClient.from_credentials(creds, **kwargs)


def commit_generated_node(state: AppState, client: GitHubContentsClient) -> Dict[str, Any]:
    node = state.generated
    if node is None:
        raise ValueError("no generated node to commit")
    result = client.commit_with_retry(add_node_mutation(node.to_dict()), add_commit_message(node))
    add_node(state.graph, node)
    state.generated = None
    return result


def delete_node(state: AppState, client: GitHubContentsClient, node_id: str) -> Dict[str, Any]:
    """Remove a node locally right away, then remotely; undo locally on failure."""
    node = state.graph.get(node_id)
    if node is None:
        raise KeyError(f"unknown node id: {node_id}")

    before = snapshot(state.graph)
    before_selected = state.selected_id
    remove_node(state.graph, node_id)
    if state.selected_id == node_id:
        state.selected_id = None

    try:
        return client.commit_with_retry(delete_node_mutation(node_id), delete_commit_message(node))
    except Exception:
        state.graph = before
        state.selected_id = before_selected
        obs("session", "delete.rollback", id=node_id)
        raise


__all__ = [
    "AppState",
    "client_for",
    "commit_generated_node",
    "delete_node",
    "due_tasks",
    "export_with_generated",
    "generate_node",
    "open_node_document",
    "pick_for_review",
    "run_validation",
    "select_node",
]
