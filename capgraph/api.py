"""capgraph.api

Stable *library* entrypoint for capgraph.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

from .github import (
    GitHubContentsClient,
    GitHubCredentials,
    RemoteSyncError,
    ShaConflictError,
    add_node_mutation,
    delete_node_mutation,
    document_url,
    load_credentials,
    save_credentials,
)
from .kvstore import JsonFileStore, KeyValueStore, MemoryStore
from .model import DueTask, Graph, Link, Node, Pick, Streaks, Task, ValidationResult, get_status
from .payload import build_payload
from .render.inline import build_html, extract_payload
from .routine import WEEKLY_TASKS, RoutineTracker, hash_message, is_within_days_before
from .scheduler import derive_tasks, pick_cpd_for_me, select_due, task_age
from .schema import classify_status, humanize
from .session import AppState
from .store import GraphLoadError, add_node, graph_from_dict, graph_to_dict, load_graph, remove_node, save_graph
from .templates import NodeFormError, ParseResult, build_node, default_template_data, load_template, parse_template
from .validate import GraphValidationError, assert_valid_graph, validate

__all__ = [
    "AppState",
    "DueTask",
    "GitHubContentsClient",
    "GitHubCredentials",
    "Graph",
    "GraphLoadError",
    "GraphValidationError",
    "JsonFileStore",
    "KeyValueStore",
    "Link",
    "MemoryStore",
    "Node",
    "NodeFormError",
    "ParseResult",
    "Pick",
    "RemoteSyncError",
    "RoutineTracker",
    "ShaConflictError",
    "Streaks",
    "Task",
    "ValidationResult",
    "WEEKLY_TASKS",
    "add_node",
    "add_node_mutation",
    "assert_valid_graph",
    "build_html",
    "build_node",
    "build_payload",
    "classify_status",
    "default_template_data",
    "delete_node_mutation",
    "derive_tasks",
    "document_url",
    "extract_payload",
    "get_status",
    "graph_from_dict",
    "graph_to_dict",
    "hash_message",
    "humanize",
    "is_within_days_before",
    "load_credentials",
    "load_graph",
    "load_template",
    "parse_template",
    "pick_cpd_for_me",
    "remove_node",
    "save_credentials",
    "save_graph",
    "select_due",
    "task_age",
    "validate",
]
