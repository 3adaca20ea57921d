"""Remote sync over the GitHub contents API.

Every mutation is read-modify-write against the latest remote copy: fetch
content + sha, apply the mutation, PUT conditioned on that sha. A sha
conflict restarts the whole cycle (bounded); anything else surfaces
immediately with the server's message.
"""

from __future__ import annotations

import base64
import json
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from urllib import error, parse, request

from .kvstore import KeyValueStore
from .model import Node
from .schema import CPD
from .store import endpoint_id
from .util.console import obs, warn

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_DOCUMENT_PATH = "public/data.json"
DEFAULT_BRANCH = "main"
MAX_RETRIES = 3
RETRY_DELAY_S = 0.5

KEY_TOKEN = "githubToken"
KEY_REPO = "githubRepo"

Document = Dict[str, Any]
UpdateFn = Callable[[Document], Document]


class RemoteSyncError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ShaConflictError(RemoteSyncError):
    """The document changed remotely between fetch and write."""


def _http_timeout_s() -> float:
    raw = (os.getenv("CAPGRAPH_HTTP_TIMEOUT_S", "30") or "").strip()
    try:
        v = float(raw)
        if v > 0:
            return v
    except ValueError:
        pass
    return 30.0


def _api_base() -> str:
    return (os.getenv("CAPGRAPH_GITHUB_API", "") or "").strip().rstrip("/") or DEFAULT_API_BASE


@dataclass(frozen=True)
class GitHubCredentials:
    owner: str
    repo: str
    token: str


def save_credentials(store: KeyValueStore, owner: str, repo: str, token: str) -> GitHubCredentials:
    # Stored in plain local state on purpose; clearing the state file removes it.
    store.set_item(KEY_TOKEN, token)
    store.set_json(KEY_REPO, {"owner": owner, "repo": repo})
    return GitHubCredentials(owner=owner, repo=repo, token=token)


def load_credentials(store: KeyValueStore) -> Optional[GitHubCredentials]:
    token = store.get_item(KEY_TOKEN)
    repo = store.get_json(KEY_REPO, None)
    if not token or not isinstance(repo, dict):
        return None
    owner = str(repo.get("owner") or "").strip()
    name = str(repo.get("repo") or "").strip()
    if not owner or not name:
        return None
    return GitHubCredentials(owner=owner, repo=name, token=token)


def clear_credentials(store: KeyValueStore) -> None:
    store.remove_item(KEY_TOKEN)
    store.remove_item(KEY_REPO)


def document_url(node: Node, owner: str, repo: str) -> str:
    sub = "cpds" if node.type == CPD else "ccds"
    return f"https://github.com/{owner}/{repo}/blob/master/docs/{sub}/{node.id}.md"


class GitHubContentsClient:
    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        *,
        path: str = DEFAULT_DOCUMENT_PATH,
        api_base: Optional[str] = None,
        timeout_s: Optional[float] = None,
        opener: Optional[Callable[..., Any]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.token = token
        self.path = path.lstrip("/")
        self.api_base = (api_base or _api_base()).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else _http_timeout_s()
        self._open = opener or request.urlopen
        self._sleep = sleep

    @classmethod
    def from_credentials(cls, creds: GitHubCredentials, **kwargs: Any) -> "GitHubContentsClient":
        return cls(creds.owner, creds.repo, creds.token, **kwargs)

    # --- transport -------------------------------------------------------

    def _repo_url(self) -> str:
        return f"{self.api_base}/repos/{parse.quote(self.owner)}/{parse.quote(self.repo)}"

    def _contents_url(self) -> str:
        return f"{self._repo_url()}/contents/{parse.quote(self.path)}"

    def _call(self, method: str, url: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = request.Request(url, data=data, method=method)
        req.add_header("Authorization", f"token {self.token}")
        req.add_header("Accept", "application/vnd.github.v3+json")
        if data is not None:
            req.add_header("Content-Type", "application/json")

        t0 = time.monotonic()
        try:
            with self._open(req, timeout=self.timeout_s) as resp:
                text = resp.read().decode("utf-8", errors="replace")
        except error.HTTPError as e:
            elapsed_ms = int((time.monotonic() - t0) * 1000)
            msg = ""
            try:
                payload = json.loads(e.read().decode("utf-8", errors="replace") or "{}")
                if isinstance(payload, dict):
                    msg = str(payload.get("message") or "")
            except (OSError, ValueError):
                msg = ""
            obs("github", "http.error", method=method, status=e.code, ms=elapsed_ms)
            raise RemoteSyncError(msg or f"GitHub API error: {e.reason}", status=e.code) from e
        except error.URLError as e:
            raise RemoteSyncError(f"GitHub connection error: {e.reason}") from e

        obs("github", "http.ok", method=method, ms=int((time.monotonic() - t0) * 1000))
        if not text.strip():
            return {}
        obj = json.loads(text)
        if not isinstance(obj, dict):
            raise RemoteSyncError("GitHub response must be a JSON object")
        return obj

    # --- operations ------------------------------------------------------

    def get_repo(self) -> Dict[str, Any]:
        return self._call("GET", self._repo_url())

    def verify_credentials(self) -> Dict[str, Any]:
        try:
            return self.get_repo()
        except RemoteSyncError as e:
            if e.status == 401:
                raise RemoteSyncError("Invalid token. Please check your Personal Access Token.", status=401) from e
            if e.status == 404:
                raise RemoteSyncError("Repository not found. Check owner and repo name.", status=404) from e
            raise

    def default_branch(self) -> str:
        try:
            info = self.get_repo()
        except RemoteSyncError as e:
            warn(f"could not read default branch, using {DEFAULT_BRANCH!r}: {e}")
            return DEFAULT_BRANCH
        return str(info.get("default_branch") or DEFAULT_BRANCH)

    def get_document(self) -> Tuple[Document, str]:
        try:
            meta = self._call("GET", self._contents_url())
        except RemoteSyncError as e:
            raise RemoteSyncError(f"Failed to get {self.path}: {e}", status=e.status) from e
        encoded = str(meta.get("content") or "").replace("\n", "").replace("\r", "")
        try:
            content = json.loads(base64.b64decode(encoded).decode("utf-8"))
        except ValueError as ex:
            raise RemoteSyncError(f"{self.path} is not valid JSON: {ex}") from ex
        if not isinstance(content, dict):
            raise RemoteSyncError(f"{self.path} must contain a JSON object")
        return content, str(meta.get("sha") or "")

    def put_document(self, content: Document, sha: str, message: str, branch: str) -> Dict[str, Any]:
        text = json.dumps(content, ensure_ascii=False, indent=2)
        body = {
            "message": message,
            "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
            "sha": sha,
            "branch": branch,
        }
        try:
            return self._call("PUT", self._contents_url(), body)
        except RemoteSyncError as e:
            if e.status == 409 or "sha" in str(e):
                raise ShaConflictError(str(e), status=e.status) from e
            raise

    def commit_with_retry(
        self,
        update_fn: UpdateFn,
        message: str,
        branch: Optional[str] = None,
        *,
        max_retries: int = MAX_RETRIES,
        retry_delay_s: float = RETRY_DELAY_S,
    ) -> Dict[str, Any]:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if branch is None:
            branch = self.default_branch()
        for attempt in range(max_retries):
            content, sha = self.get_document()
            updated = update_fn(content)
            try:
                result = self.put_document(updated, sha, message, branch)
            except ShaConflictError:
                if attempt < max_retries - 1:
                    obs("github", "commit.conflict", attempt=attempt + 1)
                    self._sleep(retry_delay_s)
                    continue
                raise
            obs("github", "commit.ok", attempt=attempt + 1, branch=branch)
            return result
        raise AssertionError("unreachable")


def add_node_mutation(node: Dict[str, Any]) -> UpdateFn:
    def _apply(doc: Document) -> Document:
        nodes = doc.get("nodes")
        if not isinstance(nodes, list):
            nodes = []
        for i, n in enumerate(nodes):
            if isinstance(n, dict) and n.get("id") == node.get("id"):
                nodes[i] = node
                break
        else:
            nodes.append(node)
        doc["nodes"] = nodes
        return doc

    return _apply


def delete_node_mutation(node_id: str) -> UpdateFn:
    def _apply(doc: Document) -> Document:
        nodes = doc.get("nodes") if isinstance(doc.get("nodes"), list) else []
        links = doc.get("links") if isinstance(doc.get("links"), list) else []
        doc["nodes"] = [n for n in nodes if not (isinstance(n, dict) and n.get("id") == node_id)]
        doc["links"] = [
            l
            for l in links
            if not (
                isinstance(l, dict)
                and (endpoint_id(l.get("source")) == node_id or endpoint_id(l.get("target")) == node_id)
            )
        ]
        return doc

    return _apply


def add_commit_message(node: Node) -> str:
    return f"Add new {node.type}: {node.name}"


def delete_commit_message(node: Node) -> str:
    return f"Delete {node.type}: {node.name}"


__all__ = [
    "GitHubContentsClient",
    "GitHubCredentials",
    "RemoteSyncError",
    "ShaConflictError",
    "add_commit_message",
    "add_node_mutation",
    "clear_credentials",
    "delete_commit_message",
    "delete_node_mutation",
    "document_url",
    "load_credentials",
    "save_credentials",
]
