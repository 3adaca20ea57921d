from __future__ import annotations

import base64
import io
import json
import unittest
from typing import Any, Dict, List, Optional
from urllib import error

from capgraph.github import (
    GitHubContentsClient,
    RemoteSyncError,
    ShaConflictError,
    add_node_mutation,
    clear_credentials,
    delete_node_mutation,
    document_url,
    load_credentials,
    save_credentials,
)
from capgraph.kvstore import MemoryStore
from capgraph.model import Node


class _Resp:
    def __init__(self, body: Dict[str, Any]) -> None:
        self._raw = json.dumps(body).encode("utf-8")

    def read(self) -> bytes:
        return self._raw

    def __enter__(self) -> "_Resp":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None


def _http_error(url: str, code: int, message: str) -> error.HTTPError:
    body = io.BytesIO(json.dumps({"message": message}).encode("utf-8"))
    return error.HTTPError(url, code, "err", {}, body)  # type: ignore[arg-type]


class FakeGitHub:
    """In-memory contents API: one document, sha bumps on every write."""

    def __init__(self, doc: Dict[str, Any], *, conflicts: int = 0, put_error: Optional[tuple] = None) -> None:
        self.doc = doc
        self.version = 1
        self.conflicts = conflicts
        self.put_error = put_error
        self.calls: List[tuple] = []

    def sha(self) -> str:
        return f"sha{self.version}"

    def __call__(self, req: Any, timeout: float = 0) -> _Resp:
        method = req.get_method()
        url = req.full_url
        self.calls.append((method, url))
        if method == "GET" and "/contents/" not in url:
            return _Resp({"default_branch": "trunk"})
        if method == "GET":
            content = base64.b64encode(json.dumps(self.doc).encode("utf-8")).decode("ascii")
            return _Resp({"content": content[:10] + "\n" + content[10:], "sha": self.sha()})

        body = json.loads(req.data.decode("utf-8"))
        if self.put_error:
            raise _http_error(url, *self.put_error)
        if self.conflicts:
            self.conflicts -= 1
            self.version += 1  # someone else wrote in between
            raise _http_error(url, 409, f"data.json does not match {body['sha']}")
        if body["sha"] != self.sha():
            raise _http_error(url, 409, "sha mismatch")
        self.doc = json.loads(base64.b64decode(body["content"]).decode("utf-8"))
        self.version += 1
        self.last_put = body
        return _Resp({"commit": {"sha": "c0ffee"}})


def _client(fake: FakeGitHub, sleeps: Optional[List[float]] = None) -> GitHubContentsClient:
    rec = sleeps if sleeps is not None else []
    return GitHubContentsClient("acme", "caps", "tok", api_base="https://gh.test", opener=fake, sleep=rec.append)


def _doc() -> Dict[str, Any]:
    return {
        "nodes": [{"id": "cpd-a", "type": "CPD", "name": "A"}, {"id": "ccd-b", "type": "CCD", "name": "B"}],
        "links": [{"source": {"id": "ccd-b"}, "target": "cpd-a", "type": "inspired-by"}],
    }


class TestGitHubSyncContract(unittest.TestCase):
    def test_commit_writes_mutated_document_on_default_branch(self) -> None:
        fake = FakeGitHub(_doc())
        node = {"id": "cpd-n", "type": "CPD", "name": "N"}
        res = _client(fake).commit_with_retry(add_node_mutation(node), "Add new CPD: N")
        self.assertEqual(res["commit"]["sha"], "c0ffee")
        self.assertEqual([n["id"] for n in fake.doc["nodes"]], ["cpd-a", "ccd-b", "cpd-n"])
        self.assertEqual(fake.last_put["branch"], "trunk")
        self.assertEqual(fake.last_put["sha"], "sha1")
        self.assertEqual(fake.last_put["message"], "Add new CPD: N")
        self.assertEqual(fake.calls[1], ("GET", "https://gh.test/repos/acme/caps/contents/public/data.json"))

    def test_conflict_refetches_and_retries(self) -> None:
        fake = FakeGitHub(_doc(), conflicts=2)
        sleeps: List[float] = []
        _client(fake, sleeps).commit_with_retry(delete_node_mutation("ccd-b"), "Delete CCD: B", "main")
        self.assertEqual(sleeps, [0.5, 0.5])
        self.assertEqual([n["id"] for n in fake.doc["nodes"]], ["cpd-a"])
        self.assertEqual(fake.doc["links"], [])
        self.assertEqual(sum(1 for m, _ in fake.calls if m == "PUT"), 3)

    def test_conflict_gives_up_after_max_retries(self) -> None:
        fake = FakeGitHub(_doc(), conflicts=5)
        sleeps: List[float] = []
        with self.assertRaises(ShaConflictError):
            _client(fake, sleeps).commit_with_retry(add_node_mutation({"id": "x"}), "m", "main")
        self.assertEqual(sum(1 for m, _ in fake.calls if m == "PUT"), 3)
        self.assertEqual(len(sleeps), 2)

    def test_other_errors_are_not_retried(self) -> None:
        fake = FakeGitHub(_doc(), put_error=(422, "Invalid request"))
        with self.assertRaises(RemoteSyncError) as ctx:
            _client(fake).commit_with_retry(add_node_mutation({"id": "x"}), "m", "main")
        self.assertNotIsInstance(ctx.exception, ShaConflictError)
        self.assertEqual(str(ctx.exception), "Invalid request")
        self.assertEqual(ctx.exception.status, 422)
        self.assertEqual(sum(1 for m, _ in fake.calls if m == "PUT"), 1)

    def test_verify_credentials_messages(self) -> None:
        def deny(req: Any, timeout: float = 0) -> _Resp:
            raise _http_error(req.full_url, 401, "Bad credentials")

        c = GitHubContentsClient("acme", "caps", "tok", api_base="https://gh.test", opener=deny)
        with self.assertRaises(RemoteSyncError) as ctx:
            c.verify_credentials()
        self.assertEqual(str(ctx.exception), "Invalid token. Please check your Personal Access Token.")
        # unreadable repo info falls back to "main"
        self.assertEqual(c.default_branch(), "main")

    def test_get_failure_names_the_document(self) -> None:
        def missing(req: Any, timeout: float = 0) -> _Resp:
            raise _http_error(req.full_url, 404, "Not Found")

        c = GitHubContentsClient("acme", "caps", "tok", api_base="https://gh.test", opener=missing)
        with self.assertRaises(RemoteSyncError) as ctx:
            c.get_document()
        self.assertEqual(str(ctx.exception), "Failed to get public/data.json: Not Found")

    def test_add_mutation_replaces_existing_id(self) -> None:
        doc = add_node_mutation({"id": "cpd-a", "type": "CPD", "name": "A2"})(_doc())
        self.assertEqual([n["name"] for n in doc["nodes"]], ["A2", "B"])

    def test_credentials_roundtrip_and_document_url(self) -> None:
        store = MemoryStore()
        self.assertIsNone(load_credentials(store))
        save_credentials(store, "acme", "caps", "tok")
        creds = load_credentials(store)
        self.assertEqual((creds.owner, creds.repo, creds.token), ("acme", "caps", "tok"))
        clear_credentials(store)
        self.assertIsNone(load_credentials(store))

        self.assertEqual(
            document_url(Node(id="ccd-b", type="CCD", name="B"), "acme", "caps"),
            "https://github.com/acme/caps/blob/master/docs/ccds/ccd-b.md",
        )


if __name__ == "__main__":
    unittest.main(verbosity=2)
