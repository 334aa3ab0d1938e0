"""Shared fixtures: an in-memory GitHub label/issue API behind a fake session."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlsplit

import pytest

from config import GitHubConfig
from label_client import LabelClient
from models import Label
from transport import GitHubTransport

API_URL = "https://api.github.com"


class FakeResponse:
    """Subset of requests.Response used by the transport and pagination."""

    def __init__(
        self,
        status_code: int,
        data: Any = None,
        links: Optional[Dict[str, Dict[str, str]]] = None,
        reason: str = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self._data = data
        self.links = links or {}
        self.reason = reason
        self.headers = headers or {}

    def json(self) -> Any:
        if self._data is None:
            raise ValueError("no JSON body")
        return self._data

    @property
    def text(self) -> str:
        return "" if self._data is None else str(self._data)


class FakeGitHubSession:
    """Serves /repos/{repo}/labels and /repos/{repo}/issues from memory."""

    def __init__(self, page_size: Optional[int] = None) -> None:
        self.headers: Dict[str, str] = {}
        self.labels: Dict[str, Dict[str, Dict[str, str]]] = {}
        self.issues: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_on: Dict[Tuple[str, str], int] = {}
        self.page_size = page_size
        self._lock = threading.Lock()

    def add_labels(self, repo: str, *labels: Label) -> None:
        store = self.labels.setdefault(repo, {})
        for label in labels:
            store[label.name] = {
                "name": label.name,
                "color": label.color,
                "description": label.description,
            }

    def add_issue(self, repo: str, *label_names: str, state: str = "open") -> None:
        issues = self.issues.setdefault(repo, [])
        issues.append(
            {
                "number": len(issues) + 1,
                "state": state,
                "labels": [{"name": name} for name in label_names],
            }
        )

    def label_set(self, repo: str) -> Dict[str, Dict[str, str]]:
        return self.labels.get(repo, {})

    def mutating_calls(self) -> List[Tuple[str, str]]:
        return [call for call in self.calls if call[0] != "GET"]

    def request(self, method, url, json=None, params=None, timeout=None):
        parts = urlsplit(url)
        query = {k: v[0] for k, v in parse_qs(parts.query).items()}
        query.update({k: str(v) for k, v in (params or {}).items()})
        segments = [unquote(s) for s in parts.path.strip("/").split("/")]
        # repos / owner / name / resource [/ label]
        repo = f"{segments[1]}/{segments[2]}"
        resource = segments[3]
        name = segments[4] if len(segments) > 4 else None

        with self._lock:
            self.calls.append((method, name or resource))
            status = self.fail_on.get((method, name or ""))
            if not status and method == "POST":
                status = self.fail_on.get((method, (json or {}).get("name", "")))
            if status:
                return FakeResponse(status, {"message": "injected failure"}, reason="Injected")
            if resource == "issues":
                return self._page(url, self.issues.get(repo, []), query)
            return self._labels(method, repo, name, json, url, query)

    def _page(self, url: str, items: List[Any], query: Dict[str, str]) -> FakeResponse:
        size = self.page_size or int(query.get("per_page", 30))
        page = int(query.get("page", 1))
        chunk = items[(page - 1) * size: page * size]
        links = {}
        if page * size < len(items):
            base = url.split("?", 1)[0]
            next_url = f"{base}?per_page={query.get('per_page', size)}&page={page + 1}"
            if "state" in query:
                next_url += f"&state={query['state']}"
            links["next"] = {"url": next_url, "rel": "next"}
        return FakeResponse(200, [dict(item) for item in chunk], links=links, reason="OK")

    def _labels(self, method, repo, name, body, url, query) -> FakeResponse:
        store = self.labels.setdefault(repo, {})
        if method == "GET" and name is None:
            return self._page(url, list(store.values()), query)
        if method == "GET":
            if name not in store:
                return FakeResponse(404, {"message": "Not Found"}, reason="Not Found")
            return FakeResponse(200, dict(store[name]), reason="OK")
        if method == "POST":
            if body["name"] in store:
                return FakeResponse(
                    422,
                    {
                        "message": "Validation Failed",
                        "errors": [
                            {"resource": "Label", "code": "already_exists", "field": "name"}
                        ],
                    },
                    reason="Unprocessable Entity",
                )
            store[body["name"]] = dict(body)
            return FakeResponse(201, dict(body), reason="Created")
        if method == "PATCH":
            if name not in store:
                return FakeResponse(404, {"message": "Not Found"}, reason="Not Found")
            label = store.pop(name)
            label.update({k: v for k, v in body.items() if k != "new_name"})
            label["name"] = body.get("new_name", name)
            store[label["name"]] = label
            return FakeResponse(200, dict(label), reason="OK")
        if method == "DELETE":
            if name not in store:
                return FakeResponse(404, {"message": "Not Found"}, reason="Not Found")
            del store[name]
            return FakeResponse(204, reason="No Content")
        return FakeResponse(405, {"message": "Method Not Allowed"}, reason="Method Not Allowed")


@pytest.fixture
def github() -> FakeGitHubSession:
    return FakeGitHubSession()


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(api_url=API_URL, token="ghp_testtoken", workers=4)


@pytest.fixture
def transport(github: FakeGitHubSession, github_config: GitHubConfig) -> GitHubTransport:
    return GitHubTransport(github_config, session=github)


@pytest.fixture
def client(github_config: GitHubConfig, transport: GitHubTransport) -> LabelClient:
    return LabelClient(github_config, transport)
