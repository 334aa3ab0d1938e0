#!/usr/bin/env python3
"""CRUD operations over the label set of a GitHub repository."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence
from urllib.parse import quote

import github

if TYPE_CHECKING:
    from github.Repository import Repository

from config import DEFAULT_API_URL, GitHubConfig
from errors import Conflict, InvalidArgument, NotFound, TransportError
from logging_utils import Logger
from models import Label
from pagination import fetch_all_pages
from transport import GitHubTransport
from utils import run_batch

# Exit codes
EXIT_AUTH_ERROR = 40
EXIT_GITHUB_ERROR = 31


def label_path(repo: str, name: Optional[str] = None) -> str:
    """Return the labels resource path, with the name percent-encoded."""
    path = f"/repos/{repo}/labels"
    if name:
        path += "/" + quote(name, safe="")
    return path


class LabelClient:
    """Label list/get/create/update/delete for any repository on one host."""

    def __init__(self, config: GitHubConfig, transport: Optional[GitHubTransport] = None) -> None:
        self.config = config
        self.transport = transport or GitHubTransport(config)
        self.api: Optional[github.Github] = None
        self._checking = ""

    def connect(self, repos: Iterable[str]) -> None:
        """Check that the token authenticates and every repository is visible."""
        Logger.info(f"init github API: {self.config.api_url}")
        try:
            auth = github.Auth.Token(self.config.token)
            if self.config.api_url.rstrip("/") != DEFAULT_API_URL:
                self.api = github.Github(base_url=self.config.api_url, auth=auth)
            else:
                self.api = github.Github(auth=auth)
            for repo in repos:
                self._preflight_repo_access(self.api, repo)
        except github.BadCredentialsException:
            Logger.error("authentication failed (github): invalid token")
            sys.exit(EXIT_AUTH_ERROR)
        except github.UnknownObjectException:
            Logger.error(
                f"not found (404): repository '{self._checking}' does not exist "
                "or is not visible to this token"
            )
            sys.exit(EXIT_GITHUB_ERROR)
        except github.GithubException as e:
            Logger.error(f"github error: {e}")
            sys.exit(EXIT_GITHUB_ERROR)

    def _preflight_repo_access(self, api: github.Github, repo: str) -> None:
        self._checking = repo
        repository: "Repository" = api.get_repo(repo)
        Logger.debug(f"github repo: {repository.full_name}")
        if not repository.has_issues:
            Logger.warn(f"issues are disabled in {repo}; labels cannot be applied there")
        permissions = getattr(repository, "permissions", None)
        if permissions is not None and not (permissions.push or permissions.triage):
            Logger.warn(
                f"token has no write or triage permission on {repo}; "
                "label changes will fail"
            )

    def list(self, repo: str) -> List[Label]:
        records = fetch_all_pages(self.transport, label_path(repo))
        return [Label.from_api(record) for record in records]

    def get(self, repo: str, name: str) -> Label:
        try:
            response = self.transport.request("GET", label_path(repo, name))
        except TransportError as e:
            if e.status == 404:
                raise NotFound(repo, name) from e
            raise
        return Label.from_api(response.json())

    def create(self, repo: str, label: Label) -> Label:
        try:
            response = self.transport.request(
                "POST", label_path(repo), payload=label.to_payload()
            )
        except TransportError as e:
            if e.status == 422 and "already_exists" in e.error_codes():
                raise Conflict(repo, label.name) from e
            raise
        Logger.debug(f"created label '{label.name}' in {repo}")
        return Label.from_api(response.json())

    def update(self, repo: str, label: Label, name: Optional[str] = None) -> Label:
        """Replace color and description of ``name`` (default ``label.name``).

        When ``name`` differs from ``label.name`` the label is also renamed.
        """
        key = name or label.name
        if not key:
            raise InvalidArgument("label name was not specified")

        payload = label.to_payload()
        del payload["name"]
        if label.name and label.name != key:
            payload["new_name"] = label.name
        try:
            response = self.transport.request(
                "PATCH", label_path(repo, key), payload=payload
            )
        except TransportError as e:
            if e.status == 404:
                raise NotFound(repo, key) from e
            raise
        Logger.debug(f"updated label '{key}' in {repo}")
        return Label.from_api(response.json())

    def delete(self, repo: str, name: str) -> None:
        try:
            self.transport.request("DELETE", label_path(repo, name))
        except TransportError as e:
            if e.status == 404:
                raise NotFound(repo, name) from e
            raise
        Logger.debug(f"deleted label '{name}' in {repo}")

    def create_many(self, repo: str, labels: Sequence[Label]) -> List[Label]:
        return run_batch(
            labels, lambda label: self.create(repo, label), self.config.workers
        )

    def update_many(self, repo: str, labels: Sequence[Label]) -> List[Label]:
        return run_batch(
            labels, lambda label: self.update(repo, label), self.config.workers
        )

    def delete_many(self, repo: str, names: Sequence[str]) -> List[str]:
        def _delete(name: str) -> str:
            self.delete(repo, name)
            return name

        return run_batch(names, _delete, self.config.workers)
