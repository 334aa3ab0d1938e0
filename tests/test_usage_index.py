"""Tests for the used-label index."""

from __future__ import annotations

from usage_index import build_usage_index, label_search_url


def test_indexes_labels_from_open_and_closed_issues(github, transport) -> None:
    github.add_issue("o/r", "bug")
    github.add_issue("o/r", "docs", "bug", state="closed")
    github.add_issue("o/r")

    used = build_usage_index(transport, "o/r")

    assert set(used) == {"bug", "docs"}
    assert used["bug"] == 'https://github.com/o/r/issues?q=label%3A%22bug%22'


def test_names_are_escaped_only_in_url(github, transport) -> None:
    github.add_issue("o/r", "good first issue")

    used = build_usage_index(transport, "o/r")

    assert list(used) == ["good first issue"]
    assert used["good first issue"].endswith("q=label%3A%22good%20first%20issue%22")


def test_walks_every_issue_page(github, transport) -> None:
    github.page_size = 1
    github.add_issue("o/r", "a")
    github.add_issue("o/r", "b")
    github.add_issue("o/r", "c")

    used = build_usage_index(transport, "o/r")

    assert list(used) == ["a", "b", "c"]
    assert len(github.calls) == 3


def test_empty_repository_has_no_used_labels(transport) -> None:
    assert build_usage_index(transport, "o/empty") == {}


def test_search_url_on_enterprise_host() -> None:
    url = label_search_url("https://github.acme.com/", "team/app", "bug")
    assert url == "https://github.acme.com/team/app/issues?q=label%3A%22bug%22"
