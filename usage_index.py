#!/usr/bin/env python3
"""Index of labels currently attached to issues, used to protect them from deletion."""

from __future__ import annotations

from typing import Dict, Optional
from urllib.parse import quote

from logging_utils import Logger
from pagination import fetch_all_pages
from transport import GitHubTransport


def label_search_url(html_url: str, repo: str, name: str) -> str:
    """Return the web URL searching ``repo`` issues for label ``name``."""
    query = quote(f'label:"{name}"', safe="")
    return f"{html_url.rstrip('/')}/{repo}/issues?q={query}"


def build_usage_index(
    transport: GitHubTransport, repo: str, html_url: Optional[str] = None
) -> Dict[str, str]:
    """Map every label name attached to any issue (open or closed) to a search URL.

    Pull requests come back from the issues endpoint too and their labels
    count as in use. Only the first URL seen per name is kept.
    """
    html_url = html_url or transport.html_base_url()
    issues = fetch_all_pages(transport, f"/repos/{repo}/issues", {"state": "all"})

    used: Dict[str, str] = {}
    for issue in issues:
        for label in issue.get("labels") or []:
            # The issues API may return bare names for labels
            name = label.get("name") if isinstance(label, dict) else label
            if not name or name in used:
                continue
            used[name] = label_search_url(html_url, repo, name)

    Logger.debug(f"{len(used)} labels in use across {len(issues)} issues in {repo}")
    return used
