#!/usr/bin/env python3
"""Follow GitHub ``Link: rel="next"`` headers until a listing is exhausted."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from errors import TransportError
from logging_utils import Logger
from transport import GitHubTransport

PER_PAGE = 100


def fetch_all_pages(
    transport: GitHubTransport,
    path: str,
    params: Optional[Dict[str, Any]] = None,
    per_page: int = PER_PAGE,
) -> List[Dict[str, Any]]:
    """Return every record of a paginated listing in server order.

    Pages are fetched one after another since each ``next`` link comes from
    the previous response. Any failed page raises TransportError and nothing
    accumulated so far is returned.
    """
    query: Optional[Dict[str, Any]] = dict(params or {})
    query["per_page"] = per_page

    records: List[Dict[str, Any]] = []
    url: Optional[str] = path
    pages = 0
    while url:
        response = transport.request("GET", url, params=query)
        pages += 1
        page = response.json()
        if not isinstance(page, list):
            raise TransportError(
                "GET", url, status=response.status_code, reason="expected a JSON array"
            )
        records.extend(page)

        # The next link already carries the query string
        url = response.links.get("next", {}).get("url")
        query = None

    Logger.debug(f"fetched {len(records)} records from {path} in {pages} page(s)")
    return records
