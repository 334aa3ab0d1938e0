#!/usr/bin/env python3
"""Authenticated HTTP transport for the GitHub REST API."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from config import GitHubConfig
from errors import TransportError
from logging_utils import Logger
from utils import RateLimiter

# Status code expected for a successful call, per HTTP method
EXPECTED_STATUS = {
    "GET": 200,
    "PATCH": 200,
    "POST": 201,
    "DELETE": 204,
}

RATE_LIMIT_WARN_THRESHOLD = 50


class GitHubTransport:
    """Issues authenticated requests against a single GitHub API endpoint."""

    def __init__(
        self,
        config: GitHubConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.api_url = config.api_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(self._get_api_headers())
        self.rate_limiter = RateLimiter(max_requests_per_minute=300)

    def _get_api_headers(self) -> Dict[str, str]:
        """Get standard API headers for GitHub requests."""
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.config.token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self.config.user_agent,
        }

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.api_url}/{path.lstrip('/')}"

    def html_base_url(self) -> str:
        """Return the web UI base URL derived from the API endpoint."""
        parsed = urlparse(self.api_url)
        if parsed.netloc == "api.github.com":
            return "https://github.com"

        base_path = parsed.path.rstrip("/")
        if base_path.endswith("/api/v3"):
            base_path = base_path[: -len("/api/v3")]
        base = f"{parsed.scheme}://{parsed.netloc}"
        if base_path:
            base += base_path
        return base

    def request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Send one request and return the response if its status is expected.

        Raises TransportError on network failure or on any status other than
        the one expected for ``method``.
        """
        method = method.upper()
        url = self.url_for(path)
        Logger.debug(f"{method} {url}")
        self.rate_limiter.wait_if_needed("GitHub API")
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                params=params,
                timeout=self.config.timeout_s,
            )
        except requests.RequestException as e:
            raise TransportError(method, path, reason=str(e)) from e

        self._check_rate_limit(response)

        if response.status_code != EXPECTED_STATUS.get(method):
            raise TransportError(
                method,
                path,
                status=response.status_code,
                reason=response.reason or "",
                body=self._decode_error_body(response),
            )
        return response

    @staticmethod
    def _decode_error_body(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _check_rate_limit(response: requests.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is None:
            return
        try:
            remaining_count = int(remaining)
        except ValueError:
            return
        if remaining_count < RATE_LIMIT_WARN_THRESHOLD:
            reset = response.headers.get("X-RateLimit-Reset", "unknown")
            Logger.warn(
                f"github rate limit low: {remaining_count} requests left "
                f"(resets at {reset})"
            )
