#!/usr/bin/env python3
"""Error kinds raised by the label synchronization engine."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence


class RepoToolsError(Exception):
    """Base class for errors raised by repo-tools library modules."""


class TransportError(RepoToolsError):
    """HTTP request failed or returned an unexpected status code."""

    def __init__(
        self,
        method: str,
        path: str,
        status: Optional[int] = None,
        reason: str = "",
        body: Any = None,
    ) -> None:
        self.method = method
        self.path = path
        self.status = status
        self.reason = reason
        self.body = body
        status_text = f"{status} {reason}".strip() if status else reason
        super().__init__(f"{method} {path} failed: {status_text}")

    def error_codes(self) -> List[str]:
        """Return the `code` values of the GitHub `errors` array, if any."""
        if not isinstance(self.body, dict):
            return []
        errors = self.body.get("errors")
        if not isinstance(errors, list):
            return []
        return [e.get("code", "") for e in errors if isinstance(e, dict)]


class NotFound(RepoToolsError):
    """Operation targeted a label that does not exist."""

    def __init__(self, repo: str, name: str) -> None:
        self.repo = repo
        self.name = name
        super().__init__(f"label '{name}' not found in {repo}")


class Conflict(RepoToolsError):
    """Create collided with an existing label name."""

    def __init__(self, repo: str, name: str) -> None:
        self.repo = repo
        self.name = name
        super().__init__(f"label '{name}' already exists in {repo}")


class InvalidArgument(RepoToolsError, ValueError):
    """Required argument missing or malformed."""


class PartialBatchFailure(RepoToolsError):
    """One or more operations in a concurrent batch failed.

    ``succeeded`` holds the results of the operations that completed, in
    input order. ``errors`` holds every failure; the first one is also
    chained as ``__cause__`` by :func:`utils.run_batch`.
    """

    def __init__(self, succeeded: Sequence[Any], errors: Sequence[BaseException]) -> None:
        self.succeeded = list(succeeded)
        self.errors = list(errors)
        first = self.errors[0] if self.errors else None
        super().__init__(
            f"{len(self.errors)} of {len(self.succeeded) + len(self.errors)} "
            f"operations failed; first error: {first}"
        )

    @property
    def first_error(self) -> Optional[BaseException]:
        return self.errors[0] if self.errors else None
