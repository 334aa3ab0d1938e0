#!/usr/bin/env python3
"""Utility functions for repo-tools."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from errors import PartialBatchFailure
from logging_utils import Logger
from models import Label

T = TypeVar("T")
R = TypeVar("R")


class RateLimiter:
    """Rate limiter to prevent abuse and respect API limits."""

    def __init__(self, max_requests_per_minute: int = 60):
        self.max_requests = max_requests_per_minute
        self.requests: List[float] = []
        self.lock = threading.Lock()

    def wait_if_needed(self, operation_type: str = "API") -> None:
        """Wait if necessary to respect rate limits."""
        current_time = time.time()

        with self.lock:
            self._clean_old_requests(current_time)
            if len(self.requests) >= self.max_requests:
                wait_time = 60 - (current_time - self.requests[0])
                if wait_time > 0:
                    Logger.security_event(
                        "RATE_LIMIT_HIT",
                        f"rate limit reached for {operation_type}, "
                        f"waiting {wait_time:.2f}s",
                    )
                    time.sleep(wait_time)
                    current_time = time.time()
                    self._clean_old_requests(current_time)
            self.requests.append(current_time)

    def _clean_old_requests(self, current_time: float) -> None:
        """Remove requests older than 1 minute."""
        cutoff_time = current_time - 60
        self.requests = [
            req_time for req_time in self.requests if req_time > cutoff_time
        ]


def run_batch(
    items: Sequence[T],
    operation: Callable[[T], R],
    max_workers: Optional[int] = None,
) -> List[R]:
    """Run ``operation`` on every item concurrently.

    Every item is attempted even when some fail. Results come back in input
    order. If any operation raised, a PartialBatchFailure carrying the
    successful results and all errors is raised after the whole batch has
    finished, chained to the first error in input order.
    """
    if not items:
        return []

    workers = max_workers or min(len(items), 8)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(operation, item) for item in items]

    succeeded: List[R] = []
    errors: List[BaseException] = []
    for future in futures:
        error = future.exception()
        if error is None:
            succeeded.append(future.result())
        else:
            errors.append(error)

    if errors:
        raise PartialBatchFailure(succeeded, errors) from errors[0]
    return succeeded


def format_label_table(labels: Sequence[Label]) -> str:
    """Render labels as a plain-text table (name, color, description)."""
    headers = ("name", "color", "description")
    rows = [(lbl.name, lbl.color, lbl.description or "") for lbl in labels]
    widths = [
        max([len(headers[i])] + [len(row[i]) for row in rows]) for i in range(3)
    ]

    def fmt_row(row: Sequence[str]) -> str:
        return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip()

    lines = [fmt_row(headers), fmt_row(["-" * w for w in widths])]
    lines.extend(fmt_row(row) for row in rows)
    return "\n".join(lines)
