#!/usr/bin/env python3
"""
repo-tools - Repository maintenance utilities.

Copies issue labels between GitHub repositories and JSON file dumps
(optionally updating existing labels and deleting unused ones first),
prints a repository's labels, and lists contributors from git history.
"""

from __future__ import annotations

import sys
from typing import NoReturn, Optional, Sequence

from argument_parser import parse_arguments
from sync_orchestrator import SyncOrchestrator


def main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    cfg = parse_arguments(argv)
    orchestrator = SyncOrchestrator(cfg)
    sys.exit(orchestrator.run())


if __name__ == "__main__":
    main()
