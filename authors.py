#!/usr/bin/env python3
"""Enumerate repository contributors from git history."""

from __future__ import annotations

import os
import subprocess
from typing import Iterable, List, Optional, Sequence

from logging_utils import Logger

AUTHOR_MARKER = "AUTHOR: "
COAUTHOR_MARKER = "Co-authored-by: "

# git log options that only filter commits and may be passed through
GIT_LOG_ALLOWED_OPTIONS = (
    "--all-match",
    "--invert-grep",
    "-i",
    "--regexp-ignore-case",
    "--basic-regexp",
    "-E",
    "--extended-regexp",
    "-F",
    "--fixed-strings",
    "-P",
    "--perl-regexp",
)

GIT_TIMEOUT_S = 300


def is_allowed_git_log_option(option: str) -> bool:
    return option.startswith("--grep=") or option in GIT_LOG_ALLOWED_OPTIONS


def build_git_log_command(
    until: Optional[str] = None, git_log_options: Sequence[str] = ()
) -> List[str]:
    cmd = ["git", "log", "--reverse", f"--format={AUTHOR_MARKER}%aN <%aE>%n%b"]
    for option in git_log_options:
        if not is_allowed_git_log_option(option):
            raise ValueError(f"git log option not allowed: {option}")
        cmd.append(option)
    if until:
        cmd.append(f"{until}..")
    return cmd


def parse_git_log(lines: Iterable[str]) -> List[str]:
    """Extract author and co-author contacts in order of first appearance.

    Bot accounts (anything containing ``[bot]``) are skipped.
    """
    authors: List[str] = []
    seen = set()
    for line in lines:
        if line.startswith(AUTHOR_MARKER):
            contact = line[len(AUTHOR_MARKER):]
        elif line.startswith(COAUTHOR_MARKER):
            contact = line[len(COAUTHOR_MARKER):]
        else:
            continue

        contact = contact.strip()
        if not contact or "[bot]" in contact or contact in seen:
            continue
        seen.add(contact)
        authors.append(contact)
    return authors


def _run_git(cmd: List[str], cwd: Optional[str]) -> str:
    result = subprocess.run(
        cmd,
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
        timeout=GIT_TIMEOUT_S,
    )
    return result.stdout


def mailmap_authors(authors: Sequence[str], cwd: Optional[str] = None) -> List[str]:
    """Resolve each contact through .mailmap, dropping duplicates it creates."""
    mapped: List[str] = []
    seen = set()
    for author in authors:
        contact = _run_git(["git", "check-mailmap", author], cwd).strip()
        if contact and contact not in seen:
            seen.add(contact)
            mapped.append(contact)
    return mapped


def collect_authors(
    until: Optional[str] = None,
    git_log_options: Sequence[str] = (),
    cwd: Optional[str] = None,
) -> List[str]:
    """List contributors ordered by their first contribution.

    Raises subprocess.CalledProcessError when git fails.
    """
    cmd = build_git_log_command(until, git_log_options)
    Logger.debug(f"running: {' '.join(cmd)}")
    output = _run_git(cmd, cwd)
    authors = parse_git_log(output.splitlines())
    Logger.debug(f"found {len(authors)} contributors before mailmap")
    return mailmap_authors(authors, cwd)


def write_authors(path: str, authors: Sequence[str]) -> str:
    """Write one contact per line and return the absolute path written."""
    full_path = os.path.abspath(path)
    with open(full_path, "w", encoding="utf-8") as handle:
        for author in authors:
            handle.write(author + "\n")
    os.chmod(full_path, 0o644)
    return full_path
