#!/usr/bin/env python3
"""Configuration dataclasses for repo-tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

VERSION = "0.1.0"

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_USER_AGENT = "repo-tools"
DEFAULT_WORKERS = 8
DEFAULT_AUTHORS_FILE = "AUTHORS"


class Command(Enum):
    """Enumeration of the top-level commands."""
    LABELS_GET = "labels-get"
    LABELS_COPY = "labels-copy"
    AUTHORS = "authors"


@dataclass
class GitHubConfig:
    """GitHub API connection configuration."""
    api_url: str
    token: str
    user_agent: str = DEFAULT_USER_AGENT
    workers: int = DEFAULT_WORKERS
    timeout_s: float = 30.0


@dataclass
class LabelGetConfig:
    """Configuration for listing the labels of one repository."""
    repo: str
    dump_file: Optional[str] = None


@dataclass
class LabelCopyConfig:
    """Label copy behavior configuration."""
    src_repo: Optional[str]
    src_file: Optional[str]
    dst_repo: Optional[str]
    dst_file: Optional[str]
    update_existing: bool = False
    delete_before_copy: bool = False
    dry_run: bool = False


@dataclass
class AuthorsConfig:
    """Contributor enumeration configuration."""
    until: Optional[str] = None
    out_path: Optional[str] = DEFAULT_AUTHORS_FILE
    git_log_options: List[str] = field(default_factory=list)
    repo_dir: Optional[str] = None


@dataclass
class Config:
    """Main configuration for one repo-tools invocation."""
    command: Command
    github: Optional[GitHubConfig] = None
    labels_get: Optional[LabelGetConfig] = None
    labels_copy: Optional[LabelCopyConfig] = None
    authors: Optional[AuthorsConfig] = None
