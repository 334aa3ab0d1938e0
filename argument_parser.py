#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

from authors import GIT_LOG_ALLOWED_OPTIONS, is_allowed_git_log_option
from config import (DEFAULT_API_URL, DEFAULT_AUTHORS_FILE, DEFAULT_USER_AGENT,
                    DEFAULT_WORKERS, VERSION, AuthorsConfig, Command, Config,
                    GitHubConfig, LabelCopyConfig, LabelGetConfig)
from logging_utils import Logger
from security import SecurityValidator

# Exit codes
EXIT_AUTH_ERROR = 40
EXIT_MISSING_ARGUMENTS = 2

# Keys a --config JSON file may provide, with the JSON type each must have
CONFIG_FILE_KEYS = {
    "api_url": str,
    "token": str,
    "user": str,
    "workers": int,
    "src_repo": str,
    "dst_repo": str,
    "update_existing": bool,
    "delete_before_copy": bool,
}
_JSON_TYPE_NAMES = {str: "string", int: "integer", bool: "boolean"}


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="repo-tools",
        description="Repository maintenance tools: label sync and contributor lists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s labels get --repo metarhia/tools
  %(prog)s labels get --repo metarhia/tools --dump labels.json
  %(prog)s labels copy --src-repo metarhia/tools --dst-repo metarhia/impress
  %(prog)s labels copy --src-file labels.json --dst-repo metarhia/impress \\
           --update-existing --delete-before-copy --dry-run
  %(prog)s authors --until v1.0.0 --stdout
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        help="Print debug output",
    )
    return parser


def _add_github_arguments(parser: argparse.ArgumentParser) -> None:
    """Add GitHub-related arguments to parser."""
    parser.add_argument(
        "--api-url",
        dest="api_url",
        help=f"Base URL of the GitHub API (default: {DEFAULT_API_URL})",
    )
    parser.add_argument(
        "-t",
        "--token",
        dest="token",
        help="GitHub access token (or set GITHUB_TOKEN / GH_TOKEN env var)",
    )
    parser.add_argument(
        "-u",
        "--user",
        dest="user",
        help="GitHub username, sent as the User-Agent",
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config",
        help="JSON file with default option values",
    )
    parser.add_argument(
        "--workers",
        dest="workers",
        type=int,
        help=f"Concurrent API requests for batch operations (default: {DEFAULT_WORKERS})",
    )


def _add_label_commands(subparsers) -> None:
    """Add the `labels get` and `labels copy` commands."""
    labels = subparsers.add_parser("labels", help="Get or copy issue labels")
    label_commands = labels.add_subparsers(dest="labels_command", required=True)

    get = label_commands.add_parser("get", help="Print the labels of a repository")
    _add_github_arguments(get)
    get.add_argument(
        "-r",
        "--repo",
        dest="repo",
        required=True,
        help="Repository to read, e.g. 'metarhia/tools'",
    )
    get.add_argument(
        "--dump",
        dest="dump_file",
        help="Also write the labels to this JSON file",
    )

    copy = label_commands.add_parser("copy", help="Copy labels between repositories or files")
    _add_github_arguments(copy)
    source = copy.add_mutually_exclusive_group()
    source.add_argument(
        "-s",
        "--src-repo",
        dest="src_repo",
        help="Source repository, e.g. 'metarhia/tools'",
    )
    source.add_argument(
        "--src-file",
        dest="src_file",
        help="JSON file to read labels from",
    )
    destination = copy.add_mutually_exclusive_group()
    destination.add_argument(
        "-d",
        "--dst-repo",
        dest="dst_repo",
        help="Destination repository, e.g. 'metarhia/impress'",
    )
    destination.add_argument(
        "--dst-file",
        dest="dst_file",
        help="JSON file to write labels to",
    )
    copy.add_argument(
        "--delete-before-copy",
        action="store_true",
        default=None,
        dest="delete_before_copy",
        help="Delete destination labels not used by any issue before copying",
    )
    copy.add_argument(
        "-e",
        "--update-existing",
        action="store_true",
        default=None,
        dest="update_existing",
        help="Update existing labels with the same name",
    )
    copy.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="List actions without doing them",
    )


def _add_authors_command(subparsers) -> None:
    """Add the `authors` command."""
    allowed = ", ".join(("--grep=<pattern>",) + GIT_LOG_ALLOWED_OPTIONS)
    authors = subparsers.add_parser(
        "authors",
        help="List contributors from git history",
        description=(
            "List all repository contributors based on `git log`, ordered by "
            "first contribution. Options passed straight to git log: " + allowed
        ),
    )
    authors.add_argument(
        "--until",
        dest="until",
        help="Stop at the specified commit instead of the full history",
    )
    output = authors.add_mutually_exclusive_group()
    output.add_argument(
        "--out",
        dest="out_path",
        default=DEFAULT_AUTHORS_FILE,
        help=f"Output path (default: ./{DEFAULT_AUTHORS_FILE})",
    )
    output.add_argument(
        "--stdout",
        action="store_true",
        dest="stdout",
        help="Print contributors to stdout instead of a file",
    )
    authors.add_argument(
        "-C",
        dest="repo_dir",
        help="Run git in this directory",
    )


def _load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Read --config JSON; unknown keys are ignored with a warning."""
    if not path:
        return {}
    try:
        validated = SecurityValidator.validate_file_path(path)
        with open(validated, encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as e:
        Logger.error(f"cannot read config file '{path}': {e}")
        sys.exit(EXIT_MISSING_ARGUMENTS)

    if not isinstance(data, dict):
        Logger.error(f"config file '{path}' must contain a JSON object")
        sys.exit(EXIT_MISSING_ARGUMENTS)

    values: Dict[str, Any] = {}
    for key, value in data.items():
        expected = CONFIG_FILE_KEYS.get(key)
        if expected is None:
            Logger.warn(f"ignoring unknown config file key: {key}")
            continue
        # bool is a subclass of int, so "workers": true must not pass
        if isinstance(value, bool) != (expected is bool) or not isinstance(value, expected):
            Logger.error(
                f"config file '{path}': '{key}' must be a JSON "
                f"{_JSON_TYPE_NAMES[expected]}, got {json.dumps(value)}"
            )
            sys.exit(EXIT_MISSING_ARGUMENTS)
        values[key] = value
    return values


def _merge_config_file(args: argparse.Namespace) -> None:
    """Fill options not given on the command line from the --config file."""
    file_values = _load_config_file(getattr(args, "config", None))
    for key, value in file_values.items():
        if hasattr(args, key) and getattr(args, key) is None:
            setattr(args, key, value)


def _get_and_validate_token(args: argparse.Namespace) -> str:
    """Get the GitHub token from arguments, config file or environment."""
    token = args.token or os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
    if not token:
        Logger.error("error: no GitHub access token given (use --token or GITHUB_TOKEN)")
        sys.exit(EXIT_AUTH_ERROR)
    return token


def _build_github_config(args: argparse.Namespace) -> GitHubConfig:
    token = _get_and_validate_token(args)
    try:
        api_url = SecurityValidator.validate_url(
            args.api_url or DEFAULT_API_URL, ["https", "http"]
        )
        user_agent = DEFAULT_USER_AGENT
        if args.user:
            user_agent = SecurityValidator.validate_username(args.user)

        workers = DEFAULT_WORKERS if args.workers is None else int(args.workers)
        if workers < 1 or workers > 64:
            raise ValueError("workers must be between 1 and 64")
    except (TypeError, ValueError) as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        Logger.error(f"configuration validation error: {e}")
        sys.exit(EXIT_MISSING_ARGUMENTS)

    return GitHubConfig(
        api_url=api_url,
        token=token,
        user_agent=user_agent,
        workers=workers,
    )


def _validate_label_copy(args: argparse.Namespace) -> LabelCopyConfig:
    """Validate source/destination combination and sanitize paths."""
    try:
        # Config-file values bypass argparse's mutually exclusive groups
        if args.src_repo and args.src_file:
            raise ValueError("--src-repo and --src-file are mutually exclusive")
        if args.dst_repo and args.dst_file:
            raise ValueError("--dst-repo and --dst-file are mutually exclusive")
        if not (args.src_repo or args.src_file):
            raise ValueError("one of --src-repo or --src-file is required")
        if not (args.dst_repo or args.dst_file):
            raise ValueError("one of --dst-repo or --dst-file is required")
        if args.src_file and args.dst_file:
            raise ValueError("--src-file cannot be combined with --dst-file")

        src_repo = SecurityValidator.validate_repo_ref(args.src_repo) if args.src_repo else None
        dst_repo = SecurityValidator.validate_repo_ref(args.dst_repo) if args.dst_repo else None
        src_file = SecurityValidator.validate_file_path(args.src_file) if args.src_file else None
        dst_file = SecurityValidator.validate_file_path(args.dst_file) if args.dst_file else None
    except ValueError as e:
        Logger.error(f"argument error: {e}")
        sys.exit(EXIT_MISSING_ARGUMENTS)

    if dst_file and (args.update_existing or args.delete_before_copy):
        Logger.warn(
            "--update-existing and --delete-before-copy have no effect with --dst-file"
        )

    return LabelCopyConfig(
        src_repo=src_repo,
        src_file=src_file,
        dst_repo=dst_repo,
        dst_file=dst_file,
        update_existing=bool(args.update_existing),
        delete_before_copy=bool(args.delete_before_copy),
        dry_run=bool(args.dry_run),
    )


def _validate_label_get(args: argparse.Namespace) -> LabelGetConfig:
    try:
        repo = SecurityValidator.validate_repo_ref(args.repo)
        dump_file = SecurityValidator.validate_file_path(args.dump_file) if args.dump_file else None
    except ValueError as e:
        Logger.error(f"argument error: {e}")
        sys.exit(EXIT_MISSING_ARGUMENTS)
    return LabelGetConfig(repo=repo, dump_file=dump_file)


def _validate_authors(args: argparse.Namespace, extra: List[str]) -> AuthorsConfig:
    for option in extra:
        if not is_allowed_git_log_option(option):
            Logger.error(
                f"unrecognized option: {option}\n"
                "Try 'repo-tools authors --help' for more information"
            )
            sys.exit(EXIT_MISSING_ARGUMENTS)
    return AuthorsConfig(
        until=args.until,
        out_path=None if args.stdout else args.out_path,
        git_log_options=list(extra),
        repo_dir=args.repo_dir,
    )


def parse_arguments(argv: Optional[Sequence[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_label_commands(subparsers)
    _add_authors_command(subparsers)

    args, extra = parser.parse_known_args(argv)
    Logger.verbose = args.verbose

    if args.command == "authors":
        return Config(command=Command.AUTHORS, authors=_validate_authors(args, extra))

    if extra:
        parser.error(f"unrecognized arguments: {' '.join(extra)}")

    _merge_config_file(args)
    github_config = _build_github_config(args)

    if args.labels_command == "get":
        return Config(
            command=Command.LABELS_GET,
            github=github_config,
            labels_get=_validate_label_get(args),
        )

    return Config(
        command=Command.LABELS_COPY,
        github=github_config,
        labels_copy=_validate_label_copy(args),
    )
