#!/usr/bin/env python3
"""Runs one repo-tools command and maps its outcome to an exit code."""

from __future__ import annotations

import subprocess
import sys
from typing import List, Optional, Sequence

from authors import collect_authors, write_authors
from config import AuthorsConfig, Command, Config, LabelCopyConfig, LabelGetConfig
from errors import InvalidArgument, PartialBatchFailure, RepoToolsError
from label_client import LabelClient
from label_dump import read_dump, write_dump
from label_sync import LabelPlan, LabelReconciler, LabelSource
from logging_utils import Logger
from models import Label
from utils import format_label_table

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1
EXIT_MISSING_ARGUMENTS = 2
EXIT_GITHUB_ERROR = 31
EXIT_GIT_ERROR = 50


def print_labels(labels: Sequence[Label]) -> None:
    """Print labels as a table on stdout."""
    if not labels:
        return
    sys.stdout.write(format_label_table(labels) + "\n")


class SyncOrchestrator:
    def __init__(self, cfg: Config, client: Optional[LabelClient] = None) -> None:
        self.cfg = cfg
        self._client = client

    @property
    def client(self) -> LabelClient:
        if self._client is None:
            if self.cfg.github is None:
                raise InvalidArgument("GitHub settings are required for label commands")
            self._client = LabelClient(self.cfg.github)
        return self._client

    def run(self) -> int:
        try:
            return self._dispatch()
        except SystemExit as e:
            return int(e.code) if isinstance(e.code, int) else EXIT_EXECUTION_ERROR
        except PartialBatchFailure as e:
            self._report_batch_failure(e)
            return EXIT_GITHUB_ERROR
        except InvalidArgument as e:
            Logger.error(f"argument error: {e}")
            return EXIT_MISSING_ARGUMENTS
        except RepoToolsError as e:
            Logger.error(f"github error: {e}")
            return EXIT_GITHUB_ERROR
        except Exception as e:
            Logger.error(f"unexpected error: {e}")
            return EXIT_EXECUTION_ERROR

    def _dispatch(self) -> int:
        command = self.cfg.command
        if command == Command.AUTHORS and self.cfg.authors is not None:
            return self._run_authors(self.cfg.authors)
        if command == Command.LABELS_GET and self.cfg.labels_get is not None:
            return self._run_labels_get(self.cfg.labels_get)
        if command == Command.LABELS_COPY and self.cfg.labels_copy is not None:
            return self._run_labels_copy(self.cfg.labels_copy)
        Logger.error(f"missing settings for command: {command.value}")
        return EXIT_MISSING_ARGUMENTS

    def _run_labels_get(self, get_cfg: LabelGetConfig) -> int:
        self.client.connect([get_cfg.repo])
        labels = self.client.list(get_cfg.repo)
        Logger.info(f"{get_cfg.repo}: {len(labels)} labels")
        print_labels(labels)
        if get_cfg.dump_file:
            self._write_dump(get_cfg.dump_file, labels)
        return EXIT_SUCCESS

    def _run_labels_copy(self, copy_cfg: LabelCopyConfig) -> int:
        repos = [r for r in (copy_cfg.src_repo, copy_cfg.dst_repo) if r]
        self.client.connect(repos)

        if copy_cfg.dst_file:
            if not copy_cfg.src_repo:
                Logger.error("--dst-file requires --src-repo")
                return EXIT_MISSING_ARGUMENTS
            return self._export_labels(copy_cfg.src_repo, copy_cfg.dst_file, copy_cfg.dry_run)
        if not copy_cfg.dst_repo:
            Logger.error("one of --dst-repo or --dst-file is required")
            return EXIT_MISSING_ARGUMENTS

        source = self._resolve_source(copy_cfg)
        if source is None:
            return EXIT_MISSING_ARGUMENTS

        reconciler = LabelReconciler(self.client)
        if copy_cfg.dry_run:
            plan = reconciler.plan(
                source,
                copy_cfg.dst_repo,
                update_existing=copy_cfg.update_existing,
                delete_first=copy_cfg.delete_before_copy,
            )
            self._report_plan(plan, copy_cfg.dst_repo)
            Logger.info("dry-run completed")
            return EXIT_SUCCESS

        result = reconciler.reconcile(
            source,
            copy_cfg.dst_repo,
            update_existing=copy_cfg.update_existing,
            delete_first=copy_cfg.delete_before_copy,
        )
        Logger.success(f"{copy_cfg.dst_repo}: {len(result.applied)} labels created or updated")
        print_labels(result.applied)
        return EXIT_SUCCESS

    def _resolve_source(self, copy_cfg: LabelCopyConfig) -> Optional[LabelSource]:
        if copy_cfg.src_repo:
            return copy_cfg.src_repo
        if not copy_cfg.src_file:
            Logger.error("one of --src-repo or --src-file is required")
            return None
        try:
            labels = read_dump(copy_cfg.src_file)
        except (OSError, ValueError) as e:
            Logger.error(f"cannot read labels from '{copy_cfg.src_file}': {e}")
            return None
        Logger.info(f"read {len(labels)} labels from {copy_cfg.src_file}")
        return labels

    def _export_labels(self, src_repo: str, dst_file: str, dry_run: bool) -> int:
        labels = self.client.list(src_repo)
        if dry_run:
            Logger.info(f"would write {len(labels)} labels from {src_repo} to {dst_file}")
            print_labels(labels)
            Logger.info("dry-run completed")
            return EXIT_SUCCESS
        self._write_dump(dst_file, labels)
        print_labels(labels)
        return EXIT_SUCCESS

    @staticmethod
    def _write_dump(path: str, labels: Sequence[Label]) -> None:
        write_dump(path, labels)
        Logger.info(f"wrote {len(labels)} labels to {path}")

    @staticmethod
    def _report_plan(plan: LabelPlan, destination: str) -> None:
        for name in plan.delete:
            Logger.warn(f"would delete: {destination}:{name}")
        for name, url in plan.protected.items():
            Logger.info(f"would keep (in use): {name} -> {url}")
        for label in plan.create:
            Logger.info(f"would create: {label.name} ({label.color})")
        for label in plan.update:
            Logger.info(f"would update: {label.name} ({label.color})")
        for label in plan.unchanged:
            Logger.debug(f"unchanged: {label.name}")
        if not plan.has_changes:
            Logger.info(f"{destination} is already up to date")

    @staticmethod
    def _report_batch_failure(failure: PartialBatchFailure) -> None:
        for error in failure.errors:
            Logger.error(f"failed: {error}")
        Logger.error(f"{len(failure.errors)} operations failed, {len(failure.succeeded)} succeeded")
        labels: List[Label] = [item for item in failure.succeeded if isinstance(item, Label)]
        print_labels(labels)

    def _run_authors(self, authors_cfg: AuthorsConfig) -> int:
        try:
            authors = collect_authors(
                until=authors_cfg.until,
                git_log_options=authors_cfg.git_log_options,
                cwd=authors_cfg.repo_dir,
            )
        except ValueError as e:
            Logger.error(str(e))
            return EXIT_MISSING_ARGUMENTS
        except FileNotFoundError as e:
            Logger.error(f"cannot run git: {e}")
            return EXIT_GIT_ERROR
        except subprocess.CalledProcessError as e:
            Logger.error(f"git failed ({e.returncode}): {(e.stderr or '').strip()}")
            return EXIT_GIT_ERROR
        except subprocess.TimeoutExpired as e:
            Logger.error(f"git timed out after {e.timeout}s")
            return EXIT_GIT_ERROR

        if not authors_cfg.out_path:
            for author in authors:
                sys.stdout.write(author + "\n")
            return EXIT_SUCCESS

        try:
            path = write_authors(authors_cfg.out_path, authors)
        except OSError as e:
            Logger.error(f"error writing to file: {e}")
            return EXIT_EXECUTION_ERROR
        Logger.info(f"wrote {len(authors)} contributors to {path}")
        return EXIT_SUCCESS
