#!/usr/bin/env python3
"""Reconcile a destination repository's labels with a source label set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple, Union

from label_client import LabelClient
from logging_utils import Logger
from models import Label
from usage_index import build_usage_index
from utils import run_batch

# A source is either an explicit label set or the "owner/name" of a repository
LabelSource = Union[str, Sequence[Label]]

CREATE = "create"
UPDATE = "update"


@dataclass
class LabelPlan:
    """Classification of a source label set against a destination."""
    create: List[Label] = field(default_factory=list)
    update: List[Label] = field(default_factory=list)
    unchanged: List[Label] = field(default_factory=list)
    delete: List[str] = field(default_factory=list)
    protected: Dict[str, str] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.create or self.update or self.delete)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""
    applied: List[Label] = field(default_factory=list)
    protected: Dict[str, str] = field(default_factory=dict)
    deleted: List[str] = field(default_factory=list)


def labels_match(a: Label, b: Label) -> bool:
    """True when two same-named labels already agree on color and description."""
    return (
        a.color.lower() == b.color.lower()
        and (a.description or "") == (b.description or "")
    )


class LabelReconciler:
    """Computes and applies create/update/no-op decisions for one destination."""

    def __init__(self, client: LabelClient) -> None:
        self.client = client

    def resolve_source(self, source: LabelSource) -> List[Label]:
        """Return the source labels; a later duplicate name replaces an earlier one."""
        if isinstance(source, str):
            Logger.info(f"reading labels from {source}")
            labels: Sequence[Label] = self.client.list(source)
        else:
            labels = source

        by_name: Dict[str, Label] = {}
        for label in labels:
            by_name[label.name] = label
        return list(by_name.values())

    def plan_deletions(
        self, destination: str, snapshot: Sequence[Label]
    ) -> Tuple[List[str], Dict[str, str]]:
        """Split the destination snapshot into deletable names and protected labels."""
        used = build_usage_index(self.client.transport, destination)
        delete: List[str] = []
        protected: Dict[str, str] = {}
        for label in snapshot:
            if label.name in used:
                protected[label.name] = used[label.name]
            else:
                delete.append(label.name)
        return delete, protected

    @staticmethod
    def classify(
        source: Sequence[Label],
        snapshot: Sequence[Label],
        update_existing: bool,
    ) -> LabelPlan:
        current = {label.name: label for label in snapshot}
        plan = LabelPlan()
        for label in source:
            existing = current.get(label.name)
            if existing is None:
                plan.create.append(label)
            elif update_existing and not labels_match(label, existing):
                plan.update.append(label)
            else:
                plan.unchanged.append(label)
        return plan

    def plan(
        self,
        source: LabelSource,
        destination: str,
        update_existing: bool = False,
        delete_first: bool = False,
    ) -> LabelPlan:
        """Compute what ``reconcile`` would do without changing anything."""
        labels = self.resolve_source(source)
        snapshot = self.client.list(destination)

        delete: List[str] = []
        protected: Dict[str, str] = {}
        if delete_first:
            delete, protected = self.plan_deletions(destination, snapshot)
            removed = set(delete)
            snapshot = [label for label in snapshot if label.name not in removed]

        plan = self.classify(labels, snapshot, update_existing)
        plan.delete = delete
        plan.protected = protected
        return plan

    def reconcile(
        self,
        source: LabelSource,
        destination: str,
        update_existing: bool = False,
        delete_first: bool = False,
    ) -> ReconcileResult:
        """Make ``destination`` carry every source label.

        Raises PartialBatchFailure when any delete, create or update failed;
        its ``succeeded`` holds what was applied in that batch. A failed
        pre-delete stops before any label is created or updated.
        """
        labels = self.resolve_source(source)
        result = ReconcileResult()

        if delete_first:
            snapshot = self.client.list(destination)
            delete, result.protected = self.plan_deletions(destination, snapshot)
            for name, url in result.protected.items():
                Logger.warn(f"keeping label in use: {name} ({url})")
            if delete:
                Logger.info(f"deleting {len(delete)} labels from {destination}")
                result.deleted = self.client.delete_many(destination, delete)
                Logger.info(
                    f"deleted {len(result.deleted)} labels from {destination}: "
                    f"{', '.join(result.deleted)}"
                )

        snapshot = self.client.list(destination)
        plan = self.classify(labels, snapshot, update_existing)
        Logger.info(
            f"{destination}: {len(plan.create)} to create, {len(plan.update)} to update, "
            f"{len(plan.unchanged)} unchanged"
        )

        decisions = [(CREATE, label) for label in plan.create]
        decisions += [(UPDATE, label) for label in plan.update]
        result.applied = run_batch(
            decisions,
            lambda decision: self._apply(destination, *decision),
            self.client.config.workers,
        )
        return result

    def _apply(self, destination: str, action: str, label: Label) -> Label:
        if action == CREATE:
            return self.client.create(destination, label)
        return self.client.update(destination, label, label.name)
