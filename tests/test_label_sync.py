"""Tests for the label reconciliation engine."""

from __future__ import annotations

import pytest

from errors import PartialBatchFailure
from label_sync import LabelReconciler, labels_match
from models import Label


@pytest.fixture
def reconciler(client) -> LabelReconciler:
    return LabelReconciler(client)


def _colors(github, repo):
    return {name: data["color"] for name, data in github.label_set(repo).items()}


def test_copy_into_disjoint_destination_creates_everything(github, reconciler) -> None:
    source = [Label("bug", "d73a4a"), Label("docs", "0075ca")]
    github.add_labels("o/dst", Label("wontfix", "ffffff"))

    result = reconciler.reconcile(source, "o/dst")

    assert sorted(label.name for label in result.applied) == ["bug", "docs"]
    assert _colors(github, "o/dst") == {
        "wontfix": "ffffff",
        "bug": "d73a4a",
        "docs": "0075ca",
    }


def test_existing_label_updated_only_when_requested(github, reconciler) -> None:
    source = [Label("bug", "d73a4a")]
    github.add_labels("o/dst", Label("bug", "ff0000"))

    untouched = reconciler.reconcile(source, "o/dst", update_existing=False)
    assert untouched.applied == []
    assert _colors(github, "o/dst") == {"bug": "ff0000"}
    assert github.mutating_calls() == []

    updated = reconciler.reconcile(source, "o/dst", update_existing=True)
    assert [label.name for label in updated.applied] == ["bug"]
    assert _colors(github, "o/dst") == {"bug": "d73a4a"}
    assert github.mutating_calls() == [("PATCH", "bug")]


def test_end_to_end_update_and_create(github, reconciler) -> None:
    source = [Label("bug", "d73a4a"), Label("docs", "0075ca")]
    github.add_labels("o/dst", Label("bug", "ff0000"))

    result = reconciler.reconcile(source, "o/dst", update_existing=True)

    assert len(result.applied) == 2
    assert sorted(github.mutating_calls()) == [("PATCH", "bug"), ("POST", "labels")]
    assert _colors(github, "o/dst") == {"bug": "d73a4a", "docs": "0075ca"}


def test_delete_first_never_deletes_used_labels(github, reconciler) -> None:
    github.add_labels(
        "o/dst",
        Label("bug", "ff0000"),
        Label("stale", "cccccc"),
        Label("old", "dddddd"),
        Label("question", "eeeeee"),
    )
    github.add_issue("o/dst", "bug")
    github.add_issue("o/dst", "question", state="closed")

    result = reconciler.reconcile([Label("docs", "0075ca")], "o/dst", delete_first=True)

    deletes = sorted(name for method, name in github.calls if method == "DELETE")
    assert deletes == ["old", "stale"]
    assert sorted(result.deleted) == ["old", "stale"]
    assert set(result.protected) == {"bug", "question"}
    assert set(github.label_set("o/dst")) == {"bug", "question", "docs"}


def test_delete_first_recreates_deleted_source_labels(github, reconciler) -> None:
    github.add_labels("o/dst", Label("docs", "000000"))

    result = reconciler.reconcile([Label("docs", "0075ca")], "o/dst", delete_first=True)

    assert [label.name for label in result.applied] == ["docs"]
    assert _colors(github, "o/dst") == {"docs": "0075ca"}


def test_source_read_from_repository(github, reconciler) -> None:
    github.add_labels("o/src", Label("bug", "d73a4a", "Something broken"))

    result = reconciler.reconcile("o/src", "o/dst")

    assert result.applied == [Label("bug", "d73a4a", "Something broken")]


def test_repeated_runs_converge(github, reconciler) -> None:
    source = [Label("bug", "d73a4a"), Label("docs", "0075ca")]
    github.add_labels("o/dst", Label("bug", "ff0000"))

    first = reconciler.reconcile(source, "o/dst", update_existing=True)
    second = reconciler.reconcile(source, "o/dst", update_existing=True)
    third = reconciler.reconcile(source, "o/dst", update_existing=True)

    assert len(first.applied) == 2
    assert second.applied == []
    assert third.applied == []
    assert reconciler.plan(source, "o/dst", update_existing=True).has_changes is False


def test_failed_create_does_not_stop_others(github, reconciler) -> None:
    source = [Label(f"l{n}", "aaaaaa") for n in range(5)]
    github.fail_on[("POST", "l1")] = 500

    with pytest.raises(PartialBatchFailure) as excinfo:
        reconciler.reconcile(source, "o/dst")

    assert sorted(label.name for label in excinfo.value.succeeded) == ["l0", "l2", "l3", "l4"]
    assert excinfo.value.first_error.status == 500
    assert set(github.label_set("o/dst")) == {"l0", "l2", "l3", "l4"}
    assert sum(1 for method, _ in github.calls if method == "POST") == 5


def test_failed_update_does_not_stop_creates(github, reconciler) -> None:
    source = [Label(f"l{n}", "aaaaaa") for n in range(5)]
    github.fail_on[("PATCH", "l1")] = 500
    github.add_labels("o/dst", Label("l1", "000000"))

    with pytest.raises(PartialBatchFailure) as excinfo:
        reconciler.reconcile(source, "o/dst", update_existing=True)

    assert sorted(label.name for label in excinfo.value.succeeded) == ["l0", "l2", "l3", "l4"]
    assert set(github.label_set("o/dst")) == {"l0", "l1", "l2", "l3", "l4"}
    assert github.label_set("o/dst")["l1"]["color"] == "000000"


def test_failed_pre_delete_stops_before_creating(github, reconciler) -> None:
    github.add_labels("o/dst", Label("stale", "cccccc"), Label("old", "dddddd"))
    github.fail_on[("DELETE", "stale")] = 500

    with pytest.raises(PartialBatchFailure) as excinfo:
        reconciler.reconcile([Label("docs", "0075ca")], "o/dst", delete_first=True)

    assert excinfo.value.succeeded == ["old"]
    assert ("POST", "labels") not in github.calls
    assert set(github.label_set("o/dst")) == {"stale"}


def test_deletions_are_reported_when_apply_fails(github, reconciler, capsys) -> None:
    github.add_labels("o/dst", Label("stale", "cccccc"))
    github.fail_on[("POST", "docs")] = 500

    with pytest.raises(PartialBatchFailure):
        reconciler.reconcile([Label("docs", "0075ca")], "o/dst", delete_first=True)

    assert "deleted 1 labels from o/dst: stale" in capsys.readouterr().out
    assert github.label_set("o/dst") == {}


def test_plan_makes_no_mutating_calls(github, reconciler) -> None:
    github.add_labels("o/dst", Label("bug", "ff0000"), Label("stale", "cccccc"), Label("docs", "0075ca"))
    github.add_issue("o/dst", "bug")
    source = [Label("bug", "d73a4a"), Label("docs", "0075ca"), Label("new", "123456")]

    plan = reconciler.plan(source, "o/dst", update_existing=True, delete_first=True)

    assert plan.delete == ["stale", "docs"]
    assert set(plan.protected) == {"bug"}
    assert [label.name for label in plan.update] == ["bug"]
    assert sorted(label.name for label in plan.create) == ["docs", "new"]
    assert github.mutating_calls() == []


def test_plan_without_update_marks_existing_unchanged(github, reconciler) -> None:
    github.add_labels("o/dst", Label("bug", "ff0000"))

    plan = reconciler.plan([Label("bug", "d73a4a")], "o/dst")

    assert [label.name for label in plan.unchanged] == ["bug"]
    assert plan.has_changes is False


def test_duplicate_source_names_keep_last() -> None:
    reconciler = LabelReconciler(client=None)
    labels = reconciler.resolve_source([Label("bug", "111111"), Label("bug", "222222")])
    assert labels == [Label("bug", "222222")]


def test_labels_match_ignores_color_case_and_empty_description() -> None:
    assert labels_match(Label("bug", "D73A4A"), Label("bug", "d73a4a", ""))
    assert not labels_match(Label("bug", "d73a4a", "x"), Label("bug", "d73a4a"))
