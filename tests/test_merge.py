"""
Tests for the ledger merge — ordering, preservation, window handling.
"""

from gitmetrics.core.engine.merge import merge_commits
from gitmetrics.core.models.commit import CommitRecord, Ledger
from tests.helpers import make_commit


def _fetch(*ids: str) -> list[CommitRecord]:
    return [make_commit(i, timestamp=1000 - n) for n, i in enumerate(ids)]


def _ids(ledger: Ledger) -> list[str]:
    return [r.id for r in ledger.commits]


class TestMergeScenarios:
    def test_first_run_takes_fetch_as_is(self):
        fetched = [
            make_commit("A", timestamp=300, description="msg3"),
            make_commit("B", timestamp=200, description="msg2"),
            make_commit("C", timestamp=100, description="msg1"),
        ]
        merged = merge_commits(Ledger(), fetched)

        assert _ids(merged) == ["A", "B", "C"]
        assert [r.timestamp for r in merged.commits] == [300, 200, 100]
        assert [r.description for r in merged.commits] == ["msg3", "msg2", "msg1"]
        assert all(r.measurement is None for r in merged.commits)

    def test_new_commit_on_top_preserves_measured(self):
        prior = Ledger(commits=[make_commit("A", size=5.0), make_commit("B")])
        merged = merge_commits(prior, _fetch("C", "A", "B"))

        assert _ids(merged) == ["C", "A", "B"]
        assert merged.commits[0].measurement is None
        assert merged.commits[1].measurement == {"size": 5.0}
        assert merged.commits[2].measurement is None

    def test_empty_fetch_changes_nothing(self):
        prior = Ledger(commits=[make_commit("A", size=1.0), make_commit("B")])
        merged = merge_commits(prior, [])
        assert merged.to_json() == prior.to_json()

    def test_both_empty(self):
        assert merge_commits(Ledger(), []).commits == []


class TestMergeProperties:
    def test_idempotent(self):
        prior = Ledger(commits=[make_commit("A", size=5.0), make_commit("B", outcome="broken")])
        fetched = _fetch("D", "C", "A", "B")

        once = merge_commits(prior, fetched)
        twice = merge_commits(once, fetched)
        assert twice.to_json() == once.to_json()

    def test_ids_unique_with_repeated_fetch_ids(self):
        merged = merge_commits(
            Ledger(commits=[make_commit("A", size=1.0)]),
            _fetch("B", "A", "B", "A"),
        )
        assert _ids(merged) == ["B", "A"]
        assert merged.commits[1].size == 1.0

    def test_outcome_preserved(self):
        prior = Ledger(commits=[make_commit("A", outcome="broken"), make_commit("B", outcome="failed")])
        merged = merge_commits(prior, _fetch("A", "B"))
        assert [r.outcome for r in merged.commits] == ["broken", "failed"]

    def test_persisted_description_wins(self):
        """Timestamp and description are write-once."""
        prior = Ledger(commits=[make_commit("A", timestamp=1, description="original")])
        fetched = [make_commit("A", timestamp=999, description="reworded")]
        merged = merge_commits(prior, fetched)
        assert merged.commits[0].timestamp == 1
        assert merged.commits[0].description == "original"

    def test_new_entries_keep_fetch_order(self):
        prior = Ledger(commits=[make_commit("X", size=1.0)])
        merged = merge_commits(prior, _fetch("E", "D", "X", "C"))
        assert _ids(merged) == ["E", "D", "X", "C"]
        assert [r.measurement is None for r in merged.commits] == [True, True, False, True]

    def test_inputs_not_mutated(self):
        prior = Ledger(commits=[make_commit("A", size=5.0)])
        fetched = _fetch("B", "A")
        before_prior = prior.to_json()
        before_fetched = [c.to_json() for c in fetched]

        merged = merge_commits(prior, fetched)
        merged.commits[1].record_measurement(99.0)
        merged.commits[0].mark_broken()

        assert prior.to_json() == before_prior
        assert [c.to_json() for c in fetched] == before_fetched


class TestMergeWindow:
    def test_entries_older_than_window_are_retained(self):
        prior = Ledger(commits=[
            make_commit("A", size=1.0),
            make_commit("B", size=2.0),
            make_commit("C", size=3.0),
        ])
        merged = merge_commits(prior, _fetch("N", "A"))
        assert _ids(merged) == ["N", "A", "B", "C"]
        assert merged.commits[3].size == 3.0

    def test_entries_skipped_by_cursor_are_dropped(self):
        """History rewritten: X is no longer reachable above B."""
        prior = Ledger(commits=[make_commit("X", size=9.0), make_commit("B", size=2.0), make_commit("C")])
        merged = merge_commits(prior, _fetch("Y", "B", "C"))
        assert _ids(merged) == ["Y", "B", "C"]
        assert merged.commits[1].size == 2.0

    def test_reordered_commit_matched_once(self):
        """The cursor only moves forward, so a commit seen behind it is new."""
        prior = Ledger(commits=[make_commit("A", size=1.0), make_commit("B", size=2.0)])
        merged = merge_commits(prior, _fetch("B", "A"))
        assert _ids(merged) == ["B", "A"]
        assert merged.commits[0].size == 2.0
        assert merged.commits[1].measurement is None
