"""Tests for snapshot diffing."""

import random
from collections import Counter

import pytest

from conftest import make_set
from pkghistory.diffing import diff_snapshots, resolve_capture_kinds
from pkghistory.models import ChangeKind, Package


class TestResolveCaptureKinds:
    """Test enabled change kind resolution."""

    def test_empty_selection_enables_all(self):
        assert resolve_capture_kinds(()) == frozenset(ChangeKind)
        assert resolve_capture_kinds(None) == frozenset(ChangeKind)

    def test_explicit_selection(self):
        assert resolve_capture_kinds([ChangeKind.UPDATED]) == {ChangeKind.UPDATED}


class TestDiffSnapshots:
    """Test the per-commit diff."""

    def test_first_snapshot_emits_nothing(self, commit_info):
        """A missing previous snapshot only seeds state."""
        current = make_set({"a": "1.0", "b": "2.0"})

        assert diff_snapshots(None, current, commit_info) == []

    def test_added_package(self, commit_info):
        """Empty previous snapshot, one new package."""
        changes = diff_snapshots({}, make_set({"a": "1.0"}), commit_info)

        assert len(changes) == 1
        change = changes[0]
        assert change.kind is ChangeKind.ADDED
        assert change.package == Package("a", "1.0", False)
        assert change.previous_version is None

    def test_updated_package(self, commit_info):
        """Version change carries the previous version."""
        changes = diff_snapshots(
            make_set({"a": "1.0"}), make_set({"a": "2.0"}), commit_info
        )

        assert len(changes) == 1
        change = changes[0]
        assert change.kind is ChangeKind.UPDATED
        assert change.previous_version == "1.0"
        assert change.package.version == "2.0"

    def test_deleted_package(self, commit_info):
        """Removed package keeps its last known attributes."""
        changes = diff_snapshots(
            make_set({"a": "1.0"}, dev=("a",)), {}, commit_info
        )

        assert len(changes) == 1
        change = changes[0]
        assert change.kind is ChangeKind.DELETED
        assert change.package == Package("a", "1.0", True)
        assert change.previous_version is None

    def test_unchanged_package_emits_nothing(self, commit_info):
        """Equal presence and version produce no event."""
        snapshot = make_set({"a": "1.0"})

        assert diff_snapshots(snapshot, dict(snapshot), commit_info) == []

    def test_dev_flag_change_alone_is_not_an_update(self, commit_info):
        """Only the version is compared for packages present in both."""
        previous = make_set({"a": "1.0"})
        current = make_set({"a": "1.0"}, dev=("a",))

        assert diff_snapshots(previous, current, commit_info) == []

    def test_events_carry_commit_metadata(self, commit_info):
        """All events of a batch are attributed to the same commit."""
        changes = diff_snapshots(
            make_set({"a": "1.0", "b": "1.0"}),
            make_set({"a": "1.1", "c": "3.0"}),
            commit_info,
        )

        assert len(changes) == 3
        for change in changes:
            assert change.commit_id == commit_info.commit_id
            assert change.author_name == "Jane Doe"
            assert change.author_email == "jane@example.com"
            assert change.timestamp == commit_info.timestamp

    def test_events_sorted_by_package_name(self, commit_info):
        """Events within a commit follow package name order."""
        changes = diff_snapshots(
            make_set({"zeta": "1", "alpha": "1"}),
            make_set({"mid": "1", "alpha": "2"}),
            commit_info,
        )

        assert [c.package.name for c in changes] == ["alpha", "mid", "zeta"]
        assert [c.kind for c in changes] == [
            ChangeKind.UPDATED,
            ChangeKind.ADDED,
            ChangeKind.DELETED,
        ]

    def test_only_updates_enabled(self, commit_info):
        """Disabled kinds are never emitted."""
        changes = diff_snapshots(
            make_set({"a": "1.0", "gone": "1.0"}),
            make_set({"a": "2.0", "new": "1.0"}),
            commit_info,
            [ChangeKind.UPDATED],
        )

        assert [(c.kind, c.package.name) for c in changes] == [
            (ChangeKind.UPDATED, "a")
        ]

    @pytest.mark.parametrize("kind", list(ChangeKind))
    def test_single_kind_filters(self, commit_info, kind):
        """Each kind can be selected on its own."""
        changes = diff_snapshots(
            make_set({"a": "1.0", "gone": "1.0"}),
            make_set({"a": "2.0", "new": "1.0"}),
            commit_info,
            {kind},
        )

        assert [c.kind for c in changes] == [kind]


class TestDiffProperties:
    """Properties over randomly generated snapshot pairs."""

    NAMES = [f"pkg-{i}" for i in range(12)]
    VERSIONS = ["1.0", "1.1", "2.0"]

    def _random_set(self, rng: random.Random):
        chosen = rng.sample(self.NAMES, rng.randint(0, len(self.NAMES)))
        return make_set({name: rng.choice(self.VERSIONS) for name in chosen})

    @pytest.mark.parametrize("seed", range(20))
    def test_one_event_per_differing_name(self, commit_info, seed):
        """Exactly the names whose presence or version differ yield one event."""
        rng = random.Random(seed)
        previous, current = self._random_set(rng), self._random_set(rng)

        changes = diff_snapshots(previous, current, commit_info)

        expected = {
            name
            for name in previous.keys() | current.keys()
            if name not in previous
            or name not in current
            or previous[name].version != current[name].version
        }
        names = [c.package.name for c in changes]
        assert len(names) == len(set(names))
        assert set(names) == expected

    @pytest.mark.parametrize("seed", range(5))
    def test_idempotent(self, commit_info, seed):
        """Diffing the same pair twice gives the same events."""
        rng = random.Random(seed)
        previous, current = self._random_set(rng), self._random_set(rng)

        first = diff_snapshots(previous, current, commit_info)
        second = diff_snapshots(previous, current, commit_info)

        assert Counter(first) == Counter(second)

    def test_inputs_not_mutated(self, commit_info):
        """The diff never mutates the snapshots it compares."""
        previous = make_set({"a": "1.0", "b": "1.0"})
        current = make_set({"a": "2.0"})
        previous_copy, current_copy = dict(previous), dict(current)

        diff_snapshots(previous, current, commit_info)

        assert previous == previous_copy
        assert current == current_copy
