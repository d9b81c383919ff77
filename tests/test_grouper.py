"""
Tests for gostuck.core.grouper - fingerprint-based goroutine grouping.

This test module verifies:
- Fingerprints depend on exactly name, last state and rendered stack
- Grouping equivalence and cardinality ordering
- GoroutineGroup sequence behavior
- End-to-end grouping of reconstructed goroutines
"""

import itertools

import pytest

from gostuck.core.events import Event, EventKind, Frame
from gostuck.core.goroutines import Goroutine, events_to_goroutines, unfinished_goroutines
from gostuck.core.grouper import (
    GoroutineGroup,
    GoroutineGrouper,
    fingerprint,
    group_goroutines,
)


WORKER = (Frame(fn="main.worker", file="/app/worker.go", line=42),)
POLLER = (Frame(fn="main.poll", file="/app/poll.go", line=10),)


def stuck(gid: int, name: str = "main.worker", state: str = "EvGoBlockRecv", stack=WORKER) -> Goroutine:
    """Build an unfinished goroutine record."""
    return Goroutine(id=gid, name=name, created_at=0, last_state=state, last_stack=stack)


@pytest.fixture
def grouper() -> GoroutineGrouper:
    """Create a GoroutineGrouper instance."""
    return GoroutineGrouper()


# =============================================================================
# Fingerprints
# =============================================================================


class TestFingerprint:
    """Tests for fingerprint()."""

    def test_md5_hex_digest(self) -> None:
        """Fingerprints are 128-bit hex digests."""
        value = fingerprint(stuck(1))
        assert len(value) == 32
        int(value, 16)

    def test_ignores_identity_and_lifecycle(self) -> None:
        """Id, parent and timestamps do not affect the fingerprint."""
        a = stuck(1)
        b = Goroutine(
            id=2, parent_id=1, parent_stack=POLLER, name="main.worker",
            created_at=50, last_state="EvGoBlockRecv", last_stack=WORKER,
        )
        assert fingerprint(a) == fingerprint(b)

    @pytest.mark.parametrize("other", [
        stuck(2, name="main.other"),
        stuck(2, state="EvGoBlockSend"),
        stuck(2, stack=POLLER),
        stuck(2, stack=(Frame(fn="main.worker", file="/app/worker.go", line=43),)),
    ])
    def test_any_field_change_differs(self, other: Goroutine) -> None:
        """Changing name, state or any frame changes the fingerprint."""
        assert fingerprint(stuck(1)) != fingerprint(other)

    def test_field_boundaries_matter(self) -> None:
        """Moving characters between name and state changes the fingerprint."""
        a = stuck(1, name="ab", state="c", stack=())
        b = stuck(2, name="a", state="bc", stack=())
        assert fingerprint(a) != fingerprint(b)

    def test_lone_surrogates_accepted(self, grouper: GoroutineGrouper) -> None:
        """Unpaired surrogates from decoded JSON still fingerprint and group."""
        stack = (Frame(fn="main.\ud800w", file="/app/w.go", line=3),)
        a = stuck(1, name="main.\ud800w", stack=stack)
        b = stuck(2, name="main.\ud800w", stack=stack)

        value = fingerprint(a)
        assert len(value) == 32
        assert value != fingerprint(stuck(3, name="main.\ud801w", stack=stack))

        groups = grouper.group([a, b])
        assert [g.ids for g in groups] == [[1, 2]]


# =============================================================================
# Grouping
# =============================================================================


class TestGroup:
    """Tests for GoroutineGrouper.group()."""

    def test_empty_input(self, grouper: GoroutineGrouper) -> None:
        """No goroutines gives no groups."""
        assert grouper.group({}) == []
        assert grouper.group([]) == []

    def test_identical_goroutines_collapse(self, grouper: GoroutineGrouper) -> None:
        """Goroutines with the same fingerprint form one group."""
        groups = grouper.group([stuck(i) for i in range(1, 101)])
        assert len(groups) == 1
        assert len(groups[0]) == 100

    def test_accepts_mapping(self, grouper: GoroutineGrouper) -> None:
        """Mappings are grouped by their values."""
        goroutines = {1: stuck(1), 2: stuck(2), 3: stuck(3, stack=POLLER)}
        groups = grouper.group(goroutines)
        assert [len(g) for g in groups] == [2, 1]

    def test_sorted_by_descending_size(self, grouper: GoroutineGrouper) -> None:
        """Larger groups come first."""
        members = (
            [stuck(1, stack=POLLER)]
            + [stuck(10 + i, state="EvGoSleep") for i in range(3)]
            + [stuck(20 + i) for i in range(5)]
        )
        groups = grouper.group(members)
        sizes = [len(g) for g in groups]
        assert sizes == [5, 3, 1]
        assert all(a >= b for a, b in zip(sizes, sizes[1:]))

    def test_equal_sizes_keep_first_seen_order(self, grouper: GoroutineGrouper) -> None:
        """Ties keep the order of each group's first member."""
        members = [stuck(1, stack=POLLER), stuck(2), stuck(3, stack=POLLER), stuck(4)]
        groups = grouper.group(members)
        assert [g.ids for g in groups] == [[1, 3], [2, 4]]

    def test_membership_matches_fingerprint_equality(self, grouper: GoroutineGrouper) -> None:
        """Two goroutines share a group iff name, state and stack are all equal."""
        members = [
            stuck(1), stuck(2), stuck(3, name="main.other"), stuck(4, state="EvGoSleep"),
            stuck(5, stack=POLLER), stuck(6, state="EvGoSleep"), stuck(7, name="main.other"),
        ]
        group_of = {}
        for index, group in enumerate(grouper.group(members)):
            for g in group:
                group_of[g.id] = index

        for a, b in itertools.combinations(members, 2):
            same_triple = (a.name, a.last_state, a.last_stack) == (b.name, b.last_state, b.last_stack)
            assert (group_of[a.id] == group_of[b.id]) == same_triple

    def test_every_member_grouped_once(self, grouper: GoroutineGrouper) -> None:
        """Grouping partitions the input."""
        members = [stuck(i, stack=POLLER if i % 3 else WORKER) for i in range(30)]
        ids = [gid for group in grouper.group(members) for gid in group.ids]
        assert sorted(ids) == list(range(30))

    def test_member_order_is_insertion_order(self, grouper: GoroutineGrouper) -> None:
        """Members appear in the order they were given."""
        groups = grouper.group([stuck(9), stuck(3), stuck(5)])
        assert groups[0].ids == [9, 3, 5]

    def test_group_goroutines_wrapper(self) -> None:
        """The module-level wrapper matches the class."""
        groups = group_goroutines([stuck(1), stuck(2, stack=POLLER), stuck(3)])
        assert [len(g) for g in groups] == [2, 1]

    def test_repeatable(self, grouper: GoroutineGrouper) -> None:
        """Grouping the same input twice gives the same groups."""
        members = [stuck(i, state="EvGoSleep" if i % 2 else "EvGoBlockRecv") for i in range(10)]
        first = [(g.fingerprint, g.ids) for g in grouper.group(members)]
        second = [(g.fingerprint, g.ids) for g in grouper.group(members)]
        assert first == second


class TestGoroutineGroup:
    """Tests for the GoroutineGroup container."""

    def test_sequence_behavior(self) -> None:
        """Groups support len, iteration and indexing."""
        members = [stuck(1), stuck(2)]
        group = GoroutineGroup(fingerprint="abc", goroutines=members)
        assert len(group) == 2
        assert list(group) == members
        assert group[1] is members[1]
        assert group.ids == [1, 2]

    def test_representative_is_first_member(self) -> None:
        """The first member represents the group."""
        group = GoroutineGroup(fingerprint="abc", goroutines=[stuck(4), stuck(2)])
        assert group.representative.id == 4


# =============================================================================
# End-to-end
# =============================================================================


class TestReconstructedGrouping:
    """Grouping applied to reconstructed goroutines."""

    def test_hundred_identical_leaks(self) -> None:
        """100 goroutines blocked at the same site form one group of 100."""
        events = []
        for gid in range(1, 101):
            events.append(Event(kind=EventKind.GO_CREATE, g=0, ts=gid * 2, args=(gid,)))
            events.append(Event(kind=EventKind.GO_BLOCK_RECV, g=gid, ts=gid * 2 + 1, stack=WORKER))

        groups = group_goroutines(unfinished_goroutines(events_to_goroutines(events)))
        assert len(groups) == 1
        assert len(groups[0]) == 100
        assert str(groups[0].representative) == (
            "main.worker [EvGoBlockRecv]:\n\tmain.worker [/app/worker.go:42]"
        )

    def test_finished_goroutines_absent(self) -> None:
        """Terminated goroutines do not appear in any group."""
        events = [
            Event(kind=EventKind.GO_CREATE, g=0, ts=1, args=(2,)),
            Event(kind=EventKind.GO_END, g=2, ts=2),
        ]
        assert group_goroutines(unfinished_goroutines(events_to_goroutines(events))) == []
