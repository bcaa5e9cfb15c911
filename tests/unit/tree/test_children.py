"""Tests for the ordered child collection."""

import pytest

from stratus.tree.children import ChangeKind, ChildSequence, label_sort_key
from stratus.tree.node import ErrorPlaceholder, LoadingPlaceholder, Node


def labels(sequence: ChildSequence) -> list[str]:
    return [node.label for node in sequence]


class TestLabelSortKey:
    """Test the default label ordering."""

    def test_case_insensitive(self) -> None:
        """Test that casing does not affect ordering."""
        assert label_sort_key("alpha") == label_sort_key("ALPHA")

    def test_ordering(self) -> None:
        """Test sorting a mixed-case list."""
        assert sorted(["beta", "Alpha", "gamma"], key=label_sort_key) == ["Alpha", "beta", "gamma"]


class TestChildSequence:
    """Test ChildSequence mutation and notifications."""

    def test_append_and_iterate(self) -> None:
        """Test appending nodes keeps insertion order."""
        children = ChildSequence()
        children.append(Node("b"))
        children.append(Node("a"))

        assert labels(children) == ["b", "a"]
        assert len(children) == 2

    def test_insert_sorted(self) -> None:
        """Test insert_sorted places nodes by case-insensitive label."""
        children = ChildSequence()
        for label in ["gamma", "Alpha", "beta"]:
            children.insert_sorted(Node(label))

        assert labels(children) == ["Alpha", "beta", "gamma"]

    def test_insert_sorted_returns_index(self) -> None:
        """Test insert_sorted reports the insertion index."""
        children = ChildSequence()
        children.insert_sorted(Node("a"))
        children.insert_sorted(Node("c"))

        assert children.insert_sorted(Node("B")) == 1

    def test_insert_sorted_equal_labels_go_first(self) -> None:
        """Test a new node goes before the first label comparing >= its own."""
        children = ChildSequence()
        existing = Node("web")
        children.append(existing)

        new = Node("WEB")
        children.insert_sorted(new)

        assert children[0] is new
        assert children[1] is existing

    def test_insert_sorted_keeps_placeholder_last(self) -> None:
        """Test placeholders stay after real nodes."""
        children = ChildSequence()
        children.append(LoadingPlaceholder())

        children.insert_sorted(Node("zeta"))
        children.insert_sorted(Node("alpha"))

        assert labels(children) == ["alpha", "zeta", "Loading..."]

    def test_insert_sorted_before_error_placeholder(self) -> None:
        """Test error placeholders also stay last."""
        children = ChildSequence()
        children.append(ErrorPlaceholder("Error: boom"))

        children.insert_sorted(Node("zzz"))

        assert isinstance(children[1], ErrorPlaceholder)

    def test_contains_uses_identity(self) -> None:
        """Test membership is by identity, not label."""
        children = ChildSequence()
        node = Node("a")
        children.append(node)

        assert node in children
        assert Node("a") not in children

    def test_remove(self) -> None:
        """Test removing a node by identity."""
        children = ChildSequence()
        a, b = Node("a"), Node("b")
        children.append(a)
        children.append(b)

        children.remove(a)

        assert labels(children) == ["b"]

    def test_remove_missing_raises(self) -> None:
        """Test removing a non-member raises ValueError."""
        children = ChildSequence()
        with pytest.raises(ValueError):
            children.remove(Node("a"))

    def test_replace_all(self) -> None:
        """Test replace_all swaps the contents."""
        children = ChildSequence()
        children.append(Node("old"))

        children.replace_all([Node("x"), Node("y")])

        assert labels(children) == ["x", "y"]

    def test_clear(self) -> None:
        """Test clear empties the sequence."""
        children = ChildSequence()
        children.append(Node("a"))
        children.clear()
        assert len(children) == 0

    def test_notifications(self) -> None:
        """Test listeners receive inserted, removed and replaced changes."""
        children = ChildSequence()
        changes = []
        children.subscribe(changes.append)

        a = Node("a")
        children.append(a)
        children.insert_sorted(Node("0"))
        children.remove(a)
        children.replace_all([])

        assert [c.kind for c in changes] == [
            ChangeKind.INSERTED,
            ChangeKind.INSERTED,
            ChangeKind.REMOVED,
            ChangeKind.REPLACED,
        ]
        assert changes[0].index == 0
        assert changes[1].index == 0
        assert changes[2].index == 1
        assert changes[2].nodes == (a,)
        assert changes[3].nodes == ()

    def test_unsubscribe(self) -> None:
        """Test unsubscribed listeners are no longer called."""
        children = ChildSequence()
        changes = []
        children.subscribe(changes.append)
        children.unsubscribe(changes.append)

        children.append(Node("a"))

        assert changes == []

    def test_failing_listener_does_not_break_mutation(self) -> None:
        """Test a raising listener does not stop the change or other listeners."""
        children = ChildSequence()
        received = []

        def broken(change) -> None:
            raise RuntimeError("listener bug")

        children.subscribe(broken)
        children.subscribe(received.append)

        children.append(Node("a"))

        assert len(children) == 1
        assert len(received) == 1

    def test_iteration_is_snapshot(self) -> None:
        """Test the sequence can be mutated while iterating."""
        children = ChildSequence()
        for label in "abc":
            children.append(Node(label))

        for node in children:
            children.remove(node)

        assert len(children) == 0
