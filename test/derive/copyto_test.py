import unittest

from .derive_fixture import DeriveTestCase

MODELS_SRC = """
from dataclasses import dataclass
from typing import Optional

from .derived_gen import (
    derive_copy_to, derive_copy_to_frozen, derive_copy_to_shelf, derive_copy_to_lists, derive_copy_to_holder,
    derive_copy_to_counts, derive_copy_to_ids
)


@dataclass(frozen=True)
class Tag:
    name: str


@dataclass(frozen=True)
class Snapshot:
    items: list[int]


class Inventory:
    name: str
    counts: Optional[dict[str, list[int]]]
    tags: list[str]
    labels: set[Tag]
    origin: Optional["Inventory"]

    def __init__(self, name, counts, tags, labels, origin=None) -> None:
        self.name = name
        self.counts = counts
        self.tags = tags
        self.labels = labels
        self.origin = origin


@dataclass(frozen=True)
class Leaf:
    branch: Optional["Branch"]
    sizes: list[int]


@dataclass(frozen=True)
class Branch:
    leaf: Optional[Leaf]


class Holder:
    leaf: Optional[Leaf]
    branch: Optional[Branch]

    def __init__(self, leaf, branch) -> None:
        self.leaf = leaf
        self.branch = branch


class Counter:
    hits: list[int]

    def __init__(self, hits: list[int]) -> None:
        self.hits = hits

    def copy_to(self, other: "Counter") -> None:
        other.hits = [hit + 1000 for hit in self.hits]


class Shelf:
    counter: Counter
    sizes: tuple[list[int], list[int]]

    def __init__(self, counter: Counter, sizes) -> None:
        self.counter = counter
        self.sizes = sizes


def copy(src: Inventory, dst: Inventory) -> None:
    derive_copy_to(src, dst)


def copy_frozen(src: Snapshot, dst: Snapshot) -> None:
    derive_copy_to_frozen(src, dst)


def copy_shelf(src: Shelf, dst: Shelf) -> None:
    derive_copy_to_shelf(src, dst)


def copy_lists(src: list[Optional[list[str]]], dst: list[Optional[list[str]]]) -> None:
    derive_copy_to_lists(src, dst)


def copy_holder(src: Holder, dst: Holder) -> None:
    derive_copy_to_holder(src, dst)


def copy_counts(src: dict[str, int], dst: dict[str, int]) -> None:
    derive_copy_to_counts(src, dst)


def copy_ids(src: set[int], dst: set[int]) -> None:
    derive_copy_to_ids(src, dst)
"""


class TestCopyTo(DeriveTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.write("models.py", MODELS_SRC)
        self.derive()
        self.models = self.load("models")

    def new_inventory(self):
        Inventory, Tag = self.models.Inventory, self.models.Tag
        origin = Inventory("origin", None, [], set())
        return Inventory("main", {"a": [1, 2], "b": None}, ["x", "y"], {Tag("t")}, origin)

    def test_deep_copy(self):
        Inventory = self.models.Inventory
        src = self.new_inventory()
        dst = Inventory("old", None, [], set())
        self.models.copy(src, dst)

        self.assertEqual(dst.name, "main")
        self.assertEqual(dst.counts, {"a": [1, 2], "b": None})
        self.assertIsNot(dst.counts, src.counts)
        self.assertIsNot(dst.counts["a"], src.counts["a"])
        self.assertEqual(dst.tags, ["x", "y"])
        self.assertIsNot(dst.tags, src.tags)
        self.assertEqual(dst.labels, src.labels)
        self.assertIsNot(dst.labels, src.labels)
        self.assertIsNot(dst.origin, src.origin)
        self.assertEqual(dst.origin.name, "origin")

        # no shared mutable state is left behind:
        src.counts["a"].append(3)
        src.tags.append("z")
        self.assertEqual(dst.counts["a"], [1, 2])
        self.assertEqual(dst.tags, ["x", "y"])

    def test_fresh_destination(self):
        Inventory = self.models.Inventory
        src = self.new_inventory()
        dst = Inventory.__new__(Inventory)
        self.models.copy(src, dst)
        self.assertEqual(dst.counts, src.counts)
        self.assertEqual(dst.tags, src.tags)
        self.assertIsNone(dst.origin.origin)

    def test_lists_are_reused(self):
        Inventory = self.models.Inventory
        src = self.new_inventory()
        dst_tags = ["old"]
        dst = Inventory("old", {"c": [0]}, dst_tags, set())
        self.models.copy(src, dst)
        self.assertIs(dst.tags, dst_tags)
        self.assertEqual(dst_tags, ["x", "y"])
        self.assertNotIn("c", dst.counts)

    def test_none_values(self):
        Inventory = self.models.Inventory
        src = Inventory("n", None, None, set())
        dst = Inventory("old", {"a": [1]}, ["a"], {self.models.Tag("u")}, self.new_inventory())
        self.models.copy(src, dst)
        self.assertIsNone(dst.counts)
        self.assertIsNone(dst.tags)
        self.assertIsNone(dst.origin)
        self.assertEqual(dst.labels, set())

    def test_frozen_target(self):
        derived_text = self.read_derived()
        self.assertIn("def _derive_field_set(", derived_text)

        Snapshot = self.models.Snapshot
        src, dst = Snapshot([1, 2]), Snapshot([])
        self.models.copy_frozen(src, dst)
        self.assertEqual(dst.items, [1, 2])
        self.assertIsNot(dst.items, src.items)

    def test_user_copy_to_method(self):
        Shelf, Counter = self.models.Shelf, self.models.Counter
        src = Shelf(Counter([1]), ([1], [2, 3]))
        dst = Shelf(Counter([]), ([], []))
        self.models.copy_shelf(src, dst)
        self.assertEqual(dst.counter.hits, [1001])
        self.assertEqual(dst.sizes, ([1], [2, 3]))
        self.assertIsNot(dst.sizes[0], src.sizes[0])

    def test_list_of_optional_lists(self):
        src = [["a"], None, ["b", "c"]]
        dst_first = ["old"]
        dst = [dst_first, ["x"], ["y"], ["z"]]
        self.models.copy_lists(src, dst)
        self.assertEqual(dst, src)
        self.assertIs(dst[0], dst_first)
        self.assertIsNot(dst[2], src[2])

    def test_recursive_frozen_classes(self):
        Leaf, Branch, Holder = self.models.Leaf, self.models.Branch, self.models.Holder
        src = Holder(None, Branch(Leaf(None, [1])))
        dst = Holder(None, None)
        self.models.copy_holder(src, dst)

        # a frozen class holding a list is not immutable, even when reached through a cycle of classes
        self.assertIsNot(dst.branch, src.branch)
        self.assertIsNot(dst.branch.leaf.sizes, src.branch.leaf.sizes)
        dst.branch.leaf.sizes.append(99)
        self.assertEqual(src.branch.leaf.sizes, [1])

    def test_copy_onto_itself(self):
        counts = {"a": 1, "b": 2}
        self.models.copy_counts(counts, counts)
        self.assertEqual(counts, {"a": 1, "b": 2})

        ids = {1, 2}
        self.models.copy_ids(ids, ids)
        self.assertEqual(ids, {1, 2})

        lists = [["a"], None, ["b", "c"]]
        self.models.copy_lists(lists, lists)
        self.assertEqual(lists, [["a"], None, ["b", "c"]])


if __name__ == "__main__":
    unittest.main()
