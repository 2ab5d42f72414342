import itertools
import unittest

from .derive_fixture import DeriveTestCase

MODELS_SRC = """
from typing import Optional

from .derived_gen import derive_compare_points, derive_compare_counts, derive_compare_sets


class Point:
    x: int
    y: float
    label: Optional[str]

    def __init__(self, x: int, y: float, label: Optional[str] = None) -> None:
        self.x = x
        self.y = y
        self.label = label


def cmp_points(a: list[Point], b: list[Point]) -> int:
    return derive_compare_points(a, b)


def cmp_counts(a: dict[str, int], b: dict[str, int]) -> int:
    return derive_compare_counts(a, b)


def cmp_sets(a: set[complex], b: set[complex]) -> int:
    return derive_compare_sets(a, b)
"""


class TestCompare(DeriveTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.write("models.py", MODELS_SRC)
        self.derive()
        self.models = self.load("models")

    def test_generated_helpers(self):
        derived_text = self.read_derived()
        self.assertIn("def derive_compare_models_Point(", derived_text)
        self.assertIn("def derive_keys_dict_of_str_to_int(", derived_text)
        self.assertIn("def derive_sort_list_of_str(", derived_text)
        # complex numbers have no '<': the sort helper uses the generated compare function
        self.assertIn("functools.cmp_to_key(derive_compare_complex)", derived_text)

    def test_lists(self):
        Point = self.models.Point
        cmp_points = self.models.cmp_points
        self.assertEqual(cmp_points([Point(1, 2.0)], [Point(1, 2.0)]), 0)
        # shorter lists sort first
        self.assertEqual(cmp_points([Point(1, 2.0), Point(3, 4.0)], [Point(1, 2.0), Point(3, 4.0), Point(5, 6.0)]), -1)
        self.assertEqual(cmp_points([Point(9, 9.0), Point(9, 9.0)], [Point(0, 0.0), Point(0, 0.0), Point(0, 0.0)]), -1)
        self.assertEqual(cmp_points([Point(0, 0.0)] * 3, [Point(9, 9.0)] * 2), 1)
        self.assertEqual(cmp_points([Point(2, 0.0)], [Point(1, 9.0)]), 1)
        self.assertEqual(cmp_points([Point(1, 0.5)], [Point(1, 0.25)]), 1)
        # None sorts first
        self.assertEqual(cmp_points(None, []), -1)
        self.assertEqual(cmp_points(None, None), 0)
        self.assertEqual(cmp_points([Point(1, 1.0, None)], [Point(1, 1.0, "a")]), -1)
        self.assertEqual(cmp_points([Point(1, 1.0, "b")], [Point(1, 1.0, "a")]), 1)

    def test_total_order_properties(self):
        Point = self.models.Point
        cmp_points = self.models.cmp_points
        values = [
            None,
            [],
            [Point(0, 0.0)],
            [Point(0, 0.0, "z")],
            [Point(0, 1.0)],
            [Point(1, -1.0)],
            [Point(0, 0.0), Point(0, 0.0)],
        ]
        for a in values:
            self.assertEqual(cmp_points(a, a), 0)
        for a, b in itertools.product(values, values):
            self.assertEqual(cmp_points(a, b), -cmp_points(b, a))
        for a, b, c in itertools.product(values, values, values):
            if cmp_points(a, b) < 0 and cmp_points(b, c) < 0:
                self.assertLess(cmp_points(a, c), 0)

    def test_dicts(self):
        cmp_counts = self.models.cmp_counts
        self.assertEqual(cmp_counts({"a": 1, "b": 2}, {"b": 2, "a": 1}), 0)
        self.assertEqual(cmp_counts({"a": 1}, {"b": 0}), -1)
        self.assertEqual(cmp_counts({"a": 2}, {"a": 1}), 1)
        self.assertEqual(cmp_counts({"a": 1}, {"a": 1, "b": 1}), -1)
        self.assertEqual(cmp_counts(None, {}), -1)

    def test_sets(self):
        cmp_sets = self.models.cmp_sets
        self.assertEqual(cmp_sets({1j, 2 + 0j}, {2 + 0j, 1j}), 0)
        self.assertEqual(cmp_sets({1j}, {2j}), -1)
        self.assertEqual(cmp_sets({1 + 1j}, {1 + 0j}), 1)
        self.assertEqual(cmp_sets({1j}, {1j, 2j}), -1)


if __name__ == "__main__":
    unittest.main()
