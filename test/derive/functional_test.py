import unittest

from .derive_fixture import DeriveTestCase


class TestFunctional(DeriveTestCase):
    def test_fmap_then_join(self):
        # the result type of 'derive_fmap' is only known once it has been generated: this needs a second pass
        self.write("words.py", """
            from .derived_gen import derive_fmap, derive_join, derive_join_words


            def letters(word: str) -> list[str]:
                return list(word)


            def all_letters(words: list[str]) -> list[str]:
                return derive_join(derive_fmap(letters, words))


            def glue(words: list[str]) -> str:
                return derive_join_words(words)
        """)
        self.derive()

        derived_text = self.read_derived()
        self.assertIn("def derive_fmap(f: typing.Callable[[str], list[str]], xs: list[str]) -> list[list[str]]:", derived_text)
        self.assertIn("import typing\n", derived_text)

        words = self.load("words")
        self.assertEqual(words.all_letters(["ab", "c"]), ["a", "b", "c"])
        self.assertEqual(words.all_letters([]), [])
        self.assertEqual(words.glue(["ab", "c"]), "abc")
        self.assertEqual(words.glue(None), "")

    def test_collections(self):
        self.write("stats.py", """
            from .derived_gen import derive_keys, derive_sort, derive_set, derive_max, derive_min, derive_sort_people


            class Person:
                name: str
                age: int

                def __init__(self, name: str, age: int) -> None:
                    self.name = name
                    self.age = age


            def keys(m: dict[str, int]) -> list[str]:
                return derive_keys(m)


            def sorted_words(words: list[str]) -> list[str]:
                return derive_sort(words)


            def sorted_people(people: list[Person]) -> list[Person]:
                return derive_sort_people(people)


            def unique(xs: list[int]) -> set[int]:
                return derive_set(xs)


            def biggest(xs: list[int], default: int) -> int:
                return derive_max(xs, default)


            def least(a: Person, b: Person) -> Person:
                return derive_min(a, b)
        """)
        self.derive()
        stats = self.load("stats")
        Person = stats.Person

        self.assertEqual(stats.keys({"b": 1, "a": 2}), ["b", "a"])
        self.assertEqual(stats.keys(None), [])
        self.assertEqual(stats.sorted_words(["b", "c", "a"]), ["a", "b", "c"])
        self.assertIsNone(stats.sorted_words(None))
        self.assertEqual(stats.unique([1, 2, 1]), {1, 2})
        self.assertEqual(stats.unique(None), set())
        self.assertEqual(stats.biggest([3, 9, 2], 0), 9)
        self.assertEqual(stats.biggest([], 7), 7)

        people = [Person("bo", 30), Person("al", 40), Person("al", 20)]
        self.assertEqual([(p.name, p.age) for p in stats.sorted_people(people)], [("al", 20), ("al", 40), ("bo", 30)])

        first, second = Person("al", 20), Person("al", 20)
        # ties go to the first argument
        self.assertIs(stats.least(first, second), first)
        self.assertIs(stats.least(Person("bo", 1), second), second)

    def test_dump(self):
        self.write("shapes.py", """
            from dataclasses import dataclass
            from typing import NewType, Optional

            from .derived_gen import derive_dump

            Meters = NewType("Meters", float)


            @dataclass
            class Shape:
                name: str
                size: Meters
                corners: list[tuple[int, int]]
                tags: set[str]
                parent: Optional["Shape"]


            def dump(shape: Shape) -> str:
                return derive_dump(shape)
        """)
        self.derive()
        shapes = self.load("shapes")
        Shape = shapes.Shape

        inner = Shape("dot", shapes.Meters(0.5), [(0, 0)], set(), None)
        outer = Shape("box", shapes.Meters(2.0), [(0, 0), (1, 1)], {"b", "a"}, inner)
        self.assertEqual(
            shapes.dump(outer),
            "Shape(name='box', size=Meters(2.0), corners=[(0, 0), (1, 1)], tags={'a', 'b'}, "
            "parent=Shape(name='dot', size=Meters(0.5), corners=[(0, 0)], tags=set(), parent=None))"
        )


if __name__ == "__main__":
    unittest.main()
