import unittest

from .derive_fixture import DeriveTestCase


class TestEqual(DeriveTestCase):
    def test_optional_class(self):
        self.write("models.py", """
            from typing import Optional

            from .derived_gen import derive_equal


            class Item:
                value_a: int
                ref_b: Optional[str]

                def __init__(self, value_a: int, ref_b: Optional[str]) -> None:
                    self.value_a = value_a
                    self.ref_b = ref_b


            def same(a: Optional[Item], b: Optional[Item]) -> bool:
                return derive_equal(a, b)
        """)
        self.derive()

        derived_text = self.read_derived()
        self.assertTrue(derived_text.startswith("# Code generated by pyderive. DO NOT EDIT.\n"))
        self.assertIn("def derive_equal(this: _", derived_text)
        self.assertIn("def derive_equal_models_Item(", derived_text)

        models = self.load("models")
        Item = models.Item
        self.assertTrue(models.same(None, None))
        self.assertFalse(models.same(Item(1, None), None))
        self.assertFalse(models.same(None, Item(1, None)))
        self.assertTrue(models.same(Item(1, "x"), Item(1, "x")))
        self.assertFalse(models.same(Item(1, "x"), Item(1, "y")))
        self.assertFalse(models.same(Item(1, None), Item(1, "")))
        self.assertFalse(models.same(Item(1, None), Item(2, None)))

    def test_one_function_per_name(self):
        self.write("models.py", """
            from dataclasses import dataclass

            from .derived_gen import derive_equal


            @dataclass
            class Point:
                x: int
                y: int


            def first(a: Point, b: Point) -> bool:
                return derive_equal(a, b)


            def second(c: Point, d: Point) -> bool:
                return derive_equal(c, d)
        """)
        self.derive()

        derived_text = self.read_derived()
        self.assertEqual(derived_text.count("def derive_equal("), 1)
        # dataclasses compare structurally with '==' already
        self.assertIn("return this == that", derived_text)

        models = self.load("models")
        self.assertTrue(models.first(models.Point(1, 2), models.Point(1, 2)))
        self.assertFalse(models.second(models.Point(1, 2), models.Point(2, 1)))

    def test_nested_containers(self):
        self.write("models.py", """
            from .derived_gen import derive_equal


            class Node:
                name: str
                children: list["Node"]
                attrs: dict[str, list[int]]
                tags: set[str]
                pair: tuple[float, float]

                def __init__(self, name, children, attrs, tags, pair):
                    self.name = name
                    self.children = children
                    self.attrs = attrs
                    self.tags = tags
                    self.pair = pair


            def same(a: Node, b: Node) -> bool:
                return derive_equal(a, b)
        """)
        self.derive()
        models = self.load("models")
        Node = models.Node

        def tree(leaf_name: str, attr_value: int):
            leaf = Node(leaf_name, [], {"k": [attr_value]}, {"t"}, (0.0, 1.0))
            return Node("root", [leaf], None, set(), (1.5, 2.5))

        self.assertTrue(models.same(tree("a", 1), tree("a", 1)))
        self.assertFalse(models.same(tree("a", 1), tree("b", 1)))
        self.assertFalse(models.same(tree("a", 1), tree("a", 2)))

    def test_user_methods_take_precedence(self):
        self.write("models.py", """
            from .derived_gen import derive_equal


            class Money:
                cents: int

                def __init__(self, cents: int) -> None:
                    self.cents = cents

                def equal(self, other: "Money") -> bool:
                    return abs(self.cents - other.cents) < 5


            class Label:
                text: str

                def __init__(self, text: str) -> None:
                    self.text = text

                def __eq__(self, other) -> bool:
                    return self.text.lower() == other.text.lower()


            class Wallet:
                money: Money
                label: Label

                def __init__(self, money: Money, label: Label) -> None:
                    self.money = money
                    self.label = label


            def same(a: Wallet, b: Wallet) -> bool:
                return derive_equal(a, b)
        """)
        self.derive()

        derived_text = self.read_derived()
        self.assertIn(".equal(", derived_text)
        self.assertNotIn("def derive_equal_models_Money(", derived_text)

        models = self.load("models")
        Wallet, Money, Label = models.Wallet, models.Money, models.Label
        self.assertTrue(models.same(Wallet(Money(100), Label("Cash")), Wallet(Money(102), Label("CASH"))))
        self.assertFalse(models.same(Wallet(Money(100), Label("Cash")), Wallet(Money(110), Label("Cash"))))
        self.assertFalse(models.same(Wallet(Money(100), Label("Cash")), Wallet(Money(100), Label("Card"))))

    def test_private_fields_of_external_classes(self):
        ext_name = self.package_name + "_ext"
        self.write_sibling_package(ext_name, {
            "secret.py": """
                class Secret:
                    _token: int

                    def __init__(self, token: int) -> None:
                        self._token = token
            """
        })
        self.write("models.py", f"""
            from {ext_name}.secret import Secret

            from .derived_gen import derive_equal


            def same(a: Secret, b: Secret) -> bool:
                return derive_equal(a, b)
        """)
        self.derive()

        derived_text = self.read_derived()
        self.assertIn("_derive_field_get(this, '_token')", derived_text)

        models = self.load("models")
        Secret = models.Secret
        self.assertTrue(models.same(Secret(1), Secret(1)))
        self.assertFalse(models.same(Secret(1), Secret(2)))


if __name__ == "__main__":
    unittest.main()
