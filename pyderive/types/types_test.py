import unittest

from pyderive import types
from pyderive.types import spelling
from pyderive.excepts import UnsupportedTypeError


class TestTypes(unittest.TestCase):
    def test_basic_types(self):
        for basic_kind in types.BasicKind:
            t = types.BasicType.get(basic_kind)
            self.assertIsInstance(t, types.BasicType)
            self.assertEqual(t.basic_kind, basic_kind)
            self.assertIs(types.BasicType.get(basic_kind), t)

        self.assertIs(types.BasicType.of_name("int"), types.BasicType.get(types.BasicKind.Int))
        self.assertIsNone(types.BasicType.of_name("None"))
        self.assertIsNone(types.BasicType.of_name("object"))

    def test_structural_caching(self):
        int_t = types.BasicType.get(types.BasicKind.Int)
        str_t = types.BasicType.get(types.BasicKind.Str)

        # structurally identical descriptors are the same object:
        self.assertIs(types.SequenceType.get(int_t), types.SequenceType.get(int_t))
        self.assertIs(types.MapType.get(str_t, int_t), types.MapType.get(str_t, int_t))
        self.assertIs(types.PointerType.get(types.SetType.get(str_t)), types.PointerType.get(types.SetType.get(str_t)))
        self.assertIs(types.FixedArrayType.get(3, int_t), types.FixedArrayType.get(3, int_t))
        self.assertIs(types.FuncType.get([int_t], str_t), types.FuncType.get((int_t,), str_t))
        self.assertIs(types.NamedType.get("pkg.models", "Foo"), types.NamedType.get("pkg.models", "Foo"))

        # ... and different ones are not:
        self.assertIsNot(types.MapType.get(str_t, int_t), types.MapType.get(int_t, str_t))
        self.assertIsNot(types.FixedArrayType.get(2, int_t), types.FixedArrayType.get(3, int_t))
        self.assertIsNot(types.NamedType.get("pkg.a", "Foo"), types.NamedType.get("pkg.b", "Foo"))

    def test_nilable(self):
        int_t = types.BasicType.get(types.BasicKind.Int)
        self.assertTrue(types.PointerType.get(int_t).is_nilable)
        self.assertTrue(types.SequenceType.get(int_t).is_nilable)
        self.assertTrue(types.MapType.get(int_t, int_t).is_nilable)
        self.assertFalse(int_t.is_nilable)
        self.assertFalse(types.FixedArrayType.get(2, int_t).is_nilable)
        self.assertFalse(types.NamedType.get("pkg", "Foo").is_nilable)

    #
    # Spelling
    #

    def test_labels(self):
        int_t = types.BasicType.get(types.BasicKind.Int)
        str_t = types.BasicType.get(types.BasicKind.Str)
        foo_t = types.NamedType.get("pkg.sub.models", "Foo")
        bar_t = types.NamedType.get("pkg", "Bar")

        self.assertEqual(spelling.label_of(int_t, "pkg"), "int")
        self.assertEqual(spelling.label_of(types.PointerType.get(str_t), "pkg"), "opt_str")
        self.assertEqual(spelling.label_of(types.FixedArrayType.get(2, int_t), "pkg"), "tuple2_of_int")
        self.assertEqual(spelling.label_of(types.MapType.get(str_t, types.SequenceType.get(int_t)), "pkg"), "dict_of_str_to_list_of_int")
        self.assertEqual(spelling.label_of(types.SetType.get(int_t), "pkg"), "set_of_int")
        self.assertEqual(spelling.label_of(types.FuncType.get([int_t], str_t), "pkg"), "func_of_int_to_str")
        self.assertEqual(spelling.label_of(foo_t, "pkg"), "sub_models_Foo")
        self.assertEqual(spelling.label_of(bar_t, "pkg"), "Bar")
        self.assertEqual(spelling.label_of(foo_t, "other"), "pkg_sub_models_Foo")
        self.assertEqual(spelling.labels_of([foo_t, foo_t], "pkg"), "sub_models_Foo_and_sub_models_Foo")

    def test_type_string(self):
        int_t = types.BasicType.get(types.BasicKind.Int)
        foo_t = types.NamedType.get("pkg.models", "Foo")

        def qualify(named: types.NamedType) -> str:
            return f"_m.{named.name}"

        self.assertEqual(spelling.type_string(types.PointerType.get(foo_t), qualify), "_m.Foo | None")
        self.assertEqual(spelling.type_string(types.FixedArrayType.get(2, int_t), qualify), "tuple[int, int]")
        self.assertEqual(
            spelling.type_string(types.MapType.get(int_t, types.SequenceType.get(foo_t)), qualify),
            "dict[int, list[_m.Foo]]"
        )
        self.assertEqual(
            spelling.type_string(types.FuncType.get([foo_t], int_t), qualify),
            "typing.Callable[[_m.Foo], int]"
        )
        self.assertFalse(spelling.is_spellable(types.OpaqueType.get("typing.Any")))
        self.assertFalse(spelling.is_spellable(types.SequenceType.get(types.OpaqueType.get("typing.Any"))))
        self.assertTrue(spelling.is_spellable(types.MapType.get(int_t, types.SequenceType.get(foo_t))))
        with self.assertRaises(UnsupportedTypeError):
            spelling.type_string(types.OpaqueType.get("typing.Any"), qualify)
