import textwrap
import unittest

from pyderive.derive.rewrite import Rename, rewrite_source


def src(text: str) -> str:
    return textwrap.dedent(text).lstrip()


class TestRewrite(unittest.TestCase):
    def rewrite(self, text: str, renames=(), needed_names=()) -> str:
        return rewrite_source(text, "pkg", "pkg.derived_gen", list(renames), needed_names)

    def test_renames_imported_call(self):
        text = src("""
            from .derived_gen import derive_equal


            def f(a: int, b: int) -> bool:
                return derive_equal(a, b)
        """)
        rename = Rename(5, 11, "derive_equal", "derive_equal", "derive_equal_int", False, True)
        self.assertEqual(self.rewrite(text, [rename]), src("""
            from .derived_gen import derive_equal_int


            def f(a: int, b: int) -> bool:
                return derive_equal_int(a, b)
        """))

    def test_keeps_names_still_in_use(self):
        text = src("""
            from .derived_gen import derive_equal, derive_keys


            def f(a: int, b: int) -> bool:
                return derive_equal(a, b)


            def g(m: dict[str, int]) -> list[str]:
                return derive_keys(m)
        """)
        rename = Rename(5, 11, "derive_equal", "derive_equal", "derive_equal_int", False, True)
        result = self.rewrite(text, [rename])
        self.assertIn("from .derived_gen import derive_keys, derive_equal_int\n", result)
        self.assertIn("return derive_equal_int(a, b)", result)
        self.assertIn("return derive_keys(m)", result)

    def test_aliased_import_keeps_alias(self):
        text = src("""
            from .derived_gen import derive_equal as eq


            def f(a: int, b: int) -> bool:
                return eq(a, b)
        """)
        rename = Rename(5, 11, "eq", "derive_equal", "derive_equal_int", False, True)
        result = self.rewrite(text, [rename])
        self.assertIn("from .derived_gen import derive_equal_int as eq\n", result)
        self.assertIn("return eq(a, b)", result)

    def test_attribute_call(self):
        text = src("""
            from . import derived_gen


            def f(a: int, b: int) -> bool:
                return derived_gen.derive_equal(a, b)
        """)
        rename = Rename(5, 11, "derive_equal", "derive_equal", "derive_equal_int", True, False)
        result = self.rewrite(text, [rename])
        self.assertIn("from . import derived_gen\n", result)
        self.assertIn("return derived_gen.derive_equal_int(a, b)", result)

    def test_adds_missing_import(self):
        text = src('''
            """Docstring."""
            import os


            def f(a: int, b: int) -> bool:
                # compares
                return derive_equal(a, b)
        ''')
        result = self.rewrite(text, needed_names=["derive_equal"])
        self.assertTrue(result.startswith('"""Docstring."""\nimport os\nfrom .derived_gen import derive_equal\n'))
        self.assertIn("    # compares\n", result)

    def test_unrelated_source_is_untouched(self):
        text = src("""
            from .other import derive_equal


            def f(a: int, b: int) -> bool:
                return derive_equal(a, b)  # keep me
        """)
        self.assertEqual(self.rewrite(text), text)
