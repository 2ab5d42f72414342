import contextlib
import io
import os
import unittest

from pyderive import cli
from pyderive import plugin
from pyderive.core import panic

from .derive_fixture import DeriveTestCase

TWO_CLASSES_SRC = """
from .derived_gen import derive_equal


class Foo:
    a: int

    def __init__(self, a: int) -> None:
        self.a = a


class Bar:
    b: str

    def __init__(self, b: str) -> None:
        self.b = b


def same_foo(x: Foo, y: Foo) -> bool:
    return derive_equal(x, y)


def same_bar(x: Bar, y: Bar) -> bool:
    return derive_equal(x, y)
"""


class TestDriver(DeriveTestCase):
    #
    # Failures
    #

    def test_unannotated_arguments_never_converge(self):
        self.write("models.py", """
            def same(a, b):
                return derive_equal(a, b)
        """)
        output = self.assert_derive_panics(panic.ExitCode.ConvergenceFailed)
        self.assertIn("derive_equal(a, b)", output)
        self.assertFalse(self.has_derived())

    def test_max_passes(self):
        self.write("words.py", """
            def letters(word: str) -> list[str]:
                return list(word)


            def all_letters(words: list[str]) -> list[str]:
                return derive_join(derive_fmap(letters, words))
        """)
        output = self.assert_derive_panics(panic.ExitCode.ConvergenceFailed, max_passes=1)
        self.assertIn("in 1 passes", output)
        self.assertIn("words.py:6:", output)
        self.assertIn("derive_join(derive_fmap(letters, words))", output)
        self.derive(max_passes=2)
        self.assertTrue(self.has_derived())

    def test_request_errors(self):
        bad_calls = [
            ("a: int, b: str", "derive_equal(a, b)"),
            ("a: int, b: int", "derive_copy_to(a, b)"),
            ("a: dict[str, int]", "derive_sort(a)"),
            ("a: list[int]", "derive_keys(a)"),
            ("a: list[int], b: list[int]", "derive_fmap(a, b)"),
            ("a: list[int]", "derive_join(a)"),
            ("a: list[list[int]]", "derive_set(a)"),
            ("a: list[int], b: str", "derive_max(a, b)"),
        ]
        for params, call in bad_calls:
            with self.subTest(call=call):
                self.write("models.py", f"""
                    def f({params}):
                        return {call}
                """)
                self.assert_derive_panics(panic.ExitCode.RequestError)

    def test_unsupported_types(self):
        self.write("models.py", """
            from typing import Any


            def f(a: Any, b: Any) -> bool:
                return derive_equal(a, b)
        """)
        output = self.assert_derive_panics(panic.ExitCode.RequestError)
        self.assertIn("derive_equal: unsupported type", output)
        self.assertIn("models.py:5:", output)

    def test_unknown_names_never_converge(self):
        self.write("models.py", """
            def f(a: int) -> int:
                return not_defined_anywhere(a)
        """)
        output = self.assert_derive_panics(panic.ExitCode.ConvergenceFailed)
        self.assertIn("not_defined_anywhere(a)", output)
        self.assertFalse(self.has_derived())

    def test_generation_errors_point_at_the_call(self):
        self.write("models.py", """
            import typing


            class Foo:
                f: typing.Callable[[int], int]

                def __init__(self, f) -> None:
                    self.f = f


            def same(a: Foo, b: Foo) -> bool:
                return derive_equal(a, b)
        """)
        output = self.assert_derive_panics(panic.ExitCode.RequestError)
        self.assertIn("unsupported type", output)
        self.assertIn("models.py:12:", output)

    #
    # Naming
    #

    def test_naming_conflict(self):
        self.write("models.py", TWO_CLASSES_SRC)
        output = self.assert_derive_panics(panic.ExitCode.NamingConflict)
        self.assertIn("cannot use the name derive_equal", output)

    def test_conflict_with_user_function(self):
        self.write("models.py", """
            def derive_equal_mine(a: int, b: int) -> bool:
                return a == b


            def f(a: int, b: int) -> bool:
                return derive_equal_mine(a, b)
        """)
        self.write("other.py", """
            def g(a: str, b: str) -> bool:
                return derive_equal_mine(a, b)
        """)
        output = self.assert_derive_panics(panic.ExitCode.NamingConflict)
        self.assertIn("a function with this name is already defined", output)

        self.derive(autoname=True)
        self.assertIn("return derive_equal_str(a, b)", self.read("other.py"))
        self.assertIn("return derive_equal_mine(a, b)", self.read("models.py"))
        self.assertNotIn("def derive_equal_mine(", self.read_derived())

    def test_autoname(self):
        self.write("models.py", TWO_CLASSES_SRC)
        self.derive(autoname=True)

        models_text = self.read("models.py")
        self.assertIn("from .derived_gen import derive_equal, derive_equal_models_Bar\n", models_text)
        self.assertIn("return derive_equal_models_Bar(x, y)", models_text)

        models = self.load("models")
        self.assertTrue(models.same_foo(models.Foo(1), models.Foo(1)))
        self.assertFalse(models.same_bar(models.Bar("x"), models.Bar("y")))

        # a second run finds nothing left to rename
        self.derive(autoname=True)
        self.assertEqual(self.read("models.py"), models_text)

    def test_dedup(self):
        self.write("models.py", """
            from .derived_gen import derive_equal_a, derive_equal_b


            def f(a: list[int], b: list[int]) -> bool:
                return derive_equal_a(a, b)


            def g(a: list[int], b: list[int]) -> bool:
                return derive_equal_b(a, b)
        """)
        self.derive(dedup=True)

        models_text = self.read("models.py")
        self.assertIn("from .derived_gen import derive_equal_a\n", models_text)
        self.assertNotIn("derive_equal_b", models_text)
        self.assertNotIn("derive_equal_b", self.read_derived())

        models = self.load("models")
        self.assertTrue(models.g([1], [1]))

    def test_without_dedup_both_names_are_generated(self):
        self.write("models.py", """
            from .derived_gen import derive_equal_a, derive_equal_b


            def f(a: list[int], b: list[int]) -> bool:
                return derive_equal_a(a, b) and derive_equal_b(a, b)
        """)
        self.derive()
        derived_text = self.read_derived()
        self.assertIn("def derive_equal_a(", derived_text)
        self.assertIn("def derive_equal_b(", derived_text)

    def test_fix_imports(self):
        self.write("models.py", """
            \"\"\"Module docstring.\"\"\"
            import os


            def f(a: list[int], b: list[int]) -> bool:
                return derive_equal(a, b) and os.sep == "/"
        """)
        self.derive(fix_imports=True)

        models_text = self.read("models.py")
        self.assertIn("import os\nfrom .derived_gen import derive_equal\n", models_text)
        models = self.load("models")
        self.assertEqual(models.f([1], [1]), os.sep == "/")

    def test_custom_prefix(self):
        self.write("models.py", """
            from .derived_gen import eq_ints


            def f(a: list[int], b: list[int]) -> bool:
                return eq_ints(a, b)
        """)
        self.derive(prefixes={**plugin.default_prefixes(), "equal": "eq"})
        models = self.load("models")
        self.assertTrue(models.f([1, 2], [1, 2]))

    #
    # Reruns, command line
    #

    def test_rerun_is_stable(self):
        self.write("models.py", """
            from .derived_gen import derive_equal


            def f(a: dict[str, list[int]], b: dict[str, list[int]]) -> bool:
                return derive_equal(a, b)
        """)
        self.derive()
        first_text = self.read_derived()
        self.derive()
        self.assertEqual(self.read_derived(), first_text)

    def test_cli(self):
        self.write("models.py", """
            from .derived_gen import derive_keys


            def f(m: dict[str, int]) -> list[str]:
                return derive_keys(m)
        """)
        with contextlib.redirect_stderr(io.StringIO()):
            self.assertEqual(cli.main([self.package_dir]), 0)
            self.assertTrue(self.has_derived())
            self.assertEqual(cli.main([os.path.join(self.root_dir, "missing")]), panic.ExitCode.BadSourcePath.value)
            self.assertEqual(cli.main(["--max-passes", "0", self.package_dir]), panic.ExitCode.BadCliArgs.value)

    def test_cli_config_file(self):
        config_path = os.path.join(self.root_dir, "pyderive.json5")
        with open(config_path, "w") as config_file:
            config_file.write("{prefixes: {keys: 'ks'}}")
        self.write("models.py", """
            from .derived_gen import ks


            def f(m: dict[str, int]) -> list[str]:
                return ks(m)
        """)
        with contextlib.redirect_stderr(io.StringIO()):
            self.assertEqual(cli.main(["--config", config_path, self.package_dir]), 0)
        self.assertIn("def ks(", self.read_derived())


if __name__ == "__main__":
    unittest.main()
