import contextlib
import io
import os
import tempfile
import unittest

from pyderive.core import panic
from pyderive.driver import settings
from pyderive import cli


class TestSettings(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.defaults = settings.DeriveSettings(path_specs=["."])

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def write_config(self, text: str) -> str:
        config_path = os.path.join(self.temp_dir.name, "pyderive.json5")
        with open(config_path, "w") as config_file:
            config_file.write(text)
        return config_path

    def assert_panics(self, exit_code: panic.ExitCode, fn, *args):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(panic.PanicException) as cm:
                fn(*args)
        self.assertEqual(cm.exception.exit_code, exit_code)

    #
    # Defaults
    #

    def test_defaults(self):
        self.assertEqual(self.defaults.prefixes["equal"], "derive_equal")
        self.assertEqual(self.defaults.prefixes["copyto"], "derive_copy_to")
        self.assertEqual(self.defaults.prefixes["set"], "derive_set")
        self.assertFalse(self.defaults.autoname)
        self.assertFalse(self.defaults.dedup)
        self.assertFalse(self.defaults.fix_imports)
        self.assertEqual(self.defaults.max_passes, 10)

    def test_with_prefix_copies(self):
        changed = self.defaults.with_prefix("equal", "eq")
        self.assertEqual(changed.prefixes["equal"], "eq")
        self.assertEqual(self.defaults.prefixes["equal"], "derive_equal")

    #
    # Config files
    #

    def test_find_config_file(self):
        self.assertIsNone(settings.find_config_file(None, self.temp_dir.name))
        config_path = self.write_config("{}")
        self.assertEqual(settings.find_config_file(None, self.temp_dir.name), config_path)
        self.assert_panics(
            panic.ExitCode.BadConfigFile,
            settings.find_config_file, os.path.join(self.temp_dir.name, "missing.json5")
        )

    def test_load_config_file(self):
        config_path = self.write_config("""
            // prefixes are per operation
            {
                prefixes: {equal: "eq", compare: "cmp"},
                autoname: true,
                fixImports: true,
                maxPasses: 3,
            }
        """)
        loaded = settings.load_config_file(config_path, self.defaults)
        self.assertEqual(loaded.prefixes["equal"], "eq")
        self.assertEqual(loaded.prefixes["compare"], "cmp")
        self.assertEqual(loaded.prefixes["keys"], "derive_keys")
        self.assertTrue(loaded.autoname)
        self.assertFalse(loaded.dedup)
        self.assertTrue(loaded.fix_imports)
        self.assertEqual(loaded.max_passes, 3)

    def test_bad_config_files(self):
        bad_texts = [
            "{autoname: true, autoname: false}",
            "{autoname: ",
            "[1, 2]",
            "{unknown: 1}",
            "{autoname: 'yes'}",
            "{maxPasses: 0}",
            "{maxPasses: true}",
            "{prefixes: {frobnicate: 'x'}}",
            "{prefixes: {equal: 'not an identifier'}}",
        ]
        for bad_text in bad_texts:
            with self.subTest(bad_text=bad_text):
                config_path = self.write_config(bad_text)
                self.assert_panics(panic.ExitCode.BadConfigFile, settings.load_config_file, config_path, self.defaults)

    #
    # Command line
    #

    def test_cli_args_override(self):
        args_obj = cli.parse_args(["pkg", "--dedup", "--max-passes", "4", "--sort.prefix", "order"])
        applied = cli.apply_args(args_obj, self.defaults)
        self.assertEqual(args_obj.path_specs, ["pkg"])
        self.assertTrue(applied.dedup)
        self.assertFalse(applied.autoname)
        self.assertEqual(applied.max_passes, 4)
        self.assertEqual(applied.prefixes["sort"], "order")

    def test_cli_bad_args(self):
        args_obj = cli.parse_args(["--equal.prefix", "1eq"])
        self.assert_panics(panic.ExitCode.BadCliArgs, cli.apply_args, args_obj, self.defaults)
        args_obj = cli.parse_args(["--max-passes", "0"])
        self.assert_panics(panic.ExitCode.BadCliArgs, cli.apply_args, args_obj, self.defaults)
