"""
End-to-end fixture: writes a throwaway package, runs pyderive on it, then imports the result.
Every test case gets its own package name, so modules imported by earlier tests never shadow later ones.
"""

import contextlib
import importlib
import io
import os
import shutil
import sys
import tempfile
import textwrap
import typing as t
import unittest
import uuid

import pyderive
from pyderive.core import panic


class DeriveTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.root_dir = tempfile.mkdtemp(prefix="pyderive_test_")
        self.package_name = f"pkg_{uuid.uuid4().hex[:12]}"
        self.package_dir = os.path.join(self.root_dir, self.package_name)
        os.mkdir(self.package_dir)
        self.write("__init__.py", "")
        sys.path.insert(0, self.root_dir)

    def tearDown(self) -> None:
        if self.root_dir in sys.path:
            sys.path.remove(self.root_dir)
        # sibling packages are named after the package under test, see `write_sibling_package`
        for module_name in list(sys.modules):
            if module_name.startswith(self.package_name):
                del sys.modules[module_name]
        shutil.rmtree(self.root_dir, ignore_errors=True)

    #
    # Source files:
    #

    def write(self, rel_path: str, text: str, package_dir: t.Optional[str] = None):
        file_path = os.path.join(package_dir or self.package_dir, rel_path)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as source_file:
            source_file.write(textwrap.dedent(text).lstrip())

    def write_sibling_package(self, name: str, files: t.Dict[str, str]) -> str:
        """A second package next to the one under test, e.g. to hold 'external' classes."""
        package_dir = os.path.join(self.root_dir, name)
        os.mkdir(package_dir)
        self.write("__init__.py", "", package_dir=package_dir)
        for rel_path, text in files.items():
            self.write(rel_path, text, package_dir=package_dir)
        return package_dir

    def read(self, rel_path: str) -> str:
        with open(os.path.join(self.package_dir, rel_path), encoding="utf-8") as source_file:
            return source_file.read()

    def read_derived(self) -> str:
        return self.read("derived_gen.py")

    def has_derived(self) -> bool:
        return os.path.isfile(os.path.join(self.package_dir, "derived_gen.py"))

    #
    # Running:
    #

    def derive(self, **settings_kwargs):
        settings = pyderive.DeriveSettings(path_specs=[self.package_dir], **settings_kwargs)
        pyderive.derive_all(settings)

    def assert_derive_panics(self, exit_code: panic.ExitCode, **settings_kwargs) -> str:
        """Runs pyderive expecting it to fail; returns what it printed."""
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            with self.assertRaises(panic.PanicException) as cm:
                self.derive(**settings_kwargs)
        self.assertEqual(cm.exception.exit_code, exit_code)
        return stderr.getvalue()

    def load(self, module_name: str):
        importlib.invalidate_caches()
        return importlib.import_module(f"{self.package_name}.{module_name}")
