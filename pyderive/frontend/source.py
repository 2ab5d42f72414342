import ast
import logging
import os
import os.path
import typing as t

from libcst import helpers as cst_helpers

from ..core import panic
from ..core import const
from ..core import feedback as fb

logger = logging.getLogger(__name__)

RECURSIVE_SUFFIX = "/..."


#
# SourceFile, PackageDir:
#

class SourceFile(object):
    def __init__(self, path: str, module_name: str, package_name: str, text: str, tree: ast.Module) -> None:
        super().__init__()
        self.path = path
        self.module_name = module_name
        self.package_name = package_name
        self.text = text
        self.tree = tree

    @property
    def is_package_init(self) -> bool:
        return os.path.basename(self.path) == "__init__.py"

    def __str__(self) -> str:
        return f"{self.module_name} ({self.path})"


class PackageDir(object):
    def __init__(self, dir_path: str, root_dir: str, package_name: str) -> None:
        super().__init__()
        self.dir_path = dir_path
        self.root_dir = root_dir
        self.package_name = package_name
        self.files: t.List[SourceFile] = []

    @property
    def derived_path(self) -> str:
        return os.path.join(self.dir_path, const.DERIVED_FILENAME)

    @property
    def derived_module_name(self) -> str:
        if self.package_name:
            return f"{self.package_name}.{const.DERIVED_MODULE_NAME}"
        else:
            return const.DERIVED_MODULE_NAME

    def __str__(self) -> str:
        return self.package_name or self.dir_path


#
# SourceSet:
#

class SourceSet(object):
    def __init__(self, overlays: t.Optional[t.Dict[str, str]] = None) -> None:
        super().__init__()
        self.overlays = dict(overlays or {})
        self.packages: t.List[PackageDir] = []
        self.modules: t.Dict[str, SourceFile] = {}
        self.roots: t.List[str] = []
        self.missing_module_names: t.Set[str] = set()

    def add_package_dir(self, dir_path: str) -> PackageDir:
        dir_path = os.path.abspath(dir_path)
        for package in self.packages:
            if package.dir_path == dir_path:
                return package

        root_dir = find_root_dir(dir_path)
        if root_dir not in self.roots:
            self.roots.append(root_dir)

        if root_dir == dir_path:
            package_name = ""
        else:
            package_name = module_name_of(root_dir, os.path.join(dir_path, "__init__.py"))
        package = PackageDir(dir_path, root_dir, package_name)
        self.packages.append(package)

        for file_name in sorted(os.listdir(dir_path)):
            file_path = os.path.join(dir_path, file_name)
            if not file_name.endswith(".py") or not os.path.isfile(file_path):
                continue
            if file_name == const.DERIVED_FILENAME:
                # previously generated output is disposable: only an in-memory overlay is ever read.
                continue
            package.files.append(self.load_file(file_path, root_dir))

        opt_derived_text = self.overlays.get(package.derived_path)
        if opt_derived_text is not None:
            self.load_file(package.derived_path, root_dir, opt_text=opt_derived_text)

        return package

    def load_file(self, file_path: str, root_dir: str, opt_text: t.Optional[str] = None) -> SourceFile:
        module_name = module_name_of(root_dir, file_path)
        if module_name in self.modules:
            return self.modules[module_name]

        if opt_text is None:
            text = read_text(file_path)
        else:
            text = opt_text

        try:
            tree = ast.parse(text, filename=file_path)
        except SyntaxError as exc:
            panic.because(
                panic.ExitCode.SyntaxError,
                f"Could not parse source file: {exc.msg}",
                opt_loc=fb.TextFileLoc(file_path, exc.lineno or 0, (exc.offset or 1) - 1, exc.lineno or 0, (exc.offset or 1) - 1),
                outer_exc=exc
            )

        package_name = cst_helpers.calculate_module_and_package(root_dir, file_path).package
        source_file = SourceFile(file_path, module_name, package_name, text, tree)
        self.modules[module_name] = source_file
        logger.debug(f"loaded {source_file}")
        return source_file

    def find_module(self, module_name: str) -> t.Optional[SourceFile]:
        """
        Returns the source unit of an importable module, loading it from one of the known roots if required.
        Modules outside the roots (e.g. the standard library) are never loaded: the type model treats them as opaque.
        """

        opt_source_file = self.modules.get(module_name)
        if opt_source_file is not None:
            return opt_source_file
        if module_name in self.missing_module_names:
            return None

        rel_path = module_name.replace('.', os.sep)
        for root_dir in self.roots:
            for candidate_path in (
                os.path.join(root_dir, rel_path + ".py"),
                os.path.join(root_dir, rel_path, "__init__.py")
            ):
                if os.path.basename(candidate_path) == const.DERIVED_FILENAME:
                    continue
                if os.path.isfile(candidate_path):
                    return self.load_file(candidate_path, root_dir)

        self.missing_module_names.add(module_name)
        return None

    def is_package(self, module_name: str) -> bool:
        opt_source_file = self.find_module(module_name)
        return opt_source_file is not None and opt_source_file.is_package_init

    def is_derived_module(self, module_name: str) -> bool:
        return any(package.derived_module_name == module_name for package in self.packages)

    def package_of_file(self, source_file: SourceFile) -> t.Optional[PackageDir]:
        dir_path = os.path.dirname(source_file.path)
        for package in self.packages:
            if package.dir_path == dir_path:
                return package
        return None


#
# Loading:
#

def load(path_specs: t.Sequence[str], overlays: t.Optional[t.Dict[str, str]] = None) -> SourceSet:
    source_set = SourceSet(overlays)
    for dir_path in expand_path_specs(path_specs):
        source_set.add_package_dir(dir_path)
    return source_set


def expand_path_specs(path_specs: t.Sequence[str]) -> t.List[str]:
    """
    Expands path specifications into package directories, keeping the caller's order:
        - 'dir'      is the package in 'dir'
        - 'file.py'  is the package containing 'file.py'
        - 'dir/...'  is every directory below 'dir' (inclusive) containing Python sources
    """

    dir_paths = []

    def add(dir_path: str):
        dir_path = os.path.abspath(dir_path)
        if dir_path not in dir_paths:
            dir_paths.append(dir_path)

    for path_spec in path_specs:
        if path_spec.endswith(RECURSIVE_SUFFIX) or path_spec == "...":
            base_dir = path_spec[:-len(RECURSIVE_SUFFIX)] if path_spec != "..." else "."
            base_dir = base_dir or "."
            if not os.path.isdir(base_dir):
                panic.because(
                    panic.ExitCode.BadSourcePath,
                    f"Invalid source path: this directory does not exist.",
                    opt_file_path=base_dir
                )
            for dir_path, dir_names, file_names in os.walk(base_dir):
                dir_names[:] = sorted(
                    dir_name
                    for dir_name in dir_names
                    if not dir_name.startswith('.') and dir_name != "__pycache__"
                )
                if any(name.endswith(".py") and name != const.DERIVED_FILENAME for name in file_names):
                    add(dir_path)
        elif os.path.isdir(path_spec):
            add(path_spec)
        elif os.path.isfile(path_spec) and path_spec.endswith(".py"):
            add(os.path.dirname(path_spec) or ".")
        else:
            panic.because(
                panic.ExitCode.BadSourcePath,
                f"Invalid source path: expected a directory, a '.py' file, or a 'dir/...' pattern.",
                opt_file_path=path_spec
            )

    return dir_paths


def find_root_dir(dir_path: str) -> str:
    """
    The directory an importer would need on 'sys.path' for 'dir_path' to be importable:
    the closest ancestor that is not itself a regular package.
    """

    dir_path = os.path.abspath(dir_path)
    while os.path.isfile(os.path.join(dir_path, "__init__.py")):
        parent_dir_path = os.path.dirname(dir_path)
        if parent_dir_path == dir_path:
            break
        dir_path = parent_dir_path
    return dir_path


def module_name_of(root_dir: str, file_path: str) -> str:
    return cst_helpers.calculate_module_and_package(root_dir, file_path).name


def read_text(file_path: str) -> str:
    try:
        with open(file_path, encoding="utf-8") as source_file:
            return source_file.read()
    except OSError as exc:
        panic.because(
            panic.ExitCode.IOError,
            f"Could not read source file: {exc}",
            opt_file_path=file_path,
            outer_exc=exc
        )
