"""
Driver: runs the passes for every package until no call is left unresolved.
Each pass
    1. reloads the package from disk, with the generated module of the previous pass overlaid in memory,
    2. finds the calls that need generated functions and hands them to the generators,
    3. rewrites callers whose call name had to change,
    4. generates every requested function (and everything those functions need).
The generated module is written only once a pass leaves nothing unresolved.
"""

import logging
import typing as t

from ..core import panic
from .. import frontend
from .. import derive
from .. import plugin
from ..derive import find
from ..derive import rewrite
from ..excepts import RequestError, NamingConflictError, DeriveError
from ..typer import TypeModel
from .settings import DeriveSettings, find_config_file, load_config_file, apply_config_json_object

logger = logging.getLogger(__name__)


def derive_all(settings: DeriveSettings):
    """Generates the derived module of every package the settings' path specs name."""

    dir_paths = frontend.expand_path_specs(settings.path_specs)
    if not dir_paths:
        logger.info("no packages found")
    for dir_path in dir_paths:
        PackageDriver(settings, dir_path).run()


class PackageDriver(object):
    def __init__(self, settings: DeriveSettings, dir_path: str) -> None:
        super().__init__()
        self.settings = settings
        self.dir_path = dir_path
        self.overlays: t.Dict[str, str] = {}
        self.opt_prev_unresolved: t.Optional[t.FrozenSet[t.Tuple[str, int, str]]] = None
        self.last_unresolved: t.List[find.Call] = []

    def run(self):
        for pass_index in range(self.settings.max_passes):
            logger.debug(f"{self.dir_path}: pass {1+pass_index}")
            if self.run_pass():
                return
        panic.because(
            panic.ExitCode.ConvergenceFailed,
            f"Could not generate all functions for this package in {self.settings.max_passes} passes. "
            f"Still unresolved:\n{unresolved_desc(self.last_unresolved)}",
            opt_file_path=self.dir_path
        )

    def run_pass(self) -> bool:
        """Returns True once the package has converged (and its generated module has been written)."""

        source_set = frontend.SourceSet(self.overlays)
        package = source_set.add_package_dir(self.dir_path)
        model = TypeModel(source_set)

        found_calls = [find.find_calls(model, source_file) for source_file in package.files]
        user_func_names = set()
        for found in found_calls:
            user_func_names.update(found.user_func_names)

        namespace = derive.NameSpace(user_func_names)
        printer = derive.Printer(package.package_name)
        ctx = derive.DeriveContext(model, printer, namespace, package.package_name)
        generators = self.new_generators(ctx)

        unresolved: t.List[find.Call] = []
        for source_file, found in zip(package.files, found_calls):
            renames = []
            for call in found.all_calls:
                opt_generator = self.generator_for(generators, call.func_name)
                if opt_generator is None:
                    # no operation can ever provide this function
                    if call in found.undefined:
                        unresolved.append(call)
                    continue
                if call.has_undefined:
                    unresolved.append(call)
                    continue
                new_name = self.add(opt_generator, call)
                if new_name != call.func_name:
                    logger.info(f"changing function call name from {call.func_name} to {new_name}")
                    renames.append(rewrite.Rename(
                        call.line, call.char_column, call.local_name, call.func_name, new_name,
                        is_attribute=call.is_attribute,
                        is_imported=call in found.derived and not call.is_attribute
                    ))
            needed_names = self.needed_imports(found, renames, generators)
            if renames or needed_names:
                self.rewrite_caller(source_file, package, renames, needed_names)

        for call in unresolved:
            logger.info(f"could not yet generate: {call}")
        unresolved_ids = frozenset(call.identity for call in unresolved)
        if unresolved and unresolved_ids == self.opt_prev_unresolved:
            panic.because(
                panic.ExitCode.ConvergenceFailed,
                "Could not generate functions for these calls (are all argument types annotated, "
                "and do all names start with an operation's prefix?):\n" + unresolved_desc(unresolved)
            )

        self.generate(generators.values())
        logger.debug(f"{package}: {len(unresolved)} unresolved call(s), {len(printer.lines)} generated line(s)")

        opt_text = printer.close() if printer.has_content else None
        if not unresolved:
            if opt_text is not None:
                write_text(package.derived_path, opt_text)
                logger.info(f"wrote {package.derived_path}")
            return True

        if opt_text is not None:
            self.overlays[package.derived_path] = opt_text
        self.opt_prev_unresolved = unresolved_ids
        self.last_unresolved = unresolved
        return False

    #
    # Generators:
    #

    def new_generators(self, ctx: derive.DeriveContext) -> t.Dict[str, derive.Generator]:
        generators: t.Dict[str, derive.Generator] = {}
        deps: t.Dict[str, t.Dict[str, derive.Dependency]] = {}
        for op_plugin in plugin.all_plugins():
            typesmap = derive.TypesMap(
                ctx.namespace,
                self.settings.prefixes[op_plugin.name],
                ctx.package_name,
                ctx.printer.qualify,
                autoname=self.settings.autoname,
                dedup=self.settings.dedup
            )
            # dependencies are filled in below, once every generator exists
            deps[op_plugin.name] = {}
            generators[op_plugin.name] = op_plugin.new(ctx, typesmap, deps[op_plugin.name])
        for op_name, dep_names in plugin.DEPENDENCIES.items():
            for dep_name in dep_names:
                deps[op_name][dep_name] = generators[dep_name]
        return generators

    def generator_for(self, generators: t.Dict[str, derive.Generator], func_name: str) -> t.Optional[derive.Generator]:
        """The generator with the longest prefix 'func_name' starts with."""

        best_match = None
        best_len = -1
        for op_name, generator in generators.items():
            prefix = self.settings.prefixes[op_name]
            if func_name.startswith(prefix) and len(prefix) > best_len:
                best_match, best_len = generator, len(prefix)
        return best_match

    def add(self, generator: derive.Generator, call: find.Call) -> str:
        try:
            return generator.add(call.func_name, call.arg_types, opt_origin=call.loc)
        except NamingConflictError as exc:
            panic.because(panic.ExitCode.NamingConflict, exc.message, opt_loc=call.loc, outer_exc=exc)
        except RequestError as exc:
            panic.because(panic.ExitCode.RequestError, exc.message, opt_loc=call.loc, outer_exc=exc)

    @staticmethod
    def generate(generators: t.Iterable[derive.Generator]):
        generators = list(generators)
        while not all(generator.done() for generator in generators):
            for generator in generators:
                try:
                    generator.generate_pending()
                except DeriveError as exc:
                    panic.because(
                        panic.ExitCode.RequestError, exc.message, opt_loc=generator.ctx.opt_origin, outer_exc=exc
                    )

    #
    # Callers:
    #

    def needed_imports(
        self,
        found: find.FoundCalls,
        renames: t.List[rewrite.Rename],
        generators: t.Dict[str, derive.Generator]
    ) -> t.List[str]:
        if not self.settings.fix_imports:
            return []
        renamed = {rename.position: rename.new_name for rename in renames}
        needed_names = []
        for call in found.undefined:
            if call.has_undefined or self.generator_for(generators, call.func_name) is None:
                continue
            name = renamed.get((call.line, call.char_column), call.func_name)
            if name not in needed_names:
                needed_names.append(name)
        return needed_names

    def rewrite_caller(
        self,
        source_file: frontend.SourceFile,
        package: frontend.PackageDir,
        renames: t.List[rewrite.Rename],
        needed_names: t.List[str]
    ):
        new_text = rewrite.rewrite_source(
            source_file.text,
            source_file.package_name,
            package.derived_module_name,
            renames,
            needed_names
        )
        if new_text != source_file.text:
            write_text(source_file.path, new_text)
            logger.info(f"rewrote {source_file.path}")


def unresolved_desc(calls: t.Sequence[find.Call]) -> str:
    return '\n'.join(f"    {call}" for call in calls)


def write_text(file_path: str, text: str):
    try:
        with open(file_path, 'w', encoding="utf-8") as output_file:
            output_file.write(text)
    except OSError as exc:
        panic.because(
            panic.ExitCode.IOError,
            f"Could not write file: {exc}",
            opt_file_path=file_path,
            outer_exc=exc
        )


__all__ = [
    'DeriveSettings',
    'derive_all',
    'find_config_file',
    'load_config_file',
    'apply_config_json_object',
    'PackageDriver'
]
