import argparse
import dataclasses
import logging
import sys

from .core import panic
from . import plugin
from . import driver
from .driver import settings as derive_settings

LOG_FORMAT = "[PYDERIVE] [%(levelname)s]  %(message)s"


def main_impl(argv=None) -> int:
    args_obj = parse_args(argv)
    configure_logging(args_obj.verbose)

    settings = derive_settings.DeriveSettings(path_specs=args_obj.path_specs or ["."])
    opt_config_path = derive_settings.find_config_file(args_obj.config_path)
    if opt_config_path is not None:
        settings = derive_settings.load_config_file(opt_config_path, settings)
    settings = apply_args(args_obj, settings)

    driver.derive_all(settings)
    return panic.ExitCode.AllOK.value


def parse_args(argv=None):
    arg_parser = argparse.ArgumentParser(
        prog="pyderive",
        description="Generates the functions that calls in the given packages refer to but nobody wrote yet."
    )
    arg_parser.add_argument(
        "path_specs", metavar="<path>", nargs="*",
        help="A package directory, a '.py' file (meaning its directory), or 'dir/...' for every package below 'dir'. "
             "Defaults to the current directory."
    )
    arg_parser.add_argument(
        "--config", metavar="<config-file-path>", dest="config_path", default=None,
        help="A 'pyderive.json5' file to read settings from. By default, the one in the current directory is used if present."
    )
    arg_parser.add_argument(
        "--autoname", action="store_true", default=None,
        help="Rename calls whose function name is already taken instead of failing."
    )
    arg_parser.add_argument(
        "--dedup", action="store_true", default=None,
        help="Rename calls that ask for a function that already exists under another name."
    )
    arg_parser.add_argument(
        "--fiximports", action="store_true", dest="fix_imports", default=None,
        help="Add missing imports of generated functions to the calling modules."
    )
    arg_parser.add_argument(
        "--max-passes", metavar="<count>", type=int, dest="max_passes", default=None,
        help="The number of passes after which a package that still has unresolved calls is an error."
    )
    for op_plugin in plugin.all_plugins():
        arg_parser.add_argument(
            f"--{op_plugin.name}.prefix", metavar="<prefix>", dest=f"prefix_{op_plugin.name}", default=None,
            help=f"The call-name prefix of the '{op_plugin.name}' operation (default: {op_plugin.default_prefix})."
        )
    arg_parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Print what is being generated ('-v'), or everything ('-vv'). Good for debugging the generator."
    )
    return arg_parser.parse_args(argv)


def apply_args(args_obj, settings: derive_settings.DeriveSettings) -> derive_settings.DeriveSettings:
    for op_plugin in plugin.all_plugins():
        opt_prefix = getattr(args_obj, f"prefix_{op_plugin.name}")
        if opt_prefix is None:
            continue
        if not opt_prefix.isidentifier():
            panic.because(
                panic.ExitCode.BadCliArgs,
                f"Invalid prefix for '{op_plugin.name}': {opt_prefix!r} is not an identifier."
            )
        settings = settings.with_prefix(op_plugin.name, opt_prefix)

    if args_obj.max_passes is not None and args_obj.max_passes < 1:
        panic.because(panic.ExitCode.BadCliArgs, f"Invalid '--max-passes': expected a positive count.")

    overrides = {
        "autoname": args_obj.autoname,
        "dedup": args_obj.dedup,
        "fix_imports": args_obj.fix_imports,
        "max_passes": args_obj.max_passes
    }
    return dataclasses.replace(settings, **{key: value for key, value in overrides.items() if value is not None})


def configure_logging(verbosity: int):
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(format=LOG_FORMAT, level=level, stream=sys.stderr)


def main(argv=None) -> int:
    try:
        return main_impl(argv)
    except panic.Exception as exc:
        return exc.exit_code.value
