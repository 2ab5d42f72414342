"""
Settings: everything a run depends on, passed explicitly to the driver and from there to every generator.
Values come from (in increasing priority) the defaults, a 'pyderive.json5' file, and the command line.
"""

import dataclasses
import os.path
import typing as t

import json5

from ..core import panic
from ..core import const
from .. import plugin


@dataclasses.dataclass
class DeriveSettings:
    path_specs: t.List[str]
    prefixes: t.Dict[str, str] = dataclasses.field(default_factory=plugin.default_prefixes)
    autoname: bool = False
    dedup: bool = False
    fix_imports: bool = False
    max_passes: int = const.DEFAULT_MAX_PASSES

    def with_prefix(self, op_name: str, prefix: str) -> "DeriveSettings":
        prefixes = dict(self.prefixes)
        prefixes[op_name] = prefix
        return dataclasses.replace(self, prefixes=prefixes)


#
# Loading config files:
#

CONFIG_KEYS = ("prefixes", "autoname", "dedup", "fixImports", "maxPasses")


def find_config_file(opt_config_path: t.Optional[str], cwd: str = ".") -> t.Optional[str]:
    if opt_config_path is not None:
        if not os.path.isfile(opt_config_path):
            panic.because(
                panic.ExitCode.BadConfigFile,
                f"Invalid config file: this file does not exist.",
                opt_file_path=opt_config_path
            )
        return opt_config_path
    default_path = os.path.join(cwd, const.CONFIG_FILENAME)
    if os.path.isfile(default_path):
        return default_path
    return None


def load_config_file(config_path: str, settings: DeriveSettings) -> DeriveSettings:
    with open(config_path) as config_file:
        try:
            config_json = json5.load(
                fp=config_file,
                encoding="UTF-8",
                allow_duplicate_keys=False
            )
        except ValueError as exc:
            # both syntax errors and duplicate keys
            panic.because(
                panic.ExitCode.BadConfigFile,
                f"Could not parse '{const.CONFIG_FILENAME}' file: {exc}",
                opt_file_path=config_path,
                outer_exc=exc
            )
    return apply_config_json_object(config_path, config_json, settings)


def apply_config_json_object(config_path: str, config_json: object, settings: DeriveSettings) -> DeriveSettings:
    if not isinstance(config_json, dict):
        panic.because(
            panic.ExitCode.BadConfigFile,
            f"Expected the config file to contain an object, instead got: {config_json!r}",
            opt_file_path=config_path
        )
    assert isinstance(config_json, dict)

    for key in config_json:
        if key not in CONFIG_KEYS:
            panic.because(
                panic.ExitCode.BadConfigFile,
                f"Unknown key: '{key}' (expected one of: {', '.join(CONFIG_KEYS)})",
                opt_file_path=config_path
            )

    extractor = Extractor(config_path, config_json)
    raw_prefixes = extractor.get("prefixes", dict, {})
    prefixes = dict(settings.prefixes)
    for op_name, prefix in raw_prefixes.items():
        if op_name not in prefixes:
            panic.because(
                panic.ExitCode.BadConfigFile,
                f"Unknown operation in 'prefixes': '{op_name}' (expected one of: {', '.join(sorted(prefixes))})",
                opt_file_path=config_path
            )
        if not isinstance(prefix, str) or not prefix.isidentifier():
            panic.because(
                panic.ExitCode.BadConfigFile,
                f"Expected the prefix of '{op_name}' to be an identifier, instead got: {prefix!r}",
                opt_file_path=config_path
            )
        prefixes[op_name] = prefix

    return dataclasses.replace(
        settings,
        prefixes=prefixes,
        autoname=extractor.get("autoname", bool, settings.autoname),
        dedup=extractor.get("dedup", bool, settings.dedup),
        fix_imports=extractor.get("fixImports", bool, settings.fix_imports),
        max_passes=extractor.get("maxPasses", int, settings.max_passes)
    )


class Extractor(object):
    def __init__(self, config_path: str, config_json: dict) -> None:
        super().__init__()
        self.config_path = config_path
        self.json = config_json

    def get(self, key: str, expected_datatype: type, default: object) -> t.Any:
        file_path = self.config_path
        obj = self.json

        if key not in obj:
            return default

        res = obj[key]

        # typechecking:
        if expected_datatype is int:
            if isinstance(res, bool) or not isinstance(res, int) or res < 1:
                panic.because(
                    panic.ExitCode.BadConfigFile,
                    f"Expected key '{key}' to map to a positive integer, instead got: {res!r}",
                    opt_file_path=file_path
                )
        elif not isinstance(res, expected_datatype):
            expected_datatype_name = {
                bool: "a boolean",
                str: "a string",
                dict: "an object",
                list: "an array"
            }[expected_datatype]
            panic.because(
                panic.ExitCode.BadConfigFile,
                f"Expected key '{key}' to map to {expected_datatype_name}, instead got: {res!r}",
                opt_file_path=file_path
            )

        return res
