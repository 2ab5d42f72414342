"""
Plugins: every operation pyderive can generate.
Each plugin owns a call-name prefix (see `DeriveSettings.prefixes`); a call is routed to the plugin with the
longest prefix its name starts with.
"""

import typing as t

from .. import derive
from .equal import EqualPlugin
from .compare import ComparePlugin
from .copyto import CopyToPlugin
from .dump import DumpPlugin
from .fmap import FmapPlugin
from .join import JoinPlugin
from .keys import KeysPlugin
from .sort import SortPlugin
from .setof import SetPlugin
from .extremum import new_max_plugin, new_min_plugin

# generators of one plugin may ask the generators of these plugins for function names.
DEPENDENCIES: t.Dict[str, t.Tuple[str, ...]] = {
    "compare": ("keys", "sort"),
    "sort": ("compare",),
    "max": ("compare",),
    "min": ("compare",),
}


def all_plugins() -> t.List[derive.Plugin]:
    return [
        EqualPlugin(),
        ComparePlugin(),
        CopyToPlugin(),
        DumpPlugin(),
        FmapPlugin(),
        JoinPlugin(),
        KeysPlugin(),
        SortPlugin(),
        SetPlugin(),
        new_max_plugin(),
        new_min_plugin()
    ]


def default_prefixes() -> t.Dict[str, str]:
    return {plugin.name: plugin.default_prefix for plugin in all_plugins()}


__all__ = [
    'DEPENDENCIES',
    'all_plugins',
    'default_prefixes'
]
