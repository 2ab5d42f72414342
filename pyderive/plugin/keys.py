"""
keys: the keys of a dict, as a list.
    def derive_keys(m: dict[K, V]) -> list[K]
A None dict has no keys. The order of the keys is the dict's iteration order.
"""

import typing as t

from .. import types
from .. import derive
from ..excepts import RequestError


class KeysPlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("keys", "derive_keys")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return KeysGenerator(ctx, typesmap, deps)


class KeysGenerator(derive.Generator):
    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if len(typs) != 1:
            raise RequestError(f"{name} does not have one argument")
        if not isinstance(self.underlying(typs[0]), types.MapType):
            raise RequestError(f"{name}, the argument, {typs[0]}, is not a dict")

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        map_typ = self.underlying(typs[0])
        assert isinstance(map_typ, types.MapType)
        p = self.printer
        with p.function(name, [("m", typs[0])], types.SequenceType.get(map_typ.key_type)):
            with p.block("if m is None:"):
                p.print("return []")
            p.print("return list(m.keys())")
