"""
set: the set of elements of a list.
    def derive_set(xs: list[T]) -> set[T]
"""

import typing as t

from .. import types
from .. import derive
from ..excepts import RequestError, UnsupportedTypeError


class SetPlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("set", "derive_set")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return SetGenerator(ctx, typesmap, deps)


class SetGenerator(derive.Generator):
    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if len(typs) != 1:
            raise RequestError(f"{name} does not have one argument")
        list_typ = self.underlying(typs[0])
        if not isinstance(list_typ, types.SequenceType):
            raise RequestError(f"{name}, the argument, {typs[0]}, is not a list")
        if not self.shapes.is_hashable(list_typ.elem_type):
            raise UnsupportedTypeError(f"{name}: the elements of {typs[0]} are not hashable")

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        list_typ = self.underlying(typs[0])
        assert isinstance(list_typ, types.SequenceType)
        p = self.printer
        with p.function(name, [("xs", typs[0])], types.SetType.get(list_typ.elem_type)):
            with p.block("if xs is None:"):
                p.print("return set()")
            p.print("return set(xs)")
