"""
fmap: applies a function to every element of a list (or every character of a string).
    def derive_fmap(f: Callable[[A], B], xs: list[A]) -> list[B]
    def derive_fmap(f: Callable[[str], B], xs: str) -> list[B]
"""

import typing as t

from .. import types
from .. import derive
from ..excepts import RequestError


class FmapPlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("fmap", "derive_fmap")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return FmapGenerator(ctx, typesmap, deps)


class FmapGenerator(derive.Generator):
    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if len(typs) != 2:
            raise RequestError(f"{name} does not have two arguments")
        func_typ, list_typ = typs
        if not isinstance(func_typ, types.FuncType):
            raise RequestError(f"{name}, the first argument, {func_typ}, is not a function")
        if len(func_typ.param_types) != 1:
            raise RequestError(f"{name}, the function argument, {func_typ}, does not take exactly one parameter")
        if func_typ.result_type is types.untyped_nil():
            raise RequestError(f"{name}, the function argument, {func_typ}, does not return a value")
        opt_elem_typ = self.elem_type(list_typ)
        if opt_elem_typ is None:
            raise RequestError(f"{name}, the second argument, {list_typ}, is not a list or a string")
        if not self.model.assignable_to(opt_elem_typ, func_typ.param_types[0]):
            raise RequestError(
                f"{name}, the function argument, {func_typ}, cannot be applied to elements of type {opt_elem_typ}"
            )

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        func_typ, list_typ = typs
        assert isinstance(func_typ, types.FuncType)
        p = self.printer
        with p.function(name, [("f", func_typ), ("xs", list_typ)], types.SequenceType.get(func_typ.result_type)):
            with p.block("if xs is None:"):
                p.print("return []")
            p.print("return [f(x) for x in xs]")

    def elem_type(self, typ: types.BaseType) -> t.Optional[types.BaseType]:
        underlying = self.underlying(typ)
        if isinstance(underlying, types.SequenceType):
            return underlying.elem_type
        if isinstance(underlying, types.BasicType) and underlying.basic_kind == types.BasicKind.Str:
            return underlying
        return None
