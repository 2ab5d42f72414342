"""
sort: sorts a list in place and returns it.
    def derive_sort(xs: list[T]) -> list[T]
Elements that do not order with '<' are sorted with the compare function for their type.
"""

import typing as t

from .. import types
from .. import derive
from ..excepts import RequestError


class SortPlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("sort", "derive_sort")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return SortGenerator(ctx, typesmap, deps)


class SortGenerator(derive.Generator):
    @property
    def compare(self) -> derive.Dependency:
        return self.deps["compare"]

    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if len(typs) != 1:
            raise RequestError(f"{name} does not have one argument")
        if not isinstance(self.underlying(typs[0]), types.SequenceType):
            raise RequestError(f"{name}, the argument, {typs[0]}, is not a list")

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        list_typ = self.underlying(typs[0])
        assert isinstance(list_typ, types.SequenceType)
        p = self.printer
        with p.function(name, [("xs", typs[0])], typs[0]):
            with p.block("if xs is None:"):
                p.print("return xs")
            if self.shapes.is_orderable(list_typ.elem_type):
                p.print("xs.sort()")
            else:
                p.require_std_import("functools")
                compare_name = self.compare.get_func_name(list_typ.elem_type, list_typ.elem_type)
                p.print(f"xs.sort(key=functools.cmp_to_key({compare_name}))")
            p.print("return xs")
