"""
max, min: the largest (smallest) of two values, or of the elements of a list.
    def derive_max(a: T, b: T) -> T
    def derive_max(xs: list[T], default: T) -> T
The first argument wins ties; an empty (or None) list yields the default.
Values that do not order with '<' are ordered with the compare function for their type.
"""

import typing as t

from .. import types
from .. import derive
from ..excepts import RequestError


class ExtremumPlugin(derive.Plugin):
    def __init__(self, name: str, default_prefix: str, is_max: bool) -> None:
        super().__init__(name, default_prefix)
        self.is_max = is_max

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return ExtremumGenerator(ctx, typesmap, deps, self.is_max)


def new_max_plugin() -> ExtremumPlugin:
    return ExtremumPlugin("max", "derive_max", is_max=True)


def new_min_plugin() -> ExtremumPlugin:
    return ExtremumPlugin("min", "derive_min", is_max=False)


class ExtremumGenerator(derive.Generator):
    def __init__(self, ctx, typesmap, deps, is_max: bool) -> None:
        super().__init__(ctx, typesmap, deps)
        self.is_max = is_max

    @property
    def compare(self) -> derive.Dependency:
        return self.deps["compare"]

    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if len(typs) != 2:
            raise RequestError(f"{name} does not have two arguments")
        if self.model.identical(typs[0], typs[1]):
            return
        list_typ = self.underlying(typs[0])
        if not isinstance(list_typ, types.SequenceType):
            raise RequestError(f"{name}, the first argument, {typs[0]}, is not a list")
        if not self.model.assignable_to(typs[1], list_typ.elem_type):
            raise RequestError(
                f"{name}, the second argument, {typs[1]}, is not assignable to an element of {typs[0]}"
            )

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if self.model.identical(typs[0], typs[1]):
            self.gen_two(name, typs[0])
        else:
            self.gen_list(name, typs[0])

    def gen_two(self, name: str, typ: types.BaseType):
        p = self.printer
        with p.function(name, [("a", typ), ("b", typ)], typ):
            with p.block(f"if {self.beats('b', 'a', typ)}:"):
                p.print("return b")
            p.print("return a")

    def gen_list(self, name: str, typ: types.BaseType):
        list_typ = self.underlying(typ)
        assert isinstance(list_typ, types.SequenceType)
        elem_typ = list_typ.elem_type
        p = self.printer
        with p.function(name, [("xs", typ), ("default", elem_typ)], elem_typ):
            with p.block("if not xs:"):
                p.print("return default")
            p.print("m = xs[0]")
            with p.block("for v in xs[1:]:"):
                with p.block(f"if {self.beats('v', 'm', elem_typ)}:"):
                    p.print("m = v")
            p.print("return m")

    def beats(self, challenger: str, holder: str, typ: types.BaseType) -> str:
        """An expression that is true if 'challenger' must replace 'holder'."""

        op = '>' if self.is_max else '<'
        if self.shapes.is_orderable(typ):
            return f"{challenger} {op} {holder}"
        compare_name = self.compare.get_func_name(typ, typ)
        return f"{compare_name}({challenger}, {holder}) {op} 0"
