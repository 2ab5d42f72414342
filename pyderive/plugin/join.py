"""
join: concatenation.
    def derive_join(xss: list[list[T]]) -> list[T]
    def derive_join(xs: list[str]) -> str
None lists (outer or inner) contribute nothing.
"""

import typing as t

from .. import types
from .. import derive
from ..excepts import RequestError


class JoinPlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("join", "derive_join")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return JoinGenerator(ctx, typesmap, deps)


class JoinGenerator(derive.Generator):
    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if len(typs) != 1:
            raise RequestError(f"{name} does not have one argument")
        opt_elem_typ = self.elem_type(typs[0])
        if opt_elem_typ is None:
            raise RequestError(f"{name}, the argument, {typs[0]}, is not a list")
        if not (is_str(opt_elem_typ) or isinstance(self.underlying(opt_elem_typ), types.SequenceType)):
            raise RequestError(f"{name}, the argument, {typs[0]}, is not a list of lists or of strings")

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        elem_typ = self.elem_type(typs[0])
        assert elem_typ is not None
        p = self.printer
        with p.function(name, [("xss", typs[0])], elem_typ):
            if is_str(elem_typ):
                with p.block("if xss is None:"):
                    p.print("return ''")
                p.print("return ''.join(xss)")
                return
            with p.block("if xss is None:"):
                p.print("return []")
            p.print("out = []")
            with p.block("for xs in xss:"):
                with p.block("if xs is not None:"):
                    p.print("out.extend(xs)")
            p.print("return out")

    def elem_type(self, typ: types.BaseType) -> t.Optional[types.BaseType]:
        list_typ = self.underlying(typ)
        if isinstance(list_typ, types.SequenceType):
            return list_typ.elem_type
        return None


def is_str(typ: types.BaseType) -> bool:
    return isinstance(typ, types.BasicType) and typ.basic_kind == types.BasicKind.Str
