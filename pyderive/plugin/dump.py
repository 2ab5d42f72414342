"""
dump: Python source text that rebuilds a value.
    def derive_dump(this: T) -> str
e.g. "Point(x=1, y=[2, 3])". Set elements are printed in sorted order, so equal sets dump identically.
"""

import typing as t

from .. import types
from .. import derive
from ..excepts import RequestError, UnsupportedTypeError


class DumpPlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("dump", "derive_dump")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return DumpGenerator(ctx, typesmap, deps)


class DumpGenerator(derive.Generator):
    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if len(typs) != 1:
            raise RequestError(f"{name} does not have one argument")

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        typ = typs[0]
        p = self.printer
        with p.function(name, [("this", typ)], types.BasicType.get(types.BasicKind.Str)):
            self.gen_body(name, typ)

    def gen_body(self, name: str, typ: types.BaseType):
        p = self.printer

        if isinstance(typ, types.BasicType):
            if typ.basic_kind == types.BasicKind.UntypedNil:
                raise self.unsupported(name, typ)
            p.print("return repr(this)")

        elif isinstance(typ, types.PointerType):
            self.gen_none_check()
            p.print(f"return {self.field('this', typ.elem_type)}")

        elif isinstance(typ, types.SequenceType):
            self.gen_none_check()
            p.print(f"return '[' + ', '.join([{self.field('x', typ.elem_type)} for x in this]) + ']'")

        elif isinstance(typ, types.FixedArrayType):
            trailing_comma = "," if typ.length == 1 else ""
            p.print(f"return '(' + ', '.join([{self.field('x', typ.elem_type)} for x in this]) + '{trailing_comma})'")

        elif isinstance(typ, types.MapType):
            self.gen_none_check()
            entry = f"{self.field('k', typ.key_type)} + ': ' + {self.field('v', typ.elem_type)}"
            p.print(f"return '{{' + ', '.join([{entry} for k, v in this.items()]) + '}}'")

        elif isinstance(typ, types.SetType):
            self.gen_none_check()
            with p.block("if not this:"):
                p.print("return 'set()'")
            p.print(f"return '{{' + ', '.join(sorted([{self.field('x', typ.elem_type)} for x in this])) + '}}'")

        elif isinstance(typ, types.NamedType):
            opt_info = self.model.named_info(typ)
            if opt_info is None:
                raise self.unsupported(name, typ)
            if not opt_info.is_class:
                p.print(f"return {typ.name!r} + '(' + {self.field('this', opt_info.underlying)} + ')'")
                return
            fields = self.fields_of(typ)
            if fields.is_low_level:
                raise UnsupportedTypeError(
                    f"{name}: {typ} has fields that cannot be passed to its constructor by name"
                )
            if not fields.fields:
                p.print(f"return {typ.name + '()'!r}")
                return
            p.print(f"return {typ.name + '('!r} + ', '.join([")
            p.inc_indent()
            for field in fields.fields:
                value = self.field(fields.place(field, "this").get(), fields.field_type(field))
                p.print(f"{field.name + '='!r} + {value},")
            p.dec_indent()
            p.print("]) + ')'")

        else:
            raise self.unsupported(name, typ)

    def gen_none_check(self):
        p = self.printer
        with p.block("if this is None:"):
            p.print("return 'None'")

    def field(self, this: str, typ: types.BaseType) -> str:
        """An expression dumping 'this', of type 'typ'."""

        if isinstance(typ, types.BasicType) and typ.basic_kind != types.BasicKind.UntypedNil:
            return f"repr({this})"
        return f"{self.get_func_name(typ)}({this})"
