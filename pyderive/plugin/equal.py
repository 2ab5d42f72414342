"""
equal: deep structural equality.
    def derive_equal(this: T, that: T) -> bool
Classes that define an 'equal(self, other)' method or an explicit '__eq__' are compared with it wherever they
occur nested inside the requested type.
"""

import typing as t

from .. import types
from .. import derive

EQUAL_METHOD_NAME = "equal"


class EqualPlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("equal", "derive_equal")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return EqualGenerator(ctx, typesmap, deps)


class EqualGenerator(derive.Generator):
    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        self.check_identical(name, typs)

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        typ = typs[0]
        p = self.printer
        with p.function(name, [("this", typ), ("that", typ)], types.BasicType.get(types.BasicKind.Bool)):
            self.gen_body(name, typ)

    def gen_body(self, name: str, requested_typ: types.BaseType):
        p = self.printer
        typ = self.underlying(requested_typ)

        if self.shapes.is_comparable(typ):
            p.print("return this == that")
            return

        if isinstance(typ, types.PointerType):
            self.gen_none_check()
            p.print(f"return {self.field('this', 'that', typ.elem_type)}")

        elif isinstance(typ, types.SequenceType):
            self.gen_none_check()
            with p.block("if len(this) != len(that):"):
                p.print("return False")
            if self.shapes.is_comparable(typ.elem_type):
                p.print("return this == that")
                return
            index = p.new_var("i")
            with p.block(f"for {index} in range(len(this)):"):
                self.gen_check(self.field(f"this[{index}]", f"that[{index}]", typ.elem_type))
            p.print("return True")

        elif isinstance(typ, types.FixedArrayType):
            index = p.new_var("i")
            with p.block(f"for {index} in range({typ.length}):"):
                self.gen_check(self.field(f"this[{index}]", f"that[{index}]", typ.elem_type))
            p.print("return True")

        elif isinstance(typ, types.MapType):
            self.gen_none_check()
            with p.block("if len(this) != len(that):"):
                p.print("return False")
            if self.shapes.is_comparable(typ.elem_type):
                p.print("return this == that")
                return
            key, this_value = p.new_var("k"), p.new_var("this_v")
            with p.block(f"for {key}, {this_value} in this.items():"):
                with p.block(f"if {key} not in that:"):
                    p.print("return False")
                self.gen_check(self.field(this_value, f"that[{key}]", typ.elem_type))
            p.print("return True")

        elif isinstance(typ, types.SetType):
            if not self.shapes.is_comparable(typ.elem_type):
                raise self.unsupported(name, typ)
            self.gen_none_check()
            p.print("return this == that")

        elif isinstance(typ, types.NamedType):
            fields = self.fields_of(typ)
            for field in fields.fields:
                self.gen_check(self.field(
                    fields.place(field, "this").get(),
                    fields.place(field, "that").get(),
                    fields.field_type(field)
                ))
            p.print("return True")

        else:
            raise self.unsupported(name, requested_typ)

    def gen_none_check(self):
        p = self.printer
        with p.block("if this is None or that is None:"):
            p.print("return this is None and that is None")

    def gen_check(self, expr: str):
        with self.printer.block(f"if not {expr}:"):
            self.printer.print("return False")

    def field(self, this: str, that: str, typ: types.BaseType) -> str:
        """An expression that is true if 'this' equals 'that', both of type 'typ'."""

        if self.shapes.is_comparable(typ):
            return f"({this} == {that})"
        if self.user_method(typ, EQUAL_METHOD_NAME, 1) is not None:
            return f"{this}.{EQUAL_METHOD_NAME}({that})"
        opt_info = self.class_info(typ)
        if opt_info is not None and opt_info.has_method('__eq__'):
            return f"({this} == {that})"
        return f"{self.get_func_name(typ, typ)}({this}, {that})"
