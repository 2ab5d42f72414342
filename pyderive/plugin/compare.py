"""
compare: a total order over values of one type.
    def derive_compare(this: T, that: T) -> int
returns -1 if this < that, 0 if they are equal and 1 if this > that.
- None sorts before any value, shorter lists, dicts and sets sort before longer ones
- dicts compare their entries in key order, sets their elements in sorted order
- classes compare field by field, in declaration order
Classes that define 'compare(self, other) -> int' are compared with it wherever they occur nested.
"""

import typing as t

from .. import types
from .. import derive

COMPARE_METHOD_NAME = "compare"


class ComparePlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("compare", "derive_compare")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return CompareGenerator(ctx, typesmap, deps)


class CompareGenerator(derive.Generator):
    @property
    def keys(self) -> derive.Dependency:
        return self.deps["keys"]

    @property
    def sort(self) -> derive.Dependency:
        return self.deps["sort"]

    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        self.check_identical(name, typs)

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        typ = typs[0]
        p = self.printer
        with p.function(name, [("this", typ), ("that", typ)], types.BasicType.get(types.BasicKind.Int)):
            self.gen_body(name, typ)

    def gen_body(self, name: str, requested_typ: types.BaseType):
        p = self.printer
        typ = self.underlying(requested_typ)

        if isinstance(typ, types.BasicType):
            self.gen_basic(name, typ)

        elif self.shapes.is_orderable(typ):
            self.gen_ordered("this", "that")
            p.print("return 0")

        elif isinstance(typ, types.PointerType):
            self.gen_none_check()
            p.print(f"return {self.field('this', 'that', typ.elem_type)}")

        elif isinstance(typ, types.SequenceType):
            self.gen_none_check()
            self.gen_length_check()
            if self.shapes.is_orderable(typ.elem_type):
                self.gen_ordered("this", "that")
                p.print("return 0")
                return
            index = p.new_var("i")
            with p.block(f"for {index} in range(len(this)):"):
                self.gen_result(self.field(f"this[{index}]", f"that[{index}]", typ.elem_type))
            p.print("return 0")

        elif isinstance(typ, types.FixedArrayType):
            index = p.new_var("i")
            with p.block(f"for {index} in range({typ.length}):"):
                self.gen_result(self.field(f"this[{index}]", f"that[{index}]", typ.elem_type))
            p.print("return 0")

        elif isinstance(typ, types.MapType):
            self.gen_map(typ)

        elif isinstance(typ, types.SetType):
            self.gen_none_check()
            self.gen_length_check()
            elems_typ = types.SequenceType.get(typ.elem_type)
            sort_name = self.sort.get_func_name(elems_typ)
            p.print(f"this_elems = {sort_name}(list(this))")
            p.print(f"that_elems = {sort_name}(list(that))")
            index = p.new_var("i")
            with p.block(f"for {index} in range(len(this_elems)):"):
                self.gen_result(self.field(f"this_elems[{index}]", f"that_elems[{index}]", typ.elem_type))
            p.print("return 0")

        elif isinstance(typ, types.NamedType):
            fields = self.fields_of(typ)
            for field in fields.fields:
                self.gen_result(self.field(
                    fields.place(field, "this").get(),
                    fields.place(field, "that").get(),
                    fields.field_type(field)
                ))
            p.print("return 0")

        else:
            raise self.unsupported(name, requested_typ)

    def gen_basic(self, name: str, typ: types.BasicType):
        p = self.printer
        if typ.basic_kind == types.BasicKind.Bool:
            with p.block("if this == that:"):
                p.print("return 0")
            with p.block("if that:"):
                p.print("return -1")
            p.print("return 1")
        elif typ.basic_kind == types.BasicKind.Complex:
            self.gen_ordered("this.real", "that.real")
            self.gen_ordered("this.imag", "that.imag")
            p.print("return 0")
        elif typ.basic_kind == types.BasicKind.UntypedNil:
            raise self.unsupported(name, typ)
        else:
            self.gen_ordered("this", "that")
            p.print("return 0")

    def gen_map(self, typ: types.MapType):
        p = self.printer
        self.gen_none_check()
        self.gen_length_check()
        keys_name = self.keys.get_func_name(typ)
        sort_name = self.sort.get_func_name(types.SequenceType.get(typ.key_type))
        p.print(f"this_keys = {sort_name}({keys_name}(this))")
        p.print(f"that_keys = {sort_name}({keys_name}(that))")
        index = p.new_var("i")
        with p.block(f"for {index} in range(len(this_keys)):"):
            this_key, that_key = p.new_var("this_key"), p.new_var("that_key")
            p.print(f"{this_key} = this_keys[{index}]")
            p.print(f"{that_key} = that_keys[{index}]")
            with p.block(f"if {this_key} == {that_key}:"):
                self.gen_result(self.field(f"this[{this_key}]", f"that[{that_key}]", typ.elem_type))
            with p.block("else:"):
                self.gen_result(self.field(this_key, that_key, typ.key_type))
        p.print("return 0")

    def gen_none_check(self):
        p = self.printer
        with p.block("if this is None:"):
            with p.block("if that is None:"):
                p.print("return 0")
            p.print("return -1")
        with p.block("if that is None:"):
            p.print("return 1")

    def gen_length_check(self):
        p = self.printer
        with p.block("if len(this) != len(that):"):
            with p.block("if len(this) < len(that):"):
                p.print("return -1")
            p.print("return 1")

    def gen_ordered(self, this: str, that: str):
        p = self.printer
        with p.block(f"if {this} != {that}:"):
            with p.block(f"if {this} < {that}:"):
                p.print("return -1")
            p.print("return 1")

    def gen_result(self, expr: str):
        p = self.printer
        result = p.new_var("c")
        p.print(f"{result} = {expr}")
        with p.block(f"if {result} != 0:"):
            p.print(f"return {result}")

    def field(self, this: str, that: str, typ: types.BaseType) -> str:
        """An expression comparing 'this' to 'that', both of type 'typ'."""

        if self.user_method(typ, COMPARE_METHOD_NAME, 1) is not None:
            return f"{this}.{COMPARE_METHOD_NAME}({that})"
        return f"{self.get_func_name(typ, typ)}({this}, {that})"
