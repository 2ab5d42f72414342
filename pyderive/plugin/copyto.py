"""
copyto: deep copy into an existing value.
    def derive_copy_to(this: T, that: T) -> None
copies 'this' into 'that'. T must be modifiable in place: a class instance, a list, a dict or a set.
Afterwards 'that' shares no mutable state with 'this': only values that are immutable (numbers, strings,
frozen dataclasses of immutable fields, ...) are shared.
Lists in 'that' are reused (resized in place) where they exist; dicts, sets and class instances are fresh.
Classes that define 'copy_to(self, other) -> None' are copied with it wherever they occur nested.
"""

import typing as t

from .. import types
from .. import derive
from ..derive import Place, ItemPlace
from ..excepts import RequestError

COPY_TO_METHOD_NAME = "copy_to"


class CopyToPlugin(derive.Plugin):
    def __init__(self) -> None:
        super().__init__("copyto", "derive_copy_to")

    def new(self, ctx, typesmap, deps) -> derive.Generator:
        return CopyToGenerator(ctx, typesmap, deps)


class CopyToGenerator(derive.Generator):
    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        self.check_identical(name, typs)
        if not self.is_reference(typs[0]):
            raise RequestError(f"{name}, {typs[0]} is not a type that can be modified in place")

    def is_reference(self, typ: types.BaseType) -> bool:
        typ = self.underlying(typ)
        if isinstance(typ, types.PointerType):
            return self.is_reference(typ.elem_type)
        if isinstance(typ, (types.SequenceType, types.MapType, types.SetType)):
            return True
        return self.class_info(typ) is not None

    #
    # Top level:
    #

    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        typ = typs[0]
        p = self.printer
        with p.function(name, [("this", typ), ("that", typ)], types.untyped_nil()):
            self.gen_body(name, typ)

    def gen_body(self, name: str, requested_typ: types.BaseType):
        p = self.printer
        typ = self.underlying(requested_typ)

        if isinstance(typ, types.PointerType):
            with p.block("if this is None or that is None:"):
                p.print("return")
            p.print(self.call_copy_to("this", "that", typ.elem_type))

        elif isinstance(typ, types.SequenceType):
            if self.shapes.can_copy(typ.elem_type):
                p.print("that[:] = this")
                return
            p.print("del that[len(this):]")
            p.print("that.extend([None] * (len(this) - len(that)))")
            index = p.new_var("i")
            with p.block(f"for {index} in range(len(this)):"):
                self.gen_value(name, f"this[{index}]", ItemPlace("that", index, exists=True), typ.elem_type)

        elif isinstance(typ, types.MapType):
            if not self.shapes.can_copy(typ.key_type):
                raise self.unsupported(name, typ)
            self.gen_same_check()
            p.print("that.clear()")
            if self.shapes.can_copy(typ.elem_type):
                p.print("that.update(this)")
                return
            key, value = p.new_var("this_key"), p.new_var("this_value")
            with p.block(f"for {key}, {value} in this.items():"):
                self.gen_value(name, value, ItemPlace("that", key, exists=False), typ.elem_type)

        elif isinstance(typ, types.SetType):
            if not self.shapes.can_copy(typ.elem_type):
                raise self.unsupported(name, typ)
            self.gen_same_check()
            p.print("that.clear()")
            p.print("that.update(this)")

        elif isinstance(typ, types.NamedType):
            fields = self.fields_of(typ, for_write=True)
            if not fields.fields:
                p.print("return")
                return
            for field in fields.fields:
                self.gen_value(
                    name,
                    fields.place(field, "this").get(),
                    fields.place(field, "that"),
                    fields.field_type(field)
                )

        else:
            raise self.unsupported(name, requested_typ)

    def gen_same_check(self):
        # copying a container onto itself must not clear it first
        with self.printer.block("if this is that:"):
            self.printer.print("return")

    #
    # Nested values:
    #

    def gen_value(self, name: str, src: str, dst: Place, requested_typ: types.BaseType):
        """Prints statements storing a copy of 'src' (of type 'requested_typ') into 'dst'."""

        p = self.printer
        typ = self.underlying(requested_typ)

        if self.shapes.can_copy(typ):
            p.print(dst.set(src))
            return

        if typ.is_nilable:
            with p.block(f"if {src} is None:"):
                p.print(dst.set("None"))
            with p.block("else:"):
                self.gen_non_none_value(name, src, dst, typ.elem_type if isinstance(typ, types.PointerType) else typ)
            return

        self.gen_non_none_value(name, src, dst, typ)

    def gen_non_none_value(self, name: str, src: str, dst: Place, requested_typ: types.BaseType):
        p = self.printer
        typ = self.underlying(requested_typ)

        if self.shapes.can_copy(typ):
            p.print(dst.set(src))

        elif isinstance(typ, types.PointerType):
            # e.g. 'Optional[Optional[T]]' collapses to one level of None
            self.gen_value(name, src, dst, typ.elem_type)

        elif isinstance(typ, types.SequenceType):
            value = p.new_var("value")
            opt_existing = dst.get_or_none()
            if opt_existing is None:
                p.print(f"{value} = []")
            else:
                p.print(f"{value} = {opt_existing}")
                with p.block(f"if {value} is None or {value} is {src}:"):
                    p.print(f"{value} = []")
            if self.shapes.can_copy(typ.elem_type):
                p.print(f"{value}[:] = {src}")
            else:
                p.print(self.call_copy_to(src, value, typ))
            p.print(dst.set(value))

        elif isinstance(typ, types.MapType):
            if self.shapes.can_copy(typ.key_type) and self.shapes.can_copy(typ.elem_type):
                p.print(dst.set(f"dict({src})"))
                return
            value = p.new_var("value")
            p.print(f"{value} = {{}}")
            p.print(self.call_copy_to(src, value, typ))
            p.print(dst.set(value))

        elif isinstance(typ, types.SetType):
            if not self.shapes.can_copy(typ.elem_type):
                raise self.unsupported(name, typ)
            p.print(dst.set(f"set({src})"))

        elif isinstance(typ, types.FixedArrayType):
            elems, index = p.new_var("elems"), p.new_var("i")
            p.print(f"{elems} = [None] * {typ.length}")
            with p.block(f"for {index} in range({typ.length}):"):
                self.gen_value(name, f"{src}[{index}]", ItemPlace(elems, index, exists=False), typ.elem_type)
            p.print(dst.set(f"tuple({elems})"))

        elif self.class_info(typ) is not None:
            assert isinstance(typ, types.NamedType)
            class_name = self.printer.qualify(typ)
            value = p.new_var("value")
            p.print(f"{value} = {class_name}.__new__({class_name})")
            p.print(self.call_copy_to(src, value, typ))
            p.print(dst.set(value))

        else:
            raise self.unsupported(name, requested_typ)

    def call_copy_to(self, src: str, dst: str, typ: types.BaseType) -> str:
        if self.user_method(typ, COPY_TO_METHOD_NAME, 1) is not None:
            return f"{src}.{COPY_TO_METHOD_NAME}({dst})"
        return f"{self.get_func_name(typ, typ)}({src}, {dst})"

