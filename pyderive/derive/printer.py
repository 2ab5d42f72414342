"""
Printer: the writer behind one generated module.
Generators print function bodies into it; it collects the imports and helpers those bodies need and
assembles the final module text in `close`.
"""

import typing as t

from .. import types
from ..core import const
from ..types import spelling

INDENT_STR = "    "

FIELD_GET_HELPER = "_derive_field_get"
FIELD_SET_HELPER = "_derive_field_set"

FIELD_HELPERS = f'''def {FIELD_GET_HELPER}(obj, name, *default):
    try:
        return object.__getattribute__(obj, name)
    except AttributeError:
        if default:
            return default[0]
        raise


def {FIELD_SET_HELPER}(obj, name, value):
    object.__setattr__(obj, name, value)'''


class StringWriter(object):
    def __init__(self, indent_str=INDENT_STR) -> None:
        super().__init__()
        self.indent_count = 0
        self.indent_str = indent_str
        self.lines: t.List[str] = []

    def print(self, code_fragment: str = ""):
        for line in code_fragment.split('\n'):
            if line:
                self.lines.append(f"{self.indent_str*self.indent_count}{line}")
            else:
                self.lines.append("")

    def inc_indent(self):
        self.indent_count += 1

    def dec_indent(self):
        assert self.indent_count > 0
        self.indent_count -= 1

    def close(self) -> str:
        return '\n'.join(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


class Block(object):
    """
    Prints a header line (e.g. 'if x is None:') and indents everything printed inside the 'with' statement.
    """

    def __init__(self, sw: StringWriter, header: str) -> None:
        super().__init__()
        assert header.endswith(':')
        self.sw = sw
        self.header = header

    def __enter__(self):
        self.sw.print(self.header)
        self.sw.inc_indent()
        return self

    def __exit__(self, *_):
        self.sw.dec_indent()


class Printer(StringWriter):
    def __init__(self, package_name: str) -> None:
        super().__init__()
        self.package_name = package_name
        self.std_imports: t.Set[str] = set()
        self.module_imports: t.Dict[str, str] = {}
        self.needs_field_helpers = False
        self.var_counter = 0

    #
    # Functions:
    #

    def function(self, name: str, params: t.Sequence[t.Tuple[str, types.BaseType]], result_type: types.BaseType) -> Block:
        """Starts a new top-level function; use the result in a 'with' statement to print its body."""

        assert self.indent_count == 0
        if not self.is_empty:
            self.print()
            self.print()
        self.var_counter = 0
        params_str = ', '.join(f"{param_name}: {self.type_string(param_type)}" for param_name, param_type in params)
        return Block(self, f"def {name}({params_str}) -> {self.type_string(result_type)}:")

    def block(self, header: str) -> Block:
        return Block(self, header)

    def new_var(self, base_name: str) -> str:
        """A local variable name that is unique within the current function."""
        self.var_counter += 1
        return f"{base_name}{self.var_counter}"

    #
    # Requirements:
    #

    def require_std_import(self, module_name: str):
        self.std_imports.add(module_name)

    def require_field_helpers(self):
        self.needs_field_helpers = True

    def qualify(self, named: types.NamedType) -> str:
        """The expression that names 'named' from inside the generated module, importing its module as needed."""

        module_name = named.module_name
        alias = "_" + module_name.replace('.', '_')
        if module_name not in self.module_imports:
            rel_module_name = spelling.relative_module_name(module_name, self.package_name)
            is_internal = self.package_name and rel_module_name != module_name
            if is_internal and rel_module_name:
                # module objects (not names) are imported, so an import cycle with the caller stays harmless
                opt_parent, _, leaf = rel_module_name.rpartition('.')
                import_line = f"from .{opt_parent} import {leaf} as {alias}"
            else:
                import_line = f"import {module_name} as {alias}"
            self.module_imports[module_name] = import_line
        return f"{alias}.{named.name}"

    def type_string(self, typ: types.BaseType) -> str:
        for nested_typ in iter_nested_types(typ):
            if isinstance(nested_typ, types.FuncType):
                self.require_std_import("typing")
        return spelling.type_string(typ, self.qualify)

    #
    # Assembly:
    #

    @property
    def has_content(self) -> bool:
        return not self.is_empty

    def close(self) -> str:
        chunks = [const.GENERATED_HEADER + "\n\nfrom __future__ import annotations"]
        if self.std_imports:
            chunks.append('\n'.join(f"import {module_name}" for module_name in sorted(self.std_imports)))
        if self.module_imports:
            chunks.append('\n'.join(self.module_imports[module_name] for module_name in sorted(self.module_imports)))
        text = '\n\n'.join(chunks) + '\n'
        if self.needs_field_helpers:
            text += '\n\n' + FIELD_HELPERS + '\n'
        text += '\n\n' + super().close() + '\n'
        return text


def iter_nested_types(typ: types.BaseType) -> t.Iterator[types.BaseType]:
    yield typ
    if isinstance(typ, (types.PointerType, types.FixedArrayType, types.SequenceType, types.SetType)):
        yield from iter_nested_types(typ.elem_type)
    elif isinstance(typ, types.MapType):
        yield from iter_nested_types(typ.key_type)
        yield from iter_nested_types(typ.elem_type)
    elif isinstance(typ, types.FuncType):
        for param_type in typ.param_types:
            yield from iter_nested_types(param_type)
        yield from iter_nested_types(typ.result_type)
