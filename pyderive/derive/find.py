"""
Call-site finder.
Walks one source unit in pre-order and collects the calls that may need a generated function:
- undefined: the callee resolves to nothing
- derived: the callee is imported from (or accessed as an attribute of) the package's generated module
User functions that are called are recorded too, so minted names never shadow them.
"""

import ast
import typing as t

from .. import types
from ..core import feedback as fb
from ..frontend import SourceFile
from ..typer import TypeModel, BaseScope, SymbolKind


class Call(object):
    def __init__(
        self,
        source_file: SourceFile,
        node: ast.Call,
        local_name: str,
        func_name: str,
        opt_arg_types: t.Optional[t.Tuple[types.BaseType, ...]],
        is_attribute: bool = False
    ) -> None:
        super().__init__()
        self.source_file = source_file
        self.node = node
        self.local_name = local_name
        self.func_name = func_name
        self.opt_arg_types = opt_arg_types
        self.is_attribute = is_attribute
        self.loc = fb.TextFileLoc.of_node(source_file.path, node)

    @property
    def has_undefined(self) -> bool:
        return self.opt_arg_types is None

    @property
    def arg_types(self) -> t.Tuple[types.BaseType, ...]:
        assert self.opt_arg_types is not None
        return self.opt_arg_types

    @property
    def is_aliased(self) -> bool:
        return self.local_name != self.func_name

    @property
    def line(self) -> int:
        return self.node.lineno

    @property
    def char_column(self) -> int:
        """the column of the call as a character (not byte) offset into its line"""
        lines = self.source_file.text.splitlines()
        line_bytes = lines[self.node.lineno - 1].encode('utf-8')
        return len(line_bytes[:self.node.col_offset].decode('utf-8'))

    @property
    def text(self) -> str:
        return ast.unparse(self.node)

    @property
    def identity(self) -> t.Tuple[str, int, str]:
        return (self.source_file.path, self.line, self.text)

    def __str__(self) -> str:
        return f"{self.loc}: {self.text}"


class FoundCalls(object):
    def __init__(self) -> None:
        super().__init__()
        self.undefined: t.List[Call] = []
        self.derived: t.List[Call] = []
        self.user_func_names: t.Set[str] = set()

    @property
    def all_calls(self) -> t.List[Call]:
        """undefined and derived calls, in source order"""
        return sorted(self.undefined + self.derived, key=lambda call: (call.node.lineno, call.node.col_offset))


#
# Finder:
#

class Finder(ast.NodeVisitor):
    def __init__(self, model: TypeModel, source_file: SourceFile) -> None:
        super().__init__()
        self.model = model
        self.source_file = source_file
        self.found = FoundCalls()
        self.scope: BaseScope = model.module_scope_of_file(source_file)
        self.opt_class_type: t.Optional[types.NamedType] = None

    def find(self) -> FoundCalls:
        self.visit(self.source_file.tree)
        return self.found

    #
    # Scopes:
    #

    def visit_ClassDef(self, node: ast.ClassDef):
        for expr in node.decorator_list + node.bases + [keyword.value for keyword in node.keywords]:
            self.visit(expr)
        outer_class_type = self.opt_class_type
        if self.scope is self.scope.module_scope:
            self.opt_class_type = types.NamedType.get(self.source_file.module_name, node.name)
        else:
            self.opt_class_type = None
        for stmt in node.body:
            self.visit(stmt)
        self.opt_class_type = outer_class_type

    def visit_FunctionDef(self, node: t.Union[ast.FunctionDef, ast.AsyncFunctionDef]):
        for expr in node.decorator_list + node.args.defaults + [d for d in node.args.kw_defaults if d is not None]:
            self.visit(expr)
        outer_scope, outer_class_type = self.scope, self.opt_class_type
        self.scope = self.model.function_scope(node, outer_scope, outer_class_type)
        self.opt_class_type = None
        for stmt in node.body:
            self.visit(stmt)
        self.scope, self.opt_class_type = outer_scope, outer_class_type

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda):
        for expr in node.args.defaults:
            self.visit(expr)
        outer_scope = self.scope
        self.scope = self.model.function_scope(node, outer_scope)
        self.visit(node.body)
        self.scope = outer_scope

    def visit_comprehension_node(self, node: t.Union[ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp]):
        outer_scope = self.scope
        self.scope = self.model.comprehension_scope(node, outer_scope)
        for generator in node.generators:
            self.visit(generator.iter)
            for if_expr in generator.ifs:
                self.visit(if_expr)
        if isinstance(node, ast.DictComp):
            self.visit(node.key)
            self.visit(node.value)
        else:
            self.visit(node.elt)
        self.scope = outer_scope

    visit_ListComp = visit_comprehension_node
    visit_SetComp = visit_comprehension_node
    visit_DictComp = visit_comprehension_node
    visit_GeneratorExp = visit_comprehension_node

    #
    # Calls:
    #

    def visit_Call(self, node: ast.Call):
        self.classify(node)
        self.generic_visit(node)

    def classify(self, node: ast.Call):
        func = node.func

        if isinstance(func, ast.Name):
            opt_symbol = self.model.lookup(self.scope, func.id)
            if opt_symbol is None:
                self.found.undefined.append(self.new_call(node, func.id, func.id))
            elif opt_symbol.kind == SymbolKind.Builtin:
                pass
            elif opt_symbol.kind == SymbolKind.Import and self.is_derived_module(opt_symbol.opt_module_name):
                assert opt_symbol.opt_target_name is not None
                self.found.derived.append(self.new_call(node, func.id, opt_symbol.opt_target_name))
            else:
                self.found.user_func_names.add(func.id)

        elif isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name):
            opt_symbol = self.model.lookup(self.scope, func.value.id)
            if opt_symbol is not None and opt_symbol.kind == SymbolKind.Module:
                if self.is_derived_module(opt_symbol.opt_module_name):
                    self.found.derived.append(self.new_call(node, func.attr, func.attr, is_attribute=True))

    def new_call(self, node: ast.Call, local_name: str, func_name: str, is_attribute: bool = False) -> Call:
        return Call(self.source_file, node, local_name, func_name, self.arg_types_of(node), is_attribute)

    def arg_types_of(self, node: ast.Call) -> t.Optional[t.Tuple[types.BaseType, ...]]:
        if node.keywords:
            return None
        arg_types = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                return None
            opt_arg_type = self.model.type_of(arg, self.scope)
            if opt_arg_type is None:
                return None
            arg_types.append(opt_arg_type)
        return tuple(arg_types)

    def is_derived_module(self, opt_module_name: t.Optional[str]) -> bool:
        return opt_module_name is not None and self.model.source_set.is_derived_module(opt_module_name)


def find_calls(model: TypeModel, source_file: SourceFile) -> FoundCalls:
    return Finder(model, source_file).find()
