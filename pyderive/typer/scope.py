"""
Scopes and symbols.
- every scope maps identifiers to the *syntax* that binds them; the model turns that syntax into types on demand.
- scopes mirror Python's lexical scoping: module, function (incl. lambda), comprehension. Class bodies do not
  enclose their methods.
"""

import ast
import enum
import typing as t

from .. import types
from ..frontend import SourceFile, SourceSet

BUILTIN_NAMES = frozenset([
    'abs', 'all', 'any', 'ascii', 'bin', 'bool', 'bytearray', 'bytes', 'callable', 'chr', 'classmethod',
    'complex', 'delattr', 'dict', 'dir', 'divmod', 'enumerate', 'eval', 'exec', 'filter', 'float', 'format',
    'frozenset', 'getattr', 'globals', 'hasattr', 'hash', 'help', 'hex', 'id', 'input', 'int', 'isinstance',
    'issubclass', 'iter', 'len', 'list', 'locals', 'map', 'max', 'memoryview', 'min', 'next', 'object', 'oct',
    'open', 'ord', 'pow', 'print', 'property', 'range', 'repr', 'reversed', 'round', 'set', 'setattr', 'slice',
    'sorted', 'staticmethod', 'str', 'sum', 'super', 'tuple', 'type', 'vars', 'zip', '__import__',
    'NotImplemented', 'Ellipsis', '__name__', '__file__', '__doc__',
    'BaseException', 'Exception', 'ArithmeticError', 'AssertionError', 'AttributeError', 'EOFError',
    'ImportError', 'IndexError', 'KeyError', 'KeyboardInterrupt', 'LookupError', 'MemoryError',
    'NameError', 'NotImplementedError', 'OSError', 'OverflowError', 'RecursionError', 'RuntimeError',
    'StopIteration', 'SyntaxError', 'SystemExit', 'TypeError', 'ValueError', 'ZeroDivisionError',
])


class SymbolKind(enum.Enum):
    Class = enum.auto()
    Function = enum.auto()
    Variable = enum.auto()
    Parameter = enum.auto()
    NewType = enum.auto()
    Module = enum.auto()
    Import = enum.auto()
    External = enum.auto()
    Builtin = enum.auto()


class Symbol(object):
    def __init__(
        self,
        kind: SymbolKind,
        name: str,
        scope: "BaseScope",
        opt_node: t.Optional[ast.AST] = None,
        opt_annotation: t.Optional[ast.expr] = None,
        opt_value: t.Optional[ast.expr] = None,
        opt_iter: t.Optional[ast.expr] = None,
        opt_unpack_index: t.Optional[int] = None,
        opt_module_name: t.Optional[str] = None,
        opt_target_name: t.Optional[str] = None,
        opt_qualname: t.Optional[str] = None,
        opt_self_type: t.Optional[types.NamedType] = None,
        opt_variadic: t.Optional[str] = None
    ) -> None:
        super().__init__()
        self.kind = kind
        self.name = name
        self.scope = scope
        self.opt_node = opt_node
        self.opt_annotation = opt_annotation
        self.opt_value = opt_value
        self.opt_iter = opt_iter
        self.opt_unpack_index = opt_unpack_index
        self.opt_module_name = opt_module_name
        self.opt_target_name = opt_target_name
        self.opt_qualname = opt_qualname
        self.opt_self_type = opt_self_type
        self.opt_variadic = opt_variadic

    @property
    def is_declaration(self) -> bool:
        return self.opt_annotation is not None or self.kind != SymbolKind.Variable

    def __str__(self) -> str:
        return f"{self.kind.name}({self.name})"


#
# Scopes:
#

class BaseScope(object):
    def __init__(self, opt_parent: t.Optional["BaseScope"]) -> None:
        super().__init__()
        self.opt_parent = opt_parent
        self.symbols: t.Dict[str, Symbol] = {}

    @property
    def module_scope(self) -> "ModuleScope":
        scope = self
        while not isinstance(scope, ModuleScope):
            assert scope.opt_parent is not None
            scope = scope.opt_parent
        return scope

    def bind(self, symbol: Symbol):
        # first binding wins, except that an annotated declaration anywhere fixes a variable's type.
        opt_existing = self.symbols.get(symbol.name)
        if opt_existing is None or (symbol.is_declaration and not opt_existing.is_declaration):
            self.symbols[symbol.name] = symbol

    def lookup(self, name: str) -> t.Optional[Symbol]:
        opt_symbol = self.symbols.get(name)
        if opt_symbol is not None:
            return opt_symbol
        if self.opt_parent is not None:
            return self.opt_parent.lookup(name)
        return None

    #
    # Binding collection shared by modules and functions:
    #

    def collect_statements(self, stmts: t.Sequence[ast.stmt], source_set: SourceSet, source_file: SourceFile):
        for stmt in stmts:
            self.collect_statement(stmt, source_set, source_file)

    def collect_statement(self, stmt: ast.stmt, source_set: SourceSet, source_file: SourceFile):
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            self.bind(Symbol(SymbolKind.Function, stmt.name, self, opt_node=stmt))
        elif isinstance(stmt, ast.ClassDef):
            self.collect_class(stmt, source_file)
        elif isinstance(stmt, ast.AnnAssign):
            if isinstance(stmt.target, ast.Name):
                self.bind(Symbol(
                    SymbolKind.Variable, stmt.target.id, self,
                    opt_node=stmt, opt_annotation=stmt.annotation, opt_value=stmt.value
                ))
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                self.collect_assign_target(target, stmt.value)
        elif isinstance(stmt, (ast.For, ast.AsyncFor)):
            if isinstance(stmt.target, ast.Name):
                self.bind(Symbol(SymbolKind.Variable, stmt.target.id, self, opt_node=stmt, opt_iter=stmt.iter))
            self.collect_statements(stmt.body, source_set, source_file)
            self.collect_statements(stmt.orelse, source_set, source_file)
        elif isinstance(stmt, (ast.While, ast.If)):
            self.collect_statements(stmt.body, source_set, source_file)
            self.collect_statements(stmt.orelse, source_set, source_file)
        elif isinstance(stmt, (ast.With, ast.AsyncWith)):
            for item in stmt.items:
                if isinstance(item.optional_vars, ast.Name):
                    self.bind(Symbol(SymbolKind.Variable, item.optional_vars.id, self, opt_node=stmt))
            self.collect_statements(stmt.body, source_set, source_file)
        elif isinstance(stmt, ast.Try) or stmt.__class__.__name__ == "TryStar":
            self.collect_statements(stmt.body, source_set, source_file)
            for handler in stmt.handlers:
                if handler.name:
                    self.bind(Symbol(SymbolKind.Variable, handler.name, self, opt_node=handler))
                self.collect_statements(handler.body, source_set, source_file)
            self.collect_statements(stmt.orelse, source_set, source_file)
            self.collect_statements(stmt.finalbody, source_set, source_file)
        elif stmt.__class__.__name__ == "Match":
            for match_case in stmt.cases:
                self.collect_statements(match_case.body, source_set, source_file)
        elif isinstance(stmt, ast.Import):
            self.collect_import(stmt)
        elif isinstance(stmt, ast.ImportFrom):
            self.collect_import_from(stmt, source_set, source_file)

    def collect_class(self, stmt: ast.ClassDef, source_file: SourceFile):
        # only module-level classes have a nominal identity the generated module can import.
        self.bind(Symbol(
            SymbolKind.External, stmt.name, self,
            opt_node=stmt, opt_qualname=f"<local>.{stmt.name}"
        ))

    def collect_assign_target(self, target: ast.expr, value: ast.expr):
        if isinstance(target, ast.Name):
            if is_new_type_call(value):
                kind = SymbolKind.NewType
            else:
                kind = SymbolKind.Variable
            self.bind(Symbol(kind, target.id, self, opt_node=value, opt_value=value))
        elif isinstance(target, (ast.Tuple, ast.List)):
            for index, elt in enumerate(target.elts):
                if isinstance(elt, ast.Name):
                    self.bind(Symbol(
                        SymbolKind.Variable, elt.id, self,
                        opt_node=value, opt_value=value, opt_unpack_index=index
                    ))

    def collect_import(self, stmt: ast.Import):
        for alias in stmt.names:
            if alias.asname:
                self.bind(Symbol(SymbolKind.Module, alias.asname, self, opt_node=stmt, opt_module_name=alias.name))
            else:
                # 'import a.b.c' binds 'a'; attribute access walks down the submodules.
                head = alias.name.split('.')[0]
                self.bind(Symbol(SymbolKind.Module, head, self, opt_node=stmt, opt_module_name=head))

    def collect_import_from(self, stmt: ast.ImportFrom, source_set: SourceSet, source_file: SourceFile):
        base_module_name = resolve_relative_module(source_file, stmt.level, stmt.module)
        if base_module_name is None:
            return
        for alias in stmt.names:
            if alias.name == '*':
                self.module_scope.star_module_names.append(base_module_name)
                continue
            local_name = alias.asname or alias.name
            full_name = f"{base_module_name}.{alias.name}" if base_module_name else alias.name
            if source_set.is_derived_module(full_name) or source_set.is_package(base_module_name) and source_set.find_module(full_name) is not None:
                self.bind(Symbol(SymbolKind.Module, local_name, self, opt_node=stmt, opt_module_name=full_name))
            else:
                self.bind(Symbol(
                    SymbolKind.Import, local_name, self,
                    opt_node=stmt, opt_module_name=base_module_name, opt_target_name=alias.name
                ))


class ModuleScope(BaseScope):
    def __init__(self, source_file: SourceFile, source_set: SourceSet) -> None:
        super().__init__(None)
        self.source_file = source_file
        self.star_module_names: t.List[str] = []
        self.collect_statements(source_file.tree.body, source_set, source_file)

    @property
    def module_name(self) -> str:
        return self.source_file.module_name

    def collect_class(self, stmt: ast.ClassDef, source_file: SourceFile):
        self.bind(Symbol(SymbolKind.Class, stmt.name, self, opt_node=stmt))

    def lookup_local(self, name: str) -> t.Optional[Symbol]:
        return self.symbols.get(name)

    def lookup(self, name: str) -> t.Optional[Symbol]:
        opt_symbol = self.symbols.get(name)
        if opt_symbol is not None:
            return opt_symbol
        if name in BUILTIN_NAMES:
            return Symbol(SymbolKind.Builtin, name, self, opt_qualname=f"builtins.{name}")
        return None


class FunctionScope(BaseScope):
    def __init__(
        self,
        node: t.Union[ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda],
        parent: BaseScope,
        source_set: SourceSet,
        source_file: SourceFile,
        opt_class_type: t.Optional[types.NamedType] = None
    ) -> None:
        super().__init__(parent)
        self.node = node
        self.collect_parameters(node.args, opt_class_type)
        if not isinstance(node, ast.Lambda):
            self.collect_statements(node.body, source_set, source_file)

    def collect_parameters(self, args: ast.arguments, opt_class_type: t.Optional[types.NamedType]):
        positional_args = list(args.posonlyargs) + list(args.args)
        is_method = opt_class_type is not None and not self.has_decorator('staticmethod')
        for index, arg in enumerate(positional_args + list(args.kwonlyargs)):
            opt_self_type = None
            if index == 0 and is_method and arg.annotation is None and not self.has_decorator('classmethod'):
                opt_self_type = opt_class_type
            self.bind(Symbol(
                SymbolKind.Parameter, arg.arg, self,
                opt_node=arg, opt_annotation=arg.annotation, opt_self_type=opt_self_type
            ))
        if args.vararg is not None:
            self.bind(Symbol(
                SymbolKind.Parameter, args.vararg.arg, self,
                opt_node=args.vararg, opt_annotation=args.vararg.annotation, opt_variadic="args"
            ))
        if args.kwarg is not None:
            self.bind(Symbol(
                SymbolKind.Parameter, args.kwarg.arg, self,
                opt_node=args.kwarg, opt_annotation=args.kwarg.annotation, opt_variadic="kwargs"
            ))

    def has_decorator(self, name: str) -> bool:
        if isinstance(self.node, ast.Lambda):
            return False
        return any(
            isinstance(decorator, ast.Name) and decorator.id == name
            for decorator in self.node.decorator_list
        )


class ComprehensionScope(BaseScope):
    def __init__(self, node: t.Union[ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp], parent: BaseScope) -> None:
        super().__init__(parent)
        self.node = node
        for generator in node.generators:
            if isinstance(generator.target, ast.Name):
                self.bind(Symbol(
                    SymbolKind.Variable, generator.target.id, self,
                    opt_node=generator, opt_iter=generator.iter
                ))


#
# Helpers:
#

def resolve_relative_module(source_file: SourceFile, level: int, opt_module: t.Optional[str]) -> t.Optional[str]:
    if level == 0:
        return opt_module
    package_parts = source_file.package_name.split('.') if source_file.package_name else []
    if level - 1 > len(package_parts):
        return None
    if level > 1:
        package_parts = package_parts[:len(package_parts) - (level - 1)]
    if opt_module:
        package_parts = package_parts + opt_module.split('.')
    return '.'.join(package_parts)


def is_new_type_call(value: ast.expr) -> bool:
    if not isinstance(value, ast.Call):
        return False
    func = value.func
    if isinstance(func, ast.Name):
        return func.id == "NewType"
    if isinstance(func, ast.Attribute):
        return func.attr == "NewType"
    return False
