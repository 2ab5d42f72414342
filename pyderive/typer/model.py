"""
TypeModel: the read-only type oracle every other component queries.
- resolves annotations into type descriptors (see `pyderive.types`)
- infers the type of expressions from annotations, literals, constructor calls and annotated returns
- describes named types: underlying shape, fields in declaration order, methods, dataclass options
"""

import ast
import logging
import typing as t

from .. import types
from ..frontend import SourceFile, SourceSet
from .scope import (
    Symbol, SymbolKind, BaseScope, ModuleScope, FunctionScope, ComprehensionScope,
    resolve_relative_module
)

logger = logging.getLogger(__name__)

LIST_FORMS = frozenset(['builtins.list', 'typing.List', 'typing.MutableSequence', 'collections.abc.MutableSequence'])
DICT_FORMS = frozenset(['builtins.dict', 'typing.Dict', 'typing.MutableMapping', 'collections.abc.MutableMapping'])
SET_FORMS = frozenset(['builtins.set', 'typing.Set', 'typing.MutableSet', 'collections.abc.MutableSet'])
TUPLE_FORMS = frozenset(['builtins.tuple', 'typing.Tuple'])
CALLABLE_FORMS = frozenset(['typing.Callable', 'collections.abc.Callable'])
OPTIONAL_FORMS = frozenset(['typing.Optional'])
UNION_FORMS = frozenset(['typing.Union'])
PASSTHROUGH_FORMS = frozenset(['typing.Annotated', 'typing.Final'])
CLASSVAR_FORMS = frozenset(['typing.ClassVar', 'dataclasses.InitVar'])
ALIAS_FORMS = frozenset(['typing.TypeAlias'])
DATACLASS_FORMS = frozenset(['dataclasses.dataclass'])
IGNORED_BASE_FORMS = frozenset(['builtins.object', 'typing.Generic'])
INTERFACE_BASE_FORMS = frozenset(['typing.Protocol', 'abc.ABC'])

BUILTIN_RESULT_TYPES = {
    'len': types.BasicKind.Int,
    'hash': types.BasicKind.Int,
    'ord': types.BasicKind.Int,
    'int': types.BasicKind.Int,
    'str': types.BasicKind.Str,
    'repr': types.BasicKind.Str,
    'chr': types.BasicKind.Str,
    'format': types.BasicKind.Str,
    'float': types.BasicKind.Float,
    'complex': types.BasicKind.Complex,
    'bool': types.BasicKind.Bool,
    'isinstance': types.BasicKind.Bool,
    'callable': types.BasicKind.Bool,
    'bytes': types.BasicKind.Bytes,
}

STR_METHOD_RESULT_TYPES = {
    'upper': types.BasicKind.Str, 'lower': types.BasicKind.Str, 'strip': types.BasicKind.Str,
    'lstrip': types.BasicKind.Str, 'rstrip': types.BasicKind.Str, 'replace': types.BasicKind.Str,
    'format': types.BasicKind.Str, 'join': types.BasicKind.Str, 'title': types.BasicKind.Str,
    'capitalize': types.BasicKind.Str, 'startswith': types.BasicKind.Bool, 'endswith': types.BasicKind.Bool,
    'find': types.BasicKind.Int, 'count': types.BasicKind.Int, 'encode': types.BasicKind.Bytes,
}


#
# Named type descriptions:
#

class MethodInfo(object):
    def __init__(self, name: str, node: t.Union[ast.FunctionDef, ast.AsyncFunctionDef], scope: ModuleScope) -> None:
        super().__init__()
        self.name = name
        self.node = node
        self.scope = scope
        decorator_names = [d.id for d in node.decorator_list if isinstance(d, ast.Name)]
        self.is_static = 'staticmethod' in decorator_names
        self.is_class_method = 'classmethod' in decorator_names

    @property
    def param_count(self) -> int:
        """the number of positional parameters after the receiver"""
        all_args = list(self.node.args.posonlyargs) + list(self.node.args.args)
        if self.is_static:
            return len(all_args)
        return max(0, len(all_args) - 1)

    @property
    def opt_returns(self) -> t.Optional[ast.expr]:
        return self.node.returns


class NamedInfo(object):
    def __init__(self, named: types.NamedType, underlying: types.BaseType, opt_node: t.Optional[ast.AST]) -> None:
        super().__init__()
        self.named = named
        self.underlying = underlying
        self.opt_node = opt_node
        self.methods: t.Dict[str, MethodInfo] = {}
        self.base_types: t.List[types.NamedType] = []
        self.is_class = False
        self.is_dataclass = False
        self.is_frozen = False
        self.has_eq = False
        self.has_order = False
        self.has_unsafe_hash = False

    @property
    def is_aggregate(self) -> bool:
        return isinstance(self.underlying, types.AggregateType)

    @property
    def fields(self) -> t.Tuple[types.Field, ...]:
        assert isinstance(self.underlying, types.AggregateType)
        return self.underlying.fields

    def has_method(self, name: str) -> bool:
        return name in self.methods

    @property
    def forbids_setattr(self) -> bool:
        return self.is_frozen or '__setattr__' in self.methods


#
# The model:
#

class TypeModel(object):
    def __init__(self, source_set: SourceSet) -> None:
        super().__init__()
        self.source_set = source_set
        self.module_scopes: t.Dict[str, ModuleScope] = {}
        self.named_infos: t.Dict[types.NamedType, t.Optional[NamedInfo]] = {}
        self.inferring: t.Set[int] = set()

    #
    # Scopes, symbols:
    #

    def module_scope(self, module_name: str) -> t.Optional[ModuleScope]:
        opt_scope = self.module_scopes.get(module_name)
        if opt_scope is None:
            opt_source_file = self.source_set.find_module(module_name)
            if opt_source_file is None:
                return None
            opt_scope = self.module_scopes[module_name] = ModuleScope(opt_source_file, self.source_set)
        return opt_scope

    def module_scope_of_file(self, source_file: SourceFile) -> ModuleScope:
        opt_scope = self.module_scope(source_file.module_name)
        assert opt_scope is not None
        return opt_scope

    def function_scope(
        self,
        node: t.Union[ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda],
        parent: BaseScope,
        opt_class_type: t.Optional[types.NamedType] = None
    ) -> FunctionScope:
        source_file = parent.module_scope.source_file
        return FunctionScope(node, parent, self.source_set, source_file, opt_class_type)

    def comprehension_scope(self, node, parent: BaseScope) -> ComprehensionScope:
        return ComprehensionScope(node, parent)

    def lookup(self, scope: BaseScope, name: str) -> t.Optional[Symbol]:
        opt_symbol = scope.lookup(name)
        if opt_symbol is not None:
            return opt_symbol
        for star_module_name in scope.module_scope.star_module_names:
            opt_star_scope = self.module_scope(star_module_name)
            if opt_star_scope is not None:
                opt_symbol = opt_star_scope.lookup_local(name)
                if opt_symbol is not None:
                    return self.resolve(opt_symbol)
        return None

    def resolve(self, symbol: Symbol, depth: int = 0) -> t.Optional[Symbol]:
        """Follows 'from m import n' chains to the symbol that actually defines 'n'."""

        if symbol.kind != SymbolKind.Import:
            return symbol
        if depth > 32:
            return None
        assert symbol.opt_module_name is not None and symbol.opt_target_name is not None
        return self.member_of_module(symbol.opt_module_name, symbol.opt_target_name, symbol.scope, depth)

    def member_of_module(self, module_name: str, member_name: str, scope: BaseScope, depth: int = 0) -> t.Optional[Symbol]:
        full_name = f"{module_name}.{member_name}" if module_name else member_name
        if self.source_set.is_derived_module(full_name):
            return Symbol(SymbolKind.Module, member_name, scope, opt_module_name=full_name)

        opt_scope = self.module_scope(module_name)
        if opt_scope is None:
            if self.source_set.is_derived_module(module_name):
                # the generated module of this pass does not exist yet
                return None
            return Symbol(
                SymbolKind.External, member_name, scope,
                opt_qualname=normalize_qualname(full_name)
            )

        opt_member = opt_scope.lookup_local(member_name)
        if opt_member is not None:
            return self.resolve(opt_member, depth + 1)
        if self.source_set.find_module(full_name) is not None:
            return Symbol(SymbolKind.Module, member_name, scope, opt_module_name=full_name)
        for star_module_name in opt_scope.star_module_names:
            opt_member = self.member_of_module(star_module_name, member_name, scope, depth + 1)
            if opt_member is not None and opt_member.kind != SymbolKind.External:
                return opt_member
        return None

    def symbol_of_expr(self, expr: ast.expr, scope: BaseScope) -> t.Optional[Symbol]:
        """The symbol a name or dotted module path refers to, if it refers to one."""

        if isinstance(expr, ast.Name):
            opt_symbol = self.lookup(scope, expr.id)
            if opt_symbol is None:
                return None
            return self.resolve(opt_symbol)
        if isinstance(expr, ast.Attribute):
            opt_base = self.symbol_of_expr(expr.value, scope)
            if opt_base is None:
                return None
            if opt_base.kind == SymbolKind.Module:
                assert opt_base.opt_module_name is not None
                return self.member_of_module(opt_base.opt_module_name, expr.attr, scope)
            if opt_base.kind in (SymbolKind.External, SymbolKind.Builtin):
                assert opt_base.opt_qualname is not None
                return Symbol(
                    SymbolKind.External, expr.attr, scope,
                    opt_qualname=normalize_qualname(f"{opt_base.opt_qualname}.{expr.attr}")
                )
        return None

    def qualname_of(self, expr: ast.expr, scope: BaseScope) -> t.Optional[str]:
        opt_symbol = self.symbol_of_expr(expr, scope)
        if opt_symbol is None:
            return None
        if opt_symbol.kind in (SymbolKind.External, SymbolKind.Builtin):
            return opt_symbol.opt_qualname
        return None

    def derived_function(self, scope: BaseScope, name: str) -> t.Optional[Symbol]:
        """
        Functions of the package's generated module are visible to type inference by their bare name,
        even before the caller imports them, so that calls nested in other calls become typeable.
        """

        source_file = scope.module_scope.source_file
        opt_package = self.source_set.package_of_file(source_file)
        if opt_package is None:
            return None
        opt_derived_scope = self.module_scope(opt_package.derived_module_name)
        if opt_derived_scope is None:
            return None
        opt_symbol = opt_derived_scope.lookup_local(name)
        if opt_symbol is not None and opt_symbol.kind == SymbolKind.Function:
            return opt_symbol
        return None

    #
    # Annotations:
    #

    def resolve_annotation(self, node: t.Optional[ast.expr], scope: BaseScope) -> t.Optional[types.BaseType]:
        if node is None:
            return None

        if isinstance(node, ast.Constant):
            if node.value is None:
                return types.untyped_nil()
            if isinstance(node.value, str):
                try:
                    parsed = ast.parse(node.value.strip(), mode='eval')
                except SyntaxError:
                    return None
                return self.resolve_annotation(parsed.body, scope)
            return None

        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            return self.resolve_union([node.left, node.right], scope)

        if isinstance(node, ast.Subscript):
            opt_qualname = self.qualname_of(node.value, scope)
            if opt_qualname is None:
                return None
            if isinstance(node.slice, ast.Tuple):
                arg_nodes = list(node.slice.elts)
            else:
                arg_nodes = [node.slice]
            return self.resolve_generic(opt_qualname, arg_nodes, scope)

        if isinstance(node, (ast.Name, ast.Attribute)):
            opt_symbol = self.symbol_of_expr(node, scope)
            if opt_symbol is None:
                return None
            return self.symbol_as_type(opt_symbol)

        return None

    def resolve_union(self, arg_nodes: t.Sequence[ast.expr], scope: BaseScope) -> t.Optional[types.BaseType]:
        arg_types = []
        for arg_node in arg_nodes:
            opt_arg_type = self.resolve_annotation(arg_node, scope)
            if opt_arg_type is None:
                return None
            arg_types.append(opt_arg_type)
        nil = types.untyped_nil()
        non_nil_types = []
        for arg_type in arg_types:
            if isinstance(arg_type, types.PointerType):
                non_nil_types.append(arg_type.elem_type)
            elif arg_type is not nil:
                non_nil_types.append(arg_type)
        has_nil = len(non_nil_types) < len(arg_types)
        if len(set(non_nil_types)) == 1:
            elem_type = non_nil_types[0]
            return types.PointerType.get(elem_type) if has_nil else elem_type
        return types.OpaqueType.get(' | '.join(map(str, arg_types)))

    def resolve_generic(self, qualname: str, arg_nodes: t.List[ast.expr], scope: BaseScope) -> t.Optional[types.BaseType]:
        if qualname in OPTIONAL_FORMS:
            return self.resolve_union(arg_nodes + [ast.Constant(value=None)], scope)
        if qualname in UNION_FORMS:
            return self.resolve_union(arg_nodes, scope)
        if qualname in PASSTHROUGH_FORMS:
            return self.resolve_annotation(arg_nodes[0], scope)
        if qualname in CLASSVAR_FORMS:
            return None

        if qualname in CALLABLE_FORMS:
            if len(arg_nodes) != 2 or not isinstance(arg_nodes[0], ast.List):
                return types.OpaqueType.get("Callable")
            param_types = []
            for param_node in arg_nodes[0].elts:
                opt_param_type = self.resolve_annotation(param_node, scope)
                if opt_param_type is None:
                    return None
                param_types.append(opt_param_type)
            opt_result_type = self.resolve_annotation(arg_nodes[1], scope)
            if opt_result_type is None:
                return None
            return types.FuncType.get(param_types, opt_result_type)

        arg_types = []
        for arg_node in arg_nodes:
            if isinstance(arg_node, ast.Constant) and arg_node.value is Ellipsis:
                arg_types.append(None)
                continue
            opt_arg_type = self.resolve_annotation(arg_node, scope)
            if opt_arg_type is None:
                return None
            arg_types.append(opt_arg_type)

        if qualname in LIST_FORMS and len(arg_types) == 1:
            return types.SequenceType.get(arg_types[0])
        if qualname in SET_FORMS and len(arg_types) == 1:
            return types.SetType.get(arg_types[0])
        if qualname in DICT_FORMS and len(arg_types) == 2:
            return types.MapType.get(arg_types[0], arg_types[1])
        if qualname in TUPLE_FORMS:
            if len(arg_types) == 2 and arg_types[1] is None:
                return types.TupleType.get([arg_types[0]], is_variadic=True)
            if None in arg_types:
                return None
            if len(set(arg_types)) == 1:
                return types.FixedArrayType.get(len(arg_types), arg_types[0])
            return types.TupleType.get(arg_types)
        return types.OpaqueType.get(qualname)

    def symbol_as_type(self, symbol: Symbol) -> t.Optional[types.BaseType]:
        if symbol.kind == SymbolKind.Class:
            return types.NamedType.get(symbol.scope.module_scope.module_name, symbol.name)
        if symbol.kind == SymbolKind.NewType:
            return types.NamedType.get(symbol.scope.module_scope.module_name, symbol.name)
        if symbol.kind == SymbolKind.Builtin:
            assert symbol.opt_qualname is not None
            opt_basic = types.BasicType.of_name(symbol.name)
            if opt_basic is not None:
                return opt_basic
            return types.OpaqueType.get(symbol.name)
        if symbol.kind == SymbolKind.External:
            assert symbol.opt_qualname is not None
            if symbol.opt_qualname.startswith("builtins."):
                opt_basic = types.BasicType.of_name(symbol.opt_qualname[len("builtins."):])
                if opt_basic is not None:
                    return opt_basic
            return types.OpaqueType.get(symbol.opt_qualname)
        if symbol.kind == SymbolKind.Variable and isinstance(symbol.scope, ModuleScope):
            # type aliases: 'Foo = list[int]' or 'Foo: TypeAlias = list[int]'
            if symbol.opt_value is None:
                return None
            if symbol.opt_annotation is not None:
                if self.qualname_of(symbol.opt_annotation, symbol.scope) not in ALIAS_FORMS:
                    return None
            return self.guarded(symbol, lambda: self.resolve_annotation(symbol.opt_value, symbol.scope))
        return None

    #
    # Expressions:
    #

    def type_of(self, expr: ast.expr, scope: BaseScope) -> t.Optional[types.BaseType]:
        if isinstance(expr, ast.Constant):
            return type_of_constant(expr.value)

        if isinstance(expr, ast.Name):
            opt_symbol = self.lookup(scope, expr.id)
            if opt_symbol is None:
                return None
            opt_symbol = self.resolve(opt_symbol)
            if opt_symbol is None:
                return None
            return self.value_type_of(opt_symbol)

        if isinstance(expr, ast.Attribute):
            opt_symbol = self.symbol_of_expr(expr, scope)
            if opt_symbol is not None:
                return self.value_type_of(opt_symbol)
            opt_base_type = self.type_of(expr.value, scope)
            if opt_base_type is None:
                return None
            return self.attribute_type(opt_base_type, expr.attr)

        if isinstance(expr, ast.Subscript):
            return self.type_of_subscript(expr, scope)

        if isinstance(expr, ast.Call):
            return self.type_of_call(expr, scope)

        if isinstance(expr, (ast.List, ast.Set)):
            opt_elem_type = self.common_type(expr.elts, scope)
            if opt_elem_type is None:
                return None
            if isinstance(expr, ast.List):
                return types.SequenceType.get(opt_elem_type)
            return types.SetType.get(opt_elem_type)

        if isinstance(expr, ast.Tuple):
            elem_types = []
            for elt in expr.elts:
                opt_elt_type = self.type_of(elt, scope)
                if opt_elt_type is None:
                    return None
                elem_types.append(opt_elt_type)
            if not elem_types:
                return None
            if len(set(elem_types)) == 1:
                return types.FixedArrayType.get(len(elem_types), elem_types[0])
            return types.TupleType.get(elem_types)

        if isinstance(expr, ast.Dict):
            if any(key is None for key in expr.keys):
                return None
            opt_key_type = self.common_type(expr.keys, scope)
            opt_value_type = self.common_type(expr.values, scope)
            if opt_key_type is None or opt_value_type is None:
                return None
            return types.MapType.get(opt_key_type, opt_value_type)

        if isinstance(expr, (ast.ListComp, ast.SetComp, ast.GeneratorExp)):
            comp_scope = self.comprehension_scope(expr, scope)
            opt_elt_type = self.type_of(expr.elt, comp_scope)
            if opt_elt_type is None or isinstance(expr, ast.GeneratorExp):
                return None
            if isinstance(expr, ast.ListComp):
                return types.SequenceType.get(opt_elt_type)
            return types.SetType.get(opt_elt_type)

        if isinstance(expr, ast.DictComp):
            comp_scope = self.comprehension_scope(expr, scope)
            opt_key_type = self.type_of(expr.key, comp_scope)
            opt_value_type = self.type_of(expr.value, comp_scope)
            if opt_key_type is None or opt_value_type is None:
                return None
            return types.MapType.get(opt_key_type, opt_value_type)

        if isinstance(expr, ast.BinOp):
            return self.type_of_bin_op(expr, scope)

        if isinstance(expr, ast.UnaryOp):
            if isinstance(expr.op, ast.Not):
                return types.BasicType.get(types.BasicKind.Bool)
            return self.type_of(expr.operand, scope)

        if isinstance(expr, (ast.Compare, ast.BoolOp)):
            if isinstance(expr, ast.BoolOp):
                return self.common_type(expr.values, scope)
            return types.BasicType.get(types.BasicKind.Bool)

        if isinstance(expr, ast.IfExp):
            return self.common_type([expr.body, expr.orelse], scope)

        if isinstance(expr, ast.JoinedStr):
            return types.BasicType.get(types.BasicKind.Str)

        if isinstance(expr, ast.NamedExpr):
            return self.type_of(expr.value, scope)

        return None

    def common_type(self, exprs: t.Sequence[ast.expr], scope: BaseScope) -> t.Optional[types.BaseType]:
        if not exprs:
            return None
        expr_types = set()
        for expr in exprs:
            opt_expr_type = self.type_of(expr, scope)
            if opt_expr_type is None:
                return None
            expr_types.add(opt_expr_type)
        if len(expr_types) == 1:
            return expr_types.pop()
        return None

    def value_type_of(self, symbol: Symbol) -> t.Optional[types.BaseType]:
        if symbol.kind == SymbolKind.Parameter:
            if symbol.opt_self_type is not None:
                return symbol.opt_self_type
            assert symbol.scope.opt_parent is not None
            opt_type = self.resolve_annotation(symbol.opt_annotation, symbol.scope.opt_parent)
            if opt_type is None:
                return None
            if symbol.opt_variadic == "args":
                return types.TupleType.get([opt_type], is_variadic=True)
            if symbol.opt_variadic == "kwargs":
                return types.MapType.get(types.BasicType.get(types.BasicKind.Str), opt_type)
            return opt_type

        if symbol.kind == SymbolKind.Variable:
            return self.guarded(symbol, lambda: self.variable_type(symbol))

        if symbol.kind == SymbolKind.Function:
            return self.function_type(symbol)

        if symbol.kind == SymbolKind.Class:
            return types.OpaqueType.get(f"type[{symbol.name}]")

        if symbol.kind == SymbolKind.Module:
            return types.OpaqueType.get(f"module {symbol.opt_module_name}")

        if symbol.kind in (SymbolKind.External, SymbolKind.Builtin, SymbolKind.NewType):
            return types.OpaqueType.get(symbol.opt_qualname or symbol.name)

        return None

    def variable_type(self, symbol: Symbol) -> t.Optional[types.BaseType]:
        if symbol.opt_annotation is not None:
            return self.resolve_annotation(symbol.opt_annotation, symbol.scope)
        if symbol.opt_iter is not None:
            opt_iter_type = self.type_of(symbol.opt_iter, symbol.scope)
            if opt_iter_type is None:
                return None
            return elem_type_of_iterable(opt_iter_type)
        if symbol.opt_value is not None:
            opt_value_type = self.type_of(symbol.opt_value, symbol.scope)
            if symbol.opt_unpack_index is None or opt_value_type is None:
                return opt_value_type
            if isinstance(opt_value_type, types.FixedArrayType):
                return opt_value_type.elem_type
            if isinstance(opt_value_type, types.TupleType) and not opt_value_type.is_variadic:
                if symbol.opt_unpack_index < len(opt_value_type.elem_types):
                    return opt_value_type.elem_types[symbol.opt_unpack_index]
        return None

    def function_type(self, symbol: Symbol) -> t.Optional[types.BaseType]:
        node = symbol.opt_node
        assert isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
        param_types = []
        for arg in list(node.args.posonlyargs) + list(node.args.args):
            opt_param_type = self.resolve_annotation(arg.annotation, symbol.scope)
            if opt_param_type is None:
                return None
            param_types.append(opt_param_type)
        opt_result_type = self.resolve_annotation(node.returns, symbol.scope)
        if opt_result_type is None:
            return None
        return types.FuncType.get(param_types, opt_result_type)

    def return_type_of(self, node: t.Union[ast.FunctionDef, ast.AsyncFunctionDef], scope: BaseScope) -> t.Optional[types.BaseType]:
        return self.resolve_annotation(node.returns, scope)

    def attribute_type(self, base_type: types.BaseType, attr: str) -> t.Optional[types.BaseType]:
        if isinstance(base_type, types.PointerType):
            base_type = base_type.elem_type
        if not isinstance(base_type, types.NamedType):
            return None
        opt_info = self.named_info(base_type)
        if opt_info is None:
            return None
        if opt_info.is_aggregate:
            for field in opt_info.fields:
                if field.name == attr:
                    return field.opt_type
        return None

    def type_of_subscript(self, expr: ast.Subscript, scope: BaseScope) -> t.Optional[types.BaseType]:
        opt_base_type = self.type_of(expr.value, scope)
        if opt_base_type is None:
            return None
        base_type = self.underlying_of(opt_base_type)
        is_slice = isinstance(expr.slice, ast.Slice)
        if isinstance(base_type, types.SequenceType):
            return opt_base_type if is_slice else base_type.elem_type
        if isinstance(base_type, types.FixedArrayType):
            return None if is_slice else base_type.elem_type
        if isinstance(base_type, types.MapType):
            return base_type.elem_type
        if isinstance(base_type, types.BasicType) and base_type.basic_kind == types.BasicKind.Str:
            return base_type
        return None

    def type_of_call(self, expr: ast.Call, scope: BaseScope) -> t.Optional[types.BaseType]:
        func = expr.func

        opt_symbol = self.symbol_of_expr(func, scope)
        if opt_symbol is None and isinstance(func, ast.Name) and self.lookup(scope, func.id) is None:
            opt_symbol = self.derived_function(scope, func.id)

        if opt_symbol is not None:
            if opt_symbol.kind in (SymbolKind.Class, SymbolKind.NewType):
                return self.symbol_as_type(opt_symbol)
            if opt_symbol.kind == SymbolKind.Function:
                node = opt_symbol.opt_node
                assert isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
                return self.return_type_of(node, opt_symbol.scope)
            if opt_symbol.kind == SymbolKind.Builtin:
                return self.type_of_builtin_call(opt_symbol.name, expr, scope)
            if opt_symbol.kind in (SymbolKind.Variable, SymbolKind.Parameter):
                opt_func_type = self.value_type_of(opt_symbol)
                if isinstance(opt_func_type, types.FuncType):
                    return opt_func_type.result_type
            return None

        if isinstance(func, ast.Attribute):
            opt_receiver_type = self.type_of(func.value, scope)
            if opt_receiver_type is None:
                return None
            return self.type_of_method_call(opt_receiver_type, func.attr)

        return None

    def type_of_builtin_call(self, name: str, expr: ast.Call, scope: BaseScope) -> t.Optional[types.BaseType]:
        opt_basic_kind = BUILTIN_RESULT_TYPES.get(name)
        if opt_basic_kind is not None:
            return types.BasicType.get(opt_basic_kind)
        if len(expr.args) != 1:
            return None
        opt_arg_type = self.type_of(expr.args[0], scope)
        if opt_arg_type is None:
            return None
        if name == 'abs':
            return opt_arg_type
        opt_elem_type = elem_type_of_iterable(self.underlying_of(opt_arg_type))
        if opt_elem_type is None:
            return None
        if name in ('list', 'sorted'):
            return types.SequenceType.get(opt_elem_type)
        if name == 'set':
            return types.SetType.get(opt_elem_type)
        if name in ('min', 'max'):
            return opt_elem_type
        return None

    def type_of_method_call(self, receiver_type: types.BaseType, method_name: str) -> t.Optional[types.BaseType]:
        if isinstance(receiver_type, types.NamedType):
            opt_info = self.named_info(receiver_type)
            if opt_info is not None and method_name in opt_info.methods:
                method = opt_info.methods[method_name]
                return self.resolve_annotation(method.opt_returns, method.scope)
            return None
        if isinstance(receiver_type, types.BasicType) and receiver_type.basic_kind == types.BasicKind.Str:
            if method_name in ('split', 'splitlines'):
                return types.SequenceType.get(receiver_type)
            opt_basic_kind = STR_METHOD_RESULT_TYPES.get(method_name)
            return types.BasicType.get(opt_basic_kind) if opt_basic_kind is not None else None
        if isinstance(receiver_type, (types.SequenceType, types.MapType, types.SetType)):
            if method_name == 'copy':
                return receiver_type
            if isinstance(receiver_type, types.SequenceType) and method_name == 'pop':
                return receiver_type.elem_type
            if isinstance(receiver_type, types.MapType) and method_name == 'get':
                return types.PointerType.get(receiver_type.elem_type)
        return None

    def type_of_bin_op(self, expr: ast.BinOp, scope: BaseScope) -> t.Optional[types.BaseType]:
        opt_left_type = self.type_of(expr.left, scope)
        opt_right_type = self.type_of(expr.right, scope)
        if opt_left_type is None or opt_right_type is None:
            return None
        if opt_left_type is opt_right_type:
            if isinstance(expr.op, ast.Div) and isinstance(opt_left_type, types.BasicType):
                if opt_left_type.basic_kind == types.BasicKind.Int:
                    return types.BasicType.get(types.BasicKind.Float)
            return opt_left_type
        numeric_order = [types.BasicKind.Bool, types.BasicKind.Int, types.BasicKind.Float, types.BasicKind.Complex]
        if isinstance(opt_left_type, types.BasicType) and isinstance(opt_right_type, types.BasicType):
            if opt_left_type.basic_kind in numeric_order and opt_right_type.basic_kind in numeric_order:
                widest = max(
                    numeric_order.index(opt_left_type.basic_kind),
                    numeric_order.index(opt_right_type.basic_kind),
                    numeric_order.index(types.BasicKind.Int)
                )
                return types.BasicType.get(numeric_order[widest])
        return None

    def guarded(self, symbol: Symbol, compute: t.Callable[[], t.Optional[types.BaseType]]) -> t.Optional[types.BaseType]:
        # a variable whose inferred type depends on itself is simply uninferable.
        key = id(symbol)
        if key in self.inferring:
            return None
        self.inferring.add(key)
        try:
            return compute()
        finally:
            self.inferring.discard(key)

    #
    # Named types:
    #

    def named_info(self, named: types.NamedType) -> t.Optional[NamedInfo]:
        if named in self.named_infos:
            return self.named_infos[named]

        # a placeholder guards against cyclic inheritance while this info is being computed
        self.named_infos[named] = None
        opt_info = self.compute_named_info(named)
        self.named_infos[named] = opt_info
        return opt_info

    def compute_named_info(self, named: types.NamedType) -> t.Optional[NamedInfo]:
        opt_scope = self.module_scope(named.module_name)
        if opt_scope is None:
            return None
        opt_symbol = opt_scope.lookup_local(named.name)
        if opt_symbol is None:
            return None

        if opt_symbol.kind == SymbolKind.NewType:
            call = opt_symbol.opt_value
            assert isinstance(call, ast.Call)
            opt_underlying = None
            if len(call.args) == 2:
                opt_underlying = self.resolve_annotation(call.args[1], opt_scope)
            if opt_underlying is None:
                opt_underlying = types.OpaqueType.get(f"unresolved NewType {named}")
            return NamedInfo(named, opt_underlying, call)

        if opt_symbol.kind != SymbolKind.Class:
            return None
        node = opt_symbol.opt_node
        assert isinstance(node, ast.ClassDef)
        return self.compute_class_info(named, node, opt_scope)

    def compute_class_info(self, named: types.NamedType, node: ast.ClassDef, scope: ModuleScope) -> NamedInfo:
        fields: t.Dict[str, types.Field] = {}
        methods: t.Dict[str, MethodInfo] = {}
        opt_opaque_desc = None
        base_types = []

        for base_node in node.bases:
            if isinstance(base_node, ast.Subscript):
                base_node = base_node.value
            opt_base_symbol = self.symbol_of_expr(base_node, scope)
            if opt_base_symbol is not None and opt_base_symbol.kind == SymbolKind.Class:
                base_type = self.symbol_as_type(opt_base_symbol)
                assert isinstance(base_type, types.NamedType)
                opt_base_info = self.named_info(base_type)
                if opt_base_info is None or not opt_base_info.is_aggregate:
                    opt_opaque_desc = f"class {named} derives from unsupported {base_type}"
                    continue
                base_types.append(base_type)
                base_types.extend(opt_base_info.base_types)
                for field in opt_base_info.fields:
                    fields.setdefault(field.name, field)
                for method_name, method in opt_base_info.methods.items():
                    methods.setdefault(method_name, method)
                continue
            opt_qualname = self.qualname_of(base_node, scope)
            if opt_qualname in IGNORED_BASE_FORMS:
                continue
            if opt_qualname in INTERFACE_BASE_FORMS:
                opt_opaque_desc = f"interface {named}"
            else:
                opt_opaque_desc = f"class {named} derives from external {opt_qualname or ast.unparse(base_node)}"

        for stmt in node.body:
            if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                if self.is_class_var(stmt.annotation, scope):
                    continue
                name = stmt.target.id
                opt_field_type = self.resolve_annotation(stmt.annotation, scope)
                index = fields[name].index if name in fields else len(fields)
                fields[name] = types.Field(name, index, opt_field_type, mangle(node.name, name))
            elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                methods[stmt.name] = MethodInfo(stmt.name, stmt, scope)

        if opt_opaque_desc is not None:
            underlying = types.OpaqueType.get(opt_opaque_desc)
        else:
            ordered_fields = sorted(fields.values(), key=lambda field: field.index)
            underlying = types.AggregateType(ordered_fields)

        info = NamedInfo(named, underlying, node)
        info.is_class = True
        info.methods = methods
        info.base_types = base_types
        self.apply_dataclass_options(info, node, scope)
        return info

    def apply_dataclass_options(self, info: NamedInfo, node: ast.ClassDef, scope: ModuleScope):
        for base_type in info.base_types:
            opt_base_info = self.named_info(base_type)
            if opt_base_info is not None and opt_base_info.is_frozen:
                info.is_frozen = True

        for decorator in node.decorator_list:
            decorator_func = decorator.func if isinstance(decorator, ast.Call) else decorator
            if self.qualname_of(decorator_func, scope) not in DATACLASS_FORMS:
                continue
            options = {'eq': True, 'order': False, 'frozen': False, 'unsafe_hash': False}
            if isinstance(decorator, ast.Call):
                for keyword in decorator.keywords:
                    if keyword.arg in options and isinstance(keyword.value, ast.Constant):
                        options[keyword.arg] = bool(keyword.value.value)
            info.is_dataclass = True
            info.is_frozen = info.is_frozen or options['frozen']
            # an explicit '__eq__' in the class body suppresses the generated one
            info.has_eq = options['eq'] and '__eq__' not in [
                stmt.name for stmt in node.body if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef))
            ]
            info.has_order = options['order']
            info.has_unsafe_hash = options['unsafe_hash']

    def is_class_var(self, annotation: ast.expr, scope: ModuleScope) -> bool:
        head = annotation.value if isinstance(annotation, ast.Subscript) else annotation
        return self.qualname_of(head, scope) in CLASSVAR_FORMS

    def underlying_of(self, typ: types.BaseType) -> types.BaseType:
        """Strips NewType layers; classes keep their name (their underlying is an aggregate)."""

        seen = set()
        while isinstance(typ, types.NamedType) and typ not in seen:
            seen.add(typ)
            opt_info = self.named_info(typ)
            if opt_info is None or opt_info.is_class:
                return typ
            typ = opt_info.underlying
        return typ

    #
    # Identity, assignability:
    #

    @staticmethod
    def identical(t1: types.BaseType, t2: types.BaseType) -> bool:
        return t1 is t2

    def assignable_to(self, value_type: types.BaseType, target_type: types.BaseType) -> bool:
        if value_type is target_type:
            return True
        if isinstance(target_type, types.PointerType):
            if value_type is types.untyped_nil():
                return True
            if isinstance(value_type, types.PointerType):
                return self.assignable_to(value_type.elem_type, target_type.elem_type)
            return self.assignable_to(value_type, target_type.elem_type)
        if isinstance(target_type, types.BasicType) and isinstance(value_type, types.BasicType):
            widening = {
                types.BasicKind.Int: [types.BasicKind.Bool],
                types.BasicKind.Float: [types.BasicKind.Bool, types.BasicKind.Int],
                types.BasicKind.Complex: [types.BasicKind.Bool, types.BasicKind.Int, types.BasicKind.Float],
            }
            return value_type.basic_kind in widening.get(target_type.basic_kind, [])
        if isinstance(target_type, types.NamedType) and isinstance(value_type, types.NamedType):
            opt_info = self.named_info(value_type)
            return opt_info is not None and target_type in opt_info.base_types
        return False


#
# Helpers:
#

def type_of_constant(value: object) -> t.Optional[types.BaseType]:
    if value is None:
        return types.untyped_nil()
    # 'bool' before 'int': True is an int too.
    if isinstance(value, bool):
        return types.BasicType.get(types.BasicKind.Bool)
    if isinstance(value, int):
        return types.BasicType.get(types.BasicKind.Int)
    if isinstance(value, float):
        return types.BasicType.get(types.BasicKind.Float)
    if isinstance(value, complex):
        return types.BasicType.get(types.BasicKind.Complex)
    if isinstance(value, str):
        return types.BasicType.get(types.BasicKind.Str)
    if isinstance(value, bytes):
        return types.BasicType.get(types.BasicKind.Bytes)
    return None


def elem_type_of_iterable(typ: types.BaseType) -> t.Optional[types.BaseType]:
    if isinstance(typ, (types.SequenceType, types.SetType, types.FixedArrayType)):
        return typ.elem_type
    if isinstance(typ, types.MapType):
        return typ.key_type
    if isinstance(typ, types.TupleType) and typ.is_variadic:
        return typ.elem_types[0]
    if isinstance(typ, types.BasicType):
        if typ.basic_kind == types.BasicKind.Str:
            return typ
        if typ.basic_kind == types.BasicKind.Bytes:
            return types.BasicType.get(types.BasicKind.Int)
    return None


def mangle(class_name: str, field_name: str) -> str:
    if field_name.startswith('__') and not field_name.endswith('__'):
        return f"_{class_name.lstrip('_')}{field_name}"
    return field_name


def normalize_qualname(qualname: str) -> str:
    if qualname.startswith("typing_extensions."):
        return "typing." + qualname[len("typing_extensions."):]
    return qualname
