"""
Typer
- binds the identifiers of every loaded module to the syntax that defines them (see `scope`)
- answers type questions about annotations and expressions on demand (see `model`)
"""

from .scope import Symbol, SymbolKind, BaseScope, ModuleScope, FunctionScope, ComprehensionScope
from .model import TypeModel, NamedInfo, MethodInfo

__all__ = [
    'Symbol',
    'SymbolKind',
    'BaseScope',
    'ModuleScope',
    'FunctionScope',
    'ComprehensionScope',
    'TypeModel',
    'NamedInfo',
    'MethodInfo'
]
