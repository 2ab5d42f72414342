"""
Caller rewriting.
When a call site has to use a different name than it asked for (autoname, dedup), the caller's source is
rewritten with libcst, which keeps every other byte of the file (comments, formatting) as it was.
"""

import logging
import typing as t

import libcst as cst
from libcst import helpers as cst_helpers
from libcst.metadata import MetadataWrapper, PositionProvider

logger = logging.getLogger(__name__)


class Rename(object):
    def __init__(
        self,
        line: int,
        column: int,
        local_name: str,
        func_name: str,
        new_name: str,
        is_attribute: bool,
        is_imported: bool
    ) -> None:
        super().__init__()
        self.line = line
        self.column = column
        self.local_name = local_name
        self.func_name = func_name
        self.new_name = new_name
        self.is_attribute = is_attribute
        self.is_imported = is_imported

    @property
    def is_aliased(self) -> bool:
        return self.local_name != self.func_name

    @property
    def position(self) -> t.Tuple[int, int]:
        return self.line, self.column


#
# Transformers:
#

class CallRenamer(cst.CSTTransformer):
    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(self, renames: t.Sequence[Rename]) -> None:
        super().__init__()
        # calls through an 'import ... as alias' keep the alias; only the import changes
        self.renames = {rename.position: rename for rename in renames if not rename.is_aliased}
        self.applied: t.List[Rename] = []

    def leave_Call(self, original_node: cst.Call, updated_node: cst.Call) -> cst.BaseExpression:
        position = self.get_metadata(PositionProvider, original_node).start
        opt_rename = self.renames.get((position.line, position.column))
        if opt_rename is None:
            return updated_node

        func = updated_node.func
        if isinstance(func, cst.Name) and func.value == opt_rename.local_name:
            self.applied.append(opt_rename)
            return updated_node.with_changes(func=func.with_changes(value=opt_rename.new_name))
        if isinstance(func, cst.Attribute) and func.attr.value == opt_rename.local_name:
            self.applied.append(opt_rename)
            return updated_node.with_changes(func=func.with_changes(attr=cst.Name(opt_rename.new_name)))
        logger.warning(f"could not find the call to {opt_rename.local_name} at line {opt_rename.line}")
        return updated_node


class NameCollector(cst.CSTVisitor):
    """Collects every identifier used outside of import statements."""

    def __init__(self) -> None:
        super().__init__()
        self.names: t.Set[str] = set()

    def visit_Import(self, node: cst.Import) -> bool:
        return False

    def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
        return False

    def visit_Name(self, node: cst.Name):
        self.names.add(node.value)


class DerivedImportRewriter(cst.CSTTransformer):
    """
    Updates 'from <derived module> import ...' statements:
    - aliased imports of renamed functions import the new name under the same alias
    - names that no call uses anymore are dropped, names that calls now need are added
    """

    def __init__(
        self,
        package_name: str,
        derived_module_name: str,
        alias_renames: t.Dict[t.Tuple[str, str], str],
        stale_names: t.Set[str],
        needed_names: t.Sequence[str]
    ) -> None:
        super().__init__()
        self.package_name = package_name
        self.derived_module_name = derived_module_name
        self.alias_renames = alias_renames
        self.stale_names = stale_names
        self.missing_names = list(needed_names)

    def is_derived_import(self, node: cst.ImportFrom) -> bool:
        module_name = cst_helpers.get_absolute_module_from_package_for_import(self.package_name or None, node)
        return module_name == self.derived_module_name

    def leave_ImportFrom(
        self,
        original_node: cst.ImportFrom,
        updated_node: cst.ImportFrom
    ) -> t.Union[cst.BaseSmallStatement, cst.RemovalSentinel]:
        if isinstance(updated_node.names, cst.ImportStar) or not self.is_derived_import(updated_node):
            return updated_node

        is_changed = False
        aliases = []
        for alias in updated_node.names:
            name = cst_helpers.get_full_name_for_node(alias.name)
            opt_asname = alias.evaluated_alias
            if opt_asname is not None and (name, opt_asname) in self.alias_renames:
                alias = alias.with_changes(name=cst.Name(self.alias_renames[(name, opt_asname)]))
                is_changed = True
            elif opt_asname is None and name in self.stale_names:
                is_changed = True
                continue
            if opt_asname is None and name in self.missing_names:
                self.missing_names.remove(name)
            aliases.append(alias)

        for name in list(self.missing_names):
            aliases.append(cst.ImportAlias(name=cst.Name(name)))
            self.missing_names.remove(name)
            is_changed = True

        if not is_changed:
            return updated_node
        if not aliases:
            return cst.RemovalSentinel.REMOVE
        aliases = [alias.with_changes(comma=cst.MaybeSentinel.DEFAULT) for alias in aliases]
        return updated_node.with_changes(names=aliases)

    def leave_Module(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
        if not self.missing_names:
            return updated_node

        # no import from the derived module was found: add one after the leading imports
        derived_leaf = self.derived_module_name.rpartition('.')[2]
        if self.package_name:
            statement_text = f"from .{derived_leaf} import {', '.join(self.missing_names)}\n"
        else:
            statement_text = f"from {derived_leaf} import {', '.join(self.missing_names)}\n"
        statement = cst.parse_statement(statement_text)
        self.missing_names = []

        body = list(updated_node.body)
        insert_index = 0
        for index, stmt in enumerate(body):
            if is_import_line(stmt) or (index == 0 and is_docstring_line(stmt)):
                insert_index = index + 1
            else:
                break
        body.insert(insert_index, statement)
        return updated_node.with_changes(body=body)


#
# Entry point:
#

def rewrite_source(
    text: str,
    package_name: str,
    derived_module_name: str,
    renames: t.Sequence[Rename],
    needed_names: t.Iterable[str] = ()
) -> str:
    """
    Applies 'renames' to the calls of one source file and keeps its imports from the derived module consistent.
    'needed_names' are functions called by bare name that must be imported even if no call was renamed.
    """

    module = cst.parse_module(text)

    call_renamer = CallRenamer(renames)
    module = MetadataWrapper(module).visit(call_renamer)

    name_collector = NameCollector()
    module.visit(name_collector)
    used_names = name_collector.names

    alias_renames = {
        (rename.func_name, rename.local_name): rename.new_name
        for rename in renames
        if rename.is_aliased and rename.is_imported
    }
    imported_renames = [rename for rename in renames if rename.is_imported and not rename.is_aliased]
    stale_names = {rename.func_name for rename in imported_renames if rename.func_name not in used_names}

    added_names = []
    for name in [rename.new_name for rename in imported_renames] + list(needed_names):
        if name not in added_names:
            added_names.append(name)

    import_rewriter = DerivedImportRewriter(
        package_name, derived_module_name, alias_renames, stale_names, added_names
    )
    module = module.visit(import_rewriter)
    return module.code


def is_import_line(stmt: cst.CSTNode) -> bool:
    return isinstance(stmt, cst.SimpleStatementLine) and all(
        isinstance(small_stmt, (cst.Import, cst.ImportFrom)) for small_stmt in stmt.body
    )


def is_docstring_line(stmt: cst.CSTNode) -> bool:
    return (
        isinstance(stmt, cst.SimpleStatementLine) and
        len(stmt.body) == 1 and
        isinstance(stmt.body[0], cst.Expr) and
        isinstance(stmt.body[0].value, (cst.SimpleString, cst.ConcatenatedString))
    )
