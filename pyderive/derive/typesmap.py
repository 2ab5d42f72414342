"""
Naming & memoization registry.
- one `TypesMap` per operation per generated module; all of them share a `NameSpace`
- maps argument-type tuples to function names and tracks which functions still need a body
"""

import logging
import typing as t

from .. import types
from ..core import feedback as fb
from ..types import spelling
from ..excepts import NamingConflictError

logger = logging.getLogger(__name__)

TypeTuple = t.Tuple[types.BaseType, ...]


class NameSpace(object):
    """
    Every identifier that is (or will be) defined by one generated module, plus the names callers already
    use for their own functions.
    """

    def __init__(self, user_func_names: t.Iterable[str] = ()) -> None:
        super().__init__()
        self.user_func_names: t.Set[str] = set(user_func_names)
        self.owners: t.Dict[str, "TypesMap"] = {}

    def is_user_symbol(self, name: str) -> bool:
        return name in self.user_func_names

    def is_taken(self, name: str) -> bool:
        return name in self.owners or name in self.user_func_names

    def claim(self, name: str, owner: "TypesMap"):
        assert not self.is_taken(name)
        self.owners[name] = owner

    def fresh(self, base_name: str) -> str:
        if not self.is_taken(base_name):
            return base_name
        suffix = 2
        while self.is_taken(f"{base_name}_{suffix}"):
            suffix += 1
        return f"{base_name}_{suffix}"


class Record(object):
    def __init__(self, name: str, typs: TypeTuple) -> None:
        super().__init__()
        self.name = name
        self.typs = typs
        self.is_generated = False
        self.opt_origin: t.Optional[fb.ILoc] = None

    def __str__(self) -> str:
        return f"{self.name}({', '.join(map(str, self.typs))})"


class TypesMap(object):
    def __init__(
        self,
        namespace: NameSpace,
        prefix: str,
        package_name: str,
        qualify: spelling.QualifyFn,
        autoname: bool = False,
        dedup: bool = False
    ) -> None:
        super().__init__()
        self.namespace = namespace
        self.prefix = prefix
        self.package_name = package_name
        self.qualify = qualify
        self.autoname = autoname
        self.dedup = dedup
        self.records: t.List[Record] = []
        self.records_by_name: t.Dict[str, Record] = {}
        self.records_by_types: t.Dict[TypeTuple, Record] = {}

    #
    # Reserving, looking up names:
    #

    def set_func_name(self, name: str, *typs: types.BaseType) -> str:
        """
        Reserves 'name' for a call site asking for 'typs', returning the name the call site should use.
        """

        opt_named_record = self.records_by_name.get(name)
        if opt_named_record is not None and opt_named_record.typs == typs:
            return name

        opt_typed_record = self.records_by_types.get(typs)
        if opt_typed_record is not None and self.dedup:
            return opt_typed_record.name

        if opt_named_record is not None or self.namespace.is_taken(name):
            if not self.autoname:
                if opt_named_record is not None:
                    reason = f"it is already used for {self.types_desc(opt_named_record.typs)}"
                elif self.namespace.is_user_symbol(name):
                    reason = "a function with this name is already defined"
                else:
                    reason = "it is already used by another operation"
                raise NamingConflictError(
                    f"cannot use the name {name} for {self.types_desc(typs)}: {reason}"
                )
            if opt_typed_record is not None:
                return opt_typed_record.name
            name = self.namespace.fresh(self.canonical_name(typs))

        self.record(name, typs)
        return name

    def get_func_name(self, *typs: types.BaseType) -> str:
        """
        Returns the name of the function for 'typs', minting a canonical one (and scheduling its generation)
        if no call site asked for these types yet.
        """

        opt_record = self.records_by_types.get(typs)
        if opt_record is not None:
            return opt_record.name
        name = self.namespace.fresh(self.canonical_name(typs))
        self.record(name, typs)
        return name

    def record(self, name: str, typs: TypeTuple):
        record = Record(name, typs)
        self.namespace.claim(name, self)
        self.records.append(record)
        self.records_by_name[name] = record
        self.records_by_types.setdefault(typs, record)
        logger.debug(f"recorded {record}")

    def set_origin(self, name: str, opt_origin: t.Optional[fb.ILoc]):
        record = self.records_by_name[name]
        if record.opt_origin is None:
            record.opt_origin = opt_origin

    def canonical_name(self, typs: TypeTuple) -> str:
        # 'this' and 'that' of the same type are labelled once
        if len(set(typs)) == 1:
            typs = typs[:1]
        return f"{self.prefix}_{spelling.labels_of(typs, self.package_name)}"

    #
    # Generation state:
    #

    def to_generate(self) -> t.List[Record]:
        return [record for record in self.records if not record.is_generated]

    def generating(self, record: Record):
        record.is_generated = True

    def done(self) -> bool:
        return all(record.is_generated for record in self.records)

    #
    # Spelling:
    #

    def type_string(self, typ: types.BaseType) -> str:
        return spelling.type_string(typ, self.qualify)

    def is_external(self, named: types.NamedType) -> bool:
        if not self.package_name:
            return '.' in named.module_name
        return named.module_name != self.package_name and not named.module_name.startswith(self.package_name + '.')

    @staticmethod
    def types_desc(typs: TypeTuple) -> str:
        return f"({', '.join(map(str, typs))})"
