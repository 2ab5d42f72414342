"""
Shape predicates shared by the generators.
All of them are co-inductive: a named type is assumed to satisfy a predicate while its own fields are being
checked, so recursive classes terminate.
"""

import typing as t

from .. import types
from ..typer import TypeModel, NamedInfo

UNORDERED_BASIC_KINDS = (types.BasicKind.Complex, types.BasicKind.UntypedNil)


class Shapes(object):
    def __init__(self, model: TypeModel) -> None:
        super().__init__()
        self.model = model
        self.memo: t.Dict[t.Tuple[str, types.BaseType], bool] = {}
        # keys being computed right now: assumed true until their computation finishes
        self.assumed: t.Set[t.Tuple[str, types.BaseType]] = set()
        # true results that relied on an assumption: kept only if the outermost check is true too
        self.provisional: t.Set[t.Tuple[str, types.BaseType]] = set()

    #
    # Predicates:
    #

    def is_comparable(self, typ: types.BaseType) -> bool:
        """values of this type compare structurally with '=='"""
        return self.check("comparable", typ, self.compute_comparable)

    def can_copy(self, typ: types.BaseType) -> bool:
        """values of this type are immutable, so copies may share them"""
        return self.check("copyable", typ, self.compute_can_copy)

    def is_orderable(self, typ: types.BaseType) -> bool:
        """values of this type order structurally with '<'"""
        return self.check("orderable", typ, self.compute_orderable)

    def is_hashable(self, typ: types.BaseType) -> bool:
        return self.check("hashable", typ, self.compute_hashable)

    def check(self, purpose: str, typ: types.BaseType, compute: t.Callable[[types.BaseType], bool]) -> bool:
        key = (purpose, typ)
        opt_result = self.memo.get(key)
        if opt_result is not None:
            return opt_result
        if key in self.assumed:
            return True

        is_outermost = not self.assumed
        self.assumed.add(key)
        try:
            result = compute(typ)
        finally:
            self.assumed.remove(key)

        if not result:
            # false never depends on an assumption
            self.memo[key] = False
        elif is_outermost:
            self.memo[key] = True
            for provisional_key in self.provisional:
                self.memo[provisional_key] = True
        else:
            self.provisional.add(key)
        if is_outermost:
            self.provisional.clear()
        return result

    #
    # Implementations:
    #

    def compute_comparable(self, typ: types.BaseType) -> bool:
        if isinstance(typ, types.BasicType):
            return typ.basic_kind != types.BasicKind.UntypedNil
        if isinstance(typ, (types.PointerType, types.FixedArrayType)):
            return self.is_comparable(typ.elem_type)
        if isinstance(typ, types.NamedType):
            info = self.model.named_info(typ)
            if info is None:
                return False
            if not info.is_class:
                return self.is_comparable(info.underlying)
            return info.is_dataclass and info.has_eq and self.all_fields(info, self.is_comparable)
        return False

    def compute_can_copy(self, typ: types.BaseType) -> bool:
        if isinstance(typ, types.BasicType):
            return True
        if isinstance(typ, (types.PointerType, types.FixedArrayType)):
            return self.can_copy(typ.elem_type)
        if isinstance(typ, types.NamedType):
            info = self.model.named_info(typ)
            if info is None:
                return False
            if not info.is_class:
                return self.can_copy(info.underlying)
            return info.is_dataclass and info.is_frozen and self.all_fields(info, self.can_copy)
        return False

    def compute_orderable(self, typ: types.BaseType) -> bool:
        if isinstance(typ, types.BasicType):
            return typ.basic_kind not in UNORDERED_BASIC_KINDS
        if isinstance(typ, types.FixedArrayType):
            return self.is_orderable(typ.elem_type)
        if isinstance(typ, types.NamedType):
            info = self.model.named_info(typ)
            if info is None:
                return False
            if not info.is_class:
                return self.is_orderable(info.underlying)
            return info.is_dataclass and info.has_order and self.all_fields(info, self.is_orderable)
        return False

    def compute_hashable(self, typ: types.BaseType) -> bool:
        if isinstance(typ, types.BasicType):
            return True
        if isinstance(typ, (types.PointerType, types.FixedArrayType)):
            return self.is_hashable(typ.elem_type)
        if isinstance(typ, types.NamedType):
            info = self.model.named_info(typ)
            if info is None:
                return False
            if not info.is_class:
                return self.is_hashable(info.underlying)
            if info.is_dataclass:
                if info.has_unsafe_hash or (info.has_eq and info.is_frozen):
                    return not info.is_aggregate or self.all_fields(info, self.is_hashable)
                # a generated '__eq__' without '__hash__' makes instances unhashable
                return not info.has_eq or info.has_method('__hash__')
            return info.has_method('__hash__') or not info.has_method('__eq__')
        return False

    @staticmethod
    def all_fields(info: NamedInfo, predicate: t.Callable[[types.BaseType], bool]) -> bool:
        if not info.is_aggregate:
            return False
        return all(field.opt_type is not None and predicate(field.opt_type) for field in info.fields)
