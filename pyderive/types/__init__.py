"""
Types
- a closed set of shapes, see `TypeKind`
- structural types are hash-consed through their `get` constructors (i.e. t1 == t2 <=> id(t1) == id(t2))
- named types are nominal: identified by (module name, class name); the rest of their description
  (fields, methods, underlying shape) lives in the type model that loaded them.
"""

import abc
import enum
import typing as t


class TypeKind(enum.Enum):
    Basic = enum.auto()
    Pointer = enum.auto()
    FixedArray = enum.auto()
    Sequence = enum.auto()
    Map = enum.auto()
    Set = enum.auto()
    Named = enum.auto()
    Aggregate = enum.auto()
    Func = enum.auto()
    Tuple = enum.auto()
    Opaque = enum.auto()


class BasicKind(enum.Enum):
    Bool = "bool"
    Int = "int"
    Float = "float"
    Complex = "complex"
    Str = "str"
    Bytes = "bytes"
    UntypedNil = "None"


class BaseType(object, metaclass=abc.ABCMeta):
    id_counter = 0

    def __init__(self) -> None:
        super().__init__()
        self.id = BaseType.id_counter
        BaseType.id_counter += 1

    @abc.abstractmethod
    def __str__(self) -> str:
        pass

    def __repr__(self) -> str:
        return str(self)

    def __eq__(self, o: object) -> bool:
        return self is o

    def __hash__(self) -> int:
        return id(self)

    @classmethod
    @abc.abstractmethod
    def kind(cls) -> TypeKind:
        pass

    @property
    def is_nilable(self) -> bool:
        return self.kind() in (TypeKind.Pointer, TypeKind.Sequence, TypeKind.Map, TypeKind.Set)


#
# Basic types:
#

class BasicType(BaseType):
    cache: t.Dict[BasicKind, "BasicType"] = {}

    def __init__(self, basic_kind: BasicKind) -> None:
        super().__init__()
        self.basic_kind = basic_kind

    def __str__(self) -> str:
        return self.basic_kind.value

    @classmethod
    def kind(cls):
        return TypeKind.Basic

    @staticmethod
    def get(basic_kind: BasicKind) -> "BasicType":
        opt_cached = BasicType.cache.get(basic_kind)
        if opt_cached is None:
            opt_cached = BasicType.cache[basic_kind] = BasicType(basic_kind)
        return opt_cached

    @staticmethod
    def of_name(name: str) -> t.Optional["BasicType"]:
        for basic_kind in BasicKind:
            if basic_kind.value == name and basic_kind != BasicKind.UntypedNil:
                return BasicType.get(basic_kind)
        return None


def untyped_nil() -> BasicType:
    return BasicType.get(BasicKind.UntypedNil)


#
# Composite types:
#

class PointerType(BaseType):
    cache: t.Dict[BaseType, "PointerType"] = {}

    def __init__(self, elem_type: BaseType) -> None:
        super().__init__()
        self.elem_type = elem_type

    def __str__(self) -> str:
        return f"{self.elem_type} | None"

    @classmethod
    def kind(cls):
        return TypeKind.Pointer

    @staticmethod
    def get(elem_type: BaseType) -> "PointerType":
        opt_cached = PointerType.cache.get(elem_type)
        if opt_cached is None:
            opt_cached = PointerType.cache[elem_type] = PointerType(elem_type)
        return opt_cached


class FixedArrayType(BaseType):
    cache: t.Dict[t.Tuple[int, BaseType], "FixedArrayType"] = {}

    def __init__(self, length: int, elem_type: BaseType) -> None:
        super().__init__()
        assert length >= 1
        self.length = length
        self.elem_type = elem_type

    def __str__(self) -> str:
        return f"tuple[{', '.join([str(self.elem_type)] * self.length)}]"

    @classmethod
    def kind(cls):
        return TypeKind.FixedArray

    @staticmethod
    def get(length: int, elem_type: BaseType) -> "FixedArrayType":
        key = (length, elem_type)
        opt_cached = FixedArrayType.cache.get(key)
        if opt_cached is None:
            opt_cached = FixedArrayType.cache[key] = FixedArrayType(length, elem_type)
        return opt_cached


class SequenceType(BaseType):
    cache: t.Dict[BaseType, "SequenceType"] = {}

    def __init__(self, elem_type: BaseType) -> None:
        super().__init__()
        self.elem_type = elem_type

    def __str__(self) -> str:
        return f"list[{self.elem_type}]"

    @classmethod
    def kind(cls):
        return TypeKind.Sequence

    @staticmethod
    def get(elem_type: BaseType) -> "SequenceType":
        opt_cached = SequenceType.cache.get(elem_type)
        if opt_cached is None:
            opt_cached = SequenceType.cache[elem_type] = SequenceType(elem_type)
        return opt_cached


class MapType(BaseType):
    cache: t.Dict[t.Tuple[BaseType, BaseType], "MapType"] = {}

    def __init__(self, key_type: BaseType, elem_type: BaseType) -> None:
        super().__init__()
        self.key_type = key_type
        self.elem_type = elem_type

    def __str__(self) -> str:
        return f"dict[{self.key_type}, {self.elem_type}]"

    @classmethod
    def kind(cls):
        return TypeKind.Map

    @staticmethod
    def get(key_type: BaseType, elem_type: BaseType) -> "MapType":
        key = (key_type, elem_type)
        opt_cached = MapType.cache.get(key)
        if opt_cached is None:
            opt_cached = MapType.cache[key] = MapType(key_type, elem_type)
        return opt_cached


class SetType(BaseType):
    cache: t.Dict[BaseType, "SetType"] = {}

    def __init__(self, elem_type: BaseType) -> None:
        super().__init__()
        self.elem_type = elem_type

    def __str__(self) -> str:
        return f"set[{self.elem_type}]"

    @classmethod
    def kind(cls):
        return TypeKind.Set

    @staticmethod
    def get(elem_type: BaseType) -> "SetType":
        opt_cached = SetType.cache.get(elem_type)
        if opt_cached is None:
            opt_cached = SetType.cache[elem_type] = SetType(elem_type)
        return opt_cached


class FuncType(BaseType):
    cache: t.Dict[t.Tuple[t.Tuple[BaseType, ...], BaseType], "FuncType"] = {}

    def __init__(self, param_types: t.Tuple[BaseType, ...], result_type: BaseType) -> None:
        super().__init__()
        self.param_types = param_types
        self.result_type = result_type

    def __str__(self) -> str:
        params_str = ', '.join(map(str, self.param_types))
        return f"Callable[[{params_str}], {self.result_type}]"

    @classmethod
    def kind(cls):
        return TypeKind.Func

    @staticmethod
    def get(param_types: t.Iterable[BaseType], result_type: BaseType) -> "FuncType":
        key = (tuple(param_types), result_type)
        opt_cached = FuncType.cache.get(key)
        if opt_cached is None:
            opt_cached = FuncType.cache[key] = FuncType(*key)
        return opt_cached


class TupleType(BaseType):
    """
    Heterogeneous or variadic tuples: Python has them, but no structural operation accepts them.
    """

    cache: t.Dict[t.Tuple[t.Tuple[BaseType, ...], bool], "TupleType"] = {}

    def __init__(self, elem_types: t.Tuple[BaseType, ...], is_variadic: bool) -> None:
        super().__init__()
        self.elem_types = elem_types
        self.is_variadic = is_variadic

    def __str__(self) -> str:
        if self.is_variadic:
            return f"tuple[{self.elem_types[0]}, ...]"
        return f"tuple[{', '.join(map(str, self.elem_types))}]"

    @classmethod
    def kind(cls):
        return TypeKind.Tuple

    @staticmethod
    def get(elem_types: t.Iterable[BaseType], is_variadic: bool = False) -> "TupleType":
        key = (tuple(elem_types), is_variadic)
        opt_cached = TupleType.cache.get(key)
        if opt_cached is None:
            opt_cached = TupleType.cache[key] = TupleType(*key)
        return opt_cached


class OpaqueType(BaseType):
    """
    Anything the type model can name but not look inside: `Any`, `object`, protocols, external classes.
    """

    cache: t.Dict[str, "OpaqueType"] = {}

    def __init__(self, desc: str) -> None:
        super().__init__()
        self.desc = desc

    def __str__(self) -> str:
        return self.desc

    @classmethod
    def kind(cls):
        return TypeKind.Opaque

    @staticmethod
    def get(desc: str) -> "OpaqueType":
        opt_cached = OpaqueType.cache.get(desc)
        if opt_cached is None:
            opt_cached = OpaqueType.cache[desc] = OpaqueType(desc)
        return opt_cached


#
# Named types:
#

class NamedType(BaseType):
    cache: t.Dict[t.Tuple[str, str], "NamedType"] = {}

    def __init__(self, module_name: str, name: str) -> None:
        super().__init__()
        self.module_name = module_name
        self.name = name

    def __str__(self) -> str:
        return f"{self.module_name}.{self.name}"

    @classmethod
    def kind(cls):
        return TypeKind.Named

    @staticmethod
    def get(module_name: str, name: str) -> "NamedType":
        key = (module_name, name)
        opt_cached = NamedType.cache.get(key)
        if opt_cached is None:
            opt_cached = NamedType.cache[key] = NamedType(module_name, name)
        return opt_cached


class Field(object):
    def __init__(self, name: str, index: int, opt_type: t.Optional[BaseType], attr_name: str) -> None:
        super().__init__()
        self.name = name
        self.index = index
        self.opt_type = opt_type
        self.attr_name = attr_name

    @property
    def is_private(self) -> bool:
        return self.name.startswith('_')

    def __str__(self) -> str:
        return f"{self.name}: {self.opt_type}"


class AggregateType(BaseType):
    """
    The underlying shape of a class: its annotated fields in declaration order.
    Not hash-consed: only ever reached through the named type that owns it.
    """

    def __init__(self, fields: t.Sequence[Field]) -> None:
        super().__init__()
        self.fields = tuple(fields)

    def __str__(self) -> str:
        return "{" + "; ".join(map(str, self.fields)) + "}"

    @classmethod
    def kind(cls):
        return TypeKind.Aggregate
