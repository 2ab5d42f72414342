"""
Field access for generated code.
A `Place` is somewhere a generated statement reads a value from or writes a value to. Aggregates whose fields
cannot all be reached with plain attribute syntax route *every* field access through the low-level helper pair
(see `printer.FIELD_HELPERS`).
"""

import abc
import typing as t

from .. import types
from ..typer import TypeModel
from ..excepts import UnsupportedTypeError
from .typesmap import TypesMap
from .printer import FIELD_GET_HELPER, FIELD_SET_HELPER


#
# Places:
#

class Place(object, metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def get(self) -> str:
        pass

    @abc.abstractmethod
    def get_or_none(self) -> t.Optional[str]:
        """
        An expression for the value currently stored here, or None (the Python value) if nothing can be stored yet.
        """

    @abc.abstractmethod
    def set(self, value: str) -> str:
        pass


class LocalPlace(Place):
    def __init__(self, name: str) -> None:
        super().__init__()
        self.name = name

    def get(self) -> str:
        return self.name

    def get_or_none(self) -> t.Optional[str]:
        return self.name

    def set(self, value: str) -> str:
        return f"{self.name} = {value}"


class ItemPlace(Place):
    def __init__(self, container: str, key: str, exists: bool) -> None:
        super().__init__()
        self.container = container
        self.key = key
        self.exists = exists

    def get(self) -> str:
        return f"{self.container}[{self.key}]"

    def get_or_none(self) -> t.Optional[str]:
        # list slots are resized before they are filled; dict entries are always fresh
        return self.get() if self.exists else None

    def set(self, value: str) -> str:
        return f"{self.container}[{self.key}] = {value}"


class AttrPlace(Place):
    def __init__(self, obj: str, attr_name: str) -> None:
        super().__init__()
        self.obj = obj
        self.attr_name = attr_name

    def get(self) -> str:
        return f"{self.obj}.{self.attr_name}"

    def get_or_none(self) -> t.Optional[str]:
        return f"getattr({self.obj}, {self.attr_name!r}, None)"

    def set(self, value: str) -> str:
        return f"{self.obj}.{self.attr_name} = {value}"


class LowLevelPlace(Place):
    def __init__(self, obj: str, attr_name: str) -> None:
        super().__init__()
        self.obj = obj
        self.attr_name = attr_name

    def get(self) -> str:
        return f"{FIELD_GET_HELPER}({self.obj}, {self.attr_name!r})"

    def get_or_none(self) -> t.Optional[str]:
        return f"{FIELD_GET_HELPER}({self.obj}, {self.attr_name!r}, None)"

    def set(self, value: str) -> str:
        return f"{FIELD_SET_HELPER}({self.obj}, {self.attr_name!r}, {value})"


#
# Fields:
#

class Fields(object):
    """
    The fields of one aggregate, as one operation sees them.
    """

    def __init__(self, model: TypeModel, typesmap: TypesMap, named: types.NamedType, for_write: bool) -> None:
        super().__init__()
        opt_info = model.named_info(named)
        if opt_info is None or not opt_info.is_aggregate:
            raise UnsupportedTypeError(f"{named} is not a class with annotated fields")
        self.named = named
        self.info = opt_info
        self.fields = opt_info.fields
        for field in self.fields:
            if field.opt_type is None:
                raise UnsupportedTypeError(
                    f"field {field.name} of {named} has no type annotation that can be resolved"
                )

        is_external = typesmap.is_external(named)
        self.is_low_level = (
            any(field.is_private and is_external for field in self.fields) or
            (for_write and opt_info.forbids_setattr)
        )

    def place(self, field: types.Field, obj: str) -> Place:
        if self.is_low_level:
            return LowLevelPlace(obj, field.attr_name)
        else:
            return AttrPlace(obj, field.attr_name)

    def field_type(self, field: types.Field) -> types.BaseType:
        assert field.opt_type is not None
        return field.opt_type
