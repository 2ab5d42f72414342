"""
Derive: the machinery shared by every operation.
- `Plugin`: a named operation with a default call-name prefix
- `Generator`: one operation bound to one generated module; accepts call-site requests (`add`) and prints the
  bodies of every function it has been asked for (`generate`)
- `Dependency`: what one generator may ask of another, i.e. the name of the function for some types
"""

import abc
import typing as t

from .. import types
from ..core import feedback as fb
from ..types import spelling
from ..typer import TypeModel, NamedInfo
from ..excepts import RequestError, UnsupportedTypeError
from .typesmap import TypesMap, NameSpace, Record
from .shapes import Shapes
from .fields import Fields, Place, LocalPlace, ItemPlace, AttrPlace, LowLevelPlace
from .printer import Printer, Block


class Dependency(object, metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def get_func_name(self, *typs: types.BaseType) -> str:
        pass


class DeriveContext(object):
    """
    Everything the generators of one generated module share.
    """

    def __init__(self, model: TypeModel, printer: Printer, namespace: NameSpace, package_name: str) -> None:
        super().__init__()
        self.model = model
        self.printer = printer
        self.namespace = namespace
        self.package_name = package_name
        self.shapes = Shapes(model)
        # the call site whose request is being generated, for error messages
        self.opt_origin: t.Optional[fb.ILoc] = None


class Generator(Dependency, metaclass=abc.ABCMeta):
    def __init__(self, ctx: DeriveContext, typesmap: TypesMap, deps: t.Dict[str, Dependency]) -> None:
        super().__init__()
        self.ctx = ctx
        self.typesmap = typesmap
        self.deps = deps

    @property
    def model(self) -> TypeModel:
        return self.ctx.model

    @property
    def printer(self) -> Printer:
        return self.ctx.printer

    @property
    def shapes(self) -> Shapes:
        return self.ctx.shapes

    #
    # Requests:
    #

    def add(self, name: str, typs: t.Sequence[types.BaseType], opt_origin: t.Optional[fb.ILoc] = None) -> str:
        """Validates a call-site request, then reserves a name for it. Returns the name the caller must use."""
        typs = tuple(typs)
        for typ in typs:
            if not spelling.is_spellable(typ):
                raise self.unsupported(name, typ)
        self.validate(name, typs)
        new_name = self.typesmap.set_func_name(name, *typs)
        self.typesmap.set_origin(new_name, opt_origin)
        return new_name

    def get_func_name(self, *typs: types.BaseType) -> str:
        # functions needed by other functions are blamed on the call that started it all
        name = self.typesmap.get_func_name(*typs)
        self.typesmap.set_origin(name, self.ctx.opt_origin)
        return name

    @abc.abstractmethod
    def validate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        """Raises `RequestError` if a call named 'name' cannot be served for arguments of types 'typs'."""

    #
    # Generation:
    #

    def generate_pending(self) -> int:
        pending = self.typesmap.to_generate()
        for record in pending:
            self.typesmap.generating(record)
            self.ctx.opt_origin = record.opt_origin
            self.generate(record.name, record.typs)
        return len(pending)

    def done(self) -> bool:
        return self.typesmap.done()

    @abc.abstractmethod
    def generate(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        pass

    #
    # Helpers for generators:
    #

    def fields_of(self, named: types.NamedType, for_write: bool = False) -> Fields:
        fields = Fields(self.model, self.typesmap, named, for_write)
        if fields.is_low_level:
            self.printer.require_field_helpers()
        return fields

    def class_info(self, typ: types.BaseType) -> t.Optional[NamedInfo]:
        """The description of 'typ' if it is a class (as opposed to a NewType or a structural type)."""
        if not isinstance(typ, types.NamedType):
            return None
        opt_info = self.model.named_info(typ)
        if opt_info is None or not opt_info.is_class:
            return None
        return opt_info

    def user_method(self, typ: types.BaseType, method_name: str, param_count: int) -> t.Optional[str]:
        """The name of a method the user wrote for this operation, if 'typ' is a class that has one."""
        opt_info = self.class_info(typ)
        if opt_info is None:
            return None
        opt_method = opt_info.methods.get(method_name)
        if opt_method is None or opt_method.is_static or opt_method.param_count != param_count:
            return None
        return method_name

    def underlying(self, typ: types.BaseType) -> types.BaseType:
        return self.model.underlying_of(typ)

    def check_identical(self, name: str, typs: t.Tuple[types.BaseType, ...]):
        if len(typs) != 2:
            raise RequestError(f"{name} does not have two arguments")
        if not self.model.identical(typs[0], typs[1]):
            raise RequestError(f"{name} has two arguments of different types: {typs[0]} and {typs[1]}")

    @staticmethod
    def unsupported(name: str, typ: types.BaseType) -> UnsupportedTypeError:
        return UnsupportedTypeError(f"{name}: unsupported type {typ}")


class Plugin(object, metaclass=abc.ABCMeta):
    def __init__(self, name: str, default_prefix: str) -> None:
        super().__init__()
        self.name = name
        self.default_prefix = default_prefix

    @abc.abstractmethod
    def new(self, ctx: DeriveContext, typesmap: TypesMap, deps: t.Dict[str, Dependency]) -> Generator:
        pass

    def __str__(self) -> str:
        return self.name


__all__ = [
    'Dependency',
    'DeriveContext',
    'Generator',
    'Plugin',
    'TypesMap',
    'NameSpace',
    'Record',
    'Shapes',
    'Fields',
    'Place',
    'LocalPlace',
    'ItemPlace',
    'AttrPlace',
    'LowLevelPlace',
    'Printer',
    'Block'
]
