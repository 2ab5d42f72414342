import typing as t

from . import (
    BaseType, BasicType, PointerType, FixedArrayType, SequenceType, MapType, SetType,
    NamedType, FuncType, TypeKind
)
from ..excepts import UnsupportedTypeError

QualifyFn = t.Callable[[NamedType], str]


#
# Canonical labels: identifier-safe, pure functions of shape.
#

def label_of(typ: BaseType, package_name: str) -> str:
    type_kind = typ.kind()

    if type_kind == TypeKind.Basic:
        assert isinstance(typ, BasicType)
        return typ.basic_kind.value.lower()
    elif type_kind == TypeKind.Pointer:
        assert isinstance(typ, PointerType)
        return f"opt_{label_of(typ.elem_type, package_name)}"
    elif type_kind == TypeKind.FixedArray:
        assert isinstance(typ, FixedArrayType)
        return f"tuple{typ.length}_of_{label_of(typ.elem_type, package_name)}"
    elif type_kind == TypeKind.Sequence:
        assert isinstance(typ, SequenceType)
        return f"list_of_{label_of(typ.elem_type, package_name)}"
    elif type_kind == TypeKind.Map:
        assert isinstance(typ, MapType)
        key_label = label_of(typ.key_type, package_name)
        elem_label = label_of(typ.elem_type, package_name)
        return f"dict_of_{key_label}_to_{elem_label}"
    elif type_kind == TypeKind.Set:
        assert isinstance(typ, SetType)
        return f"set_of_{label_of(typ.elem_type, package_name)}"
    elif type_kind == TypeKind.Func:
        assert isinstance(typ, FuncType)
        params_label = '_'.join(label_of(param_type, package_name) for param_type in typ.param_types)
        return f"func_of_{params_label}_to_{label_of(typ.result_type, package_name)}"
    elif type_kind == TypeKind.Named:
        assert isinstance(typ, NamedType)
        rel_module_name = relative_module_name(typ.module_name, package_name)
        if rel_module_name:
            return f"{rel_module_name.replace('.', '_')}_{typ.name}"
        else:
            return typ.name
    else:
        # rejected by every generator before a name is ever needed
        return "unsupported"


def labels_of(typs: t.Sequence[BaseType], package_name: str) -> str:
    return '_and_'.join(label_of(typ, package_name) for typ in typs)


def relative_module_name(module_name: str, package_name: str) -> str:
    if not package_name:
        return module_name
    if module_name == package_name:
        return ""
    if module_name.startswith(package_name + '.'):
        return module_name[len(package_name) + 1:]
    return module_name


#
# Annotation text, as it is written into generated code.
#

def type_string(typ: BaseType, qualify: QualifyFn) -> str:
    type_kind = typ.kind()

    if type_kind == TypeKind.Basic:
        return str(typ)
    elif type_kind == TypeKind.Pointer:
        assert isinstance(typ, PointerType)
        return f"{type_string(typ.elem_type, qualify)} | None"
    elif type_kind == TypeKind.FixedArray:
        assert isinstance(typ, FixedArrayType)
        elem_str = type_string(typ.elem_type, qualify)
        return f"tuple[{', '.join([elem_str] * typ.length)}]"
    elif type_kind == TypeKind.Sequence:
        assert isinstance(typ, SequenceType)
        return f"list[{type_string(typ.elem_type, qualify)}]"
    elif type_kind == TypeKind.Map:
        assert isinstance(typ, MapType)
        return f"dict[{type_string(typ.key_type, qualify)}, {type_string(typ.elem_type, qualify)}]"
    elif type_kind == TypeKind.Set:
        assert isinstance(typ, SetType)
        return f"set[{type_string(typ.elem_type, qualify)}]"
    elif type_kind == TypeKind.Func:
        assert isinstance(typ, FuncType)
        params_str = ', '.join(type_string(param_type, qualify) for param_type in typ.param_types)
        return f"typing.Callable[[{params_str}], {type_string(typ.result_type, qualify)}]"
    elif type_kind == TypeKind.Named:
        assert isinstance(typ, NamedType)
        return qualify(typ)
    else:
        raise UnsupportedTypeError(f"cannot write {typ} as an annotation")


def is_spellable(typ: BaseType) -> bool:
    """True if `type_string` can write 'typ' (and everything nested in it) as an annotation."""

    type_kind = typ.kind()

    if type_kind in (TypeKind.Basic, TypeKind.Named):
        return True
    elif type_kind in (TypeKind.Pointer, TypeKind.FixedArray, TypeKind.Sequence, TypeKind.Set):
        assert isinstance(typ, (PointerType, FixedArrayType, SequenceType, SetType))
        return is_spellable(typ.elem_type)
    elif type_kind == TypeKind.Map:
        assert isinstance(typ, MapType)
        return is_spellable(typ.key_type) and is_spellable(typ.elem_type)
    elif type_kind == TypeKind.Func:
        assert isinstance(typ, FuncType)
        return all(map(is_spellable, typ.param_types)) and is_spellable(typ.result_type)
    else:
        return False
