from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple


class Kind(Enum):
    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINTPTR = "uintptr"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"
    STRING = "string"
    UNSAFE_POINTER = "unsafe.Pointer"
    UNTYPED_BOOL = "untyped bool"
    UNTYPED_INT = "untyped int"
    UNTYPED_RUNE = "untyped rune"
    UNTYPED_FLOAT = "untyped float"
    UNTYPED_COMPLEX = "untyped complex"
    UNTYPED_STRING = "untyped string"
    UNTYPED_NIL = "untyped nil"


class Type:
    """Base of every resolved type."""


@dataclass(frozen=True)
class Basic(Type):
    kind: Kind

    @property
    def untyped(self) -> bool:
        return self.kind.value.startswith("untyped")

    def __str__(self) -> str:  # pragma: no cover - trivial repr
        return self.kind.value


@dataclass(frozen=True)
class Var:
    name: str
    type: Optional[Type]


@dataclass(eq=False)
class Named(Type):
    """A declared type. The right-hand side is filled in after declaration."""

    name: str
    rhs: Optional[Type] = None
    type_params: Tuple["TypeParam", ...] = ()
    type_args: Tuple[Optional[Type], ...] = ()
    methods: Dict[str, "Signature"] = field(default_factory=dict)
    origin: Optional["Named"] = None

    def __str__(self) -> str:  # pragma: no cover - trivial repr
        if not self.type_args:
            return self.name
        inner = ", ".join(str(a) for a in self.type_args)
        return f"{self.name}[{inner}]"


@dataclass(frozen=True)
class TypeParam(Type):
    name: str


@dataclass(frozen=True)
class Pointer(Type):
    elem: Optional[Type]


@dataclass(frozen=True)
class Slice(Type):
    elem: Optional[Type]


@dataclass(frozen=True)
class Array(Type):
    elem: Optional[Type]


@dataclass(frozen=True)
class Map(Type):
    key: Optional[Type]
    elem: Optional[Type]


@dataclass(frozen=True)
class Chan(Type):
    elem: Optional[Type]


@dataclass(frozen=True)
class Signature(Type):
    recv: Optional[Var]
    params: Tuple[Var, ...]
    results: Tuple[Var, ...]
    variadic: bool = False
    type_params: Tuple[TypeParam, ...] = ()


@dataclass(frozen=True)
class Struct(Type):
    fields: Tuple[Var, ...]
    embedded: Tuple[bool, ...] = ()


@dataclass(frozen=True)
class Interface(Type):
    methods: Tuple[Var, ...] = ()


@dataclass(frozen=True)
class TupleType(Type):
    types: Tuple[Optional[Type], ...]


BOOL = Basic(Kind.BOOL)
INT = Basic(Kind.INT)
INT32 = Basic(Kind.INT32)
UINT8 = Basic(Kind.UINT8)
FLOAT64 = Basic(Kind.FLOAT64)
COMPLEX128 = Basic(Kind.COMPLEX128)
STRING = Basic(Kind.STRING)
UNTYPED_BOOL = Basic(Kind.UNTYPED_BOOL)
UNTYPED_INT = Basic(Kind.UNTYPED_INT)
UNTYPED_RUNE = Basic(Kind.UNTYPED_RUNE)
UNTYPED_FLOAT = Basic(Kind.UNTYPED_FLOAT)
UNTYPED_COMPLEX = Basic(Kind.UNTYPED_COMPLEX)
UNTYPED_STRING = Basic(Kind.UNTYPED_STRING)
UNTYPED_NIL = Basic(Kind.UNTYPED_NIL)

ERROR = Named("error", Interface((Var("Error", Signature(None, (), (Var("", STRING),))),)))

# Predeclared type names of the universe scope.
PREDECLARED: Dict[str, Type] = {
    **{k.value: Basic(k) for k in Kind if not k.value.startswith(("untyped", "unsafe"))},
    "byte": UINT8,
    "rune": INT32,
    "error": ERROR,
    "any": Interface(),
    "comparable": Interface(),
}

BUILTINS = frozenset({
    "append", "cap", "clear", "close", "complex", "copy", "delete", "imag", "len",
    "make", "max", "min", "new", "panic", "print", "println", "real", "recover",
})

_DEFAULTS: Dict[Kind, Basic] = {
    Kind.UNTYPED_BOOL: BOOL,
    Kind.UNTYPED_INT: INT,
    Kind.UNTYPED_RUNE: INT32,
    Kind.UNTYPED_FLOAT: FLOAT64,
    Kind.UNTYPED_COMPLEX: COMPLEX128,
    Kind.UNTYPED_STRING: STRING,
}

# Rank of untyped numeric constants in mixed expressions.
UNTYPED_RANK: Dict[Kind, int] = {
    Kind.UNTYPED_INT: 0,
    Kind.UNTYPED_RUNE: 1,
    Kind.UNTYPED_FLOAT: 2,
    Kind.UNTYPED_COMPLEX: 3,
}


def default(typ: Optional[Type]) -> Optional[Type]:
    """Collapse an untyped constant type to its default concrete type."""
    if isinstance(typ, Basic):
        return _DEFAULTS.get(typ.kind, typ)
    return typ


def underlying(typ: Optional[Type]) -> Optional[Type]:
    seen = set()
    while isinstance(typ, Named):
        if id(typ) in seen:
            return None
        seen.add(id(typ))
        typ = rhs_of(typ)
    return typ


def is_untyped(typ: Optional[Type]) -> bool:
    return isinstance(typ, Basic) and typ.untyped


def substitute(typ: Optional[Type], mapping: Mapping[TypeParam, Optional[Type]]) -> Optional[Type]:
    """Replace type parameters in ``typ``; named types are instantiated shallowly."""
    if not mapping or typ is None:
        return typ
    if isinstance(typ, TypeParam):
        return mapping.get(typ, typ)
    if isinstance(typ, Pointer):
        return Pointer(substitute(typ.elem, mapping))
    if isinstance(typ, Slice):
        return Slice(substitute(typ.elem, mapping))
    if isinstance(typ, Array):
        return Array(substitute(typ.elem, mapping))
    if isinstance(typ, Chan):
        return Chan(substitute(typ.elem, mapping))
    if isinstance(typ, Map):
        return Map(substitute(typ.key, mapping), substitute(typ.elem, mapping))
    if isinstance(typ, Signature):
        return Signature(
            _subst_var(typ.recv, mapping),
            tuple(_subst_var(p, mapping) for p in typ.params),
            tuple(_subst_var(r, mapping) for r in typ.results),
            typ.variadic,
            tuple(p for p in typ.type_params if p not in mapping),
        )
    if isinstance(typ, Struct):
        return Struct(tuple(_subst_var(f, mapping) for f in typ.fields), typ.embedded)
    if isinstance(typ, TupleType):
        return TupleType(tuple(substitute(t, mapping) for t in typ.types))
    if isinstance(typ, Named) and typ.type_args:
        args = tuple(substitute(a, mapping) for a in typ.type_args)
        return instantiate(typ.origin or typ, args)
    return typ


def _subst_var(var: Optional[Var], mapping: Mapping[TypeParam, Optional[Type]]) -> Optional[Var]:
    if var is None:
        return None
    return Var(var.name, substitute(var.type, mapping))


def instantiate(generic: Named, args: Tuple[Optional[Type], ...]) -> Named:
    """Instantiate a generic named type; its underlying type is resolved on demand."""
    return Named(generic.name, type_args=args, origin=generic)


def _bindings(named: Named) -> Dict[TypeParam, Optional[Type]]:
    return dict(zip(named.origin.type_params, named.type_args))


def rhs_of(named: Named) -> Optional[Type]:
    if named.rhs is None and named.origin is not None:
        named.rhs = substitute(named.origin.rhs, _bindings(named))
    return named.rhs


def method(named: Named, name: str) -> Optional[Signature]:
    if named.origin is not None:
        sig = named.origin.methods.get(name)
        return substitute(sig, _bindings(named)) if sig is not None else None
    return named.methods.get(name)
