"""
Operator catalog for overloadkit.

This module defines the fixed set of operators a type may provide handlers
for. The catalog is built once at import time and never changes afterwards.

Each operator maps to:
- A display symbol (e.g., "+" for ADD, "<=>" for SPACESHIP)
- An arity (unary or binary) and a category
- Whether operand order matters and whether the operator mutates its receiver
- For compound assignment, the binary operator it is based on
- The Python special method names used when binding handlers onto a class

Short-circuiting logical operators (and, or, the conditional expression) are
deliberately not members of OperatorKind: they suspend evaluation of their
operands and cannot be replaced by a handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from overloadkit.utils.errors import UnknownOperatorError


class Arity(Enum):
    """Number of operands an operator takes."""
    UNARY = 1
    BINARY = 2


class OperatorCategory(Enum):
    """Classification of operators."""
    CONVERSION = auto()
    ARITHMETIC = auto()
    BITWISE = auto()
    LOGICAL = auto()
    COMPARISON = auto()
    ASSIGNMENT = auto()
    MUTATING = auto()
    ITERATIVE = auto()
    DEREFERENCE = auto()
    SPECIAL = auto()


class OperatorKind(Enum):
    """Every overridable operation."""

    # Arithmetic
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    MOD = auto()
    POW = auto()
    CONCAT = auto()
    REPEAT = auto()
    ATAN2 = auto()
    NEG = auto()
    ABS = auto()
    SQRT = auto()
    LOG = auto()
    EXP = auto()
    SIN = auto()
    COS = auto()
    INT = auto()

    # Bitwise
    BIT_AND = auto()
    BIT_OR = auto()
    BIT_XOR = auto()
    SHIFT_LEFT = auto()
    SHIFT_RIGHT = auto()
    BIT_NOT = auto()

    # Logical
    NOT = auto()

    # Numeric comparison
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()
    EQ = auto()
    NE = auto()
    SPACESHIP = auto()

    # String comparison
    STR_LT = auto()
    STR_LE = auto()
    STR_GT = auto()
    STR_GE = auto()
    STR_EQ = auto()
    STR_NE = auto()
    COMPARE = auto()

    # Compound assignment
    ADD_ASSIGN = auto()
    SUB_ASSIGN = auto()
    MUL_ASSIGN = auto()
    DIV_ASSIGN = auto()
    MOD_ASSIGN = auto()
    POW_ASSIGN = auto()
    CONCAT_ASSIGN = auto()
    REPEAT_ASSIGN = auto()
    BIT_AND_ASSIGN = auto()
    BIT_OR_ASSIGN = auto()
    BIT_XOR_ASSIGN = auto()
    SHIFT_LEFT_ASSIGN = auto()
    SHIFT_RIGHT_ASSIGN = auto()

    # Mutators
    PRE_INCREMENT = auto()
    PRE_DECREMENT = auto()

    # Conversion
    STRINGIFY = auto()
    NUMIFY = auto()
    BOOLIFY = auto()

    # Iteration
    ITERATE = auto()

    # Dereference
    DEREF_SCALAR = auto()
    DEREF_ARRAY = auto()
    DEREF_HASH = auto()
    DEREF_FUNCTION = auto()
    DEREF_GLOB = auto()

    # Special
    COPY = auto()

    @property
    def info(self) -> OperatorInfo:
        return OPERATOR_CATALOG[self]

    @property
    def symbol(self) -> str:
        return OPERATOR_CATALOG[self].symbol

    @property
    def arity(self) -> Arity:
        return OPERATOR_CATALOG[self].arity

    @property
    def category(self) -> OperatorCategory:
        return OPERATOR_CATALOG[self].category

    @property
    def is_binary(self) -> bool:
        return OPERATOR_CATALOG[self].arity is Arity.BINARY

    @property
    def is_mutating(self) -> bool:
        return OPERATOR_CATALOG[self].mutating


@dataclass(frozen=True, slots=True)
class OperatorInfo:
    """
    Information about a catalog operator.

    Attributes:
        kind: The operator identity
        symbol: Display symbol (e.g., "+", "<=>", "cmp")
        arity: Unary or binary
        category: The operator's category
        commutative: Whether operand order is irrelevant (binary only)
        mutating: Whether the operator rebinds its receiver
        base: For compound assignment, the binary operator it applies
        python_magic: The Python special method name (e.g., "__add__")
        python_reflected: The reflected special method name (e.g., "__radd__")
    """
    kind: OperatorKind
    symbol: str
    arity: Arity
    category: OperatorCategory
    commutative: bool = False
    mutating: bool = False
    base: Optional[OperatorKind] = None
    python_magic: Optional[str] = None
    python_reflected: Optional[str] = None

    @property
    def order_matters(self) -> bool:
        """Whether the resolver must track which operand is the receiver."""
        return self.arity is Arity.BINARY and not self.commutative


def _binary(
    kind: OperatorKind,
    symbol: str,
    category: OperatorCategory,
    commutative: bool = False,
    magic: Optional[str] = None,
    reflected: Optional[str] = None,
) -> OperatorInfo:
    return OperatorInfo(
        kind=kind,
        symbol=symbol,
        arity=Arity.BINARY,
        category=category,
        commutative=commutative,
        python_magic=magic,
        python_reflected=reflected,
    )


def _unary(
    kind: OperatorKind,
    symbol: str,
    category: OperatorCategory,
    magic: Optional[str] = None,
    mutating: bool = False,
) -> OperatorInfo:
    return OperatorInfo(
        kind=kind,
        symbol=symbol,
        arity=Arity.UNARY,
        category=category,
        mutating=mutating,
        python_magic=magic,
    )


def _assign(kind: OperatorKind, base: OperatorKind, magic: Optional[str] = None) -> OperatorInfo:
    return OperatorInfo(
        kind=kind,
        symbol=f"{OPERATOR_CATALOG[base].symbol}=",
        arity=Arity.BINARY,
        category=OperatorCategory.ASSIGNMENT,
        mutating=True,
        base=base,
        python_magic=magic,
    )


K = OperatorKind
C = OperatorCategory

OPERATOR_CATALOG: dict[OperatorKind, OperatorInfo] = {}

for _info in (
    # Arithmetic operators (binary)
    _binary(K.ADD, "+", C.ARITHMETIC, commutative=True, magic="__add__", reflected="__radd__"),
    _binary(K.SUB, "-", C.ARITHMETIC, magic="__sub__", reflected="__rsub__"),
    _binary(K.MUL, "*", C.ARITHMETIC, commutative=True, magic="__mul__", reflected="__rmul__"),
    _binary(K.DIV, "/", C.ARITHMETIC, magic="__truediv__", reflected="__rtruediv__"),
    _binary(K.MOD, "%", C.ARITHMETIC, magic="__mod__", reflected="__rmod__"),
    _binary(K.POW, "**", C.ARITHMETIC, magic="__pow__", reflected="__rpow__"),
    _binary(K.CONCAT, ".", C.ARITHMETIC),
    _binary(K.REPEAT, "x", C.ARITHMETIC),
    _binary(K.ATAN2, "atan2", C.ARITHMETIC),
    # Arithmetic operators (unary)
    _unary(K.NEG, "neg", C.ARITHMETIC, magic="__neg__"),
    _unary(K.ABS, "abs", C.ARITHMETIC, magic="__abs__"),
    _unary(K.SQRT, "sqrt", C.ARITHMETIC),
    _unary(K.LOG, "log", C.ARITHMETIC),
    _unary(K.EXP, "exp", C.ARITHMETIC),
    _unary(K.SIN, "sin", C.ARITHMETIC),
    _unary(K.COS, "cos", C.ARITHMETIC),
    _unary(K.INT, "int", C.ARITHMETIC),
    # Bitwise operators
    _binary(K.BIT_AND, "&", C.BITWISE, commutative=True, magic="__and__", reflected="__rand__"),
    _binary(K.BIT_OR, "|", C.BITWISE, commutative=True, magic="__or__", reflected="__ror__"),
    _binary(K.BIT_XOR, "^", C.BITWISE, commutative=True, magic="__xor__", reflected="__rxor__"),
    _binary(K.SHIFT_LEFT, "<<", C.BITWISE, magic="__lshift__", reflected="__rlshift__"),
    _binary(K.SHIFT_RIGHT, ">>", C.BITWISE, magic="__rshift__", reflected="__rrshift__"),
    _unary(K.BIT_NOT, "~", C.BITWISE, magic="__invert__"),
    # Logical negation
    _unary(K.NOT, "!", C.LOGICAL),
    # Numeric comparison (Python reflects these itself)
    _binary(K.LT, "<", C.COMPARISON, magic="__lt__"),
    _binary(K.LE, "<=", C.COMPARISON, magic="__le__"),
    _binary(K.GT, ">", C.COMPARISON, magic="__gt__"),
    _binary(K.GE, ">=", C.COMPARISON, magic="__ge__"),
    _binary(K.EQ, "==", C.COMPARISON, commutative=True, magic="__eq__"),
    _binary(K.NE, "!=", C.COMPARISON, commutative=True, magic="__ne__"),
    _binary(K.SPACESHIP, "<=>", C.COMPARISON),
    # String comparison
    _binary(K.STR_LT, "lt", C.COMPARISON),
    _binary(K.STR_LE, "le", C.COMPARISON),
    _binary(K.STR_GT, "gt", C.COMPARISON),
    _binary(K.STR_GE, "ge", C.COMPARISON),
    _binary(K.STR_EQ, "eq", C.COMPARISON, commutative=True),
    _binary(K.STR_NE, "ne", C.COMPARISON, commutative=True),
    _binary(K.COMPARE, "cmp", C.COMPARISON),
    # Mutators
    _unary(K.PRE_INCREMENT, "++", C.MUTATING, mutating=True),
    _unary(K.PRE_DECREMENT, "--", C.MUTATING, mutating=True),
    # Conversion
    _unary(K.STRINGIFY, '""', C.CONVERSION, magic="__str__"),
    _unary(K.NUMIFY, "0+", C.CONVERSION, magic="__float__"),
    _unary(K.BOOLIFY, "bool", C.CONVERSION, magic="__bool__"),
    # Iteration
    _unary(K.ITERATE, "<>", C.ITERATIVE, magic="__iter__"),
    # Dereference
    _unary(K.DEREF_SCALAR, "${}", C.DEREFERENCE),
    _unary(K.DEREF_ARRAY, "@{}", C.DEREFERENCE),
    _unary(K.DEREF_HASH, "%{}", C.DEREFERENCE),
    _unary(K.DEREF_FUNCTION, "&{}", C.DEREFERENCE, magic="__call__"),
    _unary(K.DEREF_GLOB, "*{}", C.DEREFERENCE),
    # Copy constructor
    _unary(K.COPY, "=", C.SPECIAL, magic="__copy__"),
):
    OPERATOR_CATALOG[_info.kind] = _info

# Compound assignment entries reference their base operator's symbol
for _info in (
    _assign(K.ADD_ASSIGN, K.ADD, "__iadd__"),
    _assign(K.SUB_ASSIGN, K.SUB, "__isub__"),
    _assign(K.MUL_ASSIGN, K.MUL, "__imul__"),
    _assign(K.DIV_ASSIGN, K.DIV, "__itruediv__"),
    _assign(K.MOD_ASSIGN, K.MOD, "__imod__"),
    _assign(K.POW_ASSIGN, K.POW, "__ipow__"),
    _assign(K.CONCAT_ASSIGN, K.CONCAT),
    _assign(K.REPEAT_ASSIGN, K.REPEAT),
    _assign(K.BIT_AND_ASSIGN, K.BIT_AND, "__iand__"),
    _assign(K.BIT_OR_ASSIGN, K.BIT_OR, "__ior__"),
    _assign(K.BIT_XOR_ASSIGN, K.BIT_XOR, "__ixor__"),
    _assign(K.SHIFT_LEFT_ASSIGN, K.SHIFT_LEFT, "__ilshift__"),
    _assign(K.SHIFT_RIGHT_ASSIGN, K.SHIFT_RIGHT, "__irshift__"),
):
    OPERATOR_CATALOG[_info.kind] = _info

del _info, K, C

_BY_SYMBOL: dict[str, OperatorKind] = {info.symbol: kind for kind, info in OPERATOR_CATALOG.items()}
_COMPOUND_BY_BASE: dict[OperatorKind, OperatorKind] = {
    info.base: kind for kind, info in OPERATOR_CATALOG.items() if info.base is not None
}


def operator_info(kind: OperatorKind) -> OperatorInfo:
    """Get the catalog entry for an operator."""
    return OPERATOR_CATALOG[kind]


def lookup_operator(key: Union[OperatorKind, str]) -> OperatorKind:
    """
    Resolve an operator from its kind, symbol, or enum member name.

    Args:
        key: An OperatorKind, a symbol such as "+" or "<=>", or a member
            name such as "ADD" (case-insensitive). Symbols are matched
            first, so "lt" is the string comparison STR_LT while "LT"
            names the numeric LT.

    Returns:
        The matching OperatorKind

    Raises:
        UnknownOperatorError: If the key names no catalog operator
    """
    if isinstance(key, OperatorKind):
        return key
    if isinstance(key, str):
        if key in _BY_SYMBOL:
            return _BY_SYMBOL[key]
        member = OperatorKind.__members__.get(key.upper())
        if member is not None:
            return member
    raise UnknownOperatorError(f"'{key}' is not an overridable operator")


def operators_in_category(category: OperatorCategory) -> list[OperatorKind]:
    """Get all operators of a category, in catalog order."""
    return [kind for kind, info in OPERATOR_CATALOG.items() if info.category is category]


def compound_assignment_for(kind: OperatorKind) -> Optional[OperatorKind]:
    """Get the compound assignment operator built on a binary operator."""
    return _COMPOUND_BY_BASE.get(kind)


def is_mutating(kind: OperatorKind) -> bool:
    """Check if an operator rebinds its receiver."""
    return OPERATOR_CATALOG[kind].mutating


def is_compound_assignment(kind: OperatorKind) -> bool:
    """Check if an operator is a compound assignment."""
    return OPERATOR_CATALOG[kind].base is not None
