"""
IR Definitions

A linear, register-based instruction stream. Registers are virtual and
unbounded; an instruction's index in the stream is its program counter.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from ast_nodes import NodeId, Span


@dataclass(frozen=True, order=True)
class RegId:
    index: int

    def __str__(self):
        return f"%{self.index}"


# ============================================================================
# Literals and Operators
# ============================================================================

@dataclass(frozen=True)
class IntLiteral:
    """Signed 64-bit integer constant"""
    value: int

    def __str__(self):
        return f"int({self.value})"


Literal = Union[IntLiteral]


class Math(Enum):
    PLUS = "Plus"
    MINUS = "Minus"
    MULTIPLY = "Multiply"
    DIVIDE = "Divide"
    MODULO = "Modulo"


class Comparison(Enum):
    EQUAL = "Equal"


@dataclass(frozen=True)
class Operator:
    """Semantic operator code, independent of the AST node spelling it."""
    family: Union[Math, Comparison]

    @classmethod
    def math(cls, op: Math) -> "Operator":
        return cls(op)

    def __str__(self):
        return f"{type(self.family).__name__}({self.family.value})"


# ============================================================================
# Instructions
# ============================================================================

@dataclass(frozen=True)
class Instruction:
    """Base class for IR instructions"""
    pass


@dataclass(frozen=True)
class LoadLiteral(Instruction):
    dst: RegId
    lit: Literal

    def __str__(self):
        return f"load-literal {self.dst}, {self.lit}"


@dataclass(frozen=True)
class BinaryOp(Instruction):
    """lhs_dst = lhs_dst <op> rhs"""
    lhs_dst: RegId
    op: Operator
    rhs: RegId

    def __str__(self):
        return f"binary-op {self.lhs_dst}, {self.op}, {self.rhs}"


@dataclass(frozen=True)
class Return(Instruction):
    src: RegId

    def __str__(self):
        return f"return {self.src}"


# ============================================================================
# IR Block
# ============================================================================

@dataclass(frozen=True)
class IrBlock:
    """Finished output of one generation pass.

    `spans` and `ast` run parallel to `instructions`. Source spans and AST
    back-references are not tracked yet, so every entry is a zero span and
    None respectively.
    """
    instructions: Tuple[Instruction, ...] = ()
    spans: Tuple[Span, ...] = ()
    data: bytes = b""
    ast: Tuple[Optional[NodeId], ...] = ()
    comments: Tuple[str, ...] = ()
    register_count: int = 0
    file_count: int = 0

    def __len__(self):
        return len(self.instructions)

    def __str__(self):
        return "\n".join(f"{idx}: {instr}" for idx, instr in enumerate(self.instructions))
