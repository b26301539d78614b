"""
IR Generator Diagnostics

Diagnostics are collected during generation, never thrown. The exception
classes here are for hosts that decide to refuse a result.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List

from ast_nodes import NodeId


class Severity(Enum):
    ERROR = "Error"
    WARNING = "Warning"  # reserved for non-fatal notices


@dataclass(frozen=True)
class SourceError:
    """A problem found at a specific AST node."""
    message: str
    node_id: NodeId
    severity: Severity = Severity.ERROR

    def __str__(self):
        return f"{self.severity.value} (NodeId {self.node_id.index}): {self.message}"


class CompileError(Exception):
    """Compilation error"""
    pass


class IrGenerationError(CompileError):
    """Raised by hosts that refuse an IR block with error diagnostics."""

    def __init__(self, errors: List[SourceError]):
        self.errors = list(errors)
        lines = "\n".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} IR generation error(s)\n{lines}")


class EmitError(CompileError):
    """Raised when an IR block cannot be lowered to LLVM IR."""
    pass
