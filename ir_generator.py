"""
IR Generator

Lowers a completed parse result into a linear, register-based IR block.

Lowering is depth-first and pre-order. Each node is lowered by a frame that
yields the ids of child nodes it needs and receives back the register
holding each child's value, or None when the child could not be lowered.
The frames are driven from an explicit stack, so AST nesting depth is not
bounded by the interpreter's recursion limit.

Failures never raise: a problem is recorded as a SourceError and the
affected branch produces no register.
"""

import re
from typing import Generator, List, Optional, Tuple

import ast_nodes as A
import ir_nodes as IR
from errors import IrGenerationError, Severity, SourceError


# Frame protocol: yield a child NodeId, receive Optional[RegId]
LoweringFrame = Generator[A.NodeId, Optional[IR.RegId], Optional[IR.RegId]]

I64_MIN = -(2 ** 63)
I64_MAX = 2 ** 63 - 1
I64_MAX_DIGITS = len(str(I64_MAX))

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def _excerpt(text: str, limit: int = 32) -> str:
    if len(text) > limit:
        return repr(text[:limit]) + f"... ({len(text)} chars)"
    return repr(text)


_OPERATORS = {
    A.Plus: IR.Operator.math(IR.Math.PLUS),
    A.Multiply: IR.Operator.math(IR.Math.MULTIPLY),
}


class IrGenerator:
    """Generates IR from a parse result.

    Usage:
        gen = IrGenerator(parse_result)
        gen.generate()
        if not gen.errors:
            block = gen.block()
    """

    def __init__(self, parse_result: A.ParseResult, file_count: int = 0):
        self.parse_result = parse_result
        self.file_count = file_count

        self._errors: List[SourceError] = []
        self._instructions: List[IR.Instruction] = []
        self.register_count = 0

    def generate(self):
        """Generate IR for the whole parse result.

        The node with the highest id is the top-level program. Afterwards
        use `block()` and `errors` to get the result.
        """
        if self.parse_result.is_empty():
            return
        top = A.NodeId(len(self.parse_result.ast_nodes) - 1)
        reg = self.generate_node(top)
        if reg is None:
            return
        self._instructions.append(IR.Return(src=reg))

    def block(self) -> IR.IrBlock:
        """Return the generated IR block.

        Call `generate` first and check `errors` before trusting the result.
        """
        count = len(self._instructions)
        return IR.IrBlock(
            instructions=tuple(self._instructions),
            spans=(A.Span(0, 0),) * count,
            data=b"",
            ast=(None,) * count,
            comments=(),
            register_count=self.register_count,
            file_count=self.file_count,
        )

    @property
    def errors(self) -> Tuple[SourceError, ...]:
        """Diagnostics collected so far, in the order they were found."""
        return tuple(self._errors)

    def print_state(self):
        print(self.display_state(), end="")

    def display_state(self) -> str:
        """Render register count, instructions and diagnostics.

        Used for debugging and for snapshot tests.
        """
        lines = [
            "==== IR ====",
            f"register_count: {self.register_count}",
            f"file_count: {self.file_count}",
        ]
        for idx, instruction in enumerate(self._instructions):
            lines.append(f"{idx}: {instruction}")

        if self._errors:
            lines.append("==== IR ERRORS ====")
            lines.extend(str(error) for error in self._errors)
        return "\n".join(lines) + "\n"

    # ========================================================================
    # Traversal
    # ========================================================================

    def generate_node(self, node_id: A.NodeId) -> Optional[IR.RegId]:
        """Lower one node and everything below it."""
        stack: List[LoweringFrame] = [self._lower(node_id)]
        result: Optional[IR.RegId] = None
        while stack:
            try:
                child = stack[-1].send(result)
            except StopIteration as done:
                stack.pop()
                result = done.value
                continue
            stack.append(self._lower(child))
            result = None
        return result

    def _lower(self, node_id: A.NodeId) -> LoweringFrame:
        node = self.parse_result.get_node(node_id)

        if isinstance(node, A.Int):
            return self._lower_int(node_id)
        elif isinstance(node, A.Block):
            return (yield from self._lower_block(node))
        elif isinstance(node, A.BinaryOp):
            return (yield from self._lower_binary(node))
        else:
            self.error(f"node {node.kind} not supported yet", node_id)
            return None

    def _lower_int(self, node_id: A.NodeId) -> Optional[IR.RegId]:
        reg = self.next_register()
        value = self.span_to_i64(node_id)
        if value is None:
            return None
        self._instructions.append(IR.LoadLiteral(dst=reg, lit=IR.IntLiteral(value)))
        return reg

    def _lower_block(self, node: A.Block) -> LoweringFrame:
        last = None
        for child in self.parse_result.get_block(node.block_id).nodes:
            last = yield child
            if last is None:
                return None
        return last

    def _lower_binary(self, node: A.BinaryOp) -> LoweringFrame:
        lhs = yield node.lhs
        if lhs is None:
            return None
        rhs = yield node.rhs
        if rhs is None:
            return None
        op = self.node_to_operator(node.op)
        if op is None:
            return None
        # result overwrites the left operand's register
        self._instructions.append(IR.BinaryOp(lhs_dst=lhs, op=op, rhs=rhs))
        return lhs

    # ========================================================================
    # Helpers
    # ========================================================================

    def next_register(self) -> IR.RegId:
        reg = IR.RegId(self.register_count)
        self.register_count += 1
        return reg

    def span_to_string(self, node_id: A.NodeId) -> Optional[str]:
        try:
            return self.parse_result.get_span_contents(node_id).decode("utf-8")
        except UnicodeDecodeError as e:
            self.error(f"failed to convert a node to string: {e}", node_id)
            return None

    def span_to_i64(self, node_id: A.NodeId) -> Optional[int]:
        text = self.span_to_string(node_id)
        if text is None:
            return None
        if not _INT_PATTERN.fullmatch(text):
            self.error(f"failed to convert a node to integer: invalid digit in {_excerpt(text)}", node_id)
            return None
        # int() refuses very long digit strings, so check the magnitude first
        sign = "-" if text.startswith("-") else ""
        digits = text.lstrip("+-").lstrip("0") or "0"
        if len(digits) > I64_MAX_DIGITS:
            value = None
        else:
            value = int(sign + digits)
        if value is None or not I64_MIN <= value <= I64_MAX:
            self.error(f"failed to convert a node to integer: {_excerpt(text)} out of range for i64", node_id)
            return None
        return value

    def node_to_operator(self, node_id: A.NodeId) -> Optional[IR.Operator]:
        node = self.parse_result.get_node(node_id)
        op = _OPERATORS.get(type(node))
        if op is None:
            self.error(f"unrecognized operator {node.kind}", node_id)
        return op

    def error(self, message: str, node_id: A.NodeId):
        self._errors.append(SourceError(message, node_id, Severity.ERROR))


def generate_ir(parse_result: A.ParseResult, file_count: int = 0) -> IR.IrBlock:
    """Run one generation pass and return the block.

    Raises IrGenerationError if any Error diagnostic was collected.
    """
    gen = IrGenerator(parse_result, file_count=file_count)
    gen.generate()
    fatal = [e for e in gen.errors if e.severity == Severity.ERROR]
    if fatal:
        raise IrGenerationError(gen.errors)
    return gen.block()
