"""
AST Node Definitions and Parse Result

The parse result is a flat, index-addressed table of AST nodes produced by
the parser. Nodes refer to each other through NodeId handles, and sequences
of nodes live in a separate block table addressed by BlockId.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Type, Union


# ============================================================================
# Identifiers
# ============================================================================

@dataclass(frozen=True)
class NodeId:
    index: int

    def __repr__(self):
        return f"NodeId({self.index})"


@dataclass(frozen=True)
class BlockId:
    index: int

    def __repr__(self):
        return f"BlockId({self.index})"


@dataclass(frozen=True)
class Span:
    """Byte range into the parse result's source buffer"""
    start: int
    end: int


# ============================================================================
# AST Nodes
# ============================================================================

@dataclass(frozen=True)
class AstNode:
    """Base class for AST nodes"""

    @property
    def kind(self) -> str:
        return type(self).__name__


# Values

@dataclass(frozen=True)
class Int(AstNode):
    """Integer literal; the value is the node's source text"""
    pass


@dataclass(frozen=True)
class Float(AstNode):
    pass


@dataclass(frozen=True)
class String(AstNode):
    pass


@dataclass(frozen=True)
class Variable(AstNode):
    pass


@dataclass(frozen=True)
class Garbage(AstNode):
    """Placeholder left by the parser after a syntax error"""
    pass


# Compound nodes

@dataclass(frozen=True)
class Block(AstNode):
    block_id: BlockId


@dataclass(frozen=True)
class BinaryOp(AstNode):
    lhs: NodeId
    op: NodeId
    rhs: NodeId


# Operator leaves

@dataclass(frozen=True)
class Plus(AstNode):
    pass


@dataclass(frozen=True)
class Minus(AstNode):
    pass


@dataclass(frozen=True)
class Multiply(AstNode):
    pass


@dataclass(frozen=True)
class Equal(AstNode):
    pass


# ============================================================================
# Parse Result
# ============================================================================

@dataclass(frozen=True)
class NodeSequence:
    """Ordered node ids evaluated one after another"""
    nodes: Tuple[NodeId, ...]


@dataclass(frozen=True)
class ParseResult:
    """Completed, read-only output of the parsing stage."""
    ast_nodes: Tuple[AstNode, ...] = ()
    spans: Tuple[Span, ...] = ()
    blocks: Tuple[NodeSequence, ...] = ()
    contents: bytes = b""

    def __post_init__(self):
        if len(self.ast_nodes) != len(self.spans):
            raise ValueError(
                f"{len(self.ast_nodes)} AST nodes but {len(self.spans)} spans"
            )

    def is_empty(self) -> bool:
        return not self.ast_nodes

    def get_node(self, node_id: NodeId) -> AstNode:
        if not 0 <= node_id.index < len(self.ast_nodes):
            raise IndexError(f"unknown {node_id!r}")
        return self.ast_nodes[node_id.index]

    def get_block(self, block_id: BlockId) -> NodeSequence:
        if not 0 <= block_id.index < len(self.blocks):
            raise IndexError(f"unknown {block_id!r}")
        return self.blocks[block_id.index]

    def get_span(self, node_id: NodeId) -> Span:
        self.get_node(node_id)
        return self.spans[node_id.index]

    def get_span_contents(self, node_id: NodeId) -> bytes:
        """Raw source bytes covered by a node"""
        span = self.get_span(node_id)
        return self.contents[span.start:span.end]

    def display_state(self) -> str:
        """Human readable dump of the node table."""
        lines = ["==== AST ===="]
        for idx, node in enumerate(self.ast_nodes):
            text = self.contents[self.spans[idx].start:self.spans[idx].end]
            lines.append(f"{idx}: {node!r} ({text.decode('utf-8', 'replace')!r})")
        for idx, block in enumerate(self.blocks):
            members = ", ".join(str(n.index) for n in block.nodes)
            lines.append(f"block {idx}: [{members}]")
        return "\n".join(lines) + "\n"


class ParseResultBuilder:
    """Assembles a ParseResult node by node.

    Nodes are appended in the order they are created, so children always
    precede their parents and the last node created is the top-level one.
    Leaf nodes carry their own source text; compound nodes span from their
    first child to their last.

    Usage:
        b = ParseResultBuilder()
        lhs = b.int_("1")
        rhs = b.int_("2")
        b.block([b.binary(lhs, b.operator(Plus, "+"), rhs)])
        result = b.build()
    """

    def __init__(self):
        self._nodes: List[AstNode] = []
        self._spans: List[Span] = []
        self._blocks: List[NodeSequence] = []
        self._contents = bytearray()

    def _append_text(self, text: Union[str, bytes]) -> Span:
        if isinstance(text, str):
            text = text.encode("utf-8")
        if self._contents:
            self._contents += b" "
        start = len(self._contents)
        self._contents += text
        return Span(start, len(self._contents))

    def _push(self, node: AstNode, span: Span) -> NodeId:
        self._nodes.append(node)
        self._spans.append(span)
        return NodeId(len(self._nodes) - 1)

    def _covering(self, ids: Sequence[NodeId]) -> Span:
        if not ids:
            end = len(self._contents)
            return Span(end, end)
        return Span(self._spans[ids[0].index].start, self._spans[ids[-1].index].end)

    def node(self, node: AstNode, text: Union[str, bytes] = b"") -> NodeId:
        """Append an arbitrary leaf node with its source text."""
        return self._push(node, self._append_text(text))

    def int_(self, text: Union[str, bytes]) -> NodeId:
        return self.node(Int(), text)

    def operator(self, node_cls: Type[AstNode], text: Union[str, bytes]) -> NodeId:
        return self.node(node_cls(), text)

    def binary(self, lhs: NodeId, op: NodeId, rhs: NodeId) -> NodeId:
        return self._push(BinaryOp(lhs, op, rhs), self._covering([lhs, rhs]))

    def block(self, nodes: Sequence[NodeId]) -> NodeId:
        nodes = tuple(nodes)
        self._blocks.append(NodeSequence(nodes))
        block_id = BlockId(len(self._blocks) - 1)
        return self._push(Block(block_id), self._covering(nodes))

    def build(self) -> ParseResult:
        return ParseResult(
            ast_nodes=tuple(self._nodes),
            spans=tuple(self._spans),
            blocks=tuple(self._blocks),
            contents=bytes(self._contents),
        )
