"""
Pytest configuration and fixtures for IR generator tests.

Provides reusable fixtures for:
- Building parse results without a parser
- Running generation passes
- Verifying emitted instructions
- Checking collected diagnostics
"""

import pytest

from ast_nodes import ParseResultBuilder, Plus, Multiply
from ir_generator import IrGenerator


@pytest.fixture
def builder():
    """Fresh ParseResultBuilder for assembling an AST."""
    return ParseResultBuilder()


@pytest.fixture
def binary_program():
    """
    Fixture that returns a function building `<lhs> <op> <rhs>` wrapped in a
    top-level block.

    Usage:
        result = binary_program("2", Plus, "3")
    """
    def _build(lhs: str, op_cls=Plus, rhs: str = "1"):
        b = ParseResultBuilder()
        left = b.int_(lhs)
        op = b.operator(op_cls, "*" if op_cls is Multiply else "+")
        right = b.int_(rhs)
        b.block([b.binary(left, op, right)])
        return b.build()

    return _build


@pytest.fixture
def run_generator():
    """
    Fixture that returns a function running one pass over a parse result.

    Usage:
        gen = run_generator(parse_result)
        assert not gen.errors
    """
    def _run(parse_result):
        gen = IrGenerator(parse_result)
        gen.generate()
        return gen

    return _run


@pytest.fixture
def expect_ir(run_generator):
    """
    Fixture that generates IR and asserts the rendered instruction list.

    Usage:
        expect_ir(parse_result, ["load-literal %0, int(1)", "return %0"])
    """
    def _expect(parse_result, expected):
        gen = run_generator(parse_result)
        assert not gen.errors, \
            f"Generation failed:\n{gen.display_state()}"
        got = [str(i) for i in gen.block().instructions]
        assert got == expected, \
            f"IR mismatch:\nExpected: {expected!r}\nGot: {got!r}"
        return gen

    return _expect


@pytest.fixture
def expect_generation_error(run_generator):
    """
    Fixture that verifies generation reports exactly one error at a node.

    Usage:
        expect_generation_error(parse_result, node_id, "not supported")
    """
    def _expect(parse_result, node_id, error_substring: str = None):
        gen = run_generator(parse_result)
        assert len(gen.errors) == 1, \
            f"Expected one error but got:\n{gen.display_state()}"
        error = gen.errors[0]
        assert error.node_id == node_id
        if error_substring:
            assert error_substring.lower() in error.message.lower(), \
                f"Expected error containing '{error_substring}' but got:\n{error.message}"
        return gen

    return _expect
