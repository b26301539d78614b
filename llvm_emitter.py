"""
LLVM Emitter

Lowers a finished IR block into an LLVM module with a single
`i64 @main()` function. Virtual registers become i64 SSA values; a
binary-op rebinds its left register to the new value.
"""

from typing import Dict, Optional

from llvmlite import ir

import ir_nodes as IR
from errors import EmitError


I64 = ir.IntType(64)


class LLVMEmitter:
    """Generates LLVM IR from an IR block"""

    def __init__(self, block: IR.IrBlock, function_name: str = "main",
                 module_name: str = "ir_module", triple: Optional[str] = None):
        self.block = block
        self.module = ir.Module(name=module_name)
        if triple:
            self.module.triple = triple

        func_type = ir.FunctionType(I64, [])
        self.function = ir.Function(self.module, func_type, name=function_name)
        entry = self.function.append_basic_block(name="entry")
        self.builder = ir.IRBuilder(entry)

        # register -> current SSA value
        self.registers: Dict[IR.RegId, ir.Value] = {}

    def emit(self) -> ir.Module:
        """Emit every instruction; the block must end in a return."""
        for pc, instr in enumerate(self.block.instructions):
            if self.builder.block.is_terminated:
                raise EmitError(f"instruction {pc} follows a return")
            self._emit_instruction(pc, instr)

        if not self.builder.block.is_terminated:
            raise EmitError("IR block does not end with a return")
        return self.module

    def _emit_instruction(self, pc: int, instr: IR.Instruction):
        if isinstance(instr, IR.LoadLiteral):
            if not isinstance(instr.lit, IR.IntLiteral):
                raise EmitError(f"instruction {pc}: unsupported literal {instr.lit}")
            self.registers[instr.dst] = ir.Constant(I64, instr.lit.value)
        elif isinstance(instr, IR.BinaryOp):
            left = self._read(pc, instr.lhs_dst)
            right = self._read(pc, instr.rhs)
            self.registers[instr.lhs_dst] = self._emit_binary(pc, instr.op, left, right)
        elif isinstance(instr, IR.Return):
            self.builder.ret(self._read(pc, instr.src))
        else:
            raise EmitError(f"instruction {pc}: cannot emit {instr}")

    def _emit_binary(self, pc: int, op: IR.Operator, left: ir.Value, right: ir.Value) -> ir.Value:
        name = f"r{pc}"
        if op.family == IR.Math.PLUS:
            return self.builder.add(left, right, name=name)
        elif op.family == IR.Math.MINUS:
            return self.builder.sub(left, right, name=name)
        elif op.family == IR.Math.MULTIPLY:
            return self.builder.mul(left, right, name=name)
        elif op.family == IR.Math.DIVIDE:
            return self.builder.sdiv(left, right, name=name)
        elif op.family == IR.Math.MODULO:
            return self.builder.srem(left, right, name=name)
        raise EmitError(f"instruction {pc}: unsupported operator {op}")

    def _read(self, pc: int, reg: IR.RegId) -> ir.Value:
        if reg not in self.registers:
            raise EmitError(f"instruction {pc}: register {reg} read before definition")
        return self.registers[reg]


def emit_llvm(block: IR.IrBlock, function_name: str = "main") -> str:
    """Return the textual LLVM IR for a block."""
    return str(LLVMEmitter(block, function_name=function_name).emit())
