"""
Intcode VM — Executor (opcode semantics)

Executes one decoded instruction against a Memory and a Registers set and
reports what happened as an ExecutionState:

  RUNNING              instruction done, keep stepping
  NEEDS_INPUT          IN reached with nothing pending; IP not moved, so
                       the same IN runs again once input is supplied
  ProvidedOutput(v)    OUT produced v; IP already past the OUT
  COMPLETED            HALT; IP left on the halt word

Handler signature: handler(instr, inputs) -> ExecutionState
`inputs` is a deque of pending input values, consumed from the left.
"""

from collections import deque
from typing import Deque, Iterable, List, Optional, Union

from .regs import Registers
from .decoder import Instruction, decode_instruction, read_operand, write_address
from ..config import VMConfig, DEFAULT_CONFIG
from ..errors import InputUnderflow, InvalidAddress
from ..mem.memory import Memory
from ..state import ExecutionState, RUNNING, NEEDS_INPUT, COMPLETED, provided_output


class Executor:
    """Fetch/decode/execute for one session's memory and registers.

    Usage:
        ex = Executor(Memory([1, 0, 0, 0, 99]), Registers())
        ex.step(deque())   # RUNNING, mem[0] == 2
        ex.step(deque())   # COMPLETED
    """

    def __init__(self, memory: Memory, regs: Registers,
                 config: Optional[VMConfig] = None):
        self.mem = memory
        self.regs = regs
        self.config = config or DEFAULT_CONFIG
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def decode(self) -> Instruction:
        return decode_instruction(self.mem, self.regs.IP)

    def step(self, inputs: Deque[int]) -> ExecutionState:
        """Execute the instruction at IP."""
        return self.execute(self.decode(), inputs)

    def execute(self, instr: Instruction, inputs: Deque[int]) -> ExecutionState:
        state = self._dispatch[instr.mnemonic](instr, inputs)
        if state is not NEEDS_INPUT:
            self.regs.steps += 1
        return state

    def _build_dispatch(self) -> dict:
        return {
            'ADD':  self._op_add,
            'MUL':  self._op_mul,
            'IN':   self._op_in,
            'OUT':  self._op_out,
            'JNZ':  self._op_jnz,
            'JZ':   self._op_jz,
            'LT':   self._op_lt,
            'EQ':   self._op_eq,
            'ARB':  self._op_arb,
            'HALT': self._op_halt,
        }

    # ── Operand helpers ──

    def _read(self, instr: Instruction, k: int) -> int:
        return read_operand(self.mem, instr, k, self.regs.RB)

    def _write(self, instr: Instruction, value: int):
        addr = write_address(instr, instr.write_param, self.regs.RB,
                             self.config.allow_immediate_writes)
        self.mem.set(addr, value)

    def _checked(self, instr: Instruction, value: int) -> int:
        return self.config.check_cell(value, instr.address)

    def _advance(self, instr: Instruction):
        self.regs.IP = instr.address + instr.width

    def _jump(self, instr: Instruction, target: int):
        if target < 0:
            raise InvalidAddress(target, instr.address)
        self.regs.IP = target

    # ── Arithmetic / compare ──

    def _op_add(self, instr, inputs):
        value = self._checked(instr, self._read(instr, 1) + self._read(instr, 2))
        self._write(instr, value)
        self._advance(instr)
        return RUNNING

    def _op_mul(self, instr, inputs):
        value = self._checked(instr, self._read(instr, 1) * self._read(instr, 2))
        self._write(instr, value)
        self._advance(instr)
        return RUNNING

    def _op_lt(self, instr, inputs):
        self._write(instr, 1 if self._read(instr, 1) < self._read(instr, 2) else 0)
        self._advance(instr)
        return RUNNING

    def _op_eq(self, instr, inputs):
        self._write(instr, 1 if self._read(instr, 1) == self._read(instr, 2) else 0)
        self._advance(instr)
        return RUNNING

    # ── I/O (suspension points) ──

    def _op_in(self, instr, inputs):
        if not inputs:
            return NEEDS_INPUT
        # resolve the target before consuming, so a bad target keeps the input
        addr = write_address(instr, instr.write_param, self.regs.RB,
                             self.config.allow_immediate_writes)
        self._checked(instr, inputs[0])
        self.mem.set(addr, inputs.popleft())
        self._advance(instr)
        return RUNNING

    def _op_out(self, instr, inputs):
        value = self._read(instr, 1)
        self._advance(instr)
        return provided_output(value)

    # ── Control flow ──

    def _op_jnz(self, instr, inputs):
        if self._read(instr, 1) != 0:
            self._jump(instr, self._read(instr, 2))
        else:
            self._advance(instr)
        return RUNNING

    def _op_jz(self, instr, inputs):
        if self._read(instr, 1) == 0:
            self._jump(instr, self._read(instr, 2))
        else:
            self._advance(instr)
        return RUNNING

    def _op_arb(self, instr, inputs):
        self.regs.RB = self._checked(instr, self.regs.RB + self._read(instr, 1))
        self._advance(instr)
        return RUNNING

    def _op_halt(self, instr, inputs):
        return COMPLETED


def run_opcode(memory: Union[Memory, List[int]], pointer: int,
               relative_base: int = 0, inputs: Iterable[int] = (),
               outputs: Optional[List[int]] = None,
               config: Optional[VMConfig] = None) -> Optional[int]:
    """Execute the single instruction at `pointer`.

    Returns the next instruction pointer, or None if the instruction was
    HALT. A plain list is mutated in place. IN takes from `inputs` and
    raises InputUnderflow when there is nothing to take; OUT appends to
    `outputs` if a list is given.
    """
    mem = memory if isinstance(memory, Memory) else Memory.wrap(memory)
    pending = deque(inputs)
    ex = Executor(mem, Registers(pointer, relative_base), config)

    state = ex.step(pending)
    if state.is_completed:
        return None
    if state.needs_input:
        raise InputUnderflow(pointer, 0)
    if state.has_output and outputs is not None:
        outputs.append(state.value)
    return ex.regs.IP
