"""
Intcode VM — Session (resumable cursor)

A Session owns one VM: its Memory, its Registers and whatever input the
driver has handed over but the program has not consumed yet. It runs the
Executor in a loop and stops at suspension points:

  IN with nothing pending   → NeedsInput
  OUT                       → ProvidedOutput(value)
  HALT                      → Completed (terminal)

Two ways to drive it:

  Batch: every input is known up front.
      outputs = Session.from_text(src).run([1, 2])

  Interactive: answer the program one value at a time.
      state, vm = Session.from_text(src).run_until_needs_interaction()
      while not state.is_completed:
          if state.needs_input:
              state, vm = vm.resume_with_input(next_value())
          else:
              handle(state.value)
              state, vm = vm.resume()

The returned cursor is the session itself. Sessions never share storage;
clone() (and copy.copy / copy.deepcopy) gives an independent VM, which is
how drivers branch a base program over many parameter choices.

Fault policy:
  - ExecutionFault (bad opcode, bad write target, bad address, input
    underflow, overflow) marks the session faulted. Every later
    execution call raises ProtocolViolation that names the fault.
  - ProtocolViolation (wrong entry point for the current state) leaves
    the session exactly as it was.
  - Cells passed to the constructor or assigned with vm[i] = v are
    checked on the way in (TypeError, ArithmeticOverflow) and a rejected
    value changes nothing. Inputs are type-checked up front and width
    checked by the IN that consumes them.
"""

import logging
from collections import deque
from typing import Deque, Iterable, List, Optional, Tuple

from .config import VMConfig, DEFAULT_CONFIG
from .cpu.executor import Executor
from .cpu.regs import Registers
from .errors import ExecutionFault, InputUnderflow, ProtocolViolation
from .mem.memory import Memory
from .program import parse_program
from .state import ExecutionState, RUNNING

log = logging.getLogger(__name__)


class Session:
    """One resumable Intcode VM."""

    def __init__(self, program: Iterable[int] = (), config: Optional[VMConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.mem = Memory(self.config.check_cell(v, i) for i, v in enumerate(program))
        self.regs = Registers()

        self._pending: Deque[int] = deque()
        self._state: ExecutionState = RUNNING
        self._fault: Optional[ExecutionFault] = None

        self._trace = self.config.trace
        self._trace_output: List[str] = []

        self._executor = Executor(self.mem, self.regs, self.config)

    @classmethod
    def from_text(cls, source: str, config: Optional[VMConfig] = None) -> 'Session':
        """Parse comma-separated program text. Raises ParseError."""
        return cls(parse_program(source), config)

    # ══════════════════════════════════════════════
    # Inspection
    # ══════════════════════════════════════════════

    @property
    def state(self) -> ExecutionState:
        """Last observed state; RUNNING before the first call."""
        return self._state

    @property
    def instruction_pointer(self) -> int:
        return self.regs.IP

    @property
    def relative_base(self) -> int:
        return self.regs.RB

    @property
    def steps(self) -> int:
        return self.regs.steps

    @property
    def faulted(self) -> Optional[ExecutionFault]:
        return self._fault

    def memory_snapshot(self) -> List[int]:
        return self.mem.snapshot()

    def __getitem__(self, index: int) -> int:
        return self.mem.get(index)

    def __setitem__(self, index: int, value: int):
        self.mem.set(index, self.config.check_cell(value, index))

    def __repr__(self) -> str:
        return f"<Session {self._state} {self.regs.display()} mem={len(self.mem)}>"

    # ══════════════════════════════════════════════
    # Batch execution
    # ══════════════════════════════════════════════

    def run(self, inputs: Iterable[int] = ()) -> List[int]:
        """Run to HALT, feeding `inputs` in order, and return every output.

        Raises InputUnderflow if the program asks for more input than was
        given.
        """
        self._check_usable('run')
        supplied = list(inputs)
        for value in supplied:
            _check_input(value)
        self._pending.extend(supplied)

        outputs = []
        while True:
            state = self._run_until_state_change()
            if state.is_completed:
                break
            if state.needs_input:
                fault = InputUnderflow(self.regs.IP, len(supplied))
                self._record_fault(fault)
                raise fault
            outputs.append(state.value)

        if self._pending:
            log.debug("Halted with %d unused inputs", len(self._pending))
            self._pending.clear()
        return outputs

    def run_pure(self, inputs: Iterable[int] = ()) -> List[int]:
        """Like run(), but on a clone; this session is left untouched."""
        return self.clone().run(inputs)

    # ══════════════════════════════════════════════
    # Suspending protocol
    # ══════════════════════════════════════════════

    def run_until_needs_interaction(self) -> Tuple[ExecutionState, 'Session']:
        """Run until the program needs input, produces output, or halts."""
        self._check_usable('run_until_needs_interaction')
        return self._run_until_state_change(), self

    def resume_with_input(self, value: int) -> Tuple[ExecutionState, 'Session']:
        """Supply one input value while paused at NeedsInput, then continue."""
        self._check_usable('resume_with_input')
        if not self._state.needs_input:
            raise ProtocolViolation('resume_with_input', self._state,
                                    "session is not waiting for input")
        _check_input(value)
        self._pending.append(value)
        return self._run_until_state_change(), self

    def resume(self) -> Tuple[ExecutionState, 'Session']:
        """Continue after ProvidedOutput."""
        self._check_usable('resume')
        if not self._state.has_output:
            raise ProtocolViolation('resume', self._state,
                                    "no output is waiting to be acknowledged")
        return self._run_until_state_change(), self

    def step(self) -> ExecutionState:
        """Execute exactly one instruction and return the resulting state.

        Pending input is consumed as usual; a pending output counts as
        acknowledged. Returns RUNNING for ordinary instructions.
        """
        self._check_usable('step')
        return self._step_once()

    # ══════════════════════════════════════════════
    # Cloning
    # ══════════════════════════════════════════════

    def clone(self) -> 'Session':
        """Independent copy: memory, registers, pending input and state."""
        other = type(self).__new__(type(self))
        other.config = self.config
        other.mem = self.mem.copy()
        other.regs = self.regs.copy()
        other._pending = deque(self._pending)
        other._state = self._state
        other._fault = self._fault
        other._trace = self._trace
        other._trace_output = list(self._trace_output)
        other._executor = Executor(other.mem, other.regs, other.config)
        return other

    def __copy__(self) -> 'Session':
        return self.clone()

    def __deepcopy__(self, memo) -> 'Session':
        return self.clone()

    # ══════════════════════════════════════════════
    # Internals
    # ══════════════════════════════════════════════

    def _check_usable(self, operation: str):
        if self._fault is not None:
            raise ProtocolViolation(operation, self._state,
                                    f"session faulted earlier ({self._fault})")
        if self._state.is_completed:
            raise ProtocolViolation(operation, self._state, "program has halted")

    def _record_fault(self, fault: ExecutionFault):
        self._fault = fault
        log.warning("Session faulted: %s", fault)

    def _step_once(self) -> ExecutionState:
        try:
            instr = self._executor.decode()
            if self._trace:
                line = f"{instr.describe():<32s} {self.regs.display()}"
                self._trace_output.append(line)
                log.debug(line)
            state = self._executor.execute(instr, self._pending)
        except ExecutionFault as e:
            self._record_fault(e)
            raise
        self._state = state
        return state

    def _run_until_state_change(self) -> ExecutionState:
        while True:
            state = self._step_once()
            if not state.is_running:
                log.debug("Suspended at IP=%d: %s", self.regs.IP, state)
                return state

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record (and DEBUG-log) every executed instruction."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()


def _check_input(value):
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"Input must be an int, got {type(value).__name__}")
