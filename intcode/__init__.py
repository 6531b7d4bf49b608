"""
Intcode VM
==========
A resumable interpreter for Intcode programs: a flat tape of integers
executed as code, with position / immediate / relative addressing and a
suspend/resume protocol for interactive drivers.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌───────────┐    ┌──────────┐
    │ program  │───>│  Memory  │<──>│ Executor  │<───│ Session  │<── driver
    │ text     │    │  (tape)  │    │ (decoder) │    │ (cursor) │
    └──────────┘    └──────────┘    └───────────┘    └──────────┘

    - program.py:       comma-separated text -> list of ints
    - mem/memory.py:    zero-filled, auto-growing tape
    - cpu/regs.py:      instruction pointer, relative base, step count
    - cpu/decoder.py:   opcode + parameter modes, operand resolution
    - cpu/executor.py:  opcode semantics, single-step run_opcode()
    - session.py:       run() / run_until_needs_interaction() / resume*()
"""

__version__ = "0.1.0"

from .errors import (
    IntcodeError, ParseError, ExecutionFault, InvalidOpcode, InvalidMode,
    InvalidWriteTarget, InvalidAddress, InputUnderflow, ArithmeticOverflow,
    ProtocolViolation,
)
from .config import VMConfig, VM_PROFILES, DEFAULT_CONFIG
from .state import (
    ExecutionState, StateKind, RUNNING, NEEDS_INPUT, COMPLETED, provided_output,
)
from .mem.memory import Memory
from .cpu.regs import Registers
from .cpu.decoder import Mode, Instruction, OPCODES, decode_instruction
from .cpu.executor import Executor, run_opcode
from .program import parse_program
from .session import Session
from .log_setup import setup_logging
