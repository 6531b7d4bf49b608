"""
Intcode VM — Instruction Decoder / Operand Resolver

An instruction word packs the opcode and one mode digit per parameter:

    ABCDE
      DE   opcode (word mod 100)
      C    mode of parameter 1
      B    mode of parameter 2
      A    mode of parameter 3

Missing leading digits are 0 (Position). Example: 1002 decodes to MUL
with modes (Position, Immediate, Position).

Addressing modes:
  POSITION   operand is the address of the value
  IMMEDIATE  operand is the value itself (never a valid write target)
  RELATIVE   operand is an offset from the relative base
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple, Optional

from ..errors import InvalidOpcode, InvalidMode, InvalidWriteTarget, InvalidAddress


class Mode(IntEnum):
    POSITION = 0
    IMMEDIATE = 1
    RELATIVE = 2


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: opcode -> (mnemonic, param_count, write_param)
# write_param is the 1-based index of the destination parameter, or None.
# Width of every instruction is param_count + 1.

OPCODES = {
    1:  ('ADD',  3, 3),
    2:  ('MUL',  3, 3),
    3:  ('IN',   1, 1),
    4:  ('OUT',  1, None),
    5:  ('JNZ',  2, None),    # jump-if-true
    6:  ('JZ',   2, None),    # jump-if-false
    7:  ('LT',   3, 3),
    8:  ('EQ',   3, 3),
    9:  ('ARB',  1, None),    # adjust relative base
    99: ('HALT', 0, None),
}


@dataclass(frozen=True)
class Instruction:
    """One decoded instruction, valid only for the step that decoded it."""
    address: int
    raw: int
    opcode: int
    mnemonic: str
    modes: Tuple[Mode, ...]
    params: Tuple[int, ...]         # raw parameter words, before mode resolution
    write_param: Optional[int] = None

    @property
    def width(self) -> int:
        return len(self.params) + 1

    def describe(self) -> str:
        """Disassembly-style text: address, mnemonic, operands with mode sigils."""
        sigil = {Mode.POSITION: '', Mode.IMMEDIATE: '#', Mode.RELATIVE: '~'}
        ops = ', '.join(f"{sigil[m]}{p}" for m, p in zip(self.modes, self.params))
        return f"{self.address:05d}: {self.mnemonic:<4s} {ops}".rstrip()


def decode_modes(raw: int, count: int, address: int = 0) -> Tuple[Mode, ...]:
    """Pull `count` parameter modes out of an instruction word."""
    modes = []
    for k in range(1, count + 1):
        digit = (raw // 10 ** (k + 1)) % 10
        try:
            modes.append(Mode(digit))
        except ValueError:
            raise InvalidMode(raw, address, k, digit) from None
    return tuple(modes)


def decode_instruction(memory, address: int) -> Instruction:
    """Fetch and decode the instruction at `address`.

    Raises InvalidOpcode when the word is negative or its low two digits
    are not in OPCODES. A word of 0 (e.g. running off the end of the
    program into zero-filled memory) is rejected the same way.
    """
    raw = memory.get(address)
    if raw < 0:
        raise InvalidOpcode(raw, address)

    opcode = raw % 100
    if opcode not in OPCODES:
        raise InvalidOpcode(raw, address)

    mnemonic, count, write_param = OPCODES[opcode]
    modes = decode_modes(raw, count, address)
    params = tuple(memory.get(address + k) for k in range(1, count + 1))
    return Instruction(address, raw, opcode, mnemonic, modes, params, write_param)


# ──────────────────────────────────────────────
# Operand resolution
# ──────────────────────────────────────────────

def _effective(instr: Instruction, address: int) -> int:
    if address < 0:
        raise InvalidAddress(address, instr.address)
    return address


def read_operand(memory, instr: Instruction, k: int, relative_base: int) -> int:
    """Value of parameter k (1-based) under its addressing mode."""
    mode = instr.modes[k - 1]
    param = instr.params[k - 1]
    if mode == Mode.IMMEDIATE:
        return param
    if mode == Mode.POSITION:
        return memory.get(_effective(instr, param))
    return memory.get(_effective(instr, relative_base + param))


def write_address(instr: Instruction, k: int, relative_base: int,
                  allow_immediate: bool = False) -> int:
    """Destination address named by parameter k (1-based).

    Immediate mode has no address to write to and raises
    InvalidWriteTarget, unless `allow_immediate` asks for the permissive
    reading where Immediate is treated as Position.
    """
    mode = instr.modes[k - 1]
    param = instr.params[k - 1]
    if mode == Mode.IMMEDIATE and not allow_immediate:
        raise InvalidWriteTarget(instr.raw, instr.address, k)
    if mode == Mode.RELATIVE:
        return _effective(instr, relative_base + param)
    return _effective(instr, param)
