"""
Intcode VM — Register Set

  IP     instruction pointer, index of the next instruction word
  RB     relative base, added to Relative-mode operands (opcode 9 only)
  steps  instructions executed so far (diagnostic, never a limit)

Unlike a hardware register file there is no wrap-around: values are
plain Python ints. IP is kept non-negative by the executor; RB may go
negative on its own, only the addresses built from it are checked.
"""


class Registers:
    """Intcode register file."""

    __slots__ = ('IP', 'RB', 'steps')

    def __init__(self, ip: int = 0, rb: int = 0):
        self.IP: int = ip
        self.RB: int = rb
        self.steps: int = 0

    def copy(self) -> 'Registers':
        regs = Registers(self.IP, self.RB)
        regs.steps = self.steps
        return regs

    def display(self) -> str:
        """One-line register dump for traces."""
        return f"IP={self.IP:<6d} RB={self.RB:<6d} steps={self.steps}"

    def __repr__(self) -> str:
        return f"Registers({self.display()})"
