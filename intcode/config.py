"""
Intcode VM — Configuration Profiles

Sessions take an optional VMConfig. Profiles name the combinations that
drivers actually use:

  default  unbounded Python ints, immediate-mode writes rejected
  i64      ADD/MUL results checked against a signed 64-bit cell
  legacy   immediate-mode write parameters treated as position mode,
           as older Intcode runners did
"""

from dataclasses import dataclass, replace
from typing import Optional

from .errors import ArithmeticOverflow


# Signed cell width used by the "i64" profile
I64_BITS = 64


VM_PROFILES = {
    "default": {
        "cell_bits": None,
        "allow_immediate_writes": False,
        "description": "Unbounded cells, strict write modes",
    },
    "i64": {
        "cell_bits": I64_BITS,
        "allow_immediate_writes": False,
        "description": "Signed 64-bit cells with overflow checks",
    },
    "legacy": {
        "cell_bits": None,
        "allow_immediate_writes": True,
        "description": "Immediate write parameters act as position mode",
    },
}


@dataclass(frozen=True)
class VMConfig:
    cell_bits: Optional[int] = None
    allow_immediate_writes: bool = False
    trace: bool = False

    def __post_init__(self):
        if self.cell_bits is not None and self.cell_bits < 2:
            raise ValueError(f"cell_bits must be at least 2, got {self.cell_bits}")

    @classmethod
    def from_profile(cls, name: str, **overrides) -> 'VMConfig':
        """Build a config from a VM_PROFILES entry, with keyword overrides."""
        if name not in VM_PROFILES:
            raise ValueError(
                f"Unknown VM profile {name!r}; choose from: {', '.join(VM_PROFILES)}")
        profile = VM_PROFILES[name]
        base = cls(cell_bits=profile["cell_bits"],
                   allow_immediate_writes=profile["allow_immediate_writes"])
        return replace(base, **overrides)

    def fits(self, value: int) -> bool:
        """True when `value` is representable in the configured cell width."""
        if self.cell_bits is None:
            return True
        limit = 1 << (self.cell_bits - 1)
        return -limit <= value < limit

    def check_cell(self, value, address: Optional[int] = None) -> int:
        """Validate a value headed for a cell or register and return it.

        Raises TypeError for anything that is not an int (bool included)
        and ArithmeticOverflow when it is wider than the cell.
        """
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"Cell value must be an int, got {type(value).__name__}")
        if not self.fits(value):
            raise ArithmeticOverflow(value, self.cell_bits, address)
        return value


DEFAULT_CONFIG = VMConfig()
