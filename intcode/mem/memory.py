"""
Intcode VM — Growable Memory Tape

Memory is a flat list of signed integer cells starting at index 0 and
logically infinite toward higher indices:

  - reading past the end returns 0 and does not grow the tape
  - writing past the end zero-fills up to and including the target index
  - negative (or non-int) indices are rejected with InvalidAddress
"""

from typing import Iterable, List

from ..errors import InvalidAddress


class Memory:
    """Zero-filled, auto-growing integer tape.

    Usage:
        mem = Memory([1, 9, 10, 3])
        mem.get(1000)      # 0, tape length unchanged
        mem.set(1000, 7)   # tape grows to 1001 cells
    """

    __slots__ = ('_cells',)

    def __init__(self, cells: Iterable[int] = ()):
        self._cells: List[int] = list(cells)

    @classmethod
    def wrap(cls, cells: List[int]) -> 'Memory':
        """View an existing list in place. Writes (and growth) go to `cells`."""
        mem = cls.__new__(cls)
        mem._cells = cells
        return mem

    # --- Core read/write ---

    def get(self, index: int) -> int:
        """Read one cell. Indices past the end read as 0."""
        _check_index(index)
        if index >= len(self._cells):
            return 0
        return self._cells[index]

    def set(self, index: int, value: int):
        """Write one cell, growing the tape with zeros as needed."""
        _check_index(index)
        short = index + 1 - len(self._cells)
        if short > 0:
            self._cells.extend([0] * short)
        self._cells[index] = value

    # --- Inspection ---

    def snapshot(self) -> List[int]:
        """Copy of the tape as it is now."""
        return list(self._cells)

    def copy(self) -> 'Memory':
        return Memory(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other) -> bool:
        if isinstance(other, Memory):
            return self._cells == other._cells
        return NotImplemented

    def __repr__(self) -> str:
        head = ','.join(str(v) for v in self._cells[:8])
        more = ',...' if len(self._cells) > 8 else ''
        return f"Memory([{head}{more}], len={len(self._cells)})"


def _check_index(index) -> None:
    # bool is an int subclass but never a meaningful address
    if not isinstance(index, int) or isinstance(index, bool) or index < 0:
        raise InvalidAddress(index)
