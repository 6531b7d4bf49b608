"""
Intcode VM — Execution States

The suspension signal handed back to a driver. Running is internal:
it means "keep stepping" and a driver never receives it from a
Session entry point.

    Running ──► NeedsInput ──resume_with_input(v)──► Running
            ──► ProvidedOutput(v) ──resume()──► Running
            ──► Completed  (terminal)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StateKind(Enum):
    RUNNING = 'RUNNING'
    NEEDS_INPUT = 'NEEDS_INPUT'
    PROVIDED_OUTPUT = 'PROVIDED_OUTPUT'
    COMPLETED = 'COMPLETED'


@dataclass(frozen=True)
class ExecutionState:
    kind: StateKind
    value: Optional[int] = None     # only set for PROVIDED_OUTPUT

    @property
    def is_running(self) -> bool:
        return self.kind is StateKind.RUNNING

    @property
    def needs_input(self) -> bool:
        return self.kind is StateKind.NEEDS_INPUT

    @property
    def has_output(self) -> bool:
        return self.kind is StateKind.PROVIDED_OUTPUT

    @property
    def is_completed(self) -> bool:
        return self.kind is StateKind.COMPLETED

    def __str__(self) -> str:
        if self.has_output:
            return f"ProvidedOutput({self.value})"
        return {
            StateKind.RUNNING: 'Running',
            StateKind.NEEDS_INPUT: 'NeedsInput',
            StateKind.COMPLETED: 'Completed',
        }[self.kind]


RUNNING = ExecutionState(StateKind.RUNNING)
NEEDS_INPUT = ExecutionState(StateKind.NEEDS_INPUT)
COMPLETED = ExecutionState(StateKind.COMPLETED)


def provided_output(value: int) -> ExecutionState:
    return ExecutionState(StateKind.PROVIDED_OUTPUT, value)
