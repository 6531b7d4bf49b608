"""
Intcode VM — Error Taxonomy

    IntcodeError
    ├── ParseError            malformed program text (recoverable)
    ├── ExecutionFault        fatal for the session that raised it
    │   ├── InvalidOpcode
    │   │   └── InvalidMode
    │   ├── InvalidWriteTarget
    │   ├── InvalidAddress
    │   ├── InputUnderflow
    │   └── ArithmeticOverflow
    └── ProtocolViolation     driver called the wrong entry point

ProtocolViolation is deliberately not an ExecutionFault: it is a bug in the
driver, and drivers need to be able to catch one without the other.
"""

from typing import Optional


class IntcodeError(Exception):
    """Base class for everything the VM raises."""
    pass


class ParseError(IntcodeError):
    """Program text contained a token that is not a signed decimal integer."""
    def __init__(self, token: str, position: int):
        self.token = token
        self.position = position
        super().__init__(f"Parse error at token {position}: {token!r} is not an integer")


class ExecutionFault(IntcodeError):
    """Raised while executing; the session cannot continue afterwards."""
    def __init__(self, message: str, address: Optional[int] = None):
        self.address = address
        if address is not None:
            message = f"@{address}: {message}"
        super().__init__(message)


class InvalidOpcode(ExecutionFault):
    def __init__(self, raw: int, address: int, message: Optional[str] = None):
        self.raw = raw
        super().__init__(message or f"Unknown opcode {raw}", address)


class InvalidMode(InvalidOpcode):
    """Instruction word carries a parameter mode digit other than 0/1/2."""
    def __init__(self, raw: int, address: int, param: int, digit: int):
        self.param = param
        self.digit = digit
        super().__init__(
            raw, address, f"Unknown mode {digit} for parameter {param} in {raw}")


class InvalidWriteTarget(ExecutionFault):
    def __init__(self, raw: int, address: int, param: int):
        self.raw = raw
        self.param = param
        super().__init__(
            f"Parameter {param} of {raw} is a write target in immediate mode", address)


class InvalidAddress(ExecutionFault):
    """Memory index resolved to something that is not a non-negative int."""
    def __init__(self, index, address: Optional[int] = None):
        self.index = index
        super().__init__(f"Invalid memory index {index!r}", address)


class InputUnderflow(ExecutionFault):
    def __init__(self, address: int, consumed: int):
        self.consumed = consumed
        super().__init__(
            f"Input instruction reached after all {consumed} inputs were consumed",
            address)


class ArithmeticOverflow(ExecutionFault):
    def __init__(self, value: int, bits: int, address: Optional[int] = None):
        self.value = value
        self.bits = bits
        super().__init__(f"Value {value} does not fit in {bits}-bit cell", address)


class ProtocolViolation(IntcodeError):
    """Driver called a session entry point that its current state forbids."""
    def __init__(self, operation: str, state, reason: str = ""):
        self.operation = operation
        self.state = state
        message = f"{operation}() not allowed in state {state}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
