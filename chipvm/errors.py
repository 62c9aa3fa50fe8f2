"""
chipvm error hierarchy.

Every fault the interpreter can raise derives from :class:`MachineError`, so
a host loop can halt on any of them with a single ``except`` clause::

    try:
        machine.step()
    except MachineError as e:
        logger.error(str(e))

Hierarchy
---------
MachineError
├── InvalidOpcode       - fetched word is not a known instruction
├── StackOverflow       - call with 16 return addresses already stacked
├── StackUnderflow      - return with an empty stack
├── OutOfBoundsAccess   - memory, index or PC reference past 0xFFF
│   └── ProgramTooLarge - program does not fit above 0x200
├── KeyWaitCancelled    - FX0A wait interrupted by shutdown
└── KeyWaitTimeout      - FX0A wait exceeded its timeout

Errors are raised before any state is committed, so the state a caller
passed in is still the state of the machine after a fault.
"""

from typing import Optional


class MachineError(Exception):
    """Base class for all faults raised by the virtual machine.

    Attributes:
        message: Description of the fault
        address: Address of the faulting instruction, when known
    """

    def __init__(self, message: str, address: Optional[int] = None):
        self.message = message
        self.address = address
        super().__init__(self.format())

    def format(self) -> str:
        if self.address is None:
            return self.message
        return f"0x{self.address:03X}: {self.message}"


class InvalidOpcode(MachineError):
    """Fetched word matches no known instruction family or sub-operation."""

    def __init__(self, instruction: int, address: Optional[int] = None):
        self.instruction = instruction
        super().__init__(f"invalid opcode {instruction:04X}", address)


class StackOverflow(MachineError):
    """Subroutine call while the stack already holds 16 entries."""

    def __init__(self, address: Optional[int] = None):
        super().__init__("stack overflow: call nested deeper than 16 levels", address)


class StackUnderflow(MachineError):
    """Return from subroutine with no entries on the stack."""

    def __init__(self, address: Optional[int] = None):
        super().__init__("stack underflow: return with empty stack", address)


class OutOfBoundsAccess(MachineError):
    """Memory, index or program-counter reference beyond the 4096-byte bound.

    Attributes:
        target: The offending address
        what: Which reference went out of bounds ("pc", "index", "sprite", ...)
    """

    def __init__(self, target: int, what: str, address: Optional[int] = None):
        self.target = target
        self.what = what
        super().__init__(f"{what} reference out of bounds: 0x{target:04X}", address)


class ProgramTooLarge(OutOfBoundsAccess):
    """Program payload exceeds the memory available above the program start."""

    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        MachineError.__init__(
            self, f"program of {size} bytes exceeds capacity of {capacity} bytes"
        )
        self.target = size
        self.what = "program"


class KeyWaitCancelled(MachineError):
    """A blocking key read was interrupted because the machine shut down."""

    def __init__(self, address: Optional[int] = None):
        super().__init__("key wait cancelled by shutdown", address)


class KeyWaitTimeout(MachineError):
    """A blocking key read did not receive a key press in time."""

    def __init__(self, timeout: float, address: Optional[int] = None):
        self.timeout = timeout
        super().__init__(f"no key press within {timeout:.3f}s", address)
