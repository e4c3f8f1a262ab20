"""Fault reports: the text printed when a fault exception is taken.

Each ``format_*`` function returns the full report that the matching fault
handler prints. The register values come from the exception stack frame
pushed on the process stack.
"""

from __future__ import annotations

from dataclasses import astuple, dataclass
from typing import Iterable

from mpuheap.textutil import to_hex32

FRAME_WORDS = 8
FAULT_STAT_IERR = 0x00000001  # instruction access violation
FAULT_STAT_DERR = 0x00000002  # data access violation
_MFAULT_MASK = 0xFF


@dataclass(frozen=True)
class StackFrame:
    """Registers stacked on exception entry, lowest address first."""

    r0: int
    r1: int
    r2: int
    r3: int
    r12: int
    lr: int
    pc: int
    xpsr: int

    def __post_init__(self) -> None:
        for value in astuple(self):
            to_hex32(value)  # raises ValueError for anything outside 32 bits

    @classmethod
    def from_words(cls, words: Iterable[int]) -> StackFrame:
        """Build a frame from the eight stacked words (R0, R1, R2, R3, R12, LR, PC, xPSR)."""
        values = tuple(words)
        if len(values) != FRAME_WORDS:
            raise ValueError(
                f"a stack frame holds {FRAME_WORDS} words, got {len(values)}"
            )
        return cls(*values)


def _line(label: str, value: int) -> str:
    return f"{label}:\t0x{to_hex32(value)}\n"


def _register_dump(psp: int, msp: int, fault_status: int, frame: StackFrame) -> str:
    return "".join(
        (
            _line("PSP", psp),
            _line("MSP", msp),
            _line("mfault", fault_status & _MFAULT_MASK),
            _line("R0", frame.r0),
            _line("R1", frame.r1),
            _line("R2", frame.r2),
            _line("R3", frame.r3),
            _line("R12", frame.r12),
            _line("LR", frame.lr),
            _line("xPSR", frame.xpsr),
        )
    )


def format_hard_fault(
    psp: int, msp: int, fault_status: int, frame: StackFrame
) -> str:
    """Return the hard fault report.

    Only the low byte of ``fault_status`` (the memory management fault flags)
    is shown.
    """
    return (
        "\nHard fault in process pid\n"
        + _line("Offending Address(PC)", frame.pc)
        + _register_dump(psp, msp, fault_status, frame)
    )


def format_mpu_fault(
    psp: int, msp: int, fault_status: int, data_address: int, frame: StackFrame
) -> str:
    """Return the memory management (MPU) fault report."""
    return (
        "\nMPU fault in process N\n"
        + _line("Fault Instruction Address(PC)", frame.pc)
        + _line("Fault Data Address", data_address)
        + _register_dump(psp, msp, fault_status, frame)
    )


def format_bus_fault() -> str:
    """Return the bus fault report."""
    return "\nBus fault in process pid\n"


def format_usage_fault() -> str:
    """Return the usage fault report."""
    return "\nUsage fault in process pid\n"


def format_pendsv(fault_status: int) -> str:
    """Return the PendSV report.

    A note is added when ``fault_status`` shows an instruction or data access
    violation, meaning the PendSV was raised by the MPU fault handler.
    """
    to_hex32(fault_status)
    text = "\nPendsv in process N\n"
    if fault_status & (FAULT_STAT_IERR | FAULT_STAT_DERR):
        text += "called from MPU\n"
    return text