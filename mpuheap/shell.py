"""Interactive command shell for the heap allocator and process commands."""

from __future__ import annotations

import argparse
import sys
from typing import TextIO

from mpuheap.fields import ParsedInput, parse_fields
from mpuheap.heap import HeapAllocator
from mpuheap.textutil import num_to_str, parse_hex32, str_cmp, to_hex32

MAX_CHARS = 80
_ENTER = "\r"
_ERASE = ("\b", "\x7f")
_BACKGROUND_PROCESSES = ("idle", "flash4hz")


class Shell:
    """Line-editing command shell.

    Characters are collected by :meth:`feed` until a carriage return, or
    until the line holds MAX_CHARS characters, and the line is then run by
    :meth:`execute`. Each call returns the text the command printed.
    """

    def __init__(self, output: TextIO | None = None, active_pid: int = 0) -> None:
        self.output = output
        self.active_pid = active_pid
        self.heap = HeapAllocator(active_pid)
        self.boot_count = 0
        self._buffer: list[str] = []

    # -- commands ---------------------------------------------------------

    def _reboot(self) -> str:
        self.heap = HeapAllocator(self.active_pid)
        self._buffer.clear()
        self.boot_count += 1
        return ""

    def _malloc(self, parsed: ParsedInput) -> str:
        size = parsed.field_integer(1) & 0xFFFFFFFF
        address = self.heap.malloc(size)
        return to_hex32(address or 0) + "\n"

    def _free(self, parsed: ParsedInput) -> str:
        text = parsed.field_string(1) or ""
        try:
            address = parse_hex32(text)
        except ValueError:
            return "Invalid address\n"
        try:
            self.heap.release(address)
        except PermissionError:
            return "You THIEF!\n"
        return ""

    @staticmethod
    def _switch(label: str, on: bool, on_word: str, off_word: str) -> str:
        return f"{label} {on_word if on else off_word}\n"

    def execute(self, line: str) -> str:
        """Run one command line and return what it prints."""
        parsed = parse_fields(line)
        if parsed.is_command("reboot", 0):
            text = self._reboot()
        elif parsed.is_command("malloc", 1):
            text = self._malloc(parsed)
        elif parsed.is_command("free", 1):
            text = self._free(parsed)
        elif parsed.is_command("ps", 0):
            text = "PS called\n"
        elif parsed.is_command("ipcs", 0):
            text = "IPCS called\n"
        elif parsed.is_command("kill", 1):
            pid = parsed.field_integer(1) & 0xFFFFFFFF
            text = num_to_str(pid) + " killed\n"
        elif parsed.is_command("pkill", 1):
            text = f"{parsed.field_string(1)} killed\n"
        elif parsed.is_command("pi", 1):
            on = str_cmp(parsed.field_string(1) or "", "on")
            text = self._switch("pi", on, "on", "off")
        elif parsed.is_command("preempt", 1):
            on = str_cmp(parsed.field_string(1) or "", "on")
            text = self._switch("preempt", on, "on", "off")
        elif parsed.is_command("sched", 1):
            prio = str_cmp(parsed.field_string(1) or "", "prio")
            text = self._switch("sched", prio, "prio", "rr")
        elif parsed.is_command("pidof", 1):
            text = f"{parsed.field_string(1)} launched\n"
        else:
            # Background process names are accepted and do nothing.
            text = ""
            for name in _BACKGROUND_PROCESSES:
                if parsed.is_command(name, 0):
                    break
        return text

    # -- line editing -----------------------------------------------------

    def feed(self, char: str) -> str:
        """Take one input character; return the command output once a line ends."""
        if len(char) != 1:
            raise ValueError(f"expected a single character, got {char!r}")
        if char == _ENTER or len(self._buffer) == MAX_CHARS:
            line = "".join(self._buffer)
            self._buffer.clear()
            return self.execute(line)
        if char in _ERASE and self._buffer:
            self._buffer.pop()
        if " " <= char < "\x7f":
            self._buffer.append(char)
        return ""

    def run(self, stream_in: TextIO) -> None:
        """Feed every character of ``stream_in`` and write the output.

        A line feed is taken as the end of a line, like a carriage return.
        """
        out = self.output if self.output is not None else sys.stdout
        for chunk in iter(lambda: stream_in.read(4096), ""):
            for char in chunk:
                text = self.feed(_ENTER if char == "\n" else char)
                if text:
                    out.write(text)
        out.flush()


def main(argv: list[str] | None = None) -> int:
    """Run the shell on a script file or on standard input."""
    parser = argparse.ArgumentParser(
        prog="mpuheap", description="Heap allocator command shell."
    )
    parser.add_argument("script", nargs="?", help="file of commands (default: stdin)")
    parser.add_argument("--pid", type=int, default=0, help="active process id")
    args = parser.parse_args(argv)

    shell = Shell(sys.stdout, active_pid=args.pid)
    if args.script:
        with open(args.script, encoding="ascii", errors="replace") as handle:
            shell.run(handle)
    else:
        shell.run(sys.stdin)
    return 0


if __name__ == "__main__":
    sys.exit(main())