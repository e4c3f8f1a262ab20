# mpuheap

A model of the memory layer of a small Cortex-M4 RTOS, in plain Python.

- **Heap allocator** (`mpuheap.heap`): a 28 KiB SRAM heap starting at
  `0x20001000`, made of 4 KiB regions of 512-byte sub-regions and 8 KiB regions
  of 1024-byte sub-regions. Requests are rounded up to whole blocks
  (`calculate_blocks`), placed first-fit, and 1536-byte requests may straddle the
  edge between a 4 KiB and an 8 KiB region. `HeapAllocator.malloc` returns the
  block's address, or `None` when the request is empty, larger than 8 KiB, or no
  space is left. `HeapAllocator.release` frees a block owned by the active pid
  (raising `PermissionError` otherwise); `HeapAllocator.free` and
  `HeapAllocator.check_ownership` are the two steps it is made of.
  `calculate_index` and `malloc_address` map between addresses and sub-region
  indices.
- **MPU masks** (`mpuheap.mpu`): build sub-region disable masks with
  `no_sram_access_mask` and `add_sram_access_window`, split them per region with
  `region_srd_masks`, and get the region settings from `flash_region`,
  `peripheral_region` and `sram_regions` as `MpuRegion` values, whose properties
  decode the size, sub-region disable byte and access attributes.
- **Fault reports** (`mpuheap.faults`): turn a stacked exception frame
  (`StackFrame.from_words`) and status values into the text a fault handler
  prints: `format_hard_fault`, `format_mpu_fault`, `format_bus_fault`,
  `format_usage_fault` and `format_pendsv`.
- **Text helpers and input parsing** (`mpuheap.textutil`, `mpuheap.fields`):
  `to_hex32` and `parse_hex32` for eight-digit hex words, `num_to_str`,
  `str_cmp`, and `parse_fields`, which splits a command line into alphabetic and
  numeric fields and returns a `ParsedInput`.

## Install

```
pip install .
```

## Shell

```
mpuheap [script] [--pid PID]
```

Reads commands from the script file, or from standard input, and writes the
replies to standard output. A carriage return or a line feed ends a line, and a
line is also run once it holds 80 characters. `--pid` sets the process id that
owns the allocations made.

Commands:

- `malloc <size>` prints the address as eight hex digits (`00000000` on failure).
- `free <address>` takes an eight-digit hex address; it prints `You THIEF!` if
  the active pid does not own it, and `Invalid address` if it cannot be read.
- `reboot` starts over with an empty heap.
- `ps`, `ipcs`, `kill <pid>`, `pkill <name>`, `pidof <name>`, `pi on|off`,
  `preempt on|off` and `sched prio|rr` print an acknowledgement.

The `Shell` class can also be driven directly: `Shell.execute(line)` returns the
text a command prints, `Shell.feed(char)` does line editing one character at a
time, and `Shell.run(stream)` processes a whole stream.

## Library use

```python
from mpuheap.heap import HeapAllocator
from mpuheap.textutil import to_hex32

heap = HeapAllocator()
address = heap.malloc(512)
print(to_hex32(address))
heap.release(address)
```

## What it does not do

There are no tasks, no scheduler and no hardware access. The process commands
(`ps`, `ipcs`, `kill`, `pkill`, `pidof`, `pi`, `preempt`, `sched`) only print
an acknowledgement; they do not start, stop or inspect anything. MPU settings
and fault reports are computed values and text, not written to any device.

## Tests

```
pip install .[test]
pytest
```