import io

import pytest

from mpuheap.heap import HeapAllocator
from mpuheap.shell import MAX_CHARS, Shell, main
from mpuheap.textutil import parse_hex32, to_hex32


@pytest.mark.parametrize(
    "line, expected",
    [
        ("ps", "PS called\n"),
        ("ipcs", "IPCS called\n"),
        ("kill 42", "42 killed\n"),
        ("pkill Flash4Hz", "flash4hz killed\n"),
        ("pidof idle", "idle launched\n"),
        ("pi on", "pi on\n"),
        ("pi off", "pi off\n"),
        ("preempt ON", "preempt on\n"),
        ("preempt off", "preempt off\n"),
        ("sched prio", "sched prio\n"),
        ("sched RR", "sched rr\n"),
    ],
)
def test_simple_commands(line, expected):
    assert Shell().execute(line) == expected


def test_kill_with_alpha_argument_uses_zero():
    assert Shell().execute("kill abc") == "0 killed\n"


@pytest.mark.parametrize("line", ["idle", "flash4hz", "bogus", "", "kill"])
def test_unknown_or_incomplete_commands_print_nothing(line):
    assert Shell().execute(line) == ""


def test_malloc_matches_allocator():
    expected = to_hex32(HeapAllocator().malloc(512))
    assert Shell().execute("malloc 512") == expected + "\n"


def test_malloc_too_large_prints_zero_address():
    assert Shell().execute("malloc 9000") == "00000000\n"


def test_free_then_malloc_reuses_address():
    shell = Shell()
    first = shell.execute("malloc 1024").strip()
    assert shell.execute(f"free {first}") == ""
    assert shell.heap.used_mask == 0
    assert shell.execute("malloc 1024").strip() == first


def test_free_unowned_address():
    assert Shell().execute("free 20001000") == "You THIEF!\n"


def test_free_by_other_pid_is_refused():
    shell = Shell()
    address = shell.execute("malloc 512").strip()
    shell.heap.active_pid = 3
    assert shell.execute(f"free {address}") == "You THIEF!\n"
    assert shell.heap.used_mask != 0


def test_free_short_address():
    assert Shell().execute("free 12") == "Invalid address\n"


def test_reboot_resets_heap():
    shell = Shell()
    first = shell.execute("malloc 512")
    shell.execute("malloc 512")
    assert shell.execute("reboot") == ""
    assert shell.boot_count == 1
    assert shell.heap.used_mask == 0
    assert shell.execute("malloc 512") == first


def test_feed_collects_until_enter():
    shell = Shell()
    outputs = [shell.feed(c) for c in "ps"]
    assert outputs == ["", ""]
    assert shell.feed("\r") == "PS called\n"


def test_feed_backspace_and_delete():
    shell = Shell()
    for c in "pz\bs":
        shell.feed(c)
    assert shell.feed("\r") == "PS called\n"
    for c in "psq\x7f":
        shell.feed(c)
    assert shell.feed("\r") == "PS called\n"


def test_feed_full_line_runs_and_drops_char():
    shell = Shell()
    line = "ps" + " " * (MAX_CHARS - 2)
    for c in line:
        assert shell.feed(c) == ""
    assert shell.feed("x") == "PS called\n"
    assert shell.feed("\r") == ""


def test_feed_rejects_multiple_chars():
    with pytest.raises(ValueError):
        Shell().feed("ab")


def test_run_writes_outputs():
    out = io.StringIO()
    Shell(out).run(io.StringIO("ps\nkill 7\nsched prio\n"))
    assert out.getvalue() == "PS called\n7 killed\nsched prio\n"


def test_run_malloc_round_trip():
    out = io.StringIO()
    Shell(out).run(io.StringIO("malloc 512\nmalloc 512\n"))
    first, second = out.getvalue().split()
    assert parse_hex32(second) - parse_hex32(first) == 512


def test_main_with_script(tmp_path, capsys):
    script = tmp_path / "cmds.txt"
    script.write_text("ipcs\npidof idle\n", encoding="ascii")
    assert main([str(script)]) == 0
    assert capsys.readouterr().out == "IPCS called\nidle launched\n"