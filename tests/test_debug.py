"""
Tracer and interactive debug console tests.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io

import pytest
from rich.console import Console

from synvm.debug.commands import DebugConsole
from synvm.debug.tracer import Tracer
from synvm.emu import Machine, TraceRecord
from synvm.mem.memory import AddressSpace

R0, R7 = 32768, 32775


def scripted(*lines):
    """Reader that replays lines and records the prompts it was given."""
    pending = list(lines)
    prompts = []

    def reader(prompt):
        prompts.append(prompt)
        return pending.pop(0)
    reader.prompts = prompts
    return reader


def make_console(machine, *lines, tracer=None):
    out = io.StringIO()
    console = Console(file=out, width=120, color_system=None)
    return DebugConsole(machine, tracer=tracer, reader=scripted(*lines), console=console), out


class TestTracer:

    def test_silent_until_started(self):
        stream = io.StringIO()
        tracer = Tracer(stream)
        tracer(TraceRecord(0, 'noop', ()))
        assert stream.getvalue() == ""
        assert tracer.records == 0

    def test_line_format(self):
        stream = io.StringIO()
        tracer = Tracer(stream)
        tracer.start()
        tracer(TraceRecord(12, 'add', (R0, 4, 4), (4, 4)))
        text = stream.getvalue()
        assert "Logging started" in text
        assert "PC:    12 -- " in text
        assert "add" in text
        assert "R0, 4, 4" in text
        assert "4, 4" in text
        assert tracer.records == 1

    def test_start_stop_toggle(self):
        stream = io.StringIO()
        tracer = Tracer(stream)
        tracer.start()
        tracer.start()
        tracer.stop()
        tracer(TraceRecord(0, 'halt', ()))
        text = stream.getvalue()
        assert text.count("Logging started") == 1
        assert "Logging stopped" in text
        assert "halt" not in text
        assert not tracer.running

    def test_file_output(self, tmp_path):
        path = tmp_path / "trace.log"
        tracer = Tracer(path)
        vm = Machine(AddressSpace.from_words([9, R0, 4, 4, 19, R0, 0]), tracer=tracer)
        tracer.start()
        vm.run()
        tracer.close()
        text = path.read_text(encoding="utf-8")
        assert "out" in text
        assert "Logging stopped" in text
        assert tracer.records == 3


class TestDebugConsole:

    def test_plain_line_passes_through(self):
        vm = Machine()
        dbg, _ = make_console(vm, "go north")
        assert dbg() == "go north"

    def test_set_register_then_input(self):
        vm = Machine()
        dbg, out = make_console(vm, "!reg 7 25", "use teleporter")
        assert dbg() == "use teleporter"
        assert vm.regs[7] == 25
        assert "R7 = 25" in out.getvalue()
        assert len(dbg.reader.prompts) == 2

    def test_hex_register_value(self):
        vm = Machine()
        dbg, _ = make_console(vm, "!reg 0 0x10", "x")
        dbg()
        assert vm.regs[0] == 16

    def test_leading_zero_register_value(self):
        vm = Machine()
        dbg, out = make_console(vm, "!reg 7 08", "!reg 06 0X1f", "x")
        dbg()
        assert vm.regs[7] == 8
        assert vm.regs[6] == 31
        assert "Not a number" not in out.getvalue()

    def test_regs_table(self):
        vm = Machine()
        vm.regs[3] = 4660
        dbg, out = make_console(vm, "!regs", "x")
        dbg()
        text = out.getvalue()
        assert "R3" in text
        assert "4660" in text
        assert "1234" in text

    def test_rejected_commands_continue(self):
        vm = Machine()
        dbg, out = make_console(vm, "!reg 9 1", "!reg 1 70000", "!reg 1", "!reg x 1", "ok")
        assert dbg() == "ok"
        text = out.getvalue()
        assert "Invalid register index (9)" in text
        assert "70000" in text
        assert "usage" in text
        assert "Not a number" in text
        assert vm.regs[1] == 0

    def test_unknown_command(self):
        vm = Machine()
        dbg, out = make_console(vm, "!bogus", "ok")
        dbg()
        assert "Unknown command 'bogus'" in out.getvalue()

    def test_help(self):
        vm = Machine()
        dbg, out = make_console(vm, "!help", "ok")
        dbg()
        assert "!trace on|off" in out.getvalue()

    def test_stack_listing(self):
        vm = Machine()
        vm.stack.push(11)
        vm.stack.push(22)
        dbg, out = make_console(vm, "!stack", "ok")
        dbg()
        lines = out.getvalue().splitlines()
        assert lines[0].strip() == "0: 22"
        assert lines[1].strip() == "1: 11"

    def test_mem_dump(self):
        vm = Machine(AddressSpace.from_words([72, 105]))
        dbg, out = make_console(vm, "!mem 0 8", "ok")
        dbg()
        assert "0048 0069" in out.getvalue()

    def test_mem_bad_address(self):
        vm = Machine()
        dbg, out = make_console(vm, "!mem 40000", "ok")
        dbg()
        assert "Invalid memory address (40000)" in out.getvalue()

    def test_trace_toggle(self):
        vm = Machine()
        tracer = Tracer(io.StringIO())
        dbg, out = make_console(vm, "!trace on", "ok", tracer=tracer)
        dbg()
        assert tracer.running
        assert "trace on" in out.getvalue()
        dbg.execute("trace off")
        assert not tracer.running

    def test_trace_without_tracer(self):
        vm = Machine()
        dbg, out = make_console(vm, "!trace on", "ok")
        dbg()
        assert "No tracer attached" in out.getvalue()

    def test_quit(self):
        vm = Machine()
        dbg, _ = make_console(vm, "!quit")
        with pytest.raises(EOFError):
            dbg()

    def test_as_machine_input_provider(self):
        """in R0; halt - with a command typed before the real input"""
        vm = Machine(AddressSpace.from_words([20, R0, 0]))
        dbg, _ = make_console(vm, "!reg 7 5", "z")
        vm.input_provider = dbg
        vm.run()
        assert vm.regs[0] == ord('z')
        assert vm.regs[7] == 5
