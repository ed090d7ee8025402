"""
Vole Machine — execute() and fetch-execute loop tests.

Programs are written as instruction words and loaded through the real
loader, so memory images and program slots match what volekit produces.
"""

import logging
from pathlib import Path

import pytest

from vole_machine import VoleMachine, StopReason, MachineState
from vole_machine.byte import Byte
from vole_machine.cpu.decoder import (
    Halt, JumpIfEqual, LoadFromMemory, LoadImmediate, StoreAscii,
)
from vole_machine.cpu.regs import RegisterFile
from vole_machine.emu import (
    CONTINUE, HALT, ControlEffect, ControlKind, execute, jump_to,
)
from vole_machine.errors import OutOfAsciiRange
from vole_machine.mem.memory import Memory

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def _run(words, start=0, **kwargs):
    vm = VoleMachine()
    vm.load(words, start)
    report = vm.run(**kwargs)
    return vm, report


# ═══════════════════════════════════════════════
# Individual instructions
# ═══════════════════════════════════════════════

class TestExecute:

    def test_load_immediate_verbatim(self):
        """2Rxy → R.to_hex() == "xy" """
        for word in ["2005", "2A3C", "2F80", "2100"]:
            vm, _ = _run([word])
            assert vm.regs.read(int(word[1], 16)).to_hex() == word[2:]

    def test_load_from_memory(self):
        """Program at $10: 1110 reads its own first byte ($11)."""
        vm, _ = _run(["1110", "C000"], start=0x10)
        assert vm.regs.read(1) == Byte(0x11)

    def test_load_from_memory_direct(self):
        regs, mem = RegisterFile(), Memory()
        mem.write(0xA7, Byte(0x55))
        assert execute(LoadFromMemory(2, 0xA7), regs, mem) == CONTINUE
        assert regs.read(2) == Byte(0x55)

    def test_load_immediate_direct(self):
        regs = RegisterFile()
        execute(LoadImmediate(2, Byte(0x9C)), regs, Memory())
        assert regs.read(2) == Byte(0x9C)

    def test_store_to_memory(self):
        vm, _ = _run(["21AB", "3150", "C000"], start=0x10)
        assert vm.mem.read(0x50) == Byte(0xAB)

    def test_copy_register_from_ra(self):
        """40x5: R5 ← RA"""
        vm, _ = _run(["2A77", "2B11", "40B5", "C000"])
        assert vm.regs.read(5) == Byte(0x77)

    def test_add_overflow_wraps(self):
        """$7F + $01 = $80"""
        vm, _ = _run(["217F", "2201", "5312", "C000"])
        assert vm.regs.read(3) == Byte(0x80)

    def test_add_float(self):
        """1.5 + 1.5 = 3.0 → $58"""
        vm, _ = _run(["2148", "2248", "6312", "C000"])
        assert vm.regs.read(3) == Byte(0x58)

    def test_halt_effect(self):
        assert execute(Halt(), RegisterFile(), Memory()) == HALT

    def test_unknown_instruction_type(self):
        with pytest.raises(TypeError):
            execute("2005", RegisterFile(), Memory())


class TestJumpIfEqual:

    def test_taken(self):
        regs = RegisterFile()
        regs.load(0, Byte(0x42))
        regs.load(3, Byte(0x42))
        effect = execute(JumpIfEqual(reg=3, target=12), regs, Memory())
        assert effect == jump_to(12)
        assert effect.next_pc(4) == 12

    def test_not_taken(self):
        regs = RegisterFile()
        regs.load(3, Byte(0x01))
        effect = execute(JumpIfEqual(reg=3, target=12), regs, Memory())
        assert effect == CONTINUE
        assert effect.next_pc(4) == 5

    def test_jump_skips_instruction(self):
        """B003 is taken (R0 == R0) and lands past 2199."""
        vm, report = _run(["2001", "B003", "2199", "C000"])
        assert vm.regs.read(1) == Byte(0x00)
        assert report.stop_reason == StopReason.HALT
        assert report.steps == 3

    def test_trace_lines(self):
        lines = []
        regs = RegisterFile()
        regs.load(1, Byte(0x07))
        execute(JumpIfEqual(1, 5), regs, Memory(), lines.append)
        assert lines == ["No JUMP: R1 (07) != R0 (00)"]


class TestAccumulatorStore:

    def test_append_a_then_b(self):
        vm, _ = _run(["2141", "3100", "2142", "3100", "C000"], start=0x10)
        assert vm.mem.accumulator_text() == "AB"

    def test_out_of_ascii_range_rejected(self):
        regs, mem = RegisterFile(), Memory()
        regs.load(1, Byte(0x80))
        with pytest.raises(OutOfAsciiRange) as exc:
            execute(StoreAscii(1), regs, mem)
        assert exc.value.register == 1
        assert mem.accumulator_text() == ""

    def test_out_of_range_does_not_stop_run(self):
        vm, report = _run(["2180", "3100", "2241", "3200", "C000"], start=0x10)
        assert vm.mem.accumulator_text() == "A"
        assert len(report.diagnostics) == 1
        assert isinstance(report.diagnostics[0], OutOfAsciiRange)
        assert report.stop_reason == StopReason.HALT
        assert "out of ASCII range" in report.trace[1]

    def test_space_reads_back_as_20(self):
        vm, _ = _run(["2120", "3100", "C000"], start=0x10)
        assert vm.snapshot().memory[0] == Byte(0x20)


# ═══════════════════════════════════════════════
# Fetch-execute loop
# ═══════════════════════════════════════════════

class TestRunLoop:

    def test_end_to_end(self):
        """2005 2103 5201 C000 → R0=05, R1=03, R2=08, pc=-1"""
        vm, report = _run(["2005", "2103", "5201", "C000"])
        assert vm.regs.read(0) == Byte(0x05)
        assert vm.regs.read(1) == Byte(0x03)
        assert vm.regs.read(2) == Byte(0x08)
        assert vm.program_counter == -1
        assert report.stop_reason == StopReason.HALT
        assert report.steps == 4
        assert vm.state is MachineState.HALTED

    def test_5205_adds_r0_and_r5(self):
        """The operand digits of opcode 5 name the source registers: R0 + R5."""
        vm, _ = _run(["2005", "2103", "5205", "C000"])
        assert vm.regs.read(2) == Byte(0x05)

    def test_memory_image_after_load(self):
        vm, _ = _run(["2005", "2103", "5201", "C000"])
        image = [b.to_hex() for b in vm.snapshot().memory[:8]]
        assert image == ["20", "05", "21", "03", "52", "01", "C0", "00"]

    def test_fall_off_end(self):
        vm, report = _run(["2001", "2102"])
        assert report.stop_reason == StopReason.END_OF_PROGRAM
        assert vm.program_counter == 2
        assert report.steps == 2

    def test_empty_program(self):
        vm = VoleMachine()
        assert vm.state is MachineState.RUNNING
        report = vm.run()
        assert report.stop_reason == StopReason.END_OF_PROGRAM
        assert report.steps == 0
        assert vm.halted

    def test_step_by_step(self):
        vm = VoleMachine()
        vm.load(["2005", "C000"])
        assert vm.step() is None
        assert vm.program_counter == 1
        assert vm.step() == StopReason.HALT
        assert vm.program_counter == -1
        assert vm.step() == StopReason.HALT

    def test_run_after_halt_does_nothing(self):
        vm, _ = _run(["2005", "C000"])
        report = vm.run()
        assert report.steps == 0
        assert report.stop_reason == StopReason.HALT

    def test_jump_loop_with_step_limit(self):
        """B001 B000 bounce between two slots forever; only max_steps stops it."""
        vm, report = _run(["B001", "B000", "C000"], max_steps=10)
        assert report.stop_reason == StopReason.STEP_LIMIT
        assert report.steps == 10
        assert vm.program_counter == 0
        assert not vm.halted

    def test_jump_to_own_slot_falls_through(self):
        """A taken jump that leaves pc unchanged advances to the next slot."""
        vm, report = _run(["B000", "C000"], max_steps=50)
        assert report.stop_reason == StopReason.HALT
        assert report.steps == 2
        assert vm.program_counter == -1
        assert report.trace[0] == "JUMP to instruction [0]"

    def test_jump_to_own_slot_mid_program(self):
        """R1 == R0 at slot 1, so B101 is taken onto itself and falls through."""
        vm, report = _run(["2203", "B101", "2304", "C000"])
        assert vm.regs.read(3) == Byte(0x04)
        assert report.steps == 4

    def test_jump_past_end_ends_program(self):
        vm, report = _run(["B050"])
        assert report.stop_reason == StopReason.END_OF_PROGRAM
        assert vm.program_counter == 50

    def test_deterministic(self):
        words = ["2148", "2248", "6312", "2341", "3300", "C000"]
        a, _ = _run(words)
        b, _ = _run(words)
        assert a.snapshot() == b.snapshot()
        assert a.get_trace() == b.get_trace()

    def test_countdown_example(self):
        vm = VoleMachine()
        vm.load_file(EXAMPLES / "countdown.vole")
        report = vm.run()
        assert report.stop_reason == StopReason.HALT
        assert vm.regs.read(1) == Byte(0x00)
        assert report.steps == 11

    def test_hello_example(self):
        vm = VoleMachine()
        vm.load_file(EXAMPLES / "hello.vole")
        vm.run()
        assert vm.mem.accumulator_text() == "Hi "
        assert vm.mem.read(0) == Byte(0x20)


class TestTraceAndSnapshot:

    def test_every_instruction_traces(self):
        vm, report = _run(["2005", "2103", "5201", "C000"])
        assert report.trace == [
            "LOAD R0 immediate value = 05",
            "LOAD R1 immediate value = 03",
            "ADD R0 and R1 into R2 = 08",
            "HALT execution.",
        ]
        assert vm.get_trace().count("\n") == 3

    def test_clear_trace(self):
        vm, _ = _run(["2005"])
        vm.clear_trace()
        assert vm.get_trace() == ""

    def test_snapshot(self):
        vm, _ = _run(["2141", "3100", "C000"], start=0x10)
        snap = vm.snapshot()
        assert len(snap.registers) == 16
        assert len(snap.memory) == 256
        assert snap.registers[1] == Byte(0x41)
        assert snap.program_counter == -1
        assert snap.accumulator == "A"

    def test_reset(self):
        vm, _ = _run(["2141", "3100", "C000"])
        vm.reset()
        assert vm.program == []
        assert vm.program_counter == 0
        assert vm.snapshot().accumulator == ""
        assert vm.regs.read(1) == Byte(0)


class TestControlEffect:

    def test_kinds(self):
        assert CONTINUE.kind is ControlKind.CONTINUE
        assert HALT.next_pc(7) == -1
        assert jump_to(3) == ControlEffect(ControlKind.JUMP, 3)


class TestStepCallback:

    def test_on_step_gets_each_instruction_trace(self):
        seen = []
        vm = VoleMachine()
        vm.load(["2005", "2103", "C000"])
        report = vm.run(on_step=seen.append)
        assert seen == [
            ["LOAD R0 immediate value = 05"],
            ["LOAD R1 immediate value = 03"],
            ["HALT execution."],
        ]
        assert report.steps == 3

    def test_on_step_sees_state_after_instruction(self):
        pcs = []
        vm = VoleMachine()
        vm.load(["2005", "C000"])
        vm.run(on_step=lambda lines: pcs.append(vm.program_counter))
        assert pcs == [1, -1]

    def test_register_summary_logged_per_step(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="vole_machine.emu"):
            _run(["2005", "2103", "5201", "C000"])
        assert "[2] R0=05 R1=03 R2=08" in caplog.text
