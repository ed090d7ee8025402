"""
Vole Machine — Main Machine Class

Integrates:
  - Register file (cpu/regs.py)
  - Memory + cell-0 accumulator (mem/memory.py)
  - Instruction variants / decoder (cpu/decoder.py)
  - ALU + float-8 codec (cpu/alu.py)
  - Program loader (assembler.py)

Execution model:
  1. Fetch program[pc]  (pc counts instruction slots, not bytes)
  2. Execute → ControlEffect: Continue | JumpTo(slot) | Halt
  3. Continue → pc + 1;  JumpTo(t) → pc = t;  Halt → pc = -1
     A taken jump to its own slot left pc unchanged, so it falls through to
     pc + 1 like any instruction that did not move the counter.
  4. Stop when pc < 0 (HALT) or pc runs off the program (END_OF_PROGRAM)

A loop of two or more jumps with no reachable Halt runs until interrupted; that is a bug in
the user program. run(max_steps=N) exists for callers that want a bound.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union
import logging

from .assembler import Assembler, LoadReport, tokenize
from .byte import Byte
from .config import COMPARE_REGISTER, DEFAULT_START_ADDRESS, HALT_SENTINEL
from .cpu import alu
from .cpu.decoder import (
    Instruction, LoadFromMemory, LoadImmediate, StoreToMemory, StoreAscii,
    CopyRegister, Add, AddFloat, JumpIfEqual, Halt,
)
from .cpu.regs import RegisterFile
from .errors import OutOfAsciiRange, VoleError
from .mem.memory import Memory

log = logging.getLogger(__name__)
trace_log = logging.getLogger("vole_machine.trace")


# ══════════════════════════════════════════════
# Control effects
# ══════════════════════════════════════════════

class ControlKind(Enum):
    CONTINUE = 'CONTINUE'
    JUMP = 'JUMP'
    HALT = 'HALT'


@dataclass(frozen=True)
class ControlEffect:
    """What the run loop does with the program counter after an instruction."""
    kind: ControlKind
    target: Optional[int] = None

    def next_pc(self, pc: int) -> int:
        if self.kind is ControlKind.JUMP:
            return self.target
        if self.kind is ControlKind.HALT:
            return HALT_SENTINEL
        return pc + 1


CONTINUE = ControlEffect(ControlKind.CONTINUE)
HALT = ControlEffect(ControlKind.HALT)


def jump_to(slot: int) -> ControlEffect:
    return ControlEffect(ControlKind.JUMP, slot)


# ══════════════════════════════════════════════
# Instruction handlers
# ══════════════════════════════════════════════
# Handler signature: handler(instr, regs, mem, trace) -> ControlEffect
# `trace` receives one human-readable line per executed instruction.

Trace = Callable[[str], None]


def _exec_load_memory(ins: LoadFromMemory, regs: RegisterFile, mem: Memory, trace: Trace):
    regs.load(ins.reg, mem.read(ins.address))
    trace(f"LOAD R{ins.reg:X} from Memory[{ins.address:02X}] = {regs.read(ins.reg)}")
    return CONTINUE


def _exec_load_immediate(ins: LoadImmediate, regs: RegisterFile, mem: Memory, trace: Trace):
    regs.load(ins.reg, ins.value)
    trace(f"LOAD R{ins.reg:X} immediate value = {regs.read(ins.reg)}")
    return CONTINUE


def _exec_store(ins: StoreToMemory, regs: RegisterFile, mem: Memory, trace: Trace):
    mem.write(ins.address, regs.read(ins.reg))
    trace(f"STORE R{ins.reg:X} to Memory[{ins.address:02X}]")
    return CONTINUE


def _exec_store_ascii(ins: StoreAscii, regs: RegisterFile, mem: Memory, trace: Trace):
    value = regs.read(ins.reg)
    try:
        text = mem.append_ascii_at_zero(value)
    except OutOfAsciiRange as e:
        trace(f"Value in R{ins.reg:X} is out of ASCII range for Memory[00].")
        raise OutOfAsciiRange(value.value, ins.reg) from e
    trace(f"STORE R{ins.reg:X} to Memory[00] as ASCII '{chr(value.value)}'; "
          f"updated Memory[00] = \"{text}\"")
    return CONTINUE


def _exec_copy(ins: CopyRegister, regs: RegisterFile, mem: Memory, trace: Trace):
    regs.load(ins.dest, regs.read(ins.source))
    trace(f"COPY from R{ins.source:X} to R{ins.dest:X} = {regs.read(ins.dest)}")
    return CONTINUE


def _exec_add(ins: Add, regs: RegisterFile, mem: Memory, trace: Trace):
    regs.load(ins.dest, alu.add8(regs.read(ins.src1), regs.read(ins.src2)))
    trace(f"ADD R{ins.src1:X} and R{ins.src2:X} into R{ins.dest:X} = {regs.read(ins.dest)}")
    return CONTINUE


def _exec_add_float(ins: AddFloat, regs: RegisterFile, mem: Memory, trace: Trace):
    regs.load(ins.dest, alu.add_float8(regs.read(ins.src1), regs.read(ins.src2)))
    trace(f"ADD_FLOAT R{ins.src1:X} and R{ins.src2:X} into R{ins.dest:X} = "
          f"{regs.read(ins.dest)}")
    return CONTINUE


def _exec_jump(ins: JumpIfEqual, regs: RegisterFile, mem: Memory, trace: Trace):
    value, ref = regs.read(ins.reg), regs.read(COMPARE_REGISTER)
    if value == ref:
        trace(f"JUMP to instruction [{ins.target}]")
        return jump_to(ins.target)
    trace(f"No JUMP: R{ins.reg:X} ({value}) != R{COMPARE_REGISTER} ({ref})")
    return CONTINUE


def _exec_halt(ins: Halt, regs: RegisterFile, mem: Memory, trace: Trace):
    trace("HALT execution.")
    return HALT


_HANDLERS: Dict[type, Callable[..., ControlEffect]] = {
    LoadFromMemory: _exec_load_memory,
    LoadImmediate:  _exec_load_immediate,
    StoreToMemory:  _exec_store,
    StoreAscii:     _exec_store_ascii,
    CopyRegister:   _exec_copy,
    Add:            _exec_add,
    AddFloat:       _exec_add_float,
    JumpIfEqual:    _exec_jump,
    Halt:           _exec_halt,
}


def execute(instruction: Instruction, regs: RegisterFile, mem: Memory,
            trace: Trace = trace_log.debug) -> ControlEffect:
    """Execute one instruction against registers and memory.

    Raises OutOfAsciiRange when a StoreAscii value is above $7F (nothing is
    written); the run loop records it and continues.
    """
    handler = _HANDLERS.get(type(instruction))
    if handler is None:
        raise TypeError(f"Not a Vole instruction: {instruction!r}")
    return handler(instruction, regs, mem, trace)


# ══════════════════════════════════════════════
# Machine
# ══════════════════════════════════════════════

class MachineState(Enum):
    RUNNING = 'RUNNING'
    HALTED = 'HALTED'


class StopReason(Enum):
    HALT = 'HALT'                       # Halt instruction / negative pc
    END_OF_PROGRAM = 'END_OF_PROGRAM'   # pc ran past the last slot
    STEP_LIMIT = 'STEP_LIMIT'           # run(max_steps=...) exhausted


@dataclass
class RunReport:
    stop_reason: StopReason
    steps: int
    program_counter: int
    trace: List[str] = field(default_factory=list)
    diagnostics: List[VoleError] = field(default_factory=list)


@dataclass(frozen=True)
class MachineSnapshot:
    registers: Tuple[Byte, ...]
    memory: Tuple[Byte, ...]
    program_counter: int
    accumulator: str


class VoleMachine:
    """The Vole machine: 16 registers, 256 bytes of memory, a program.

    Usage:
        vm = VoleMachine()
        vm.load(["2005", "2103", "5201", "C000"], start_address=0)
        report = vm.run()
        vm.regs.read(2)        # Byte(0x08)
        vm.program_counter     # -1
    """

    def __init__(self):
        self.regs = RegisterFile()
        self.mem = Memory()
        self.program: List[Instruction] = []
        self.program_counter: int = 0
        self.load_cursor: int = DEFAULT_START_ADDRESS
        self.state = MachineState.RUNNING
        self._trace_output: List[str] = []
        self._run_diagnostics: List[VoleError] = []

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load(self, tokens: Iterable[str],
             start_address: int = DEFAULT_START_ADDRESS) -> LoadReport:
        """Assemble instruction words into memory and append them to the program.

        Bad tokens are skipped and reported in LoadReport.diagnostics. The
        program counter is reset to 0 afterwards.
        """
        report = Assembler(self.mem, self.program).assemble(tokens, start_address)
        self.load_cursor = report.end_address
        self.program_counter = 0
        self.state = MachineState.RUNNING
        log.info("Loaded %d instruction(s) at $%02X (%d skipped)",
                 report.loaded, start_address, len(report.diagnostics))
        return report

    def load_text(self, text: str,
                  start_address: int = DEFAULT_START_ADDRESS) -> LoadReport:
        return self.load(tokenize(text), start_address)

    def load_file(self, path: Union[str, Path],
                  start_address: int = DEFAULT_START_ADDRESS) -> LoadReport:
        """Load a program file (whitespace-separated words).

        Undecodable bytes become U+FFFD, so they surface as an ordinary bad
        token in the load diagnostics.
        """
        text = Path(path).read_text(encoding='utf-8', errors='replace')
        log.info("File loaded successfully: %s", path)
        return self.load_text(text, start_address)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def _trace(self, line: str):
        self._trace_output.append(line)
        trace_log.debug(line)

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        pc = self.program_counter
        if pc < 0:
            self.state = MachineState.HALTED
            return StopReason.HALT
        if pc >= len(self.program):
            self.state = MachineState.HALTED
            return StopReason.END_OF_PROGRAM

        try:
            effect = execute(self.program[pc], self.regs, self.mem, self._trace)
        except OutOfAsciiRange as e:
            log.warning("%s", e)
            self._run_diagnostics.append(e)
            effect = CONTINUE

        self.program_counter = effect.next_pc(pc)
        if self.program_counter == pc:
            # counter untouched by the instruction: fall through
            self.program_counter = pc + 1
        log.debug("[%d] %s", pc, self.regs.display())
        if self.program_counter < 0:
            self.state = MachineState.HALTED
            return StopReason.HALT
        return None

    def run(self, max_steps: Optional[int] = None,
            on_step: Optional[Callable[[List[str]], None]] = None) -> RunReport:
        """Run until Halt or the end of the program.

        Args:
            max_steps: optional bound on executed instructions; None runs
                       until the program stops by itself.
            on_step:   called after every executed instruction with the
                       trace lines that instruction produced
        """
        trace_start = len(self._trace_output)
        self._run_diagnostics = []
        self.state = MachineState.RUNNING if self.program_counter >= 0 else MachineState.HALTED
        steps = 0
        reason = None

        while reason is None:
            if max_steps is not None and steps >= max_steps:
                reason = StopReason.STEP_LIMIT
                break
            before = self.program_counter
            mark = len(self._trace_output)
            reason = self.step()
            if 0 <= before < len(self.program):
                steps += 1
                if on_step is not None:
                    on_step(self._trace_output[mark:])

        log.info("Run stopped: %s after %d step(s), pc=%d",
                 reason.value, steps, self.program_counter)
        return RunReport(
            stop_reason=reason,
            steps=steps,
            program_counter=self.program_counter,
            trace=self._trace_output[trace_start:],
            diagnostics=list(self._run_diagnostics),
        )

    @property
    def halted(self) -> bool:
        return self.state is MachineState.HALTED

    # ══════════════════════════════════════════════
    # Inspection
    # ══════════════════════════════════════════════

    def snapshot(self) -> MachineSnapshot:
        return MachineSnapshot(
            registers=tuple(self.regs.values()),
            memory=tuple(self.mem.dump()),
            program_counter=self.program_counter,
            accumulator=self.mem.accumulator_text(),
        )

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Full machine reset: registers, memory, program and counters."""
        self.regs.reset()
        self.mem.reset()
        self.program.clear()
        self.program_counter = 0
        self.load_cursor = DEFAULT_START_ADDRESS
        self.state = MachineState.RUNNING
        self._trace_output.clear()
        self._run_diagnostics = []
