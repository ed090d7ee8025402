#!/usr/bin/env python3
"""
volekit — Vole Machine Toolkit
==============================

One CLI for the Vole machine:
    volekit run   — Load a program file and run it
    volekit asm   — Load a program file and print the decoded listing
    volekit menu  — Interactive menu (load / run / status / manual entry)

Usage:
    python volekit.py <command> [options]
    python volekit.py <command> --help

Examples:
    python volekit.py run add.vole
    python volekit.py run hello.vole --start 0x10 --status
    python volekit.py run loop.vole --max-steps 1000
    python volekit.py run add.vole --status-each
    python volekit.py asm add.vole
    python volekit.py menu
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List

from vole_machine import VoleMachine, __version__
from vole_machine.assembler import LoadReport
from vole_machine.display import format_status
from vole_machine.errors import VoleError
from vole_machine.log_setup import setup_logging

log = logging.getLogger("vole_machine.cli")


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def _print_load_report(report: LoadReport, out: Callable[[str], None]):
    for err in report.diagnostics:
        out(f"Skipping invalid instruction: {err}")
    out(f"Loaded {report.loaded} instruction(s) at Memory[{report.start_address:02X}]"
        + (" (stopped at HALT)" if report.halted else ""))


# ══════════════════════════════════════════════
# Interactive menu
# ══════════════════════════════════════════════

MENU = "\n1. Load Program\n2. Run\n3. Display Status\n4. Enter Instructions Manually\n5. Exit"


class Menu:
    """The interactive front end: prompts, then calls the machine core."""

    def __init__(self, machine: VoleMachine,
                 input_fn: Callable[[str], str] = input,
                 out: Callable[[str], None] = print):
        self.machine = machine
        self.input = input_fn
        self.out = out

    def _ask_address(self) -> int:
        while True:
            text = self.input("Enter the starting memory address to store instructions: ")
            try:
                return parse_int_arg(text)
            except ValueError:
                self.out(f"Invalid address: {text}")

    def load_program(self):
        path = Path(self.input("Enter program file path: ").strip())
        if not path.is_file():
            self.out("Error: Unable to open file. Please check the file path and try again.")
            return
        report = self.machine.load_file(path, self._ask_address())
        _print_load_report(report, self.out)

    def run(self):
        """Run the program, showing the full status after every instruction."""
        def show(lines):
            for line in lines:
                self.out(line)
            self.display_status()

        self.machine.run(on_step=show)

    def display_status(self):
        self.out(format_status(self.machine.snapshot()))

    def manual_input(self):
        start = self._ask_address()
        self.out("Enter instructions (4 characters each, or 'C000' to finish):")
        words: List[str] = []
        while True:
            tokens = self.input("Instruction: ").split()
            words.extend(tokens)
            if any(t.startswith('C') and len(t) == 4 for t in tokens):
                break
        report = self.machine.load(words, start)
        _print_load_report(report, self.out)

    def loop(self):
        actions = {
            '1': self.load_program,
            '2': self.run,
            '3': self.display_status,
            '4': lambda: (self.manual_input(), self.run()),
        }
        while True:
            self.out(MENU)
            try:
                choice = self.input("Choice: ").strip()
            except EOFError:
                choice = '5'
            if choice == '5':
                self.out("Exiting...")
                return
            action = actions.get(choice)
            if action is None:
                self.out("Invalid choice.")
                continue
            try:
                action()
            except EOFError:
                self.out("Exiting...")
                return


# ══════════════════════════════════════════════
# Subcommands
# ══════════════════════════════════════════════

def cmd_run(args) -> int:
    vm = VoleMachine()
    report = vm.load_file(args.input, args.start)
    _print_load_report(report, print)

    def show(lines):
        for line in lines:
            print(line)
        if args.status_each:
            print(format_status(vm.snapshot()))

    result = vm.run(max_steps=args.max_steps, on_step=show)
    for err in result.diagnostics:
        print(f"Warning: {err}", file=sys.stderr)
    print(f"Stopped: {result.stop_reason.value} after {result.steps} step(s), "
          f"Program Counter = {result.program_counter}")
    if vm.mem.accumulator_text():
        print(f'Output: "{vm.mem.accumulator_text()}"')
    if args.status:
        print()
        print(format_status(vm.snapshot()))
    return 0


def cmd_asm(args) -> int:
    vm = VoleMachine()
    report = vm.load_file(args.input, args.start)
    print(report.get_listing())
    return 0 if report.ok else 1


def cmd_menu(args) -> int:
    Menu(VoleMachine()).loop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="volekit",
        description="Vole Machine toolkit — load, list and run Vole programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"volekit {__version__}")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="-v: info, -vv: debug + live execution trace")
    parser.add_argument("--log-dir", default=None,
                        help="Write a timestamped DEBUG log file into this directory")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Load a program file and run it")
    p_run.add_argument("input", help="Program file (whitespace-separated words)")
    p_run.add_argument("--start", type=parse_int_arg, default=0,
                       help="Memory address for the first word (default 0)")
    p_run.add_argument("--max-steps", type=int, default=None,
                       help="Stop after N instructions (default: unbounded)")
    p_run.add_argument("--status", action="store_true",
                       help="Print registers and memory after the run")
    p_run.add_argument("--status-each", action="store_true",
                       help="Print registers and memory after every instruction")
    p_run.set_defaults(func=cmd_run)

    # ── asm ──────────────────────────────────────────────────────────────
    p_asm = sub.add_parser("asm", help="Load a program file and print the listing")
    p_asm.add_argument("input", help="Program file")
    p_asm.add_argument("--start", type=parse_int_arg, default=0,
                       help="Memory address for the first word (default 0)")
    p_asm.set_defaults(func=cmd_asm)

    # ── menu ─────────────────────────────────────────────────────────────
    p_menu = sub.add_parser("menu", help="Interactive menu")
    p_menu.set_defaults(func=cmd_menu)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    levels = {0: logging.WARNING, 1: logging.INFO}
    setup_logging(console_level=levels.get(args.verbose, logging.DEBUG),
                  log_dir=Path(args.log_dir) if args.log_dir else None)

    try:
        return args.func(args)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except VoleError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        log.exception("Internal error: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
