#!/usr/bin/env python3
"""
Command line front end for the resumable Brainfuck interpreter.

    bf-resume run PROGRAM [--state TOKEN] [--input VALUE] [--show-state]
        One invocation. Prints the JSON response, including the token to
        pass back with --state next time.

    bf-resume interactive PROGRAM [--show-state]
        Runs the program, asking for a value every time it suspends.
"""

import argparse
import json
import sys

from brainfuck import BrainfuckError, ResumableInterpreter, RunStatus, validate_program
from bf_runner import decode_token, run_request
from machine_state import MachineState
import settings


def format_state(state: MachineState, show_memory_range: int = 10) -> str:
    """Show current state of memory, pointer, and program."""
    lines = []

    # Show program with instruction pointer
    program_display = ""
    for i, cmd in enumerate(state.program):
        if i == state.instruction_pointer:
            program_display += f"[{cmd}]"
        else:
            program_display += cmd
    if state.instruction_pointer >= len(state.program):
        program_display += "[END]"
    lines.append(f"Program:  {program_display}")

    # Show memory tape (focused around pointer)
    start = max(0, state.data_pointer - show_memory_range // 2)
    end = min(len(state.tape), start + show_memory_range)
    if end - start < show_memory_range:
        start = max(0, end - show_memory_range)

    memory_vals = []
    memory_ptrs = []
    memory_addrs = []
    for i in range(start, end):
        memory_vals.append(f"{int(state.tape[i]):3d}")
        memory_ptrs.append(" ^ " if i == state.data_pointer else "   ")
        memory_addrs.append(f"{i:3d}")

    lines.append("Memory:   [" + "|".join(memory_vals) + "]")
    lines.append("Pointer:   " + " ".join(memory_ptrs))
    lines.append("Address:   " + " ".join(memory_addrs))

    if state.output:
        lines.append(f"Output:   {state.output!r} → {[ord(c) for c in state.output]}")
    else:
        lines.append("Output:   (empty)")
    lines.append(f"Waiting:  {'yes' if state.awaiting_input else 'no'}")
    return "\n".join(lines)


def cmd_run(args) -> int:
    try:
        result = run_request(args.program, args.state, args.input)
    except BrainfuckError as e:
        print(json.dumps({"error": type(e).__name__, "message": str(e)}), file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    if args.show_state:
        print(format_state(decode_token(result["next_state"])), file=sys.stderr)
    return 0


def cmd_interactive(args, read_input=input) -> int:
    """Run a program to the end, prompting whenever it suspends."""
    if not validate_program(args.program):
        print("❌ Program must be non-empty and use only +-<>.,[]", file=sys.stderr)
        return 1

    interpreter = ResumableInterpreter()
    state = MachineState.fresh(args.program)
    value = None
    saved_output = ""
    while True:
        printed = len(state.output)
        try:
            status = interpreter.step(state, value)
        except BrainfuckError as e:
            print(f"\n❌ Error during execution: {e}", file=sys.stderr)
            if args.show_state:
                print(format_state(state), file=sys.stderr)
            return 1

        if status is RunStatus.INPUT_ERROR:
            # The diagnostic replaced the output; put the real output back
            print(state.output)
            state.output = saved_output
        else:
            sys.stdout.write(state.output[printed:])
            sys.stdout.flush()
        if args.show_state:
            print("\n" + format_state(state))

        if status is RunStatus.FINISHED:
            print()
            return 0

        saved_output = state.output
        try:
            value = read_input("\n> ")
        except EOFError:
            print("\nInput closed while the program was waiting.", file=sys.stderr)
            return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bf-resume", description="Resumable Brainfuck interpreter")
    parser.add_argument("--log-level", default=None, help="Logging level (default from BF_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run one invocation and print the response")
    run.add_argument("program", nargs="?", default=None)
    run.add_argument("--state", default=None, help="Token from a previous invocation")
    run.add_argument("--input", default=None, help="Value for a pending ',' (0..255 or one character)")
    run.add_argument("--show-state", action="store_true")
    run.set_defaults(func=cmd_run)

    interactive = sub.add_parser("interactive", help="Run a program, prompting for input")
    interactive.add_argument("program")
    interactive.add_argument("--show-state", action="store_true")
    interactive.set_defaults(func=cmd_interactive)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings.configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
