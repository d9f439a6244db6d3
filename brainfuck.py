#!/usr/bin/env python3
"""
Resumable Brainfuck Interpreter

Brainfuck is an esoteric programming language with only 8 commands:
    >   Move the pointer to the right
    <   Move the pointer to the left
    +   Increment the memory cell at the pointer
    -   Decrement the memory cell at the pointer
    .   Output the character signified by the cell at the pointer
    ,   Input a character and store it in the cell at the pointer
    [   Jump past the matching ] if the cell at the pointer is 0
    ]   Jump back to the matching [ if the cell at the pointer is nonzero

Unlike a batch interpreter, this one never reads input itself. When the
program hits `,` execution suspends and the caller gets the machine state
back. A later call supplies one input value and the program carries on
from the same instruction.
"""

import logging
import re
from enum import Enum
from typing import Dict, Optional, Union

from machine_state import MachineState
import settings

logger = logging.getLogger(__name__)

COMMANDS = "><+-.,[]"
INPUT_ERROR_MESSAGE = "Valid inputs are either 0..255 or a single character."

_NUMERIC_INPUT = re.compile(r"\+?[0-9]+")


class BrainfuckError(Exception):
    """Base class for everything the machine reports."""


class InvalidProgram(BrainfuckError):
    pass


class InputDecodeError(BrainfuckError):
    pass


class TokenError(BrainfuckError):
    """A serialized state could not be turned back into a MachineState."""


class MachineFault(BrainfuckError):
    """Fatal condition that aborts the current invocation."""

    def __init__(self, message: str, instruction_pointer: int):
        super().__init__(f"{message} (instruction {instruction_pointer})")
        self.instruction_pointer = instruction_pointer


class StructuralError(MachineFault):
    pass


class PointerOutOfRange(MachineFault):
    def __init__(self, instruction_pointer: int, data_pointer: int):
        super().__init__(f"Data pointer moved to {data_pointer}, outside the tape", instruction_pointer)
        self.data_pointer = data_pointer


class InternalError(MachineFault):
    pass


class StepLimitExceeded(MachineFault):
    def __init__(self, instruction_pointer: int, max_steps: int):
        super().__init__(f"Step limit of {max_steps} reached", instruction_pointer)
        self.max_steps = max_steps


class RunStatus(Enum):
    FINISHED = "finished"
    AWAITING_INPUT = "awaiting_input"
    INPUT_ERROR = "input_error"


def validate_program(program) -> bool:
    """True for a non-empty string made only of the eight commands."""
    if not isinstance(program, str) or not program:
        return False
    return all(c in COMMANDS for c in program)


def decode_input(raw: Union[str, int, None]) -> int:
    """Turn one input value into a byte.

    Numbers 0..255 are taken literally, so "5" is 5 and not ord("5").
    Any other single character is taken by its code point.
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        if 0 <= raw <= 255:
            return raw
        raise InputDecodeError(f"Input {raw} is outside 0..255")
    if not isinstance(raw, str):
        raise InputDecodeError(f"Unsupported input value {raw!r}")

    if _NUMERIC_INPUT.fullmatch(raw):
        digits = raw.lstrip("+").lstrip("0") or "0"
        if len(digits) > 3:
            raise InputDecodeError(f"Input with {len(digits)} significant digits is outside 0..255")
        try:
            value = int(digits)
        except ValueError as e:
            raise InputDecodeError(f"Input {raw!r} is not a number") from e
        if value <= 255:
            return value
        raise InputDecodeError(f"Input {digits} is outside 0..255")

    if len(raw) == 1 and ord(raw) <= 255:
        return ord(raw)
    raise InputDecodeError(f"Input {raw!r} is neither 0..255 nor a single character")


def find_matching_forward(program: str, position: int) -> int:
    """Position of the ] closing the [ at `position`."""
    depth = 0
    i = position
    while True:
        i += 1
        if i >= len(program):
            raise StructuralError("Unmatched '['", position)
        cmd = program[i]
        if cmd == '[':
            depth += 1
        elif cmd == ']':
            if depth == 0:
                return i
            depth -= 1


def find_matching_backward(program: str, position: int) -> int:
    """Position of the [ opening the ] at `position`."""
    depth = 0
    i = position
    while True:
        i -= 1
        if i < 0:
            raise StructuralError("Unmatched ']'", position)
        cmd = program[i]
        if cmd == ']':
            depth += 1
        elif cmd == '[':
            if depth == 0:
                return i
            depth -= 1


def build_jump_table(program: str) -> Dict[int, int]:
    """Build a table mapping bracket positions for efficient jumping."""
    jump_table = {}
    stack = []

    for i, cmd in enumerate(program):
        if cmd == '[':
            stack.append(i)
        elif cmd == ']':
            if not stack:
                raise StructuralError("Unmatched ']'", i)
            start = stack.pop()
            jump_table[start] = i
            jump_table[i] = start

    if stack:
        raise StructuralError("Unmatched '['", stack[-1])

    return jump_table


class ResumableInterpreter:
    """Runs a MachineState until it finishes or asks for input.

    pointer_policy is "error" (moving off the tape is a PointerOutOfRange
    fault) or "wrap" (the tape is circular).
    """

    POINTER_POLICIES = ("error", "wrap")

    def __init__(self, max_steps: Optional[int] = None, pointer_policy: Optional[str] = None,
                 use_jump_table: Optional[bool] = None):
        self.max_steps = settings.STEP_LIMIT if max_steps is None else max_steps
        self.pointer_policy = settings.POINTER_POLICY if pointer_policy is None else pointer_policy
        self.use_jump_table = settings.USE_JUMP_TABLE if use_jump_table is None else use_jump_table
        if self.pointer_policy not in self.POINTER_POLICIES:
            raise ValueError(f"Unknown pointer policy {self.pointer_policy!r}")
        self.step_count = 0

    def step(self, state: MachineState, input_value: Union[str, int, None] = None) -> RunStatus:
        """Advance `state` in place and report why execution stopped."""
        self.step_count = 0

        if state.awaiting_input:
            try:
                byte = decode_input(input_value)
            except InputDecodeError as e:
                logger.info("Rejected input %r: %s", input_value, e)
                state.output = INPUT_ERROR_MESSAGE
                return RunStatus.INPUT_ERROR
            state.tape[state.data_pointer] = byte
            state.awaiting_input = False
            # Move past the ',' that suspended us
            state.instruction_pointer += 1

        code = state.program
        jump_table = build_jump_table(code) if self.use_jump_table else None
        tape = state.tape
        tape_size = len(tape)

        while state.instruction_pointer < len(code):
            if self.step_count >= self.max_steps:
                raise StepLimitExceeded(state.instruction_pointer, self.max_steps)
            self.step_count += 1

            ip = state.instruction_pointer
            cmd = code[ip]

            if cmd == '>':
                state.data_pointer = self._move(ip, state.data_pointer + 1, tape_size)

            elif cmd == '<':
                state.data_pointer = self._move(ip, state.data_pointer - 1, tape_size)

            elif cmd == '+':
                tape[state.data_pointer] = (int(tape[state.data_pointer]) + 1) % 256

            elif cmd == '-':
                tape[state.data_pointer] = (int(tape[state.data_pointer]) - 1) % 256

            elif cmd == '.':
                state.output += chr(int(tape[state.data_pointer]))

            elif cmd == ',':
                state.awaiting_input = True
                logger.debug("Suspended for input at instruction %d", ip)
                return RunStatus.AWAITING_INPUT

            elif cmd == '[':
                if tape[state.data_pointer] == 0:
                    state.instruction_pointer = (jump_table[ip] if jump_table is not None
                                                 else find_matching_forward(code, ip))

            elif cmd == ']':
                if tape[state.data_pointer] != 0:
                    state.instruction_pointer = (jump_table[ip] if jump_table is not None
                                                 else find_matching_backward(code, ip))

            else:
                raise InternalError(f"Invalid instruction {cmd!r}", ip)

            state.instruction_pointer += 1

        logger.debug("Program finished after %d steps", self.step_count)
        return RunStatus.FINISHED

    def _move(self, ip: int, target: int, tape_size: int) -> int:
        if 0 <= target < tape_size:
            return target
        if self.pointer_policy == "wrap":
            return target % tape_size
        raise PointerOutOfRange(ip, target)
