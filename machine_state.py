"""
Machine state for the resumable Brainfuck interpreter.

One MachineState is everything needed to continue a program later: the
program text, both pointers, the tape, the output produced so far and
whether the program is waiting on input.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np

TAPE_SIZE = 30000


def _blank_tape() -> np.ndarray:
    return np.zeros(TAPE_SIZE, dtype=np.uint8)


@dataclass(eq=False)
class MachineState:
    """Snapshot of a Brainfuck machine, mutated in place while it runs."""
    program: str
    instruction_pointer: int = 0
    data_pointer: int = 0
    tape: np.ndarray = field(default_factory=_blank_tape)
    output: str = ""
    awaiting_input: bool = False

    @classmethod
    def fresh(cls, program: str) -> 'MachineState':
        return cls(program=program)

    @property
    def finished(self) -> bool:
        return not self.awaiting_input and self.instruction_pointer >= len(self.program)

    def copy(self) -> 'MachineState':
        return MachineState(
            program=self.program,
            instruction_pointer=self.instruction_pointer,
            data_pointer=self.data_pointer,
            tape=self.tape.copy(),
            output=self.output,
            awaiting_input=self.awaiting_input,
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, MachineState):
            return NotImplemented
        return (
            self.program == other.program
            and self.instruction_pointer == other.instruction_pointer
            and self.data_pointer == other.data_pointer
            and self.output == other.output
            and self.awaiting_input == other.awaiting_input
            and np.array_equal(self.tape, other.tape)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        The tape goes in as base64 of its raw bytes rather than 30000 numbers.
        """
        return {
            "program": self.program,
            "instruction_pointer": self.instruction_pointer,
            "data_pointer": self.data_pointer,
            "tape": base64.b64encode(self.tape.tobytes()).decode("ascii"),
            "output": self.output,
            "awaiting_input": self.awaiting_input,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MachineState':
        """Create from dictionary (JSON deserialization).

        Raises ValueError when a field is missing, has the wrong type, or
        points outside the program or tape.
        """
        if not isinstance(data, dict):
            raise ValueError("State must be a JSON object")
        try:
            program = data["program"]
            instruction_pointer = data["instruction_pointer"]
            data_pointer = data["data_pointer"]
            encoded_tape = data["tape"]
            output = data["output"]
            awaiting_input = data["awaiting_input"]
        except KeyError as e:
            raise ValueError(f"State is missing field {e.args[0]!r}") from e

        if not isinstance(program, str) or not isinstance(output, str):
            raise ValueError("Program and output must be strings")
        for name, value in (("instruction_pointer", instruction_pointer), ("data_pointer", data_pointer)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be an integer")
        if not isinstance(awaiting_input, bool):
            raise ValueError("awaiting_input must be a boolean")
        if not isinstance(encoded_tape, str):
            raise ValueError("Tape must be a base64 string")

        try:
            raw = base64.b64decode(encoded_tape, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Tape is not valid base64: {e}") from e
        if len(raw) != TAPE_SIZE:
            raise ValueError(f"Tape has {len(raw)} cells, expected {TAPE_SIZE}")

        if not 0 <= instruction_pointer <= len(program):
            raise ValueError(f"Instruction pointer {instruction_pointer} outside program")
        if not 0 <= data_pointer < TAPE_SIZE:
            raise ValueError(f"Data pointer {data_pointer} outside tape")
        if awaiting_input and program[instruction_pointer:instruction_pointer + 1] != ",":
            raise ValueError("A state waiting for input must point at ','")

        return cls(
            program=program,
            instruction_pointer=instruction_pointer,
            data_pointer=data_pointer,
            tape=np.frombuffer(raw, dtype=np.uint8).copy(),
            output=output,
            awaiting_input=awaiting_input,
        )
