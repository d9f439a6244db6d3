"""
Tests for the command line front end.
"""

import json
from types import SimpleNamespace

from bf_runner import decode_token
from brainfuck_debugger import cmd_interactive, format_state, main
from machine_state import MachineState


def test_format_state_marks_pointers():
    state = MachineState.fresh("+>+.")
    state.instruction_pointer = 1
    state.data_pointer = 2
    state.tape[2] = 9

    text = format_state(state, show_memory_range=4)

    assert "Program:  +[>]+." in text
    assert "  9" in text
    assert " ^ " in text
    assert "Output:   (empty)" in text


def test_format_state_finished_program():
    state = MachineState.fresh("+")
    state.instruction_pointer = 1
    state.output = "A"
    text = format_state(state)
    assert "[END]" in text
    assert "'A'" in text


def test_run_command_prints_response(capsys):
    assert main(["run", ",."]) == 0
    first = json.loads(capsys.readouterr().out)
    assert first["awaiting_input"] is True

    assert main(["run", "--state", first["next_state"], "--input", "65"]) == 0
    second = json.loads(capsys.readouterr().out)
    assert second["output"] == "A"
    assert decode_token(second["next_state"]).finished


def test_run_command_reports_invalid_program(capsys):
    assert main(["run", "hello"]) == 1
    err = json.loads(capsys.readouterr().err)
    assert err["error"] == "InvalidProgram"


def test_interactive_prompts_until_finished(capsys):
    answers = iter(["AA", "h", "i", "0"])
    args = SimpleNamespace(program=",[.,]", show_state=False)

    assert cmd_interactive(args, read_input=lambda prompt: next(answers)) == 0

    out = capsys.readouterr().out
    assert "Valid inputs" in out
    assert "hi" in out


def test_interactive_rejects_bad_program(capsys):
    args = SimpleNamespace(program="abc", show_state=False)
    assert cmd_interactive(args, read_input=lambda prompt: "") == 1


def test_interactive_reports_fatal_error(capsys):
    args = SimpleNamespace(program="<", show_state=True)
    assert cmd_interactive(args, read_input=lambda prompt: "") == 1
    assert "outside the tape" in capsys.readouterr().err
