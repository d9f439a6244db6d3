"""
Request-level entry points for the resumable interpreter.

run_request() is the core contract: program text, an optional token from a
previous call and an optional input value in; output, a fresh token and the
awaiting-input flag out. handle_event() adapts the JSON event envelope used
by the hosted function (body string plus stdin).

Tokens are owned by the caller. Two calls racing on the same token each get
their own copy of the state; whichever result the caller keeps wins.
"""

import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional, Union

from brainfuck import (
    BrainfuckError,
    InputDecodeError,
    InvalidProgram,
    MachineFault,
    ResumableInterpreter,
    RunStatus,
    TokenError,
    validate_program,
)
from machine_state import MachineState

logger = logging.getLogger(__name__)


def encode_token(state: MachineState) -> str:
    """Wrap a state as URL-safe base64 of compact JSON."""
    payload = json.dumps(state.to_dict(), separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_token(token: str) -> MachineState:
    if not isinstance(token, str):
        raise TokenError(f"Token must be a string, got {type(token).__name__}")
    try:
        payload = base64.b64decode(token.encode("ascii"), altchars=b"-_", validate=True)
        data = json.loads(payload.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError, RecursionError) as e:
        raise TokenError(f"Token could not be decoded: {e}") from e
    try:
        return MachineState.from_dict(data)
    except ValueError as e:
        raise TokenError(str(e)) from e


def _has_token(prior_state) -> bool:
    # Blank or one-character tokens mean "start fresh"
    return prior_state is not None and not (isinstance(prior_state, str) and len(prior_state) <= 1)


def run_request(
    program: Optional[str],
    prior_state: Optional[str] = None,
    input_value: Union[str, int, None] = None,
    interpreter: Optional[ResumableInterpreter] = None,
) -> Dict[str, Any]:
    """Run one invocation and return the response fields.

    When a token is supplied the program stored in it is the one that runs.
    Raises InvalidProgram, TokenError, or a MachineFault subclass.
    """
    if _has_token(prior_state):
        state = decode_token(prior_state)
        if program and program != state.program:
            logger.warning("Supplied program differs from the one in the token; using the token's")
    else:
        state = MachineState.fresh(program)

    if not validate_program(state.program):
        raise InvalidProgram("Program must be non-empty and use only the characters +-<>.,[]")

    itp = interpreter or ResumableInterpreter()
    try:
        status = itp.step(state, input_value)
    except MachineFault as e:
        logger.warning("Execution aborted: %s", e)
        raise

    logger.info("Invocation ended with %s after %d steps", status.value, itp.step_count)
    return {
        "program": state.program,
        "output": state.output,
        "next_state": encode_token(state),
        "awaiting_input": state.awaiting_input,
        "status": status.value,
    }


def _rejection(error: BrainfuckError, status: int) -> Dict[str, Any]:
    return {"status": status, "error": type(error).__name__, "message": str(error)}


def handle_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """Adapter for events shaped like {"body": "<json>", "stdin": "..."}.

    The body carries "program_code" and optionally "serialized_state".
    """
    try:
        body = event.get("body") if isinstance(event, dict) else None
        if isinstance(body, str):
            body = json.loads(body)
        if not isinstance(body, dict):
            raise InvalidProgram("Request body must be a JSON object")
    except ValueError as e:
        return _rejection(InvalidProgram(f"Request body is not valid JSON: {e}"), 400)
    except InvalidProgram as e:
        return _rejection(e, 400)

    stdin = event.get("stdin", body.get("stdin"))
    try:
        result = run_request(body.get("program_code"), body.get("serialized_state"), stdin)
    except MachineFault as e:
        return _rejection(e, 422)
    except (InvalidProgram, TokenError) as e:
        return _rejection(e, 400)

    return {
        "serialized_state": result["next_state"],
        "program_code": result["program"],
        "stdout": result["output"],
        "expecting_input": result["awaiting_input"],
    }


def run_to_completion(program: str, inputs, interpreter: Optional[ResumableInterpreter] = None) -> str:
    """Feed `inputs` one per suspension, round-tripping the token each time.

    Returns the final output. Raises InputDecodeError for a rejected input
    value or when the program asks for more input than was given.
    """
    pending = list(inputs)
    result = run_request(program, interpreter=interpreter)
    while result["awaiting_input"]:
        if not pending:
            raise InputDecodeError("Program asked for more input than was supplied")
        result = run_request(program, result["next_state"], pending.pop(0), interpreter=interpreter)
        if result["status"] == RunStatus.INPUT_ERROR.value:
            raise InputDecodeError(result["output"])
    return result["output"]
