import pytest

from brainfuck import ResumableInterpreter

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


@pytest.fixture
def interpreter():
    return ResumableInterpreter(max_steps=100000, pointer_policy="error", use_jump_table=False)


@pytest.fixture
def hello_world():
    return HELLO_WORLD
