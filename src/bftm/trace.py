import sys
import time
from typing import Callable, Optional, Sequence, TextIO

from .machine import Snapshot

GREEN = "\033[01;32m"
NORMAL = "\033[00m"


def _mark(items: Sequence[str], current: int, color: bool) -> str:
    out = []
    for i, item in enumerate(items):
        if i == current:
            out.append(f"{GREEN}{item} {NORMAL}" if color else f"[{item}] ")
        else:
            out.append(f"{item} ")
    return ''.join(out)


def format_tape(tape: Sequence[int], pointer: int, *, color: bool = True) -> str:
    return "tape  : " + _mark([str(v) for v in tape], pointer, color)


def format_instructions(tokens: Sequence[str], ip: int, *, color: bool = True) -> str:
    return "chars : " + _mark(tokens, ip, color)


class TraceRenderer:
    """
    Trace hook that prints the instruction cursor and the tape after every
    executed instruction, optionally pausing for Enter or sleeping.
    """

    def __init__(
        self,
        tokens: Sequence[str],
        *,
        step: bool = False,
        sleep_seconds: float = 0.0,
        color: bool = True,
        out: Optional[TextIO] = None,
        wait: Callable[[], object] = input,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.tokens = list(tokens)
        self.step = step
        self.sleep_seconds = sleep_seconds
        self.color = color
        self.out = out
        self.wait = wait
        self.sleep = sleep

    def __call__(self, snap: Snapshot) -> None:
        out = self.out or sys.stdout
        print(format_instructions(self.tokens, snap.ip, color=self.color), file=out)
        print(format_tape(snap.tape, snap.pointer, color=self.color), file=out)

        if self.step:
            self.wait()
        elif self.sleep_seconds:
            self.sleep(self.sleep_seconds)

        print(file=out)
