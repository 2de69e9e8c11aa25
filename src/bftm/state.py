from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .errors import make_underflow_error


@dataclass
class ExecutionState:
    tape: List[int] = field(default_factory=lambda: [0])
    pointer: int = 0
    ip: int = 0
    loop_stack: List[int] = field(default_factory=list)
    iterations: int = 0
    skip_depth: int = 0
    counts: List[int] = field(default_factory=list)
    output: bytearray = field(default_factory=bytearray)

    def reset(self, *, program_length: int = 0) -> None:
        self.tape = [0]
        self.pointer = 0
        self.ip = 0
        self.loop_stack.clear()
        self.iterations = 0
        self.skip_depth = 0
        self.counts = [0] * program_length
        self.output.clear()

    @property
    def cell(self) -> int:
        return self.tape[self.pointer]

    @cell.setter
    def cell(self, value: int) -> None:
        self.tape[self.pointer] = value

    def touch(self, index: int) -> None:
        """Zero-fill the tape up to index if it lies past the high-water mark."""
        if index >= len(self.tape):
            self.tape.extend([0] * (index + 1 - len(self.tape)))

    def move_to(self, index: int) -> None:
        if index < 0:
            raise make_underflow_error(ip=self.ip, pointer=index)
        self.touch(index)
        self.pointer = index
