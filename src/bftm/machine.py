from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import InputExhausted, UnderflowError, make_underflow_error
from .opcodes import (
    Copy, Dec, Inc, Input, Instruction, LoopEnd, LoopStart, MoveAdd, MoveSub,
    Output, ShiftLeft, ShiftRight, Zero,
)
from .state import ExecutionState

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 1_000_000

InputSource = Callable[[], int]
OutputSink = Callable[[bytes], None]


class HaltReason(Enum):
    COMPLETED = 'completed'
    ITERATION_LIMIT = 'iteration limit reached'
    UNDERFLOW = 'tape underflow'
    INPUT_EXHAUSTED = 'input exhausted'
    INTERRUPTED = 'interrupted'


@dataclass(frozen=True)
class Snapshot:
    ip: int
    pointer: int
    tape: Tuple[int, ...]
    instruction: Instruction
    iterations: int


TraceHook = Callable[[Snapshot], None]


@dataclass
class RunResult:
    tape: List[int]
    pointer: int
    iterations: int
    halt_reason: HaltReason
    counts: List[int]
    output: bytes
    error: Optional[BaseException] = None

    @property
    def fatal(self) -> bool:
        return self.halt_reason in (HaltReason.UNDERFLOW, HaltReason.INPUT_EXHAUSTED)

    def raise_for_halt(self) -> None:
        """Re-raise whatever stopped the run early; soft limits do not raise."""
        if self.error is not None:
            raise self.error


def iter_input(values: Union[Iterable[int], bytes, str]) -> InputSource:
    """Adapt a finite sequence of values (or the bytes of a string) to an input source."""
    if isinstance(values, str):
        values = values.encode()
    it = iter(values)

    def read() -> int:
        return next(it)

    return read


def _read_input(state: ExecutionState, input_source: Optional[InputSource]) -> int:
    if input_source is None:
        raise InputExhausted(message=f"no input source for ',' at instruction {state.ip}", ip=state.ip)
    try:
        return int(input_source())
    except (EOFError, StopIteration):
        raise InputExhausted(message=f"input exhausted at instruction {state.ip}", ip=state.ip) from None


def _transfer(state: ExecutionState, offset: int, delta: int) -> None:
    dest = state.pointer + offset
    if dest < 0:
        raise make_underflow_error(ip=state.ip, pointer=dest)
    state.touch(dest)
    state.tape[dest] += delta


def _execute(
    state: ExecutionState,
    instr: Instruction,
    input_source: Optional[InputSource],
    output_sink: Optional[OutputSink],
) -> None:
    if isinstance(instr, Inc):
        state.cell += instr.amount
    elif isinstance(instr, Dec):
        state.cell -= instr.amount
    elif isinstance(instr, ShiftRight):
        state.move_to(state.pointer + instr.places)
    elif isinstance(instr, ShiftLeft):
        state.move_to(state.pointer - instr.places)
    elif isinstance(instr, LoopStart):
        if state.cell > 0:
            state.loop_stack.append(state.ip)
        else:
            state.skip_depth = 1
    elif isinstance(instr, LoopEnd):
        # resume on the '[' itself so its condition is checked again
        if state.loop_stack:
            state.ip = state.loop_stack.pop() - 1
    elif isinstance(instr, Output):
        byte = bytes([state.cell % 256])
        state.output += byte
        if output_sink is not None:
            output_sink(byte)
    elif isinstance(instr, Input):
        state.cell = _read_input(state, input_source)

    # Fused loops only act when the loop they replace would have been entered.
    elif isinstance(instr, Zero):
        if state.cell > 0:
            state.cell = 0
    elif isinstance(instr, (MoveAdd, MoveSub)):
        value = state.cell
        if value > 0:
            offset = instr.places if instr.right else -instr.places
            delta = value * instr.multiplier
            _transfer(state, offset, delta if isinstance(instr, MoveAdd) else -delta)
            state.cell = 0
    elif isinstance(instr, Copy):
        value = state.cell
        if value > 0:
            for offset in instr.destinations():
                _transfer(state, offset, value)
            state.cell = 0
    else:
        raise TypeError(f"not an instruction: {instr!r}")


def run(
    stream: Sequence[Instruction],
    max_iterations: Optional[int] = DEFAULT_MAX_ITERATIONS,
    input_source: Optional[InputSource] = None,
    output_sink: Optional[OutputSink] = None,
    trace_hook: Optional[TraceHook] = None,
) -> RunResult:
    """
    Execute an opcode stream from an empty tape.

    Every trip through the fetch loop counts, including positions that are
    only scanned over while skipping a loop body, so the per-position counts
    always sum to the iteration total.

    Underflow, exhausted input and KeyboardInterrupt stop the run but still
    produce a full RunResult; the cause is kept on RunResult.error.
    """
    program = tuple(stream)
    state = ExecutionState()
    state.reset(program_length=len(program))

    halt = HaltReason.COMPLETED
    error: Optional[BaseException] = None
    try:
        while state.ip < len(program):
            if max_iterations is not None and state.iterations >= max_iterations:
                halt = HaltReason.ITERATION_LIMIT
                break

            ip = state.ip
            instr = program[ip]
            state.counts[ip] += 1
            state.iterations += 1

            if state.skip_depth > 0:
                if isinstance(instr, LoopEnd):
                    state.skip_depth -= 1
                elif isinstance(instr, LoopStart):
                    state.skip_depth += 1
            else:
                _execute(state, instr, input_source, output_sink)
                if trace_hook is not None:
                    trace_hook(Snapshot(ip, state.pointer, tuple(state.tape), instr, state.iterations))

            state.ip += 1
    except UnderflowError as exc:
        halt, error = HaltReason.UNDERFLOW, exc
    except InputExhausted as exc:
        halt, error = HaltReason.INPUT_EXHAUSTED, exc
    except KeyboardInterrupt as exc:
        halt, error = HaltReason.INTERRUPTED, exc

    if error is not None and halt is not HaltReason.INTERRUPTED:
        logger.warning("run stopped at instruction %d: %s", state.ip, error)
    else:
        logger.info("run halted after %d iterations: %s", state.iterations, halt.value)

    return RunResult(
        tape=list(state.tape),
        pointer=state.pointer,
        iterations=state.iterations,
        halt_reason=halt,
        counts=list(state.counts),
        output=bytes(state.output),
        error=error,
    )
