#
# Peephole optimizer for tape-machine programs.
#
# Levels:
#   NONE:  one instruction per symbol
#   BASIC: run-length compression of + - > < (e.g. +++ -> 3+)
#   HEAVY: idiom fusion, then run-length compression
#            [->>+<<]   -> 2A       [-<<+++>>] -> 3_2a
#            [->>-<<]   -> 2S       [>+<-]     -> 1A
#            [-]        -> Z
#            [->+>+<<]  -> 2_1_0C   [->>>+>+<<<<] -> 2_1_2C
#
# Each fusion pass only looks at loops whose body is made of single-step
# + - > <, so a loop rewritten by one pass is never rescanned by another.
#
from __future__ import annotations

import logging
from enum import IntEnum
from typing import Callable, Iterator, List, Optional, Tuple, Type, Union

from .lexer import SourceProgram
from .opcodes import (
    Copy, Dec, Inc, Instruction, LoopEnd, LoopStart, MoveAdd, MoveSub,
    OpcodeStream, ShiftLeft, ShiftRight, Zero, encode, from_program,
    is_single_step,
)

logger = logging.getLogger(__name__)


class OptimizeLevel(IntEnum):
    NONE = 0
    BASIC = 1
    HEAVY = 2

    @classmethod
    def coerce(cls, value: Union["OptimizeLevel", int, str]) -> "OptimizeLevel":
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                raise ValueError(f"unknown optimization level: {value!r}") from None
        return cls(value)


Run = Tuple[Type[Instruction], int]
Matcher = Callable[[List[Instruction]], Optional[Instruction]]

_OPPOSITE = {ShiftRight: ShiftLeft, ShiftLeft: ShiftRight}


# ---------------- Shape helpers ----------------
def _runs(body: List[Instruction]) -> List[Run]:
    """Group consecutive single-step instructions of the same kind."""
    out: List[Run] = []
    for n in body:
        cls = type(n)
        if out and out[-1][0] is cls:
            out[-1] = (cls, out[-1][1] + 1)
        else:
            out.append((cls, 1))
    return out


def _without_counter(body: List[Instruction]) -> Iterator[List[Instruction]]:
    """
    Yield the body with its loop-counter decrement removed.

    The decrement may come first ([->+<]) or last ([>+<-]); both readings
    are offered when both ends are decrements.
    """
    if len(body) < 2:
        return
    if isinstance(body[0], Dec):
        yield body[1:]
    if isinstance(body[-1], Dec):
        yield body[:-1]


# ---------------- Idiom matchers ----------------
def match_move(body: List[Instruction]) -> Optional[Instruction]:
    """[->>+++<<] -> MoveAdd(places=2, multiplier=3, right=True)."""
    for rest in _without_counter(body):
        runs = _runs(rest)
        if len(runs) != 3:
            continue
        (out_cls, places), (op_cls, amount), (back_cls, back) = runs
        if out_cls not in _OPPOSITE or back_cls is not _OPPOSITE[out_cls] or back != places:
            continue
        if op_cls is Inc:
            return MoveAdd(places=places, multiplier=amount, right=out_cls is ShiftRight)
        if op_cls is Dec:
            return MoveSub(places=places, multiplier=amount, right=out_cls is ShiftRight)
    return None


def match_zero(body: List[Instruction]) -> Optional[Instruction]:
    if len(body) == 1 and isinstance(body[0], Dec):
        return Zero()
    return None


def _copy_destinations(runs: List[Run]) -> Optional[List[int]]:
    if len(runs) < 3 or runs[-1][0] is not ShiftLeft:
        return None
    position = 0
    dests: List[int] = []
    for cls, count in runs[:-1]:
        if cls is ShiftRight:
            position += count
        elif cls is Inc and count == 1 and position > 0:
            dests.append(position)
        else:
            return None
    # must end on an increment and walk all the way back
    if not dests or dests[-1] != position or runs[-1][1] != position:
        return None
    return dests


def match_copy(body: List[Instruction]) -> Optional[Instruction]:
    """[->+>+<<] -> Copy(copies=2, stride=1, offset=0)."""
    shaped = False
    for rest in _without_counter(body):
        shaped = True
        dests = _copy_destinations(_runs(rest))
        if dests is None:
            continue
        stride = dests[1] - dests[0] if len(dests) > 1 else 1
        if any(b - a != stride for a, b in zip(dests, dests[1:])):
            continue
        offset = dests[0] - stride
        if offset < 0:
            continue
        return Copy(copies=len(dests), stride=stride, offset=offset)
    if shaped:
        logger.debug("unrecognized idiom [%s], leaving loop unoptimized", encode(body))
    return None


# ---------------- Passes ----------------
def fuse_loops(nodes: List[Instruction], matcher: Matcher) -> List[Instruction]:
    """Replace every innermost loop of single-step instructions that matcher accepts."""
    out: List[Instruction] = []
    i = 0
    while i < len(nodes):
        n = nodes[i]
        if isinstance(n, LoopStart):
            j = i + 1
            while j < len(nodes) and is_single_step(nodes[j]):
                j += 1
            if j > i + 1 and j < len(nodes) and isinstance(nodes[j], LoopEnd):
                fused = matcher(nodes[i + 1:j])
                if fused is not None:
                    out.append(fused)
                    i = j + 1
                    continue
        out.append(n)
        i += 1
    return out


def fuse_moves(nodes: List[Instruction]) -> List[Instruction]:
    return fuse_loops(nodes, match_move)


def fuse_zeros(nodes: List[Instruction]) -> List[Instruction]:
    return fuse_loops(nodes, match_zero)


def fuse_copies(nodes: List[Instruction]) -> List[Instruction]:
    return fuse_loops(nodes, match_copy)


def compress_runs(nodes: List[Instruction]) -> List[Instruction]:
    """Collapse runs of 2 or more identical single-step instructions (>>>> -> 4>)."""
    out: List[Instruction] = []
    i = 0
    while i < len(nodes):
        n = nodes[i]
        if not is_single_step(n):
            out.append(n)
            i += 1
            continue
        j = i
        while j < len(nodes) and nodes[j] == n:
            j += 1
        count = j - i
        out.append(type(n)(count) if count > 1 else n)
        i = j
    return out


def optimize(program: SourceProgram, level: Union[OptimizeLevel, int, str] = OptimizeLevel.NONE) -> OpcodeStream:
    level = OptimizeLevel.coerce(level)
    nodes = list(from_program(program))

    if level >= OptimizeLevel.HEAVY:
        nodes = fuse_moves(nodes)
        nodes = fuse_zeros(nodes)
        nodes = fuse_copies(nodes)
    if level >= OptimizeLevel.BASIC:
        nodes = compress_runs(nodes)

    logger.info("optimized %d symbols to %d instructions (%s)", len(program), len(nodes), level.name.lower())
    return tuple(nodes)


def reduction_percent(program: SourceProgram, stream: OpcodeStream) -> float:
    """How much shorter the encoded stream is than the filtered source, in percent."""
    if not program:
        return 0.0
    return (1 - len(encode(stream)) / len(program)) * 100
