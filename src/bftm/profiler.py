from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Union

import numpy as np

from .opcodes import tokenize


@dataclass(frozen=True)
class ProfileGroup:
    percentage: float
    span: str
    indent: int


def percentages(counts: Sequence[int], total_iterations: int) -> np.ndarray:
    arr = np.asarray(counts, dtype=np.float64)
    if total_iterations <= 0:
        return np.zeros_like(arr)
    return arr / total_iterations * 100


def profile(
    counts: Sequence[int],
    opcode_text: Union[str, Sequence[str]],
    total_iterations: int,
) -> List[ProfileGroup]:
    """
    Group contiguous instructions that took the same share of the run.

    Neighbours merge only while their percentages are exactly equal. The
    running bracket depth only decides each group's display indent; a new
    group inherits the bracket changes of the previous one and is shifted
    further when it starts with a bracket itself.
    """
    tokens = tokenize(opcode_text) if isinstance(opcode_text, str) else list(opcode_text)
    if len(tokens) != len(counts):
        raise ValueError(f"{len(counts)} counts for {len(tokens)} instructions")
    if not tokens:
        return []

    pcts = percentages(counts, total_iterations).tolist()
    groups: List[ProfileGroup] = []

    span = tokens[0]
    old = pcts[0]
    total = None
    depth = 1
    change = 0
    for token, new in zip(tokens[1:], pcts[1:]):
        if new == old:
            total = old + new if total is None else total + new
            span += token
            old = new
            if token == '[':
                change += 1
            elif token == ']':
                change -= 1
            continue

        groups.append(ProfileGroup(old if total is None else total, span, depth))
        span = token
        old = new
        total = None
        depth += change
        change = 0
        if token == ']':
            depth -= 1
        elif token == '[':
            depth += 1

    groups.append(ProfileGroup(old if total is None else total, span, depth))
    return groups


def format_report(groups: Sequence[ProfileGroup]) -> str:
    lines = [
        '',
        ' % time : instruction(s)',
        '-' * 46,
    ]
    for g in groups:
        lines.append(f"{g.percentage: 7.2f} :{g.span:>{max(g.indent, 0) + len(g.span)}}")
    return "\n".join(lines)
