from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from .errors import make_decode_error

# ---------------- Instructions ----------------
@dataclass(frozen=True)
class Inc:
    amount: int = 1

@dataclass(frozen=True)
class Dec:
    amount: int = 1

@dataclass(frozen=True)
class ShiftRight:
    places: int = 1

@dataclass(frozen=True)
class ShiftLeft:
    places: int = 1

@dataclass(frozen=True)
class MoveAdd:
    places: int = 1
    multiplier: int = 1
    right: bool = True  # 'A' when True, 'a' otherwise

@dataclass(frozen=True)
class MoveSub:
    places: int = 1
    multiplier: int = 1
    right: bool = True  # 'S' when True, 's' otherwise

@dataclass(frozen=True)
class Zero:
    pass

@dataclass(frozen=True)
class Copy:
    copies: int
    stride: int
    offset: int

    def destinations(self) -> List[int]:
        """Offsets of the cells that receive the value, relative to the source."""
        return [self.offset + self.stride * k for k in range(1, self.copies + 1)]

@dataclass(frozen=True)
class LoopStart:
    pass

@dataclass(frozen=True)
class LoopEnd:
    pass

@dataclass(frozen=True)
class Output:
    pass

@dataclass(frozen=True)
class Input:
    pass

Instruction = Union[Inc, Dec, ShiftRight, ShiftLeft, MoveAdd, MoveSub, Zero,
                    Copy, LoopStart, LoopEnd, Output, Input]
OpcodeStream = Tuple[Instruction, ...]

_SIMPLE = {
    '+': Inc, '-': Dec, '>': ShiftRight, '<': ShiftLeft,
}
_BARE = {
    '[': LoopStart, ']': LoopEnd, '.': Output, ',': Input, 'Z': Zero,
}
_BARE_SYMBOL = {cls: sym for sym, cls in _BARE.items()}
_SIMPLE_SYMBOL = {cls: sym for sym, cls in _SIMPLE.items()}

_TOKEN_RE = re.compile(r'([0-9_]*)([^0-9_])', re.DOTALL)
_TOKEN_SPLIT_RE = re.compile(r'[0-9_]*[^0-9_]', re.DOTALL)


def is_single_step(instr: Instruction) -> bool:
    """True for the unparameterized '+', '-', '>' and '<'."""
    if isinstance(instr, (Inc, Dec)):
        return instr.amount == 1
    if isinstance(instr, (ShiftRight, ShiftLeft)):
        return instr.places == 1
    return False


def from_program(program: str) -> OpcodeStream:
    """One bare instruction per symbol of a filtered program."""
    out: List[Instruction] = []
    for ch in program:
        if ch in _SIMPLE:
            out.append(_SIMPLE[ch]())
        elif ch in _BARE and ch != 'Z':
            out.append(_BARE[ch]())
        else:
            raise ValueError(f"not a program symbol: {ch!r}")
    return tuple(out)


# ---------------- Encoding ----------------
def token_for(instr: Instruction) -> str:
    cls = type(instr)
    if cls in _SIMPLE_SYMBOL:
        n = instr.amount if isinstance(instr, (Inc, Dec)) else instr.places
        sym = _SIMPLE_SYMBOL[cls]
        return sym if n == 1 else f"{n}{sym}"
    if cls in _BARE_SYMBOL:
        return _BARE_SYMBOL[cls]
    if isinstance(instr, (MoveAdd, MoveSub)):
        letter = 'a' if isinstance(instr, MoveAdd) else 's'
        if instr.right:
            letter = letter.upper()
        if instr.multiplier == 1:
            return f"{instr.places}{letter}"
        return f"{instr.multiplier}_{instr.places}{letter}"
    if isinstance(instr, Copy):
        return f"{instr.copies}_{instr.stride}_{instr.offset}C"
    raise TypeError(f"not an instruction: {instr!r}")


def encode(stream: Iterable[Instruction]) -> str:
    return ''.join(token_for(instr) for instr in stream)


def tokenize(text: str) -> List[str]:
    """Split encoded text into one token per instruction (no validation)."""
    return _TOKEN_SPLIT_RE.findall(text.strip())


# ---------------- Decoding ----------------
def _numbers(params: str, token: str, text: str, position: int) -> List[int]:
    if not params:
        return []
    parts = params.split('_')
    if any(not p for p in parts):
        raise make_decode_error(message=f"malformed numbers in token {token!r}", text=text, position=position)
    return [int(p) for p in parts]


def _decode_token(params: str, letter: str, text: str, position: int) -> Instruction:
    token = params + letter
    nums = _numbers(params, token, text, position)

    if letter in _SIMPLE:
        if len(nums) > 1:
            raise make_decode_error(message=f"too many parameters in token {token!r}", text=text, position=position)
        return _SIMPLE[letter](nums[0] if nums else 1)

    if letter in _BARE:
        if params:
            raise make_decode_error(message=f"instruction {letter!r} takes no parameters", text=text, position=position)
        return _BARE[letter]()

    if letter in 'aAsS':
        cls = MoveAdd if letter in 'aA' else MoveSub
        if len(nums) > 2:
            raise make_decode_error(message=f"too many parameters in token {token!r}", text=text, position=position)
        if len(nums) == 2:
            multiplier, places = nums
        else:
            multiplier, places = 1, (nums[0] if nums else 1)
        if multiplier < 1:
            raise make_decode_error(message=f"multiplier must be at least 1 in token {token!r}", text=text, position=position)
        return cls(places=places, multiplier=multiplier, right=letter.isupper())

    if letter == 'C':
        if len(nums) != 3:
            raise make_decode_error(message=f"copy token {token!r} needs copies_stride_offset parameters", text=text, position=position)
        return Copy(copies=nums[0], stride=nums[1], offset=nums[2])

    raise make_decode_error(message=f"unknown instruction {token!r}", text=text, position=position)


def decode(text: str) -> OpcodeStream:
    """
    Parse the single-line encoded form back into an opcode stream.

    Surrounding whitespace is ignored (persisted files end with a newline);
    any token that is not a known instruction shape raises DecodeError.
    """
    body = text.strip()
    out: List[Instruction] = []
    pos = 0
    while pos < len(body):
        m = _TOKEN_RE.match(body, pos)
        if m is None:
            raise make_decode_error(
                message=f"trailing digits {body[pos:]!r} without an instruction letter",
                text=body,
                position=pos,
            )
        out.append(_decode_token(m.group(1), m.group(2), body, pos))
        pos = m.end()
    return tuple(out)

