from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


def _build_context(text: str, column: int, *, context: int = 12) -> str:
    # Opcode text is a single line, so the excerpt is a window around the column.
    line = text.splitlines()[0] if text else ''
    start = max(0, column - context)
    end = min(len(line), column + context + 1)

    out: List[str] = []
    prefix = '...' if start > 0 else ''
    suffix = '...' if end < len(line) else ''
    out.append(f"  {prefix}{line[start:end]}{suffix}")
    out.append(f"  {' ' * (len(prefix) + column - start)}^")
    return "\n".join(out)


def _hint_for(message: str, *, kind: str) -> Optional[str]:
    msg = message.lower()
    if kind == 'decode':
        if 'unknown instruction' in msg:
            return 'Valid tokens are + - < > . , [ ] Z, N+ N- N> N<, Pa PA Ps PS, M_Pa M_PA M_Ps M_PS and N_S_OC.'
        if 'takes no parameters' in msg:
            return 'Only + - < > a A s S and C take numeric parameters.'
        if 'trailing' in msg:
            return 'Every number must be followed by an instruction letter.'
        return None
    if kind == 'run':
        if 'below 0' in msg:
            return 'The tape starts at cell 0 and cannot grow to the left.'
        return None
    return None


@dataclass
class BFTMError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class DecodeError(BFTMError):
    position: int
    context: str


@dataclass
class UnderflowError(BFTMError):
    ip: int
    pointer: int


@dataclass
class InputExhausted(BFTMError):
    ip: int


def make_decode_error(*, message: str, text: str, position: int) -> DecodeError:
    ctx = _build_context(text, position)
    hint = _hint_for(message, kind='decode')
    hint_block = f"\nHint: {hint}" if hint else ""
    return DecodeError(
        message=f"DecodeError: {message} (column {position + 1})\n{ctx}{hint_block}",
        position=position,
        context=ctx,
    )


def make_underflow_error(*, ip: int, pointer: int) -> UnderflowError:
    message = f"tape pointer moved below 0 (to {pointer})"
    hint = _hint_for(message, kind='run')
    hint_block = f"\nHint: {hint}" if hint else ""
    return UnderflowError(
        message=f"error: lshift < 0 at instruction {ip}: {message}{hint_block}",
        ip=ip,
        pointer=pointer,
    )
