import re

SYMBOLS = frozenset('+-<>[].,')

SourceProgram = str


def strip_comments(code: str) -> str:
    """Drop whole lines whose first non-blank character is '#'."""
    return re.sub(r'^[ \t]*#.*$', '', code, flags=re.MULTILINE)


def filter_to_program(raw_text: str) -> SourceProgram:
    """
    Reduce raw program text to the ordered sequence of the eight symbols.

    Comment lines go first, then every character that is not a symbol.
    Brackets are not checked for balance here.
    """
    code = strip_comments(raw_text)
    return ''.join(ch for ch in code if ch in SYMBOLS)
