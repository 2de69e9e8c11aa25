from .api import CompileResult, RunOptions, compile_file, compile_source, run_file, run_source
from .errors import BFTMError, DecodeError, InputExhausted, UnderflowError
from .lexer import filter_to_program
from .machine import HaltReason, RunResult, iter_input, run
from .opcodes import decode, encode
from .optimizer import OptimizeLevel, optimize
from .profiler import ProfileGroup, format_report, profile

__all__ = [
    'BFTMError',
    'DecodeError',
    'InputExhausted',
    'UnderflowError',
    'filter_to_program',
    'optimize',
    'OptimizeLevel',
    'encode',
    'decode',
    'run',
    'iter_input',
    'HaltReason',
    'RunResult',
    'profile',
    'format_report',
    'ProfileGroup',
    'CompileResult',
    'RunOptions',
    'compile_source',
    'compile_file',
    'run_source',
    'run_file',
]
