from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .lexer import SourceProgram, filter_to_program
from .machine import DEFAULT_MAX_ITERATIONS, InputSource, OutputSink, RunResult, TraceHook, run
from .opcodes import OpcodeStream, decode, encode
from .optimizer import OptimizeLevel, optimize


@dataclass(frozen=True)
class RunOptions:
    optimize_level: OptimizeLevel = OptimizeLevel.NONE
    max_iterations: Optional[int] = DEFAULT_MAX_ITERATIONS
    raw: bool = False
    profile: bool = False
    quiet: bool = False
    print_program: bool = False
    step: bool = False
    sleep_seconds: float = 0.0


@dataclass(frozen=True)
class CompileResult:
    source: SourceProgram
    stream: OpcodeStream
    text: str


def compile_source(source: str, *, options: Optional[RunOptions] = None) -> CompileResult:
    """Filter and optimize program text, or decode it as-is in raw mode."""
    opts = options or RunOptions()
    if opts.raw:
        text = source.strip()
        stream = decode(text)
        return CompileResult(source=text, stream=stream, text=encode(stream))
    program = filter_to_program(source)
    stream = optimize(program, opts.optimize_level)
    return CompileResult(source=program, stream=stream, text=encode(stream))


def compiled_path(path: str | Path) -> Path:
    p = Path(path)
    return p.with_name(p.name + '.raw')


def write_compiled(path: str | Path, compiled: CompileResult, *, encoding: str = "utf-8") -> Path:
    out = compiled_path(path)
    out.write_text(compiled.text + "\n", encoding=encoding)
    return out


def compile_file(path: str | Path, *, options: Optional[RunOptions] = None, encoding: str = "utf-8") -> Path:
    p = Path(path)
    compiled = compile_source(p.read_text(encoding=encoding), options=options)
    return write_compiled(p, compiled, encoding=encoding)


def run_source(
    source: str,
    *,
    options: Optional[RunOptions] = None,
    input_source: Optional[InputSource] = None,
    output_sink: Optional[OutputSink] = None,
    trace_hook: Optional[TraceHook] = None,
) -> RunResult:
    opts = options or RunOptions()
    compiled = compile_source(source, options=opts)
    return run(
        compiled.stream,
        max_iterations=opts.max_iterations,
        input_source=input_source,
        output_sink=output_sink,
        trace_hook=trace_hook,
    )


def run_file(path: str | Path, *, options: Optional[RunOptions] = None, encoding: str = "utf-8", **kwargs) -> RunResult:
    p = Path(path)
    return run_source(p.read_text(encoding=encoding), options=options, **kwargs)
