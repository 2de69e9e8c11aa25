import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .api import RunOptions, compile_source, write_compiled
from .errors import DecodeError
from .machine import DEFAULT_MAX_ITERATIONS, HaltReason, run
from .opcodes import tokenize
from .optimizer import OptimizeLevel, reduction_percent
from .profiler import format_report, profile
from .trace import TraceRenderer, format_tape


def prompt_input() -> int:
    """Ask for one cell value; numbers are stored as-is, anything else by its first character."""
    line = input("input?> ").strip()
    try:
        return int(line)
    except ValueError:
        return ord(line[0]) if line else 10


def stdout_sink(byte: bytes) -> None:
    sys.stdout.flush()
    buf = getattr(sys.stdout, 'buffer', None)
    if buf is None:
        sys.stdout.write(byte.decode('latin-1'))
    else:
        buf.write(byte)
        buf.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bftm",
        description="Tape machine for Brainfuck programs, with a peephole optimizer and profiler.",
    )
    parser.add_argument("program", help="program file, or the program text itself")
    parser.add_argument("-c", "--compile", action="store_true", help="no execution, write the parsed, optimized program to <file>.raw")
    parser.add_argument("-i", "--max_iter", type=int, default=DEFAULT_MAX_ITERATIONS, help="number of operations to run before early stopping")
    parser.add_argument("-p", "--print", dest="print_program", action="store_true", help="print out the program before execution")
    parser.add_argument("-P", "--profile", action="store_true", help="show instruction execution information")
    parser.add_argument("-o", "--optimize", action="store_true", help="apply basic optimizations")
    parser.add_argument("-O", "--Optimize", dest="heavy", action="store_true", help="apply advanced, heavy optimizations")
    parser.add_argument("-q", "--quiet", action="store_true", help="suppress execution trace")
    parser.add_argument("-r", "--raw", action="store_true", help="treat input as already parsed, use with compiled programs")
    parser.add_argument("-s", "--stime", type=float, default=0.0, help="sleep for x seconds between operations")
    parser.add_argument("-S", "--step", action="store_true", help="only advance execution when user presses enter")
    parser.add_argument("-v", "--verbose", action="store_true", help="log optimizer and machine diagnostics")
    return parser


def options_from_args(args: argparse.Namespace) -> RunOptions:
    level = OptimizeLevel.NONE
    if args.heavy:
        level = OptimizeLevel.HEAVY
    elif args.optimize:
        level = OptimizeLevel.BASIC
    return RunOptions(
        optimize_level=level,
        max_iterations=args.max_iter,
        raw=args.raw,
        profile=args.profile,
        quiet=args.quiet,
        print_program=args.print_program,
        step=args.step,
        sleep_seconds=args.stime,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    options = options_from_args(args)

    path: Optional[Path] = Path(args.program)
    try:
        is_file = path.is_file()
    except (OSError, ValueError):
        is_file = False
    if is_file:
        source = path.read_text(encoding="utf-8")
    else:
        source, path = args.program, None

    try:
        compiled = compile_source(source, options=options)
    except DecodeError as e:
        print(e, file=sys.stderr)
        return 2

    if options.print_program:
        print(f"program: {compiled.text}")
        if options.optimize_level >= OptimizeLevel.BASIC:
            print(f"optimized away {reduction_percent(compiled.source, compiled.stream):.4f}% of instructions")
        print()

    if args.compile:
        if path is None:
            parser.error("--compile needs a program file")
        out = write_compiled(path, compiled)
        if not options.quiet:
            print(f"wrote {out}")
        return 0

    tokens = tokenize(compiled.text)
    renderer = None
    if not options.quiet:
        renderer = TraceRenderer(tokens, step=options.step, sleep_seconds=options.sleep_seconds)

    result = run(
        compiled.stream,
        max_iterations=options.max_iterations,
        input_source=prompt_input,
        output_sink=stdout_sink,
        trace_hook=renderer,
    )

    # final report happens for every halt, Ctrl-C included
    print()
    if result.halt_reason is HaltReason.ITERATION_LIMIT:
        print(f"iteration maximum reached: {options.max_iterations}")
    elif result.error is not None and result.halt_reason is not HaltReason.INTERRUPTED:
        print(result.error, file=sys.stderr)

    print(format_tape(result.tape, result.pointer, color=sys.stdout.isatty()))
    if not options.quiet:
        print(f"operations: {result.iterations}")
    if options.profile:
        print(format_report(profile(result.counts, tokens, result.iterations)))

    if result.halt_reason is HaltReason.INTERRUPTED:
        return 130
    return 1 if result.fatal else 0


if __name__ == "__main__":
    raise SystemExit(main())
