#!/usr/bin/env python3
"""
Tests for the library entry points: compiling, persisting and running programs.
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from bftm.api import RunOptions, compile_file, compile_source, compiled_path, run_file, run_source
from bftm.errors import DecodeError
from bftm.machine import HaltReason, iter_input
from bftm.optimizer import OptimizeLevel

HEAVY = RunOptions(optimize_level=OptimizeLevel.HEAVY)


def test_compile_source_filters_and_optimizes():
    compiled = compile_source("# copy\n+++ [->+>+<<] done", options=HEAVY)
    assert compiled.source == "+++[->+>+<<]"
    assert compiled.text == "3+2_1_0C"
    assert len(compiled.stream) == 2


def test_compile_source_defaults_to_no_optimization():
    assert compile_source("+++").text == "+++"


def test_raw_mode_skips_the_optimizer():
    compiled = compile_source("3+2_1_0C\n", options=RunOptions(raw=True))
    assert compiled.text == "3+2_1_0C"
    with pytest.raises(DecodeError):
        compile_source("3+x", options=RunOptions(raw=True))


def test_compile_file_writes_raw_next_to_source(tmp_path):
    src = tmp_path / "prog.bf"
    src.write_text("+++[->+>+<<]\n")
    out = compile_file(src, options=HEAVY)
    assert out == compiled_path(src) == tmp_path / "prog.bf.raw"
    assert out.read_text() == "3+2_1_0C\n"

    result = run_file(out, options=RunOptions(raw=True))
    assert result.tape == [0, 3, 3]


def test_run_source_with_io():
    result = run_source(",[->++<]>.", options=HEAVY, input_source=iter_input([33]))
    assert result.output == b"B"
    assert result.halt_reason is HaltReason.COMPLETED


def test_run_source_respects_max_iterations():
    result = run_source("+[]", options=RunOptions(max_iterations=10))
    assert result.halt_reason is HaltReason.ITERATION_LIMIT
    assert result.iterations == 10


def test_example_programs():
    examples = os.path.join(os.path.dirname(__file__), '..', 'examples')
    hello = run_file(os.path.join(examples, 'hello.bf'), options=HEAVY)
    assert hello.output == b"Hello World!\n"

    copy = run_file(os.path.join(examples, 'copy.bf'), options=HEAVY)
    assert copy.tape == [5, 5, 0]
    assert copy.pointer == 2
