#!/usr/bin/env python3
"""
Tests for the command line front end and the trace renderer.
"""

import sys
import os
import io
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from bftm.cli import main, prompt_input
from bftm.machine import Snapshot
from bftm.opcodes import Inc
from bftm.trace import TraceRenderer, format_instructions, format_tape


def test_heavy_quiet_run(capsys):
    assert main(["-q", "-O", "+++[->+>+<<]"]) == 0
    out = capsys.readouterr().out
    assert "tape  : [0] 3 3 " in out
    assert "operations" not in out


def test_trace_and_operations(capsys):
    assert main(["+"]) == 0
    out = capsys.readouterr().out
    assert "chars : " in out
    assert "operations: 1" in out


def test_output_bytes_reach_stdout(capsys):
    assert main(["-q", "-r", "65+."]) == 0
    assert "A" in capsys.readouterr().out


def test_underflow_exit_code(capsys):
    assert main(["-q", "<"]) == 1
    assert "lshift < 0" in capsys.readouterr().err


def test_iteration_limit(capsys):
    assert main(["-q", "-i", "10", "+[]"]) == 0
    out = capsys.readouterr().out
    assert "iteration maximum reached: 10" in out
    assert "tape  : [1] " in out


def test_profile_report(capsys):
    assert main(["-q", "-P", "+[-]"]) == 0
    out = capsys.readouterr().out
    assert " % time : instruction(s)" in out
    assert "  85.71 :  [-]" in out


def test_print_program(capsys):
    assert main(["-q", "-p", "-o", "+++"]) == 0
    out = capsys.readouterr().out
    assert "program: 3+" in out
    assert "optimized away 33.3333% of instructions" in out


def test_compile_then_run_raw(tmp_path, capsys):
    src = tmp_path / "prog.bf"
    src.write_text("++++[-]>++")
    assert main(["-O", "-c", str(src)]) == 0
    raw = tmp_path / "prog.bf.raw"
    assert raw.read_text() == "4+Z>2+\n"

    assert main(["-q", "-r", str(raw)]) == 0
    assert "tape  : 0 [2] " in capsys.readouterr().out


def test_compile_needs_a_file():
    with pytest.raises(SystemExit):
        main(["-c", "+++"])


def test_bad_raw_program(capsys):
    assert main(["-r", "3+q"]) == 2
    assert "DecodeError" in capsys.readouterr().err


def test_input_prompt(monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda prompt="": "7")
    assert main(["-q", ",+"]) == 0
    assert "tape  : [8] " in capsys.readouterr().out


def test_input_eof(monkeypatch, capsys):
    def eof(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)
    assert main(["-q", ","]) == 1
    assert "input exhausted" in capsys.readouterr().err


def test_interrupt_still_reports(monkeypatch, capsys):
    def interrupt(prompt=""):
        raise KeyboardInterrupt

    monkeypatch.setattr("builtins.input", interrupt)
    assert main(["-P", "+,"]) == 130
    out = capsys.readouterr().out
    assert "operations: 2" in out
    assert "% time" in out


def test_prompt_input_characters(monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt="": "a")
    assert prompt_input() == 97
    monkeypatch.setattr("builtins.input", lambda prompt="": "-12")
    assert prompt_input() == -12
    monkeypatch.setattr("builtins.input", lambda prompt="": "")
    assert prompt_input() == 10


def test_format_helpers():
    assert format_tape([1, 2], 1, color=False) == "tape  : 1 [2] "
    assert format_instructions(["3+", "["], 0, color=False) == "chars : [3+] [ "
    assert "\033[01;32m2 \033[00m" in format_tape([1, 2], 1)


def test_renderer_step_and_sleep():
    snap = Snapshot(ip=0, pointer=0, tape=(3,), instruction=Inc(3), iterations=1)
    waits, sleeps = [], []

    out = io.StringIO()
    TraceRenderer(["3+"], step=True, color=False, out=out, wait=lambda: waits.append(1))(snap)
    assert waits == [1]
    assert out.getvalue() == "chars : [3+] \ntape  : [3] \n\n"

    TraceRenderer(["3+"], sleep_seconds=0.5, color=False, out=io.StringIO(), sleep=sleeps.append)(snap)
    assert sleeps == [0.5]
