"""
Tests for the command line driver
"""

import io
import sys
import pytest

from main import main, run_source, run_script_file


def write_script(tmp_path, source):
  script = tmp_path / "prog.ldgv"
  script.write_text(source)
  return str(script)


class TestRunSource:

  def test_prints_main_value(self, capsys):
    assert run_source("val main = <1, 'A>") == 0
    assert capsys.readouterr().out == "<1, 'A>\n"

  def test_missing_main(self, capsys):
    assert run_source("val x = 1") == 1
    assert "No 'main' value declaration found, exiting" in capsys.readouterr().err

  def test_parse_error(self, capsys):
    assert run_source("val main = = 1") == 1
    assert "Parse error" in capsys.readouterr().err

  def test_runtime_error(self, capsys):
    assert run_source("val main = 1 / 0") == 1
    captured = capsys.readouterr()
    assert "DivisionByZero" in captured.err
    assert captured.out == ""


  def test_debug_prints_traceback(self, capsys):
    assert run_source("val main = 1 / 0", debug=True) == 1
    err = capsys.readouterr().err
    assert "DivisionByZero" in err
    assert "Traceback (most recent call last)" in err

  def test_without_debug_no_traceback(self, capsys):
    assert run_source("val main = 1 / 0") == 1
    assert "Traceback" not in capsys.readouterr().err

  def test_prints_deeply_nested_value(self, capsys):
    source = "val main = natrec 1500 { zero => (), succ m (acc : Int) => <m, acc> }"
    assert run_source(source) == 0
    out = capsys.readouterr().out.strip()
    assert out.startswith("<1500, <1499, ")
    assert out.endswith(">" * 1500)


class TestCommandLine:

  def test_script_file(self, tmp_path, capsys):
    script = write_script(tmp_path, "val main = 6 * 7\n")
    with pytest.raises(SystemExit) as exc_info:
      main([script])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == "42"

  def test_missing_script(self, tmp_path, capsys):
    assert run_script_file(str(tmp_path / "nope.ldgv")) == 1
    assert "not found" in capsys.readouterr().err

  def test_reads_stdin(self, monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("val main = succ 1"))
    with pytest.raises(SystemExit) as exc_info:
      main([])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == "2"

  def test_parse_flag(self, tmp_path, capsys):
    script = write_script(tmp_path, "val main = 1 + 2\n")
    with pytest.raises(SystemExit) as exc_info:
      main(["--parse", script])
    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    assert "Parsed 1 declarations:" in out
    assert "val main = (1 + 2)" in out

  def test_no_main_exit_code(self, tmp_path):
    script = write_script(tmp_path, "val other = 1\n")
    with pytest.raises(SystemExit) as exc_info:
      main([script])
    assert exc_info.value.code == 1

  def test_trace_goes_to_stderr(self, tmp_path, capsys):
    script = write_script(tmp_path, "val main = 1 + 2\n")
    with pytest.raises(SystemExit):
      main(["--trace", script])
    captured = capsys.readouterr()
    assert captured.out.strip() == "3"
    assert "Invoking interpretation on (1 + 2)" in captured.err

  def test_version(self, capsys):
    with pytest.raises(SystemExit) as exc_info:
      main(["--version"])
    assert exc_info.value.code == 0
    assert "ldgv" in capsys.readouterr().out
