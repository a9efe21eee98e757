import io
import shlex
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

from hilite.cli import main


@pytest.fixture
def stdin(monkeypatch):
    def feed(text):
        monkeypatch.setattr("sys.stdin", io.StringIO(text))
    return feed


def test_highlights_stdin(stdin, capsys):
    stdin("linux 126M\nfirefox 221M\n")
    assert main(["-f1"]) == 0
    assert capsys.readouterr().out == "linux (126M)\nfirefox (221M)\n"


def test_split_option(stdin, capsys):
    stdin("cpu family  : 6\n")
    assert main(["-s", ": ", "-f", "1"]) == 0
    assert capsys.readouterr().out == "cpu family  : (6)\n"


def test_delimiter_alias_and_skip(stdin, capsys):
    stdin("key = a,b,c\n")
    assert main(["--skip", "= ", "-d", ",", "-f", "-1"]) == 0
    assert capsys.readouterr().out == "key = a,b,(c)\n"


def test_colors_respect_color_mode(stdin, capsys):
    stdin("a b\n")
    assert main(["-f", "1:red", "--color", "always"]) == 0
    assert capsys.readouterr().out == "a \x1b[31mb\x1b[39m\n"

    stdin("a b\n")
    assert main(["-f", "1:red", "--color", "never"]) == 0
    assert capsys.readouterr().out == "a (b)\n"


def test_malformed_selector_exits_with_usage(stdin, capsys):
    stdin("a b\n")
    with pytest.raises(SystemExit) as info:
        main(["-f", "1:pink"])
    assert info.value.code == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "usage:" in captured.err
    assert "'pink'" in captured.err


def test_no_fields_is_an_error(stdin, capsys):
    stdin("a b\n")
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2
    assert "no fields selected" in capsys.readouterr().err


def test_missing_input_file(tmp_path, capsys):
    assert main(["-f", "0", str(tmp_path / "missing.txt")]) == 1
    assert capsys.readouterr().out == ""


def test_file_input_and_output(tmp_path):
    src = tmp_path / "in.txt"
    dst = tmp_path / "out.txt"
    src.write_text("a b\nc\n", encoding="utf-8")
    assert main(["-f", "1", "--open", "<", "--close", ">", str(src), "-o", str(dst)]) == 0
    assert dst.read_text(encoding="utf-8") == "a <b>\nc\n"


def test_undecodable_input(tmp_path):
    src = tmp_path / "in.bin"
    src.write_bytes(b"a \xff\xfe\n")
    assert main(["-f", "1", str(src), "-o", str(tmp_path / "out.txt")]) == 1


def test_config_file(tmp_path, stdin, capsys):
    cfg = tmp_path / "hl.yaml"
    cfg.write_text("one_based: true\nfields: ['2']\nopen: '['\nclose: ']'\n", encoding="utf-8")
    stdin("x y z\n")
    assert main(["-c", str(cfg)]) == 0
    assert capsys.readouterr().out == "x [y] z\n"


def test_bad_config_file(tmp_path, capsys):
    cfg = tmp_path / "hl.yaml"
    cfg.write_text("color: sometimes\n", encoding="utf-8")
    with pytest.raises(SystemExit) as info:
        main(["-c", str(cfg), "-f", "0"])
    assert info.value.code == 2
    assert "color" in capsys.readouterr().err


class _ClosedPipe(io.StringIO):
    def write(self, s):
        raise BrokenPipeError


def test_broken_pipe_to_file_is_quiet(tmp_path, monkeypatch, capsys):
    src = tmp_path / "in.txt"
    src.write_text("a b\n", encoding="utf-8")
    monkeypatch.setattr("builtins.open", _opener(open, _ClosedPipe()))
    assert main(["-f", "1", str(src), "-o", "sink"]) == 1
    assert capsys.readouterr().err == ""


def _opener(real_open, sink):
    def fake_open(path, mode="r", *args, **kwargs):
        if "w" in mode:
            return sink
        return real_open(path, mode, *args, **kwargs)
    return fake_open


def test_file_input_keeps_crlf(tmp_path):
    src = tmp_path / "in.txt"
    dst = tmp_path / "out.txt"
    src.write_bytes(b"a b\r\nc d\r\n")
    assert main(["-f", "1", str(src), "-o", str(dst)]) == 0
    assert dst.read_bytes() == b"a (b)\r\nc (d)\r\n"


def test_stdout_is_utf8_under_ascii_locale(stdin, monkeypatch):
    raw = io.BytesIO()
    monkeypatch.setattr("sys.stdout", io.TextIOWrapper(raw, encoding="ascii", newline="\n"))
    stdin("a b\n")
    assert main(["-f", "1", "--open", "«", "--close", "»"]) == 0
    sys.stdout.flush()
    assert raw.getvalue() == "a «b»\n".encode("utf-8")


@pytest.mark.skipif(shutil.which("head") is None, reason="needs head(1)")
def test_broken_pipe_on_stdout_is_quiet():
    root = Path(__file__).resolve().parent.parent
    cmd = f"{shlex.quote(sys.executable)} -m hilite.cli -f1 | head -n1"
    proc = subprocess.run(
        cmd, shell=True, input="a b\n" * 200_000, capture_output=True, text=True, cwd=root,
    )
    assert proc.stdout == "a (b)\n"
    assert proc.stderr == ""
