import io
import sys

import pytest

from xvsim.wc import Counts, count, main, wc


def test_pinned_example():
    assert count(b"hello world\n") == Counts(1, 2, 12)


def test_empty():
    assert count(b"") == Counts()


@pytest.mark.parametrize("data", [b"a b c", b"\n\n", b"  lead and trail  \n", b"x\ty\rz\vw"])
def test_chars_and_lines(data):
    c = count(data)
    assert c.chars == len(data)
    assert c.lines == data.count(b"\n")


def test_nul_separates_words():
    assert count(b"a\0b").words == count(b"a b").words


def test_words_add_across_separator():
    a, b = b"one two", b"three  four five"
    assert count(a + b" " + b).words == count(a).words + count(b).words


def test_word_spanning_read_chunks():
    data = b"x" * 600 + b" y"
    c = count(data)
    assert wc(io.BytesIO(data), "f") == f"{c.lines} {c.words} {c.chars} f"
    assert c.words == count(b"x y").words


def test_main_files(tmp_path, capsys):
    p = tmp_path / "t.txt"
    p.write_bytes(b"line one\nline two\n")
    assert main([str(p)]) == 0
    c = count(p.read_bytes())
    assert capsys.readouterr().out == f"{c.lines} {c.words} {c.chars} {p}\n"


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "nope"
    assert main([str(missing)]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"


def test_main_stdin(monkeypatch, capsys):
    data = b"a b\n"
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    assert main([]) == 0
    c = count(data)
    assert capsys.readouterr().out == f"{c.lines} {c.words} {c.chars} \n"