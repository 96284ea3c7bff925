import pytest

from xvsim.shparse import (
    O_CREATE,
    O_RDONLY,
    O_WRONLY,
    BackCmd,
    ExecCmd,
    ListCmd,
    PipeCmd,
    RedirCmd,
    ShellSyntaxError,
    gettoken,
    parsecmd,
)


def test_simple_command():
    assert parsecmd("echo hi there\n") == ExecCmd(["echo", "hi", "there"])


def test_empty_line():
    assert parsecmd("\n") == ExecCmd([])


def test_redirections():
    expected = RedirCmd(
        RedirCmd(ExecCmd(["cat"]), "in", O_RDONLY, 0), "out", O_WRONLY | O_CREATE, 1
    )
    assert parsecmd("cat < in > out\n") == expected


def test_append_is_like_write():
    assert parsecmd("echo x >> log") == RedirCmd(ExecCmd(["echo", "x"]), "log", O_WRONLY | O_CREATE, 1)


def test_redirection_between_words():
    assert parsecmd("cat <in x") == RedirCmd(ExecCmd(["cat", "x"]), "in", O_RDONLY, 0)


def test_pipe_is_right_nested():
    assert parsecmd("a | b | c") == PipeCmd(ExecCmd(["a"]), PipeCmd(ExecCmd(["b"]), ExecCmd(["c"])))


def test_list():
    assert parsecmd("a ; b") == ListCmd(ExecCmd(["a"]), ExecCmd(["b"]))


def test_trailing_semicolon():
    assert parsecmd("echo a;") == ListCmd(ExecCmd(["echo", "a"]), ExecCmd([]))


def test_background():
    assert parsecmd("sleep &") == BackCmd(ExecCmd(["sleep"]))


def test_background_then_list():
    assert parsecmd("a & ; b") == ListCmd(BackCmd(ExecCmd(["a"])), ExecCmd(["b"]))


def test_background_followed_by_word_is_leftover():
    with pytest.raises(ShellSyntaxError, match="leftovers"):
        parsecmd("a & b")


def test_block_with_redirection():
    expected = RedirCmd(ListCmd(ExecCmd(["a"]), ExecCmd(["b"])), "out", O_WRONLY | O_CREATE, 1)
    assert parsecmd("(a ; b) > out") == expected


def test_missing_close_paren():
    with pytest.raises(ShellSyntaxError, match="missing \\)"):
        parsecmd("(a ; b")


def test_missing_redirection_file():
    with pytest.raises(ShellSyntaxError, match="missing file"):
        parsecmd("echo >")


def test_stray_close_paren_is_leftover():
    with pytest.raises(ShellSyntaxError):
        parsecmd("echo )")


def test_argument_limit():
    assert parsecmd(" ".join(["w"] * 9)) == ExecCmd(["w"] * 9)
    with pytest.raises(ShellSyntaxError, match="too many args"):
        parsecmd(" ".join(["w"] * 10))


def test_text_after_nul_is_ignored():
    assert parsecmd("ls\0 | wc") == ExecCmd(["ls"])


def test_gettoken_double_greater():
    s = "  >> x"
    tok, start, end, pos = gettoken(s, 0)
    assert tok == "+"
    assert s[start:end] == ">>"
    assert s[pos:] == "x"


def test_gettoken_word_stops_at_symbol():
    s = "abc|d"
    tok, start, end, pos = gettoken(s)
    assert tok == "a"
    assert s[start:end] == "abc"
    assert gettoken(s, pos)[0] == "|"


def test_gettoken_at_end():
    assert gettoken("   ", 0)[0] == ""