import io

import pytest

from xvsim.kstring import (
    atoi,
    gets,
    memcmp,
    memmove,
    memset,
    safestrcpy,
    strchr,
    strcmp,
    strlen,
    strncmp,
    strncpy,
)


def test_memset_fills_prefix():
    buf = bytearray(b"abcdef")
    result = memset(buf, ord("z"), 3)
    assert result is buf
    assert buf == bytearray(b"zzzdef")


def test_memset_masks_value():
    buf = bytearray(4)
    memset(buf, 0x141, 4)
    assert buf == bytearray(b"\x41" * 4)


def test_memset_out_of_range():
    with pytest.raises(ValueError):
        memset(bytearray(2), 0, 3)


def test_memcmp():
    assert memcmp(b"abc", b"abc", 3) == 0
    assert memcmp(b"abc", b"abd", 3) < 0
    assert memcmp(b"abd", b"abc", 3) > 0
    assert memcmp(b"abX", b"abY", 2) == 0


def test_memcmp_unsigned():
    assert memcmp(b"\xff", b"\x01", 1) > 0


def test_memcmp_too_long():
    with pytest.raises(ValueError):
        memcmp(b"ab", b"abc", 3)


def test_memmove_forward_overlap():
    buf = bytearray(b"abcdef")
    memmove(buf, 2, 0, 4)
    assert buf[:2] == b"ab"
    assert buf[2:6] == b"abcd"


def test_memmove_backward_overlap():
    buf = bytearray(b"abcdef")
    memmove(buf, 0, 2, 4)
    assert buf[:4] == b"cdef"
    assert buf[4:] == b"ef"


def test_memmove_out_of_range():
    with pytest.raises(ValueError):
        memmove(bytearray(4), 2, 0, 3)


def test_strncmp():
    assert strncmp(b"hello", b"help", 3) == 0
    assert strncmp(b"hello", b"help", 4) < 0
    assert strncmp(b"ab\0x", b"ab\0y", 10) == 0
    assert strncmp(b"ab", b"abc", 3) < 0
    assert strncmp(b"x", b"y", 0) == 0


def test_strcmp():
    assert strcmp(b"same", b"same\0junk") == 0
    assert strcmp(b"b", b"a") > 0
    assert strcmp(b"", b"a") < 0


def test_strncpy_pads():
    assert strncpy(b"hi", 5) == b"hi\0\0\0"
    assert strncpy(b"hello", 3) == b"hel"
    assert strncpy(b"hello", 0) == b""


def test_safestrcpy_terminates():
    assert safestrcpy(b"hello", 3) == b"he\0"
    assert safestrcpy(b"hi", 10) == b"hi\0"
    assert safestrcpy(b"hi", 0) == b""


@pytest.mark.parametrize("text", [b"", b"a", b"hello", b"with space"])
def test_strlen(text):
    assert strlen(text + b"\0tail") == len(text)
    assert strlen(text) == len(text)


def test_strchr():
    assert strchr(b"hello", "l") == 2
    assert strchr(b"hello", ord("h")) == 0
    assert strchr(b"ab\0c", "c") is None
    assert strchr(b"abc", 0) is None


def test_atoi():
    assert atoi(b"123abc") == 123
    assert atoi(b"-5") == 0
    assert atoi(b" 7") == 0
    assert atoi("42") == 42


def test_gets_lines():
    stream = io.BytesIO(b"line1\nline2")
    assert gets(stream, 100) == b"line1\n"
    assert gets(stream, 100) == b"line2"
    assert gets(stream, 100) == b""


def test_gets_carriage_return():
    stream = io.BytesIO(b"ab\rcd")
    assert gets(stream, 100) == b"ab\r"
    assert gets(stream, 100) == b"cd"


def test_gets_limit():
    stream = io.BytesIO(b"abcdef")
    assert gets(stream, 4) == b"abc"
    assert gets(stream, 4) == b"def"