import io
import struct

import pytest

from xvsim.syscalls import Stat, SyscallContext, SyscallError, SyscallTable, SysNum


def _ctx(args, extra=b""):
    mem = bytearray(4)
    for a in args:
        mem += struct.pack("<i", a)
    mem += extra
    return SyscallContext(mem, esp=0, pid=1, name="sh")


@pytest.mark.parametrize(
    "name, raw",
    [("FORK", 1), ("EXIT", 2), ("SIGNAL", 22)],
)
def test_syscall_numbers_dispatch_by_raw_value(name, raw):
    table = SyscallTable()
    table.register(SysNum[name], lambda ctx: 42)
    ctx = _ctx([])
    assert table.dispatch(ctx, raw) == 42
    assert ctx.eax == 42


def test_argint():
    ctx = _ctx([7, -3])
    assert ctx.argint(0) == 7
    assert ctx.argint(1) == -3


def test_argint_past_end():
    ctx = _ctx([7])
    with pytest.raises(SyscallError):
        ctx.argint(1)


def test_fetchint_must_fit():
    ctx = SyscallContext(bytearray(10))
    assert ctx.fetchint(6) == 0
    with pytest.raises(SyscallError):
        ctx.fetchint(8)


def test_argstr():
    ctx = _ctx([8], b"ls\0")
    assert ctx.argstr(0) == b"ls"


def test_unterminated_string():
    ctx = _ctx([8], b"ls")
    with pytest.raises(SyscallError):
        ctx.argstr(0)


def test_argptr_bounds():
    ctx = _ctx([4, -1], bytes(8))
    assert ctx.argptr(0, 4) == 4
    with pytest.raises(SyscallError):
        ctx.argptr(0, -1)
    with pytest.raises(SyscallError):
        ctx.argptr(0, ctx.sz)
    with pytest.raises(SyscallError):
        ctx.argptr(1, 1)


def test_dispatch_registered_handler():
    table = SyscallTable()
    table.register(SysNum.GETPID, lambda ctx: ctx.pid)
    ctx = _ctx([])
    assert table.dispatch(ctx, SysNum.GETPID) == ctx.pid
    assert ctx.eax == ctx.pid


def test_dispatch_handler_using_stat():
    table = SyscallTable()

    def fstat(ctx):
        st = Stat(type=2, size=ctx.argint(0))
        return st.size

    table.register(SysNum.FSTAT, fstat)
    assert table.dispatch(_ctx([5]), SysNum.FSTAT) == 5


def test_dispatch_bad_argument_returns_minus_one():
    table = SyscallTable()
    table.register(SysNum.KILL, lambda ctx: ctx.argint(0))
    ctx = _ctx([])
    assert table.dispatch(ctx, SysNum.KILL) == -1
    assert ctx.eax == -1


@pytest.mark.parametrize("num", [0, 23, 99, -1])
def test_dispatch_unknown(num):
    console = io.StringIO()
    table = SyscallTable(console=console)
    ctx = _ctx([])
    assert table.dispatch(ctx, num) == -1
    assert console.getvalue() == f"1 sh: unknown sys call {num}\n"


def test_dispatch_unregistered_known_number():
    console = io.StringIO()
    table = SyscallTable(console=console)
    assert table.dispatch(_ctx([]), SysNum.FORK) == -1
    assert "unknown sys call 1" in console.getvalue()


def test_register_unknown_number():
    with pytest.raises(ValueError):
        SyscallTable().register(99, lambda ctx: 0)