"""Shared fixtures: a fake /proc tree and a controllable clock."""

from pathlib import Path

import pytest

from proctop.identity import IdentityCache
from proctop.procfs import ProcFS

BOOT_TIME = 1_700_000_000
TICK_RATE = 100

PASSWD = """\
root:x:0:0:root:/root:/bin/bash
daemon:x:1:1:daemon:/usr/sbin:/usr/sbin/nologin
alice:x:1000:1000:Alice:/home/alice:/bin/bash
bob:x:1001:1001:Bob:/home/bob:/bin/bash
"""

OS_RELEASE = """\
NAME="Test Linux"
VERSION_ID="1.0"
PRETTY_NAME="Test Linux 1.0 (Unit)"
"""


class FakeClock:
    """Clock returning a settable epoch time."""

    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProc:
    """Writes a minimal /proc tree plus passwd and os-release files."""

    def __init__(self, base: Path) -> None:
        self.root = base / "proc"
        self.root.mkdir()
        etc = base / "etc"
        etc.mkdir()
        self.passwd = etc / "passwd"
        self.passwd.write_text(PASSWD)
        self.os_release = etc / "os-release"
        self.os_release.write_text(OS_RELEASE)
        (self.root / "version").write_text(
            "Linux version 6.1.0-test (builder@host) (gcc (GCC) 12.2.0) #1 SMP PREEMPT_DYNAMIC\n"
        )
        self.set_meminfo(total_kb=1_000_000, free_kb=250_000)
        self.set_cpu()

    def procfs(self) -> ProcFS:
        return ProcFS(self.root, tick_rate=TICK_RATE)

    def identity_cache(self) -> IdentityCache:
        return IdentityCache.from_passwd(self.passwd)

    def set_cpu(
        self,
        user: int = 0,
        nice: int = 0,
        system: int = 0,
        idle: int = 0,
        iowait: int = 0,
        irq: int = 0,
        softirq: int = 0,
        steal: int = 0,
        processes: int = 1234,
        running: int = 2,
    ) -> None:
        (self.root / "stat").write_text(
            f"cpu  {user} {nice} {system} {idle} {iowait} {irq} {softirq} {steal} 0 0\n"
            f"cpu0 {user} {nice} {system} {idle} {iowait} {irq} {softirq} {steal} 0 0\n"
            "intr 12345 1 2 3\n"
            "ctxt 987654\n"
            f"btime {BOOT_TIME}\n"
            f"processes {processes}\n"
            f"procs_running {running}\n"
            "procs_blocked 0\n"
        )

    def set_meminfo(self, total_kb: int, free_kb: int) -> None:
        (self.root / "meminfo").write_text(
            f"MemTotal:       {total_kb} kB\n"
            f"MemFree:        {free_kb} kB\n"
            f"MemAvailable:   {free_kb} kB\n"
        )

    def add_process(
        self,
        pid: int,
        uid: int | None = 1000,
        starttime: int = 1000,
        cmdline: str = "/usr/bin/sleep\x0060\x00",
        comm: str = "sleep",
        vmsize_kb: int | None = 10240,
    ) -> None:
        directory = self.root / str(pid)
        directory.mkdir()
        (directory / "cmdline").write_text(cmdline)
        status = [f"Name:\t{comm}", "State:\tS (sleeping)", f"Pid:\t{pid}"]
        if uid is not None:
            status.append(f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}")
        if vmsize_kb is not None:
            status.append(f"VmSize:\t{vmsize_kb:8d} kB")
        (directory / "status").write_text("\n".join(status) + "\n")
        self.set_times(pid, comm=comm, starttime=starttime)

    def set_times(
        self,
        pid: int,
        utime: int = 0,
        stime: int = 0,
        cutime: int = 0,
        cstime: int = 0,
        comm: str = "sleep",
        starttime: int = 1000,
    ) -> None:
        (self.root / str(pid) / "stat").write_text(
            f"{pid} ({comm}) S 1 {pid} {pid} 0 -1 4194560 100 0 0 0 "
            f"{utime} {stime} {cutime} {cstime} 20 0 1 0 {starttime} 10485760 256\n"
        )

    def remove_process(self, pid: int) -> None:
        directory = self.root / str(pid)
        for child in directory.iterdir():
            child.unlink()
        directory.rmdir()


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    return FakeProc(tmp_path)


@pytest.fixture
def clock() -> FakeClock:
    # 1000 seconds after boot
    return FakeClock(BOOT_TIME + 1000.0)
