import os
import signal
import subprocess
import sys
import time
from unittest import mock

import pytest

from starknode.process import (
    get_process_info,
    is_process_running,
    start_client,
    stop_client,
)


def _make_proc(root, pid, cmdline, start_jiffies=0, field_count=27):
    entry = root / str(pid)
    entry.mkdir()
    (entry / "cmdline").write_bytes(cmdline.encode() + b"\0")
    fields = [str(pid), "(x)", "S"] + ["0"] * 18 + [str(start_jiffies)]
    fields += ["0"] * (field_count - len(fields))
    (entry / "stat").write_text(" ".join(fields[:field_count]) + "\n")
    return entry


def test_get_process_info_finds_match(tmp_path):
    start = (int(time.time()) - 50) * 100
    _make_proc(tmp_path, 123, "/usr/bin/geth\0--http", start)
    _make_proc(tmp_path, 456, "/usr/bin/other", start)
    info = get_process_info("geth", tmp_path)
    assert info.pid == 123
    assert info.name == "geth"
    assert info.status == "running"
    assert 49 <= info.uptime.total_seconds() <= 52


def test_get_process_info_no_match(tmp_path):
    _make_proc(tmp_path, 1, "/sbin/init")
    assert get_process_info("juno", tmp_path) is None


def test_get_process_info_short_stat_is_skipped(tmp_path):
    _make_proc(tmp_path, 7, "reth node", field_count=10)
    assert get_process_info("reth", tmp_path) is None


def test_get_process_info_first_in_sorted_order(tmp_path):
    _make_proc(tmp_path, 9, "lighthouse bn")
    _make_proc(tmp_path, 10, "lighthouse vc")
    assert get_process_info("lighthouse", tmp_path).pid == 10


def test_get_process_info_ignores_non_numeric_dirs(tmp_path):
    _make_proc(tmp_path, 5, "prysm beacon")
    bogus = tmp_path / "5abc"
    bogus.mkdir()
    (bogus / "cmdline").write_bytes(b"prysm")
    assert get_process_info("prysm", tmp_path).pid == 5


def test_get_process_info_missing_root(tmp_path):
    assert get_process_info("geth", tmp_path / "absent") is None


def test_is_process_running_for_self():
    assert is_process_running(os.getpid()) is True


def test_is_process_running_for_reaped_child():
    child = subprocess.Popen([sys.executable, "-c", "pass"])
    child.wait(timeout=10)
    assert is_process_running(child.pid) is False


def test_start_client_writes_output_to_log(tmp_path):
    log_path = tmp_path / "client.log"
    with log_path.open("w") as log:
        proc = start_client(
            "py",
            sys.executable,
            log,
            "-c",
            "import sys; print('hello'); print('oops', file=sys.stderr)",
        )
        proc.wait(timeout=10)
    content = log_path.read_text()
    assert "hello" in content
    assert "oops" in content


def test_start_client_missing_command(tmp_path):
    with (tmp_path / "x.log").open("w") as log:
        with pytest.raises(FileNotFoundError):
            start_client("none", str(tmp_path / "no-such-binary"), log)


def test_start_and_stop_client(tmp_path):
    with (tmp_path / "sleep.log").open("w") as log:
        proc = start_client(
            "sleeper", sys.executable, log, "-c", "import time; time.sleep(30)"
        )
    try:
        assert os.getsid(proc.pid) == proc.pid
        with mock.patch("time.sleep"):
            stop_client(proc.pid)
        assert proc.wait(timeout=10) == -signal.SIGTERM
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


def test_stop_client_missing_process():
    child = subprocess.Popen([sys.executable, "-c", "pass"])
    child.wait(timeout=10)
    with pytest.raises(ProcessLookupError):
        stop_client(child.pid)