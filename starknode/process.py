"""Starting, stopping and finding client processes."""

from __future__ import annotations

import os
import signal
import subprocess
import time
from datetime import timedelta
from pathlib import Path
from typing import IO

from starknode.types import ProcessInfo

_STOP_GRACE_SECONDS = 3


def is_process_running(pid: int) -> bool:
    """Return True if a process with this pid exists."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def start_client(name: str, command: str, log_file: IO, *args: str) -> subprocess.Popen:
    """Start ``command`` in its own session, writing its output to ``log_file``."""
    return subprocess.Popen(
        [command, *args],
        stdout=log_file,
        stderr=log_file,
        start_new_session=True,
    )


def stop_client(pid: int) -> None:
    """Ask a process to terminate, repeating the request if it lingers.

    Raises ProcessLookupError if there is no such process.
    """
    os.kill(pid, signal.SIGTERM)
    time.sleep(_STOP_GRACE_SECONDS)
    if is_process_running(pid):
        os.kill(pid, signal.SIGTERM)


def _is_decimal(text: str) -> bool:
    return text.isascii() and text.isdigit()


def get_process_info(process_name: str, proc_root: str | os.PathLike = "/proc") -> ProcessInfo | None:
    """Find the first process whose command line mentions ``process_name``."""
    root = Path(proc_root)
    try:
        proc_dirs = sorted(root.glob("[0-9]*"), key=lambda p: p.name)
    except OSError:
        return None

    for proc_dir in proc_dirs:
        try:
            cmdline = (proc_dir / "cmdline").read_bytes().decode("utf-8", "replace")
        except OSError:
            continue
        if process_name not in cmdline:
            continue

        if not _is_decimal(proc_dir.name):
            continue
        pid = int(proc_dir.name)

        try:
            stat_fields = (proc_dir / "stat").read_text(errors="replace").split()
        except OSError:
            continue
        if len(stat_fields) <= 21 or not _is_decimal(stat_fields[21]):
            continue

        start_jiffies = int(stat_fields[21])
        uptime_seconds = int(time.time()) - start_jiffies // 100
        return ProcessInfo(
            pid=pid,
            name=process_name,
            status="running",
            uptime=timedelta(seconds=uptime_seconds),
        )

    return None