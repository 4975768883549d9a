"""State and background updaters of the monitoring dashboard.

The app owns the panels and the update queues; worker threads collect
data and queue panel text, and ``drain_updates`` applies the queued
changes from the thread that draws the screen.
"""

from __future__ import annotations

import os
import queue
import random
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, Sequence

from starknode.config import ConfigError, load_config
from starknode.monitoring.metrics import (
    get_ethereum_metrics,
    get_juno_metrics,
    get_latest_logs,
)
from starknode.monitoring.render import (
    JUNO_NOT_RUNNING_TITLE,
    JUNO_RUNNING_TITLE,
    NO_CONSENSUS_MESSAGE,
    NO_EXECUTION_MESSAGE,
    NO_JUNO_MESSAGE,
    NetworkPoint,
    colorize_log_entry,
    consensus_title,
    execution_title,
    format_log_lines,
    format_status_bar,
    juno_title,
    render_chain_info,
    render_l1_status,
    render_l2_status,
    render_network,
    render_rpc_info,
    render_system_gauges,
)
from starknode.nodes import check_rpc_status, get_geth_sync_status, get_running_clients
from starknode.stats import SystemStats, get_system_stats
from starknode.types import ClientStatus, EthereumMetrics, SyncInfo

EXECUTION_RPC_URL = "http://localhost:8545"
CONSENSUS_RPC_URL = "http://localhost:5054"

_LOG_QUEUE_SIZE = 100
_PANEL_QUEUE_SIZE = 10
_HISTORY_SIZE = 60
_LOG_TAIL_LINES = 10
_MAX_LOG_ENTRIES = 100


@dataclass
class Panel:
    """A titled text panel of the dashboard."""

    title: str = ""
    text: str = ""
    border_color: str = "teal"
    background: str = "black"
    text_color: str = "white"
    follow_tail: bool = False
    revision: int = 0

    def set_text(self, text: str) -> None:
        """Replace the panel's text."""
        self.text = text
        self.revision += 1


def _panel(title: str) -> Panel:
    return Panel(title=f" {title} ")


def _default_network_name() -> str:
    try:
        return load_config().network
    except (OSError, ConfigError):
        return ""


def _default_cpu_temp() -> float:
    return float(45 + random.randrange(20))


class MonitorApp:
    """Panels, update queues and background workers of the monitor."""

    def __init__(
        self,
        *,
        running_clients: Callable[[], list[ClientStatus]] = get_running_clients,
        latest_logs: Callable[[str, int], list[str]] = get_latest_logs,
        l1_sync: Callable[[], SyncInfo] = get_geth_sync_status,
        l2_metrics: Callable[[], EthereumMetrics] = get_juno_metrics,
        chain_metrics: Callable[[], EthereumMetrics] = get_ethereum_metrics,
        system_stats: Callable[[], SystemStats] = get_system_stats,
        rpc_status: Callable[[str, str], str] = check_rpc_status,
        network_name: Callable[[], str] = _default_network_name,
        cpu_temp: Callable[[], float] = _default_cpu_temp,
        interval_scale: float = 1.0,
    ) -> None:
        self._running_clients = running_clients
        self._latest_logs = latest_logs
        self._l1_sync = l1_sync
        self._l2_metrics = l2_metrics
        self._chain_metrics = chain_metrics
        self._system_stats = system_stats
        self._rpc_status = rpc_status
        self._network_name = network_name
        self._cpu_temp = cpu_temp
        self._interval_scale = interval_scale

        self.update_rate = timedelta(seconds=2)
        self.dark_theme = True
        self.paused = False

        self.cpu_history: deque[float] = deque(maxlen=_HISTORY_SIZE)
        self.network_history: deque[NetworkPoint] = deque(maxlen=_HISTORY_SIZE)
        self.disk_history: deque[float] = deque(maxlen=_HISTORY_SIZE)

        self.execution_log_queue: queue.Queue[str] = queue.Queue(_LOG_QUEUE_SIZE)
        self.consensus_log_queue: queue.Queue[str] = queue.Queue(_LOG_QUEUE_SIZE)
        self.juno_log_queue: queue.Queue[str] = queue.Queue(_LOG_QUEUE_SIZE)
        self.status_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.juno_status_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.network_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.chain_info_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.system_stats_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.rpc_info_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)

        self.system_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.clients_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.logs_queue: queue.Queue[str] = queue.Queue(_LOG_QUEUE_SIZE)
        self.peers_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.chain_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.graphs_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)
        self.stats_queue: queue.Queue[str] = queue.Queue(_PANEL_QUEUE_SIZE)

        self._ui_updates: queue.Queue[Callable[[], None]] = queue.Queue()
        self._stop = threading.Event()
        self._workers: list[threading.Thread] = []
        self._current_client: dict[str, str] = {
            "execution": "",
            "consensus": "",
            "juno": "",
        }

        self.execution_log_box = _panel("Reth")
        self.execution_log_box.title = " Execution Client (Detecting...) ⚡ "
        self.consensus_log_box = _panel("Lighthouse")
        self.consensus_log_box.title = " Consensus Client (Detecting...) 🏛️ "
        self.juno_log_box = _panel("Juno")
        self.juno_log_box.title = " Juno (Detecting...) 🌟 "
        self.status_box = _panel("L1 Status")
        self.status_box.set_text("INITIALIZING...")
        self.network_box = _panel("Network")
        self.network_box.set_text("INITIALIZING...")
        self.starknet_status_box = _panel("L2 Status")
        self.starknet_status_box.set_text("INITIALIZING...")
        self.chain_info_box = _panel("Chain Info")
        self.system_stats_box = _panel("System Stats")
        self.rpc_info_box = _panel("RPC Info")
        self.status_bar = Panel()

        self.system_box: Panel | None = None
        self.clients_box: Panel | None = None
        self.logs_box: Panel | None = None
        self.peers_box: Panel | None = None
        self.chain_box: Panel | None = None
        self.network_stats_box: Panel | None = None
        self.cpu_graph_box: Panel | None = None
        self.network_graph_box: Panel | None = None
        self.disk_graph_box: Panel | None = None

        self._routes: Sequence[tuple[queue.Queue[str], Callable[[str], None]]] = (
            (self.execution_log_queue, lambda t: self._set_log(self.execution_log_box, t)),
            (self.consensus_log_queue, lambda t: self._set_log(self.consensus_log_box, t)),
            (self.juno_log_queue, lambda t: self._set_log(self.juno_log_box, t)),
            (self.status_queue, self.status_box.set_text),
            (self.network_queue, self.network_box.set_text),
            (self.juno_status_queue, self.starknet_status_box.set_text),
            (self.chain_info_queue, self.chain_info_box.set_text),
            (self.system_stats_queue, self.system_stats_box.set_text),
            (self.rpc_info_queue, self.rpc_info_box.set_text),
            (self.system_queue, lambda t: self._set_optional(self.system_box, t)),
            (self.clients_queue, lambda t: self._set_optional(self.clients_box, t)),
            (self.chain_queue, lambda t: self._set_optional(self.chain_box, t)),
            (self.peers_queue, lambda t: self._set_optional(self.peers_box, t)),
            (self.logs_queue, lambda t: self._set_optional(self.logs_box, t)),
            (self.graphs_queue, self._apply_graph),
            (self.stats_queue, lambda t: self._set_optional(self.network_stats_box, t)),
        )

        self.detect_client_titles()

    @property
    def stopped(self) -> bool:
        """True once the monitor has been asked to stop."""
        return self._stop.is_set()

    # Panel updates -------------------------------------------------------

    @staticmethod
    def _set_log(panel: Panel, text: str) -> None:
        panel.set_text(text)
        panel.follow_tail = True

    @staticmethod
    def _set_optional(panel: Panel | None, text: str) -> None:
        if panel is not None:
            panel.set_text(text)

    def _apply_graph(self, text: str) -> None:
        if text.startswith("cpu:") and self.cpu_graph_box is not None:
            self.cpu_graph_box.set_text(text.removeprefix("cpu:"))
        elif text.startswith("network:") and self.network_graph_box is not None:
            self.network_graph_box.set_text(text.removeprefix("network:"))

    def _queue_title(self, panel: Panel, title: str) -> None:
        def apply() -> None:
            panel.title = title

        self._ui_updates.put(apply)

    @staticmethod
    def _offer(target: queue.Queue[str], text: str) -> None:
        try:
            target.put_nowait(text)
        except queue.Full:
            pass

    def drain_updates(self) -> int:
        """Apply every queued panel change and return how many were applied."""
        applied = 0
        while True:
            try:
                update = self._ui_updates.get_nowait()
            except queue.Empty:
                break
            update()
            applied += 1
        for source, handler in self._routes:
            while True:
                try:
                    text = source.get_nowait()
                except queue.Empty:
                    break
                handler(text)
                applied += 1
        return applied

    # Client detection ----------------------------------------------------

    def detect_client_titles(self) -> None:
        """Set the log panel titles from the clients running right now."""
        clients = self._running_clients()
        self.execution_log_box.title = execution_title(clients)
        self.consensus_log_box.title = consensus_title(clients)
        self.juno_log_box.title = juno_title(clients)

    # Workers ---------------------------------------------------------------

    def start_workers(self) -> list[threading.Thread]:
        """Start the background updaters and return their threads."""
        if self._workers:
            raise RuntimeError("workers already started")
        schedule = (
            ("execution-logs", 2, self._tick_execution_logs),
            ("consensus-logs", 3, self._tick_consensus_logs),
            ("juno-logs", 3, self._tick_juno_logs),
            ("status", 5, self._tick_status),
            ("chain-info", 3, self._tick_chain_info),
            ("system-stats", 5, self._tick_system_stats),
            ("rpc-info", 8, self._tick_rpc_info),
        )
        for name, seconds, tick in schedule:
            thread = threading.Thread(
                target=self._run_every,
                args=(seconds * self._interval_scale, tick),
                name=f"monitor-{name}",
                daemon=True,
            )
            thread.start()
            self._workers.append(thread)
        return list(self._workers)

    def _run_every(self, seconds: float, tick: Callable[[], None]) -> None:
        while not self._stop.wait(seconds):
            if self.paused:
                continue
            tick()

    def stop(self) -> None:
        """Ask the workers and the dashboard to stop."""
        self._stop.set()

    def _follow_logs(
        self,
        key: str,
        target: queue.Queue[str],
        panel: Panel,
        names: tuple[str, ...],
        title_for: Callable[[list[ClientStatus]], str],
        not_running_title: str,
        not_running_message: str,
        format_lines: Callable[[list[str]], Iterable[str]],
    ) -> None:
        clients = self._running_clients()
        client = next((c for c in clients if c.name in names), None)

        if client is None:
            if self._current_client[key] != "None":
                self._current_client[key] = "None"
                self._queue_title(panel, not_running_title)
                self._offer(target, not_running_message)
            return

        if self._current_client[key] != client.name:
            self._current_client[key] = client.name
            self._queue_title(panel, title_for([client]))

        log_name = client.name.lower()
        lines = self._latest_logs(log_name, _LOG_TAIL_LINES)
        if lines and lines[0] != f"No log files found for {log_name}":
            self._offer(target, "\n".join(format_lines(lines)))

    def _tick_execution_logs(self) -> None:
        self._follow_logs(
            "execution",
            self.execution_log_queue,
            self.execution_log_box,
            ("Geth", "Reth"),
            execution_title,
            execution_title([]),
            NO_EXECUTION_MESSAGE,
            list,
        )

    def _tick_consensus_logs(self) -> None:
        self._follow_logs(
            "consensus",
            self.consensus_log_queue,
            self.consensus_log_box,
            ("Lighthouse", "Prysm"),
            consensus_title,
            consensus_title([]),
            NO_CONSENSUS_MESSAGE,
            list,
        )

    def _tick_juno_logs(self) -> None:
        self._follow_logs(
            "juno",
            self.juno_log_queue,
            self.juno_log_box,
            ("Juno",),
            lambda _clients: JUNO_RUNNING_TITLE,
            JUNO_NOT_RUNNING_TITLE,
            NO_JUNO_MESSAGE,
            lambda lines: [format_log_lines(line) for line in lines if line.strip()],
        )

    def _tick_status(self) -> None:
        network = self._network_name()
        l1 = render_l1_status(self._l1_sync())
        l2 = render_l2_status(self._l2_metrics())
        net = render_network(network, datetime.now())
        ready = [
            (target, text)
            for target, text in (
                (self.status_queue, l1),
                (self.juno_status_queue, l2),
                (self.network_queue, net),
            )
            if not target.full()
        ]
        if ready:
            target, text = random.choice(ready)
            self._offer(target, text)

    def _tick_chain_info(self) -> None:
        self._offer(self.chain_info_queue, render_chain_info(self._chain_metrics().gas_price))

    def _tick_system_stats(self) -> None:
        try:
            stats = self._system_stats()
        except OSError:
            return
        content = render_system_gauges(
            stats.memory.used_percent, stats.disk.used_percent, self._cpu_temp()
        )
        self._offer(self.system_stats_queue, content)

    def _tick_rpc_info(self) -> None:
        exec_status = self._rpc_status(EXECUTION_RPC_URL, "web3_clientVersion")
        cons_status = self._rpc_status(CONSENSUS_RPC_URL, "eth/v1/node/health")
        content = render_rpc_info(EXECUTION_RPC_URL, exec_status, CONSENSUS_RPC_URL, cons_status)
        self._offer(self.rpc_info_queue, content)

    # User actions ----------------------------------------------------------

    def update_status_bar(self, message: str) -> None:
        """Queue a timestamped message for the status bar."""
        text = format_status_bar(message, datetime.now())

        def apply() -> None:
            self.status_bar.set_text(text)

        self._ui_updates.put(apply)

    def toggle_pause(self) -> bool:
        """Pause or resume the updaters and return whether they are paused."""
        self.paused = not self.paused
        if self.paused:
            self.update_status_bar("[yellow]⏸️  Updates paused - Press P to resume[white]")
        else:
            self.update_status_bar("[green]▶️  Updates resumed[white]")
        return self.paused

    def toggle_theme(self) -> bool:
        """Switch between dark and light colours and return whether dark is on."""
        if self.dark_theme:
            background, foreground = "white", "black"
            message = "[blue]🎨 Switched to light theme[white]"
        else:
            background, foreground = "black", "white"
            message = "[blue]🎨 Switched to dark theme[white]"
        for panel in (self.execution_log_box, self.consensus_log_box):
            panel.background = background
            panel.text_color = foreground
        self.update_status_bar(message)
        self.dark_theme = not self.dark_theme
        return self.dark_theme

    def add_log_entry(self, entry: str) -> None:
        """Append a timestamped, level-coloured entry to the log panel.

        Raises RuntimeError when there is no log panel.
        """
        if self.logs_box is None:
            raise RuntimeError("log panel is not available")
        timestamp = f"[dim]{datetime.now():%H:%M:%S}[white] "
        current = self.logs_box.text
        lines = current.split("\n")
        if len(lines) > _MAX_LOG_ENTRIES:
            current = "\n".join(lines[-_MAX_LOG_ENTRIES:])
        self._set_log(self.logs_box, current + "\n" + timestamp + colorize_log_entry(entry))

    @staticmethod
    def _write_file(path: Path, content: str) -> None:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)

    def _export(self, path: Path, content: str, what: str) -> Path | None:
        try:
            self._write_file(path, content)
        except OSError as exc:
            self.update_status_bar(f"[red]❌ Failed to export {what}: {exc}[white]")
            return None
        return path

    def export_data(self, directory: str | os.PathLike = ".") -> list[Path]:
        """Write the log panels and metrics to timestamped files.

        Returns the paths of the files written.
        """
        now = datetime.now()
        stamp = f"{now:%Y-%m-%d_%H-%M-%S}"
        base = Path(directory)
        written: list[Path] = []

        for panel, label, kind in (
            (self.execution_log_box, "Execution", "execution"),
            (self.consensus_log_box, "Consensus", "consensus"),
        ):
            if not panel.text:
                continue
            path = base / f"starknode_{kind}_logs_{stamp}.txt"
            if self._export(path, panel.text, f"{kind} logs") is not None:
                written.append(path)
                self.update_status_bar(f"[green]✅ {label} logs exported to {path.name}[white]")

        metrics = (
            f"StarkNode System Metrics Export - {now:%Y-%m-%d %H:%M:%S}\n\n"
            + "=== SYSTEM STATS ===\n" + self.system_stats_box.text + "\n\n"
            + "=== STATUS ===\n" + self.status_box.text + "\n\n"
            + "=== CHAIN INFO ===\n" + self.chain_info_box.text + "\n"
        )
        path = base / f"starknode_metrics_{stamp}.txt"
        if self._export(path, metrics, "metrics") is not None:
            written.append(path)
            self.update_status_bar(f"[green]✅ Metrics exported to {path.name}[white]")
        return written