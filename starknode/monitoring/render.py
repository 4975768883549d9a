"""Text rendering for the monitoring dashboard panels.

Panel text uses inline style tags such as ``[green]`` and ``[white]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from starknode.types import ClientStatus, EthereumMetrics, SyncInfo

__all__ = [
    "NetworkPoint",
    "format_log_lines",
    "format_bytes",
    "format_number_with_commas",
    "colorize_log_entry",
    "generate_cpu_graph",
    "generate_network_graph",
    "generate_disk_graph",
    "render_system_gauges",
    "render_l1_status",
    "render_l2_status",
    "render_network",
    "render_chain_info",
    "render_rpc_info",
    "format_status_bar",
    "execution_title",
    "consensus_title",
    "juno_title",
]

NO_EXECUTION_MESSAGE = (
    "[red]No execution client detected.[white]\n"
    "[yellow]Start Geth or Reth to see live logs.[white]"
)
NO_CONSENSUS_MESSAGE = (
    "[red]No consensus client detected.[white]\n"
    "[yellow]Start Lighthouse or Prysm to see live logs.[white]"
)
NO_JUNO_MESSAGE = (
    "[red]No Juno client detected.[white]\n"
    "[yellow]Start Juno to see live logs.[white]"
)

GETH_TITLE = " Geth ⚙️ "
RETH_TITLE = " Reth ⚡ "
EXECUTION_NOT_RUNNING_TITLE = " Execution Client (Not Running) ❌ "
PRYSM_TITLE = " Prysm 🏛️ "
LIGHTHOUSE_TITLE = " Lighthouse 🏛️ "
CONSENSUS_NOT_RUNNING_TITLE = " Consensus Client (Not Running) ❌ "
JUNO_TITLE = " Juno 🌟 "
JUNO_RUNNING_TITLE = " Juno 🌟 (Running) "
JUNO_NOT_RUNNING_TITLE = " Juno (Not Running) ❌ "

HELP_TEXT = (
    "🚀 [red]STARKNODE MONITORING DASHBOARD[white]\n\n"
    "[yellow]📊 FEATURES:[white]\n"
    "  • Real-time system resource monitoring\n"
    "  • Live client status and health checks\n"
    "  • Blockchain synchronization tracking\n"
    "  • Network peer information\n"
    "  • Interactive graphs and charts\n"
    "  • Live log streaming from all clients\n"
    "  • Data export functionality\n"
    "  • Theme switching (dark/light)\n"
    "  • Pause/resume monitoring\n\n"
    "[yellow]⌨️  KEYBOARD SHORTCUTS:[white]\n"
    "  [green]Q, ESC[white] - Quit the monitor\n"
    "  [green]R[white] - Restart all clients\n"
    "  [green]S[white] - Stop all clients\n"
    "  [green]L[white] - Toggle log display focus\n"
    "  [green]G[white] - Toggle graph focus\n"
    "  [green]C[white] - Clear all displays\n"
    "  [green]E[white] - Export logs and metrics to files\n"
    "  [green]T[white] - Toggle theme (dark/light)\n"
    "  [green]P[white] - Pause/resume updates\n"
    "  [green]H, ?[white] - Show this help\n"
    "  [green]F1[white] - Advanced help\n\n"
    "[yellow]🎯 STATUS COLORS:[white]\n"
    "  [green]Green[white] - Running/Healthy\n"
    "  [yellow]Yellow[white] - Warning/Syncing\n"
    "  [red]Red[white] - Error/Stopped\n"
    "  [blue]Blue[white] - Information\n"
    "  [cyan]Cyan[white] - Network Activity\n\n"
    "[yellow]💾 EXPORT FUNCTIONALITY:[white]\n"
    "  Files are saved with timestamps in current directory\n"
    "  • starknode_logs_YYYY-MM-DD_HH-MM-SS.txt\n"
    "  • starknode_metrics_YYYY-MM-DD_HH-MM-SS.txt\n\n"
    "Press [yellow]ESC[white] to continue..."
)

_HIGHLIGHT_RULES = {
    "INFO": "[green][bold]INFO[white]",
    "WARN": "[yellow][bold]WARN[white]",
    "ERROR": "[red][bold]ERROR[white]",
    "updated": "[yellow][bold]updated[white]",
    "latestProcessedSlot": "[green][bold]latestProcessedSlot[white]",
}

_GRAPH_RULE = "[blue]" + "─" * 50 + "[white]\n"
_GAUGE_WIDTH = 20
_BYTE_UNIT = 1024


@dataclass
class NetworkPoint:
    """One sample of network throughput."""

    upload: float = 0.0
    download: float = 0.0
    time: datetime = field(default_factory=datetime.now)


def _go_float(value: float, precision: int) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return f"{value:.{precision}f}"


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def format_log_lines(line: str) -> str:
    """Highlight log levels, ``key=value`` pairs and ``label:`` words."""
    for word, replacement in _HIGHLIGHT_RULES.items():
        line = line.replace(word, replacement)

    styled = []
    for word in line.split():
        result = word
        if "=" in word:
            parts = word.split("=")
            if len(parts) == 2:
                result = f"[green][bold]{parts[0]}[white]={parts[1]}"
        if word.endswith(":") and len(word) > 1:
            result = f"[blue][bold]{word}[white]"
        styled.append(result)

    line = " ".join(styled)
    while "   " in line:
        line = line.replace("   ", "  ")
    return line


def format_bytes(num_bytes: int) -> str:
    """Format a byte count with a binary unit, e.g. ``1.5 KB``."""
    if num_bytes < _BYTE_UNIT:
        return f"{num_bytes} B"
    div, exp = _BYTE_UNIT, 0
    n = num_bytes // _BYTE_UNIT
    while n >= _BYTE_UNIT:
        div *= _BYTE_UNIT
        exp += 1
        n //= _BYTE_UNIT
    return f"{num_bytes / div:.1f} {'KMGTPE'[exp]}B"


def format_number_with_commas(n: int) -> str:
    """Format a non-negative integer with thousands separators."""
    if n < 0:
        raise ValueError("number must not be negative")
    return f"{n:,}"


def colorize_log_entry(entry: str) -> str:
    """Colour a log entry by the most severe level it mentions."""
    upper = entry.upper()
    for level, color in (
        ("ERROR", "[red]"),
        ("WARN", "[yellow]"),
        ("INFO", "[green]"),
        ("DEBUG", "[blue]"),
    ):
        if level in upper:
            return f"{color}{entry}[white]"
    return entry


def _bar_count(value: float, scale: float, limit: int) -> int:
    return max(0, min(int(value / scale), limit))


def _percent_graph(
    header: str, history: Sequence[float], symbol: str, red_above: float, yellow_above: float
) -> str:
    parts = [header, _GRAPH_RULE]
    for value in history[-20:]:
        bars = _bar_count(value, 5, 20)
        if value > red_above:
            color = "[red]"
        elif value > yellow_above:
            color = "[yellow]"
        else:
            color = "[green]"
        parts.append(f"{color}{value:3.1f}% {color}{symbol * bars}[white]\n")
    return "".join(parts)


def generate_cpu_graph(history: Sequence[float]) -> str:
    """Render the last 20 CPU readings as horizontal bars."""
    if not history:
        return "[yellow]No CPU data available[white]"
    return _percent_graph(
        "[green]CPU Usage Graph (Last 60 readings):[white]\n", history, "█", 80, 60
    )


def generate_disk_graph(history: Sequence[float]) -> str:
    """Render the last 20 disk usage readings as horizontal bars."""
    if not history:
        return "[yellow]No disk data available[white]"
    return _percent_graph(
        "[yellow]Disk Usage Graph (Last 60 readings):[white]\n", history, "■", 90, 75
    )


def generate_network_graph(history: Sequence[NetworkPoint]) -> str:
    """Render the last 15 network samples as upload and download bars."""
    if not history:
        return "[yellow]No network data available[white]"
    parts = ["[cyan]Network I/O Graph (Upload/Download MB/s):[white]\n", _GRAPH_RULE]
    for point in history[-15:]:
        up = _bar_count(point.upload, 10, 25)
        down = _bar_count(point.download, 10, 25)
        parts.append(
            f"[dim]{point.time:%H:%M:%S}[white] ↑[green]{'▲' * up}[white] "
            f"↓[blue]{'▼' * down}[white]\n"
        )
    return "".join(parts)


def render_system_gauges(memory_percent: float, disk_percent: float, cpu_temp: float) -> str:
    """Render memory, storage and CPU temperature as fixed-width gauges."""
    gauges = (
        ("MEMORY", "[magenta]", "%", memory_percent),
        ("STORAGE", "[green]", "%", disk_percent),
        ("CPU TEMP", "[blue]", "C", cpu_temp),
    )
    parts = []
    for name, color, unit, value in gauges:
        fraction = min(value / 100.0, 1.0)
        filled = max(0, int(_GAUGE_WIDTH * fraction))
        bar = "█" * filled + " " * (_GAUGE_WIDTH - filled)
        parts.append(f"{color}{name}\n[{bar}] {_go_float(value, 0)}{unit}\n")
    return "".join(parts)


def render_l1_status(sync: SyncInfo) -> str:
    """Render the execution layer's block, peers and sync flag."""
    return (
        f"Block: [green]{sync.current_block}[white]\n"
        f"Peers: [green]{sync.peers_count}[white]\n"
        f"Syncing: [green]{_bool_text(sync.is_syncing)}[white]\n"
    )


def render_l2_status(metrics: EthereumMetrics) -> str:
    """Render the Starknet node's block and sync progress."""
    return (
        f"Current Block: [green]{metrics.current_block}[white]\n"
        f"Syncing: [green]{_bool_text(metrics.is_syncing)}[white]\n"
        f"Syncing Percent: [green]{_go_float(metrics.sync_percent, 2)}[white]\n"
    )


def render_network(network: str, now: datetime) -> str:
    """Render the configured network name and the current time."""
    return f"Network: [green]{network}\n[white]time: {now:%H:%M:%S}"


def render_chain_info(gas_price: str) -> str:
    """Render the gas price between separator lines."""
    separator = "-" * 25
    return f"{separator}\n[blue][bold]GAS:[white]   {gas_price}\n{separator}"


def render_rpc_info(exec_url: str, exec_status: str, cons_url: str, cons_status: str) -> str:
    """Render the reachability of the execution and consensus endpoints."""
    return (
        "[yellow][bold]RPC STATUS[white]\n"
        + "-" * 15
        + "\n"
        + f"[blue]Execution:[white]\n{exec_status}\n[dim]{exec_url}[white]\n\n"
        + f"[blue]Consensus:[white]\n{cons_status}\n[dim]{cons_url}[white]\n"
    )


def format_status_bar(message: str, now: datetime) -> str:
    """Prefix a status message with the monitor name and time of day."""
    return f"🚀 [green]StarkNode Monitor[white] | [blue]{now:%H:%M:%S}[white] | {message}"


def _first_named(clients: Iterable[ClientStatus], names: tuple[str, ...]) -> ClientStatus | None:
    return next((client for client in clients if client.name in names), None)


def execution_title(clients: Iterable[ClientStatus]) -> str:
    """Title of the execution log panel for the running clients."""
    client = _first_named(clients, ("Geth", "Reth"))
    if client is None:
        return EXECUTION_NOT_RUNNING_TITLE
    return GETH_TITLE if client.name == "Geth" else RETH_TITLE


def consensus_title(clients: Iterable[ClientStatus]) -> str:
    """Title of the consensus log panel for the running clients."""
    client = _first_named(clients, ("Lighthouse", "Prysm"))
    if client is None:
        return CONSENSUS_NOT_RUNNING_TITLE
    return PRYSM_TITLE if client.name == "Prysm" else LIGHTHOUSE_TITLE


def juno_title(clients: Iterable[ClientStatus]) -> str:
    """Title of the Juno log panel for the running clients."""
    if _first_named(clients, ("Juno",)) is None:
        return JUNO_NOT_RUNNING_TITLE
    return JUNO_TITLE