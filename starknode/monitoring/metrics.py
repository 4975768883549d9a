"""Chain metrics from local node RPC endpoints and tails of client logs."""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Any

import requests

from starknode.config import CLIENTS_DIR, CONFIG_DIR, ConfigError, load_config
from starknode.nodes import parse_hex_int
from starknode.types import EthereumMetrics

EXECUTION_RPC_URL = "http://localhost:8545"
JUNO_RPC_URL = "http://localhost:6060"
STARKNET_DIR = CONFIG_DIR / "starknet"

_TIMEOUT = 2.0
_FAILURES = (requests.RequestException, ValueError)


def _configured_network() -> str:
    try:
        return load_config().network
    except (OSError, ConfigError):
        return ""


def _rpc_result(url: str, method: str, request_id: int) -> Any:
    """Return the ``result`` member of a JSON-RPC reply, or None on any failure."""
    payload = {"jsonrpc": "2.0", "method": method, "params": [], "id": request_id}
    try:
        with requests.post(url, json=payload, timeout=_TIMEOUT) as resp:
            data = resp.json()
    except _FAILURES:
        return None
    if not isinstance(data, dict):
        return None
    return data.get("result")


def _hex_result(url: str, method: str, request_id: int) -> int | None:
    result = _rpc_result(url, method, request_id)
    if not isinstance(result, str):
        return None
    try:
        return parse_hex_int(result)
    except ValueError:
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_ethereum_metrics(network: str | None = None) -> EthereumMetrics:
    """Collect block height, gas price and peers from the execution client.

    ``network`` defaults to the configured network name.
    """
    metrics = EthereumMetrics(
        network_name=_configured_network() if network is None else network,
        is_syncing=False,
        sync_percent=100.0,
    )

    block = _hex_result(EXECUTION_RPC_URL, "eth_blockNumber", 1)
    if block is not None:
        metrics.current_block = block

    gas_price = _hex_result(EXECUTION_RPC_URL, "eth_gasPrice", 3)
    if gas_price is not None:
        metrics.gas_price = f"{gas_price / 1e9:.1f} gwei"

    peers = _hex_result(EXECUTION_RPC_URL, "net_peerCount", 2)
    if peers is not None:
        metrics.peer_count = peers

    return metrics


def _percent(current: float, highest: float) -> float:
    if highest == 0:
        return math.nan if current == 0 else math.copysign(math.inf, current)
    return current / highest * 100


def get_juno_metrics(network: str | None = None) -> EthereumMetrics:
    """Collect block height and sync progress from the Juno node.

    Returns empty metrics when Juno reports a sync state without block numbers.
    """
    metrics = EthereumMetrics(
        network_name=_configured_network() if network is None else network,
        is_syncing=False,
        sync_percent=100.0,
    )

    block = _rpc_result(JUNO_RPC_URL, "starknet_blockNumber", 1)
    if _is_number(block):
        metrics.current_block = int(block)

    sync = _rpc_result(JUNO_RPC_URL, "starknet_syncing", 3)
    if isinstance(sync, dict):
        current = sync.get("current_block_num")
        highest = sync.get("highest_block_num")
        if not (_is_number(current) and _is_number(highest)):
            return EthereumMetrics()
        metrics.is_syncing = highest > current
        metrics.current_block = int(current)
        metrics.sync_percent = _percent(float(current), float(highest))

    return metrics


def get_latest_logs(
    client_name: str,
    lines: int,
    clients_dir: str | os.PathLike = CLIENTS_DIR,
    starknet_dir: str | os.PathLike = STARKNET_DIR,
) -> list[str]:
    """Return up to ``lines`` non-blank lines from the end of a client's newest log.

    Problems are reported as a single descriptive line.
    """
    base = Path(starknet_dir) if client_name == "juno" else Path(clients_dir)
    log_dir = base / client_name / "logs"

    files = sorted(log_dir.glob("*.log"), key=str)
    if not files:
        return [f"No log files found for {client_name}"]

    newest: Path | None = None
    newest_time: float | None = None
    for file in files:
        try:
            mtime = file.stat().st_mtime
        except OSError:
            continue
        if newest_time is None or mtime > newest_time:
            newest, newest_time = file, mtime

    if newest is None:
        return ["No recent log files found"]

    try:
        content = newest.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        return [f"Error reading log file: {exc}"]

    log_lines = content.split("\n")
    start = max(len(log_lines) - lines - 1, 0)
    result: list[str] = []
    for line in log_lines[start:]:
        if len(result) >= lines:
            break
        if line.strip():
            result.append(line)
    return result