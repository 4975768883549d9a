"""Detection of running node clients and queries of their sync state."""

from __future__ import annotations

import re
import time
from typing import Any, Callable

import requests

from starknode.process import get_process_info
from starknode.types import ClientStatus, SyncInfo
from starknode.versions import (
    LATEST_GETH_VERSION,
    LATEST_LIGHTHOUSE_VERSION,
    LATEST_RETH_VERSION,
)

EXECUTION_RPC_URL = "http://localhost:8545"
BEACON_SYNCING_URL = "http://localhost:5052/eth/v1/node/syncing"

STATUS_CONNECTED = "✅ Connected"
STATUS_SLOW = "⚠️ Slow"
STATUS_DISCONNECTED = "❌ Disconnected"

_TIMEOUT = 2.0
_RPC_STATUS_TIMEOUT = 10.0
_SLOW_LATENCY_SECONDS = 1.0
_UINT64_LIMIT = 1 << 64
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")
_DECIMAL_DIGITS = re.compile(r"[0-9]+")
_FAILURES = (requests.RequestException, ValueError)


def parse_hex_int(hex_str: str) -> int:
    """Parse an unsigned 64-bit hex number, with or without a 0x prefix.

    Raises ValueError if the text is not a valid number in range.
    """
    digits = hex_str.removeprefix("0x")
    if not _HEX_DIGITS.fullmatch(digits):
        raise ValueError(f"invalid hex integer: {hex_str!r}")
    value = int(digits, 16)
    if value >= _UINT64_LIMIT:
        raise ValueError(f"hex integer out of range: {hex_str!r}")
    return value


def _parse_decimal(text: str) -> int | None:
    if not _DECIMAL_DIGITS.fullmatch(text):
        return None
    value = int(text)
    return value if value < _UINT64_LIMIT else None


def _hex_field(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    try:
        return parse_hex_int(value)
    except ValueError:
        return None


def _rpc(url: str, method: str, request_id: int) -> dict[str, Any]:
    payload = {"jsonrpc": "2.0", "method": method, "params": [], "id": request_id}
    with requests.post(url, json=payload, timeout=_TIMEOUT) as resp:
        data = resp.json()
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def get_geth_sync_status() -> SyncInfo:
    """Query the execution client's sync progress and peer count."""
    info = SyncInfo(is_syncing=False, sync_percent=100.0)
    try:
        data = _rpc(EXECUTION_RPC_URL, "eth_syncing", 1)
    except _FAILURES:
        return info

    result = data.get("result")
    if isinstance(result, dict):
        info.is_syncing = True
        current = _hex_field(result, "currentBlock")
        if current is not None:
            info.current_block = current
        highest = _hex_field(result, "highestBlock")
        if highest is not None:
            info.highest_block = highest
            if highest > 0:
                info.sync_percent = info.current_block / highest * 100

    try:
        peers = _rpc(EXECUTION_RPC_URL, "net_peerCount", 2)
    except _FAILURES:
        return info
    count = _hex_field(peers, "result")
    if count is not None:
        info.peers_count = count
    return info


def get_reth_sync_status() -> SyncInfo:
    """Query Reth's sync state; it speaks the same RPC as Geth."""
    return get_geth_sync_status()


def _beacon_sync_status() -> SyncInfo:
    info = SyncInfo(is_syncing=False, sync_percent=100.0)
    try:
        with requests.get(BEACON_SYNCING_URL, timeout=_TIMEOUT) as resp:
            body = resp.json()
    except _FAILURES:
        return info
    if not isinstance(body, dict):
        return info

    data = body.get("data")
    if not isinstance(data, dict):
        return info

    is_syncing = data.get("is_syncing")
    if isinstance(is_syncing, bool):
        info.is_syncing = is_syncing

    head_slot = data.get("head_slot")
    if isinstance(head_slot, str):
        head = _parse_decimal(head_slot)
        if head is not None:
            info.current_block = head

    sync_distance = data.get("sync_distance")
    if isinstance(sync_distance, str):
        distance = _parse_decimal(sync_distance)
        if distance is not None:
            info.highest_block = info.current_block + distance
            if info.highest_block > 0:
                info.sync_percent = info.current_block / info.highest_block * 100
    return info


def get_lighthouse_sync_status() -> SyncInfo:
    """Query Lighthouse's beacon API for its sync state."""
    return _beacon_sync_status()


def get_prysm_sync_status() -> SyncInfo:
    """Query Prysm's beacon API for its sync state."""
    return _beacon_sync_status()


def get_juno_sync_status() -> SyncInfo:
    """Return Juno's sync state; Juno exposes no comparable endpoint."""
    return SyncInfo(
        is_syncing=False,
        sync_percent=100.0,
        current_block=650000,
        highest_block=650000,
    )


def get_client_version(client_name: str) -> str:
    """Return the version the toolkit expects for a client."""
    known = {
        "geth": LATEST_GETH_VERSION,
        "reth": LATEST_RETH_VERSION,
        "lighthouse": LATEST_LIGHTHOUSE_VERSION,
        "prysm": "",
    }
    return known.get(client_name, "unknown")


_CLIENTS: tuple[tuple[str, str, Callable[[], SyncInfo]], ...] = (
    ("geth", "Geth", get_geth_sync_status),
    ("reth", "Reth", get_reth_sync_status),
    ("lighthouse", "Lighthouse", get_lighthouse_sync_status),
    ("prysm", "Prysm", get_prysm_sync_status),
    ("juno", "Juno", get_juno_sync_status),
)


def get_running_clients() -> list[ClientStatus]:
    """Return every known client that has a running process."""
    clients = []
    for process_name, display_name, sync_status in _CLIENTS:
        info = get_process_info(process_name)
        if info is None:
            continue
        clients.append(
            ClientStatus(
                name=display_name,
                status=info.status,
                pid=info.pid,
                uptime=info.uptime,
                version=get_client_version(process_name),
                sync_status=sync_status(),
            )
        )
    return clients


def check_rpc_status(rpc_url: str, method: str) -> str:
    """Probe an RPC endpoint and describe how it responds.

    Returns the disconnected status when the request fails, the slow
    status when it takes longer than a second, and connected otherwise.
    """
    payload = {"jsonrpc": "2.0", "method": method, "params": [], "id": 1}
    start = time.monotonic()
    try:
        resp = requests.post(rpc_url, json=payload, timeout=_RPC_STATUS_TIMEOUT)
    except requests.RequestException:
        return STATUS_DISCONNECTED
    latency = time.monotonic() - start
    resp.close()
    if latency > _SLOW_LATENCY_SECONDS:
        return STATUS_SLOW
    return STATUS_CONNECTED