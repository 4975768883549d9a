"""Configuration and status records shared across the toolkit."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any


class ClientType(str, Enum):
    """Node clients the toolkit knows how to manage."""

    GETH = "geth"
    RETH = "reth"
    LIGHTHOUSE = "lighthouse"
    PRYSM = "prysm"
    JUNO = "juno"


def get_client_type(client: str) -> ClientType | None:
    """Return the client type for a name, or None if the name is unknown."""
    try:
        return ClientType(client)
    except ValueError:
        return None


def _client_type_from(value: Any) -> ClientType | None:
    if value in (None, ""):
        return None
    client = get_client_type(str(value))
    if client is None:
        raise ValueError(f"unsupported client: {value}")
    return client


@dataclass
class ClientConfig:
    """Settings for an execution or consensus client."""

    name: ClientType | None = None
    execution_type: str = ""
    ports: list[int] = field(default_factory=list)
    consensus_checkpoint: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name.value if self.name else ""}
        if self.execution_type:
            data["execution_type"] = self.execution_type
        data["ports"] = list(self.ports)
        if self.consensus_checkpoint:
            data["consensus_checkpoint"] = self.consensus_checkpoint
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ClientConfig:
        data = data or {}
        return cls(
            name=_client_type_from(data.get("name")),
            execution_type=str(data.get("execution_type") or ""),
            ports=[int(port) for port in data.get("ports") or []],
            consensus_checkpoint=str(data.get("consensus_checkpoint") or ""),
        )


@dataclass
class JunoConfig:
    """Settings for the Starknet (Juno) client."""

    port: int = 0
    eth_node: str = ""
    environment: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "port": self.port,
            "eth_node": self.eth_node,
            "environment": list(self.environment),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> JunoConfig:
        data = data or {}
        return cls(
            port=int(data.get("port") or 0),
            eth_node=str(data.get("eth_node") or ""),
            environment=[str(item) for item in data.get("environment") or []],
        )


@dataclass
class NodeKitConfig:
    """The whole toolkit configuration file."""

    network: str = ""
    execution_client: ClientConfig = field(default_factory=ClientConfig)
    consensus_client: ClientConfig = field(default_factory=ClientConfig)
    juno_client: JunoConfig = field(default_factory=JunoConfig)

    def to_dict(self) -> dict[str, Any]:
        return {
            "network": self.network,
            "execution_client": self.execution_client.to_dict(),
            "consensus_client": self.consensus_client.to_dict(),
            "juno_client": self.juno_client.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> NodeKitConfig:
        data = data or {}
        return cls(
            network=str(data.get("network") or ""),
            execution_client=ClientConfig.from_dict(data.get("execution_client")),
            consensus_client=ClientConfig.from_dict(data.get("consensus_client")),
            juno_client=JunoConfig.from_dict(data.get("juno_client")),
        )


@dataclass
class ProcessInfo:
    """A running process found on the host."""

    pid: int
    name: str
    status: str
    uptime: timedelta = timedelta(0)
    cpu_usage: float = 0.0
    mem_usage: int = 0


@dataclass
class EthereumMetrics:
    """Chain metrics collected from a node's RPC endpoint."""

    current_block: int = 0
    highest_block: int = 0
    sync_percent: float = 0.0
    peer_count: int = 0
    is_syncing: bool = False
    gas_price: str = ""
    network_name: str = ""


@dataclass
class SyncInfo:
    """Synchronisation progress of a client."""

    is_syncing: bool = False
    current_block: int = 0
    highest_block: int = 0
    sync_percent: float = 0.0
    peers_count: int = 0


@dataclass
class ClientStatus:
    """A detected client together with its sync state."""

    name: str
    status: str
    pid: int
    uptime: timedelta = timedelta(0)
    version: str = ""
    sync_status: SyncInfo = field(default_factory=SyncInfo)