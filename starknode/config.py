"""Reading, writing and validating the toolkit configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping

import yaml
from dotenv import load_dotenv

from starknode.types import (
    ClientConfig,
    ClientType,
    JunoConfig,
    NodeKitConfig,
)

CONFIG_DIR = Path.home() / ".starknode-kit"
CONFIG_PATH = CONFIG_DIR / "starknode.yaml"
ENV_FILE_PATH = CONFIG_DIR / ".env"
CLIENTS_DIR = CONFIG_DIR / "clients"

MAINNET_CHECKPOINT = "https://mainnet-checkpoint-sync.stakely.io/"
SEPOLIA_CHECKPOINT = "https://sepolia-checkpoint-sync.stakely.io/"

_FELT_LENGTH = 66
_ENV_PATTERN = re.compile(
    r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)"
)
_DOUBLE_QUOTE_SPECIALS = '\\\n\r"!$`'
_INTEGER = re.compile(r"[+-]?\d+")


class ConfigError(ValueError):
    """Raised for invalid or unsupported configuration."""


def _lookup(kind: str, name: str, supported: Mapping[str, ClientType]) -> ClientType:
    try:
        return supported[name]
    except KeyError:
        raise ConfigError(f"{kind} client {name} not supported") from None


def get_execution_client(name: str) -> ClientType:
    """Return the execution client type for ``name``."""
    return _lookup(
        "execution", name, {"geth": ClientType.GETH, "reth": ClientType.RETH}
    )


def get_consensus_client(name: str) -> ClientType:
    """Return the consensus client type for ``name``."""
    return _lookup(
        "consensus",
        name,
        {"lighthouse": ClientType.LIGHTHOUSE, "prysm": ClientType.PRYSM},
    )


def get_starknet_client(name: str) -> ClientType:
    """Return the Starknet client type for ``name``."""
    return _lookup("starknet", name, {"juno": ClientType.JUNO})


def is_installed(client: ClientType | str, clients_dir: str | os.PathLike = CLIENTS_DIR) -> bool:
    """Return True if the client has an installation directory."""
    name = client.value if isinstance(client, ClientType) else str(client)
    return (Path(clients_dir) / name).is_dir()


def substitute_env(text: str) -> str:
    """Replace ``${NAME}`` and ``$NAME`` with environment values (empty if unset)."""

    def replace(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        return os.environ.get(name, "")

    return _ENV_PATTERN.sub(replace, text)


def load_config(
    config_path: str | os.PathLike = CONFIG_PATH,
    env_file_path: str | os.PathLike = ENV_FILE_PATH,
) -> NodeKitConfig:
    """Read the configuration file.

    When the env file exists its variables are loaded and substituted into
    the configuration text first. Raises OSError if the configuration file
    cannot be read and ConfigError if it is malformed.
    """
    text = Path(config_path).read_text(encoding="utf-8")
    env_file = Path(env_file_path)
    if env_file.is_file():
        load_dotenv(env_file, override=False)
        text = substitute_env(text)

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid config file {config_path}: {exc}") from exc
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"invalid config file {config_path}: expected a mapping")
    try:
        return NodeKitConfig.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid config file {config_path}: {exc}") from exc


def _write_config(config: NodeKitConfig, config_path: Path, action: str) -> None:
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True, mode=0o755)
    except OSError as exc:
        raise ConfigError(f"failed to {action} config file: {exc}") from exc
    text = yaml.safe_dump(config.to_dict(), sort_keys=False)
    fd = os.open(config_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(text)


def update_config(config: NodeKitConfig, config_path: str | os.PathLike = CONFIG_PATH) -> None:
    """Write ``config`` to the configuration file."""
    _write_config(config, Path(config_path), "update")


def create_config(config_path: str | os.PathLike = CONFIG_PATH) -> NodeKitConfig:
    """Create the configuration directory and write the default configuration.

    Raises ConfigError if the configuration directory already exists.
    """
    path = Path(config_path)
    if path.parent.exists():
        raise ConfigError(f"Starknode-kit already initialized at {path.parent}")
    config = default_config()
    _write_config(config, path, "create")
    return config


def set_network(config: NodeKitConfig, network: str) -> None:
    """Switch ``config`` to ``network`` and its checkpoint sync endpoint."""
    checkpoints = {"mainnet": MAINNET_CHECKPOINT, "sepolia": SEPOLIA_CHECKPOINT}
    try:
        checkpoint = checkpoints[network]
    except KeyError:
        raise ConfigError(f"Network {network} not supported") from None
    config.network = network
    config.consensus_client.consensus_checkpoint = checkpoint


def view_config(
    config_path: str | os.PathLike = CONFIG_PATH,
    env_file_path: str | os.PathLike = ENV_FILE_PATH,
) -> NodeKitConfig:
    """Print the loaded configuration and return it."""
    config = load_config(config_path, env_file_path)
    print(yaml.safe_dump(config.to_dict(), sort_keys=False), end="")
    return config


def default_config() -> NodeKitConfig:
    """Return the configuration written by a fresh initialisation."""
    return NodeKitConfig(
        network="mainnet",
        execution_client=ClientConfig(
            name=ClientType.GETH,
            ports=[30303],
            execution_type="full",
        ),
        consensus_client=ClientConfig(
            name=ClientType.PRYSM,
            ports=[5052, 9000],
            consensus_checkpoint=MAINNET_CHECKPOINT,
        ),
        juno_client=JunoConfig(
            port=6060,
            eth_node="wss://eth.drpc.org",
            environment=["JUNO_HTTP_PORT=6060", "JUNO_HTTP_HOST=0.0.0.0"],
        ),
    )


def _env_value(value: str) -> str:
    if _INTEGER.fullmatch(value):
        return str(int(value))
    escaped = []
    for char in value:
        if char == "\n":
            escaped.append("\\n")
        elif char == "\r":
            escaped.append("\\r")
        elif char in _DOUBLE_QUOTE_SPECIALS:
            escaped.append("\\" + char)
        else:
            escaped.append(char)
    return '"' + "".join(escaped) + '"'


def write_env(values: Mapping[str, str], env_file_path: str | os.PathLike = ENV_FILE_PATH) -> None:
    """Overwrite the env file with ``values``, one sorted KEY=value per line."""
    lines = sorted(f"{key}={_env_value(str(value))}" for key, value in values.items())
    Path(env_file_path).write_text("\n".join(lines) + "\n", encoding="utf-8")


def pad_felt(value: int | str) -> str:
    """Format a field element as 0x followed by 64 zero-padded hex digits."""
    number = int(value, 16) if isinstance(value, str) else int(value)
    hex_str = hex(number)
    if len(hex_str) >= _FELT_LENGTH:
        return hex_str
    return "0x" + hex_str[2:].rjust(_FELT_LENGTH - 2, "0")