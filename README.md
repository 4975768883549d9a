# starknode

Tools for watching a home Ethereum + Starknet node setup from the terminal.
The package finds running execution clients (Geth, Reth), consensus clients
(Lighthouse, Prysm) and the Starknet client (Juno). It asks them for sync and
chain data over their local JSON-RPC/HTTP endpoints, tails their log files
and reports host resource usage. A full-screen dashboard shows all of it
together.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## The dashboard

```
starknode-monitor
```

Options:

- `--export-dir DIR`: the directory that exported files are written to
  (default: the current directory).
- `--refresh SECONDS`: the time between screen refreshes (default: 0.25;
  must be positive).

The screen has two columns.

- **Left column:** live logs from the execution client, the consensus client
  and Juno. Each panel title names the client that was detected, or says that
  none is running. Log lines are shown only when the client has `*.log` files
  in its log directory.
- **Right column:** the configured network name and the clock, L1 and L2
  sync status, gas price, RPC endpoint health, and gauges for memory, storage
  and CPU temperature. The CPU temperature gauge shows a simulated value,
  because the package does not read a temperature sensor.

Keys:

| Key                   | Action                                        |
|-----------------------|-----------------------------------------------|
| `q`, `Ctrl+C`         | quit                                          |
| `Esc`                 | close the help window, or quit                |
| `h`, `?`, `F1`        | help                                          |
| `r`                   | report a restart of the running clients in the status bar |
| `s`                   | report a stop of the running clients in the status bar    |
| `e`                   | export the panel contents to text files       |
| `t`                   | switch between dark and light theme for the log panels |
| `p`                   | pause or resume updates                       |

An export writes the execution and consensus log panels, if they hold text,
and a metrics file to the export directory. The file names carry a timestamp,
for example `starknode_execution_logs_2025-01-31_12-00-00.txt` and
`starknode_metrics_2025-01-31_12-00-00.txt`.

The dashboard expects each client on its usual local port:

- the execution client's JSON-RPC on `localhost:8545`;
- the beacon API sync endpoint on `localhost:5052`, and the consensus health
  check on `localhost:5054`;
- Juno on `localhost:6060`.

A port that does not answer shows as disconnected or as default values, and
the dashboard keeps running.

By default the dashboard takes its files from these places:

- the network name from `~/.starknode-kit/starknode.yaml`;
- client logs from `~/.starknode-kit/clients/<client>/logs`;
- Juno logs from `~/.starknode-kit/starknet/juno/logs`.

## Using the library

### Configuration

The configuration is a YAML file. Values may refer to environment variables
as `${NAME}` or `$NAME`. When the `.env` file exists, its variables are
loaded and filled in as the configuration is read.

```python
from starknode.config import create_config, load_config, set_network, update_config

create_config("node/config.yaml")          # raises ConfigError if node/ already exists
cfg = load_config("node/config.yaml", "node/.env")
set_network(cfg, "sepolia")                 # "mainnet" or "sepolia", else ConfigError
update_config(cfg, "node/config.yaml")
```

Other functions in `starknode.config`:

- `default_config()` returns the settings a fresh setup starts from: mainnet,
  Geth as the execution client, Prysm as the consensus client, and Juno on
  port 6060.
- `view_config()` prints the loaded configuration as YAML and returns it.
- `get_execution_client`, `get_consensus_client` and `get_starknet_client`
  turn a name into a `ClientType`. They raise `ConfigError` for unsupported
  names.
- `is_installed(client, clients_dir)` checks for a client's installation
  directory.
- `write_env(values, path)` writes a `.env` file.
- `pad_felt(value)` formats a Starknet field element as `0x` followed by 64
  hex digits.

The records used throughout the package are dataclasses in `starknode.types`:
`NodeKitConfig`, `ClientConfig`, `JunoConfig`, `ClientStatus`, `SyncInfo`,
`EthereumMetrics` and `ProcessInfo`.

### Node status

```python
from starknode.nodes import get_running_clients, get_geth_sync_status, check_rpc_status

for client in get_running_clients():
    print(client.name, client.pid, client.sync_status.sync_percent)

sync = get_geth_sync_status()
print(sync.current_block, sync.peers_count, sync.is_syncing)

print(check_rpc_status("http://localhost:8545", "web3_clientVersion"))
```

`check_rpc_status` returns one of three results:

- `"✅ Connected"`;
- `"⚠️ Slow"`, when the endpoint takes more than a second to answer;
- `"❌ Disconnected"`, when the request fails.

`get_juno_sync_status` returns fixed values, because Juno is not queried for
its sync state there. Live Juno data comes from `get_juno_metrics`, described
below.

`starknode.monitoring.metrics` adds three functions:

- `get_ethereum_metrics(network)` collects the block number, gas price and
  peer count.
- `get_juno_metrics(network)` collects the block number and sync progress
  from Juno.
- `get_latest_logs(client_name, lines, clients_dir, starknet_dir)` returns
  the last non-blank lines of a client's newest `*.log` file.

`starknode.monitoring.render` produces the text of each dashboard panel.
`starknode.monitoring.app.MonitorApp` holds the panels and runs the
background updaters. Its data sources can be replaced through keyword
arguments.

### Versions

```python
from starknode.versions import fetch_latest_versions, fetch_online_version, get_static_versions

print(get_static_versions())         # versions bundled with the package
print(fetch_online_version("geth"))  # latest GitHub release, looked up online
print(fetch_latest_versions())       # all clients; falls back to bundled versions
```

### Processes and host statistics

`starknode.process` has four functions:

- `start_client` starts a command in its own session and sends its output to
  a log file.
- `stop_client` sends SIGTERM, and sends it again if the process is still
  running after three seconds.
- `is_process_running` checks whether a process ID exists.
- `get_process_info` finds a process by name under `/proc`.

`starknode.stats` reports CPU, memory, root-disk and network usage with
`get_system_stats`, `get_network_interfaces` and `get_network_bandwidth`. It
also formats values with `format_bytes`, `format_network_speed` and
`format_uptime`.

## What the package does not do

- It does not install, update or remove node clients.
- It does not create or fund Starknet accounts.
- The dashboard's restart and stop keys only report the running clients in
  the status bar. They do not signal any process. To start or stop a client
  yourself, use `start_client` and `stop_client`.

## Requirements

Python 3.10 or later on Linux. Process discovery reads `/proc`.