import time
from datetime import timedelta

import pytest

from starknode.monitoring import render
from starknode.monitoring.app import MonitorApp, Panel
from starknode.stats import DiskStats, MemoryStats, SystemStats
from starknode.types import ClientStatus, EthereumMetrics, SyncInfo


def client(name):
    return ClientStatus(name=name, status="running", pid=1234)


def make_app(clients=(), logs=None, **overrides):
    logs = logs or {}

    def latest_logs(name, lines):
        return logs.get(name, [f"No log files found for {name}"])

    options = dict(
        running_clients=lambda: list(clients),
        latest_logs=latest_logs,
        l1_sync=lambda: SyncInfo(current_block=42, peers_count=7),
        l2_metrics=lambda: EthereumMetrics(current_block=99, sync_percent=100.0),
        chain_metrics=lambda: EthereumMetrics(gas_price="1.5 gwei"),
        system_stats=lambda: SystemStats(
            memory=MemoryStats(used_percent=50.0), disk=DiskStats(used_percent=25.0)
        ),
        rpc_status=lambda url, method: "✅ Connected",
        network_name=lambda: "sepolia",
        cpu_temp=lambda: 50.0,
        interval_scale=0.005,
    )
    options.update(overrides)
    return MonitorApp(**options)


def wait_for(app, predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        app.drain_updates()
        if predicate():
            return True
        time.sleep(0.01)
    app.drain_updates()
    return predicate()


@pytest.fixture
def running():
    apps = []

    def start(app):
        apps.append(app)
        app.start_workers()
        return app

    yield start
    for app in apps:
        app.stop()


def test_update_rate_is_two_seconds():
    app = make_app()
    assert app.update_rate == timedelta(seconds=2)


def test_queues_are_created_with_capacity():
    app = make_app()
    assert app.system_queue.maxsize == 10
    assert app.clients_queue.maxsize == 10
    assert app.logs_queue.maxsize == 100
    assert app.peers_queue.maxsize == 10
    assert app.chain_queue.maxsize == 10
    assert app.execution_log_queue.maxsize == 100
    assert app.stopped is False


def test_initial_panel_text():
    app = make_app()
    assert app.status_box.text == "INITIALIZING..."
    assert app.network_box.text == "INITIALIZING..."
    assert app.starknet_status_box.text == "INITIALIZING..."
    assert app.chain_info_box.title == " Chain Info "


def test_titles_without_clients():
    app = make_app()
    assert app.execution_log_box.title == " Execution Client (Not Running) ❌ "
    assert app.consensus_log_box.title == " Consensus Client (Not Running) ❌ "
    assert app.juno_log_box.title == " Juno (Not Running) ❌ "


def test_titles_with_geth_prysm_juno():
    app = make_app(clients=[client("Geth"), client("Prysm"), client("Juno")])
    assert app.execution_log_box.title == " Geth ⚙️ "
    assert app.consensus_log_box.title == " Prysm 🏛️ "
    assert app.juno_log_box.title == " Juno 🌟 "


def test_titles_with_reth_lighthouse():
    app = make_app(clients=[client("Reth"), client("Lighthouse")])
    assert app.execution_log_box.title == " Reth ⚡ "
    assert app.consensus_log_box.title == " Lighthouse 🏛️ "


def test_status_bar_is_applied_on_drain():
    app = make_app()
    app.update_status_bar("hello")
    assert app.status_bar.text == ""
    assert app.drain_updates() == 1
    assert app.status_bar.text.startswith("🚀 [green]StarkNode Monitor[white] | [blue]")
    assert app.status_bar.text.endswith("[white] | hello")


def test_toggle_pause():
    app = make_app()
    assert app.toggle_pause() is True
    app.drain_updates()
    assert "Updates paused" in app.status_bar.text
    assert app.toggle_pause() is False
    app.drain_updates()
    assert "Updates resumed" in app.status_bar.text


def test_toggle_theme():
    app = make_app()
    assert app.toggle_theme() is False
    assert app.execution_log_box.background == "white"
    assert app.consensus_log_box.text_color == "black"
    assert app.toggle_theme() is True
    assert app.execution_log_box.background == "black"
    assert app.consensus_log_box.text_color == "white"


def test_add_log_entry_requires_panel():
    app = make_app()
    with pytest.raises(RuntimeError):
        app.add_log_entry("INFO started")


def test_add_log_entry_colours_and_trims():
    app = make_app()
    app.logs_box = Panel(title=" Logs ")
    app.logs_box.set_text("\n".join(f"line {n}" for n in range(150)))
    app.add_log_entry("an ERROR happened")
    lines = app.logs_box.text.split("\n")
    assert len(lines) == 101
    assert lines[0] == "line 50"
    assert lines[-1].startswith("[dim]")
    assert lines[-1].endswith("[red]an ERROR happened[white]")
    assert app.logs_box.follow_tail is True


def test_export_data(tmp_path):
    app = make_app()
    app.execution_log_box.set_text("geth log line")
    written = app.export_data(tmp_path)
    names = sorted(path.name for path in written)
    assert len(names) == 2
    assert names[0].startswith("starknode_execution_logs_")
    assert names[1].startswith("starknode_metrics_")
    execution = next(p for p in written if "execution" in p.name)
    assert execution.read_text() == "geth log line"
    metrics = next(p for p in written if "metrics" in p.name).read_text()
    assert "=== STATUS ===\nINITIALIZING...\n\n" in metrics
    assert metrics.startswith("StarkNode System Metrics Export - ")
    assert not any("consensus" in p.name for p in written)


def test_drain_routes_graph_and_legacy_queues():
    app = make_app()
    app.cpu_graph_box = Panel(title=" CPU ")
    app.graphs_queue.put("cpu:abc")
    app.system_queue.put("ignored")
    assert app.drain_updates() == 2
    assert app.cpu_graph_box.text == "abc"
    assert app.system_box is None
    assert app.system_queue.empty()


def test_workers_show_real_execution_logs(running):
    app = running(make_app(clients=[client("Geth")], logs={"geth": ["line1", "line2"]}))
    assert wait_for(app, lambda: app.execution_log_box.text == "line1\nline2")
    assert app.execution_log_box.title == " Geth ⚙️ "


def test_workers_format_juno_logs(running):
    app = running(make_app(clients=[client("Juno")], logs={"juno": ["level=info", "  "]}))
    assert wait_for(app, lambda: app.juno_log_box.text == "[green][bold]level[white]=info")
    assert app.juno_log_box.title == " Juno 🌟 (Running) "


def test_workers_report_missing_clients(running):
    app = running(make_app())
    wait_for(
        app,
        lambda: app.execution_log_box.text == render.NO_EXECUTION_MESSAGE
        and app.consensus_log_box.text == render.NO_CONSENSUS_MESSAGE
        and app.juno_log_box.text == render.NO_JUNO_MESSAGE,
    )
    assert app.execution_log_box.text == render.NO_EXECUTION_MESSAGE
    assert app.consensus_log_box.text == render.NO_CONSENSUS_MESSAGE
    assert app.juno_log_box.text == render.NO_JUNO_MESSAGE
    assert app.execution_log_box.title == " Execution Client (Not Running) ❌ "


def test_workers_fill_info_panels(running):
    app = running(make_app())
    assert wait_for(app, lambda: "http://localhost:5054" in app.rpc_info_box.text)
    assert "✅ Connected" in app.rpc_info_box.text
    assert wait_for(app, lambda: "1.5 gwei" in app.chain_info_box.text)
    gauge = "[magenta]MEMORY\n[" + "█" * 10 + " " * 10 + "] 50%\n"
    assert wait_for(app, lambda: gauge in app.system_stats_box.text)
    assert wait_for(app, lambda: "sepolia" in app.network_box.text)


def test_paused_workers_leave_panels_alone(running):
    app = make_app(clients=[client("Geth")], logs={"geth": ["line1"]})
    app.paused = True
    running(app)
    time.sleep(0.2)
    app.drain_updates()
    assert app.execution_log_box.text == ""
    assert app.rpc_info_box.text == ""


def test_stop_ends_workers():
    app = make_app()
    threads = app.start_workers()
    assert len(threads) == 7
    app.stop()
    for thread in threads:
        thread.join(timeout=2)
    assert app.stopped is True
    assert not any(thread.is_alive() for thread in threads)


def test_start_workers_twice_raises():
    app = make_app()
    app.start_workers()
    try:
        with pytest.raises(RuntimeError):
            app.start_workers()
    finally:
        app.stop()