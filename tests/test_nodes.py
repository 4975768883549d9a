import json

import pytest
import responses

from starknode import nodes
from starknode.types import SyncInfo

GETH = "http://localhost:8545"
BEACON = "http://localhost:5052/eth/v1/node/syncing"


def _rpc_callback(results):
    def callback(request):
        method = json.loads(request.body)["method"]
        if method not in results:
            return (404, {}, "")
        body = {"jsonrpc": "2.0", "id": 1, "result": results[method]}
        return (200, {"Content-Type": "application/json"}, json.dumps(body))

    return callback


@pytest.fixture
def rsps():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


@pytest.mark.parametrize(
    "text, expected",
    [("0x1a", 26), ("ff", 255), ("0x0", 0), ("0xffffffffffffffff", 2**64 - 1)],
)
def test_parse_hex_int(text, expected):
    assert nodes.parse_hex_int(text) == expected


@pytest.mark.parametrize("text", ["", "0x", "zz", "+1", "0x1_0", "0x10000000000000000"])
def test_parse_hex_int_rejects(text):
    with pytest.raises(ValueError):
        nodes.parse_hex_int(text)


def test_geth_not_syncing(rsps):
    rsps.add_callback(
        responses.POST,
        GETH,
        callback=_rpc_callback({"eth_syncing": False, "net_peerCount": "0x19"}),
    )
    assert nodes.get_geth_sync_status() == SyncInfo(
        is_syncing=False, current_block=0, highest_block=0, sync_percent=100.0, peers_count=25
    )


def test_geth_syncing(rsps):
    rsps.add_callback(
        responses.POST,
        GETH,
        callback=_rpc_callback(
            {
                "eth_syncing": {"currentBlock": "0x32", "highestBlock": "0x64"},
                "net_peerCount": "0x3",
            }
        ),
    )
    assert nodes.get_geth_sync_status() == SyncInfo(
        is_syncing=True, current_block=50, highest_block=100, sync_percent=50.0, peers_count=3
    )


def test_geth_syncing_with_bad_current_block(rsps):
    rsps.add_callback(
        responses.POST,
        GETH,
        callback=_rpc_callback(
            {"eth_syncing": {"currentBlock": "zz", "highestBlock": "0x64"}}
        ),
    )
    info = nodes.get_geth_sync_status()
    assert info.current_block == 0
    assert info.highest_block == 100
    assert info.sync_percent == 0.0
    assert info.peers_count == 0


def test_geth_highest_zero_keeps_full_percent(rsps):
    rsps.add_callback(
        responses.POST,
        GETH,
        callback=_rpc_callback(
            {"eth_syncing": {"currentBlock": "0x0", "highestBlock": "0x0"}}
        ),
    )
    info = nodes.get_geth_sync_status()
    assert info.is_syncing is True
    assert info.sync_percent == 100.0


def test_geth_unreachable(rsps):
    assert nodes.get_geth_sync_status() == SyncInfo(is_syncing=False, sync_percent=100.0)


def test_reth_matches_geth(rsps):
    rsps.add_callback(
        responses.POST,
        GETH,
        callback=_rpc_callback({"eth_syncing": False, "net_peerCount": "0x7"}),
    )
    assert nodes.get_reth_sync_status().peers_count == 7


def test_lighthouse_sync(rsps):
    rsps.add(
        responses.GET,
        BEACON,
        json={"data": {"is_syncing": True, "head_slot": "90", "sync_distance": "10"}},
    )
    assert nodes.get_lighthouse_sync_status() == SyncInfo(
        is_syncing=True, current_block=90, highest_block=100, sync_percent=90.0
    )


def test_prysm_sync(rsps):
    rsps.add(
        responses.GET,
        BEACON,
        json={"data": {"is_syncing": False, "head_slot": "200", "sync_distance": "0"}},
    )
    info = nodes.get_prysm_sync_status()
    assert info.current_block == 200
    assert info.highest_block == 200
    assert info.sync_percent == 100.0
    assert info.is_syncing is False


def test_beacon_unreachable(rsps):
    assert nodes.get_lighthouse_sync_status() == SyncInfo(is_syncing=False, sync_percent=100.0)


def test_juno_sync_status():
    assert nodes.get_juno_sync_status() == SyncInfo(
        is_syncing=False, current_block=650000, highest_block=650000, sync_percent=100.0
    )


@pytest.mark.parametrize(
    "client, expected",
    [
        ("geth", "1.15.10"),
        ("reth", "1.3.4"),
        ("lighthouse", "7.0.1"),
        ("prysm", ""),
        ("juno", "unknown"),
        ("other", "unknown"),
    ],
)
def test_get_client_version(client, expected):
    assert nodes.get_client_version(client) == expected


def test_check_rpc_status_connected(rsps):
    rsps.add(responses.POST, GETH, json={"result": "client/v1"})
    assert nodes.check_rpc_status(GETH, "web3_clientVersion") == "✅ Connected"
    sent = json.loads(rsps.calls[0].request.body)
    assert sent == {"jsonrpc": "2.0", "method": "web3_clientVersion", "params": [], "id": 1}


def test_check_rpc_status_connected_on_error_status(rsps):
    rsps.add(responses.POST, GETH, status=500)
    assert nodes.check_rpc_status(GETH, "web3_clientVersion") == "✅ Connected"


def test_check_rpc_status_disconnected(rsps):
    assert nodes.check_rpc_status("http://localhost:5054", "eth/v1/node/health") == "❌ Disconnected"


def test_get_running_clients(rsps):
    order = ["Geth", "Reth", "Lighthouse", "Prysm", "Juno"]
    clients = nodes.get_running_clients()
    assert isinstance(clients, list)
    names = [client.name for client in clients]
    assert set(names) <= set(order)
    assert names == sorted(names, key=order.index)
    for client in clients:
        assert client.pid > 0
        assert client.status == "running"
        assert client.version == nodes.get_client_version(client.name.lower())