import pytest

from stakewall.config import load_server_config

REQUIRED = [
    "--known-gossip-peer",
    "entrypoint.example.com:8001",
    "--rpc-url",
    "http://rpc.example.com",
    "--gossip-spy-bind-address",
    "0.0.0.0:8001",
]

ENV_KEYS = [
    "KNOWN_GOSSIP_PEER",
    "RPC_URL",
    "API_BIND_ADDRESS",
    "GOSSIP_SPY_BIND_ADDRESS",
    "DISCOVERY_TIMEOUT_SEC",
    "GOSSIP_REFRESH_S",
    "STAKE_REFRESH_S",
    "HEALTH_MAX_AGE_S",
    "SHRED_VERSION",
    "VERBOSE",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(f"STAKEWALL_{key}", raising=False)


def test_defaults():
    cfg = load_server_config(REQUIRED)
    assert cfg.known_gossip_peer == "entrypoint.example.com:8001"
    assert cfg.api_bind_address == ("0.0.0.0", 8080)
    assert cfg.gossip_spy_bind_address == ("0.0.0.0", 8001)
    assert cfg.discovery_timeout_sec == 300
    assert cfg.gossip_refresh_s == 2.0
    assert cfg.stake_refresh_s == 300.0
    assert cfg.health_max_age_s == 10.0
    assert cfg.shred_version is None
    assert cfg.verbose is False


def test_env_fallbacks(monkeypatch):
    monkeypatch.setenv("STAKEWALL_KNOWN_GOSSIP_PEER", "1.2.3.4:8001")
    monkeypatch.setenv("STAKEWALL_RPC_URL", "https://rpc.example.com")
    monkeypatch.setenv("STAKEWALL_GOSSIP_SPY_BIND_ADDRESS", "127.0.0.1:9001")
    monkeypatch.setenv("STAKEWALL_STAKE_REFRESH_S", "60")
    monkeypatch.setenv("STAKEWALL_SHRED_VERSION", "50093")
    monkeypatch.setenv("STAKEWALL_VERBOSE", "true")

    cfg = load_server_config([])
    assert cfg.rpc_url == "https://rpc.example.com"
    assert cfg.gossip_spy_bind_address == ("127.0.0.1", 9001)
    assert cfg.stake_refresh_s == 60.0
    assert cfg.shred_version == 50093
    assert cfg.verbose is True


def test_flags_override_env(monkeypatch):
    monkeypatch.setenv("STAKEWALL_API_BIND_ADDRESS", "127.0.0.1:1")
    cfg = load_server_config(REQUIRED + ["--api-bind-address", "127.0.0.1:9090", "--shred-version", "7"])
    assert cfg.api_bind_address == ("127.0.0.1", 9090)
    assert cfg.shred_version == 7


@pytest.mark.parametrize(
    "argv",
    [
        REQUIRED[2:],
        REQUIRED[:2] + REQUIRED[4:],
        REQUIRED[:4],
        REQUIRED[:2] + ["--rpc-url", "rpc.example.com"] + REQUIRED[4:],
        REQUIRED + ["--api-bind-address", "nope"],
        REQUIRED + ["--gossip-refresh-s", "0"],
    ],
)
def test_invalid_config_exits(argv):
    with pytest.raises(SystemExit):
        load_server_config(argv)


@pytest.mark.parametrize(
    "key,value",
    [
        ("STAKE_REFRESH_S", "abc"),
        ("GOSSIP_REFRESH_S", "2s"),
        ("HEALTH_MAX_AGE_S", "ten"),
        ("DISCOVERY_TIMEOUT_SEC", "1.5"),
    ],
)
def test_malformed_numeric_env_exits_with_message(monkeypatch, key, value):
    monkeypatch.setenv(f"STAKEWALL_{key}", value)
    with pytest.raises(SystemExit) as exc:
        load_server_config(REQUIRED)
    message = str(exc.value.code)
    assert message.startswith("[stakewall]")
    assert f"STAKEWALL_{key}" in message
