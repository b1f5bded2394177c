"""Tests for client settings resolution."""

import pytest

import btcpay.config as config
from btcpay.client import DEFAULT_TIMEOUT_SECONDS, Client, ClientConfig
from btcpay.errors import ConfigError
from btcpay.identity import sin_from_pem
from btcpay.request import DEFAULT_USER_AGENT

ALL_ENV = (
    config.BTCPAY_HOST_ENV,
    config.BTCPAY_TOKEN_ENV,
    config.BTCPAY_PEM_ENV,
    config.BTCPAY_PEM_FILE_ENV,
    config.BTCPAY_USER_AGENT_ENV,
    config.BTCPAY_TIMEOUT_ENV,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ALL_ENV:
        monkeypatch.delenv(name, raising=False)


def test_requires_host():
    with pytest.raises(ConfigError, match="host not configured"):
        config.load_settings()


def test_reads_environment(monkeypatch, pem):
    monkeypatch.setenv(config.BTCPAY_HOST_ENV, "https://pay.example.com")
    monkeypatch.setenv(config.BTCPAY_TOKEN_ENV, "env-token")
    monkeypatch.setenv(config.BTCPAY_PEM_ENV, pem.replace("\n", "\\n"))
    monkeypatch.setenv(config.BTCPAY_USER_AGENT_ENV, "shop/1.0")
    monkeypatch.setenv(config.BTCPAY_TIMEOUT_ENV, "7.5")

    settings = config.load_settings()
    assert settings.host == "https://pay.example.com"
    assert settings.token == "env-token"
    assert settings.pem == pem
    assert settings.user_agent == "shop/1.0"
    assert settings.timeout_seconds == 7.5


def test_arguments_win_over_environment(monkeypatch):
    monkeypatch.setenv(config.BTCPAY_HOST_ENV, "https://env.example.com")
    monkeypatch.setenv(config.BTCPAY_TOKEN_ENV, "env-token")
    settings = config.load_settings(host="https://arg.example.com", token="arg-token")
    assert settings.host == "https://arg.example.com"
    assert settings.token == "arg-token"


def test_pem_file(tmp_path, pem):
    path = tmp_path / "client.pem"
    path.write_text(pem)
    settings = config.load_settings(host="https://h", pem_file=path)
    assert settings.pem == pem


def test_missing_pem_file(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read PEM file"):
        config.load_settings(host="https://h", pem_file=tmp_path / "missing.pem")


@pytest.mark.parametrize("raw", ["soon", "0", "-1"])
def test_bad_timeout(monkeypatch, raw):
    monkeypatch.setenv(config.BTCPAY_TIMEOUT_ENV, raw)
    with pytest.raises(ConfigError):
        config.load_settings(host="https://h")


def test_client_config_defaults():
    settings = config.load_settings(host="https://h")
    client_config = ClientConfig.from_settings(settings)
    assert client_config.user_agent == DEFAULT_USER_AGENT
    assert client_config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert client_config.pem == ""


def test_client_from_env(monkeypatch, pem):
    monkeypatch.setenv(config.BTCPAY_HOST_ENV, "https://pay.example.com/")
    monkeypatch.setenv(config.BTCPAY_TOKEN_ENV, "env-token")
    monkeypatch.setenv(config.BTCPAY_PEM_ENV, pem)
    with Client.from_env() as client:
        assert client.host == "https://pay.example.com"
        assert client.token == "env-token"
        assert client.sin == sin_from_pem(pem)
