"""
Client configuration loading.

Explicit arguments win; otherwise settings come from the environment:

    BTCPAY_HOST         server base URL (required)
    BTCPAY_TOKEN        previously issued pairing token
    BTCPAY_PEM          client key as literal PEM text
    BTCPAY_PEM_FILE     path to a file holding the client key PEM
    BTCPAY_USER_AGENT   User-Agent override
    BTCPAY_TIMEOUT      per-call timeout in seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigError

BTCPAY_HOST_ENV = "BTCPAY_HOST"
BTCPAY_TOKEN_ENV = "BTCPAY_TOKEN"
BTCPAY_PEM_ENV = "BTCPAY_PEM"
BTCPAY_PEM_FILE_ENV = "BTCPAY_PEM_FILE"
BTCPAY_USER_AGENT_ENV = "BTCPAY_USER_AGENT"
BTCPAY_TIMEOUT_ENV = "BTCPAY_TIMEOUT"


@dataclass(frozen=True)
class ClientSettings:
    host: str
    token: str = ""
    pem: str = ""
    user_agent: Optional[str] = None
    timeout_seconds: Optional[float] = None


def load_settings(
    *,
    host: str | None = None,
    token: str | None = None,
    pem: str | None = None,
    pem_file: str | Path | None = None,
    user_agent: str | None = None,
    timeout_seconds: float | None = None,
) -> ClientSettings:
    """Resolve client settings from arguments, then the environment."""

    resolved_host = host or os.getenv(BTCPAY_HOST_ENV)
    if not resolved_host:
        raise ConfigError(f"BTCPay host not configured. Pass a host or set {BTCPAY_HOST_ENV}.")

    resolved_pem = pem or os.getenv(BTCPAY_PEM_ENV) or ""
    resolved_pem_file = pem_file or os.getenv(BTCPAY_PEM_FILE_ENV)
    if not resolved_pem and resolved_pem_file:
        resolved_pem = _read_pem_file(Path(resolved_pem_file))
    if "\\n" in resolved_pem:
        resolved_pem = resolved_pem.replace("\\n", "\n")

    resolved_timeout = timeout_seconds
    if resolved_timeout is None and os.getenv(BTCPAY_TIMEOUT_ENV):
        raw = os.environ[BTCPAY_TIMEOUT_ENV]
        try:
            resolved_timeout = float(raw)
        except ValueError as e:
            raise ConfigError(f"{BTCPAY_TIMEOUT_ENV} must be a number of seconds, got {raw!r}") from e
    if resolved_timeout is not None and resolved_timeout <= 0:
        raise ConfigError("Timeout must be > 0 seconds")

    return ClientSettings(
        host=resolved_host,
        token=token or os.getenv(BTCPAY_TOKEN_ENV) or "",
        pem=resolved_pem,
        user_agent=user_agent or os.getenv(BTCPAY_USER_AGENT_ENV) or None,
        timeout_seconds=resolved_timeout,
    )


def _read_pem_file(path: Path) -> str:
    try:
        return path.read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read PEM file {path}: {e}") from e
