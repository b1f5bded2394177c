"""
BTCPay API client.

Owns the client key, the derived SIN and the pairing token, and sends
requests built by RequestBuilder, signing them when the endpoint needs it.
Nothing is retried: every failure reaches the caller, who owns retry
policy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .config import ClientSettings, load_settings
from .errors import ResponseFormatError, ServerError
from .identity import sin_from_key_pair
from .keys import KeyPair, decode_pem, encode_pem, generate_key_pair
from .models import CreateInvoiceParams, Invoice, decode_json, parse_invoice_envelope, parse_rates
from .pairing import TOKENS_ENDPOINT, PairingState, pairing_payload, pairing_state, parse_pairing_response
from .request import DEFAULT_USER_AGENT, Payload, QueryParams, RequestBuilder, default_headers
from .signing import canonical_string, signature_headers
from .token_cell import TokenCell

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0


@dataclass
class ClientConfig:
    """Recognized client options.

    ``http_client`` replaces the transport; the client then leaves closing
    it to the caller. ``pem`` supplies a previously generated key; without
    one a new key is generated for this client.
    """

    http_client: Optional[httpx.Client] = None
    user_agent: str = DEFAULT_USER_AGENT
    pem: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, settings: ClientSettings, **overrides: Any) -> "ClientConfig":
        config = cls(
            user_agent=settings.user_agent or DEFAULT_USER_AGENT,
            pem=settings.pem,
            timeout_seconds=settings.timeout_seconds or DEFAULT_TIMEOUT_SECONDS,
        )
        for name, value in overrides.items():
            setattr(config, name, value)
        return config


class Client:
    """Signs and sends requests to a BTCPay server."""

    def __init__(self, host: str, token: str = "", config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()
        self._builder = RequestBuilder(host)

        if self.config.pem:
            self._key_pair = decode_pem(self.config.pem)
        else:
            self._key_pair = generate_key_pair()
        self._sin = sin_from_key_pair(self._key_pair)

        self._headers = default_headers(self.config.user_agent)
        self._token = TokenCell(token)

        if self.config.http_client is not None:
            self._http = self.config.http_client
            self._owns_http = False
        else:
            self._http = httpx.Client(timeout=self.config.timeout_seconds)
            self._owns_http = True

    @classmethod
    def paired(
        cls,
        host: str,
        code: str,
        config: Optional[ClientConfig] = None,
        timeout: Optional[float] = None,
    ) -> "Client":
        """Create a client and pair it with the server in one step."""
        client = cls(host, "", config=config)
        try:
            client.pair(code, timeout=timeout)
        except Exception:
            client.close()
            raise
        return client

    @classmethod
    def from_env(cls, **kwargs: Any) -> "Client":
        """Build a client from load_settings() arguments and the environment."""
        http_client = kwargs.pop("http_client", None)
        settings = load_settings(**kwargs)
        config = ClientConfig.from_settings(settings, http_client=http_client)
        return cls(settings.host, settings.token, config=config)

    @property
    def host(self) -> str:
        return self._builder.host

    @property
    def sin(self) -> str:
        return self._sin

    @property
    def key_pair(self) -> KeyPair:
        return self._key_pair

    @property
    def public_key(self) -> str:
        return self._key_pair.public_key_hex

    @property
    def pem(self) -> str:
        return encode_pem(self._key_pair)

    @property
    def token(self) -> str:
        return self._token.get()

    @property
    def state(self) -> PairingState:
        return pairing_state(self.token)

    def send(
        self,
        method: str,
        endpoint: str,
        params: Optional[QueryParams] = None,
        payload: Optional[Payload] = None,
        signed: bool = False,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """Build, optionally sign, and dispatch one request.

        Returns the raw response for status < 400. Raises ServerError for a
        well-formed error body and ResponseFormatError when the error body
        cannot be decoded. httpx transport errors propagate unchanged.
        """
        with self._token.read() as token:
            prepared = self._builder.build(method, endpoint, token, params=params, payload=payload)
            request = self._http.build_request(
                prepared.method,
                prepared.url,
                content=prepared.body or None,
                headers=self._headers,
                timeout=self._effective_timeout(timeout),
            )
            if signed:
                canonical = canonical_string(str(request.url), prepared.body)
                request.headers.update(signature_headers(self._key_pair, canonical))

            logger.debug("%s %s (signed=%s)", prepared.method, prepared.url.split("?", 1)[0], signed)
            response = self._http.send(request)

        if response.status_code >= 400:
            self._raise_for_error(prepared.method, endpoint, response)
        return response

    def pair(self, code: str, timeout: Optional[float] = None) -> str:
        """Exchange a pairing code for an API token and install it.

        A failed pairing leaves the current token untouched.
        """
        payload = pairing_payload(self._sin, code)
        response = self.send("POST", TOKENS_ENDPOINT, payload=payload, signed=False, timeout=timeout)
        token = parse_pairing_response(response.content)
        self._token.install(token)
        logger.info("Paired client identity %s with %s", self._sin, self.host)
        return token

    def rates(
        self,
        currency: str,
        store_id: str = "",
        timeout: Optional[float] = None,
    ) -> dict[str, Decimal]:
        """Exchange rates for each crypto currency paired with ``currency``."""
        params = [("cryptoCode", currency)]
        if store_id:
            params.append(("storeID", store_id))

        response = self.send("GET", "/rates", params=params, signed=True, timeout=timeout)
        return parse_rates(response.content)

    def create_invoice(self, params: CreateInvoiceParams, timeout: Optional[float] = None) -> Invoice:
        response = self.send("POST", "/invoices", payload=params, signed=True, timeout=timeout)
        return parse_invoice_envelope(response.content)

    def invoice(self, invoice_id: str, timeout: Optional[float] = None) -> Invoice:
        if not invoice_id:
            raise ValueError("Invoice ID is required")
        endpoint = "/invoices/" + quote(invoice_id, safe="")
        response = self.send("GET", endpoint, signed=True, timeout=timeout)
        return parse_invoice_envelope(response.content)

    def _effective_timeout(self, timeout: Optional[float]) -> float:
        if timeout is None:
            return self.config.timeout_seconds
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        return min(timeout, self.config.timeout_seconds)

    def _raise_for_error(self, method: str, endpoint: str, response: httpx.Response) -> None:
        status = response.status_code
        try:
            data = decode_json(response.content)
        except ResponseFormatError as e:
            logger.warning("%s %s failed with %d and an undecodable body", method, endpoint, status)
            raise ResponseFormatError(f"Invalid error response ({status}): {e}") from e

        if not isinstance(data, dict):
            raise ResponseFormatError(f"Error response ({status}) must be a JSON object")
        message = data.get("error")
        if message is None:
            message = ""
        if not isinstance(message, str):
            raise ResponseFormatError(f"Error response ({status}) 'error' must be a string")

        logger.warning("%s %s rejected: [%d] %s", method, endpoint, status, message)
        raise ServerError(status, message)

    def close(self):
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
