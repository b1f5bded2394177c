"""
BTCPay CLI: key management and API calls from the shell.

Commands:
    btcpay keygen           Generate a client key (PEM)
    btcpay sin              Show the SIN and public key for a PEM
    btcpay verify-signature Check an X-Signature value against a URL/body
    btcpay pair             Exchange a pairing code for an API token
    btcpay rates            Fetch exchange rates
    btcpay invoice          Fetch an invoice by ID
    btcpay create-invoice   Create a new invoice

Host, token and key default to BTCPAY_HOST, BTCPAY_TOKEN and
BTCPAY_PEM / BTCPAY_PEM_FILE.
"""

from __future__ import annotations

import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import click
import httpx

from . import __version__
from .client import Client, ClientConfig
from .config import load_settings
from .errors import BTCPayError
from .identity import sin_from_key_pair
from .keys import decode_pem, generate_pem
from .models import CreateInvoiceParams, Invoice
from .signing import canonical_string, verify
from .storage import write_private_text


def _fail(message: str) -> None:
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)


def _client(host: Optional[str], pem_file: Optional[str], require_key: bool = False) -> Client:
    try:
        settings = load_settings(host=host, pem_file=pem_file)
    except BTCPayError as e:
        _fail(str(e))
    if require_key and not settings.pem:
        _fail(
            "Refusing to pair with a throwaway key. Run `btcpay keygen --out <path>` and pass "
            "--pem-file (or set BTCPAY_PEM_FILE) so the token stays usable."
        )
    try:
        return Client(settings.host, settings.token, config=ClientConfig.from_settings(settings))
    except BTCPayError as e:
        _fail(f"Failed to create client: {e}")


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _invoice_summary(invoice: Invoice) -> dict:
    return {
        "id": invoice.id,
        "url": invoice.url,
        "status": invoice.status,
        "price": invoice.price,
        "currency": invoice.currency,
        "order_id": invoice.order_id,
        "expiration_time": invoice.expiration_time,
    }


host_option = click.option("--host", default=None, help="Server base URL (default: $BTCPAY_HOST)")
pem_file_option = click.option(
    "--pem-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Client key PEM file (default: $BTCPAY_PEM_FILE)",
)


# ── CLI ───────────────────────────────────────────────────────────

@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log requests to stderr.")
def main(verbose: bool):
    """BTCPay: signed client for the BTCPay invoice API."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.option("--out", type=click.Path(dir_okay=False), default=None,
              help="Write the PEM here (0600) instead of printing it")
def keygen(out: Optional[str]):
    """Generate a new secp256k1 client key."""
    try:
        pem = generate_pem()
    except BTCPayError as e:
        _fail(f"Failed to generate key: {e}")

    if out is None:
        click.echo(pem, nl=False)
        return

    try:
        write_private_text(Path(out), pem)
    except (FileExistsError, OSError) as e:
        _fail(str(e))

    key_pair = decode_pem(pem)
    click.echo(f"✅ Key written to {out}")
    click.echo(f"   SIN:        {sin_from_key_pair(key_pair)}")
    click.echo(f"   Public key: {key_pair.public_key_hex}")


@main.command()
@click.option("--pem-file", type=click.Path(exists=True, dir_okay=False), required=True,
              help="Client key PEM file")
def sin(pem_file: str):
    """Show the SIN and compressed public key for a PEM."""
    try:
        key_pair = decode_pem(Path(pem_file).read_text(encoding="ascii"))
    except (BTCPayError, UnicodeDecodeError) as e:
        _fail(f"Invalid key: {e}")

    click.echo(f"SIN:        {sin_from_key_pair(key_pair)}")
    click.echo(f"Public key: {key_pair.public_key_hex}")


@main.command("verify-signature")
@click.argument("public_key")
@click.argument("signature")
@click.argument("url")
@click.option("--body", default="", help="Raw request body that was signed")
def verify_signature(public_key: str, signature: str, url: str, body: str):
    """Check SIGNATURE over URL + body against a compressed PUBLIC_KEY."""
    if verify(public_key, canonical_string(url, body), signature):
        click.echo("✅ Signature is valid")
    else:
        _fail("Signature is invalid")


@main.command()
@click.argument("code")
@host_option
@pem_file_option
def pair(code: str, host: Optional[str], pem_file: Optional[str]):
    """Exchange pairing CODE for an API token."""
    with _client(host, pem_file, require_key=True) as client:
        try:
            token = client.pair(code)
        except (BTCPayError, httpx.HTTPError) as e:
            _fail(f"Pairing failed: {e}")

        click.echo(f"✅ Paired as {client.sin}")
        click.echo(f"   Token: {token}")


@main.command()
@click.argument("currency")
@click.option("--store-id", default="", help="Store to quote rates for")
@host_option
@pem_file_option
def rates(currency: str, store_id: str, host: Optional[str], pem_file: Optional[str]):
    """Fetch exchange rates for CURRENCY."""
    with _client(host, pem_file) as client:
        try:
            result = client.rates(currency, store_id=store_id)
        except (BTCPayError, httpx.HTTPError) as e:
            _fail(f"Rates request failed: {e}")
    _echo_json(result)


@main.command()
@click.argument("invoice_id")
@host_option
@pem_file_option
def invoice(invoice_id: str, host: Optional[str], pem_file: Optional[str]):
    """Fetch invoice INVOICE_ID."""
    with _client(host, pem_file) as client:
        try:
            result = client.invoice(invoice_id)
        except (BTCPayError, httpx.HTTPError) as e:
            _fail(f"Invoice request failed: {e}")
    _echo_json(_invoice_summary(result))


@main.command("create-invoice")
@click.option("--price", required=True, help="Invoice price, e.g. 10.50")
@click.option("--currency", required=True, help="Pricing currency, e.g. USD")
@click.option("--order-id", default="", help="Merchant order reference")
@click.option("--item-desc", default="", help="Item description shown to the buyer")
@click.option("--notification-url", default="", help="IPN callback URL")
@click.option("--redirect-url", default="", help="Where to send the buyer after payment")
@host_option
@pem_file_option
def create_invoice(
    price: str,
    currency: str,
    order_id: str,
    item_desc: str,
    notification_url: str,
    redirect_url: str,
    host: Optional[str],
    pem_file: Optional[str],
):
    """Create a new invoice."""
    try:
        amount = Decimal(price)
    except InvalidOperation:
        _fail(f"Invalid price: {price}")

    params = CreateInvoiceParams(
        currency=currency,
        price=amount,
        order_id=order_id,
        item_desc=item_desc,
        notification_url=notification_url,
        redirect_url=redirect_url,
    )
    with _client(host, pem_file) as client:
        try:
            result = client.create_invoice(params)
        except (BTCPayError, httpx.HTTPError) as e:
            _fail(f"Invoice creation failed: {e}")

    click.echo(f"✅ Invoice created: {result.id}")
    click.echo(f"   Status: {result.status}")
    click.echo(f"   URL:    {result.url}")


if __name__ == "__main__":
    main()
