"""
Invoice and rate records exchanged with the payment processor.

Plain data carriers. Amounts are Decimal; outgoing prices are sent as
decimal strings and incoming JSON numbers are parsed straight to Decimal.
More at: https://bitpay.com/api/#rest-api-resources-invoices
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .errors import ResponseFormatError


@dataclass
class InvoiceBuyer:
    name: str = ""
    address1: str = ""
    address2: str = ""
    locality: str = ""
    region: str = ""
    postal_code: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""
    notify: str = ""

    _WIRE_NAMES = {"postal_code": "postalCode"}

    def to_dict(self) -> dict:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value:
                out[self._WIRE_NAMES.get(f.name, f.name)] = value
        return out

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "InvoiceBuyer":
        data = data or {}
        if not isinstance(data, dict):
            raise ResponseFormatError(f"Invoice buyer must be a JSON object, got {type(data).__name__}")
        return cls(
            name=str(data.get("name") or ""),
            address1=str(data.get("address1") or ""),
            address2=str(data.get("address2") or ""),
            locality=str(data.get("locality") or ""),
            region=str(data.get("region") or ""),
            postal_code=str(data.get("postalCode") or ""),
            country=str(data.get("country") or ""),
            email=str(data.get("email") or ""),
            phone=str(data.get("phone") or ""),
            notify=str(data.get("notify") or ""),
        )


@dataclass
class CreateInvoiceParams:
    """Fields accepted by ``POST /invoices``. Empty optionals are omitted."""

    currency: str
    price: Decimal = Decimal("0")
    order_id: str = ""
    item_desc: str = ""
    item_code: str = ""
    notification_email: str = ""
    notification_url: str = ""
    redirect_url: str = ""
    pos_data: str = ""
    transaction_speed: str = ""
    full_notifications: bool = False
    extended_notifications: bool = False
    physical: bool = False
    buyer: InvoiceBuyer = field(default_factory=InvoiceBuyer)
    payment_currencies: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "currency": self.currency,
            "price": str(Decimal(str(self.price))),
        }
        optional = (
            ("orderId", self.order_id),
            ("itemDesc", self.item_desc),
            ("itemCode", self.item_code),
            ("notificationEmail", self.notification_email),
            ("notificationURL", self.notification_url),
            ("redirectURL", self.redirect_url),
            ("posData", self.pos_data),
            ("transactionSpeed", self.transaction_speed),
            ("fullNotifications", self.full_notifications),
            ("extendedNotifications", self.extended_notifications),
            ("physical", self.physical),
        )
        for key, value in optional:
            if value:
                out[key] = value
        out["buyer"] = self.buyer.to_dict()
        if self.payment_currencies:
            out["paymentCurrencies"] = list(self.payment_currencies)
        return out


@dataclass
class Invoice:
    id: str = ""
    url: str = ""
    status: str = ""
    price: Decimal = Decimal("0")
    currency: str = ""
    item_desc: str = ""
    order_id: str = ""
    pos_data: str = ""
    invoice_time: int = 0
    expiration_time: int = 0
    current_time: int = 0
    low_fee_detected: bool = False
    amount_paid: Decimal = Decimal("0")
    display_amount_paid: Decimal = Decimal("0")
    exception_status: Any = None
    target_confirmations: int = 0
    buyer: InvoiceBuyer = field(default_factory=InvoiceBuyer)
    redirect_url: str = ""
    transaction_currency: str = ""
    underpaid_amount: Decimal = Decimal("0")
    overpaid_amount: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, data: dict) -> "Invoice":
        if not isinstance(data, dict):
            raise ResponseFormatError(f"Invoice must be a JSON object, got {type(data).__name__}")
        return cls(
            id=str(data.get("id") or ""),
            url=str(data.get("url") or ""),
            status=str(data.get("status") or ""),
            price=_decimal(data.get("price"), "price"),
            currency=str(data.get("currency") or ""),
            item_desc=str(data.get("itemDesc") or ""),
            order_id=str(data.get("orderId") or ""),
            pos_data=str(data.get("posData") or ""),
            invoice_time=int(data.get("invoiceTime") or 0),
            expiration_time=int(data.get("expirationTime") or 0),
            current_time=int(data.get("currentTime") or 0),
            low_fee_detected=bool(data.get("lowFeeDetected", False)),
            amount_paid=_decimal(data.get("amountPaid"), "amountPaid"),
            display_amount_paid=_decimal(data.get("displayAmountPaid"), "displayAmountPaid"),
            exception_status=data.get("exceptionStatus"),
            target_confirmations=int(data.get("targetConfirmations") or 0),
            buyer=InvoiceBuyer.from_dict(data.get("buyer")),
            redirect_url=str(data.get("redirectURL") or ""),
            transaction_currency=str(data.get("transactionCurrency") or ""),
            underpaid_amount=_decimal(data.get("underpaidAmount"), "underpaidAmount"),
            overpaid_amount=_decimal(data.get("overpaidAmount"), "overpaidAmount"),
        )


def decode_json(body: bytes | str) -> Any:
    try:
        return json.loads(body, parse_float=Decimal)
    except ValueError as e:
        raise ResponseFormatError(f"Invalid JSON response: {e}") from e


def parse_invoice_envelope(body: bytes | str) -> Invoice:
    """Decode ``{"data": {...invoice...}}``."""
    envelope = decode_json(body)
    if not isinstance(envelope, dict):
        raise ResponseFormatError("Invoice response must be a JSON object")
    try:
        return Invoice.from_dict(envelope.get("data") or {})
    except (TypeError, ValueError) as e:
        raise ResponseFormatError(f"Invalid invoice data: {e}") from e


def parse_rates(body: bytes | str) -> dict[str, Decimal]:
    """Decode ``{"data": [{"code": ..., "rate": ...}]}`` into code -> rate."""
    envelope = decode_json(body)
    if not isinstance(envelope, dict):
        raise ResponseFormatError("Rates response must be a JSON object")
    data = envelope.get("data")
    if data is None:
        data = []
    if not isinstance(data, list):
        raise ResponseFormatError("Rates 'data' must be a JSON array")

    rates: dict[str, Decimal] = {}
    for entry in data:
        if not isinstance(entry, dict):
            raise ResponseFormatError("Rate entry must be a JSON object")
        rates[str(entry.get("code") or "")] = _decimal(entry.get("rate"), "rate")
    return rates


def _decimal(value: Any, name: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ResponseFormatError(f"Field {name!r} is not a decimal: {value!r}") from e
