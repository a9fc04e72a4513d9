# Overview: Interfaces for external collaborators (person import, QR rendering, email) plus the shipped defaults.

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ..models import SourceFormat


@dataclass(frozen=True)
class PersonRecord:
    """One imported row, before it becomes a Person."""

    first_name: str | None = None
    last_name: str | None = None
    employee_id: str | None = None
    person_id: str | None = None
    source_format: str = SourceFormat.BASIC_NAME.value


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: str
    encoding: str = "base64"


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    attachments: list[EmailAttachment] = field(default_factory=list)


class PersonImporter(Protocol):
    def load(self, source: str | Path) -> list[PersonRecord]: ...


class QRCodeRenderer(Protocol):
    def render(self, url: str) -> str:
        """Return a base64-encoded PNG for url."""
        ...


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> None: ...


# ============================================================================
# Person import
# ============================================================================

# Accepted header aliases per field
_FIELD_ALIASES = {
    "first_name": ("first_name", "firstName", "first name"),
    "last_name": ("last_name", "lastName", "last name"),
    "employee_id": ("employee_id", "employee_number", "worker_id"),
    "person_id": ("person_id", "person_id_number", "id"),
}


def _pick(row: dict[str, Any], name: str) -> str | None:
    for alias in _FIELD_ALIASES[name]:
        value = row.get(alias)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def detect_source_format(first_name, last_name, employee_id, person_id) -> str:
    has_name = bool(first_name or last_name)
    if has_name and (employee_id or person_id):
        return SourceFormat.COMPLETE_EMPLOYEE.value
    if has_name:
        return SourceFormat.BASIC_NAME.value
    if employee_id:
        return SourceFormat.EMPLOYEE_ID_ONLY.value
    if person_id:
        return SourceFormat.PERSON_ID_ONLY.value
    raise ValueError("Row has no identifying fields")


def record_from_row(row: dict[str, Any]) -> PersonRecord:
    first_name = _pick(row, "first_name")
    last_name = _pick(row, "last_name")
    employee_id = _pick(row, "employee_id")
    person_id = _pick(row, "person_id")
    return PersonRecord(
        first_name=first_name,
        last_name=last_name,
        employee_id=employee_id,
        person_id=person_id,
        source_format=detect_source_format(first_name, last_name, employee_id, person_id),
    )


class JsonPersonImporter:
    """
    Reads a JSON array of row objects.

    Headers may use any alias in _FIELD_ALIASES; the source format is inferred
    from which identifying columns are populated.
    """

    def load(self, source: str | Path) -> list[PersonRecord]:
        with open(source, "r", encoding="utf-8") as fh:
            rows = json.load(fh)
        if not isinstance(rows, list):
            raise ValueError("Person file must contain a JSON array")
        records = []
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise ValueError(f"Row {index} is not an object")
            try:
                records.append(record_from_row(row))
            except ValueError as e:
                raise ValueError(f"Row {index}: {e}") from e
        return records


# ============================================================================
# Email
# ============================================================================

class LoggingEmailSender:
    """Default sender: writes the message summary to the log instead of delivering it."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("giftgrab.email")
        self.sent: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> None:
        self.sent.append(message)
        self.logger.info(
            "Email to %s: %s (%d attachment(s))",
            message.to, message.subject, len(message.attachments),
        )


def order_confirmed_message(to: str, order: dict) -> EmailMessage:
    applicant = (order.get("applicant") or {}).get("display_name", "")
    approver = (order.get("confirmed_by_approver") or {}).get("display_name", "")
    gift_count = len(order.get("gifts") or [])
    html = (
        "<html><h1>Order confirmed</h1>"
        f"<p>Order {order.get('order_id')} for {applicant} was confirmed by {approver}.</p>"
        f"<p>Gifts: {gift_count}</p>"
    )
    if order.get("reconciliation_required"):
        html += "<p><strong>Some gifts could not be claimed. Reconciliation required.</strong></p>"
    html += "</html>"
    return EmailMessage(to=to, subject=f"Order {order.get('order_id')} confirmed", html=html)


def event_created_message(to: str, event_qr: str | None, owner_qr: str | None) -> EmailMessage:
    attachments = []
    if event_qr:
        attachments.append(EmailAttachment("event QR code.png", event_qr))
    if owner_qr:
        attachments.append(EmailAttachment("owner QR code.png", owner_qr))
    return EmailMessage(
        to=to,
        subject="Your GiftGrab event QR codes",
        html="<html><h1>QR codes</h1></html>",
        attachments=attachments,
    )
