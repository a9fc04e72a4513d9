# Overview: Service-layer operations for identifiers; generates and validates external ids.

"""
Identifier Service - external identifiers

WHY: Internal integer keys are enumerable. Everything that leaves the server
(URLs, QR codes, JSON payloads) carries an opaque public id instead, and every
lookup from outside resolves through it.

FORMATS:
- public_id:          URL-safe random token (people, gifts, orders, events)
- order_id:           business code printed on the order QR artifact
- confirmation_code:  opaque token the approver scans to confirm
"""

from __future__ import annotations

import re
import secrets


PUBLIC_ID_BYTES = 15
PUBLIC_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,64}$")

ORDER_ID_ALPHABET = "0123456789oder"
ORDER_ID_LENGTH = 15

EVENT_ID_ALPHABET = "0123456789event"
EVENT_ID_LENGTH = 10

OWNER_ID_ALPHABET = "0123456789owner"
OWNER_ID_LENGTH = 5


def _random_code(alphabet: str, length: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_public_id() -> str:
    """Opaque, URL-safe identifier for any externally visible entity."""
    return secrets.token_urlsafe(PUBLIC_ID_BYTES)


def generate_order_id() -> str:
    return _random_code(ORDER_ID_ALPHABET, ORDER_ID_LENGTH)


def generate_event_id() -> str:
    return _random_code(EVENT_ID_ALPHABET, EVENT_ID_LENGTH)


def generate_owner_id() -> str:
    return _random_code(OWNER_ID_ALPHABET, OWNER_ID_LENGTH)


def generate_confirmation_code() -> str:
    return secrets.token_urlsafe(24)


def normalize_public_id(value: object) -> str | None:
    """Strip whitespace; return None for anything that cannot be a public id."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not PUBLIC_ID_PATTERN.match(stripped):
        return None
    return stripped
