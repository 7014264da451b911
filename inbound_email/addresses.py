"""Address flattening and canonical sender resolution.

Address-bearing values arrive in several shapes: a raw header string, a
structured address, a group wrapping nested addresses, or a list of any
of these.  :func:`flatten_addresses` turns all of them into an ordered
list of :class:`CanonicalAddress`, one per occurrence.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from email.headerregistry import Address, Group
from enum import Enum
from functools import singledispatch
from typing import TYPE_CHECKING, Any, Union

from .models import CanonicalAddress, EnvelopeMetadata

if TYPE_CHECKING:
    from .parser import ParsedMessage

UNKNOWN_SENDER = "unknown@sender"

# Headers forwarding systems add to preserve the true author, in lookup order.
ORIGINAL_SENDER_HEADERS: tuple[str, ...] = (
    "x-original-from",
    "x-original-sender",
    "x-google-original-from",
    "x-forwarded-for",
    "original-from",
    "resent-from",
    "reply-to",
)

_ADDRESS_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)


@dataclass(frozen=True)
class RawAddress:
    """A single address occurrence as written in a header."""

    address: str
    name: str | None = None


@dataclass(frozen=True)
class AddressGroup:
    """A header value's addresses, possibly nested under group labels.

    ``value`` holds :class:`RawAddress` and nested :class:`AddressGroup`
    entries in header order.
    """

    value: list[RawAddress | AddressGroup] = field(default_factory=list)
    name: str | None = None
    text: str = ""


AddressInput = Union[RawAddress, AddressGroup, str, Sequence[Any], None]


# ------------------------------------------------------------------
# Flattening
# ------------------------------------------------------------------


def flatten_addresses(value: AddressInput) -> list[CanonicalAddress]:
    """Flatten any supported address input into canonical addresses.

    Order of occurrence is kept and duplicates are retained.  Inputs that
    contain no usable address produce an empty list; nothing here raises.
    """
    collected: list[CanonicalAddress] = []
    _collect(value, collected)
    return collected


@singledispatch
def _collect(value: object, out: list[CanonicalAddress]) -> None:
    # Objects from other parsers: dispatch on what they expose.
    members = getattr(value, "value", None)
    if isinstance(members, (list, tuple)):
        _collect(list(members), out)
        return
    address = getattr(value, "address", None)
    if isinstance(address, str):
        _append(out, address, getattr(value, "name", None))


@_collect.register(type(None))
def _collect_none(value: None, out: list[CanonicalAddress]) -> None:
    return


@_collect.register(str)
def _collect_text(value: str, out: list[CanonicalAddress]) -> None:
    matches = _ADDRESS_PATTERN.findall(value)
    if matches:
        for match in matches:
            _append(out, match, None)
    elif "@" in value:
        _append(out, value, None)


@_collect.register(list)
@_collect.register(tuple)
def _collect_sequence(value: Sequence[Any], out: list[CanonicalAddress]) -> None:
    for entry in value:
        _collect(entry, out)


@_collect.register(RawAddress)
def _collect_raw(value: RawAddress, out: list[CanonicalAddress]) -> None:
    _append(out, value.address, value.name)


@_collect.register(AddressGroup)
def _collect_group(value: AddressGroup, out: list[CanonicalAddress]) -> None:
    _collect(value.value, out)


@_collect.register(Mapping)
def _collect_mapping(value: Mapping, out: list[CanonicalAddress]) -> None:
    # JSON-decoded shapes: {"value": [...]} or {"address": ..., "name": ...}
    members = value.get("value")
    if isinstance(members, (list, tuple)):
        _collect(list(members), out)
        return
    address = value.get("address")
    if isinstance(address, str):
        _append(out, address, value.get("name"))


@_collect.register(Address)
def _collect_header_address(value: Address, out: list[CanonicalAddress]) -> None:
    if value.username or value.domain:
        _append(out, value.addr_spec, value.display_name)


@_collect.register(Group)
def _collect_header_group(value: Group, out: list[CanonicalAddress]) -> None:
    _collect(list(value.addresses), out)


def _append(out: list[CanonicalAddress], address: str, name: object) -> None:
    address = address.strip().lower()
    if not address:
        return
    display = name.strip() if isinstance(name, str) else ""
    out.append(CanonicalAddress(address=address, name=display or None))


# ------------------------------------------------------------------
# Sender resolution
# ------------------------------------------------------------------


class SenderStrategy(str, Enum):
    """Which sender-resolution rules to apply."""

    CASCADE = "cascade"
    FROM_ONLY = "from_only"


def resolve_sender(message: ParsedMessage, envelope: EnvelopeMetadata) -> CanonicalAddress:
    """Pick the message's true originating sender.

    Sources are tried in priority order and the first one that yields an
    address wins; only its first address is used:

    1. the first original-sender header present with a non-empty value
       (see :data:`ORIGINAL_SENDER_HEADERS`)
    2. the parsed ``From`` header
    3. the parsed ``Reply-To`` header
    4. the relay's common-header ``from`` entries, in order
    5. the relay's envelope source, or ``unknown@sender``
    """
    for header in ORIGINAL_SENDER_HEADERS:
        raw = message.headers.get(header)
        if raw is None or not raw.strip():
            continue
        candidates = flatten_addresses(raw)
        if candidates:
            return candidates[0]
        break

    for source in (message.from_, message.reply_to):
        candidates = flatten_addresses(source)
        if candidates:
            return candidates[0]

    for entry in envelope.common_headers_from or ():
        candidates = flatten_addresses(entry)
        if candidates:
            return candidates[0]

    return _envelope_fallback(envelope)


def resolve_sender_from_only(
    message: ParsedMessage, envelope: EnvelopeMetadata
) -> CanonicalAddress:
    """First ``From`` address, else the envelope source, else ``unknown@sender``."""
    candidates = flatten_addresses(message.from_)
    if candidates:
        return candidates[0]
    return _envelope_fallback(envelope)


def _envelope_fallback(envelope: EnvelopeMetadata) -> CanonicalAddress:
    source = (envelope.source_address or "").strip().lower()
    return CanonicalAddress(address=source or UNKNOWN_SENDER)


SENDER_RESOLVERS: dict[
    SenderStrategy, Callable[[ParsedMessage, EnvelopeMetadata], CanonicalAddress]
] = {
    SenderStrategy.CASCADE: resolve_sender,
    SenderStrategy.FROM_ONLY: resolve_sender_from_only,
}


def normalize_recipients(destinations: Sequence[str]) -> tuple[str, ...]:
    """Lower-case the relay's destination list, keeping its order."""
    return tuple(recipient.lower() for recipient in destinations)
