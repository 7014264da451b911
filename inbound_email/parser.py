"""MIME parser. Turns raw RFC 822 bytes into the structured view the
address resolver and payload normalizer work on.

Header map convention: names are lower-cased and the **first** occurrence
of a repeated header wins.  For trace-style headers such as
``Resent-From`` that is the topmost, most recently prepended value.
"""

from __future__ import annotations

import email
import email.message
import email.policy
from dataclasses import dataclass
from email.headerregistry import Address

from .addresses import AddressGroup, AddressInput, RawAddress
from .errors import MessageParseError


@dataclass
class ParsedMessage:
    """Structured representation of a parsed inbound message."""

    headers: dict[str, str]
    from_: AddressInput = None
    to: AddressInput = None
    cc: AddressInput = None
    reply_to: AddressInput = None
    subject: str | None = None
    text: str | None = None
    html: str | None = None


class MimeParser:
    """Stateless parser: raw RFC 822 bytes → ParsedMessage."""

    def parse(self, raw_bytes: bytes) -> ParsedMessage:
        try:
            msg = email.message_from_bytes(raw_bytes, policy=email.policy.default)
            headers: dict[str, str] = {}
            for name, value in msg.items():
                headers.setdefault(name.lower(), _clean_header_text(str(value)))

            body_text, body_html = self._extract_bodies(msg)
            subject = msg.get("Subject")

            return ParsedMessage(
                headers=headers,
                from_=self._address_group(msg, "From"),
                to=self._address_group(msg, "To"),
                cc=self._address_group(msg, "Cc"),
                reply_to=self._address_group(msg, "Reply-To"),
                subject=_clean_header_text(str(subject)) if subject is not None else None,
                text=body_text,
                html=body_html,
            )
        except Exception as exc:
            raise MessageParseError(f"Unable to parse MIME message: {exc}") from exc

    def _extract_bodies(self, msg: email.message.EmailMessage) -> tuple[str | None, str | None]:
        """Walk MIME parts and return (plain_text, html_text)."""
        body_text: str | None = None
        body_html: str | None = None

        for part in msg.walk():
            # Multipart containers have no content of their own
            if part.get_content_maintype() == "multipart":
                continue

            # Skip attachment parts, including text files sent as attachments
            if part.get_content_disposition() == "attachment":
                continue

            content_type = part.get_content_type()
            if content_type == "text/plain" and body_text is None:
                body_text = _decode_text(part)
            elif content_type == "text/html" and body_html is None:
                body_html = _decode_text(part)

        return body_text, body_html

    def _address_group(self, msg: email.message.EmailMessage, name: str) -> AddressInput:
        """Build the address structure for the first *name* header, if present."""
        header = msg.get(name)
        if header is None:
            return None

        groups = getattr(header, "groups", None)
        if groups is None:
            # Not parsed as an address header; the resolver scans the raw text.
            return _clean_header_text(str(header))

        value: list[RawAddress | AddressGroup] = []
        for group in groups:
            members = [_raw_address(addr) for addr in group.addresses]
            if group.display_name is None:
                value.extend(members)
            else:
                group_name = _clean_header_text(group.display_name)
                value.append(AddressGroup(value=members, name=group_name))
        return AddressGroup(value=value, text=_clean_header_text(str(header)))


def _raw_address(addr: Address) -> RawAddress:
    # A bare display name parses as a mailbox with a username and no domain.
    spec = _clean_header_text(addr.addr_spec) if addr.domain else ""
    return RawAddress(address=spec, name=_clean_header_text(addr.display_name) or None)


def _clean_header_text(value: str) -> str:
    """Replace undecodable header bytes.

    Raw 8-bit bytes in a header are kept by ``email`` as lone surrogates,
    which cannot be encoded as UTF-8.  Valid UTF-8 is restored, anything
    else is read as Latin-1, the usual charset of unencoded headers.
    """
    raw = value.encode("utf-8", "surrogateescape")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _decode_text(part: email.message.EmailMessage) -> str:
    """Return the decoded text of *part*, tolerating unknown charsets."""
    try:
        content = part.get_content()
    except (LookupError, UnicodeDecodeError):
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content
