"""
Mailgun inbound webhook adapter.

Mailgun delivers an inbound email in one of two shapes:

  raw MIME        the route is configured to forward the full message, which
                  arrives in ``body-mime`` (plus ``recipient`` / ``sender``)
  parsed fields   discrete form fields: ``To``, ``From``, ``Cc``, ``subject``,
                  ``body-plain``, ``body-html``, ``stripped-*``,
                  ``message-headers`` and indexed ``attachment-N`` uploads

Both are normalized into a CanonicalEmail. Every string in the payload is
repaired to valid UTF-8 first, so the extraction code can assume clean text.

Indexed attachment uploads are consumed: after normalize_params returns, the
``attachment-N`` keys are gone from the payload that was passed in. Do not
hand the same payload instance to two concurrent calls.
"""

import logging
import re
from collections.abc import Mapping, MutableMapping
from email import message_from_string, policy
from email.message import EmailMessage
from typing import Any, Optional

from mailhook.models.inbound_email import CanonicalEmail
from mailhook.services.attachments import (
    attachment_files_from_mime_message,
    collect_attachment_files,
)
from mailhook.services.indifferent_params import IndifferentParams, is_present, normalize_key
from mailhook.services.message_headers import HeaderSet
from mailhook.services.param_sanitizer import FALLBACK_ENCODING, deep_clean_invalid_utf8_bytes

logger = logging.getLogger(__name__)

_HEADER_BODY_SEPARATOR = re.compile(r"\r?\n\r?\n")


class InboundPayloadError(ValueError):
    """Base class for payloads that cannot be normalized."""


class MissingRecipientError(InboundPayloadError):
    """Neither To (field or header) nor recipient was supplied."""


def split_addresses(value: Optional[str]) -> list[str]:
    """
    Split a comma-separated address list, trimming each segment.

    Trailing empty segments are dropped before trimming, so "a@x.com," gives
    one address while "a@x.com, " keeps its whitespace-only tail as "".
    """
    if not value:
        return []
    segments = value.split(",")
    while segments and segments[-1] == "":
        segments.pop()
    return [segment.strip() for segment in segments]


def _wrap(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _decoded_content(part: EmailMessage) -> str:
    """
    Decoded text of a body part.

    A charset Python does not know (e.g. x-unknown-8bit) falls back to UTF-8,
    then ISO-8859-1, the same policy the payload sanitizer applies.
    """
    try:
        return part.get_content()
    except LookupError:
        raw = part.get_payload(decode=True) or b""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode(FALLBACK_ENCODING)


def _split_raw_message(raw: str) -> tuple[str, str]:
    """Split a raw RFC 822 message into (header block, body) as transmitted."""
    parts = _HEADER_BODY_SEPARATOR.split(raw, maxsplit=1)
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1]


def _format_address_field(message: EmailMessage, field_name: str) -> list[str]:
    """
    Render an address header as ``Display Name <email>`` / ``email`` strings.

    A header the parser could not read as an address list is returned as
    its raw string; a missing header gives an empty list.
    """
    header = message[field_name]
    if header is None:
        return []
    addresses = getattr(header, "addresses", None)
    if addresses is None:
        return [str(header)]
    return [str(address) for address in addresses]


class MailgunAdapter:
    """Normalizes one Mailgun webhook payload. Instances are single-use."""

    def __init__(self, params: Mapping):
        self.params: IndifferentParams = deep_clean_invalid_utf8_bytes(
            IndifferentParams(params)
        )
        self._headers: Optional[HeaderSet] = None
        self.consumed_fields: list[str] = []

    @classmethod
    def normalize_params(cls, params: Mapping) -> CanonicalEmail:
        """
        Normalize a raw Mailgun payload.

        Indexed attachment upload fields are removed from ``params`` when it
        is mutable.
        """
        adapter = cls(params)
        email = adapter.normalize()
        if isinstance(params, MutableMapping):
            adapter.release_consumed_fields(params)
        return email

    def normalize(self) -> CanonicalEmail:
        message = self.mime_message()
        if message is not None:
            logger.debug("Normalizing Mailgun payload from body-mime")
            return self.normalize_params_from_mime_message(message)
        logger.debug("Normalizing Mailgun payload from parsed fields")
        return self.normalize_params_from_request()

    def release_consumed_fields(self, params: MutableMapping) -> None:
        """Drop the indexed attachment keys this adapter consumed from params."""
        consumed = set(self.consumed_fields)
        for key in [k for k in params if normalize_key(k) in consumed]:
            del params[key]

    # ------------------------------------------------------------------
    # Shape detection
    # ------------------------------------------------------------------

    def mime_message(self) -> Optional[EmailMessage]:
        """Parse ``body-mime`` when it is present; None selects the field path."""
        raw = self.params.get("body-mime")
        if not is_present(raw):
            return None
        return message_from_string(raw, policy=policy.default)

    # ------------------------------------------------------------------
    # Raw MIME path
    # ------------------------------------------------------------------

    def normalize_params_from_mime_message(self, message: EmailMessage) -> CanonicalEmail:
        raw_headers, raw_body = _split_raw_message(self.params["body-mime"])
        from_addresses = _format_address_field(message, "From")
        subject = message["Subject"]

        return CanonicalEmail(
            to=self._to_recipients_from_mime_message(message),
            cc=_format_address_field(message, "Cc"),
            bcc=_format_address_field(message, "Bcc"),
            from_=from_addresses[0] if from_addresses else self.params.get("sender"),
            subject=str(subject) if subject is not None else None,
            text=self._text_from_mime_message(message, raw_body),
            html=self._html_from_mime_message(message),
            attachments=attachment_files_from_mime_message(message),
            headers=raw_headers,
            vendor_specific={"recipient": self.params.get("recipient")},
        )

    def _to_recipients_from_mime_message(self, message: EmailMessage) -> list[str]:
        recipient = self.params.get("recipient")
        seed = [recipient] if is_present(recipient) else []
        return seed + _format_address_field(message, "To")

    @staticmethod
    def _text_from_mime_message(message: EmailMessage, raw_body: str) -> str:
        part = message.get_body(preferencelist=("plain",))
        if part is not None:
            return _decoded_content(part)
        if not message.is_multipart() and message.get_content_maintype() == "text":
            return _decoded_content(message)
        return raw_body

    @staticmethod
    def _html_from_mime_message(message: EmailMessage) -> Optional[str]:
        part = message.get_body(preferencelist=("html",))
        if part is None:
            return None
        html = _decoded_content(part)
        return html if is_present(html) else None

    # ------------------------------------------------------------------
    # Parsed field path
    # ------------------------------------------------------------------

    def normalize_params_from_request(self) -> CanonicalEmail:
        attachments, remaining = collect_attachment_files(self.params)
        self.consumed_fields = [key for key in self.params if key not in remaining]
        self.params = remaining

        return CanonicalEmail(
            to=self.to_recipients(),
            cc=self.cc_recipients(),
            bcc=_wrap(self.param_or_header("Bcc")),
            from_=self.determine_sender(),
            subject=self.params.get("subject"),
            text=self.params.get("body-plain"),
            html=self.params.get("body-html"),
            attachments=attachments,
            headers=self.headers.serialize(),
            vendor_specific={
                "stripped_text": self.params.get("stripped-text"),
                "stripped_signature": self.params.get("stripped-signature"),
                "stripped_html": self.params.get("stripped-html"),
                "recipient": self.params.get("recipient"),
            },
        )

    @property
    def headers(self) -> HeaderSet:
        if self._headers is None:
            self._headers = HeaderSet.from_json(self.params.get("message-headers"))
        return self._headers

    def param_or_header(self, key: str) -> Any:
        """The payload field if present, else the same header, else None."""
        if is_present(self.params.get(key)):
            return self.params[key]
        if is_present(self.headers.get(key)):
            return self.headers[key]
        return None

    def determine_sender(self) -> Optional[str]:
        sender = self.param_or_header("From")
        if sender is None:
            sender = self.params.get("sender")
        return sender

    def to_recipients(self) -> list[str]:
        to_emails = self.param_or_header("To")
        if to_emails is None:
            to_emails = self.params.get("recipient")
        if to_emails is None:
            raise MissingRecipientError(
                "Mailgun payload has no To field, To header or recipient"
            )
        return split_addresses(to_emails)

    def cc_recipients(self) -> list[str]:
        return split_addresses(self.param_or_header("Cc") or "")
