"""
Attachment materialization for Mailgun payloads.

Three sources are supported:

  indexed uploads   ``attachment-count`` = N plus ``attachment-1`` ..
                    ``attachment-N`` file handles posted as multipart fields
  pre-normalized    an ``attachments`` list already shaped by the caller
                    (e.g. descriptors re-posted from Mailgun's store action)
  raw MIME          attachment parts of a parsed ``body-mime`` message

Only the MIME source transforms content; the other two are passed through.
"""

import logging
import re
from email.message import EmailMessage
from typing import Any

from mailhook.models.inbound_email import AttachmentFile
from mailhook.services.indifferent_params import IndifferentParams, is_present

logger = logging.getLogger(__name__)

UNTITLED_FILENAME = "untitled"

_LEADING_INTEGER = re.compile(r"\s*[+-]?\d+")


def parse_attachment_count(value: Any) -> int:
    """
    Leading integer of value; anything without one counts as 0.

    "2", 2 and "2 files" all give 2; "two" gives 0.
    """
    match = _LEADING_INTEGER.match(str(value))
    return int(match.group(0)) if match else 0


def attachment_field_names(params: IndifferentParams) -> list[str]:
    """Names of the indexed upload fields announced by ``attachment-count``."""
    count = parse_attachment_count(params["attachment-count"])
    return [f"attachment-{index + 1}" for index in range(count)]


def collect_attachment_files(params: IndifferentParams) -> tuple[list, IndifferentParams]:
    """
    Return (attachments, remaining_params).

    Indexed upload fields are consumed: remaining_params is a copy of params
    without them. The input mapping itself is left untouched. When
    ``attachment-count`` is absent the ``attachments`` field is used as-is.
    """
    if not is_present(params.get("attachment-count")):
        return list(params.get("attachments") or []), params

    names = attachment_field_names(params)
    remaining = params.copy()
    files = [remaining.pop(name, None) for name in names]
    logger.debug(f"Collected {len(files)} indexed attachment upload(s)")
    return files, remaining


def attachment_files_from_mime_message(message: EmailMessage) -> list[AttachmentFile]:
    """Decode every attachment part of a parsed MIME message."""
    files: list[AttachmentFile] = []
    for part in message.walk():
        if part.is_multipart():
            continue
        if not (part.is_attachment() or part.get_filename()):
            continue

        payload = part.get_payload(decode=True) or b""
        files.append(
            AttachmentFile(
                filename=part.get_filename() or UNTITLED_FILENAME,
                content_type=part.get_content_type(),
                content=bytes(payload),
            )
        )
    return files
