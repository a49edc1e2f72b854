"""
Canonical inbound email model.

These models represent a normalized inbound email after the provider's
payload shape (raw MIME or discrete form fields) has been resolved. The
downstream pipeline only sees these field names; everything Mailgun-only is
kept under vendor_specific.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AttachmentFile(BaseModel):
    """A file extracted from a MIME part, owning its decoded bytes."""

    filename: str
    content_type: Optional[str] = None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    def read(self) -> bytes:
        return self.content


class CanonicalEmail(BaseModel):
    """
    Provider-agnostic email record.

    ``to``, ``cc``, ``bcc`` and ``attachments`` are always lists. Attachments
    are AttachmentFile instances on the MIME path; on the form-field path they
    are whatever file handles or descriptors the transport layer supplied.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    to: list[str] = []
    cc: list[str] = []
    bcc: list[str] = []
    from_: Optional[str] = Field(default=None, alias="from")
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    attachments: list[Any] = []
    headers: str = ""
    vendor_specific: dict[str, Any] = {}

    def to_params(self) -> dict[str, Any]:
        """Field set keyed the way a downstream email record expects it."""
        return {
            "to": list(self.to),
            "cc": list(self.cc),
            "bcc": list(self.bcc),
            "from": self.from_,
            "subject": self.subject,
            "text": self.text,
            "html": self.html,
            "attachments": list(self.attachments),
            "headers": self.headers,
            "vendor_specific": dict(self.vendor_specific),
        }
