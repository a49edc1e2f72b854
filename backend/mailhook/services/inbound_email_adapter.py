"""
Inbound email adapter registry.

Maps a provider identifier to the function that normalizes that provider's
webhook payload into a CanonicalEmail. The webhook endpoint only talks to
normalize_webhook, so adding a provider never touches the router.

Supported providers:
  - mailgun   (default; raw MIME or parsed-field payloads)

Adding a new provider:
  1. Write a normalizer taking the raw payload mapping and returning
     CanonicalEmail.
  2. register_adapter("<provider>", normalizer).
  3. Set EMAIL_PROVIDER=<provider> in the environment.
"""

import logging
import os
from collections.abc import Mapping
from typing import Callable

from mailhook.models.inbound_email import CanonicalEmail
from mailhook.services.mailgun_adapter import MailgunAdapter

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "mailgun"

Normalizer = Callable[[Mapping], CanonicalEmail]

_NORMALIZERS: dict[str, Normalizer] = {}


def register_adapter(provider: str, normalizer: Normalizer) -> None:
    """Offer normalizer as the plugin for provider (replaces any previous one)."""
    _NORMALIZERS[provider.lower().strip()] = normalizer


def get_adapter(provider: str) -> Normalizer:
    """
    Return the normalizer registered for provider.

    Raises ValueError for unknown provider names.
    """
    resolved = provider.lower().strip()
    normalizer = _NORMALIZERS.get(resolved)
    if normalizer is None:
        raise ValueError(
            f"Unknown email provider {resolved!r}. "
            f"Supported providers: {sorted(_NORMALIZERS)}"
        )
    return normalizer


def normalize_webhook(payload: Mapping, provider: str | None = None) -> CanonicalEmail:
    """
    Route to the correct normalizer based on the provider argument or the
    EMAIL_PROVIDER environment variable.

    Priority:
      1. provider argument (explicit, used in tests and the webhook endpoint)
      2. EMAIL_PROVIDER env var
      3. Default: "mailgun"
    """
    resolved = provider or os.getenv("EMAIL_PROVIDER", DEFAULT_PROVIDER)
    normalizer = get_adapter(resolved)
    logger.debug(f"Normalizing inbound webhook with provider {resolved!r}")
    return normalizer(payload)


register_adapter("mailgun", MailgunAdapter.normalize_params)
