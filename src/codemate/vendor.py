"""Anthropic client wrapper with typed error classification.

Routes only ever see ``VendorError`` or ``CreditExhaustedError``; how the
vendor words its billing failures is decided here and nowhere else.
"""

import logging
from typing import Any

import anthropic

from .config import get_api_key, get_model

logger = logging.getLogger(__name__)

NO_TEXT_RESPONSE = "Unable to process response"

_CREDIT_PHRASES = ("credit balance", "insufficient credit", "insufficient_quota")


class VendorError(Exception):
    """The model call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CreditExhaustedError(VendorError):
    """The vendor refused the call because the account is out of credit."""


def classify_error(exc: Exception) -> VendorError:
    """Map an SDK exception onto the codemate error hierarchy."""
    status = getattr(exc, "status_code", None)
    error_type, message = _error_details(exc)

    if status == 402 or error_type == "billing_error":
        return CreditExhaustedError(message, status)
    if any(phrase in message.lower() for phrase in _CREDIT_PHRASES):
        return CreditExhaustedError(message, status)
    return VendorError(message, status)


def extract_text(response: Any) -> str:
    """Return the text of the first content block, if it is a text block."""
    content = getattr(response, "content", None) or []
    if content and getattr(content[0], "type", None) == "text":
        return content[0].text
    return NO_TEXT_RESPONSE


class VendorClient:
    """Thin async wrapper over the Anthropic Messages API."""

    def __init__(self, api_key: str | None, model: str, client: Any = None):
        self.model = model
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def complete(self, system: str, messages: list[dict], max_tokens: int) -> str:
        """Send one request and return the reply text.

        Raises ``CreditExhaustedError`` when billing blocks the call and
        ``VendorError`` for every other SDK failure.
        """
        try:
            response = await self._client.messages.create(
                model=self.model,
                system=system,
                max_tokens=max_tokens,
                messages=messages,
            )
        except anthropic.APIError as e:
            error = classify_error(e)
            logger.error("Vendor call failed (%s): %s", type(error).__name__, error)
            raise error from e
        return extract_text(response)


def create_vendor_client() -> VendorClient:
    """Build a client from the environment."""
    api_key = get_api_key()
    if not api_key:
        logger.warning("No ANTHROPIC_API_KEY set; vendor calls will fail until one is configured")
        api_key = "dummy-key"
    return VendorClient(api_key=api_key, model=get_model())


def _error_details(exc: Exception) -> tuple[str | None, str]:
    """Return ``(error_type, message)`` from an SDK exception body."""
    body = getattr(exc, "body", None)
    error_type = None
    message = getattr(exc, "message", None) or str(exc)

    if isinstance(body, dict):
        inner = body.get("error") if isinstance(body.get("error"), dict) else body
        error_type = inner.get("type")
        if isinstance(inner.get("message"), str):
            message = inner["message"]

    return error_type, message
