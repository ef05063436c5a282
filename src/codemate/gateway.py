"""HTTP gateway from the session state manager to the codemate backend."""

import logging
from datetime import datetime

import httpx

from .config import get_api_url
from .core import Message

logger = logging.getLogger(__name__)

APOLOGY = "I encountered an error processing your request. Please try again."


class GatewayError(Exception):
    """A code generation or fix request could not be completed."""


class AssistantGateway:
    """Turns a message history into exactly one assistant reply.

    ``get_chat_response`` never raises: transport, HTTP and decoding failures
    all come back as a fixed apology message. One attempt per call, no
    retries.
    """

    def __init__(self, base_url: str | None = None, client: httpx.AsyncClient | None = None,
                 timeout: float = 120.0):
        self.base_url = (base_url or get_api_url()).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def get_chat_response(self, messages: list[Message]) -> Message:
        """Post the history to ``/api/chat`` and return the reply."""
        try:
            data = await self._post("/api/chat", {
                "messages": [m.to_payload() for m in messages],
            })
            reply = data["message"]
            content = reply["content"]
            if not isinstance(content, str):
                raise TypeError(f"reply content is {type(content).__name__}, not str")
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error("Error getting chat response: %s", e)
            return Message(role="assistant", content=APOLOGY, timestamp=datetime.now())

        return Message(role="assistant", content=content, timestamp=datetime.now())

    async def generate_code(self, prompt: str, language: str = "Java") -> str:
        """Generate code from a natural language description."""
        try:
            data = await self._post("/api/generate-code", {"prompt": prompt, "language": language})
            return data["code"]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error("Error generating code: %s", e)
            raise GatewayError("Failed to generate code") from e

    async def fix_error_in_code(self, code: str, error_message: str, language: str = "Java") -> str:
        """Ask the backend to fix ``code`` given a console error."""
        try:
            data = await self._post("/api/fix-error", {
                "code": code,
                "errorMessage": error_message,
                "language": language,
            })
            return data["fixedCode"]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error("Error fixing code: %s", e)
            raise GatewayError("Failed to fix code error") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AssistantGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _post(self, path: str, payload: dict) -> dict:
        resp = await self._client.post(f"{self.base_url}{path}", json=payload)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response body from {path}")
        return data
