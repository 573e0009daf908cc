# botanai/services/inference.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class InferenceError(RuntimeError):
    """Base class for failures of the inference provider call."""


class ConfigurationError(InferenceError):
    """No usable credential is configured."""


class UpstreamError(InferenceError):
    """The provider answered with an error status or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail or message


class UnknownModelError(UpstreamError):
    """The provider rejected the configured model identifier."""


@dataclass
class ProxyResponse:
    status_code: int
    content: bytes
    content_type: str


class InferenceClient:
    """Client for the Anthropic Messages endpoint."""

    def __init__(
            self,
            api_key: Optional[str],
            base_url: str = "https://api.anthropic.com",
            anthropic_version: str = "2023-06-01",
            timeout_seconds: float = 60.0,
            transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.strip().rstrip("/")
        self.anthropic_version = anthropic_version
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        if self.base_url.endswith("/v1"):
            return f"{self.base_url}/messages"
        return f"{self.base_url}/v1/messages"

    def _headers(self) -> Dict[str, str]:
        return {
            "content-type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.anthropic_version,
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        if not self.configured:
            raise ConfigurationError("Server misconfiguration: API key missing")
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            return await client.post(self.endpoint, headers=self._headers(), json=payload)

    async def complete(self, payload: Dict[str, Any]) -> str:
        """
        Send a Messages request and return the text of the reply.

        Raises:
            ConfigurationError: If no API key is configured.
            UnknownModelError: If the provider does not know the requested model.
            UpstreamError: On transport failures, error statuses or replies without text.
        """
        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Request to the inference provider failed: {e}") from e

        if response.status_code >= 400:
            detail = extract_error_detail(response)
            message = f"Inference provider error: {response.status_code} {detail}"
            if "model:" in detail:
                raise UnknownModelError(message, status_code=response.status_code, detail=detail)
            raise UpstreamError(message, status_code=response.status_code, detail=detail)

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(f"Inference provider returned invalid JSON: {e}",
                                status_code=response.status_code) from e

        text = extract_reply_text(body)
        logger.debug(f"Raw model reply: {text}")
        return text

    async def forward(self, payload: Dict[str, Any]) -> ProxyResponse:
        """Forward a request body verbatim and return the provider's answer unchanged."""
        response = await self._post(payload)
        return ProxyResponse(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type", "application/json"),
        )


def extract_reply_text(body: Any) -> str:
    """Return the first text block of a Messages response."""
    if not isinstance(body, dict):
        raise UpstreamError("Invalid response payload from the inference provider.")

    content = body.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
                return block["text"]
        if content and isinstance(content[0], dict) and isinstance(content[0].get("text"), str):
            return content[0]["text"]

    if isinstance(body.get("text"), str):
        return body["text"]
    raise UpstreamError("No response text from the inference provider.")


def extract_error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
            return error["message"]
        if isinstance(error, str) and error:
            return error
        if isinstance(payload.get("detail"), str) and payload["detail"]:
            return payload["detail"]
    body = response.text.strip()
    return body[:300] if body else "Unknown provider error"

