from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from assistant.errors import MalformedUpstreamResponse, ModelCallFailed
from config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    content: str
    model: str = ""
    usage: Dict[str, Any] = field(default_factory=dict)


def _error_details(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    error = data.get("error") if isinstance(data, dict) else None
    return error if isinstance(error, dict) else {}


def _extract_content(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise MalformedUpstreamResponse()
    if not isinstance(content, str):
        raise MalformedUpstreamResponse()
    return content


class CompletionsClient:
    """Posts chat messages straight to an Azure OpenAI chat-completions deployment."""

    def __init__(
        self,
        url: str,
        api_key: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionsClient":
        return cls(
            url=settings.completions_url(),
            api_key=settings.azure_api_key,
            temperature=settings.completions_temperature,
            max_tokens=settings.completions_max_tokens,
            timeout=settings.model_timeout,
        )

    def create(self, messages: List[Dict[str, Any]]) -> CompletionResult:
        payload = {
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        headers = {"Content-Type": "application/json", "api-key": self.api_key}

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise ModelCallFailed(
                f"Chat completions call failed: {exc}", code="upstream_unreachable"
            ) from exc

        logger.info("Azure response status: %s", response.status_code)
        if response.is_error:
            error = _error_details(response)
            raise ModelCallFailed(
                error.get("message") or "Error processing your request",
                status_code=response.status_code,
                code=error.get("code") or "unknown_error",
            )

        try:
            data = response.json()
        except ValueError:
            raise MalformedUpstreamResponse("Model response was not valid JSON")

        return CompletionResult(
            content=_extract_content(data),
            model=data.get("model") or "",
            usage=data.get("usage") or {},
        )
