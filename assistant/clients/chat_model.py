from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_openai import AzureChatOpenAI

from assistant.errors import MalformedUpstreamResponse, ModelCallFailed
from config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class ChatResult:
    reply: str
    usage: Dict[str, Any] = field(default_factory=dict)


class ChatModelClient(Protocol):
    def complete(self, messages: List[BaseMessage]) -> ChatResult:
        ...


def build_chat_model(settings: Settings) -> AzureChatOpenAI:
    return AzureChatOpenAI(
        azure_endpoint=settings.azure_endpoint,
        api_key=settings.azure_api_key,
        azure_deployment=settings.azure_deployment,
        api_version=settings.azure_api_version,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.model_timeout,
        max_retries=0,
    )


class LangChainChatClient:
    """Adapts a LangChain chat model to a single request/response call."""

    def __init__(self, model: BaseChatModel):
        self.model = model

    def complete(self, messages: List[BaseMessage]) -> ChatResult:
        try:
            response = self.model.invoke(messages)
        except Exception as exc:
            status_code = getattr(exc, "status_code", None)
            logger.warning("Chat model call failed (status=%s): %s", status_code, exc)
            raise ModelCallFailed(str(exc), status_code=status_code) from exc

        content = getattr(response, "content", None)
        if not isinstance(content, str):
            raise MalformedUpstreamResponse()

        usage = getattr(response, "usage_metadata", None) or {}
        return ChatResult(reply=content, usage=dict(usage))
