from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Union

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from assistant.clients.chat_model import ChatModelClient
from assistant.core.memory import ChatTurn, SessionStore
from assistant.core.prompt import build_system_prompt
from assistant.rag.document import DocumentProvider
from assistant.rag.retriever import retrieve

logger = logging.getLogger(__name__)


@dataclass
class ChatReply:
    reply: str
    sources: List[str] = field(default_factory=list)


def to_lc_messages(history: Iterable[Union[ChatTurn, dict]]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for item in history or []:
        if isinstance(item, ChatTurn):
            item = item.model_dump()
        role = (item.get("role") or "").lower()
        content = item.get("content") or ""
        if not content:
            continue
        if role in ("user", "human"):
            messages.append(HumanMessage(content=content))
        elif role in ("assistant", "ai", "bot"):
            messages.append(AIMessage(content=content))
        elif role == "system":
            messages.append(SystemMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))
    return messages


class ChatOrchestrator:
    """Runs one chat exchange: history, optional retrieval, model call, memory update."""

    def __init__(
        self,
        model: ChatModelClient,
        sessions: SessionStore,
        documents: DocumentProvider,
        company_name: str = "Contoso Electronics",
        top_k: int = 3,
    ):
        self.model = model
        self.sessions = sessions
        self.documents = documents
        self.company_name = company_name
        self.top_k = top_k

    def build_messages(
        self,
        history: Iterable[ChatTurn],
        user_text: str,
        use_rag: bool,
        sources: List[str],
    ) -> List[BaseMessage]:
        system = SystemMessage(
            content=build_system_prompt(use_rag, sources, self.company_name)
        )
        return [system, *to_lc_messages(history), HumanMessage(content=user_text)]

    def handle_chat_request(self, session_id: str, user_text: str, use_rag: bool = True) -> ChatReply:
        # Held across the model call so turns for one session stay paired and ordered.
        with self.sessions.lock(session_id):
            history = self.sessions.history(session_id)

            sources: List[str] = []
            if use_rag:
                sources = retrieve(user_text, self.documents.chunks(), top_k=self.top_k)

            messages = self.build_messages(history, user_text, use_rag, sources)
            logger.info(
                "Invoking model: session=%s history_turns=%s sources=%s",
                session_id,
                len(history),
                len(sources),
            )
            result = self.model.complete(messages)

            # The session entry is only created once the exchange has succeeded.
            self.sessions.append(
                session_id,
                ChatTurn(role="user", content=user_text),
                ChatTurn(role="assistant", content=result.reply),
            )

        return ChatReply(reply=result.reply, sources=sources)
