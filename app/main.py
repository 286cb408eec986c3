from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.cors import install_cors
from app.validation import describe_validation_errors
from assistant.agent import ChatOrchestrator
from assistant.clients.chat_model import LangChainChatClient, build_chat_model
from assistant.core.memory import SessionStore
from assistant.errors import DocumentUnavailable, ModelCallFailed
from assistant.rag.document import PdfDocumentProvider
from config.settings import ConfigMissing, get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("handbook_assistant")

FALLBACK_REPLY = "Sorry, I encountered an error. Please try again."

try:
    settings = get_settings()
except ConfigMissing as exc:
    logger.error("%s. Please check your .env file and try again.", exc)
    sys.exit(1)

app = FastAPI(title="Handbook Assistant API", version="1.0.0")
install_cors(app, settings)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="User's latest message")
    use_rag: Optional[bool] = Field(
        default=None,
        alias="useRAG",
        description="Ground the answer in the employee handbook (true when omitted, null disables)",
    )
    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Conversation key; history is kept server-side per key",
    )


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    return SessionStore(
        max_sessions=settings.max_sessions,
        session_ttl_hours=settings.session_ttl_hours,
    )


@lru_cache(maxsize=1)
def get_document_provider() -> PdfDocumentProvider:
    return PdfDocumentProvider(settings.handbook_pdf_path, chunk_size=settings.chunk_size)


@lru_cache(maxsize=1)
def get_model_client() -> LangChainChatClient:
    return LangChainChatClient(build_chat_model(settings))


def get_orchestrator(
    sessions: SessionStore = Depends(get_session_store),
    documents: PdfDocumentProvider = Depends(get_document_provider),
    model: LangChainChatClient = Depends(get_model_client),
) -> ChatOrchestrator:
    return ChatOrchestrator(
        model=model,
        sessions=sessions,
        documents=documents,
        company_name=settings.company_name,
        top_k=settings.retrieval_top_k,
    )


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "reply": FALLBACK_REPLY},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error_response(422, "Invalid request", describe_validation_errors(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, f"HTTP {exc.status_code}", str(exc.detail))


@app.post("/chat")
def chat(
    req: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    # Only an absent field defaults to RAG; an explicit null turns it off.
    use_rag = bool(req.use_rag) if "use_rag" in req.model_fields_set else True
    session_id = req.session_id or "default_session"

    logger.info(
        "Incoming chat: session=%s use_rag=%s message_len=%s",
        session_id,
        use_rag,
        len(req.message),
    )
    expired = orchestrator.sessions.cleanup_expired()
    if expired:
        logger.info("Evicted %s idle sessions", expired)

    try:
        result = orchestrator.handle_chat_request(session_id, req.message, use_rag)
    except DocumentUnavailable as e:
        logger.error("Handbook unavailable: %s", e)
        return _error_response(503, "Handbook unavailable", str(e))
    except ModelCallFailed as e:
        logger.error("Model call failed (status=%s): %s", e.status_code, e.message)
        status = e.status_code if e.status_code and e.status_code >= 400 else 502
        return _error_response(status, "Model call failed", e.message)
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        return _error_response(500, "Internal server error", str(e))

    logger.info(
        "Model responded: session=%s reply_chars=%s sources=%s",
        session_id,
        len(result.reply),
        len(result.sources),
    )
    return {"reply": result.reply, "sources": result.sources}


@app.get("/sessions/{session_id}/history")
def session_history(
    session_id: str,
    sessions: SessionStore = Depends(get_session_store),
) -> Dict[str, Any]:
    turns = sessions.history(session_id)
    return {
        "sessionId": session_id,
        "messages": [turn.model_dump() for turn in turns],
        "total": len(turns),
    }


@app.delete("/sessions/{session_id}")
def delete_session(
    session_id: str,
    sessions: SessionStore = Depends(get_session_store),
) -> Dict[str, Any]:
    if not sessions.evict(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    logger.info("Deleted session %s", session_id)
    return {"status": "deleted", "sessionId": session_id}


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    logger.info("AI API server running on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
