"""Stateless chat service.

The caller sends the whole conversation on every request. The reply is either
returned as a chat.completion object carrying sanitized HTML next to the raw
markdown, or replayed as server-sent events when ``stream=true``.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.cors import install_cors
from app.validation import describe_validation_errors
from assistant.clients.completions import CompletionsClient
from assistant.errors import ModelCallFailed
from assistant.render import has_markdown, render_markdown
from assistant.streaming import sse_frames
from config.settings import ConfigMissing, get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("handbook_assistant.stateless")

try:
    settings = get_settings()
except ConfigMissing as exc:
    logger.error("%s. Please check your .env file and try again.", exc)
    sys.exit(1)

logger.info(
    "Config: endpoint=%s deployment=%s api_version=%s key_set=%s",
    "*** Set ***" if settings.azure_endpoint else "Not set",
    settings.azure_deployment,
    settings.azure_api_version,
    bool(settings.azure_api_key),
)

app = FastAPI(title="Handbook Assistant Stateless API", version="1.0.0")
install_cors(app, settings)


class CompletionRequest(BaseModel):
    # Forwarded unchanged, so OpenAI content arrays and any role pass through.
    messages: List[Dict[str, Any]] = Field(..., description="Full conversation, oldest first")


@lru_cache(maxsize=1)
def get_completions_client() -> CompletionsClient:
    return CompletionsClient.from_settings(settings)


def format_completion(content: str) -> Dict[str, Any]:
    html = render_markdown(content)
    return {
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": html,
                    "originalContent": content,
                    "context": {"data_points": [], "thoughts": ""},
                },
                "text": content,
                "content": html,
                "role": "assistant",
                "finish_reason": "stop",
                "metadata": {
                    "format": "html",
                    "hasMarkdown": has_markdown(content, html),
                },
            }
        ],
        "object": "chat.completion",
    }


def _error_body(message: str, code: str, status_code: int) -> Dict[str, Any]:
    return {"error": {"message": message, "code": code, "statusCode": status_code}}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=422,
        content=_error_body(describe_validation_errors(exc), "validation_error", 422),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), f"http_{exc.status_code}", exc.status_code),
    )


@app.post("/chat")
def chat(
    req: CompletionRequest,
    stream: bool = False,
    client: CompletionsClient = Depends(get_completions_client),
):
    logger.info("Incoming chat: turns=%s stream=%s", len(req.messages), stream)
    try:
        result = client.create(req.messages)
    except ModelCallFailed as e:
        status = e.status_code if e.status_code and e.status_code >= 400 else 502
        logger.error("Azure OpenAI error (status=%s): %s", status, e.message)
        return JSONResponse(
            status_code=status,
            content=_error_body(e.message, e.code or "unknown_error", status),
        )
    except Exception as e:
        logger.exception("Server error: %s", e)
        return JSONResponse(status_code=500, content=_error_body(str(e), "server_error", 500))

    if stream:
        return StreamingResponse(
            sse_frames(result.content, model=result.model, delay=settings.stream_chunk_delay),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )
    return format_completion(result.content)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    logger.info("Backend listening on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
