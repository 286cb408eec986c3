"""Server-sent-event framing for a completed reply.

The upstream call is not streamed; the finished content is cut into small
pieces and replayed as ``chat.completion.chunk`` frames.
"""

from __future__ import annotations

import json
import time
from typing import Iterator, List

DONE_FRAME = "data: [DONE]\n\n"


def split_content(content: str, size: int = 50) -> List[str]:
    if not content:
        return [content]
    return [content[i:i + size] for i in range(0, len(content), size)]


def chunk_event(piece: str, model: str) -> dict:
    now = time.time()
    return {
        "id": f"chatcmpl-{int(now * 1000)}",
        "object": "chat.completion.chunk",
        "created": int(now),
        "model": model,
        "choices": [
            {
                "index": 0,
                "delta": {"content": piece},
                "finish_reason": None,
            }
        ],
    }


def sse_frames(content: str, model: str = "", delay: float = 0.05, size: int = 50) -> Iterator[str]:
    for piece in split_content(content, size):
        yield f"data: {json.dumps(chunk_event(piece, model))}\n\n"
        if delay > 0:
            time.sleep(delay)
    yield DONE_FRAME
