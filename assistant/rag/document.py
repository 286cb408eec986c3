"""Load-once access to the handbook PDF and its chunks."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional, Protocol

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from assistant.errors import DocumentUnavailable
from assistant.rag.chunker import chunk_text

logger = logging.getLogger(__name__)


def extract_pdf_text(path: Path) -> str:
    reader = PdfReader(str(path))
    pages: List[str] = []
    for page in reader.pages:
        pages.append(page.extract_text() or "")
    return "\n".join(pages)


class DocumentProvider(Protocol):
    def chunks(self) -> List[str]:
        ...


class PdfDocumentProvider:
    """Parses a single PDF on first use and caches its text and chunks.

    Loading happens at most once per provider; concurrent first callers wait
    on the same lock. A missing or unreadable file raises DocumentUnavailable
    and leaves the cache empty, so a later call can succeed once the file
    appears.
    """

    def __init__(self, path: str | Path, chunk_size: int = 800):
        self.path = Path(path)
        self.chunk_size = chunk_size
        self._text: Optional[str] = None
        self._chunks: List[str] = []
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._text is not None

    def text(self) -> str:
        self._ensure_loaded()
        return self._text or ""

    def chunks(self) -> List[str]:
        self._ensure_loaded()
        return list(self._chunks)

    def _ensure_loaded(self) -> None:
        if self._text is not None:
            return
        with self._lock:
            if self._text is not None:
                return
            if not self.path.is_file():
                raise DocumentUnavailable(
                    "Employee handbook PDF not found on the server. "
                    "Please check the 'data' folder."
                )
            try:
                text = extract_pdf_text(self.path)
            except (OSError, ValueError, PdfReadError) as exc:
                raise DocumentUnavailable(
                    f"Employee handbook PDF could not be read: {exc}"
                ) from exc

            self._chunks = chunk_text(text, self.chunk_size)
            self._text = text
            logger.info(
                "Loaded handbook %s: chars=%s chunks=%s",
                self.path,
                len(text),
                len(self._chunks),
            )
