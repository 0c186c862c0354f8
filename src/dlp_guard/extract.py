"""Text extraction from documents on disk.

Dispatches on file extension.  PDF and Word backends are imported lazily so
plain-text indexing works without them installed.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Callable

from .errors import ExtractionError

logger = logging.getLogger(__name__)


def _read_txt(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _read_pdf(path: Path) -> str:
    import fitz  # PyMuPDF
    with fitz.open(path) as doc:
        return "\n".join(page.get_text("text") or "" for page in doc)


def _read_docx(path: Path) -> str:
    import docx  # python-docx
    document = docx.Document(str(path))
    return "\n".join(p.text for p in document.paragraphs)


_READERS: dict[str, Callable[[Path], str]] = {
    ".txt": _read_txt,
    ".pdf": _read_pdf,
    ".docx": _read_docx,
}

SUPPORTED_EXTENSIONS = frozenset(_READERS)


def extract_text(path: str | Path) -> str:
    """Return the text content of a file.

    Unsupported extensions yield "".  Any read or parse failure is raised as
    ExtractionError carrying the path.
    """
    path = Path(path)
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        logger.debug("extract.skip unsupported path=%s", path)
        return ""
    try:
        return reader(path)
    except Exception as e:
        raise ExtractionError(str(path), str(e)) from e
