import asyncio
import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import docx  # python-docx
import fitz  # PyMuPDF

from quizgen.core.config import settings
from quizgen.core.errors import ExtractionError, PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
WORD_MIME_MARKER = "wordprocessingml"
TEXT_MIME_MARKER = "text/plain"


def validate_upload(content: bytes, max_file_size_mb: int | None = None) -> None:
    """Reject empty uploads and uploads over the size cap."""
    max_mb = max_file_size_mb or settings.MAX_FILE_SIZE_MB
    if len(content) == 0:
        raise ValidationError("Uploaded file is empty.")
    if len(content) > max_mb * 1024 * 1024:
        raise PayloadTooLargeError(
            f"File too large ({len(content) / (1024*1024):.1f} MB). "
            f"Maximum is {max_mb} MB."
        )


@contextmanager
def temporary_upload(content: bytes, filename: str, upload_dir: str | None = None) -> Iterator[Path]:
    """
    Write ``content`` to a temp file and yield its path.
    The file is removed when the block exits, however it exits.
    """
    directory = upload_dir or settings.UPLOAD_DIR
    os.makedirs(directory, exist_ok=True)
    suffix = Path(filename or "").suffix
    fd, name = tempfile.mkstemp(prefix="quizgen-", suffix=suffix, dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        yield path
    finally:
        path.unlink(missing_ok=True)


def _extract_pdf(path: Path) -> str:
    try:
        with fitz.open(path, filetype="pdf") as doc:
            if doc.page_count == 0:
                raise ExtractionError("PDF has no pages.")
            pages = [page.get_text("text") for page in doc]
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(f"PDF extraction failed: {e}")
    return "\n\n".join(p for p in pages if p.strip())


def _extract_docx(path: Path) -> str:
    try:
        document = docx.Document(str(path))
    except Exception as e:
        raise ExtractionError(f"DOCX extraction failed: {e}")
    return "\n".join(p.text for p in document.paragraphs)


def _extract_plain(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def extract_text(path: Path, content_type: str | None) -> str:
    """
    Extract plain text from the file at ``path`` keyed on its declared MIME type.
    Unsupported types yield an empty string.
    """
    mime = (content_type or "").lower()

    if mime == PDF_MIME:
        text = _extract_pdf(path)
    elif WORD_MIME_MARKER in mime:
        text = _extract_docx(path)
    elif TEXT_MIME_MARKER in mime:
        text = _extract_plain(path)
    else:
        logger.warning(f"[EXTRACT] Unsupported MIME type '{content_type}', no text extracted")
        return ""

    logger.info(f"[EXTRACT] ✓ {len(text)} chars from {mime} upload")
    return text


async def extract_text_from_upload(
    content: bytes,
    filename: str,
    content_type: str | None,
    upload_dir: str | None = None,
) -> str:
    """
    Stage the upload in a temp file, extract its text off the event loop,
    and remove the temp file on every exit path.
    """
    with temporary_upload(content, filename, upload_dir) as path:
        return await asyncio.to_thread(extract_text, path, content_type)


@dataclass
class UploadedDocument:
    """An uploaded file as received by the HTTP layer."""
    filename: str
    content_type: str | None
    content: bytes
