from __future__ import annotations

import io
from dataclasses import dataclass
from zipfile import BadZipFile

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from fastapi import HTTPException, UploadFile, status
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from app.core.errors import InvalidInput

ALLOWED_CONTENT_TYPES = {
    "text/plain": "txt",
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}
ALLOWED_EXTENSIONS = {f".{ext}": ext for ext in ALLOWED_CONTENT_TYPES.values()}


@dataclass(frozen=True)
class ExtractedText:
    text: str
    page_count: int
    confidence: float


def _resolve_kind(file: UploadFile) -> str | None:
    content_type = (file.content_type or "").lower()
    if content_type in ALLOWED_CONTENT_TYPES:
        return ALLOWED_CONTENT_TYPES[content_type]
    name = (file.filename or "").lower()
    for suffix, kind in ALLOWED_EXTENSIONS.items():
        if name.endswith(suffix):
            return kind
    return None


def extract_pdf(raw: bytes) -> ExtractedText:
    try:
        reader = PdfReader(io.BytesIO(raw))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PdfReadError as exc:
        raise InvalidInput("Could not read PDF file") from exc
    with_text = sum(1 for page in pages if page.strip())
    # Scanned pages yield no text layer; confidence tracks how much of the file had one.
    confidence = round(0.95 * with_text / len(pages), 2) if pages else 0.0
    return ExtractedText(text="\n\n".join(pages), page_count=len(pages), confidence=confidence)


def extract_docx(raw: bytes) -> ExtractedText:
    try:
        doc = Document(io.BytesIO(raw))
    except (PackageNotFoundError, BadZipFile, KeyError) as exc:
        raise InvalidInput("Could not read DOCX file") from exc
    paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]
    return ExtractedText(text="\n\n".join(paragraphs), page_count=1, confidence=0.95 if paragraphs else 0.0)


async def extract_text_from_upload(file: UploadFile, max_upload_bytes: int) -> ExtractedText:
    raw = await file.read(max_upload_bytes + 1)
    if len(raw) > max_upload_bytes:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")

    kind = _resolve_kind(file)
    if kind == "txt":
        return ExtractedText(text=raw.decode("utf-8", errors="ignore"), page_count=1, confidence=1.0)
    if kind == "pdf":
        return extract_pdf(raw)
    if kind == "docx":
        return extract_docx(raw)

    raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Unsupported file type")
