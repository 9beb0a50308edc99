"""File text extraction — best-effort UTF-8 text from uploaded documents.

Extractors never raise. A file that cannot be parsed yields a sentinel
string starting with ``"[Error"`` (see :func:`is_extraction_failure`),
and a file with no text yields ``""``; the ingestion pipeline turns both
into a zero-record report.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Callable, Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

EXTRACTION_ERROR_PREFIX = "[Error"

PDF_MIMETYPES = {"application/pdf"}
DOCX_MIMETYPES = {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}
EXCEL_MIMETYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
CSV_MIMETYPES = {"text/csv", "application/csv"}
TEXT_MIMETYPES = {"text/plain", "text/markdown"}


def is_extraction_failure(text: str | None) -> bool:
    """True for empty text or an extractor error sentinel."""
    if not text or not text.strip():
        return True
    return text.startswith(EXTRACTION_ERROR_PREFIX)


def is_pdf(path: str | Path, mimetype: str | None = None) -> bool:
    return mimetype in PDF_MIMETYPES or str(path).lower().endswith(".pdf")


def _format_rows(rows: Iterable[dict], headers: list[str]) -> str:
    lines = []
    for index, row in enumerate(rows, start=1):
        cells = "".join(f"{h}: {row[h]}; " for h in headers if row.get(h) is not None)
        lines.append(f"Row {index}: {cells}")
    return "\n".join(lines) + "\n" if lines else ""


# ── per-format extractors ─────────────────────────────────────────────


def load_pdf(path: str | Path) -> str:
    """Concatenate the text of every PDF page."""
    from langchain_community.document_loaders import PyPDFLoader

    try:
        pages = PyPDFLoader(str(path)).load()
    except Exception as exc:
        logger.error("Error during PDF parsing: %s", path, exc_info=True)
        return f"[Error parsing PDF: {exc}]"

    text = "\n".join(page.page_content for page in pages).strip()
    logger.info("Extracted %d characters from PDF %s (%d pages)", len(text), path, len(pages))
    return text


def load_docx(path: str | Path) -> str:
    """Paragraph text of a Word document."""
    from docx import Document

    try:
        document = Document(str(path))
    except Exception as exc:
        logger.error("Error processing DOCX file: %s", path, exc_info=True)
        return f"[Error processing DOCX file: {exc}]"
    return "\n".join(p.text for p in document.paragraphs)


def load_excel(path: str | Path) -> str:
    """Render every sheet as ``Row i: header: value;`` lines."""
    import pandas as pd

    try:
        sheets = pd.read_excel(path, sheet_name=None)
    except Exception as exc:
        logger.error("Error processing Excel file: %s", path, exc_info=True)
        return f"[Error processing Excel file: {exc}]"

    content = ""
    for sheet_name, frame in sheets.items():
        content += f"## Sheet: {sheet_name}\n\n"
        if frame.empty:
            content += "No data in this sheet\n\n"
            continue
        frame = frame.astype(object).where(frame.notna(), None)
        headers = [str(c) for c in frame.columns]
        frame.columns = headers
        content += _format_rows(frame.to_dict(orient="records"), headers) + "\n"
    return content or "Empty Excel file"


def load_csv(path: str | Path) -> str:
    """Render CSV rows as ``Row i: header: value;`` lines with a size header."""
    try:
        with open(path, newline="", encoding="utf-8") as fh:
            reader = csv.DictReader(fh)
            rows = list(reader)
            headers = list(reader.fieldnames or [])
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        logger.error("Error processing CSV file: %s", path, exc_info=True)
        return f"[Error processing CSV file: {exc}]"

    if not rows:
        return "Empty CSV file or no data rows"
    header = f"CSV file with {len(rows)} rows and {len(headers)} columns\n\n"
    return header + _format_rows(rows, headers)


def load_text(path: str | Path) -> str:
    """Read *path* as UTF-8; unreadable files yield ``""``."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.warning("Failed to read file as text: %s", path, exc_info=True)
        return ""


# ── dispatch ──────────────────────────────────────────────────────────

_LOADERS: list[tuple[set[str], tuple[str, ...], Callable[[str | Path], str]]] = [
    (PDF_MIMETYPES, (".pdf",), load_pdf),
    (DOCX_MIMETYPES, (".docx",), load_docx),
    (EXCEL_MIMETYPES, (".xls", ".xlsx"), load_excel),
    (CSV_MIMETYPES, (".csv",), load_csv),
    (TEXT_MIMETYPES, (".txt", ".md"), load_text),
]


def extract_text(path: str | Path, mimetype: str | None = None) -> str:
    """Extract text from the file at *path*.

    Parameters
    ----------
    path:
        Location of the uploaded file.
    mimetype:
        Declared content type; the file suffix is used when it is missing
        or not recognised.

    Returns
    -------
    str
        Extracted text, ``""`` when nothing could be read, or an
        ``"[Error ...]"`` sentinel when parsing failed.
    """
    suffix = Path(path).suffix.lower()
    for mimetypes, suffixes, loader in _LOADERS:
        if mimetype in mimetypes or suffix in suffixes:
            return loader(path)

    logger.info("Attempting to read file as text: %s, mime type: %s", path, mimetype)
    return load_text(path)
