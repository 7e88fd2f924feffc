"""Read study notes from an uploaded .txt or .pdf file."""

import io
import warnings
from pathlib import Path

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadWarning
from pdfminer.high_level import extract_text as pdfminer_extract_text

from errors import ValidationError

SUPPORTED_SUFFIXES = {".txt", ".pdf"}


def normalize_upload_filename(filename: str) -> str:
    # Keep Unicode characters while preventing path traversal.
    name = Path(filename or "").name.strip().replace("\x00", "")
    if not name:
        raise ValidationError("Invalid file name.")
    return name


def pdf_text(data: bytes) -> str:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", PdfReadWarning)
        reader = PdfReader(io.BytesIO(data))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    text = "\n".join(page for page in pages if page)
    incomplete = any("Advanced encoding" in str(w.message) for w in caught)
    if text and not incomplete:
        return text

    # PyPDF2 drops CJK and other composite encodings; pdfminer reads them.
    return (pdfminer_extract_text(io.BytesIO(data)) or "").strip() or text


def load_uploaded_notes(filename: str, data: bytes) -> str:
    clean_name = normalize_upload_filename(filename)
    suffix = Path(clean_name).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValidationError("Only .txt or .pdf files are supported.")
    if not data:
        raise ValidationError("Uploaded file is empty.")

    if suffix == ".txt":
        return data.decode("utf-8", errors="ignore").strip()

    try:
        return pdf_text(data)
    except Exception as exc:
        raise ValidationError("Uploaded PDF could not be read.") from exc
