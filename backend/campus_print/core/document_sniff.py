"""Document Sniffing — magic-byte check run before any PDF parsing."""

from campus_print.core.errors import ErrorContext, InvalidDocumentError


PDF_SIGNATURE = b"%PDF-"


def check_pdf_signature(data: bytes, context: ErrorContext | None = None) -> None:
    """Raise InvalidDocumentError for empty input or a non-PDF signature."""
    if not data:
        raise InvalidDocumentError("Document is empty", context)
    if not data.startswith(PDF_SIGNATURE):
        raise InvalidDocumentError("File is not a PDF document", context)
