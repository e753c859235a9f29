"""Document Sniffing — verifies the PDF magic-byte gate."""

import pytest

from campus_print.core.document_sniff import check_pdf_signature
from campus_print.core.errors import ErrorContext, InvalidDocumentError


def test_pdf_header_accepted():
    check_pdf_signature(b"%PDF-1.7\n...")


def test_empty_rejected():
    with pytest.raises(InvalidDocumentError, match="empty"):
        check_pdf_signature(b"")


def test_other_format_rejected():
    with pytest.raises(InvalidDocumentError):
        check_pdf_signature(b"\x89PNG\r\n\x1a\n")


def test_context_carried():
    ctx = ErrorContext(blob_ref="mem://x/1")
    with pytest.raises(InvalidDocumentError) as exc_info:
        check_pdf_signature(b"GIF89a", ctx)
    assert exc_info.value.context.blob_ref == "mem://x/1"
    assert exc_info.value.http_status == 400
