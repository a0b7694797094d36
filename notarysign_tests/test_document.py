import pytest

from notarysign.document import Document
from notarysign.errors import ValidationFailure
from notarysign_tests.samples import (
    SIGNED_PDF,
    TWICE_SIGNED_PDF,
    UNSIGNED_PDF,
    simple_pdf,
)


def test_unsigned_document():
    doc = Document.from_bytes(UNSIGNED_PDF)
    assert doc.page_count == 1
    assert doc.signature_count == 0
    assert doc.media_boxes == ((0.0, 0.0, 595.0, 842.0),)
    assert doc.page_size(0) == (595.0, 842.0)
    assert doc.pdfa_part is None
    assert doc.size == len(UNSIGNED_PDF)


def test_signature_names():
    assert Document.from_bytes(SIGNED_PDF).signature_names == ('Signature1',)
    doc = Document.from_bytes(TWICE_SIGNED_PDF)
    assert doc.signature_count == 2
    assert set(doc.signature_names) == {'Signature1', 'Signature2'}


def test_multiple_pages():
    doc = Document.from_bytes(
        simple_pdf(page_count=3, media_box=(0, 0, 300, 144))
    )
    assert doc.page_count == 3
    assert doc.media_boxes == ((0.0, 0.0, 300.0, 144.0),) * 3


def test_pdfa_claim():
    doc = Document.from_bytes(simple_pdf(pdfa_part=2))
    assert doc.pdfa_part == '2'


def test_unreadable():
    with pytest.raises(ValidationFailure) as exc_info:
        Document.from_bytes(b'This is not a PDF file')
    assert exc_info.value.message_key == 'notarySign.unreadableDocument'
