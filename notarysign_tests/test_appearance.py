from io import BytesIO

import pytest
from pyhanko.pdf_utils.reader import PdfFileReader
from pyhanko.sign.validation import validate_pdf_signature
from pyhanko_certvalidator import ValidationContext

from notarysign.document import Document
from notarysign.errors import RemoteProtocolFailure
from notarysign.notary import (
    ClientErrorCode,
    PdfAppearancePreparer,
    RT1Response,
    RT2Response,
    SignaturePlacement,
)
from notarysign.notary.appearance import check_placement
from notarysign_tests.samples import (
    CONFIRMATION_CERT,
    SIGNED_PDF,
    confirmation_cms,
    simple_pdf,
)

TWO_PAGES = Document.from_bytes(
    simple_pdf(page_count=2, media_box=(0, 0, 595, 842))
)


def _rt1(placement=None):
    return RT1Response(
        uuid='6f1c3f9e',
        confirmation_cert=CONFIRMATION_CERT,
        field_name='NotarialConfirmation',
        appearance_text='Confirmed by the register of notaries',
        placement=placement,
    )


@pytest.mark.parametrize(
    'page,box',
    [
        (0, (50, 50, 250, 120)),
        (1, (395, 742, 595, 842)),
        # coordinates may come in either order
        (1, (250, 120, 50, 50)),
    ],
)
def test_placement_fits(page, box):
    check_placement(TWO_PAGES, SignaturePlacement(page=page, box=box))


@pytest.mark.parametrize(
    'page,box,code',
    [
        (
            0,
            (500, 50, 700, 120),
            ClientErrorCode.ERR_SIGNATURE_POSITION_TOO_FAR_RIGHT,
        ),
        (
            1,
            (50, 800, 250, 900),
            ClientErrorCode.ERR_SIGNATURE_POSITION_TOO_HIGH,
        ),
        (2, (50, 50, 250, 120), ClientErrorCode.ERR_MALFORMED_RESPONSE),
        (-1, (50, 50, 250, 120), ClientErrorCode.ERR_MALFORMED_RESPONSE),
    ],
)
def test_placement_rejected(page, box, code):
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        check_placement(TWO_PAGES, SignaturePlacement(page=page, box=box))
    assert exc_info.value.code == code


def test_placement_error_keys():
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        check_placement(
            TWO_PAGES, SignaturePlacement(page=0, box=(500, 50, 700, 120))
        )
    assert exc_info.value.message_key == (
        'fn.client.error.signature_position_too_far_right'
    )
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        check_placement(
            TWO_PAGES, SignaturePlacement(page=0, box=(50, 800, 250, 900))
        )
    assert exc_info.value.message_key == (
        'fn.client.error.signature_position_too_high'
    )


def test_prepare_rejects_bad_placement():
    document = Document.from_bytes(SIGNED_PDF)
    placement = SignaturePlacement(page=0, box=(500, 50, 700, 120))
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        PdfAppearancePreparer().prepare(document, _rt1(placement))
    assert exc_info.value.code == (
        ClientErrorCode.ERR_SIGNATURE_POSITION_TOO_FAR_RIGHT
    )


@pytest.mark.parametrize(
    'placement', [None, SignaturePlacement(page=0, box=(50, 50, 250, 120))]
)
def test_prepare_and_close(placement):
    document = Document.from_bytes(SIGNED_PDF)
    preparer = PdfAppearancePreparer()
    prepared = preparer.prepare(document, _rt1(placement))
    assert prepared.md_algorithm == 'sha256'
    assert len(prepared.document_digest) == 32

    signature = confirmation_cms(prepared.document_digest)
    output = preparer.close(prepared, RT2Response(signature_cms=signature))
    assert output.startswith(SIGNED_PDF)

    result = Document.from_bytes(output)
    assert set(result.signature_names) == {'Signature1', 'NotarialConfirmation'}

    reader = PdfFileReader(BytesIO(output))
    emb_sig = next(
        s
        for s in reader.embedded_signatures
        if s.field_name == 'NotarialConfirmation'
    )
    status = validate_pdf_signature(
        emb_sig, ValidationContext(trust_roots=[CONFIRMATION_CERT])
    )
    assert status.intact
    assert status.valid


def test_prepare_with_other_digest_algorithm():
    document = Document.from_bytes(SIGNED_PDF)
    preparer = PdfAppearancePreparer(md_algorithm='sha512')
    prepared = preparer.prepare(document, _rt1())
    assert prepared.md_algorithm == 'sha512'
    assert len(prepared.document_digest) == 64

    signature = confirmation_cms(prepared.document_digest, 'sha512')
    output = preparer.close(prepared, RT2Response(signature_cms=signature))
    result = Document.from_bytes(output)
    assert 'NotarialConfirmation' in result.signature_names
