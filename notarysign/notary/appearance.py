import asyncio
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import IO, Optional

from pyhanko.pdf_utils.incremental_writer import IncrementalPdfFileWriter
from pyhanko.sign import fields, signers
from pyhanko.sign.general import SigningError
from pyhanko.sign.signers.pdf_byterange import PreparedByteRangeDigest
from pyhanko.sign.signers.pdf_signer import (
    PdfTBSDocument,
    PostSignInstructions,
)
from pyhanko.stamp import TextStampStyle
from pyhanko_certvalidator.registry import SimpleCertificateStore

from ..document import Document
from .client import RT1Response, RT2Response, SignaturePlacement
from .codes import ClientErrorCode, remote_failure

__all__ = [
    'PreparedAppearance',
    'PdfAppearancePreparer',
    'check_placement',
    'DEFAULT_MD_ALGORITHM',
    'DEFAULT_BYTES_RESERVED',
]

logger = logging.getLogger(__name__)

DEFAULT_MD_ALGORITHM = 'sha256'

DEFAULT_BYTES_RESERVED = 32 * 1024
"""
Space reserved for the hex-encoded CMS object returned in RT2.
The service's signature includes its certificate chain and possibly
a timestamp token, so a dummy-signature estimate is not reliable.
"""

CONFIRMATION_STAMP_STYLE = TextStampStyle(
    stamp_text='%(confirmation)s\n%(ts)s',
    border_width=1,
)


@dataclass(frozen=True)
class PreparedAppearance:
    """
    A confirmation signature that has been laid out, but not yet filled in.
    """

    output: IO
    """
    Output buffer holding the document with the signature placeholder.
    """

    prepared_digest: PreparedByteRangeDigest
    post_sign_instructions: Optional[PostSignInstructions]

    md_algorithm: str = DEFAULT_MD_ALGORITHM
    """
    Digest algorithm used for :attr:`document_digest`.
    """

    @property
    def document_digest(self) -> bytes:
        return self.prepared_digest.document_digest


def check_placement(document: Document, placement: SignaturePlacement):
    """
    Make sure the confirmation signature fits on its page.

    :raises RemoteProtocolFailure:
        if the signature box exceeds the page's media box.
    """
    page = placement.page
    if not 0 <= page < document.page_count:
        raise remote_failure(
            ClientErrorCode.ERR_MALFORMED_RESPONSE,
            f"Signature page {page} does not exist; the document has "
            f"{document.page_count} pages",
        )
    _, _, page_x2, page_y2 = document.media_boxes[page]
    x1, y1, x2, y2 = placement.box
    if max(x1, x2) > page_x2:
        raise remote_failure(
            ClientErrorCode.ERR_SIGNATURE_POSITION_TOO_FAR_RIGHT,
            f"Signature box {placement.box} exceeds page width {page_x2}",
        )
    if max(y1, y2) > page_y2:
        raise remote_failure(
            ClientErrorCode.ERR_SIGNATURE_POSITION_TOO_HIGH,
            f"Signature box {placement.box} exceeds page height {page_y2}",
        )


class PdfAppearancePreparer:
    """
    Lays out the confirmation signature locally, and fills in the signature
    obtained from the service afterwards.

    :param md_algorithm:
        Digest algorithm for the byte range digest sent in RT2.
    :param bytes_reserved:
        Space to reserve for the signature.
    """

    def __init__(
        self,
        md_algorithm: str = DEFAULT_MD_ALGORITHM,
        bytes_reserved: int = DEFAULT_BYTES_RESERVED,
    ):
        self.md_algorithm = md_algorithm
        self.bytes_reserved = bytes_reserved

    def prepare(
        self, document: Document, rt1: RT1Response
    ) -> PreparedAppearance:
        """
        Add the confirmation signature field and compute the digest the
        service needs to sign.

        :param document:
            The document submitted by the user.
        :param rt1:
            The service's RT1 response.
        :return:
            A :class:`PreparedAppearance` with a fresh output buffer.
        """
        field_spec = None
        if rt1.placement is not None:
            check_placement(document, rt1.placement)
            field_spec = fields.SigFieldSpec(
                sig_field_name=rt1.field_name,
                on_page=rt1.placement.page,
                box=rt1.placement.box,
            )
        ext_signer = signers.ExternalSigner(
            signing_cert=rt1.confirmation_cert,
            cert_registry=SimpleCertificateStore.from_certs(
                [rt1.confirmation_cert]
            ),
        )
        pdf_signer = signers.PdfSigner(
            signers.PdfSignatureMetadata(
                field_name=rt1.field_name,
                md_algorithm=self.md_algorithm,
            ),
            signer=ext_signer,
            stamp_style=CONFIRMATION_STAMP_STYLE,
            new_field_spec=field_spec,
        )
        writer = IncrementalPdfFileWriter(BytesIO(document.data), strict=False)
        try:
            prep_digest, tbs_document, output = asyncio.run(
                pdf_signer.async_digest_doc_for_signing(
                    writer,
                    bytes_reserved=self.bytes_reserved,
                    appearance_text_params={
                        'confirmation': rt1.appearance_text
                    },
                )
            )
        except SigningError as e:
            raise remote_failure(
                ClientErrorCode.ERR_MALFORMED_RESPONSE,
                f"Could not lay out confirmation signature: {e.msg}",
            ) from e
        logger.debug(
            f"Prepared confirmation signature in field {rt1.field_name}"
        )
        return PreparedAppearance(
            output=output,
            prepared_digest=prep_digest,
            post_sign_instructions=tbs_document.post_sign_instructions,
            md_algorithm=self.md_algorithm,
        )

    def close(
        self, prepared: PreparedAppearance, rt2: RT2Response
    ) -> bytes:
        """
        Embed the service's signature into the prepared document.

        :return:
            The contents of the confirmed document.
        """
        try:
            asyncio.run(
                PdfTBSDocument.async_finish_signing(
                    prepared.output,
                    prepared.prepared_digest,
                    rt2.signature_cms,
                    post_sign_instr=prepared.post_sign_instructions,
                )
            )
        except SigningError as e:
            raise remote_failure(
                ClientErrorCode.ERR_MALFORMED_RESPONSE,
                f"Could not embed the confirmation signature: {e.msg}",
            ) from e
        output = prepared.output
        output.seek(0)
        return output.read()
