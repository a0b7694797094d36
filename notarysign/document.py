import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple

from lxml import etree
from pyhanko.pdf_utils import generic, misc
from pyhanko.pdf_utils.reader import PdfFileReader

from .errors import ValidationFailure

__all__ = ['Document', 'Box']

logger = logging.getLogger(__name__)

Box = Tuple[float, float, float, float]

RDF_NS = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'
PDFA_ID_NS = 'http://www.aiim.org/pdfa/ns/id/'


@dataclass(frozen=True)
class Document:
    """
    Immutable PDF byte buffer together with the metadata the signing
    workflow needs.

    Instances are never modified; each step that changes the PDF produces
    a new :class:`Document` through :meth:`from_bytes`.
    """

    data: bytes
    """
    The PDF file contents.
    """

    page_count: int
    """
    Number of pages in the document.
    """

    signature_names: Tuple[str, ...]
    """
    Names of the signature fields that hold a signature, in document order.
    """

    media_boxes: Tuple[Box, ...]
    """
    Media box of each page, as ``(x1, y1, x2, y2)``.
    """

    pdfa_part: Optional[str] = None
    """
    PDF/A part number claimed in the XMP metadata, if any.
    """

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Document':
        """
        Read the metadata of a PDF file.

        :param data:
            The PDF file contents.
        :return:
            A :class:`Document`.
        :raises ValidationFailure:
            if the data cannot be read as a PDF file.
        """
        try:
            reader = PdfFileReader(BytesIO(data), strict=False)
            page_count = int(reader.root['/Pages']['/Count'])
            media_boxes = tuple(
                _media_box(reader, ix) for ix in range(page_count)
            )
            signature_names = tuple(
                emb_sig.field_name for emb_sig in reader.embedded_signatures
            )
        except (misc.PdfError, KeyError, ValueError, IndexError) as e:
            raise ValidationFailure(
                f"Could not read PDF document: {e}",
                'notarySign.unreadableDocument',
            ) from e
        return Document(
            data=data,
            page_count=page_count,
            signature_names=signature_names,
            media_boxes=media_boxes,
            pdfa_part=_read_pdfa_part(reader),
        )

    @property
    def signature_count(self) -> int:
        return len(self.signature_names)

    @property
    def size(self) -> int:
        return len(self.data)

    def page_size(self, page_ix: int) -> Tuple[float, float]:
        x1, y1, x2, y2 = self.media_boxes[page_ix]
        return abs(x2 - x1), abs(y2 - y1)


def _media_box(reader: PdfFileReader, page_ix: int) -> Box:
    page_ref, _ = reader.find_page_for_modification(page_ix)
    node = page_ref.get_object()
    # /MediaBox is inheritable from the page tree
    while '/MediaBox' not in node:
        try:
            node = node['/Parent']
        except KeyError:
            raise misc.PdfReadError(f"Page {page_ix} has no media box")
    x1, y1, x2, y2 = node['/MediaBox']
    return float(x1), float(y1), float(x2), float(y2)


def _read_pdfa_part(reader: PdfFileReader) -> Optional[str]:
    try:
        meta_stream = reader.root['/Metadata']
    except KeyError:
        return None
    if not isinstance(meta_stream, generic.StreamObject):
        return None
    parser = etree.XMLParser(
        resolve_entities=False, no_network=True, load_dtd=False
    )
    try:
        xmp_root = etree.fromstring(meta_stream.data, parser=parser)
    except etree.XMLSyntaxError as e:
        logger.warning(f"Could not parse XMP metadata: {e}")
        return None
    part_tag = f'{{{PDFA_ID_NS}}}part'
    for description in xmp_root.iter(f'{{{RDF_NS}}}Description'):
        part = description.get(part_tag) or description.findtext(part_tag)
        if part:
            return part.strip()
    return None
