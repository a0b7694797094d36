import asyncio
from datetime import datetime, timedelta, timezone
from io import BytesIO

from asn1crypto import keys, x509
from cryptography import x509 as pyca_x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from pyhanko.pdf_utils import generic, writer
from pyhanko.pdf_utils.incremental_writer import IncrementalPdfFileWriter
from pyhanko.pdf_utils.metadata import model
from pyhanko.sign import signers
from pyhanko_certvalidator.registry import SimpleCertificateStore

A4_MEDIA_BOX = (0, 0, 595, 842)

PDFA_ID_NS = 'http://www.aiim.org/pdfa/ns/id/'
PDFA_PART = model.ExpandedName(ns=PDFA_ID_NS, local_name='part')
PDFA_CONFORMANCE = model.ExpandedName(
    ns=PDFA_ID_NS, local_name='conformance'
)


def simple_pdf(page_count=1, media_box=A4_MEDIA_BOX, pdfa_part=None) -> bytes:
    w = writer.PdfFileWriter(stream_xrefs=False)
    for ix in range(page_count):
        stream = generic.StreamObject(
            stream_data=f'0 0 m {100 + ix} 100 l S'.encode('ascii')
        )
        page = writer.PageObject(
            contents=w.add_object(stream),
            media_box=generic.ArrayObject(map(generic.NumberObject, media_box)),
            resources=generic.DictionaryObject(),
        )
        w.insert_page(page)
    if pdfa_part is not None:
        w.document_meta.xmp_extra = [
            model.XmpStructure.of(
                (PDFA_PART, model.XmpValue(str(pdfa_part))),
                (PDFA_CONFORMANCE, model.XmpValue('B')),
            )
        ]
    out = BytesIO()
    w.write(out)
    return out.getvalue()


def self_signed_identity(common_name: str):
    """
    Generate a throwaway certificate and key, in asn1crypto form.
    """
    private_key = ec.generate_private_key(ec.SECP256R1())
    name = pyca_x509.Name(
        [pyca_x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    )
    now = datetime.now(tz=timezone.utc)
    cert = (
        pyca_x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(pyca_x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .sign(private_key, hashes.SHA256())
    )
    key_der = private_key.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return (
        x509.Certificate.load(cert.public_bytes(serialization.Encoding.DER)),
        keys.PrivateKeyInfo.load(key_der),
    )


def simple_signer(cert: x509.Certificate, key: keys.PrivateKeyInfo):
    return signers.SimpleSigner(
        signing_cert=cert,
        signing_key=key,
        cert_registry=SimpleCertificateStore.from_certs([cert]),
    )


SIGNER_CERT, SIGNER_KEY = self_signed_identity('Notary Test Signer')
CONFIRMATION_CERT, CONFIRMATION_KEY = self_signed_identity(
    'Notarial Confirmation Test Service'
)


def sign_pdf(data: bytes, field_name: str, signer=None) -> bytes:
    signer = signer or simple_signer(SIGNER_CERT, SIGNER_KEY)
    w = IncrementalPdfFileWriter(BytesIO(data))
    out = signers.sign_pdf(
        w,
        signers.PdfSignatureMetadata(field_name=field_name),
        signer=signer,
    )
    return out.getvalue()


def confirmation_cms(document_digest: bytes, md_algorithm='sha256'):
    """
    Produce the CMS object a notarial confirmation service would return
    in RT2.
    """
    signer = simple_signer(CONFIRMATION_CERT, CONFIRMATION_KEY)
    return asyncio.run(
        signer.async_sign(document_digest, md_algorithm, use_pades=True)
    )


UNSIGNED_PDF = simple_pdf()
SIGNED_PDF = sign_pdf(UNSIGNED_PDF, 'Signature1')
TWICE_SIGNED_PDF = sign_pdf(SIGNED_PDF, 'Signature2')


CATALOG_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<endPoints>
  <release>2018-02-12</release>
  <endPoint>
    <canton>VD</canton>
    <domain>upreg</domain>
    <version>1.0</version>
    <endPointUrl>https://seal.vd.example/v1.0/seal</endPointUrl>
  </endPoint>
  <endPoint>
    <canton>VD</canton>
    <domain>upreg</domain>
    <version>1.1</version>
    <factoryParameters>
      <parameter>
        <name>max-document-size</name>
        <value>1048576</value>
      </parameter>
    </factoryParameters>
    <endPointUrl>https://seal.vd.example/v1.1/seal</endPointUrl>
  </endPoint>
  <endPoint>
    <canton>BE</canton>
    <domain>upreg</domain>
    <version>1.0</version>
    <endPointUrl>https://seal.be.example/seal</endPointUrl>
  </endPoint>
  <endPoint>
    <canton>VD</canton>
    <domain>hreg</domain>
    <version>2.0</version>
    <endPointUrl>https://seal.vd.example/hreg</endPointUrl>
  </endPoint>
</endPoints>
"""

CATALOG_XML_NEWER = CATALOG_XML.replace(
    b'2018-02-12', b'2019-06-01'
).replace(b'https://seal.be.example/seal', b'https://seal.be.example/v2/seal')

SELECTOR_LIST_XML = b"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<config version="2019-03-01T10:00:00"
    xmlns="http://www.glue.ch/localsigner/zulabconfiguration">
  <cantons>
    <canton>
      <value>VD</value>
      <translations>
        <german>Waadt</german>
        <french>Vaud</french>
        <italian>Vaud</italian>
      </translations>
    </canton>
    <canton>
      <value>BE</value>
      <translations>
        <german>Bern</german>
        <french>Berne</french>
        <italian>Berna</italian>
      </translations>
    </canton>
  </cantons>
  <domains>
    <domain>
      <value>upreg</value>
      <translations>
        <german>Urkundspersonenregister</german>
        <french>Registre des officiers publics</french>
        <italian>Registro dei pubblici ufficiali</italian>
      </translations>
    </domain>
  </domains>
</config>
"""
