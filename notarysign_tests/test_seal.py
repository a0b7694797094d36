from decimal import Decimal

import pytest
import requests

from notarysign.catalog import parse_catalog
from notarysign.credentials import CredentialHandle
from notarysign.document import Document
from notarysign.errors import NoMatchingPlugin, SealingFailure
from notarysign.seal import SdmsSealPlugin, SealPlugin, SealPluginResolver
from notarysign.seal.sdms import (
    DEFAULT_MAX_DOCUMENT_SIZE,
    ConfirmationPresentCheck,
    DocumentSizeCheck,
)
from notarysign.selectors import JurisdictionSelector
from notarysign.validation import ValidationStatus
from notarysign_tests.samples import CATALOG_XML, SIGNER_CERT

CATALOG = parse_catalog(CATALOG_XML)
VD_SEAL_URL = 'https://seal.vd.example/v1.1/seal'
CREDENTIAL = CredentialHandle(
    signing_cert=SIGNER_CERT, client_cert='client.pem', client_key='key.pem'
)


def _doc(signature_count, size=100):
    return Document(
        data=b'%PDF' + b'0' * (size - 4),
        page_count=1,
        signature_names=tuple(f'Sig{ix}' for ix in range(signature_count)),
        media_boxes=((0.0, 0.0, 595.0, 842.0),),
    )


@pytest.mark.parametrize(
    'canton,domain', [('VD', 'upreg'), ('vd', 'UPREG'), ('GE', 'upreg')]
)
def test_resolver_builds_upreg_plugin_for_any_canton(canton, domain):
    resolver = SealPluginResolver()
    selector = JurisdictionSelector(canton, domain)
    assert resolver.exists(selector)
    plugin = resolver.build(selector)
    assert isinstance(plugin, SdmsSealPlugin)
    assert plugin.selector == selector
    assert plugin.endpoint is None


@pytest.mark.parametrize(
    'canton,domain', [('VD', 'ehra'), ('GE', 'ehra'), ('VD', 'hreg')]
)
def test_resolver_unknown_domain(canton, domain):
    resolver = SealPluginResolver()
    selector = JurisdictionSelector(canton, domain)
    assert not resolver.exists(selector)
    with pytest.raises(NoMatchingPlugin) as exc_info:
        resolver.build(selector)
    assert exc_info.value.message_key == 'seal.error.no_matching_plugin.601'


def test_resolver_canton_restriction():
    resolver = SealPluginResolver(accept_any_canton=False)
    assert resolver.exists(JurisdictionSelector('VD', 'upreg'))
    assert resolver.exists(JurisdictionSelector('ge', 'UPREG'))
    assert not resolver.exists(JurisdictionSelector('BE', 'upreg'))
    with pytest.raises(NoMatchingPlugin):
        resolver.build(JurisdictionSelector('BE', 'upreg'))
    plugin = resolver.build(JurisdictionSelector('GE', 'upreg'))
    assert plugin.selector == JurisdictionSelector('GE', 'upreg')


@pytest.mark.parametrize(
    'canton,domain,configured',
    [
        ('VD', 'upreg', True),
        ('vd', 'Upreg', True),
        ('BE', 'upreg', True),
        ('GE', 'upreg', False),
        ('VD', 'hreg', True),
        ('VD', 'ehra', False),
    ],
)
def test_resolver_is_configured(canton, domain, configured):
    resolver = SealPluginResolver()
    selector = JurisdictionSelector(canton, domain)
    assert resolver.is_configured(selector, CATALOG) is configured


def test_resolver_plugin_kwargs():
    session = requests.Session()
    resolver = SealPluginResolver(plugin_kwargs={'session': session})
    plugin = resolver.build(JurisdictionSelector('VD', 'upreg'))
    assert plugin.session is session


def test_bind_highest_supported_version():
    plugin = SdmsSealPlugin(JurisdictionSelector('VD', 'upreg'))
    assert plugin.bind(CATALOG)
    assert plugin.endpoint.version == Decimal('1.1')
    assert plugin.endpoint.url == VD_SEAL_URL
    assert plugin.max_document_size == 1048576


def test_bind_without_parameters():
    plugin = SdmsSealPlugin(JurisdictionSelector('BE', 'upreg'))
    assert plugin.bind(CATALOG)
    assert plugin.endpoint.version == Decimal('1.0')
    assert plugin.max_document_size == DEFAULT_MAX_DOCUMENT_SIZE


def test_bind_unsupported_version():
    class FutureSealPlugin(SealPlugin):
        domain = 'upreg'
        supported_versions = frozenset([Decimal('3.0')])

    plugin = FutureSealPlugin(JurisdictionSelector('VD', 'upreg'))
    assert not plugin.bind(CATALOG)
    assert plugin.endpoint is None


def test_confirmation_present_check():
    check = ConfirmationPresentCheck()
    assert check(_doc(2)).is_success
    outcome = check(_doc(1))
    assert outcome.status == ValidationStatus.ERROR
    assert outcome.message_key == 'seal.sdms.noConfirmation'


def test_document_size_check():
    check = DocumentSizeCheck(max_size=1000)
    assert check(_doc(2, size=1000)).is_success
    outcome = check(_doc(2, size=1001))
    assert outcome.status == ValidationStatus.QUESTION
    assert outcome.message_key == 'seal.sdms.largeDocument'


def test_plugin_checks():
    plugin = SdmsSealPlugin(JurisdictionSelector('VD', 'upreg'))
    plugin.bind(CATALOG)
    checks = plugin.checks
    assert [type(c) for c in checks] == [
        ConfirmationPresentCheck,
        DocumentSizeCheck,
    ]
    assert checks[1].max_size == 1048576


def test_apply_seal(requests_mock):
    sealed = b'%PDF-1.7 sealed'
    adapter = requests_mock.post(
        VD_SEAL_URL,
        content=sealed,
        headers={'Content-Type': 'application/pdf'},
    )
    plugin = SdmsSealPlugin(JurisdictionSelector('VD', 'upreg'))
    plugin.bind(CATALOG)
    assert plugin.apply_seal(b'%PDF-1.7 confirmed', CREDENTIAL) == sealed
    req = adapter.last_request
    assert req.body == b'%PDF-1.7 confirmed'
    assert req.headers['X-Seal-Canton'] == 'VD'
    assert req.headers['X-Seal-Domain'] == 'upreg'
    assert req.headers['X-Seal-Version'] == '1.1'
    assert req.cert == ('client.pem', 'key.pem')


@pytest.mark.parametrize(
    'response_kwargs',
    [
        {'status_code': 500},
        {'exc': requests.exceptions.ConnectionError},
        {
            'content': b'{"error": "nope"}',
            'headers': {'Content-Type': 'application/json'},
        },
        {
            'content': b'not a pdf',
            'headers': {'Content-Type': 'application/pdf'},
        },
    ],
)
def test_apply_seal_failure(requests_mock, response_kwargs):
    requests_mock.post(VD_SEAL_URL, **response_kwargs)
    plugin = SdmsSealPlugin(JurisdictionSelector('VD', 'upreg'))
    plugin.bind(CATALOG)
    with pytest.raises(SealingFailure) as exc_info:
        plugin.apply_seal(b'%PDF-1.7 confirmed', CREDENTIAL)
    assert exc_info.value.message_key == 'seal.error.sealing_failed'


def test_apply_seal_unbound():
    plugin = SdmsSealPlugin(JurisdictionSelector('VD', 'upreg'))
    with pytest.raises(SealingFailure):
        plugin.apply_seal(b'%PDF-1.7 confirmed', CREDENTIAL)
