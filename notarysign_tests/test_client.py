import base64
import hashlib

import pytest
import requests

from notarysign.credentials import CredentialHandle
from notarysign.errors import RemoteProtocolFailure
from notarysign.notary import (
    ClientErrorCode,
    NotaryServiceClient,
    RT1Request,
    RT2Request,
    ServiceErrorCode,
    SignaturePlacement,
)
from notarysign.selectors import JurisdictionSelector
from notarysign_tests.samples import (
    CONFIRMATION_CERT,
    SIGNER_CERT,
    confirmation_cms,
)

SERVICE_URL = 'https://notary.example/fn/'
RT1_URL = 'https://notary.example/fn/rt1'
RT2_URL = 'https://notary.example/fn/rt2'
LOGIN_URL = 'https://notary.example/fn/login'

CREDENTIAL = CredentialHandle(signing_cert=SIGNER_CERT, client_cert='tls.pem')
SELECTOR = JurisdictionSelector('VD', 'upreg')


def _b64(data):
    return base64.b64encode(data).decode('ascii')


def rt1_response_json(**overrides):
    result = {
        'uuid': '6f1c3f9e-3f5e-4bb0-9b0e-0d0a2a4e3c11',
        'confirmationCertificate': _b64(CONFIRMATION_CERT.dump()),
        'signatureFieldName': 'NotarialConfirmation',
        'appearanceText': 'Confirmed by the notarial register',
        'signaturePosition': {
            'page': 0,
            'x1': 50,
            'y1': 50,
            'x2': 250,
            'y2': 120,
        },
        'expectedSigningCertificateSha256': CREDENTIAL.fingerprint.upper(),
    }
    result.update(overrides)
    return result


def _client():
    return NotaryServiceClient(SERVICE_URL, CREDENTIAL)


def _rt1_request():
    return RT1Request(
        selector=SELECTOR,
        document_digest=hashlib.sha256(b'document').digest(),
        md_algorithm='sha256',
        signing_cert=SIGNER_CERT,
    )


def test_rt1(requests_mock):
    adapter = requests_mock.post(RT1_URL, json=rt1_response_json())
    response = _client().call_rt1(_rt1_request())
    assert response.uuid == '6f1c3f9e-3f5e-4bb0-9b0e-0d0a2a4e3c11'
    assert response.confirmation_cert.dump() == CONFIRMATION_CERT.dump()
    assert response.field_name == 'NotarialConfirmation'
    assert response.placement == SignaturePlacement(
        page=0, box=(50, 50, 250, 120)
    )
    assert response.expected_cert_fingerprint == CREDENTIAL.fingerprint

    sent = adapter.last_request.json()
    assert sent['canton'] == 'VD'
    assert sent['domain'] == 'upreg'
    assert sent['hashAlgorithm'] == 'sha256'
    assert base64.b64decode(sent['documentHash']) == (
        hashlib.sha256(b'document').digest()
    )
    assert base64.b64decode(sent['signingCertificate']) == SIGNER_CERT.dump()
    assert adapter.last_request.cert == 'tls.pem'


def test_rt1_without_placement(requests_mock):
    body = rt1_response_json()
    del body['signaturePosition']
    del body['expectedSigningCertificateSha256']
    requests_mock.post(RT1_URL, json=body)
    response = _client().call_rt1(_rt1_request())
    assert response.placement is None
    assert response.expected_cert_fingerprint is None


@pytest.mark.parametrize(
    'overrides',
    [
        {'confirmationCertificate': _b64(b'garbage')},
        {'confirmationCertificate': None},
        {'uuid': None, 'signatureFieldName': None, 'signaturePosition': 'x'},
        {'signaturePosition': {'page': 0, 'x1': 'left'}},
    ],
)
def test_rt1_malformed(requests_mock, overrides):
    body = rt1_response_json(**overrides)
    requests_mock.post(RT1_URL, json=body)
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt1(_rt1_request())
    assert exc_info.value.code == ClientErrorCode.ERR_MALFORMED_RESPONSE
    assert exc_info.value.message_key == 'fn.client.error.unexpected'


def test_rt1_missing_field(requests_mock):
    body = rt1_response_json()
    del body['uuid']
    requests_mock.post(RT1_URL, json=body)
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt1(_rt1_request())
    assert exc_info.value.code == ClientErrorCode.ERR_MALFORMED_RESPONSE


def test_rt2(requests_mock):
    digest = hashlib.sha256(b'prepared document').digest()
    signature = confirmation_cms(digest)
    adapter = requests_mock.post(
        RT2_URL, json={'signature': _b64(signature.dump())}
    )
    response = _client().call_rt2(
        RT2Request(uuid='abc', document_digest=digest, md_algorithm='sha256')
    )
    assert response.signature_cms.dump() == signature.dump()
    sent = adapter.last_request.json()
    assert sent == {
        'uuid': 'abc',
        'documentDigest': _b64(digest),
        'digestAlgorithm': 'sha256',
    }


@pytest.mark.parametrize(
    'body', [{}, {'signature': 'not base64!'}, {'signature': _b64(b'\x30\x00')}]
)
def test_rt2_malformed(requests_mock, body):
    requests_mock.post(RT2_URL, json=body)
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt2(
            RT2Request(uuid='abc', document_digest=b'x', md_algorithm='sha256')
        )
    assert exc_info.value.code == ClientErrorCode.ERR_MALFORMED_RESPONSE


@pytest.mark.parametrize('status_code', [200, 400, 500])
def test_service_error_code(requests_mock, status_code):
    requests_mock.post(
        RT1_URL,
        json={'errorCode': 'ERR_FN_PERMISSION_DENIED'},
        status_code=status_code,
    )
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt1(_rt1_request())
    assert exc_info.value.code == 'ERR_FN_PERMISSION_DENIED'
    assert exc_info.value.message_key == 'fn.ws.error.permission_denied'


def test_unknown_service_error_code(requests_mock):
    requests_mock.post(RT2_URL, json={'errorCode': 'ERR_BRAND_NEW'})
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt2(
            RT2Request(uuid='abc', document_digest=b'x', md_algorithm='sha256')
        )
    assert exc_info.value.message_key == 'fn.ws.error.unexpected'


@pytest.mark.parametrize(
    'exc', [requests.exceptions.ConnectionError, requests.exceptions.Timeout]
)
def test_transport_failure(requests_mock, exc):
    requests_mock.post(RT1_URL, exc=exc)
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt1(_rt1_request())
    assert exc_info.value.code == ClientErrorCode.ERR_INT_SERVICE_CALL_FAILED
    assert exc_info.value.message_key == (
        'fn.ws.error.err_int_service_call_failed'
    )


def test_server_down(requests_mock):
    requests_mock.post(RT1_URL, status_code=503, text='Service Unavailable')
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt1(_rt1_request())
    assert exc_info.value.code == ServiceErrorCode.ERR_INT_SERVER_DOWN
    assert exc_info.value.message_key == 'fn.ws.error.err_int_server_down'


def test_unexpected_status(requests_mock):
    requests_mock.post(RT1_URL, status_code=502, text='Bad Gateway')
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt1(_rt1_request())
    assert exc_info.value.code == 'HTTP_502'
    assert exc_info.value.message_key == 'fn.ws.error.unexpected'


def test_non_json_success(requests_mock):
    requests_mock.post(RT1_URL, text='<html>hello</html>')
    with pytest.raises(RemoteProtocolFailure) as exc_info:
        _client().call_rt1(_rt1_request())
    assert exc_info.value.code == ClientErrorCode.ERR_MALFORMED_RESPONSE


@pytest.mark.parametrize('activated', [True, False])
def test_login(requests_mock, activated):
    adapter = requests_mock.post(LOGIN_URL, json={'activated': activated})
    assert _client().login() is activated
    sent = adapter.last_request.json()
    assert base64.b64decode(sent['signingCertificate']) == SIGNER_CERT.dump()
