"""Shared fixtures for cert_verifier tests."""

import json

import pytest
import respx

from cert_verifier.models import CertificateRef, RequestContext, VerificationRequest

SIGNATURE_URL = "http://localhost:8013/verify"
STORE_URL = "http://store.local/certs"

PAST = "2000-01-01T00:00:00Z"
FUTURE = "2999-12-31T23:59:59Z"


def hosted_certificate(expires=None):
    cert = {
        "id": "https://example.org/certs/hosted-1",
        "type": "Assertion",
        "recipient": {"identity": "learner@example.org"},
        "verification": {"type": ["hosted"]},
    }
    if expires is not None:
        cert["expires"] = expires
    return cert


def signed_certificate(expires=None, signature_value="c2lnbmF0dXJl"):
    cert = {
        "id": "https://example.org/certs/signed-1",
        "type": "Assertion",
        "recipient": {"identity": "learner@example.org"},
        "verification": {
            "type": ["signed-badge"],
            "creator": "https://example.org/keys/7_publicKey.json",
        },
        "signature": {
            "type": "RsaSignature2018",
            "creator": "https://example.org/keys/7_publicKey.json",
            "signatureValue": signature_value,
        },
    }
    if expires is not None:
        cert["expires"] = expires
    return cert


def make_request(certificate=None, operation="verifyCertificate", headers=None):
    if isinstance(certificate, dict):
        certificate = CertificateRef(data=certificate)
    return VerificationRequest(
        operation=operation,
        certificate=certificate,
        context=RequestContext(trace_id="trace-1", operation=operation),
        headers=headers or {},
    )


def encode(document):
    return json.dumps(document).encode("utf-8")


@pytest.fixture
def mock_http():
    """Create a respx mock for the signature service and content store."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock
