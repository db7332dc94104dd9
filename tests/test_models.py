"""Tests for data models."""

import pytest

from cert_verifier.errors import ErrorReply, InvalidCertificate, ResponseCode
from cert_verifier.models import (
    Certificate,
    CertificateRef,
    Operation,
    Response,
    VerificationVerdict,
)

from conftest import FUTURE, hosted_certificate, signed_certificate


class TestOperation:
    """Tests for Operation.lookup."""

    def test_exact_name(self):
        """Exact operation name matches."""
        assert Operation.lookup("verifyCertificate") is Operation.VERIFY_CERTIFICATE

    def test_case_insensitive(self):
        """Operation names match regardless of case."""
        assert Operation.lookup("VERIFYCERTIFICATE") is Operation.VERIFY_CERTIFICATE

    def test_unknown(self):
        """Unknown or empty names return None."""
        assert Operation.lookup("issueCertificate") is None
        assert Operation.lookup("") is None
        assert Operation.lookup(None) is None


class TestCertificateRef:
    """Tests for CertificateRef.from_dict."""

    def test_inline(self):
        """Inline data becomes an inline reference."""
        ref = CertificateRef.from_dict({"data": {"a": 1}})
        assert ref.is_inline
        assert ref.data == {"a": 1}

    def test_identifier(self):
        """An id becomes a by-reference reference."""
        ref = CertificateRef.from_dict({"id": "certs/abc.json"})
        assert not ref.is_inline
        assert ref.id == "certs/abc.json"

    def test_data_wins_over_id(self):
        """Inline data takes precedence when both are present."""
        ref = CertificateRef.from_dict({"data": {"a": 1}, "id": "x"})
        assert ref.is_inline

    def test_neither(self):
        """A reference with neither data nor id is rejected."""
        with pytest.raises(InvalidCertificate, match="data or certificate.id"):
            CertificateRef.from_dict({})

    def test_not_an_object(self):
        """A non-object reference is rejected."""
        with pytest.raises(InvalidCertificate):
            CertificateRef.from_dict("certs/abc.json")

    def test_blank_identifier(self):
        """A blank id is rejected."""
        with pytest.raises(InvalidCertificate):
            CertificateRef.from_dict({"id": "  "})


class TestCertificate:
    """Tests for Certificate.from_dict."""

    def test_hosted(self):
        """Hosted certificate fields are extracted."""
        cert = Certificate.from_dict(hosted_certificate(expires=FUTURE))
        assert cert.verification_type == "hosted"
        assert cert.expires == FUTURE
        assert cert.signature_value is None

    def test_signed(self):
        """Signed certificate fields are extracted."""
        cert = Certificate.from_dict(signed_certificate())
        assert cert.verification_type == "signed-badge"
        assert cert.creator == "https://example.org/keys/7_publicKey.json"
        assert cert.signature_value == "c2lnbmF0dXJl"

    def test_first_type_selects_strategy(self):
        """Only the first verification type is used."""
        doc = hosted_certificate()
        doc["verification"]["type"] = ["signed-badge", "hosted"]
        assert Certificate.from_dict(doc).verification_type == "signed-badge"

    def test_missing_verification(self):
        """A document without a verification block is rejected."""
        doc = hosted_certificate()
        del doc["verification"]
        with pytest.raises(InvalidCertificate, match="verification"):
            Certificate.from_dict(doc)

    def test_empty_type_list(self):
        """An empty verification type list is rejected."""
        doc = hosted_certificate()
        doc["verification"]["type"] = []
        with pytest.raises(InvalidCertificate, match="type"):
            Certificate.from_dict(doc)

    def test_non_string_expires(self):
        """A non-string expiry is rejected."""
        with pytest.raises(InvalidCertificate, match="expires"):
            Certificate.from_dict(hosted_certificate(expires=12345))

    def test_non_object_signature(self):
        """A non-object signature block is rejected."""
        doc = signed_certificate()
        doc["signature"] = "abc"
        with pytest.raises(InvalidCertificate, match="signature"):
            Certificate.from_dict(doc)

    def test_unsigned_document_is_a_copy(self):
        """Stripping the signature leaves the original document intact."""
        doc = signed_certificate()
        cert = Certificate.from_dict(doc)

        unsigned = cert.unsigned_document()
        unsigned["verification"]["creator"] = "changed"

        assert "signature" not in unsigned
        assert "signature" in doc
        assert doc["verification"]["creator"] == "https://example.org/keys/7_publicKey.json"


class TestVerificationVerdict:
    """Tests for VerificationVerdict."""

    def test_no_findings_is_valid(self):
        """A verdict with no messages is valid."""
        verdict = VerificationVerdict.from_findings(None, None)
        assert verdict.valid is True
        assert verdict.error_count == 0
        assert verdict.to_dict() == {"valid": True, "errorCount": 0, "messages": []}

    def test_findings_keep_order(self):
        """Messages keep the order of the checks."""
        verdict = VerificationVerdict.from_findings("first", None, "second")
        assert verdict.valid is False
        assert verdict.error_count == 2
        assert verdict.messages == ("first", "second")

    def test_error_count_matches_messages(self):
        """errorCount always equals the number of messages."""
        for findings in [(), ("a",), ("a", "b"), (None, "a", None)]:
            verdict = VerificationVerdict.from_findings(*findings)
            data = verdict.to_dict()
            assert data["errorCount"] == len(data["messages"])
            assert data["valid"] == (data["errorCount"] == 0)


class TestEnvelopes:
    """Tests for the success and error envelopes."""

    def test_success_envelope(self):
        """The verdict sits under result.response."""
        response = Response.for_verdict(VerificationVerdict.from_findings("expired"))
        assert response.to_dict() == {
            "responseCode": "OK",
            "result": {
                "response": {"valid": False, "errorCount": 1, "messages": ["expired"]},
            },
        }

    def test_error_envelope(self):
        """Errors carry a stable code and message."""
        reply = ErrorReply(code="INVALID_OPERATION_NAME", message="bad", response_code=ResponseCode.CLIENT_ERROR)
        assert reply.to_dict() == {
            "responseCode": "CLIENT_ERROR",
            "params": {"err": "INVALID_OPERATION_NAME", "errmsg": "bad"},
        }
