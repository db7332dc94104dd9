"""Tests for CertificateResolver."""

import threading

import pytest

from cert_verifier.errors import ContentFetchError, InvalidCertificate
from cert_verifier.models import CertificateRef
from cert_verifier.resolver import CertificateResolver

from conftest import encode, hosted_certificate, make_request


class FakeStore:
    """In-memory content store."""

    def __init__(self, items=None, error=None):
        self.items = items or {}
        self.error = error
        self.requested = []

    async def get(self, identifier):
        self.requested.append(identifier)
        if self.error is not None:
            raise self.error
        return self.items[identifier]


class ThreadRecordingResolver(CertificateResolver):
    """Resolver that records which thread parses fetched content."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.parse_threads = []

    def _parse(self, identifier, raw):
        self.parse_threads.append(threading.get_ident())
        return super()._parse(identifier, raw)


class TestCertificateResolver:
    """Tests for CertificateResolver.resolve."""

    @pytest.mark.asyncio
    async def test_inline(self, tmp_path):
        """Inline certificates are used without touching the store."""
        store = FakeStore()
        doc = hosted_certificate()

        cert = await CertificateResolver(store, tmp_dir=str(tmp_path)).resolve(make_request(doc))

        assert cert.document is doc
        assert cert.verification_type == "hosted"
        assert store.requested == []

    @pytest.mark.asyncio
    async def test_by_reference(self, tmp_path):
        """By-reference certificates are fetched and parsed."""
        store = FakeStore({"certs/abc.json": encode(hosted_certificate())})
        request = make_request(CertificateRef(id="certs/abc.json"))

        cert = await CertificateResolver(store, tmp_dir=str(tmp_path)).resolve(request)

        assert cert.verification_type == "hosted"
        assert store.requested == ["certs/abc.json"]
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_invalid_json_cleans_up(self, tmp_path):
        """Unparseable content is rejected and the temp file removed."""
        store = FakeStore({"abc.json": b"not json {"})
        request = make_request(CertificateRef(id="abc.json"))

        with pytest.raises(InvalidCertificate, match="not valid JSON"):
            await CertificateResolver(store, tmp_dir=str(tmp_path)).resolve(request)
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_invalid_document_cleans_up(self, tmp_path):
        """A parsed document without a verification block is rejected."""
        store = FakeStore({"abc.json": encode({"id": "abc"})})
        request = make_request(CertificateRef(id="abc.json"))

        with pytest.raises(InvalidCertificate, match="verification"):
            await CertificateResolver(store, tmp_dir=str(tmp_path)).resolve(request)
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_fetch_failure(self, tmp_path):
        """Store failures propagate and leave nothing behind."""
        store = FakeStore(error=ContentFetchError("abc.json", not_found=True))
        request = make_request(CertificateRef(id="abc.json"))

        with pytest.raises(ContentFetchError) as exc_info:
            await CertificateResolver(store, tmp_dir=str(tmp_path)).resolve(request)
        assert exc_info.value.identifier == "abc.json"
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_reference(self, tmp_path):
        """A request without a certificate reference is rejected."""
        resolver = CertificateResolver(FakeStore(), tmp_dir=str(tmp_path))

        with pytest.raises(InvalidCertificate):
            await resolver.resolve(make_request(None))

    @pytest.mark.asyncio
    async def test_parse_runs_off_event_loop(self, tmp_path):
        """Temp-file staging and parsing run in a worker thread."""
        store = FakeStore({"abc.json": encode(hosted_certificate())})
        resolver = ThreadRecordingResolver(store, tmp_dir=str(tmp_path))

        cert = await resolver.resolve(make_request(CertificateRef(id="abc.json")))

        assert cert.verification_type == "hosted"
        assert len(resolver.parse_threads) == 1
        assert resolver.parse_threads[0] != threading.get_ident()
        assert list(tmp_path.iterdir()) == []
