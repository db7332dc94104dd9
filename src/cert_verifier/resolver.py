"""
Resolves the certificate document for a request, inline or from the content store.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile

from .context import context_logger
from .errors import InvalidCertificate
from .models import Certificate, VerificationRequest
from .store import ContentStore

logger = logging.getLogger(__name__)


class CertificateResolver:
    """
    Produces the Certificate a request refers to.

    Args:
        store: Content store used for by-reference certificates
        tmp_dir: Directory for the transient copy of fetched certificates.
            Default: the system temp directory
    """

    def __init__(self, store: ContentStore, tmp_dir: str | None = None):
        self.store = store
        self.tmp_dir = tmp_dir

    async def resolve(self, request: VerificationRequest) -> Certificate:
        """
        Return the certificate for a request.

        Raises:
            InvalidCertificate: If the request has no certificate reference or
                the document is malformed
            ContentFetchError: If the content store fetch fails
        """
        ref = request.certificate
        if ref is None:
            raise InvalidCertificate("certificate.data or certificate.id is required")
        if ref.is_inline:
            return Certificate.from_dict(ref.data)

        log = context_logger(logger, request.context)
        log.info("Fetching certificate %s from content store", ref.id)
        raw = await self.store.get(ref.id)
        document = await asyncio.to_thread(self._parse, ref.id, raw)
        return Certificate.from_dict(document)

    def _parse(self, identifier: str, raw: bytes) -> object:
        """Stage the fetched bytes in a private temp file and parse them. Runs off the event loop."""
        fd, path = tempfile.mkstemp(prefix="cert-", suffix=".json", dir=self.tmp_dir)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(raw)
            with open(path, "rb") as fh:
                return json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidCertificate(f"certificate {identifier} is not valid JSON: {e}") from e
        finally:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
