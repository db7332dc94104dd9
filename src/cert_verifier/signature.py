"""
Signature check against the external signature verification service.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

from .context import context_logger
from .errors import InvalidCertificate, SignatureUnreachable, SignatureVerificationFailed
from .models import Certificate, RequestContext

logger = logging.getLogger(__name__)

# Default signature verification endpoint
DEFAULT_SIGNATURE_SERVICE_URL = "http://localhost:8013/verify"

SIGNATURE_MESSAGE = "ERROR: Assertion.signature - certificate is not valid, signature verification failed"


def canonicalize(document: Mapping[str, Any]) -> str:
    """
    Serialize a document deterministically for signature checks.

    Keys are sorted at every level and separators carry no whitespace, so the
    same document always produces the same string.

    Examples:
        >>> canonicalize({"b": 1, "a": {"d": 2, "c": 3}})
        '{"a":{"c":3,"d":2},"b":1}'
    """
    return json.dumps(document, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def key_id_from_creator(creator: str | None) -> str | None:
    """
    Derive the signing key id from the creator URL.

    Examples:
        >>> key_id_from_creator("https://example.org/keys/7_publicKey.json")
        '7'
        >>> key_id_from_creator("issuer-key")
        'issuer-key'
    """
    if not creator:
        return None
    name = creator.rstrip("/").rsplit("/", 1)[-1]
    return name.split("_", 1)[0] or name


class SignatureClient:
    """
    Client for the signature verification service.

    Args:
        service_url: URL of the service's verify endpoint.
            Default: http://localhost:8013/verify
        timeout_s: Request timeout in seconds. Default: 5.0

    The underlying httpx client is created on first use and shared by all
    calls until ``aclose``.

    Example:
        >>> client = SignatureClient("http://enc-service/verify")
        >>> valid = await client.verify(payload, signature_value, creator)
    """

    def __init__(
        self,
        service_url: str = DEFAULT_SIGNATURE_SERVICE_URL,
        timeout_s: float = 5.0,
    ):
        self.service_url = service_url
        self.timeout_s = timeout_s
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _payload(self, payload: str, signature_value: str, signer: str | None) -> dict[str, Any]:
        return {
            "claim": payload,
            "signatureValue": signature_value,
            "keyId": key_id_from_creator(signer),
            "creator": signer,
        }

    async def verify(
        self,
        payload: str,
        signature_value: str,
        signer: str | None,
    ) -> bool:
        """
        Ask the service whether a signature matches a canonical payload.

        Args:
            payload: Canonical document the signature was computed over
            signature_value: Signature to check
            signer: Claimed signer identity (creator URL)

        Returns:
            True if the service reports the signature valid

        Raises:
            SignatureUnreachable: On network errors or timeouts
            SignatureVerificationFailed: If the service errors or answers
                with something other than a verdict
        """
        try:
            response = await self._get_client().post(
                self.service_url,
                json=self._payload(payload, signature_value, signer),
            )
        except httpx.HTTPError as e:
            raise SignatureUnreachable(f"Signature service unreachable: {e}") from e

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> bool:
        """Parse the service response into a boolean verdict."""
        if response.status_code >= 500:
            raise SignatureVerificationFailed(
                f"Signature service error: {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SignatureVerificationFailed(
                f"Invalid signature service response: {response.status_code}"
            ) from e

        if isinstance(data, bool):
            return data
        if isinstance(data, dict) and isinstance(data.get("verified"), bool):
            return data["verified"]

        raise SignatureVerificationFailed(
            f"Invalid signature service response: {response.status_code}"
        )


async def check_signature(
    certificate: Certificate,
    client: SignatureClient,
    context: RequestContext | None = None,
) -> str | None:
    """
    Verify a signed certificate's signature.

    The signature block is removed from a copy of the document before
    canonicalization; the certificate itself is left untouched.

    Returns:
        SIGNATURE_MESSAGE if the service reports the signature invalid, else None

    Raises:
        InvalidCertificate: If the certificate carries no signature value
        SignatureUnreachable: If the service cannot be reached
        SignatureVerificationFailed: If the service cannot produce a verdict
    """
    if not certificate.signature_value:
        raise InvalidCertificate("certificate.signature.signatureValue is required for signed certificates")

    payload = canonicalize(certificate.unsigned_document())
    valid = await client.verify(payload, certificate.signature_value, certificate.creator)
    if not valid:
        context_logger(logger, context).info("Signature rejected for creator %s", certificate.creator)
        return SIGNATURE_MESSAGE
    return None
