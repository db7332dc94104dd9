"""
Chooses the checks to run for a certificate based on its verification type.
"""

from __future__ import annotations

import logging

from .context import context_logger
from .errors import UnsupportedVerificationType
from .expiry import check_expiry
from .models import HOSTED, SIGNED_BADGE, Certificate, RequestContext, VerificationVerdict
from .signature import SignatureClient, check_signature

logger = logging.getLogger(__name__)


class VerificationRouter:
    """
    Runs the checks a certificate's verification type calls for.

    - hosted: expiry only
    - signed-badge: signature, then expiry

    Args:
        signature_client: Client for the signature verification service
    """

    def __init__(self, signature_client: SignatureClient):
        self.signature_client = signature_client

    async def verify(self, context: RequestContext, certificate: Certificate) -> VerificationVerdict:
        """
        Verify a certificate and aggregate the findings.

        Raises:
            UnsupportedVerificationType: If the verification type is neither
                hosted nor signed-badge
        """
        log = context_logger(logger, context)
        kind = certificate.verification_type

        if kind == HOSTED:
            verdict = VerificationVerdict.from_findings(
                check_expiry(certificate.expires, context),
            )
        elif kind == SIGNED_BADGE:
            # Signature first: message order follows check order
            signature_finding = await check_signature(certificate, self.signature_client, context)
            verdict = VerificationVerdict.from_findings(
                signature_finding,
                check_expiry(certificate.expires, context),
            )
        else:
            raise UnsupportedVerificationType(kind)

        log.info("Verified %s certificate: valid=%s errors=%d", kind, verdict.valid, verdict.error_count)
        return verdict
