"""
Certificate Verifier

Verify hosted and signed-badge certificates, inline or fetched from a content store.
"""

from .models import (
    Certificate,
    CertificateRef,
    Operation,
    RequestContext,
    Response,
    VerificationRequest,
    VerificationVerdict,
)
from .errors import (
    CertificateServiceError,
    ContentFetchError,
    ErrorReply,
    InternalError,
    InvalidCertificate,
    InvalidOperation,
    SignatureUnreachable,
    SignatureVerificationFailed,
    UnsupportedVerificationType,
)
from .config import Settings
from .signature import SignatureClient
from .store import HttpContentStore, StoreConfig
from .resolver import CertificateResolver
from .router import VerificationRouter
from .actor import CertificateVerifierActor, ReplySink, VerifierPool, build_pool

__version__ = "0.1.0"

__all__ = [
    "Certificate",
    "CertificateRef",
    "Operation",
    "RequestContext",
    "Response",
    "VerificationRequest",
    "VerificationVerdict",
    "CertificateServiceError",
    "ContentFetchError",
    "ErrorReply",
    "InternalError",
    "InvalidCertificate",
    "InvalidOperation",
    "SignatureUnreachable",
    "SignatureVerificationFailed",
    "UnsupportedVerificationType",
    "Settings",
    "SignatureClient",
    "HttpContentStore",
    "StoreConfig",
    "CertificateResolver",
    "VerificationRouter",
    "CertificateVerifierActor",
    "ReplySink",
    "VerifierPool",
    "build_pool",
]
