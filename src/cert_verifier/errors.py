"""
Error codes and exception types for certificate verification.

Every failure that can reach a caller is a ``CertificateServiceError``; the
actor converts it into an ``ErrorReply`` with a stable code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ResponseCode(IntEnum):
    OK = 200
    CLIENT_ERROR = 400
    RESOURCE_NOT_FOUND = 404
    SERVER_ERROR = 500


@dataclass(frozen=True)
class ErrorReply:
    """Structured error sent back to the caller instead of a Response."""
    code: str
    message: str
    response_code: ResponseCode = ResponseCode.SERVER_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "responseCode": self.response_code.name,
            "params": {"err": self.code, "errmsg": self.message},
        }


class CertificateServiceError(Exception):
    """Base class for errors surfaced to the caller as a structured reply."""

    code = "INTERNAL_ERROR"
    response_code = ResponseCode.SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_reply(self) -> ErrorReply:
        return ErrorReply(
            code=self.code,
            message=self.message,
            response_code=self.response_code,
        )


class InvalidOperation(CertificateServiceError):
    code = "INVALID_OPERATION_NAME"
    response_code = ResponseCode.CLIENT_ERROR

    def __init__(self, operation: str | None):
        super().__init__(f"Operation name is invalid: {operation!r}")
        self.operation = operation


class InvalidCertificate(CertificateServiceError):
    """The certificate reference or document does not have the expected shape."""

    code = "INVALID_CERTIFICATE"
    response_code = ResponseCode.CLIENT_ERROR


class UnsupportedVerificationType(CertificateServiceError):
    code = "UNSUPPORTED_VERIFICATION_TYPE"
    response_code = ResponseCode.CLIENT_ERROR

    def __init__(self, verification_type: str):
        super().__init__(f"Unsupported certificate verification type: {verification_type!r}")
        self.verification_type = verification_type


class ContentFetchError(CertificateServiceError):
    """
    The certificate could not be fetched from the content store.

    A not-found answer from the store is the caller's fault (bad identifier);
    anything else is reported as a server error.
    """

    def __init__(self, identifier: str, cause: BaseException | None = None, not_found: bool = False):
        if not_found:
            message = f"Invalid value {identifier} for parameter id. Please provide a valid value."
        else:
            message = f"Could not fetch certificate {identifier}: {cause}"
        super().__init__(message)
        self.identifier = identifier
        self.cause = cause
        self.not_found = not_found
        if not_found:
            self.code = "INVALID_PARAM_VALUE"
            self.response_code = ResponseCode.CLIENT_ERROR
        else:
            self.code = "CONTENT_FETCH_ERROR"
            self.response_code = ResponseCode.SERVER_ERROR


class SignatureUnreachable(CertificateServiceError):
    """The signature verification service could not be reached."""

    code = "SIGNATURE_SERVICE_UNREACHABLE"


class SignatureVerificationFailed(CertificateServiceError):
    """
    The signature service answered, but not with a usable verdict.

    A signature that is checked and found invalid is not this error; it is
    a verdict message.
    """

    code = "SIGNATURE_VERIFICATION_ERROR"


class InternalError(CertificateServiceError):
    code = "INTERNAL_ERROR"
