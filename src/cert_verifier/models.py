"""
Data models for certificate verification.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

from .errors import ErrorReply, InvalidCertificate, ResponseCode

HOSTED = "hosted"
SIGNED_BADGE = "signed-badge"


class Operation(str, Enum):
    """Operations the verifier actor understands."""
    VERIFY_CERTIFICATE = "verifyCertificate"

    @classmethod
    def lookup(cls, name: str | None) -> Operation | None:
        """Match an operation name case-insensitively."""
        if not name:
            return None
        for op in cls:
            if op.value.lower() == name.lower():
                return op
        return None


@dataclass(frozen=True)
class RequestContext:
    """
    Request-scoped identifiers carried through every call for logging.

    Attributes:
        trace_id: Correlation id of the inbound call
        user_id: Authenticated user, if any
        device_id: Calling device (x-device-id)
        session_id: Calling session (x-session-id)
        app_id: Calling application (x-app-id)
        app_version: Calling application version (x-app-ver)
        locale: Preferred locale of the caller
        debug_enabled: Whether the caller asked for tracing
        operation: Operation being served
    """
    trace_id: str
    user_id: str | None = None
    device_id: str | None = None
    session_id: str | None = None
    app_id: str | None = None
    app_version: str | None = None
    locale: str | None = None
    debug_enabled: bool = False
    operation: str | None = None

    def log_fields(self) -> dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "app_id": self.app_id,
            "operation": self.operation,
        }


@dataclass(frozen=True)
class CertificateRef:
    """
    Reference to the certificate under verification.

    Exactly one of ``data`` (inline document) or ``id`` (content store
    identifier) is set.
    """
    data: Mapping[str, Any] | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> CertificateRef:
        if not isinstance(raw, Mapping):
            raise InvalidCertificate("certificate must be an object")
        if "data" in raw:
            data = raw["data"]
            if not isinstance(data, Mapping):
                raise InvalidCertificate("certificate.data must be an object")
            return cls(data=data)
        if "id" in raw:
            identifier = raw["id"]
            if not isinstance(identifier, str) or not identifier.strip():
                raise InvalidCertificate("certificate.id must be a non-empty string")
            return cls(id=identifier)
        raise InvalidCertificate("certificate.data or certificate.id is required")

    @property
    def is_inline(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class VerificationRequest:
    """
    One inbound unit of work for the verifier actor.

    Attributes:
        operation: Operation name as sent by the caller
        certificate: Certificate reference, if the caller sent one
        context: Request-scoped context
        headers: Inbound headers, used for the correlation trace
    """
    operation: str
    certificate: CertificateRef | None
    context: RequestContext
    headers: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Certificate:
    """
    Typed view over a certificate document.

    The raw ``document`` is kept as received; nothing in the verifier
    mutates it.
    """
    document: Mapping[str, Any]
    verification_type: str
    creator: str | None = None
    expires: str | None = None
    signature_value: str | None = None

    @classmethod
    def from_dict(cls, document: Any) -> Certificate:
        """
        Validate a certificate document and build its typed view.

        Raises:
            InvalidCertificate: If a field the verifier relies on is missing
                or has the wrong shape
        """
        if not isinstance(document, Mapping):
            raise InvalidCertificate("certificate document must be an object")

        verification = document.get("verification")
        if not isinstance(verification, Mapping):
            raise InvalidCertificate("certificate.verification must be an object")

        types = verification.get("type")
        if isinstance(types, str):
            types = [types]
        if not isinstance(types, list) or not types or not isinstance(types[0], str):
            raise InvalidCertificate("certificate.verification.type must be a non-empty list")

        creator = verification.get("creator")
        if creator is not None and not isinstance(creator, str):
            raise InvalidCertificate("certificate.verification.creator must be a string")

        expires = document.get("expires")
        if expires is not None and not isinstance(expires, str):
            raise InvalidCertificate("certificate.expires must be a string")

        signature_value = None
        signature = document.get("signature")
        if signature is not None:
            if not isinstance(signature, Mapping):
                raise InvalidCertificate("certificate.signature must be an object")
            signature_value = signature.get("signatureValue")

        return cls(
            document=document,
            verification_type=types[0],
            creator=creator,
            expires=expires,
            signature_value=signature_value,
        )

    def unsigned_document(self) -> dict[str, Any]:
        """Return a deep copy of the document without its signature block."""
        unsigned = copy.deepcopy(dict(self.document))
        unsigned.pop("signature", None)
        return unsigned


@dataclass(frozen=True)
class VerificationVerdict:
    """
    Aggregated result of one verification pass.

    Attributes:
        messages: Failure messages in check order (signature before expiry)
    """
    messages: tuple[str, ...] = ()

    @classmethod
    def from_findings(cls, *findings: str | None) -> VerificationVerdict:
        return cls(messages=tuple(f for f in findings if f is not None))

    @property
    def error_count(self) -> int:
        return len(self.messages)

    @property
    def valid(self) -> bool:
        return not self.messages

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errorCount": self.error_count,
            "messages": list(self.messages),
        }


@dataclass(frozen=True)
class Response:
    """Success envelope sent back to the caller."""
    result: Mapping[str, Any]
    response_code: ResponseCode = ResponseCode.OK

    @classmethod
    def for_verdict(cls, verdict: VerificationVerdict) -> Response:
        return cls(result={"response": verdict})

    def to_dict(self) -> dict[str, Any]:
        result = {
            key: value.to_dict() if isinstance(value, VerificationVerdict) else value
            for key, value in self.result.items()
        }
        return {"responseCode": self.response_code.name, "result": result}


Reply = Union[Response, ErrorReply]
