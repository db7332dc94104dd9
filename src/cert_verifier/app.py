"""
Starlette application exposing the verifier pool over HTTP.
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncIterator

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .actor import VerifierPool, build_pool
from .config import Settings
from .context import request_context_from_headers
from .errors import CertificateServiceError, ErrorReply, ResponseCode
from .models import CertificateRef, Operation, Reply, VerificationRequest

logger = logging.getLogger(__name__)

VERIFY_PATH = "/certs/v1/verify"

# Upper bound on how long the HTTP layer waits for a reply
DEFAULT_ASK_TIMEOUT_S = 30.0


def _reply_response(reply: Reply) -> JSONResponse:
    return JSONResponse(status_code=int(reply.response_code), content=reply.to_dict())


def _bad_request(message: str) -> JSONResponse:
    logger.info("Rejected verify request: %s", message)
    return _reply_response(
        ErrorReply(code="INVALID_REQUEST", message=message, response_code=ResponseCode.CLIENT_ERROR)
    )


def create_app(
    settings: Settings | None = None,
    pool: VerifierPool | None = None,
    ask_timeout_s: float = DEFAULT_ASK_TIMEOUT_S,
) -> Starlette:
    """
    Create the HTTP application.

    Args:
        settings: Configuration. Default: read from the environment
        pool: Pre-built pool. Default: built from ``settings``
        ask_timeout_s: How long a request may wait for its reply

    Example:
        >>> app = create_app()
        >>> # uvicorn cert_verifier.app:create_app --factory
    """
    settings = settings or Settings.from_env()
    pool = pool or build_pool(settings)

    async def verify(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            return _bad_request("Request body must be valid JSON")

        params = body.get("request") if isinstance(body, dict) else None
        if not isinstance(params, dict):
            return _bad_request("Request body must contain a 'request' object")

        operation = Operation.VERIFY_CERTIFICATE.value
        try:
            ref = CertificateRef.from_dict(params.get("certificate"))
        except CertificateServiceError as e:
            return _reply_response(e.to_reply())

        headers = dict(request.headers.items())
        verification_request = VerificationRequest(
            operation=operation,
            certificate=ref,
            context=request_context_from_headers(headers, operation),
            headers=headers,
        )
        reply = await pool.ask(verification_request, timeout=ask_timeout_s)
        return _reply_response(reply)

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "service": "cert-verifier"})

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await pool.start()
        try:
            yield
        finally:
            await pool.stop()

    app = Starlette(
        routes=[
            Route(VERIFY_PATH, verify, methods=["POST"]),
            Route("/health", health, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
    app.state.pool = pool
    return app
