"""
Request-handling actor and the worker pool that feeds it.

Each worker owns one actor and handles one request at a time, start to
finish, before taking the next message off the shared queue. Every request
gets exactly one reply, whether it succeeds or fails.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from .config import Settings
from .context import context_logger, extract_message_id
from .errors import CertificateServiceError, InternalError, InvalidOperation, ResponseCode
from .models import Operation, Reply, Response, VerificationRequest
from .resolver import CertificateResolver
from .router import VerificationRouter
from .signature import SignatureClient
from .store import get_content_store

logger = logging.getLogger(__name__)


class ReplySink:
    """
    Single-use return channel for one request.

    The first ``send`` completes the caller's future; any later send is
    logged and dropped. A caller that stops waiting calls ``abandon``, which
    cancels the handling task if a worker has already picked the request up.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[Reply] = asyncio.get_running_loop().create_future()
        self._sent = False
        self._abandoned = False
        self.handler: asyncio.Task | None = None

    @property
    def sent(self) -> bool:
        return self._sent

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    def send(self, reply: Reply) -> bool:
        """Deliver a reply. Returns False if one was already sent."""
        if self._sent:
            logger.warning("Dropping second reply %r: request already answered", reply)
            return False
        self._sent = True
        # The caller may have stopped waiting (ask timeout)
        if not self._future.done():
            self._future.set_result(reply)
        return True

    def abandon(self) -> None:
        """Give up on the reply and cancel any in-flight handling."""
        self._abandoned = True
        if self.handler is not None and not self.handler.done():
            self.handler.cancel()

    async def wait(self) -> Reply:
        return await self._future


class CertificateVerifierActor:
    """
    Serves certificate verification requests.

    ``on_request`` is the error boundary: whatever goes wrong while serving
    one request is turned into a structured error reply, and the actor stays
    usable for the next one.

    Args:
        resolver: Produces the certificate a request refers to
        router: Runs the checks for the certificate's verification type
    """

    def __init__(self, resolver: CertificateResolver, router: VerificationRouter):
        self.resolver = resolver
        self.router = router

    async def on_request(self, request: VerificationRequest, sink: ReplySink) -> None:
        log = context_logger(logger, request.context)
        operation = request.operation

        message_id = extract_message_id(request.headers)
        if message_id:
            log.info("Trace: request message id %s", message_id)

        log.info("on_request started: operation %s", operation)
        reply: Reply | None = None
        try:
            reply = await self._dispatch(request)
        except CertificateServiceError as e:
            if e.response_code >= ResponseCode.SERVER_ERROR:
                log.error("Operation %s failed: %s: %s", operation, e.code, e.message, exc_info=e)
            else:
                log.warning("Operation %s rejected: %s: %s", operation, e.code, e.message)
            reply = e.to_reply()
        except Exception as e:
            log.exception("Unexpected error in operation %s", operation)
            reply = InternalError(f"Internal error while processing {operation}: {type(e).__name__}").to_reply()
        finally:
            if reply is None:
                # Cancelled mid-flight; answer before the cancellation propagates
                reply = InternalError(f"Processing of {operation} was cancelled").to_reply()
            sink.send(reply)
        log.info("on_request ended: operation %s", operation)

    async def _dispatch(self, request: VerificationRequest) -> Reply:
        op = Operation.lookup(request.operation)
        if op is Operation.VERIFY_CERTIFICATE:
            return await self.verify_certificate(request)
        raise InvalidOperation(request.operation)

    async def verify_certificate(self, request: VerificationRequest) -> Response:
        certificate = await self.resolver.resolve(request)
        context_logger(logger, request.context).debug(
            "Certificate type %s, expires %s", certificate.verification_type, certificate.expires,
        )
        verdict = await self.router.verify(request.context, certificate)
        return Response.for_verdict(verdict)


class VerifierPool:
    """
    Pool of workers serving requests from one shared queue.

    Args:
        actor_factory: Creates the actor each worker owns
        workers: Number of workers. Default: 4
        closers: Async callables awaited on ``stop``, for releasing clients
            shared by the actors
    """

    def __init__(
        self,
        actor_factory: Callable[[], CertificateVerifierActor],
        workers: int = 4,
        closers: Iterable[Callable[[], Awaitable[None]]] = (),
    ):
        self.actor_factory = actor_factory
        self.workers = workers
        self.closers = list(closers)
        self._queue: asyncio.Queue[tuple[VerificationRequest, ReplySink]] | None = None
        self._tasks: list[asyncio.Task] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the workers."""
        if self._running:
            return
        self._queue = asyncio.Queue()
        self._tasks = [
            asyncio.create_task(self._worker(index, self._queue), name=f"cert-verifier-{index}")
            for index in range(self.workers)
        ]
        self._running = True
        logger.info("VerifierPool started (workers=%d)", self.workers)

    async def stop(self) -> None:
        """Stop the workers, answer any request still queued and close shared clients."""
        if not self._running:
            return
        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []

        if self._queue is not None:
            while not self._queue.empty():
                request, sink = self._queue.get_nowait()
                sink.send(InternalError(f"Verifier stopped before {request.operation} was processed").to_reply())

        for close in self.closers:
            try:
                await close()
            except Exception:
                logger.exception("Failed to close %r", close)
        logger.info("VerifierPool stopped")

    async def ask(self, request: VerificationRequest, timeout: float | None = None) -> Reply:
        """
        Submit a request and wait for its reply.

        A request that is not answered within ``timeout`` seconds gets an
        INTERNAL_ERROR reply, and its handling is cancelled so the worker
        moves on to the next request.

        Raises:
            RuntimeError: If the pool is not running
        """
        if not self._running or self._queue is None:
            raise RuntimeError("VerifierPool is not running")
        sink = ReplySink()
        await self._queue.put((request, sink))
        try:
            return await asyncio.wait_for(sink.wait(), timeout)
        except asyncio.TimeoutError:
            context_logger(logger, request.context).error(
                "No reply to %s within %ss, cancelling it", request.operation, timeout,
            )
            sink.abandon()
            return InternalError(f"Timed out waiting for {request.operation}").to_reply()

    async def _worker(self, index: int, queue: asyncio.Queue[tuple[VerificationRequest, ReplySink]]) -> None:
        actor = self.actor_factory()
        while True:
            request, sink = await queue.get()
            try:
                if sink.abandoned:
                    continue
                handler = asyncio.create_task(actor.on_request(request, sink))
                sink.handler = handler
                try:
                    await asyncio.wait({handler})
                except asyncio.CancelledError:
                    handler.cancel()
                    await asyncio.wait({handler})
                    raise
                if handler.cancelled():
                    logger.info("Worker %d: %s cancelled", index, request.operation)
                elif handler.exception() is not None:
                    logger.error(
                        "Worker %d: actor failed outside its error boundary", index,
                        exc_info=handler.exception(),
                    )
                if not sink.sent:
                    sink.send(InternalError("Internal error").to_reply())
            finally:
                queue.task_done()


def build_pool(settings: Settings) -> VerifierPool:
    """Wire a pool from configuration. Clients are shared across workers and closed on stop."""
    store = get_content_store(settings.store)
    resolver = CertificateResolver(store, tmp_dir=settings.tmp_dir)
    signature_client = SignatureClient(
        settings.signature_service_url,
        timeout_s=settings.signature_timeout_s,
    )
    router = VerificationRouter(signature_client)

    def actor_factory() -> CertificateVerifierActor:
        return CertificateVerifierActor(resolver, router)

    return VerifierPool(
        actor_factory,
        workers=settings.workers,
        closers=[store.aclose, signature_client.aclose],
    )
