"""Request/response transport for user validation calls.

A ``ValidationTransport`` delivers one ``UserValidationRequest`` to the
Identity side and waits for exactly one correlated ``UserValidationResponse``.
The wait is bounded: on timeout or any transport fault the call resolves to a
synthetic invalid response instead of raising, so callers handle "user could
not be validated" the same way whatever the cause.

Two implementations:

- ``RedisValidationTransport`` pushes requests onto a durable Redis list shared
  by every responder instance and listens on a private reply list. Pending
  calls are futures keyed by correlation ID; an entry is evicted as soon as
  its call resolves or times out, and replies for unknown IDs are dropped.
- ``InlineValidationTransport`` hands the request straight to an in-process
  handler. Used when both services are hosted in one process (development,
  tests).

Neither implementation retries. Retrying is the caller's decision.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from uuid import uuid4

import structlog
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from shared.messaging.user_validation import (
    USER_VALIDATION_QUEUE,
    VALIDATION_UNAVAILABLE,
    ReplyEnvelope,
    UserValidationRequest,
    UserValidationResponse,
    ValidationEnvelope,
    to_wire,
)

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 5.0

ValidationHandler = Callable[
    [UserValidationRequest],
    UserValidationResponse | Awaitable[UserValidationResponse],
]


async def call_handler(handler: ValidationHandler, request: UserValidationRequest) -> UserValidationResponse:
    """Invoke ``handler`` without blocking the event loop.

    Coroutine handlers are awaited; plain callables run in a worker thread so a
    slow store lookup cannot stall other requests or outlive the caller's timeout.
    """
    if inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(getattr(handler, "__call__", None)):
        return await handler(request)

    result = await asyncio.to_thread(handler, request)
    if inspect.isawaitable(result):
        result = await result
    return result


class ValidationTransport(ABC):
    """Base class: bounded wait and fault translation around ``_send``."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    async def start(self) -> None:
        """Acquire resources needed to send requests. Safe to call twice."""

    async def close(self) -> None:
        """Release resources. Outstanding calls resolve as invalid."""

    async def request_validation(self, user_id: str) -> UserValidationResponse:
        """Ask whether ``user_id`` is an existing user; never raises on transport faults."""
        logger.debug("Validating user", user_id=user_id)
        try:
            request = UserValidationRequest(user_id=user_id)
            response = await asyncio.wait_for(self._send(request), timeout=self.timeout)
        except TimeoutError:
            logger.warning("User validation timed out", user_id=user_id, timeout=self.timeout)
        except Exception:
            logger.exception("User validation failed", user_id=user_id)
        else:
            logger.debug("User validation response", user_id=user_id, is_valid=response.is_valid)
            return response

        return UserValidationResponse.invalid(VALIDATION_UNAVAILABLE)

    @abstractmethod
    async def _send(self, request: UserValidationRequest) -> UserValidationResponse:
        """Deliver ``request`` and wait for its reply. May raise; may block indefinitely."""


class InlineValidationTransport(ValidationTransport):
    """Delivers requests to a handler in the same process."""

    def __init__(self, handler: ValidationHandler, timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__(timeout=timeout)
        self._handler = handler

    async def _send(self, request: UserValidationRequest) -> UserValidationResponse:
        # Yield once so concurrent callers interleave as they would over a queue
        await asyncio.sleep(0)
        return await call_handler(self._handler, request)


class RedisValidationTransport(ValidationTransport):
    """Request/response over a Redis list with correlation IDs.

    Requests are LPUSHed onto ``queue``; responders BRPOP them, so each request
    is answered by exactly one responder even when several are running. Each
    transport instance owns a reply list and a single listener task that
    resolves pending futures as replies arrive.
    """

    def __init__(
        self,
        redis: Redis,
        queue: str = USER_VALIDATION_QUEUE,
        timeout: float = DEFAULT_TIMEOUT,
        reply_to: str | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self._redis = redis
        self.queue = queue
        self.reply_to = reply_to or f"{queue}.reply.{uuid4().hex}"
        self.poll_interval = poll_interval
        self._pending: dict[str, asyncio.Future] = {}
        self._listener: asyncio.Task | None = None

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisValidationTransport":
        return cls(Redis.from_url(url, decode_responses=True), **kwargs)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        if self._listener is None or self._listener.done():
            self._listener = asyncio.create_task(self._listen(), name=f"validation-replies:{self.reply_to}")
            logger.info("Listening for user validation replies", reply_to=self.reply_to)

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None

        for future in self._pending.values():
            if not future.done():
                future.set_result(UserValidationResponse.invalid(VALIDATION_UNAVAILABLE))
        self._pending.clear()

        try:
            await self._redis.delete(self.reply_to)
        except RedisError:
            logger.warning("Could not remove reply channel", reply_to=self.reply_to)
        await self._redis.aclose()
        logger.info("User validation transport closed", reply_to=self.reply_to)

    async def _send(self, request: UserValidationRequest) -> UserValidationResponse:
        await self.start()

        correlation_id = uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._pending[correlation_id] = future
        try:
            envelope = ValidationEnvelope(id=correlation_id, reply_to=self.reply_to, data=request)
            await self._redis.lpush(self.queue, to_wire(envelope))
            return await future
        finally:
            self._pending.pop(correlation_id, None)

    async def _listen(self) -> None:
        while True:
            try:
                item = await self._redis.brpop([self.reply_to], timeout=self.poll_interval)
            except RedisError:
                logger.exception("Error reading user validation replies", reply_to=self.reply_to)
                await asyncio.sleep(self.poll_interval)
                continue

            if item is not None:
                _, raw = item
                self._dispatch_reply(raw)

    def _dispatch_reply(self, raw: str | bytes) -> None:
        """Resolve the pending call a reply belongs to; drop anything else."""
        try:
            reply = ReplyEnvelope.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding malformed user validation reply", reply_to=self.reply_to)
            return

        future = self._pending.get(reply.id)
        if future is None or future.done():
            logger.debug("Discarding late or duplicate user validation reply", correlation_id=reply.id)
            return

        future.set_result(reply.response)
