"""Queue consumer answering user validation requests from Redis."""

import asyncio

import structlog
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from shared.messaging.transport import ValidationHandler, call_handler
from shared.messaging.user_validation import (
    INTERNAL_ERROR,
    USER_VALIDATION_PATTERN,
    USER_VALIDATION_QUEUE,
    ReplyEnvelope,
    UserValidationResponse,
    ValidationEnvelope,
    to_wire,
)

logger = structlog.get_logger(__name__)


class UserValidationConsumer:
    """Pops validation requests off the shared queue and pushes replies back.

    Several consumers (in one process or many) may listen on the same queue;
    BRPOP hands each request to exactly one of them. A handler that raises is
    answered with an ``INTERNAL_ERROR`` verdict so the worker keeps running.
    Envelopes that cannot be decoded are logged and dropped since there is
    nobody to reply to.
    """

    def __init__(
        self,
        redis: Redis,
        handler: ValidationHandler,
        queue: str = USER_VALIDATION_QUEUE,
        poll_interval: float = 1.0,
        reply_ttl: int = 60,
    ) -> None:
        self._redis = redis
        self._handler = handler
        self.queue = queue
        self.poll_interval = poll_interval
        self.reply_ttl = reply_ttl
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Consume until ``stop()`` is called."""
        self._running = True
        logger.info("Listening for user validation requests", queue=self.queue)

        while self._running:
            try:
                item = await self._redis.brpop([self.queue], timeout=self.poll_interval)
            except RedisError:
                logger.exception("Error reading user validation requests", queue=self.queue)
                await asyncio.sleep(self.poll_interval)
                continue

            if item is not None:
                _, raw = item
                await self.process(raw)

        logger.info("Stopped listening for user validation requests", queue=self.queue)

    def stop(self) -> None:
        self._running = False

    async def process(self, raw: str | bytes) -> None:
        """Answer one raw request envelope."""
        try:
            envelope = ValidationEnvelope.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding malformed user validation request", queue=self.queue)
            return

        if envelope.pattern != USER_VALIDATION_PATTERN:
            logger.warning("Discarding message with unknown pattern", pattern=envelope.pattern)
            return

        try:
            response = await call_handler(self._handler, envelope.data)
        except Exception:
            logger.exception("User validation handler failed", correlation_id=envelope.id)
            response = UserValidationResponse.invalid(INTERNAL_ERROR)

        reply = ReplyEnvelope(id=envelope.id, response=response)
        try:
            await self._redis.lpush(envelope.reply_to, to_wire(reply))
            await self._redis.expire(envelope.reply_to, self.reply_ttl)
        except RedisError:
            # The requester times out and treats the user as not validated
            logger.exception("Could not deliver user validation reply", correlation_id=envelope.id)
