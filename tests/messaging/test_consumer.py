"""Queue consumer answering user validation requests."""

import asyncio
import time
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import RedisError
from shared.messaging.consumer import UserValidationConsumer
from shared.messaging.user_validation import (
    INTERNAL_ERROR,
    USER_VALIDATION_QUEUE,
    ReplyEnvelope,
    Role,
    UserSnapshot,
    UserValidationRequest,
    UserValidationResponse,
    ValidationEnvelope,
    to_wire,
)

pytestmark = pytest.mark.asyncio


def _request(user_id="user-001", correlation_id="corr-001", reply_to="replies", **overrides):
    envelope = ValidationEnvelope(
        id=correlation_id,
        reply_to=reply_to,
        data=UserValidationRequest(user_id=user_id),
        **overrides,
    )
    return to_wire(envelope)


class TestProcess:
    async def test_replies_on_the_requested_channel(self, fake_redis, directory):
        consumer = UserValidationConsumer(fake_redis, directory)

        await consumer.process(_request(user_id="admin-001", correlation_id="corr-42"))

        reply = ReplyEnvelope.model_validate_json(fake_redis.lists["replies"][0])
        assert reply.id == "corr-42"
        assert reply.response.is_valid is True
        assert reply.response.user.role is Role.ADMIN

    async def test_reply_channel_expires(self, fake_redis, directory):
        consumer = UserValidationConsumer(fake_redis, directory, reply_ttl=15)

        await consumer.process(_request())

        assert fake_redis.expirations["replies"] == 15

    async def test_awaits_async_handler(self, fake_redis):
        async def handler(request):
            await asyncio.sleep(0)
            return UserValidationResponse.valid(
                UserSnapshot(id=request.user_id, email="a@example.com", name="Async", role=Role.USER)
            )

        await UserValidationConsumer(fake_redis, handler).process(_request(user_id="user-777"))

        reply = ReplyEnvelope.model_validate_json(fake_redis.lists["replies"][0])
        assert reply.response.user.id == "user-777"

    async def test_handler_fault_is_answered_as_internal_error(self, fake_redis):
        def handler(request):
            raise RuntimeError("identity store down")

        await UserValidationConsumer(fake_redis, handler).process(_request(correlation_id="corr-7"))

        reply = ReplyEnvelope.model_validate_json(fake_redis.lists["replies"][0])
        assert reply.id == "corr-7"
        assert reply.response.is_valid is False
        assert reply.response.error == INTERNAL_ERROR

    async def test_blocking_handler_runs_off_the_loop(self, fake_redis, directory):
        def handler(request):
            time.sleep(0.2)
            return directory(request)

        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                ticks += 1
                await asyncio.sleep(0.01)

        ticking = asyncio.create_task(ticker())
        try:
            await UserValidationConsumer(fake_redis, handler).process(_request())
        finally:
            ticking.cancel()

        assert ticks >= 5
        assert directory.calls == ["user-001"]

    async def test_malformed_envelope_is_dropped(self, fake_redis, directory):
        consumer = UserValidationConsumer(fake_redis, directory)

        await consumer.process('{"pattern": "validate_user", "data": {}}')

        assert directory.calls == []
        assert not any(fake_redis.lists.values())

    async def test_unknown_pattern_is_dropped(self, fake_redis, directory):
        consumer = UserValidationConsumer(fake_redis, directory)

        await consumer.process(_request(pattern="delete_user"))

        assert directory.calls == []
        assert not fake_redis.lists["replies"]

    async def test_delivery_failure_is_not_raised(self, directory):
        redis = AsyncMock()
        redis.lpush.side_effect = RedisError("connection reset")
        consumer = UserValidationConsumer(redis, directory)

        await consumer.process(_request())

        assert directory.calls == ["user-001"]
        redis.expire.assert_not_awaited()


class TestRun:
    async def test_consumes_until_stopped(self, fake_redis, directory, wait_until):
        consumer = UserValidationConsumer(fake_redis, directory, poll_interval=0.05)
        task = asyncio.create_task(consumer.run())
        await wait_until(lambda: consumer.running)

        await fake_redis.lpush(USER_VALIDATION_QUEUE, _request(correlation_id="corr-1"))
        await fake_redis.lpush(USER_VALIDATION_QUEUE, _request(user_id="user-404", correlation_id="corr-2"))
        await wait_until(lambda: len(fake_redis.lists["replies"]) == 2)

        consumer.stop()
        await task

        assert consumer.running is False
        assert directory.calls == ["user-001", "user-404"]

    async def test_survives_redis_errors(self, directory, wait_until):
        attempts = []

        async def brpop(keys, timeout):
            attempts.append(keys)
            if len(attempts) == 1:
                raise RedisError("connection reset")
            await asyncio.sleep(timeout)
            return None

        redis = AsyncMock()
        redis.brpop.side_effect = brpop
        consumer = UserValidationConsumer(redis, directory, poll_interval=0.01)
        task = asyncio.create_task(consumer.run())

        await wait_until(lambda: len(attempts) >= 3)
        consumer.stop()
        await task

        assert directory.calls == []

    async def test_keeps_running_after_handler_fault(self, fake_redis, directory, wait_until):
        def handler(request):
            if request.user_id == "user-boom":
                raise RuntimeError("identity store down")
            return directory(request)

        consumer = UserValidationConsumer(fake_redis, handler, poll_interval=0.05)
        task = asyncio.create_task(consumer.run())
        await wait_until(lambda: consumer.running)

        await fake_redis.lpush(USER_VALIDATION_QUEUE, _request(user_id="user-boom", correlation_id="corr-1"))
        await fake_redis.lpush(USER_VALIDATION_QUEUE, _request(correlation_id="corr-2"))
        await wait_until(lambda: len(fake_redis.lists["replies"]) == 2)

        assert not task.done()
        consumer.stop()
        await task

        replies = [ReplyEnvelope.model_validate_json(raw) for raw in reversed(fake_redis.lists["replies"])]
        assert [reply.response.error for reply in replies] == [INTERNAL_ERROR, None]
