"""User-validation worker for the Identity service.

Listens on the shared Redis queue and answers validation requests from the
Ordering service. Several workers (in one process or across hosts) may run
against the same queue; each request is answered by exactly one of them.

Usage:
    python src/server.py                # One consumer
    python src/server.py --workers 4    # Four consumers in this process
"""

import argparse
import asyncio
import signal

import structlog
from redis.asyncio import Redis

from shared.messaging.consumer import UserValidationConsumer
from shared.messaging.settings import get_settings

logger = structlog.get_logger(__name__)


def _get_responder():
    """Import and initialize the identity domain, return its responder."""
    from identity.domain import identity
    from identity.messaging.validation import UserValidationResponder

    identity.init()
    return UserValidationResponder(identity)


async def run(workers: int) -> None:
    settings = get_settings()
    responder = _get_responder()
    redis = Redis.from_url(settings.redis_url, decode_responses=True)

    consumers = [
        UserValidationConsumer(
            redis,
            responder,
            queue=settings.user_validation_queue,
            reply_ttl=settings.user_validation_reply_ttl,
        )
        for _ in range(workers)
    ]

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: [consumer.stop() for consumer in consumers])

    logger.info("Starting user validation workers", workers=workers, queue=settings.user_validation_queue)
    try:
        await asyncio.gather(*(consumer.run() for consumer in consumers))
    finally:
        await redis.aclose()


def main():
    parser = argparse.ArgumentParser(description="ShopStream user validation worker")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of concurrent consumers (default: 1)",
    )
    args = parser.parse_args()

    asyncio.run(run(args.workers))


if __name__ == "__main__":
    main()
