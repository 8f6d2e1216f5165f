import asyncio
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from integration.exceptions import MessageChannelException
from integration.services.message_channel import MessageCallback, MessageChannel

logger = logging.getLogger(__name__)


class RedisMessageChannel(MessageChannel):
    """Message channel backed by Redis Pub/Sub.

    Topics map one to one to Redis channels. Payloads are exchanged as raw
    bytes. A single listener task reads every subscribed channel and hands
    each payload to the callback registered for it; callbacks are awaited in
    arrival order, so they should hand long work off to their own task.
    """

    def __init__(self, url: str, reconnect_delay: float = 1.0):
        self._url = url
        self._reconnect_delay = reconnect_delay
        self._lock = asyncio.Lock()
        self._redis_client: redis.Redis | None = None
        self._redis_pubsub = None
        self._listen_task: asyncio.Task | None = None
        self._callbacks: dict[str, MessageCallback] = {}

    async def connect_async(self) -> None:
        async with self._lock:
            if self._redis_client is not None:
                return
            try:
                client = redis.from_url(self._url, decode_responses=False)
                await client.ping()
            except RedisError as e:
                logger.error(f"Failed to connect to message channel: {e}")
                raise MessageChannelException(f"Unable to connect to message channel: {e}") from e
            self._redis_client = client
            self._redis_pubsub = client.pubsub()
            logger.info("Connected to Redis message channel")

    async def subscribe_async(self, topic: str, callback: MessageCallback) -> None:
        async with self._lock:
            if self._redis_pubsub is None:
                raise MessageChannelException("Message channel is not connected")

            self._callbacks[topic] = callback
            await self._redis_pubsub.subscribe(topic)
            logger.info(f"Subscribed to Redis channel: {topic}")

            if self._listen_task is None or self._listen_task.done():
                self._listen_task = asyncio.create_task(self._listen_async())

    async def publish_async(self, topic: str, payload: bytes) -> None:
        if self._redis_client is None:
            raise MessageChannelException("Message channel is not connected")
        try:
            await self._redis_client.publish(topic, payload)
        except RedisError as e:
            logger.error(f"Failed to publish to Redis channel {topic}: {e}")
            raise MessageChannelException(f"Unable to publish to {topic}: {e}") from e

    async def close_async(self) -> None:
        if self._listen_task:
            self._listen_task.cancel()
            try:
                await self._listen_task
            except asyncio.CancelledError:
                pass
            self._listen_task = None

        if self._redis_pubsub:
            await self._redis_pubsub.unsubscribe()
            await self._redis_pubsub.aclose()
            self._redis_pubsub = None

        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None

        self._callbacks.clear()
        logger.info("Redis message channel closed")

    async def _listen_async(self) -> None:
        # Re-enter listen() after a connection error; the pubsub resubscribes its channels on reconnect
        # Runs until cancelled; the pubsub resubscribes its channels when it reconnects
        while True:
            try:
                async for message in self._redis_pubsub.listen():
                    await self._dispatch_async(message)
                return
            except asyncio.CancelledError:
                logger.info("Redis listener task cancelled")
                raise
            except RedisError as e:
                logger.error(f"Redis listener error, retrying in {self._reconnect_delay}s: {e}")
                await asyncio.sleep(self._reconnect_delay)

    async def _dispatch_async(self, message: dict) -> None:
        """Hand a Pub/Sub message to the callback of its channel."""
        if message.get("type") != "message":
            return

        channel = message["channel"]
        if isinstance(channel, bytes):
            channel = channel.decode("utf-8")

        callback = self._callbacks.get(channel)
        if callback is None:
            logger.debug(f"Ignoring message on unsubscribed channel {channel}")
            return

        try:
            await callback(message["data"])
        except Exception as e:
            logger.error(f"Message callback for {channel} failed: {e}", exc_info=True)
