"""Message Channel Service Provider Interface (SPI).

Abstraction over the publish/subscribe transport carrying instance
creation requests and their outcomes.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

MessageCallback = Callable[[bytes], Awaitable[None]]


class MessageChannel(ABC):
    """
    Abstract publish/subscribe channel exchanging raw byte payloads on named topics.

    One channel is shared by every request handled by the process; implementations
    must allow concurrent publishes.

    Implementations:
    - RedisMessageChannel: Redis Pub/Sub
    """

    @abstractmethod
    async def connect_async(self) -> None:
        """Open the connection to the transport."""
        pass

    @abstractmethod
    async def subscribe_async(self, topic: str, callback: MessageCallback) -> None:
        """
        Deliver every payload published on a topic to a callback.

        Args:
            topic: Name of the topic to listen to
            callback: Coroutine invoked with each payload, in arrival order
        """
        pass

    @abstractmethod
    async def publish_async(self, topic: str, payload: bytes) -> None:
        """
        Publish a payload on a topic.

        Args:
            topic: Name of the topic
            payload: Raw bytes to publish
        """
        pass

    @abstractmethod
    async def close_async(self) -> None:
        """Stop listening and release the connection."""
        pass
