"""Transport-neutral connection interface."""

from abc import ABC, abstractmethod
from typing import Any

from ito.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    One client connection.

    The session layer only talks to this interface, so room flows can be
    exercised with an in-memory connection instead of a socket. The
    connection id doubles as the player id.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str: ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        return decode(await self.receive_bytes())
