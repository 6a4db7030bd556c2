"""Connection registry and message delivery for lobby clients."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


class ConnectionChannel(Protocol):
    """Anything that can deliver a JSON message to one client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None:
        ...


@dataclass
class Connection:
    """
    A live client known to the lobby.

    :param connection_id: Stable domain identifier, independent of the transport
    :type connection_id: str
    :param channel: Handle used to send messages to the client
    :type channel: ConnectionChannel
    :param connected_at: Registration timestamp
    :type connected_at: float
    :param match_id: Match the connection currently belongs to, if any
    :type match_id: Optional[str]
    """

    connection_id: str
    channel: ConnectionChannel
    connected_at: float
    match_id: Optional[str] = None


class ConnectionManager:
    """
    Tracks live connections and sends messages to them.

    Acts as the connection provider for the lobby: transport code registers a
    channel and gets back a domain connection id.
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        self.connections: Dict[str, Connection] = {}
        self.lock = asyncio.Lock()

    async def connect(self, channel: ConnectionChannel) -> str:
        """
        Register a new channel.

        :param channel: Accepted channel to register
        :type channel: ConnectionChannel
        :return: Unique connection ID
        :rtype: str
        """
        connection_id = str(uuid.uuid4())

        async with self.lock:
            self.connections[connection_id] = Connection(
                connection_id=connection_id,
                channel=channel,
                connected_at=time.time()
            )

        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """
        Unregister a connection.

        :param connection_id: Connection identifier to remove
        :type connection_id: str
        """
        async with self.lock:
            self.connections.pop(connection_id, None)

    async def send_message(self, connection_id: str, message: Dict[str, Any]) -> bool:
        """
        Send a message to a specific connection.

        A failed send is logged and reported; the connection stays registered
        until its transport reports the disconnect.

        :param connection_id: Target connection ID
        :type connection_id: str
        :param message: Message dictionary to send
        :type message: Dict[str, Any]
        :return: True if sent successfully, False otherwise
        :rtype: bool
        """
        connection = self.connections.get(connection_id)
        if connection is None:
            return False

        try:
            await connection.channel.send_json(message)
            return True
        except Exception as e:
            logger.warning(f"[WS:{connection_id}] Failed to send {message.get('type')}: {e}")
            return False

    async def broadcast(
        self, connection_ids: Iterable[str], message: Dict[str, Any], exclude_connection: Optional[str] = None
    ) -> int:
        """
        Send one message to several connections, in order.

        :param connection_ids: Recipients
        :type connection_ids: Iterable[str]
        :param message: Message dictionary to broadcast
        :type message: Dict[str, Any]
        :param exclude_connection: Optional connection ID to skip
        :type exclude_connection: Optional[str]
        :return: Number of successful deliveries
        :rtype: int
        """
        delivered = 0
        for conn_id in connection_ids:
            if conn_id == exclude_connection:
                continue
            if await self.send_message(conn_id, message):
                delivered += 1
        return delivered

    def set_match(self, connection_id: str, match_id: Optional[str]) -> None:
        """
        Stamp (or clear) the match a connection belongs to.

        :param connection_id: Connection identifier
        :type connection_id: str
        :param match_id: Match identifier, or None to clear
        :type match_id: Optional[str]
        """
        connection = self.connections.get(connection_id)
        if connection:
            connection.match_id = match_id

    def get_match_id(self, connection_id: str) -> Optional[str]:
        """
        Get the match a connection currently belongs to.

        :param connection_id: Connection identifier
        :type connection_id: str
        :return: Match identifier if the connection is in a match
        :rtype: Optional[str]
        """
        connection = self.connections.get(connection_id)
        return connection.match_id if connection else None

    def is_connected(self, connection_id: str) -> bool:
        """
        Check if a connection is still active.

        :param connection_id: Connection identifier
        :type connection_id: str
        :return: True if connection is active
        :rtype: bool
        """
        return connection_id in self.connections
