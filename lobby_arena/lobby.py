"""Lobby coordinator: queueing, match formation, negotiation and disconnect cleanup."""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from lobby_arena.broadcast import BroadcastRouter
from lobby_arena.config import LobbySettings
from lobby_arena.connection_manager import ConnectionManager
from lobby_arena.match import Match, MatchManager, MatchNotFoundError
from lobby_arena.messages import (
    JoinQueueIntent,
    LeaveQueueIntent,
    PickColorIntent,
    SetReadyIntent,
)
from lobby_arena.queue import MatchmakingQueue, QueueEntry
from lobby_arena.session_handoff import LoggingSessionHandoff, SessionHandoff

logger = logging.getLogger(__name__)


class Lobby:
    """
    Routes intents to the queue or to the owning match and fans out the results.

    Every handler returns True when it changed state and False when the intent
    was absorbed as a no-op (stale reference, conflict, duplicate join).
    Locks are always taken queue first, then match.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        settings: Optional[LobbySettings] = None,
        session_handoff: Optional[SessionHandoff] = None,
    ) -> None:
        """
        Initialize the lobby.

        :param connection_manager: Registry of live connections
        :type connection_manager: ConnectionManager
        :param settings: Matchmaking settings (defaults used if omitted)
        :type settings: Optional[LobbySettings]
        :param session_handoff: Receiver of launched matches
        :type session_handoff: Optional[SessionHandoff]
        """
        self.connection_manager = connection_manager
        self.settings = settings or LobbySettings()
        self.queue = MatchmakingQueue(
            self.settings.match_size,
            base_wait_seconds=self.settings.base_wait_seconds,
            min_wait_seconds=self.settings.min_wait_seconds,
        )
        self.match_manager = MatchManager()
        self.broadcaster = BroadcastRouter(connection_manager)
        self.session_handoff = session_handoff or LoggingSessionHandoff()
        self._handlers: Dict[str, Callable[[str, Any], Awaitable[bool]]] = {
            "join_queue": self._on_join_queue,
            "leave_queue": self._on_leave_queue,
            "pick_color": self._on_pick_color,
            "set_ready": self._on_set_ready,
        }

    async def handle_intent(self, connection_id: str, intent: Any) -> bool:
        """
        Dispatch a parsed intent by its message type.

        :param connection_id: Sender
        :type connection_id: str
        :param intent: Parsed intent model
        :type intent: Any
        :return: True if state changed
        :rtype: bool
        """
        handler = self._handlers.get(intent.type)
        if handler is None:
            logger.debug(f"[WS:{connection_id}] No handler for intent {intent.type}")
            return False
        return await handler(connection_id, intent)

    async def _on_join_queue(self, connection_id: str, intent: JoinQueueIntent) -> bool:
        return await self.join_queue(connection_id)

    async def _on_leave_queue(self, connection_id: str, intent: LeaveQueueIntent) -> bool:
        return await self.leave_queue(connection_id)

    async def _on_pick_color(self, connection_id: str, intent: PickColorIntent) -> bool:
        return await self.pick_color(connection_id, intent.color, match_id=intent.match_id)

    async def _on_set_ready(self, connection_id: str, intent: SetReadyIntent) -> bool:
        return await self.set_ready(connection_id, intent.ready, match_id=intent.match_id)

    # Queue

    async def join_queue(self, connection_id: str) -> bool:
        """
        Queue a connection and form a match as soon as enough are waiting.

        Joining while already queued or matched is a no-op.

        :param connection_id: Connection identifier
        :type connection_id: str
        :return: True if the connection was queued
        :rtype: bool
        """
        async with self.queue.lock:
            if not self.connection_manager.is_connected(connection_id):
                logger.debug(f"[Queue] Ignoring join from unknown connection {connection_id}")
                return False
            if self.connection_manager.get_match_id(connection_id) is not None:
                logger.debug(f"[Queue] {connection_id} is already in a match")
                return False
            if not self.queue.enqueue(connection_id):
                logger.debug(f"[Queue] {connection_id} is already queued")
                return False

            logger.debug(f"[Queue] {connection_id} joined. Queue size: {self.queue.size()}")
            await self.broadcaster.queue_status(self.queue)

            if self.queue.is_ready_to_form():
                entries = self.queue.pop_oldest(self.settings.match_size)
                await self._form_match(entries)
                if self.queue.size():
                    await self.broadcaster.queue_status(self.queue)
        return True

    async def leave_queue(self, connection_id: str) -> bool:
        """
        Remove a connection from the queue.

        :param connection_id: Connection identifier
        :type connection_id: str
        :return: True if the connection was queued
        :rtype: bool
        """
        async with self.queue.lock:
            if not self.queue.dequeue(connection_id):
                return False
            logger.debug(f"[Queue] {connection_id} left. Queue size: {self.queue.size()}")
            await self.broadcaster.queue_status(self.queue)
        return True

    async def _form_match(self, entries: List[QueueEntry]) -> Match:
        """
        Create a match from entries already taken off the queue.

        Must be called with the queue lock held. The match lock is held until
        every participant has been sent ``match_found``, so no negotiation
        intent can be applied before then.

        :param entries: Exactly ``match_size`` queue entries, oldest first
        :type entries: List[QueueEntry]
        :return: The new match
        :rtype: Match
        """
        connection_ids = [entry.connection_id for entry in entries]
        match = await self.match_manager.create_match(connection_ids)
        async with match.lock:
            for connection_id in connection_ids:
                self.connection_manager.set_match(connection_id, match.match_id)
            print(f"\n[Match found] {match.match_id}: {', '.join(connection_ids)}")
            await self.broadcaster.match_found(match)
        return match

    # Negotiation

    def _resolve_match(self, connection_id: str, match_id: Optional[str]) -> Optional[Match]:
        current_id = self.connection_manager.get_match_id(connection_id)
        if current_id is None or (match_id is not None and match_id != current_id):
            return None
        return self.match_manager.get_match(current_id)

    async def pick_color(self, connection_id: str, color: str, match_id: Optional[str] = None) -> bool:
        """
        Claim a color in the sender's match.

        Taken or disallowed colors are rejected without any notification.

        :param connection_id: Sender
        :type connection_id: str
        :param color: Requested color
        :type color: str
        :param match_id: Match the sender believes it is in
        :type match_id: Optional[str]
        :return: True if the color was assigned
        :rtype: bool
        """
        match = self._resolve_match(connection_id, match_id)
        if match is None:
            logger.debug(f"[WS:{connection_id}] pick_color ignored: no active match")
            return False

        async with match.lock:
            if not self.match_manager.is_active(match):
                return False
            if not self.settings.is_color_allowed(color):
                logger.debug(f"[Match:{match.match_id}] {connection_id} picked disallowed color {color!r}")
                return False
            if not match.pick_color(connection_id, color):
                logger.debug(f"[Match:{match.match_id}] {connection_id} could not take {color!r}")
                return False

            logger.debug(f"[Match:{match.match_id}] {connection_id} picked {color}")
            await self.broadcaster.match_update(match)
        return True

    async def set_ready(self, connection_id: str, ready: bool, match_id: Optional[str] = None) -> bool:
        """
        Set the sender's readiness and launch the match once everyone is set.

        :param connection_id: Sender
        :type connection_id: str
        :param ready: New readiness flag
        :type ready: bool
        :param match_id: Match the sender believes it is in
        :type match_id: Optional[str]
        :return: True if the flag was applied
        :rtype: bool
        """
        match = self._resolve_match(connection_id, match_id)
        if match is None:
            logger.debug(f"[WS:{connection_id}] set_ready ignored: no active match")
            return False

        async with match.lock:
            if not self.match_manager.is_active(match) or not match.set_ready(connection_id, ready):
                return False

            logger.debug(f"[Match:{match.match_id}] {connection_id} ready={ready}")
            await self.broadcaster.match_update(match)

            if match.can_launch():
                await self._launch(match)
        return True

    async def _launch(self, match: Match) -> None:
        match.mark_launched()
        launch = await self.broadcaster.launch(match)
        await self._teardown(match)
        try:
            await self.session_handoff.start_session(launch)
        except Exception:
            logger.exception(f"[Match:{match.match_id}] Session handoff failed")

    # Disconnect

    async def disconnect(self, connection_id: str) -> bool:
        """
        Remove a connection from its queue entry and abort its match, if any.

        :param connection_id: Connection that went away
        :type connection_id: str
        :return: True if anything was cleaned up
        :rtype: bool
        """
        cleaned = await self.leave_queue(connection_id)

        match_id = self.connection_manager.get_match_id(connection_id)
        match = self.match_manager.get_match(match_id) if match_id else None
        if match is None:
            return cleaned

        async with match.lock:
            if not self.match_manager.is_active(match) or not match.is_negotiating():
                return cleaned

            logger.debug(f"[Match:{match.match_id}] {connection_id} disconnected, aborting match")
            await self.broadcaster.peer_disconnected(match, connection_id)
            await self._teardown(match)
        return True

    async def _teardown(self, match: Match) -> None:
        await self.match_manager.remove_match(match.match_id)
        for connection_id in match.participant_ids():
            if self.connection_manager.get_match_id(connection_id) == match.match_id:
                self.connection_manager.set_match(connection_id, None)

    # Queries

    def get_match_state(self, match_id: str) -> Dict[str, Any]:
        """
        Snapshot of an active match.

        :param match_id: Match identifier
        :type match_id: str
        :return: Match snapshot
        :rtype: Dict[str, Any]
        :raises MatchNotFoundError: If the match is not active
        """
        return self.match_manager.require_match(match_id).snapshot()

    def get_match_for_connection(self, connection_id: str) -> Dict[str, Any]:
        """
        Snapshot of the match a connection belongs to.

        :param connection_id: Connection identifier
        :type connection_id: str
        :return: Match snapshot
        :rtype: Dict[str, Any]
        :raises MatchNotFoundError: If the connection is not in an active match
        """
        match_id = self.connection_manager.get_match_id(connection_id)
        if match_id is None:
            raise MatchNotFoundError(connection_id)
        return self.get_match_state(match_id)

    def queue_info(self) -> Dict[str, Any]:
        return {
            "queue_size": self.queue.size(),
            "estimated_wait_seconds": self.queue.estimated_wait_seconds(),
            "longest_wait_seconds": self.queue.longest_wait_seconds(),
            "match_size": self.settings.match_size,
            "active_matches": self.match_manager.active_count(),
        }
