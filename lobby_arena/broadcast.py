"""Fan-out of lobby state changes to queued connections and match participants."""

import logging
from typing import List

from lobby_arena.connection_manager import ConnectionManager
from lobby_arena.match import Match
from lobby_arena.messages import (
    LaunchMessage,
    MatchFoundMessage,
    MatchUpdateMessage,
    ParticipantState,
    PeerDisconnectedMessage,
    QueueStatusMessage,
)
from lobby_arena.queue import MatchmakingQueue

logger = logging.getLogger(__name__)


class BroadcastRouter:
    """
    Builds notifications and delivers them to every affected connection.

    Callers invoke these while holding the lock of the queue or match being
    described, so each recipient sees notifications in mutation order.
    """

    def __init__(self, connection_manager: ConnectionManager) -> None:
        """
        Initialize the router.

        :param connection_manager: Connection manager used for delivery
        :type connection_manager: ConnectionManager
        """
        self.connection_manager = connection_manager

    async def queue_status(self, queue: MatchmakingQueue) -> QueueStatusMessage:
        """
        Send the current queue size and wait estimate to every queued connection.

        :param queue: Queue to describe
        :type queue: MatchmakingQueue
        :return: The message that was sent
        :rtype: QueueStatusMessage
        """
        message = QueueStatusMessage(
            queue_size=queue.size(),
            estimated_wait_seconds=queue.estimated_wait_seconds()
        )
        logger.debug(f"[Queue] Broadcasting status: size={message.queue_size}, "
                     f"wait={message.estimated_wait_seconds}s")
        await self.connection_manager.broadcast(queue.connection_ids(), message.to_message())
        return message

    async def match_found(self, match: Match) -> None:
        message = MatchFoundMessage(match_id=match.match_id, participant_ids=match.participant_ids())
        await self.connection_manager.broadcast(match.participant_ids(), message.to_message())

    async def match_update(self, match: Match) -> None:
        """
        Send the full participant list to every participant of a match.

        :param match: Match to describe
        :type match: Match
        """
        message = MatchUpdateMessage(
            match_id=match.match_id,
            participants=[ParticipantState(**p.to_dict()) for p in match.participants]
        )
        await self.connection_manager.broadcast(match.participant_ids(), message.to_message())

    async def launch(self, match: Match) -> LaunchMessage:
        """
        Send the launch payload to every participant.

        :param match: Match being launched
        :type match: Match
        :return: The launch payload
        :rtype: LaunchMessage
        """
        message = LaunchMessage(match_id=match.match_id, participants=match.launch_participants())
        logger.debug(f"[Match:{match.match_id}] Broadcasting launch")
        await self.connection_manager.broadcast(match.participant_ids(), message.to_message())
        return message

    async def peer_disconnected(self, match: Match, connection_id: str) -> List[str]:
        """
        Tell the remaining participants that a peer left.

        :param match: Match being aborted
        :type match: Match
        :param connection_id: Connection that disconnected
        :type connection_id: str
        :return: Connection IDs that were notified
        :rtype: List[str]
        """
        recipients = [cid for cid in match.participant_ids() if cid != connection_id]
        message = PeerDisconnectedMessage(match_id=match.match_id, connection_id=connection_id)
        await self.connection_manager.broadcast(recipients, message.to_message())
        return recipients
