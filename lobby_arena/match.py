"""Match negotiation state and the keyed store of active matches."""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class MatchNotFoundError(LookupError):
    """Raised when a match id (or a connection's match) does not exist."""

    def __init__(self, key: str):
        super().__init__(f"Match not found: {key}")
        self.key = key


class MatchState(str, Enum):
    NEGOTIATING = "negotiating"
    LAUNCHED = "launched"


@dataclass
class Participant:
    """
    A connection's negotiation state within one match.

    :param connection_id: Non-owning reference to the participant's connection
    :type connection_id: str
    :param color: Chosen color, None until picked
    :type color: Optional[str]
    :param ready: Readiness flag
    :type ready: bool
    """

    connection_id: str
    color: Optional[str] = None
    ready: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.connection_id, "color": self.color, "ready": self.ready}


class Match:
    """
    Tracks negotiation state for a single match.

    Participants are attached at construction and never change. All mutations
    must happen while holding ``lock``.

    :param match_id: Unique match identifier
    :type match_id: str
    :param connection_ids: Participant connection IDs in queue order
    :type connection_ids: List[str]
    """

    def __init__(self, match_id: str, connection_ids: List[str]):
        self.match_id = match_id
        self.participants = [Participant(connection_id=cid) for cid in connection_ids]
        self.state = MatchState.NEGOTIATING
        self.lock = asyncio.Lock()

    def get_participant(self, connection_id: str) -> Optional[Participant]:
        """
        Find a participant by connection.

        :param connection_id: Connection identifier
        :type connection_id: str
        :return: Participant if the connection is part of this match
        :rtype: Optional[Participant]
        """
        for participant in self.participants:
            if participant.connection_id == connection_id:
                return participant
        return None

    def participant_ids(self) -> List[str]:
        return [p.connection_id for p in self.participants]

    def is_negotiating(self) -> bool:
        return self.state == MatchState.NEGOTIATING

    def is_color_taken(self, color: str, by_other_than: str) -> bool:
        """
        Check whether another participant already holds a color.

        :param color: Color to check
        :type color: str
        :param by_other_than: Connection ID to ignore (the requester)
        :type by_other_than: str
        :return: True if some other participant holds the color
        :rtype: bool
        """
        return any(
            p.color == color for p in self.participants if p.connection_id != by_other_than
        )

    def pick_color(self, connection_id: str, color: str) -> bool:
        """
        Assign a color to a participant. Readiness is left untouched.

        :param connection_id: Requesting connection
        :type connection_id: str
        :param color: Requested color
        :type color: str
        :return: True if the color was assigned, False if rejected
        :rtype: bool
        """
        if not self.is_negotiating():
            return False
        participant = self.get_participant(connection_id)
        if participant is None or self.is_color_taken(color, connection_id):
            return False
        participant.color = color
        return True

    def set_ready(self, connection_id: str, ready: bool) -> bool:
        """
        Set a participant's ready flag verbatim.

        :param connection_id: Requesting connection
        :type connection_id: str
        :param ready: New readiness
        :type ready: bool
        :return: True if the flag was set
        :rtype: bool
        """
        if not self.is_negotiating():
            return False
        participant = self.get_participant(connection_id)
        if participant is None:
            return False
        participant.ready = ready
        return True

    def can_launch(self) -> bool:
        """Every participant is ready and holds a color."""
        return self.is_negotiating() and all(p.ready and p.color is not None for p in self.participants)

    def mark_launched(self) -> None:
        self.state = MatchState.LAUNCHED

    def launch_participants(self) -> List[Dict[str, Any]]:
        return [{"id": p.connection_id, "color": p.color} for p in self.participants]

    def snapshot(self) -> Dict[str, Any]:
        """
        Serializable view of the match.

        :return: Match id, state and participant list
        :rtype: Dict[str, Any]
        """
        return {
            "matchId": self.match_id,
            "state": self.state.value,
            "participants": [p.to_dict() for p in self.participants],
        }


class MatchManager:
    """
    Keyed store of active matches.

    The store lock only guards insertion and removal. Negotiation on a match is
    serialized by that match's own lock, so unrelated matches never contend.
    """

    def __init__(self) -> None:
        """Initialize the match manager."""
        self.matches: Dict[str, Match] = {}
        self.lock = asyncio.Lock()

    async def create_match(self, connection_ids: List[str]) -> Match:
        """
        Create and register a new match.

        :param connection_ids: Participant connection IDs in queue order
        :type connection_ids: List[str]
        :return: Created match in negotiating state
        :rtype: Match
        """
        match = Match(str(uuid.uuid4()), connection_ids)
        async with self.lock:
            self.matches[match.match_id] = match
        logger.debug(f"[Match:{match.match_id}] Created with participants: {connection_ids}")
        return match

    def get_match(self, match_id: str) -> Optional[Match]:
        """
        Get a match by ID.

        :param match_id: Match identifier
        :type match_id: str
        :return: Match if found
        :rtype: Optional[Match]
        """
        return self.matches.get(match_id)

    def require_match(self, match_id: str) -> Match:
        """
        Get a match by ID or raise.

        :param match_id: Match identifier
        :type match_id: str
        :return: The match
        :rtype: Match
        :raises MatchNotFoundError: If no such match is active
        """
        match = self.matches.get(match_id)
        if match is None:
            raise MatchNotFoundError(match_id)
        return match

    def is_active(self, match: Match) -> bool:
        """True while ``match`` is still the registered instance for its id."""
        return self.matches.get(match.match_id) is match

    async def remove_match(self, match_id: str) -> Optional[Match]:
        """
        Remove a match.

        :param match_id: Match identifier
        :type match_id: str
        :return: The removed match, or None if it was already gone
        :rtype: Optional[Match]
        """
        async with self.lock:
            match = self.matches.pop(match_id, None)
        if match:
            logger.debug(f"[Match:{match_id}] Removed")
        else:
            logger.debug(f"[Match:{match_id}] No match found to remove")
        return match

    def active_count(self) -> int:
        return len(self.matches)
