"""WebSocket message models for lobby intents and notifications."""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, TypeAdapter
from pydantic.alias_generators import to_camel

# Event names used by earlier clients
INTENT_ALIASES: Dict[str, str] = {
    "find_match": "join_queue",
    "cancel_match": "leave_queue",
    "select_color": "pick_color",
    "player_ready": "set_ready",
}


class WireModel(BaseModel):
    """Base model whose fields are camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_message(self) -> Dict[str, Any]:
        """
        Serialize for sending.

        :return: JSON-compatible dictionary with camelCase keys
        :rtype: Dict[str, Any]
        """
        return self.model_dump(by_alias=True)


# Inbound intents

class JoinQueueIntent(WireModel):
    type: Literal["join_queue"]


class LeaveQueueIntent(WireModel):
    type: Literal["leave_queue"]


class PickColorIntent(WireModel):
    """
    Request to hold a color in the sender's match.

    :param color: Requested color
    :type color: str
    :param match_id: Optional match the sender believes it is in
    :type match_id: Optional[str]
    """

    type: Literal["pick_color"]
    color: str = Field(min_length=1)
    match_id: Optional[str] = None


class SetReadyIntent(WireModel):
    """
    Request to set the sender's readiness.

    :param ready: New readiness flag
    :type ready: bool
    :param match_id: Optional match the sender believes it is in
    :type match_id: Optional[str]
    """

    type: Literal["set_ready"]
    ready: StrictBool
    match_id: Optional[str] = None


Intent = Annotated[
    Union[JoinQueueIntent, LeaveQueueIntent, PickColorIntent, SetReadyIntent],
    Field(discriminator="type"),
]

_intent_adapter: TypeAdapter = TypeAdapter(Intent)


def parse_intent(data: Any) -> Union[JoinQueueIntent, LeaveQueueIntent, PickColorIntent, SetReadyIntent]:
    """
    Validate a raw inbound frame into a typed intent.

    Legacy event names are mapped onto current ones and a nested ``data``
    payload is flattened into the frame.

    :param data: Decoded JSON frame
    :type data: Any
    :return: Typed intent
    :raises pydantic.ValidationError: If the frame is not a valid intent
    """
    if isinstance(data, dict):
        frame = dict(data)
        payload = frame.pop("data", None)
        if isinstance(payload, dict):
            frame = {**payload, **frame}
        message_type = frame.get("type")
        if isinstance(message_type, str):
            frame["type"] = INTENT_ALIASES.get(message_type, message_type)
        data = frame
    return _intent_adapter.validate_python(data)


# Outbound notifications

class ConnectedMessage(WireModel):
    type: Literal["connected"] = "connected"
    connection_id: str


class QueueStatusMessage(WireModel):
    """
    Queue state sent to every queued connection.

    :param searching: Always True while queued
    :type searching: bool
    :param queue_size: Current number of queued connections
    :type queue_size: int
    :param estimated_wait_seconds: Wait estimate
    :type estimated_wait_seconds: float
    """

    type: Literal["queue_status"] = "queue_status"
    searching: bool = True
    queue_size: int
    estimated_wait_seconds: float


class MatchFoundMessage(WireModel):
    type: Literal["match_found"] = "match_found"
    match_id: str
    participant_ids: List[str]


class ParticipantState(WireModel):
    id: str
    color: Optional[str] = None
    ready: bool = False


class MatchUpdateMessage(WireModel):
    type: Literal["match_update"] = "match_update"
    match_id: str
    participants: List[ParticipantState]


class LaunchParticipant(WireModel):
    id: str
    color: str


class LaunchMessage(WireModel):
    """
    One-time launch payload, also handed to the session collaborator.

    :param match_id: Launched match
    :type match_id: str
    :param participants: Participant ids with their final colors
    :type participants: List[LaunchParticipant]
    """

    type: Literal["launch"] = "launch"
    match_id: str
    participants: List[LaunchParticipant]


class PeerDisconnectedMessage(WireModel):
    type: Literal["peer_disconnected"] = "peer_disconnected"
    match_id: str
    connection_id: str


class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    message: str


class QueueInfoResponse(WireModel):
    queue_size: int
    estimated_wait_seconds: float
    longest_wait_seconds: float
    match_size: int
    active_matches: int


class MatchStateResponse(WireModel):
    match_id: str
    state: str
    participants: List[ParticipantState]
