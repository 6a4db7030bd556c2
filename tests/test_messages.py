"""Tests for WebSocket message models."""

import pytest
from pydantic import ValidationError

from lobby_arena.messages import (
    JoinQueueIntent,
    LaunchMessage,
    LeaveQueueIntent,
    PickColorIntent,
    QueueStatusMessage,
    SetReadyIntent,
    parse_intent,
)


def test_parse_join_and_leave() -> None:
    """Test parsing payload-less intents."""
    assert isinstance(parse_intent({"type": "join_queue"}), JoinQueueIntent)
    assert isinstance(parse_intent({"type": "leave_queue"}), LeaveQueueIntent)


def test_parse_pick_color_with_match_id() -> None:
    """Test that camelCase payload keys are accepted."""
    intent = parse_intent({"type": "pick_color", "color": "red", "matchId": "m1"})

    assert isinstance(intent, PickColorIntent)
    assert intent.color == "red"
    assert intent.match_id == "m1"


def test_parse_set_ready_from_nested_data() -> None:
    """Test that a nested data payload is flattened."""
    intent = parse_intent({"type": "set_ready", "data": {"ready": True}})

    assert isinstance(intent, SetReadyIntent)
    assert intent.ready is True
    assert intent.match_id is None


@pytest.mark.parametrize("legacy,expected", [
    ("find_match", JoinQueueIntent),
    ("cancel_match", LeaveQueueIntent),
])
def test_legacy_event_names(legacy: str, expected: type) -> None:
    """Test that the older event names still map onto intents."""
    assert isinstance(parse_intent({"type": legacy}), expected)


def test_legacy_select_color() -> None:
    """Test the older color selection event."""
    intent = parse_intent({"type": "select_color", "color": "grey"})

    assert isinstance(intent, PickColorIntent)
    assert intent.color == "grey"


@pytest.mark.parametrize("frame", [
    {"type": "unknown"},
    {"type": "pick_color"},
    {"type": "pick_color", "color": ""},
    {"type": "set_ready", "ready": "yes"},
    {"color": "red"},
    ["join_queue"],
    {"type": ["join_queue"]},
    {"type": {"x": 1}},
    {"type": None},
])
def test_invalid_frames_rejected(frame: object) -> None:
    """Test that malformed frames fail validation."""
    with pytest.raises(ValidationError):
        parse_intent(frame)


def test_queue_status_serialization() -> None:
    """Test that notifications serialize with camelCase keys."""
    message = QueueStatusMessage(queue_size=2, estimated_wait_seconds=60.0)

    assert message.to_message() == {
        "type": "queue_status",
        "searching": True,
        "queueSize": 2,
        "estimatedWaitSeconds": 60.0,
    }


def test_launch_serialization() -> None:
    """Test the launch payload shape."""
    message = LaunchMessage(match_id="m1", participants=[{"id": "a", "color": "red"}])

    assert message.to_message() == {
        "type": "launch",
        "matchId": "m1",
        "participants": [{"id": "a", "color": "red"}],
    }
