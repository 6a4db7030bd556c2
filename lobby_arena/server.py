"""FastAPI server for the lobby arena application."""

import logging
from typing import Dict

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from lobby_arena.config import LobbySettings
from lobby_arena.connection_manager import ConnectionManager
from lobby_arena.lobby import Lobby
from lobby_arena.match import MatchNotFoundError
from lobby_arena.messages import (
    ConnectedMessage,
    ErrorMessage,
    MatchStateResponse,
    QueueInfoResponse,
    parse_intent,
)

settings = LobbySettings.from_env()

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Lobby Arena API", version="1.0.0")
connection_manager = ConnectionManager()
lobby = Lobby(connection_manager, settings)


@app.on_event("startup")
def on_startup() -> None:
    """Handle application startup event."""
    logger.debug("Starting Lobby Arena server")

    print("\n" + "=" * 50)
    print("Lobby Arena Server Started")
    print(f"Match size: {settings.match_size}")
    print(f"Wait estimate: {settings.base_wait_seconds}s per missing player "
          f"(min {settings.min_wait_seconds}s)")
    if settings.allowed_colors:
        print(f"Allowed colors: {', '.join(settings.allowed_colors)}")
    print("=" * 50)
    logger.debug("Lobby Arena server started successfully")


@app.get("/queue", response_model=QueueInfoResponse)
def get_queue() -> QueueInfoResponse:
    """
    Get the current matchmaking queue status.

    :return: Queue size, wait estimate, match size and active match count
    :rtype: QueueInfoResponse
    """
    return QueueInfoResponse(**lobby.queue_info())


@app.get("/matches/{match_id}", response_model=MatchStateResponse)
def get_match(match_id: str) -> MatchStateResponse:
    """
    Get the negotiation state of an active match.

    :param match_id: The match identifier
    :type match_id: str
    :return: Match state and participants
    :rtype: MatchStateResponse
    :raises HTTPException: If the match is not active
    """
    try:
        return MatchStateResponse.model_validate(lobby.get_match_state(match_id))
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail="Match not found")


@app.get("/connections/{connection_id}/match", response_model=MatchStateResponse)
def get_connection_match(connection_id: str) -> MatchStateResponse:
    """
    Get the negotiation state of the match a connection belongs to.

    :param connection_id: The connection identifier
    :type connection_id: str
    :return: Match state and participants
    :rtype: MatchStateResponse
    :raises HTTPException: If the connection is not in an active match
    """
    try:
        return MatchStateResponse.model_validate(lobby.get_match_for_connection(connection_id))
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail="Match not found")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for matchmaking and pre-game negotiation.

    Each frame is parsed into an intent and dispatched to the lobby. When the
    socket goes away the connection is removed from its queue or match.

    :param websocket: WebSocket connection
    :type websocket: WebSocket
    """
    await websocket.accept()
    connection_id = await connection_manager.connect(websocket)
    logger.debug(f"[WS:{connection_id}] Connected")
    await connection_manager.send_message(
        connection_id, ConnectedMessage(connection_id=connection_id).to_message()
    )

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except (RuntimeError, WebSocketDisconnect):
                # WebSocket disconnected while receiving
                raise WebSocketDisconnect()
            except (KeyError, ValueError):
                # Binary frames have no text payload
                await connection_manager.send_message(
                    connection_id, ErrorMessage(message="Frames must be JSON text").to_message()
                )
                continue

            if isinstance(data, dict) and data.get("type") == "ping":
                # Heartbeat
                await connection_manager.send_message(connection_id, {"type": "pong"})
                continue

            try:
                intent = parse_intent(data)
            except ValidationError as e:
                logger.debug(f"[WS:{connection_id}] Rejected frame {data!r}: {e.error_count()} error(s)")
                await connection_manager.send_message(
                    connection_id, ErrorMessage(message=f"Invalid message: {_describe_errors(e)}").to_message()
                )
                continue

            logger.debug(f"[WS:{connection_id}] Intent {intent.type}")
            await lobby.handle_intent(connection_id, intent)

    except WebSocketDisconnect:
        logger.debug(f"[WS:{connection_id}] WebSocket disconnected")
    finally:
        await lobby.disconnect(connection_id)
        await connection_manager.disconnect(connection_id)
        queue_count = lobby.queue.size()
        print(f"\n[Disconnect] Connection {connection_id} removed. Queue count: {queue_count}")
        logger.debug(f"[Queue] Queue count after removal: {queue_count}")


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "message"
        parts.append(f"{location}: {detail['msg']}")
    return "; ".join(parts)


@app.get("/")
def root() -> Dict[str, str]:
    """
    Root endpoint providing API information.

    :return: API welcome message
    :rtype: Dict[str, str]
    """
    return {"message": "Lobby Arena API - Connect to /ws to join matchmaking"}
