"""Hand-off of launched matches to the game session layer."""

import logging
from collections import deque
from typing import Deque, List, Protocol

from lobby_arena.messages import LaunchMessage

logger = logging.getLogger(__name__)


class SessionHandoff(Protocol):
    """Receives a launched match; owns everything that happens afterwards."""

    async def start_session(self, launch: LaunchMessage) -> None:
        ...


class LoggingSessionHandoff:
    """
    Default hand-off that records recent launches and logs them.

    :param history_size: How many launches to remember
    :type history_size: int
    """

    def __init__(self, history_size: int = 100) -> None:
        self.launches: Deque[LaunchMessage] = deque(maxlen=history_size)

    async def start_session(self, launch: LaunchMessage) -> None:
        self.launches.append(launch)
        colors = ", ".join(f"{p.id}={p.color}" for p in launch.participants)
        logger.info(f"[Match:{launch.match_id}] Launched: {colors}")
        print(f"\n[Launch] Match {launch.match_id} started ({colors})")

    def recent_launches(self) -> List[LaunchMessage]:
        return list(self.launches)
