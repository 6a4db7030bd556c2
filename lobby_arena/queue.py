"""Matchmaking queue for lobby matches."""

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class QueueEntry:
    """
    Represents a connection waiting in queue.

    :param connection_id: Connection identifier
    :type connection_id: str
    :param enqueued_at: Time the connection joined the queue
    :type enqueued_at: float
    """

    connection_id: str
    enqueued_at: float


class MatchmakingQueue:
    """
    FIFO waiting pool of connections seeking a match.

    The queue only holds state. Callers hold ``lock`` around any sequence of
    operations that must be observed atomically (mutation, status fan-out and
    match formation).
    """

    def __init__(self, match_size: int, base_wait_seconds: float = 30.0, min_wait_seconds: float = 10.0) -> None:
        """
        Initialize the matchmaking queue.

        :param match_size: Number of connections needed for a match
        :type match_size: int
        :param base_wait_seconds: Estimated wait per missing connection
        :type base_wait_seconds: float
        :param min_wait_seconds: Lower bound of the wait estimate
        :type min_wait_seconds: float
        """
        self.match_size = match_size
        self.base_wait_seconds = base_wait_seconds
        self.min_wait_seconds = min_wait_seconds
        self.entries: "OrderedDict[str, QueueEntry]" = OrderedDict()
        self.lock = asyncio.Lock()

    def enqueue(self, connection_id: str) -> bool:
        """
        Add a connection to the back of the queue.

        :param connection_id: Connection identifier
        :type connection_id: str
        :return: True if added, False if it was already queued
        :rtype: bool
        """
        if connection_id in self.entries:
            return False
        self.entries[connection_id] = QueueEntry(connection_id=connection_id, enqueued_at=time.time())
        return True

    def dequeue(self, connection_id: str) -> bool:
        """
        Remove a connection from the queue if it is waiting.

        :param connection_id: Connection identifier to remove
        :type connection_id: str
        :return: True if removed, False if not in queue
        :rtype: bool
        """
        return self.entries.pop(connection_id, None) is not None

    def pop_oldest(self, count: int) -> List[QueueEntry]:
        """
        Remove and return the ``count`` oldest entries.

        :param count: Number of entries to take
        :type count: int
        :return: Entries in queue order
        :rtype: List[QueueEntry]
        :raises ValueError: If fewer than ``count`` entries are waiting
        """
        if count > len(self.entries):
            raise ValueError(f"Cannot take {count} entries from a queue of {len(self.entries)}")
        return [self.entries.popitem(last=False)[1] for _ in range(count)]

    def contains(self, connection_id: str) -> bool:
        return connection_id in self.entries

    def size(self) -> int:
        return len(self.entries)

    def connection_ids(self) -> List[str]:
        """Queued connection IDs, oldest first."""
        return list(self.entries.keys())

    def is_ready_to_form(self) -> bool:
        return self.size() >= self.match_size

    def estimated_wait_seconds(self) -> float:
        """
        Estimate the wait from how many connections are still missing.

        :return: ``max(base * (match_size - size), min)``
        :rtype: float
        """
        missing = self.match_size - self.size()
        return max(self.base_wait_seconds * missing, self.min_wait_seconds)

    def longest_wait_seconds(self, now: Optional[float] = None) -> float:
        """
        How long the oldest queued connection has been waiting.

        :param now: Reference time, defaults to the current time
        :type now: Optional[float]
        :return: Seconds since the oldest entry joined, 0.0 when empty
        :rtype: float
        """
        if not self.entries:
            return 0.0
        oldest = next(iter(self.entries.values()))
        if now is None:
            now = time.time()
        return max(now - oldest.enqueued_at, 0.0)
