"""Environment-driven configuration for the lobby server."""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

DEFAULT_MATCH_SIZE = 4
DEFAULT_BASE_WAIT_SECONDS = 30.0
DEFAULT_MIN_WAIT_SECONDS = 10.0


@dataclass(frozen=True)
class LobbySettings:
    """
    Tunables for matchmaking and negotiation.

    :param match_size: Number of participants per match
    :type match_size: int
    :param base_wait_seconds: Estimated wait contributed by each missing player
    :type base_wait_seconds: float
    :param min_wait_seconds: Lower bound of the wait estimate
    :type min_wait_seconds: float
    :param allowed_colors: Permitted colors; empty means any non-empty color
    :type allowed_colors: Tuple[str, ...]
    :param log_level: Root logging level name
    :type log_level: str
    """

    match_size: int = DEFAULT_MATCH_SIZE
    base_wait_seconds: float = DEFAULT_BASE_WAIT_SECONDS
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS
    allowed_colors: Tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "DEBUG"

    def __post_init__(self) -> None:
        if self.match_size < 1:
            raise ValueError(f"match_size must be at least 1, got {self.match_size}")
        if self.base_wait_seconds < 0 or self.min_wait_seconds < 0:
            raise ValueError("Wait estimates must not be negative")

    def is_color_allowed(self, color: str) -> bool:
        """
        Check a color against the configured palette.

        :param color: Requested color
        :type color: str
        :return: True if the color may be picked
        :rtype: bool
        """
        if not color:
            return False
        return not self.allowed_colors or color in self.allowed_colors

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LobbySettings":
        """
        Build settings from environment variables.

        :param environ: Mapping to read from (defaults to os.environ)
        :type environ: Optional[Mapping[str, str]]
        :return: Parsed settings
        :rtype: LobbySettings
        :raises ValueError: If a variable cannot be parsed
        """
        env = os.environ if environ is None else environ

        colors_str = env.get("ALLOWED_COLORS", "")
        allowed_colors = tuple(c.strip() for c in colors_str.split(",") if c.strip())

        return cls(
            match_size=int(env.get("MATCH_SIZE", DEFAULT_MATCH_SIZE)),
            base_wait_seconds=float(env.get("BASE_WAIT_SECONDS", DEFAULT_BASE_WAIT_SECONDS)),
            min_wait_seconds=float(env.get("MIN_WAIT_SECONDS", DEFAULT_MIN_WAIT_SECONDS)),
            allowed_colors=allowed_colors,
            log_level=env.get("LOG_LEVEL", "DEBUG").upper(),
        )
