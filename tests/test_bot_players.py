#!/usr/bin/env python3
"""
Tests for the bot players demo.

The demo talks to a live server, so these tests drive its message handling
directly instead of opening sockets.
"""

import importlib.util
import sys
from pathlib import Path

demos_path = Path(__file__).parent.parent / 'demos'
bot_players_path = demos_path / 'bot_players.py'

spec = importlib.util.spec_from_file_location("bot_players", bot_players_path)
bot_players_module = importlib.util.module_from_spec(spec)
sys.modules['bot_players'] = bot_players_module
spec.loader.exec_module(bot_players_module)

BotPlayer = bot_players_module.BotPlayer


def matched_bot(index: int = 0) -> BotPlayer:
    bot = BotPlayer("http://localhost:9002", index, colors=["red", "blue", "green"])
    bot.handle_message({"type": "connected", "connectionId": "me"})
    bot.handle_message({"type": "match_found", "matchId": "m1", "participantIds": ["me", "other"]})
    return bot


def update(me_color=None, me_ready=False, other_color=None):
    return {
        "type": "match_update",
        "matchId": "m1",
        "participants": [
            {"id": "me", "color": me_color, "ready": me_ready},
            {"id": "other", "color": other_color, "ready": False},
        ],
    }


class TestBotPlayer:
    """Test suite for BotPlayer demo."""

    def test_initialization(self):
        """
        Test bot initializes with a websocket URL and rotated colors.

        :raises AssertionError: If initialization fails
        """
        bot = BotPlayer("http://localhost:9002", 1, colors=["red", "blue", "green"])
        assert bot.server_url == "ws://localhost:9002"
        assert bot.preferred_colors == ["blue", "green", "red"]
        assert bot.connection_id is None

    def test_joins_queue_on_connect(self):
        """
        Test the bot queues as soon as it learns its id.

        :raises AssertionError: If no join intent is produced
        """
        bot = BotPlayer("http://localhost:9002", 0)
        reply = bot.handle_message({"type": "connected", "connectionId": "me"})
        assert reply == {"type": "join_queue"}
        assert bot.connection_id == "me"

    def test_picks_color_when_matched(self):
        """
        Test the first preferred color is requested on match_found.

        :raises AssertionError: If the pick intent is wrong
        """
        bot = BotPlayer("http://localhost:9002", 0, colors=["red", "blue"])
        bot.handle_message({"type": "connected", "connectionId": "me"})
        reply = bot.handle_message({"type": "match_found", "matchId": "m1", "participantIds": ["me"]})
        assert reply == {"type": "pick_color", "color": "red", "matchId": "m1"}

    def test_switches_color_when_taken(self):
        """
        Test the bot moves on when another participant holds its color.

        :raises AssertionError: If the bot retries the taken color
        """
        bot = matched_bot()
        reply = bot.handle_message(update(other_color="red"))
        assert reply == {"type": "pick_color", "color": "blue", "matchId": "m1"}

    def test_does_not_repeat_pending_pick(self):
        """
        Test an unrelated update does not resend the same pick.

        :raises AssertionError: If a duplicate pick is sent
        """
        bot = matched_bot()
        assert bot.handle_message(update()) is None

    def test_readies_once_color_confirmed(self):
        """
        Test the bot sends set_ready exactly once.

        :raises AssertionError: If readiness is not sent once
        """
        bot = matched_bot()
        reply = bot.handle_message(update(me_color="red"))
        assert reply == {"type": "set_ready", "ready": True, "matchId": "m1"}
        assert bot.handle_message(update(me_color="red", me_ready=True)) is None

    def test_records_launch(self):
        """
        Test the launch payload is kept.

        :raises AssertionError: If the launch is not stored
        """
        bot = matched_bot()
        launch = {"type": "launch", "matchId": "m1", "participants": [{"id": "me", "color": "red"}]}
        assert bot.handle_message(launch) is None
        assert bot.launch == launch

    def test_requeues_after_peer_disconnect(self):
        """
        Test the bot forgets the aborted match and rejoins the queue.

        :raises AssertionError: If the bot does not requeue
        """
        bot = matched_bot()
        reply = bot.handle_message({"type": "peer_disconnected", "matchId": "m1", "connectionId": "other"})
        assert reply == {"type": "join_queue"}
        assert bot.match_id is None
        assert bot.attempted_color is None
