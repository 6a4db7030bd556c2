#!/usr/bin/env python3
"""
Bot players for the Lobby Arena server.

Spawns several clients that queue up, pick distinct colors, ready up once
their color is confirmed and report the launch.
"""

import argparse
import asyncio
import json
from typing import Any, Dict, List, Optional

import websockets
from rich.console import Console

console = Console()

DEFAULT_COLORS = ["yellow", "grey", "red", "blue", "green", "purple"]


class BotPlayer:
    """
    Scripted lobby client.

    :param server_url: Base URL of the Lobby Arena server (http or ws)
    :type server_url: str
    :param index: Bot number, used to rotate color preferences
    :type index: int
    :param colors: Color preferences before rotation
    :type colors: Optional[List[str]]
    :param requeue: Whether to rejoin the queue after a peer disconnects
    :type requeue: bool
    """

    def __init__(self, server_url: str, index: int, colors: Optional[List[str]] = None, requeue: bool = True):
        self.server_url = server_url.replace("http://", "ws://").replace("https://", "wss://")
        self.index = index
        palette = colors or DEFAULT_COLORS
        offset = index % len(palette)
        self.preferred_colors = palette[offset:] + palette[:offset]
        self.requeue = requeue

        self.connection_id: Optional[str] = None
        self.match_id: Optional[str] = None
        self.color: Optional[str] = None
        self.attempted_color: Optional[str] = None
        self.ready_sent = False
        self.launch: Optional[Dict[str, Any]] = None

    @property
    def name(self) -> str:
        return f"Bot {self.index}"

    def _reset_match(self) -> None:
        self.match_id = None
        self.color = None
        self.attempted_color = None
        self.ready_sent = False

    def _choose_color(self, taken: List[Optional[str]]) -> Optional[Dict[str, Any]]:
        for color in self.preferred_colors:
            if color not in taken:
                if color == self.attempted_color:
                    return None
                self.attempted_color = color
                return {"type": "pick_color", "color": color, "matchId": self.match_id}
        return None

    def handle_message(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        React to one server notification.

        :param message: Decoded notification
        :type message: Dict[str, Any]
        :return: Intent to send back, if any
        :rtype: Optional[Dict[str, Any]]
        """
        message_type = message.get("type")

        if message_type == "connected":
            self.connection_id = message["connectionId"]
            return {"type": "join_queue"}

        if message_type == "queue_status":
            console.print(f"[dim]{self.name}: {message['queueSize']} in queue, "
                          f"~{message['estimatedWaitSeconds']}s wait[/dim]")
            return None

        if message_type == "match_found":
            self._reset_match()
            self.match_id = message["matchId"]
            console.print(f"[green]✓ {self.name} matched:[/green] [bold]{self.match_id}[/bold]")
            return self._choose_color([])

        if message_type == "match_update":
            if message.get("matchId") != self.match_id:
                return None
            me = next((p for p in message["participants"] if p["id"] == self.connection_id), None)
            if me is None:
                return None
            self.color = me["color"]
            if self.color is None:
                taken = [p["color"] for p in message["participants"] if p["id"] != self.connection_id]
                return self._choose_color(taken)
            if not self.ready_sent:
                self.ready_sent = True
                return {"type": "set_ready", "ready": True, "matchId": self.match_id}
            return None

        if message_type == "launch":
            self.launch = message
            colors = ", ".join(f"{p['id'][:8]}={p['color']}" for p in message["participants"])
            console.print(f"[bold green]{self.name} launching match {message['matchId']}[/bold green] ({colors})")
            return None

        if message_type == "peer_disconnected":
            console.print(f"[yellow]⚠ {self.name}: peer {message['connectionId']} left, match aborted[/yellow]")
            self._reset_match()
            return {"type": "join_queue"} if self.requeue else None

        if message_type == "error":
            console.print(f"[red]✗ {self.name} error:[/red] {message.get('message')}")

        return None

    async def run(self) -> None:
        """Connect, negotiate and return once the match launches."""
        async with websockets.connect(self.server_url + "/ws") as websocket:
            async for raw in websocket:
                reply = self.handle_message(json.loads(raw))
                if reply is not None:
                    await websocket.send(json.dumps(reply))
                if self.launch is not None:
                    return


async def run_bots(server_url: str, count: int, stagger: float) -> List[BotPlayer]:
    """
    Start ``count`` bots, one every ``stagger`` seconds.

    :param server_url: Base URL of the server
    :type server_url: str
    :param count: Number of bots
    :type count: int
    :param stagger: Delay between bot connections in seconds
    :type stagger: float
    :return: The bots after they finished
    :rtype: List[BotPlayer]
    """
    bots = [BotPlayer(server_url, i) for i in range(count)]

    async def start(bot: BotPlayer) -> None:
        await asyncio.sleep(bot.index * stagger)
        await bot.run()

    await asyncio.gather(*(start(bot) for bot in bots))
    return bots


def main() -> None:
    """
    Parse command-line arguments and start the bots.
    """
    parser = argparse.ArgumentParser(description='Lobby Arena bot players')
    parser.add_argument('--players', type=int, default=4, help='Number of bots (default: 4)')
    parser.add_argument('--port', type=int, default=9002, help='Server port (default: 9002)')
    parser.add_argument('--stagger', type=float, default=1.0,
                        help='Seconds between bot connections (default: 1.0)')
    args = parser.parse_args()

    console.print(f"[bold green]Starting {args.players} bot players[/bold green]")
    try:
        asyncio.run(run_bots(f"http://localhost:{args.port}", args.players, args.stagger))
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠ Bots stopped by user[/yellow]")
    except Exception as e:
        console.print(f"[red]✗ Connection error:[/red] {e}")


if __name__ == '__main__':
    main()
