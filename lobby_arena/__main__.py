"""Main entry point for lobby arena application."""

import argparse
import os

import uvicorn


def main() -> None:
    """
    Start the FastAPI server.

    Runs the Lobby Arena server. Default configuration is host 0.0.0.0 and port 9002.
    Clients connect to ws://<host>:<port>/ws; visit http://<host>:<port>/docs for the HTTP API.

    Matchmaking options are exported as environment variables so the server
    module picks them up when uvicorn imports it.
    """
    parser = argparse.ArgumentParser(description="Lobby Arena Matchmaking Server")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to bind the server to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=9002, help="Port to bind the server to (default: 9002)")
    parser.add_argument("--match-size", type=int, default=None,
                        help="Participants per match (default: 4)")
    parser.add_argument("--base-wait", type=float, default=None,
                        help="Estimated wait per missing player in seconds (default: 30)")
    parser.add_argument("--min-wait", type=float, default=None,
                        help="Minimum wait estimate in seconds (default: 10)")
    parser.add_argument("--colors", type=str, default=None,
                        help="Comma-separated list of allowed colors (default: any)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    overrides = {
        "MATCH_SIZE": args.match_size,
        "BASE_WAIT_SECONDS": args.base_wait,
        "MIN_WAIT_SECONDS": args.min_wait,
        "ALLOWED_COLORS": args.colors,
    }
    for name, value in overrides.items():
        if value is not None:
            os.environ[name] = str(value)

    uvicorn.run("lobby_arena.server:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
