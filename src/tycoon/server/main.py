"""
Game service entry point.

Runs a LocalGameService behind the websocket front, optionally with a game
created up front for the given players.
"""
import sys
import argparse
import asyncio
import logging

from tycoon.server.config import config, Config
from tycoon.server.local_service import LocalGameService
from tycoon.server.ws_server import TycoonServer
from tycoon.shared.models import Player

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Tycoon Game Service")
    parser.add_argument("--host", default=None, help=f"Bind host (default: {config.HOST}, or TYCOON_SERVER_HOST)")
    parser.add_argument("--port", "-p", type=int, default=None,
                        help=f"Bind port (default: {config.PORT}, or TYCOON_SERVER_PORT)")
    parser.add_argument("--game", default=None, help="Create a game with this code on startup")
    parser.add_argument("--players", default="",
                        help="Comma separated usernames for --game (names containing ai_/bot play themselves)")
    parser.add_argument("--duration", type=int, default=None, help="Time box for --game, in minutes")
    return parser.parse_args()


def build_service(args) -> LocalGameService:
    service = LocalGameService(card_seed=Config.CARD_SEED)
    if args.game:
        names = [name.strip() for name in args.players.split(",") if name.strip()]
        if not Config.MIN_PLAYERS <= len(names) <= Config.MAX_PLAYERS:
            raise ValueError(f"A game needs {Config.MIN_PLAYERS}-{Config.MAX_PLAYERS} players, got {len(names)}")
        players = [Player(id=name, username=name) for name in names]
        service.create_game(args.game, players, duration=Config.GAME_DURATION)
    return service


def main() -> int:
    """Main entry point."""
    args = parse_args()
    Config.from_args(host=args.host, port=args.port, duration=args.duration)
    setup_logging(Config.LOG_LEVEL)

    try:
        service = build_service(args)
    except ValueError as e:
        logger.error(str(e))
        return 1
    server = TycoonServer(service, host=Config.HOST, port=Config.PORT)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
