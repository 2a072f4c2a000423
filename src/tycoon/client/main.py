"""
Tycoon client entry point.

Runs a game session on a qasync event loop, either against a remote game
service over websockets or offline against an in-process service with
computer opponents.
"""
import sys
import argparse
import asyncio
import logging

import qasync
from PyQt6.QtCore import QCoreApplication

from tycoon.client.config import settings, ClientSettings
from tycoon.client.core.session import GameSession
from tycoon.client.gui.bridge import OrchestratorBridge
from tycoon.client.network.service import GameService, ServiceError
from tycoon.client.network.ws_client import WebSocketGameService
from tycoon.server.local_service import LocalGameService
from tycoon.shared.enums import TurnPhase
from tycoon.shared.models import Player

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Tycoon Game Client")
    parser.add_argument(
        "--server", "-s",
        default=None,
        help=f"Service host (default: {settings.service_host}, or TYCOON_SERVICE_HOST env var)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help=f"Service port (default: {settings.service_port}, or TYCOON_SERVICE_PORT env var)"
    )
    parser.add_argument("--code", default="local", help="Game code to join")
    parser.add_argument("--user-id", default="player", help="Local player id")
    parser.add_argument("--offline", action="store_true", help="Play against an in-process service")
    parser.add_argument("--ai-players", type=int, default=1, help="Computer opponents for --offline")
    parser.add_argument("--autoplay", action="store_true",
                        help="Let the autopilot play the local player too (--offline only)")
    parser.add_argument("--drive-ai", action="store_true",
                        help="Drive turns of computer players in a remote game from this client")
    parser.add_argument("--poll-interval", type=float, default=None, help="Reconciliation interval in seconds")
    parser.add_argument("--log-level", default=None, help="Logging level")
    return parser.parse_args(argv)


def build_offline_service(args) -> LocalGameService:
    service = LocalGameService()
    players = [Player(id=args.user_id, username=args.user_id, is_ai=True if args.autoplay else None)]
    for index in range(max(1, args.ai_players)):
        name = f"ai_player_{index + 1}"
        players.append(Player(id=name, username=name))
    service.create_game(args.code, players)
    return service


async def connect_service(args) -> GameService:
    if args.offline:
        return build_offline_service(args)
    service = WebSocketGameService(
        host=ClientSettings.service_host,
        port=ClientSettings.service_port,
        request_timeout=ClientSettings.request_timeout,
    )
    await service.connect()
    return service


async def main_async(args) -> int:
    """
    Run one session until the game ends.

    A removed local player stops the session unless this client also drives
    the computer players, which keep playing to the end.
    """
    try:
        service = await connect_service(args)
    except ServiceError as e:
        logger.error(f"Could not reach the game service: {e}")
        return 1

    session = GameSession.create(
        service, args.code, args.user_id,
        settings=settings,
        drive_ai=args.offline or args.drive_ai,
    )
    bridge = OrchestratorBridge(session)
    bridge.phase_changed.connect(lambda phase: logger.debug(f"Phase: {phase}"))

    orchestrator = session.orchestrator
    await session.start()
    try:
        while orchestrator.machine.phase != TurnPhase.GAME_OVER:
            if orchestrator.removed and not orchestrator.drive_ai:
                break
            await asyncio.sleep(1)
    finally:
        await session.close()
        await service.close()

    if orchestrator.game_result:
        logger.info(f"Game over: {orchestrator.game_result}")
    return 0


def main() -> int:
    """Main entry point."""
    args = parse_args()
    ClientSettings.from_args(
        host=args.server,
        port=args.port,
        poll_interval=args.poll_interval,
        log_level=args.log_level,
    )
    setup_logging(ClientSettings.log_level)

    app = QCoreApplication(sys.argv)
    app.setApplicationName("Tycoon")
    app.setOrganizationName("Tycoon")

    loop = qasync.QEventLoop(app)
    asyncio.set_event_loop(loop)

    with loop:
        try:
            return loop.run_until_complete(main_async(args))
        except KeyboardInterrupt:
            return 0


if __name__ == "__main__":
    sys.exit(main())
