"""
Shared helpers for the test suites.

Console reporting (Colors, print_*, TestResults, assert_test) plus the
fakes the suites build games from: an injectable clock, scripted dice,
tuned client settings and a recording wrapper around a game service.
"""

import asyncio
import inspect
import sys
import traceback
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tycoon.client.config import ClientSettings
from tycoon.client.core.dice import ScriptedDice
from tycoon.client.core.notices import Notice
from tycoon.client.core.orchestrator import TurnOrchestrator
from tycoon.client.network.service import ServiceError
from tycoon.server.local_service import LocalGameService
from tycoon.shared.models import Player

GAME_CODE = "TEST"


class Colors:
    """ANSI color codes for pretty output."""
    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def print_header(text: str) -> None:
    print(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * 60}")
    print(f" {text}")
    print(f"{'=' * 60}{Colors.RESET}\n")


def print_subheader(text: str) -> None:
    print(f"\n{Colors.CYAN}--- {text} ---{Colors.RESET}")


def print_success(text: str) -> None:
    print(f"  {Colors.GREEN}✓ {text}{Colors.RESET}")


def print_failure(text: str) -> None:
    print(f"  {Colors.RED}✗ {text}{Colors.RESET}")


def print_info(text: str) -> None:
    print(f"  {Colors.YELLOW}→ {text}{Colors.RESET}")


class TestResults:
    __test__ = False

    def __init__(self):
        self.passed = 0
        self.failed = 0

    def add(self, passed: bool) -> None:
        if passed:
            self.passed += 1
        else:
            self.failed += 1

    def summary(self) -> None:
        print_header("TEST SUMMARY")
        total = self.passed + self.failed
        print(f"  Total:  {total}")
        print(f"  {Colors.GREEN}Passed: {self.passed}{Colors.RESET}")
        print(f"  {Colors.RED}Failed: {self.failed}{Colors.RESET}")

        if self.failed == 0:
            print(f"\n{Colors.GREEN}{Colors.BOLD}All tests passed! ✓{Colors.RESET}")
        else:
            print(f"\n{Colors.RED}{Colors.BOLD}Some tests failed ✗{Colors.RESET}")


def assert_test(condition: bool, success_msg: str, failure_msg: str) -> bool:
    if condition:
        print_success(success_msg)
        return True
    else:
        print_failure(failure_msg)
        return False


def run_suite(title: str, tests: Sequence[Tuple[str, Callable[[], None]]]) -> bool:
    """Run test functions directly, outside pytest."""
    print(f"\n{Colors.BOLD}{Colors.CYAN}")
    print("╔══════════════════════════════════════════════════════════╗")
    print(f"║ {title:^56} ║")
    print("╚══════════════════════════════════════════════════════════╝")
    print(Colors.RESET)

    all_results = TestResults()
    for name, test_func in tests:
        try:
            test_func()
            all_results.add(True)
        except AssertionError:
            print_failure(f"{name} had failing checks")
            all_results.add(False)
        except Exception as e:
            print_failure(f"{name} tests raised exception: {e}")
            traceback.print_exc()
            all_results.add(False)

    all_results.summary()
    return all_results.failed == 0


# =============================================================================
# Fakes
# =============================================================================

class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class NoticeLog:
    """Notification sink that keeps every notice."""

    def __init__(self):
        self.notices: List[Notice] = []

    def __call__(self, notice: Notice) -> None:
        self.notices.append(notice)

    @property
    def messages(self) -> List[str]:
        return [n.message for n in self.notices]

    def contains(self, fragment: str) -> bool:
        return any(fragment in message for message in self.messages)


class RecordingService:
    """
    Wraps a game service, recording every call.

    Methods named in `failures` raise the given ServiceError instead of
    reaching the wrapped service; methods named in `delays` sleep first.
    """

    def __init__(self, inner):
        self.inner = inner
        self.calls: List[Tuple[str, tuple, dict]] = []
        self.failures: Dict[str, ServiceError] = {}
        self.delays: Dict[str, float] = {}

    def __getattr__(self, name):
        attr = getattr(self.inner, name)
        if not inspect.iscoroutinefunction(attr):
            return attr

        async def wrapper(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            if name in self.delays:
                await asyncio.sleep(self.delays[name])
            if name in self.failures:
                raise self.failures[name]
            return await attr(*args, **kwargs)

        return wrapper

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


def make_settings(**overrides) -> ClientSettings:
    """Settings with no pacing delays and no reconciliation throttle."""
    settings = ClientSettings()
    settings.poll_min_gap = 0.0
    settings.move_step_delay = 0.0
    settings.roll_delay = 0.0
    settings.reroll_on_twelve = False
    settings.auto_end_turn = True
    settings.turn_total_seconds = 120
    settings.inactivity_seconds = 30
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def make_game(names: Iterable[str] = ("alice", "bob"), clock: Optional[FakeClock] = None,
              duration: Optional[int] = None, draw_cards: bool = False) -> Tuple[LocalGameService, FakeClock]:
    """Local service with one running game; names play in the given order."""
    clock = clock or FakeClock()
    service = LocalGameService(clock=clock, card_seed=7, draw_cards=draw_cards)
    players = [Player(id=name, username=name) for name in names]
    service.create_game(GAME_CODE, players, duration=duration)
    return service, clock


def make_orchestrator(service, player_id: str, clock: FakeClock, throws: Iterable[Tuple[int, int]] = (),
                      drive_ai: bool = False, sink: Optional[NoticeLog] = None,
                      **settings_overrides) -> TurnOrchestrator:
    settings = make_settings(**settings_overrides)
    return TurnOrchestrator(
        service, GAME_CODE, player_id,
        dice=ScriptedDice(throws, seed=3, reroll_on_twelve=settings.reroll_on_twelve),
        settings=settings,
        sink=sink or NoticeLog(),
        clock=clock,
        drive_ai=drive_ai,
    )


def run(coro):
    return asyncio.run(coro)
