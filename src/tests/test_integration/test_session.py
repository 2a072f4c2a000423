"""
Game session loops and the Qt signal bridge.
"""

import sys

from PyQt6.QtCore import QCoreApplication

from tests.helpers import (
    GAME_CODE, NoticeLog, TestResults, assert_test, make_game, make_settings, print_header,
    print_subheader, run, run_suite,
)
from tycoon.client.core.dice import ScriptedDice
from tycoon.client.core.session import GameSession
from tycoon.client.gui.bridge import OrchestratorBridge
from tycoon.shared.enums import TurnPhase


def make_session(names, player_id, throws=(), drive_ai=False):
    service, clock = make_game(names)
    session = GameSession.create(
        service, GAME_CODE, player_id,
        settings=make_settings(),
        dice=ScriptedDice(throws, seed=3),
        sink=NoticeLog(),
        drive_ai=drive_ai,
        clock=clock,
    )
    return service, clock, session


def qt_app():
    return QCoreApplication.instance() or QCoreApplication([])


def test_tick_plays_ai_turn():
    print_header("Ticks Drive the Computer Player")
    results = TestResults()

    service, _, session = make_session(("ai_one", "bob"), "bob", throws=[(1, 2)], drive_ai=True)

    async def scenario():
        await session.orchestrator.reconcile(force=True)
        for _ in range(6):
            await session.tick()

    run(scenario())
    state = service.state(GAME_CODE)
    results.add(assert_test(state.player("ai_one").position == 3, "AI rolled and moved", f"{state.player('ai_one')}"))
    results.add(assert_test(state.current_player_id == "bob", "AI ended its turn", f"{state.current_player_id}"))
    results.add(assert_test(
        session.orchestrator.machine.phase == TurnPhase.AWAITING_ROLL,
        "Human turn waits for input",
        f"{session.orchestrator.machine.phase}"
    ))

    assert results.failed == 0


def test_start_poll_close():
    print_header("Session Lifecycle")
    results = TestResults()

    service, _, session = make_session(("alice", "bob"), "alice")
    service.state(GAME_CODE).player("bob").consecutive_timeouts = 1

    async def scenario():
        await session.start()
        results.add(assert_test(session.running, "Background loops running", "Loops not started"))
        results.add(assert_test(session.orchestrator.snapshot is not None, "First snapshot fetched", "No snapshot"))
        await session.start()
        results.add(assert_test(len(session._tasks) == 2, "Second start is a no-op", f"{len(session._tasks)} tasks"))

        await session.poll()
        results.add(assert_test("bob" in session.orchestrator.votes.statuses, "Poll refreshes votes", "No vote status"))

        await session.close()
        results.add(assert_test(not session.running, "Loops stopped", "Loops still running"))

    run(scenario())
    results.add(assert_test(session.poll_interval >= 8, "Poll interval clamped", f"{session.poll_interval}"))

    assert results.failed == 0


def test_bridge_signals():
    print_header("Qt Bridge")
    results = TestResults()
    app = qt_app()  # noqa: F841

    service, _, session = make_session(("alice", "bob"), "alice", throws=[(1, 2)])
    bridge = OrchestratorBridge(session)
    phases, views, notices, finished = [], [], [], []
    bridge.phase_changed.connect(phases.append)
    bridge.view_changed.connect(views.append)
    bridge.notice_posted.connect(lambda message, level: notices.append((message, level)))
    bridge.action_finished.connect(lambda action, ok, message: finished.append((action, ok, message)))

    async def scenario():
        await session.orchestrator.reconcile(force=True)
        await bridge.perform("roll")
        await bridge.perform("buy")
        await bridge.submit("teleport")

    run(scenario())
    results.add(assert_test(phases and phases[0] == "AWAITING_ROLL", "Turn start emitted", f"{phases}"))
    results.add(assert_test(
        all(a != b for a, b in zip(phases, phases[1:])),
        "Phase signal only on change",
        f"{phases}"
    ))
    results.add(assert_test(views and views[-1]["phase"] == "TURN_COMPLETING", "Views carry the phase", f"{views[-1:]}"))

    print_subheader("Actions and notices")
    names = [(action, ok) for action, ok, _ in finished]
    results.add(assert_test(
        names == [("roll", True), ("buy", True), ("teleport", False)],
        "Every action reports back",
        f"{finished}"
    ))
    results.add(assert_test(
        ("alice bought Baltic Avenue for $60", "success") in notices,
        "Notices forwarded with their level",
        f"{notices}"
    ))

    assert results.failed == 0


def run_all_tests():
    return run_suite("SESSION TESTS", [
        ("Tick drives AI", test_tick_plays_ai_turn),
        ("Lifecycle", test_start_poll_close),
        ("Bridge", test_bridge_signals),
    ])


if __name__ == "__main__":
    sys.exit(0 if run_all_tests() else 1)
