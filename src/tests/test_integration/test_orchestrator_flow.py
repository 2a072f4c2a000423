"""
Turn orchestration against the in-process game service.

Each scenario drives a TurnOrchestrator through real service calls with
scripted dice and a manual clock, checking both the local phase and the
authoritative state.

Run with: python -m tests.test_integration.test_orchestrator_flow
"""

import asyncio
import sys

from tests.helpers import (
    GAME_CODE, NoticeLog, RecordingService, TestResults, assert_test, make_game, make_orchestrator,
    print_header, print_info, print_subheader, run, run_suite,
)
from tycoon.client.network.service import ServiceError
from tycoon.shared.enums import ActionLockKind, TurnPhase


def test_roll_buy_and_auto_end():
    print_header("Roll, Buy and Automatic End")
    results = TestResults()

    service, clock = make_game()
    orch = make_orchestrator(service, "alice", clock, throws=[(1, 2)])

    async def scenario():
        await orch.reconcile(force=True)
        results.add(assert_test(orch.machine.phase == TurnPhase.AWAITING_ROLL, "Alice awaits her roll", f"{orch.machine.phase}"))

        result = await orch.roll()
        view = orch.view()
        results.add(assert_test(result.success and result.data["position"] == 3, "Moved to Baltic Avenue", f"{result}"))
        results.add(assert_test(
            view.phase == TurnPhase.AWAITING_BUY_DECISION and view.buy_prompt.price == 60,
            "Buy prompt for $60",
            f"View {view.to_dict()}"
        ))
        results.add(assert_test(view.display_roll == (1, 2), "Own roll is displayed as thrown", f"{view.display_roll}"))

        bought = await orch.buy()
        results.add(assert_test(bought.success, "Bought Baltic Avenue", bought.message))
        results.add(assert_test(orch.machine.phase == TurnPhase.TURN_COMPLETING, "Turn completing", f"{orch.machine.phase}"))

        await orch.tick()

    run(scenario())
    state = service.state(GAME_CODE)
    results.add(assert_test(state.owner_of(3) == "alice", "Service records the purchase", "Owner not recorded"))
    results.add(assert_test(state.player("alice").balance == 1440, "Alice paid $60", f"{state.player('alice').balance}"))
    results.add(assert_test(state.current_player_id == "bob", "Tick ended the turn automatically", "Turn not ended"))
    results.add(assert_test(orch.machine.phase == TurnPhase.OBSERVING, "Alice now observes", f"{orch.machine.phase}"))

    assert results.failed == 0


def test_doubles_roll_again():
    print_header("Doubles Roll Again Before Moving")
    results = TestResults()

    service, clock = make_game()
    recording = RecordingService(service)
    orch = make_orchestrator(recording, "alice", clock, throws=[(2, 2), (1, 2)])

    async def scenario():
        await orch.reconcile(force=True)
        first = await orch.roll()
        results.add(assert_test(
            first.success and orch.machine.phase == TurnPhase.AWAITING_ROLL,
            "Doubles return to the roll",
            f"{orch.machine.phase}"
        ))
        results.add(assert_test(orch.view().pending_roll == 4, "Four pips carried", f"{orch.view().pending_roll}"))
        results.add(assert_test(recording.count("change_position") == 0, "No move yet", "Moved on doubles"))

        await orch.roll()

    run(scenario())
    moves = [c for c in recording.calls if c[0] == "change_position"]
    results.add(assert_test(
        len(moves) == 1 and moves[0][1][2:4] == (7, 7),
        "Single move of 3 + 4 carried to square 7",
        f"Moves {moves}"
    ))
    results.add(assert_test(
        orch.machine.phase == TurnPhase.TURN_COMPLETING and orch.machine.context.pending_roll == 0,
        "Chance square with no purchase completes the turn",
        f"{orch.machine.phase}"
    ))

    assert results.failed == 0


def test_reroll_on_twelve():
    print_header("Forced Reroll on Twelve")
    results = TestResults()

    service, clock = make_game()
    recording = RecordingService(service)
    log = NoticeLog()
    orch = make_orchestrator(recording, "alice", clock, throws=[(6, 6), (1, 2)], sink=log, reroll_on_twelve=True)

    async def scenario():
        await orch.reconcile(force=True)
        first = await orch.roll()
        results.add(assert_test(first.data.get("reroll"), "Twelve is thrown again", f"{first}"))
        results.add(assert_test(
            orch.machine.phase == TurnPhase.AWAITING_ROLL and recording.count("change_position") == 0,
            "Nothing moved",
            f"{orch.machine.phase}"
        ))
        results.add(assert_test(log.contains("roll again"), "Actor told to roll again", f"{log.messages}"))
        second = await orch.roll()
        results.add(assert_test(second.data.get("position") == 3, "Next throw moves normally", f"{second}"))

    run(scenario())
    assert results.failed == 0


def test_unaffordable_purchase():
    print_header("Unaffordable Purchase")
    results = TestResults()

    service, clock = make_game()
    service.state(GAME_CODE).player("alice").balance = 40
    recording = RecordingService(service)
    log = NoticeLog()
    orch = make_orchestrator(recording, "alice", clock, throws=[(1, 2)], sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        await orch.roll()
        results.add(assert_test(
            orch.view().buy_prompt is not None and not orch.view().buy_prompt.affordable,
            "Prompt shown as unaffordable",
            "Prompt missing or affordable"
        ))
        results.add(assert_test(log.contains("Insufficient funds"), "Human told they cannot afford it", f"{log.messages}"))
        result = await orch.buy()
        results.add(assert_test(
            not result.success and recording.count("buy_property") == 0,
            "Refused locally, no service call",
            f"{result}"
        ))
        skipped = await orch.skip()
        results.add(assert_test(skipped.success and orch.machine.turn_end_scheduled, "Skip completes the turn", "Skip failed"))

    run(scenario())
    assert results.failed == 0


def test_end_turn_is_idempotent():
    print_header("End Turn Is Idempotent")
    results = TestResults()

    service, clock = make_game()
    recording = RecordingService(service)
    recording.delays["end_turn"] = 0.01
    orch = make_orchestrator(recording, "alice", clock, throws=[(2, 3)])

    async def scenario():
        await orch.reconcile(force=True)
        await orch.roll()
        await orch.skip()
        first, second = await asyncio.gather(orch.end_turn(), orch.end_turn())
        results.add(assert_test(first.success and not first.data.get("duplicate"), "First call ends the turn", f"{first}"))
        results.add(assert_test(second.success and second.data.get("duplicate"), "Concurrent call is a no-op", f"{second}"))

        print_subheader("After completion")
        await orch.end_turn()

    run(scenario())
    state = service.state(GAME_CODE)
    results.add(assert_test(recording.count("end_turn") == 1, "Exactly one END_TURN sent", f"{recording.count('end_turn')}"))
    results.add(assert_test(
        state.current_player_id == "bob" and state.player("alice").turn_count == 1,
        "Alice's turn counted once",
        f"Turn count {state.player('alice').turn_count}"
    ))

    assert results.failed == 0


def test_end_before_roll_rejected():
    print_header("Ending Before Rolling")
    results = TestResults()

    service, clock = make_game()
    recording = RecordingService(service)
    orch = make_orchestrator(recording, "alice", clock)

    async def scenario():
        await orch.reconcile(force=True)
        result = await orch.end_turn()
        results.add(assert_test(not result.success, "A human must roll first", f"{result}"))

        orch.lock.acquire(ActionLockKind.END)
        blocked = await orch.roll()
        results.add(assert_test(not blocked.success, "Roll rejected while END is held", f"{blocked}"))
        orch.lock.release(ActionLockKind.END)

    run(scenario())
    results.add(assert_test(recording.count("end_turn") == 0, "No END_TURN sent", "END_TURN sent"))
    results.add(assert_test(recording.count("change_position") == 0, "No move sent", "Move sent"))

    assert results.failed == 0


def test_move_failure_forces_end():
    print_header("Movement Failure Forces the Turn to End")
    results = TestResults()

    service, clock = make_game()
    recording = RecordingService(service)
    recording.failures["change_position"] = ServiceError("Server rejected the move", status=500)
    log = NoticeLog()
    orch = make_orchestrator(recording, "alice", clock, throws=[(1, 2)], sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        result = await orch.roll()
        results.add(assert_test(not result.success, "Roll reports the failure", f"{result}"))

    run(scenario())
    state = service.state(GAME_CODE)
    results.add(assert_test(log.contains("Move failed"), "Failure notice shown", f"{log.messages}"))
    results.add(assert_test(recording.count("end_turn") == 1, "END_TURN sent once", f"{recording.count('end_turn')}"))
    results.add(assert_test(orch.lock.is_free, "Lock released", f"Held {orch.lock.held}"))
    results.add(assert_test(
        state.current_player_id == "bob" and state.player("alice").position == 0,
        "Turn passed without moving alice",
        f"Current {state.current_player_id}"
    ))

    assert results.failed == 0


def test_pay_fine_then_roll():
    print_header("Pay the Fine, Then Roll")
    results = TestResults()

    service, clock = make_game()
    alice = service.state(GAME_CODE).player("alice")
    alice.in_jail = True
    alice.position = 38
    alice.balance = 200
    recording = RecordingService(service)
    log = NoticeLog()
    orch = make_orchestrator(recording, "alice", clock, throws=[(1, 2)], sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        view = orch.view()
        results.add(assert_test(
            view.phase == TurnPhase.JAIL_AWAITING_CHOICE and view.jail.can_pay_fine and view.jail.can_roll,
            "Jailed alice may pay or roll",
            f"View {view.to_dict()}"
        ))

        paid = await orch.pay_fine()
        results.add(assert_test(paid.success, "Fine paid", paid.message))
        results.add(assert_test(orch.machine.phase == TurnPhase.AWAITING_ROLL, "Roll still required", f"{orch.machine.phase}"))
        results.add(assert_test(log.contains("You may now roll"), "Told to roll", f"{log.messages}"))
        results.add(assert_test(orch.me.balance == 150 and not orch.me.in_jail, "Balance 150, free", f"{orch.me}"))

        await orch.roll()

    run(scenario())
    moves = [c for c in recording.calls if c[0] == "change_position"]
    print_info(f"Move: {moves}")
    results.add(assert_test(
        len(moves) == 1 and moves[0][1][2] == 1 and moves[0][1][3] == 3,
        "Normal move from 38 to 1",
        f"Moves {moves}"
    ))
    results.add(assert_test(alice.balance == 350, "Collected $200 passing Go", f"Balance {alice.balance}"))
    results.add(assert_test(
        orch.machine.phase == TurnPhase.AWAITING_BUY_DECISION,
        "Offered Mediterranean Avenue",
        f"{orch.machine.phase}"
    ))

    assert results.failed == 0


def test_fine_refused_without_cash():
    print_header("Fine Refused Without Cash")
    results = TestResults()

    service, clock = make_game()
    alice = service.state(GAME_CODE).player("alice")
    alice.in_jail = True
    alice.position = 10
    alice.balance = 40
    recording = RecordingService(service)
    log = NoticeLog()
    orch = make_orchestrator(recording, "alice", clock, sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        results.add(assert_test(not orch.view().jail.can_pay_fine, "Fine not offered", "Fine offered"))
        result = await orch.pay_fine()
        results.add(assert_test(not result.success, "Pay fine refused", f"{result}"))
        card = await orch.use_card()
        results.add(assert_test(not card.success, "No card to use", f"{card}"))

    run(scenario())
    results.add(assert_test(
        recording.count("pay_to_leave_jail") == 0 and recording.count("use_jail_card") == 0,
        "Nothing sent to the service",
        f"Calls {recording.calls}"
    ))
    results.add(assert_test(log.contains("$50"), "Notice names the fine", f"{log.messages}"))

    assert results.failed == 0


def test_jail_miss_then_stay():
    print_header("Missed Doubles, Then Stay")
    results = TestResults()

    service, clock = make_game()
    alice = service.state(GAME_CODE).player("alice")
    alice.in_jail = True
    alice.position = 10
    recording = RecordingService(service)
    log = NoticeLog()
    orch = make_orchestrator(recording, "alice", clock, throws=[(1, 2)], sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        result = await orch.roll()
        results.add(assert_test(result.data.get("still_in_jail"), "Still in jail", f"{result}"))
        view = orch.view()
        results.add(assert_test(
            view.phase == TurnPhase.JAIL_CHOICE_REQUIRED and view.jail.must_choose and not view.jail.can_roll,
            "Choice required, no second roll",
            f"View {view.to_dict()}"
        ))
        again = await orch.roll()
        results.add(assert_test(not again.success, "Second roll rejected", f"{again}"))

        stayed = await orch.stay()
        results.add(assert_test(stayed.success, "Stayed and ended the turn", stayed.message))

    run(scenario())
    state = service.state(GAME_CODE)
    results.add(assert_test(state.current_player_id == "bob", "Turn passed to bob", f"{state.current_player_id}"))
    results.add(assert_test(
        alice.in_jail and alice.jail_attempts == 1 and alice.position == 10,
        "Alice stays jailed with one attempt used",
        f"{alice}"
    ))
    results.add(assert_test(recording.count("stay_in_jail") == 1, "STAY sent once", "STAY count wrong"))
    results.add(assert_test(log.contains("No doubles"), "Human prompted to choose", f"{log.messages}"))

    assert results.failed == 0


def test_jail_double_escapes():
    print_header("Doubles Escape Jail")
    results = TestResults()

    service, clock = make_game()
    alice = service.state(GAME_CODE).player("alice")
    alice.in_jail = True
    alice.position = 10
    orch = make_orchestrator(service, "alice", clock, throws=[(3, 3), (1, 1)])

    async def scenario():
        await orch.reconcile(force=True)
        await orch.roll()
        results.add(assert_test(
            orch.machine.phase == TurnPhase.AWAITING_BUY_DECISION and orch.buy_prompt.property_id == 16,
            "Moved straight to St. James Place",
            f"{orch.machine.phase}"
        ))
        await orch.skip()
        extra = await orch.roll()
        results.add(assert_test(not extra.success, "No extra roll after a jail double", f"{extra}"))

    run(scenario())
    results.add(assert_test(not alice.in_jail and alice.position == 16, "Alice is free on 16", f"{alice}"))

    assert results.failed == 0


def test_use_card():
    print_header("Get Out of Jail Free")
    results = TestResults()

    service, clock = make_game()
    alice = service.state(GAME_CODE).player("alice")
    alice.in_jail = True
    alice.position = 10
    alice.community_chest_jail_card = 1
    orch = make_orchestrator(service, "alice", clock)

    async def scenario():
        await orch.reconcile(force=True)
        results.add(assert_test(orch.view().jail.has_community_chest_card, "Card offered", "Card not offered"))
        result = await orch.use_card()
        results.add(assert_test(result.success, "Card used", result.message))

    run(scenario())
    results.add(assert_test(
        not alice.in_jail and alice.community_chest_jail_card == 0,
        "Released and card spent",
        f"{alice}"
    ))
    results.add(assert_test(orch.machine.phase == TurnPhase.AWAITING_ROLL, "Must still roll", f"{orch.machine.phase}"))

    assert results.failed == 0


def test_two_player_timeout():
    print_header("Two-Player Turn Timeout")
    results = TestResults()

    service, clock = make_game()
    recording = RecordingService(service)
    orch = make_orchestrator(recording, "bob", clock)

    async def scenario():
        await orch.reconcile(force=True)
        clock.advance(60)
        await orch.tick()
        results.add(assert_test(recording.count("end_turn") == 0, "Nothing at 60 seconds", "Ended early"))
        clock.advance(65)
        await orch.tick()
        await orch.tick()

    run(scenario())
    ends = [c for c in recording.calls if c[0] == "end_turn"]
    results.add(assert_test(len(ends) == 1, "END_TURN fired exactly once", f"{len(ends)} calls"))
    results.add(assert_test(
        ends and ends[0][1] == (GAME_CODE, "alice", True),
        "Alice's turn ended as timed out",
        f"{ends}"
    ))
    state = service.state(GAME_CODE)
    results.add(assert_test(state.player("alice").consecutive_timeouts == 1, "One strike for alice", "Strike missing"))
    results.add(assert_test(
        state.current_player_id == "bob" and orch.machine.phase == TurnPhase.AWAITING_ROLL,
        "Bob's turn begins locally",
        f"{orch.machine.phase}"
    ))

    assert results.failed == 0


def test_multi_player_timeout_records_strike():
    print_header("Multi-Player Timeout Strike")
    results = TestResults()

    service, clock = make_game(("alice", "bob", "carol"))
    recording = RecordingService(service)
    log = NoticeLog()
    orch = make_orchestrator(recording, "bob", clock, sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        clock.advance(125)
        await orch.tick()
        await orch.tick()

    run(scenario())
    reports = [c for c in recording.calls if c[0] == "record_timeout"]
    results.add(assert_test(
        len(reports) == 1 and reports[0][1] == (GAME_CODE, "bob", "alice"),
        "Bob reports alice once",
        f"{reports}"
    ))
    results.add(assert_test(recording.count("end_turn") == 0, "No END_TURN in larger games", "END_TURN sent"))
    results.add(assert_test(log.contains("ran out of time (1 in a row)"), "Strike announced", f"{log.messages}"))
    results.add(assert_test(service.state(GAME_CODE).current_player_id == "bob", "Turn moved to bob", "Turn stuck"))

    assert results.failed == 0


def test_timer_freezes_after_roll():
    print_header("Turn Budget Freezes After the Roll")
    results = TestResults()

    service, clock = make_game()
    orch = make_orchestrator(service, "alice", clock, throws=[(1, 2)])

    async def scenario():
        await orch.reconcile(force=True)
        clock.advance(20)
        results.add(assert_test(orch.view().turn_time_left == 100, "100 seconds left", f"{orch.view().turn_time_left}"))
        await orch.roll()
        clock.advance(500)
        results.add(assert_test(orch.view().turn_time_left == 100, "Still 100 after the roll", f"{orch.view().turn_time_left}"))
        await orch.tick()

    run(scenario())
    results.add(assert_test(
        service.state(GAME_CODE).player("alice").consecutive_timeouts == 0,
        "A rolled turn is never a timeout",
        "Timeout recorded after rolling"
    ))

    assert results.failed == 0


def test_inactivity_ends_turn():
    print_header("Inactivity After Rolling")
    results = TestResults()

    service, clock = make_game()
    recording = RecordingService(service)
    log = NoticeLog()
    orch = make_orchestrator(recording, "alice", clock, throws=[(1, 2)], sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        await orch.roll()
        clock.advance(29)
        await orch.tick()
        results.add(assert_test(orch.machine.buy_prompted, "Still deciding at 29 seconds", f"{orch.machine.phase}"))
        clock.advance(2)
        await orch.tick()

    run(scenario())
    results.add(assert_test(recording.count("end_turn") == 1, "Turn ended after 30 idle seconds", "Turn not ended"))
    results.add(assert_test(log.contains("inactivity"), "Inactivity announced", f"{log.messages}"))
    results.add(assert_test(service.state(GAME_CODE).owner_of(3) is None, "Nothing bought", "Bought while idle"))

    assert results.failed == 0


def test_display_roll_for_observers():
    print_header("Displayed Dice")
    results = TestResults()

    service, clock = make_game()
    alice = make_orchestrator(service, "alice", clock, throws=[(5, 2)])
    bob = make_orchestrator(RecordingService(service), "bob", clock, throws=[(1, 1)])

    async def scenario():
        await alice.reconcile(force=True)
        await bob.reconcile(force=True)
        stale = await bob.roll()
        results.add(assert_test(not stale.success, "Bob cannot roll on alice's turn", f"{stale}"))
        results.add(assert_test(bob.service.count("change_position") == 0, "Nothing sent for bob", "Bob moved"))

        await alice.roll()
        await bob.reconcile(force=True)

    run(scenario())
    results.add(assert_test(alice.view().display_roll == (5, 2), "Alice sees her faces", f"{alice.view().display_roll}"))
    results.add(assert_test(bob.view().display_roll == (3, 4), "Bob sees faces derived from 7", f"{bob.view().display_roll}"))

    assert results.failed == 0


def test_removed_player_detected():
    print_header("Removal Detection")
    results = TestResults()

    service, clock = make_game(("alice", "bob", "carol"))
    log = NoticeLog()
    orch = make_orchestrator(service, "alice", clock, sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        await service.leave_game(GAME_CODE, "alice", reason="voted_out")
        await orch.reconcile(force=True)
        result = await orch.roll()
        results.add(assert_test(not result.success, "Removed player cannot act", f"{result}"))

    run(scenario())
    results.add(assert_test(orch.removed and orch.view().removed, "Removal detected", "Removal missed"))
    results.add(assert_test(log.contains("removed"), "Player told", f"{log.messages}"))
    results.add(assert_test(orch.machine.phase == TurnPhase.OBSERVING, "Only observing now", f"{orch.machine.phase}"))

    assert results.failed == 0


def test_finish_by_time():
    print_header("Time-Boxed Game Ends on the Clock")
    results = TestResults()

    service, clock = make_game(duration=1)
    recording = RecordingService(service)
    log = NoticeLog()
    orch = make_orchestrator(recording, "alice", clock, sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        clock.advance(30)
        await orch.tick()
        results.add(assert_test(recording.count("finish_by_time") == 0, "Not yet at 30 seconds", "Finished early"))

        clock.advance(31)
        recording.failures["finish_by_time"] = ServiceError("Service busy", status=503)
        await orch.tick()
        results.add(assert_test(orch.game_result is None, "Failed finish leaves the game open", "Result set"))

        del recording.failures["finish_by_time"]
        await orch.tick()
        await orch.tick()

    run(scenario())
    results.add(assert_test(recording.count("finish_by_time") == 2, "Retried once after the failure", f"{recording.count('finish_by_time')}"))
    results.add(assert_test(orch.machine.phase == TurnPhase.GAME_OVER, "Game over", f"{orch.machine.phase}"))
    results.add(assert_test(
        orch.game_result and orch.game_result["valid_win"] is False,
        "Win flagged invalid with too few turns",
        f"{orch.game_result}"
    ))
    results.add(assert_test(log.contains("too few turns"), "Announced with the caveat", f"{log.messages}"))

    assert results.failed == 0


def test_expiry_waits_for_the_lock():
    print_header("Timeout Waits for a Busy Lock")
    results = TestResults()

    service, clock = make_game()
    recording = RecordingService(service)
    orch = make_orchestrator(recording, "bob", clock)

    async def scenario():
        await orch.reconcile(force=True)
        clock.advance(125)
        orch.lock.acquire(ActionLockKind.END)
        await orch.tick()
        results.add(assert_test(recording.count("end_turn") == 0, "Nothing while the lock is held", "Ended under a held lock"))
        orch.lock.release(ActionLockKind.END)
        await orch.tick()
        await orch.tick()

    run(scenario())
    results.add(assert_test(recording.count("end_turn") == 1, "Timeout fired once the lock was free", f"{recording.count('end_turn')} calls"))
    results.add(assert_test(service.state(GAME_CODE).current_player_id == "bob", "Turn passed to bob", "Turn stuck"))

    assert results.failed == 0


def test_observer_freezes_on_authoritative_roll():
    print_header("Observers Freeze the Budget Once the Roll Lands")
    results = TestResults()

    service, clock = make_game(("alice", "bob", "carol"))
    alice = make_orchestrator(service, "alice", clock, throws=[(1, 2)])
    recording = RecordingService(service)
    bob = make_orchestrator(recording, "bob", clock)

    async def scenario():
        await alice.reconcile(force=True)
        await alice.roll()
        await bob.reconcile(force=True)
        clock.advance(125)
        await bob.tick()

    run(scenario())
    results.add(assert_test(recording.count("record_timeout") == 0, "A rolled turn is not reported", "Timeout reported"))
    results.add(assert_test(
        bob.view().turn_time_left == alice.view().turn_time_left == 120,
        "Observer and actor show the same frozen time",
        f"bob {bob.view().turn_time_left}, alice {alice.view().turn_time_left}"
    ))
    results.add(assert_test(service.state(GAME_CODE).current_player_id == "alice", "Alice keeps her turn", "Turn moved"))

    assert results.failed == 0


def test_passing_go_announced():
    print_header("Passing Go")
    results = TestResults()

    service, clock = make_game()
    service.state(GAME_CODE).player("alice").position = 38
    log = NoticeLog()
    orch = make_orchestrator(service, "alice", clock, throws=[(1, 2)], sink=log)

    async def scenario():
        await orch.reconcile(force=True)
        return await orch.roll()

    result = run(scenario())
    alice = service.state(GAME_CODE).player("alice")
    results.add(assert_test(result.data.get("position") == 1 and alice.balance == 1700, "Salary paid on the way", f"{alice}"))
    results.add(assert_test(log.contains("passed GO and collected $200"), "Salary announced", f"{log.messages}"))

    assert results.failed == 0


def run_all_tests():
    return run_suite("ORCHESTRATOR FLOW TESTS", [
        ("Roll, buy, auto end", test_roll_buy_and_auto_end),
        ("Doubles", test_doubles_roll_again),
        ("Reroll on twelve", test_reroll_on_twelve),
        ("Unaffordable purchase", test_unaffordable_purchase),
        ("Idempotent end", test_end_turn_is_idempotent),
        ("End before roll", test_end_before_roll_rejected),
        ("Move failure", test_move_failure_forces_end),
        ("Pay fine", test_pay_fine_then_roll),
        ("Fine refused", test_fine_refused_without_cash),
        ("Jail miss and stay", test_jail_miss_then_stay),
        ("Jail double", test_jail_double_escapes),
        ("Jail card", test_use_card),
        ("Two-player timeout", test_two_player_timeout),
        ("Multi-player timeout", test_multi_player_timeout_records_strike),
        ("Timer freeze", test_timer_freezes_after_roll),
        ("Inactivity", test_inactivity_ends_turn),
        ("Display roll", test_display_roll_for_observers),
        ("Removal", test_removed_player_detected),
        ("Finish by time", test_finish_by_time),
        ("Expiry waits for the lock", test_expiry_waits_for_the_lock),
        ("Observer freeze", test_observer_freezes_on_authoritative_roll),
        ("Passing Go", test_passing_go_announced),
    ])


if __name__ == "__main__":
    sys.exit(0 if run_all_tests() else 1)
