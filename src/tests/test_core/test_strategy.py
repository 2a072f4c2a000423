"""
AI strategic layer: set detection, trade planning and scoring, build
and unmortgage decisions.
"""

import sys

from tests.helpers import (
    TestResults, assert_test, print_header, print_info, print_subheader, run_suite,
)
from tycoon.client.core.strategy import (
    complete_groups, fair_cash_offer, near_complete_opportunities, pick_unmortgage, plan_build,
    plan_trades, should_accept_trade, trade_favorability, unmortgage_cost,
)
from tycoon.shared.models import GameProperty, Player, TradeOffer


def owned(owner, *ids, development=0, mortgaged=False):
    return [GameProperty(i, owner=owner, development=development, mortgaged=mortgaged) for i in ids]


def offer(**kwargs):
    return TradeOffer(id="t1", proposer="ai_one", target="ai_two", **kwargs)


def test_complete_and_near_complete():
    print_header("Complete and Near-Complete Groups")
    results = TestResults()

    properties = owned("ai_one", 1, 3, 16, 18, 19)
    groups = complete_groups("ai_one", properties)
    results.add(assert_test(groups == ["orange", "brown"], "Complete sets in build priority order", f"{groups}"))

    properties[0].mortgaged = True
    results.add(assert_test(
        complete_groups("ai_one", properties) == ["orange"],
        "A mortgaged member drops the set",
        "Mortgaged set still complete"
    ))

    properties[0].mortgaged = False
    for index in (2, 3, 4):
        previous = properties[index].owner
        properties[index].owner = "bob"
        results.add(assert_test(
            complete_groups("ai_one", properties) == ["brown"],
            f"Losing square {properties[index].id} breaks the orange set",
            f"{complete_groups('ai_one', properties)}"
        ))
        properties[index].owner = previous

    print_subheader("Opportunities")
    properties = owned("ai_one", 16, 18, 1, 21) + owned("bob", 19)
    opportunities = near_complete_opportunities("ai_one", properties)
    summary = [(o.group, o.needs) for o in opportunities]
    print_info(f"Opportunities: {summary}")
    results.add(assert_test(
        summary[:3] == [("orange", 1), ("brown", 1), ("red", 2)],
        "Fewest missing first, then build priority",
        f"Order {summary}"
    ))
    missing = opportunities[0].missing[0]
    results.add(assert_test(
        missing.id == 19 and missing.owner == "bob",
        "Missing square names its holder",
        f"Missing {missing}"
    ))

    assert results.failed == 0


def test_plan_trades():
    print_header("Trade Planning")
    results = TestResults()

    results.add(assert_test(fair_cash_offer(200, True) == 320, "Completing offer is 1.6x", "Wrong completing offer"))
    results.add(assert_test(fair_cash_offer(200, False) == 260, "Partial offer is 1.3x", "Wrong partial offer"))

    players = [Player(id="ai_one", username="ai_one", balance=1000), Player(id="bob", username="bob")]
    properties = owned("ai_one", 16, 18, 1, 5) + owned("bob", 19)
    plans = plan_trades(players[0], players, properties)
    results.add(assert_test(len(plans) == 1, "One proposal per turn", f"{len(plans)} plans"))
    plan = plans[0]
    results.add(assert_test(
        plan.target == "bob" and plan.requested_properties == [19] and plan.offered_cash == 320,
        "Offers $320 to bob for New York Avenue",
        f"Plan {plan}"
    ))
    results.add(assert_test(not plan.offered_properties, "Cash alone when it covers the reserve", "Added a property"))

    print_subheader("Short on cash")
    players[0].balance = 500
    plan = plan_trades(players[0], players, properties)[0]
    results.add(assert_test(
        plan.offered_properties == [1],
        "Sweetens with the cheapest holding outside orange",
        f"Offered {plan.offered_properties}"
    ))

    print_subheader("Bank-held and departed holders")
    results.add(assert_test(
        plan_trades(players[0], players, owned("ai_one", 16, 18)) == [],
        "No proposal for bank-held squares",
        "Proposed to the bank"
    ))
    results.add(assert_test(
        plan_trades(players[0], players[:1], properties) == [],
        "No proposal to a player who left",
        "Proposed to a departed player"
    ))

    assert results.failed == 0


def test_trade_favorability():
    print_header("Trade Favorability")
    results = TestResults()

    results.add(assert_test(
        trade_favorability(offer(offered_cash=500), "ai_two", []) == 500,
        "Cash only: the amount offered",
        "Wrong cash-only score"
    ))
    more = trade_favorability(offer(offered_cash=600), "ai_two", [])
    results.add(assert_test(more > 500, "More cash never scores lower", "Score fell with more cash"))

    plain = trade_favorability(offer(requested_properties=[19]), "ai_two", [])
    boosted = trade_favorability(offer(requested_properties=[19]), "ai_two", owned("ai_two", 16, 18))
    results.add(assert_test(
        boosted - plain == 300,
        "Second-to-last square of the receiver's group adds 300",
        f"Difference {boosted - plain}"
    ))

    results.add(assert_test(
        trade_favorability(offer(offered_properties=[1]), "ai_two", []) == -78,
        "Offered square weighs 1.3x its price",
        "Wrong offered weight"
    ))

    print_subheader("Acceptance threshold")
    results.add(assert_test(
        should_accept_trade(offer(offered_cash=50), "ai_two", []),
        "Accepts at exactly 50",
        "Declined at 50"
    ))
    results.add(assert_test(
        not should_accept_trade(offer(offered_cash=49), "ai_two", []),
        "Declines at 49",
        "Accepted at 49"
    ))

    assert results.failed == 0


def test_plan_build():
    print_header("Build Planning")
    results = TestResults()

    player = Player(id="ai_one", username="ai_one", balance=1000)
    steps = plan_build(player, owned("ai_one", 16, 18, 19))
    results.add(assert_test(
        len(steps) == 1 and steps[0].group == "orange" and sorted(steps[0].property_ids) == [16, 18, 19]
        and steps[0].house_cost == 100,
        "Builds a round on the orange set",
        f"Steps {steps}"
    ))

    uneven = owned("ai_one", 16, development=1) + owned("ai_one", 18, 19)
    steps = plan_build(player, uneven)
    results.add(assert_test(
        steps and sorted(steps[0].property_ids) == [18, 19],
        "Only the least developed members are listed",
        f"Steps {steps}"
    ))

    broken = owned("ai_one", 16, development=2) + owned("ai_one", 18, 19)
    results.add(assert_test(plan_build(player, broken) == [], "Uneven sets are skipped", "Built on uneven set"))

    hotels = owned("ai_one", 16, 18, 19, development=5)
    results.add(assert_test(plan_build(player, hotels) == [], "Hotels everywhere: nothing to do", "Built past hotel"))

    player.balance = 250
    results.add(assert_test(
        plan_build(player, owned("ai_one", 16, 18, 19)) == [],
        "Needs cash for a full round of houses",
        "Built without enough cash"
    ))

    assert results.failed == 0


def test_unmortgage():
    print_header("Unmortgage Choice")
    results = TestResults()

    results.add(assert_test(unmortgage_cost(19) == 110, "Redeeming $200 costs $110", f"Cost {unmortgage_cost(19)}"))

    properties = owned("ai_one", 16, 19, mortgaged=True)
    rich = Player(id="ai_one", username="ai_one", balance=1300)
    results.add(assert_test(
        pick_unmortgage(rich, properties) == 19,
        "Highest base rent is redeemed first",
        f"Picked {pick_unmortgage(rich, properties)}"
    ))
    rich.balance = 1200
    results.add(assert_test(
        pick_unmortgage(rich, properties) is None,
        "Nothing is redeemed at $1200 or less",
        "Redeemed at $1200"
    ))

    assert results.failed == 0


def run_all_tests():
    return run_suite("STRATEGY TESTS", [
        ("Groups", test_complete_and_near_complete),
        ("Plan trades", test_plan_trades),
        ("Favorability", test_trade_favorability),
        ("Plan build", test_plan_build),
        ("Unmortgage", test_unmortgage),
    ])


if __name__ == "__main__":
    sys.exit(0 if run_all_tests() else 1)
