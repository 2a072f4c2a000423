"""
Game constants shared by the client core and the local service.

Board topology, color groups, landing statistics and the numeric
thresholds used by the turn and AI logic.
"""
from typing import Dict, List

# Board
BOARD_SIZE = 40
JAIL_POSITION = 10

# Money
STARTING_MONEY = 1500
SALARY_AMOUNT = 200
JAIL_FINE = 50
INCOME_TAX = 200
LUXURY_TAX = 100
MAX_JAIL_ATTEMPTS = 3

# Development
MAX_DEVELOPMENT = 5  # 1-4 houses, 5 = hotel
UNMORTGAGE_RATE = 1.1

# Turn timing
TURN_TOTAL_SECONDS = 120
INACTIVITY_SECONDS = 30
MIN_TURNS_FOR_VALID_WIN = 20
TWO_PLAYER_VOTE_STRIKES = 3

# AI buy policy
AI_BUY_SCORE_THRESHOLD = 72
AI_BUY_CASH_MULTIPLIER = 1.8
BUY_SCORE_MIN = 0
BUY_SCORE_MAX = 95
DEFAULT_LANDING_RANK = 25

# AI trade policy
TRADE_COMPLETING_MULTIPLIER = 1.6
TRADE_PARTIAL_MULTIPLIER = 1.3
TRADE_CASH_RESERVE = 300
TRADE_ACCEPT_THRESHOLD = 50
TRADE_SECOND_TO_LAST_BONUS = 300
TRADE_THIRD_TO_LAST_BONUS = 120
TRADE_OFFERED_PROPERTY_WEIGHT = 1.3
MAX_TRADE_ATTEMPTS = 1

# AI unmortgage policy
AI_UNMORTGAGE_MIN_BALANCE = 1200


COLOR_GROUPS: Dict[str, List[int]] = {
    "brown": [1, 3],
    "lightblue": [6, 8, 9],
    "pink": [11, 13, 14],
    "orange": [16, 18, 19],
    "red": [21, 23, 24],
    "yellow": [26, 27, 29],
    "green": [31, 32, 34],
    "darkblue": [37, 39],
    "railroad": [5, 15, 25, 35],
    "utility": [12, 28],
}

BUILD_PRIORITY = [
    "orange",
    "red",
    "yellow",
    "pink",
    "lightblue",
    "green",
    "brown",
    "darkblue",
]

# Lower rank = landed on more often
LANDING_RANK: Dict[int, int] = {
    5: 1, 6: 2, 7: 3, 8: 4, 9: 5, 11: 6, 13: 7, 14: 8, 16: 9, 18: 10,
    19: 11, 21: 12, 23: 13, 24: 14, 26: 15, 27: 16, 29: 17, 31: 18, 32: 19,
    34: 20, 37: 21, 39: 22,
    1: 30, 2: 25, 3: 29, 4: 35, 12: 32, 17: 28, 22: 26, 28: 33, 33: 27,
    36: 24, 38: 23,
}


def _land(name: str, price: int, rents: List[int], house: int, color: str) -> dict:
    return {
        "name": name,
        "type": "land",
        "price": price,
        "rents": rents,
        "cost_of_house": house,
        "color": color,
    }


def _railway(name: str) -> dict:
    return {
        "name": name,
        "type": "railway",
        "price": 200,
        "rents": [25, 0, 0, 0, 0, 0],
        "cost_of_house": 0,
        "color": "railroad",
    }


def _utility(name: str) -> dict:
    return {
        "name": name,
        "type": "utility",
        "price": 150,
        "rents": [0, 0, 0, 0, 0, 0],
        "cost_of_house": 0,
        "color": "utility",
    }


def _special(name: str, space_type: str) -> dict:
    return {
        "name": name,
        "type": space_type,
        "price": 0,
        "rents": [0, 0, 0, 0, 0, 0],
        "cost_of_house": 0,
        "color": "",
    }


# rents: site only, 1-4 houses, hotel
BOARD_SPACES: Dict[int, dict] = {
    0: _special("Go", "start"),
    1: _land("Mediterranean Avenue", 60, [2, 10, 30, 90, 160, 250], 50, "brown"),
    2: _special("Community Chest", "community_chest"),
    3: _land("Baltic Avenue", 60, [4, 20, 60, 180, 320, 450], 50, "brown"),
    4: _special("Income Tax", "income_tax"),
    5: _railway("Reading Railroad"),
    6: _land("Oriental Avenue", 100, [6, 30, 90, 270, 400, 550], 50, "lightblue"),
    7: _special("Chance", "chance"),
    8: _land("Vermont Avenue", 100, [6, 30, 90, 270, 400, 550], 50, "lightblue"),
    9: _land("Connecticut Avenue", 120, [8, 40, 100, 300, 450, 600], 50, "lightblue"),
    10: _special("Jail / Just Visiting", "visiting_jail"),
    11: _land("St. Charles Place", 140, [10, 50, 150, 450, 625, 750], 100, "pink"),
    12: _utility("Electric Company"),
    13: _land("States Avenue", 140, [10, 50, 150, 450, 625, 750], 100, "pink"),
    14: _land("Virginia Avenue", 160, [12, 60, 180, 500, 700, 900], 100, "pink"),
    15: _railway("Pennsylvania Railroad"),
    16: _land("St. James Place", 180, [14, 70, 200, 550, 750, 950], 100, "orange"),
    17: _special("Community Chest", "community_chest"),
    18: _land("Tennessee Avenue", 180, [14, 70, 200, 550, 750, 950], 100, "orange"),
    19: _land("New York Avenue", 200, [16, 80, 220, 600, 800, 1000], 100, "orange"),
    20: _special("Free Parking", "free_parking"),
    21: _land("Kentucky Avenue", 220, [18, 90, 250, 700, 875, 1050], 150, "red"),
    22: _special("Chance", "chance"),
    23: _land("Indiana Avenue", 220, [18, 90, 250, 700, 875, 1050], 150, "red"),
    24: _land("Illinois Avenue", 240, [20, 100, 300, 750, 925, 1100], 150, "red"),
    25: _railway("B. & O. Railroad"),
    26: _land("Atlantic Avenue", 260, [22, 110, 330, 800, 975, 1150], 150, "yellow"),
    27: _land("Ventnor Avenue", 260, [22, 110, 330, 800, 975, 1150], 150, "yellow"),
    28: _utility("Water Works"),
    29: _land("Marvin Gardens", 280, [24, 120, 360, 850, 1025, 1200], 150, "yellow"),
    30: _special("Go To Jail", "goto_jail"),
    31: _land("Pacific Avenue", 300, [26, 130, 390, 900, 1100, 1275], 200, "green"),
    32: _land("North Carolina Avenue", 300, [26, 130, 390, 900, 1100, 1275], 200, "green"),
    33: _special("Community Chest", "community_chest"),
    34: _land("Pennsylvania Avenue", 320, [28, 150, 450, 1000, 1200, 1400], 200, "green"),
    35: _railway("Short Line"),
    36: _special("Chance", "chance"),
    37: _land("Park Place", 350, [35, 175, 500, 1100, 1300, 1500], 200, "darkblue"),
    38: _special("Luxury Tax", "luxury_tax"),
    39: _land("Boardwalk", 400, [50, 200, 600, 1400, 1700, 2000], 200, "darkblue"),
}
