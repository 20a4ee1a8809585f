"""Secret number dealing.

Each round draws one number per player from a deck of 1..100 without
replacement, so no two players in a room ever hold the same number.
"""

import random
import secrets

LOWEST_NUMBER = 1
HIGHEST_NUMBER = 100
DECK_SIZE = HIGHEST_NUMBER - LOWEST_NUMBER + 1

_system_rng = secrets.SystemRandom()


def deal_numbers(player_count: int, rng: random.Random | None = None) -> list[int]:
    """Draw player_count distinct numbers uniformly from the deck.

    Raises ValueError if the deck cannot cover every player.
    """
    if not (0 <= player_count <= DECK_SIZE):
        raise ValueError(f"player_count must be 0-{DECK_SIZE}, got {player_count}")
    source = rng if rng is not None else _system_rng
    return source.sample(range(LOWEST_NUMBER, HIGHEST_NUMBER + 1), player_count)
