"""Pytest fixtures for blackjack table tests."""

import pytest
from random import Random

from core.cards import Shoe
from core.draw import FixedDrawSource
from core.game import RoundController
from core.table import Player


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    s = Shoe(num_decks=6, penetration=0.75, rng=rng)
    s.shuffle()
    return s


@pytest.fixture
def player():
    """A player with the house starting stack."""
    return Player(name="Tester", chips=10000)


@pytest.fixture
def natural_source():
    """Player A♥ K♠ against dealer 10♦ with 7♣ in the hole."""
    return FixedDrawSource.from_codes("A♥ K♠", "10♦ 7♣")


@pytest.fixture
def bust_source():
    """Player 10♠ 9♥ then 5♣ on a hit; dealer 10♦ 7♣."""
    return FixedDrawSource.from_codes("10♠ 9♥ 5♣", "10♦ 7♣")


def make_controller(player_codes, dealer_codes, chips=10000, **kwargs):
    """Seat a fresh player at a table dealing fixed cards."""
    return RoundController(
        player=Player(name="Tester", chips=chips),
        draw_source=FixedDrawSource.from_codes(player_codes, dealer_codes),
        **kwargs,
    )


@pytest.fixture
def controller_factory():
    return make_controller


@pytest.fixture
def controller(player, natural_source):
    """A controller dealing the natural."""
    return RoundController(player=player, draw_source=natural_source)
