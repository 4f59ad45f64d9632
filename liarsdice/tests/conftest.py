"""
Pytest fixtures for liar's dice tests.
"""

import itertools
import random

import pytest

from ..bots import BotDecision, BotPolicy
from ..config import GameConfig
from ..engine_core.commands import AddScriptedOpponent, CreateSession, JoinSession, StartSession
from ..engine_core.reducer import SessionMachine
from ..engine_core.state import GameState
from ..session.scheduler import Scheduler

SESSION_ID = "abc123"


def sequential_ids(prefix: str):
    """Deterministic id factory: p1, p2, ..."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


class ManualScheduler(Scheduler):
    """Scheduler that only runs callbacks when the test says so."""

    def __init__(self):
        self.calls = []

    def schedule(self, delay, callback):
        self.calls.append((delay, callback))

    @property
    def delays(self):
        return [delay for delay, _ in self.calls]

    async def run_next(self):
        _, callback = self.calls.pop(0)
        await callback()

    async def run_all(self, limit: int = 100):
        """Fire callbacks in order, including ones scheduled along the way."""
        fired = 0
        while self.calls and fired < limit:
            await self.run_next()
            fired += 1
        return fired

    async def shutdown(self):
        self.calls.clear()


class QueuedBot(BotPolicy):
    """Bot that plays back a fixed list of decisions."""

    def __init__(self, *decisions: BotDecision):
        self.decisions = list(decisions)
        self.seen = []

    def decide(self, hand, current_bid, opponent_dice_total):
        self.seen.append((list(hand), current_bid, opponent_dice_total))
        return self.decisions.pop(0)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def config() -> GameConfig:
    """Default rules with no waiting."""
    return GameConfig(scripted_move_delay=0.0, round_delay=0.0)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def machine(config, rng) -> SessionMachine:
    """Empty session machine with predictable participant ids."""
    return SessionMachine(
        state=GameState(session_id=SESSION_ID),
        config=config,
        rng=rng,
        id_factory=sequential_ids("p"),
    )


@pytest.fixture
def lobby(machine) -> SessionMachine:
    """Session created by Ana (p1), not started."""
    machine.apply(CreateSession(name="Ana"), transport_ref="conn-a")
    return machine


@pytest.fixture
def two_player_game(lobby) -> SessionMachine:
    """Ana (p1) and Ben (p2) playing; Ana bids first."""
    lobby.apply(JoinSession(session_id=SESSION_ID, name="Ben"), transport_ref="conn-b")
    lobby.apply(StartSession(session_id=SESSION_ID), transport_ref="conn-a")
    return lobby


@pytest.fixture
def scripted_game(lobby) -> SessionMachine:
    """Ana (p1) against the computer (p2); Ana bids first."""
    lobby.apply(AddScriptedOpponent(session_id=SESSION_ID), transport_ref="conn-a")
    lobby.apply(StartSession(session_id=SESSION_ID), transport_ref="conn-a")
    return lobby


def set_hands(machine: SessionMachine, *hands: list[int]):
    """Replace every participant's dice, in seat order."""
    for player, hand in zip(machine.state.players, hands):
        player.dice = list(hand)
        player.dice_count = len(hand)
