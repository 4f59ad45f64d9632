"""
Tests for the session state machine.

Tests:
- Lobby commands (create, join, scripted opponent, start)
- Bidding and turn order
- Bluff resolution and round transitions
- Game over
- Disconnects
- Stale deferred continuations
"""

import pytest

from ..bots import BotDecision
from ..engine_core.commands import (
    AddScriptedOpponent, BeginRound, CallBluff, CreateSession, Disconnect,
    JoinSession, MakeBid, ScriptedMove, StartSession,
)
from ..engine_core.errors import ErrorCode
from ..engine_core.events import EventType, Target
from ..engine_core.state import GamePhase, RoundPhase
from .conftest import SESSION_ID, QueuedBot, set_hands


def bid(machine, player_id, count, value):
    return machine.apply(MakeBid(SESSION_ID, player_id, count, value))


def call(machine, player_id):
    return machine.apply(CallBluff(SESSION_ID, player_id))


def begin_next_round(machine, result):
    """Run the BeginRound continuation a bluff call deferred."""
    (deferred,) = result.deferred
    assert isinstance(deferred.command, BeginRound)
    return machine.apply(deferred.command)


class TestCreateSession:
    """Tests for createSession."""

    def test_creator_is_seated(self, lobby):
        state = lobby.state
        assert len(state.players) == 1
        ana = state.players[0]
        assert ana.player_id == "p1"
        assert ana.name == "Ana"
        assert ana.dice_count == 5
        assert len(ana.dice) == 5
        assert ana.transport_ref == "conn-a"
        assert state.phase == GamePhase.LOBBY

    def test_creator_holds_placeholder_turn(self, lobby):
        assert lobby.state.players[0].is_turn

    def test_session_created_goes_to_creator_only(self, machine):
        result = machine.apply(CreateSession(name="Ana"), transport_ref="conn-a")

        assert result.success
        (event,) = result.events
        assert event.event_type == EventType.SESSION_CREATED
        assert event.target == Target.REQUESTER
        assert event.payload["sessionId"] == SESSION_ID
        assert event.payload["participantId"] == "p1"
        assert event.payload["game"]["players"][0]["name"] == "Ana"

    def test_create_twice_rejected(self, lobby):
        result = lobby.apply(CreateSession(name="Eve"))
        assert not result.success
        assert len(lobby.state.players) == 1


class TestJoinSession:
    """Tests for joinSession."""

    def test_join_adds_participant(self, lobby):
        result = lobby.apply(JoinSession(SESSION_ID, "Ben"), transport_ref="conn-b")

        assert result.success
        assert result.event_types() == [EventType.SESSION_JOINED, EventType.PARTICIPANT_JOINED]
        joined, broadcast = result.events
        assert joined.target == Target.REQUESTER
        assert joined.payload["participantId"] == "p2"
        assert broadcast.target == Target.SESSION
        assert broadcast.payload["participant"]["name"] == "Ben"

        ben = lobby.state.get_player("p2")
        assert ben.dice_count == 5
        assert not ben.is_turn

    def test_join_full_session(self, lobby):
        lobby.apply(JoinSession(SESSION_ID, "Ben"))
        result = lobby.apply(JoinSession(SESSION_ID, "Cy"), transport_ref="conn-c")

        assert not result.success
        assert result.error_code == ErrorCode.FULL
        assert len(lobby.state.players) == 2
        (event,) = result.events
        assert event.event_type == EventType.ERROR
        assert event.target == Target.REQUESTER

    def test_join_after_start(self, two_player_game):
        result = two_player_game.apply(JoinSession(SESSION_ID, "Cy"))
        assert result.error_code == ErrorCode.INVALID_STATE


class TestScriptedOpponent:
    """Tests for addScriptedOpponent."""

    def test_adds_reserved_seat(self, lobby):
        result = lobby.apply(AddScriptedOpponent(SESSION_ID))

        assert result.success
        (event,) = result.events
        assert event.event_type == EventType.SCRIPTED_OPPONENT_ADDED
        assert event.payload["message"] == "Computer player added to the game."

        computer = lobby.state.players[1]
        assert computer.is_scripted
        assert computer.name == "Computer"
        assert computer.transport_ref is None
        assert computer.dice_count == 5

    def test_respects_capacity(self, lobby):
        lobby.apply(JoinSession(SESSION_ID, "Ben"))
        result = lobby.apply(AddScriptedOpponent(SESSION_ID))
        assert result.error_code == ErrorCode.FULL

    def test_human_named_computer_is_not_scripted(self, lobby):
        lobby.apply(JoinSession(SESSION_ID, "Computer"))
        assert not lobby.state.players[1].is_scripted


class TestStartSession:
    """Tests for startSession."""

    def test_first_seat_gets_turn(self, two_player_game):
        state = two_player_game.state
        assert state.started
        assert state.phase == GamePhase.ACTIVE
        assert state.round_number == 1
        assert [p.is_turn for p in state.players] == [True, False]

    def test_start_emits_session_started(self, lobby):
        lobby.apply(JoinSession(SESSION_ID, "Ben"))
        result = lobby.apply(StartSession(SESSION_ID))

        (event,) = result.events
        assert event.event_type == EventType.SESSION_STARTED
        assert event.payload["message"] == "Game started! Ana's turn to bid."
        assert event.payload["game"]["started"] is True

    def test_start_alone_rejected(self, lobby):
        result = lobby.apply(StartSession(SESSION_ID))
        assert result.error_code == ErrorCode.INVALID_STATE
        assert result.error == "Need at least 2 players to start"
        assert not lobby.state.started

    def test_start_twice_rejected(self, two_player_game):
        result = two_player_game.apply(StartSession(SESSION_ID))
        assert result.error == "Game already started"

    def test_human_first_seat_schedules_nothing(self, lobby):
        lobby.apply(AddScriptedOpponent(SESSION_ID))
        result = lobby.apply(StartSession(SESSION_ID))
        assert result.deferred == []


class TestMakeBid:
    """Tests for makeBid."""

    def test_bid_sets_current_and_passes_turn(self, two_player_game):
        result = bid(two_player_game, "p1", 2, 3)

        assert result.success
        state = two_player_game.state
        assert (state.current_bid.count, state.current_bid.value) == (2, 3)
        assert state.current_bid.player_id == "p1"
        assert [p.is_turn for p in state.players] == [False, True]

        (event,) = result.events
        assert event.event_type == EventType.BID_MADE
        assert event.payload["bid"] == {"count": 2, "value": 3, "playerId": "p1"}
        assert event.payload["nextActorId"] == "p2"
        assert event.payload["message"] == "Ana bid 2 3s. Ben's turn!"

    def test_turn_wraps_around(self, two_player_game):
        bid(two_player_game, "p1", 1, 2)
        bid(two_player_game, "p2", 1, 3)
        assert two_player_game.state.current_player.player_id == "p1"

    def test_lower_bid_rejected(self, two_player_game):
        """A lower bid is rejected."""
        bid(two_player_game, "p1", 2, 3)
        before = two_player_game.state.snapshot()

        result = bid(two_player_game, "p2", 1, 5)

        assert not result.success
        assert result.error_code == ErrorCode.ILLEGAL_BID
        assert two_player_game.state.snapshot() == before

    def test_equal_bid_rejected(self, two_player_game):
        bid(two_player_game, "p1", 2, 3)
        result = bid(two_player_game, "p2", 2, 3)
        assert result.error_code == ErrorCode.ILLEGAL_BID

    @pytest.mark.parametrize("count,value", [(0, 3), (2, 0), (2, 7)])
    def test_out_of_range_rejected(self, two_player_game, count, value):
        result = bid(two_player_game, "p1", count, value)
        assert result.error_code == ErrorCode.ILLEGAL_BID
        assert two_player_game.state.current_bid is None

    def test_out_of_turn(self, two_player_game):
        result = bid(two_player_game, "p2", 1, 1)
        assert result.error_code == ErrorCode.OUT_OF_TURN
        assert result.error == "Not your turn"

    def test_unknown_player(self, two_player_game):
        result = bid(two_player_game, "nobody", 1, 1)
        assert result.error_code == ErrorCode.NOT_FOUND

    def test_bid_before_start(self, lobby):
        lobby.apply(JoinSession(SESSION_ID, "Ben"))
        result = bid(lobby, "p1", 1, 1)
        assert result.error_code == ErrorCode.INVALID_STATE

    def test_human_cannot_bid_for_computer(self, scripted_game):
        bid(scripted_game, "p1", 1, 1)
        result = bid(scripted_game, "p2", 2, 2)
        assert result.error_code == ErrorCode.INVALID_STATE
        assert scripted_game.state.current_bid.count == 1

    def test_bid_to_computer_schedules_scripted_move(self, scripted_game):
        result = bid(scripted_game, "p1", 1, 1)

        (deferred,) = result.deferred
        assert isinstance(deferred.command, ScriptedMove)
        assert deferred.command.turn_token == scripted_game.state.turn_token
        assert deferred.delay == scripted_game.config.scripted_move_delay

    def test_exactly_one_turn_holder(self, two_player_game):
        for count, actor in [(1, "p1"), (2, "p2"), (3, "p1"), (4, "p2")]:
            assert bid(two_player_game, actor, count, 4).success
            assert sum(p.is_turn for p in two_player_game.state.players) == 1


class TestCallBluff:
    """Tests for callBluff and round transitions."""

    def test_no_bid_to_call(self, two_player_game):
        result = call(two_player_game, "p1")
        assert result.error_code == ErrorCode.INVALID_STATE
        assert result.error == "No bid to call bluff on"

    def test_call_out_of_turn(self, two_player_game):
        bid(two_player_game, "p1", 2, 3)
        result = call(two_player_game, "p1")
        assert result.error_code == ErrorCode.OUT_OF_TURN

    def test_bluff_caught_bidder_loses(self, two_player_game):
        """Bid (3,4) with only two fours on the table costs the bidder a die."""
        set_hands(two_player_game, [4, 1, 2, 3, 5], [4, 6, 6, 2, 1])
        bid(two_player_game, "p1", 3, 4)

        result = call(two_player_game, "p2")

        assert result.success
        ana, ben = two_player_game.state.players
        assert ana.dice_count == 4
        assert len(ana.dice) == 4
        assert ben.dice_count == 5

        (event,) = result.events
        assert event.event_type == EventType.BLUFF_RESOLVED
        payload = event.payload
        assert payload["loserId"] == "p1"
        assert payload["challengerId"] == "p2"
        assert payload["matchingCount"] == 2
        assert payload["bidValue"] == 4
        assert payload["bidCount"] == 3
        assert payload["revealedHands"] == {"p1": [4, 1, 2, 3, 5], "p2": [4, 6, 6, 2, 1]}
        assert payload["message"] == "Ben called bluff! There were only 2 4s. Ana loses a die!"
        assert payload["game"]["revealAll"] is True

    def test_truthful_bid_challenger_loses(self, two_player_game):
        set_hands(two_player_game, [4, 4, 2, 3, 5], [4, 6, 6, 2, 1])
        bid(two_player_game, "p1", 3, 4)

        result = call(two_player_game, "p2")

        assert result.events[0].payload["loserId"] == "p2"
        assert two_player_game.state.get_player("p2").dice_count == 4
        assert two_player_game.state.get_player("p1").dice_count == 5

    def test_transition_then_challenger_starts(self, two_player_game):
        set_hands(two_player_game, [4, 1, 2, 3, 5], [4, 6, 6, 2, 1])
        bid(two_player_game, "p1", 3, 4)
        result = call(two_player_game, "p2")

        state = two_player_game.state
        assert state.round_phase == RoundPhase.ROUND_TRANSITION
        assert state.reveal_all
        assert result.deferred[0].delay == two_player_game.config.round_delay

        round_result = begin_next_round(two_player_game, result)

        assert round_result.event_types() == [EventType.ROUND_STARTED]
        assert round_result.events[0].payload["message"] == "New round! Ben's turn to bid."
        assert state.current_bid is None
        assert not state.reveal_all
        assert state.round_number == 2
        assert state.round_phase == RoundPhase.AWAITING_BID
        assert state.current_player.player_id == "p2"

    def test_challenger_starts_even_when_losing(self, two_player_game):
        set_hands(two_player_game, [4, 4, 4, 3, 5], [1, 6, 6, 2, 1])
        bid(two_player_game, "p1", 3, 4)
        result = call(two_player_game, "p2")

        begin_next_round(two_player_game, result)
        assert two_player_game.state.current_player.player_id == "p2"

    def test_commands_rejected_during_transition(self, two_player_game):
        set_hands(two_player_game, [4, 1, 2, 3, 5], [4, 6, 6, 2, 1])
        bid(two_player_game, "p1", 3, 4)
        call(two_player_game, "p2")

        # Ben still holds the turn until the round begins
        result = bid(two_player_game, "p2", 5, 6)
        assert result.error_code == ErrorCode.INVALID_STATE

    def test_dice_never_increase(self, two_player_game):
        counts = {p.player_id: p.dice_count for p in two_player_game.state.players}
        for _ in range(3):
            state = two_player_game.state
            actor = state.current_player.player_id
            other = "p2" if actor == "p1" else "p1"
            bid(two_player_game, actor, 1, 6)
            result = call(two_player_game, other)
            for p in state.players:
                assert counts[p.player_id] - 1 <= p.dice_count <= counts[p.player_id]
            assert sum(counts.values()) - sum(p.dice_count for p in state.players) == 1
            counts = {p.player_id: p.dice_count for p in state.players}
            begin_next_round(two_player_game, result)


class TestGameOver:
    """Tests for reaching the end of the game."""

    @pytest.fixture
    def last_die(self, two_player_game):
        """Ana is down to one die and about to be caught bluffing."""
        set_hands(two_player_game, [2], [3, 3, 5, 5, 6])
        bid(two_player_game, "p1", 4, 2)
        return two_player_game

    def test_game_over_fires_once(self, last_die):
        result = call(last_die, "p2")

        assert result.event_types() == [EventType.BLUFF_RESOLVED, EventType.GAME_OVER]
        assert result.deferred == []
        game_over = result.events[1]
        assert game_over.payload["winnerId"] == "p2"
        assert game_over.payload["message"] == "Game over! Ben wins!"

        state = last_die.state
        assert state.over
        assert state.phase == GamePhase.FINISHED
        assert state.winner.player_id == "p2"
        assert state.get_player("p1").dice == []
        assert state.get_player("p1").is_eliminated
        assert not any(p.is_turn for p in state.players)

    def test_finished_accepts_no_moves(self, last_die):
        call(last_die, "p2")

        for result in (bid(last_die, "p2", 5, 5), call(last_die, "p2"), bid(last_die, "p1", 5, 5)):
            assert not result.success
            assert result.error_code == ErrorCode.INVALID_STATE
            assert EventType.GAME_OVER not in result.event_types()

    def test_snapshot_names_winner(self, last_die):
        call(last_die, "p2")
        snapshot = last_die.state.snapshot()
        assert snapshot["over"] is True
        assert snapshot["winner"]["id"] == "p2"

    def test_no_game_over_without_survivor(self, two_player_game):
        set_hands(two_player_game, [2], [])
        bid(two_player_game, "p1", 4, 2)

        result = call(two_player_game, "p2")

        assert result.event_types() == [EventType.BLUFF_RESOLVED]
        assert two_player_game.state.over
        assert two_player_game.state.winner is None


class TestDisconnect:
    """Tests for disconnect."""

    def test_removes_only_that_participant(self, two_player_game):
        result = two_player_game.apply(Disconnect("conn-b"))

        assert result.success
        assert [p.player_id for p in two_player_game.state.players] == ["p1"]
        (event,) = result.events
        assert event.event_type == EventType.PARTICIPANT_LEFT
        assert event.payload["participantId"] == "p2"
        assert event.payload["message"] == "Ben has left the game."

    def test_last_participant_empties_session(self, lobby):
        lobby.apply(Disconnect("conn-a"))
        assert lobby.state.is_empty

    def test_unknown_transport_is_noop(self, two_player_game):
        result = two_player_game.apply(Disconnect("conn-z"))
        assert result.success
        assert result.events == []
        assert len(two_player_game.state.players) == 2


class TestScriptedMove:
    """Tests for the scripted opponent's deferred move."""

    def test_bot_bids(self, scripted_game):
        scripted_game.bot = QueuedBot(BotDecision.new_bid(2, 5))
        result = bid(scripted_game, "p1", 1, 5)

        move = scripted_game.apply(result.deferred[0].command)

        assert move.event_types() == [EventType.BID_MADE]
        assert move.events[0].payload["bid"]["playerId"] == "p2"
        assert scripted_game.state.current_player.player_id == "p1"

    def test_bot_sees_own_hand_and_human_dice(self, scripted_game):
        bot = QueuedBot(BotDecision.new_bid(2, 5))
        scripted_game.bot = bot
        set_hands(scripted_game, [1, 2, 3], [6, 6, 6, 6, 6])
        result = bid(scripted_game, "p1", 1, 5)

        scripted_game.apply(result.deferred[0].command)

        hand, current_bid, opponent_dice = bot.seen[0]
        assert hand == [6, 6, 6, 6, 6]
        assert (current_bid.count, current_bid.value) == (1, 5)
        assert opponent_dice == 3

    def test_bot_calls_bluff(self, scripted_game):
        scripted_game.bot = QueuedBot(BotDecision.call_bluff(0.0))
        set_hands(scripted_game, [1, 1, 1, 1, 1], [2, 2, 2, 2, 2])
        result = bid(scripted_game, "p1", 5, 6)

        move = scripted_game.apply(result.deferred[0].command)

        assert move.events[0].event_type == EventType.BLUFF_RESOLVED
        assert move.events[0].payload["loserId"] == "p1"
        # The computer called, so it opens the next round and moves again
        next_round = begin_next_round(scripted_game, move)
        assert scripted_game.state.current_player.is_scripted
        assert isinstance(next_round.deferred[0].command, ScriptedMove)

    def test_stale_token_is_noop(self, scripted_game):
        scripted_game.bot = QueuedBot(BotDecision.new_bid(2, 5))
        result = bid(scripted_game, "p1", 1, 5)
        stale = ScriptedMove(SESSION_ID, turn_token=result.deferred[0].command.turn_token - 1)

        move = scripted_game.apply(stale)

        assert move.success
        assert move.events == []
        assert scripted_game.bot.decisions  # not consumed

    def test_move_runs_once(self, scripted_game):
        scripted_game.bot = QueuedBot(BotDecision.new_bid(2, 5))
        result = bid(scripted_game, "p1", 1, 5)
        command = result.deferred[0].command

        first = scripted_game.apply(command)
        second = scripted_game.apply(command)

        assert first.event_types() == [EventType.BID_MADE]
        assert second.events == []

    def test_idle_once_human_leaves(self, scripted_game):
        scripted_game.bot = QueuedBot(BotDecision.new_bid(2, 5))
        result = bid(scripted_game, "p1", 1, 5)
        scripted_game.apply(Disconnect("conn-a"))

        move = scripted_game.apply(result.deferred[0].command)

        assert move.events == []
        assert move.deferred == []
        assert scripted_game.bot.decisions
        assert scripted_game.state.current_bid.count == 1

    def test_stale_round_transition_is_noop(self, two_player_game):
        set_hands(two_player_game, [4, 1, 2, 3, 5], [4, 6, 6, 2, 1])
        bid(two_player_game, "p1", 3, 4)
        result = call(two_player_game, "p2")
        begin_next_round(two_player_game, result)

        again = two_player_game.apply(result.deferred[0].command)

        assert again.events == []
        assert two_player_game.state.round_number == 2
