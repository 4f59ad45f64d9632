"""
Liar's Dice CLI - Command-line interface for the server.

Usage:
    liarsdice serve [--host H] [--port P]     Run the WebSocket server
    liarsdice simulate [--games N] [--seed S]  Pit two computer players against each other
"""

from __future__ import annotations
import argparse
import logging
import random
import sys
from collections import Counter
from collections import deque

from .bots import HeuristicBot, get_personality, PERSONALITIES
from .config import GameConfig
from .engine_core import (
    AddScriptedOpponent, CallBluff, CreateSession, GameState, MakeBid,
    SessionMachine, StartSession,
)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Liar's Dice - two-seat bluffing dice server",
        prog="liarsdice",
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the WebSocket server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play computer vs computer")
    simulate_parser.add_argument("--games", type=int, default=10, help="Number of games")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate_parser.add_argument(
        "--challenger", default="classic", choices=sorted(PERSONALITIES),
        help="Personality of the first seat",
    )
    simulate_parser.add_argument(
        "--opponent", default="classic", choices=sorted(PERSONALITIES),
        help="Personality of the computer seat",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run("liarsdice.api.app:app", host=args.host, port=args.port)


def cmd_simulate(args):
    """Play several games between two heuristic bots."""
    rng = random.Random(args.seed)
    config = GameConfig.from_env()
    wins: Counter = Counter()
    rounds_played = []

    for _ in range(args.games):
        winner, rounds = simulate_game(
            config,
            first=HeuristicBot(get_personality(args.challenger), rng=rng),
            second=HeuristicBot(get_personality(args.opponent), rng=rng),
            rng=rng,
        )
        wins[winner] += 1
        rounds_played.append(rounds)

    print(f"Games: {args.games}")
    for name, count in wins.most_common():
        print(f"  {name}: {count} wins")
    if rounds_played:
        print(f"Average rounds: {sum(rounds_played) / len(rounds_played):.1f}")


def simulate_game(
    config: GameConfig,
    first: HeuristicBot,
    second: HeuristicBot,
    rng: random.Random | None = None,
) -> tuple[str, int]:
    """
    Run one game to completion through the state machine.

    The first seat is an ordinary participant whose moves come from
    ``first``; the second is the scripted opponent driven by ``second``.
    Deferred commands run immediately instead of after their delay.

    Returns:
        (winner name, rounds played)
    """
    session_id = "simulation"
    machine = SessionMachine(
        state=GameState(session_id=session_id),
        config=config,
        bot=second,
        rng=rng,
    )
    machine.apply(CreateSession(name="Challenger"), transport_ref="local")
    machine.apply(AddScriptedOpponent(session_id))

    pending = deque(d.command for d in machine.apply(StartSession(session_id)).deferred)
    state = machine.state

    while not state.over:
        if pending:
            command = pending.popleft()
        else:
            actor = state.current_player
            decision = first.decide(
                list(actor.dice),
                state.current_bid,
                sum(p.dice_count for p in state.players if p is not actor),
            )
            if decision.is_call_bluff:
                command = CallBluff(session_id, actor.player_id)
            else:
                command = MakeBid(session_id, actor.player_id, decision.count, decision.value)

        result = machine.apply(command)
        if not result.success:
            raise RuntimeError(f"Simulation stalled on {command.command_type.value}: {result.error}")
        pending.extend(d.command for d in result.deferred)

    winner = state.winner
    return (winner.name if winner else "nobody"), state.round_number


if __name__ == "__main__":
    main()
