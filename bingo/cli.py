"""
Bingo CLI - Command-line interface for the engine.

Usage:
    bingo serve [--host H] [--port P]      Run the HTTP API
    bingo card <seed>                      Print the card for a seed
    bingo simulate [--players N] [--seed S] [--rng-seed R]
                                           Play a local game to the end
"""

import argparse
import logging
import random
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Bingo - Multiplayer Bingo Engine",
        prog="bingo",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address (default: BINGO_HOST)")
    serve_parser.add_argument("--port", type=int, help="Port (default: BINGO_PORT)")

    # Card command
    card_parser = subparsers.add_parser("card", help="Print the card for a seed")
    card_parser.add_argument("seed", help="Seed as decimal or 0x-prefixed hex")

    # Simulate command
    sim_parser = subparsers.add_parser("simulate", help="Play a local game to the end")
    sim_parser.add_argument("--players", type=int, default=2, help="Number of players")
    sim_parser.add_argument("--seed", type=int, help="Base seed for player cards")
    sim_parser.add_argument("--rng-seed", type=int, help="Seed for the draw order")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "card":
        cmd_card(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def parse_seed(text: str) -> int:
    value = int(text, 0)
    if value < 0:
        raise ValueError("seed must be non-negative")
    return value


def cmd_serve(args):
    """Run the API under uvicorn."""
    import uvicorn

    from .config import Settings
    from .api.app import create_app

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Error: invalid configuration: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(settings=settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
    )


def cmd_card(args):
    """Print the 5x5 card for a seed."""
    from .engine_core import Card, generate_card

    try:
        seed = parse_seed(args.seed)
    except ValueError:
        print(f"Error: invalid seed: {args.seed}")
        sys.exit(1)

    card = Card(owner="cli", numbers=generate_card(seed))
    print(card.format_grid())


def cmd_simulate(args):
    """Play one round locally: random draws until a card wins."""
    from .session import GameSession, GamePhase, SessionConfig
    from .engine_core import InvalidWin

    if args.players < 1:
        print("Error: --players must be at least 1")
        sys.exit(1)

    seeds = random.Random(args.seed)
    session = GameSession(
        "simulation",
        SessionConfig(min_players=args.players, self_draw=False, rng_seed=args.rng_seed),
        seed_source=lambda: seeds.getrandbits(256),
    )
    players = [f"player_{i + 1}" for i in range(args.players)]
    for player in players:
        session.join(player)

    print(f"Simulating with {args.players} player(s)")
    winner = None
    while winner is None and session.phase == GamePhase.ACTIVE:
        session.draw_next()
        if session.phase != GamePhase.ACTIVE:
            break
        for player in players:
            try:
                winner = session.claim_win(player)
            except InvalidWin:
                continue
            break

    drawn = session.drawn_numbers()
    print(f"Drawn ({len(drawn)}): {' '.join(str(n) for n in drawn)}")
    if winner is not None:
        print(f"Winner: {winner.player} on {winner.line.describe()} after {winner.draw_count} draws")
        print(winner.card.format_grid())
    else:
        print("No winner: all numbers drawn")


if __name__ == "__main__":
    main()
