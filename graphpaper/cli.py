"""
Graphpaper CLI - Command-line interface for the engine.

Usage:
    graphpaper games                          List the available games
    graphpaper play <game> [--difficulty-a N] [--difficulty-b M] [--seed S]
                                              Watch two AI players play a game
    graphpaper hint tictactoe --moves 1,1 0,0 Suggest the next move
"""

import argparse
import sys

from .config import configure_logging


def main(argv=None):
    """Main CLI entry point."""
    from .games import ENGINES

    parser = argparse.ArgumentParser(
        description="Graphpaper - Pencil-and-paper games with AI opponents",
        prog="graphpaper",
    )
    parser.add_argument("--log-level", help="Override GRAPHPAPER_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("games", help="List the available games")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play an AI-vs-AI game")
    play_parser.add_argument("game", choices=sorted(ENGINES), help="Game type")
    play_parser.add_argument("--difficulty-a", type=int, default=3, help="Level of the first AI (1-6)")
    play_parser.add_argument("--difficulty-b", type=int, default=3, help="Level of the second AI (1-6)")
    play_parser.add_argument("--seed", type=int, help="Seed for the random levels")
    play_parser.add_argument("--grid-size", type=int, help="Dots per side (dots and boxes)")
    play_parser.add_argument("--points", type=int, help="Starting points (sprouts)")

    # Hint command
    hint_parser = subparsers.add_parser("hint", help="Suggest a move for a tic-tac-toe position")
    hint_parser.add_argument("game", choices=["tictactoe"], help="Game type")
    hint_parser.add_argument(
        "--moves", nargs="*", default=[],
        help="Moves played so far as x,y (column,row), alternating from X",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level or "WARNING")

    if args.command == "games":
        cmd_games(args)
    elif args.command == "play":
        cmd_play(args)
    elif args.command == "hint":
        cmd_hint(args)
    else:
        parser.print_help()
        sys.exit(1)


def describe_move(move) -> str:
    data = move.data
    if "symbol" in data:
        return f"{data['symbol']} at ({data['x']}, {data['y']})"
    if "row" in data:
        return f"{move.type.value} line at row {data['row']}, col {data['col']}"
    if "from_point" in data:
        return f"curve {data['from_point']} -> {data['to_point']}"
    return str(data)


def cmd_games(args):
    """List the available games."""
    from .games import ENGINES

    for game_type, engine_cls in sorted(ENGINES.items()):
        print(f"{game_type:16} {engine_cls.display_name}")


def cmd_play(args):
    """Run an AI-vs-AI game and print every move."""
    from .engine_core import GameSettings, Player
    from .session import SessionManager

    players = [
        Player(id="ai_a", name="AI A", is_ai=True, difficulty=args.difficulty_a),
        Player(id="ai_b", name="AI B", is_ai=True, difficulty=args.difficulty_b),
    ]
    settings = GameSettings(
        game_type=args.game,
        enable_ai=True,
        grid_size=args.grid_size,
        starting_points=args.points,
    )

    manager = SessionManager()
    try:
        session = manager.create_session(args.game, players, settings=settings, seed=args.seed)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    session.turn_manager.subscribe(
        "move_made",
        lambda event: print(f"{event.state.turn_number - 1:3}. {event.player_id}: {describe_move(event.move)}"),
    )
    print(f"Session {session.session_id}: {session.engine.display_name}")

    results = session.game_loop.run_ai_turns()
    if results and not results[-1].success and results[-1].error:
        print(f"Stopped: {results[-1].error}")

    state = session.turn_manager.state
    terminal = session.engine.is_terminal(state)
    if terminal is None:
        print("Game did not finish")
    elif terminal.is_draw:
        print(f"Draw ({terminal.reason.value})")
    else:
        print(f"Winner: {terminal.winner} ({terminal.reason.value})")
    for entry in session.engine.evaluate(state).players:
        print(f"  {entry.player_id}: {entry.score:g} (rank {entry.rank})")

    manager.end_session(session.session_id)


def cmd_hint(args):
    """Print a hint for a tic-tac-toe position."""
    from .bots import AIDecisionEngine
    from .engine_core import MoveType, Player, create_move
    from .games import get_engine
    from .games.tictactoe import symbol_for

    engine = get_engine(args.game)
    players = [Player(id="x", name="X"), Player(id="o", name="O")]
    state = engine.create_initial_state(None, players)

    for text in args.moves:
        try:
            x, y = (int(v) for v in text.split(","))
        except ValueError:
            print(f"Error: cannot read move {text!r}, expected x,y")
            sys.exit(1)
        player_id = state.current_player.id
        move = create_move(player_id, MoveType.PLACE, {"x": x, "y": y, "symbol": symbol_for(state, player_id)})
        result = engine.apply_move(state, move)
        if not result.success:
            print(f"Error: {text}: {result.error}")
            sys.exit(1)
        state = result.data

    hint = AIDecisionEngine(engine).get_hint(state, state.current_player.id)
    if hint is None:
        print("No moves left")
        return
    print(f"Play {describe_move(hint.suggestion)}")
    print(f"  {hint.explanation} (confidence {hint.confidence:.2f})")


if __name__ == "__main__":
    main()
