import logging
import sys
from typing import Optional

from grove.config import CONFIG, configure_logging
from grove.core.atoms import Team
from grove.core.outcome import Outcome
from grove.main import Engine

logger = logging.getLogger(__name__)

HELP = "commands: <uci move> | undo | draw | resign | fen | help | quit"


def play(human: Team = Team.WHITE, engine: Optional[Engine] = None) -> Optional[Outcome]:
    """Human against engine in the terminal. Returns the outcome, or None if abandoned."""
    engine = engine or Engine()
    board = engine.board

    while not board.is_game_over():
        print(board)
        print("----------------------------")

        if board.turn is human:
            user_move = input("Enter your move (uci format, e2e4): ").strip().lower()
            if user_move in ("quit", "exit"):
                return None
            elif user_move == "help":
                print(HELP)
            elif user_move == "fen":
                print(board.to_fen())
            elif user_move == "undo":
                # take back the engine reply too
                engine.undo(2 if len(board.move_log) >= 2 else len(board.move_log))
            elif user_move == "resign":
                board.resign()
            elif user_move == "draw":
                claim = board.claim_threefold_repetition()
                if not claim:
                    claim = board.claim_fifty_move_rule()
                print(f"Draw claim {'accepted' if claim else 'rejected'}: {claim.reason}")
            elif not engine.make_move(user_move):
                print("Illegal move, try again.")
        else:
            move, score = engine.get_best_move()
            if move is None:
                logger.error("engine found no move in %s", board.to_fen())
                return None
            engine.make_move(move)
            print(f"Engine plays: {move} | Eval: {score}")

    print(board)
    print("Game Over")
    print(f"Result: {board.outcome}")
    return board.outcome


def main() -> None:
    configure_logging()
    human = Team.WHITE
    if len(sys.argv) > 1:
        side = sys.argv[1].lower()
        if side not in ("white", "black"):
            print(f"Unknown side: {side}")
            print("Usage: python -m interface.cli [white|black]")
            sys.exit(1)
        human = Team.WHITE if side == "white" else Team.BLACK

    print(f"{CONFIG.ui.engine_name} by {CONFIG.ui.engine_author}")
    print(HELP)
    play(human)


if __name__ == "__main__":
    main()
