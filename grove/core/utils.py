from typing import Sequence

from grove.core.ply import Ply


def format_info(d: int, score: int, nodes: int, elapsed: float, pv_moves: Sequence[Ply],
                mate_score: int) -> str:
        """One search info line; `elapsed` is in seconds."""
        pv_str = " ".join(m.uci() for m in pv_moves)
        nps = int(nodes / elapsed) if elapsed > 0 else 0

        if abs(score) >= mate_score:
            # mate scores carry the remaining depth at the mated node
            plies = max(d - (abs(score) - mate_score), 1)
            mate_in = (plies + 1) // 2
            score_str = f"mate {mate_in if score > 0 else -mate_in}"
        else:
            score_str = f"cp {score}"

        return (f"info depth {d} score {score_str} nodes {nodes} nps {nps} "
                f"time {int(elapsed * 1000)} pv {pv_str}")
