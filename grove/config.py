# grove/config.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import os
import tomllib  # python >=3.11

logger = logging.getLogger(__name__)

# Defaults (centipawns)
PIECE_VALUES = {
    "PAWN": 100,
    "KNIGHT": 320,
    "BISHOP": 330,
    "ROOK": 500,
    "QUEEN": 900,
    "KING": 20000,
}

@dataclass
class SearchConfig:
    time_budget_ms: int = 1000
    max_depth: int = 50
    use_quiescence: bool = True
    use_opening_book: bool = False
    book_paths: List[str] = field(default_factory=list)  # polyglot .bin files, probed in order
    promotion_bonus: int = 800

@dataclass
class EvalConfig:
    piece_values: Dict[str, int] = field(default_factory=lambda: PIECE_VALUES.copy())
    use_positional: bool = True

@dataclass
class PerftConfig:
    workers: Optional[int] = None  # None means os.cpu_count()

@dataclass
class UIConfig:
    engine_name: str = "Grove"
    engine_author: str = "Grove developers"

@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    perft: PerftConfig = field(default_factory=PerftConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "grove.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "eval", "perft", "ui"):
            if section in raw:
                target = getattr(cfg, section)
                for k, v in raw[section].items():
                    if hasattr(target, k):
                        setattr(target, k, v)
                    else:
                        logger.warning("unknown config key %s.%s in %s", section, k, path)
        if "log_level" in raw:
            cfg.log_level = raw["log_level"]
        return cfg


def _apply_env_overrides(cfg: Config):
    """GROVE_SEARCH_DEPTH and GROVE_TIME_BUDGET_MS for quick debugging."""
    for env, attr in (("GROVE_SEARCH_DEPTH", "max_depth"), ("GROVE_TIME_BUDGET_MS", "time_budget_ms")):
        value = os.environ.get(env)
        if not value:
            continue
        try:
            setattr(cfg.search, attr, int(value))
        except ValueError:
            logger.warning("ignoring %s=%r: not an integer", env, value)


def configure_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=getattr(logging, (level or CONFIG.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("GROVE_CONFIG_TOML", "grove.toml"))
_apply_env_overrides(CONFIG)
