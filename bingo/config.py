"""
Configuration - Settings loaded from environment variables.

    BINGO_ENV                development | production (default: development)
    BINGO_GAMES              comma-separated game ids (default: main)
    BINGO_MIN_PLAYERS        players needed to start a round (default: 2)
    BINGO_RESET_POLICY       on_join | on_end (default: on_join)
    BINGO_SELF_DRAW          background drawing on/off (default: true)
    BINGO_DRAW_INTERVAL      seconds between background draws, 0 = off (default: 15)
    BINGO_MIN_DRAW_INTERVAL  minimum seconds between any two draws (default: 0)
    BINGO_OPERATOR_TOKEN     credential for operator endpoints (default: unset)
    ALLOWED_ORIGINS          CORS origins, comma-separated (default: *)
    BINGO_LOG_LEVEL          logging level (default: INFO)
    BINGO_HOST / BINGO_PORT  server bind address (default: 0.0.0.0:8000)

A .env file in the working directory is loaded first; variables already
set in the environment take precedence.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from .session.game import ResetPolicy, SessionConfig
from .session.drawer import DEFAULT_DRAW_INTERVAL

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _number(name: str, value: str, cast=float):
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class Settings:
    """Process-wide settings for the bingo service."""
    env: str = "development"
    games: list[str] = field(default_factory=lambda: ["main"])
    min_players: int = 2
    reset_policy: ResetPolicy = ResetPolicy.ON_JOIN
    self_draw: bool = True
    draw_interval: float = DEFAULT_DRAW_INTERVAL
    min_draw_interval: float = 0.0
    operator_token: str | None = None
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    def __post_init__(self):
        if not self.games:
            raise ValueError("At least one game id is required")
        if len(set(self.games)) != len(self.games):
            raise ValueError(f"Duplicate game ids in {self.games}")
        # Validates the threshold and interval
        self.session_config()

    @classmethod
    def from_env(
        cls,
        environ: dict[str, str] | None = None,
        env_file: str | os.PathLike = ".env",
    ) -> Settings:
        """Read settings from ``environ``, or from os.environ after loading ``env_file``."""
        if environ is None:
            load_dotenv(env_file)
            env = os.environ
        else:
            env = environ
        kwargs = {}

        if "BINGO_ENV" in env:
            kwargs["env"] = env["BINGO_ENV"]
        if "BINGO_GAMES" in env:
            kwargs["games"] = _split(env["BINGO_GAMES"])
        if "BINGO_MIN_PLAYERS" in env:
            kwargs["min_players"] = _number("BINGO_MIN_PLAYERS", env["BINGO_MIN_PLAYERS"], int)
        if "BINGO_RESET_POLICY" in env:
            value = env["BINGO_RESET_POLICY"].strip().lower()
            try:
                kwargs["reset_policy"] = ResetPolicy(value)
            except ValueError:
                raise ValueError(
                    f"BINGO_RESET_POLICY must be on_join or on_end, got {value!r}"
                ) from None
        if "BINGO_SELF_DRAW" in env:
            kwargs["self_draw"] = _bool("BINGO_SELF_DRAW", env["BINGO_SELF_DRAW"])
        if "BINGO_DRAW_INTERVAL" in env:
            kwargs["draw_interval"] = _number("BINGO_DRAW_INTERVAL", env["BINGO_DRAW_INTERVAL"])
        if "BINGO_MIN_DRAW_INTERVAL" in env:
            kwargs["min_draw_interval"] = _number(
                "BINGO_MIN_DRAW_INTERVAL", env["BINGO_MIN_DRAW_INTERVAL"]
            )
        if env.get("BINGO_OPERATOR_TOKEN"):
            kwargs["operator_token"] = env["BINGO_OPERATOR_TOKEN"]
        if "ALLOWED_ORIGINS" in env:
            kwargs["allowed_origins"] = _split(env["ALLOWED_ORIGINS"])
        if "BINGO_LOG_LEVEL" in env:
            kwargs["log_level"] = env["BINGO_LOG_LEVEL"].upper()
        if "BINGO_HOST" in env:
            kwargs["host"] = env["BINGO_HOST"]
        if "BINGO_PORT" in env:
            kwargs["port"] = _number("BINGO_PORT", env["BINGO_PORT"], int)

        return cls(**kwargs)

    def session_config(self) -> SessionConfig:
        """Config shared by every configured game."""
        return SessionConfig(
            min_players=self.min_players,
            reset_policy=self.reset_policy,
            self_draw=self.self_draw,
            min_draw_interval=self.min_draw_interval,
        )
