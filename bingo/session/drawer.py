"""
Auto Drawer - Background number drawing for self-draw games.

Every ``draw_interval`` seconds, each ACTIVE, unpaused session whose
config enables ``self_draw`` gets one random number drawn. A failure in
one game is logged and never stops the others.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable
import logging

from apscheduler.schedulers.base import BaseScheduler

from ..engine_core.errors import BingoException
from .manager import SessionManager

logger = logging.getLogger(__name__)

JOB_ID = "bingo-auto-draw"
DEFAULT_DRAW_INTERVAL = 15.0


class AutoDrawer:
    """
    Draws numbers for every self-drawing game.

    Usage:
        drawer = AutoDrawer(manager, draw_interval=15)
        scheduler = AsyncIOScheduler()
        drawer.schedule(scheduler)
        scheduler.start()
    """

    def __init__(
        self,
        manager: SessionManager,
        draw_interval: float = DEFAULT_DRAW_INTERVAL,
        on_draw: Callable[[list[tuple[str, int]]], Awaitable[Any]] | None = None,
    ):
        self.manager = manager
        self.draw_interval = draw_interval
        self.on_draw = on_draw

    @property
    def enabled(self) -> bool:
        return self.draw_interval > 0

    def draw_round(self) -> list[tuple[str, int]]:
        """Draw once for each eligible game. Returns (game_id, number) pairs."""
        drawn = []
        for session in self.manager.active_sessions():
            if not session.config.self_draw or session.paused:
                continue
            try:
                number = session.draw_next()
            except BingoException as e:
                # State can change between the eligibility check and the draw
                logger.warning("Auto draw skipped for game %s: %s", session.game_id, e)
                continue
            logger.info("Auto drew %d for game %s", number, session.game_id)
            drawn.append((session.game_id, number))
        return drawn

    async def run(self) -> list[tuple[str, int]]:
        """Scheduler entry point: draw, then hand the results to on_draw."""
        drawn = self.draw_round()
        if drawn and self.on_draw is not None:
            await self.on_draw(drawn)
        return drawn

    def schedule(self, scheduler: BaseScheduler) -> bool:
        """Register the interval job. Returns False when drawing is disabled."""
        if not self.enabled:
            logger.info("Auto drawing disabled (draw_interval=%s)", self.draw_interval)
            return False
        scheduler.add_job(
            self.run,
            "interval",
            seconds=self.draw_interval,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Auto drawing every %ss", self.draw_interval)
        return True
