from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TickResult(str, Enum):
    STALE = "stale"
    TICK = "tick"
    EXPIRED = "expired"


@dataclass
class TurnCountdown:
    """Per-room countdown handle.

    The running loop holds the token returned by ``arm``. Arming again or
    cancelling bumps the generation, so an older loop sees a stale token on
    its next tick and exits without touching the room. At most one token is
    live at a time.
    """

    generation: int = 0
    running: bool = False

    def arm(self) -> int:
        self.generation += 1
        self.running = True
        return self.generation

    def cancel(self) -> None:
        if self.running:
            self.generation += 1
            self.running = False

    def owns(self, token: int) -> bool:
        return self.running and token == self.generation
