from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Literal

from .timer import TurnCountdown


Phase = Literal["LOBBY", "DRAFTING", "GAME", "GAME_OVER"]
Team = Literal[1, 2]


@dataclass(frozen=True)
class Card:
    id: Any
    name: str = ""
    description: str = ""

    @classmethod
    def from_payload(cls, raw: Any) -> Card | None:
        """Build a card from client data, or None if it has no usable id."""
        if not isinstance(raw, dict):
            return None
        card_id = raw.get("id")
        if isinstance(card_id, bool) or not isinstance(card_id, (str, int)):
            return None
        if isinstance(card_id, str):
            card_id = card_id.strip()
        if card_id == "":
            return None
        return cls(
            id=card_id,
            name=str(raw.get("name") or ""),
            description=str(raw.get("description") or ""),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}


@dataclass
class Player:
    connection_id: str
    player_id: str
    name: str
    team: Team = 1
    connected: bool = True


@dataclass
class Scores:
    team1: int = 0
    team2: int = 0

    def add(self, team: int, points: int = 1) -> None:
        if team == 1:
            self.team1 += points
        else:
            self.team2 += points


@dataclass
class Room:
    code: str
    turn_team: Team = 1
    phase: Phase = "LOBBY"
    players: list[Player] = field(default_factory=list)
    # Draw from the right, requeue on the left.
    deck: deque[Card] = field(default_factory=deque)
    all_cards: list[Card] = field(default_factory=list)
    current_card: Card | None = None
    round: int = 1
    total_rounds: int = 3
    scores: Scores = field(default_factory=Scores)
    turn_index: int = 0
    turn_duration_sec: int = 60
    timer: int = 60
    timer_active: bool = False
    active_player_id: str | None = None
    submitted_players: list[str] = field(default_factory=list)
    # Internal, never broadcast
    countdown: TurnCountdown = field(default_factory=TurnCountdown)
    last_empty_at_ms: int | None = None
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    def find_player(self, player_id: str) -> Player | None:
        return next((p for p in self.players if p.player_id == player_id), None)

    def find_connection(self, connection_id: str) -> Player | None:
        return next((p for p in self.players if p.connection_id == connection_id), None)

    def team_players(self, team: int) -> list[Player]:
        return [p for p in self.players if p.team == team]
