from __future__ import annotations

import logging
import random
from threading import RLock

from .models import Room


logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class RoomRegistry:
    """In-memory room store. Rooms live until removed (see service.reap_idle_rooms)."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}

    def get(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def get_or_create(
        self,
        code: str,
        turn_duration_sec: int = 60,
        total_rounds: int = 3,
    ) -> Room:
        key = normalize_code(code)
        with self._lock:
            room = self._rooms.get(key)
            if room is None:
                room = Room(
                    code=key,
                    turn_team=random.choice((1, 2)),
                    total_rounds=total_rounds,
                    turn_duration_sec=turn_duration_sec,
                    timer=turn_duration_sec,
                )
                self._rooms[key] = room
                logger.info("room %s created (first team %s)", key, room.turn_team)
            return room

    def remove(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.pop(normalize_code(code), None)

    def list(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def clear(self) -> None:
        with self._lock:
            self._rooms.clear()

    def __contains__(self, code: str) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
