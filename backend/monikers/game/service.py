from __future__ import annotations

import logging
import random
import time
from collections import deque
from typing import Any, Iterable

from ..config import Config
from .models import Card, Player, Room
from .registry import RoomRegistry
from .timer import TickResult


logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


registry = RoomRegistry()


def get_room(code: str) -> Room | None:
    return registry.get(code)


def get_or_create_room(
    code: str,
    turn_duration_sec: int | None = None,
    total_rounds: int | None = None,
) -> Room:
    return registry.get_or_create(
        code,
        turn_duration_sec=turn_duration_sec or Config.TURN_DURATION_SEC,
        total_rounds=total_rounds or Config.TOTAL_ROUNDS,
    )


def remove_room(code: str) -> bool:
    room = registry.remove(code)
    if room is None:
        return False
    with room.lock:
        room.countdown.cancel()
        room.timer_active = False
    logger.info("room %s removed", room.code)
    return True


def list_rooms() -> list[Room]:
    return registry.list()


def _other_team(team: int) -> int:
    return 2 if team == 1 else 1


def _shuffled(cards: Iterable[Card]) -> deque[Card]:
    items = list(cards)
    random.shuffle(items)
    return deque(items)


def _touch_empty_marker(room: Room) -> None:
    if any(p.connected for p in room.players):
        room.last_empty_at_ms = None
    elif room.last_empty_at_ms is None:
        room.last_empty_at_ms = now_ms()


def _repair_turn_team(room: Room) -> None:
    # Only between turns of a running game: LOBBY/DRAFTING keep the random pick.
    if room.phase != "GAME" or room.timer_active:
        return
    if not room.team_players(room.turn_team) and room.team_players(_other_team(room.turn_team)):
        room.turn_team = _other_team(room.turn_team)


def _active_player(room: Room) -> Player | None:
    team = room.team_players(room.turn_team)
    if not team:
        return None
    return team[room.turn_index % len(team)]


def active_player(room: Room) -> Player | None:
    """Clue-giver for the current turn team, whether or not the turn has started."""
    with room.lock:
        return _active_player(room)


# ---- Lobby ----


def join(
    code: str,
    name: str,
    player_id: str,
    connection_id: str,
    turn_duration_sec: int | None = None,
    total_rounds: int | None = None,
) -> Room:
    room = get_or_create_room(code, turn_duration_sec=turn_duration_sec, total_rounds=total_rounds)
    with room.lock:
        if registry.get(room.code) is not room:
            # Reaped between lookup and lock; start over on a fresh room.
            return join(code, name, player_id, connection_id, turn_duration_sec, total_rounds)

        player = room.find_player(player_id)
        if player is not None:
            # Reconnect: rebind the connection, keep the team.
            player.connection_id = connection_id
            player.name = name
            player.connected = True
            logger.info("room %s: %s reconnected on team %s", room.code, player_id, player.team)
        else:
            team1 = len(room.team_players(1))
            team2 = len(room.team_players(2))
            player = Player(
                connection_id=connection_id,
                player_id=player_id,
                name=name,
                team=1 if team1 <= team2 else 2,
            )
            room.players.append(player)
            logger.info("room %s: %s joined team %s", room.code, player_id, player.team)

        _touch_empty_marker(room)
        _repair_turn_team(room)
        return room


def switch_team(code: str, connection_id: str) -> bool:
    room = get_room(code)
    if not room:
        return False
    with room.lock:
        player = room.find_connection(connection_id)
        if player is None:
            return False
        player.team = _other_team(player.team)
        _repair_turn_team(room)
        return True


def leave(code: str, connection_id: str) -> bool:
    room = get_room(code)
    if not room:
        return False
    with room.lock:
        player = room.find_connection(connection_id)
        if player is None:
            return False
        room.players.remove(player)
        logger.info("room %s: %s left", room.code, player.player_id)

        if room.phase == "DRAFTING":
            _maybe_finish_draft(room)
        _repair_turn_team(room)
        _touch_empty_marker(room)
        return True


def set_connected(code: str, connection_id: str, connected: bool) -> bool:
    room = get_room(code)
    if not room:
        return False
    with room.lock:
        player = room.find_connection(connection_id)
        if player is None:
            return False
        player.connected = connected
        _touch_empty_marker(room)
        return True


# ---- Drafting ----


def start_drafting(code: str, min_players: int | None = None) -> bool:
    room = get_room(code)
    if not room:
        return False
    needed = min_players or Config.MIN_PLAYERS
    with room.lock:
        if room.phase != "LOBBY" or len(room.players) < needed:
            logger.debug("room %s: start_drafting rejected", room.code)
            return False
        room.phase = "DRAFTING"
        logger.info("room %s: drafting started with %d players", room.code, len(room.players))
        return True


def _maybe_finish_draft(room: Room) -> bool:
    if len(room.submitted_players) < len(room.players) or not room.deck:
        return False
    room.all_cards = list(room.deck)
    room.phase = "GAME"
    room.deck = _shuffled(room.deck)
    _repair_turn_team(room)
    logger.info("room %s: game started with %d cards", room.code, len(room.all_cards))
    return True


def submit_draft(code: str, player_id: str, selected_cards: Any) -> bool:
    """Record a player's draft and merge their cards into the shared deck.

    Cards are de-duplicated by id across all submissions; the first one seen
    wins. Once every player has submitted (and at least one card exists) the
    deck is frozen into ``all_cards``, shuffled, and the game begins.
    """
    room = get_room(code)
    if not room:
        return False
    with room.lock:
        if room.phase != "DRAFTING" or room.find_player(player_id) is None:
            return False

        if player_id not in room.submitted_players:
            room.submitted_players.append(player_id)

        if isinstance(selected_cards, list):
            seen = {c.id for c in room.deck}
            for raw in selected_cards:
                card = Card.from_payload(raw)
                if card is None or card.id in seen:
                    continue
                room.deck.append(card)
                seen.add(card.id)

        _maybe_finish_draft(room)
        return True


# ---- Turns ----


def start_turn(code: str, connection_id: str) -> int | None:
    """Start the countdown if the caller is the rightful clue-giver.

    Returns the countdown token the ticking loop must present to ``tick``,
    or None if the request was rejected.
    """
    room = get_room(code)
    if not room:
        return None
    with room.lock:
        if room.phase != "GAME" or room.timer_active:
            return None
        player = _active_player(room)
        if player is None or player.connection_id != connection_id:
            logger.debug("room %s: start_turn rejected for %s", room.code, connection_id)
            return None

        room.active_player_id = player.player_id
        room.timer_active = True
        room.timer = room.turn_duration_sec
        token = room.countdown.arm()
        logger.info(
            "room %s: round %s turn started by %s (team %s)",
            room.code,
            room.round,
            player.player_id,
            room.turn_team,
        )
        return token


def _stop_turn(room: Room) -> None:
    room.countdown.cancel()
    room.timer_active = False
    room.active_player_id = None


def _end_turn(room: Room) -> None:
    _stop_turn(room)

    if room.current_card is not None:
        room.deck.appendleft(room.current_card)
        room.current_card = None

    previous = room.turn_team
    room.turn_team = _other_team(previous)
    # A cycle is complete once team 2 has played.
    if previous == 2:
        room.turn_index += 1
    if not room.team_players(room.turn_team):
        room.turn_team = previous

    logger.info(
        "room %s: turn ended, team %s up (turn index %s)",
        room.code,
        room.turn_team,
        room.turn_index,
    )


def tick(code: str, token: int) -> tuple[TickResult, int]:
    """Advance the countdown by one step.

    Returns the outcome and the seconds left. A stale token means the
    countdown was cancelled or replaced and the caller should stop.
    """
    room = get_room(code)
    if not room:
        return TickResult.STALE, 0
    with room.lock:
        if not room.countdown.owns(token):
            return TickResult.STALE, room.timer
        if room.timer > 0:
            room.timer -= 1
            return TickResult.TICK, room.timer
        _end_turn(room)
        return TickResult.EXPIRED, room.timer


def draw_card(code: str) -> bool:
    room = get_room(code)
    if not room:
        return False
    with room.lock:
        if room.phase != "GAME" or not room.timer_active:
            return False
        if room.current_card is not None or not room.deck:
            return False
        room.current_card = room.deck.pop()
        return True


def pass_card(code: str) -> bool:
    room = get_room(code)
    if not room:
        return False
    with room.lock:
        if room.current_card is None:
            return False
        room.deck.appendleft(room.current_card)
        room.current_card = None
        return True


def score_card(code: str, team: int) -> bool:
    room = get_room(code)
    if not room or team not in (1, 2):
        return False
    with room.lock:
        if room.phase != "GAME" or room.current_card is None:
            return False

        room.scores.add(team)
        room.current_card = None

        if room.deck:
            return True

        _stop_turn(room)
        if room.round < room.total_rounds:
            room.round += 1
            room.deck = _shuffled(room.all_cards)
            t1, t2 = room.scores.team1, room.scores.team2
            if t1 > t2:
                room.turn_team = 2
            elif t2 > t1:
                room.turn_team = 1
            else:
                room.turn_team = random.choice((1, 2))
            room.turn_index = 0
            _repair_turn_team(room)
            logger.info("room %s: round %s begins, team %s opens", room.code, room.round, room.turn_team)
        else:
            room.phase = "GAME_OVER"
            logger.info(
                "room %s: game over %s-%s",
                room.code,
                room.scores.team1,
                room.scores.team2,
            )
        return True


# ---- Snapshots & cleanup ----


def room_public_state(room: Room) -> dict:
    with room.lock:
        return {
            "code": room.code,
            "players": [
                {
                    "id": p.connection_id,
                    "playerId": p.player_id,
                    "name": p.name,
                    "team": p.team,
                    "connected": p.connected,
                }
                for p in room.players
            ],
            "phase": room.phase,
            "deck": [c.to_dict() for c in room.deck],
            "allCards": [c.to_dict() for c in room.all_cards],
            "currentCard": room.current_card.to_dict() if room.current_card else None,
            "round": room.round,
            "totalRounds": room.total_rounds,
            "scores": {"team1": room.scores.team1, "team2": room.scores.team2},
            "turnTeam": room.turn_team,
            "turnIndex": room.turn_index,
            "timer": room.timer,
            "timerActive": room.timer_active,
            "activePlayerId": room.active_player_id,
            "submittedPlayers": list(room.submitted_players),
        }


def reap_idle_rooms(ttl_sec: int | None = None, now: int | None = None) -> list[str]:
    """Drop rooms that have had no connected player for ``ttl_sec``."""
    ttl_ms = (ttl_sec if ttl_sec is not None else Config.ROOM_EMPTY_TTL_SEC) * 1000
    now = now if now is not None else now_ms()
    reaped: list[str] = []
    for room in list_rooms():
        with room.lock:
            if any(p.connected for p in room.players):
                room.last_empty_at_ms = None
                continue
            if room.last_empty_at_ms is None:
                room.last_empty_at_ms = now
                continue
            if now - room.last_empty_at_ms < ttl_ms:
                continue
            if remove_room(room.code):
                reaped.append(room.code)
    return reaped
