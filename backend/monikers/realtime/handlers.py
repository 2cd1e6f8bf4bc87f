from __future__ import annotations

import logging
import weakref
from typing import Any, Mapping

from flask import request
from flask_socketio import SocketIO, join_room, leave_room

from ..config import Config
from ..game import service
from ..game.registry import normalize_code
from ..game.timer import TickResult
from . import events


logger = logging.getLogger(__name__)

# connection id -> {"room_code", "player_id"} remembered from join_room
_sid_to_ctx: dict[str, dict[str, str]] = {}
# SocketIO servers that already run an idle-room reaper
_reapers: weakref.WeakSet = weakref.WeakSet()


def _clean_name(raw: Any) -> str:
    n = str(raw or "").strip()
    n = "".join(ch for ch in n if ord(ch) >= 32)
    return n[:24] or "Player"


def _as_payload(data: Any) -> dict:
    return data if isinstance(data, dict) else {}


def connection_context(sid: str) -> dict[str, str] | None:
    return _sid_to_ctx.get(sid)


def reset_connection_context() -> None:
    _sid_to_ctx.clear()


def register_socketio_handlers(socketio: SocketIO, settings: Mapping[str, Any] | None = None) -> None:
    settings = settings or {}
    turn_duration_sec = int(settings.get("TURN_DURATION_SEC", Config.TURN_DURATION_SEC))
    tick_interval_sec = float(settings.get("TICK_INTERVAL_SEC", Config.TICK_INTERVAL_SEC))
    total_rounds = int(settings.get("TOTAL_ROUNDS", Config.TOTAL_ROUNDS))
    min_players = int(settings.get("MIN_PLAYERS", Config.MIN_PLAYERS))
    empty_ttl_sec = int(settings.get("ROOM_EMPTY_TTL_SEC", Config.ROOM_EMPTY_TTL_SEC))
    reaper_interval_sec = float(settings.get("REAPER_INTERVAL_SEC", Config.REAPER_INTERVAL_SEC))

    def _broadcast_room_state(room_code: str) -> None:
        room = service.get_room(room_code)
        if not room:
            return
        socketio.emit(events.ROOM_UPDATE, service.room_public_state(room), to=room.code)

    def _safe_broadcast_room_state(room_code: str) -> None:
        try:
            _broadcast_room_state(room_code)
        except Exception:
            logger.exception("room %s: broadcast failed", room_code)

    def _room_code(payload: dict) -> str:
        code = normalize_code(str(payload.get("roomCode") or ""))
        if code:
            return code
        ctx = _sid_to_ctx.get(request.sid)
        return ctx["room_code"] if ctx else ""

    def _run_countdown(room_code: str, token: int) -> None:
        while True:
            socketio.sleep(tick_interval_sec)
            result, seconds = service.tick(room_code, token)
            if result is TickResult.STALE:
                break
            if result is TickResult.TICK:
                try:
                    socketio.emit(events.TIMER_UPDATE, seconds, to=room_code)
                except Exception:
                    logger.exception("room %s: timer update failed", room_code)
                continue
            _safe_broadcast_room_state(room_code)
            break

    def _ensure_reaper() -> None:
        if socketio in _reapers:
            return
        _reapers.add(socketio)

        def _runner() -> None:
            while True:
                socketio.sleep(reaper_interval_sec)
                try:
                    for code in service.reap_idle_rooms(ttl_sec=empty_ttl_sec):
                        logger.info("room %s reaped after %ss without players", code, empty_ttl_sec)
                except Exception:
                    logger.exception("room reaper pass failed")

        socketio.start_background_task(_runner)

    @socketio.on(events.JOIN_ROOM)
    def on_join_room(data=None):
        payload = _as_payload(data)
        room_code = normalize_code(str(payload.get("roomCode") or ""))
        player_id = str(payload.get("playerId") or "").strip()
        if not room_code or not player_id:
            return

        previous = _sid_to_ctx.get(request.sid)
        if previous and previous["room_code"] != room_code:
            leave_room(previous["room_code"])
            # The old seat stays for a reconnect but no longer has a live socket.
            if service.set_connected(previous["room_code"], request.sid, False):
                _safe_broadcast_room_state(previous["room_code"])

        join_room(room_code)
        _sid_to_ctx[request.sid] = {"room_code": room_code, "player_id": player_id}

        service.join(
            room_code,
            _clean_name(payload.get("name")),
            player_id,
            request.sid,
            turn_duration_sec=turn_duration_sec,
            total_rounds=total_rounds,
        )
        _ensure_reaper()
        _safe_broadcast_room_state(room_code)

    @socketio.on(events.SWITCH_TEAM)
    def on_switch_team(data=None):
        room_code = _room_code(_as_payload(data))
        if service.switch_team(room_code, request.sid):
            _safe_broadcast_room_state(room_code)

    @socketio.on(events.START_DRAFTING)
    def on_start_drafting(data=None):
        room_code = _room_code(_as_payload(data))
        if service.start_drafting(room_code, min_players=min_players):
            _safe_broadcast_room_state(room_code)

    @socketio.on(events.SUBMIT_DRAFT)
    def on_submit_draft(data=None):
        payload = _as_payload(data)
        room_code = _room_code(payload)
        ctx = _sid_to_ctx.get(request.sid)
        player_id = ctx["player_id"] if ctx else str(payload.get("playerId") or "").strip()
        if not room_code or not player_id:
            return

        service.submit_draft(room_code, player_id, payload.get("selectedCards"))
        # Drafting always answers with a snapshot, accepted or not.
        if service.get_room(room_code) is not None:
            _safe_broadcast_room_state(room_code)

    @socketio.on(events.START_TURN)
    def on_start_turn(data=None):
        room_code = _room_code(_as_payload(data))
        token = service.start_turn(room_code, request.sid)
        if token is None:
            return
        socketio.start_background_task(_run_countdown, room_code, token)
        _safe_broadcast_room_state(room_code)

    @socketio.on(events.DRAW_CARD)
    def on_draw_card(data=None):
        room_code = _room_code(_as_payload(data))
        if service.draw_card(room_code):
            _safe_broadcast_room_state(room_code)

    @socketio.on(events.PASS_CARD)
    def on_pass_card(data=None):
        room_code = _room_code(_as_payload(data))
        if service.pass_card(room_code):
            _safe_broadcast_room_state(room_code)

    @socketio.on(events.SCORE_CARD)
    def on_score_card(data=None):
        payload = _as_payload(data)
        room_code = _room_code(payload)
        try:
            team = int(payload.get("team"))
        except (TypeError, ValueError):
            return
        if service.score_card(room_code, team):
            _safe_broadcast_room_state(room_code)

    @socketio.on(events.LEAVE_ROOM)
    def on_leave_room(data=None):
        room_code = _room_code(_as_payload(data))
        if not room_code:
            return

        leave_room(room_code)
        _sid_to_ctx.pop(request.sid, None)
        if service.leave(room_code, request.sid):
            _safe_broadcast_room_state(room_code)

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        # Players stay in the room so they can reconnect with the same playerId.
        ctx = _sid_to_ctx.pop(request.sid, None)
        if not ctx:
            return
        if service.set_connected(ctx["room_code"], request.sid, False):
            _safe_broadcast_room_state(ctx["room_code"])
