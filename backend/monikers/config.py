import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO ("" picks a platform default, see server.create_app)
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Game
    TURN_DURATION_SEC = int(os.environ.get("TURN_DURATION_SEC", "60"))
    TICK_INTERVAL_SEC = float(os.environ.get("TICK_INTERVAL_SEC", "1"))
    TOTAL_ROUNDS = int(os.environ.get("TOTAL_ROUNDS", "3"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))

    # Rooms without a connected player are dropped after this long
    ROOM_EMPTY_TTL_SEC = int(os.environ.get("ROOM_EMPTY_TTL_SEC", "600"))
    REAPER_INTERVAL_SEC = float(os.environ.get("REAPER_INTERVAL_SEC", "30"))
