"""
FastAPI application — the backend for a browser front-end.

Exposes:
  GET    /api/providers                                List providers
  GET    /api/providers/{id}/models                    List models (Ollama: live discovery)
  GET    /api/providers/{id}/models/{model}/temperature  Temperature range
  GET    /api/settings, PUT /api/settings              Opaque settings blob
  GET    /api/credentials                              Which providers have a stored key
  PUT    /api/credentials/{provider}                   Store a key
  DELETE /api/credentials/{provider}                   Forget a key
  GET    /api/game                                     Position, history, status
  POST   /api/game/new                                 Reset the board
  POST   /api/game/turn                                Let the AI to move play one move
  POST   /api/game/human-move                          Apply a human move
  GET    /api/game/pgn                                 PGN with reasoning comments
  WS     /ws/autoplay                                  Stream auto-played turns until stop

The app owns exactly one GameSession, created in create_app().
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import logging.handlers
from datetime import date, datetime
from pathlib import Path

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from chessarena.config import Config, load_config
from chessarena.errors import ArenaError, ConfigurationError, InvalidMoveError
from chessarena.events import TurnResult
from chessarena.orchestrator import MoveOrchestrator
from chessarena.registry import ProviderRegistry
from chessarena.session import GameSession
from chessarena.store import SettingsStore

logger = logging.getLogger("chessarena")

_LOG_FILE = Path("./logs/chessarena.log")


def setup_logging() -> None:
    _LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        handlers=[
            logging.StreamHandler(),                                   # server console
            logging.handlers.RotatingFileHandler(
                _LOG_FILE, maxBytes=2 * 1024 * 1024, backupCount=3,  # 2 MB × 3 files
                encoding="utf-8",
            ),
        ],
    )


def _to_json(data: object) -> str:
    """json.dumps with datetime → ISO-string support."""
    def _default(obj: object) -> str:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
    return json.dumps(data, default=_default)


def _result_payload(result: TurnResult) -> dict:
    return json.loads(_to_json(dataclasses.asdict(result)))


def create_app(config: Config, store: SettingsStore | None = None) -> FastAPI:
    store = store or SettingsStore(config.data_dir_path)
    registry = ProviderRegistry(config, store)
    session = GameSession()
    session.apply_settings(store.load_settings())
    orchestrator = MoveOrchestrator(session, registry, config.game)

    app = FastAPI(title="Chess Arena")
    app.state.orchestrator = orchestrator

    # ------------------------------------------------------------------- #
    # Providers                                                            #
    # ------------------------------------------------------------------- #

    @app.get("/api/providers")
    def get_providers():
        return [dataclasses.asdict(p) for p in registry.list_providers()]

    @app.get("/api/providers/{provider_id}/models")
    async def get_models(provider_id: str):
        if provider_id not in config.providers:
            raise HTTPException(status_code=404, detail=f"Unknown provider: {provider_id}")
        return [dataclasses.asdict(m) for m in await registry.list_models(provider_id)]

    @app.get("/api/providers/{provider_id}/models/{model_id:path}/temperature")
    def get_temperature(provider_id: str, model_id: str):
        return dataclasses.asdict(registry.get_temp_range(provider_id, model_id))

    # ------------------------------------------------------------------- #
    # Settings & credentials                                               #
    # ------------------------------------------------------------------- #

    @app.get("/api/settings")
    def get_settings():
        return store.load_settings()

    @app.put("/api/settings")
    def put_settings(payload: dict):
        try:
            session.apply_settings(payload)
        except (TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        store.save_settings(payload)
        return store.load_settings()

    @app.get("/api/credentials")
    def get_credentials():
        stored = store.load_credentials()
        return [
            {"provider": p.id, "stored": p.id in stored}
            for p in registry.list_providers()
            if p.requires_credential
        ]

    @app.put("/api/credentials/{provider_id}")
    def put_credential(provider_id: str, payload: dict):
        if provider_id not in config.providers:
            raise HTTPException(status_code=404, detail=f"Unknown provider: {provider_id}")
        key = str(payload.get("api_key", "")).strip()
        if not key:
            raise HTTPException(status_code=400, detail="api_key is required")
        store.save_credential(provider_id, key)
        return {"provider": provider_id, "stored": True}

    @app.delete("/api/credentials/{provider_id}")
    def delete_credential(provider_id: str):
        store.clear_credential(provider_id)
        return {"provider": provider_id, "stored": False}

    # ------------------------------------------------------------------- #
    # Game                                                                 #
    # ------------------------------------------------------------------- #

    @app.get("/api/game")
    def get_game():
        board = session.board
        return {
            "fen": board.fen,
            "turn": board.turn,
            "status": board.status(),
            "legal_moves": board.legal_moves(),
            "history": [dataclasses.asdict(h) for h in board.history()],
            "moves": json.loads(_to_json([dataclasses.asdict(m) for m in session.moves])),
            "processing": orchestrator.processing,
            "aborted": session.aborted,
        }

    @app.post("/api/game/new")
    def new_game():
        try:
            orchestrator.new_game()
        except ConfigurationError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"fen": session.board.fen}

    @app.post("/api/game/turn")
    async def play_turn():
        try:
            result = await orchestrator.request_turn()
        except ConfigurationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ArenaError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        if result.kind == "busy":
            raise HTTPException(status_code=409, detail="A move is already being computed")
        return _result_payload(result)

    @app.post("/api/game/human-move")
    def human_move(payload: dict):
        move = str(payload.get("move", "")).strip()
        if not move:
            raise HTTPException(status_code=400, detail="move is required")
        try:
            result = orchestrator.apply_human_move(move)
        except (ConfigurationError, InvalidMoveError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if result.kind == "busy":
            raise HTTPException(status_code=409, detail="A move is already being computed")
        return _result_payload(result)

    @app.get("/api/game/pgn")
    def get_pgn():
        return {"pgn": session.board.to_pgn(include_comments=True)}

    # ------------------------------------------------------------------- #
    # WebSocket auto-play                                                  #
    # ------------------------------------------------------------------- #

    @app.websocket("/ws/autoplay")
    async def autoplay_ws(ws: WebSocket) -> None:
        await ws.accept()
        stop_event = asyncio.Event()
        logger.info("Auto-play connected")

        async def _play_loop() -> None:
            try:
                async for result in orchestrator.auto_play(stop_event):
                    await ws.send_text(_to_json({"type": "turn", **dataclasses.asdict(result)}))
            except ArenaError as exc:
                await ws.send_text(_to_json({"type": "error", "message": str(exc)}))
            logger.info("Auto-play stopped after %d moves", len(session.moves))
            await ws.send_text(_to_json({"type": "stopped"}))

        async def _receive_loop() -> None:
            try:
                while True:
                    msg = await ws.receive_json()
                    if msg.get("type") == "stop":
                        stop_event.set()
                        break
            except (WebSocketDisconnect, RuntimeError):
                stop_event.set()

        # The stop only takes effect between turns, so the play loop is
        # always awaited to completion rather than cancelled.
        play_task = asyncio.create_task(_play_loop())
        recv_task = asyncio.create_task(_receive_loop())
        try:
            await play_task
        except WebSocketDisconnect:
            stop_event.set()
        finally:
            recv_task.cancel()
            try:
                await recv_task
            except (asyncio.CancelledError, WebSocketDisconnect):
                pass
        try:
            await ws.close()
        except RuntimeError:
            pass

    return app


def build_default_app() -> FastAPI:
    """uvicorn factory: configure logging and build the app from ./config.yaml."""
    setup_logging()
    return create_app(load_config())
