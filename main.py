"""
LLM Chess Arena — terminal entry point.

Wires together:  config → selector → registry → orchestrator → CLI display

Ctrl+C stops auto-play after the move currently being computed; a second
Ctrl+C force-quits.
"""

from __future__ import annotations

import asyncio
import logging
import logging.handlers
import signal
import sys
from pathlib import Path

from chessarena.cli.display import console, display_game_start, display_result
from chessarena.cli.selector import select_seats
from chessarena.config import load_config
from chessarena.errors import ArenaError, ConfigurationError, InvalidMoveError
from chessarena.orchestrator import MoveOrchestrator
from chessarena.registry import ProviderRegistry
from chessarena.session import GameSession
from chessarena.store import SettingsStore

_LOG_FILE = Path("./logs/chessarena.log")


def _setup_logging() -> None:
    # File only: the console belongs to rich.
    _LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        handlers=[
            logging.handlers.RotatingFileHandler(
                _LOG_FILE, maxBytes=2 * 1024 * 1024, backupCount=3,
                encoding="utf-8",
            ),
        ],
    )


async def _read_human_move(orchestrator: MoveOrchestrator) -> None:
    board = orchestrator.session.board
    legal = board.legal_moves()
    preview = ", ".join(legal[:10]) + (f" … ({len(legal)} total)" if len(legal) > 10 else "")
    prompt = f"\n[{board.turn.upper()}] Your move (SAN or UCI) [legal: {preview}]: "
    loop = asyncio.get_running_loop()
    while True:
        raw = await loop.run_in_executor(None, input, prompt)
        try:
            result = orchestrator.apply_human_move(raw)
        except InvalidMoveError:
            console.print(f"  [red]✗[/] {raw.strip()!r} is not legal here.")
            continue
        display_result(result, orchestrator.session)
        return


async def _main(stop_event: asyncio.Event) -> None:
    try:
        config = load_config(Path("config.yaml"))
    except ValueError as exc:
        console.print(f"[red]Config error:[/] {exc}")
        sys.exit(1)

    store = SettingsStore(config.data_dir_path)
    registry = ProviderRegistry(config, store)

    white, black = await select_seats(registry)
    session = GameSession(white=white, black=black)
    session.reset()
    store.save_settings({**store.load_settings(), **session.settings_dict()})

    orchestrator = MoveOrchestrator(session, registry, config.game)
    display_game_start(session)
    console.print(f"[dim]Log: {_LOG_FILE}[/]\n")

    while not session.board.is_game_over and not stop_event.is_set():
        if session.seat(session.board.turn).kind == "human":
            await _read_human_move(orchestrator)
            continue
        try:
            async for result in orchestrator.auto_play(stop_event):
                display_result(result, session)
                if result.kind == "error":
                    return
        except ConfigurationError as exc:
            console.print(f"[red]Setup error:[/] {exc}")
            return
        except ArenaError as exc:
            console.print(f"[bold red]Fatal:[/] {exc}")
            return

    if stop_event.is_set():
        console.print("\n[yellow]Game stopped by user[/]")
        console.rule("[dim]PGN[/]")
        console.print(session.board.to_pgn(include_comments=True), highlight=False, markup=False)


def main() -> None:
    _setup_logging()

    async def _run() -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()

        original_sigint = signal.getsignal(signal.SIGINT)

        def _on_sigint(sig: int, frame: object) -> None:
            # Schedule the event set on the event loop thread (safe on Windows)
            loop.call_soon_threadsafe(stop_event.set)
            # Restore the original handler so a second Ctrl+C force-quits
            signal.signal(signal.SIGINT, original_sigint)

        signal.signal(signal.SIGINT, _on_sigint)
        await _main(stop_event)

    asyncio.run(_run())


if __name__ == "__main__":
    main()
