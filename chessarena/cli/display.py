"""
Rich-based CLI consumer of TurnResult objects.

This is the ONLY place where terminal output happens.
The orchestrator requires zero changes to be driven from elsewhere
(the web API serializes the same results with dataclasses.asdict()).
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel

from chessarena.events import GameOverInfo, MoveRecord, TurnResult
from chessarena.session import GameSession

console = Console(legacy_windows=False)


def display_game_start(session: GameSession) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{session.white.display_name}[/] [dim](White)[/]  vs  "
            f"[bold white]{session.black.display_name}[/] [dim](Black)[/]",
            title="[bold green] Chess Arena [/]",
            border_style="green",
            expand=False,
        )
    )


def display_result(result: TurnResult, session: GameSession) -> None:
    """Dispatch a TurnResult to the appropriate display function."""
    match result.kind:
        case "applied":
            assert result.record is not None
            _move_applied(result.record, session)
            if result.game_over is not None:
                _game_over(result.game_over)
        case "terminal":
            assert result.game_over is not None
            _game_over(result.game_over)
        case "awaiting_human":
            console.print("  [dim]Waiting for the human player…[/]")
        case "busy":
            console.print("  [yellow]A move is already being computed.[/]")
        case "error":
            console.print(f"  [bold red]Error:[/] {result.error}")


# --------------------------------------------------------------------------- #
# Display functions                                                            #
# --------------------------------------------------------------------------- #

def _move_applied(record: MoveRecord, session: GameSession) -> None:
    symbol = "♔" if record.color == "white" else "♚"
    color_style = "bold white" if record.color == "white" else "bold bright_black"
    seat = session.seat(record.color)
    check_tag = "  [bold red]+[/]" if record.is_check else ""

    console.print()
    console.print(
        f"[dim]Ply {record.move_number}[/]  "
        f"[{color_style}]{symbol}  {seat.display_name}[/]  "
        f"[green]✓[/] [bold]{record.san}[/]{check_tag}  [dim]({record.uci})[/]"
    )
    if record.fallback:
        console.print(f"  [yellow]⚠ fallback move[/] [dim]{record.error or ''}[/]")
    else:
        console.print(f"  [dim]{record.reasoning}[/]", highlight=False, markup=False)
    console.print(
        Panel(
            f"[green]{session.board.ascii()}[/]",
            subtitle=f"[dim]{record.fen_after}[/]",
            border_style="dim",
            padding=(0, 1),
            expand=False,
        )
    )


def _game_over(info: GameOverInfo) -> None:
    result_styles: dict[str, str] = {
        "1-0": "bold green",
        "0-1": "bold red",
        "1/2-1/2": "bold yellow",
        "*": "dim",
    }
    style = result_styles.get(info.result, "white")
    reason = info.reason.replace("_", " ").title()
    outcome_text = (
        f"Winner: [bold]{info.winner.title()}[/]" if info.winner else "[yellow]Draw[/]"
    )

    console.print()
    console.print(
        Panel(
            f"[{style}]{info.result}[/]  —  {reason}\n"
            f"{outcome_text}\n"
            f"[dim]Total moves: {info.total_moves}[/]",
            title="[bold]Game Over[/]",
            border_style=style.replace("bold ", ""),
            expand=False,
        )
    )

    console.print()
    console.rule("[dim]PGN[/]")
    console.print(info.pgn, highlight=False, markup=False)
    console.rule()
