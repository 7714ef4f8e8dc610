"""
Interactive seat selection for White and Black at game start.

Displays a numbered table of every provider/model pair (Ollama models are
discovered live) plus a "Human" entry, and prompts for each colour.
Temperature is asked for AI seats, bounded by the model's range.
"""

from __future__ import annotations

from rich.console import Console
from rich.prompt import FloatPrompt, IntPrompt
from rich.table import Table

from chessarena.registry import ProviderRegistry
from chessarena.session import SeatSettings

console = Console(legacy_windows=False)

_HUMAN = ("human", "", "Human")


async def select_seats(registry: ProviderRegistry) -> tuple[SeatSettings, SeatSettings]:
    """
    Display all available models and prompt the user to assign White and Black.

    Returns a (white, black) tuple of SeatSettings.
    """
    entries: list[tuple[str, str, str]] = [_HUMAN]
    for provider in registry.list_providers():
        for model in await registry.list_models(provider.id):
            entries.append((provider.id, model.id, model.display_name))

    if len(entries) == 1:
        raise ValueError("No models available. Check the providers section of config.yaml.")

    _print_model_table(entries)
    choices = [str(i) for i in range(1, len(entries) + 1)]

    white = _ask_seat("[bold white]♔  Who plays White?[/]", entries, choices, registry)
    black = _ask_seat("[bold bright_black]♚  Who plays Black?[/]", entries, choices, registry)

    console.print(
        f"\n  White: [bold]{white.display_name}[/]  vs  Black: [bold]{black.display_name}[/]\n"
    )
    return white, black


def _ask_seat(
    prompt: str,
    entries: list[tuple[str, str, str]],
    choices: list[str],
    registry: ProviderRegistry,
) -> SeatSettings:
    idx = IntPrompt.ask(f"\n{prompt}", choices=choices, show_choices=False)
    provider_id, model_id, _ = entries[idx - 1]
    if provider_id == "human":
        return SeatSettings(kind="human")

    temp_range = registry.get_temp_range(provider_id, model_id)
    temperature = FloatPrompt.ask(
        f"  Temperature [{temp_range.min}–{temp_range.max}]",
        default=temp_range.clamp(0.7),
    )
    return SeatSettings(
        kind="ai",
        provider_id=provider_id,
        model_id=model_id,
        temperature=temp_range.clamp(temperature),
    )


def _print_model_table(entries: list[tuple[str, str, str]]) -> None:
    table = Table(
        title="Available Players",
        show_header=True,
        header_style="bold",
        border_style="dim",
        show_lines=False,
    )
    table.add_column("#", style="dim", width=3, justify="right")
    table.add_column("Name", min_width=20)
    table.add_column("Provider", style="dim", min_width=12)
    table.add_column("Model ID", style="dim")

    for i, (provider_id, model_id, name) in enumerate(entries, 1):
        table.add_row(str(i), name, provider_id, model_id)

    console.print()
    console.print(table)
