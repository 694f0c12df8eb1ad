"""
Result display helpers.

Renders a StructureResult as rich tables: pivot levels and trends,
recent signals, active order blocks and fair value gaps. Stateless and
display-only.

Usage:
    from rich.console import Console
    from smc.utils.cli_display import render_structure_summary

    render_structure_summary(result, Console())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from smc.structures.results import StructureResult


# Bias colors for Rich console
BIAS_COLORS = {
    "bullish": "green",
    "bearish": "red",
    "none": "dim",
}


def format_level(value: Optional[float], decimals: int = 4) -> str:
    """Price level as text, '-' when unset."""
    if value is None:
        return "-"
    return f"{value:.{decimals}f}"


def _bias_text(label: str) -> Text:
    return Text(label, style=BIAS_COLORS.get(label, "white"))


def _levels_table(result: "StructureResult") -> Table:
    table = Table(title="Structure", show_header=True, header_style="bold")
    table.add_column("Resolution", width=10)
    table.add_column("High", justify="right")
    table.add_column("Low", justify="right")
    table.add_column("Trend", width=8)

    table.add_row(
        "swing",
        format_level(result.swing_high),
        format_level(result.swing_low),
        _bias_text(result.swing_trend),
    )
    table.add_row(
        "internal",
        format_level(result.internal_high),
        format_level(result.internal_low),
        _bias_text(result.internal_trend),
    )
    table.add_row(
        "equal",
        format_level(result.equal_high),
        format_level(result.equal_low),
        Text("-", style="dim"),
    )
    return table


def _signals_table(result: "StructureResult", max_rows: int) -> Table:
    table = Table(title=f"Signals (last {max_rows})", show_header=True, header_style="bold")
    table.add_column("Bar", justify="right")
    table.add_column("Time")
    table.add_column("Kind", width=6)
    table.add_column("Direction", width=9)
    table.add_column("Resolution", width=10)
    table.add_column("Level", justify="right")

    for signal in list(result.signals)[-max_rows:]:
        kind_style = "bold yellow" if signal.kind.value == "CHoCH" else "cyan"
        table.add_row(
            str(signal.bar_index),
            str(signal.time),
            Text(signal.kind.value, style=kind_style),
            _bias_text(signal.direction.label),
            signal.resolution.value,
            format_level(signal.level),
        )
    return table


def _zones_table(title: str, rows: list[tuple[Any, ...]]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Bar", justify="right")
    table.add_column("Resolution", width=10)
    table.add_column("Bias", width=8)
    table.add_column("Top", justify="right")
    table.add_column("Bottom", justify="right")
    for bar_index, resolution, bias, top, bottom in rows:
        table.add_row(
            str(bar_index),
            resolution,
            _bias_text(bias),
            format_level(top),
            format_level(bottom),
        )
    return table


def render_structure_summary(
    result: "StructureResult",
    console: Console | None = None,
    max_rows: int = 10,
) -> None:
    """
    Print a StructureResult using Rich tables.

    Args:
        result: Result to display.
        console: Rich console instance (default: create new).
        max_rows: Maximum signals / zones shown per table.
    """
    if console is None:
        console = Console()

    console.print()
    console.print(Panel(
        f"[bold]MARKET STRUCTURE[/] | {result.bar_count} bars | "
        f"ATR {format_level(result.atr_measure)}",
        border_style="blue",
    ))
    console.print(_levels_table(result))

    if result.signals:
        console.print(_signals_table(result, max_rows))
        console.print(
            f"[dim]BOS: {len(result.bos_signals)} | CHoCH: {len(result.choch_signals)}[/]"
        )
    else:
        console.print("[dim]No structure breaks.[/]")

    blocks = list(result.internal_order_blocks) + list(result.swing_order_blocks)
    if blocks:
        rows = [
            (b.bar_index, b.resolution.value, b.bias.label, b.high, b.low)
            for b in blocks[-max_rows:]
        ]
        console.print(_zones_table("Active Order Blocks", rows))

    if result.fair_value_gaps:
        rows = [
            (g.bar_index, "-", g.bias.label, g.top, g.bottom)
            for g in list(result.fair_value_gaps)[-max_rows:]
        ]
        console.print(_zones_table("Fair Value Gaps", rows))

    if result.equal_highs or result.equal_lows:
        console.print(
            f"[dim]Equal highs: {len(result.equal_highs)} | "
            f"Equal lows: {len(result.equal_lows)}[/]"
        )
