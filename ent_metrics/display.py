"""Rich terminal rendering of metrics and occurrence tables."""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ent_metrics.engine import MetricsResult
from ent_metrics.stats import AnalysisMode, FrequencyTable


def _ratio_bar(ratio: float, width: int = 16) -> Text:
    """Colored bar for a value in [0, 1]."""
    ratio = min(max(ratio, 0.0), 1.0)
    filled = int(ratio * width)
    if ratio > 0.8:
        color = "green"
    elif ratio > 0.5:
        color = "yellow"
    elif ratio > 0.2:
        color = "red"
    else:
        color = "bright_black"
    return Text("█" * filled + "░" * (width - filled), style=color)


def _p_color(p: float | None) -> str:
    if p is None:
        return "bright_black"
    if p < 0.01 or p > 0.99:
        return "red"
    if p < 0.05 or p > 0.95:
        return "yellow"
    return "green"


def _value(value: float | None, spec: str) -> str:
    return "undefined" if value is None else format(value, spec)


def build_summary_panel(result: MetricsResult, title: str = "Randomness Metrics") -> Panel:
    """Panel with every metric, undefined ones dimmed with their reason."""
    unit = result.mode.unit
    table = Table(show_header=True, header_style="bold cyan", border_style="bright_black", expand=True)
    table.add_column("Metric", style="bold", no_wrap=True)
    table.add_column("Value", justify="right")
    table.add_column("Random", justify="right", style="dim")
    table.add_column("", ratio=1)

    table.add_row(
        "Entropy",
        f"{result.entropy:.6f} bits/{unit}",
        f"{result.mode.max_entropy:g}",
        _ratio_bar(result.entropy / result.mode.max_entropy),
    )
    table.add_row("Optimum compression", f"{result.compression_percent:.2f}%", "0%", "")
    table.add_row("Chi-square", f"{result.chi_square:.2f}", f"df={result.degrees_of_freedom}", "")

    p_text = _value(result.p_value, ".6f") + (" (clamped)" if result.p_value_clamped else "")
    table.add_row("P-value", f"[{_p_color(result.p_value)}]{p_text}[/]", "0.5", "")
    table.add_row(
        "P-value (exact)",
        f"[{_p_color(result.p_value_exact)}]{_value(result.p_value_exact, '.6f')}[/]",
        "0.5",
        "",
    )
    table.add_row("Mean", _value(result.mean, ".4f"), f"{result.expected_mean:g}", "")
    pi_text = _value(result.pi_estimate, ".6f")
    if result.pi_error_percent is not None:
        pi_text += f" ({result.pi_error_percent:.2f}% error, {result.pi_groups:,} groups)"
    table.add_row("Monte Carlo π", pi_text, "3.141593", "")
    table.add_row("Serial correlation", _value(result.serial_correlation, ".6f"), "0.0", "")

    parts: list = [table]
    if result.undefined:
        notes = Text()
        for metric, reason in sorted(result.undefined.items()):
            notes.append(f"  {metric}: ", style="bold")
            notes.append(f"{reason}\n", style="dim")
        parts.append(notes)

    subtitle = f"{result.byte_count:,} bytes, {result.samples:,} {unit}s"
    return Panel(Group(*parts), title=title, subtitle=subtitle, border_style="green")


def build_frequency_table(table: FrequencyTable, limit: int | None = None) -> Table:
    """Occurrence table, most frequent first when *limit* is given."""
    out = Table(
        title="Symbol Occurrences",
        show_header=True,
        header_style="bold cyan",
        border_style="bright_black",
        padding=(0, 1),
    )
    out.add_column("Value", justify="right")
    if table.mode is AnalysisMode.BYTE:
        out.add_column("Char", justify="center")
    out.add_column("Occurrences", justify="right")
    out.add_column("Fraction", justify="right")
    out.add_column("Distribution")

    rows = table.rows()
    if limit is not None:
        rows = sorted(rows, key=lambda r: r[1], reverse=True)[:limit]
    peak = max((f for _, _, f in rows), default=0.0) or 1.0

    for value, count, fraction in rows:
        cells = [str(value)]
        if table.mode is AnalysisMode.BYTE:
            cells.append(Text(chr(value) if 32 <= value < 127 else ""))
        cells += [f"{count:,}", f"{fraction:.6f}", _ratio_bar(fraction / peak, width=24)]
        out.add_row(*cells)
    return out


def render(result: MetricsResult, table: FrequencyTable | None = None,
           console: Console | None = None, limit: int | None = None) -> None:
    """Print the summary panel, and the occurrence table when given."""
    console = console or Console()
    if table is not None:
        console.print(build_frequency_table(table, limit=limit))
    console.print(build_summary_panel(result))
