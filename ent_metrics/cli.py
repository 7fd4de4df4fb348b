"""CLI for ent-metrics."""

from __future__ import annotations

import json
import logging
import sys

import click

from ent_metrics import __version__

logger = logging.getLogger("ent_metrics")


class _ClickHandler(logging.Handler):
    """Send log records to stderr through click."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def _configure_logging(verbose: bool) -> None:
    if not any(isinstance(h, _ClickHandler) for h in logger.handlers):
        handler = _ClickHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.group(context_settings={"auto_envvar_prefix": "ENT_METRICS"})
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log debug details to stderr.")
def main(verbose: bool) -> None:
    """ent-metrics: entropy, chi-square, mean, Monte Carlo π and serial correlation of a file."""
    _configure_logging(verbose)


# ────────────────────────────────────────────────────────────
# Single input
# ────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", default="-", type=click.Path(allow_dash=True, dir_okay=False))
@click.option("-b", "--bits", is_flag=True, help="Treat the input as a stream of bits.")
@click.option("-c", "--table", "show_table", is_flag=True, help="Print the occurrence table.")
@click.option("-f", "--fold", is_flag=True, help="Fold upper case ASCII letters to lower case.")
@click.option("-t", "--terse", is_flag=True, help="Terse CSV output (same as --format terse).")
@click.option("--format", "fmt", type=click.Choice(["text", "terse", "json", "rich"]), default="text",
              help="Output format.")
@click.option("-q", "--quiet", is_flag=True,
              help="Print the occurrence table without the metrics summary.")
def analyze(file: str, bits: bool, show_table: bool, fold: bool, terse: bool, fmt: str, quiet: bool) -> None:
    """Compute randomness metrics for FILE (default: stdin).

    Examples:

        ent-metrics analyze archive.zip

        head -c 1M /dev/urandom | ent-metrics analyze -b -t

        ent-metrics analyze --format json -c notes.txt
    """
    from ent_metrics.engine import AnalysisConfig, MetricsEngine
    from ent_metrics.sources import SourceError

    if terse:
        fmt = "terse"
    if quiet:
        show_table = True

    try:
        engine = MetricsEngine.from_path(file, AnalysisConfig.from_flags(bits, fold))
    except SourceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    result = engine.calculate()
    table = engine.frequency_table() if show_table else None

    if fmt == "json":
        from ent_metrics.report import result_to_dict

        payload = {} if quiet else result_to_dict(result)
        if table is not None:
            payload["table"] = [
                {"value": v, "occurrences": c, "fraction": f} for v, c, f in table.rows()
            ]
        click.echo(json.dumps(payload, indent=2))
    elif fmt == "rich":
        from ent_metrics.display import build_frequency_table, render

        if quiet:
            from rich.console import Console

            Console().print(build_frequency_table(table))
        else:
            render(result, table)
    elif fmt == "terse":
        from ent_metrics.report import format_table_terse, format_terse

        if not quiet:
            click.echo(format_terse(result), nl=False)
        if table is not None:
            click.echo(format_table_terse(table), nl=False)
    else:
        from ent_metrics.report import format_result, format_table

        if table is not None:
            click.echo(format_table(table), nl=False)
        if not quiet:
            click.echo(format_result(result), nl=False)


# ────────────────────────────────────────────────────────────
# Several inputs
# ────────────────────────────────────────────────────────────


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("-b", "--bits", is_flag=True, help="Treat the inputs as streams of bits.")
@click.option("-f", "--fold", is_flag=True, help="Fold upper case ASCII letters to lower case.")
@click.option("--output", "output_path", default=None, help="Write the markdown report to this path.")
def report(files: tuple[str, ...], bits: bool, fold: bool, output_path: str | None) -> None:
    """Markdown report comparing several files."""
    from ent_metrics.engine import AnalysisConfig, MetricsEngine
    from ent_metrics.report import generate_markdown_report
    from ent_metrics.sources import SourceError

    config = AnalysisConfig.from_flags(bits, fold)
    results = {}
    for path in files:
        try:
            results[path] = MetricsEngine.from_path(path, config).calculate()
        except SourceError as e:
            click.echo(f"  ✗ {path}: {e}", err=True)

    if not results:
        click.echo("No input could be read.", err=True)
        sys.exit(1)

    report_text = generate_markdown_report(results, output_path)
    if output_path:
        click.echo(f"Report saved to: {output_path}")
        click.echo(f"\n{'Input':<40} {'Entropy':>9} {'Chi-square':>12} {'Serial':>10}")
        click.echo("-" * 74)
        for name, r in results.items():
            corr = "undef" if r.serial_correlation is None else f"{r.serial_correlation:.4f}"
            click.echo(f"{name:<40} {r.entropy:>9.4f} {r.chi_square:>12.2f} {corr:>10}")
    else:
        click.echo(report_text)
