"""Report rendering for ent-metrics results.

Plain-text output follows the layout of the classic ``ent`` utility; the
terse form is its CSV dialect (``0,``/``1,`` result lines, ``2,``/``3,``
table lines). Markdown reports summarise several inputs at once.
"""

from __future__ import annotations

import platform
from datetime import datetime
from pathlib import Path

from ent_metrics.engine import MetricsResult
from ent_metrics.stats import AnalysisMode, FrequencyTable

P_LOW = 0.0001
P_HIGH = 0.9999


def _undefined(result: MetricsResult, name: str) -> str:
    return f"undefined ({result.undefined.get(name, 'not computable')})"


def _chi_square_phrase(result: MetricsResult) -> str:
    p = result.p_value
    if p is None:
        return f"its probability is {_undefined(result, 'p_value')}."
    if p < P_LOW:
        return "would exceed this value less than 0.01 percent of the times."
    if p > P_HIGH:
        return "would exceed this value more than 99.99 percent of the times."
    return f"would exceed this value {p * 100:.2f} percent of the times."


def format_result(result: MetricsResult) -> str:
    """Human-readable summary in the style of ``ent``."""
    unit = result.mode.unit
    lines = [
        f"Entropy = {result.entropy:.6f} bits per {unit}.",
        "",
        "Optimum compression would reduce the size",
        f"of this {result.samples} {unit} file by {int(result.compression_percent)} percent.",
        "",
        f"Chi square distribution for {result.samples} samples is {result.chi_square:.2f}, "
        + ("and" if result.p_value is None else "and randomly"),
        _chi_square_phrase(result),
    ]
    if result.p_value_clamped:
        lines.append(
            f"(Chi square is below its {result.degrees_of_freedom} degrees of freedom; "
            "the approximate probability is clamped to 50 percent.)"
        )
    lines.append("")

    if result.mean is None:
        lines.append(f"Arithmetic mean value of data bytes is {_undefined(result, 'mean')}.")
    else:
        lines.append(
            f"Arithmetic mean value of data bytes is {result.mean:.4f} "
            f"({result.expected_mean:g} = random)."
        )

    if result.pi_estimate is None:
        lines.append(f"Monte Carlo value for Pi is {_undefined(result, 'pi_estimate')}.")
    else:
        lines.append(
            f"Monte Carlo value for Pi is {result.pi_estimate:.6f} "
            f"(error {result.pi_error_percent:.2f} percent)."
        )

    if result.serial_correlation is None:
        reason = result.undefined.get("serial_correlation", "")
        if reason == "all values equal":
            lines.append("Serial correlation coefficient is undefined (all values equal!).")
        else:
            lines.append(f"Serial correlation coefficient is {_undefined(result, 'serial_correlation')}.")
    else:
        lines.append(
            f"Serial correlation coefficient is {result.serial_correlation:.6f} "
            "(totally uncorrelated = 0.0)."
        )
    return "\n".join(lines) + "\n"


def format_table(table: FrequencyTable) -> str:
    """Occurrence table for every symbol of the alphabet."""
    lines = []
    for value, count, fraction in table.rows():
        if table.mode is AnalysisMode.BYTE:
            char = chr(value) if 32 <= value < 127 else " "
            lines.append(f"Value: {value} Char: {char} Occurrences: {count} Fraction: {fraction:g}")
        else:
            lines.append(f"Value: {value} Occurrences: {count} Fraction: {fraction:g}")
    lines.append("")
    lines.append(f"Total: {table.total} {1.0 if table.total else 0.0}")
    return "\n".join(lines) + "\n\n"


def _csv_num(value: float | int | None) -> str:
    if value is None:
        return ""
    if isinstance(value, int):
        return str(value)
    return f"{value:.6g}"


def format_terse(result: MetricsResult) -> str:
    """Machine-parsable result lines; undefined metrics are empty fields."""
    header = f"0,File-{result.mode.unit}s,Entropy,Chi-square,Mean,Monte-Carlo-Pi,Serial-Correlation"
    values = ",".join(
        _csv_num(v) for v in (
            result.samples,
            result.entropy,
            result.chi_square,
            result.mean,
            result.pi_estimate,
            result.serial_correlation,
        )
    )
    return f"{header}\n1,{values}\n"


def format_table_terse(table: FrequencyTable) -> str:
    lines = ["2,Value,Occurrences,Fraction"]
    lines.extend(f"3,{value},{count},{fraction:.6g}" for value, count, fraction in table.rows())
    return "\n".join(lines) + "\n"


def result_to_dict(result: MetricsResult) -> dict:
    """JSON-ready dict of every metric, including the random baseline."""
    d = result.to_dict()
    d["expected_mean"] = result.expected_mean
    return d


def _fmt(value: float | None, spec: str) -> str:
    return "N/A" if value is None else format(value, spec)


def generate_source_report(name: str, result: MetricsResult) -> str:
    """Markdown section for a single input."""
    lines = [
        f"### {name}",
        f"**Mode: {result.mode.unit}** | **Samples: {result.samples:,}** | **Bytes: {result.byte_count:,}**\n",
        "| Metric | Value | Reference |",
        "|--------|-------|-----------|",
        f"| Entropy | {result.entropy:.6f} bits/{result.mode.unit} | {result.mode.max_entropy:g} |",
        f"| Optimum compression | {result.compression_percent:.2f}% | 0% |",
        f"| Chi-square | {result.chi_square:.2f} | df={result.degrees_of_freedom} |",
        f"| P-value (normal approx.) | {_fmt(result.p_value, '.6f')}"
        f"{' (clamped)' if result.p_value_clamped else ''} | 0.1 - 0.9 |",
        f"| P-value (exact) | {_fmt(result.p_value_exact, '.6f')} | 0.1 - 0.9 |",
        f"| Mean | {_fmt(result.mean, '.4f')} | {result.expected_mean:g} |",
        f"| Monte Carlo π | {_fmt(result.pi_estimate, '.6f')} | error {_fmt(result.pi_error_percent, '.2f')}% |",
        f"| Monte Carlo groups | {_fmt(result.pi_groups, ',')} | 3 bytes per coordinate |",
        f"| Serial correlation | {_fmt(result.serial_correlation, '.6f')} | 0.0 |",
    ]
    if result.undefined:
        lines.append("")
        for metric, reason in sorted(result.undefined.items()):
            lines.append(f"- `{metric}` undefined: {reason}")
    lines.append("")
    return "\n".join(lines)


def generate_markdown_report(
    results: dict[str, MetricsResult],
    output_path: str | Path | None = None,
) -> str:
    """Markdown report for several named inputs, ranked by entropy."""
    now = datetime.now()
    ranked = sorted(results.items(), key=lambda x: x[1].entropy / x[1].mode.max_entropy, reverse=True)

    lines = [
        "# Randomness Metrics Report",
        "",
        f"**Generated:** {now.strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Machine:** {platform.node()} ({platform.machine()}, {platform.system()} {platform.release()})",
        f"**Python:** {platform.python_version()}",
        f"**Inputs:** {len(results)}",
        "",
        "## Summary",
        "",
        "| Rank | Input | Bytes | Entropy | Compression | Chi-square | P-value | Mean | π | Serial corr. |",
        "|------|-------|-------|---------|-------------|------------|---------|------|---|--------------|",
    ]
    for i, (name, r) in enumerate(ranked, 1):
        lines.append(
            f"| {i} | {name} | {r.byte_count:,} | {r.entropy:.4f} | {r.compression_percent:.1f}% "
            f"| {r.chi_square:.2f} | {_fmt(r.p_value, '.4f')} | {_fmt(r.mean, '.2f')} "
            f"| {_fmt(r.pi_estimate, '.4f')} | {_fmt(r.serial_correlation, '.4f')} |"
        )

    lines += ["", "---", "", "## Detailed Results", ""]
    for name, r in ranked:
        lines.append(generate_source_report(name, r))
        lines.append("---\n")

    report = "\n".join(lines)

    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report)

    return report
