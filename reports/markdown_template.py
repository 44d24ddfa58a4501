"""
Markdown template for rendering an AnalysisResult as a snapshot report.
Pure function - no I/O, just template rendering.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from analysis.calculations.concentration import concentration_interpretation
from analysis.results import AnalysisResult, FactorAnalysis
from reports.formatters import (
    format_currency,
    format_date_display,
    format_percentage,
    format_ratio,
    format_window_display,
)


# Number of lowest-correlated tickers called out per window
DIVERSIFIER_COUNT = 3


class TemplateError(Exception):
    """Raised when template rendering fails."""
    pass


def render_analysis_report(result: AnalysisResult) -> str:
    """
    Render an analysis result to a Markdown report.

    Args:
        result: Output of run_portfolio_analysis, optionally with factors attached

    Returns:
        Formatted Markdown string

    Raises:
        TemplateError: If the result has no holdings
    """
    if result is None or not result.holdings:
        raise TemplateError("Empty or invalid analysis result provided")

    report_sections = [
        _render_header(result),
        _render_statistics(result.statistics),
        _render_concentration(result),
        _render_groups(result.groups, result.concentration.get('group_hhi', {})),
        _render_shocks(result.shocks),
        _render_correlations(result.correlations, result.top_pairs),
        _render_portfolio_correlations(result.portfolio_correlations),
        _render_factors(result.factors),
        _render_warnings(result.warnings),
        _render_footer(result.metadata)
    ]

    return '\n\n'.join(section for section in report_sections if section)


def _render_header(result: AnalysisResult) -> str:
    meta = result.metadata
    first = meta.get('first_date')
    last = meta.get('last_date')
    period = 'Not available'
    if first and last:
        period = f"{format_date_display(first)} to {format_date_display(last)}"

    return f"""# Portfolio Report Snapshot

**Holdings:** {len(result.holdings)} positions, {len(result.tickers)} tickers
**Gross delta-adjusted exposure:** {format_currency(result.gross_exposure)}
**Return Period:** {period} ({meta.get('observations', 0)} trading days)

---"""


def _render_statistics(statistics: Mapping[str, float]) -> str:
    """Render portfolio statistics section."""
    return '\n'.join([
        "## Portfolio Statistics",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Cumulative Return | {format_percentage(statistics.get('cumulative_return'))} |",
        f"| Volatility (ann.) | {format_percentage(statistics.get('volatility'))} |",
        f"| Max Drawdown | {format_percentage(statistics.get('max_drawdown'))} |",
        f"| Sharpe | {format_ratio(statistics.get('sharpe'))} |",
        f"| Sortino | {format_ratio(statistics.get('sortino'))} |",
    ])


def _render_concentration(result: AnalysisResult) -> str:
    """Render holding concentration section."""
    concentration = result.concentration
    hhi = concentration.get('hhi')

    lines = [
        "## Concentration",
        "",
        f"**Top 5 weight:** {format_percentage(concentration.get('top_weight'))}  ",
        f"**HHI:** {format_ratio(hhi, 3)} ({concentration_interpretation(hhi)})",
        "",
        "| Ticker | Weight |",
        "|--------|--------|",
    ]
    for holding in concentration.get('top_holdings', []):
        lines.append(f"| {holding['ticker']} | {format_percentage(holding['weight'])} |")
    return '\n'.join(lines)


def _weight_table(weights: Mapping[str, float], label: str) -> List[str]:
    lines = [f"| {label} | Weight |", "|---|---|"]
    for name, weight in sorted(weights.items(), key=lambda kv: kv[1], reverse=True):
        lines.append(f"| {name} | {format_percentage(weight)} |")
    return lines


def _render_groups(groups: Mapping[str, Mapping[str, float]], group_hhi: Mapping[str, float]) -> str:
    """Render sector, region and factor-bucket weights."""
    sections = ["## Diversification by Classification"]
    for key, title, label in [
        ('sector', 'Sector', 'Sector'),
        ('region', 'Region', 'Region'),
        ('factor', 'Factor Bucket', 'Factor bucket'),
    ]:
        weights = groups.get(key) or {}
        if not weights:
            continue
        table = '\n'.join(_weight_table(weights, label))
        hhi = format_ratio(group_hhi.get(key), 3)
        sections.append(f"### {title}\n\n{table}\n\n*{title} HHI: {hhi}*")
    return '\n\n'.join(sections)


def _render_shocks(shocks) -> str:
    """Render scenario shock section."""
    if not shocks:
        return ""
    lines = ["## Scenario Shocks (rough)", ""]
    for shock in shocks:
        lines.append(f"- {shock['name']} proxy impact: {format_percentage(shock['impact'])}")
    return '\n'.join(lines)


def _matrix_table(matrix: pd.DataFrame) -> str:
    tickers = [str(t) for t in matrix.columns]
    lines = [
        "| | " + " | ".join(tickers) + " |",
        "|---" * (len(tickers) + 1) + "|",
    ]
    for row in matrix.index:
        cells = [format_ratio(matrix.loc[row, col]) for col in matrix.columns]
        lines.append(f"| **{row}** | " + " | ".join(cells) + " |")
    return '\n'.join(lines)


def _render_correlations(correlations: Mapping[int, pd.DataFrame], pairs) -> str:
    """Render correlation matrices and top pairs."""
    sections = ["## Correlations"]
    for window in sorted(correlations):
        sections.append(f"### Correlation {format_window_display(window)}\n\n{_matrix_table(correlations[window])}")

    if pairs:
        lines = ["### Top Pairs", "", "| Pair | Correlation |", "|------|-------------|"]
        lines.extend(f"| {p['pair']} | {format_ratio(p['correlation'])} |" for p in pairs)
        sections.append('\n'.join(lines))
    return '\n\n'.join(sections)


def _render_portfolio_correlations(portfolio_correlations: Mapping[int, List[Dict[str, Any]]]) -> str:
    """Render each ticker's correlation against the portfolio."""
    if not portfolio_correlations:
        return ""

    sections = ["## Correlation vs Portfolio"]
    for window in sorted(portfolio_correlations):
        rows = portfolio_correlations[window]
        diversifiers = ', '.join(
            f"{r['ticker']} ({format_ratio(r['correlation'])})" for r in rows[:DIVERSIFIER_COUNT]
        )
        lines = [
            f"### {window}d",
            "",
            f"Diversifiers: {diversifiers or 'none'}",
            "",
            "| Ticker | Corr vs Portfolio |",
            "|--------|-------------------|",
        ]
        lines.extend(f"| {r['ticker']} | {format_ratio(r['correlation'])} |" for r in rows)
        sections.append('\n'.join(lines))
    return '\n\n'.join(sections)


def _render_factors(factors: Optional[FactorAnalysis]) -> str:
    """Render factor regression table."""
    if factors is None:
        return ""

    sections = [
        "## Factor Regression",
        f"**Model:** {factors.model}  \n**Window:** {factors.window_days} trading days"
    ]

    if factors.regressions:
        names = factors.factor_names
        header = "| Name | " + " | ".join(f"{n} β | {n} t" for n in names) + " | R² | Annualized α |"
        divider = "|---" * (2 * len(names) + 3) + "|"
        lines = [header, divider]
        for entry in factors.regressions:
            reg = entry.result
            cells = " | ".join(
                f"{format_ratio(b, 3)} | {format_ratio(t)}"
                for b, t in zip(reg.coefficients, reg.t_statistics)
            )
            lines.append(
                f"| {entry.name} | {cells} | {format_ratio(reg.r_squared)} | "
                f"{format_percentage(reg.annualized_alpha)} |"
            )
        sections.append('\n'.join(lines))
    else:
        sections.append("*No series had enough overlapping factor history.*")

    if factors.warnings:
        sections.append('\n'.join(f"- {w}" for w in factors.warnings))

    return '\n\n'.join(sections)


def _render_warnings(warnings) -> str:
    if not warnings:
        return ""
    return "## Warnings\n\n" + '\n'.join(f"- {w}" for w in warnings)


def _render_footer(metadata: Mapping[str, Any]) -> str:
    """Render report footer with metadata."""
    run_at = metadata.get('run_at', 'Unknown')
    rf = format_percentage(metadata.get('risk_free_rate'))

    return f"""---

## Report Metadata

**Run Time:** {run_at}
**Risk-free Rate (annual):** {rf}
**Rendered:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}

*This report is for informational purposes only. Not investment advice.*"""
