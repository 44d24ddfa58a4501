#!/usr/bin/env python3
"""
Main CLI for the Portfolio Factor Workbench.
Usage: python cli.py analyze [--holdings CSV] | python cli.py factors
"""

import argparse
import dataclasses
import functools
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from analysis.analysis_job import (
    PORTFOLIO_SERIES,
    AnalysisJobError,
    load_config,
    run_factor_analysis,
    run_portfolio_analysis,
)
from analysis.results import AnalysisResult
from ingestion.providers.french_factors_adapter import FrenchFactorsError
from ingestion.transforms.holdings_csv import HoldingsCSVError, parse_holdings_csv
from pipeline.market_data import fetch_classifications, fetch_factor_data, fetch_prices
from reports.atomic_writer import AtomicWriteError, write_bundle_atomic
from reports.csv_export import (
    correlation_matrix_csv,
    factor_summary_csv,
    group_weights_csv,
)
from reports.formatters import format_percentage, format_ratio
from reports.markdown_template import render_analysis_report


logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    """argparse type for window lengths in trading days."""
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Portfolio exposure, risk and factor analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py analyze
  python cli.py analyze --holdings my_book.csv --factor-window 126 --asset-factors
  python cli.py factors
        """
    )
    parser.add_argument('--config',
                        help='Portfolio YAML config (default: $PORTFOLIO_CONFIG or ./config/portfolio.yml)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    analyze = subparsers.add_parser('analyze', help='Run the full portfolio analysis')
    analyze.add_argument('--holdings',
                         help='Holdings CSV (default: holdings from config)')
    analyze.add_argument('--factor-window',
                         type=positive_int,
                         help='Factor regression window in trading days (default: from config)')
    analyze.add_argument('--asset-factors',
                         action='store_true',
                         help='Also regress each instrument on the factors')
    analyze.add_argument('--no-factors',
                         action='store_true',
                         help='Skip the factor regression')
    analyze.add_argument('--risk-free',
                         type=float,
                         help='Annual risk-free rate as decimal (default: from config)')
    analyze.add_argument('--output-dir',
                         default='./data/reports',
                         help='Directory for report and CSV exports (default: ./data/reports)')

    subparsers.add_parser('factors', help='Download and summarize the factor data')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    load_dotenv()
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'WARNING').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    args = build_parser().parse_args(argv)

    try:
        if args.command == 'analyze':
            return run_analyze(args)
        return run_factors()
    except (AnalysisJobError, HoldingsCSVError, FrenchFactorsError, AtomicWriteError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


def run_analyze(args: argparse.Namespace) -> int:
    """Run analysis, print a summary and write the report bundle."""
    config = load_config(args.config)

    if args.holdings:
        raw_holdings = parse_holdings_csv(Path(args.holdings))
        print(f"Loaded {len(raw_holdings)} holdings from {args.holdings}")
    else:
        raw_holdings = config['defaults']['holdings']

    risk_free = args.risk_free if args.risk_free is not None else float(config.get('risk_free_rate') or 0.0)

    result = run_portfolio_analysis(
        raw_holdings,
        price_provider=fetch_prices,
        classification_provider=functools.partial(fetch_classifications, sector_map=config['sector_map']),
        manual_classifications=config['classifications'],
        shocks=config['shocks'],
        risk_free_rate=risk_free,
        windows=config['windows']
    )

    if not args.no_factors:
        result = _attach_factors(result, args.factor_window or config['windows']['factor'], args.asset_factors)

    _print_summary(result)

    output_dir = Path(args.output_dir)
    files = {
        output_dir / 'portfolio_report.md': render_analysis_report(result),
        output_dir / 'sector_factor_groups.csv': group_weights_csv(result.groups),
    }
    pair_window = result.metadata['windows']['top_pairs']
    if pair_window in result.correlations:
        files[output_dir / f'correlation_{pair_window}d.csv'] = correlation_matrix_csv(result.correlations[pair_window])
    if result.factors is not None:
        files[output_dir / 'factor_summary.csv'] = factor_summary_csv(result.factors)

    written = write_bundle_atomic(files)
    for path in written['paths']:
        print(f"Wrote {path}")
    return 0


def _attach_factors(result: AnalysisResult, window_days: int, include_assets: bool) -> AnalysisResult:
    """Run factor analysis; a factor download failure leaves the result without factors."""
    try:
        factor_data = fetch_factor_data()
    except FrenchFactorsError as e:
        logger.error(f"Factor data unavailable: {e}")
        return dataclasses.replace(
            result,
            warnings=result.warnings + (f"Factor data unavailable ({e})",)
        )

    factors = run_factor_analysis(result, factor_data, window_days, include_assets)
    return dataclasses.replace(result, factors=factors)


def _print_summary(result: AnalysisResult) -> None:
    stats = result.statistics
    print(f"Cumulative: {format_percentage(stats['cumulative_return'])}")
    print(f"Vol (ann): {format_percentage(stats['volatility'])}")
    print(f"Max Drawdown: {format_percentage(stats['max_drawdown'])}")
    print(f"Sharpe: {format_ratio(stats['sharpe'])}  Sortino: {format_ratio(stats['sortino'])}")
    print(f"Top 5 weight: {format_percentage(result.concentration['top_weight'])}  "
          f"HHI: {format_ratio(result.concentration['hhi'], 3)}")

    if result.factors is not None:
        portfolio = result.factors.for_name(PORTFOLIO_SERIES)
        if portfolio is not None:
            print(f"Factor model: {result.factors.model}  R²: {format_ratio(portfolio.r_squared)}  "
                  f"Market β: {format_ratio(portfolio.coefficient('Mkt-RF'))}  "
                  f"Annualized α: {format_percentage(portfolio.annualized_alpha)}")

    warnings = list(result.warnings) + list(result.factors.warnings if result.factors else [])
    if warnings:
        print("Warnings: " + ' | '.join(warnings))


def run_factors() -> int:
    """Download factor data and print its coverage."""
    factor_data = fetch_factor_data()
    rows = factor_data['factors']
    if not rows:
        print("No factor rows loaded")
        return 1

    print(f"Factor rows: {len(rows)} ({rows[0]['date']} to {rows[-1]['date']})")
    print(f"Momentum: {'yes' if factor_data['has_momentum'] else 'no'}")
    for warning in factor_data['warnings']:
        print(f"Warning: {warning}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
