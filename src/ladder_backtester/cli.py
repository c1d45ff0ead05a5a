"""
Command line runner for the ladder backtester.

Usage:
    ladder-backtest data/RELIANCE.csv
    ladder-backtest data/RELIANCE.csv --config ladder.yaml --format json
"""

import argparse
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from ladder_backtester.core.config import LadderConfig
from ladder_backtester.core.errors import BacktestError
from ladder_backtester.data.loader import load_csv
from ladder_backtester.engine.reporter import LadderBacktestReporter
from ladder_backtester.engine.simulator import LadderBacktestSimulator
from ladder_backtester.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ladder-backtest",
        description="Simulate the dynamic-reference ladder strategy over a daily price CSV",
    )

    parser.add_argument(
        "csv",
        type=Path,
        help="Daily history CSV with DATE, OPEN, HIGH, LOW, CLOSE columns",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file overriding strategy constants",
    )

    parser.add_argument(
        "--symbol",
        type=str,
        default=None,
        help="Instrument name for the report (default: CSV file name)",
    )

    parser.add_argument(
        "--format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Report format (default: text)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Render log events as JSON",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level, json_logs=args.json_logs)

    symbol = args.symbol or args.csv.stem

    try:
        config = LadderConfig.from_yaml_file(args.config) if args.config else LadderConfig()
        candles = load_csv(args.csv)
        summary = LadderBacktestSimulator(config).run_rows(candles, symbol=symbol)
    except (BacktestError, ValidationError, yaml.YAMLError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    reporter = LadderBacktestReporter(config)
    if args.format == "json":
        output = reporter.export_json(summary, symbol=symbol)
    elif args.format == "yaml":
        output = reporter.export_yaml(summary, symbol=symbol)
    else:
        output = reporter.render_text(summary, symbol=symbol)

    logger.debug("Report rendered", symbol=symbol, format=args.format)

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
