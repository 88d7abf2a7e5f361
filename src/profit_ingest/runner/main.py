"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..errors import ProfitIngestError
from ..pipeline import TransactionPipeline, count_summary
from ..rates import CurrencyConverter, ExchangeRateClient, RateCache
from ..reporting import PERIODS, summarize, time_series
from ..schemas.transaction import Transaction

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="profit-ingest",
        description="Extract and normalize financial transactions from exported files",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # process command
    process_parser = subparsers.add_parser("process", help="Extract transactions from a file")
    process_parser.add_argument("file", type=Path, help="Input file")
    process_parser.add_argument(
        "--ext",
        type=str,
        default=None,
        help="Declared extension (default: file suffix)",
    )
    process_parser.add_argument(
        "--output",
        choices=["json", "table"],
        default="table",
        help="Output format (default: table)",
    )

    # summary command
    summary_parser = subparsers.add_parser("summary", help="Profit/loss summary for a file")
    summary_parser.add_argument("file", type=Path, help="Input file")
    summary_parser.add_argument(
        "--ext",
        type=str,
        default=None,
        help="Declared extension (default: file suffix)",
    )
    summary_parser.add_argument(
        "--period",
        choices=PERIODS,
        default="monthly",
        help="Time series period (default: monthly)",
    )

    # convert command
    convert_parser = subparsers.add_parser("convert", help="Convert an amount between currencies")
    convert_parser.add_argument("amount", type=str, help="Amount, e.g. 120.50")
    convert_parser.add_argument("from_currency", metavar="FROM", help="Source currency code")
    convert_parser.add_argument("to_currency", metavar="TO", help="Target currency code")

    # init-config command
    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=None,
        help="Destination (default: the --config path)",
    )

    return parser


def format_table(transactions: list[Transaction]) -> str:
    """Render transactions as a fixed-width text table."""
    header = f"{'Date':<10}  {'Type':<7}  {'Amount':>12}  {'Category':<14}  Description"
    lines = [header, "-" * len(header)]
    for tx in transactions:
        lines.append(
            f"{tx.date.isoformat():<10}  {tx.type.value:<7}  {tx.amount:>12}  "
            f"{tx.category:<14}  {tx.description}"
        )
    return "\n".join(lines)


def cmd_process(config: Config, file: Path, ext: Optional[str], output: str) -> int:
    """Extract and print transactions."""
    pipeline = TransactionPipeline(config)

    try:
        transactions = pipeline.process_file(file, ext)
    except OSError as e:
        print(f"❌ Cannot read {file}: {e}")
        return 1
    except ProfitIngestError as e:
        print(f"❌ {e.message}")
        return 1

    if output == "json":
        body = {
            "message": "File processed successfully",
            "transactions": [tx.to_dict() for tx in transactions],
            "summary": count_summary(transactions),
        }
        print(json.dumps(body, indent=2, ensure_ascii=False))
    else:
        print(format_table(transactions))
        counts = count_summary(transactions)
        print(
            f"\n✓ {counts['total']} transaction(s): "
            f"{counts['revenue']} revenue, {counts['expenses']} expense(s)"
        )
    return 0


def cmd_summary(config: Config, file: Path, ext: Optional[str], period: str) -> int:
    """Print profit/loss summary and time series."""
    pipeline = TransactionPipeline(config)

    try:
        transactions = pipeline.process_file(file, ext)
    except OSError as e:
        print(f"❌ Cannot read {file}: {e}")
        return 1
    except ProfitIngestError as e:
        print(f"❌ {e.message}")
        return 1

    summary = summarize(transactions)

    print("\n📊 Profit/Loss Summary")
    print("=" * 40)
    print(f"  Transactions:         {summary.total_transactions}")
    print(f"  Total revenue:        {summary.total_revenue}")
    print(f"  Total expenses:       {summary.total_expenses}")
    print(f"  Net profit:           {summary.net_profit}")
    print(f"  Average transaction:  {summary.average_transaction}")

    if summary.revenue_by_category:
        print("\n  Revenue by category:")
        for category, value in summary.revenue_by_category.items():
            print(f"    {category:<18} {value:>12}")
    if summary.expenses_by_category:
        print("\n  Expenses by category:")
        for category, value in summary.expenses_by_category.items():
            print(f"    {category:<18} {value:>12}")

    print(f"\n  {period.capitalize()} totals:")
    for totals in time_series(transactions, period=period):
        print(
            f"    {totals.label:<12} revenue {totals.revenue:>12}  "
            f"expenses {totals.expenses:>12}  profit {totals.profit:>12}"
        )
    print()
    return 0


def cmd_convert(config: Config, amount: str, from_currency: str, to_currency: str) -> int:
    """Convert an amount and print the result."""
    try:
        value = Decimal(amount.replace(",", ""))
    except InvalidOperation:
        print(f"❌ Invalid amount: {amount}")
        return 1

    client = ExchangeRateClient(
        config.rates.api_url,
        timeout=config.rates.timeout_seconds,
        max_retries=config.rates.max_retries,
    )
    cache = RateCache(ttl=config.rates.ttl_hours * 3600)
    converter = CurrencyConverter(client, cache, base_currency=config.rates.base_currency)

    try:
        converted = converter.convert(value, from_currency, to_currency)
    except ProfitIngestError as e:
        print(f"❌ {e.message}")
        return 1

    print(f"{value} {from_currency.upper()} = {converted} {to_currency.upper()}")
    return 0


def cmd_init_config(path: Path) -> int:
    """Write the default config file (never overwrites)."""
    if path.exists():
        print(f"❌ {path} already exists")
        return 1
    create_default_config(path)
    print(f"✓ Wrote default config to {path}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.path or parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except (ConfigValidationError, OSError, ValueError) as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    # Route to command
    if parsed.command == "process":
        return cmd_process(config, parsed.file, parsed.ext, parsed.output)
    elif parsed.command == "summary":
        return cmd_summary(config, parsed.file, parsed.ext, parsed.period)
    elif parsed.command == "convert":
        return cmd_convert(config, parsed.amount, parsed.from_currency, parsed.to_currency)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
