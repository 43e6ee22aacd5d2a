"""Print period balances for one school's ledger."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Report today/7-day/30-day/year/all-time balances for a school.",
    )
    parser.add_argument(
        "school_id",
        type=str,
        help="School (tenant) id whose ledger is reported.",
    )
    parser.add_argument(
        "--start",
        type=datetime.fromisoformat,
        default=None,
        help="Inclusive start of an extra window (ISO timestamp).",
    )
    parser.add_argument(
        "--end",
        type=datetime.fromisoformat,
        default=None,
        help="Exclusive end of an extra window (ISO timestamp).",
    )
    return parser.parse_args()


def format_amount(amount: Decimal, currency: str) -> str:
    """Return a signed, thousands-separated amount."""
    return f"{amount:+,.2f} {currency}"


def print_report(report: Mapping) -> None:
    """Print a balance report in aligned columns."""
    currency = report["currency"]
    print(f"Balances as of {report['as_of'].isoformat()}:")
    for window, amount in report["balances"].items():
        print(f"  {window:<14}{format_amount(amount, currency)}")
    if report["custom"] is not None:
        print(f"  {'custom':<14}{format_amount(report['custom'], currency)}")
    totals = report["totals"]
    print(
        f"{totals.entry_count} entries, gains {totals.total_gains:,.2f}, "
        f"losses {totals.total_losses:,.2f}"
    )


def main() -> None:
    """CLI entry point."""
    args = parse_args()

    from school_ledger.services.balance_service import BalanceService
    from school_ledger.utils.supabase_client import get_service_client

    report = BalanceService(get_service_client()).balances(
        school_id=args.school_id,
        start=args.start,
        end=args.end,
    )
    print_report(report)


if __name__ == "__main__":
    main()
