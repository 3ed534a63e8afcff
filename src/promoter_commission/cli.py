"""Promoter commission CLI — command-line interface for payout runs.

Usage:
    python -m promoter_commission.cli calculate --input run.json
    python -m promoter_commission.cli aggregate --input payouts.json --group-by promoter_tree --directory promoters.json
    python -m promoter_commission.cli check-template --input template.json
    python -m promoter_commission.cli check-policy
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from promoter_commission.codec import (
    apply_overrides,
    booking_from_dict,
    config_from_template,
    parse_date,
    parse_decimal,
    payout_from_dict,
    payout_to_dict,
    registration_from_dict,
)
from promoter_commission.compensation.formatting import format_payout_breakdown
from promoter_commission.errors import CommissionError
from promoter_commission.logging_setup import setup_logging
from promoter_commission.models.commission import PromoterAssignment
from promoter_commission.models.payout import GroupBy
from promoter_commission.policy.resolver import PolicyResolver
from promoter_commission.service import PayoutService


ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG = ROOT / "config"


def _config_dir(args: argparse.Namespace) -> Path:
    if args.config is not None:
        return args.config
    env_dir = os.getenv("PROMOTER_COMMISSION_CONFIG_DIR")
    return Path(env_dir) if env_dir else DEFAULT_CONFIG


def _load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _assignment_from_dict(
    data: Dict[str, Any],
    templates: Dict[str, Any],
    resolver: PolicyResolver,
) -> PromoterAssignment:
    template = data.get("template") or {}
    if isinstance(template, str):
        if template not in templates:
            raise CommissionError(f"Unknown template: {template}")
        template = templates[template]
    merged = apply_overrides(template, data.get("overrides"))
    config = config_from_template(merged, resolver)
    return PromoterAssignment(
        promoter_id=str(data["promoter_id"]),
        config=config,
        manual_adjustment=(
            parse_decimal(data.get("manual_adjustment"), "manual_adjustment")
            or Decimal("0")
        ),
    )


def cmd_calculate(args: argparse.Namespace) -> int:
    """Compute payouts for one event from a run file."""
    resolver = PolicyResolver.from_config_dir(_config_dir(args))
    run = _load_json(args.input)
    templates = run.get("templates", {})
    try:
        assignments = [
            _assignment_from_dict(a, templates, resolver)
            for a in run.get("assignments", [])
        ]
    except CommissionError as exc:
        print(f"Failed: {exc}", file=sys.stderr)
        return 1

    service = PayoutService(resolver)
    result = service.compute_event_payouts(
        event_id=str(run.get("event_id", "")),
        assignments=assignments,
        registrations=[registration_from_dict(r) for r in run.get("registrations", [])],
        table_bookings=[booking_from_dict(b) for b in run.get("table_bookings", [])],
        event_date=parse_date(run.get("event_date")),
    )
    if not result.success:
        print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
        return 1

    payouts = []
    for payout in result.data["payouts"]:
        entry = payout_to_dict(payout)
        entry["display"] = format_payout_breakdown(
            payout, resolver.minor_units(payout.currency),
        )
        payouts.append(entry)
    _print_json({
        "event_id": result.data["event_id"],
        "payouts": payouts,
        "totals_by_currency": {
            cur: str(amount) for cur, amount in result.data["totals_by_currency"].items()
        },
        "unassigned_promoters": result.data["unassigned_promoters"],
    })
    return 0


def _load_parents(path: Optional[Path]) -> Dict[str, Optional[str]]:
    if path is None:
        return {}
    data = _load_json(path)
    if isinstance(data, dict) and "promoters" in data:
        data = data["promoters"]
    if isinstance(data, list):
        return {str(p["id"]): p.get("parent_id") for p in data}
    return dict(data)


def cmd_aggregate(args: argparse.Namespace) -> int:
    """Aggregate previously computed payouts."""
    resolver = PolicyResolver.from_config_dir(_config_dir(args))
    data = _load_json(args.input)
    if isinstance(data, dict):
        data = data.get("payouts", [])
    results = [payout_from_dict(p) for p in data]

    service = PayoutService(resolver)
    result = service.summarize(
        results,
        GroupBy(args.group_by),
        parents=_load_parents(args.directory),
        since=parse_date(args.since),
        until=parse_date(args.until),
    )
    if not result.success:
        print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
        return 1
    _print_json([
        {
            "group_key": row.group_key,
            "totals_by_currency": {c: str(a) for c, a in row.totals_by_currency.items()},
            "payable_by_currency": {c: str(a) for c, a in row.payable_by_currency.items()},
            "event_count": row.event_count,
        }
        for row in result.data["rows"]
    ])
    return 0


def cmd_check_template(args: argparse.Namespace) -> int:
    """Validate a payout template."""
    resolver = PolicyResolver.from_config_dir(_config_dir(args))
    try:
        config = config_from_template(_load_json(args.input), resolver)
    except CommissionError as exc:
        print(f"Invalid template: {exc}", file=sys.stderr)
        return 1
    print(f"Template OK: {config.config_id} ({config.currency})")
    return 0


def cmd_check_policy(args: argparse.Namespace) -> int:
    """Validate the commission policy file."""
    resolver = PolicyResolver.from_config_dir(_config_dir(args))
    errors = resolver.validate()
    if errors:
        for error in errors:
            print(f"- {error}", file=sys.stderr)
        return 1
    print(f"Policy OK (version {resolver.version})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promoter-commission",
        description="Promoter referral & commission calculation engine",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config directory (default: $PROMOTER_COMMISSION_CONFIG_DIR or config/)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $PROMOTER_COMMISSION_LOG_LEVEL or WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    # calculate
    p_calc = sub.add_parser("calculate", help="Compute payouts for one event")
    p_calc.add_argument("--input", type=Path, required=True, help="Run file (JSON)")

    # aggregate
    p_agg = sub.add_parser("aggregate", help="Aggregate payouts for reporting")
    p_agg.add_argument("--input", type=Path, required=True, help="Payouts file (JSON)")
    p_agg.add_argument(
        "--group-by", default=GroupBy.PROMOTER.value,
        choices=[g.value for g in GroupBy],
        help="Grouping (default: promoter)",
    )
    p_agg.add_argument("--directory", type=Path, help="Promoter directory (JSON)")
    p_agg.add_argument("--since", help="First event date to include (YYYY-MM-DD)")
    p_agg.add_argument("--until", help="Last event date to include (YYYY-MM-DD)")

    # check-template
    p_tpl = sub.add_parser("check-template", help="Validate a payout template")
    p_tpl.add_argument("--input", type=Path, required=True, help="Template file (JSON)")

    # check-policy
    sub.add_parser("check-policy", help="Validate the commission policy file")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv(ROOT / ".env")
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level or os.getenv("PROMOTER_COMMISSION_LOG_LEVEL", "WARNING"))

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "calculate": cmd_calculate,
        "aggregate": cmd_aggregate,
        "check-template": cmd_check_template,
        "check-policy": cmd_check_policy,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
