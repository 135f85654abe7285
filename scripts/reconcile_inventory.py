#!/usr/bin/env python3
"""
Reconcile inventory summaries with purchase batches.

Recomputes quantity on hand and weighted-average cost for every variant,
removes stock movements left behind by deleted purchase batches, and
verifies that no drift remains.

Usage:
  python3 scripts/reconcile_inventory.py reconcile [--dry-run] [--variant ID ...] [--json]
  python3 scripts/reconcile_inventory.py verify [--variant ID ...] [--costs] [--json]
  python3 scripts/reconcile_inventory.py collect-orphans [--dry-run] [--json]

Global options (before the command):
  --config PATH      Settings YAML (default: inventory_config/defaults.yaml)
  --db-url URL       Overrides database.url and INVENTORY_DATABASE_URL
  --log-level LEVEL  Overrides logging.level

Exit codes:
  0  clean
  1  error (configuration, store unavailable)
  2  anomalies found or drift remains
"""

import argparse
import json
import sys
from pathlib import Path
from uuid import UUID

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

EXIT_CLEAN = 0
EXIT_ERROR = 1
EXIT_DRIFT = 2


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="inventory-reconcile",
        description="Reconcile inventory summaries with the purchase batch ledger",
    )
    p.add_argument("--config", type=Path, default=None, help="Settings YAML file")
    p.add_argument("--db-url", default=None, help="Database URL")
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level for the JSON log stream on stderr",
    )

    sub = p.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("reconcile", help="Recompute summaries and remove orphaned movements")
    rec.add_argument("--dry-run", action="store_true", help="Report changes without committing")
    rec.add_argument(
        "--variant", dest="variants", action="append", type=UUID, default=None,
        help="Restrict to a variant id (repeatable)",
    )
    rec.add_argument("--json", action="store_true", help="Print the report as JSON")

    ver = sub.add_parser("verify", help="List variants whose summary disagrees with the ledger")
    ver.add_argument(
        "--variant", dest="variants", action="append", type=UUID, default=None,
        help="Restrict to a variant id (repeatable)",
    )
    ver.add_argument("--costs", action="store_true", help="Also compare average costs")
    ver.add_argument("--json", action="store_true", help="Print discrepancies as JSON")

    orph = sub.add_parser("collect-orphans", help="Remove orphaned purchase/adjustment-in movements")
    orph.add_argument("--dry-run", action="store_true", help="Report without deleting")
    orph.add_argument("--json", action="store_true", help="Print the result as JSON")

    return p


def _print_report(report) -> None:
    mode = " (dry run)" if report.dry_run else ""
    print()
    print(f"  Reconciliation run {report.run_id}{mode}")
    print(f"  Variants examined:   {report.variants_examined}")
    print(f"  Variants updated:    {report.variants_updated}")
    print(f"  Movements removed:   {report.movements_removed}")
    print(f"  Anomalies:           {len(report.anomalies)}")
    print(f"  Residual drift:      {len(report.residual_discrepancies)}")
    print(f"  Duration:            {report.duration_ms} ms")

    if report.repairs:
        print()
        print("  Repairs:")
        for r in report.repairs:
            old_qty = "-" if r.old_quantity is None else r.old_quantity
            old_cost = "-" if r.old_average_cost is None else r.old_average_cost
            print(
                f"    {r.variant_id}  {r.outcome.value:<8} "
                f"qty {old_qty} -> {r.new_quantity}  avg {old_cost} -> {r.new_average_cost}"
            )
    if report.anomalies:
        print()
        print("  Anomalies:")
        for a in report.anomalies:
            print(f"    {a.variant_id}  {a.code}: {a.message}")
    if report.residual_discrepancies:
        print()
        print("  Residual drift:")
        for d in report.residual_discrepancies:
            print(
                f"    {d.variant_id}  summary={d.aggregate_quantity} "
                f"ledger={d.ledger_quantity} diff={d.difference:+d}"
            )
    print()


def _run_reconcile(service, args) -> int:
    report = service.reconcile(variant_ids=args.variants, dry_run=args.dry_run)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report)
    return EXIT_CLEAN if report.is_clean else EXIT_DRIFT


def _run_verify(service, args) -> int:
    discrepancies = list(service.verify(args.variants))
    cost_discrepancies = list(service.verify_costs(args.variants)) if args.costs else []

    if args.json:
        payload = {"quantity_discrepancies": [d.as_dict() for d in discrepancies]}
        if args.costs:
            payload["cost_discrepancies"] = [d.to_dict() for d in cost_discrepancies]
        print(json.dumps(payload, indent=2))
    else:
        print()
        if not discrepancies and not cost_discrepancies:
            print("  No drift: every summary agrees with its purchase batches.")
        for d in discrepancies:
            print(
                f"  {d.variant_id}  summary={d.aggregate_quantity} "
                f"ledger={d.ledger_quantity} diff={d.difference:+d}"
            )
        for c in cost_discrepancies:
            print(
                f"  {c.variant_id}  avg_cost summary={c.aggregate_cost} "
                f"ledger={c.ledger_cost}"
            )
        print()

    return EXIT_DRIFT if discrepancies or cost_discrepancies else EXIT_CLEAN


def _run_collect_orphans(service, args) -> int:
    result = service.collect_orphans(dry_run=args.dry_run)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        verb = "Would remove" if result.dry_run else "Removed"
        print()
        print(f"  {verb} {result.movements_removed} orphaned movement(s).")
        for kind, count in sorted(result.removed_by_kind.items()):
            print(f"    {kind}: {count}")
        print()
    return EXIT_CLEAN


_COMMANDS = {
    "reconcile": _run_reconcile,
    "verify": _run_verify,
    "collect-orphans": _run_collect_orphans,
}


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    import yaml

    from inventory_config import get_active_settings
    from inventory_kernel.db.engine import get_session_factory, init_engine_from_url
    from inventory_kernel.exceptions import InventoryKernelError
    from inventory_kernel.logging_config import configure_logging
    from inventory_services.repair_service import InventoryRepairService

    try:
        settings = get_active_settings(args.config)
    except (FileNotFoundError, yaml.YAMLError, InventoryKernelError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR

    level = args.log_level or settings.logging.level
    configure_logging(level=level)

    db = settings.database
    try:
        init_engine_from_url(
            args.db_url or db.url,
            echo=db.echo,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
        )
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR

    service = InventoryRepairService(
        get_session_factory(),
        settings=settings.reconciliation,
    )

    try:
        return _COMMANDS[args.command](service, args)
    except InventoryKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
