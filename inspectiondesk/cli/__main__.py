from __future__ import annotations

import argparse

from inspectiondesk.cli.seed_demo import seed_demo
from inspectiondesk.db import session_scope
from inspectiondesk.logging_config import configure_logging
from inspectiondesk.services.reconciliation import reconcile_assignments


def _seed(args: argparse.Namespace) -> None:
    with session_scope() as db:
        out = seed_demo(
            db,
            admin_email=args.admin_email,
            buyer_email=args.buyer_email,
            seller_email=args.seller_email,
            field_agent_email=args.field_agent_email,
        )
    print(
        {
            "ok": True,
            "admin_email": out.admin_email,
            "field_agent_email": out.field_agent_email,
            "property_id": out.property_id,
            "inspection_ids": out.inspection_ids,
        }
    )


def _reconcile(args: argparse.Namespace) -> None:
    with session_scope() as db:
        res = reconcile_assignments(db, commit=not args.dry_run)
        if args.dry_run:
            db.rollback()
    print({"ok": True, "dry_run": bool(args.dry_run), **res.to_dict()})


def main() -> None:
    configure_logging()

    p = argparse.ArgumentParser(prog="inspectiondesk")
    sub = p.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="create demo users, a property and inspection requests")
    seed.add_argument("--admin-email", default="admin@inspectiondesk.local")
    seed.add_argument("--buyer-email", default="buyer@inspectiondesk.local")
    seed.add_argument("--seller-email", default="seller@inspectiondesk.local")
    seed.add_argument("--field-agent-email", default="agent@inspectiondesk.local")
    seed.set_defaults(func=_seed)

    rec = sub.add_parser("reconcile", help="repair field-agent assignment back-references")
    rec.add_argument("--dry-run", action="store_true")
    rec.set_defaults(func=_reconcile)

    args = p.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
