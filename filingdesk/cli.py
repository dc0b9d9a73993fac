"""
filingdesk.cli
==============

Command-line front end.

Examples
--------
$ filingdesk year-end --ard 31/03 --today 2024-06-01
$ filingdesk stages ltd
$ filingdesk vat-quarter 3_6_9_12 --date 2024-05-10
$ filingdesk init-db && filingdesk refresh
$ filingdesk deadlines --days 14
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from datetime import date
from typing import Optional, Sequence

from sqlmodel import Session

from .dates import coerce_date, due_phrase, format_uk_date, london_today, parse_reference_date
from .deadlines import collect_deadlines, overdue_deadlines, upcoming_deadlines
from .settings import settings
from .stages import WorkflowType, parse_workflow_type, progress, stages_for
from .statutory import statutory_dates
from .vat import QUARTER_GROUPS, format_quarter_period, vat_quarter

logger = logging.getLogger(__name__)


def _date_arg(value: str) -> date:
    parsed = coerce_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}")
    return parsed


def _workflow_arg(value: str) -> WorkflowType:
    wt = parse_workflow_type(value)
    if wt is None:
        raise argparse.ArgumentTypeError(f"unknown workflow type: {value!r}")
    return wt


def _session(args: argparse.Namespace) -> Session:
    from . import db

    if args.db_url:
        return Session(db.make_engine(args.db_url))
    return db.SessionLocal()


# ---------------------------------------------------------------------------
# Sub-commands
# ---------------------------------------------------------------------------
def cmd_year_end(args: argparse.Namespace) -> int:
    source = {
        "accounting_reference_date": parse_reference_date(args.ard),
        "last_accounts_made_up_to": args.last_accounts,
        "last_confirmation_made_up_to": args.last_confirmation,
        "incorporation_date": args.incorporated,
    }
    if args.ard and source["accounting_reference_date"] is None:
        raise ValueError(f"invalid accounting reference date {args.ard!r}")
    today = args.today or london_today()
    for field, value in statutory_dates(source, today).formatted(args.style).items():
        print(f"{field:28} {value}")
    return 0


def cmd_stages(args: argparse.Namespace) -> int:
    for code, label in stages_for(args.workflow):
        print(f"{progress(code, args.workflow):5.1f}%  {code:28} {label}")
    return 0


def cmd_vat_quarter(args: argparse.Namespace) -> int:
    q = vat_quarter(args.group, args.date)
    print(f"{format_quarter_period(q.quarter_period)}  ({q.quarter_period})")
    print(f"filing due: {format_uk_date(q.filing_due)}  {due_phrase(q.filing_due, args.date)}")
    return 0


def cmd_deadlines(args: argparse.Namespace) -> int:
    from .db import all_clients

    today = args.today or london_today()
    with _session(args) as session:
        items = collect_deadlines(all_clients(session), today, assigned_user=args.user)
    if args.overdue:
        items = overdue_deadlines(items)
    else:
        items = upcoming_deadlines(items, today, args.days)
    for item in items:
        print(
            f"{format_uk_date(item.due_date)}  {item.kind.value:16} "
            f"{item.client_code:10} {item.client_name}  ({due_phrase(item.due_date, today)})"
        )
    if not items:
        print("No deadlines.")
    return 0


def cmd_refresh(args: argparse.Namespace) -> int:
    from .db import refresh_cached_dates

    with _session(args) as session:
        changed = refresh_cached_dates(session, args.today)
    print(f"✅ {changed} client(s) updated")
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    from . import db

    db.create_all(db.make_engine(args.db_url) if args.db_url else None)
    print("✅ filingdesk schema initialised")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filingdesk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            FilingDesk utilities
            --------------------
            year-end     statutory dates from an ARD / last accounts date
            stages       list a workflow's stages
            vat-quarter  VAT quarter containing a date
            deadlines    upcoming or overdue deadlines from the database
            refresh      recompute cached due dates for every client
            init-db      create tables (safe if they already exist)
            """
        ),
    )
    parser.add_argument("--db-url", help="override FILINGDESK_DB_URL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("year-end", help="statutory dates for one company")
    p.add_argument("--ard", help="accounting reference date, DD/MM")
    p.add_argument("--last-accounts", type=_date_arg, help="last accounts made up to")
    p.add_argument("--last-confirmation", type=_date_arg, help="last confirmation made up to")
    p.add_argument("--incorporated", type=_date_arg, help="incorporation date")
    p.add_argument("--today", type=_date_arg)
    p.add_argument("--style", choices=("numeric", "short"), default="numeric")
    p.set_defaults(func=cmd_year_end)

    p = sub.add_parser("stages", help="list workflow stages")
    p.add_argument("workflow", type=_workflow_arg, help="vat, ltd or non-ltd")
    p.set_defaults(func=cmd_stages)

    p = sub.add_parser("vat-quarter", help="VAT quarter containing a date")
    p.add_argument("group", choices=sorted(QUARTER_GROUPS))
    p.add_argument("--date", type=_date_arg)
    p.set_defaults(func=cmd_vat_quarter)

    p = sub.add_parser("deadlines", help="upcoming or overdue deadlines")
    p.add_argument("--days", type=int, default=settings.upcoming_window_days)
    p.add_argument("--overdue", action="store_true")
    p.add_argument("--user", help="only clients assigned to this user")
    p.add_argument("--today", type=_date_arg)
    p.set_defaults(func=cmd_deadlines)

    p = sub.add_parser("refresh", help="recompute cached due dates")
    p.add_argument("--today", type=_date_arg)
    p.set_defaults(func=cmd_refresh)

    p = sub.add_parser("init-db", help="create tables")
    p.set_defaults(func=cmd_init_db)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (ValueError, KeyError) as exc:
        logger.debug("command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
