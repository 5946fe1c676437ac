"""Command line entry points.

Usage:
    python -m app.cli apply [--redis]                  # Fill in an application in the terminal
    python -m app.cli list-applications [--status S]   # Show stored applications
    python -m app.cli review <id> <status> [--notes N] [--by NAME]
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime

import httpx
from rich.console import Console
from rich.table import Table
from sqlalchemy import create_engine, or_, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.membership_application import ApplicationStatus, MembershipApplication
from app.services.email import EmailService
from app.wizard.persistence import FileDraftStore, RedisDraftStore
from app.wizard.terminal import ConsoleNotifier, TerminalWizard
from app.wizard.wizard import MembershipWizard


async def run_wizard(use_redis: bool = False, console: Console | None = None) -> None:
    console = console or Console()
    if use_redis:
        store = RedisDraftStore.from_url(settings.redis_url, ttl=settings.draft_ttl_seconds)
    else:
        store = FileDraftStore(settings.draft_directory)
    async with httpx.AsyncClient(base_url=settings.api_base_url) as client:
        wizard = MembershipWizard.create(client, store=store, notifier=ConsoleNotifier(console))
        await TerminalWizard(wizard, console).run()


def list_applications(status: str | None = None) -> None:
    engine = create_engine(settings.database_url_sync)
    query = select(MembershipApplication).order_by(MembershipApplication.created_at.desc())
    if status:
        query = query.where(MembershipApplication.status == ApplicationStatus(status))

    table = Table(title="Membership applications")
    for column in ("Reference", "Applicant", "Email", "Fee", "Status", "Submitted"):
        table.add_column(column)
    with Session(engine) as session:
        applications = session.scalars(query).all()
        for a in applications:
            table.add_row(
                a.reference,
                f"{a.first_name} {a.last_name}",
                a.email,
                f"R{a.application_fee:.2f}",
                a.status.value,
                f"{a.created_at:%Y-%m-%d %H:%M}",
            )
    console = Console()
    console.print(table)
    console.print(f"\n{len(applications)} application(s)")


def review_application(
    application_id: str,
    status: str,
    notes: str | None = None,
    reviewed_by: str | None = None,
) -> bool:
    """Record a decision from the terminal; emails the applicant like the API does."""
    engine = create_engine(settings.database_url_sync)
    with Session(engine, expire_on_commit=False) as session:
        application = session.scalars(
            select(MembershipApplication).where(
                or_(
                    MembershipApplication.id == application_id,
                    MembershipApplication.reference == application_id,
                )
            )
        ).one_or_none()
        if application is None:
            print(f"No application {application_id}")
            return False
        application.status = ApplicationStatus(status)
        application.review_notes = notes
        application.reviewed_by = reviewed_by
        application.reviewed_at = datetime.utcnow()
        session.commit()

    asyncio.run(EmailService().send_status_update(application))
    print(f"  {application.reference}: {application.status.value}")
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m app.cli")
    sub = parser.add_subparsers(dest="command", required=True)

    apply_cmd = sub.add_parser("apply", help="run the membership wizard")
    apply_cmd.add_argument("--redis", action="store_true", help="keep the draft in Redis")

    list_cmd = sub.add_parser("list-applications", help="show stored applications")
    list_cmd.add_argument("--status", choices=[s.value for s in ApplicationStatus])

    review_cmd = sub.add_parser("review", help="record a review decision")
    review_cmd.add_argument("application_id")
    review_cmd.add_argument("status", choices=[s.value for s in ApplicationStatus])
    review_cmd.add_argument("--notes")
    review_cmd.add_argument("--by", dest="reviewed_by")

    args = parser.parse_args(argv)
    # Keep the wizard screen free of toast logs
    logging.basicConfig(level=logging.WARNING if args.command == "apply" else logging.INFO)

    if args.command == "apply":
        asyncio.run(run_wizard(use_redis=args.redis))
    elif args.command == "list-applications":
        list_applications(args.status)
    elif args.command == "review":
        if not review_application(args.application_id, args.status, args.notes, args.reviewed_by):
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
