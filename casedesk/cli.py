"""
CaseDesk command line.

    casedesk serve [--host H] [--port P] [--reload]
    casedesk init-db
    casedesk seed
    casedesk clean-orphaned-media [--dry-run]
"""

import argparse
import asyncio
import logging

from casedesk.core.config import get_settings
from casedesk.core.database import close_db, get_db_session, init_db
from casedesk.core.logging_config import setup_logging
from casedesk.core.utc import local_today


logger = logging.getLogger(__name__)


def serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "casedesk.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )


async def _init_db() -> None:
    await init_db()
    await close_db()
    logger.info("Tables created")


async def _seed() -> None:
    from casedesk.services.seed import seed_demo_data

    settings = get_settings()
    await init_db()
    async with get_db_session() as db:
        counts = await seed_demo_data(db, local_today(settings.local_timezone))
    await close_db()

    if counts:
        for kind, count in counts.items():
            print(f"  {kind}: {count}")
    else:
        print("Nothing to seed: the database already has data.")


async def _clean_orphaned_media(dry_run: bool) -> None:
    from casedesk.services.media_storage import clean_orphaned_files

    settings = get_settings()
    async with get_db_session() as db:
        report = await clean_orphaned_files(db, settings, dry_run=dry_run)
    await close_db()

    print(f"Files scanned:  {report.total_files}")
    print(f"Orphaned:       {report.orphaned}")
    if not dry_run:
        print(f"Deleted:        {report.deleted}")
        print(f"Errors:         {report.errors}")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="casedesk", description="CaseDesk legal case management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: settings.host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: settings.port)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    subparsers.add_parser("init-db", help="Create all database tables")
    subparsers.add_parser("seed", help="Load demo catalogs, participants and cases")

    clean_parser = subparsers.add_parser(
        "clean-orphaned-media",
        help="Delete stored files that no media record references",
    )
    clean_parser.add_argument("--dry-run", action="store_true", help="Only report orphaned files")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json_format, settings.log_file or None)

    if args.command == "serve":
        serve(args)
    elif args.command == "init-db":
        asyncio.run(_init_db())
    elif args.command == "seed":
        asyncio.run(_seed())
    elif args.command == "clean-orphaned-media":
        asyncio.run(_clean_orphaned_media(args.dry_run))


if __name__ == "__main__":
    main()
