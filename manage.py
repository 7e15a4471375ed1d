#!/usr/bin/env python3
"""
Stockpad management CLI.

Usage:
    python manage.py serve       Run the API server (single worker)
    python manage.py migrate     Apply pending database migrations
    python manage.py sync        Run one sync pass and print the report
    python manage.py queue       Show outbound queue counts and poisoned entries
    python manage.py sign FILE   Print webhook headers for a JSON body file
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent


def cmd_serve(args: argparse.Namespace) -> None:
    """Run uvicorn in the foreground."""
    import uvicorn

    # Sync state is per process, so more than one worker would run
    # competing engines against the same database.
    print(f"Starting server on {args.host}:{args.port}...")
    uvicorn.run(
        "src.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        app_dir=str(ROOT_DIR),
    )


async def _migrate() -> None:
    from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

    results = await run_migrations()
    if not results:
        print("Database is up to date.")
    for result in results:
        state = "ok" if result.success else f"FAILED ({result.error})"
        print(f"v{result.version} {result.name}: {state} [{result.execution_time_ms}ms]")
    if not all(result.success for result in results):
        sys.exit(1)


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    asyncio.run(_migrate())


async def _sync() -> None:
    from src.application.services import get_sync_engine
    from src.infrastructure.storage.sqlite import close_pool
    from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

    await run_migrations()
    try:
        engine = await get_sync_engine()
        engine.set_online(True)
        # set_online schedules a pass; run one explicitly and let the scheduled one no-op
        await engine.wait_idle()
        report = await engine.trigger_sync()
        if report is None:
            print("Sync skipped.")
            return
        print(f"Pushed:   {report.pushed}")
        print(f"Failed:   {report.failed}")
        print(f"Skipped:  {report.skipped}")
        print(f"Poisoned: {report.poisoned}")
        for table, count in report.pulled.items():
            print(f"Pulled {table}: {count}")
        print(f"Purged:   {report.purged}")
    finally:
        await close_pool()


def cmd_sync(args: argparse.Namespace) -> None:
    """Run one sync pass against the configured remote."""
    asyncio.run(_sync())


async def _queue() -> None:
    from src.infrastructure.storage.sqlite import close_pool, get_local_store

    try:
        store = await get_local_store()
        summary = await store.count_queue()
        print(f"Pending:  {summary.pending}")
        print(f"Synced:   {summary.synced}")
        print(f"Poisoned: {summary.poisoned}")
        for entry in await store.get_poisoned_entries():
            print(
                f"  {entry.id}  {entry.table_name.value}/{entry.action.value}"
                f"  attempts={entry.attempts}  {entry.last_error or ''}"
            )
    finally:
        await close_pool()


def cmd_queue(args: argparse.Namespace) -> None:
    """Show queue counts."""
    asyncio.run(_queue())


def cmd_sign(args: argparse.Namespace) -> None:
    """Print signature headers for a webhook body."""
    from src.config import get_settings
    from src.core.services import compute_signature

    secret = args.secret or get_settings().webhook.secret
    if not secret:
        print("No secret: pass --secret or set WEBHOOK_SECRET.")
        sys.exit(1)

    body = Path(args.file).read_bytes()
    timestamp = str(int(time.time() * 1000))
    print(f"x-webhook-timestamp: {timestamp}")
    print(f"x-webhook-signature: {compute_signature(secret, timestamp, body)}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Stockpad management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Run the API server")
    p_serve.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply database migrations")
    p_migrate.set_defaults(func=cmd_migrate)

    # sync
    p_sync = sub.add_parser("sync", help="Run one sync pass")
    p_sync.set_defaults(func=cmd_sync)

    # queue
    p_queue = sub.add_parser("queue", help="Show outbound queue state")
    p_queue.set_defaults(func=cmd_queue)

    # sign
    p_sign = sub.add_parser("sign", help="Sign a webhook body")
    p_sign.add_argument("file", help="Path to the JSON body")
    p_sign.add_argument("--secret", default=None, help="Shared secret (default: WEBHOOK_SECRET)")
    p_sign.set_defaults(func=cmd_sign)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
