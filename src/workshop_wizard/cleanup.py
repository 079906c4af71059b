"""Command-line tool that removes double-created workshop sessions."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from datetime import timedelta
from typing import TextIO

from pydantic import ValidationError

from workshop_wizard.app_logging import configure_logging
from workshop_wizard.config import Settings
from workshop_wizard.containers import build_container
from workshop_wizard.domain.errors import PersistenceError
from workshop_wizard.services.reconciler import DuplicateSessionReconciler

logger = logging.getLogger(__name__)

_CONFIRMATIONS = {"yes", "y"}


def run_cleanup(
    reconciler: DuplicateSessionReconciler,
    *,
    assume_yes: bool = False,
    input_fn: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
) -> int:
    """Find duplicates, ask for confirmation and delete them."""
    print("Searching for duplicate workshop sessions...", file=out)
    try:
        groups = asyncio.run(reconciler.find())
    except PersistenceError as exc:
        logger.error("Could not scan workshop sessions: %s", exc)
        return 1

    duplicates = [session for group in groups for session in group.duplicates]
    if not duplicates:
        print("No duplicate sessions found.", file=out)
        return 0

    print(f"Found {len(duplicates)} duplicate sessions:", file=out)
    for index, session in enumerate(duplicates, start=1):
        print(
            f"{index}. ID: {session.session_id}, Name: {session.name}, "
            f"User: {session.user_id}, Created: {session.created_at.isoformat()}",
            file=out,
        )

    if not assume_yes:
        try:
            answer = input_fn(
                "Do you want to delete these duplicate sessions? (yes/no): "
            )
        except (EOFError, KeyboardInterrupt):
            answer = ""
            print(file=out)
        if answer.strip().lower() not in _CONFIRMATIONS:
            print("Operation cancelled. No sessions were deleted.", file=out)
            return 0

    report = asyncio.run(reconciler.delete(groups))
    print(f"Successfully deleted {len(report.deleted)} duplicate sessions", file=out)
    if report.failed:
        print(f"Failed to delete {len(report.failed)} sessions:", file=out)
        for session_id, reason in report.failed.items():
            print(f"- {session_id}: {reason}", file=out)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``workshop-cleanup`` script."""
    parser = argparse.ArgumentParser(
        prog="workshop-cleanup",
        description="Delete workshop sessions created twice in quick succession.",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="delete without asking for confirmation",
    )
    parser.add_argument(
        "--window",
        type=float,
        default=None,
        help="seconds between creations that still count as a duplicate",
    )
    args = parser.parse_args(argv)
    configure_logging()

    try:
        settings = Settings()
    except ValidationError:
        logger.error(
            "Missing Supabase configuration. Please set SUPABASE_URL and "
            "SUPABASE_KEY environment variables."
        )
        return 1

    container = build_container(settings)
    reconciler = container.reconciler
    if args.window is not None:
        reconciler.window = timedelta(seconds=args.window)
    try:
        return run_cleanup(reconciler, assume_yes=args.yes)
    finally:
        asyncio.run(container.close_resources())


if __name__ == "__main__":
    sys.exit(main())
