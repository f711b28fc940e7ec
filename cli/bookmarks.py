"""Command-line front end for the bookmark store and WebDAV sync."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from bookmarksync.app import configure_logging, create_app
from bookmarksync.config import Settings
from bookmarksync.services.bookmark_service import FilterKind
from bookmarksync.services.datetime_service import (
    describe_millis,
    format_datetime,
    millis_to_datetime,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bookmarksync.app import BookmarkSyncApp
    from bookmarksync.services.bookmark_codec import Bookmark


def format_bookmark(bookmark: Bookmark) -> str:
    """One-line listing entry."""
    kind = "dir " if bookmark.is_directory else "file"
    line = f"{bookmark.id}  [{kind}] {bookmark.name} -> {bookmark.path}"
    if bookmark.tags:
        line += f"  #{' #'.join(bookmark.tags)}"
    if bookmark.show_in_sidebar:
        line += "  (sidebar)"
    return line


def describe_last_sync(value: int) -> str:
    """Absolute and relative time of the last sync, or "never"."""
    if value <= 0:
        return "never"
    return f"{format_datetime(millis_to_datetime(value))} ({describe_millis(value)})"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bookmarksync",
        description="Manage file bookmarks and sync them with a WebDAV server",
    )
    parser.add_argument("--database-url", help="Override the database URL")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List bookmarks")
    kind_group = list_parser.add_mutually_exclusive_group()
    kind_group.add_argument("--files", action="store_true", help="Only file bookmarks")
    kind_group.add_argument("--dirs", action="store_true", help="Only directory bookmarks")
    kind_group.add_argument("--tag", help="Only bookmarks with this tag")

    add_parser = subparsers.add_parser("add", help="Add a bookmark")
    add_parser.add_argument("name")
    add_parser.add_argument("path")
    add_parser.add_argument("--dir", action="store_true", help="The path is a directory")
    add_parser.add_argument("--tag", action="append", default=[], dest="tags")
    add_parser.add_argument("--notes")
    add_parser.add_argument("--sidebar", action="store_true", help="Pin to the sidebar")

    update_parser = subparsers.add_parser("update", help="Update a bookmark")
    update_parser.add_argument("id")
    update_parser.add_argument("--name")
    update_parser.add_argument("--tag", action="append", dest="tags")
    update_parser.add_argument("--notes")
    update_parser.add_argument(
        "--sidebar", action=argparse.BooleanOptionalAction, default=None
    )

    remove_parser = subparsers.add_parser("remove", help="Delete a bookmark")
    remove_parser.add_argument("id")

    purge_parser = subparsers.add_parser("purge", help="Delete a bookmark without a tombstone")
    purge_parser.add_argument("id")

    toggle_parser = subparsers.add_parser("toggle", help="Bookmark or unbookmark a path")
    toggle_parser.add_argument("name")
    toggle_parser.add_argument("path")
    toggle_parser.add_argument("--dir", action="store_true")

    search_parser = subparsers.add_parser("search", help="Search bookmarks")
    search_parser.add_argument("query")

    subparsers.add_parser("tags", help="List all tags")
    subparsers.add_parser("sync", help="Sync with the WebDAV server")
    subparsers.add_parser("status", help="Show sync status")

    export_parser = subparsers.add_parser("export", help="Export bookmarks as JSON")
    export_parser.add_argument("file", nargs="?", help="Output file (default: stdout)")

    import_parser = subparsers.add_parser("import", help="Replace bookmarks from a JSON export")
    import_parser.add_argument("file")

    return parser


async def run_command(app: BookmarkSyncApp, args: argparse.Namespace) -> int:
    """Execute a parsed command against a wired app; returns the exit code."""
    manager = app.manager

    if args.command == "list":
        if args.files:
            bookmarks = manager.list_bookmarks(FilterKind.FILES)
        elif args.dirs:
            bookmarks = manager.list_bookmarks(FilterKind.DIRECTORIES)
        elif args.tag:
            bookmarks = manager.list_bookmarks(FilterKind.TAG, args.tag)
        else:
            bookmarks = manager.list_bookmarks()
        for bookmark in bookmarks:
            print(format_bookmark(bookmark))
        print(f"{len(bookmarks)} bookmark(s)")

    elif args.command == "add":
        bookmark = await manager.add_bookmark(
            args.name,
            args.path,
            args.dir,
            tags=args.tags,
            notes=args.notes,
            show_in_sidebar=args.sidebar,
        )
        print(f"Added: {format_bookmark(bookmark)}")

    elif args.command == "update":
        updated = await manager.update_bookmark(
            args.id,
            name=args.name,
            tags=args.tags,
            notes=args.notes,
            show_in_sidebar=args.sidebar,
        )
        if updated is None:
            print(f"Error: no bookmark with id {args.id}")
            return 1
        print(f"Updated: {format_bookmark(updated)}")

    elif args.command == "remove":
        await manager.delete_bookmark(args.id)
        print(f"Removed: {args.id}")

    elif args.command == "purge":
        await manager.purge_bookmark(args.id)
        print(f"Purged: {args.id}")

    elif args.command == "toggle":
        added = await manager.toggle_bookmark(args.name, args.path, args.dir)
        print(f"{'Bookmarked' if added else 'Unbookmarked'}: {args.path}")

    elif args.command == "search":
        for bookmark in manager.search(args.query):
            print(format_bookmark(bookmark))

    elif args.command == "tags":
        for tag in sorted(manager.all_tags()):
            print(tag)

    elif args.command == "sync":
        result = await app.orchestrator.sync()
        if not result.success:
            print(f"Sync failed ({result.failure}): {result.message}")
            return 1
        print("Sync complete.")

    elif args.command == "status":
        status = app.orchestrator.sync_status()
        print("Sync Status:")
        print(f"  Enabled:   {'yes' if status.enabled else 'no'}")
        print(f"  Last sync: {describe_last_sync(status.last_sync_time)}")
        print(f"  Device ID: {status.device_id}")

    elif args.command == "export":
        data = manager.export_json()
        if args.file:
            Path(args.file).write_text(data + "\n", encoding="utf-8")
            print(f"Exported {len(app.store.list())} bookmark(s) to {args.file}")
        else:
            print(data)

    elif args.command == "import":
        text = Path(args.file).read_text(encoding="utf-8")
        if not await manager.import_json(text):
            print(f"Error: {args.file} is not a valid bookmark export")
            return 1
        print(f"Imported {len(app.store.list())} bookmark(s)")

    return 0


async def _run(settings: Settings, args: argparse.Namespace) -> int:
    app = await create_app(settings)
    try:
        return await run_command(app, args)
    finally:
        await app.close()


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    overrides: dict[str, object] = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.debug:
        overrides["debug"] = True
    settings = Settings(**overrides)
    configure_logging(settings.debug)

    exit_code = asyncio.run(_run(settings, args))
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
