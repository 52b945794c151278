#!/usr/bin/env python3
"""
IdP Configs -- account-scoped storage for identity provider auth realms.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py list --account 6089719
  python main.py list --account 6089719 --include-deleted
  python main.py list --account 6089719 --json

Environment variables:
  DATABASE_URL  SQLAlchemy connection URL. Required unless DEBUG=true.
  DEBUG         Set to true to fall back to a local SQLite file.
"""

import argparse
import json
from dataclasses import asdict

from core.config import get_settings
from realms.models import AuthRealm
from realms.store import AuthRealmStore


def _print_table(realms: list[AuthRealm]) -> None:
    print(f"  {'ID':>6}  {'NAME':<32}  {'CREATED':<25}  DELETED")
    print("  " + "─" * 80)
    for realm in realms:
        deleted = realm.deleted_at or "-"
        print(f"  {realm.id:>6}  {realm.name[:32]:<32}  {realm.created_at[:25]:<25}  {deleted}")


def _list(args: argparse.Namespace) -> None:
    """Print an account's records straight from the store.

    --include-deleted is the audit path: soft-deleted rows are never visible
    through the API, only here.
    """
    store = AuthRealmStore(get_settings().database_url)
    try:
        realms = store.list_for_account(args.account, include_deleted=args.include_deleted)
    finally:
        store.close()

    if args.json:
        print(json.dumps([asdict(r) for r in realms], indent=2))
        return

    if not realms:
        print(f"  No auth realms found for account {args.account}.")
        return
    _print_table(realms)
    print(f"\n  {len(realms)} record(s).")


def _serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="idp-configs",
        description="Account-scoped storage for identity provider auth realms.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 8080
  python main.py list --account 6089719 --include-deleted
  DATABASE_URL=postgresql://user:pw@host/idp python main.py list --account 6089719 --json
        """,
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the HTTP API under uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on source changes (development only)")
    serve.set_defaults(func=_serve)

    list_cmd = subparsers.add_parser("list", help="List an account's auth realms from the database")
    list_cmd.add_argument("--account", required=True, metavar="ACCOUNT", help="Account number to list")
    list_cmd.add_argument(
        "--include-deleted",
        action="store_true",
        help="Include soft-deleted records (audit view)",
    )
    list_cmd.add_argument("--json", action="store_true", help="Output structured JSON")
    list_cmd.set_defaults(func=_list)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
