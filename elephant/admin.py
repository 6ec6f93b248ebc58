"""
Party admin CLI.

Usage:
    elephant-admin list              List all parties
    elephant-admin get <party_id>    Print a party record as JSON
    elephant-admin delete <party_id> Delete a party
    elephant-admin clear [--yes]     Delete ALL parties (asks first)

Reads REDIS_URL from the environment, `.env.local` or `.env`.
"""

import argparse
import sys
from collections.abc import Callable
from pathlib import Path

from dotenv import load_dotenv

from elephant.infra.redis_client import create_redis, get_party_ttl_seconds
from elephant.party_store import PartyStore, RedisPartyStore


def _load_env() -> None:
    for name in (".env.local", ".env"):
        path = Path.cwd() / name
        if path.exists():
            load_dotenv(dotenv_path=path, override=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect and clean up white elephant parties",
        prog="elephant-admin",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("list", help="List all parties")

    get_parser = subparsers.add_parser("get", help="Print a party record")
    get_parser.add_argument("party_id", help="Party id")

    delete_parser = subparsers.add_parser("delete", help="Delete a party")
    delete_parser.add_argument("party_id", help="Party id")

    clear_parser = subparsers.add_parser("clear", help="Delete ALL parties")
    clear_parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    return parser


def cmd_list(store: PartyStore, args) -> int:
    ids = store.list_ids()
    print(f"Found {len(ids)} parties:\n")
    for party_id in ids:
        party = store.get(party_id)
        if party is None:
            continue
        print(f"  {party_id} - {len(party.players)} players - {party.state.value}")
    return 0


def cmd_get(store: PartyStore, args) -> int:
    party = store.get(args.party_id)
    if party is None:
        print("Party not found")
        return 1
    print(party.model_dump_json(indent=2))
    return 0


def cmd_delete(store: PartyStore, args) -> int:
    if not store.delete(args.party_id):
        print(f"Party not found: {args.party_id}")
        return 1
    print(f"Deleted party: {args.party_id}")
    return 0


def cmd_clear(store: PartyStore, args, confirm: Callable[[str], str] = input) -> int:
    ids = store.list_ids()
    if not ids:
        print("No parties to delete")
        return 0

    if not args.yes:
        answer = confirm("Are you sure you want to delete ALL parties? (yes/no): ")
        if answer.strip().lower() != "yes":
            print("Cancelled")
            return 1

    print(f"Deleting {len(ids)} parties...")
    for party_id in ids:
        store.delete(party_id)
        print(f"  Deleted: {party_id}")
    print("Done!")
    return 0


COMMANDS = {
    "list": cmd_list,
    "get": cmd_get,
    "delete": cmd_delete,
    "clear": cmd_clear,
}


def main(argv: list[str] | None = None, store: PartyStore | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    if store is None:
        _load_env()
        store = RedisPartyStore(create_redis(), ttl_seconds=get_party_ttl_seconds())

    return command(store, args)


if __name__ == "__main__":
    sys.exit(main())
