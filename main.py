"""Command-line interface for the clawhub identity service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import Sequence

from clawhub.account_age import AccountAgeGate
from clawhub.config import Settings, load_settings, resolve_config_path
from clawhub.database import Database
from clawhub.errors import GitHubIdentityError
from clawhub.github import GitHubClient, IdentityResolver
from clawhub.profile_sync import ProfileSyncer
from clawhub.timeutil import format_ms

logger = logging.getLogger("clawhub.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="clawhub identity service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the registry database")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP identity service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for the HTTP API (default: 8080)",
    )

    check_parser = subparsers.add_parser(
        "check-age", help="Verify that a user's GitHub account is old enough to publish"
    )
    check_parser.add_argument("user_id", type=int, help="Registry user id")

    sync_parser = subparsers.add_parser(
        "sync-profile", help="Refresh a user's name and avatar from GitHub"
    )
    sync_parser.add_argument("user_id", type=int, help="Registry user id")

    subparsers.add_parser("list-users", help="List registered users and their GitHub state")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "check-age", "sync-profile", "list-users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings() -> Settings:
    config_path = resolve_config_path(os.getenv("CLAWHUB_CONFIG"))
    return load_settings(config_path)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(*, settings: Settings, database: Database, host: str, port: int) -> None:
    from clawhub.service import create_app
    import uvicorn

    logger.info("Starting identity service on http://%s:%s", host, port)
    app = create_app(database=database, settings=settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _check_age(settings: Settings, database: Database, user_id: int) -> int:
    with GitHubClient(settings.github) as client:
        gate = AccountAgeGate(database, IdentityResolver(database, client))
        try:
            gate.require_account_age(user_id)
        except GitHubIdentityError as exc:
            print(f"User {user_id} rejected ({exc.kind.value}): {exc}")
            return 1
    print(f"User {user_id} passes the GitHub account age check.")
    return 0


def _sync_profile(settings: Settings, database: Database, user_id: int) -> int:
    with GitHubClient(settings.github) as client:
        syncer = ProfileSyncer(
            database,
            IdentityResolver(database, client),
            window=settings.profile_sync_window,
        )
        try:
            updated = syncer.sync_profile(user_id)
        except GitHubIdentityError as exc:
            print(f"Profile sync for user {user_id} failed ({exc.kind.value}): {exc}")
            return 1
    if updated:
        print(f"Profile for user {user_id} updated from GitHub.")
    else:
        print(f"Profile for user {user_id} left unchanged.")
    return 0


def _list_users(database: Database) -> None:
    users = database.list_users()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Name':<24}  {'Status':<8}  {'GitHub created':<24}  Profile synced")
    print("-" * 90)
    for user in users:
        state = "active" if user.is_active else "disabled"
        name = user.name or "<no name>"
        print(
            f"{user.id:>4}  {name:<24}  {state:<8}  "
            f"{format_ms(user.github_created_at):<24}  {format_ms(user.github_profile_synced_at)}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = _load_settings()
    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(settings=settings, database=database, host=args.host, port=args.port)
    elif args.command == "check-age":
        return _check_age(settings, database, args.user_id)
    elif args.command == "sync-profile":
        return _sync_profile(settings, database, args.user_id)
    elif args.command == "list-users":
        _list_users(database)
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
