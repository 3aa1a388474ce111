import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from clawhub.database import Database, resolve_database_path
from clawhub.github import assert_github_numeric_id
from clawhub.errors import GitHubLookupFailed


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a clawhub registry user linked to GitHub")
    parser.add_argument("name", help="Display name for the user (usually the GitHub login)")
    parser.add_argument(
        "github_id",
        help="Numeric GitHub account id to link (see https://api.github.com/users/<login>)",
    )
    parser.add_argument("--email", default=None, help="Optional unique email address")
    parser.add_argument("--image", default=None, help="Optional avatar URL")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to CLAWHUB_DB_PATH or data/clawhub.sqlite3)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    github_id = args.github_id.strip()
    try:
        assert_github_numeric_id(github_id)
    except GitHubLookupFailed:
        print(f"Error: {github_id!r} is not a numeric GitHub account id", file=sys.stderr)
        return 1

    db_env = args.db_path or os.getenv("CLAWHUB_DB_PATH")
    db_path = resolve_database_path(db_env)

    database = Database(db_path)
    database.initialize()

    try:
        user = database.create_user(args.name, args.email, image=args.image)
        database.link_github_account(user.id, github_id)
    except ValueError as exc:  # duplicates, etc.
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.name} (GitHub id {github_id})")
    print("The GitHub account age is looked up on the first publish attempt.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
