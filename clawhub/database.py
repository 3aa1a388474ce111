"""SQLite-backed persistence for registry users and their linked GitHub identities."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .models import User

GITHUB_PROVIDER = "github"


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the registry database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "clawhub.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _optional_int(value: object) -> Optional[int]:
    if value is None:
        return None
    return int(value)  # type: ignore[arg-type]


class Database:
    """Simple wrapper around SQLite for persisting users and GitHub links."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT,
                    email TEXT UNIQUE,
                    image TEXT,
                    created_at TEXT NOT NULL,
                    deactivated_at TEXT,
                    deleted_at TEXT,
                    github_created_at INTEGER,
                    github_profile_synced_at INTEGER
                );

                CREATE TABLE IF NOT EXISTS auth_accounts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    provider TEXT NOT NULL,
                    provider_account_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (user_id, provider),
                    UNIQUE (provider, provider_account_id)
                );

                CREATE INDEX IF NOT EXISTS idx_auth_accounts_user_id ON auth_accounts(user_id);
                """
            )

            columns = {
                row["name"]
                for row in conn.execute("PRAGMA table_info(users)").fetchall()
            }
            if "deleted_at" not in columns:
                conn.execute("ALTER TABLE users ADD COLUMN deleted_at TEXT")
            if "github_profile_synced_at" not in columns:
                conn.execute("ALTER TABLE users ADD COLUMN github_profile_synced_at INTEGER")

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(
        self,
        name: Optional[str],
        email: Optional[str] = None,
        *,
        image: Optional[str] = None,
    ) -> User:
        """Create a new user record."""

        created_at = _current_timestamp()
        normalized_name = name.strip() if name and name.strip() else None
        normalized_email = email.strip().lower() if email else None

        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (name, email, image, created_at) VALUES (?, ?, ?, ?)",
                    (normalized_name, normalized_email, image, _serialize_datetime(created_at)),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("A user with that email already exists") from exc
            user_id = cursor.lastrowid

        user = self.get_user(user_id)
        if user is None:
            raise RuntimeError("Failed to load user after creation")
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_users(self) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY id").fetchall()
        return [self._row_to_user(row) for row in rows]

    def deactivate_user(self, user_id: int) -> User:
        """Disable an account. Deactivation is permanent."""

        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET deactivated_at = COALESCE(deactivated_at, ?) WHERE id = ?",
                (_serialize_datetime(_current_timestamp()), user_id),
            )
            if cursor.rowcount == 0:
                raise ValueError("User not found")

        refreshed = self.get_user(user_id)
        if refreshed is None:
            raise ValueError("User not found")
        return refreshed

    def delete_user(self, user_id: int) -> None:
        """Soft-delete an account on the owner's request."""

        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET deleted_at = COALESCE(deleted_at, ?) WHERE id = ?",
                (_serialize_datetime(_current_timestamp()), user_id),
            )
            if cursor.rowcount == 0:
                raise ValueError("User not found")

    def finalize_deleted_user(self, user_id: int) -> bool:
        """Turn a legacy ``deleted_at`` into a permanent ``deactivated_at``.

        Returns ``True`` when the row was migrated. Users that are already
        deactivated, or were never deleted, are left untouched.
        """

        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE users
                SET deactivated_at = deleted_at, deleted_at = NULL
                WHERE id = ? AND deleted_at IS NOT NULL AND deactivated_at IS NULL
                """,
                (user_id,),
            )
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # GitHub identity linkage
    # ------------------------------------------------------------------
    def link_github_account(self, user_id: int, provider_account_id: str) -> None:
        """Link a GitHub numeric account id to an existing user."""

        with self._connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO auth_accounts (user_id, provider, provider_account_id, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        GITHUB_PROVIDER,
                        provider_account_id.strip(),
                        _serialize_datetime(_current_timestamp()),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(
                    "User not found or a GitHub account is already linked"
                ) from exc

    def get_github_provider_account_id(self, user_id: int) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT provider_account_id FROM auth_accounts WHERE user_id = ? AND provider = ?",
                (user_id, GITHUB_PROVIDER),
            ).fetchone()
        if row is None:
            return None
        return str(row["provider_account_id"])

    # ------------------------------------------------------------------
    # GitHub-derived fields
    # ------------------------------------------------------------------
    def set_github_created_at(self, user_id: int, github_created_at: int) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE users SET github_created_at = ? WHERE id = ?",
                (int(github_created_at), user_id),
            )

    def sync_github_profile(
        self,
        user_id: int,
        *,
        synced_at: int,
        name: Optional[str] = None,
        image: Optional[str] = None,
    ) -> None:
        """Write the changed display fields and the sync timestamp in one update."""

        updates: List[str] = []
        values: List[object] = []
        if name is not None:
            updates.append("name = ?")
            values.append(name)
        if image is not None:
            updates.append("image = ?")
            values.append(image)
        updates.append("github_profile_synced_at = ?")
        values.append(int(synced_at))
        values.append(user_id)

        query = f"UPDATE users SET {', '.join(updates)} WHERE id = ?"
        with self._connect() as conn:
            conn.execute(query, values)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=row["name"],
            image=row["image"],
            email=row["email"],
            created_at=datetime.fromisoformat(str(row["created_at"])),
            deactivated_at=_parse_datetime(row["deactivated_at"]),
            deleted_at=_parse_datetime(row["deleted_at"]),
            github_created_at=_optional_int(row["github_created_at"]),
            github_profile_synced_at=_optional_int(row["github_profile_synced_at"]),
        )


__all__ = ["Database", "GITHUB_PROVIDER", "resolve_database_path"]
