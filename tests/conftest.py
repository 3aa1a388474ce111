from __future__ import annotations

from pathlib import Path

import pytest

from clawhub.database import Database
from clawhub.github import IdentityResolver
from helpers import FakeGitHub


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "clawhub.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture()
def resolver(database: Database, github: FakeGitHub) -> IdentityResolver:
    return IdentityResolver(database, github.client())
