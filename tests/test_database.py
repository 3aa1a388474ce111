from __future__ import annotations

import pytest

from clawhub.database import Database


def test_create_and_fetch_user(database: Database) -> None:
    user = database.create_user("  Octo Cat ", "Octo@Example.com", image="https://example.com/a.png")

    fetched = database.get_user(user.id)
    assert fetched == user
    assert fetched.name == "Octo Cat"
    assert fetched.email == "octo@example.com"
    assert fetched.is_active
    assert fetched.github_created_at is None
    assert fetched.github_profile_synced_at is None

    assert database.get_user(user.id + 100) is None


def test_duplicate_email_is_rejected(database: Database) -> None:
    database.create_user("first", "dup@example.com")
    with pytest.raises(ValueError):
        database.create_user("second", "DUP@example.com")


def test_github_link_round_trip(database: Database) -> None:
    user = database.create_user("linked")
    assert database.get_github_provider_account_id(user.id) is None

    database.link_github_account(user.id, " 12345 ")
    assert database.get_github_provider_account_id(user.id) == "12345"


def test_github_account_cannot_be_linked_twice(database: Database) -> None:
    first = database.create_user("first")
    second = database.create_user("second")
    database.link_github_account(first.id, "12345")

    with pytest.raises(ValueError):
        database.link_github_account(second.id, "12345")
    with pytest.raises(ValueError):
        database.link_github_account(first.id, "67890")


def test_sync_github_profile_updates_only_given_fields(database: Database) -> None:
    user = database.create_user("old", image="https://example.com/old.png")

    database.sync_github_profile(user.id, synced_at=1_000, image="https://example.com/new.png")

    refreshed = database.get_user(user.id)
    assert refreshed is not None
    assert refreshed.name == "old"
    assert refreshed.image == "https://example.com/new.png"
    assert refreshed.github_profile_synced_at == 1_000


def test_deactivate_and_delete(database: Database) -> None:
    user = database.create_user("leaving")

    deactivated = database.deactivate_user(user.id)
    assert deactivated.deactivated_at is not None
    assert not deactivated.is_active

    other = database.create_user("deleting")
    database.delete_user(other.id)
    refreshed = database.get_user(other.id)
    assert refreshed is not None
    assert refreshed.deleted_at is not None
    assert not refreshed.is_active

    with pytest.raises(ValueError):
        database.deactivate_user(999)


def test_finalize_deleted_user_moves_deletion_to_deactivation(database: Database) -> None:
    user = database.create_user("legacy")
    database.delete_user(user.id)
    deleted_at = database.get_user(user.id).deleted_at

    assert database.finalize_deleted_user(user.id) is True

    refreshed = database.get_user(user.id)
    assert refreshed is not None
    assert refreshed.deleted_at is None
    assert refreshed.deactivated_at == deleted_at
    assert not refreshed.is_active

    assert database.finalize_deleted_user(user.id) is False
    active = database.create_user("active")
    assert database.finalize_deleted_user(active.id) is False
    assert database.get_user(active.id).deactivated_at is None


def test_set_github_created_at_and_list(database: Database) -> None:
    first = database.create_user("a")
    second = database.create_user("b")
    database.set_github_created_at(second.id, 1577836800000)

    users = database.list_users()
    assert [user.id for user in users] == [first.id, second.id]
    assert users[1].github_created_at == 1577836800000
