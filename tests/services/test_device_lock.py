# tests/services/test_device_lock.py
"""Tests for binding projects to display devices."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from expo_poll.core.errors import DeviceRegistrationConflictError, PersistenceFailureError
from expo_poll.models import ProjectLink
from expo_poll.services.device_lock import DEVICE_LIMIT_REASON, DeviceLockRegistry


def test_first_n_devices_are_allowed_and_next_is_denied(db_session) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=3)

    for fingerprint in ("dev-A", "dev-B", "dev-C"):
        assert registry.authorize(42, fingerprint).allowed

    denied = registry.authorize(42, "dev-D")
    assert not denied.allowed
    assert denied.reason == DEVICE_LIMIT_REASON


def test_bound_devices_stay_allowed_after_limit(db_session) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=3)
    for fingerprint in ("dev-A", "dev-B", "dev-C"):
        registry.authorize(42, fingerprint)
    registry.authorize(42, "dev-D")

    for fingerprint in ("dev-A", "dev-B", "dev-C"):
        assert registry.authorize(42, fingerprint).allowed
    assert registry.bound_fingerprints(42) == ["dev-A", "dev-B", "dev-C"]


def test_repeat_authorization_does_not_add_rows(db_session) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=3)
    registry.authorize(42, "dev-A")
    registry.authorize(42, "dev-A")

    links = db_session.scalars(select(ProjectLink)).all()
    assert [(link.project_id, link.fingerprint, link.slot) for link in links] == [(42, "dev-A", 0)]


def test_projects_are_bound_independently(db_session) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=1)
    assert registry.authorize(1, "dev-A").allowed
    assert registry.authorize(2, "dev-B").allowed
    assert not registry.authorize(1, "dev-B").allowed


def test_single_device_policy(db_session) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=1)
    assert registry.authorize(42, "dev-A").allowed
    assert not registry.authorize(42, "dev-B").allowed
    assert registry.authorize(42, "dev-A").allowed


def test_freed_slot_is_reused(db_session) -> None:
    db_session.add_all(
        [
            ProjectLink(project_id=42, fingerprint="dev-A", slot=0),
            ProjectLink(project_id=42, fingerprint="dev-C", slot=2),
        ]
    )
    db_session.commit()

    registry = DeviceLockRegistry(db_session, max_devices=3)
    assert registry.authorize(42, "dev-B").allowed
    slots = db_session.scalars(
        select(ProjectLink.slot).where(ProjectLink.fingerprint == "dev-B")
    ).all()
    assert slots == [1]


def test_lost_race_for_last_slot_is_denied(db_session, mocker) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=1)
    # Another device committed slot 0 after this registry read the empty project.
    db_session.add(ProjectLink(project_id=42, fingerprint="dev-A", slot=0))
    db_session.commit()
    current = registry._links(42)
    mocker.patch.object(registry, "_links", side_effect=[[], current])

    decision = registry.authorize(42, "dev-B")

    assert not decision.allowed
    assert db_session.scalars(select(ProjectLink.fingerprint)).all() == ["dev-A"]


def test_lost_race_with_free_slot_left_is_a_conflict(db_session, mocker) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=3)
    db_session.add(ProjectLink(project_id=42, fingerprint="dev-A", slot=0))
    db_session.commit()
    current = registry._links(42)
    mocker.patch.object(registry, "_links", side_effect=[[], current])

    with pytest.raises(DeviceRegistrationConflictError):
        registry.authorize(42, "dev-B")


def test_same_device_racing_itself_is_allowed(db_session, mocker) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=3)
    db_session.add(ProjectLink(project_id=42, fingerprint="dev-A", slot=0))
    db_session.commit()
    current = registry._links(42)
    mocker.patch.object(registry, "_links", side_effect=[[], current])

    assert registry.authorize(42, "dev-A").allowed


def test_read_failure_raises_persistence_failure(db_session, mocker) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=3)
    mocker.patch.object(
        db_session,
        "scalars",
        side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
    )

    with pytest.raises(PersistenceFailureError):
        registry.authorize(42, "dev-A")


def test_write_failure_raises_persistence_failure(db_session, mocker) -> None:
    registry = DeviceLockRegistry(db_session, max_devices=3)
    mocker.patch.object(
        db_session,
        "commit",
        side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
    )

    with pytest.raises(PersistenceFailureError):
        registry.authorize(42, "dev-A")


def test_requires_at_least_one_device(db_session) -> None:
    with pytest.raises(ValueError):
        DeviceLockRegistry(db_session, max_devices=0)
