"""
Unit tests for the usage gate.
Tests enabled flags and per-user cooldowns.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import CooldownActive, ToolDisabled
from app.db.models import AIRequest, AIRequestStatus
from app.services.usage_gate import UsageGate

NOW = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def gate(make_cache):
    cache = make_cache(tools={
        "summary": {"enabled": True, "cooldown_seconds": 60},
        "rewrite": {"enabled": False, "cooldown_seconds": 0},
        "explain": {"enabled": True, "cooldown_seconds": 0},
    })
    return UsageGate(cache, clock=lambda: NOW)


def _request(db, user_id, tool_type, seconds_ago, status=AIRequestStatus.SUCCESS):
    db.add(AIRequest(
        user_id=user_id,
        tool_type=tool_type,
        credits_used=1,
        status=status,
        created_at=NOW - timedelta(seconds=seconds_ago),
    ))
    db.commit()


def test_no_previous_request_is_allowed(db, gate, make_user):
    user = make_user()

    status = gate.check_cooldown(db, user.id, "summary")

    assert status.allowed is True
    assert status.remaining_seconds == 0


def test_cooldown_active_reports_remaining(db, gate, make_user):
    user = make_user()
    _request(db, user.id, "summary", seconds_ago=30)

    status = gate.check_cooldown(db, user.id, "summary")

    assert status.allowed is False
    assert status.remaining_seconds == 30


def test_elapsed_seconds_are_floored(db, gate, make_user):
    user = make_user()
    db.add(AIRequest(
        user_id=user.id, tool_type="summary", credits_used=1, status=AIRequestStatus.SUCCESS,
        created_at=NOW - timedelta(seconds=30, milliseconds=900),
    ))
    db.commit()

    assert gate.check_cooldown(db, user.id, "summary").remaining_seconds == 30


def test_cooldown_expired_is_allowed(db, gate, make_user):
    user = make_user()
    _request(db, user.id, "summary", seconds_ago=61)

    assert gate.check_cooldown(db, user.id, "summary").allowed is True


def test_exactly_at_cooldown_boundary_is_allowed(db, gate, make_user):
    user = make_user()
    _request(db, user.id, "summary", seconds_ago=60)

    assert gate.check_cooldown(db, user.id, "summary").allowed is True


def test_failed_requests_do_not_start_cooldown(db, gate, make_user):
    user = make_user()
    _request(db, user.id, "summary", seconds_ago=5, status=AIRequestStatus.FAILED)
    _request(db, user.id, "summary", seconds_ago=2, status=AIRequestStatus.PENDING)

    assert gate.check_cooldown(db, user.id, "summary").allowed is True


def test_cooldown_uses_latest_success(db, gate, make_user):
    user = make_user()
    _request(db, user.id, "summary", seconds_ago=500)
    _request(db, user.id, "summary", seconds_ago=10)

    assert gate.check_cooldown(db, user.id, "summary").remaining_seconds == 50


def test_cooldown_is_per_tool_and_per_user(db, gate, make_user):
    user = make_user()
    other = make_user(email="other@example.com")
    _request(db, user.id, "summary", seconds_ago=10)

    assert gate.check_cooldown(db, other.id, "summary").allowed is True
    assert gate.check_cooldown(db, user.id, "explain").allowed is True


def test_enforce_raises_cooldown_active(db, gate, make_user):
    user = make_user()
    _request(db, user.id, "summary", seconds_ago=45)

    with pytest.raises(CooldownActive) as exc_info:
        gate.enforce(db, user.id, "summary")

    assert exc_info.value.remaining_seconds == 15
    assert exc_info.value.status_code == 429
    assert exc_info.value.to_detail()["remaining_seconds"] == 15


def test_disabled_tool_is_rejected(db, gate, make_user):
    user = make_user()

    with pytest.raises(ToolDisabled) as exc_info:
        gate.enforce(db, user.id, "rewrite")
    assert exc_info.value.status_code == 403


def test_unconfigured_tool_is_enabled_without_cooldown(db, gate, make_user):
    user = make_user()
    _request(db, user.id, "questions", seconds_ago=1)

    gate.enforce(db, user.id, "questions")
