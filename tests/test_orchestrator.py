"""
Unit tests for the request orchestrator.
Tests that failed AI calls are free and successful ones are debited and tracked.
"""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import AIServiceError, CooldownActive, InsufficientCredits, ToolDisabled
from app.db.models import AIRequest, AIRequestStatus, Wallet
from app.services.config_cache import ConfigSnapshot
from app.services.orchestrator import run_tool
from app.services.usage_gate import UsageGate
from app.services.wallet_service import CreditLedger

PRICING = {"summary": 2, "questions": 2, "explain": 1, "rewrite": 1}


@pytest.fixture
def cache(make_cache):
    return make_cache(
        tools={
            "summary": {"enabled": True, "cooldown_seconds": 0, "cost_multiplier": 1.0},
            "explain": {"enabled": True, "cooldown_seconds": 60, "cost_multiplier": 1.0},
            "rewrite": {"enabled": False},
        },
        pricing=PRICING,
        daily_free_credits=3,
    )


@pytest.fixture
def ledger(cache):
    return CreditLedger(cache, today=lambda: date(2026, 3, 14))


@pytest.fixture
def gate(cache):
    return UsageGate(cache)


def _requests(db, user_id):
    db.expire_all()
    return db.query(AIRequest).filter(AIRequest.user_id == user_id).order_by(AIRequest.id).all()


def test_successful_run_debits_and_records(db, ledger, gate, make_user):
    user = make_user(paid_credits=5)

    result = run_tool(db, user.id, "summary", lambda: "a summary", ledger, gate)

    assert result.output == "a summary"
    assert result.credits_used == 2
    assert result.remaining_credits == 6
    records = _requests(db, user.id)
    assert len(records) == 1
    assert records[0].status == AIRequestStatus.SUCCESS
    assert records[0].credits_used == 2
    assert records[0].request_id == result.request_id
    assert records[0].completed_at is not None


def test_failed_ai_call_is_free(db, ledger, gate, make_user):
    user = make_user(paid_credits=5)

    def boom():
        raise RuntimeError("provider timeout")

    with pytest.raises(AIServiceError):
        run_tool(db, user.id, "summary", boom, ledger, gate)

    wallet = ledger.get_wallet(db, user.id)
    assert wallet.total_credits == 8
    records = _requests(db, user.id)
    assert records[0].status == AIRequestStatus.FAILED
    assert "provider timeout" in records[0].error_message


def test_failed_call_does_not_start_cooldown(db, ledger, gate, make_user):
    user = make_user(paid_credits=5)

    def boom():
        raise AIServiceError(cause="empty response")

    with pytest.raises(AIServiceError):
        run_tool(db, user.id, "explain", boom, ledger, gate)

    result = run_tool(db, user.id, "explain", lambda: "ok", ledger, gate)
    assert result.output == "ok"

    with pytest.raises(CooldownActive):
        run_tool(db, user.id, "explain", lambda: "again", ledger, gate)


def test_insufficient_credits_skips_ai_call(db, ledger, gate, make_user):
    user = make_user(paid_credits=0)
    calls = []
    ledger.deduct_credits(db, user.id, "explain", cost=2)

    with pytest.raises(InsufficientCredits) as exc_info:
        run_tool(db, user.id, "summary", lambda: calls.append(1), ledger, gate)

    assert exc_info.value.required == 2
    assert exc_info.value.available == 1
    assert calls == []
    assert _requests(db, user.id) == []


def test_disabled_tool_skips_ai_call(db, ledger, gate, make_user):
    user = make_user(paid_credits=5)
    calls = []

    with pytest.raises(ToolDisabled):
        run_tool(db, user.id, "rewrite", lambda: calls.append(1), ledger, gate)
    assert calls == []


def test_cost_snapshot_used_for_debit(db, ledger, gate, cache, make_user):
    user = make_user(paid_credits=10)

    def invoke_and_reprice():
        # Price change published while the AI call is running
        cache._loader.snapshot = ConfigSnapshot(
            tools={"summary": {"enabled": True, "cooldown_seconds": 0, "cost_multiplier": 1.0}},
            pricing={**PRICING, "summary": 7},
            daily_free_credits=3,
        )
        cache.invalidate()
        return "done"

    result = run_tool(db, user.id, "summary", invoke_and_reprice, ledger, gate)

    assert ledger.get_credit_cost("summary") == 7
    assert result.credits_used == 2
    assert ledger.get_wallet(db, user.id).total_credits == 11


def test_debit_failure_after_ai_call_marks_request_failed(db, ledger, gate, make_user):
    user = make_user(paid_credits=0)

    def spend_elsewhere():
        # A parallel request drains the balance during the AI call
        ledger.deduct_credits(db, user.id, "explain", cost=3)
        return "too late"

    with pytest.raises(InsufficientCredits):
        run_tool(db, user.id, "summary", spend_elsewhere, ledger, gate)

    records = _requests(db, user.id)
    assert records[0].status == AIRequestStatus.FAILED
    assert records[0].error_message.startswith("Debit failed")
    db.expire_all()
    assert db.query(Wallet).filter(Wallet.user_id == user.id).one().paid_credits == 0


def test_database_error_during_debit_marks_request_failed(db, ledger, gate, make_user, monkeypatch):
    user = make_user(paid_credits=5)

    def locked(*args, **kwargs):
        raise OperationalError("UPDATE wallets", {}, Exception("database is locked"))

    monkeypatch.setattr(ledger, "deduct_credits", locked)

    with pytest.raises(OperationalError):
        run_tool(db, user.id, "summary", lambda: "never delivered", ledger, gate)

    records = _requests(db, user.id)
    assert [r.status for r in records] == [AIRequestStatus.FAILED]
    assert "database is locked" in records[0].error_message
    assert ledger.get_wallet(db, user.id).total_credits == 8
