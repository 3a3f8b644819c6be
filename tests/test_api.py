"""
Integration tests for the HTTP API.
Tests signup, wallet, AI tool runs, usage history, admin config and errors.
"""
import json

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.auth_dependency import get_db
from app.core.rate_limit import reset_rate_limits
from app.core.security import create_access_token
from app.db.models import AIRequest, AIRequestStatus, User, Wallet
from app.llm.provider import LLMProvider, LLMResponse
from app.services.ai_service import StudyAIService, get_ai_service
from app.services.config_cache import ConfigSnapshot
from app.services.usage_gate import UsageGate, get_usage_gate
from app.services.wallet_service import CreditLedger, get_ledger

STUDY_TEXT = "Photosynthesis converts light energy into chemical energy stored in glucose. " * 3


class FakeProvider(LLMProvider):
    def __init__(self):
        self.prompts = []
        self.fail = False

    def chat(self, messages, model, temperature=0.7, max_tokens=None, **kwargs):
        prompt = messages[0]["content"]
        self.prompts.append(prompt)
        if self.fail:
            raise RuntimeError("upstream 503")
        if "practice questions" in prompt:
            content = json.dumps([
                {"question": "What does photosynthesis produce?", "options": ["Glucose", "Salt", "Iron", "Helium"],
                 "answer": "A", "explanation": "Glucose stores the energy."},
            ])
            content = f"```json\n{content}\n```"
        else:
            content = "- **Photosynthesis** stores light energy as glucose"
        return LLMResponse(content=content, tokens_in=10, tokens_out=5, model=model)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def cache(make_cache):
    return make_cache(
        tools={
            "summary": {"enabled": True, "min_chars": 20, "max_chars": 2000, "cooldown_seconds": 0, "cost_multiplier": 1.0},
            "questions": {"enabled": True, "min_chars": 20, "max_chars": 2000, "cooldown_seconds": 0, "cost_multiplier": 1.0},
            "explain": {"enabled": True, "min_chars": 20, "max_chars": 2000, "cooldown_seconds": 60, "cost_multiplier": 2.0},
            "rewrite": {"enabled": False},
        },
        pricing={"summary": 1, "questions": 2, "explain": 1, "rewrite": 1},
        daily_free_credits=3,
    )


@pytest.fixture
def client(session_factory, cache, provider):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger] = lambda: CreditLedger(cache)
    app.dependency_overrides[get_usage_gate] = lambda: UsageGate(cache)
    app.dependency_overrides[get_ai_service] = lambda: StudyAIService(provider=provider, cache=cache)
    reset_rate_limits()
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_rate_limits()


@pytest.fixture
def student(make_user):
    return make_user(paid_credits=0)


@pytest.fixture
def auth_headers(student):
    return {"Authorization": f"Bearer {create_access_token({'sub': student.email})}"}


@pytest.fixture
def admin_headers(make_user):
    admin = make_user(email="admin@example.com", role="admin")
    return {"Authorization": f"Bearer {create_access_token({'sub': admin.email})}"}


# ============================================
# Auth
# ============================================

def test_signup_creates_user_and_wallet(client, db):
    response = client.post("/auth/signup", json={
        "full_name": "New Student",
        "email": "new@example.com",
        "password": "testpass123",
    })

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "User created successfully"
    assert data["free_credits"] == 3
    assert data["paid_credits"] == 0

    user = db.query(User).filter(User.email == "new@example.com").one()
    wallet = db.query(Wallet).filter(Wallet.user_id == user.id).one()
    assert wallet.paid_credits == 0


def test_signup_duplicate_email(client, student):
    response = client.post("/auth/signup", json={
        "full_name": "Copy",
        "email": student.email,
        "password": "testpass123",
    })

    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_login_returns_token(client, student):
    response = client.post("/auth/login", data={"username": student.email, "password": "testpass123"})

    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"
    assert response.json()["access_token"]


def test_login_wrong_password(client, student):
    response = client.post("/auth/login", data={"username": student.email, "password": "wrong-password"})
    assert response.status_code == 401


def test_wallet_requires_auth(client):
    assert client.get("/wallet").status_code == 401


# ============================================
# Wallet
# ============================================

def test_get_wallet(client, auth_headers, student):
    response = client.get("/wallet", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "user_id": student.id,
        "free_credits": 3,
        "paid_credits": 0,
        "total_credits": 3,
        "used_today": 0,
        "daily_free_limit": 3,
    }


def test_get_tool_costs(client, auth_headers):
    response = client.get("/wallet/costs", headers=auth_headers)

    assert response.status_code == 200
    costs = {tool["tool_type"]: tool for tool in response.json()["tools"]}
    assert costs["explain"]["credits_required"] == 2
    assert costs["explain"]["multiplier"] == 2.0
    assert costs["questions"]["credits_required"] == 2


def test_estimate(client, auth_headers):
    response = client.post("/ai/estimate", json={"tool_type": "explain"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"tool_type": "explain", "credits_required": 2}


def test_estimate_unknown_tool(client, auth_headers):
    response = client.post("/ai/estimate", json={"tool_type": "translate"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_TOOL"


def test_estimate_rejects_priced_but_unsupported_tool(client, auth_headers, cache):
    cache._loader.snapshot = ConfigSnapshot(pricing={"summary": 1, "flashcards": 3})
    cache.invalidate()

    response = client.post("/ai/estimate", json={"tool_type": "flashcards"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_TOOL"


# ============================================
# AI tools
# ============================================

def test_summary_debits_free_credits(client, auth_headers, provider):
    response = client.post("/ai/summary", json={"text": STUDY_TEXT, "mode": "bullet_list"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["summary"].startswith("- **Photosynthesis**")
    assert data["mode"] == "bullet_list"
    assert data["credits_used"] == 1
    assert data["remaining_credits"] == 2
    assert "bullet points" in provider.prompts[0]

    wallet = client.get("/wallet", headers=auth_headers).json()
    assert wallet["used_today"] == 1


def test_questions_parsed_from_json(client, auth_headers):
    response = client.post(
        "/ai/questions",
        json={"text": STUDY_TEXT, "question_type": "mcq", "count": 1},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["questions"][0]["answer"] == "A"
    assert len(data["questions"][0]["options"]) == 4
    assert data["credits_used"] == 2


def test_explain_then_cooldown(client, auth_headers):
    first = client.post("/ai/explain", json={"text": STUDY_TEXT, "mode": "exam"}, headers=auth_headers)
    assert first.status_code == 200
    assert first.json()["credits_used"] == 2

    second = client.post("/ai/explain", json={"text": STUDY_TEXT, "mode": "exam"}, headers=auth_headers)
    assert second.status_code == 429
    detail = second.json()["detail"]
    assert detail["code"] == "COOLDOWN_ACTIVE"
    assert 0 < detail["remaining_seconds"] <= 60


def test_disabled_tool_returns_403(client, auth_headers):
    response = client.post("/ai/rewrite", json={"text": STUDY_TEXT, "style": "academic"}, headers=auth_headers)

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "TOOL_DISABLED"


def test_insufficient_credits_returns_402(client, auth_headers):
    for _ in range(3):
        assert client.post("/ai/summary", json={"text": STUDY_TEXT}, headers=auth_headers).status_code == 200

    response = client.post("/ai/summary", json={"text": STUDY_TEXT}, headers=auth_headers)

    assert response.status_code == 402
    detail = response.json()["detail"]
    assert detail["code"] == "INSUFFICIENT_CREDITS"
    assert detail["required"] == 1
    assert detail["available"] == 0
    assert detail["shortfall"] == 1


def test_provider_failure_returns_502_and_is_free(client, auth_headers, provider, db, student):
    provider.fail = True

    response = client.post("/ai/summary", json={"text": STUDY_TEXT}, headers=auth_headers)

    assert response.status_code == 502
    assert response.json()["detail"]["code"] == "AI_SERVICE_ERROR"
    assert client.get("/wallet", headers=auth_headers).json()["total_credits"] == 3
    record = db.query(AIRequest).filter(AIRequest.user_id == student.id).one()
    assert record.status == AIRequestStatus.FAILED


def test_text_shorter_than_tool_minimum(client, auth_headers):
    response = client.post("/ai/summary", json={"text": "too short"}, headers=auth_headers)

    assert response.status_code == 400
    assert "minimum 20" in response.json()["detail"]


def test_request_validation(client, auth_headers):
    assert client.post("/ai/summary", json={"text": "   "}, headers=auth_headers).status_code == 422
    assert client.post("/ai/summary", json={"text": STUDY_TEXT, "mode": "poem"}, headers=auth_headers).status_code == 422
    assert client.post(
        "/ai/questions", json={"text": STUDY_TEXT, "count": 11}, headers=auth_headers
    ).status_code == 422
    assert client.post("/ai/summary", json={"text": "x" * 10001}, headers=auth_headers).status_code == 422


# ============================================
# Usage history
# ============================================

def test_usage_history_and_stats(client, auth_headers, provider):
    client.post("/ai/summary", json={"text": STUDY_TEXT}, headers=auth_headers)
    provider.fail = True
    client.post("/ai/summary", json={"text": STUDY_TEXT}, headers=auth_headers)

    history = client.get("/users/me/usage", headers=auth_headers)
    assert history.status_code == 200
    assert history.json()["total"] == 2
    statuses = sorted(entry["status"] for entry in history.json()["entries"])
    assert statuses == ["failed", "success"]

    stats = client.get("/users/me/usage/stats", headers=auth_headers).json()
    assert stats["total_requests"] == 1
    assert stats["total_credits_used"] == 1
    assert stats["tools"][0]["tool_type"] == "summary"


def test_get_me(client, auth_headers, student):
    client.post("/ai/summary", json={"text": STUDY_TEXT}, headers=auth_headers)

    response = client.get("/users/me", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == student.email
    assert data["role"] == "user"
    assert data["credits"] == {"free_credits": 2, "paid_credits": 0, "total_credits": 2}


def test_get_me_requires_auth(client):
    assert client.get("/users/me").status_code == 401


# ============================================
# Saved results
# ============================================

def test_save_result_from_request(client, auth_headers):
    run = client.post("/ai/summary", json={"text": STUDY_TEXT, "mode": "bullet_list"}, headers=auth_headers).json()

    response = client.post("/history/save", json={
        "tool_type": "summary",
        "input_text": STUDY_TEXT,
        "output_text": run["summary"],
        "settings": {"mode": "bullet_list"},
        "credits_used": 40,
        "request_id": run["request_id"],
    }, headers=auth_headers)

    assert response.status_code == 201
    entry = response.json()
    assert entry["credits_used"] == 1
    assert entry["settings"] == {"mode": "bullet_list"}

    listing = client.get("/history", headers=auth_headers).json()
    assert listing["total"] == 1
    assert listing["total_pages"] == 1
    assert listing["items"][0]["input_preview"] == STUDY_TEXT[:100]

    full = client.get(f"/history/{entry['id']}", headers=auth_headers).json()
    assert full["input_text"] == STUDY_TEXT
    assert full["request_id"] == run["request_id"]


def test_save_rejects_failed_or_foreign_request(client, auth_headers, admin_headers, provider):
    provider.fail = True
    client.post("/ai/summary", json={"text": STUDY_TEXT}, headers=auth_headers)
    provider.fail = False
    usage = client.get("/users/me/usage", headers=auth_headers).json()
    failed_id = usage["entries"][0]["request_id"]

    payload = {"tool_type": "summary", "input_text": "in", "output_text": "out", "request_id": failed_id}
    assert client.post("/history/save", json=payload, headers=auth_headers).status_code == 400
    assert client.post("/history/save", json=payload, headers=admin_headers).status_code == 400


def test_save_unknown_tool(client, auth_headers):
    response = client.post(
        "/history/save",
        json={"tool_type": "translate", "input_text": "in", "output_text": "out"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_TOOL"


def test_history_is_private_and_deletable(client, auth_headers, admin_headers):
    payload = {"tool_type": "rewrite", "input_text": "in", "output_text": "out"}
    first = client.post("/history/save", json=payload, headers=auth_headers).json()
    client.post("/history/save", json=payload, headers=auth_headers)

    assert client.get(f"/history/{first['id']}", headers=admin_headers).status_code == 404
    assert client.delete(f"/history/{first['id']}", headers=admin_headers).status_code == 404

    assert client.delete(f"/history/{first['id']}", headers=auth_headers).json()["deleted"] == 1
    assert client.get(f"/history/{first['id']}", headers=auth_headers).status_code == 404

    cleared = client.delete("/history", headers=auth_headers).json()
    assert cleared["deleted"] == 1
    assert client.get("/history", headers=auth_headers).json()["total"] == 0


# ============================================
# Admin
# ============================================

def test_admin_routes_require_admin(client, auth_headers):
    assert client.get("/admin/credits/config", headers=auth_headers).status_code == 403


def test_admin_update_credit_config(client, admin_headers):
    response = client.put(
        "/admin/credits/config",
        json={"daily_free_credits": 25, "tool_pricing": {"summary": 2, "questions": 3, "explain": 1, "rewrite": 1}},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["daily_free_credits"] == 25
    assert client.get("/admin/credits/config", headers=admin_headers).json()["tool_pricing"]["questions"] == 3


def test_admin_rejects_negative_credit_config(client, admin_headers):
    response = client.put("/admin/credits/config", json={"daily_free_credits": -1}, headers=admin_headers)
    assert response.status_code == 422


def test_admin_tool_config_defaults_and_update(client, admin_headers):
    defaults = client.get("/admin/tools/config", headers=admin_headers).json()["tools"]
    assert {tool["tool_id"] for tool in defaults} == {"summary", "questions", "explain", "rewrite"}

    response = client.put("/admin/tools/config", json={"tools": [{
        "tool_id": "summary",
        "tool_name": "Summary",
        "enabled": False,
        "min_chars": 10,
        "max_chars": 100,
        "cooldown_seconds": 30,
        "cost_multiplier": 1.5,
    }]}, headers=admin_headers)

    assert response.status_code == 200
    tools = response.json()["tools"]
    assert len(tools) == 1
    assert tools[0]["enabled"] is False
    assert tools[0]["cost_multiplier"] == 1.5


def test_admin_rejects_invalid_char_bounds(client, admin_headers):
    response = client.put("/admin/tools/config", json={"tools": [{
        "tool_id": "summary",
        "tool_name": "Summary",
        "min_chars": 500,
        "max_chars": 100,
    }]}, headers=admin_headers)

    assert response.status_code == 422


def test_admin_top_up(client, admin_headers, student):
    response = client.post(f"/admin/users/{student.id}/credits", json={"amount": 50}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["paid_credits"] == 50
    assert response.json()["total_credits"] == 53


def test_admin_top_up_unknown_user(client, admin_headers):
    response = client.post("/admin/users/9999/credits", json={"amount": 5}, headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "WALLET_NOT_FOUND"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
