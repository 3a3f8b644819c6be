"""
Unit tests for the study AI service.
Tests prompt selection, question parsing, model routing and error mapping.
"""
import pytest

from app.core.config import OPENAI_MODEL
from app.core.exceptions import AIServiceError
from app.llm.provider import LLMProvider, LLMResponse
from app.services.ai_service import StudyAIService, _parse_questions


class RecordingProvider(LLMProvider):
    def __init__(self, content="result", error=None):
        self.content = content
        self.error = error
        self.calls = []

    def chat(self, messages, model, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append({"prompt": messages[0]["content"], "model": model, "temperature": temperature})
        if self.error:
            raise self.error
        return LLMResponse(content=self.content, model=model)


@pytest.fixture
def cache(make_cache):
    return make_cache(tools={"explain": {"model_name": "gpt-4o"}})


def test_summary_mode_selects_prompt(cache):
    provider = RecordingProvider("  short summary \n")
    service = StudyAIService(provider=provider, cache=cache)

    result = service.generate_summary("Some text", mode="ultra_short")

    assert result == "short summary"
    assert "ten-second review" in provider.calls[0]["prompt"]
    assert "Some text" in provider.calls[0]["prompt"]


def test_unknown_summary_mode_falls_back_to_key_points(cache):
    provider = RecordingProvider()
    StudyAIService(provider=provider, cache=cache).generate_summary("Some text", mode="haiku")

    assert "KEY POINTS" in provider.calls[0]["prompt"]


def test_configured_model_overrides_routing(cache):
    provider = RecordingProvider()
    service = StudyAIService(provider=provider, cache=cache)

    service.generate_explanation("Some text", mode="friend", with_examples=False)
    service.rewrite_text("Some text", style="academic")

    assert provider.calls[0]["model"] == "gpt-4o"
    assert "Do not add examples" in provider.calls[0]["prompt"]
    assert provider.calls[1]["model"] == OPENAI_MODEL
    assert "academic" in provider.calls[1]["prompt"]


def test_questions_prompt_includes_count(cache):
    provider = RecordingProvider('[{"question": "Q?", "answer": "true", "explanation": "E"}]')
    questions = StudyAIService(provider=provider, cache=cache).generate_questions("Text", "true_false", 3)

    assert "EXACTLY 3 true/false" in provider.calls[0]["prompt"]
    assert questions == [{"question": "Q?", "answer": "true", "explanation": "E"}]


def test_parse_questions_strips_code_fence():
    text = '```json\n[{"question": "Q1?", "answer": "A"}]\n```'
    assert _parse_questions(text) == [{"question": "Q1?", "answer": "A"}]


def test_parse_questions_falls_back_to_single_question():
    questions = _parse_questions("1. What is osmosis?")

    assert len(questions) == 1
    assert questions[0]["question"] == "1. What is osmosis?"


def test_parse_questions_non_list_is_empty():
    assert _parse_questions('{"question": "Q"}') == []


def test_provider_error_becomes_ai_service_error(cache):
    provider = RecordingProvider(error=TimeoutError("read timed out"))

    with pytest.raises(AIServiceError) as exc_info:
        StudyAIService(provider=provider, cache=cache).generate_summary("Text")
    assert exc_info.value.status_code == 502
    assert exc_info.value.cause == "read timed out"


def test_empty_completion_is_an_error(cache):
    provider = RecordingProvider("   ")

    with pytest.raises(AIServiceError):
        StudyAIService(provider=provider, cache=cache).rewrite_text("Text")


def test_missing_api_key_is_an_error(cache, monkeypatch):
    monkeypatch.setattr("app.services.ai_service.is_model_available", lambda: False)

    with pytest.raises(AIServiceError):
        StudyAIService(cache=cache).generate_summary("Text")
