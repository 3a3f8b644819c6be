"""
AI Service layer for the study tools.

Builds the prompt for each tool/mode, calls the configured LLM provider
and shapes the response. Provider failures surface as AIServiceError so
the orchestrator can mark the request failed without charging credits.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from app.core.exceptions import AIServiceError
from app.llm.provider import LLMProvider
from app.llm.router import get_model_for_tool, get_temperature_for_tool, is_model_available
from app.services.config_cache import ConfigCache, get_config_cache

logger = logging.getLogger(__name__)


# ============================================
# Prompt templates
# ============================================

_SUMMARY_RULES = {
    "key_points": (
        "Extract the KEY POINTS of the text.\n"
        "- Keep only definitions, core concepts, formulas, rules and important facts\n"
        "- Drop long examples and side stories\n"
        "- One concise sentence per point, most important point first\n"
        "- Scale the number of points with the length of the text (2-3 for very short texts, up to 12 for long ones)\n"
        "- Highlight important keywords with **keyword**"
    ),
    "easy_read": (
        "Summarize the text in SIMPLE, everyday language for a beginner.\n"
        "- Avoid unnecessary jargon; briefly explain hard concepts\n"
        "- Short paragraphs or short bullets\n"
        "- Between 50 and 400 words depending on the length of the text\n"
        "- Highlight important keywords with **keyword**"
    ),
    "bullet_list": (
        "Summarize the text ENTIRELY as bullet points (-), no paragraphs.\n"
        "- One idea per bullet, at most 15 words\n"
        "- Sub-bullets only when necessary\n"
        "- Most important bullet first\n"
        "- Highlight important keywords with **keyword**"
    ),
    "ultra_short": (
        "Reduce the text to the ABSOLUTE MINIMUM for a ten-second review before an exam.\n"
        "- At most 5 bullet points (-), 5-10 words each\n"
        "- Keep only the core ideas and keywords\n"
        "- Highlight important keywords with **keyword**"
    ),
}

_QUESTION_FORMATS = {
    "mcq": (
        "multiple-choice questions with exactly 4 options each",
        '[{"question": "...?", "options": ["A", "B", "C", "D"], "answer": "A", "explanation": "..."}]',
    ),
    "short": (
        "short-answer questions asking for an explanation, analysis or comparison, with a 2-4 sentence model answer",
        '[{"question": "...?", "answer": "...", "explanation": "..."}]',
    ),
    "true_false": (
        "true/false statements, balanced between true and false, with subtle false ones",
        '[{"question": "statement", "answer": "true", "explanation": "..."}]',
    ),
    "fill_blank": (
        "fill-in-the-blank sentences using ____ for the missing key term",
        '[{"question": "The ____ is ...", "answer": "missing term", "explanation": "..."}]',
    ),
}

_EXPLAIN_STYLES = {
    "easy": ("Explain the content simply, as to a beginner.", "Add 1-2 concrete, easy-to-picture examples."),
    "exam": ("Explain the content focused on what is tested in exams: definitions, formulas and typical traps.",
             "Add typical exam-style examples."),
    "friend": ("Explain the content casually, like a friend helping you study.",
               "Add relatable everyday examples."),
    "deep_analysis": ("Analyze the content in depth: underlying principles, relationships and implications.",
                      "Add concrete illustrative examples with analysis."),
}

_REWRITE_STYLES = {
    "simple": "Rewrite the text in simple, clear language with short sentences.",
    "academic": "Rewrite the text in a formal academic register with precise terminology.",
    "student": "Rewrite the text the way a good student would write it in their own notes.",
    "practical": "Rewrite the text focusing on practical application and actionable takeaways.",
}

_OUTPUT_RULES = "Return ONLY the result. No title, no introduction, no meta information about these instructions."


def _strip_code_fence(text: str) -> str:
    match = re.search(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL)
    return match.group(1) if match else text.strip()


def _parse_questions(text: str) -> List[Dict[str, Any]]:
    """Parse a JSON array of questions; fall back to one free-text question."""
    try:
        parsed = json.loads(_strip_code_fence(text))
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"Failed to parse questions JSON from AI response: {text[:100]}")
        return [{"question": text, "answer": "See the question text", "explanation": ""}]

    if not isinstance(parsed, list):
        return []
    return [q for q in parsed if isinstance(q, dict)]


class StudyAIService:
    """
    Study tools backed by an LLM provider.

    Args:
        provider: LLM provider; created lazily from the environment when omitted
        cache: Config cache used to resolve per-tool model overrides
    """

    def __init__(self, provider: Optional[LLMProvider] = None, cache: Optional[ConfigCache] = None):
        self._provider = provider
        self.cache = cache or get_config_cache()

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            if not is_model_available():
                raise AIServiceError(cause="OPENAI_API_KEY not configured")
            from app.llm.openai_provider import OpenAIProvider
            self._provider = OpenAIProvider()
        return self._provider

    def _complete(self, tool_type: str, prompt: str) -> str:
        tool = self.cache.get_tool_config(tool_type) or {}
        model = get_model_for_tool(tool_type, tool.get("model_name"))
        try:
            response = self.provider.chat(
                messages=[{"role": "user", "content": prompt}],
                model=model,
                temperature=get_temperature_for_tool(tool_type),
            )
        except AIServiceError:
            raise
        except Exception as e:
            logger.error(f"AI provider error for {tool_type}: {type(e).__name__}: {e}", exc_info=True)
            raise AIServiceError(cause=str(e)) from e

        content = (response.content or "").strip()
        if not content:
            raise AIServiceError(cause="Empty response from AI provider")
        logger.debug(f"AI completion for {tool_type}: model={model}, tokens_in={response.tokens_in}, tokens_out={response.tokens_out}")
        return content

    def generate_summary(self, text: str, mode: str = "key_points") -> str:
        rules = _SUMMARY_RULES.get(mode, _SUMMARY_RULES["key_points"])
        prompt = f"You are a study assistant that summarizes content.\n\n{rules}\n\n{_OUTPUT_RULES}\n\nText:\n{text}"
        return self._complete("summary", prompt)

    def generate_questions(self, text: str, question_type: str = "mcq", count: int = 5) -> List[Dict[str, Any]]:
        """Generate `count` study questions, returned as a list of question dicts."""
        description, example = _QUESTION_FORMATS.get(question_type, _QUESTION_FORMATS["mcq"])
        prompt = (
            f"You are a study assistant that writes practice questions.\n\n"
            f"Create EXACTLY {count} {description} from the content below.\n"
            f"- Focus on definitions, concepts, rules and important formulas\n"
            f"- Moderate difficulty, suitable for revision\n"
            f"- Add a 1-2 sentence explanation for each answer\n\n"
            f"Return ONLY a JSON array, no markdown, in this format:\n{example}\n\n"
            f"Content:\n{text}"
        )
        return _parse_questions(self._complete("questions", prompt))

    def generate_explanation(self, text: str, mode: str = "easy", with_examples: bool = True) -> str:
        instruction, examples = _EXPLAIN_STYLES.get(mode, _EXPLAIN_STYLES["easy"])
        if not with_examples:
            examples = "Do not add examples; explain directly."
        prompt = f"You are a patient tutor.\n\n{instruction}\n{examples}\n\n{_OUTPUT_RULES}\n\nContent:\n{text}"
        return self._complete("explain", prompt)

    def rewrite_text(self, text: str, style: str = "simple") -> str:
        instruction = _REWRITE_STYLES.get(style, _REWRITE_STYLES["simple"])
        prompt = (
            f"You are a writing assistant.\n\n{instruction}\n"
            f"Keep the original meaning and all key information.\n\n{_OUTPUT_RULES}\n\nText:\n{text}"
        )
        return self._complete("rewrite", prompt)


def get_ai_service() -> StudyAIService:
    """FastAPI dependency returning the study AI service."""
    return StudyAIService()
