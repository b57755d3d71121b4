"""
Journal AI Service

Uses Google Gemini to score journal entries and to answer reflective
questions over a user's journal history.

Every call degrades to a deterministic answer when the model is not
configured, switched off through LLM_FEATURES_ENABLED, or fails.
"""

import os
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from mindfold.utils.feature_flags import llm_features_enabled

logger = logging.getLogger(__name__)

SCORE_KEYS = (
    "mental_health_score",
    "happiness_score",
    "accountability_score",
    "stress_score",
    "burnout_risk_score",
)

FALLBACK_REFLECTION = (
    "Thank you for sharing your thoughts today. Keep journaling to build a "
    "clearer picture of your mental wellness journey."
)
FALLBACK_ANSWER = "I wasn't able to generate a response. Please try again."

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "mental_health_score": {"type": "integer"},
        "happiness_score": {"type": "integer"},
        "accountability_score": {"type": "integer"},
        "stress_score": {"type": "integer"},
        "burnout_risk_score": {"type": "integer"},
        "ai_reflection": {"type": "string"},
        "mood": {"type": "string"},
    },
    "required": list(SCORE_KEYS) + ["ai_reflection", "mood"],
}


def fallback_analysis() -> Dict[str, Any]:
    analysis: Dict[str, Any] = {key: 50 for key in SCORE_KEYS}
    analysis["ai_reflection"] = FALLBACK_REFLECTION
    analysis["mood"] = "neutral"
    return analysis


def _clamp_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return 50
    return max(0, min(100, score))


def _analysis_prompt(content: str) -> str:
    return f"""You are a mental health analysis assistant. Read the journal entry below and score it.

Scores (integers from 0 to 100):
- mental_health_score: overall mental wellness (100 = excellent, 0 = poor)
- happiness_score: positivity (100 = very happy, 0 = very sad)
- accountability_score: self-responsibility and follow-through (100 = high, 0 = low)
- stress_score: calm versus stress (100 = no stress at all, 0 = extreme stress)
- burnout_risk_score: energy versus burnout (100 = no burnout risk, 0 = severe burnout risk)

For stress_score and burnout_risk_score a HIGHER number is BETTER. An entry such as
"it was a good day, I liked it" should score 80-95 on both.

Also return:
- ai_reflection: an empathetic reflection of 2-3 sentences
- mood: a single lowercase word describing the writer's mood (e.g. happy, anxious, calm)

Journal entry:
\"\"\"{content}\"\"\"
"""


def _ask_prompt(question: str, entries: Sequence[Dict[str, Any]], mode: str) -> str:
    count = len(entries)
    noun = "entry" if count == 1 else "entries"
    if mode == "quick_reflect":
        context_note = (
            f"You are analyzing the user's recent journal entries ({count} {noun}). "
            "Give a focused, concise answer based on what's available."
        )
    else:
        context_note = (
            f"You are performing a deep analysis of the user's journal history ({count} {noun}). "
            "Give a thorough, detailed answer with patterns and insights based on what's available."
        )
    limited_note = ""
    if count < 5:
        limited_note = (
            "NOTE: The user has only a few entries. Work with what IS available rather than "
            "what's missing, and encourage them to keep journaling."
        )
    entries_text = "\n\n".join(f"[{e['entry_date']}]: {e['content']}" for e in entries)
    return f"""{context_note}

You are an empathetic wellness companion. The user is asking a reflective question about their
life based on their journal. Give a personalized, thoughtful and supportive answer.

{limited_note}

User's journal entries:
{entries_text}

User's question: "{question}"

Reference specific entries or patterns where relevant. Be empathetic and constructive."""


class JournalAIService:
    """Gemini-backed journal analysis and question answering."""

    def __init__(self, llm_api_key: Optional[str] = None):
        self._explicit_key = llm_api_key

    @property
    def llm_api_key(self) -> Optional[str]:
        return self._explicit_key or os.getenv("LLM_API_KEY")

    @property
    def llm_model_name(self) -> str:
        return os.getenv("LLM_MODEL_NAME", "gemini-2.5-flash")

    def is_available(self) -> bool:
        return bool(self.llm_api_key) and llm_features_enabled()

    def _generate(self, prompt: str, config: Optional[Dict[str, Any]] = None) -> str:
        from google import genai

        client = genai.Client(api_key=self.llm_api_key)
        response = client.models.generate_content(
            model=self.llm_model_name,
            contents=prompt,
            config=config,
        )
        return response.text or ""

    def analyze_journal_entry(self, content: str) -> Dict[str, Any]:
        """
        Score one journal entry.

        Returns:
            Dict with the five scores (ints clamped to 0-100), `ai_reflection`
            and `mood`.
        """
        if not self.is_available():
            logger.info("LLM unavailable, using fallback journal analysis")
            return fallback_analysis()

        try:
            result_text = self._generate(
                _analysis_prompt(content),
                config={
                    "response_mime_type": "application/json",
                    "response_schema": ANALYSIS_SCHEMA,
                    "temperature": 0.3,
                },
            )
            parsed = json.loads(result_text or "{}")
        except json.JSONDecodeError as parse_error:
            logger.error(f"Failed to parse journal analysis response: {parse_error}")
            return fallback_analysis()
        except Exception as e:
            logger.error(f"Journal analysis failed: {e}")
            return fallback_analysis()

        if not isinstance(parsed, dict):
            return fallback_analysis()

        analysis: Dict[str, Any] = {key: _clamp_score(parsed.get(key)) for key in SCORE_KEYS}
        analysis["ai_reflection"] = (parsed.get("ai_reflection") or "").strip() or FALLBACK_REFLECTION
        mood = str(parsed.get("mood") or "").strip().lower().split()
        analysis["mood"] = mood[0] if mood else "neutral"
        return analysis

    def ask_journal(self, question: str, entries: List[Dict[str, Any]], mode: str) -> str:
        if not self.is_available():
            return FALLBACK_ANSWER
        try:
            answer = self._generate(_ask_prompt(question, entries, mode), config={"temperature": 0.7})
        except Exception as e:
            logger.error(f"Ask-journal generation failed: {e}")
            return FALLBACK_ANSWER
        return answer.strip() or FALLBACK_ANSWER


_ai_service: Optional[JournalAIService] = None


def get_ai_service() -> JournalAIService:
    global _ai_service
    if _ai_service is None:
        _ai_service = JournalAIService()
    return _ai_service


def analyze_journal_entry(content: str) -> Dict[str, Any]:
    return get_ai_service().analyze_journal_entry(content)


def ask_journal(question: str, entries: List[Dict[str, Any]], mode: str) -> str:
    return get_ai_service().ask_journal(question, entries, mode)
