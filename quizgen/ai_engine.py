"""
quizgen — AI Engine
====================
Question Generator: turns source text into a list of quiz questions via an
LLM (Groq + Gemini).

Features:
  - Quiz-type aware prompt (Multiple Choice, True/False, Hybrid)
  - Multi-provider hybrid call with automatic failover
  - Robust JSON extraction and shape validation of the question list
"""

import json
import re
import logging
import asyncio
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from groq import AsyncGroq

from quizgen.core.config import Settings
from quizgen.core.errors import GenerationError
from quizgen.schemas.quiz import GeneratedQuestion, GeneratedQuiz, QuizType

logger = logging.getLogger(__name__)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PROMPTS — STRICT JSON
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

HYBRID_INSTRUCTION = "mix of Multiple Choice and True/False questions"

QUIZ_SYSTEM_PROMPT = (
    "You are an expert educational assessment designer.\n"
    "Output ONLY valid JSON, no markdown fences, no commentary.\n\n"
    "Output MUST match this EXACT schema:\n"
    "{\n"
    '  "questions": [\n'
    "    {\n"
    '      "questionText": "...",\n'
    '      "answerChoices": ["Option A", "Option B", "Option C", "Option D"],\n'
    '      "correctAnswer": "The string of the correct option",\n'
    '      "explanation": "Why this is correct."\n'
    "    }\n"
    "  ]\n"
    "}\n\n"
    "Constraints:\n"
    "- For Multiple Choice, provide 4 options.\n"
    '- For True/False, provide exactly ["True", "False"] as answerChoices.\n'
    "- correctAnswer MUST be copied verbatim from answerChoices.\n"
    "- All questions must be in the SAME language as the source text.\n"
)


def type_instruction(quiz_type: QuizType) -> str:
    """What kind of questions to ask for. Hybrid is spelled out for the model."""
    if quiz_type == QuizType.hybrid:
        return HYBRID_INSTRUCTION
    return quiz_type.value


def build_user_prompt(text: str, amount: int, quiz_type: QuizType) -> str:
    return (
        f"Generate a {amount}-question {type_instruction(quiz_type)} quiz "
        f"based on the text below.\n\n"
        f"Text to analyze:\n\"{text}\""
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# JSON RECOVERY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def clean_and_parse_json(raw_text: str) -> Dict[str, Any]:
    """
    Robust JSON extractor:
    1. Strip markdown code fences (```json ... ```)
    2. Extract first { ... } block
    3. Parse with json.loads
    Raises ValueError on failure with diagnostic info.
    """
    if not raw_text or not raw_text.strip():
        raise ValueError("Empty AI response received")

    cleaned = raw_text.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", cleaned, re.DOTALL)
    if fence_match:
        cleaned = fence_match.group(1).strip()

    if not cleaned.startswith("{"):
        brace_match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if brace_match:
            cleaned = brace_match.group(0)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"[AI-ENGINE] JSON parse failed. Raw (first 500 chars): {raw_text[:500]}")
        raise ValueError(f"AI returned invalid JSON: {e}")

    if not isinstance(parsed, dict):
        raise ValueError(f"AI returned JSON {type(parsed).__name__}, expected an object")
    return parsed


def parse_questions(raw_text: str, quiz_type: QuizType) -> List[GeneratedQuestion]:
    """Parse a raw completion into validated questions. Raises ValueError."""
    quiz = GeneratedQuiz.model_validate(clean_and_parse_json(raw_text))

    if quiz_type == QuizType.true_false:
        bad = [i for i, q in enumerate(quiz.questions, 1) if not q.is_true_false]
        if bad:
            raise ValueError(f"True/False quiz has non True/False questions at positions {bad}")

    return quiz.questions


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# GENERATOR
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class QuestionGenerator:
    """LLM-backed question generator configured from ``Settings``."""

    def __init__(self, config: Settings):
        self.config = config
        logger.info(f"[AI-ENGINE] Provider mode: {config.AI_PROVIDER}")

        self.groq_client: Optional[AsyncGroq] = None
        if config.GROQ_API_KEY:
            self.groq_client = AsyncGroq(api_key=config.GROQ_API_KEY, base_url=config.GROQ_BASE_URL)
            logger.info("[AI-ENGINE] ✓ Groq client ready")
        else:
            logger.warning("[AI-ENGINE] ✗ Groq API key missing")

        if config.GOOGLE_API_KEY:
            genai.configure(api_key=config.GOOGLE_API_KEY, transport="rest")
            logger.info("[AI-ENGINE] ✓ Gemini client ready")
        else:
            logger.warning("[AI-ENGINE] ✗ Google API key missing")

    # ── Provider Calls ───────────────────────────────────────────────────────

    async def _call_groq(self, system_prompt: str, user_prompt: str) -> str:
        """Call Groq (Llama 3) with JSON mode and temperature=0."""
        if not self.groq_client:
            raise ValueError("Groq API Key missing")

        logger.info(f"[AI-ENGINE] Calling Groq ({self.config.GROQ_MODEL})...")
        completion = await self.groq_client.chat.completions.create(
            model=self.config.GROQ_MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0,
            max_tokens=8000,
        )
        result = completion.choices[0].message.content
        logger.info("[AI-ENGINE] ✓ Groq call succeeded")
        return result

    async def _call_gemini(self, system_prompt: str, user_prompt: str) -> str:
        """Call Gemini with JSON mode and temperature=0."""
        if not self.config.GOOGLE_API_KEY:
            raise ValueError("Google API Key missing")

        logger.info(f"[AI-ENGINE] Calling Gemini ({self.config.GEMINI_MODEL})...")
        model = genai.GenerativeModel(
            model_name=self.config.GEMINI_MODEL,
            generation_config={
                "response_mime_type": "application/json",
                "temperature": 0,
            },
        )
        full_prompt = f"{system_prompt}\n\nUser Task:\n{user_prompt}"
        response = await asyncio.to_thread(model.generate_content, full_prompt)
        logger.info("[AI-ENGINE] ✓ Gemini call succeeded")
        return response.text

    async def _hybrid_call(self, system_prompt: str, user_prompt: str) -> str:
        """
        Execute AI call with automatic failover.
        In 'hybrid' mode: tries Groq first, then Gemini.
        """
        provider = self.config.AI_PROVIDER

        if provider == "groq":
            callers = [("Groq", self._call_groq)]
        elif provider == "gemini":
            callers = [("Gemini", self._call_gemini)]
        else:  # hybrid
            callers = [("Groq", self._call_groq), ("Gemini", self._call_gemini)]

        last_error = None
        for name, caller in callers:
            try:
                return await caller(system_prompt, user_prompt)
            except Exception as e:
                last_error = e
                logger.warning(f"[AI-ENGINE] {name} failed: {str(e)[:200]}. Trying next...")

        raise RuntimeError(f"All AI providers failed. Last error: {last_error}")

    # ── Entry Point ──────────────────────────────────────────────────────────

    async def generate(self, text: str, amount: int, quiz_type: QuizType) -> List[GeneratedQuestion]:
        """
        Ask the LLM for ``amount`` questions of ``quiz_type`` about ``text``.
        Raises GenerationError if every provider fails or the reply is malformed.
        """
        logger.info(f"[AI-ENGINE] Generating {amount} '{quiz_type.value}' questions...")
        user_prompt = build_user_prompt(text, amount, quiz_type)

        try:
            raw = await self._hybrid_call(QUIZ_SYSTEM_PROMPT, user_prompt)
            questions = parse_questions(raw, quiz_type)
        except (ValueError, RuntimeError) as e:
            logger.error(f"[AI-ENGINE] Generation failed: {e}")
            raise GenerationError(detail=str(e)) from e

        logger.info(f"[AI-ENGINE] ✓ Received {len(questions)} questions")
        return questions
