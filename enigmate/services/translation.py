"""Riddle content translation between English and French."""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional
from enigmate.config import TRANSLATION_MODEL
from enigmate.services import llm

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {"en": "English", "fr": "French"}
HINT_KEYS = ("hint1", "hint2", "hint3")


@dataclass
class RiddleTranslatableFields:
    title: Optional[str] = None
    question: Optional[str] = None
    solution: Optional[str] = None
    hints: dict[str, Optional[str]] = field(default_factory=dict)


def _has_content(value: Optional[str]) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def _translated(value: Any, fallback: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return fallback
    trimmed = value.strip()
    return trimmed if trimmed else fallback


async def translate_riddle_content(
    fields: RiddleTranslatableFields,
    target_language: str,
) -> RiddleTranslatableFields:
    """Translate riddle text into the target language; returns the input unchanged on any failure."""
    client = llm.get_gemini_client()
    if client is None:
        logger.warning("[Translation] Gemini client unavailable, returning original fields")
        return fields

    hints = {key: fields.hints.get(key) or "" for key in HINT_KEYS}
    if not any(_has_content(v) for v in (fields.title, fields.question, fields.solution, *hints.values())):
        return fields

    system_instruction = (
        f"You are a precise translator. Translate the provided puzzle content into "
        f"{LANGUAGE_NAMES.get(target_language, 'English')} while preserving markdown, tone, and intent. "
        f"If the text is already in the target language, return it unchanged. Respond strictly as JSON "
        f"with keys: title, question, solution, hints (object with hint1, hint2, hint3). "
        f"Leave fields empty when there is no text."
    )
    prompt = llm.dump_prompt(
        {
            "targetLanguage": target_language,
            "title": fields.title or "",
            "question": fields.question or "",
            "solution": fields.solution or "",
            "hints": hints,
        }
    )

    try:
        response = await llm.call_gemini_with_retry_async(
            client, TRANSLATION_MODEL, prompt, llm.json_config(system_instruction, temperature=0)
        )
    except Exception as e:
        logger.error("[Translation] Gemini translation failed: %s", e)
        return fields

    text = response.text or ""
    if not text:
        logger.warning("[Translation] Empty translation payload received")
        return fields

    try:
        parsed = llm.extract_first_json_object(text)
    except ValueError as e:
        logger.error("[Translation] Failed to parse translation payload: %s", e)
        return fields

    raw_hints = parsed.get("hints") if isinstance(parsed.get("hints"), dict) else {}
    return replace(
        fields,
        title=_translated(parsed.get("title"), fields.title),
        question=_translated(parsed.get("question"), fields.question),
        solution=_translated(parsed.get("solution"), fields.solution),
        hints={key: _translated(raw_hints.get(key), fields.hints.get(key)) for key in HINT_KEYS},
    )


async def translate_title_and_question(
    title: Optional[str],
    question: Optional[str],
    target_language: str,
) -> tuple[Optional[str], Optional[str]]:
    """Translate only the riddle intro shown before the timer starts."""
    if not title and not question:
        return None, None
    translated = await translate_riddle_content(
        RiddleTranslatableFields(title=title, question=question), target_language
    )
    return translated.title, translated.question
