"""LLM judge for riddle answers that do not match the official answer verbatim.

Each riddle gets a grading rubric ("calibration") generated once per UTC day and
per language. It is cached in-process and persisted to Supabase storage so that
every worker grades against the same rubric during the day. The judge then
compares the player's attempt to the official answer using that rubric.

Nothing in this module raises on LLM or storage trouble: failures are logged
and replaced by the default rubric or a negative verdict.
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from enigmate.config import JUDGE_CALIBRATION_BUCKET, JUDGE_MODEL
from enigmate.services import llm
from enigmate.supabase_client import ensure_bucket, get_supabase_admin

logger = logging.getLogger(__name__)


@dataclass
class JudgeCalibration:
    instructions: str
    key_points: list[str] = field(default_factory=list)
    acceptance_criteria: str = ""
    red_flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class JudgeEvaluation:
    is_correct: bool
    confidence: float
    reasoning: str
    missing_elements: list[str] = field(default_factory=list)


# (language, riddle_id) -> (day, calibration)
_calibration_cache: dict[tuple[str, int], tuple[str, JudgeCalibration]] = {}


def clear_calibration_cache() -> None:
    _calibration_cache.clear()


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def calibration_path(riddle_id: int, language: str, day: str) -> str:
    return f"calibrations/{language}/{riddle_id}/{day}.json"


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _first_present(payload: dict, *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def parse_calibration(text: str) -> Optional[JudgeCalibration]:
    """Parse a stored or generated rubric; accepts snake_case and camelCase keys."""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as e:
        logger.error("[Judge] Failed to parse judge calibration: %s", e)
        return None
    if not isinstance(payload, dict):
        return None

    instructions = payload.get("instructions")
    acceptance = _first_present(payload, "acceptance_criteria", "acceptanceCriteria")
    return JudgeCalibration(
        instructions=str(instructions).strip() if instructions is not None else "",
        key_points=_string_list(_first_present(payload, "key_points", "keyPoints")),
        acceptance_criteria=str(acceptance).strip() if acceptance is not None else "",
        red_flags=_string_list(_first_present(payload, "red_flags", "redFlags")),
    )


def default_calibration(language: str) -> JudgeCalibration:
    if language == "fr":
        return JudgeCalibration(
            instructions="Compare la logique, les éléments clés et la conclusion de la proposition à la solution attendue.",
            acceptance_criteria="La réponse doit couvrir tous les éléments essentiels de la solution officielle.",
        )
    return JudgeCalibration(
        instructions="Compare the reasoning, key elements, and conclusion of the attempt against the expected solution.",
        acceptance_criteria="The answer must cover every essential element from the official solution.",
    )


CALIBRATION_PROMPTS = {
    "fr": (
        "Tu es Le Maître, un arbitre impartial qui construit un guide d'évaluation pour juger "
        "les réponses aux énigmes. Réponds en français sous forme de JSON avec `instructions`, "
        "`key_points`, `acceptance_criteria` et `red_flags`."
    ),
    "en": (
        "You are the Master, an impartial judge building an evaluation guide for riddle answers. "
        "Respond in English as JSON with `instructions`, `key_points`, `acceptance_criteria`, "
        "and `red_flags`."
    ),
}

JUDGE_PROMPTS = {
    "fr": (
        "Tu es Le Maître, un juge impartial. Analyse en français la proposition de l'élève en "
        "suivant le guide fourni. Retourne un JSON avec `is_correct`, `confidence`, `reasoning` "
        "et `missing_elements`."
    ),
    "en": (
        "You are the Master, an impartial judge. Analyse the student's attempt in English using "
        "the provided guide. Return JSON with `is_correct`, `confidence`, `reasoning`, and "
        "`missing_elements`."
    ),
}

VERDICT_FALLBACKS = {
    "unavailable": {
        "fr": "Impossible de vérifier la réponse automatiquement.",
        "en": "Automatic review unavailable.",
    },
    "no_verdict": {
        "fr": "Le juge ne s'est pas prononcé.",
        "en": "The judge did not reach a verdict.",
    },
    "no_details": {
        "fr": "Le juge n'a pas détaillé sa décision.",
        "en": "The judge did not provide details.",
    },
    "failed": {
        "fr": "Le juge n'a pas pu évaluer la réponse.",
        "en": "The judge could not evaluate the answer.",
    },
}


def _negative_verdict(reason: str, language: str) -> JudgeEvaluation:
    return JudgeEvaluation(
        is_correct=False,
        confidence=0.0,
        reasoning=VERDICT_FALLBACKS[reason][language],
    )


async def generate_calibration(
    client,
    riddle_id: int,
    question: str,
    answer: str,
    language: str,
) -> Optional[JudgeCalibration]:
    """Ask the model for a grading rubric. Returns None when generation fails."""
    suffix = " (en français)" if language == "fr" else ""
    prompt = f"Riddle #{riddle_id}{suffix} : {question}\n\nSolution officielle : {answer}"
    try:
        response = await llm.call_gemini_with_retry_async(
            client,
            JUDGE_MODEL,
            prompt,
            llm.json_config(CALIBRATION_PROMPTS[language], temperature=0.2),
        )
    except Exception as e:
        logger.error("[Judge] Failed to generate judge calibration for riddle %s: %s", riddle_id, e)
        return None

    text = response.text or ""
    if not text:
        return None
    return parse_calibration(text) or default_calibration(language)


def _download_calibration(storage_client, path: str) -> Optional[JudgeCalibration]:
    try:
        data = storage_client.storage.from_(JUDGE_CALIBRATION_BUCKET).download(path)
    except Exception:
        # Missing object: generated below
        return None
    if not data:
        return None
    text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else str(data)
    return parse_calibration(text)


def _upload_calibration(storage_client, path: str, calibration: JudgeCalibration) -> None:
    encoded = json.dumps(calibration.to_dict(), ensure_ascii=False, indent=2).encode("utf-8")
    try:
        storage_client.storage.from_(JUDGE_CALIBRATION_BUCKET).upload(
            path,
            encoded,
            file_options={
                "cache-control": "86400",
                "content-type": "application/json",
                "upsert": "true",
            },
        )
    except Exception as e:
        logger.error("[Judge] Failed to persist judge calibration %s: %s", path, e)


async def ensure_daily_calibration(
    riddle_id: int,
    question: str,
    answer: str,
    language: str,
) -> JudgeCalibration:
    """Return today's rubric for a riddle, generating and persisting it on first use."""
    client = llm.get_gemini_client()
    if client is None:
        return default_calibration(language)

    today = _today()
    key = (language, riddle_id)
    cached = _calibration_cache.get(key)
    if cached and cached[0] == today:
        return cached[1]

    storage_client = get_supabase_admin()
    path = calibration_path(riddle_id, language, today)

    if storage_client is not None:
        await asyncio.to_thread(ensure_bucket, storage_client, JUDGE_CALIBRATION_BUCKET)
        stored = await asyncio.to_thread(_download_calibration, storage_client, path)
        if stored is not None:
            _calibration_cache[key] = (today, stored)
            return stored

    generated = await generate_calibration(client, riddle_id, question, answer, language)
    if generated is None:
        return default_calibration(language)

    if storage_client is not None:
        await asyncio.to_thread(_upload_calibration, storage_client, path, generated)

    logger.info("[Judge] Calibration ready for riddle %s (%s, %s)", riddle_id, language, today)
    _calibration_cache[key] = (today, generated)
    return generated


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _clamp_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return min(max(float(value), 0.0), 1.0)


def parse_evaluation(payload: dict, language: str) -> JudgeEvaluation:
    is_correct = _first_present(payload, "is_correct", "isCorrect")
    reasoning = payload.get("reasoning")
    reasoning = str(reasoning).strip() if reasoning is not None else ""
    return JudgeEvaluation(
        is_correct=_as_bool(is_correct) if is_correct is not None else False,
        confidence=_clamp_confidence(payload.get("confidence")),
        reasoning=reasoning or VERDICT_FALLBACKS["no_details"][language],
        missing_elements=_string_list(_first_present(payload, "missing_elements", "missingElements")),
    )


async def evaluate_answer(
    riddle_id: int,
    question: str,
    expected_answer: str,
    user_answer: str,
    calibration: Optional[JudgeCalibration],
    hints: list[str],
    language: str,
) -> JudgeEvaluation:
    """Grade an attempt with the model. Never raises; failures yield a negative verdict."""
    client = llm.get_gemini_client()
    if client is None:
        return _negative_verdict("unavailable", language)

    prompt = llm.dump_prompt(
        {
            "riddleId": riddle_id,
            "question": question,
            "expectedAnswer": expected_answer,
            "userAnswer": user_answer,
            "revealedHints": hints,
            "calibration": calibration.to_dict() if calibration else None,
            "language": language,
        }
    )

    try:
        response = await llm.call_gemini_with_retry_async(
            client,
            JUDGE_MODEL,
            prompt,
            llm.json_config(JUDGE_PROMPTS[language], temperature=0),
        )
        text = response.text or ""
        if not text:
            return _negative_verdict("no_verdict", language)
        evaluation = parse_evaluation(llm.extract_first_json_object(text), language)
    except Exception as e:
        logger.error("[Judge] Judge evaluation failed for riddle %s: %s", riddle_id, e)
        return _negative_verdict("failed", language)

    logger.info(
        "[Judge] Verdict for riddle %s: correct=%s confidence=%.2f",
        riddle_id, evaluation.is_correct, evaluation.confidence,
    )
    return evaluation
