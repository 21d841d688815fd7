"""
Tests for the LLM judge: rubric parsing, daily calibration caching and storage,
and verdict parsing. Gemini is replaced by FakeGemini from conftest.
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import pytest

from conftest import FakeGemini
from enigmate.services import judge, llm


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self._storage = storage
        self._name = name

    def download(self, path: str) -> bytes:
        key = (self._name, path)
        if key not in self._storage.objects:
            raise RuntimeError("Object not found")
        return self._storage.objects[key]

    def upload(self, path: str, data: bytes, file_options: Optional[dict] = None):
        self._storage.objects[(self._name, path)] = data
        self._storage.uploads.append((self._name, path, file_options))
        return {"Key": path}


class FakeBucketInfo:
    def __init__(self, name: str):
        self.name = name


class FakeStorageApi:
    def __init__(self, storage: "FakeStorage"):
        self._storage = storage

    def list_buckets(self):
        return [FakeBucketInfo(name) for name in self._storage.buckets]

    def create_bucket(self, name: str, options: Optional[dict] = None):
        self._storage.buckets.append(name)

    def from_(self, name: str) -> FakeBucket:
        return FakeBucket(self._storage, name)


class FakeStorage:
    """Stands in for the service-role Supabase client (storage only)."""

    def __init__(self):
        self.buckets: list[str] = []
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: list[tuple] = []
        self.storage = FakeStorageApi(self)


RUBRIC = {
    "instructions": "Accept any answer naming a clock.",
    "key_points": ["has hands", "cannot clap"],
    "acceptance_criteria": "Must name a timepiece with hands.",
    "red_flags": ["digital watch"],
}


class TestParseCalibration:
    def test_snake_case(self) -> None:
        calibration = judge.parse_calibration(json.dumps(RUBRIC))
        assert calibration is not None
        assert calibration.instructions == "Accept any answer naming a clock."
        assert calibration.key_points == ["has hands", "cannot clap"]
        assert calibration.red_flags == ["digital watch"]

    def test_camel_case(self) -> None:
        payload = {
            "instructions": "  Be strict.  ",
            "keyPoints": ["a", 2],
            "acceptanceCriteria": "All points.",
            "redFlags": [],
        }
        calibration = judge.parse_calibration(json.dumps(payload))
        assert calibration is not None
        assert calibration.instructions == "Be strict."
        assert calibration.key_points == ["a", "2"]
        assert calibration.acceptance_criteria == "All points."

    def test_invalid_json(self) -> None:
        assert judge.parse_calibration("not json") is None
        assert judge.parse_calibration("[1, 2]") is None


class TestEnsureDailyCalibration:
    def test_default_rubric_without_client(self) -> None:
        calibration = asyncio.run(judge.ensure_daily_calibration(1, "Q?", "A", "fr"))
        assert calibration == judge.default_calibration("fr")

    def test_generated_once_then_cached(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue(json.dumps(RUBRIC))

        first = asyncio.run(judge.ensure_daily_calibration(1, "Q?", "A clock", "en"))
        second = asyncio.run(judge.ensure_daily_calibration(1, "Q?", "A clock", "en"))

        assert first.instructions == RUBRIC["instructions"]
        assert second is first
        assert len(fake_gemini.calls) == 1
        assert fake_gemini.calls[0]["config"].temperature == 0.2

    def test_cache_is_per_language(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue(json.dumps(RUBRIC), json.dumps({**RUBRIC, "instructions": "En français."}))

        english = asyncio.run(judge.ensure_daily_calibration(1, "Q?", "A", "en"))
        french = asyncio.run(judge.ensure_daily_calibration(1, "Q?", "A", "fr"))

        assert english.instructions != french.instructions
        assert len(fake_gemini.calls) == 2

    def test_generation_failure_falls_back_and_is_not_cached(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue(ValueError("bad request"), json.dumps(RUBRIC))

        first = asyncio.run(judge.ensure_daily_calibration(1, "Q?", "A", "en"))
        second = asyncio.run(judge.ensure_daily_calibration(1, "Q?", "A", "en"))

        assert first == judge.default_calibration("en")
        assert second.instructions == RUBRIC["instructions"]

    def test_unparsable_rubric_uses_default(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue("definitely not json")
        calibration = asyncio.run(judge.ensure_daily_calibration(1, "Q?", "A", "en"))
        assert calibration == judge.default_calibration("en")

    def test_generated_rubric_is_persisted(self, fake_gemini: FakeGemini, monkeypatch: pytest.MonkeyPatch) -> None:
        storage = FakeStorage()
        monkeypatch.setattr(judge, "get_supabase_admin", lambda: storage)
        fake_gemini.queue(json.dumps(RUBRIC))

        asyncio.run(judge.ensure_daily_calibration(7, "Q?", "A", "en"))

        path = judge.calibration_path(7, "en", judge._today())
        assert judge.JUDGE_CALIBRATION_BUCKET in storage.buckets
        assert (judge.JUDGE_CALIBRATION_BUCKET, path) in storage.objects
        stored = json.loads(storage.objects[(judge.JUDGE_CALIBRATION_BUCKET, path)])
        assert stored["key_points"] == RUBRIC["key_points"]
        assert storage.uploads[0][2]["upsert"] == "true"

    def test_stored_rubric_skips_generation(self, fake_gemini: FakeGemini, monkeypatch: pytest.MonkeyPatch) -> None:
        storage = FakeStorage()
        storage.buckets.append(judge.JUDGE_CALIBRATION_BUCKET)
        path = judge.calibration_path(7, "fr", judge._today())
        storage.objects[(judge.JUDGE_CALIBRATION_BUCKET, path)] = json.dumps(RUBRIC).encode("utf-8")
        monkeypatch.setattr(judge, "get_supabase_admin", lambda: storage)

        calibration = asyncio.run(judge.ensure_daily_calibration(7, "Q?", "A", "fr"))

        assert calibration.instructions == RUBRIC["instructions"]
        assert fake_gemini.calls == []
        assert storage.uploads == []


class TestEvaluateAnswer:
    def _evaluate(self, language: str = "en") -> judge.JudgeEvaluation:
        return asyncio.run(
            judge.evaluate_answer(
                riddle_id=1,
                question="What has hands but cannot clap?",
                expected_answer="A clock",
                user_answer="the thing on the wall that ticks",
                calibration=judge.default_calibration(language),
                hints=["It ticks."],
                language=language,
            )
        )

    def test_no_client(self) -> None:
        evaluation = self._evaluate("fr")
        assert not evaluation.is_correct
        assert evaluation.confidence == 0
        assert evaluation.reasoning == "Impossible de vérifier la réponse automatiquement."

    def test_snake_case_verdict(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue(json.dumps({
            "is_correct": True,
            "confidence": 0.9,
            "reasoning": "It describes a clock.",
            "missing_elements": [],
        }))
        evaluation = self._evaluate()
        assert evaluation.is_correct
        assert evaluation.confidence == pytest.approx(0.9)
        assert evaluation.reasoning == "It describes a clock."
        assert fake_gemini.calls[0]["config"].temperature == 0

    def test_camel_case_verdict_is_sanitized(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue(json.dumps({"isCorrect": True, "confidence": 1.7, "missingElements": [1, "hands"]}))
        evaluation = self._evaluate()
        assert evaluation.is_correct
        assert evaluation.confidence == 1.0
        assert evaluation.missing_elements == ["1", "hands"]
        assert evaluation.reasoning == "The judge did not provide details."

    def test_string_false_is_not_correct(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue(json.dumps({"is_correct": "false", "confidence": "high"}))
        evaluation = self._evaluate()
        assert not evaluation.is_correct
        assert evaluation.confidence == 0

    def test_prompt_carries_context(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue(json.dumps({"is_correct": False}))
        self._evaluate()
        prompt = json.loads(fake_gemini.calls[0]["contents"])
        assert prompt["expectedAnswer"] == "A clock"
        assert prompt["revealedHints"] == ["It ticks."]
        assert prompt["calibration"]["instructions"]

    def test_empty_reply(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue("")
        evaluation = self._evaluate()
        assert not evaluation.is_correct
        assert evaluation.reasoning == "The judge did not reach a verdict."

    def test_garbage_reply(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue("I think it is right")
        evaluation = self._evaluate()
        assert not evaluation.is_correct
        assert evaluation.reasoning == "The judge could not evaluate the answer."

    def test_sdk_error(self, fake_gemini: FakeGemini) -> None:
        fake_gemini.queue(RuntimeError("boom"))
        evaluation = self._evaluate("fr")
        assert not evaluation.is_correct
        assert evaluation.reasoning == "Le juge n'a pas pu évaluer la réponse."


class TestRetry:
    """call_gemini_with_retry retries transient errors only."""

    def test_retries_unavailable_then_succeeds(self) -> None:
        fake = FakeGemini().queue(RuntimeError("503 UNAVAILABLE"), "ok")
        response = llm.call_gemini_with_retry(fake, "model", "prompt", initial_delay=0)
        assert response.text == "ok"
        assert len(fake.calls) == 2

    def test_non_retryable_error_is_raised(self) -> None:
        fake = FakeGemini().queue(ValueError("400 invalid argument"))
        with pytest.raises(ValueError):
            llm.call_gemini_with_retry(fake, "model", "prompt", initial_delay=0)
        assert len(fake.calls) == 1

    def test_exhausted_rate_limit(self) -> None:
        fake = FakeGemini().queue(*[RuntimeError("429 RESOURCE_EXHAUSTED")] * 3)
        with pytest.raises(llm.GeminiBusyError):
            llm.call_gemini_with_retry(fake, "model", "prompt", max_retries=2, initial_delay=0)
        assert len(fake.calls) == 3

    def test_extract_first_json_object(self) -> None:
        assert llm.extract_first_json_object('```json\n{"a": {"b": 1}}\n```') == {"a": {"b": 1}}
        with pytest.raises(ValueError):
            llm.extract_first_json_object("no json here")
