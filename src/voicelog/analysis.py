"""Mood analysis prompt and strict parsing of the model's JSON reply."""

from __future__ import annotations

import json
from typing import Any

from voicelog.core.errors import AnalysisParseError
from voicelog.core.models import Analysis

MOOD_MIN = 1
MOOD_MAX = 10

ANALYSIS_PROMPT = '''You are a mood tracker. Analyze the following journal entry.
Return strict JSON with exactly these fields:
- mood: integer 1-10 (10 = very positive, 1 = very negative)
- summary: short 1-2 sentence summary of the note
- advice: one practical tip to improve tomorrow

Journal entry:
"""{transcript}"""
'''


def build_analysis_prompt(transcript: str) -> str:
    """Embed the transcript in the fixed analysis instruction."""
    return ANALYSIS_PROMPT.format(transcript=transcript)


def _parse_mood(value: Any) -> int:
    # bool is an int subclass; "true" is not a mood
    if isinstance(value, bool):
        raise AnalysisParseError(f"mood must be an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise AnalysisParseError(f"mood must be an integer, got {value!r}")
    if not MOOD_MIN <= value <= MOOD_MAX:
        raise AnalysisParseError(f"mood must be in [{MOOD_MIN}, {MOOD_MAX}], got {value}")
    return value


def _parse_text(data: dict[str, Any], name: str) -> str:
    value = data[name]
    if not isinstance(value, str) or not value.strip():
        raise AnalysisParseError(f"{name} must be a non-empty string, got {value!r}")
    return value.strip()


def parse_analysis(raw: str) -> Analysis:
    """Parse and validate the analysis reply.

    Raises:
        AnalysisParseError: The reply is not a JSON object, a required field
            is missing, or a field has the wrong type or range.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise AnalysisParseError("analysis reply is not valid JSON", cause=exc) from exc

    if not isinstance(data, dict):
        raise AnalysisParseError(f"analysis reply must be a JSON object, got {type(data).__name__}")

    missing = [name for name in ("mood", "summary", "advice") if name not in data]
    if missing:
        raise AnalysisParseError(f"analysis reply is missing: {', '.join(missing)}")

    return Analysis(
        mood=_parse_mood(data["mood"]),
        summary=_parse_text(data, "summary"),
        advice=_parse_text(data, "advice"),
        raw=data,
    )


def serialize_analysis(analysis: Analysis) -> str:
    """Compact JSON of the reply as received, used for output token estimates."""
    payload = analysis.raw or {
        "mood": analysis.mood,
        "summary": analysis.summary,
        "advice": analysis.advice,
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
