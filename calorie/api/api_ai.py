import os
import re
import json
import logging
from json import JSONDecodeError
from typing import Any, Dict, List, Optional
from openai import OpenAI
from fastapi import APIRouter, HTTPException, Body

from calorie.domain.Recovery import ActivitySuggestion
from calorie.utilities.config import OPENAI_MODEL
from calorie.utilities.constants import MET_VALUES, SUGGESTION_PROMPT_TEMPLATE, SUGGESTION_JSON_FORMAT

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_KG = 70.0
DEFAULT_DURATION_MINUTES = 30
MAX_SUGGESTIONS = 3

BLOCK_FIELDS = {
    "title": "title",
    "description": "description",
    "activity type": "activity_type",
    "duration": "duration",
    "frequency": "frequency",
    "difficulty": "difficulty",
    "personalized reason": "personalized_reason",
}


# === Helper: Get OpenAI Client ===
def _get_openai_client():
    """Return an OpenAI client if OPENAI_API_KEY is set, otherwise None."""
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        return None
    return OpenAI(api_key=api_key)


# === Calorie estimate ===
def estimate_calorie_burn(activity_type: str, duration_minutes: int, weight_kg: Optional[float]) -> int:
    """MET x weight(kg) x hours."""
    met = MET_VALUES.get((activity_type or "").strip().lower(), MET_VALUES["default"])
    weight = weight_kg or DEFAULT_WEIGHT_KG
    return round(met * weight * (duration_minutes / 60))


def _minutes(value: Any) -> int:
    if isinstance(value, (int, float)):
        return int(value)
    match = re.search(r"(\d+)", str(value or ""))
    return int(match.group(1)) if match else DEFAULT_DURATION_MINUTES


def _to_suggestion(data: Dict[str, Any], weight_kg: Optional[float]) -> Optional[ActivitySuggestion]:
    title = str(data.get("title") or "").strip()
    description = str(data.get("description") or "").strip()
    activity_type = str(data.get("activity_type") or "").strip().lower()
    if not (title and description and activity_type):
        return None
    minutes = _minutes(data.get("duration_minutes", data.get("duration")))
    difficulty = str(data.get("difficulty") or "easy").strip().lower()
    return ActivitySuggestion(
        title=title,
        description=description,
        activity_type=activity_type,
        duration_minutes=minutes,
        estimated_calories=estimate_calorie_burn(activity_type, minutes, weight_kg),
        frequency=str(data.get("frequency") or "").strip(),
        difficulty=difficulty if difficulty in ("easy", "moderate", "challenging") else "easy",
        personalized_reason=str(data.get("personalized_reason") or "").strip(),
    )


# === Prompt ===
def build_suggestion_prompt(context: Dict[str, Any]) -> str:
    lines = [f"Target roughly {context.get('target_burn', 200)} kcal of extra activity spread over this week."]
    if context.get("recent_sports"):
        lines.append(f"Activities I already do: {', '.join(context['recent_sports'])}.")
    if context.get("age"):
        lines.append(f"I am {context['age']} years old.")
    if context.get("weight_kg"):
        lines.append(f"I weigh {context['weight_kg']} kg.")
    lines.append("Keep it encouraging, flexible and realistic. Do not mention guilt or 'burning off' food.")
    return " ".join(lines) + SUGGESTION_PROMPT_TEMPLATE + SUGGESTION_JSON_FORMAT


# === Parsing ===
def _parse_json_suggestions(text: str, weight_kg: Optional[float]) -> Optional[List[ActivitySuggestion]]:
    """Decode a JSON list (or {"suggestions": [...]}) of suggestions; None if no JSON is found."""
    parsed = None
    try:
        parsed = json.loads(text)
    except JSONDecodeError:
        candidate = _extract_json_by_balancing(_remove_trailing_commas(_strip_code_fences(text)))
        if candidate:
            try:
                parsed = json.loads(_remove_trailing_commas(candidate))
            except JSONDecodeError:
                logger.warning("Extracted JSON from AI output still does not decode")
    if parsed is None:
        return None
    if isinstance(parsed, dict):
        parsed = parsed.get("suggestions", [parsed])
    if not isinstance(parsed, list):
        return None
    items = (_to_suggestion(item, weight_kg) for item in parsed if isinstance(item, dict))
    return [s for s in items if s is not None][:MAX_SUGGESTIONS]


def _parse_suggestion_blocks(text: str, weight_kg: Optional[float]) -> List[ActivitySuggestion]:
    """Parse the plain-text 'SUGGESTION n:' / 'Field: value' layout."""
    suggestions = []
    for block in re.split(r"SUGGESTION \d+:", text, flags=re.I)[1:]:
        data = {}
        for line in block.splitlines():
            key, sep, value = line.strip().lstrip("-* ").partition(":")
            field = BLOCK_FIELDS.get(key.strip().strip("*").lower())
            if sep and field:
                data[field] = value.strip()
        suggestion = _to_suggestion(data, weight_kg)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions[:MAX_SUGGESTIONS]


def parse_activity_suggestions(text: str, weight_kg: Optional[float] = None) -> List[ActivitySuggestion]:
    text = (text or "").strip()
    if not text:
        return []
    suggestions = _parse_json_suggestions(text, weight_kg)
    if suggestions is None:
        suggestions = _parse_suggestion_blocks(text, weight_kg)
    return suggestions


# === Text Cleaning Helpers ===
def _strip_code_fences(text: str) -> str:
    """Remove common markdown code fences and leading/trailing whitespace."""
    text = re.sub(r"```(?:json)?\n(.*?)```", r"\1", text, flags=re.S)
    text = re.sub(r"^```|```$", "", text)
    return text.strip()


def _remove_trailing_commas(text: str) -> str:
    """Remove trailing commas before a closing brace or bracket."""
    return re.sub(r",\s*(\}|\])", r"\1", text)


def _extract_json_by_balancing(text: str) -> Optional[str]:
    """Extract the first JSON object/array by balancing braces/brackets."""
    start = None
    stack = []
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if ch == '"' and not escape:
            in_string = not in_string
        if in_string and ch == "\\" and not escape:
            escape = True
            continue
        else:
            escape = False

        if not in_string:
            if ch in "{[":
                if start is None:
                    start = i
                stack.append(ch)
            elif ch in "}]":
                if not stack:
                    continue
                opening = stack.pop()
                if (opening == "{" and ch != "}") or (opening == "[" and ch != "]"):
                    return None
                if not stack and start is not None:
                    return text[start:i + 1]
    return None


def _request_json_fix(client: OpenAI, previous_output: str) -> Optional[str]:
    """Ask the model to reformat previous_output as a strict JSON list."""
    try:
        prompt = (
            "The previous response contained activity suggestions but was not valid JSON. "
            "Reformat ONLY the suggestions as a valid JSON list (no surrounding text) using the same keys. "
            "Here is the original output:\n\n" + previous_output
        )
        resp = client.responses.create(model=OPENAI_MODEL, input=prompt)
        return (resp.output_text or "").strip()
    except Exception:
        logger.exception("Error while requesting AI to fix JSON formatting")
        return None


# === Suggestion Generation ===
def generate_activity_suggestions(context: Dict[str, Any]) -> List[ActivitySuggestion]:
    """Ask the model for 2-3 recovery activities. Returns [] when AI is unavailable or unusable."""
    client = _get_openai_client()
    if client is None:
        logger.warning("OPENAI_API_KEY not set, skipping activity suggestions.")
        return []

    weight_kg = context.get("weight_kg")
    try:
        response = client.responses.create(model=OPENAI_MODEL, input=build_suggestion_prompt(context))
    except Exception:
        logger.exception("Activity suggestion request failed")
        return []

    raw = (response.output_text or "").strip()
    if not raw:
        logger.warning("AI returned empty suggestion data")
        return []

    suggestions = parse_activity_suggestions(raw, weight_kg)
    if suggestions:
        return suggestions

    fixed = _request_json_fix(client, raw)
    if fixed:
        suggestions = parse_activity_suggestions(fixed, weight_kg)
        if suggestions:
            return suggestions

    logger.error("AI output held no usable activity suggestions")
    return []


# === FastAPI Endpoint ===
router = APIRouter()


@router.post("/api/ai/activity-suggestions")
async def activity_suggestions(context: Dict[str, Any] = Body(..., embed=True)):
    if _get_openai_client() is None:
        raise HTTPException(status_code=503, detail="AI suggestions are not configured")
    suggestions = generate_activity_suggestions(context)
    if not suggestions:
        raise HTTPException(status_code=502, detail="AI did not return usable suggestions")
    return [s.to_dict() for s in suggestions]
