"""
llm.py - Fill-instruction generation with Gemini.

The model sees the surveyed form (questions, fields, selectors), the resume,
the job description and the user's stored preferences, plus the page
screenshots, and must answer with a single JSON object:

    {"instructions": [
        {"selector": "#firstName", "fieldLabel": "First Name", "action": "fill",
         "value": "Jane", "confidence": 0.95, "reasoning": "from resume"},
        ...
    ]}

Anything else is a ModelResponseError; partial output is never salvaged.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import google.generativeai as genai

from .config import COVER_LETTER_SENTINEL, GEMINI_MODEL, NOT_APPLICABLE, PREFERENCE_SYNONYMS, gemini_api_key
from .models import AutoApplyOptions, FillInstruction, FormSurvey
from .reconcile import normalize_label

logger = logging.getLogger(__name__)


class ModelResponseError(ValueError):
    """The model answered, but not with a usable instruction list."""


class ModelUnavailableError(RuntimeError):
    """No API key, or the model call itself failed."""


SYSTEM_INSTRUCTION = f"""
You are an expert job-application assistant filling a web form on behalf of a candidate.

SOURCES OF TRUTH
* The RESUME (structured data and raw text) and the USER PREFERENCES.
* The JOB DESCRIPTION is context only; never copy facts from it into answers about the candidate.
* Do NOT invent facts. If an answer is not supported by the sources, leave that field out.

FORM
* The form is given as question blocks, each with its candidate fields, plus other fields.
* Every field has a "selector". Copy it exactly into your instruction when you use that field.
* Screenshots of the page are attached, top to bottom, to help you see the layout.

ACTIONS
* "fill"   - text inputs and textareas. value is the text to type.
* "click"  - radio buttons and checkboxes. Use the selector of the exact option to choose; value is that option's label.
* "select" - dropdowns. value is the option label to choose, spelled exactly as listed in "options".

RULES
* At most one instruction per field (one per chosen option for checkbox groups).
* Never emit an empty value or "{NOT_APPLICABLE}". Skip the field instead.
* Demographic, compensation, work-authorization, disability, veteran, relocation and location questions:
  answer from USER PREFERENCES when a preference is given.
* For a cover-letter field, set value to exactly "{COVER_LETTER_SENTINEL}"; the stored letter is inserted later.
* Format dates and numbers the way the field expects (placeholder / type hints), e.g. MM/DD/YYYY, plain integers for years.
* File uploads are out of scope; skip them.
* confidence is a number in [0, 1] for how sure you are the value is right for that field.

OUTPUT
Return JSON only, no markdown:
{{"instructions": [{{"selector": str, "fieldLabel": str, "action": "fill"|"click"|"select", "value": str, "confidence": number, "reasoning": str}}]}}
""".strip()


def flatten_resume_json(d: Any) -> str:
    """Make a readable text dump from a parsed resume JSON of arbitrary shape."""
    chunks: List[str] = []

    def _walk(prefix: str, obj: Any):
        if obj is None:
            return
        if isinstance(obj, dict):
            for k, v in obj.items():
                _walk(f"{prefix}{k}.", v)
        elif isinstance(obj, list):
            for i, v in enumerate(obj):
                _walk(f"{prefix}{i}.", v)
        else:
            val = str(obj).strip()
            if val:
                key = prefix[:-1] if prefix.endswith(".") else prefix
                chunks.append(f"{key}: {val}")

    _walk("", d)
    return "\n".join(chunks)


def build_model_payload(survey: FormSurvey, options: AutoApplyOptions) -> Dict[str, Any]:
    return {
        "job": {
            "title": options.job_title,
            "company": options.company,
            "description": (options.job_description or "")[:20000],
        },
        "resume_data": flatten_resume_json(options.resume_data),
        "resume_text": (options.resume_text or "")[:25000],
        "user_preferences": {k: v for k, v in (options.user_preferences or {}).items() if v not in (None, "")},
        "has_cover_letter": bool(options.cover_letter),
        "form": survey.to_prompt_dict(),
    }


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    First well-formed JSON object in a model reply, or None.
    Code fences are stripped; leading chatter and trailing text are ignored.
    """
    s = (text or "").strip()
    s = s.replace("```json", "").replace("```", "")

    decoder = json.JSONDecoder()
    start = s.find("{")
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(s, start)
        except json.JSONDecodeError:
            start = s.find("{", start + 1)
            continue
        if isinstance(obj, dict):
            return obj
        start = s.find("{", start + 1)
    return None


def parse_instructions(text: str) -> List[FillInstruction]:
    obj = extract_json_object(text)
    if obj is None:
        raise ModelResponseError("model response contained no JSON object")
    raw = obj.get("instructions")
    if not isinstance(raw, list):
        raise ModelResponseError("model response has no 'instructions' list")

    out = []
    for i, item in enumerate(raw):
        try:
            out.append(FillInstruction.from_dict(item))
        except KeyError as e:
            raise ModelResponseError(f"instruction {i} is missing required key {e}") from e
        except (TypeError, ValueError) as e:
            raise ModelResponseError(f"instruction {i} is malformed: {e}") from e
    return out


def preference_for(label: str, preferences: Dict[str, Any]) -> Optional[str]:
    """Stored answer whose topic synonyms appear in the label as whole words, if any."""
    norm = normalize_label(label)
    if not norm:
        return None
    for key, phrases in PREFERENCE_SYNONYMS.items():
        answer = preferences.get(key)
        if answer in (None, ""):
            continue
        if any(re.search(rf"\b{re.escape(normalize_label(p))}s?\b", norm) for p in phrases):
            return str(answer)
    return None


def apply_preferences(instructions: Sequence[FillInstruction], preferences: Dict[str, Any]) -> List[FillInstruction]:
    """
    Stored preferences win over model answers for the questions they cover.
    click instructions are left alone; their selector already names the option.
    """
    out = list(instructions)
    if not preferences:
        return out
    for instr in out:
        if instr.action not in ("fill", "select"):
            continue
        answer = preference_for(instr.target_label, preferences)
        if answer is not None and answer != instr.value:
            logger.info(f"🔧 Using stored preference for '{instr.target_label}': {answer}")
            instr.value = answer
    return out


def gemini_generate(parts: List[Any], model_name: str = GEMINI_MODEL, system_instruction: str = SYSTEM_INSTRUCTION) -> str:
    api_key = gemini_api_key()
    if not api_key:
        raise ModelUnavailableError("Missing GEMINI_API_KEY / GOOGLE_API_KEY environment variable.")
    genai.configure(api_key=api_key)
    model = genai.GenerativeModel(
        model_name,
        system_instruction=system_instruction,
        generation_config={
            "temperature": 0.1,
            "response_mime_type": "application/json",
        },
    )
    try:
        resp = model.generate_content(parts)
        return (resp.text or "").strip()
    except Exception as e:
        # the SDK raises a mix of google.api_core and ValueError types
        raise ModelUnavailableError(f"Gemini call failed: {e}") from e


def generate_instructions(survey: FormSurvey, options: AutoApplyOptions, model_name: str = GEMINI_MODEL) -> List[FillInstruction]:
    payload = build_model_payload(survey, options)
    parts: List[Any] = [
        "Fill this job application form. Return JSON only.\n" + json.dumps(payload, ensure_ascii=False)
    ]
    for png in survey.screenshots:
        parts.append({"mime_type": "image/png", "data": png})

    logger.info(f"🤖 Asking {model_name} for fill instructions ({len(survey.fields())} fields, {len(survey.screenshots)} screenshots)")
    text = gemini_generate(parts, model_name=model_name)
    logger.debug(f"raw model response: {text}")

    instructions = parse_instructions(text)
    instructions = apply_preferences(instructions, options.user_preferences)
    logger.info(f"🤖 Received {len(instructions)} instructions")
    return instructions
