# =============================================================================
# Recommendation Proxy: Gemini generateContent
# =============================================================================
#
# Turns one checklist row into a Markdown remediation plan:
# - build_prompt(): system + user instructions for the row
# - build_request_body(): generateContent payload (safety + generation config)
# - decode_response(): tagged-variant decoder over the response shapes we accept
# - generate_recommendation(): the full request -> RecommendOutcome flow
#
# Every outcome carries a recommendation string, including failures, so the
# caller always has something to show. No retries: a failed request is
# re-triggered by the user.
# =============================================================================

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, field_validator

from config import Settings

logger = logging.getLogger("seo-checklist")

HARM_CATEGORIES = (
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

# Upstream bodies are logged and echoed back truncated to this many characters
MAX_ERROR_BODY = 2000

MISSING_KEY_MESSAGE = "Server is missing GOOGLE_GENAI_API_KEY."
NO_TEXT_MESSAGE = "No recommendation text returned."


# ---------------------------------------------------------------------------
# Request / outcome models
# ---------------------------------------------------------------------------

class RecommendRequest(BaseModel):
    analysis: str = ""
    score: str = ""
    element: str = ""
    category: str = ""
    subcategory: str = ""

    @field_validator("analysis", "score", "element", "category", "subcategory", mode="before")
    @classmethod
    def as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


@dataclass
class RecommendOutcome:
    status_code: int
    recommendation: str

    def as_body(self) -> dict:
        return {"recommendation": self.recommendation}


def target_reached_message(element: str) -> str:
    return (
        f"No action needed. “{element}” meets best practices. "
        "Maintain current implementation and monitor over time."
    )


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

RECOMMEND_SYSTEM = """You are a senior Technical SEO engineer writing hands-on, implementation-ready recommendations.
Output MUST be Markdown with clear section headers, numbered steps, concrete examples/snippets, acceptance criteria,
and who should implement (Developer, Site Editor, Client). Tailor depth to severity; score < 9 requires deep detail.
If facts are missing, state assumptions and provide options."""

RECOMMEND_PROMPT = """INSPECTION ELEMENT: {element}
CATEGORY/SUBCATEGORY: {category} / {subcategory}
CURRENT SCORE: {score}
ANALYSIS (verbatim notes):
{analysis}

Write:
1) Summary of issue(s) & impact (quantify if possible)
2) Remediation plan (numbered steps; include examples/snippets/tools)
3) Acceptance criteria (measurable)
4) Owner & effort (who implements; rough complexity)
5) Risks/Dependencies
6) Nice-to-haves (optional)"""


def build_prompt(req: RecommendRequest) -> str:
    """System and user instructions, sent upstream as a single prompt."""
    user = RECOMMEND_PROMPT.format(
        element=req.element,
        category=req.category,
        subcategory=req.subcategory,
        score=req.score,
        analysis=req.analysis,
    ).strip()
    return RECOMMEND_SYSTEM + "\n\n" + user


def build_request_body(prompt: str, settings: Settings) -> dict:
    return {
        "safetySettings": [
            {"category": c, "threshold": settings.safety_threshold} for c in HARM_CATEGORIES
        ],
        "generationConfig": {
            "temperature": settings.temperature,
            "topP": settings.top_p,
            "topK": settings.top_k,
            "maxOutputTokens": settings.max_output_tokens,
        },
        "contents": [
            {"role": "user", "parts": [{"text": prompt}]},
        ],
    }


def generate_url(settings: Settings) -> str:
    return f"{settings.gemini_base_url}/{settings.gemini_model}:generateContent"


# ---------------------------------------------------------------------------
# Response decoding
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CandidateParts:
    """candidates[0].content.parts[*].text, the regular v1beta shape."""
    text: str


@dataclass(frozen=True)
class CandidateOutputText:
    """candidates[0].output_text"""
    text: str


@dataclass(frozen=True)
class TopLevelText:
    """A bare {"text": ...} body."""
    text: str


@dataclass(frozen=True)
class NoText:
    reason: str


Decoded = Union[CandidateParts, CandidateOutputText, TopLevelText, NoText]


def _first_candidate(data: dict) -> dict:
    candidates = data.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return {}


def _non_empty_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def decode_response(data: Any) -> Decoded:
    """
    Pick the first shape that yields text, in this order:
      1. CandidateParts       candidates[0].content.parts joined
      2. CandidateOutputText  candidates[0].output_text
      3. TopLevelText         text
      4. NoText               finishReason / finish_reason / promptFeedback.blockReason
    """
    if not isinstance(data, dict):
        return NoText(reason="unknown")

    candidate = _first_candidate(data)

    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if isinstance(parts, list):
        joined = "".join(
            p["text"] for p in parts
            if isinstance(p, dict) and _non_empty_str(p.get("text"))
        )
        if joined:
            return CandidateParts(text=joined)

    output_text = _non_empty_str(candidate.get("output_text"))
    if output_text:
        return CandidateOutputText(text=output_text)

    top_level = _non_empty_str(data.get("text"))
    if top_level:
        return TopLevelText(text=top_level)

    feedback = data.get("promptFeedback")
    block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
    reason = candidate.get("finishReason") or candidate.get("finish_reason") or block_reason
    return NoText(reason=str(reason) if reason else "unknown")


# ---------------------------------------------------------------------------
# Proxy
# ---------------------------------------------------------------------------

async def generate_recommendation(req: RecommendRequest, settings: Settings) -> RecommendOutcome:
    """Run one recommendation request end to end. Never raises."""
    try:
        if not settings.has_credential:
            logger.error("Recommendation requested but GOOGLE_GENAI_API_KEY is not set")
            return RecommendOutcome(500, MISSING_KEY_MESSAGE)

        # Rows already at target never cost a model call
        if req.score == "9":
            return RecommendOutcome(200, target_reached_message(req.element))

        body = build_request_body(build_prompt(req), settings)

        async with httpx.AsyncClient(timeout=settings.upstream_timeout) as http:
            resp = await http.post(
                generate_url(settings),
                params={"key": settings.google_api_key},
                json=body,
            )

        raw = resp.text
        if not resp.is_success:
            logger.error(f"Gemini error: {resp.status_code} {raw[:MAX_ERROR_BODY]}")
            return RecommendOutcome(500, f"Gemini error: {resp.status_code} {raw[:MAX_ERROR_BODY]}")

        try:
            data = json.loads(raw) if raw else {}
        except ValueError as e:
            logger.error(f"Gemini returned malformed JSON ({e}): {raw[:MAX_ERROR_BODY]}")
            return RecommendOutcome(500, f"Gemini returned malformed JSON: {raw[:MAX_ERROR_BODY]}")

        decoded = decode_response(data)
        if isinstance(decoded, NoText):
            logger.error(f"Gemini no-text response: {json.dumps(data)[:MAX_ERROR_BODY]}")
            return RecommendOutcome(
                200, f"{NO_TEXT_MESSAGE} No text in response. finishReason={decoded.reason}"
            )

        logger.info(
            f"Recommendation generated for '{req.element[:60]}' "
            f"({type(decoded).__name__}, {len(decoded.text)} chars)"
        )
        return RecommendOutcome(200, decoded.text)

    except Exception as e:
        logger.error(f"Recommendation request failed: {e}", exc_info=True)
        return RecommendOutcome(500, f"Server error: {e}")
