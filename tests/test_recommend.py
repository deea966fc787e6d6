import json

import httpx
import pytest

from config import Settings
from recommend import (
    HARM_CATEGORIES,
    CandidateOutputText,
    CandidateParts,
    NoText,
    RecommendRequest,
    TopLevelText,
    build_prompt,
    build_request_body,
    decode_response,
    generate_recommendation,
)
from tests.conftest import gemini_text_payload


ROW = RecommendRequest(
    analysis="12 product templates ship without canonical tags.",
    score="3",
    element="Canonical tags",
    category="4- Content",
    subcategory="Duplication",
)


def test_request_defaults_and_coercion() -> None:
    assert RecommendRequest().model_dump() == {
        "analysis": "", "score": "", "element": "", "category": "", "subcategory": "",
    }
    assert RecommendRequest(score=9, element=None).score == "9"
    assert RecommendRequest(element=None).element == ""


def test_build_prompt_embeds_row() -> None:
    prompt = build_prompt(ROW)
    assert prompt.startswith("You are a senior Technical SEO engineer")
    assert "INSPECTION ELEMENT: Canonical tags" in prompt
    assert "CATEGORY/SUBCATEGORY: 4- Content / Duplication" in prompt
    assert "CURRENT SCORE: 3" in prompt
    assert "12 product templates ship without canonical tags." in prompt
    assert "6) Nice-to-haves (optional)" in prompt


def test_request_body_uses_configured_policy() -> None:
    body = build_request_body("hello", Settings())
    assert body["contents"] == [{"role": "user", "parts": [{"text": "hello"}]}]
    assert body["generationConfig"] == {
        "temperature": 0.3, "topP": 0.9, "topK": 40, "maxOutputTokens": 1600,
    }
    assert [s["category"] for s in body["safetySettings"]] == list(HARM_CATEGORIES)
    assert {s["threshold"] for s in body["safetySettings"]} == {"BLOCK_NONE"}

    strict = build_request_body("hello", Settings(safety_threshold="block_medium_and_above"))
    assert {s["threshold"] for s in strict["safetySettings"]} == {"BLOCK_MEDIUM_AND_ABOVE"}


def test_unknown_safety_threshold_rejected() -> None:
    with pytest.raises(ValueError):
        Settings(safety_threshold="BLOCK_EVERYTHING")


@pytest.mark.parametrize(
    "data, expected",
    [
        (gemini_text_payload("Hello ", "world"), CandidateParts("Hello world")),
        (
            {"candidates": [{"content": {"parts": [{"text": ""}, {"inlineData": {}}, {"text": "x"}]}}]},
            CandidateParts("x"),
        ),
        ({"candidates": [{"content": {"parts": []}, "output_text": "alt"}]}, CandidateOutputText("alt")),
        ({"candidates": [], "text": "bare"}, TopLevelText("bare")),
        ({"candidates": [{"finishReason": "SAFETY"}]}, NoText("SAFETY")),
        ({"candidates": [{"finish_reason": "MAX_TOKENS"}]}, NoText("MAX_TOKENS")),
        ({"promptFeedback": {"blockReason": "OTHER"}}, NoText("OTHER")),
        ({}, NoText("unknown")),
        ([], NoText("unknown")),
        ({"candidates": "oops", "promptFeedback": "oops"}, NoText("unknown")),
    ],
)
def test_decode_response(data, expected) -> None:
    assert decode_response(data) == expected


@pytest.mark.anyio("asyncio")
async def test_missing_credential_makes_no_call(gemini) -> None:
    outcome = await generate_recommendation(ROW, Settings(google_api_key=""))
    assert outcome.status_code == 500
    assert "GOOGLE_GENAI_API_KEY" in outcome.recommendation
    assert gemini.requests == []


@pytest.mark.anyio("asyncio")
async def test_target_score_short_circuits(gemini, settings: Settings) -> None:
    req = RecommendRequest(score="9", element="XML sitemap")
    outcome = await generate_recommendation(req, settings)
    assert outcome.status_code == 200
    assert outcome.recommendation == (
        "No action needed. “XML sitemap” meets best practices. "
        "Maintain current implementation and monitor over time."
    )
    assert gemini.requests == []


@pytest.mark.anyio("asyncio")
async def test_success_posts_single_prompt(gemini, settings: Settings) -> None:
    gemini.payload = gemini_text_payload("## Summary\n", "Add canonicals.")
    outcome = await generate_recommendation(ROW, settings)

    assert outcome.status_code == 200
    assert outcome.recommendation == "## Summary\nAdd canonicals."
    assert len(gemini.requests) == 1

    sent = gemini.requests[0]
    assert sent.method == "POST"
    assert sent.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
    assert sent.url.params["key"] == "test-key"
    body = json.loads(sent.content)
    assert body["contents"][0]["parts"][0]["text"] == build_prompt(ROW)


@pytest.mark.anyio("asyncio")
async def test_upstream_error_status(gemini, settings: Settings) -> None:
    gemini.status_code = 429
    gemini.payload = {"error": {"message": "quota exceeded"}}
    outcome = await generate_recommendation(ROW, settings)
    assert outcome.status_code == 500
    assert outcome.recommendation.startswith("Gemini error: 429")
    assert "quota exceeded" in outcome.recommendation


@pytest.mark.anyio("asyncio")
async def test_no_text_is_reported_not_raised(gemini, settings: Settings) -> None:
    gemini.payload = {"candidates": [{"finishReason": "SAFETY"}]}
    outcome = await generate_recommendation(ROW, settings)
    assert outcome.status_code == 200
    assert outcome.recommendation == (
        "No recommendation text returned. No text in response. finishReason=SAFETY"
    )


@pytest.mark.anyio("asyncio")
async def test_malformed_json(gemini, settings: Settings) -> None:
    gemini.raw = "<html>bad gateway</html>"
    outcome = await generate_recommendation(ROW, settings)
    assert outcome.status_code == 500
    assert outcome.recommendation.startswith("Gemini returned malformed JSON")


@pytest.mark.anyio("asyncio")
async def test_transport_failure(gemini, settings: Settings) -> None:
    gemini.error = httpx.ConnectError("connection refused")
    outcome = await generate_recommendation(ROW, settings)
    assert outcome.status_code == 500
    assert outcome.recommendation == "Server error: connection refused"
