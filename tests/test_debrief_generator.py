"""
Tests for debrief generation.
"""

import json

import pytest

from coachroom.core.ai_client import AIConfigError
from coachroom.core.debrief_generator import DebriefGenerationError, DebriefGenerator
from coachroom.core.session_store import SessionNotFoundError
from coachroom.models.session import SessionConfig, SessionStatus, Speaker
from coachroom.prompts.debrief import DEBRIEF_SCHEMA

DEBRIEF_JSON = {
    "session_summary": {"session_status": "completed", "role_guess": "Backend Engineer"},
    "conversation_summary": "Discussed queues and caching.",
    "scores": {"overall": 72, "technical_depth": 130, "delivery": -4},
    "strengths": [{"title": "Clear structure", "evidence": {"quote": "First, ..."}}],
    "improvements": [{"title": "Quantify impact", "issue": "No numbers"}],
    "delivery_metrics": {"filler_word_estimate": 3},
    "moments_that_mattered": [],
    "next_interview_checklist": ["Prepare a STAR story"],
    "skill_updates": [
        {"name": "python", "score": 85},
        {"name": "Kafka", "score": 30},
    ],
}


@pytest.fixture
async def session_id(session_store):
    session_id = await session_store.create_session(
        "user-1", SessionConfig(role="Backend Engineer", difficulty="hard")
    )
    await session_store.append_transcript(session_id, Speaker.MODEL, "Tell me about queues.")
    await session_store.append_transcript(session_id, Speaker.USER, "I used RabbitMQ.")
    return session_id


@pytest.fixture
def generator(ai_client, session_store, graph_store):
    return DebriefGenerator(ai_client, session_store, graph_store)


async def test_generates_and_stores_debrief(generator, ai_client, session_store, session_id):
    ai_client.json_response = json.dumps(DEBRIEF_JSON)

    debrief = await generator.generate(session_id)

    assert debrief.scores.overall == 72
    assert debrief.scores.technical_depth == 100
    assert debrief.scores.delivery == 0
    assert debrief.strengths[0].title == "Clear structure"

    session = await session_store.get_session(session_id)
    assert session.status == SessionStatus.ANALYZED
    assert session.debrief["conversation_summary"] == "Discussed queues and caching."

    name, call = ai_client.calls[0]
    assert name == "generate_json"
    assert call["schema"] is DEBRIEF_SCHEMA
    assert "[model]: Tell me about queues." in call["prompt"]
    assert "[user]: I used RabbitMQ." in call["prompt"]


async def test_code_fenced_output_is_accepted(generator, ai_client, session_id):
    ai_client.json_response = "```json\n" + json.dumps(DEBRIEF_JSON) + "\n```"
    debrief = await generator.generate(session_id)
    assert debrief.conversation_summary == "Discussed queues and caching."


async def test_regenerating_replaces_debrief(generator, ai_client, session_store, session_id):
    ai_client.json_response = json.dumps(DEBRIEF_JSON)
    await generator.generate(session_id)

    ai_client.json_response = json.dumps({**DEBRIEF_JSON, "conversation_summary": "Second pass."})
    await generator.generate(session_id)

    session = await session_store.get_session(session_id)
    assert session.debrief["conversation_summary"] == "Second pass."


async def test_unparseable_output_raises_with_excerpt(generator, ai_client, session_store, session_id):
    ai_client.json_response = "Sorry, " + "x" * 200

    with pytest.raises(DebriefGenerationError) as exc_info:
        await generator.generate(session_id)

    assert str(exc_info.value) == "Failed to parse AI response: " + ai_client.json_response[:100]
    session = await session_store.get_session(session_id)
    assert session.debrief is None


async def test_empty_transcript_still_produces_debrief(generator, ai_client, session_store):
    session_id = await session_store.create_session("user-1", SessionConfig())
    ai_client.json_response = json.dumps({"notes_if_low_data": "Too short to assess."})

    debrief = await generator.generate(session_id)

    assert debrief.notes_if_low_data == "Too short to assess."
    assert "(No audible conversation recorded)" in ai_client.calls[0][1]["prompt"]


async def test_unknown_session_raises(generator):
    with pytest.raises(SessionNotFoundError):
        await generator.generate("missing")


async def test_missing_api_key_propagates(generator, ai_client, session_id):
    ai_client.error = AIConfigError("GEMINI_API_KEY not configured")
    with pytest.raises(AIConfigError):
        await generator.generate(session_id)


async def test_skill_updates_only_touch_known_skills(generator, ai_client, graph_store, session_id):
    graph_store.skill_names = ["Python", "Redis"]
    ai_client.json_response = json.dumps(DEBRIEF_JSON)

    await generator.generate(session_id)

    user_id, updates = graph_store.mastery_updates[0]
    assert user_id == "user-1"
    assert [(u.name, u.score) for u in updates] == [("Python", 85)]
    assert "Python" in ai_client.calls[0][1]["prompt"]


async def test_graph_failure_does_not_fail_debrief(generator, ai_client, graph_store, session_store, session_id):
    graph_store.skill_names = ["Python"]
    graph_store.mastery_error = RuntimeError("neo4j down")
    ai_client.json_response = json.dumps(DEBRIEF_JSON)

    debrief = await generator.generate(session_id)

    assert debrief.scores.overall == 72
    assert (await session_store.get_session(session_id)).status == SessionStatus.ANALYZED
